"""
Core genome mutation and body generation functionality.
"""

from .graph_index import Graph, GraphIndex, dedupe_edges
from .rule_engine import Match, find_matches, apply_match, mutate, mutate_one, grow
from .genome import random_genome
from .skeleton import DegenerateGraphError, extract_spine
from .force_layout import ForceLayout, Layout, LayoutOptions
from .spine import SpineCurve, SpineOptions, build_spine
from .frame_field import FrameField, propagate_frames
from .asymmetry import AsymmetryOptions, compute_asymmetry
from .mesh import MeshBuffers
from .body import BodyOptions, BodySynthesizer, ComplexityOptions, complexity_scale
from .accessories import AccessoryGeometry, AccessoryOptions
from .topology import weld_vertices
from .orientation import normalize_orientation
from .mesh_analysis import MeshReport, analyze_mesh
from .generator import BodyGenerator, GeneratedBody, GeneratorOptions, generate_body

__all__ = ['Graph', 'GraphIndex', 'dedupe_edges',
           'Match', 'find_matches', 'apply_match', 'mutate', 'mutate_one', 'grow',
           'random_genome', 'DegenerateGraphError', 'extract_spine',
           'ForceLayout', 'Layout', 'LayoutOptions',
           'SpineCurve', 'SpineOptions', 'build_spine',
           'FrameField', 'propagate_frames',
           'AsymmetryOptions', 'compute_asymmetry',
           'MeshBuffers', 'BodyOptions', 'BodySynthesizer', 'ComplexityOptions', 'complexity_scale',
           'AccessoryGeometry', 'AccessoryOptions', 'weld_vertices', 'normalize_orientation',
           'MeshReport', 'analyze_mesh',
           'BodyGenerator', 'GeneratedBody', 'GeneratorOptions', 'generate_body']
