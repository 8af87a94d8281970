"""Initial genome generation."""

import structlog

from ..utils.random import SeedLike, resolve_prng
from .graph_index import Graph, normalize_edge

logger = structlog.get_logger()


def random_genome(node_count: int, seed: SeedLike = None, extra_edges: int = 0) -> Graph:
    """
    Generate a random connected starting genome.

    Builds a random labelled tree on ids ``0..node_count-1`` (each new node
    attaches to a uniformly chosen earlier node), then adds up to
    ``extra_edges`` random chords to introduce cycles.

    Args:
        node_count: Number of nodes; below 2 gives an empty graph
        seed: Seed or AleaPRNG
        extra_edges: Number of additional non-tree edges to attempt

    Returns:
        Deduplicated connected graph
    """
    if node_count < 2:
        return Graph()

    prng = resolve_prng(seed)
    edges = []
    for node in range(1, node_count):
        edges.append(normalize_edge(prng.randrange(node), node))

    existing = set(edges)
    max_possible = node_count * (node_count - 1) // 2
    attempts = 0
    added = 0
    while added < extra_edges and len(existing) < max_possible and attempts < extra_edges * 10:
        attempts += 1
        a = prng.randrange(node_count)
        b = prng.randrange(node_count)
        if a == b:
            continue
        edge = normalize_edge(a, b)
        if edge in existing:
            continue
        existing.add(edge)
        edges.append(edge)
        added += 1

    logger.debug("Random genome", nodes=node_count, edges=len(edges), chords=added)
    return Graph.from_edges(edges)
