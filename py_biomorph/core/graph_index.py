"""
Genome graph data structure and adjacency index.

A genome is an undirected graph given as an edge list of non-negative
integer node ids. Ids need not be contiguous, so ``GraphIndex`` re-indexes
nodes into a contiguous ``0..n-1`` range for the algorithms and maps back to
the original ids on output.
"""

from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, List, Tuple

import numpy as np

Edge = Tuple[int, int]


def normalize_edge(a: int, b: int) -> Edge:
    """Canonical (low, high) form of an undirected edge."""
    return (a, b) if a <= b else (b, a)


def dedupe_edges(edges: Iterable[Edge]) -> List[Edge]:
    """
    Remove duplicate, reverse-duplicate and self-loop edges.

    First-occurrence order is preserved so deduplicating an already
    deduplicated list is a no-op.
    """
    seen = set()
    result = []
    for a, b in edges:
        a, b = int(a), int(b)
        if a == b:
            continue
        edge = normalize_edge(a, b)
        if edge in seen:
            continue
        seen.add(edge)
        result.append(edge)
    return result


@dataclass(frozen=True)
class Graph:
    """Immutable genome graph (deduplicated edge list)."""

    edges: Tuple[Edge, ...] = ()

    @classmethod
    def from_edges(cls, edges: Iterable[Edge]) -> "Graph":
        """Build a graph, deduplicating the edge list."""
        return cls(tuple(dedupe_edges(edges)))

    @property
    def edge_set(self) -> FrozenSet[Edge]:
        return frozenset(self.edges)

    @property
    def nodes(self) -> List[int]:
        """Node ids in order of first appearance."""
        seen: Dict[int, None] = {}
        for a, b in self.edges:
            seen.setdefault(a)
            seen.setdefault(b)
        return list(seen)

    @property
    def node_count(self) -> int:
        return len(self.nodes)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def max_id(self) -> int:
        """Largest node id, or -1 for an empty graph."""
        if not self.edges:
            return -1
        return max(max(a, b) for a, b in self.edges)

    def __len__(self) -> int:
        return len(self.edges)


@dataclass
class GraphIndex:
    """
    Contiguous adjacency index over a graph.

    ``node_ids[i]`` is the original id of local node ``i``; ``neighbors[i]``
    lists local indices of its neighbours sorted by ascending original id.
    """

    node_ids: np.ndarray
    neighbors: List[List[int]]
    edges: List[Tuple[int, int]]  # local index pairs
    index_of: Dict[int, int] = field(default_factory=dict)

    @classmethod
    def build(cls, graph) -> "GraphIndex":
        """
        Build the index from a ``Graph`` or a raw edge list.

        Node order follows first appearance in the deduplicated edge list,
        which fixes the match enumeration order of the rule engine.
        """
        raw = graph.edges if isinstance(graph, Graph) else graph
        edges = dedupe_edges(raw)

        index_of: Dict[int, int] = {}
        for a, b in edges:
            for node in (a, b):
                if node not in index_of:
                    index_of[node] = len(index_of)

        node_ids = np.fromiter(index_of.keys(), dtype=np.int64, count=len(index_of))
        neighbors: List[List[int]] = [[] for _ in range(len(index_of))]
        local_edges = []
        for a, b in edges:
            ia, ib = index_of[a], index_of[b]
            neighbors[ia].append(ib)
            neighbors[ib].append(ia)
            local_edges.append((ia, ib))

        for i in range(len(neighbors)):
            neighbors[i] = sorted(set(neighbors[i]), key=lambda j: node_ids[j])

        return cls(node_ids=node_ids, neighbors=neighbors, edges=local_edges, index_of=index_of)

    @property
    def node_count(self) -> int:
        return len(self.node_ids)

    @property
    def edge_count(self) -> int:
        return len(self.edges)

    @property
    def degrees(self) -> np.ndarray:
        """Degree of each local node."""
        return np.array([len(n) for n in self.neighbors], dtype=np.int64)

    @property
    def max_id(self) -> int:
        if self.node_count == 0:
            return -1
        return int(self.node_ids.max())

    def degree_of(self, node_id: int) -> int:
        return len(self.neighbors[self.index_of[node_id]])

    def neighbor_ids(self, node_id: int) -> List[int]:
        """Original ids of a node's neighbours, ascending."""
        return [int(self.node_ids[j]) for j in self.neighbors[self.index_of[node_id]]]
