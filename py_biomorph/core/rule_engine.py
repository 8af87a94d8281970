"""
Graph rewriting engine for genome mutation.

The production rule is fixed. The left-hand side is an apex node ``x`` with
two distinct neighbours ``y < z``. The right-hand side removes edge
``(x, y)``, removes and re-adds ``(x, z)`` and adds a fresh node ``w``
connected to ``x``, ``y`` and ``z``. The net effect is +1 node and +2 edges
(three edges at the fresh node, one edge lost at the apex).

The engine is stateless. Fresh ids are derived from the max id of the input
graph on every call, never from a shared counter, and every application works
on a copy so the caller's graph is never touched.
"""

from dataclasses import dataclass
from typing import Iterable, List, Union

import structlog

from ..utils.random import SeedLike, resolve_prng
from .graph_index import Edge, Graph, GraphIndex, normalize_edge

logger = structlog.get_logger()

GraphLike = Union[Graph, Iterable[Edge]]


@dataclass(frozen=True)
class Match:
    """One occurrence of the rewrite pattern (apex x, neighbours y < z)."""

    x: int
    y: int
    z: int


def dedupe(graph: GraphLike) -> Graph:
    """Deduplicated copy of a graph or edge list."""
    return Graph.from_edges(graph.edges if isinstance(graph, Graph) else graph)


def find_matches(graph: GraphLike) -> List[Match]:
    """
    Enumerate every occurrence of the rewrite pattern.

    Apexes are visited in first-appearance order; for each apex with at least
    two neighbours every unordered pair ``(y, z)``, ``y < z``, is emitted in
    ascending order. No triple appears twice.
    """
    index = GraphIndex.build(dedupe(graph))
    matches = []
    for i, neighbors in enumerate(index.neighbors):
        if len(neighbors) < 2:
            continue
        x = int(index.node_ids[i])
        ids = [int(index.node_ids[j]) for j in neighbors]
        for a in range(len(ids)):
            for b in range(a + 1, len(ids)):
                matches.append(Match(x, ids[a], ids[b]))
    return matches


def apply_match(graph: GraphLike, match: Match, fresh_id: int) -> Graph:
    """
    Apply the production rule for one match on a copy of ``graph``.

    Args:
        graph: Parent graph (not modified)
        match: Pattern occurrence to rewrite
        fresh_id: Id for the new node; must exceed every existing id

    Returns:
        New graph with the rewrite applied
    """
    edges: List[Edge] = list(dedupe(graph).edges)
    x, y, z, w = match.x, match.y, match.z, fresh_id

    def remove(a: int, b: int) -> None:
        edge = normalize_edge(a, b)
        if edge in edges:
            edges.remove(edge)

    def add(a: int, b: int) -> None:
        edge = normalize_edge(a, b)
        if edge not in edges:
            edges.append(edge)

    remove(x, y)
    remove(x, z)
    # x-z comes back: w is inserted between x and both neighbours while x
    # keeps its link to z
    add(x, z)
    add(x, w)
    add(y, w)
    add(z, w)
    return Graph(tuple(edges))


def mutate(graph: GraphLike) -> List[Graph]:
    """
    Produce one descendant per pattern match.

    The i-th descendant uses fresh id ``max_id + 1 + i``. Returns an empty
    list when there is no match.
    """
    parent = dedupe(graph)
    matches = find_matches(parent)
    base = parent.max_id + 1
    children = [apply_match(parent, m, base + i) for i, m in enumerate(matches)]
    logger.debug("Batch mutation", edges=parent.edge_count, matches=len(matches))
    return children


def mutate_one(graph: GraphLike, seed: SeedLike = None) -> Graph:
    """
    Apply one uniformly chosen match.

    Returns the deduplicated input unchanged when nothing matches.

    Args:
        graph: Parent graph
        seed: Seed or AleaPRNG for the match choice
    """
    parent = dedupe(graph)
    matches = find_matches(parent)
    if not matches:
        logger.debug("No rewrite match", edges=parent.edge_count)
        return parent
    prng = resolve_prng(seed)
    match = matches[prng.randrange(len(matches))]
    logger.debug("Single mutation", x=match.x, y=match.y, z=match.z, fresh_id=parent.max_id + 1)
    return apply_match(parent, match, parent.max_id + 1)


def grow(graph: GraphLike, generations: int, seed: SeedLike = None) -> List[Graph]:
    """
    Apply ``mutate_one`` repeatedly.

    Returns the lineage, parent first, ``generations + 1`` graphs long. A
    generation without a match repeats its parent.
    """
    if generations < 0:
        raise ValueError("generations must be non-negative")
    prng = resolve_prng(seed)
    lineage = [dedupe(graph)]
    for _ in range(generations):
        lineage.append(mutate_one(lineage[-1], prng))
    logger.info(
        "Genome grown",
        generations=generations,
        nodes=lineage[-1].node_count,
        edges=lineage[-1].edge_count,
    )
    return lineage
