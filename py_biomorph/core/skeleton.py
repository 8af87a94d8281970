"""
Spine extraction via approximate graph diameter.

Double BFS: from an arbitrary start find the farthest node ``a``, from ``a``
find the farthest node ``b``, and return the shortest path ``a -> b``. This
is exact on trees and a good approximation on sparse cyclic genomes. A
disconnected genome has no single body axis and is rejected as degenerate.
"""

from collections import deque
from typing import List, Tuple

import numpy as np
import structlog

from .graph_index import GraphIndex

logger = structlog.get_logger()


class DegenerateGraphError(ValueError):
    """Raised when a graph is too small to carry a body."""


def bfs(index: GraphIndex, start: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Breadth-first search over local indices.

    Returns:
        Tuple of (distances, parents); unreachable nodes have distance -1,
        the start and unreachable nodes have parent -1
    """
    dist = np.full(index.node_count, -1, dtype=np.int64)
    parent = np.full(index.node_count, -1, dtype=np.int64)
    dist[start] = 0
    queue = deque([start])
    while queue:
        current = queue.popleft()
        for neighbor in index.neighbors[current]:
            if dist[neighbor] == -1:
                dist[neighbor] = dist[current] + 1
                parent[neighbor] = current
                queue.append(neighbor)
    return dist, parent


def farthest_node(index: GraphIndex, start: int) -> Tuple[int, np.ndarray]:
    """Farthest reachable node from ``start`` (lowest local index on ties)."""
    dist, parent = bfs(index, start)
    return int(np.argmax(dist)), parent


def extract_spine(index: GraphIndex) -> List[int]:
    """
    Find the spine node path of a genome.

    Args:
        index: Graph index

    Returns:
        Original node ids along the spine, head first

    Raises:
        DegenerateGraphError: Fewer than 2 nodes, a disconnected graph or a
            path shorter than 2
    """
    if index.node_count < 2:
        raise DegenerateGraphError(f"graph has {index.node_count} node(s), need at least 2")

    dist, _ = bfs(index, 0)
    unreachable = int(np.count_nonzero(dist == -1))
    if unreachable:
        raise DegenerateGraphError(
            f"graph is disconnected, {unreachable} of {index.node_count} node(s) unreachable"
        )

    a = int(np.argmax(dist))
    b, parent = farthest_node(index, a)

    path = [b]
    while path[-1] != a:
        step = int(parent[path[-1]])
        if step < 0:
            break
        path.append(step)
    path.reverse()

    if len(path) < 2:
        raise DegenerateGraphError(f"spine path has {len(path)} node(s), need at least 2")

    spine = [int(index.node_ids[i]) for i in path]
    logger.debug("Spine extracted", length=len(spine), head=spine[0], tail=spine[-1])
    return spine
