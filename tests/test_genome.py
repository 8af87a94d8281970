"""Tests for random starting genomes."""

from py_biomorph.core.genome import random_genome
from py_biomorph.core.graph_index import Graph, GraphIndex
from py_biomorph.core.skeleton import bfs


class TestRandomGenome:
    """Test random genome generation."""

    def test_tree(self):
        """Test that the base genome is a spanning tree."""
        graph = random_genome(10, seed="tree")
        assert graph.edge_count == 9
        assert sorted(graph.nodes) == list(range(10))

    def test_connected(self):
        """Test that every node is reachable."""
        index = GraphIndex.build(random_genome(25, seed="conn", extra_edges=5))
        dist, _ = bfs(index, 0)
        assert all(d >= 0 for d in dist)

    def test_extra_edges(self):
        """Test that chords add edges without duplicates."""
        graph = random_genome(12, seed="chords", extra_edges=4)
        assert 11 < graph.edge_count <= 15
        assert len(graph.edge_set) == graph.edge_count

    def test_reproducible(self):
        """Test seeded reproducibility."""
        assert random_genome(15, seed=9, extra_edges=3) == random_genome(15, seed=9, extra_edges=3)

    def test_too_small(self):
        """Test that fewer than two nodes give an empty graph."""
        assert random_genome(1, seed=1) == Graph()
