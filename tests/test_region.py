"""Tests for region polygon extraction."""

import pytest

from py_tectonics.core.region import (
    RegionCache,
    RegionTopologyError,
    connect_points,
    extract_region,
    polygon_area,
    polygon_centroid,
    reorder_edges,
    signed_double_area,
    site_region,
)
from py_tectonics.core.site_graph import Rect, SiteGraph


BOUNDS = Rect(0, 0, 10, 10)


class TestCornerInsertion:
    """Test corner insertion between points on the rectangle border."""

    def test_adjacent_sides_single_corner(self):
        assert connect_points((10, 3), (2, 0), BOUNDS) == [(10, 0)]

    def test_adjacent_sides_reverse(self):
        assert connect_points((2, 0), (10, 3), BOUNDS) == [(10, 0)]

    def test_left_to_top(self):
        assert connect_points((0, 7), (4, 10), BOUNDS) == [(0, 10)]

    def test_opposite_sides_near_bottom(self):
        assert connect_points((10, 3), (0, 4), BOUNDS) == [(10, 0), (0, 0)]

    def test_opposite_sides_near_top(self):
        assert connect_points((10, 8), (0, 7), BOUNDS) == [(10, 10), (0, 10)]

    def test_opposite_sides_vertical(self):
        assert connect_points((8, 0), (9, 10), BOUNDS) == [(10, 0), (10, 10)]

    def test_same_side_needs_no_corner(self):
        assert connect_points((10, 3), (10, 7), BOUNDS) == []

    def test_coincident_points(self):
        assert connect_points((10, 3), (10.001, 3), BOUNDS) == []

    def test_interior_point_needs_no_corner(self):
        assert connect_points((5, 5), (2, 0), BOUNDS) == []


class TestShoelace:
    """Test polygon area helpers."""

    def test_ccw_square_positive(self):
        square = [(0, 0), (1, 0), (1, 1), (0, 1)]
        assert signed_double_area(square) == 2
        assert polygon_area(square) == 1

    def test_cw_square_negative(self):
        assert polygon_area([(0, 0), (0, 1), (1, 1), (1, 0)]) == -1

    def test_centroid(self):
        assert polygon_centroid([(0, 0), (2, 0), (2, 2), (0, 2)]) == pytest.approx((1, 1))
        assert polygon_centroid([]) is None


class TestReorder:
    """Test chaining of unordered edges."""

    def test_center_cell_forms_loop(self, grid_3x3):
        edges, orientations = reorder_edges(grid_3x3.incident_edges(4))
        assert len(edges) == 4
        assert len(orientations) == 4
        # Consecutive edges share a vertex
        for i in range(len(edges) - 1):
            tail = edges[i].vertex(orientations[i].other())
            head = edges[i + 1].vertex(orientations[i + 1])
            assert tail == head

    def test_disconnected_edges_raise(self):
        graph = SiteGraph(BOUNDS)
        for x, y in [(1, 1), (2, 1), (8, 8), (9, 8)]:
            graph.add_site(x, y)
        vertices = [graph.add_vertex(x, y) for x, y in [(1.5, 0), (1.5, 2), (8.5, 7), (8.5, 9)]]
        a = graph.edges[graph.add_edge(0, 1, vertices[0], vertices[1])]
        b = graph.edges[graph.add_edge(2, 3, vertices[2], vertices[3])]

        with pytest.raises(RegionTopologyError):
            reorder_edges([a, b])

    def test_topology_error_is_contract_error(self):
        assert issubclass(RegionTopologyError, ValueError)

    def test_edges_without_vertices_ignored(self):
        graph = SiteGraph(BOUNDS)
        graph.add_site(1, 1)
        graph.add_site(2, 2)
        edge = graph.edges[graph.add_edge(0, 1)]
        assert reorder_edges([edge]) == ([], [])


class TestExtractRegion:
    """Test full region extraction on hand-built cells."""

    def test_interior_cell(self, grid_3x3):
        polygon = site_region(grid_3x3, 4)
        assert sorted(polygon) == [(1, 1), (1, 2), (2, 1), (2, 2)]
        assert polygon_area(polygon) == pytest.approx(1.0)

    def test_every_cell_counter_clockwise(self, grid_3x3):
        for site in range(len(grid_3x3)):
            polygon = site_region(grid_3x3, site)
            assert signed_double_area(polygon) > 0, f"site {site}"

    def test_corner_cell_gets_world_corner(self, grid_3x3):
        assert (0, 0) in site_region(grid_3x3, 0)
        assert (3, 0) in site_region(grid_3x3, 2)
        assert (0, 3) in site_region(grid_3x3, 6)
        assert (3, 3) in site_region(grid_3x3, 8)

    def test_areas_cover_world(self, make_grid):
        graph = make_grid(4, 3, 2.5)
        total = sum(polygon_area(site_region(graph, s)) for s in range(len(graph)))
        assert total == pytest.approx(graph.bounds.width * graph.bounds.height)

    def test_no_duplicate_closing_point(self, grid_3x3):
        for site in range(len(grid_3x3)):
            polygon = site_region(grid_3x3, site)
            assert len(set(polygon)) == len(polygon)

    def test_no_visible_edges(self):
        graph = SiteGraph(BOUNDS)
        graph.add_site(1, 1)
        graph.add_site(2, 2)
        a = graph.add_vertex(20, 20)
        b = graph.add_vertex(30, 20)
        edge = graph.edges[graph.add_edge(0, 1, a, b)]
        assert extract_region([edge], BOUNDS) == []

    def test_ray_cell_clipped_to_corner(self):
        # Cell in the lower right quadrant bounded by two rays from (6, 4)
        graph = SiteGraph(BOUNDS)
        for x, y in [(8, 2), (8, 8), (2, 2)]:
            graph.add_site(x, y)
        center = graph.add_vertex(6, 4)
        graph.add_edge(0, 1, center, None, direction=(1.0, 0.0))
        graph.add_edge(0, 2, None, center, direction=(0.0, -1.0))

        polygon = site_region(graph, 0)
        assert sorted(polygon) == [(6, 0), (6, 4), (10, 0), (10, 4)]
        assert polygon_area(polygon) == pytest.approx(16.0)

    def test_invisible_edge_skipped(self, make_grid):
        graph = make_grid(3, 3)
        # Shrink the world so the rightmost column of edges falls outside
        graph.reclip(Rect(0, 0, 1.5, 3))
        polygon = site_region(graph, 1)
        assert polygon_area(polygon) == pytest.approx(0.5)

    def test_clipped_to_requested_bounds(self, grid_3x3):
        clip = Rect(1.5, 1.5, 1.5, 1.5)
        polygon = site_region(grid_3x3, 4, clip)
        assert sorted(polygon) == [(1.5, 1.5), (1.5, 2), (2, 1.5), (2, 2)]
        assert polygon_area(polygon) == pytest.approx(0.25)
        # The graph's own clip is untouched
        assert polygon_area(site_region(grid_3x3, 4)) == pytest.approx(1.0)


class TestRegionCache:
    """Test memoized region lookups."""

    def test_cached_until_invalidated(self, grid_3x3):
        cache = RegionCache(grid_3x3)
        first = cache.region(4)
        assert cache.region(4) is first
        assert len(cache) == 1

        cache.invalidate()
        assert len(cache) == 0
        assert cache.region(4) == first

    def test_keyed_by_bounds(self, grid_3x3):
        cache = RegionCache(grid_3x3)
        cache.region(4)
        clip = Rect(0, 0, 1.5, 3)
        polygon = cache.region(4, clip)
        assert len(cache) == 2
        assert sorted(polygon) == [(1, 1), (1, 2), (1.5, 1), (1.5, 2)]
        assert all(clip.contains(p) for p in polygon)
        assert cache.region(4) != polygon
