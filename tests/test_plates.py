"""Tests for tectonic plate partitioning."""

import pytest
import numpy as np
from py_tectonics.core.alea_prng import AleaPRNG
from py_tectonics.core.plates import (
    UNASSIGNED, PlateOptions, collect_plate_boundaries, create_plate,
    flood_fill_plates, generate_tectonic_plates, pick_seed_sites
)
from py_tectonics.core.site_graph import GraphContractError, Rect, SiteGraph
from py_tectonics.core.voronoi_graph import GridConfig, generate_site_graph


@pytest.fixture(scope="module")
def graph():
    config = GridConfig(width=120, height=120, cells_desired=150)
    return generate_site_graph(config, AleaPRNG("plates"), relaxation_iterations=1)


@pytest.fixture
def triangle():
    """Three mutually adjacent sites A=0, B=1, C=2."""
    graph = SiteGraph(Rect(0, 0, 10, 10))
    for x, y in [(2, 2), (5, 8), (8, 2)]:
        graph.add_site(x, y)
    graph.add_edge(0, 1)  # AB
    graph.add_edge(1, 2)  # BC
    graph.add_edge(0, 2)  # AC
    return graph


class TestFloodFill:
    """Test simultaneous flood fill from plate seeds."""

    def test_three_site_scenario(self, triangle):
        plate_ids, boundaries = flood_fill_plates(triangle, [0, 2])

        assert list(plate_ids) == [0, 0, 1]
        assert set(boundaries) == {1, 2}  # BC and AC, not AB

    def test_every_site_assigned(self, graph):
        seeds = pick_seed_sites(graph, 8, AleaPRNG("seeds"))
        plate_ids, _ = flood_fill_plates(graph, seeds)

        assert np.all(plate_ids != UNASSIGNED)
        assert set(plate_ids.tolist()) == set(range(8))

    def test_boundaries_match_assignment(self, graph):
        seeds = pick_seed_sites(graph, 8, AleaPRNG("seeds"))
        plate_ids, boundaries = flood_fill_plates(graph, seeds)

        expected = collect_plate_boundaries(graph, plate_ids)
        assert set(boundaries) == set(expected)
        for handle in boundaries:
            edge = graph.edges[handle]
            assert plate_ids[edge.left_site] != plate_ids[edge.right_site]

    def test_seed_owns_itself(self, graph):
        seeds = pick_seed_sites(graph, 5, AleaPRNG("seeds"))
        plate_ids, _ = flood_fill_plates(graph, seeds)
        for plate_id, site in enumerate(seeds):
            assert plate_ids[site] == plate_id

    def test_disconnected_sites_stay_unassigned(self):
        graph = SiteGraph(Rect(0, 0, 10, 10))
        for x, y in [(1, 1), (2, 1), (8, 8), (9, 8)]:
            graph.add_site(x, y)
        graph.add_edge(0, 1)
        graph.add_edge(2, 3)

        plate_ids, boundaries = flood_fill_plates(graph, [0])
        assert list(plate_ids) == [0, 0, UNASSIGNED, UNASSIGNED]
        assert len(boundaries) == 0

    def test_duplicate_seed_rejected(self, triangle):
        with pytest.raises(GraphContractError):
            flood_fill_plates(triangle, [1, 1])

    def test_unknown_seed_rejected(self, triangle):
        with pytest.raises(GraphContractError):
            flood_fill_plates(triangle, [7])


class TestSeedPicking:
    """Test plate seed selection."""

    def test_distinct_seeds(self, graph):
        seeds = pick_seed_sites(graph, 30, AleaPRNG("seeds"))
        assert len(set(seeds)) == 30

    def test_every_site_can_be_seeded(self, triangle):
        assert sorted(pick_seed_sites(triangle, 3, AleaPRNG("seeds"))) == [0, 1, 2]

    def test_too_many_plates(self, triangle):
        with pytest.raises(GraphContractError):
            pick_seed_sites(triangle, 4, AleaPRNG("seeds"))

    def test_non_positive_count(self, triangle):
        with pytest.raises(ValueError):
            pick_seed_sites(triangle, 0, AleaPRNG("seeds"))


class TestPlateCreation:
    """Test plate type assignment."""

    def test_oceanic_ratio(self):
        prng = AleaPRNG("plates")
        plates = [create_plate(i, 10, prng, PlateOptions()) for i in range(10)]
        assert [p.oceanic for p in plates] == [True] * 7 + [False] * 3

    def test_oceanic_parameters(self):
        options = PlateOptions()
        plate = create_plate(0, 10, AleaPRNG("plates"), options)
        assert plate.density == 0.4
        assert plate.elevation == options.seafloor
        assert plate.max_elevation == pytest.approx(options.sealevel + 0.21)

    def test_continental_parameters(self):
        options = PlateOptions()
        plate = create_plate(9, 10, AleaPRNG("plates"), options)
        assert not plate.oceanic
        assert plate.density == 0.125
        assert plate.elevation == options.sealevel
        assert plate.max_elevation == 1.0

    def test_motion_is_unit_vector(self):
        prng = AleaPRNG("plates")
        for i in range(20):
            plate = create_plate(i, 20, prng, PlateOptions())
            assert np.hypot(*plate.motion) == pytest.approx(1.0)


class TestGenerateTectonicPlates:
    """Test the full plate generation pass."""

    def test_plates_partition_sites(self, graph):
        plates, plate_ids, boundaries = generate_tectonic_plates(graph, 6, AleaPRNG("plates"))

        assert len(plates) == 6
        assert sum(len(p.sites) for p in plates) == len(graph)
        for plate in plates:
            for site in plate.sites:
                assert plate_ids[site] == plate.id
        assert len(boundaries) > 0

    def test_reproducibility(self, graph):
        _, ids1, boundaries1 = generate_tectonic_plates(graph, 6, AleaPRNG("plates"))
        _, ids2, boundaries2 = generate_tectonic_plates(graph, 6, AleaPRNG("plates"))

        np.testing.assert_array_equal(ids1, ids2)
        assert list(boundaries1) == list(boundaries2)

    def test_single_plate_has_no_boundaries(self, graph):
        plates, plate_ids, boundaries = generate_tectonic_plates(graph, 1, AleaPRNG("plates"))
        assert np.all(plate_ids == 0)
        assert len(boundaries) == 0
