"""
Tectonic plate partitioning.

Plates are grown from random seed sites by one flood fill shared by all
plates: a single FIFO queue holds every plate's frontier, so plates grow
ring by ring in an interleaved fashion and nearer sites always win the first
claim. Wherever a growing plate meets a site already owned by another plate,
the shared edge becomes a plate boundary.
"""

from collections import deque
from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .boundaries import BoundaryMap
from .site_graph import GraphContractError, SiteGraph
from .voronoi_graph import find_closest_site, site_points

logger = structlog.get_logger()

UNASSIGNED = -1


@dataclass
class PlateOptions:
    """Plate generation parameters."""

    oceanic_ratio: float = 0.7  # Fraction of plates created oceanic
    seafloor: float = 0.365  # Average seafloor elevation
    sealevel: float = 0.55

    oceanic_density: float = 0.4
    continental_density: float = 0.125
    oceanic_max_above_sealevel: float = 0.21
    continental_max_elevation: float = 1.0


@dataclass
class TectonicPlate:
    """A rigid plate: member sites, motion and elevation bounds."""

    id: int
    motion: np.ndarray = field(default_factory=lambda: np.zeros(2))
    sites: Set[int] = field(default_factory=set)
    oceanic: bool = True
    density: float = 0.0
    elevation: float = 0.0  # Baseline elevation
    max_elevation: float = 0.0


def create_plate(plate_id: int, plate_count: int, prng: AleaPRNG,
                 options: PlateOptions) -> TectonicPlate:
    """Create a plate with a random unit motion and type-specific bounds."""
    plate = TectonicPlate(id=plate_id, motion=np.array(prng.unit_vector()))

    if plate_id / plate_count < options.oceanic_ratio:
        plate.oceanic = True
        plate.density = options.oceanic_density
        plate.elevation = options.seafloor
        plate.max_elevation = options.sealevel + options.oceanic_max_above_sealevel
    else:
        plate.oceanic = False
        plate.density = options.continental_density
        plate.elevation = options.sealevel
        plate.max_elevation = options.continental_max_elevation

    return plate


def pick_seed_sites(graph: SiteGraph, plate_count: int, prng: AleaPRNG) -> List[int]:
    """Pick distinct sites closest to random points, re-rolling collisions."""
    if plate_count <= 0:
        raise ValueError("plate_count must be positive")
    if plate_count > len(graph):
        raise GraphContractError(
            f"Cannot seed {plate_count} plates on a graph of {len(graph)} sites"
        )

    bounds = graph.bounds
    points = site_points(graph)

    def random_site() -> int:
        x = bounds.x + prng.random() * bounds.width
        y = bounds.y + prng.random() * bounds.height
        return find_closest_site(graph, x, y, points)

    seeds: List[int] = []
    taken: Set[int] = set()
    for _ in range(plate_count):
        site = random_site()
        while site in taken:
            site = random_site()
        taken.add(site)
        seeds.append(site)
    return seeds


def flood_fill_plates(graph: SiteGraph, seeds: List[int],
                      plate_ids: Optional[np.ndarray] = None) -> Tuple[np.ndarray, BoundaryMap]:
    """
    Assign sites to plates by simultaneous flood fill from the seeds.

    Args:
        graph: Site graph
        seeds: Seed site per plate; plate ``i`` grows from ``seeds[i]``
        plate_ids: Optional pre-filled assignment; claimed sites are kept

    Returns:
        Tuple of (plate id per site, boundary edges)
    """
    if plate_ids is None:
        plate_ids = np.full(len(graph), UNASSIGNED, dtype=np.int32)
    boundaries = BoundaryMap()
    queue = deque()

    for plate_id, site in enumerate(seeds):
        if not 0 <= site < len(graph):
            raise GraphContractError(f"Seed site {site} is not in the graph")
        if plate_ids[site] != UNASSIGNED:
            raise GraphContractError(f"Seed site {site} is already claimed")
        plate_ids[site] = plate_id
        queue.append(site)

    while queue:
        site = queue.popleft()
        plate_id = plate_ids[site]
        for neighbor, edge in graph.neighbor_edges(site).items():
            if plate_ids[neighbor] == UNASSIGNED:
                plate_ids[neighbor] = plate_id
                queue.append(neighbor)
            elif plate_ids[neighbor] != plate_id:
                boundaries.add(edge)

    return plate_ids, boundaries


def collect_plate_boundaries(graph: SiteGraph, plate_ids: np.ndarray) -> BoundaryMap:
    """Boundary edges of an existing assignment, in edge order."""
    boundaries = BoundaryMap()
    for edge in graph.edges:
        left = plate_ids[edge.left_site]
        right = plate_ids[edge.right_site]
        if left != UNASSIGNED and right != UNASSIGNED and left != right:
            boundaries.add(edge)
    return boundaries


def generate_tectonic_plates(graph: SiteGraph, plate_count: int, prng: AleaPRNG,
                             options: Optional[PlateOptions] = None
                             ) -> Tuple[List[TectonicPlate], np.ndarray, BoundaryMap]:
    """
    Partition the graph into ``plate_count`` plates.

    Args:
        graph: Site graph, assumed connected
        plate_count: Number of plates
        prng: Random source for seeds, motions
        options: Plate parameters

    Returns:
        Tuple of (plates, plate id per site, boundary edges)
    """
    options = options or PlateOptions()
    logger.info("Generating tectonic plates", plate_count=plate_count, sites=len(graph))

    seeds = pick_seed_sites(graph, plate_count, prng)
    plates = [create_plate(i, plate_count, prng, options) for i in range(plate_count)]
    plate_ids, boundaries = flood_fill_plates(graph, seeds)

    for site, plate_id in enumerate(plate_ids):
        if plate_id != UNASSIGNED:
            plates[plate_id].sites.add(site)

    unassigned = int(np.sum(plate_ids == UNASSIGNED))
    if unassigned:
        logger.warning("Sites unreachable from any plate seed", unassigned=unassigned)

    logger.info("Tectonic plates generated",
                oceanic=sum(1 for p in plates if p.oceanic),
                boundaries=len(boundaries))
    return plates, plate_ids, boundaries
