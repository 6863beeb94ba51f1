"""
Elevation propagation over the site graph.

Elevation spreads outward from seed sites in breadth-first order. Every hop
multiplies the parent's elevation by a perturbation factor, either a fixed
decay ("blob" mode) or a random factor driven by the density of the plate
being entered ("tectonic" mode). A site's stored elevation is only ever
raised, so repeated passes pile up the highest value.
"""

from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np
import structlog

from .alea_prng import AleaPRNG
from .boundaries import BoundaryMap, is_convergent
from .plates import UNASSIGNED, TectonicPlate
from .site_graph import SiteGraph
from .voronoi_graph import find_closest_site

logger = structlog.get_logger()


class PropagationMode(Enum):
    """How a child elevation is derived from its parent."""

    BLOB = "blob"
    TECTONIC = "tectonic"


@dataclass
class ElevationOptions:
    """Elevation propagation parameters."""

    cutoff: float = 0.01  # Parents at or below this stop spreading
    blob_decay: float = 0.95
    stress_threshold: float = 0.1
    parallel_uplift_scale: float = 0.25
    blob_elevation: float = 1.0
    unassigned_density: float = 0.4  # Density used for sites without a plate


class SectionMap:
    """Per-site elevation and "needs geometry update" flags."""

    def __init__(self, n_sites: int, elevation: float = 0.0):
        self.elevation = np.full(n_sites, elevation, dtype=np.float64)
        self.needs_update = np.ones(n_sites, dtype=bool)

    def __len__(self) -> int:
        return len(self.elevation)

    def raise_to(self, site: int, value: float) -> bool:
        """Keep the higher of the stored and given elevation."""
        if self.elevation[site] < value:
            self.elevation[site] = value
            return True
        return False

    def reset(self, elevation: float) -> None:
        self.elevation.fill(elevation)

    def mark_all_dirty(self) -> None:
        self.needs_update.fill(True)

    def mark_updated(self, site: int) -> None:
        self.needs_update[site] = False

    def dirty_sites(self) -> List[int]:
        return [int(i) for i in np.flatnonzero(self.needs_update)]


def propagate_elevation(
    graph: SiteGraph,
    sections: SectionMap,
    seeds: Dict[int, float],
    mode: PropagationMode = PropagationMode.BLOB,
    prng: Optional[AleaPRNG] = None,
    density_of: Optional[Callable[[int], float]] = None,
    options: Optional[ElevationOptions] = None,
) -> int:
    """
    Spread elevation from seed sites across the graph.

    Args:
        graph: Site graph
        sections: Elevation state, raised in place
        seeds: Initial elevation per seed site
        mode: Fixed decay or density-driven random perturbation
        prng: Random source, required in TECTONIC mode
        density_of: Plate density of a site, required in TECTONIC mode
        options: Propagation parameters

    Returns:
        Number of sites visited
    """
    options = options or ElevationOptions()
    if mode is PropagationMode.TECTONIC and (prng is None or density_of is None):
        raise ValueError("Tectonic propagation needs a prng and a density lookup")

    queue = deque()
    queued = set()
    for site, elevation in seeds.items():
        queue.append((site, elevation))
        queued.add(site)

    visited = 0
    while queue:
        site, elevation = queue.popleft()
        visited += 1
        sections.raise_to(site, elevation)

        if elevation <= options.cutoff:
            continue

        for neighbor in graph.iter_neighbors(site):
            if neighbor in queued:
                continue
            if mode is PropagationMode.BLOB:
                perturbation = options.blob_decay
            else:
                density = density_of(neighbor)
                perturbation = prng.random() * density + 1.1 - density
            queue.append((neighbor, elevation * perturbation))
            queued.add(neighbor)

    logger.debug("Elevation propagated", seeds=len(seeds), mode=mode.value, visited=visited)
    return visited


def uplift_seeds(graph: SiteGraph, boundaries: BoundaryMap, plates: Sequence[TectonicPlate],
                 plate_ids: np.ndarray, options: Optional[ElevationOptions] = None) -> Dict[int, float]:
    """
    Seed elevations from boundary stress.

    Convergent, orthogonal-dominant boundaries lift towards the higher plate
    ceiling in proportion to orthogonal/|stress|; parallel-dominant or
    divergent ones lift a quarter as much by parallel/|stress|; weakly
    stressed boundaries get the mean of both plate baselines. A site touched
    by several boundaries keeps its highest seed.
    """
    options = options or ElevationOptions()
    seeds: Dict[int, float] = {}

    for edge, boundary in boundaries.items(graph):
        left_id = int(plate_ids[edge.left_site])
        right_id = int(plate_ids[edge.right_site])
        if left_id == UNASSIGNED or right_id == UNASSIGNED:
            continue
        left_plate = plates[left_id]
        right_plate = plates[right_id]

        magnitude = boundary.magnitude
        min_elevation = max(left_plate.elevation, right_plate.elevation)
        max_elevation = max(left_plate.max_elevation, right_plate.max_elevation)
        if is_convergent(boundary, options.stress_threshold):
            elevation = boundary.orthogonal / magnitude * (max_elevation - min_elevation) + min_elevation
        elif ((boundary.parallel > boundary.orthogonal or boundary.divergent)
              and magnitude > options.stress_threshold):
            elevation = (boundary.parallel / magnitude * options.parallel_uplift_scale
                         * (max_elevation - min_elevation) + min_elevation)
        else:
            elevation = (left_plate.elevation + right_plate.elevation) * 0.5

        for site in (edge.left_site, edge.right_site):
            if site not in seeds or elevation > seeds[site]:
                seeds[site] = elevation

    return seeds


def central_blob_seeds(graph: SiteGraph, options: Optional[ElevationOptions] = None) -> Dict[int, float]:
    """Single seed at the site nearest the center of the world rectangle."""
    options = options or ElevationOptions()
    bounds = graph.bounds
    center = find_closest_site(graph, bounds.x + bounds.width * 0.5, bounds.y + bounds.height * 0.5)
    return {center: options.blob_elevation}


def random_blob_seeds(graph: SiteGraph, count: int, prng: AleaPRNG,
                      options: Optional[ElevationOptions] = None) -> Dict[int, float]:
    """``count`` distinct random seed sites."""
    options = options or ElevationOptions()
    if count > len(graph):
        raise ValueError(f"Cannot pick {count} distinct sites from {len(graph)}")

    seeds: Dict[int, float] = {}
    while len(seeds) < count:
        site = prng.randint(len(graph))
        if site not in seeds:
            seeds[site] = options.blob_elevation
    return seeds
