"""
Tectonic generation session.

The session is the one owner of a generation run's state: the site graph,
the PRNG, plates and boundaries, per-site sections, the selection and the
region cache. Consumers (renderers, editors) read results only through it.
"""

from typing import Iterator, List, Optional, Tuple

import numpy as np
import structlog

from ..config import Settings, settings as default_settings
from .alea_prng import AleaPRNG
from .boundaries import Boundary, BoundaryMap, calculate_stress, stress_summary
from .elevation import (
    ElevationOptions,
    PropagationMode,
    SectionMap,
    central_blob_seeds,
    propagate_elevation,
    random_blob_seeds,
    uplift_seeds,
)
from .plates import UNASSIGNED, PlateOptions, TectonicPlate, collect_plate_boundaries, generate_tectonic_plates
from .region import RegionCache
from .selection import Selection
from .site_graph import Edge, LR, Point, Rect, SiteGraph
from .voronoi_graph import GridConfig, generate_site_graph, rebuild_site_graph

logger = structlog.get_logger()


class TectonicSession:
    """Owns one generation run and answers consumer queries about it."""

    def __init__(self, settings: Optional[Settings] = None, seed: Optional[str] = None,
                 graph: Optional[SiteGraph] = None):
        """
        Args:
            settings: Generation settings, module defaults when omitted
            seed: PRNG seed, overriding ``settings.seed``
            graph: Ready-made site graph; generate_sections() builds one otherwise
        """
        self.settings = settings or default_settings
        self.prng = AleaPRNG(seed if seed is not None else self.settings.seed)
        self.plate_options = PlateOptions(
            oceanic_ratio=self.settings.oceanic_ratio,
            seafloor=self.settings.seafloor,
            sealevel=self.settings.sealevel,
        )
        self.elevation_options = ElevationOptions(
            cutoff=self.settings.elevation_cutoff,
            blob_decay=self.settings.blob_decay,
            stress_threshold=self.settings.stress_threshold,
        )

        self.graph: Optional[SiteGraph] = None
        self.sections: Optional[SectionMap] = None
        self.selection: Optional[Selection] = None
        self.regions: Optional[RegionCache] = None
        self.plates: List[TectonicPlate] = []
        self.plate_ids: Optional[np.ndarray] = None
        self.boundaries = BoundaryMap()

        if graph is not None:
            self._attach_graph(graph)

    # Generation passes

    def _attach_graph(self, graph: SiteGraph) -> None:
        self.graph = graph
        self.sections = SectionMap(len(graph), self.settings.seafloor)
        self.selection = Selection(graph, self.settings.region_epsilon)
        self.regions = RegionCache(graph, self.settings.region_epsilon)
        self.reset_plates()

    def _require_graph(self) -> SiteGraph:
        if self.graph is None:
            raise RuntimeError("No site graph; call generate_sections() first")
        return self.graph

    def _require_plates(self) -> np.ndarray:
        if self.plate_ids is None:
            raise RuntimeError("No plates; call generate_tectonic_plates() first")
        return self.plate_ids

    def generate_sections(self, count: Optional[int] = None) -> SiteGraph:
        """Create the underlying site graph with every site at seafloor."""
        config = GridConfig(
            width=self.settings.map_width,
            height=self.settings.map_height,
            cells_desired=self.settings.section_count if count is None else count,
        )
        graph = generate_site_graph(config, self.prng, self.settings.relaxation_iterations)
        self._attach_graph(graph)
        return graph

    def generate_tectonic_plates(self, plate_count: Optional[int] = None) -> List[TectonicPlate]:
        graph = self._require_graph()
        if plate_count is None:
            plate_count = self.settings.plate_count
        self.plates, self.plate_ids, self.boundaries = generate_tectonic_plates(
            graph, plate_count, self.prng, self.plate_options
        )
        return self.plates

    def calculate_stress(self) -> None:
        plate_ids = self._require_plates()
        calculate_stress(self.graph, self.boundaries, [p.motion for p in self.plates], plate_ids)
        logger.info("Plate boundary stress calculated", **stress_summary(self.boundaries))

    def create_uplift(self) -> int:
        """Raise terrain along plate boundaries and spread it inland."""
        plate_ids = self._require_plates()
        seeds = uplift_seeds(self.graph, self.boundaries, self.plates, plate_ids, self.elevation_options)
        visited = propagate_elevation(
            self.graph, self.sections, seeds,
            mode=PropagationMode.TECTONIC,
            prng=self.prng,
            density_of=self._density_of,
            options=self.elevation_options,
        )
        logger.info("Uplift created", seeds=len(seeds), visited=visited)
        return visited

    def generate_central_blob(self) -> int:
        graph = self._require_graph()
        seeds = central_blob_seeds(graph, self.elevation_options)
        return propagate_elevation(graph, self.sections, seeds, options=self.elevation_options)

    def generate_random_blobs(self, count: int = 1) -> int:
        graph = self._require_graph()
        seeds = random_blob_seeds(graph, count, self.prng, self.elevation_options)
        return propagate_elevation(graph, self.sections, seeds, options=self.elevation_options)

    def reset_elevation(self, elevation: Optional[float] = None) -> None:
        self._require_graph()
        self.sections.reset(self.settings.seafloor if elevation is None else elevation)

    def reset_plates(self) -> None:
        self.plates = []
        self.plate_ids = None
        self.boundaries = BoundaryMap()

    def refresh_sections(self) -> None:
        """Flag every section for geometry re-derivation."""
        self._require_graph()
        self.sections.mark_all_dirty()
        self.regions.invalidate(self.graph)

    def move_site(self, site: int, x: float, y: float) -> Point:
        """
        Move a site, clamped to the world rectangle, and re-derive the graph.

        Plate membership survives by site handle; boundaries are collected
        again from it and re-stressed.

        Returns:
            The position actually applied
        """
        graph = self._require_graph()
        position = graph.bounds.clamp((x, y))
        graph.sites[site].x, graph.sites[site].y = position

        self.graph = rebuild_site_graph(graph)
        self.selection.rebind(self.graph)
        if self.plate_ids is not None:
            self.boundaries = collect_plate_boundaries(self.graph, self.plate_ids)
            calculate_stress(self.graph, self.boundaries, [p.motion for p in self.plates], self.plate_ids)
        self.refresh_sections()
        return position

    def generate(self) -> "TectonicSession":
        """Run the full pipeline: sections, plates, stress, uplift."""
        if self.graph is None:
            self.generate_sections()
        self.generate_tectonic_plates()
        self.calculate_stress()
        self.reset_elevation()
        self.create_uplift()
        self.refresh_sections()
        return self

    def _density_of(self, site: int) -> float:
        plate_id = int(self.plate_ids[site])
        if plate_id == UNASSIGNED:
            return self.elevation_options.unassigned_density
        return self.plates[plate_id].density

    # Consumer interface

    def elevation(self, site: int) -> float:
        return float(self.sections.elevation[site])

    def plate_of(self, site: int) -> Optional[int]:
        if self.plate_ids is None or self.plate_ids[site] == UNASSIGNED:
            return None
        return int(self.plate_ids[site])

    def is_oceanic(self, plate_id: int) -> bool:
        if not 0 <= plate_id < len(self.plates):
            raise ValueError(f"Unknown plate id {plate_id}")
        return self.plates[plate_id].oceanic

    def region_polygon(self, site: int, bounds: Optional[Rect] = None) -> List[Point]:
        self._require_graph()
        return self.regions.region(site, bounds)

    def selection_polygon(self, bounds: Optional[Rect] = None) -> List[Point]:
        self._require_graph()
        return self.selection.region(bounds)

    def boundary_edges(self) -> Iterator[Tuple[Edge, Boundary]]:
        self._require_graph()
        return self.boundaries.items(self.graph)

    def sections_needing_update(self) -> List[int]:
        return self.sections.dirty_sites()

    def mark_updated(self, site: int) -> None:
        self.sections.mark_updated(site)

    def coastline_segments(self) -> List[Tuple[Point, Point]]:
        """
        Visible edges between land (at or above sea level) and water.

        Each segment is oriented so that the water site lies on its left.
        """
        graph = self._require_graph()
        sealevel = self.settings.sealevel
        elevation = self.sections.elevation
        segments = []
        for edge in graph.edges:
            if not edge.visible:
                continue
            left_land = elevation[edge.left_site] >= sealevel
            right_land = elevation[edge.right_site] >= sealevel
            if left_land == right_land:
                continue
            water = edge.right_site if left_land else edge.left_site
            a = edge.clipped_vertex(LR.LEFT)
            b = edge.clipped_vertex(LR.RIGHT)
            if _is_ccw(a, b, graph.site_coord(water)):
                segments.append((a, b))
            else:
                segments.append((b, a))
        return segments


def _is_ccw(a: Point, b: Point, c: Point) -> bool:
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0]) > 0
