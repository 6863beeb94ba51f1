"""Dynamic multi-site selection and the polygon of its outer boundary."""

from typing import Dict, List, Optional, Set

import structlog

from .region import EPSILON, extract_region
from .site_graph import Edge, Point, Rect, SiteGraph

logger = structlog.get_logger()


class Selection:
    """
    A mutable set of selected sites.

    ``boundary_sites`` always equals the neighbors of the selected sites
    minus the selected sites themselves; it is maintained incrementally on
    every add/remove. The outer polygon is built on demand and cached until
    the next change.
    """

    def __init__(self, graph: SiteGraph, epsilon: float = EPSILON):
        self.graph = graph
        self.epsilon = epsilon
        self.selected_sites: Set[int] = set()
        self.boundary_sites: Set[int] = set()
        self._regions: Dict[Rect, List[Point]] = {}

    def __len__(self) -> int:
        return len(self.selected_sites)

    def __contains__(self, site: int) -> bool:
        return site in self.selected_sites

    def add(self, site: int) -> None:
        if site in self.selected_sites:
            return
        self.selected_sites.add(site)
        self.boundary_sites.discard(site)
        for neighbor in self.graph.neighbors(site):
            if neighbor not in self.selected_sites:
                self.boundary_sites.add(neighbor)
        self._regions.clear()

    def remove(self, site: int) -> None:
        if site not in self.selected_sites:
            return
        self.selected_sites.remove(site)

        # The removed site and its former neighbors stay on the boundary only
        # while they still touch a selected site
        for candidate in self.graph.neighbors(site) | {site}:
            if candidate in self.selected_sites:
                continue
            if self.graph.neighbors(candidate) & self.selected_sites:
                self.boundary_sites.add(candidate)
            else:
                self.boundary_sites.discard(candidate)
        self._regions.clear()

    def toggle(self, site: int) -> bool:
        """
        Click semantics: deselect a selected site; otherwise extend the
        selection when the site touches it, or start a new selection.

        Returns:
            True if the site is selected afterwards
        """
        if site in self.selected_sites:
            self.remove(site)
            return False
        if site not in self.boundary_sites:
            self.clear()
        self.add(site)
        logger.debug("Selection changed", selected=len(self.selected_sites))
        return True

    def clear(self) -> None:
        self.selected_sites.clear()
        self.boundary_sites.clear()
        self._regions.clear()

    def rebind(self, graph: SiteGraph) -> None:
        """Follow a re-derived graph; membership survives by site handle."""
        self.graph = graph
        selected = sorted(self.selected_sites)
        self.clear()
        for site in selected:
            self.add(site)

    def outer_edges(self) -> List[Edge]:
        """Edges between a selected site and an unselected one."""
        edges = []
        for site in sorted(self.selected_sites):
            for neighbor, edge in self.graph.neighbor_edges(site).items():
                if neighbor not in self.selected_sites:
                    edges.append(edge)
        return edges

    def region(self, bounds: Optional[Rect] = None) -> List[Point]:
        """
        Counter-clockwise polygon around the whole selection.

        Raises:
            RegionTopologyError: if the outer edges do not form one chain
                (selections with holes, or touching the world border twice)
        """
        bounds = bounds or self.graph.bounds
        if not self.selected_sites:
            return []
        if bounds not in self._regions:
            self._regions[bounds] = extract_region(self.outer_edges(), bounds, self.epsilon, self.graph)
        return self._regions[bounds]
