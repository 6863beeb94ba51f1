"""
Core tectonic generation functionality.
"""

from .site_graph import LR, Edge, GraphContractError, Rect, Site, SiteGraph, Vertex
from .voronoi_graph import GridConfig, build_site_graph, generate_site_graph, find_closest_site
from .region import RegionCache, RegionTopologyError, extract_region, site_region
from .plates import PlateOptions, TectonicPlate, generate_tectonic_plates
from .boundaries import Boundary, BoundaryMap, calculate_stress
from .elevation import ElevationOptions, PropagationMode, SectionMap, propagate_elevation
from .selection import Selection
from .session import TectonicSession

__all__ = ['LR', 'Edge', 'GraphContractError', 'Rect', 'Site', 'SiteGraph', 'Vertex',
           'GridConfig', 'build_site_graph', 'generate_site_graph', 'find_closest_site',
           'RegionCache', 'RegionTopologyError', 'extract_region', 'site_region',
           'PlateOptions', 'TectonicPlate', 'generate_tectonic_plates',
           'Boundary', 'BoundaryMap', 'calculate_stress',
           'ElevationOptions', 'PropagationMode', 'SectionMap', 'propagate_elevation',
           'Selection', 'TectonicSession']
