"""Voronoi site graph provider backed by scipy.spatial.Voronoi."""

import numpy as np
from scipy.spatial import Voronoi
from typing import NamedTuple, Optional
import structlog

from .alea_prng import AleaPRNG
from .region import site_region, polygon_centroid
from .site_graph import GraphContractError, Rect, SiteGraph

logger = structlog.get_logger()


class GridConfig(NamedTuple):
    """Configuration for site graph generation."""
    width: float
    height: float
    cells_desired: int


def get_random_points(n: int, width: int, height: int, prng: AleaPRNG) -> np.ndarray:
    """
    Generate ``n`` distinct integer-coordinate points.

    Coordinates are drawn from [0, width) x [0, height); a point that was
    already drawn is re-rolled.

    Returns:
        Array of [x, y] point coordinates
    """
    if n > width * height:
        raise ValueError(f"Cannot draw {n} distinct points from a {width}x{height} area")

    seen = set()
    points = []
    for _ in range(n):
        point = (prng.randint(width), prng.randint(height))
        while point in seen:
            point = (prng.randint(width), prng.randint(height))
        seen.add(point)
        points.append(point)

    return np.array(points, dtype=np.float64).reshape(-1, 2)


def build_site_graph(points: np.ndarray, bounds: Rect) -> SiteGraph:
    """
    Build a clipped SiteGraph from a point set.

    Each Voronoi ridge becomes one edge between the two points it separates.
    Ridges running to infinity keep a ``None`` vertex and an outward
    direction so that clipping can extend them to the bounds.

    Args:
        points: Array of [x, y] site coordinates
        bounds: World rectangle the edges are clipped to

    Returns:
        Graph whose site handles are the row indices of ``points``
    """
    points = np.asarray(points, dtype=np.float64)
    if len(points) < 3:
        raise GraphContractError("At least 3 sites are needed to build a Voronoi graph")

    vor = Voronoi(points)
    logger.debug("Voronoi diagram calculated",
                 vertices=len(vor.vertices), ridges=len(vor.ridge_points))

    graph = SiteGraph(bounds)
    for x, y in points:
        graph.add_site(x, y)
    for x, y in vor.vertices:
        graph.add_vertex(x, y)

    center = points.mean(axis=0)
    for (p1, p2), (v1, v2) in zip(vor.ridge_points, vor.ridge_vertices):
        left_vertex = int(v1) if v1 >= 0 else None
        right_vertex = int(v2) if v2 >= 0 else None

        direction = None
        if left_vertex is None or right_vertex is None:
            # Outward normal of the ridge, as in scipy's voronoi_plot_2d
            tangent = points[p2] - points[p1]
            tangent /= np.linalg.norm(tangent)
            normal = np.array([-tangent[1], tangent[0]])
            midpoint = points[[p1, p2]].mean(axis=0)
            sign = np.sign(np.dot(midpoint - center, normal)) or 1.0
            direction = (float(sign * normal[0]), float(sign * normal[1]))

        graph.add_edge(int(p1), int(p2), left_vertex, right_vertex, direction)

    logger.info("Site graph built", sites=len(graph.sites), edges=len(graph.edges),
                visible_edges=sum(1 for e in graph.edges if e.visible))
    return graph


def relax_points(points: np.ndarray, bounds: Rect, n_iterations: int = 2) -> np.ndarray:
    """Apply Lloyd's relaxation to improve point distribution.

    Moves each point to the centroid of its clipped Voronoi cell.

    Args:
        points: Site coordinates to relax
        bounds: World rectangle
        n_iterations: Number of relaxation iterations

    Returns:
        Relaxed point coordinates
    """
    logger.info("Starting Lloyd's relaxation", iterations=n_iterations)

    points = np.array(points, dtype=np.float64)

    for iteration in range(n_iterations):
        graph = build_site_graph(points, bounds)
        for i in range(len(points)):
            centroid = polygon_centroid(site_region(graph, i, bounds))
            if centroid is None:
                continue
            points[i] = bounds.clamp(centroid)

        logger.debug("Relaxation iteration complete", iteration=iteration + 1)

    return points


def generate_site_graph(config: GridConfig, prng: AleaPRNG,
                        relaxation_iterations: int = 2) -> SiteGraph:
    """
    Generate a site graph of ``config.cells_desired`` random sites.

    Args:
        config: World size and number of sites
        prng: Random source
        relaxation_iterations: Lloyd iterations applied before the final build

    Returns:
        Clipped site graph covering [0, width] x [0, height]
    """
    logger.info("Generating site graph",
                width=config.width, height=config.height,
                cells_desired=config.cells_desired, seed=prng.seed)

    bounds = Rect(0.0, 0.0, float(config.width), float(config.height))
    points = get_random_points(config.cells_desired, int(config.width), int(config.height), prng)
    if relaxation_iterations > 0:
        points = relax_points(points, bounds, relaxation_iterations)

    return build_site_graph(points, bounds)


def rebuild_site_graph(graph: SiteGraph, bounds: Optional[Rect] = None) -> SiteGraph:
    """Re-derive edges from the current site positions, keeping site handles."""
    points = site_points(graph)
    return build_site_graph(points, bounds or graph.bounds)


def site_points(graph: SiteGraph) -> np.ndarray:
    return np.array([site.coord for site in graph.sites], dtype=np.float64).reshape(-1, 2)


def find_closest_site(graph: SiteGraph, x: float, y: float,
                      points: Optional[np.ndarray] = None) -> int:
    """
    Find the site nearest to the given coordinates.

    Args:
        graph: Site graph
        x, y: Coordinates to look up
        points: Optional cached site_points(graph) for repeated lookups

    Returns:
        Handle of the closest site
    """
    if not graph.sites:
        raise GraphContractError("Graph has no sites")
    if points is None:
        points = site_points(graph)
    dist_sq = (points[:, 0] - x) ** 2 + (points[:, 1] - y) ** 2
    return int(np.argmin(dist_sq))

