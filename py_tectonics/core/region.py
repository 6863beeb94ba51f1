"""
Region extraction: closed, clipped, counter-clockwise cell polygons.

The edges bounding a region arrive unordered. They are chained on shared
vertices, walked in order while skipping edges that fall outside the world
rectangle, and stitched together with rectangle corners wherever the walk
jumps along the rectangle border.
"""

import math
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from .site_graph import (
    BOTTOM_SIDE,
    LEFT_SIDE,
    LR,
    RIGHT_SIDE,
    TOP_SIDE,
    Edge,
    GraphContractError,
    Point,
    Rect,
    SiteGraph,
    bounds_check,
    clip_points,
)

logger = structlog.get_logger()

EPSILON = 0.005


class RegionTopologyError(GraphContractError):
    """Raised when region edges cannot be chained into one boundary."""


def close_enough(p0: Point, p1: Point, epsilon: float = EPSILON) -> bool:
    return math.hypot(p0[0] - p1[0], p0[1] - p1[1]) < epsilon


def signed_double_area(points: Sequence[Point]) -> float:
    """Twice the shoelace area; positive for counter-clockwise polygons."""
    total = 0.0
    n = len(points)
    for i in range(n):
        x0, y0 = points[i]
        x1, y1 = points[(i + 1) % n]
        total += x0 * y1 - x1 * y0
    return total


def polygon_area(points: Sequence[Point]) -> float:
    return signed_double_area(points) * 0.5


def polygon_centroid(points: Sequence[Point]) -> Optional[Point]:
    """Centroid of a simple polygon, or the vertex mean when degenerate."""
    if not points:
        return None
    area = 0.0
    cx = 0.0
    cy = 0.0
    n = len(points)
    for i in range(n):
        x0, y0 = points[i]
        x1, y1 = points[(i + 1) % n]
        a = x0 * y1 - x1 * y0
        area += a
        cx += (x0 + x1) * a
        cy += (y0 + y1) * a
    if abs(area) < 1e-10:
        return (sum(p[0] for p in points) / n, sum(p[1] for p in points) / n)
    area *= 0.5
    return (cx / (6.0 * area), cy / (6.0 * area))


def reorder_edges(edges: Sequence[Edge]) -> Tuple[List[Edge], List[LR]]:
    """
    Chain edges end to end on shared vertex handles.

    Returns the ordered edges and, for each, the side whose vertex comes first
    in the walk. An absent (unbounded) vertex never matches anything, so rays
    can only sit at the ends of the chain.

    Raises:
        RegionTopologyError: if some edges cannot be attached to the chain.
    """
    candidates = [e for e in edges if e.left_vertex is not None or e.right_vertex is not None]
    if not candidates:
        return [], []

    first = candidates[0]
    ordered = [first]
    orientations = [LR.LEFT]
    first_point = first.left_vertex
    last_point = first.right_vertex
    remaining = candidates[1:]

    while remaining:
        unplaced = []
        for edge in remaining:
            left_point = edge.left_vertex
            right_point = edge.right_vertex
            if left_point is not None and left_point == last_point:
                last_point = right_point
                ordered.append(edge)
                orientations.append(LR.LEFT)
            elif right_point is not None and right_point == first_point:
                first_point = left_point
                ordered.insert(0, edge)
                orientations.insert(0, LR.LEFT)
            elif left_point is not None and left_point == first_point:
                first_point = right_point
                ordered.insert(0, edge)
                orientations.insert(0, LR.RIGHT)
            elif right_point is not None and right_point == last_point:
                last_point = left_point
                ordered.append(edge)
                orientations.append(LR.RIGHT)
            else:
                unplaced.append(edge)

        if len(unplaced) == len(remaining):
            raise RegionTopologyError(
                f"{len(unplaced)} of {len(candidates)} region edges do not connect "
                f"to the boundary chain (edges {[e.handle for e in unplaced]})"
            )
        remaining = unplaced

    return ordered, orientations


def _corner_points(right_point: Point, new_point: Point, bounds: Rect) -> List[Point]:
    """
    Rectangle corners needed to walk from right_point to new_point along the
    border. Opposite sides are joined along the shorter way round, which is
    wrong for a region covering more than half the rectangle.
    """
    right_check = bounds_check(right_point, bounds)
    new_check = bounds_check(new_point, bounds)
    corners: List[Point] = []

    if right_check & RIGHT_SIDE:
        px = bounds.right
        if new_check & BOTTOM_SIDE:
            corners.append((px, bounds.bottom))
        elif new_check & TOP_SIDE:
            corners.append((px, bounds.top))
        elif new_check & LEFT_SIDE:
            if right_point[1] - bounds.y + new_point[1] - bounds.y < bounds.height:
                py = bounds.bottom
            else:
                py = bounds.top
            corners.append((px, py))
            corners.append((bounds.left, py))
    elif right_check & LEFT_SIDE:
        px = bounds.left
        if new_check & BOTTOM_SIDE:
            corners.append((px, bounds.bottom))
        elif new_check & TOP_SIDE:
            corners.append((px, bounds.top))
        elif new_check & RIGHT_SIDE:
            if right_point[1] - bounds.y + new_point[1] - bounds.y < bounds.height:
                py = bounds.bottom
            else:
                py = bounds.top
            corners.append((px, py))
            corners.append((bounds.right, py))
    elif right_check & BOTTOM_SIDE:
        py = bounds.bottom
        if new_check & RIGHT_SIDE:
            corners.append((bounds.right, py))
        elif new_check & LEFT_SIDE:
            corners.append((bounds.left, py))
        elif new_check & TOP_SIDE:
            if right_point[0] - bounds.x + new_point[0] - bounds.x < bounds.width:
                px = bounds.left
            else:
                px = bounds.right
            corners.append((px, py))
            corners.append((px, bounds.top))
    elif right_check & TOP_SIDE:
        py = bounds.top
        if new_check & RIGHT_SIDE:
            corners.append((bounds.right, py))
        elif new_check & LEFT_SIDE:
            corners.append((bounds.left, py))
        elif new_check & BOTTOM_SIDE:
            if right_point[0] - bounds.x + new_point[0] - bounds.x < bounds.width:
                px = bounds.left
            else:
                px = bounds.right
            corners.append((px, py))
            corners.append((px, bounds.bottom))

    return corners


def connect_points(right_point: Point, new_point: Point, bounds: Rect,
                   epsilon: float = EPSILON) -> List[Point]:
    """Corners to insert between two consecutive polygon points."""
    if close_enough(right_point, new_point, epsilon):
        return []
    # Same border: a straight run along the rectangle side needs no corner
    if right_point[0] == new_point[0] or right_point[1] == new_point[1]:
        return []
    return _corner_points(right_point, new_point, bounds)


ClippedEnds = Dict[int, Optional[Dict[LR, Point]]]


def clipped_ends(edges: Sequence[Edge], bounds: Rect,
                 graph: Optional[SiteGraph] = None) -> ClippedEnds:
    """
    Clipped end points of each edge against ``bounds``, keyed by edge handle.

    Edges already carry their clip against the graph rectangle; any other
    rectangle is clipped afresh without touching the edges. Invisible edges
    map to None.
    """
    if graph is None or bounds == graph.bounds:
        return {e.handle: (e.clipped if e.visible else None) for e in edges}
    return {e.handle: clip_points(e, graph, bounds) for e in edges}


def clip_to_bounds(edges: Sequence[Edge], orientations: Sequence[LR], bounds: Rect,
                   epsilon: float = EPSILON,
                   ends: Optional[ClippedEnds] = None) -> List[Point]:
    """Walk ordered edges and build the clipped outline (not yet wound)."""
    if ends is None:
        ends = clipped_ends(edges, bounds)
    n = len(edges)
    i = 0
    while i < n and ends[edges[i].handle] is None:
        i += 1
    if i == n:
        return []

    first = ends[edges[i].handle]
    orientation = orientations[i]
    points = [first[orientation], first[orientation.other()]]

    for j in range(i + 1, n):
        clipped = ends[edges[j].handle]
        if clipped is None:
            continue
        new_orientation = orientations[j]
        right_point = points[-1]
        new_point = clipped[new_orientation]
        if not close_enough(right_point, new_point, epsilon):
            points.extend(connect_points(right_point, new_point, bounds, epsilon))
            points.append(new_point)
        new_right_point = clipped[new_orientation.other()]
        if not close_enough(points[0], new_right_point, epsilon):
            points.append(new_right_point)

    # Close the loop back to the first edge
    points.extend(connect_points(points[-1], points[0], bounds, epsilon))
    return points


def extract_region(edges: Sequence[Edge], bounds: Rect, epsilon: float = EPSILON,
                   graph: Optional[SiteGraph] = None) -> List[Point]:
    """
    Build the counter-clockwise clipped polygon bounded by ``edges``.

    Args:
        edges: Unordered edges bounding the region
        bounds: Clip rectangle
        epsilon: Distance under which two points are the same point
        graph: Graph owning the edges; needed to clip against a rectangle
            other than the one the edges were clipped to on insertion

    Returns:
        Polygon points, or an empty list when no edge is visible
    """
    ends = clipped_ends(edges, bounds, graph)
    if all(v is None for v in ends.values()):
        return []
    ordered, orientations = reorder_edges(edges)
    points = clip_to_bounds(ordered, orientations, bounds, epsilon, ends)
    if signed_double_area(points) < 0:
        points.reverse()
    return points


def site_region(graph: SiteGraph, site: int, bounds: Optional[Rect] = None,
                epsilon: float = EPSILON) -> List[Point]:
    """Clipped polygon of a single site's cell."""
    return extract_region(graph.incident_edges(site), bounds or graph.bounds, epsilon, graph)


class RegionCache:
    """Per-site polygon cache, dropped whenever the graph geometry changes."""

    def __init__(self, graph: SiteGraph, epsilon: float = EPSILON):
        self.graph = graph
        self.epsilon = epsilon
        self._regions: Dict[Tuple[int, Rect], List[Point]] = {}

    def region(self, site: int, bounds: Optional[Rect] = None) -> List[Point]:
        key = (site, bounds or self.graph.bounds)
        if key not in self._regions:
            self._regions[key] = site_region(self.graph, site, key[1], self.epsilon)
        return self._regions[key]

    def invalidate(self, graph: Optional[SiteGraph] = None) -> None:
        if graph is not None:
            self.graph = graph
        logger.debug("Region cache invalidated", cached=len(self._regions))
        self._regions.clear()

    def __len__(self) -> int:
        return len(self._regions)
