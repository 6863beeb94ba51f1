"""
Site adjacency graph consumed by the tectonics core.

Sites, vertices and edges live in one arena and reference each other only
through integer handles. The graph is filled by a geometry provider (see
voronoi_graph.py) or by hand in tests; the core only reads it through
neighbors(), neighbor_edges() and incident_edges().
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, NamedTuple, Optional, Set, Tuple

import structlog

logger = structlog.get_logger()

Point = Tuple[float, float]

# Bits returned by bounds_check()
LEFT_SIDE = 1
RIGHT_SIDE = 2
BOTTOM_SIDE = 4
TOP_SIDE = 8

_SNAP_TOLERANCE = 1e-9


class GraphContractError(ValueError):
    """Raised when the adjacency input breaks the provider contract."""


class LR(Enum):
    """Side of an edge."""

    LEFT = 0
    RIGHT = 1

    def other(self) -> "LR":
        return LR.RIGHT if self is LR.LEFT else LR.LEFT


class Rect(NamedTuple):
    """Axis-aligned clip rectangle; y grows upwards, so bottom is y."""

    x: float
    y: float
    width: float
    height: float

    @property
    def left(self) -> float:
        return self.x

    @property
    def right(self) -> float:
        return self.x + self.width

    @property
    def bottom(self) -> float:
        return self.y

    @property
    def top(self) -> float:
        return self.y + self.height

    def contains(self, point: Point) -> bool:
        return self.left <= point[0] <= self.right and self.bottom <= point[1] <= self.top

    def clamp(self, point: Point) -> Point:
        return (
            min(max(point[0], self.left), self.right),
            min(max(point[1], self.bottom), self.top),
        )


def bounds_check(point: Point, bounds: Rect) -> int:
    """Return the bitmask of rectangle sides the point lies on."""
    value = 0
    if abs(point[0] - bounds.left) <= _SNAP_TOLERANCE:
        value |= LEFT_SIDE
    if abs(point[0] - bounds.right) <= _SNAP_TOLERANCE:
        value |= RIGHT_SIDE
    if abs(point[1] - bounds.bottom) <= _SNAP_TOLERANCE:
        value |= BOTTOM_SIDE
    if abs(point[1] - bounds.top) <= _SNAP_TOLERANCE:
        value |= TOP_SIDE
    return value


@dataclass
class Site:
    """A generating point of one cell. Position may be edited."""

    handle: int
    x: float
    y: float

    @property
    def coord(self) -> Point:
        return (self.x, self.y)


@dataclass(frozen=True)
class Vertex:
    """Endpoint shared by edges."""

    handle: int
    x: float
    y: float

    @property
    def coord(self) -> Point:
        return (self.x, self.y)


@dataclass
class Edge:
    """Boundary segment between the cells of two sites.

    A missing vertex means that end is unbounded; ``direction`` then points
    from the known vertex towards infinity. ``clipped`` holds the end points
    after clipping to the world rectangle, indexed by side.
    """

    handle: int
    left_site: int
    right_site: int
    left_vertex: Optional[int] = None
    right_vertex: Optional[int] = None
    direction: Optional[Point] = None
    visible: bool = False
    clipped: Dict[LR, Point] = field(default_factory=dict)

    def vertex(self, side: LR) -> Optional[int]:
        return self.left_vertex if side is LR.LEFT else self.right_vertex

    def site(self, side: LR) -> int:
        return self.left_site if side is LR.LEFT else self.right_site

    def other_site(self, site: int) -> int:
        return self.right_site if site == self.left_site else self.left_site

    def clipped_vertex(self, side: LR) -> Point:
        return self.clipped[side]

    @property
    def bounded(self) -> bool:
        return self.left_vertex is not None and self.right_vertex is not None


class SiteGraph:
    """Arena of sites, vertices and edges with adjacency lookups."""

    def __init__(self, bounds: Rect):
        self.bounds = bounds
        self.sites: List[Site] = []
        self.vertices: List[Vertex] = []
        self.edges: List[Edge] = []
        self._neighbor_edges: List[Dict[int, int]] = []
        self._incident: List[List[int]] = []

    def __len__(self) -> int:
        return len(self.sites)

    def add_site(self, x: float, y: float) -> int:
        handle = len(self.sites)
        self.sites.append(Site(handle, float(x), float(y)))
        self._neighbor_edges.append({})
        self._incident.append([])
        return handle

    def add_vertex(self, x: float, y: float) -> int:
        handle = len(self.vertices)
        self.vertices.append(Vertex(handle, float(x), float(y)))
        return handle

    def add_edge(
        self,
        left_site: int,
        right_site: int,
        left_vertex: Optional[int] = None,
        right_vertex: Optional[int] = None,
        direction: Optional[Point] = None,
    ) -> int:
        """Register an edge between two sites and clip it to the bounds."""
        for site in (left_site, right_site):
            if not 0 <= site < len(self.sites):
                raise GraphContractError(f"Unknown site handle {site}")
        if left_site == right_site:
            raise GraphContractError(f"Edge cannot join site {left_site} to itself")
        for vertex in (left_vertex, right_vertex):
            if vertex is not None and not 0 <= vertex < len(self.vertices):
                raise GraphContractError(f"Unknown vertex handle {vertex}")

        handle = len(self.edges)
        edge = Edge(handle, left_site, right_site, left_vertex, right_vertex, direction)
        self.edges.append(edge)
        self._neighbor_edges[left_site].setdefault(right_site, handle)
        self._neighbor_edges[right_site].setdefault(left_site, handle)
        self._incident[left_site].append(handle)
        self._incident[right_site].append(handle)
        clip_edge(edge, self, self.bounds)
        return handle

    # Adjacency interface

    def neighbors(self, site: int) -> Set[int]:
        return set(self._neighbor_edges[site])

    def neighbor_edges(self, site: int) -> Dict[int, Edge]:
        return {n: self.edges[e] for n, e in self._neighbor_edges[site].items()}

    def incident_edges(self, site: int) -> List[Edge]:
        return [self.edges[e] for e in self._incident[site]]

    def iter_neighbors(self, site: int) -> Iterator[int]:
        """Neighbors in edge registration order."""
        return iter(self._neighbor_edges[site])

    def site_coord(self, site: int) -> Point:
        return self.sites[site].coord

    def vertex_coord(self, vertex: int) -> Point:
        return self.vertices[vertex].coord

    def reclip(self, bounds: Optional[Rect] = None) -> None:
        """Clip every edge again, e.g. after the world rectangle changed."""
        if bounds is not None:
            self.bounds = bounds
        for edge in self.edges:
            clip_edge(edge, self, self.bounds)
        logger.debug("Edges reclipped", edges=len(self.edges),
                     visible=sum(1 for e in self.edges if e.visible))


def clip_edge(edge: Edge, graph: SiteGraph, bounds: Rect) -> None:
    """Clip an edge to the world rectangle and store the result on it."""
    clipped = clip_points(edge, graph, bounds)
    edge.clipped = clipped or {}
    edge.visible = clipped is not None


def clip_points(edge: Edge, graph: SiteGraph, bounds: Rect) -> Optional[Dict[LR, Point]]:
    """Clip an edge (segment or ray) to a rectangle, Liang-Barsky style.

    The edge itself is left untouched. Points that land on a rectangle side
    are snapped onto it exactly so that bounds_check() can identify the side.

    Returns:
        Clipped end point per side, or None when nothing of the edge is
        inside the rectangle
    """

    if edge.bounded:
        origin = graph.vertex_coord(edge.left_vertex)
        end = graph.vertex_coord(edge.right_vertex)
        dx, dy = end[0] - origin[0], end[1] - origin[1]
        t_min, t_max = 0.0, 1.0
        origin_side = LR.LEFT
    elif edge.direction is not None and (edge.left_vertex is not None or edge.right_vertex is not None):
        origin_side = LR.LEFT if edge.left_vertex is not None else LR.RIGHT
        origin = graph.vertex_coord(edge.vertex(origin_side))
        dx, dy = edge.direction
        t_min, t_max = 0.0, float("inf")
    else:
        return

    for p, q in (
        (-dx, origin[0] - bounds.left),
        (dx, bounds.right - origin[0]),
        (-dy, origin[1] - bounds.bottom),
        (dy, bounds.top - origin[1]),
    ):
        if p == 0:
            if q < 0:
                return
            continue
        t = q / p
        if p < 0:
            t_min = max(t_min, t)
        else:
            t_max = min(t_max, t)
        if t_min > t_max:
            return

    if t_max == float("inf"):
        return

    start = _snap((origin[0] + t_min * dx, origin[1] + t_min * dy), bounds)
    stop = _snap((origin[0] + t_max * dx, origin[1] + t_max * dy), bounds)
    if start == stop:
        return

    return {origin_side: start, origin_side.other(): stop}


def _snap(point: Point, bounds: Rect) -> Point:
    x, y = bounds.clamp(point)
    for edge_x in (bounds.left, bounds.right):
        if abs(x - edge_x) <= _SNAP_TOLERANCE * max(1.0, bounds.width):
            x = edge_x
    for edge_y in (bounds.bottom, bounds.top):
        if abs(y - edge_y) <= _SNAP_TOLERANCE * max(1.0, bounds.height):
            y = edge_y
    return (x, y)
