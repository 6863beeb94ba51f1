"""
Plate boundary metadata and stress evaluation.

Every edge separating two different plates carries a Boundary. Stress is the
relative motion of the two plates, split into the component along the fault
and the component across it.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterator, Sequence, Tuple

import numpy as np
import structlog

from .site_graph import Edge, SiteGraph

logger = structlog.get_logger()

# Shortest tangent accepted for stress decomposition
MIN_TANGENT_LENGTH = 0.005


@dataclass
class Boundary:
    """Stress state of one plate boundary edge."""

    stress: np.ndarray = field(default_factory=lambda: np.zeros(2))
    parallel: float = 0.0
    orthogonal: float = 0.0
    divergent: bool = False

    @property
    def magnitude(self) -> float:
        return float(np.hypot(self.stress[0], self.stress[1]))


class BoundaryMap:
    """Insertion-ordered edge handle -> Boundary mapping."""

    def __init__(self):
        self._boundaries: Dict[int, Boundary] = {}

    def add(self, edge: Edge) -> bool:
        """Register ``edge`` as a boundary; False if it already was one."""
        if edge.handle in self._boundaries:
            return False
        self._boundaries[edge.handle] = Boundary()
        return True

    def get(self, edge_handle: int) -> Boundary:
        return self._boundaries[edge_handle]

    def __contains__(self, edge_handle: int) -> bool:
        return edge_handle in self._boundaries

    def __len__(self) -> int:
        return len(self._boundaries)

    def __iter__(self) -> Iterator[int]:
        return iter(self._boundaries)

    def items(self, graph: SiteGraph) -> Iterator[Tuple[Edge, Boundary]]:
        for handle, boundary in self._boundaries.items():
            yield graph.edges[handle], boundary

    def clear(self) -> None:
        self._boundaries.clear()


def _unit(vector: np.ndarray) -> np.ndarray:
    length = float(np.hypot(vector[0], vector[1]))
    if length == 0.0:
        return np.zeros(2)
    return vector / length


def calculate_stress(graph: SiteGraph, boundaries: BoundaryMap,
                     motions: Sequence[np.ndarray], plate_ids: np.ndarray) -> int:
    """
    Set stress, its fault-parallel/orthogonal components and divergence on
    every boundary whose edge has both vertices.

    Args:
        graph: Site graph the boundary edges belong to
        boundaries: Boundaries to evaluate, updated in place
        motions: Unit motion vector per plate id
        plate_ids: Plate id per site

    Returns:
        Number of boundaries evaluated
    """
    evaluated = 0
    for edge, boundary in boundaries.items(graph):
        if not edge.bounded:
            continue
        left_plate = int(plate_ids[edge.left_site])
        right_plate = int(plate_ids[edge.right_site])
        if left_plate < 0 or right_plate < 0:
            continue

        left = np.asarray(graph.vertex_coord(edge.left_vertex))
        right = np.asarray(graph.vertex_coord(edge.right_vertex))
        edge_vector = left - right
        length = float(np.hypot(edge_vector[0], edge_vector[1]))
        if length < MIN_TANGENT_LENGTH:
            continue
        tangent = edge_vector / length

        left_motion = np.asarray(motions[left_plate], dtype=np.float64)
        right_motion = np.asarray(motions[right_plate], dtype=np.float64)
        stress = left_motion - right_motion

        boundary.stress = stress
        boundary.parallel = abs(float(np.dot(stress, tangent)))
        boundary.orthogonal = abs(float(stress[0] * tangent[1] - stress[1] * tangent[0]))

        direction = np.asarray(graph.site_coord(edge.right_site)) - np.asarray(graph.site_coord(edge.left_site))
        directionality = float(np.dot(_unit(direction), _unit(right_motion)))
        boundary.divergent = not directionality < 0
        evaluated += 1

    logger.debug("Boundary stress calculated", boundaries=len(boundaries), evaluated=evaluated)
    return evaluated


def is_convergent(boundary: Boundary, threshold: float = 0.1) -> bool:
    """Orthogonal-dominant, closing boundary under more than ``threshold`` stress."""
    return (boundary.orthogonal > boundary.parallel
            and not boundary.divergent
            and boundary.magnitude > threshold)


def stress_summary(boundaries: BoundaryMap) -> Dict[str, float]:
    """Counts and mean stress of a boundary set, for logging and tests."""
    magnitudes = [boundaries.get(h).magnitude for h in boundaries]
    divergent = sum(1 for h in boundaries if boundaries.get(h).divergent)
    return {
        "boundaries": len(magnitudes),
        "divergent": divergent,
        "mean_stress": float(np.mean(magnitudes)) if magnitudes else 0.0,
        "max_stress": max(magnitudes) if magnitudes else 0.0,
    }

