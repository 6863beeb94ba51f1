"""Shared graph fixtures."""

import pytest

from py_tectonics.core.site_graph import Rect, SiteGraph


def build_square_grid(cols: int, rows: int, size: float = 1.0) -> SiteGraph:
    """
    Square cells of side ``size``; site ``j * cols + i`` sits at the center
    of cell (i, j). Cells on the rim have no edge towards the outside, their
    outline is completed along the world border.
    """
    graph = SiteGraph(Rect(0.0, 0.0, cols * size, rows * size))
    for j in range(rows):
        for i in range(cols):
            graph.add_site((i + 0.5) * size, (j + 0.5) * size)

    vertex = {}
    for j in range(rows + 1):
        for i in range(cols + 1):
            vertex[(i, j)] = graph.add_vertex(i * size, j * size)

    for j in range(rows):
        for i in range(cols):
            site = j * cols + i
            if i + 1 < cols:
                graph.add_edge(site, site + 1, vertex[(i + 1, j)], vertex[(i + 1, j + 1)])
            if j + 1 < rows:
                graph.add_edge(site, site + cols, vertex[(i, j + 1)], vertex[(i + 1, j + 1)])
    return graph


def build_path(n: int) -> SiteGraph:
    """``n`` sites in a row, each linked only to its predecessor and successor."""
    graph = SiteGraph(Rect(0.0, 0.0, float(n), 1.0))
    for i in range(n):
        graph.add_site(i + 0.5, 0.5)
    for i in range(n - 1):
        graph.add_edge(i, i + 1)
    return graph


@pytest.fixture
def grid_3x3():
    return build_square_grid(3, 3)


@pytest.fixture
def make_grid():
    return build_square_grid


@pytest.fixture
def make_path():
    return build_path
