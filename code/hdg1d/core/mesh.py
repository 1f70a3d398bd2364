import numpy as np
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence


@dataclass(frozen=True)
class Interval:
    """A closed cell [x_l, x_u] of the one-dimensional mesh."""

    x_l: float
    x_u: float

    def __post_init__(self):
        if not self.x_l < self.x_u:
            raise ValueError(f"Interval requires x_l < x_u, got [{self.x_l}, {self.x_u}]")

    @property
    def h(self) -> float:
        return self.x_u - self.x_l

    @property
    def midpoint(self) -> float:
        return 0.5 * (self.x_l + self.x_u)

    def contains(self, x: float) -> bool:
        return self.x_l <= x <= self.x_u


class Grid:
    """
    Spatial mesh of a single domain: an ordered tuple of intervals tiling
    [lower_bound, upper_bound] without gaps or overlaps.
    """

    def __init__(self, lower_bound: float, upper_bound: float, n_cells: Optional[int] = None,
                 nodes: Optional[Sequence[float]] = None):
        """
        Build a uniform grid with n_cells cells, or a grid on explicit nodes.

        Args:
            lower_bound: Left end of the domain
            upper_bound: Right end of the domain
            n_cells: Number of uniform cells (ignored when nodes is given)
            nodes: Strictly increasing node coordinates from lower to upper bound
        """
        if nodes is None:
            if n_cells is None or n_cells < 1:
                raise ValueError(f"A uniform grid needs at least one cell, got {n_cells}")
            nodes = np.linspace(lower_bound, upper_bound, n_cells + 1)
        nodes = np.array(nodes, dtype=float)

        if nodes.ndim != 1 or len(nodes) < 2:
            raise ValueError("Grid nodes must be a 1D array with at least two entries")
        if nodes[0] != lower_bound or nodes[-1] != upper_bound:
            raise ValueError(f"Grid nodes must span [{lower_bound}, {upper_bound}]")
        if np.any(np.diff(nodes) <= 0):
            raise ValueError("Grid nodes must be strictly increasing")

        self.lower_bound = float(lower_bound)
        self.upper_bound = float(upper_bound)
        self.nodes = nodes
        self.nodes.setflags(write=False)
        self.cells = tuple(Interval(float(a), float(b)) for a, b in zip(nodes[:-1], nodes[1:]))

    @classmethod
    def from_nodes(cls, nodes: Sequence[float]) -> 'Grid':
        nodes = np.asarray(nodes, dtype=float)
        return cls(nodes[0], nodes[-1], nodes=nodes)

    @property
    def n_cells(self) -> int:
        return len(self.cells)

    @property
    def n_nodes(self) -> int:
        return len(self.nodes)

    def __len__(self) -> int:
        return len(self.cells)

    def __iter__(self) -> Iterator[Interval]:
        return iter(self.cells)

    def __getitem__(self, index: int) -> Interval:
        return self.cells[index]

    def find_cell(self, x: float) -> int:
        """
        Index of the cell containing x, or -1 outside the domain.

        Interior nodes belong to the cell on their right; the upper bound
        belongs to the last cell.
        """
        return int(self.locate(np.array([x]))[0])

    def locate(self, x: np.ndarray) -> np.ndarray:
        """Vectorized find_cell."""
        x = np.asarray(x, dtype=float)
        index = np.searchsorted(self.nodes, x, side='right') - 1
        index = np.where(x == self.upper_bound, self.n_cells - 1, index)
        outside = (x < self.lower_bound) | (x > self.upper_bound) | np.isnan(x)
        return np.where(outside, -1, index)

    def get_mesh_info(self) -> dict:
        """Return mesh information dictionary."""
        return {
            'n_cells': self.n_cells,
            'n_nodes': self.n_nodes,
            'nodes': self.nodes,
            'cell_sizes': np.diff(self.nodes),
            'lower_bound': self.lower_bound,
            'upper_bound': self.upper_bound,
        }

    def __repr__(self):
        return f"Grid([{self.lower_bound}, {self.upper_bound}], n_cells={self.n_cells})"
