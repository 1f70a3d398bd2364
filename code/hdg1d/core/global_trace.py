"""
Global trace (skeleton) system coupling the cells through the interface
unknowns lambda.

Per variable and interface the trace row reads

    sum_cells (C sigma + G u + H lambda) = L

with L = g_N at Neumann ends and zero in the interior. At Dirichlet ends
the cell blocks are eliminated and a unit diagonal with L = g_D pins the
trace to the boundary data.
"""

import logging
import numpy as np
from typing import List, Optional

from .boundary_conditions import BoundaryConditions
from .dense_lu import factorize, solve
from .local_assembly import CellMatrices
from .mesh import Grid
from .state_layout import StateLayout

logger = logging.getLogger(__name__)


class GlobalTraceSystem:
    """
    Assembles the global trace operator once, keeps its LU factorization,
    and rebuilds the boundary load on request.
    """

    def __init__(self, layout: StateLayout, grid: Grid, cell_matrices: List[CellMatrices],
                 boundary_conditions: BoundaryConditions):
        self.layout = layout
        self.grid = grid
        self.cell_matrices = cell_matrices
        self.boundary_conditions = boundary_conditions
        self.n_var = layout.n_var
        self.n_nodes = grid.n_cells + 1

        self._scatter_index = [layout.trace_indices(cell) for cell in range(grid.n_cells)]

        self.H_global_mat = self._assemble_operator()
        self._factors = factorize(self.H_global_mat, "global trace operator")
        self.L_global = np.zeros(layout.n_trace)
        self.time = None

        logger.debug("Global trace operator assembled: %d unknowns", layout.n_trace)

    def boundary_nodes(self):
        """(global trace indices, x) of the two boundary nodes for every variable."""
        for x, node in ((self.grid.lower_bound, 0), (self.grid.upper_bound, self.n_nodes - 1)):
            yield np.arange(self.n_var) * self.n_nodes + node, x

    def _assemble_operator(self) -> np.ndarray:
        H = np.zeros((self.layout.n_trace, self.layout.n_trace))
        for cell, matrices in enumerate(self.cell_matrices):
            self.scatter_matrix(H, cell, matrices.H)
        for indices, x in self.boundary_nodes():
            if self.boundary_conditions.is_dirichlet(x):
                H[indices, indices] = 1.0
        return H

    def scatter_matrix(self, target: np.ndarray, cell: int, block: np.ndarray):
        """Add a (2 n_var, 2 n_var) cell block into a global trace matrix."""
        index = self._scatter_index[cell]
        target[np.ix_(index, index)] += block

    def scatter_vector(self, target: np.ndarray, cell: int, block: np.ndarray):
        """Add a 2 n_var cell vector (or matrix with 2 n_var rows) into global rows."""
        np.add.at(target, self._scatter_index[cell], block)

    def gather(self, trace: np.ndarray, cell: int) -> np.ndarray:
        return trace.reshape(-1)[self._scatter_index[cell]]

    def boundary_load(self, t: float) -> np.ndarray:
        """Fresh trace load L at time t: g_N at Neumann ends, g_D at Dirichlet ends."""
        load = np.zeros(self.layout.n_trace)
        for indices, x in self.boundary_nodes():
            if self.boundary_conditions.is_neumann(x):
                load[indices] = self.boundary_conditions.neumann_value(x, t, self.n_var)
            elif self.boundary_conditions.is_dirichlet(x):
                load[indices] = self.boundary_conditions.dirichlet_value(x, t, self.n_var)
        return load

    def update_boundary_conditions(self, t: float):
        """Rebuild the stored L_global at time t from scratch."""
        self.L_global[:] = self.boundary_load(t)
        self.time = t

    def trace_load(self, sigma: np.ndarray, u: np.ndarray,
                   boundary_load: Optional[np.ndarray] = None) -> np.ndarray:
        """
        L - sum_cells scatter(C sigma + G u).

        Args:
            sigma: Flux coefficients, shape (n_cells, n_var, k+1)
            u: Primal coefficients, shape (n_cells, n_var, k+1)
            boundary_load: L to use instead of the stored L_global
        """
        load = (self.L_global if boundary_load is None else boundary_load).copy()
        for cell, matrices in enumerate(self.cell_matrices):
            local = matrices.C @ sigma[cell].reshape(-1) + matrices.G @ u[cell].reshape(-1)
            self.scatter_vector(load, cell, -local)
        return load

    def solve(self, rhs: np.ndarray) -> np.ndarray:
        return solve(self._factors, rhs)

    def implied_trace(self, sigma: np.ndarray, u: np.ndarray,
                      boundary_load: Optional[np.ndarray] = None) -> np.ndarray:
        """Trace consistent with the given local fields, flat of length n_trace."""
        return self.solve(self.trace_load(sigma, u, boundary_load))
