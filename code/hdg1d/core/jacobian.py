"""
Newton correction J delY = g with J = dF/dy + alpha dF/dydot, solved by
static condensation of the local unknowns onto the trace.
"""

import logging
import numpy as np
from typing import List, Optional

from .dense_lu import LUFactors, factorize, solve
from .global_trace import GlobalTraceSystem
from .local_assembly import CellMatrices
from .nonlinear_terms import NonlinearProjector
from .state_layout import StateLayout, Q, U

logger = logging.getLogger(__name__)


class JacobianSolver:
    """
    Static-condensation solver of the linearized DAE residual.

    Per cell the local operator on [sigma | q | u] is

        M = [[ 0,  -A,        -B^T                  ],
             [ B,  -dS/dq,    D + alpha X - dS/du   ],
             [ A,   dK/dq,    dK/du                 ]]

    with trace couplings CE = [C^T; E; 0] and CG = [C, 0, G]. The trace
    rows of the residual are H^-1 scaled, so their right-hand side is
    mapped back through H before condensation:

        K = H - sum scatter(CG M^-1 CE)
        F = -H g_lambda - sum scatter(CG M^-1 g_cell)
        K dlambda = F,   dSQU = M^-1 g_cell - M^-1 CE dlambda_cell
    """

    def __init__(self, layout: StateLayout, cell_matrices: List[CellMatrices],
                 trace_system: GlobalTraceSystem, projector: NonlinearProjector):
        self.layout = layout
        self.cell_matrices = cell_matrices
        self.trace_system = trace_system
        self.projector = projector

        # Linear parts are constant for the run
        self._M_linear = [m.M for m in cell_matrices]
        self._CE = [m.CE for m in cell_matrices]
        self._CG = [m.CG for m in cell_matrices]

        self.alpha: Optional[float] = None
        self.time: Optional[float] = None
        self.freeze_differential = False
        self._state: Optional[np.ndarray] = None
        self._cell_factors: List[LUFactors] = []
        self._SQU_0: List[np.ndarray] = []
        self._K_factors: Optional[LUFactors] = None
        self.K_global: Optional[np.ndarray] = None

    def setup(self, t: float, y: np.ndarray, ydot: Optional[np.ndarray] = None, alpha: float = 0.0,
              freeze_differential: bool = False):
        """
        Factor the local operators and the condensed trace operator at (t, y).

        Args:
            t: Time of the linearization point
            y: State of the linearization point
            ydot: Unused, the residual is linear in ydot
            alpha: Coefficient of dF/dydot
            freeze_differential: Replace the balance rows by du = 0, so that
                                 only the algebraic unknowns are corrected

        Raises:
            SolveFailedError: a local or the condensed operator is singular
        """
        layout = self.layout
        N = layout.block_size
        fields = layout.cell_fields(y)

        self._cell_factors = []
        self._SQU_0 = []
        K = self.trace_system.H_global_mat.copy()

        for cell, m in enumerate(self.cell_matrices):
            q, u = fields[cell, Q], fields[cell, U]
            M = self._M_linear[cell].copy()
            CE = self._CE[cell]

            if freeze_differential:
                M[N:2 * N, :] = 0.0
                M[N:2 * N, 2 * N:] = np.eye(N)
                CE = CE.copy()
                CE[N:2 * N] = 0.0
            else:
                dS_dq, dS_du = self.projector.source_jacobians(cell, q, u, t)
                M[N:2 * N, N:2 * N] -= dS_dq
                M[N:2 * N, 2 * N:] += alpha * m.X - dS_du

            dK_dq, dK_du = self.projector.kappa_jacobians(cell, q, u, t)
            M[2 * N:, N:2 * N] = dK_dq
            M[2 * N:, 2 * N:] = dK_du

            factors = factorize(M, f"local operator of cell {cell}")
            SQU_0 = solve(factors, CE)
            self.trace_system.scatter_matrix(K, cell, -self._CG[cell] @ SQU_0)

            self._cell_factors.append(factors)
            self._SQU_0.append(SQU_0)

        self._K_factors = factorize(K, "condensed trace operator")
        self.K_global = K
        self.alpha = alpha
        self.time = t
        self.freeze_differential = freeze_differential
        self._state = np.array(y, copy=True)

        logger.debug("Jacobian set up at t = %.6g, alpha = %.6g%s", t, alpha,
                     " (differential rows frozen)" if freeze_differential else "")

    def solve(self, g: np.ndarray, alpha: Optional[float] = None) -> np.ndarray:
        """
        Solve J delY = g at the current linearization point.

        Args:
            g: Right-hand side in the state layout
            alpha: When given and different from the setup value, the
                   operators are rebuilt at the stored point first

        Returns:
            delY in the state layout
        """
        if self._state is None:
            raise RuntimeError("JacobianSolver.solve called before setup")
        if alpha is not None and alpha != self.alpha:
            self.setup(self.time, self._state, alpha=alpha,
                       freeze_differential=self.freeze_differential)

        layout = self.layout
        N = layout.block_size
        g_cells = layout.cell_blocks(g)
        g_trace = layout.trace(g).reshape(-1)

        F = -self.trace_system.H_global_mat @ g_trace
        SQU_f = []
        for cell in range(layout.n_cells):
            g_cell = g_cells[cell]
            if self.freeze_differential:
                g_cell = g_cell.copy()
                g_cell[N:2 * N] = 0.0
            local = solve(self._cell_factors[cell], g_cell)
            self.trace_system.scatter_vector(F, cell, -self._CG[cell] @ local)
            SQU_f.append(local)

        d_lambda = solve(self._K_factors, F)

        delY = layout.new_vector()
        blocks = layout.cell_blocks(delY)
        for cell in range(layout.n_cells):
            blocks[cell] = SQU_f[cell] - self._SQU_0[cell] @ self.trace_system.gather(d_lambda, cell)
        layout.trace(delY)[...] = d_lambda.reshape(layout.n_var, -1)
        return delY
