import logging
import numpy as np
from typing import Callable, List, Sequence, Tuple

from .dense_lu import factorize, solve
from .dg_approx import DGApprox
from .global_trace import GlobalTraceSystem
from .jacobian import JacobianSolver
from .local_assembly import CellMatrices, LocalAssembler
from .mesh import Grid
from .basis import LegendreBasis
from .nonlinear_terms import NonlinearProjector
from .residual import ResidualEvaluator
from .state_layout import StateLayout, SIGMA, Q, U

logger = logging.getLogger(__name__)


class InitialConditionBuilder:
    """
    Builds (y0, ydot0) from initial profiles of u, q and sigma.

    The local fields are L2 projections, the trace solves the global trace
    system for those fields, and dudt is read off the balance equation.
    With consistent=True the algebraic unknowns (sigma, q, lambda) are
    additionally corrected by Newton iterations at fixed u, so that the
    constraint rows of the residual vanish.
    """

    def __init__(self, layout: StateLayout, grid: Grid, basis: LegendreBasis,
                 cell_matrices: List[CellMatrices], trace_system: GlobalTraceSystem,
                 local_assembler: LocalAssembler, projector: NonlinearProjector,
                 residual: ResidualEvaluator, jacobian: JacobianSolver):
        self.layout = layout
        self.grid = grid
        self.basis = basis
        self.cell_matrices = cell_matrices
        self.trace_system = trace_system
        self.local_assembler = local_assembler
        self.projector = projector
        self.residual = residual
        self.jacobian = jacobian

    def build(self, u0: Sequence[Callable], q0: Sequence[Callable], sigma0: Sequence[Callable],
              t0: float = 0.0, consistent: bool = True, tol: float = 1e-10,
              max_iterations: int = 20) -> Tuple[np.ndarray, np.ndarray]:
        """
        Args:
            u0, q0, sigma0: One vectorized function of x per variable
            t0: Initial time
            consistent: Correct sigma, q and lambda so the constraint rows vanish;
                        with False the raw projections are returned
            tol: Max-norm tolerance of the constraint rows in the correction
            max_iterations: Newton iteration cap of the correction

        Returns:
            (y0, ydot0) in the state layout
        """
        layout = self.layout
        y = layout.new_vector()
        n_var = layout.n_var

        DGApprox(self.grid, self.basis, n_var, layout.sigma(y)).project(sigma0)
        DGApprox(self.grid, self.basis, n_var, layout.q(y)).project(q0)
        DGApprox(self.grid, self.basis, n_var, layout.u(y)).project(u0)

        layout.trace(y)[...] = self.trace_system.implied_trace(
            layout.sigma(y), layout.u(y), self.trace_system.boundary_load(t0)).reshape(n_var, -1)

        if consistent:
            self._correct_algebraic(y, t0, tol, max_iterations)

        ydot = self.time_derivative(t0, y)
        logger.info("Initial conditions built at t = %.6g (%d unknowns)", t0, layout.size)
        return y, ydot

    def time_derivative(self, t: float, y: np.ndarray) -> np.ndarray:
        """
        ydot with dudt = X^-1 (-B sigma - D u - E lambda + RF_u + S_h), zero elsewhere.

        Raises:
            SolveFailedError: a cell mass block is singular
        """
        layout = self.layout
        fields = layout.cell_fields(y)
        trace = layout.trace(y).reshape(-1)
        ydot = layout.new_vector()
        dudt = layout.u(ydot)

        for cell, m in enumerate(self.cell_matrices):
            sigma, q, u = fields[cell, SIGMA], fields[cell, Q], fields[cell, U]
            _, rf_u = self.local_assembler.load_vector(m.interval, t)
            lam = self.trace_system.gather(trace, cell)
            rhs = (-m.B @ sigma.reshape(-1) - m.D @ u.reshape(-1) - m.E @ lam
                   + rf_u.reshape(-1) + self.projector.source(cell, q, u, t).reshape(-1))
            factors = factorize(m.X, f"mass block of cell {cell}")
            dudt[cell] = solve(factors, rhs).reshape(u.shape)
        return ydot

    def _correct_algebraic(self, y: np.ndarray, t: float, tol: float, max_iterations: int):
        layout = self.layout
        ydot = layout.new_vector()

        for iteration in range(max_iterations):
            F = self.residual(t, y, ydot)
            layout.cell_fields(F)[:, Q] = 0.0
            norm = float(np.max(np.abs(F))) if F.size else 0.0
            logger.debug("Initial condition correction %d: |F_alg| = %.3e", iteration, norm)
            if norm <= tol:
                return
            self.jacobian.setup(t, y, alpha=0.0, freeze_differential=True)
            y += self.jacobian.solve(-F)

        F = self.residual(t, y, ydot)
        layout.cell_fields(F)[:, Q] = 0.0
        norm = float(np.max(np.abs(F)))
        if norm > tol:
            logger.warning("Initial condition correction stopped after %d iterations "
                           "with |F_alg| = %.3e", max_iterations, norm)
