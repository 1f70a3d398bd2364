"""
Facade wiring mesh, basis, boundary conditions and physics case into the
residual / Newton-correction interface used by the time integrators.
"""

import logging
import numpy as np
from typing import Callable, List, Optional, Sequence, TextIO, Tuple

from .basis import LegendreBasis
from .boundary_conditions import BoundaryConditions
from .dg_approx import DGApprox
from .global_trace import GlobalTraceSystem
from .initial_conditions import InitialConditionBuilder
from .jacobian import JacobianSolver
from .local_assembly import CellMatrices, Coefficient, LocalAssembler
from .mesh import Grid
from .nonlinear_terms import NonlinearProjector
from .residual import ResidualEvaluator, RunContext
from .state_layout import StateLayout
from ..io.snapshot import write_snapshot
from ..physics.physics_case import PhysicsCase

logger = logging.getLogger(__name__)


class SystemSolver:
    """
    HDG discretization of u_t + (sigma + c u)_x = f + S, q = u_x, sigma = -kappa
    on a single 1D domain.

    Typical use:

        solver = SystemSolver(grid, degree, physics, bcs)
        y, ydot = solver.initial_conditions(u0, q0, sigma0, consistent=True)
        res = solver.residual(t, y, ydot)
        solver.setup_jacobian(t, y, ydot, alpha)
        delY = solver.solve_jacobian(g)
    """

    def __init__(self,
                 grid: Grid,
                 degree: int,
                 physics: PhysicsCase,
                 boundary_conditions: BoundaryConditions,
                 tau: Coefficient = 1.0,
                 convection: Coefficient = 0.0,
                 forcing: Optional[Sequence[Callable]] = None,
                 n_quad: Optional[int] = None,
                 context: Optional[RunContext] = None):
        """
        Args:
            grid: Spatial mesh
            degree: Polynomial degree k of the local spaces
            physics: Physics case (closure and source)
            boundary_conditions: Boundary condition set on the grid bounds
            tau: Stabilization parameter, constant or function of x
            convection: Convection velocity c, constant or function of x
            forcing: Optional per-variable forcing f_v(x, t)
            n_quad: Gauss points per cell for the nonlinear terms
            context: Run context; a fresh one is created when omitted
        """
        if (boundary_conditions.lower_bound != grid.lower_bound
                or boundary_conditions.upper_bound != grid.upper_bound):
            raise ValueError(f"Boundary conditions on [{boundary_conditions.lower_bound}, "
                             f"{boundary_conditions.upper_bound}] do not match {grid}")

        self.grid = grid
        self.degree = degree
        self.physics = physics
        self.n_var = physics.n_var
        self.boundary_conditions = boundary_conditions
        self.context = context if context is not None else RunContext()

        self.basis = LegendreBasis(degree, n_quad)
        self.layout = StateLayout(self.n_var, grid.n_cells, degree)
        self.local_assembler = LocalAssembler(grid, self.basis, self.n_var, boundary_conditions,
                                              tau=tau, convection=convection, forcing=forcing)

        self.cell_matrices: List[CellMatrices] = self.local_assembler.assemble()
        self.trace_system = GlobalTraceSystem(self.layout, grid, self.cell_matrices, boundary_conditions)
        self.projector = NonlinearProjector(grid, self.basis, physics)
        self.residual_evaluator = ResidualEvaluator(self.layout, self.cell_matrices, self.trace_system,
                                                    self.local_assembler, self.projector)
        self.jacobian_solver = JacobianSolver(self.layout, self.cell_matrices, self.trace_system,
                                              self.projector)
        self.ic_builder = InitialConditionBuilder(self.layout, grid, self.basis, self.cell_matrices,
                                                  self.trace_system, self.local_assembler,
                                                  self.projector, self.residual_evaluator,
                                                  self.jacobian_solver)

        logger.info("HDG system: %d cells, degree %d, %d variable(s), %d unknowns, physics '%s'",
                    grid.n_cells, degree, self.n_var, self.layout.size, physics.name)

    @property
    def size(self) -> int:
        return self.layout.size

    def initial_conditions(self, u0: Sequence[Callable], q0: Sequence[Callable],
                           sigma0: Sequence[Callable], t0: float = 0.0,
                           consistent: bool = True) -> Tuple[np.ndarray, np.ndarray]:
        """Initial state and time derivative, see InitialConditionBuilder.build."""
        return self.ic_builder.build(u0, q0, sigma0, t0=t0, consistent=consistent)

    def residual(self, t: float, y: np.ndarray, ydot: np.ndarray) -> np.ndarray:
        return self.residual_evaluator(t, y, ydot, self.context)

    def setup_jacobian(self, t: float, y: np.ndarray, ydot: Optional[np.ndarray], alpha: float,
                       freeze_differential: bool = False):
        self.jacobian_solver.setup(t, y, ydot, alpha, freeze_differential=freeze_differential)

    def solve_jacobian(self, g: np.ndarray, alpha: Optional[float] = None) -> np.ndarray:
        return self.jacobian_solver.solve(g, alpha)

    def time_derivative(self, t: float, y: np.ndarray) -> np.ndarray:
        """ydot consistent with the balance equation at (t, y)."""
        return self.ic_builder.time_derivative(t, y)

    def differential_mask(self) -> np.ndarray:
        return self.layout.differential_mask()

    def fields(self, y: np.ndarray) -> Tuple[DGApprox, DGApprox, DGApprox]:
        """(sigma, q, u) as DGApprox views into y."""
        return tuple(DGApprox(self.grid, self.basis, self.n_var, view)
                     for view in (self.layout.sigma(y), self.layout.q(y), self.layout.u(y)))

    def trace(self, y: np.ndarray) -> np.ndarray:
        return self.layout.trace(y)

    def print_snapshot(self, out: TextIO, t: float, y: np.ndarray, ydot: np.ndarray,
                       n_points: int = 301, var: int = 0):
        """Write one snapshot block of variable var to an open text stream."""
        write_snapshot(out, t, self.fields(y), self.fields(ydot), n_points=n_points, var=var)

    def get_system_info(self) -> dict:
        """Return a summary of the discretization."""
        return {
            'n_cells': self.grid.n_cells,
            'degree': self.degree,
            'n_var': self.n_var,
            'n_unknowns': self.layout.size,
            'n_trace': self.layout.n_trace,
            'physics': self.physics.name,
            'boundary_conditions': repr(self.boundary_conditions),
        }
