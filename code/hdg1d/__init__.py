"""
HDG1D: Hybridizable Discontinuous Galerkin discretization of 1D
diffusion/transport/reaction systems, exposed as a DAE residual with a
static-condensation Newton solver.
"""

from .core.mesh import Grid, Interval
from .core.boundary_conditions import BoundaryConditions, BoundaryType
from .core.system_solver import SystemSolver
from .physics.factory import PhysicsCaseFactory

__version__ = "0.1.0"
__all__ = ["Grid", "Interval", "BoundaryConditions", "BoundaryType", "SystemSolver",
           "PhysicsCaseFactory"]
