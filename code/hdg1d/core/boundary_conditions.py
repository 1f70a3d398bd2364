"""
Boundary condition set for a single domain: one Dirichlet or Neumann flag
per side and value functions of (position, time).
"""

import numpy as np
from enum import Enum
from typing import Callable, Optional, Sequence, Union

from .errors import BoundaryEvaluationError

BoundaryValue = Union[float, Sequence[float], Callable[[float], float]]


class BoundaryType(Enum):
    """Types of boundary conditions."""
    DIRICHLET = "dirichlet"
    NEUMANN = "neumann"

    @classmethod
    def from_name(cls, name: str) -> 'BoundaryType':
        """Parse 'Dirichlet', 'Neumann' or 'VonNeumann' (case insensitive)."""
        key = name.strip().lower()
        if key == "dirichlet":
            return cls.DIRICHLET
        if key in ("neumann", "vonneumann"):
            return cls.NEUMANN
        raise ValueError(f"Unknown boundary type '{name}'. Available: Dirichlet, VonNeumann")


class BoundaryConditions:
    """
    Boundary conditions at the two ends of [lower_bound, upper_bound].

    Boundary membership uses exact floating point equality with the bounds.
    The value functions g_D(x, t) and g_N(x, t) may return a scalar or one
    value per variable; they must raise BoundaryEvaluationError when called
    off the boundary.
    """

    def __init__(self,
                 lower_bound: float,
                 upper_bound: float,
                 lower_type: BoundaryType,
                 upper_type: BoundaryType,
                 dirichlet_function: Optional[Callable] = None,
                 neumann_function: Optional[Callable] = None):
        """
        Args:
            lower_bound: Left end of the domain
            upper_bound: Right end of the domain
            lower_type: Condition at the left end
            upper_type: Condition at the right end
            dirichlet_function: g_D(x, t), required when a side is Dirichlet
            neumann_function: g_N(x, t), required when a side is Neumann
        """
        self.lower_bound = float(lower_bound)
        self.upper_bound = float(upper_bound)
        self.lower_type = lower_type
        self.upper_type = upper_type

        if BoundaryType.DIRICHLET in (lower_type, upper_type) and dirichlet_function is None:
            raise ValueError("A Dirichlet side needs a Dirichlet value function")
        if BoundaryType.NEUMANN in (lower_type, upper_type) and neumann_function is None:
            raise ValueError("A Neumann side needs a Neumann value function")

        self.dirichlet_function = dirichlet_function
        self.neumann_function = neumann_function

    @classmethod
    def from_values(cls, lower_bound: float, upper_bound: float,
                    lower_type: BoundaryType, upper_type: BoundaryType,
                    lower_value: BoundaryValue = 0.0,
                    upper_value: BoundaryValue = 0.0) -> 'BoundaryConditions':
        """
        Build the value functions from per-side data.

        Args:
            lower_value: Constant, one constant per variable, or function of t,
                imposed at the left end
            upper_value: Constant, or function of t, imposed at the right end
        """
        lower_bound = float(lower_bound)
        upper_bound = float(upper_bound)

        def side_function(side_type):
            def g(x, t):
                if x == lower_bound and lower_type == side_type:
                    value = lower_value
                elif x == upper_bound and upper_type == side_type:
                    value = upper_value
                else:
                    raise BoundaryEvaluationError(
                        f"{side_type.value} boundary function evaluated at x = {x}, "
                        f"which is not a {side_type.value} end of [{lower_bound}, {upper_bound}]")
                return value(t) if callable(value) else value
            return g

        return cls(lower_bound, upper_bound, lower_type, upper_type,
                   dirichlet_function=side_function(BoundaryType.DIRICHLET),
                   neumann_function=side_function(BoundaryType.NEUMANN))

    def boundary_type(self, x: float) -> Optional[BoundaryType]:
        """Condition type at x, or None for interior points."""
        if x == self.lower_bound:
            return self.lower_type
        if x == self.upper_bound:
            return self.upper_type
        return None

    def is_dirichlet(self, x: float) -> bool:
        return self.boundary_type(x) == BoundaryType.DIRICHLET

    def is_neumann(self, x: float) -> bool:
        return self.boundary_type(x) == BoundaryType.NEUMANN

    def dirichlet_value(self, x: float, t: float, n_var: int = 1) -> np.ndarray:
        """g_D(x, t) as an array of n_var values."""
        if not self.is_dirichlet(x):
            raise BoundaryEvaluationError(f"x = {x} is not a Dirichlet boundary point")
        return self._as_vector(self.dirichlet_function(x, t), n_var, "Dirichlet", x)

    def neumann_value(self, x: float, t: float, n_var: int = 1) -> np.ndarray:
        """g_N(x, t) as an array of n_var values."""
        if not self.is_neumann(x):
            raise BoundaryEvaluationError(f"x = {x} is not a Neumann boundary point")
        return self._as_vector(self.neumann_function(x, t), n_var, "Neumann", x)

    @staticmethod
    def _as_vector(value, n_var: int, kind: str, x: float) -> np.ndarray:
        value = np.asarray(value, dtype=float)
        if value.ndim == 0:
            return np.full(n_var, float(value))
        if value.shape != (n_var,):
            raise ValueError(f"{kind} value at x = {x} has shape {value.shape}, "
                             f"expected a scalar or ({n_var},)")
        return value

    def __repr__(self):
        return (f"BoundaryConditions(lower={self.lower_type.value} at {self.lower_bound}, "
                f"upper={self.upper_type.value} at {self.upper_bound})")
