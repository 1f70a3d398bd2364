"""
Named initial profiles u0(x) with their derivatives q0 = u0'(x).

The flux sigma0 = -kappa(x, q0, u0, 0) is derived from the physics case so
that the three fields start out consistent with the constitutive law.
"""

import numpy as np
from typing import Callable, Dict, List, Tuple

from .physics_case import PhysicsCase

Profile = Tuple[Callable[[np.ndarray], np.ndarray], Callable[[np.ndarray], np.ndarray]]


def gaussian_profile(lower: float, upper: float, height: float = 1.0,
                     width: float = 0.1, centre: float = 0.5) -> Profile:
    """height * exp(-((x - m)/w)^2), with m and w given relative to the domain."""
    length = upper - lower
    m = lower + centre * length
    w = width * length

    def u0(x):
        return height * np.exp(-((np.asarray(x) - m) / w) ** 2)

    def q0(x):
        return -2.0 * (np.asarray(x) - m) / w ** 2 * u0(x)

    return u0, q0


def sine_profile(lower: float, upper: float, height: float = 1.0, modes: int = 1) -> Profile:
    """height * sin(modes * pi * (x - lower)/L)"""
    k = modes * np.pi / (upper - lower)

    def u0(x):
        return height * np.sin(k * (np.asarray(x) - lower))

    def q0(x):
        return height * k * np.cos(k * (np.asarray(x) - lower))

    return u0, q0


def linear_profile(lower: float, upper: float, left: float = 0.0, right: float = 1.0) -> Profile:
    """Straight line from left at the lower bound to right at the upper bound."""
    slope = (right - left) / (upper - lower)

    def u0(x):
        return left + slope * (np.asarray(x) - lower)

    def q0(x):
        return np.full_like(np.asarray(x, dtype=float), slope)

    return u0, q0


def constant_profile(lower: float, upper: float, value: float = 1.0) -> Profile:
    def u0(x):
        return np.full_like(np.asarray(x, dtype=float), value)

    def q0(x):
        return np.zeros_like(np.asarray(x, dtype=float))

    return u0, q0


class InitialConditionLibrary:
    """Registry of named initial profiles."""

    _profiles: Dict[str, Callable[..., Profile]] = {
        "gaussian": gaussian_profile,
        "sine": sine_profile,
        "linear": linear_profile,
        "constant": constant_profile,
    }

    def __init__(self, name: str, physics: PhysicsCase, lower: float, upper: float,
                 parameters: dict = None):
        """
        Args:
            name: Profile name
            physics: Physics case used to derive sigma0
            lower: Left end of the domain
            upper: Right end of the domain
            parameters: Keyword arguments of the profile builder; a list value
                        gives one argument per variable
        """
        if name not in self._profiles:
            raise ValueError(f"Unknown initial condition: {name}. "
                             f"Available types: {self.get_available_types()}")
        self.name = name
        self.physics = physics
        self._profiles_per_var = [
            self._build(name, lower, upper, self._variable_parameters(parameters or {}, var))
            for var in range(physics.n_var)]

    def _variable_parameters(self, parameters: dict, var: int) -> dict:
        n_var = self.physics.n_var
        selected = {}
        for key, value in parameters.items():
            if isinstance(value, (list, tuple)):
                if len(value) != n_var:
                    raise ValueError(f"Initial condition parameter '{key}' has {len(value)} "
                                     f"entries, expected {n_var}")
                value = value[var]
            selected[key] = value
        return selected

    def _build(self, name: str, lower: float, upper: float, parameters: dict) -> Profile:
        try:
            return self._profiles[name](lower, upper, **parameters)
        except TypeError as exc:
            raise ValueError(f"Invalid parameters for initial condition '{name}': {exc}") from exc

    @classmethod
    def register_profile(cls, name: str, builder: Callable[..., Profile]):
        cls._profiles[name] = builder

    @classmethod
    def get_available_types(cls):
        return list(cls._profiles.keys())

    def _fields(self, x):
        x = np.asarray(x, dtype=float)
        u = np.array([u0(x) * np.ones_like(x) for u0, _ in self._profiles_per_var])
        q = np.array([q0(x) * np.ones_like(x) for _, q0 in self._profiles_per_var])
        return x, q, u

    def u_initial(self) -> List[Callable]:
        """One u0 function per variable."""
        return [u0 for u0, _ in self._profiles_per_var]

    def q_initial(self) -> List[Callable]:
        return [q0 for _, q0 in self._profiles_per_var]

    def sigma_initial(self) -> List[Callable]:
        """sigma0_v(x) = -kappa_v(x, q0(x), u0(x), 0)."""
        def make(var):
            def sigma0(x):
                x, q, u = self._fields(x)
                return -self.physics.kappa(var, x, q, u, 0.0)
            return sigma0
        return [make(var) for var in range(self.physics.n_var)]
