"""
Physics case: the closure kappa(x, q, u, t) of the flux sigma = -kappa and the
source S(x, q, u, t), with their derivatives.

Every callback has the signature (var, x, q, u, t) where x has shape (npts,)
and q, u have shape (n_var, npts). Values return shape (npts,); derivatives
with respect to q or u return shape (n_var, npts), row w holding the
derivative with respect to variable w.
"""

import numpy as np
from dataclasses import dataclass
from typing import Callable, NamedTuple

Callback = Callable[[int, np.ndarray, np.ndarray, np.ndarray, float], np.ndarray]


def zero_value(var, x, q, u, t):
    return np.zeros_like(x, dtype=float)


def zero_derivative(var, x, q, u, t):
    return np.zeros_like(q, dtype=float)


class DiffusionModel(NamedTuple):
    kappa: Callback
    dkappa_dq: Callback
    dkappa_du: Callback


class ReactionModel(NamedTuple):
    source: Callback
    dsource_dq: Callback = zero_derivative
    dsource_du: Callback = zero_derivative


@dataclass(frozen=True)
class PhysicsCase:
    """Immutable bundle of the constitutive and source callbacks."""

    name: str
    n_var: int
    kappa: Callback
    dkappa_dq: Callback
    dkappa_du: Callback
    source: Callback = zero_value
    dsource_dq: Callback = zero_derivative
    dsource_du: Callback = zero_derivative

    @classmethod
    def from_models(cls, name: str, n_var: int, diffusion: DiffusionModel,
                    reaction: ReactionModel) -> 'PhysicsCase':
        return cls(name, n_var,
                   diffusion.kappa, diffusion.dkappa_dq, diffusion.dkappa_du,
                   reaction.source, reaction.dsource_dq, reaction.dsource_du)

    def flux(self, x: np.ndarray, q: np.ndarray, u: np.ndarray, t: float) -> np.ndarray:
        """sigma = -kappa for all variables, shape (n_var, npts)."""
        return np.array([-self.kappa(var, x, q, u, t) for var in range(self.n_var)])
