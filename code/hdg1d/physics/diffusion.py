"""
Diffusion closures kappa(x, q, u, t), sigma = -kappa.
"""

import numpy as np
from typing import Optional, Sequence, Union

from .physics_case import DiffusionModel

Coefficient = Union[float, Sequence[float]]


def per_variable(value: Coefficient, n_var: int, name: str) -> np.ndarray:
    """Broadcast a scalar or a per-variable list to shape (n_var,)."""
    array = np.asarray(value, dtype=float)
    if array.ndim == 0:
        return np.full(n_var, float(array))
    if array.shape != (n_var,):
        raise ValueError(f"Parameter '{name}' needs 1 or {n_var} values, got {array.shape}")
    return array


def linear_diffusion(n_var: int, diffusivity: Coefficient = 1.0) -> DiffusionModel:
    """kappa_v = D_v q_v"""
    D = per_variable(diffusivity, n_var, "diffusivity")

    def kappa(var, x, q, u, t):
        return D[var] * q[var]

    def dkappa_dq(var, x, q, u, t):
        out = np.zeros_like(q, dtype=float)
        out[var] = D[var]
        return out

    def dkappa_du(var, x, q, u, t):
        return np.zeros_like(u, dtype=float)

    return DiffusionModel(kappa, dkappa_dq, dkappa_du)


def nonlinear_diffusion(n_var: int, diffusivity: Coefficient = 1.0) -> DiffusionModel:
    """kappa_v = D_v (1 + u_v^2) q_v"""
    D = per_variable(diffusivity, n_var, "diffusivity")

    def kappa(var, x, q, u, t):
        return D[var] * (1.0 + u[var] ** 2) * q[var]

    def dkappa_dq(var, x, q, u, t):
        out = np.zeros_like(q, dtype=float)
        out[var] = D[var] * (1.0 + u[var] ** 2)
        return out

    def dkappa_du(var, x, q, u, t):
        out = np.zeros_like(u, dtype=float)
        out[var] = 2.0 * D[var] * u[var] * q[var]
        return out

    return DiffusionModel(kappa, dkappa_dq, dkappa_du)


def matrix_diffusion(n_var: int, matrix: Optional[Sequence[Sequence[float]]] = None) -> DiffusionModel:
    """kappa_v = sum_w K_vw q_w, cross-diffusion between variables."""
    K = np.eye(n_var) if matrix is None else np.asarray(matrix, dtype=float)
    if K.shape != (n_var, n_var):
        raise ValueError(f"Diffusion matrix must be {n_var}x{n_var}, got {K.shape}")

    def kappa(var, x, q, u, t):
        return K[var] @ q

    def dkappa_dq(var, x, q, u, t):
        return np.broadcast_to(K[var][:, None], q.shape).astype(float)

    def dkappa_du(var, x, q, u, t):
        return np.zeros_like(u, dtype=float)

    return DiffusionModel(kappa, dkappa_dq, dkappa_du)
