import numpy as np
from typing import Tuple

from .basis import LegendreBasis
from .mesh import Grid
from ..physics.physics_case import PhysicsCase


class NonlinearProjector:
    """
    Quadrature projections of the physics callbacks onto the local basis:

        K_h[v, i] = ∫ kappa_v(x, q_h, u_h, t) phi_i,   S_h[v, i] = ∫ S_v(x, q_h, u_h, t) phi_i

    and their Jacobians with respect to the q and u coefficients.
    """

    def __init__(self, grid: Grid, basis: LegendreBasis, physics: PhysicsCase):
        self.grid = grid
        self.basis = basis
        self.physics = physics
        self.n_var = physics.n_var

        self._points = []
        self._weights = []
        self._values = []
        for interval in grid:
            x, w = basis.quadrature(interval)
            self._points.append(x)
            self._weights.append(w)
            self._values.append(basis.evaluate_basis(interval, x))

    def _fields(self, cell: int, q: np.ndarray, u: np.ndarray):
        V = self._values[cell]
        return self._points[cell], self._weights[cell], V, q @ V.T, u @ V.T

    def _project(self, callback, cell, q, u, t) -> np.ndarray:
        x, w, V, q_x, u_x = self._fields(cell, q, u)
        return np.array([(w * callback(var, x, q_x, u_x, t)) @ V for var in range(self.n_var)])

    def _jacobian(self, callback, cell, q, u, t) -> np.ndarray:
        # Block (v, w) = V^T diag(weights * d f_v / d field_w) V
        x, w, V, q_x, u_x = self._fields(cell, q, u)
        n = self.basis.n_local
        jac = np.zeros((self.n_var * n, self.n_var * n))
        for var in range(self.n_var):
            derivative = callback(var, x, q_x, u_x, t)
            for other in range(self.n_var):
                jac[var * n:(var + 1) * n, other * n:(other + 1) * n] = \
                    V.T @ ((w * derivative[other])[:, None] * V)
        return jac

    def kappa(self, cell: int, q: np.ndarray, u: np.ndarray, t: float) -> np.ndarray:
        """K_h of a cell from coefficients q, u of shape (n_var, k+1)."""
        return self._project(self.physics.kappa, cell, q, u, t)

    def source(self, cell: int, q: np.ndarray, u: np.ndarray, t: float) -> np.ndarray:
        return self._project(self.physics.source, cell, q, u, t)

    def kappa_jacobians(self, cell: int, q, u, t) -> Tuple[np.ndarray, np.ndarray]:
        """(dK_h/dq, dK_h/du), each (N, N) with cross-variable blocks."""
        return (self._jacobian(self.physics.dkappa_dq, cell, q, u, t),
                self._jacobian(self.physics.dkappa_du, cell, q, u, t))

    def source_jacobians(self, cell: int, q, u, t) -> Tuple[np.ndarray, np.ndarray]:
        return (self._jacobian(self.physics.dsource_dq, cell, q, u, t),
                self._jacobian(self.physics.dsource_du, cell, q, u, t))
