import numpy as np
from numpy.polynomial import legendre
from typing import Callable, Optional, Tuple

from .mesh import Interval
from ..utils.elementary_matrices import ElementaryMatrices


class LegendreBasis:
    """
    Orthonormal Legendre basis of degree k on every cell:

        phi_j(x) = sqrt((2j+1)/h) P_j(2(x - x_l)/h - 1),   j = 0..k

    Unweighted matrices are scaled from the exact reference-element
    matrices; weighted ones and cell products use Gauss-Legendre quadrature.
    """

    def __init__(self, degree: int, n_quad: Optional[int] = None):
        """
        Args:
            degree: Polynomial degree k shared by all cells and variables
            n_quad: Number of Gauss-Legendre points per cell (default 2(k+1))
        """
        self.degree = degree
        self.n_local = degree + 1
        self.elementary_matrices = ElementaryMatrices.for_degree(degree)

        self.n_quad = n_quad if n_quad is not None else 2 * self.n_local
        self.reference_nodes, self.reference_weights = legendre.leggauss(self.n_quad)

        self._normalization = np.sqrt(2 * np.arange(self.n_local) + 1.0)
        # Column j holds the Legendre coefficients of P_j'
        self._derivative_coefficients = legendre.legder(np.eye(self.n_local), axis=0)

    def _reference_coordinate(self, interval: Interval, x) -> np.ndarray:
        return 2.0 * (np.asarray(x, dtype=float) - interval.x_l) / interval.h - 1.0

    def evaluate_basis(self, interval: Interval, x) -> np.ndarray:
        """Basis values, shape (npts, k+1)."""
        xi = np.atleast_1d(self._reference_coordinate(interval, x))
        return legendre.legvander(xi, self.degree) * (self._normalization / np.sqrt(interval.h))

    def evaluate_basis_derivative(self, interval: Interval, x) -> np.ndarray:
        """Basis derivatives d/dx phi_j, shape (npts, k+1)."""
        xi = np.atleast_1d(self._reference_coordinate(interval, x))
        values = legendre.legval(xi, self._derivative_coefficients).T
        return values * (self._normalization / np.sqrt(interval.h)) * (2.0 / interval.h)

    def phi(self, interval: Interval, j: int) -> Callable:
        """The j-th basis function of a cell as a callable of x."""
        return lambda x: self.evaluate_basis(interval, x)[:, j]

    def evaluate(self, interval: Interval, coeffs: np.ndarray, x) -> np.ndarray:
        """Evaluate sum_j coeffs[..., j] phi_j(x); returns shape coeffs.shape[:-1] + (npts,)."""
        return np.asarray(coeffs) @ self.evaluate_basis(interval, x).T

    def quadrature(self, interval: Interval) -> Tuple[np.ndarray, np.ndarray]:
        """Gauss-Legendre points and weights mapped to the cell."""
        x = interval.x_l + 0.5 * (self.reference_nodes + 1.0) * interval.h
        return x, 0.5 * interval.h * self.reference_weights

    def endpoint_values(self, interval: Interval) -> Tuple[np.ndarray, np.ndarray]:
        """(phi(x_l), phi(x_u)), each of shape (k+1,)."""
        trace = self.elementary_matrices.get_matrix('T') / np.sqrt(interval.h)
        return trace[0], trace[1]

    def mass_matrix(self, interval: Interval, weight: Optional[Callable] = None) -> np.ndarray:
        """
        M_ij = ∫ w phi_i phi_j over the cell.

        Args:
            interval: Cell
            weight: Optional weight function of x (vectorized); identity matrix when omitted

        Returns:
            (k+1, k+1) matrix
        """
        if weight is None:
            return self.elementary_matrices.get_matrix('M').copy()
        x, w = self.quadrature(interval)
        V = self.evaluate_basis(interval, x)
        return V.T @ ((w * _evaluate_weight(weight, x))[:, None] * V)

    def derivative_matrix(self, interval: Interval, weight: Optional[Callable] = None) -> np.ndarray:
        """
        W_ij = ∫ w phi_i phi_j' over the cell.

        Args:
            interval: Cell
            weight: Optional weight function of x (vectorized)

        Returns:
            (k+1, k+1) matrix
        """
        if weight is None:
            return self.elementary_matrices.get_matrix('D') / interval.h
        x, w = self.quadrature(interval)
        V = self.evaluate_basis(interval, x)
        dV = self.evaluate_basis_derivative(interval, x)
        return V.T @ ((w * _evaluate_weight(weight, x))[:, None] * dV)

    def cell_product(self, interval: Interval, f: Callable) -> np.ndarray:
        """Vector of (f, phi_j) over the cell for a vectorized function f(x)."""
        x, w = self.quadrature(interval)
        V = self.evaluate_basis(interval, x)
        return (w * _evaluate_weight(f, x)) @ V


def _evaluate_weight(f: Callable, x: np.ndarray) -> np.ndarray:
    # Broadcast so that constant-valued callables are accepted
    return np.broadcast_to(np.asarray(f(x), dtype=float), x.shape)
