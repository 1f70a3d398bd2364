import numpy as np
import sympy as sp
from functools import lru_cache
from typing import Dict


class ElementaryMatrices:
    """
    Elementary matrices for the HDG method on the reference element [0, 1].

    The reference basis is the orthonormal Legendre family
    e_j(y) = sqrt(2j+1) P_j(2y - 1), j = 0..degree, built with SymPy so that
    every entry is exact before conversion to floating point.
    """

    def __init__(self, degree: int = 1):
        """
        Initialize and compute elementary matrices.

        Args:
            degree: Polynomial degree k of the local space (k >= 0)
        """
        if degree < 0:
            raise ValueError(f"Polynomial degree must be non-negative, got {degree}")
        self.degree = degree
        self.n_local = degree + 1
        self.matrices: Dict[str, np.ndarray] = {}
        self._build_matrices()

    @classmethod
    def for_degree(cls, degree: int) -> 'ElementaryMatrices':
        """Shared instance for a given degree (the symbolic build is not cheap)."""
        return _cached_matrices(degree)

    def _build_matrices(self):
        """Build all elementary matrices on reference element [0, 1]."""

        y = sp.Symbol('y')

        # Reference interval (0,1)
        x0, x1 = 0, 1

        base = sp.Matrix([sp.sqrt(2 * j + 1) * sp.legendre(j, 2 * y - 1)
                          for j in range(self.n_local)])
        normali = sp.Matrix([-1, 1])

        self.base = base
        self.normali = normali

        self._build_basic_matrices(y, base, normali, x0, x1)

    def _build_basic_matrices(self, y, base, normali, x0, x1):
        """Build the basic elementary matrices."""

        # Mass matrix: m_ij = ∫₀¹ eᵢ eⱼ dy
        M = sp.integrate(base * base.T, (y, x0, x1))
        M_numeric = np.array(M).astype(float)
        self.matrices['M'] = M_numeric
        self.matrices['IM'] = np.linalg.inv(M_numeric)

        # Derivative matrix: D_ij = ∫₀¹ eᵢ ∂ₓeⱼ dy
        D = sp.integrate(base * sp.diff(base, y).T, (y, x0, x1))
        self.matrices['D'] = np.array(D).astype(float)

        # Trace matrix: T_ij = eⱼ(xᵢ), row 0 at x₀, row 1 at x₁
        Trace = sp.Matrix.vstack(base.T.subs(y, x0), base.T.subs(y, x1))
        self.matrices['T'] = np.array(Trace).astype(float)

        # Boundary mass matrix: M^∂_ij = eᵢ(x₀)eⱼ(x₀) + eᵢ(x₁)eⱼ(x₁)
        Mb = base.subs(y, x0) * base.T.subs(y, x0) + base.subs(y, x1) * base.T.subs(y, x1)
        self.matrices['Mb'] = np.array(Mb).astype(float)

        # Normal matrix: Ñ_ij = eᵢ(x₁)eⱼ(x₁)n₁ + eᵢ(x₀)eⱼ(x₀)n₀
        Ntil = (base.subs(y, x0) * normali[0]) * base.T.subs(y, x0) + \
               (base.subs(y, x1) * normali[1]) * base.T.subs(y, x1)
        self.matrices['Ntil'] = np.array(Ntil).astype(float)

        self._test_matrices(D, Ntil, M)

    def _test_matrices(self, D, Ntil, M):
        """Identity checks kept for inspection by the test scripts."""

        # Integration by parts: D + D' - Ñ should be zero
        test1 = D + D.T - Ntil
        self.test_integration_by_parts = np.array(test1).astype(float)

        # Orthonormality: M - I should be zero
        test2 = M - sp.eye(self.n_local)
        self.test_orthonormality = np.array(test2).astype(float)

    def get_matrix(self, name: str) -> np.ndarray:
        """Get elementary matrix by name."""
        if name not in self.matrices:
            raise KeyError(f"Unknown elementary matrix '{name}'. "
                           f"Available: {self.get_all_matrix_names()}")
        return self.matrices[name]

    def get_all_matrix_names(self):
        """Get list of all available matrix names."""
        return list(self.matrices.keys())

    def print_matrices(self):
        """Print all matrices for debugging."""
        print(f"Elementary matrices, degree {self.degree}:")
        for name, matrix in self.matrices.items():
            print(f"\n{name}:")
            print(matrix)


@lru_cache(maxsize=None)
def _cached_matrices(degree: int) -> ElementaryMatrices:
    return ElementaryMatrices(degree)
