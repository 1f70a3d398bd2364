import numpy as np
from typing import Callable, Optional, Sequence, Union

from .basis import LegendreBasis
from .mesh import Grid


class DGApprox:
    """
    Discontinuous piecewise-polynomial field: per cell, per variable, the
    k+1 basis coefficients.

    The coefficient array has shape (n_cells, n_var, k+1). It may be a view
    into a larger state vector; in-place operations write through it.
    """

    def __init__(self, grid: Grid, basis: LegendreBasis, n_var: int = 1,
                 coeffs: Optional[np.ndarray] = None):
        self.grid = grid
        self.basis = basis
        self.n_var = n_var

        shape = (grid.n_cells, n_var, basis.n_local)
        if coeffs is None:
            self.coeffs = np.zeros(shape)
        else:
            if coeffs.shape != shape:
                raise ValueError(f"Coefficient array has shape {coeffs.shape}, expected {shape}")
            self.coeffs = coeffs

    @classmethod
    def from_functions(cls, grid: Grid, basis: LegendreBasis,
                       functions: Sequence[Callable]) -> 'DGApprox':
        """L2 projection of one vectorized function of x per variable."""
        approx = cls(grid, basis, len(functions))
        approx.project(functions)
        return approx

    def project(self, functions: Union[Callable, Sequence[Callable]]):
        """
        Overwrite the coefficients with the L2 projection of the given functions.

        Args:
            functions: One callable f(x) per variable (a single callable is
                       used for every variable)
        """
        if callable(functions):
            functions = [functions] * self.n_var
        if len(functions) != self.n_var:
            raise ValueError(f"Expected {self.n_var} functions, got {len(functions)}")

        inverse_mass = self.basis.elementary_matrices.get_matrix('IM')
        for cell, interval in enumerate(self.grid):
            for var, f in enumerate(functions):
                self.coeffs[cell, var] = inverse_mass @ self.basis.cell_product(interval, f)

    def zero(self):
        self.coeffs[...] = 0.0

    def scale(self, factor: float):
        self.coeffs *= factor

    def sum(self, a: 'DGApprox', b: 'DGApprox'):
        """Store a + b in this field."""
        self.coeffs[...] = a.coeffs + b.coeffs

    def copy(self) -> 'DGApprox':
        return DGApprox(self.grid, self.basis, self.n_var, self.coeffs.copy())

    def __add__(self, other: 'DGApprox') -> 'DGApprox':
        return DGApprox(self.grid, self.basis, self.n_var, self.coeffs + other.coeffs)

    def __mul__(self, factor: float) -> 'DGApprox':
        return DGApprox(self.grid, self.basis, self.n_var, self.coeffs * factor)

    __rmul__ = __mul__

    def evaluate(self, x, var: int = 0) -> np.ndarray:
        """
        Point values of one variable. Points outside the domain give NaN.

        Args:
            x: Scalar or array of positions
            var: Variable index

        Returns:
            Array with the shape of x
        """
        x = np.asarray(x, dtype=float)
        flat = np.atleast_1d(x).ravel()
        cells = self.grid.locate(flat)
        values = np.full(flat.shape, np.nan)
        for cell in np.unique(cells[cells >= 0]):
            mask = cells == cell
            values[mask] = self.basis.evaluate(self.grid[cell], self.coeffs[cell, var], flat[mask])
        return values.reshape(x.shape)

    def __call__(self, x, var: int = 0):
        return self.evaluate(x, var)

    def cell_values(self, cell: int, x) -> np.ndarray:
        """Values of all variables at points of one cell, shape (n_var, npts)."""
        return self.basis.evaluate(self.grid[cell], self.coeffs[cell], x)

    def integral(self, var: Optional[int] = None) -> Union[float, np.ndarray]:
        """
        ∫ u over the domain. Only phi_0 has non-zero mean: ∫ phi_0 = sqrt(h).
        """
        h = np.diff(self.grid.nodes)
        totals = np.sqrt(h) @ self.coeffs[:, :, 0]
        return totals if var is None else float(totals[var])

    def __repr__(self):
        return f"DGApprox(n_cells={self.grid.n_cells}, n_var={self.n_var}, degree={self.basis.degree})"
