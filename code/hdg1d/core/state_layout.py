import numpy as np
from dataclasses import dataclass

SIGMA, Q, U = 0, 1, 2


@dataclass(frozen=True)
class StateLayout:
    """
    Layout of the global state vector.

    Per cell a contiguous block [sigma | q | u], each variable-major with
    k+1 coefficients, followed by the trace block of n_var*(n_cells+1)
    values, variable-major. The state, its time derivative, the residual,
    Newton right-hand sides and corrections all share this layout; in the
    residual the sigma/q/u slots hold the flux, balance and constitutive
    equations respectively.

    Accessors return numpy views when y is a contiguous 1D array.
    """

    n_var: int
    n_cells: int
    degree: int

    @property
    def n_local(self) -> int:
        return self.degree + 1

    @property
    def block_size(self) -> int:
        """Coefficients of one field in one cell, all variables."""
        return self.n_var * self.n_local

    @property
    def cell_size(self) -> int:
        return 3 * self.block_size

    @property
    def trace_offset(self) -> int:
        return self.n_cells * self.cell_size

    @property
    def n_trace(self) -> int:
        return self.n_var * (self.n_cells + 1)

    @property
    def size(self) -> int:
        return self.trace_offset + self.n_trace

    def new_vector(self) -> np.ndarray:
        return np.zeros(self.size)

    def _check(self, y: np.ndarray):
        if y.shape != (self.size,):
            raise ValueError(f"State vector has shape {y.shape}, expected ({self.size},)")

    def cell_fields(self, y: np.ndarray) -> np.ndarray:
        """View of shape (n_cells, 3, n_var, k+1)."""
        self._check(y)
        return y[:self.trace_offset].reshape(self.n_cells, 3, self.n_var, self.n_local)

    def cell_blocks(self, y: np.ndarray) -> np.ndarray:
        """View of shape (n_cells, 3*n_var*(k+1)), one local vector per cell."""
        self._check(y)
        return y[:self.trace_offset].reshape(self.n_cells, self.cell_size)

    def sigma(self, y: np.ndarray) -> np.ndarray:
        return self.cell_fields(y)[:, SIGMA]

    def q(self, y: np.ndarray) -> np.ndarray:
        return self.cell_fields(y)[:, Q]

    def u(self, y: np.ndarray) -> np.ndarray:
        return self.cell_fields(y)[:, U]

    def trace(self, y: np.ndarray) -> np.ndarray:
        """View of shape (n_var, n_cells+1)."""
        self._check(y)
        return y[self.trace_offset:].reshape(self.n_var, self.n_cells + 1)

    def trace_indices(self, cell: int) -> np.ndarray:
        """
        Global trace indices seen by a cell, ordered [v0 lower, v0 upper, v1 lower, ...].
        Local index 2*v + e maps to v*(n_cells+1) + cell + e.
        """
        var = np.repeat(np.arange(self.n_var), 2)
        end = np.tile([0, 1], self.n_var)
        return var * (self.n_cells + 1) + cell + end

    def local_trace(self, trace: np.ndarray, cell: int) -> np.ndarray:
        """Local trace vector of a cell from a flat trace block."""
        return np.asarray(trace).reshape(-1)[self.trace_indices(cell)]

    def differential_mask(self) -> np.ndarray:
        """True on the u slots, the only components whose time derivative enters the residual."""
        mask = np.zeros(self.size, dtype=bool)
        self.cell_fields(mask)[:, U] = True
        return mask

    def pack(self, sigma: np.ndarray, q: np.ndarray, u: np.ndarray, trace: np.ndarray) -> np.ndarray:
        """Assemble a state vector from field arrays of shape (n_cells, n_var, k+1) and a trace block."""
        y = self.new_vector()
        fields = self.cell_fields(y)
        fields[:, SIGMA] = sigma
        fields[:, Q] = q
        fields[:, U] = u
        self.trace(y)[...] = np.asarray(trace).reshape(self.n_var, self.n_cells + 1)
        return y
