"""
Per-cell HDG matrices of the mixed formulation

    q - u_x = 0,   sigma + kappa(q, u) = 0,   u_t + (sigma + c u)_x = f + S

with numerical flux sigma_hat + c u_hat = sigma + c lambda + tau (u - lambda) n
on each cell boundary (outward normal n = -1 at x_l, +1 at x_u).
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence, Tuple, Union

from .basis import LegendreBasis
from .boundary_conditions import BoundaryConditions
from .mesh import Grid, Interval

logger = logging.getLogger(__name__)

Coefficient = Union[float, Callable[[np.ndarray], np.ndarray]]


@dataclass
class CellMatrices:
    """
    Constant blocks of one cell, block diagonal in the variable index.

    Shapes with n = k+1, N = n_var*n: A, B, D, X are (N, N); C and G are
    (2 n_var, N); E is (N, 2 n_var); H is (2 n_var, 2 n_var). Trace
    rows/columns are ordered 2*v + e with e = 0 at x_l and 1 at x_u.
    """

    interval: Interval
    A: np.ndarray
    B: np.ndarray
    D: np.ndarray
    C: np.ndarray
    E: np.ndarray
    G: np.ndarray
    H: np.ndarray
    X: np.ndarray

    @property
    def N(self) -> int:
        return self.A.shape[0]

    @property
    def M(self) -> np.ndarray:
        """
        Linear part of the 3N local operator acting on [sigma | q | u]:

            [[ 0, -A, -B^T],
             [ B,  0,  D  ],
             [ A,  0,  0  ]]
        """
        N = self.N
        M = np.zeros((3 * N, 3 * N))
        M[:N, N:2 * N] = -self.A
        M[:N, 2 * N:] = -self.B.T
        M[N:2 * N, :N] = self.B
        M[N:2 * N, 2 * N:] = self.D
        M[2 * N:, :N] = self.A
        return M

    @property
    def CE(self) -> np.ndarray:
        """[C^T; E; 0], coupling of the local rows to the trace."""
        return np.vstack([self.C.T, self.E, np.zeros((self.N, self.C.shape[0]))])

    @property
    def CG(self) -> np.ndarray:
        """[C, 0, G], coupling of the trace rows to the local unknowns."""
        return np.hstack([self.C, np.zeros_like(self.C), self.G])


def as_function(value: Coefficient) -> Callable[[np.ndarray], np.ndarray]:
    if callable(value):
        return value
    constant = float(value)
    return lambda x: np.full_like(np.asarray(x, dtype=float), constant)


class LocalAssembler:
    """
    Builds CellMatrices for every cell and the time-dependent local loads.
    """

    def __init__(self,
                 grid: Grid,
                 basis: LegendreBasis,
                 n_var: int,
                 boundary_conditions: BoundaryConditions,
                 tau: Coefficient = 1.0,
                 convection: Coefficient = 0.0,
                 forcing: Optional[Sequence[Callable]] = None):
        """
        Args:
            grid: Spatial mesh
            basis: Local polynomial basis
            n_var: Number of variables
            boundary_conditions: Boundary condition set
            tau: Stabilization, constant or function of x
            convection: Convection velocity c, constant or function of x
            forcing: Optional f_v(x, t), one per variable
        """
        self.grid = grid
        self.basis = basis
        self.n_var = n_var
        self.boundary_conditions = boundary_conditions
        self.tau = as_function(tau)
        self.convection = as_function(convection)

        if forcing is not None and len(forcing) != n_var:
            raise ValueError(f"Expected {n_var} forcing functions, got {len(forcing)}")
        self.forcing = forcing

    def _point(self, f: Callable, x: float) -> float:
        return float(np.asarray(f(np.array([x]))).reshape(-1)[0])

    def assemble(self) -> List[CellMatrices]:
        matrices = [self.assemble_cell(interval) for interval in self.grid]
        logger.debug("Assembled local matrices for %d cells (degree %d, %d variables)",
                     len(matrices), self.basis.degree, self.n_var)
        return matrices

    def assemble_cell(self, interval: Interval) -> CellMatrices:
        """Blocks of a single cell."""
        n = self.basis.n_local
        phi_l, phi_u = self.basis.endpoint_values(interval)
        c_l, c_u = self._point(self.convection, interval.x_l), self._point(self.convection, interval.x_u)
        tau_l, tau_u = self._point(self.tau, interval.x_l), self._point(self.tau, interval.x_u)

        mass = self.basis.mass_matrix(interval)
        B = self.basis.derivative_matrix(interval)
        W = self.basis.derivative_matrix(interval, self.convection)
        D = -W.T + tau_l * np.outer(phi_l, phi_l) + tau_u * np.outer(phi_u, phi_u)

        C = np.vstack([-phi_l, phi_u])
        E = np.column_stack([phi_l * (-c_l - tau_l), phi_u * (c_u - tau_u)])
        G = np.vstack([tau_l * phi_l, tau_u * phi_u])
        H = np.diag([-c_l - tau_l, c_u - tau_u])

        # Dirichlet ends are eliminated from the trace coupling
        for e, x in enumerate((interval.x_l, interval.x_u)):
            if self.boundary_conditions.is_dirichlet(x):
                C[e, :] = 0.0
                E[:, e] = 0.0
                G[e, :] = 0.0
                H[e, e] = 0.0

        identity = np.eye(self.n_var)
        return CellMatrices(
            interval=interval,
            A=np.kron(identity, mass),
            B=np.kron(identity, B),
            D=np.kron(identity, D),
            C=np.kron(identity, C),
            E=np.kron(identity, E),
            G=np.kron(identity, G),
            H=np.kron(identity, H),
            X=np.kron(identity, mass),
        )

    def load_vector(self, interval: Interval, t: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        Local load (RF_sigma, RF_u) at time t, each of shape (n_var, k+1).

        RF_u carries the forcing; at Dirichlet ends both parts carry the
        boundary data that was eliminated from C and E.
        """
        n = self.basis.n_local
        rf_sigma = np.zeros((self.n_var, n))
        rf_u = np.zeros((self.n_var, n))

        if self.forcing is not None:
            for var, f in enumerate(self.forcing):
                rf_u[var] = self.basis.cell_product(interval, lambda x, f=f: f(x, t))

        phi_l, phi_u = self.basis.endpoint_values(interval)
        for x, phi, normal in ((interval.x_l, phi_l, -1.0), (interval.x_u, phi_u, 1.0)):
            if not self.boundary_conditions.is_dirichlet(x):
                continue
            g = self.boundary_conditions.dirichlet_value(x, t, self.n_var)
            c = self._point(self.convection, x)
            tau = self._point(self.tau, x)
            rf_sigma -= normal * np.outer(g, phi)
            rf_u -= (c * normal - tau) * np.outer(g, phi)

        return rf_sigma, rf_u

    def load_vectors(self, t: float) -> np.ndarray:
        """Loads of all cells, shape (n_cells, 2, n_var, k+1)."""
        return np.array([self.load_vector(interval, t) for interval in self.grid])
