#!/usr/bin/env python3
"""
Test script for the local (cell) matrices and the global trace operator.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from hdg1d.core.boundary_conditions import BoundaryType
from hdg1d.core.errors import SolveFailedError


def test_block_shapes_and_structure(solver_factory):
    print("=== Testing cell matrices ===")
    solver = solver_factory(n_cells=3, degree=2, n_var=2, diffusion="matrix",
                            lower_type=BoundaryType.NEUMANN, upper_type=BoundaryType.NEUMANN)
    n, N = 3, 6
    for m in solver.cell_matrices:
        assert m.A.shape == m.B.shape == m.D.shape == m.X.shape == (N, N)
        assert m.C.shape == m.G.shape == (4, N)
        assert m.E.shape == (N, 4)
        assert m.H.shape == (4, 4)
        assert m.M.shape == (3 * N, 3 * N)
        assert m.CE.shape == (3 * N, 4)
        assert m.CG.shape == (4, 3 * N)
        # block diagonal in the variable index
        assert np.all(m.B[:n, n:] == 0.0)
        assert np.all(m.C[:2, n:] == 0.0)
        assert np.allclose(m.A, np.eye(N))
    print("✓ Block shapes and variable structure verified")


def test_integration_by_parts_on_cells(solver_factory):
    """B + B^T = phi(x_u) phi(x_u)^T - phi(x_l) phi(x_l)^T."""
    solver = solver_factory(n_cells=2, degree=3, lower_type=BoundaryType.NEUMANN,
                            upper_type=BoundaryType.NEUMANN)
    for m in solver.cell_matrices:
        phi_l, phi_u = solver.basis.endpoint_values(m.interval)
        assert np.allclose(m.B + m.B.T, np.outer(phi_u, phi_u) - np.outer(phi_l, phi_l))
        # C rows are -phi(x_l) and phi(x_u)
        assert np.allclose(m.C, np.vstack([-phi_l, phi_u]))


def test_convection_and_stabilization_blocks(solver_factory):
    c, tau = 0.7, 2.0
    solver = solver_factory(n_cells=2, degree=1, convection=c, tau=tau,
                            lower_type=BoundaryType.NEUMANN, upper_type=BoundaryType.NEUMANN)
    m = solver.cell_matrices[0]
    phi_l, phi_u = solver.basis.endpoint_values(m.interval)

    expected_D = -c * m.B.T + tau * (np.outer(phi_l, phi_l) + np.outer(phi_u, phi_u))
    assert np.allclose(m.D, expected_D)
    assert np.allclose(m.E, np.column_stack([phi_l * (-c - tau), phi_u * (c - tau)]))
    assert np.allclose(m.G, tau * np.vstack([phi_l, phi_u]))
    assert np.allclose(np.diag(m.H), [-c - tau, c - tau])


def test_dirichlet_end_is_eliminated(solver_factory):
    solver = solver_factory(n_cells=3, lower_type=BoundaryType.DIRICHLET, upper_type=BoundaryType.NEUMANN,
                            lower_value=2.0)
    first, middle = solver.cell_matrices[0], solver.cell_matrices[1]
    assert np.all(first.C[0] == 0.0) and np.all(first.E[:, 0] == 0.0)
    assert np.all(first.G[0] == 0.0) and first.H[0, 0] == 0.0
    assert np.any(middle.C[0] != 0.0)

    rf_sigma, rf_u = solver.local_assembler.load_vector(first.interval, 0.0)
    phi_l, _ = solver.basis.endpoint_values(first.interval)
    assert np.allclose(rf_sigma[0], 2.0 * phi_l)
    assert np.allclose(rf_u[0], 2.0 * phi_l * 1.0)  # -(c n - tau) g with c = 0, tau = 1

    rf_sigma, rf_u = solver.local_assembler.load_vector(middle.interval, 0.0)
    assert np.all(rf_sigma == 0.0) and np.all(rf_u == 0.0)


def test_forcing_load(solver_factory):
    solver = solver_factory(n_cells=2, degree=2, forcing=[lambda x, t: t * np.ones_like(x)],
                            lower_type=BoundaryType.NEUMANN, upper_type=BoundaryType.NEUMANN)
    interval = solver.grid[1]
    _, rf_u = solver.local_assembler.load_vector(interval, 3.0)
    assert np.allclose(rf_u[0], [3.0 * np.sqrt(interval.h), 0.0, 0.0])


def test_global_trace_operator_symmetric_with_neumann(solver_factory):
    for convection in (0.0, 0.5):
        solver = solver_factory(n_cells=5, degree=2, n_var=2, convection=convection,
                                lower_type=BoundaryType.NEUMANN, upper_type=BoundaryType.NEUMANN)
        H = solver.trace_system.H_global_mat
        assert H.shape == (12, 12)
        assert np.allclose(H, H.T)
        # interior nodes collect -2 tau from their two cells
        assert np.allclose(np.diag(H)[1:5], -2.0)
    print("✓ Global trace operator symmetric for all-Neumann boundaries")


def test_singular_trace_operator_raises(solver_factory):
    """With c = -tau the lower Neumann node has a zero diagonal."""
    with pytest.raises(SolveFailedError):
        solver_factory(n_cells=2, convection=-1.0, tau=1.0,
                       lower_type=BoundaryType.NEUMANN, upper_type=BoundaryType.NEUMANN)


def test_implied_trace_of_smooth_field(solver_factory):
    """Interior traces of a linear field equal its nodal values."""
    solver = solver_factory(n_cells=4, degree=1, lower_type=BoundaryType.DIRICHLET,
                            upper_type=BoundaryType.DIRICHLET, lower_value=1.0, upper_value=3.0)
    y = solver.layout.new_vector()
    sigma, q, u = solver.fields(y)
    u.project(lambda x: 1.0 + 2.0 * x)
    sigma.project(lambda x: -2.0 * np.ones_like(x))

    solver.trace_system.update_boundary_conditions(0.0)
    trace = solver.trace_system.implied_trace(solver.layout.sigma(y), solver.layout.u(y))
    assert np.allclose(trace, 1.0 + 2.0 * solver.grid.nodes)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
