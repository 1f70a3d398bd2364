#!/usr/bin/env python3
"""
Test script for boundary condition sets and their use in the global trace system.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from hdg1d.core.boundary_conditions import BoundaryConditions, BoundaryType
from hdg1d.core.errors import BoundaryEvaluationError


def test_boundary_type_names():
    assert BoundaryType.from_name("Dirichlet") is BoundaryType.DIRICHLET
    assert BoundaryType.from_name("VonNeumann") is BoundaryType.NEUMANN
    assert BoundaryType.from_name(" neumann ") is BoundaryType.NEUMANN
    with pytest.raises(ValueError):
        BoundaryType.from_name("Robin")


def test_membership_uses_exact_bounds():
    bcs = BoundaryConditions.from_values(0.0, 1.0, BoundaryType.DIRICHLET, BoundaryType.NEUMANN, 2.0, 0.5)
    assert bcs.is_dirichlet(0.0)
    assert not bcs.is_dirichlet(1.0)
    assert bcs.is_neumann(1.0)
    assert bcs.boundary_type(0.5) is None
    assert not bcs.is_dirichlet(1e-300)


def test_values_scalar_and_time_dependent():
    bcs = BoundaryConditions.from_values(0.0, 2.0, BoundaryType.DIRICHLET, BoundaryType.DIRICHLET,
                                         lower_value=lambda t: 1.0 + t, upper_value=-1.0)
    assert np.allclose(bcs.dirichlet_value(0.0, 0.5, n_var=3), [1.5, 1.5, 1.5])
    assert np.allclose(bcs.dirichlet_value(2.0, 7.0), [-1.0])


def test_vector_valued_function():
    def g_D(x, t):
        if x not in (0.0, 1.0):
            raise BoundaryEvaluationError(f"x = {x}")
        return np.array([x, 2.0 * x + t])

    bcs = BoundaryConditions(0.0, 1.0, BoundaryType.DIRICHLET, BoundaryType.DIRICHLET,
                             dirichlet_function=g_D)
    assert np.allclose(bcs.dirichlet_value(1.0, 1.0, n_var=2), [1.0, 3.0])
    with pytest.raises(ValueError):
        bcs.dirichlet_value(1.0, 1.0, n_var=3)


def test_evaluation_off_boundary_is_a_contract_error():
    print("=== Testing boundary function contract ===")
    bcs = BoundaryConditions.from_values(0.0, 1.0, BoundaryType.DIRICHLET, BoundaryType.NEUMANN)

    with pytest.raises(BoundaryEvaluationError):
        bcs.dirichlet_function(0.5, 0.0)
    with pytest.raises(BoundaryEvaluationError):
        bcs.neumann_function(0.0, 0.0)
    with pytest.raises(BoundaryEvaluationError):
        bcs.dirichlet_value(1.0, 0.0)
    with pytest.raises(BoundaryEvaluationError):
        bcs.neumann_value(0.3, 0.0)
    print("✓ Off-boundary evaluation raises BoundaryEvaluationError")


def test_missing_value_function():
    with pytest.raises(ValueError):
        BoundaryConditions(0.0, 1.0, BoundaryType.DIRICHLET, BoundaryType.NEUMANN,
                           dirichlet_function=lambda x, t: 0.0)


def test_trace_load_rebuilt_without_accumulation(solver_factory):
    """Repeated boundary updates must not accumulate Neumann data."""
    solver = solver_factory(n_cells=3, lower_type=BoundaryType.NEUMANN, upper_type=BoundaryType.DIRICHLET,
                            lower_value=0.7, upper_value=-2.0)
    trace_system = solver.trace_system
    for t in (0.0, 0.1, 0.2):
        trace_system.update_boundary_conditions(t)
    assert trace_system.L_global[0] == pytest.approx(0.7)
    assert trace_system.L_global[-1] == pytest.approx(-2.0)
    assert np.all(trace_system.L_global[1:-1] == 0.0)

    # Dirichlet node pinned by a unit diagonal
    H = trace_system.H_global_mat
    assert H[-1, -1] == 1.0
    assert np.all(H[-1, :-1] == 0.0)


def test_boundary_grid_mismatch(solver_factory):
    from hdg1d.core.mesh import Grid
    from hdg1d.core.system_solver import SystemSolver
    from hdg1d.physics.factory import PhysicsCaseFactory

    bcs = BoundaryConditions.from_values(0.0, 2.0, BoundaryType.DIRICHLET, BoundaryType.DIRICHLET)
    with pytest.raises(ValueError):
        SystemSolver(Grid(0.0, 1.0, 2), 1, PhysicsCaseFactory.create("linear"), bcs)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
