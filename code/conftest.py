"""
Shared fixtures for the HDG1D test scripts.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from hdg1d.core.boundary_conditions import BoundaryConditions, BoundaryType
from hdg1d.core.mesh import Grid
from hdg1d.core.system_solver import SystemSolver
from hdg1d.physics.factory import PhysicsCaseFactory


def make_solver(n_cells=4, degree=1, lower_type=BoundaryType.DIRICHLET, upper_type=BoundaryType.DIRICHLET,
                lower_value=0.0, upper_value=0.0, diffusion="linear", reaction="none", n_var=1,
                parameters=None, lower=0.0, upper=1.0, **kwargs):
    """SystemSolver on a uniform grid with constant boundary data."""
    grid = Grid(lower, upper, n_cells)
    bcs = BoundaryConditions.from_values(lower, upper, lower_type, upper_type, lower_value, upper_value)
    physics = PhysicsCaseFactory.create(diffusion, reaction, n_var, parameters)
    return SystemSolver(grid, degree, physics, bcs, **kwargs)


@pytest.fixture
def solver_factory():
    return make_solver


@pytest.fixture
def unit_grid():
    return Grid(0.0, 1.0, 4)


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def heat_with_source():
    """k = 1, 4 cells on [0, 1], Dirichlet 0/0, unit diffusivity, unit source."""
    return make_solver(n_cells=4, degree=1, reaction="constant",
                       parameters={"reaction": {"strength": 1.0}})
