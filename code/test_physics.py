#!/usr/bin/env python3
"""
Test script for the physics-case library and the initial-condition profiles.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from hdg1d.physics.factory import PhysicsCaseFactory
from hdg1d.physics.initial_conditions import InitialConditionLibrary
from hdg1d.physics.physics_case import DiffusionModel, ReactionModel, zero_derivative


CASES = [
    ("linear", "none", {}),
    ("nonlinear", "decay", {"diffusion": {"diffusivity": [0.5, 2.0]}, "reaction": {"rate": 0.3}}),
    ("matrix", "fisher_kpp", {"diffusion": {"matrix": [[1.0, 0.3], [-0.2, 0.8]]}}),
    ("linear", "constant", {"reaction": {"strength": [1.0, -2.0]}}),
]


def finite_difference(f, var, x, q, u, wrt, eps=1e-7):
    """Central differences of f(var, ...) with respect to q or u, shape (n_var, npts)."""
    result = np.zeros_like(q)
    for w in range(q.shape[0]):
        plus_q, minus_q, plus_u, minus_u = q.copy(), q.copy(), u.copy(), u.copy()
        if wrt == "q":
            plus_q[w] += eps
            minus_q[w] -= eps
        else:
            plus_u[w] += eps
            minus_u[w] -= eps
        result[w] = (f(var, x, plus_q, plus_u, 0.0) - f(var, x, minus_q, minus_u, 0.0)) / (2 * eps)
    return result


@pytest.mark.parametrize("diffusion,reaction,parameters", CASES)
def test_derivatives_match_finite_differences(diffusion, reaction, parameters, rng):
    physics = PhysicsCaseFactory.create(diffusion, reaction, 2, parameters)
    print(f"Checking derivatives of {physics.name}")

    x = np.linspace(0.0, 1.0, 5)
    q = rng.normal(size=(2, 5))
    u = rng.uniform(0.1, 0.9, size=(2, 5))

    for var in range(2):
        assert physics.kappa(var, x, q, u, 0.0).shape == (5,)
        assert physics.source(var, x, q, u, 0.0).shape == (5,)
        for value, derivative, wrt in ((physics.kappa, physics.dkappa_dq, "q"),
                                       (physics.kappa, physics.dkappa_du, "u"),
                                       (physics.source, physics.dsource_dq, "q"),
                                       (physics.source, physics.dsource_du, "u")):
            expected = finite_difference(value, var, x, q, u, wrt)
            assert np.allclose(derivative(var, x, q, u, 0.0), expected, atol=1e-6)
    print(f"✓ {physics.name} derivatives verified")


def test_case_values():
    x = np.array([0.0, 0.5])
    q = np.array([[2.0, -1.0]])
    u = np.array([[0.5, 2.0]])

    nonlinear = PhysicsCaseFactory.create("nonlinear", "fisher_kpp", 1, {"reaction": {"rate": 2.0}})
    assert np.allclose(nonlinear.kappa(0, x, q, u, 0.0), [2.0 * 1.25, -5.0])
    assert np.allclose(nonlinear.source(0, x, q, u, 0.0), [0.5, -4.0])
    assert np.allclose(nonlinear.flux(x, q, u, 0.0), [[-2.5, 5.0]])

    decay = PhysicsCaseFactory.create("linear", "decay", 1, {"reaction": {"rate": 3.0}})
    assert np.allclose(decay.source(0, x, q, u, 0.0), [-1.5, -6.0])


def test_factory_errors():
    with pytest.raises(ValueError):
        PhysicsCaseFactory.create("quadratic")
    with pytest.raises(ValueError):
        PhysicsCaseFactory.create("linear", "explosion")
    with pytest.raises(ValueError):
        PhysicsCaseFactory.create("linear", "none", 1, {"diffusion": {"viscosity": 1.0}})
    with pytest.raises(ValueError):
        PhysicsCaseFactory.create("linear", "none", 1, {"convection": {}})
    with pytest.raises(ValueError):
        PhysicsCaseFactory.create("linear", "none", 3, {"diffusion": {"diffusivity": [1.0, 2.0]}})
    with pytest.raises(ValueError):
        PhysicsCaseFactory.create("matrix", "none", 2, {"diffusion": {"matrix": [[1.0]]}})


def test_register_custom_cases():
    def porous_medium(n_var, exponent=2.0):
        def kappa(var, x, q, u, t):
            return u[var] ** (exponent - 1) * q[var]

        def dkappa_dq(var, x, q, u, t):
            out = np.zeros_like(q)
            out[var] = u[var] ** (exponent - 1)
            return out

        def dkappa_du(var, x, q, u, t):
            out = np.zeros_like(u)
            out[var] = (exponent - 1) * u[var] ** (exponent - 2) * q[var]
            return out

        return DiffusionModel(kappa, dkappa_dq, dkappa_du)

    def sink(n_var):
        return ReactionModel(lambda var, x, q, u, t: -np.ones_like(x), zero_derivative, zero_derivative)

    PhysicsCaseFactory.register_diffusion_case("porous_medium", porous_medium)
    PhysicsCaseFactory.register_reaction_case("sink", sink)
    try:
        available = PhysicsCaseFactory.get_available_types()
        assert "porous_medium" in available["diffusion"]
        assert "sink" in available["reaction"]
        physics = PhysicsCaseFactory.create("porous_medium", "sink", 1, {"diffusion": {"exponent": 3.0}})
        assert physics.name == "porous_medium+sink"
        assert np.allclose(physics.kappa(0, np.zeros(1), np.array([[2.0]]), np.array([[3.0]]), 0.0), 18.0)
    finally:
        PhysicsCaseFactory._diffusion_cases.pop("porous_medium")
        PhysicsCaseFactory._reaction_cases.pop("sink")


@pytest.mark.parametrize("name,parameters", [
    ("gaussian", {"width": 0.2}),
    ("sine", {"modes": 2}),
    ("linear", {"left": 1.0, "right": 3.0}),
    ("constant", {"value": 0.25}),
])
def test_initial_profiles(name, parameters):
    physics = PhysicsCaseFactory.create("nonlinear", "none", 2, {"diffusion": {"diffusivity": 0.5}})
    library = InitialConditionLibrary(name, physics, -1.0, 2.0, parameters)

    x = np.linspace(-0.9, 1.9, 11)
    u0 = library.u_initial()
    q0 = library.q_initial()
    sigma0 = library.sigma_initial()
    assert len(u0) == len(q0) == len(sigma0) == 2

    eps = 1e-6
    assert np.allclose(q0[0](x), (u0[0](x + eps) - u0[0](x - eps)) / (2 * eps), atol=1e-6)
    assert np.allclose(sigma0[1](x), -0.5 * (1.0 + u0[1](x) ** 2) * q0[1](x))


def test_initial_profile_errors():
    physics = PhysicsCaseFactory.create("linear")
    with pytest.raises(ValueError):
        InitialConditionLibrary("step", physics, 0.0, 1.0)
    with pytest.raises(ValueError):
        InitialConditionLibrary("sine", physics, 0.0, 1.0, {"phase": 1.0})



def test_per_variable_initial_parameters():
    physics = PhysicsCaseFactory.create("linear", "none", 2)
    library = InitialConditionLibrary("sine", physics, 0.0, 1.0, {"height": [1.0, 0.5], "modes": 2})
    u0 = library.u_initial()
    x = np.linspace(0.0, 1.0, 9)
    assert np.allclose(u0[0](x), np.sin(2 * np.pi * x))
    assert np.allclose(u0[1](x), 0.5 * np.sin(2 * np.pi * x))

    with pytest.raises(ValueError, match="height"):
        InitialConditionLibrary("sine", physics, 0.0, 1.0, {"height": [1.0, 0.5, 0.2]})


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
