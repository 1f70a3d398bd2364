#!/usr/bin/env python3
"""
Test script for the TOML configuration, the solver setup and the command line run.
"""

import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

import numpy as np
import pytest

from hdg1d import cli
from hdg1d.core.boundary_conditions import BoundaryType
from hdg1d.core.errors import ConfigurationError, IntegrationError, SolveFailedError
from hdg1d.io.config import load_config, parse_config
from hdg1d.io.snapshot import read_snapshots
from hdg1d.setup_solver import SolverSetup, quick_setup

BASE_CONFIG = """
[configuration]
Polynomial_degree = 1
Grid_size = 8
Number_of_channels = 1
Lower_boundary = 0.0
Upper_boundary = 1.0
LB_Type = "Dirichlet"
UB_Type = "VonNeumann"
Initial_condition = "sine"
Diffusion_case = "linear"
Reaction_case = "decay"
delta_t = 0.05
t_final = 0.1
Output_points = 21

[parameters.reaction]
rate = 0.5

[parameters.initial_condition]
height = 2.0
"""


def base_document():
    return {"configuration": {
        "Polynomial_degree": 2, "Grid_size": 4, "Number_of_channels": 2,
        "Lower_boundary": -1, "Upper_boundary": 1, "LB_Type": "Dirichlet", "UB_Type": "Dirichlet",
        "Initial_condition": "gaussian", "Diffusion_case": "nonlinear", "Reaction_case": "none",
        "delta_t": 0.01, "t_final": 1,
    }}


def write_config(tmp_path, text=BASE_CONFIG, name="run.toml"):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_parse_defaults():
    config = parse_config(base_document())
    assert config.polynomial_degree == 2
    assert config.n_var == 2
    assert config.lower_boundary == -1.0 and isinstance(config.lower_boundary, float)
    assert config.lower_type is BoundaryType.DIRICHLET
    assert config.relative_tolerance == 1e-5
    assert config.absolute_tolerance == 1e-5
    assert config.stabilization == 1.0
    assert config.convection == 0.0
    assert config.output_points == 301
    assert config.parameters == {}


@pytest.mark.parametrize("key,value", [
    ("Polynomial_degree", -1),
    ("Polynomial_degree", 1.5),
    ("Grid_size", 0),
    ("Number_of_channels", True),
    ("Upper_boundary", -2.0),
    ("LB_Type", "Robin"),
    ("Initial_condition", "step"),
    ("Diffusion_case", "quadratic"),
    ("Reaction_case", "explosion"),
    ("delta_t", 0.0),
    ("t_final", "soon"),
    ("Relative_tolerance", -1e-3),
])
def test_invalid_values(key, value):
    document = base_document()
    document["configuration"][key] = value
    with pytest.raises(ConfigurationError):
        parse_config(document)


@pytest.mark.parametrize("key", ["Polynomial_degree", "Grid_size", "LB_Type", "Diffusion_case", "t_final"])
def test_missing_keys(key):
    document = base_document()
    del document["configuration"][key]
    with pytest.raises(ConfigurationError, match=key):
        parse_config(document)


def test_invalid_parameters():
    document = base_document()
    document["parameters"] = {"diffusion": {"viscosity": 1.0}}
    with pytest.raises(ConfigurationError):
        parse_config(document)

    document["parameters"] = {"boundary": {}}
    with pytest.raises(ConfigurationError):
        parse_config(document)

    with pytest.raises(ConfigurationError):
        parse_config({"settings": {}})


def test_per_variable_boundary_values():
    document = base_document()
    document["configuration"].update(LB_Value=[1, -0.5], UB_Value=2)
    config = parse_config(document)
    assert config.lower_value == (1.0, -0.5)
    assert config.upper_value == 2.0

    for bad in ([1.0], [1.0, 2.0, 3.0], [1.0, "a"], [True, 0.0]):
        document["configuration"]["LB_Value"] = bad
        with pytest.raises(ConfigurationError, match="LB_Value"):
            parse_config(document)


@pytest.mark.parametrize("side,convection", [("UB_Type", 1.0), ("UB_Type", 2.5), ("LB_Type", -1.0)])
def test_neumann_end_requires_positive_trace_diagonal(side, convection):
    document = base_document()
    document["configuration"].update({side: "VonNeumann", "Convection": convection})
    with pytest.raises(ConfigurationError, match="Stabilization"):
        parse_config(document)

    # inflow at a Neumann end, or a larger stabilization, is fine
    document["configuration"]["Convection"] = -convection
    parse_config(document)
    document["configuration"].update(Convection=convection, Stabilization=abs(convection) + 0.5)
    assert parse_config(document).stabilization == abs(convection) + 0.5


def test_load_config_file(tmp_path):
    config = load_config(write_config(tmp_path))
    assert config.upper_type is BoundaryType.NEUMANN
    assert config.parameters["reaction"] == {"rate": 0.5}

    with pytest.raises(ConfigurationError):
        load_config(tmp_path / "missing.toml")
    with pytest.raises(ConfigurationError):
        load_config(write_config(tmp_path, "[configuration\nGrid_size = ", "broken.toml"))


def test_solver_setup_from_config(tmp_path):
    setup = SolverSetup.from_file(write_config(tmp_path))
    assert setup.physics.name == "linear+decay"
    assert setup.solver.layout.size == 8 * 6 + 9

    y, ydot = setup.create_initial_conditions()
    assert np.max(np.abs(setup.solver.residual(0.0, y, ydot))) < 1e-9
    _, _, u = setup.solver.fields(y)
    assert u(0.5) == pytest.approx(2.0, abs=5e-2)

    info = setup.get_problem_info()
    assert info['n_cells'] == 8
    assert info['time_discretization'] == {'dt': 0.05, 'T': 0.1}


@pytest.mark.parametrize("module", [
    "hdg1d.problems.heat_source_dirichlet",
    "hdg1d.problems.fisher_kpp_front",
    "hdg1d.problems.coupled_cross_diffusion",
])
def test_problem_modules(module):
    setup = quick_setup(module)
    y, ydot = setup.create_initial_conditions()
    assert np.all(np.isfinite(y))
    assert np.max(np.abs(setup.solver.residual(0.0, y, ydot))) < 1e-8


def test_coupled_problem_per_channel_data():
    setup = quick_setup("hdg1d.problems.coupled_cross_diffusion")
    y, _ = setup.create_initial_conditions()
    assert np.allclose(setup.solver.trace(y)[:, 0], [0.0, 0.25])
    _, _, u = setup.solver.fields(y)
    # channel 1 starts from 0.5 sin(2 pi x)
    assert u(0.25, 1) == pytest.approx(0.5, abs=1e-2)


def test_unknown_problem_module():
    with pytest.raises(ImportError):
        quick_setup("hdg1d.problems.does_not_exist")


def test_cli_run_writes_snapshots(tmp_path):
    print("=== CLI smoke run ===")
    config = write_config(tmp_path)
    output_dir = tmp_path / "out"
    assert cli.main([str(config), "--output-dir", str(output_dir)]) == 0

    snapshots = read_snapshots(output_dir / "u_t.plot")
    assert [s.time for s in snapshots] == pytest.approx([0.0, 0.05, 0.1])
    assert snapshots[0].data.shape == (21, 7)
    # sample points exclude the upper bound
    assert snapshots[0].column("x")[-1] == pytest.approx(20.0 / 21.0)
    # decay and diffusion reduce the profile
    assert np.max(snapshots[-1].column("u")) < np.max(snapshots[0].column("u"))
    print(f"✓ {len(snapshots)} snapshots written")


def test_cli_two_channels(tmp_path):
    text = BASE_CONFIG.replace("Number_of_channels = 1", "Number_of_channels = 2")
    output_dir = tmp_path / "out"
    assert cli.main([str(write_config(tmp_path, text)), "--output-dir", str(output_dir), "-v"]) == 0
    assert (output_dir / "u_t.plot").exists()
    assert len(read_snapshots(output_dir / "u_t_1.plot")) == 3


def test_cli_configuration_error(tmp_path):
    text = BASE_CONFIG.replace('LB_Type = "Dirichlet"', 'LB_Type = "Periodic"')
    assert cli.main([str(write_config(tmp_path, text)), "--output-dir", str(tmp_path)]) == 2
    assert not (tmp_path / "u_t.plot").exists()


def test_cli_rejects_unstable_neumann_stabilization(tmp_path):
    text = BASE_CONFIG.replace("Output_points = 21", "Output_points = 21\nConvection = 1.0")
    assert cli.main([str(write_config(tmp_path, text)), "--output-dir", str(tmp_path)]) == 2
    assert not (tmp_path / "u_t.plot").exists()


def test_cli_reports_solve_failure(tmp_path, monkeypatch):
    def singular(self, consistent=True):
        raise SolveFailedError("mass block of cell 0 is singular")

    monkeypatch.setattr(cli.SolverSetup, "create_initial_conditions", singular)
    assert cli.main([str(write_config(tmp_path)), "--output-dir", str(tmp_path / "out")]) == 1


def test_cli_integration_error_writes_diagnostic_snapshot(tmp_path, monkeypatch):
    def failing_integrate(self, y0, ydot0, t0, t_final, dt, output_interval=None, callback=None):
        callback(0.05, y0, ydot0)
        raise IntegrationError("step size too small", time=0.05)

    monkeypatch.setattr(cli.BackwardEulerIntegrator, "integrate", failing_integrate)
    output_dir = tmp_path / "out"
    assert cli.main([str(write_config(tmp_path)), "--output-dir", str(output_dir)]) == 1

    # initial block, the accepted output, then the diagnostic copy of the last state
    times = [s.time for s in read_snapshots(output_dir / "u_t.plot")]
    assert times == pytest.approx([0.0, 0.05, 0.05])


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
