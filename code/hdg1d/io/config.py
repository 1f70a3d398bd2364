"""
TOML configuration loader.

A configuration file holds a [configuration] table with the run settings
and an optional [parameters] table forwarded to the physics and
initial-condition builders:

    [configuration]
    Polynomial_degree = 1
    Grid_size = 20
    Number_of_channels = 1
    Lower_boundary = 0.0
    Upper_boundary = 1.0
    LB_Type = "Dirichlet"
    UB_Type = "VonNeumann"
    Initial_condition = "gaussian"
    Diffusion_case = "linear"
    Reaction_case = "none"
    delta_t = 0.01
    t_final = 0.1

    [parameters.diffusion]
    diffusivity = 1.0

LB_Value and UB_Value take one number for all variables or a list with one
number per variable. At a Neumann end Stabilization must exceed Convection
times the outward normal.
"""

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from ..core.boundary_conditions import BoundaryType
from ..core.errors import ConfigurationError
from ..physics.factory import PhysicsCaseFactory
from ..physics.initial_conditions import InitialConditionLibrary

logger = logging.getLogger(__name__)

_NUMBER = (int, float)

PARAMETER_GROUPS = ("diffusion", "reaction", "initial_condition")


@dataclass(frozen=True)
class SolverConfig:
    """Validated run configuration."""

    polynomial_degree: int
    grid_size: int
    n_var: int
    lower_boundary: float
    upper_boundary: float
    lower_type: BoundaryType
    upper_type: BoundaryType
    initial_condition: str
    diffusion_case: str
    reaction_case: str
    delta_t: float
    t_final: float
    relative_tolerance: float = 1e-5
    absolute_tolerance: float = 1e-5
    lower_value: Union[float, Tuple[float, ...]] = 0.0
    upper_value: Union[float, Tuple[float, ...]] = 0.0
    stabilization: float = 1.0
    convection: float = 0.0
    output_points: int = 301
    parameters: Dict[str, Any] = field(default_factory=dict)


def _get(table: dict, key: str, kinds, default=None, required: bool = True):
    if key not in table:
        if required:
            raise ConfigurationError(f"Missing required configuration key '{key}'")
        return default
    value = table[key]
    # bool is an int subclass and never a valid setting here
    if isinstance(value, bool) or not isinstance(value, kinds):
        raise ConfigurationError(f"Configuration key '{key}' has invalid value {value!r}")
    return value


def _positive(key: str, value):
    if value <= 0:
        raise ConfigurationError(f"Configuration key '{key}' must be positive, got {value}")
    return value


def _boundary_value(table: dict, key: str, n_var: int) -> Union[float, Tuple[float, ...]]:
    """A number for all variables, or a list with one number per variable."""
    value = table.get(key, 0.0)
    if isinstance(value, list):
        if len(value) != n_var or any(isinstance(v, bool) or not isinstance(v, _NUMBER) for v in value):
            raise ConfigurationError(f"Configuration key '{key}' must be a number or a list of "
                                     f"{n_var} numbers, got {value!r}")
        return tuple(float(v) for v in value)
    return float(_get(table, key, _NUMBER, 0.0, required=False))


def _check_neumann_stabilization(lower_type: BoundaryType, upper_type: BoundaryType,
                                 tau: float, c: float):
    """
    At a Neumann end the trace row has diagonal c n - tau, which must stay
    negative for the trace operator to be invertible.
    """
    for name, side_type, normal in (("lower", lower_type, -1.0), ("upper", upper_type, 1.0)):
        if side_type == BoundaryType.NEUMANN and tau - c * normal <= 0.0:
            raise ConfigurationError(
                f"Stabilization ({tau}) must exceed Convection times the outward normal "
                f"({c * normal}) at the {name} Neumann boundary")


def parse_config(document: dict) -> SolverConfig:
    """
    Validate a parsed TOML document.

    Raises:
        ConfigurationError: missing keys, wrong types or inconsistent values
    """
    if "configuration" not in document or not isinstance(document["configuration"], dict):
        raise ConfigurationError("Configuration file has no [configuration] table")
    table = document["configuration"]
    parameters = document.get("parameters", {})
    if not isinstance(parameters, dict):
        raise ConfigurationError("[parameters] must be a table")

    degree = _get(table, "Polynomial_degree", int)
    if degree < 0:
        raise ConfigurationError(f"Polynomial_degree must be non-negative, got {degree}")
    grid_size = _positive("Grid_size", _get(table, "Grid_size", int))
    n_var = _positive("Number_of_channels", _get(table, "Number_of_channels", int))

    lower = float(_get(table, "Lower_boundary", _NUMBER))
    upper = float(_get(table, "Upper_boundary", _NUMBER))
    if not lower < upper:
        raise ConfigurationError(f"Lower_boundary ({lower}) must be below Upper_boundary ({upper})")

    try:
        lower_type = BoundaryType.from_name(_get(table, "LB_Type", str))
        upper_type = BoundaryType.from_name(_get(table, "UB_Type", str))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc

    initial_condition = _get(table, "Initial_condition", str)
    if initial_condition not in InitialConditionLibrary.get_available_types():
        raise ConfigurationError(f"Unknown Initial_condition '{initial_condition}'. "
                                 f"Available: {InitialConditionLibrary.get_available_types()}")

    available = PhysicsCaseFactory.get_available_types()
    diffusion_case = _get(table, "Diffusion_case", str)
    if diffusion_case not in available["diffusion"]:
        raise ConfigurationError(f"Unknown Diffusion_case '{diffusion_case}'. "
                                 f"Available: {available['diffusion']}")
    reaction_case = _get(table, "Reaction_case", str)
    if reaction_case not in available["reaction"]:
        raise ConfigurationError(f"Unknown Reaction_case '{reaction_case}'. "
                                 f"Available: {available['reaction']}")

    delta_t = float(_positive("delta_t", _get(table, "delta_t", _NUMBER)))
    t_final = float(_positive("t_final", _get(table, "t_final", _NUMBER)))

    config = SolverConfig(
        polynomial_degree=degree,
        grid_size=grid_size,
        n_var=n_var,
        lower_boundary=lower,
        upper_boundary=upper,
        lower_type=lower_type,
        upper_type=upper_type,
        initial_condition=initial_condition,
        diffusion_case=diffusion_case,
        reaction_case=reaction_case,
        delta_t=delta_t,
        t_final=t_final,
        relative_tolerance=float(_positive("Relative_tolerance", _get(
            table, "Relative_tolerance", _NUMBER, 1e-5, required=False))),
        absolute_tolerance=float(_positive("Absolute_tolerance", _get(
            table, "Absolute_tolerance", _NUMBER, 1e-5, required=False))),
        lower_value=_boundary_value(table, "LB_Value", n_var),
        upper_value=_boundary_value(table, "UB_Value", n_var),
        stabilization=float(_positive("Stabilization", _get(
            table, "Stabilization", _NUMBER, 1.0, required=False))),
        convection=float(_get(table, "Convection", _NUMBER, 0.0, required=False)),
        output_points=_positive("Output_points", _get(table, "Output_points", int, 301, required=False)),
        parameters=parameters,
    )
    _check_neumann_stabilization(config.lower_type, config.upper_type,
                                 config.stabilization, config.convection)
    _check_parameters(config)
    logger.debug("Parsed configuration: %s", config)
    return config


def _check_parameters(config: SolverConfig):
    """Build the physics case and the initial profile once so parameter errors surface here."""
    unknown = set(config.parameters) - set(PARAMETER_GROUPS)
    if unknown:
        raise ConfigurationError(f"Unknown [parameters] groups {sorted(unknown)}. "
                                 f"Available: {list(PARAMETER_GROUPS)}")
    for group in PARAMETER_GROUPS:
        if not isinstance(config.parameters.get(group, {}), dict):
            raise ConfigurationError(f"[parameters.{group}] must be a table")

    try:
        physics = PhysicsCaseFactory.create(
            config.diffusion_case, config.reaction_case, config.n_var,
            parameters={"diffusion": config.parameters.get("diffusion", {}),
                        "reaction": config.parameters.get("reaction", {})})
        InitialConditionLibrary(config.initial_condition, physics, config.lower_boundary,
                                config.upper_boundary, config.parameters.get("initial_condition", {}))
    except ValueError as exc:
        raise ConfigurationError(str(exc)) from exc


def load_config(path: Union[str, Path]) -> SolverConfig:
    """Read and validate a TOML configuration file."""
    path = Path(path)
    try:
        with path.open("rb") as handle:
            document = tomllib.load(handle)
    except FileNotFoundError as exc:
        raise ConfigurationError(f"Configuration file not found: {path}") from exc
    except tomllib.TOMLDecodeError as exc:
        raise ConfigurationError(f"Invalid TOML in {path}: {exc}") from exc
    return parse_config(document)
