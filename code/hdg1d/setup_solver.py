"""
Solver setup: builds a SystemSolver and its initial conditions from a
SolverConfig, a TOML file, or a problem module exposing create_configuration().
"""

import importlib
import logging
import numpy as np
from pathlib import Path
from typing import Any, Dict, Tuple, Union

from .core.boundary_conditions import BoundaryConditions
from .core.mesh import Grid
from .core.system_solver import SystemSolver
from .io.config import SolverConfig, load_config
from .physics.factory import PhysicsCaseFactory
from .physics.initial_conditions import InitialConditionLibrary

logger = logging.getLogger(__name__)


class SolverSetup:
    """
    Orchestrates the construction of all solver components from a configuration.
    Components are created on first access.
    """

    def __init__(self, config: SolverConfig):
        self.config = config
        self._physics = None
        self._solver = None
        self._initial_conditions = None

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'SolverSetup':
        return cls(load_config(path))

    @classmethod
    def from_problem_module(cls, problem_module: str) -> 'SolverSetup':
        """
        Args:
            problem_module: Module path containing create_configuration()
        """
        try:
            module = importlib.import_module(problem_module)
            create_configuration = getattr(module, 'create_configuration')
        except (ImportError, AttributeError) as e:
            raise ImportError(f"Cannot import create_configuration from {problem_module}: {e}")
        return cls(create_configuration())

    def _parameter_group(self, name: str) -> Dict[str, Any]:
        return dict(self.config.parameters.get(name, {}))

    @property
    def physics(self):
        if self._physics is None:
            cfg = self.config
            self._physics = PhysicsCaseFactory.create(
                cfg.diffusion_case, cfg.reaction_case, cfg.n_var,
                parameters={"diffusion": self._parameter_group("diffusion"),
                            "reaction": self._parameter_group("reaction")})
        return self._physics

    @property
    def initial_condition_library(self) -> InitialConditionLibrary:
        if self._initial_conditions is None:
            cfg = self.config
            self._initial_conditions = InitialConditionLibrary(
                cfg.initial_condition, self.physics, cfg.lower_boundary, cfg.upper_boundary,
                self._parameter_group("initial_condition"))
        return self._initial_conditions

    @property
    def solver(self) -> SystemSolver:
        if self._solver is None:
            cfg = self.config
            grid = Grid(cfg.lower_boundary, cfg.upper_boundary, cfg.grid_size)
            boundary_conditions = BoundaryConditions.from_values(
                cfg.lower_boundary, cfg.upper_boundary, cfg.lower_type, cfg.upper_type,
                cfg.lower_value, cfg.upper_value)
            self._solver = SystemSolver(grid, cfg.polynomial_degree, self.physics, boundary_conditions,
                                        tau=cfg.stabilization, convection=cfg.convection)
        return self._solver

    def create_initial_conditions(self, consistent: bool = True) -> Tuple[np.ndarray, np.ndarray]:
        """(y0, ydot0) at t = 0 from the configured initial profile."""
        library = self.initial_condition_library
        return self.solver.initial_conditions(library.u_initial(), library.q_initial(),
                                              library.sigma_initial(), consistent=consistent)

    def get_problem_info(self) -> Dict[str, Any]:
        """Summary of the configured problem."""
        cfg = self.config
        info = self.solver.get_system_info()
        info.update({
            'initial_condition': cfg.initial_condition,
            'domain': (cfg.lower_boundary, cfg.upper_boundary),
            'time_discretization': {'dt': cfg.delta_t, 'T': cfg.t_final},
            'tolerances': {'rtol': cfg.relative_tolerance, 'atol': cfg.absolute_tolerance},
        })
        return info


def quick_setup(source: Union[str, Path, SolverConfig]) -> SolverSetup:
    """
    Build a SolverSetup from a config object, a .toml path or a problem module name.
    """
    if isinstance(source, SolverConfig):
        return SolverSetup(source)
    if str(source).endswith(".toml"):
        return SolverSetup.from_file(source)
    return SolverSetup.from_problem_module(str(source))
