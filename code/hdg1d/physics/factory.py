from typing import Callable, Dict, Optional

from .physics_case import DiffusionModel, PhysicsCase, ReactionModel
from .diffusion import linear_diffusion, nonlinear_diffusion, matrix_diffusion
from .reaction import no_reaction, constant_source, linear_decay, fisher_kpp


class PhysicsCaseFactory:
    """
    Factory class to create physics cases by name, as the combination of a
    diffusion closure and a reaction source.
    """

    _diffusion_cases: Dict[str, Callable[..., DiffusionModel]] = {
        "linear": linear_diffusion,
        "nonlinear": nonlinear_diffusion,
        "matrix": matrix_diffusion,
    }

    _reaction_cases: Dict[str, Callable[..., ReactionModel]] = {
        "none": no_reaction,
        "constant": constant_source,
        "decay": linear_decay,
        "fisher_kpp": fisher_kpp,
    }

    @classmethod
    def create(cls, diffusion_case: str, reaction_case: str = "none", n_var: int = 1,
               parameters: Optional[dict] = None) -> PhysicsCase:
        """
        Create a physics case.

        Args:
            diffusion_case: Name of the diffusion closure
            reaction_case: Name of the reaction source
            n_var: Number of variables (channels)
            parameters: Optional {"diffusion": {...}, "reaction": {...}} keyword
                        arguments for the two model builders

        Returns:
            PhysicsCase named "<diffusion>+<reaction>"
        """
        if diffusion_case not in cls._diffusion_cases:
            raise ValueError(f"Unknown diffusion case: {diffusion_case}. "
                             f"Available types: {list(cls._diffusion_cases.keys())}")
        if reaction_case not in cls._reaction_cases:
            raise ValueError(f"Unknown reaction case: {reaction_case}. "
                             f"Available types: {list(cls._reaction_cases.keys())}")

        parameters = parameters or {}
        unknown = set(parameters) - {"diffusion", "reaction"}
        if unknown:
            raise ValueError(f"Unknown parameter groups: {sorted(unknown)}")

        try:
            diffusion = cls._diffusion_cases[diffusion_case](n_var, **parameters.get("diffusion", {}))
            reaction = cls._reaction_cases[reaction_case](n_var, **parameters.get("reaction", {}))
        except TypeError as exc:
            raise ValueError(f"Invalid parameters for '{diffusion_case}+{reaction_case}': {exc}") from exc

        return PhysicsCase.from_models(f"{diffusion_case}+{reaction_case}", n_var, diffusion, reaction)

    @classmethod
    def register_diffusion_case(cls, name: str, builder: Callable[..., DiffusionModel]):
        """
        Register a new diffusion closure.

        Args:
            name: String identifier used in configuration files
            builder: Callable (n_var, **parameters) -> DiffusionModel
        """
        cls._diffusion_cases[name] = builder

    @classmethod
    def register_reaction_case(cls, name: str, builder: Callable[..., ReactionModel]):
        """
        Register a new reaction source.

        Args:
            name: String identifier used in configuration files
            builder: Callable (n_var, **parameters) -> ReactionModel
        """
        cls._reaction_cases[name] = builder

    @classmethod
    def get_available_types(cls):
        """Get the available diffusion and reaction case names."""
        return {
            "diffusion": list(cls._diffusion_cases.keys()),
            "reaction": list(cls._reaction_cases.keys()),
        }
