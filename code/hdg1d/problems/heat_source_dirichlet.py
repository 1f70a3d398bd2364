from ..core.boundary_conditions import BoundaryType
from ..io.config import SolverConfig


def create_configuration() -> SolverConfig:
    """
    Heat equation with unit source on [0, 1], homogeneous Dirichlet ends.

    The steady state is u(x) = x(1 - x)/2.
    """
    return SolverConfig(
        polynomial_degree=1,
        grid_size=4,
        n_var=1,
        lower_boundary=0.0,
        upper_boundary=1.0,
        lower_type=BoundaryType.DIRICHLET,
        upper_type=BoundaryType.DIRICHLET,
        initial_condition="constant",
        diffusion_case="linear",
        reaction_case="constant",
        delta_t=0.05,
        t_final=2.0,
        parameters={"diffusion": {"diffusivity": 1.0},
                    "reaction": {"strength": 1.0},
                    "initial_condition": {"value": 0.0}},
    )
