from ..core.boundary_conditions import BoundaryType
from ..io.config import SolverConfig


def create_configuration() -> SolverConfig:
    """
    Fisher-KPP invasion front: a Gaussian seed at the left end of [0, 20]
    spreading with speed close to 2 sqrt(D r). Zero-flux ends.
    """
    return SolverConfig(
        polynomial_degree=2,
        grid_size=80,
        n_var=1,
        lower_boundary=0.0,
        upper_boundary=20.0,
        lower_type=BoundaryType.NEUMANN,
        upper_type=BoundaryType.NEUMANN,
        initial_condition="gaussian",
        diffusion_case="linear",
        reaction_case="fisher_kpp",
        delta_t=0.25,
        t_final=5.0,
        relative_tolerance=1e-6,
        absolute_tolerance=1e-8,
        parameters={"diffusion": {"diffusivity": 1.0},
                    "reaction": {"rate": 1.0},
                    "initial_condition": {"centre": 0.0, "width": 0.05}},
    )
