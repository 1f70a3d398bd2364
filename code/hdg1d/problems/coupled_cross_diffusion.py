from ..core.boundary_conditions import BoundaryType
from ..io.config import SolverConfig


def create_configuration() -> SolverConfig:
    """
    Two channels with cross-diffusion and a Dirichlet/Neumann pair of ends.
    Each channel has its own initial height, mode number and boundary data.
    """
    return SolverConfig(
        polynomial_degree=2,
        grid_size=16,
        n_var=2,
        lower_boundary=0.0,
        upper_boundary=1.0,
        lower_type=BoundaryType.DIRICHLET,
        upper_type=BoundaryType.NEUMANN,
        lower_value=(0.0, 0.25),
        upper_value=(0.0, -0.1),
        initial_condition="sine",
        diffusion_case="matrix",
        reaction_case="decay",
        delta_t=0.01,
        t_final=0.1,
        parameters={"diffusion": {"matrix": [[1.0, 0.2], [0.1, 0.5]]},
                    "reaction": {"rate": [0.5, 1.0]},
                    "initial_condition": {"height": [1.0, 0.5], "modes": [1, 2]}},
    )
