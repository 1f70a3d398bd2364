from .backward_euler import BackwardEulerIntegrator, solve_steady_state

__all__ = ['BackwardEulerIntegrator', 'solve_steady_state']
