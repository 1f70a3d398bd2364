"""
Exceptions raised by the HDG discretization and its drivers.
"""


class ConfigurationError(ValueError):
    """Malformed or missing configuration, raised before any assembly."""


class BoundaryEvaluationError(RuntimeError):
    """A boundary value function was evaluated away from the boundary."""


class SolveFailedError(RuntimeError):
    """A dense LU factorization met a singular or non-finite operator."""


class IntegrationError(RuntimeError):
    """The time integrator could not advance the solution."""

    def __init__(self, message: str, time: float = float('nan')):
        super().__init__(message)
        self.time = time
