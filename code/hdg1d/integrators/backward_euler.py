"""
Backward-Euler DAE driver and steady-state solver built on the residual /
Newton-correction interface of SystemSolver.
"""

import logging
import numpy as np
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from ..core.errors import IntegrationError, SolveFailedError
from ..core.system_solver import SystemSolver

logger = logging.getLogger(__name__)


class NewtonFailure(RuntimeError):
    """Newton iterations did not converge within the iteration cap."""


@dataclass
class NewtonSettings:
    rtol: float = 1e-5
    atol: float = 1e-5
    max_iterations: int = 12


def weighted_norm(v: np.ndarray, reference: np.ndarray, rtol: float, atol: float) -> float:
    """Weighted root-mean-square norm with weights 1/(rtol |reference| + atol)."""
    if v.size == 0:
        return 0.0
    return float(np.sqrt(np.mean((v / (rtol * np.abs(reference) + atol)) ** 2)))


def newton_solve(system: SystemSolver, t: float, y_guess: np.ndarray,
                 ydot_of: Callable[[np.ndarray], np.ndarray], alpha: float,
                 settings: NewtonSettings) -> Tuple[np.ndarray, int]:
    """
    Solve F(t, y, ydot_of(y)) = 0 by Newton's method with J = dF/dy + alpha dF/dydot.

    Converged when the weighted norm of the correction and the max norm of
    the residual are both below one in units of the tolerances.

    Raises:
        NewtonFailure: no convergence within settings.max_iterations
        SolveFailedError: singular Jacobian
    """
    y = y_guess.copy()
    system.setup_jacobian(t, y, ydot_of(y), alpha)
    for iteration in range(1, settings.max_iterations + 1):
        F = system.residual(t, y, ydot_of(y))
        if not np.all(np.isfinite(F)):
            raise NewtonFailure(f"non-finite residual at t = {t:g}")
        delta = system.solve_jacobian(-F)
        y += delta

        step_norm = weighted_norm(delta, y, settings.rtol, settings.atol)
        F = system.residual(t, y, ydot_of(y))
        residual_norm = float(np.max(np.abs(F)))
        logger.debug("Newton iteration %d at t = %.6g: |dy|_w = %.3e, |F| = %.3e",
                     iteration, t, step_norm, residual_norm)
        if step_norm <= 1.0 and residual_norm <= settings.atol:
            return y, iteration
        # Re-linearize at the new iterate (full Newton)
        system.setup_jacobian(t, y, ydot_of(y), alpha)

    raise NewtonFailure(f"Newton did not converge in {settings.max_iterations} iterations at t = {t:g}")


class BackwardEulerIntegrator:
    """
    Implicit Euler for the semi-explicit DAE F(t, y, ydot) = 0:

        F(t_{n+1}, y_{n+1}, (y_{n+1} - y_n)/dt) = 0

    The step is halved on a failed Newton solve or a singular Jacobian and
    restored to the requested output interval afterwards.
    """

    def __init__(self, system: SystemSolver, rtol: float = 1e-5, atol: float = 1e-5,
                 max_newton_iterations: int = 12, min_step: float = 1e-12):
        self.system = system
        self.settings = NewtonSettings(rtol, atol, max_newton_iterations)
        self.min_step = min_step
        self.n_steps = 0
        self.n_failures = 0

    def step(self, t: float, y: np.ndarray, dt: float) -> Tuple[np.ndarray, np.ndarray]:
        """
        One backward-Euler step of size dt from (t, y).

        Returns:
            (y_new, ydot_new) with ydot_new = (y_new - y)/dt
        """
        y_old = y.copy()

        def ydot_of(z):
            return (z - y_old) / dt

        y_new, iterations = newton_solve(self.system, t + dt, y_old, ydot_of, 1.0 / dt, self.settings)
        self.n_steps += 1
        logger.debug("Step %d: t = %.6g -> %.6g in %d Newton iterations",
                     self.n_steps, t, t + dt, iterations)
        return y_new, ydot_of(y_new)

    def advance(self, t: float, y: np.ndarray, ydot: np.ndarray, t_out: float,
                dt: float) -> Tuple[float, np.ndarray, np.ndarray]:
        """
        Integrate from t to t_out with steps of at most dt.

        Raises:
            IntegrationError: the step size fell below min_step
        """
        h = dt
        while t < t_out:
            h = min(h, t_out - t)
            try:
                y, ydot = self.step(t, y, h)
            except (NewtonFailure, SolveFailedError) as exc:
                self.n_failures += 1
                h *= 0.5
                logger.warning("Step from t = %.6g failed (%s); retrying with dt = %.3e", t, exc, h)
                if h < self.min_step:
                    raise IntegrationError(f"Step size {h:.3e} below minimum at t = {t:g}", time=t) from exc
                continue
            # Land exactly on t_out
            t = t_out if t_out - (t + h) <= 1e-12 * max(1.0, abs(t_out)) else t + h
            h = min(2.0 * h, dt)
        return t, y, ydot

    def integrate(self, y0: np.ndarray, ydot0: np.ndarray, t0: float, t_final: float, dt: float,
                  output_interval: Optional[float] = None,
                  callback: Optional[Callable[[float, np.ndarray, np.ndarray], None]] = None
                  ) -> Tuple[float, np.ndarray, np.ndarray]:
        """
        Integrate from t0 to t_final, calling callback(t, y, ydot) at every output time.

        Args:
            y0, ydot0: Initial state and derivative
            t0: Initial time
            t_final: Final time
            dt: Maximum step size
            output_interval: Spacing of output times (default dt)
            callback: Optional observer
        """
        output_interval = output_interval or dt
        n_outputs = max(1, int(np.ceil((t_final - t0) / output_interval - 1e-9)))
        t, y, ydot = t0, y0.copy(), ydot0.copy()
        for i in range(1, n_outputs + 1):
            t_out = min(t0 + i * output_interval, t_final)
            t, y, ydot = self.advance(t, y, ydot, t_out, dt)
            logger.info("Reached t = %.6g (%d steps, %d failed)", t, self.n_steps, self.n_failures)
            if callback is not None:
                callback(t, y, ydot)
        return t, y, ydot


def solve_steady_state(system: SystemSolver, y_guess: np.ndarray, t: float = 0.0,
                       rtol: float = 1e-10, atol: float = 1e-10,
                       max_iterations: int = 25) -> np.ndarray:
    """
    Solve F(t, y, 0) = 0 with alpha = 0.

    Raises:
        IntegrationError: Newton did not converge or the operator is singular
    """
    zero = np.zeros_like(y_guess)
    try:
        y, iterations = newton_solve(system, t, y_guess, lambda z: zero, 0.0,
                                     NewtonSettings(rtol, atol, max_iterations))
    except (NewtonFailure, SolveFailedError) as exc:
        raise IntegrationError(f"Steady-state solve failed: {exc}", time=t) from exc
    logger.info("Steady state reached in %d Newton iterations", iterations)
    return y
