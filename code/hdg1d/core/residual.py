import logging
import numpy as np
from dataclasses import dataclass, field
from typing import List, Optional

from .global_trace import GlobalTraceSystem
from .local_assembly import CellMatrices, LocalAssembler
from .nonlinear_terms import NonlinearProjector
from .state_layout import StateLayout, SIGMA, Q, U

logger = logging.getLogger(__name__)


@dataclass
class RunContext:
    """Counters and diagnostics shared by the residual and the drivers."""

    total_steps: int = 0
    testing: bool = False
    residual_norm: float = float('nan')
    residual_history: List[float] = field(default_factory=list)


class ResidualEvaluator:
    """
    DAE residual F(t, y, ydot) of the HDG discretization.

    Per cell (flattened variable-major, stored in the sigma/q/u slots):

        res_sigma = -A q - B^T u + C^T lambda - RF_sigma
        res_q     =  B sigma + D u + E lambda - RF_u + X dudt - S_h(q, u)
        res_u     =  A sigma + K_h(q, u)

    and on the trace block

        res_lambda = -lambda + H^-1 (L - sum_cells scatter(C sigma + G u))
    """

    def __init__(self, layout: StateLayout, cell_matrices: List[CellMatrices],
                 trace_system: GlobalTraceSystem, local_assembler: LocalAssembler,
                 projector: NonlinearProjector):
        self.layout = layout
        self.cell_matrices = cell_matrices
        self.trace_system = trace_system
        self.local_assembler = local_assembler
        self.projector = projector

    def __call__(self, t: float, y: np.ndarray, ydot: np.ndarray,
                 context: Optional[RunContext] = None) -> np.ndarray:
        return self.evaluate(t, y, ydot, context)

    def evaluate(self, t: float, y: np.ndarray, ydot: np.ndarray,
                 context: Optional[RunContext] = None) -> np.ndarray:
        """
        Evaluate the residual with the boundary load at time t.
        The trace system is only read, never updated.

        Args:
            t: Time
            y: State vector
            ydot: Time derivative of the state (only the u slots are read)
            context: Optional run context updated with the step count and norm

        Returns:
            Residual vector in the state layout
        """
        layout = self.layout
        res = layout.new_vector()
        res_fields = layout.cell_fields(res)

        fields = layout.cell_fields(y)
        dudt = layout.u(ydot)
        trace = layout.trace(y).reshape(-1)

        boundary_load = self.trace_system.boundary_load(t)

        for cell, m in enumerate(self.cell_matrices):
            sigma, q, u = fields[cell, SIGMA], fields[cell, Q], fields[cell, U]
            rf_sigma, rf_u = self.local_assembler.load_vector(m.interval, t)
            lam = self.trace_system.gather(trace, cell)

            kappa_h = self.projector.kappa(cell, q, u, t)
            source_h = self.projector.source(cell, q, u, t)

            res_fields[cell, SIGMA] = (-m.A @ q.reshape(-1) - m.B.T @ u.reshape(-1)
                                       + m.C.T @ lam - rf_sigma.reshape(-1)).reshape(q.shape)
            res_fields[cell, Q] = (m.B @ sigma.reshape(-1) + m.D @ u.reshape(-1) + m.E @ lam
                                   - rf_u.reshape(-1) + m.X @ dudt[cell].reshape(-1)
                                   - source_h.reshape(-1)).reshape(q.shape)
            res_fields[cell, U] = (m.A @ sigma.reshape(-1) + kappa_h.reshape(-1)).reshape(q.shape)

        implied = self.trace_system.implied_trace(layout.sigma(y), layout.u(y), boundary_load)
        layout.trace(res)[...] = (implied - trace).reshape(layout.n_var, -1)

        if context is not None:
            context.total_steps += 1
            if context.testing:
                context.residual_norm = float(np.linalg.norm(res))
                context.residual_history.append(context.residual_norm)
                logger.debug("Residual evaluation %d at t = %.6g: |F| = %.3e",
                             context.total_steps, t, context.residual_norm)
        return res
