"""
Command line entry point:

    hdg1d-run CONFIG.toml [--output-dir DIR] [--verbose]

Writes one snapshot file per variable (u_t.plot for variable 0, u_t_<var>.plot
for the others) with a block every delta_t.
"""

import argparse
import logging
import sys
from contextlib import ExitStack
from pathlib import Path
from typing import List, Optional

from .core.errors import ConfigurationError, IntegrationError, SolveFailedError
from .integrators.backward_euler import BackwardEulerIntegrator
from .setup_solver import SolverSetup

logger = logging.getLogger(__name__)


def snapshot_filename(var: int) -> str:
    return "u_t.plot" if var == 0 else f"u_t_{var}.plot"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hdg1d-run",
        description="Integrate a 1D diffusion/transport/reaction system with the HDG method.")
    parser.add_argument("config", type=Path, help="TOML configuration file")
    parser.add_argument("--output-dir", type=Path, default=Path("."),
                        help="Directory for the snapshot files (default: current directory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser


def run(config_path: Path, output_dir: Path) -> int:
    setup = SolverSetup.from_file(config_path)
    config = setup.config
    solver = setup.solver
    output_dir.mkdir(parents=True, exist_ok=True)

    with ExitStack() as stack:
        outputs = [stack.enter_context(open(output_dir / snapshot_filename(var), "w"))
                   for var in range(config.n_var)]

        def write(t, y, ydot):
            for var, out in enumerate(outputs):
                solver.print_snapshot(out, t, y, ydot, n_points=config.output_points, var=var)
                out.flush()

        y, ydot = setup.create_initial_conditions(consistent=True)
        write(0.0, y, ydot)

        integrator = BackwardEulerIntegrator(solver, rtol=config.relative_tolerance,
                                             atol=config.absolute_tolerance)
        state = {"t": 0.0, "y": y, "ydot": ydot}

        def observe(t, y, ydot):
            state.update(t=t, y=y, ydot=ydot)
            write(t, y, ydot)

        try:
            integrator.integrate(y, ydot, 0.0, config.t_final, config.delta_t, callback=observe)
        except IntegrationError:
            # Last accepted state, for post-mortem inspection
            write(state["t"], state["y"], state["ydot"])
            raise

    logger.info("Run finished: %d steps, %d failed step attempts, %d residual evaluations",
                integrator.n_steps, integrator.n_failures, solver.context.total_steps)
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(asctime)s %(name)s %(levelname)s: %(message)s")
    try:
        return run(args.config, args.output_dir)
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return 2
    except SolveFailedError as exc:
        logger.error("Could not set up the discretization: %s", exc)
        return 1
    except IntegrationError as exc:
        logger.error("Integration failed at t = %g: %s", exc.time, exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
