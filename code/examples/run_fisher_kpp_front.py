#!/usr/bin/env python3
"""
Example script to run the Fisher-KPP travelling front problem.
Writes u_t.plot, the discretization matrices and the front position over time.
"""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import numpy as np
import matplotlib.pyplot as plt

from hdg1d.integrators.backward_euler import BackwardEulerIntegrator
from hdg1d.setup_solver import quick_setup
from hdg1d.utils.matrix_export import export_matrices
from hdg1d.visualization.solution_plotter import SolutionPlotter


def front_position(solver, y, level=0.5, n_points=2001):
    """Rightmost sample point where u exceeds level."""
    _, _, u = solver.fields(y)
    x = np.linspace(solver.grid.lower_bound, solver.grid.upper_bound, n_points)
    above = np.nonzero(u(x) >= level)[0]
    return x[above[-1]] if above.size else solver.grid.lower_bound


def main():
    """Run the Fisher-KPP front problem."""
    print("Running Fisher-KPP front problem...")

    setup = quick_setup("hdg1d.problems.fisher_kpp_front")
    config = setup.config
    solver = setup.solver
    for key, value in setup.get_problem_info().items():
        print(f"  {key}: {value}")

    export_matrices(solver, "fisher_kpp_matrices.mat")

    y, ydot = setup.create_initial_conditions(consistent=True)
    times, positions = [0.0], [front_position(solver, y)]

    with open("u_t.plot", "w") as out:
        solver.print_snapshot(out, 0.0, y, ydot, n_points=config.output_points)

        def observe(t, y, ydot):
            solver.print_snapshot(out, t, y, ydot, n_points=config.output_points)
            times.append(t)
            positions.append(front_position(solver, y))
            print(f"  t = {t:6.2f}  front at x = {positions[-1]:.3f}")

        integrator = BackwardEulerIntegrator(solver, rtol=config.relative_tolerance,
                                             atol=config.absolute_tolerance)
        integrator.integrate(y, ydot, 0.0, config.t_final, config.delta_t, callback=observe)

    # The asymptotic speed of the Fisher-KPP front is 2 sqrt(D r)
    speed = np.polyfit(times[len(times) // 2:], positions[len(positions) // 2:], 1)[0]
    print(f"\nMeasured front speed: {speed:.3f} (asymptotic value 2.0)")

    plotter = SolutionPlotter()
    plotter.plot_mass_evolution(times, positions, "fisher front position")
    plt.show()
    print("Simulation complete.")


if __name__ == "__main__":
    main()
