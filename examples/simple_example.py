#!/usr/bin/env python3
"""
HDG1D Simple Example
====================

This example demonstrates the basic usage of hdg1d for solving a
diffusion problem with a constant source and homogeneous Dirichlet ends.

The example shows:
1. Problem setup from a problem module
2. Consistent initial condition creation
3. Backward-Euler time evolution
4. Profile, trace and diagnostic plots

Usage:
    python simple_example.py

Requirements:
    - numpy
    - scipy
    - sympy
    - matplotlib
"""

import sys
import os
import io
import numpy as np
import matplotlib.pyplot as plt

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'code'))

from hdg1d.core.residual import RunContext
from hdg1d.integrators.backward_euler import BackwardEulerIntegrator, solve_steady_state
from hdg1d.io.snapshot import read_snapshots
from hdg1d.setup_solver import quick_setup
from hdg1d.visualization.solution_plotter import SolutionPlotter


def main():
    """Main example execution."""

    print("=" * 60)
    print("HDG1D SIMPLE EXAMPLE")
    print("=" * 60)
    print("Heat equation with unit source on [0, 1]\n")

    # =================================================================
    # STEP 1: Problem Setup
    # =================================================================
    print("Step 1: Setting up the problem...")

    setup = quick_setup("hdg1d.problems.heat_source_dirichlet")
    solver = setup.solver
    solver.context = RunContext(testing=True)

    info = setup.get_problem_info()
    print(f"✓ Physics: {info['physics']}")
    print(f"  Cells: {info['n_cells']}, degree {info['degree']}")
    print(f"  Unknowns: {info['n_unknowns']} ({info['n_trace']} trace values)")
    print(f"  Time: dt={info['time_discretization']['dt']}, T={info['time_discretization']['T']}")

    # =================================================================
    # STEP 2: Initial Conditions
    # =================================================================
    print("\nStep 2: Creating initial conditions...")

    y, ydot = setup.create_initial_conditions(consistent=True)
    residual = solver.residual(0.0, y, ydot)
    print(f"✓ Initial residual: {np.max(np.abs(residual)):.3e}")

    # =================================================================
    # STEP 3: Time Evolution
    # =================================================================
    print("\nStep 3: Time evolution...")

    config = setup.config
    snapshots = io.StringIO()
    times, masses = [0.0], [solver.fields(y)[2].integral(0)]
    solver.print_snapshot(snapshots, 0.0, y, ydot, n_points=101)

    def observe(t, y, ydot):
        times.append(t)
        masses.append(solver.fields(y)[2].integral(0))
        solver.print_snapshot(snapshots, t, y, ydot, n_points=101)

    integrator = BackwardEulerIntegrator(solver, rtol=config.relative_tolerance,
                                         atol=config.absolute_tolerance)
    t, y, ydot = integrator.integrate(y, ydot, 0.0, config.t_final, config.delta_t,
                                      output_interval=0.25, callback=observe)
    print(f"✓ Reached t = {t:.3f} in {integrator.n_steps} steps "
          f"({integrator.n_failures} failed attempts)")

    # =================================================================
    # STEP 4: Comparison with the steady state
    # =================================================================
    print("\nStep 4: Steady state comparison...")

    steady = solve_steady_state(solver, y)
    nodes = solver.grid.nodes
    exact = nodes * (1.0 - nodes) / 2.0
    print(f"  Trace at T:        {solver.trace(y)[0]}")
    print(f"  Steady trace:      {solver.trace(steady)[0]}")
    print(f"  x(1-x)/2 at nodes: {exact}")
    print(f"  Distance to steady state: {np.max(np.abs(y - steady)):.3e}")

    # =================================================================
    # STEP 5: Visualization
    # =================================================================
    print("\nStep 5: Plotting...")

    output_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'output')
    plotter = SolutionPlotter(output_dir=output_dir)

    path = os.path.join(output_dir, 'u_t.plot')
    with open(path, 'w') as out:
        out.write(snapshots.getvalue())

    generated = [
        plotter.plot_profiles(read_snapshots(path), "heat source"),
        plotter.plot_trace_solution(nodes, solver.trace(y), "heat source", t),
        plotter.plot_mass_evolution(times, masses, "heat source"),
        plotter.plot_convergence_history(solver.context.residual_history, "heat source"),
    ]

    print("\n" + "=" * 60)
    print("EXAMPLE COMPLETED SUCCESSFULLY")
    print("=" * 60)
    print(f"\nGenerated files in {output_dir}:")
    print("  - u_t.plot")
    for filename in generated:
        if filename is not None:
            print(f"  - {filename}")

    plt.show()


if __name__ == "__main__":
    main()
