"""
Solution visualization module for the HDG system.

This module provides plotting of solution profiles from snapshot files,
trace values of a state vector, and mass and Newton diagnostics.
"""

import logging
import os
import numpy as np
import matplotlib.pyplot as plt
from typing import List, Optional, Sequence

from ..io.snapshot import Snapshot

logger = logging.getLogger(__name__)


class SolutionPlotter:
    """
    Handles visualization of HDG solutions and run diagnostics.
    """

    def __init__(self, output_dir: str = ".", figsize: tuple = (12, 8)):
        """
        Initialize the solution plotter.

        Args:
            output_dir: Directory where plots will be saved
            figsize: Default figure size (width, height) in inches
        """
        self.output_dir = output_dir
        self.figsize = figsize
        self.colors = ['m', 'b', 'g', 'c', 'r', 'k', 'y', 'orange', 'purple', 'brown']
        self.markers = ['*', 'o', '+', 'x', 's', 'd', '^', 'v', '<', '>']

        os.makedirs(output_dir, exist_ok=True)

    def _finish(self, filename: Optional[str], save_plot: bool, show_plot: bool) -> Optional[str]:
        if save_plot:
            plt.savefig(os.path.join(self.output_dir, filename), dpi=150, bbox_inches='tight')
        else:
            filename = None
        if show_plot:
            plt.show()
        else:
            plt.close()
        return filename

    def plot_profiles(self,
                      snapshots: Sequence[Snapshot],
                      name: str,
                      columns: Sequence[str] = ("u", "q", "sigma"),
                      save_plot: bool = True,
                      show_plot: bool = False) -> Optional[str]:
        """
        Plot profiles of every snapshot, one subplot per column.

        Args:
            snapshots: Parsed snapshot blocks
            name: Run name, used in the title and file name
            columns: Snapshot columns to plot
            save_plot: Whether to save the plot to file
            show_plot: Whether to display the plot

        Returns:
            Filename of saved plot if save_plot=True, None otherwise
        """
        try:
            fig, axes = plt.subplots(len(columns), 1, figsize=self.figsize, sharex=True)
            axes = np.atleast_1d(axes)
            cmap = plt.get_cmap('viridis')

            for i, snapshot in enumerate(snapshots):
                color = cmap(i / max(1, len(snapshots) - 1))
                for ax, column in zip(axes, columns):
                    ax.plot(snapshot.column("x"), snapshot.column(column), color=color,
                            linewidth=1.5, label=f't = {snapshot.time:g}')

            for ax, column in zip(axes, columns):
                ax.set_ylabel(column, fontsize=12)
                ax.grid(True, alpha=0.3)
            axes[-1].set_xlabel('Position', fontsize=12)
            if len(snapshots) <= 10:
                axes[0].legend()

            plt.tight_layout(rect=[0, 0, 1, 0.95])
            plt.suptitle(f'Solution profiles - {name}', fontsize=16)

            return self._finish(f"profiles_{name.replace(' ', '_')}.png", save_plot, show_plot)

        except Exception as e:
            logger.warning("Could not create profile plot: %s", e)
            return None

    def plot_trace_solution(self,
                            nodes: np.ndarray,
                            trace: np.ndarray,
                            name: str,
                            current_time: float,
                            save_plot: bool = True,
                            show_plot: bool = False) -> Optional[str]:
        """
        Plot the trace values at the mesh nodes.

        Args:
            nodes: Mesh node coordinates
            trace: Trace block of shape (n_var, n_nodes)
            name: Run name
            current_time: Time of the state
        """
        try:
            trace = np.atleast_2d(trace)
            fig, axes = plt.subplots(trace.shape[0], 1, figsize=self.figsize)
            axes = np.atleast_1d(axes)

            for var, ax in enumerate(axes):
                ax.plot(nodes, trace[var], color=self.colors[var % len(self.colors)],
                        marker=self.markers[var % len(self.markers)], linewidth=2, markersize=6)
                ax.set_ylabel(f'lambda_{var}', fontsize=12)
                ax.set_title(f'Trace of variable {var} at t = {current_time:.3f}', fontsize=14)
                ax.grid(True, alpha=0.3)
            axes[-1].set_xlabel('Position', fontsize=12)

            plt.tight_layout()
            filename = f"trace_solution_{name.replace(' ', '_')}_t{current_time:.3f}.png"
            return self._finish(filename, save_plot, show_plot)

        except Exception as e:
            logger.warning("Could not create trace solution plot: %s", e)
            return None

    def plot_mass_evolution(self,
                            times: Sequence[float],
                            masses: Sequence[float],
                            name: str,
                            save_plot: bool = True,
                            show_plot: bool = False) -> Optional[str]:
        """
        Plot the evolution of the total mass ∫u over time.
        """
        try:
            fig, ax = plt.subplots(figsize=self.figsize)
            ax.plot(times, masses, 'b-', linewidth=2, marker='o', markersize=4)
            ax.set_xlabel('Time', fontsize=12)
            ax.set_ylabel('Total Mass', fontsize=12)
            ax.set_title(f'Mass Evolution - {name}', fontsize=14)
            ax.grid(True, alpha=0.3)

            if masses[0] != 0:
                ax.text(0.02, 0.98, f'Conservation ratio: {masses[-1] / masses[0]:.6f}',
                        transform=ax.transAxes, verticalalignment='top',
                        bbox=dict(boxstyle='round', facecolor='wheat', alpha=0.8))

            plt.tight_layout()
            return self._finish(f"mass_evolution_{name.replace(' ', '_')}.png", save_plot, show_plot)

        except Exception as e:
            logger.warning("Could not create mass evolution plot: %s", e)
            return None

    def plot_convergence_history(self,
                                 residual_norms: List[float],
                                 name: str,
                                 save_plot: bool = True,
                                 show_plot: bool = False) -> Optional[str]:
        """
        Plot the residual norms recorded in a RunContext.
        """
        try:
            fig, ax = plt.subplots(figsize=self.figsize)
            ax.semilogy(np.arange(1, len(residual_norms) + 1), residual_norms, 'o-', alpha=0.7)
            ax.set_xlabel('Residual evaluation', fontsize=12)
            ax.set_ylabel('Residual Norm', fontsize=12)
            ax.set_title(f'Residual History - {name}', fontsize=14)
            ax.grid(True, alpha=0.3)

            plt.tight_layout()
            return self._finish(f"convergence_history_{name.replace(' ', '_')}.png", save_plot, show_plot)

        except Exception as e:
            logger.warning("Could not create convergence history plot: %s", e)
            return None
