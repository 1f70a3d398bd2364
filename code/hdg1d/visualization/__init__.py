"""
HDG1D Visualization Module
"""

from .solution_plotter import SolutionPlotter

__all__ = ['SolutionPlotter']
