"""
Export of the discretization matrices to MATLAB format for offline inspection.
"""

import logging
import numpy as np
from pathlib import Path
from scipy.io import savemat
from typing import Dict, Union

logger = logging.getLogger(__name__)

CELL_BLOCKS = ("A", "B", "D", "C", "E", "G", "H", "X")


def collect_matrices(system, jacobian: bool = False) -> Dict[str, np.ndarray]:
    """
    Gather the matrices of a SystemSolver.

    Per-cell blocks are stacked along the first axis (one slice per cell).

    Args:
        system: SystemSolver
        jacobian: Also include the condensed trace operator of the last
                  Jacobian setup

    Returns:
        Dictionary of name -> array
    """
    matrices = {name: np.stack([getattr(m, name) for m in system.cell_matrices])
                for name in CELL_BLOCKS}
    matrices['H_global'] = system.trace_system.H_global_mat
    matrices['nodes'] = np.asarray(system.grid.nodes)
    for name, matrix in system.basis.elementary_matrices.matrices.items():
        matrices[f'ref_{name}'] = matrix
    if jacobian:
        if system.jacobian_solver.K_global is None:
            raise RuntimeError("No Jacobian has been set up yet")
        matrices['K_global'] = system.jacobian_solver.K_global
    return matrices


def export_matrices(system, filename: Union[str, Path], jacobian: bool = False) -> Path:
    """Save collect_matrices(system) to a .mat file."""
    filename = Path(filename)
    matrices = collect_matrices(system, jacobian)
    savemat(filename, matrices, format='5', long_field_names=True)
    logger.info("Exported %d matrices to %s", len(matrices), filename)
    return filename
