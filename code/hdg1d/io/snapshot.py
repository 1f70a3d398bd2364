"""
Plain text snapshots of the solution, one block per output time:

    # t = <t>
    x  u  q  sigma  dudt  dqdt  dsigdt      (tab separated, one line per point)
    <blank line>
"""

import numpy as np
from dataclasses import dataclass
from pathlib import Path
from typing import List, Sequence, TextIO, Union

from ..core.dg_approx import DGApprox

COLUMNS = ("x", "u", "q", "sigma", "dudt", "dqdt", "dsigdt")


@dataclass
class Snapshot:
    """One block of a snapshot file; data columns follow COLUMNS."""

    time: float
    data: np.ndarray

    def column(self, name: str) -> np.ndarray:
        return self.data[:, COLUMNS.index(name)]


def sample_points(lower: float, upper: float, n_points: int) -> np.ndarray:
    """x_i = lower + (upper - lower) i / n_points, i = 0..n_points-1."""
    return lower + (upper - lower) * np.arange(n_points) / n_points


def write_snapshot(out: TextIO, t: float, fields: Sequence[DGApprox], rates: Sequence[DGApprox],
                   n_points: int = 301, var: int = 0):
    """
    Write one snapshot block.

    Args:
        out: Open text stream
        t: Time of the snapshot
        fields: (sigma, q, u) fields of the state
        rates: (sigma, q, u) fields of the time derivative
        n_points: Number of equispaced sample points
        var: Variable to print
    """
    sigma, q, u = fields
    dsigdt, dqdt, dudt = rates
    grid = u.grid
    x = sample_points(grid.lower_bound, grid.upper_bound, n_points)
    columns = [x] + [f.evaluate(x, var) for f in (u, q, sigma, dudt, dqdt, dsigdt)]

    out.write(f"# t = {t:g}\n")
    for row in np.column_stack(columns):
        out.write("\t".join(f"{value:.10g}" for value in row) + "\n")
    out.write("\n")


def read_snapshots(path: Union[str, Path]) -> List[Snapshot]:
    """Parse every block of a snapshot file."""
    snapshots = []
    time = None
    rows: List[List[float]] = []

    def flush():
        if time is not None:
            snapshots.append(Snapshot(time, np.array(rows, dtype=float).reshape(-1, len(COLUMNS))))

    with open(path) as handle:
        for line in handle:
            line = line.strip()
            if line.startswith("# t ="):
                flush()
                time = float(line.split("=", 1)[1])
                rows = []
            elif line:
                rows.append([float(value) for value in line.split("\t")])
    flush()
    return snapshots
