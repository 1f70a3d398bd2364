import warnings
import numpy as np
from scipy.linalg import LinAlgWarning, lu_factor, lu_solve
from typing import Tuple

from .errors import SolveFailedError

LUFactors = Tuple[np.ndarray, np.ndarray]

# Pivots below this many rounding units (relative to the largest entry) count as zero
PIVOT_TOLERANCE = 1e3


def factorize(matrix: np.ndarray, label: str) -> LUFactors:
    """
    Dense LU factorization with partial pivoting.

    Raises:
        SolveFailedError: matrix is non-finite or numerically singular
    """
    if not np.all(np.isfinite(matrix)):
        raise SolveFailedError(f"{label}: matrix has non-finite entries")

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", LinAlgWarning)
        lu, piv = lu_factor(matrix, check_finite=False)

    pivots = np.abs(np.diag(lu))
    scale = max(float(np.max(np.abs(matrix))), np.finfo(float).tiny)
    threshold = PIVOT_TOLERANCE * matrix.shape[0] * np.finfo(float).eps * scale
    if not np.all(np.isfinite(pivots)) or np.min(pivots) <= threshold:
        raise SolveFailedError(f"{label}: matrix is singular "
                               f"(smallest pivot {np.min(pivots):.3e})")
    return lu, piv


def solve(factors: LUFactors, rhs: np.ndarray) -> np.ndarray:
    return lu_solve(factors, rhs, check_finite=False)
