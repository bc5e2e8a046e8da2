"""
Input Validation
================

Checks performed before any solver state is built:

    - the matrix is square (n x n)
    - the matrix is exactly symmetric (A == A^T, no tolerance)
    - the right-hand side has length n
    - the initial guess has length n

Each failure raises its own ``InputError`` subclass so callers can branch on
the kind of problem. Defaults for the tolerance, iteration cap and initial
guess are filled in here as well.
"""

from dataclasses import dataclass
from typing import Optional, Tuple
import numbers
import numpy as np


# =============================================================================
# DEFAULTS
# =============================================================================

# Tolerance on the relative residual ||b - Ax|| / ||b||
DEFAULT_TOLERANCE = 1e-6

# Default iteration bound is min(n, DEFAULT_MAX_ITERATIONS_CAP)
DEFAULT_MAX_ITERATIONS_CAP = 20


# =============================================================================
# ERRORS
# =============================================================================

class InputError(ValueError):
    """Base class for rejected solver inputs."""


class NotSquareError(InputError):
    """Raised when the system matrix is not n x n."""

    def __init__(self, shape: Tuple[int, ...]):
        self.shape = tuple(shape)
        size = ' x '.join(str(d) for d in self.shape)
        super().__init__(f"Input matrix is not square. Size is {size}.")


class NotSymmetricError(InputError):
    """Raised when the system matrix differs from its transpose."""

    def __init__(self):
        super().__init__("Input matrix is not symmetric")


class RhsSizeMismatchError(InputError):
    """Raised when len(b) does not match the matrix dimension."""

    def __init__(self, actual: int, expected: int):
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"Length of rhs {actual} does not match matrix size {expected}.")


class GuessSizeMismatchError(InputError):
    """Raised when len(x0) does not match the matrix dimension."""

    def __init__(self, actual: int, expected: int):
        self.actual = actual
        self.expected = expected
        super().__init__(
            f"Length of initial guess {actual} does not match matrix size {expected}.")


class ParameterError(InputError):
    """Raised for a non-positive tolerance or a negative iteration bound."""


# =============================================================================
# VALIDATION
# =============================================================================

@dataclass
class ValidatedInputs:
    """Solver inputs after checking, converted to float64 arrays."""
    A: np.ndarray
    b: np.ndarray
    tol: float
    maxit: int
    x0: np.ndarray

    @property
    def n(self) -> int:
        return self.A.shape[0]


def validate_inputs(A,
                    b,
                    tol: Optional[float] = None,
                    maxit: Optional[int] = None,
                    x0=None) -> ValidatedInputs:
    """
    Check the inputs of a solve and fill in defaults.

    Parameters
    ----------
    A : array_like
        System matrix, must be n x n and exactly symmetric
    b : array_like
        Right-hand side, length n (row or column vectors are flattened)
    tol : float, optional
        Relative residual tolerance. Defaults to ``DEFAULT_TOLERANCE``.
    maxit : int, optional
        Iteration bound. Defaults to ``min(n, DEFAULT_MAX_ITERATIONS_CAP)``.
    x0 : array_like, optional
        Initial guess, length n. Defaults to the zero vector.

    Returns
    -------
    ValidatedInputs

    Raises
    ------
    NotSquareError, NotSymmetricError, RhsSizeMismatchError,
    GuessSizeMismatchError, ParameterError
    """
    A = np.asarray(A, dtype=np.float64)
    if A.ndim != 2 or A.shape[0] != A.shape[1]:
        raise NotSquareError(A.shape)
    n = A.shape[0]

    if not np.array_equal(A, A.T):
        raise NotSymmetricError()

    b = np.asarray(b, dtype=np.float64).flatten()
    if b.size != n:
        raise RhsSizeMismatchError(b.size, n)

    if x0 is None:
        x0 = np.zeros(n, dtype=np.float64)
    else:
        x0 = np.asarray(x0, dtype=np.float64).flatten()
        if x0.size != n:
            raise GuessSizeMismatchError(x0.size, n)

    if tol is None:
        tol = DEFAULT_TOLERANCE
    if not tol > 0:
        raise ParameterError(f"Tolerance must be positive, got {tol}.")

    if maxit is None:
        maxit = min(n, DEFAULT_MAX_ITERATIONS_CAP)
    if not isinstance(maxit, numbers.Integral) or maxit < 0:
        raise ParameterError(
            f"Maximum number of iterations must be a non-negative integer, got {maxit}.")

    return ValidatedInputs(A=A, b=b, tol=float(tol), maxit=int(maxit), x0=x0)
