"""
Base class for iterative solvers.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Tuple
import numpy as np
import time

from ..validation import DEFAULT_TOLERANCE, validate_inputs


class ConvergenceFlag(IntEnum):
    """Terminal state of a solve."""
    SUCCESS = 0
    MAX_ITERATIONS_REACHED = 1
    NUMERIC_FAILURE = 4


@dataclass
class CGResult:
    """Container for solver results and diagnostics."""
    x: np.ndarray
    flag: ConvergenceFlag
    relres: float
    iter: int
    resvec: np.ndarray

    # Run metadata
    solver_name: str = ""
    tolerance: float = DEFAULT_TOLERANCE
    max_iterations: int = 0
    elapsed_time: float = 0.0

    # Only filled in when the solver was built with store_history=True
    xhist: Optional[np.ndarray] = None
    residuals: Optional[np.ndarray] = None

    @property
    def converged(self) -> bool:
        return self.flag == ConvergenceFlag.SUCCESS

    def __iter__(self):
        # x, flag, relres, iter, resvec = solver.solve(A, b)
        return iter((self.x, self.flag, self.relres, self.iter, self.resvec))


class IterativeSolver(ABC):
    """
    Abstract base class for iterative linear system solvers.

    Solves: A @ x = b

    All solvers share identical interface for fair comparison.
    """

    def __init__(self,
                 tolerance: float = DEFAULT_TOLERANCE,
                 max_iterations: Optional[int] = None,
                 verbose: bool = False,
                 store_history: bool = False):
        """
        Initialize solver with convergence parameters.

        Parameters
        ----------
        tolerance : float
            Stopping criterion for the relative residual ||b - Ax|| / ||b||
        max_iterations : int, optional
            Maximum number of iterations. If None, uses min(n, 20).
        verbose : bool
            Print iteration progress
        store_history : bool
            Keep the iterates and stored residual vectors on the result
        """
        self.tolerance = tolerance
        self.max_iterations = max_iterations
        self.verbose = verbose
        self.store_history = store_history
        self.name = "IterativeSolver"

    @abstractmethod
    def _solve_impl(self,
                    A: np.ndarray,
                    b: np.ndarray,
                    x0: np.ndarray,
                    tol: float,
                    maxit: int) -> CGResult:
        """
        Internal solve implementation.

        Parameters
        ----------
        A : np.ndarray
            System matrix (n x n), must be symmetric positive definite
        b : np.ndarray
            Right-hand side vector (n,)
        x0 : np.ndarray
            Initial guess (n,)
        tol : float
            Relative residual tolerance
        maxit : int
            Iteration bound

        Returns
        -------
        CGResult
        """
        pass

    def solve(self,
              A: np.ndarray,
              b: np.ndarray,
              x0: Optional[np.ndarray] = None) -> CGResult:
        """
        Solve the linear system A @ x = b.

        Parameters
        ----------
        A : np.ndarray
            System matrix (n x n), symmetric positive definite
        b : np.ndarray
            Right-hand side vector (n,)
        x0 : np.ndarray, optional
            Initial guess. If None, uses zero vector.

        Returns
        -------
        CGResult
            Solution and convergence diagnostics

        Raises
        ------
        InputError
            If the inputs are rejected before iterating
        """
        inputs = validate_inputs(A, b, self.tolerance, self.max_iterations, x0)

        # Time the solve
        start_time = time.perf_counter()
        result = self._solve_impl(inputs.A, inputs.b, inputs.x0,
                                  inputs.tol, inputs.maxit)
        result.elapsed_time = time.perf_counter() - start_time

        result.solver_name = self.name
        result.tolerance = inputs.tol
        result.max_iterations = inputs.maxit
        return result

    def _log(self, iteration: int, residual_norm: float):
        """Log iteration progress."""
        if self.verbose:
            print(f"  {self.name} iter {iteration:4d}: ||r|| = {residual_norm:.6e}")


def verify_spd(A: np.ndarray, tol: float = 1e-10) -> Tuple[bool, float]:
    """
    Verify that matrix A is symmetric positive definite.

    Parameters
    ----------
    A : np.ndarray
        Matrix to verify
    tol : float
        Tolerance for symmetry check

    Returns
    -------
    tuple
        (is_spd, min_eigenvalue)
    """
    # Check symmetry
    if not np.allclose(A, A.T, atol=tol):
        return False, 0.0

    # Check positive definiteness
    eigenvalues = np.linalg.eigvalsh(A)
    min_eig = eigenvalues.min()

    return min_eig > 0, min_eig
