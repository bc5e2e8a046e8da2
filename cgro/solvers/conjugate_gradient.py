"""
Conjugate Gradient Solver for Linear Systems
============================================

Solves A @ x = b using the Conjugate Gradient method.

For symmetric positive definite A, CG converges in at most n iterations
(in exact arithmetic) and typically much faster for well-conditioned systems.

The method generates A-conjugate search directions that span the Krylov subspace:
    K_k(A, r_0) = span{r_0, A r_0, A^2 r_0, ..., A^{k-1} r_0}

In floating point the residuals slowly lose their mutual orthogonality and
the directions lose conjugacy. This module keeps every residual it produces
so that subclasses can project it out again (see reorthogonalized_cg.py);
the plain solver here leaves them untouched and serves as the baseline.

Reference: Shewchuk, "An Introduction to the Conjugate Gradient Method
Without the Agonizing Pain", 1994.
"""

import numpy as np
from .base import CGResult, ConvergenceFlag, IterativeSolver


# Smallest positive normal double; |p^T A p| below this is degenerate
_TINY = np.finfo(np.float64).tiny


def _is_degenerate_divisor(value: float) -> bool:
    """True for zero, subnormal, or non-finite divisors."""
    return not np.isfinite(value) or abs(value) < _TINY


def relative_residual(residual_norm: float, b_norm: float) -> float:
    # b = 0 falls back to the absolute residual
    if b_norm == 0:
        return float(residual_norm)
    return float(residual_norm / b_norm)


class ConjugateGradientSolver(IterativeSolver):
    """
    Conjugate Gradient solver for SPD linear systems.

    Key properties:
    - Generates A-conjugate search directions
    - Optimal in Krylov subspace at each iteration
    - Convergence in at most n iterations (exact arithmetic)
    - Convergence rate: O(sqrt(κ(A))) vs O(κ(A)) for gradient descent

    Termination follows three flags:
    - SUCCESS: ||r||^2 <= (tol * ||b||)^2. ``iter`` is the loop index
      minus one, so convergence on the first update reports iteration 0.
    - MAX_ITERATIONS_REACHED: ``iter`` is maxit and ``relres`` is taken from
      the final residual.
    - NUMERIC_FAILURE: alpha, beta or ||r||^2 became zero-divided or
      non-finite. ``iter`` and ``relres`` are reported as 0.
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.name = "Conjugate Gradient"

    def _reorthogonalize(self,
                         r: np.ndarray,
                         residuals: np.ndarray,
                         squared_norms: np.ndarray) -> np.ndarray:
        """
        Correct the freshly updated residual against the stored ones.

        ``residuals`` holds one stored residual per column and
        ``squared_norms`` their squared norms at the time they were stored.
        Plain CG applies no correction.
        """
        return r

    # Overflow and 0/0 are classified by the explicit checks below
    @np.errstate(divide='ignore', over='ignore', invalid='ignore')
    def _solve_impl(self,
                    A: np.ndarray,
                    b: np.ndarray,
                    x0: np.ndarray,
                    tol: float,
                    maxit: int) -> CGResult:
        """
        Solve using Conjugate Gradient method.

        Algorithm:
        1. r = b - A @ x
        2. p = r (initial search direction)
        3. For each iteration:
           a. α = (r^T r) / (p^T A p)
           b. x = x + α * p
           c. r_new = r - α * A @ p, corrected by _reorthogonalize
           d. stop if r_new^T r_new <= (tol ||b||)^2
           e. β = (r_new^T r_new) / (r^T r)
           f. p = r_new + β * p
        """
        n = len(b)
        x = x0.copy()
        r = b - A @ x
        p = r.copy()  # Search direction

        # Column k holds the residual stored after k completed updates
        residuals = np.empty((n, maxit + 1))
        squared_norms = np.empty(maxit + 1)
        xhist = np.empty((n, maxit + 1)) if self.store_history else None

        r2 = np.dot(r, r)
        residuals[:, 0] = r
        squared_norms[0] = r2
        if xhist is not None:
            xhist[:, 0] = x
        stored = 1

        b_norm = np.linalg.norm(b)
        abstol2 = (tol * b_norm) ** 2

        flag = None
        iteration = 0
        relres = 0.0

        for i in range(1, maxit + 1):
            # Compute A @ p
            Ap = A @ p

            # Step size: α = (r^T r) / (p^T A p)
            pAp = np.dot(p, Ap)
            if _is_degenerate_divisor(pAp):
                flag = ConvergenceFlag.NUMERIC_FAILURE
                break
            alpha = r2 / pAp
            if not np.isfinite(alpha):
                flag = ConvergenceFlag.NUMERIC_FAILURE
                break

            # Update solution and residual
            x = x + alpha * p
            r = r - alpha * Ap
            r = self._reorthogonalize(r, residuals[:, :stored], squared_norms[:stored])

            r2_new = np.dot(r, r)
            if not np.isfinite(r2_new):
                flag = ConvergenceFlag.NUMERIC_FAILURE
                break

            residuals[:, stored] = r
            squared_norms[stored] = r2_new
            if xhist is not None:
                xhist[:, stored] = x
            stored += 1

            self._log(i, np.sqrt(r2_new))

            if r2_new <= abstol2:
                flag = ConvergenceFlag.SUCCESS
                iteration = i - 1
                relres = relative_residual(np.linalg.norm(r), b_norm)
                break

            # Conjugate direction coefficient: β = (r_new^T r_new) / (r^T r)
            if _is_degenerate_divisor(r2):
                flag = ConvergenceFlag.NUMERIC_FAILURE
                break
            beta = r2_new / r2
            if not np.isfinite(beta):
                flag = ConvergenceFlag.NUMERIC_FAILURE
                break

            # Update search direction
            p = r + beta * p
            r2 = r2_new

        if flag is None:
            flag = ConvergenceFlag.MAX_ITERATIONS_REACHED
            iteration = maxit
            relres = relative_residual(np.linalg.norm(r), b_norm)

        return CGResult(
            x=x,
            flag=flag,
            relres=relres,
            iter=iteration,
            resvec=np.sqrt(squared_norms[:stored]),
            xhist=xhist[:, :stored].copy() if xhist is not None else None,
            residuals=residuals[:, :stored].copy() if self.store_history else None,
        )
