"""
Human-readable status messages for finished solves.
"""

from typing import List

from .solvers.base import CGResult, ConvergenceFlag


def _num(value: float) -> str:
    return f"{value:.4g}"


def format_report(result: CGResult) -> List[str]:
    """
    Build the status lines describing how a solve terminated.

    Parameters
    ----------
    result : CGResult
        Result of a finished solve

    Returns
    -------
    list of str
        One line on success or numeric failure, three lines when the
        iteration bound was reached.
    """
    name = result.solver_name or "Solver"

    if result.flag == ConvergenceFlag.SUCCESS:
        return [
            f"{name} converged at iteration {result.iter} to a solution "
            f"with relative residual {_num(result.relres)}."
        ]

    if result.flag == ConvergenceFlag.MAX_ITERATIONS_REACHED:
        return [
            f"{name} stopped at iteration {result.iter} without converging "
            f"to the desired tolerance {_num(result.tolerance)}",
            "because the maximum number of iterations was reached.",
            f"The iterate returned (number {result.iter}) has relative "
            f"residual {_num(result.relres)}.",
        ]

    return [
        f"One of the scalar quantities calculated by the {name} algorithm "
        f"became too small or too large to continue computing."
    ]


def report(result: CGResult):
    """Print the status lines of a finished solve."""
    for line in format_report(result):
        print(line)
