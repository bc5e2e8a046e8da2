import numpy as np
from numpy.testing import assert_allclose

from cgro import CGResult, ConvergenceFlag, format_report, report, solve_and_report


def _result(flag, relres=0.0, iteration=0, tolerance=1e-6):
    return CGResult(
        x=np.zeros(2),
        flag=flag,
        relres=relres,
        iter=iteration,
        resvec=np.ones(iteration + 1),
        solver_name="Reorthogonalized CG",
        tolerance=tolerance,
    )


def test_success_message():
    lines = format_report(_result(ConvergenceFlag.SUCCESS, relres=1.234567e-7, iteration=3))
    assert lines == [
        "Reorthogonalized CG converged at iteration 3 to a solution "
        "with relative residual 1.235e-07."
    ]


def test_max_iterations_message():
    lines = format_report(_result(ConvergenceFlag.MAX_ITERATIONS_REACHED,
                                  relres=0.5, iteration=20))
    assert lines == [
        "Reorthogonalized CG stopped at iteration 20 without converging "
        "to the desired tolerance 1e-06",
        "because the maximum number of iterations was reached.",
        "The iterate returned (number 20) has relative residual 0.5.",
    ]


def test_numeric_failure_message():
    lines = format_report(_result(ConvergenceFlag.NUMERIC_FAILURE))
    assert lines == [
        "One of the scalar quantities calculated by the Reorthogonalized CG "
        "algorithm became too small or too large to continue computing."
    ]


def test_report_prints_lines(capsys):
    report(_result(ConvergenceFlag.MAX_ITERATIONS_REACHED, relres=0.25, iteration=4))
    out = capsys.readouterr().out.splitlines()
    assert len(out) == 3
    assert out[1] == "because the maximum number of iterations was reached."


def test_solve_and_report_returns_solution(identity_problem, capsys):
    A, b = identity_problem
    x = solve_and_report(A, b)

    assert isinstance(x, np.ndarray)
    assert_allclose(x, b)
    out = capsys.readouterr().out
    assert out.startswith("Reorthogonalized CG converged at iteration 0")


def test_solve_and_report_narrates_exhaustion(diagonal_problem, capsys):
    A, b = diagonal_problem
    solve_and_report(A, b, tol=1e-12, maxit=2)
    out = capsys.readouterr().out
    assert "stopped at iteration 2 without converging to the desired tolerance 1e-12" in out


def test_solve_and_report_narrates_failure(capsys):
    solve_and_report(np.diag([1.0, -1.0]), np.ones(2))
    out = capsys.readouterr().out
    assert "became too small or too large to continue computing." in out
