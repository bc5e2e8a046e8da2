import os

import numpy as np
import pytest

from cgro import ReorthogonalizedCGSolver, solve
from cgro import generate_figures


def test_plot_convergence_curves(diagonal_problem, tmp_path):
    A, b = diagonal_problem
    results = {'CG_RO': solve(A, b, tol=1e-10, maxit=10)}
    path = tmp_path / 'curves.png'

    generate_figures.plot_convergence_curves(results, str(path), tolerance=1e-10)

    assert path.exists()


def test_plot_orthogonality_heatmap(diagonal_problem, tmp_path):
    A, b = diagonal_problem
    result = ReorthogonalizedCGSolver(max_iterations=6, store_history=True).solve(A, b)
    path = tmp_path / 'heatmap.png'

    generate_figures.plot_orthogonality_heatmap(result, str(path))

    assert path.exists()


def test_heatmap_needs_history(diagonal_problem, tmp_path):
    A, b = diagonal_problem
    with pytest.raises(ValueError):
        generate_figures.plot_orthogonality_heatmap(solve(A, b), str(tmp_path / 'x.png'))


def test_main_writes_all_figures(tmp_path, monkeypatch):
    monkeypatch.setattr(generate_figures, 'DEMO_SIZE', 20)
    results = generate_figures.main(str(tmp_path))

    assert set(results) == {'CG', 'CG_RO'}
    for name in ('convergence_curves.png', 'orthogonality_CG.png', 'orthogonality_CG_RO.png'):
        assert os.path.exists(tmp_path / name)
