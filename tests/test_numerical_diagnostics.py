import os

import numpy as np
import pandas as pd
import pytest
from numpy.testing import assert_allclose

from cgro import numerical_diagnostics as nd


def test_make_spd_matrix_is_exactly_symmetric():
    A = nd.make_spd_matrix(10, condition_number=100.0, seed=3)
    assert np.array_equal(A, A.T)
    assert_allclose(np.linalg.eigvalsh(A), np.geomspace(1.0, 100.0, 10), rtol=1e-8)


def test_make_spd_matrix_is_reproducible():
    assert_allclose(nd.make_spd_matrix(6, seed=1), nd.make_spd_matrix(6, seed=1))


def test_orthogonality_matrix_of_orthogonal_vectors():
    residuals = np.diag([1.0, 2.0, 3.0])
    assert_allclose(nd.residual_orthogonality_matrix(residuals), np.eye(3))
    assert nd.orthogonality_loss(residuals) == 0.0


def test_orthogonality_matrix_handles_zero_columns():
    residuals = np.array([[1.0, 0.0, 1.0],
                          [0.0, 0.0, 1.0]])
    cosines = nd.residual_orthogonality_matrix(residuals)
    assert_allclose(cosines[:, 1], 0.0)
    assert cosines[0, 2] == pytest.approx(1 / np.sqrt(2))
    assert nd.orthogonality_loss(residuals) == pytest.approx(1 / np.sqrt(2))


def test_orthogonality_loss_of_single_residual():
    assert nd.orthogonality_loss(np.ones((4, 1))) == 0.0


def test_error_metrics():
    A = np.diag([4.0, 1.0])
    x_ref = np.array([1.0, 1.0])
    assert nd.compute_a_norm_error(x_ref, x_ref, A) == 0.0
    assert nd.compute_a_norm_error(np.array([2.0, 1.0]), x_ref, A) == pytest.approx(2.0)
    assert_allclose(nd.compute_reference_solution(A, np.array([4.0, 1.0])), x_ref)
    assert nd.true_relative_residual(A, np.array([4.0, 1.0]), x_ref) == 0.0


def _problems():
    return list(nd.generate_problems(sizes=[8], condition_numbers=[1e2], instances=2, seed=5))


def test_generate_problems_labels():
    labels = [label for label, _, _ in _problems()]
    assert labels == ['n8_k1e+02_0', 'n8_k1e+02_1']


def test_run_diagnostics_for_problem():
    label, A, b = _problems()[0]
    results = nd.run_diagnostics_for_problem(A, b, label)

    assert set(results) == {'CG', 'CG_RO'}
    reorth = results['CG_RO']
    assert reorth.converged
    assert reorth.n == 8
    assert reorth.true_relative_residual < 1e-8
    assert reorth.orthogonality_loss is not None
    assert reorth.residual_history[0] == pytest.approx(np.linalg.norm(b))
    assert reorth.condition_number == pytest.approx(100.0, rel=1e-6)


def test_full_diagnostics_tables_and_files(tmp_path):
    collections = nd.run_full_diagnostics(_problems(), verbose=False)
    assert set(collections) == {'CG', 'CG_RO'}

    df = collections['CG_RO'].to_dataframe()
    assert isinstance(df, pd.DataFrame)
    assert len(df) == 2
    assert {'iterations', 'true_relative_residual', 'orthogonality_loss'} <= set(df.columns)

    tables = nd.compute_distribution_tables(collections)
    assert list(tables['iterations'].columns) == ['solver', 'mean', 'std', 'min',
                                                  'q25', 'median', 'q75', 'max']

    combined, summary = nd.save_diagnostics(collections, tables, str(tmp_path))
    assert len(combined) == 4
    assert list(summary['solver']) == ['CG', 'CG_RO']
    for name in ('all_diagnostics.csv', 'summary.csv', 'diagnostics_CG_RO.csv',
                 'distribution_orthogonality_loss.csv'):
        assert os.path.exists(tmp_path / name)


def test_full_diagnostics_verbose_output(capsys):
    nd.run_full_diagnostics(_problems()[:1], verbose=True)
    out = capsys.readouterr().out
    assert "NUMERICAL DIAGNOSTICS FOR CONJUGATE GRADIENT SOLVERS" in out
    assert "CG_RO" in out


def test_print_distribution_report(capsys):
    collections = nd.run_full_diagnostics(_problems(), verbose=False)
    nd.print_distribution_report(nd.compute_distribution_tables(collections))
    out = capsys.readouterr().out
    assert "LOSS OF RESIDUAL ORTHOGONALITY" in out


def test_true_relative_residual_with_zero_rhs():
    A = np.eye(2)
    assert nd.true_relative_residual(A, np.zeros(2), np.array([3.0, 4.0])) == pytest.approx(5.0)


def test_significant_residuals_drops_noise_level_columns():
    residuals = np.array([[1.0, 0.0, 1e-30],
                          [0.0, 1.0, 1e-30]])
    kept = nd.significant_residuals(residuals)
    assert kept.shape == (2, 2)
    assert nd.orthogonality_loss(residuals) == 0.0


def test_reorthogonalized_loss_stays_small_over_n_updates():
    A = nd.make_spd_matrix(50, condition_number=1e6, seed=11)
    b = np.random.default_rng(11).standard_normal(50)

    results = nd.run_diagnostics_for_problem(A, b, 'n50_k1e+06')

    assert results['CG_RO'].orthogonality_loss < 1e-10
    assert results['CG_RO'].orthogonality_loss < results['CG'].orthogonality_loss
