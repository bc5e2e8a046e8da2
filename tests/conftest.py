import matplotlib
matplotlib.use('Agg')

import numpy as np
import pytest

from cgro.numerical_diagnostics import make_spd_matrix


@pytest.fixture
def identity_problem():
    return np.eye(3), np.array([1.0, 2.0, 3.0])


@pytest.fixture
def diagonal_problem():
    A = np.diag(np.arange(1.0, 11.0))
    b = np.ones(10)
    return A, b


@pytest.fixture
def ill_conditioned_problem():
    rng = np.random.default_rng(1234)
    A = make_spd_matrix(60, condition_number=1e4, seed=1234)
    b = rng.standard_normal(60)
    return A, b
