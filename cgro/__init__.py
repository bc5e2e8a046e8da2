"""
Conjugate Gradient with residual re-orthogonalization.
"""

__version__ = "0.1.0"

from .solvers import (
    CGResult,
    ConvergenceFlag,
    IterativeSolver,
    ConjugateGradientSolver,
    ReorthogonalizedCGSolver,
    solve,
    solve_and_report,
)
from .validation import (
    InputError,
    NotSquareError,
    NotSymmetricError,
    RhsSizeMismatchError,
    GuessSizeMismatchError,
    ParameterError,
    ValidatedInputs,
    validate_inputs,
)
from .reporting import format_report, report

__all__ = [
    'CGResult',
    'ConvergenceFlag',
    'IterativeSolver',
    'ConjugateGradientSolver',
    'ReorthogonalizedCGSolver',
    'solve',
    'solve_and_report',
    'InputError',
    'NotSquareError',
    'NotSymmetricError',
    'RhsSizeMismatchError',
    'GuessSizeMismatchError',
    'ParameterError',
    'ValidatedInputs',
    'validate_inputs',
    'format_report',
    'report',
]
