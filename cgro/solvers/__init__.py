"""
Iterative Solvers for Symmetric Positive Definite Systems
=========================================================

This package contains implementations of the Conjugate Gradient method for
solving the linear system:

    A x = b

Solvers:
- Conjugate Gradient (CG), the plain baseline
- Re-orthogonalized Conjugate Gradient (CG-RO)
"""

from .base import CGResult, ConvergenceFlag, IterativeSolver
from .conjugate_gradient import ConjugateGradientSolver
from .reorthogonalized_cg import ReorthogonalizedCGSolver, solve, solve_and_report

__all__ = [
    'CGResult',
    'ConvergenceFlag',
    'IterativeSolver',
    'ConjugateGradientSolver',
    'ReorthogonalizedCGSolver',
    'solve',
    'solve_and_report',
]
