#!/usr/bin/env python3
"""
Numerical Diagnostics for Conjugate Gradient Solvers
====================================================

This script compares plain CG against re-orthogonalized CG on families of
synthetic symmetric positive definite problems with a prescribed spectrum.

Metrics Computed:
    1. Relative Residual Norm: ||b - Ax|| / ||b||, both as reported by the
       solver (recursive residual) and recomputed from the returned iterate
    2. A-norm Error: ||x - x*||_A = sqrt((x-x*)^T A (x-x*))
       where x* is a direct reference solution
    3. Loss of Orthogonality: max |cos(r_i, r_j)| over pairs of stored
       residuals above roundoff level, which is zero in exact arithmetic
    4. Wall-clock Runtime: per-solve timing

All metrics are reported as distributions over problem instances.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional
import os
import warnings
from scipy.linalg import solve as direct_solve

from .solvers import CGResult, ConjugateGradientSolver, ReorthogonalizedCGSolver
from .solvers.base import verify_spd
from .solvers.conjugate_gradient import relative_residual

# =============================================================================
# CONFIGURATION
# =============================================================================

# Solver parameters (identical across all solvers)
TOLERANCE = 1e-10

# Problem family
PROBLEM_SIZES = [20, 50, 100]
CONDITION_NUMBERS = [1e2, 1e4, 1e6]
INSTANCES_PER_CONFIGURATION = 3
SEED = 20240601

# Output directory
OUTPUT_DIR = os.path.join(os.getcwd(), 'numerical_diagnostics')

SOLVERS = {
    'CG': ConjugateGradientSolver,
    'CG_RO': ReorthogonalizedCGSolver,
}


# =============================================================================
# DATA CLASSES FOR DIAGNOSTICS
# =============================================================================

@dataclass
class SolverDiagnostics:
    """Container for detailed numerical diagnostics of a single solve."""
    # Basic info
    problem: str
    solver_name: str
    n: int

    # Convergence metrics
    flag: int
    converged: bool
    iterations: int
    wall_clock_time: float

    # Residual metrics
    initial_residual_norm: float
    final_residual_norm: float
    relative_residual: float
    true_relative_residual: float
    residual_history: List[float]

    # Error metrics (relative to reference solution)
    a_norm_error: float
    two_norm_error: float
    relative_solution_error: float

    # Problem conditioning
    condition_number: float
    min_eigenvalue: float
    max_eigenvalue: float

    # Deviation of the stored residuals from mutual orthogonality
    orthogonality_loss: Optional[float] = None


@dataclass
class SolverDiagnosticsCollection:
    """Collection of diagnostics across all problems for one solver."""
    solver_name: str
    diagnostics: List[SolverDiagnostics] = field(default_factory=list)

    def to_dataframe(self) -> pd.DataFrame:
        """Convert to DataFrame for analysis."""
        records = []
        for d in self.diagnostics:
            records.append({
                'problem': d.problem,
                'solver': d.solver_name,
                'n': d.n,
                'flag': d.flag,
                'converged': d.converged,
                'iterations': d.iterations,
                'wall_clock_time_ms': d.wall_clock_time * 1000,
                'initial_residual_norm': d.initial_residual_norm,
                'final_residual_norm': d.final_residual_norm,
                'relative_residual': d.relative_residual,
                'true_relative_residual': d.true_relative_residual,
                'a_norm_error': d.a_norm_error,
                'two_norm_error': d.two_norm_error,
                'relative_solution_error': d.relative_solution_error,
                'condition_number': d.condition_number,
                'min_eigenvalue': d.min_eigenvalue,
                'max_eigenvalue': d.max_eigenvalue,
                'orthogonality_loss': d.orthogonality_loss,
            })
        return pd.DataFrame(records)

    def get_distribution_stats(self, metric: str) -> Dict[str, float]:
        """Compute distribution statistics for a given metric."""
        df = self.to_dataframe()
        values = df[metric].dropna()
        return {
            'mean': values.mean(),
            'std': values.std(),
            'min': values.min(),
            'q25': values.quantile(0.25),
            'median': values.median(),
            'q75': values.quantile(0.75),
            'max': values.max(),
        }


# =============================================================================
# TEST PROBLEMS AND METRICS
# =============================================================================

def make_spd_matrix(n: int,
                    condition_number: float = 1e2,
                    seed: Optional[int] = None) -> np.ndarray:
    """
    Random SPD matrix with eigenvalues spread geometrically over
    [1, condition_number].

    The result is symmetrized so that A == A.T holds exactly.
    """
    rng = np.random.default_rng(seed)
    Q, _ = np.linalg.qr(rng.standard_normal((n, n)))
    eigenvalues = np.geomspace(1.0, condition_number, n)
    A = (Q * eigenvalues) @ Q.T
    return (A + A.T) / 2


def compute_reference_solution(A: np.ndarray, b: np.ndarray) -> np.ndarray:
    """
    Compute high-precision reference solution using direct solver.

    Uses scipy's direct solve which employs LAPACK routines for
    maximum numerical precision.
    """
    return direct_solve(A, b, assume_a='pos')


def compute_a_norm_error(x: np.ndarray, x_ref: np.ndarray, A: np.ndarray) -> float:
    """
    Compute A-norm error: ||x - x*||_A = sqrt((x-x*)^T A (x-x*))

    The A-norm is the natural norm for the quadratic minimization problem.
    """
    diff = x - x_ref
    return np.sqrt(np.abs(diff @ A @ diff))


def true_relative_residual(A: np.ndarray, b: np.ndarray, x: np.ndarray) -> float:
    """||b - Ax|| / ||b||, recomputed from the iterate (absolute when b = 0)."""
    return relative_residual(np.linalg.norm(b - A @ x), np.linalg.norm(b))


def residual_orthogonality_matrix(residuals: np.ndarray) -> np.ndarray:
    """
    Pairwise |cos| between stored residual vectors.

    Parameters
    ----------
    residuals : np.ndarray
        One residual per column (n x k)

    Returns
    -------
    np.ndarray
        k x k matrix with |r_i^T r_j| / (||r_i|| ||r_j||). Columns with zero
        norm give zero rows and columns.
    """
    norms = np.linalg.norm(residuals, axis=0)
    safe = np.where(norms > 0, norms, 1.0)
    unit = residuals / safe
    unit[:, norms == 0] = 0.0
    return np.abs(unit.T @ unit)


def significant_residuals(residuals: np.ndarray) -> np.ndarray:
    """
    Drop stored residuals whose norm is at roundoff level.

    A residual with norm <= n * eps * max_k ||r_k|| carries no direction
    information (after about n re-orthogonalized updates in R^n the last
    residual is pure noise), so its cosines against the others are
    meaningless.
    """
    norms = np.linalg.norm(residuals, axis=0)
    if norms.size == 0:
        return residuals
    floor = residuals.shape[0] * np.finfo(np.float64).eps * norms.max()
    return residuals[:, norms > floor]


def orthogonality_loss(residuals: np.ndarray) -> float:
    """
    Largest off-diagonal entry of the residual orthogonality matrix,
    ignoring noise-level residuals.
    """
    residuals = significant_residuals(residuals)
    if residuals.shape[1] < 2:
        return 0.0
    cosines = residual_orthogonality_matrix(residuals)
    np.fill_diagonal(cosines, 0.0)
    return float(cosines.max())


# =============================================================================
# MAIN DIAGNOSTICS RUNNER
# =============================================================================

def run_diagnostics_for_problem(A: np.ndarray,
                                b: np.ndarray,
                                problem: str,
                                tol: float = TOLERANCE,
                                max_iterations: Optional[int] = None) -> Dict[str, SolverDiagnostics]:
    """Run all solvers with full diagnostics for a single problem."""
    n = len(b)
    if max_iterations is None:
        max_iterations = n

    # Compute problem conditioning
    _, min_eig = verify_spd(A)
    max_eig = np.linalg.eigvalsh(A).max()
    cond_num = max_eig / min_eig

    # Compute high-precision reference solution
    x_ref = compute_reference_solution(A, b)

    # Initial guess (same for all solvers)
    x0 = np.zeros(n)

    results = {}
    for name, solver_cls in SOLVERS.items():
        solver = solver_cls(tolerance=tol,
                            max_iterations=max_iterations,
                            store_history=True)
        result = solver.solve(A, b, x0)
        results[name] = build_diagnostics(A, b, x_ref, result, problem,
                                          name, cond_num, min_eig, max_eig)

    return results


def build_diagnostics(A: np.ndarray,
                      b: np.ndarray,
                      x_ref: np.ndarray,
                      result: CGResult,
                      problem: str,
                      solver_name: str,
                      cond_num: float,
                      min_eig: float,
                      max_eig: float) -> SolverDiagnostics:
    """Turn a solver result into a diagnostics record."""
    x = result.x
    final_residual_norm = np.linalg.norm(b - A @ x)
    return SolverDiagnostics(
        problem=problem,
        solver_name=solver_name,
        n=len(b),
        flag=int(result.flag),
        converged=result.converged,
        iterations=result.iter,
        wall_clock_time=result.elapsed_time,
        initial_residual_norm=float(result.resvec[0]),
        final_residual_norm=final_residual_norm,
        relative_residual=result.relres,
        true_relative_residual=true_relative_residual(A, b, x),
        residual_history=list(result.resvec),
        a_norm_error=compute_a_norm_error(x, x_ref, A),
        two_norm_error=np.linalg.norm(x - x_ref),
        relative_solution_error=np.linalg.norm(x - x_ref) / np.linalg.norm(x_ref),
        condition_number=cond_num,
        min_eigenvalue=min_eig,
        max_eigenvalue=max_eig,
        orthogonality_loss=(orthogonality_loss(result.residuals)
                            if result.residuals is not None else None),
    )


def generate_problems(sizes: Iterable[int] = PROBLEM_SIZES,
                      condition_numbers: Iterable[float] = CONDITION_NUMBERS,
                      instances: int = INSTANCES_PER_CONFIGURATION,
                      seed: int = SEED):
    """Yield (label, A, b) for every configuration and instance."""
    rng = np.random.default_rng(seed)
    for n in sizes:
        for kappa in condition_numbers:
            for k in range(instances):
                A = make_spd_matrix(n, kappa, seed=rng.integers(2**32))
                b = rng.standard_normal(n)
                yield f"n{n}_k{kappa:.0e}_{k}", A, b


def run_full_diagnostics(problems=None,
                         tol: float = TOLERANCE,
                         verbose: bool = True) -> Dict[str, SolverDiagnosticsCollection]:
    """Run diagnostics across all generated problems."""
    if problems is None:
        problems = list(generate_problems())

    if verbose:
        print("="*80)
        print("NUMERICAL DIAGNOSTICS FOR CONJUGATE GRADIENT SOLVERS")
        print("="*80)
        print(f"\nConfiguration:")
        print(f"  Tolerance: {tol:.2e}")
        print(f"  Number of problems: {len(problems)}")
        print(f"  Reference solution: Direct solver (LAPACK)")

    # Initialize collections
    collections = {name: SolverDiagnosticsCollection(solver_name=name) for name in SOLVERS}

    if verbose:
        print("\n" + "-"*80)
        print("Running diagnostics for each problem...")
        print("-"*80)

    for idx, (label, A, b) in enumerate(problems):
        results = run_diagnostics_for_problem(A, b, label, tol=tol)

        for solver_name, diag in results.items():
            collections[solver_name].diagnostics.append(diag)

        if verbose:
            cond = results['CG'].condition_number
            print(f"\n  [{idx+1}/{len(problems)}] Problem: {label}, κ(A) = {cond:.1e}")
            for solver in SOLVERS:
                d = results[solver]
                status = "✓" if d.converged else "✗"
                print(f"    {solver:8s}: {d.iterations:4d} iters, "
                      f"||b-Ax||/||b|| = {d.true_relative_residual:.2e}, "
                      f"orth. loss = {d.orthogonality_loss:.2e} [{status}]")

    return collections


def compute_distribution_tables(collections: Dict[str, SolverDiagnosticsCollection]) -> Dict[str, pd.DataFrame]:
    """Compute distribution statistics tables for all metrics."""

    metrics = [
        'iterations',
        'wall_clock_time_ms',
        'relative_residual',
        'true_relative_residual',
        'a_norm_error',
        'relative_solution_error',
        'orthogonality_loss',
    ]

    tables = {}

    for metric in metrics:
        rows = []
        for solver_name, collection in collections.items():
            stats = collection.get_distribution_stats(metric)
            stats['solver'] = solver_name
            rows.append(stats)

        df = pd.DataFrame(rows)
        df = df[['solver', 'mean', 'std', 'min', 'q25', 'median', 'q75', 'max']]
        tables[metric] = df

    return tables


def save_diagnostics(collections: Dict[str, SolverDiagnosticsCollection],
                     tables: Dict[str, pd.DataFrame],
                     output_dir: str):
    """Save all diagnostics to files."""

    os.makedirs(output_dir, exist_ok=True)

    all_diagnostics = []
    for solver_name, collection in collections.items():
        df = collection.to_dataframe()
        all_diagnostics.append(df)
        df.to_csv(os.path.join(output_dir, f'diagnostics_{solver_name}.csv'), index=False)

    combined = pd.concat(all_diagnostics, ignore_index=True)
    combined.to_csv(os.path.join(output_dir, 'all_diagnostics.csv'), index=False)

    for metric, table in tables.items():
        table.to_csv(os.path.join(output_dir, f'distribution_{metric}.csv'), index=False)

    summary_rows = []
    for solver_name, collection in collections.items():
        df = collection.to_dataframe()
        summary_rows.append({
            'solver': solver_name,
            'convergence_rate': df['converged'].mean(),
            'mean_iterations': df['iterations'].mean(),
            'max_iterations': df['iterations'].max(),
            'mean_time_ms': df['wall_clock_time_ms'].mean(),
            'max_true_relative_residual': df['true_relative_residual'].max(),
            'mean_a_norm_error': df['a_norm_error'].mean(),
            'max_orthogonality_loss': df['orthogonality_loss'].max(),
        })

    summary_df = pd.DataFrame(summary_rows)
    summary_df.to_csv(os.path.join(output_dir, 'summary.csv'), index=False)

    return combined, summary_df


def _scientific(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    for col in df.columns:
        if col != 'solver':
            df[col] = df[col].apply(lambda x: f'{x:.2e}' if pd.notna(x) else 'N/A')
    return df


def print_distribution_report(tables: Dict[str, pd.DataFrame]):
    """Print formatted distribution report."""

    print("\n" + "="*80)
    print("DISTRIBUTION STATISTICS OVER ALL PROBLEMS")
    print("="*80)

    print("\n" + "-"*80)
    print("ITERATIONS DISTRIBUTION")
    print("-"*80)
    print(tables['iterations'].to_string(index=False, float_format='%.2f'))

    print("\n" + "-"*80)
    print("WALL-CLOCK TIME (ms) DISTRIBUTION")
    print("-"*80)
    print(tables['wall_clock_time_ms'].to_string(index=False, float_format='%.4f'))

    print("\n" + "-"*80)
    print("TRUE RELATIVE RESIDUAL ||b-Ax||/||b|| DISTRIBUTION")
    print("-"*80)
    print(_scientific(tables['true_relative_residual']).to_string(index=False))

    print("\n" + "-"*80)
    print("A-NORM ERROR ||x-x*||_A DISTRIBUTION")
    print("-"*80)
    print(_scientific(tables['a_norm_error']).to_string(index=False))

    print("\n" + "-"*80)
    print("LOSS OF RESIDUAL ORTHOGONALITY max|cos(r_i, r_j)|")
    print("-"*80)
    print(_scientific(tables['orthogonality_loss']).to_string(index=False))


def main():
    """Main execution function."""
    warnings.filterwarnings('ignore')

    collections = run_full_diagnostics(verbose=True)
    tables = compute_distribution_tables(collections)
    combined, summary = save_diagnostics(collections, tables, OUTPUT_DIR)

    print_distribution_report(tables)

    print("\n" + "="*80)
    print(f"Diagnostics saved to: {OUTPUT_DIR}")
    print("="*80)

    return collections, tables


if __name__ == '__main__':
    collections, tables = main()
