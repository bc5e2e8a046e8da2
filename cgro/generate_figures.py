#!/usr/bin/env python3
"""
Generate visualization figures comparing plain and re-orthogonalized CG.
Run this script to create all figures without needing Jupyter.
"""

import numpy as np
import matplotlib.pyplot as plt
import seaborn as sns
import os
import warnings
from typing import Dict, Optional

from .numerical_diagnostics import (make_spd_matrix, residual_orthogonality_matrix,
                                    significant_residuals)
from .solvers import CGResult, ConjugateGradientSolver, ReorthogonalizedCGSolver

# Custom color palette
SOLVER_COLORS = {
    'CG': '#3498db',
    'CG_RO': '#2ecc71',
}

# Demo problem
FIGURE_DIR = 'figures'
DEMO_SIZE = 80
DEMO_CONDITION_NUMBER = 1e5
DEMO_TOLERANCE = 1e-12
DEMO_SEED = 7


def plot_convergence_curves(results: Dict[str, CGResult], path: str,
                            tolerance: Optional[float] = None):
    """Semilog plot of the residual norm history of each solver."""
    fig, ax = plt.subplots(figsize=(10, 6))
    for name, result in results.items():
        resvec = np.asarray(result.resvec)
        ax.semilogy(range(len(resvec)), resvec, label=name,
                    color=SOLVER_COLORS.get(name), linewidth=2)
    if tolerance is not None:
        first = next(iter(results.values()))
        ax.axhline(tolerance * first.resvec[0], color='gray', linestyle='--',
                   label='Tolerance')
    ax.set_xlabel('Iteration', fontsize=12)
    ax.set_ylabel('Residual Norm', fontsize=12)
    ax.set_title('Convergence Curves', fontsize=12, fontweight='bold')
    ax.legend(loc='upper right')
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)


def plot_orthogonality_heatmap(result: CGResult, path: str, title: Optional[str] = None):
    """Heatmap of log10 |cos(r_i, r_j)| between non-negligible stored residuals."""
    if result.residuals is None:
        raise ValueError("Result carries no residual history; "
                         "solve with store_history=True.")

    cosines = residual_orthogonality_matrix(significant_residuals(result.residuals))
    log_cosines = np.log10(np.maximum(cosines, 1e-17))

    fig, ax = plt.subplots(figsize=(8, 7))
    sns.heatmap(log_cosines, cmap='RdYlBu_r', vmin=-17, vmax=0, square=True,
                cbar_kws={'label': 'log10 |cos(r_i, r_j)|'}, ax=ax)
    ax.set_xlabel('Residual j', fontsize=12)
    ax.set_ylabel('Residual i', fontsize=12)
    ax.set_title(title or f'Residual Orthogonality ({result.solver_name})',
                 fontsize=12, fontweight='bold')
    plt.tight_layout()
    plt.savefig(path, dpi=150, bbox_inches='tight')
    plt.close(fig)


def main(figure_dir: str = FIGURE_DIR):
    warnings.filterwarnings('ignore')
    plt.style.use('seaborn-v0_8-whitegrid')
    os.makedirs(figure_dir, exist_ok=True)

    print("Building demo problem...")
    rng = np.random.default_rng(DEMO_SEED)
    A = make_spd_matrix(DEMO_SIZE, DEMO_CONDITION_NUMBER, seed=DEMO_SEED)
    b = rng.standard_normal(DEMO_SIZE)

    results = {}
    for name, solver_cls in (('CG', ConjugateGradientSolver),
                             ('CG_RO', ReorthogonalizedCGSolver)):
        solver = solver_cls(tolerance=DEMO_TOLERANCE,
                            max_iterations=2 * DEMO_SIZE,
                            store_history=True)
        results[name] = solver.solve(A, b)

    print("Generating figures...")

    plot_convergence_curves(results, os.path.join(figure_dir, 'convergence_curves.png'),
                            tolerance=DEMO_TOLERANCE)
    print("  ✓ convergence_curves.png")

    for name, result in results.items():
        filename = f'orthogonality_{name}.png'
        plot_orthogonality_heatmap(result, os.path.join(figure_dir, filename))
        print(f"  ✓ {filename}")

    print("\n" + "="*60)
    print("ALL FIGURES GENERATED SUCCESSFULLY!")
    print("="*60)
    print(f"\nFigures saved to: {figure_dir}/")

    return results


if __name__ == '__main__':
    main()
