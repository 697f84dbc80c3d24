# Solvers Package
"""
Classical solvers for consolidation problems.

- LinearConsolidationSolver: direct MILP, the ground truth
- QuadraticConsolidationSolver: minimum energy of a mapper's QUBO
"""

from .linear_solver import LinearConsolidationSolver
from .quadratic_solver import QuadraticConsolidationSolver

__all__ = [
    "LinearConsolidationSolver",
    "QuadraticConsolidationSolver",
]
