# Consolidation Package
"""
Server consolidation problem, solution and random test case factory.
"""

from .problem import ConsolidationProblem, ConsolidationSolution
from .factory import ProblemFactory

__all__ = [
    "ConsolidationProblem",
    "ConsolidationSolution",
    "ProblemFactory",
]
