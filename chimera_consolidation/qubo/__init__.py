# QUBO Package
"""
Weight store, logical variables and penalty encoding.

- Mapping: linear and coupling weights gated by connectivity
- LogicalVariable: a binary unknown spread over several qubits
- PenaltyCalculator / ConstraintEncoder: analytic penalty scalings and gadgets
"""

from .mapping import Mapping, ConsolidationMapping
from .variables import LogicalVariable, CapacityVariable
from .penalties import PenaltyCalculator, CapacityDecomposition
from .constraints import ConstraintEncoder

__all__ = [
    "Mapping",
    "ConsolidationMapping",
    "LogicalVariable",
    "CapacityVariable",
    "PenaltyCalculator",
    "CapacityDecomposition",
    "ConstraintEncoder",
]
