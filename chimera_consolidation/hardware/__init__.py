# Hardware Package
"""
Chimera qubit geometry and connectivity models.
"""

from .chimera import CellPosition, NR_QUBITS
from .connectivity import Connectivity, ChimeraGraph, FullyConnected

__all__ = [
    "CellPosition",
    "NR_QUBITS",
    "Connectivity",
    "ChimeraGraph",
    "FullyConnected",
]
