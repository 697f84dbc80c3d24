# Mappers Package
"""
Strategies that embed consolidation problems onto qubits.

- TriangleMapper: one triangle, single-metric problems
- MatrixMapper: triangle pairs per server and metric pair
- QuboMapper: one qubit per variable on a fully connected graph
"""

from ..errors import InfeasibleEmbeddingError
from .base import Mapper
from .triangle_mapper import TriangleMapper
from .matrix_mapper import MatrixMapper
from .qubo_mapper import QuboMapper

MAPPERS = {
    "triangle": TriangleMapper,
    "matrix": MatrixMapper,
    "qubo": QuboMapper,
}

__all__ = [
    "InfeasibleEmbeddingError",
    "Mapper",
    "TriangleMapper",
    "MatrixMapper",
    "QuboMapper",
    "MAPPERS",
]
