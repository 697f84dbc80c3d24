# Blocks Package
"""
Tileable qubit blocks: triangles of chains and max-bars.
"""

from .base import QubitBlock
from .triangle import Triangle, TriangleDirection
from .max_bars import OneMaxBar, MultiMaxBar

__all__ = [
    "QubitBlock",
    "Triangle",
    "TriangleDirection",
    "OneMaxBar",
    "MultiMaxBar",
]
