"""
Base class of qubit blocks.
"""

from typing import Set


class QubitBlock:
    """
    A group of qubits that may extend over several unit cells.

    Attributes:
        top_left: Qubit index of the block's top-left anchor
        qubits: All qubits occupied by the block
    """

    def __init__(self, top_left: int):
        assert top_left >= 0
        self.top_left = top_left
        self.qubits: Set[int] = set()
