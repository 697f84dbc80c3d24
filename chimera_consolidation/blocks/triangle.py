"""
Triangle block: a fully connected set of qubit chains.

A triangle of width W cells holds 4*W chains. Every chain runs from the
triangle's vertical border through one diagonal cell to its horizontal
border, and every pair of chains meets in some cell, so the chains form a
clique of logical variables.
"""

from enum import Enum
from typing import List, Optional, Set

from ..errors import InfeasibleEmbeddingError
from ..hardware import chimera
from ..hardware.connectivity import ChimeraGraph
from .base import QubitBlock


class TriangleDirection(Enum):
    """Corner of the bounding square that the triangle covers."""
    NORTH_EAST = "north_east"
    SOUTH_WEST = "south_west"


class Triangle(QubitBlock):
    """
    Triangle of unit cells anchored at a cell corner.

    Cells on the diagonal are always part of the triangle; a north-east
    triangle extends east of the diagonal, a south-west triangle south of it.

    Attributes:
        direction: Orientation of the triangle
        nr_chains: Number of chains (a multiple of four)
        cell_width: Width and height in cells
        chain_ok: Whether each chain is free of broken qubits
        chain_used: Whether each chain has been handed out
        nr_broken_chains: Number of chains containing a broken qubit
    """

    def __init__(
        self,
        direction: TriangleDirection,
        top_left: int,
        nr_chains: int,
        graph: Optional[ChimeraGraph] = None
    ):
        super().__init__(top_left)
        assert nr_chains % 4 == 0, f"Chain count {nr_chains} is no multiple of four"
        assert chimera.is_cell_corner(top_left)
        self.direction = direction
        self.nr_chains = nr_chains
        self.cell_width = nr_chains // 4
        self.graph = graph or ChimeraGraph()

        self.qubits.update(self._footprint())
        self.border_qubits = self._border_qubits()
        assert self.border_qubits <= self.qubits

        self.chain_used = [False] * nr_chains
        self.chain_ok = [self.graph.is_group_intact(self.get_chain(c))
                         for c in range(nr_chains)]
        self.nr_broken_chains = self.chain_ok.count(False)

    def _step_off_diagonal(self, corner: int) -> int:
        if self.direction == TriangleDirection.NORTH_EAST:
            return chimera.go_east(corner)
        return chimera.go_south(corner)

    def _diagonal_corners(self) -> List[int]:
        corners = [self.top_left]
        for _ in range(self.cell_width - 1):
            corners.append(chimera.go_south(chimera.go_east(corners[-1])))
        return corners

    def _footprint(self) -> Set[int]:
        """Qubits of the diagonal cells and the cells between them and the borders."""
        result = set()
        for index, diagonal in enumerate(self._diagonal_corners()):
            result |= chimera.cell_qubits(diagonal)
            corner = diagonal
            for _ in range(self.cell_width - 1 - index):
                corner = self._step_off_diagonal(corner)
                result |= chimera.cell_qubits(corner)
        return result

    def _border_qubits(self) -> Set[int]:
        """Qubits of the diagonal, horizontal border and vertical border cells."""
        result = set()
        for corner in self._diagonal_corners():
            result |= chimera.cell_qubits(corner)

        last = self.cell_width - 1
        if self.direction == TriangleDirection.NORTH_EAST:
            horizontal_start = self.top_left
            vertical_start = chimera.go_east(self.top_left, last)
        else:
            horizontal_start = chimera.go_south(self.top_left, last)
            vertical_start = self.top_left

        for steps in range(self.cell_width):
            result |= chimera.cell_qubits(chimera.go_east(horizontal_start, steps))
            result |= chimera.cell_qubits(chimera.go_south(vertical_start, steps))
        return result

    def get_chain(self, chain_index: int) -> Set[int]:
        """
        Qubits of one chain.

        Chain c crosses the diagonal in cell c // 4 at row c % 4. Its right
        column part runs horizontally to the border, its left column part
        vertically.
        """
        assert 0 <= chain_index < self.nr_chains
        cell_index, offset = divmod(chain_index, 4)
        if self.direction == TriangleDirection.NORTH_EAST:
            steps_x = self.cell_width - 1 - cell_index
            steps_y = cell_index
        else:
            steps_x = cell_index
            steps_y = self.cell_width - 1 - cell_index

        diagonal_left = chimera.go_south(chimera.go_east(self.top_left + offset, cell_index), cell_index)
        diagonal_right = chimera.right_opposite(diagonal_left)
        assert diagonal_left in self.border_qubits
        assert diagonal_right in self.border_qubits

        result = {diagonal_right, diagonal_left}
        horizontal = diagonal_right
        for _ in range(steps_x):
            if self.direction == TriangleDirection.NORTH_EAST:
                horizontal = chimera.go_east(horizontal)
            else:
                horizontal = chimera.go_west(horizontal)
            assert horizontal in self.qubits
            result.add(horizontal)
        assert horizontal in self.border_qubits

        vertical = diagonal_left
        for _ in range(steps_y):
            if self.direction == TriangleDirection.NORTH_EAST:
                vertical = chimera.go_north(vertical)
            else:
                vertical = chimera.go_south(vertical)
            assert vertical in self.qubits
            result.add(vertical)
        assert vertical in self.border_qubits
        return result

    def mark_as_used(self, chain_index: int):
        """Reserve a chain; no chain may be reserved twice."""
        assert 0 <= chain_index < self.nr_chains
        assert not self.chain_used[chain_index], f"Chain {chain_index} already used"
        self.chain_used[chain_index] = True

    def mark_unused_ok_chain(self) -> Set[int]:
        """
        Reserve the first unused chain without broken qubits.

        Raises:
            InfeasibleEmbeddingError: If every intact chain is in use
        """
        for chain_index in range(self.nr_chains):
            if not self.chain_used[chain_index] and self.chain_ok[chain_index]:
                self.chain_used[chain_index] = True
                return self.get_chain(chain_index)
        raise InfeasibleEmbeddingError("No unused chain available without faulty qubits!")
