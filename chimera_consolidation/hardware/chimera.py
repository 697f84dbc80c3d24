"""
Qubit geometry on the Chimera graph.

Qubits are numbered row-major by unit cell: cell (row, col) owns the eight
qubits starting at row * 64 + col * 8. Offsets 0-3 form the left column and
offsets 4-7 the right column of a cell. Left column qubits couple to the same
offset in the cells above and below, right column qubits to the same offset
in the cells left and right, and inside a cell every left qubit couples to
every right qubit.
"""

from dataclasses import dataclass
from typing import List, Set


CELL_SIZE = 8
COLUMN_SIZE = 4
GRID_SIZE = 8
ROW_STRIDE = CELL_SIZE * GRID_SIZE
NR_QUBITS = ROW_STRIDE * GRID_SIZE


@dataclass(frozen=True)
class CellPosition:
    """Row and column of a unit cell on the grid."""
    row: int
    col: int

    @classmethod
    def of(cls, qubit: int) -> "CellPosition":
        """Cell position of the cell containing the qubit."""
        assert 0 <= qubit < NR_QUBITS
        return cls(qubit // ROW_STRIDE, (qubit % ROW_STRIDE) // CELL_SIZE)

    @property
    def corner(self) -> int:
        """Top-left qubit of this cell."""
        return self.row * ROW_STRIDE + self.col * CELL_SIZE


# ---------------------------------------------------------------------------
# Position within the grid
# ---------------------------------------------------------------------------

def cell_index(qubit: int) -> int:
    """Row-major index of the unit cell the qubit belongs to."""
    return qubit // CELL_SIZE


def corner_qubit(qubit: int) -> int:
    """Qubit at the top-left corner of the qubit's cell."""
    return qubit - qubit % CELL_SIZE


def is_cell_corner(qubit: int) -> bool:
    return qubit % CELL_SIZE == 0


def is_left_column(qubit: int) -> bool:
    return qubit % CELL_SIZE < COLUMN_SIZE


def is_at_bottom(qubit: int) -> bool:
    """Whether the qubit sits in the bottom row of its cell column."""
    return qubit % COLUMN_SIZE == COLUMN_SIZE - 1


def in_same_cell(qubit1: int, qubit2: int) -> bool:
    return cell_index(qubit1) == cell_index(qubit2)


def cell_qubits(corner: int) -> Set[int]:
    """All eight qubits of the cell with the given top-left qubit."""
    assert is_cell_corner(corner)
    return set(range(corner, corner + CELL_SIZE))


def left_column(qubit: int) -> List[int]:
    """Ordered left column qubits of the qubit's cell."""
    corner = corner_qubit(qubit)
    return list(range(corner, corner + COLUMN_SIZE))


def right_column(qubit: int) -> List[int]:
    """Ordered right column qubits of the qubit's cell."""
    corner = corner_qubit(qubit)
    return list(range(corner + COLUMN_SIZE, corner + CELL_SIZE))


def right_opposite(qubit: int) -> int:
    """Right column qubit on the same height as a left column qubit."""
    assert is_left_column(qubit)
    return qubit + COLUMN_SIZE


# ---------------------------------------------------------------------------
# Navigation between cells
# ---------------------------------------------------------------------------

def can_go_north(qubit: int) -> bool:
    return qubit >= ROW_STRIDE


def can_go_south(qubit: int) -> bool:
    return qubit < NR_QUBITS - ROW_STRIDE


def can_go_east(qubit: int) -> bool:
    return qubit % ROW_STRIDE < ROW_STRIDE - CELL_SIZE


def can_go_west(qubit: int) -> bool:
    return qubit % ROW_STRIDE >= CELL_SIZE


def go_north(qubit: int, steps: int = 1) -> int:
    """Same offset in the cell `steps` rows above."""
    for _ in range(steps):
        assert can_go_north(qubit), f"Cannot go north from qubit {qubit}"
        qubit -= ROW_STRIDE
    return qubit


def go_south(qubit: int, steps: int = 1) -> int:
    """Same offset in the cell `steps` rows below."""
    for _ in range(steps):
        assert can_go_south(qubit), f"Cannot go south from qubit {qubit}"
        qubit += ROW_STRIDE
    return qubit


def go_east(qubit: int, steps: int = 1) -> int:
    """Same offset in the cell `steps` columns to the right."""
    for _ in range(steps):
        assert can_go_east(qubit), f"Cannot go east from qubit {qubit}"
        qubit += CELL_SIZE
    return qubit


def go_west(qubit: int, steps: int = 1) -> int:
    """Same offset in the cell `steps` columns to the left."""
    for _ in range(steps):
        assert can_go_west(qubit), f"Cannot go west from qubit {qubit}"
        qubit -= CELL_SIZE
    return qubit


def go_south_half(qubit: int, steps: int = 1) -> int:
    """
    Walk south in steps of half a cell.

    The upper half of a column (offsets 0-1 or 4-5) moves to the lower half of
    the same cell, the lower half moves to the upper half of the cell below.
    """
    for _ in range(steps):
        if qubit % COLUMN_SIZE < 2:
            qubit += 2
        else:
            qubit = go_south(qubit, 1) - 2
    return qubit


def go_south_qubitwise(qubit: int, steps: int) -> int:
    """Walk south one qubit row at a time, continuing in the cell below."""
    for _ in range(steps):
        if is_at_bottom(qubit):
            qubit += ROW_STRIDE - COLUMN_SIZE + 1
        else:
            qubit += 1
    assert qubit < NR_QUBITS
    return qubit


# ---------------------------------------------------------------------------
# Couplers
# ---------------------------------------------------------------------------

def chimera_neighbors(qubit: int) -> Set[int]:
    """All qubits coupled to the given one (broken qubits included)."""
    result = set()
    if is_left_column(qubit):
        if can_go_north(qubit):
            result.add(go_north(qubit))
        if can_go_south(qubit):
            result.add(go_south(qubit))
        result.update(right_column(qubit))
    else:
        if can_go_east(qubit):
            result.add(go_east(qubit))
        if can_go_west(qubit):
            result.add(go_west(qubit))
        result.update(left_column(qubit))
    return result


def chimera_connected(qubit1: int, qubit2: int) -> bool:
    """Whether a coupler joins the two qubits. Never true for a qubit and itself."""
    if qubit1 == qubit2:
        return False
    if in_same_cell(qubit1, qubit2):
        return is_left_column(qubit1) != is_left_column(qubit2)
    if qubit1 % CELL_SIZE != qubit2 % CELL_SIZE:
        return False
    if is_left_column(qubit1):
        return abs(qubit1 - qubit2) == ROW_STRIDE
    return (abs(qubit1 - qubit2) == CELL_SIZE
            and qubit1 // ROW_STRIDE == qubit2 // ROW_STRIDE)
