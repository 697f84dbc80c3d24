"""
Max-bar blocks computing running maxima with pairwise interactions only.

A bar folds N inputs into one output: input 0 is tied to auxiliary 0 by an
equality gadget and input i is combined with auxiliary i-1 into auxiliary i
by a max gadget, so the last auxiliary holds the maximum of all inputs.
"""

from math import ceil
from typing import Iterable, List, Optional, Sequence, Set

from ..errors import InfeasibleEmbeddingError
from ..hardware import chimera
from ..hardware.connectivity import ChimeraGraph
from .base import QubitBlock


class OneMaxBar(QubitBlock):
    """
    Vertical bar computing a single maximum, output at its south end.

    Each input occupies one half cell: the input qubit and one auxiliary
    qubit in the right column, one auxiliary qubit in the left column, plus
    a connecting qubit in the cell below after each lower half cell.

    Attributes:
        nr_inputs: Number of inputs
        input_chains: For input i, entries 2i and 2i+1 tell whether the input
            arrives on the upper or the lower right qubit of its half cell
    """

    def __init__(
        self,
        top_left: int,
        nr_inputs: int,
        input_chains: Sequence[bool],
        other_block_qubits: Iterable[int] = (),
        graph: Optional[ChimeraGraph] = None
    ):
        super().__init__(top_left)
        if nr_inputs < 1:
            raise ValueError("A max bar needs at least one input")
        assert len(input_chains) == 2 * nr_inputs
        self.nr_inputs = nr_inputs
        self.input_chains = list(input_chains)
        self.graph = graph or ChimeraGraph()
        self._unusable: Set[int] = set(other_block_qubits) | set(self.graph.damaged_qubits)

        self._inputs: List[int] = []
        self._auxiliaries: List[Set[int]] = []
        half_cell_corner = top_left
        for input_index in range(nr_inputs):
            self._inputs.append(self._input_qubit(half_cell_corner, input_index))
            aux = self._auxiliary_qubits(half_cell_corner, input_index)
            self._auxiliaries.append(aux)
            self._unusable |= aux
            if input_index < nr_inputs - 1:
                half_cell_corner = chimera.go_south_half(half_cell_corner)

        self._output = min(self._auxiliaries[-1])
        for input_index in range(nr_inputs):
            self.qubits.add(self._inputs[input_index])
            self.qubits |= self._auxiliaries[input_index]

    def _upper_input(self, input_index: int) -> bool:
        upper = self.input_chains[2 * input_index]
        lower = self.input_chains[2 * input_index + 1]
        assert upper != lower, f"Input {input_index} must use exactly one chain"
        return upper

    def _input_qubit(self, half_cell_corner: int, input_index: int) -> int:
        right_upper = chimera.right_opposite(half_cell_corner)
        return right_upper if self._upper_input(input_index) else right_upper + 1

    def _right_aux_qubit(self, half_cell_corner: int, input_index: int) -> int:
        right_upper = chimera.right_opposite(half_cell_corner)
        return right_upper + 1 if self._upper_input(input_index) else right_upper

    def _left_aux_qubit(self, half_cell_corner: int) -> int:
        left_upper, left_lower = half_cell_corner, half_cell_corner + 1
        if left_upper not in self._unusable:
            return left_upper
        if left_lower not in self._unusable:
            return left_lower
        raise InfeasibleEmbeddingError(
            f"No usable auxiliary qubit in half cell at {half_cell_corner}"
        )

    def _auxiliary_qubits(self, half_cell_corner: int, input_index: int) -> Set[int]:
        left_aux = self._left_aux_qubit(half_cell_corner)
        aux = {self._right_aux_qubit(half_cell_corner, input_index), left_aux}
        # Lower half cells hand over to the cell below
        lower_half = not chimera.is_cell_corner(half_cell_corner)
        if lower_half and input_index < self.nr_inputs - 1:
            aux.add(chimera.go_south(left_aux))
        return aux

    def get_input(self, input_index: int) -> int:
        return self._inputs[input_index]

    def get_output(self) -> int:
        return self._output

    def get_auxiliaries(self, input_index: int) -> Set[int]:
        """Qubits of auxiliary i, the maximum of inputs 0 to i."""
        return self._auxiliaries[input_index]


class MultiMaxBar(QubitBlock):
    """
    Stack of max-bar cascades computing one maximum per input index.

    Groups are stacked vertically; input i of group g is combined with the
    running maximum of input i over groups 0 to g-1. In the consolidation
    mappers a group is a server and an input is a tenant, so the outputs
    tell for each tenant whether it is assigned anywhere.

    Attributes:
        nr_groups: Number of stacked groups
        nr_inputs_per_group: Inputs (and outputs) per group
        group_cell_height: Cells occupied by the inputs of one group
        min_group_distance: Minimal vertical distance between groups in cells
    """

    def __init__(
        self,
        top_left: int,
        nr_groups: int,
        nr_inputs_per_group: int,
        input_chains: Sequence[Sequence[bool]],
        min_group_distance: int,
        graph: Optional[ChimeraGraph] = None
    ):
        super().__init__(top_left)
        if nr_groups < 1 or nr_inputs_per_group < 1:
            raise ValueError("A max bar needs at least one group and one input per group")
        assert len(input_chains) == nr_groups
        self.nr_groups = nr_groups
        self.nr_inputs_per_group = nr_inputs_per_group
        self.input_chains = [list(row) for row in input_chains]
        self.min_group_distance = min_group_distance
        self.group_cell_height = ceil(nr_inputs_per_group * 2 / 4)
        self.graph = graph or ChimeraGraph()

        self.input_qubits: List[List[Set[int]]] = [
            [set() for _ in range(nr_inputs_per_group)] for _ in range(nr_groups)
        ]
        self.aux_qubits: List[List[Set[int]]] = [
            [set() for _ in range(nr_inputs_per_group)] for _ in range(nr_groups)
        ]
        self._set_input_qubits()
        self._set_aux_qubits()
        self._assert_connections()
        self._assert_no_overlap()

    @property
    def group_distance(self) -> int:
        return max(self.min_group_distance, self.group_cell_height)

    def _leftmost_input_qubit(self, group: int, input_index: int) -> int:
        chains = self.input_chains[group]
        assert chains[2 * input_index] or chains[2 * input_index + 1]
        group_top_left = chimera.go_south(self.top_left, self.group_distance * group)
        offset_x = self.group_cell_height - (input_index // 2 + 1)
        offset_y = 2 * input_index if chains[2 * input_index] else 2 * input_index + 1
        qubit = chimera.go_east(group_top_left + 4, offset_x)
        return chimera.go_south_qubitwise(qubit, offset_y)

    def _set_input_qubits(self):
        """Inputs run east from their leftmost qubit to the bar's east edge."""
        for group in range(self.nr_groups):
            for input_index in range(self.nr_inputs_per_group):
                qubit = self._leftmost_input_qubit(group, input_index)
                current = {qubit}
                offset_x = self.group_cell_height - (input_index // 2 + 1)
                for _ in range(offset_x, self.group_cell_height - 1):
                    qubit = chimera.go_east(qubit)
                    current.add(qubit)
                self.input_qubits[group][input_index] = current
                self.qubits |= current

    def _select_unused(self, candidates: List[int]) -> int:
        for qubit in candidates:
            if qubit not in self.qubits:
                return qubit
        raise AssertionError(f"All of {candidates} are in use")

    def _set_aux_qubits(self):
        """One free qubit per column of the leftmost input cell, plus a vertical
        link to the next group."""
        for group in range(self.nr_groups):
            for input_index in range(self.nr_inputs_per_group):
                leftmost = self._leftmost_input_qubit(group, input_index)
                left_aux = self._select_unused(chimera.left_column(leftmost))
                right_aux = self._select_unused(chimera.right_column(leftmost))
                current = {left_aux, right_aux}
                if group < self.nr_groups - 1:
                    qubit = left_aux
                    for _ in range(self.group_distance):
                        qubit = chimera.go_south(qubit)
                        current.add(qubit)
                self.aux_qubits[group][input_index] = current
                self.qubits |= current

    def _assert_connections(self):
        graph = self.graph
        for group in range(self.nr_groups):
            for input_index in range(self.nr_inputs_per_group):
                inputs = self.input_qubits[group][input_index]
                aux = self.aux_qubits[group][input_index]
                assert graph.is_connected_group(inputs)
                assert graph.is_connected_group(aux)
                assert graph.are_groups_connected(inputs, aux)
                if group > 0:
                    previous = self.aux_qubits[group - 1][input_index]
                    assert graph.are_groups_connected(inputs, previous)
                    assert graph.are_groups_connected(aux, previous)

    def _assert_no_overlap(self):
        union = set()
        separate_count = 0
        for table in (self.input_qubits, self.aux_qubits):
            for row in table:
                for qubits in row:
                    union |= qubits
                    separate_count += len(qubits)
        assert len(union) == separate_count
        assert union == self.qubits

    def get_input_qubits(self, group: int, input_index: int) -> Set[int]:
        return self.input_qubits[group][input_index]

    def get_aux_qubits(self, group: int, input_index: int) -> Set[int]:
        return self.aux_qubits[group][input_index]

    def get_output_qubits(self, output_index: int) -> Set[int]:
        return self.aux_qubits[self.nr_groups - 1][output_index]
