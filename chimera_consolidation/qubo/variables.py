"""
Logical problem variables represented by one or more physical qubits.
"""

from typing import Iterable, Optional, Set

from ..hardware.connectivity import Connectivity
from .mapping import Mapping


class LogicalVariable:
    """
    A binary problem variable represented by a set of qubits.

    Writes go to a single qubit (or a single coupler) while reads sum over
    all qubits (or all couplers between two variables). Both views agree at
    the optimum because every qubit of a variable takes the same value there.
    """

    def __init__(self, connectivity: Connectivity, qubits: Optional[Iterable[int]] = None):
        self.connectivity = connectivity
        self.qubits: Set[int] = set(qubits) if qubits is not None else set()

    @property
    def representative(self) -> int:
        """Qubit receiving the linear weights of this variable."""
        assert self.qubits, "Variable has no qubits"
        return min(self.qubits)

    def add_weight(self, mapping: Mapping, weight: float):
        """Add a linear weight to the representative qubit."""
        qubit = self.representative
        mapping.add_weight(qubit, qubit, weight)

    def get_weight(self, mapping: Mapping) -> float:
        """Accumulated linear weight over all qubits of this variable."""
        return sum(mapping.get_weight(qubit) for qubit in self.qubits)

    def add_connection_weight(self, mapping: Mapping, weight: float, other: "LogicalVariable"):
        """Add a coupling weight on one connected qubit pair between the two variables."""
        qubit1, qubit2 = self.connectivity.connected_qubits(self.qubits, other.qubits)
        mapping.add_weight(qubit1, qubit2, weight)

    def get_connection_weight(self, mapping: Mapping, other: "LogicalVariable") -> float:
        """Accumulated coupling weight over all connected pairs between the two variables."""
        assert self.qubits.isdisjoint(other.qubits), "Variables share qubits"
        result = 0.0
        for qubit1 in self.qubits:
            for qubit2 in other.qubits:
                if self.connectivity.is_connected(qubit1, qubit2):
                    result += mapping.get_connection_weight(qubit1, qubit2)
        return result

    def __repr__(self) -> str:
        return f"{type(self).__name__}({sorted(self.qubits)})"


class CapacityVariable(LogicalVariable):
    """Slack variable standing for a fixed amount of unused server capacity."""

    def __init__(
        self,
        connectivity: Connectivity,
        capacity: float,
        qubits: Optional[Iterable[int]] = None
    ):
        super().__init__(connectivity, qubits)
        self.capacity = capacity
