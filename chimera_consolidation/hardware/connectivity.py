"""
Qubit connectivity models.

A connectivity model tells a mapping how many qubits exist, which pairs
of qubits can carry a coupling weight and which weights are admissible.
"""

from abc import ABC, abstractmethod
from collections import deque
from typing import FrozenSet, Iterable, Optional, Set, Tuple

from ..config import ChimeraConfig
from .chimera import NR_QUBITS, chimera_connected, chimera_neighbors


class Connectivity(ABC):
    """Base class of all qubit connectivity models."""

    def __init__(self, nr_qubits: int, min_weight: float, max_weight: float):
        self.nr_qubits = nr_qubits
        self.min_weight = min_weight
        self.max_weight = max_weight

    @abstractmethod
    def is_connected(self, qubit1: int, qubit2: int) -> bool:
        """Whether a weight can be placed between two distinct qubits."""

    @abstractmethod
    def neighbors(self, qubit: int) -> Set[int]:
        """Qubits connected to the given qubit."""

    def connected_qubits(
        self,
        group1: Iterable[int],
        group2: Iterable[int]
    ) -> Tuple[int, int]:
        """
        Find a pair of connected qubits between two qubit groups.

        Groups are scanned in ascending order, so the returned pair is
        deterministic.

        Returns:
            First connected (qubit from group1, qubit from group2) pair

        Raises:
            AssertionError: If no qubit of group1 is connected to group2
        """
        sorted2 = sorted(group2)
        for q1 in sorted(group1):
            for q2 in sorted2:
                if self.is_connected(q1, q2):
                    return q1, q2
        raise AssertionError("Qubit groups are not connected")

    def are_groups_connected(self, group1: Iterable[int], group2: Iterable[int]) -> bool:
        """Whether any qubit of group1 is connected to any qubit of group2."""
        group2 = list(group2)
        return any(self.is_connected(q1, q2) for q1 in group1 for q2 in group2)

    def is_connected_group(self, qubits: Iterable[int]) -> bool:
        """Whether the qubits form one connected component."""
        qubits = set(qubits)
        if not qubits:
            return False
        start = next(iter(qubits))
        seen = {start}
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for other in qubits - seen:
                if self.is_connected(current, other):
                    seen.add(other)
                    queue.append(other)
        return seen == qubits


class ChimeraGraph(Connectivity):
    """
    The 8x8 Chimera graph of 512 qubits with a set of broken qubits.

    Broken qubits keep their couplers in the graph; embeddings are
    responsible for never placing weights on them.
    """

    def __init__(self, config: Optional[ChimeraConfig] = None):
        config = config or ChimeraConfig()
        super().__init__(NR_QUBITS, config.min_weight, config.max_weight)
        self.damaged_qubits: FrozenSet[int] = frozenset(config.damaged_qubits)

    def is_connected(self, qubit1: int, qubit2: int) -> bool:
        return chimera_connected(qubit1, qubit2)

    def neighbors(self, qubit: int) -> Set[int]:
        return chimera_neighbors(qubit)

    def is_damaged(self, qubit: int) -> bool:
        return qubit in self.damaged_qubits

    def is_group_intact(self, qubits: Iterable[int]) -> bool:
        """Whether none of the qubits is broken."""
        return self.damaged_qubits.isdisjoint(qubits)


class FullyConnected(Connectivity):
    """Every pair of distinct qubits is connected; weights are unbounded."""

    def __init__(self, nr_qubits: int):
        super().__init__(nr_qubits, float("-inf"), float("inf"))

    def is_connected(self, qubit1: int, qubit2: int) -> bool:
        return qubit1 != qubit2

    def neighbors(self, qubit: int) -> Set[int]:
        return set(range(self.nr_qubits)) - {qubit}
