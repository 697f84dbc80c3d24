"""
Weight store of a problem mapping onto a qubit matrix.

A mapping holds one weight per qubit (linear bias) and one weight per pair
of connected qubits (coupling). Only the upper triangle of the weight table
is used: entry [i][j] with i <= j.
"""

from typing import Dict, Iterable, List, Optional, Set, Tuple
import numpy as np

from ..hardware.connectivity import Connectivity


class Mapping:
    """
    Linear and quadratic weights placed on the qubits of a connectivity model.

    Writes are gated by the connectivity predicate and by the admissible
    weight range; violating either is a programming error.
    """

    def __init__(self, connectivity: Connectivity):
        self.connectivity = connectivity
        n = connectivity.nr_qubits
        self.weights = np.zeros((n, n), dtype=np.float64)

    @property
    def nr_qubits(self) -> int:
        return self.connectivity.nr_qubits

    def get_weight(self, qubit: int) -> float:
        """Linear weight of a single qubit."""
        return float(self.weights[qubit, qubit])

    def get_connection_weight(self, qubit1: int, qubit2: int) -> float:
        """Coupling weight between two connected qubits (order irrelevant)."""
        assert self.connectivity.is_connected(qubit1, qubit2), \
            f"Asked for weight between unconnected qubits {qubit1} and {qubit2}"
        i, j = min(qubit1, qubit2), max(qubit1, qubit2)
        return float(self.weights[i, j])

    def add_weight(self, qubit1: int, qubit2: int, added_weight: float):
        """
        Add weight to a qubit (qubit1 == qubit2) or to a coupling.

        Args:
            qubit1: First qubit index
            qubit2: Second qubit index
            added_weight: Weight added to the current value
        """
        assert qubit1 == qubit2 or self.connectivity.is_connected(qubit1, qubit2), \
            f"Qubits {qubit1} and {qubit2} are not connected"
        i, j = min(qubit1, qubit2), max(qubit1, qubit2)
        self.weights[i, j] += added_weight
        assert self.weights[i, j] <= self.connectivity.max_weight, "Weight too big!"
        assert self.weights[i, j] >= self.connectivity.min_weight, "Weight too small!"

    def nonzero_entries(self) -> List[Tuple[int, int, float]]:
        """All non-zero (i, j, weight) entries with i <= j in row-major order."""
        rows, cols = np.nonzero(np.triu(self.weights))
        return [(int(i), int(j), float(self.weights[i, j])) for i, j in zip(rows, cols)]

    def weighted_qubits(self) -> Set[int]:
        """Qubits that carry a linear weight or take part in a weighted coupling."""
        qubits = set()
        for i, j, _ in self.nonzero_entries():
            qubits.add(i)
            qubits.add(j)
        return qubits

    def energy(self, values: Dict[int, int]) -> float:
        """
        Energy of a 0/1 assignment; qubits missing from `values` count as 0.

        Args:
            values: Qubit index -> 0 or 1

        Returns:
            Σ w_q z_q + Σ w_qr z_q z_r
        """
        z = np.zeros(self.nr_qubits, dtype=np.float64)
        for qubit, value in values.items():
            z[qubit] = value
        upper = np.triu(self.weights)
        return float(z @ upper @ z)

    def get_max_abs_weight(
        self,
        consider_single: bool = True,
        consider_connection: bool = True
    ) -> float:
        """Largest absolute weight among the considered entries (0 if none)."""
        candidates = self._considered_abs_weights(consider_single, consider_connection)
        return float(candidates.max()) if candidates.size else 0.0

    def get_min_abs_weight_gt_zero(
        self,
        consider_single: bool = True,
        consider_connection: bool = True
    ) -> float:
        """Smallest non-zero absolute weight among the considered entries (inf if none)."""
        candidates = self._considered_abs_weights(consider_single, consider_connection)
        candidates = candidates[candidates > 0]
        return float(candidates.min()) if candidates.size else float("inf")

    def _considered_abs_weights(self, consider_single: bool, consider_connection: bool) -> np.ndarray:
        parts = []
        if consider_single:
            parts.append(np.abs(np.diag(self.weights)))
        if consider_connection:
            parts.append(np.abs(self.weights[np.triu_indices(self.nr_qubits, k=1)]))
        if not parts:
            return np.zeros(0)
        return np.concatenate(parts)

    def to_file(self, path: str, description: str = ""):
        """
        Write the weights in the annealer input format.

        First line is the description, then one `i j weight` line per
        non-zero entry with i <= j (i == j is a linear bias).
        """
        with open(path, 'w') as f:
            f.write(f"{description}\n")
            for i, j, weight in self.nonzero_entries():
                f.write(f"{i} {j} {weight}\n")


class ConsolidationMapping(Mapping):
    """
    Mapping of a consolidation problem with the index tables needed to
    decode a qubit assignment back into tenant placements.
    """

    def __init__(self, connectivity: Connectivity, nr_tenants: int, nr_servers: int):
        super().__init__(connectivity)
        self.nr_tenants = nr_tenants
        self.nr_servers = nr_servers

        # -1 marks an index that has not been set yet
        self.tenant_index = np.full((nr_tenants, nr_servers), -1, dtype=int)
        self.server_index = np.full(nr_servers, -1, dtype=int)

        # Qubit sets that share one value in every solution of the mapped problem
        self.consistent_qubit_groups: List[Set[int]] = []

        # Role of every used qubit ("tenant", "capacity", "auxiliary", "server")
        self.qubit_roles: Dict[int, str] = {}

    def set_tenant_index(self, tenant: int, server: int, qubit: int):
        assert 0 <= qubit < self.nr_qubits
        self.tenant_index[tenant, server] = qubit

    def get_tenant_index(self, tenant: int, server: int) -> int:
        qubit = int(self.tenant_index[tenant, server])
        assert qubit != -1, f"No index for tenant {tenant} on server {server}"
        return qubit

    def set_server_index(self, server: int, qubit: int):
        assert 0 <= qubit < self.nr_qubits
        self.server_index[server] = qubit

    def get_server_index(self, server: int) -> int:
        qubit = int(self.server_index[server])
        assert qubit != -1, f"No index for server {server}"
        return qubit

    def add_consistent_qubits(self, qubits: Iterable[int]):
        self.consistent_qubit_groups.append(set(qubits))

    def get_consistent_qubits(self) -> List[Set[int]]:
        # A mapping contains at least one variable
        assert self.consistent_qubit_groups
        return self.consistent_qubit_groups

    def consistent_group_of(self, qubit: int) -> Optional[Set[int]]:
        """The consistent qubit group containing the qubit, if any."""
        for group in self.consistent_qubit_groups:
            if qubit in group:
                return group
        return None

    def set_role(self, qubits: Iterable[int], role: str):
        for qubit in qubits:
            self.qubit_roles[qubit] = role
