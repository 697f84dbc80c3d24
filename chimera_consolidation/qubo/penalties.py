"""
Penalty scalings derived from problem bounds.

Every scaling is chosen so that violating the corresponding constraint
costs strictly more energy than the violation could save elsewhere in the
objective. No weight is searched for heuristically.
"""

from typing import Iterable, List, Optional

from ..config import PenaltyConfig, DOUBLE_TOLERANCE, MAX_CAPACITY_PER_VAR
from ..consolidation.problem import ConsolidationProblem
from .mapping import Mapping


class PenaltyCalculator:
    """
    Computes the scalings of the consolidation penalties.

    Scalings:
        assignment: Σ_s cost(s) + ε, since leaving one tenant unassigned can
            allow switching off every server
        capacity: ε + maxCost / step², since the smallest capacity excess
            squared is step²
        activation: maxCost + ε, since switching off a used server violates
            at least one max constraint
    """

    def __init__(self, config: Optional[PenaltyConfig] = None):
        self.config = config or PenaltyConfig()

    @property
    def epsilon(self) -> float:
        return self.config.epsilon_weight

    def assignment_scaling(self, problem: ConsolidationProblem) -> float:
        """Scaling of the one-hot tenant assignment penalty."""
        cost_sum = sum(problem.get_cost(server) for server in range(problem.nr_servers))
        return cost_sum + self.epsilon

    def capacity_scaling(self, problem: ConsolidationProblem) -> float:
        """Scaling of the squared capacity penalty."""
        step = problem.min_capacity_step
        return self.epsilon + problem.max_server_cost / (step * step)

    def activation_max_scaling(self, problem: ConsolidationProblem) -> float:
        """Scaling of the max constraints that activate servers."""
        return problem.max_server_cost + self.epsilon

    @staticmethod
    def pessimistic_local_energy(qubit: int, value: int, mapping: Mapping) -> float:
        """
        Upper bound on the energy contributed around one qubit.

        Counts the qubit's own weight and, for every neighbour, the worse of
        the two possible neighbour values.
        """
        assert value in (0, 1)
        energy = value * mapping.get_weight(qubit)
        for neighbor in mapping.connectivity.neighbors(qubit):
            weight = mapping.get_connection_weight(qubit, neighbor)
            energy += max(0.0, value * weight)
        return energy

    @staticmethod
    def optimistic_local_energy(qubit: int, value: int, mapping: Mapping) -> float:
        """Lower bound on the energy contributed around one qubit."""
        assert value in (0, 1)
        energy = value * mapping.get_weight(qubit)
        for neighbor in mapping.connectivity.neighbors(qubit):
            weight = mapping.get_connection_weight(qubit, neighbor)
            energy += min(0.0, value * weight)
        return energy

    def equality_scaling(self, qubits: Iterable[int], mapping: Mapping) -> float:
        """
        Scaling that makes all given qubits take one value at the optimum.

        An inconsistent assignment breaks at least one equality coupling, so
        the coupling must outweigh the largest energy an inconsistent
        assignment can gain over the best consistent one.
        """
        qubits = list(qubits)
        all_zero = sum(self.pessimistic_local_energy(q, 0, mapping) for q in qubits)
        all_one = sum(self.pessimistic_local_energy(q, 1, mapping) for q in qubits)
        consistent_pessimistic = min(all_zero, all_one)

        inconsistent_optimistic = 0.0
        for qubit in qubits:
            inconsistent_optimistic += min(
                self.optimistic_local_energy(qubit, 0, mapping),
                self.optimistic_local_energy(qubit, 1, mapping),
            )

        gap = consistent_pessimistic - inconsistent_optimistic
        return gap + self.epsilon


class CapacityDecomposition:
    """
    Splits server capacity into slack variables.

    Successive slack values are min(remaining, step), min(remaining, 2*step),
    min(remaining, 4*step), ... capped at a fixed maximum per variable, until
    the capacity is covered exactly.
    """

    @staticmethod
    def capacity_values(
        min_capacity_step: float,
        capacity: float,
        max_per_var: float = MAX_CAPACITY_PER_VAR,
        tolerance: float = DOUBLE_TOLERANCE
    ) -> List[float]:
        """
        Slack values whose subsets represent every multiple of the step up to capacity.

        Args:
            min_capacity_step: Smallest non-zero consumption
            capacity: Capacity to cover
            max_per_var: Largest value of a single slack variable
            tolerance: Floating point tolerance

        Returns:
            List of slack values summing to capacity
        """
        assert min_capacity_step > 0
        result = []
        remaining = capacity
        per_var = min_capacity_step
        while remaining > tolerance:
            value = min(remaining, per_var)
            remaining -= value
            per_var = min(per_var * 2, max_per_var)
            result.append(value)

        assert abs(sum(result) - capacity) < tolerance or capacity <= tolerance
        return result

    @staticmethod
    def nr_capacity_vars(
        min_capacity_step: float,
        capacity: float,
        max_per_var: float = MAX_CAPACITY_PER_VAR,
        tolerance: float = DOUBLE_TOLERANCE
    ) -> int:
        """Number of slack variables produced by capacity_values."""
        assert min_capacity_step > 0
        nr_vars = 0
        remaining = capacity
        per_var = min_capacity_step
        while remaining > tolerance:
            nr_vars += 1
            remaining -= min(remaining, per_var)
            per_var = min(per_var * 2, max_per_var)
        return nr_vars

    @staticmethod
    def round_up_four(nr_chains: int) -> int:
        """Round up to the next multiple of four."""
        if nr_chains % 4 == 0:
            return nr_chains
        return nr_chains + 4 - nr_chains % 4
