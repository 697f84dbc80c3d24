"""
Constraint encoding for consolidation mappings.

Penalty gadgets (minimal energy 0 iff the constraint holds):
    Equality(a, b):  s·a + s·b − 2s·ab
    Max(x, y, out):  s·x + s·y + s·out + s·xy − 2s·x·out − 2s·y·out
Capacity constraints expand s·(Σ_t c_t x_t − Σ_k cap_k y_k)² per server and metric.
"""

from typing import Dict, List, Sequence

from ..consolidation.problem import ConsolidationProblem
from .mapping import ConsolidationMapping, Mapping
from .penalties import PenaltyCalculator
from .variables import CapacityVariable, LogicalVariable


class ConstraintEncoder:
    """
    Adds penalty weights for consolidation constraints to a mapping.

    Assignment constraints depend on the qubit layout and are added by the
    mappers themselves using the scalings of the same calculator.
    """

    def __init__(self, calculator: PenaltyCalculator):
        """
        Initialize constraint encoder.

        Args:
            calculator: Source of all penalty scalings
        """
        self.calculator = calculator

    # ------------------------------------------------------------------
    # Gadgets
    # ------------------------------------------------------------------

    @staticmethod
    def add_max_constraint(
        input1: LogicalVariable,
        input2: LogicalVariable,
        output: LogicalVariable,
        scaling: float,
        mapping: Mapping
    ):
        """Make output the maximum of the two inputs."""
        input1.add_weight(mapping, scaling)
        input2.add_weight(mapping, scaling)
        output.add_weight(mapping, scaling)
        input1.add_connection_weight(mapping, scaling, input2)
        input1.add_connection_weight(mapping, -2 * scaling, output)
        input2.add_connection_weight(mapping, -2 * scaling, output)

    @staticmethod
    def add_equality_constraint(
        var1: LogicalVariable,
        var2: LogicalVariable,
        scaling: float,
        mapping: Mapping
    ):
        """Make two variables take the same value."""
        var1.add_weight(mapping, scaling)
        var2.add_weight(mapping, scaling)
        var1.add_connection_weight(mapping, -2 * scaling, var2)

    @staticmethod
    def add_qubit_equality_constraint(qubit1: int, qubit2: int, scaling: float, mapping: Mapping):
        """Make two physical qubits take the same value."""
        mapping.add_weight(qubit1, qubit1, scaling)
        mapping.add_weight(qubit2, qubit2, scaling)
        mapping.add_weight(qubit1, qubit2, -2 * scaling)

    # ------------------------------------------------------------------
    # Consolidation constraints
    # ------------------------------------------------------------------

    def impose_capacity_constraints(
        self,
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        capacity_vars: Dict[tuple, List[CapacityVariable]],
        mapping: ConsolidationMapping
    ):
        """
        Penalize any server whose assigned consumption differs from its used slack.

        Args:
            problem: Consolidation problem
            tenant_vars: tenant_vars[tenant][server]
            capacity_vars: (server, metric) -> capacity variables
            mapping: Mapping receiving the weights
        """
        scaling = self.calculator.capacity_scaling(problem)
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                # Tenant terms
                for tenant in range(problem.nr_tenants):
                    consumption = problem.get_consumption(tenant, metric)
                    tenant_vars[tenant][server].add_weight(
                        mapping, scaling * consumption * consumption
                    )
                for tenant1 in range(problem.nr_tenants):
                    for tenant2 in range(tenant1 + 1, problem.nr_tenants):
                        weight = (scaling * 2 * problem.get_consumption(tenant1, metric)
                                  * problem.get_consumption(tenant2, metric))
                        tenant_vars[tenant1][server].add_connection_weight(
                            mapping, weight, tenant_vars[tenant2][server]
                        )

                # Slack terms; each pair is visited twice so half the weight is added
                slack = capacity_vars[(server, metric)]
                for capacity_var in slack:
                    capacity_var.add_weight(mapping, scaling * capacity_var.capacity ** 2)
                for capacity_var1 in slack:
                    for capacity_var2 in slack:
                        if capacity_var1 is not capacity_var2:
                            weight = scaling * capacity_var1.capacity * capacity_var2.capacity
                            capacity_var1.add_connection_weight(mapping, weight, capacity_var2)

                # Cross terms
                for tenant in range(problem.nr_tenants):
                    consumption = problem.get_consumption(tenant, metric)
                    for capacity_var in slack:
                        weight = -scaling * 2 * consumption * capacity_var.capacity
                        tenant_vars[tenant][server].add_connection_weight(
                            mapping, weight, capacity_var
                        )

    def impose_max_activation_constraints(
        self,
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        aux_activation_vars: Sequence[Sequence[LogicalVariable]],
        mapping: ConsolidationMapping
    ):
        """
        Chain max constraints so the last auxiliary of each server is the
        maximum over its tenant assignment variables.

        Args:
            aux_activation_vars: aux_activation_vars[server][tenant]
        """
        assert len(aux_activation_vars) == problem.nr_servers
        scaling = self.calculator.activation_max_scaling(problem)
        for server in range(problem.nr_servers):
            aux = aux_activation_vars[server]
            self.add_equality_constraint(tenant_vars[0][server], aux[0], scaling, mapping)
            for tenant in range(1, problem.nr_tenants):
                self.add_max_constraint(
                    tenant_vars[tenant][server], aux[tenant - 1], aux[tenant], scaling, mapping
                )

    @staticmethod
    def impose_goal_formula(
        problem: ConsolidationProblem,
        server_vars: Sequence[LogicalVariable],
        mapping: ConsolidationMapping
    ):
        """Activation cost on every server variable."""
        for server in range(problem.nr_servers):
            server_vars[server].add_weight(mapping, problem.get_cost(server))

    def impose_chain_consistency(self, variables: Sequence[LogicalVariable], mapping: Mapping):
        """
        Tie together the qubits of every multi-qubit variable.

        Must run after all other weights are set since the scaling is derived
        from the weights around each variable.
        """
        connectivity = mapping.connectivity
        for variable in variables:
            if len(variable.qubits) < 2:
                continue
            assert connectivity.is_connected_group(variable.qubits), \
                f"Qubits of {variable} are not connected"
            scaling = self.calculator.equality_scaling(variable.qubits, mapping)
            # Ordered pairs: each coupler receives half the scaling twice
            for qubit1 in sorted(variable.qubits):
                for qubit2 in sorted(variable.qubits):
                    if connectivity.is_connected(qubit1, qubit2):
                        self.add_qubit_equality_constraint(qubit1, qubit2, scaling / 2.0, mapping)
