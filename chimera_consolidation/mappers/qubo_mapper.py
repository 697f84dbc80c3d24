"""
Reference mapper without hardware restrictions.

Every variable takes one qubit of a fully connected graph, so no chains,
triangles or max-bars are needed. Solving its mappings checks the penalty
arithmetic of the hardware mappers.
"""

from typing import List

from ..consolidation.problem import ConsolidationProblem
from ..hardware.connectivity import FullyConnected
from ..qubo.mapping import ConsolidationMapping
from ..qubo.variables import CapacityVariable, LogicalVariable
from .base import CapacityVars, Mapper


class QuboMapper(Mapper):
    """
    One qubit per variable, numbered consecutively.

    Order: tenant variables (tenant major), server variables, then capacity
    variables per server and metric.
    """

    name = "QUBO Mapper"

    def nr_qubits(self, problem: ConsolidationProblem) -> int:
        nr_capacity_vars = sum(
            self.nr_capacity_vars(problem, problem.get_capacity(server, metric))
            for server in range(problem.nr_servers)
            for metric in range(problem.nr_metrics)
        )
        return problem.nr_tenants * problem.nr_servers + problem.nr_servers + nr_capacity_vars

    def impose_activation_constraints(
        self,
        problem: ConsolidationProblem,
        tenant_vars: List[List[LogicalVariable]],
        server_vars: List[LogicalVariable],
        mapping: ConsolidationMapping
    ):
        """Penalize x(t,s) = 1 with y(s) = 0 through s*x - s*x*y."""
        scaling = self.calculator.activation_max_scaling(problem)
        for server in range(problem.nr_servers):
            for tenant in range(problem.nr_tenants):
                tenant_var = tenant_vars[tenant][server]
                tenant_var.add_weight(mapping, scaling)
                tenant_var.add_connection_weight(mapping, -scaling, server_vars[server])

    def transform(self, problem: ConsolidationProblem) -> ConsolidationMapping:
        connectivity = FullyConnected(self.nr_qubits(problem))
        qubit = 0

        tenant_vars = [[None] * problem.nr_servers for _ in range(problem.nr_tenants)]
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                tenant_vars[tenant][server] = LogicalVariable(connectivity, {qubit})
                qubit += 1

        server_vars = []
        for server in range(problem.nr_servers):
            server_vars.append(LogicalVariable(connectivity, {qubit}))
            qubit += 1

        capacity_vars: CapacityVars = {}
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                current = []
                for capacity in self.capacity_values(problem, problem.get_capacity(server, metric)):
                    current.append(CapacityVariable(connectivity, capacity, {qubit}))
                    qubit += 1
                capacity_vars[(server, metric)] = current
        assert qubit == connectivity.nr_qubits

        # Server variables own their qubits here, so they join the overlap check
        self.assert_no_overlap(problem, tenant_vars, capacity_vars, [server_vars])
        self.layout = {"qubits": connectivity.nr_qubits}

        mapping = ConsolidationMapping(connectivity, problem.nr_tenants, problem.nr_servers)
        self.impose_one_hot_assignment(problem, tenant_vars, mapping)
        self.encoder.impose_capacity_constraints(problem, tenant_vars, capacity_vars, mapping)
        self.impose_activation_constraints(problem, tenant_vars, server_vars, mapping)
        self.encoder.impose_goal_formula(problem, server_vars, mapping)
        self.finalize(problem, tenant_vars, capacity_vars, [], None, server_vars, mapping)
        return mapping
