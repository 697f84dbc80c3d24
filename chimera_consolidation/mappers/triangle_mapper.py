"""
Triangle mapper: the whole problem in one south-west triangle.

Tenant assignment and capacity variables share the chains of a single
triangle, so every pair of them is directly coupled. One activation bar
per server runs down the westmost cell column next to the triangle.
"""

from typing import List, Sequence, Set

from ..blocks import OneMaxBar, Triangle, TriangleDirection
from ..consolidation.problem import ConsolidationProblem
from ..errors import InfeasibleEmbeddingError
from ..hardware import chimera
from ..qubo.mapping import ConsolidationMapping
from ..qubo.penalties import CapacityDecomposition
from ..qubo.variables import CapacityVariable, LogicalVariable
from .base import CapacityVars, Mapper

# Top left qubit of the triangle, one cell east of the activation bars
TRIANGLE_TOP_LEFT = 8


class TriangleMapper(Mapper):
    """
    Maps small single-metric problems into one triangle.

    Only every second chain can carry a tenant variable since each half cell
    of the activation bars takes one input, so the chains between tenant
    chains are handed to capacity variables.
    """

    name = "Triangle Mapper"

    def nr_triangle_chains(self, problem: ConsolidationProblem) -> int:
        """
        Number of chains the triangle needs.

        Every damaged qubit is assumed to break one chain. Broken and
        capacity chains first fill the gaps between tenant chains.
        """
        nr_tenant_vars = problem.nr_tenants * problem.nr_servers
        nr_capacity_vars = 0
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                nr_capacity_vars += self.nr_capacity_vars(problem, problem.get_capacity(server, metric))

        tenant_chains = 2 * nr_tenant_vars
        non_tenant_chains = nr_capacity_vars + len(self.graph.damaged_qubits)
        chains_between_tenants = nr_tenant_vars
        if chains_between_tenants >= non_tenant_chains:
            nr_chains = tenant_chains
        else:
            nr_chains = tenant_chains + non_tenant_chains - chains_between_tenants
        return CapacityDecomposition.round_up_four(nr_chains)

    def create_triangle(self, problem: ConsolidationProblem) -> Triangle:
        nr_chains = self.nr_triangle_chains(problem)
        if nr_chains > self.config.penalties.max_triangle_chains:
            raise InfeasibleEmbeddingError("Not enough Qubits!")
        return Triangle(TriangleDirection.SOUTH_WEST, TRIANGLE_TOP_LEFT, nr_chains, self.graph)

    def tenant_chains(self, problem: ConsolidationProblem, triangle: Triangle) -> List[bool]:
        """
        Flag the chain of each tenant variable.

        Tenant variable k may use chain 2k or 2k+1; the first intact one is
        flagged.
        """
        nr_tenant_vars = problem.nr_tenants * problem.nr_servers
        result = [False] * (2 * nr_tenant_vars)
        for var_index in range(nr_tenant_vars):
            first, second = 2 * var_index, 2 * var_index + 1
            if triangle.chain_ok[first]:
                result[first] = True
            elif triangle.chain_ok[second]:
                result[second] = True
            else:
                raise InfeasibleEmbeddingError("Too many broken qubits")
        return result

    def create_max_bars(self, problem: ConsolidationProblem, is_tenant_chain: Sequence[bool]) -> List[OneMaxBar]:
        """Activation bars stacked along the west edge, one half cell per tenant."""
        nr_tenants = problem.nr_tenants
        bars = []
        used_qubits: Set[int] = set()
        for server in range(problem.nr_servers):
            input_chains = is_tenant_chain[2 * server * nr_tenants:2 * (server + 1) * nr_tenants]
            top_left = chimera.go_south_half(0, server * nr_tenants)
            bar = OneMaxBar(top_left, nr_tenants, input_chains, used_qubits, self.graph)
            used_qubits |= bar.qubits
            bars.append(bar)
        return bars

    def assign_tenant_vars(
        self,
        problem: ConsolidationProblem,
        triangle: Triangle,
        max_bars: Sequence[OneMaxBar],
        is_tenant_chain: Sequence[bool]
    ) -> List[List[LogicalVariable]]:
        """Each tenant variable gets its triangle chain plus one bar input."""
        tenant_vars = [[None] * problem.nr_servers for _ in range(problem.nr_tenants)]
        chain_index = 0
        for server in range(problem.nr_servers):
            bar = max_bars[server]
            for tenant in range(problem.nr_tenants):
                while not is_tenant_chain[chain_index]:
                    chain_index += 1
                qubits = triangle.get_chain(chain_index) | {bar.get_input(tenant)}
                tenant_vars[tenant][server] = LogicalVariable(self.graph, qubits)
                triangle.mark_as_used(chain_index)
                chain_index += 1
        return tenant_vars

    def assign_capacity_vars(self, problem: ConsolidationProblem, triangle: Triangle) -> CapacityVars:
        capacity_vars: CapacityVars = {}
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                capacities = self.capacity_values(problem, problem.get_capacity(server, metric))
                capacity_vars[(server, metric)] = [
                    CapacityVariable(self.graph, capacity, triangle.mark_unused_ok_chain())
                    for capacity in capacities
                ]
        return capacity_vars

    def transform(self, problem: ConsolidationProblem) -> ConsolidationMapping:
        triangle = self.create_triangle(problem)
        is_tenant_chain = self.tenant_chains(problem, triangle)
        activation_bars = self.create_max_bars(problem, is_tenant_chain)
        self.check_blocks_intact(activation_bars)

        tenant_vars = self.assign_tenant_vars(problem, triangle, activation_bars, is_tenant_chain)
        capacity_vars = self.assign_capacity_vars(problem, triangle)
        aux_activation_vars = self.assign_aux_activation_vars(problem, activation_bars)
        server_vars = self.assign_server_vars(problem, activation_bars)
        self.assert_no_overlap(problem, tenant_vars, capacity_vars, aux_activation_vars)

        self.layout = {
            "triangle_chains": triangle.nr_chains,
            "broken_chains": triangle.nr_broken_chains,
        }

        mapping = ConsolidationMapping(self.graph, problem.nr_tenants, problem.nr_servers)
        self.impose_one_hot_assignment(problem, tenant_vars, mapping)
        self.impose_common_constraints(
            problem, tenant_vars, capacity_vars, aux_activation_vars, server_vars, mapping
        )
        self.finalize(
            problem, tenant_vars, capacity_vars, aux_activation_vars, None, server_vars, mapping
        )
        return mapping
