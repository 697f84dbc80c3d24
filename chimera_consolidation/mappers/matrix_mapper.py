"""
Matrix mapper for problems with several metrics.

Each server owns one row of triangle pairs, one triangle per metric: a
south-west triangle and the north-east triangle right of it share a
square, and the pairs of a row are separated by one cell column. Tenant
variables run through all triangles of their server's row.

Layout from west to east:
    assignment multi-max bar | triangle matrix | activation bars

The multi-max bar makes every tenant assigned at least once, the
activation bars switch servers on.
"""

from math import ceil
from typing import List, Sequence

from ..blocks import MultiMaxBar, OneMaxBar, Triangle, TriangleDirection
from ..consolidation.problem import ConsolidationProblem
from ..errors import InfeasibleEmbeddingError
from ..hardware import chimera
from ..qubo.mapping import ConsolidationMapping
from ..qubo.penalties import CapacityDecomposition
from ..qubo.variables import CapacityVariable, LogicalVariable
from .base import CapacityVars, Mapper


class MatrixMapper(Mapper):
    """
    Tiles pairs of opposing triangles into a matrix of servers x metrics.

    Triangle size depends on the number of broken chains per triangle and
    vice versa, so the chain count is computed as a fixed point.
    """

    name = "Matrix Mapper"

    # ------------------------------------------------------------------
    # Sizing
    # ------------------------------------------------------------------

    @staticmethod
    def triangle_matrix_top_left(problem: ConsolidationProblem) -> int:
        """Top left qubit of the triangle matrix, east of the assignment bar."""
        nr_tenants = problem.nr_tenants
        if nr_tenants < 1:
            raise ValueError("Triangle matrix needs at least one tenant")
        top_left = chimera.go_east(0, (nr_tenants - 1) // 2 + 1)
        if nr_tenants > 4:
            top_left = chimera.go_south(top_left)
        return top_left

    @staticmethod
    def triangle_cell_width(required_chains: int) -> int:
        return CapacityDecomposition.round_up_four(required_chains) // 4

    @classmethod
    def sufficient_space(cls, problem: ConsolidationProblem, top_left: int, required_chains: int) -> bool:
        """Whether triangle matrix and activation column fit on the grid."""
        width = cls.triangle_cell_width(required_chains)
        east_steps = (problem.nr_metrics // 2) * (width + 1)
        south_steps = problem.nr_servers * width - 1

        position = top_left
        for _ in range(east_steps):
            if not chimera.can_go_east(position):
                return False
            position = chimera.go_east(position)
        for _ in range(south_steps):
            if not chimera.can_go_south(position):
                return False
            position = chimera.go_south(position)
        return True

    def create_triangles(
        self,
        problem: ConsolidationProblem,
        top_left: int,
        required_chains: int
    ) -> List[List[Triangle]]:
        """Triangles indexed [server][metric]; even metrics south-west, odd north-east."""
        assert problem.nr_metrics % 2 == 0
        nr_chains = CapacityDecomposition.round_up_four(required_chains)
        width = nr_chains // 4
        triangles = [[None] * problem.nr_metrics for _ in range(problem.nr_servers)]
        for server in range(problem.nr_servers):
            for metric in range(0, problem.nr_metrics, 2):
                south_west_corner = chimera.go_south(
                    chimera.go_east(top_left, (metric // 2) * (width + 1)), server * width
                )
                north_east_corner = chimera.go_east(south_west_corner)
                triangles[server][metric] = Triangle(
                    TriangleDirection.SOUTH_WEST, south_west_corner, nr_chains, self.graph
                )
                triangles[server][metric + 1] = Triangle(
                    TriangleDirection.NORTH_EAST, north_east_corner, nr_chains, self.graph
                )
        return triangles

    @staticmethod
    def max_nr_broken_chains(problem: ConsolidationProblem, triangles: Sequence[Sequence[Triangle]]) -> int:
        return max(
            (triangles[server][metric].nr_broken_chains
             for server in range(problem.nr_servers) for metric in range(problem.nr_metrics)),
            default=0,
        )

    def required_chains(self, problem: ConsolidationProblem, top_left: int) -> int:
        """
        Chains per triangle, iterated until the assumed number of broken
        chains matches the number found in the resulting triangles.

        Raises:
            InfeasibleEmbeddingError: If the triangles leave the grid or the
                iteration does not settle within the configured cap
        """
        nr_tenants = problem.nr_tenants
        max_capacity_vars = 0
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                max_capacity_vars = max(
                    max_capacity_vars,
                    self.nr_capacity_vars(problem, problem.get_capacity(server, metric))
                )

        assumed_broken = 0
        actual_broken = -1
        required = -1
        iterations = 0
        while assumed_broken != actual_broken:
            if iterations == self.config.penalties.max_fixed_point_iterations:
                raise InfeasibleEmbeddingError(
                    f"Chain count did not settle after {iterations} iterations"
                )
            iterations += 1
            assumed_broken = actual_broken
            # Only every second chain can carry a tenant
            if max_capacity_vars + assumed_broken > nr_tenants:
                required = nr_tenants + max_capacity_vars + assumed_broken
            else:
                required = 2 * nr_tenants
            if not self.sufficient_space(problem, top_left, required):
                raise InfeasibleEmbeddingError("Not enough qubits")
            triangles = self.create_triangles(problem, top_left, required)
            actual_broken = self.max_nr_broken_chains(problem, triangles)

        self.layout["fixed_point_iterations"] = iterations
        return required

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def tenant_chains(self, problem: ConsolidationProblem, triangles: Sequence[Sequence[Triangle]]) -> List[List[bool]]:
        """
        Flag the chain of each tenant per server, indexed [server][2 * tenants].

        A candidate chain must be intact in every triangle of the server.
        """
        result = []
        for server in range(problem.nr_servers):
            flags = [False] * (2 * problem.nr_tenants)
            for tenant in range(problem.nr_tenants):
                first, second = 2 * tenant, 2 * tenant + 1
                first_ok = all(triangles[server][m].chain_ok[first] for m in range(problem.nr_metrics))
                second_ok = all(triangles[server][m].chain_ok[second] for m in range(problem.nr_metrics))
                if not first_ok and not second_ok:
                    raise InfeasibleEmbeddingError("Too many broken qubits")
                flags[first if first_ok else second] = True
            result.append(flags)
        return result

    def create_assignment_bar(
        self,
        problem: ConsolidationProblem,
        required_chains: int,
        tenant_chains: Sequence[Sequence[bool]]
    ) -> MultiMaxBar:
        top_left = chimera.go_south(0) if problem.nr_tenants > 4 else 0
        return MultiMaxBar(
            top_left, problem.nr_servers, problem.nr_tenants, tenant_chains,
            self.triangle_cell_width(required_chains), self.graph
        )

    def create_activation_bars(
        self,
        problem: ConsolidationProblem,
        required_chains: int,
        tenant_chains: Sequence[Sequence[bool]]
    ) -> List[OneMaxBar]:
        """One bar per server in the cell column east of the triangle matrix."""
        width = self.triangle_cell_width(required_chains)
        assignment_width = ceil(problem.nr_tenants / 2)
        triangles_width = (problem.nr_metrics // 2) * (width + 1)
        top_left = chimera.go_east(0, assignment_width + triangles_width)
        if problem.nr_tenants > 4:
            top_left = chimera.go_south(top_left)
        return [
            OneMaxBar(chimera.go_south(top_left, server * width), problem.nr_tenants,
                      tenant_chains[server], (), self.graph)
            for server in range(problem.nr_servers)
        ]

    # ------------------------------------------------------------------
    # Variables
    # ------------------------------------------------------------------

    def assign_tenant_vars(
        self,
        problem: ConsolidationProblem,
        triangles: Sequence[Sequence[Triangle]],
        assignment_bar: MultiMaxBar,
        activation_bars: Sequence[OneMaxBar],
        tenant_chains: Sequence[Sequence[bool]]
    ) -> List[List[LogicalVariable]]:
        """A tenant variable spans its assignment bar input, one chain per
        metric triangle and its activation bar input."""
        tenant_vars = [[None] * problem.nr_servers for _ in range(problem.nr_tenants)]
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                qubits = set(assignment_bar.get_input_qubits(server, tenant))
                qubits.add(activation_bars[server].get_input(tenant))
                first, second = 2 * tenant, 2 * tenant + 1
                assert tenant_chains[server][first] or tenant_chains[server][second]
                chain_index = first if tenant_chains[server][first] else second
                for metric in range(problem.nr_metrics):
                    triangle = triangles[server][metric]
                    qubits |= triangle.get_chain(chain_index)
                    triangle.mark_as_used(chain_index)
                tenant_vars[tenant][server] = LogicalVariable(self.graph, qubits)
        return tenant_vars

    def assign_capacity_vars(
        self,
        problem: ConsolidationProblem,
        triangles: Sequence[Sequence[Triangle]]
    ) -> CapacityVars:
        capacity_vars: CapacityVars = {}
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                triangle = triangles[server][metric]
                capacities = self.capacity_values(problem, problem.get_capacity(server, metric))
                capacity_vars[(server, metric)] = [
                    CapacityVariable(self.graph, capacity, triangle.mark_unused_ok_chain())
                    for capacity in capacities
                ]
        return capacity_vars

    def assign_aux_assignment_vars(
        self,
        problem: ConsolidationProblem,
        assignment_bar: MultiMaxBar
    ) -> List[List[LogicalVariable]]:
        """Running maxima of the assignment bar, indexed [server][tenant]."""
        return [
            [LogicalVariable(self.graph, assignment_bar.get_aux_qubits(server, tenant))
             for tenant in range(problem.nr_tenants)]
            for server in range(problem.nr_servers)
        ]

    # ------------------------------------------------------------------
    # Weights
    # ------------------------------------------------------------------

    def impose_assignment_constraints(
        self,
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        aux_assignment_vars: Sequence[Sequence[LogicalVariable]],
        mapping: ConsolidationMapping
    ):
        """
        Reward the maximum over all assignment variables of each tenant.

        Assigning a tenant to a second server never lowers the energy, so
        only the maximum is rewarded.
        """
        scaling = self.calculator.assignment_scaling(problem)
        encoder = self.encoder
        for tenant in range(problem.nr_tenants):
            encoder.add_equality_constraint(
                tenant_vars[tenant][0], aux_assignment_vars[0][tenant], scaling, mapping
            )
            for server in range(1, problem.nr_servers):
                encoder.add_max_constraint(
                    tenant_vars[tenant][server], aux_assignment_vars[server - 1][tenant],
                    aux_assignment_vars[server][tenant], scaling, mapping
                )

        last_server = problem.nr_servers - 1
        for tenant in range(problem.nr_tenants):
            aux_assignment_vars[last_server][tenant].add_weight(mapping, -scaling)

    def transform(self, problem: ConsolidationProblem) -> ConsolidationMapping:
        problem = problem.with_even_metrics()
        self.layout = {}

        top_left = self.triangle_matrix_top_left(problem)
        required = self.required_chains(problem, top_left)
        if not self.sufficient_space(problem, top_left, required):
            raise InfeasibleEmbeddingError("Not enough qubits!")
        triangles = self.create_triangles(problem, top_left, required)
        tenant_chains = self.tenant_chains(problem, triangles)
        assignment_bar = self.create_assignment_bar(problem, required, tenant_chains)
        activation_bars = self.create_activation_bars(problem, required, tenant_chains)
        self.check_blocks_intact([assignment_bar] + activation_bars)

        tenant_vars = self.assign_tenant_vars(
            problem, triangles, assignment_bar, activation_bars, tenant_chains
        )
        capacity_vars = self.assign_capacity_vars(problem, triangles)
        aux_activation_vars = self.assign_aux_activation_vars(problem, activation_bars)
        aux_assignment_vars = self.assign_aux_assignment_vars(problem, assignment_bar)
        server_vars = self.assign_server_vars(problem, activation_bars)
        self.assert_no_overlap(
            problem, tenant_vars, capacity_vars, aux_activation_vars, aux_assignment_vars
        )

        self.layout.update({
            "triangle_top_left": top_left,
            "chains_per_triangle": CapacityDecomposition.round_up_four(required),
            "max_broken_chains": self.max_nr_broken_chains(problem, triangles),
        })

        mapping = ConsolidationMapping(self.graph, problem.nr_tenants, problem.nr_servers)
        self.impose_assignment_constraints(problem, tenant_vars, aux_assignment_vars, mapping)
        self.impose_common_constraints(
            problem, tenant_vars, capacity_vars, aux_activation_vars, server_vars, mapping
        )
        self.finalize(
            problem, tenant_vars, capacity_vars, aux_activation_vars,
            aux_assignment_vars, server_vars, mapping
        )
        return mapping
