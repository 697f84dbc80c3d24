"""
Shared machinery of all consolidation mappers.

A mapper sizes and places qubit blocks, assigns every logical variable to a
disjoint qubit set, imposes the penalty weights and records the index
tables needed to decode a solution.
"""

from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Sequence, Tuple

from ..config import EmbeddingConfig
from ..consolidation.problem import ConsolidationProblem
from ..blocks.base import QubitBlock
from ..blocks.max_bars import OneMaxBar
from ..errors import InfeasibleEmbeddingError
from ..hardware.connectivity import ChimeraGraph
from ..qubo.constraints import ConstraintEncoder
from ..qubo.mapping import ConsolidationMapping
from ..qubo.penalties import CapacityDecomposition, PenaltyCalculator
from ..qubo.variables import CapacityVariable, LogicalVariable

# (server, metric) -> capacity variables of that server and metric
CapacityVars = Dict[Tuple[int, int], List[CapacityVariable]]


class Mapper(ABC):
    """
    Base class of the mapping strategies.

    Subclasses implement transform(); everything that does not depend on
    the qubit layout lives here.
    """

    name = "mapper"

    def __init__(self, config: Optional[EmbeddingConfig] = None, verbose: bool = False):
        """
        Initialize mapper.

        Args:
            config: Embedding configuration (defaults without reseeding numpy)
            verbose: Print layout decisions while mapping
        """
        self.config = config or EmbeddingConfig(random_seed=None)
        self.verbose = verbose
        self.graph = ChimeraGraph(self.config.chimera)
        self.calculator = PenaltyCalculator(self.config.penalties)
        self.encoder = ConstraintEncoder(self.calculator)

        # Statistics of the last transform
        self.layout: Dict[str, int] = {}

    @abstractmethod
    def transform(self, problem: ConsolidationProblem) -> ConsolidationMapping:
        """
        Map a consolidation problem onto qubits.

        Raises:
            InfeasibleEmbeddingError: If the problem does not fit the hardware
        """

    # ------------------------------------------------------------------
    # Capacity variables
    # ------------------------------------------------------------------

    def capacity_values(self, problem: ConsolidationProblem, capacity: float) -> List[float]:
        penalties = self.config.penalties
        return CapacityDecomposition.capacity_values(
            problem.min_capacity_step, capacity,
            penalties.max_capacity_per_var, penalties.double_tolerance
        )

    def nr_capacity_vars(self, problem: ConsolidationProblem, capacity: float) -> int:
        penalties = self.config.penalties
        return CapacityDecomposition.nr_capacity_vars(
            problem.min_capacity_step, capacity,
            penalties.max_capacity_per_var, penalties.double_tolerance
        )

    # ------------------------------------------------------------------
    # Activation variables
    # ------------------------------------------------------------------

    def assign_aux_activation_vars(
        self,
        problem: ConsolidationProblem,
        activation_bars: Sequence[OneMaxBar]
    ) -> List[List[LogicalVariable]]:
        """Auxiliary variables of the activation bars, indexed [server][tenant]."""
        assert len(activation_bars) == problem.nr_servers
        return [
            [LogicalVariable(self.graph, bar.get_auxiliaries(tenant))
             for tenant in range(problem.nr_tenants)]
            for bar in activation_bars
        ]

    def assign_server_vars(
        self,
        problem: ConsolidationProblem,
        activation_bars: Sequence[OneMaxBar]
    ) -> List[LogicalVariable]:
        """One single-qubit variable per server, placed on its bar's output."""
        assert len(activation_bars) == problem.nr_servers
        return [LogicalVariable(self.graph, {bar.get_output()}) for bar in activation_bars]

    # ------------------------------------------------------------------
    # Consistency checks
    # ------------------------------------------------------------------

    def check_blocks_intact(self, blocks: Sequence[QubitBlock]):
        """
        Raises:
            InfeasibleEmbeddingError: If a block occupies a damaged qubit
        """
        for block in blocks:
            if not self.graph.is_group_intact(block.qubits):
                raise InfeasibleEmbeddingError(
                    f"{type(block).__name__} at {block.top_left} covers a damaged qubit"
                )

    @staticmethod
    def assert_no_overlap(
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        capacity_vars: CapacityVars,
        aux_activation_vars: Sequence[Sequence[LogicalVariable]],
        aux_assignment_vars: Optional[Sequence[Sequence[LogicalVariable]]] = None
    ):
        """
        Verify that no two variables share a qubit.

        Server variables are left out since they reuse the qubits of the last
        auxiliary activation variable.
        """
        groups = [tenant_vars[t][s].qubits
                  for t in range(problem.nr_tenants) for s in range(problem.nr_servers)]
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                groups.extend(var.qubits for var in capacity_vars[(server, metric)])
        for row in aux_activation_vars:
            groups.extend(var.qubits for var in row)
        if aux_assignment_vars is not None:
            for row in aux_assignment_vars:
                groups.extend(var.qubits for var in row)

        union = set()
        separate_count = 0
        for qubits in groups:
            assert union.isdisjoint(qubits), f"Qubits {sorted(union & qubits)} assigned twice"
            union |= qubits
            separate_count += len(qubits)
        assert len(union) == separate_count

    # ------------------------------------------------------------------
    # Weights shared by the geometric mappers
    # ------------------------------------------------------------------

    def impose_one_hot_assignment(
        self,
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        mapping: ConsolidationMapping
    ):
        """
        Reward every assignment variable and penalize assigning a tenant twice.

        Requires the assignment variables of one tenant to be pairwise connected.
        """
        scaling = self.calculator.assignment_scaling(problem)
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                tenant_vars[tenant][server].add_weight(mapping, -scaling)
        for tenant in range(problem.nr_tenants):
            for server1 in range(problem.nr_servers):
                for server2 in range(server1 + 1, problem.nr_servers):
                    tenant_vars[tenant][server1].add_connection_weight(
                        mapping, 2 * scaling, tenant_vars[tenant][server2]
                    )

    def impose_common_constraints(
        self,
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        capacity_vars: CapacityVars,
        aux_activation_vars: Sequence[Sequence[LogicalVariable]],
        server_vars: Sequence[LogicalVariable],
        mapping: ConsolidationMapping
    ):
        """Capacity, activation and goal weights."""
        self.encoder.impose_capacity_constraints(problem, tenant_vars, capacity_vars, mapping)
        self.encoder.impose_max_activation_constraints(problem, tenant_vars, aux_activation_vars, mapping)
        self.encoder.impose_goal_formula(problem, server_vars, mapping)

    @staticmethod
    def all_variables(
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        capacity_vars: CapacityVars,
        aux_activation_vars: Sequence[Sequence[LogicalVariable]],
        aux_assignment_vars: Optional[Sequence[Sequence[LogicalVariable]]] = None
    ) -> List[LogicalVariable]:
        """Every variable owning its qubits, in a fixed order."""
        result = [tenant_vars[t][s]
                  for t in range(problem.nr_tenants) for s in range(problem.nr_servers)]
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                result.extend(capacity_vars[(server, metric)])
        for row in aux_activation_vars:
            result.extend(row)
        if aux_assignment_vars is not None:
            for row in aux_assignment_vars:
                result.extend(row)
        return result

    # ------------------------------------------------------------------
    # Index tables
    # ------------------------------------------------------------------

    @staticmethod
    def set_tenant_indices(
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        mapping: ConsolidationMapping
    ):
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                qubit = tenant_vars[tenant][server].representative
                mapping.set_tenant_index(tenant, server, qubit)

    @staticmethod
    def set_server_indices(
        problem: ConsolidationProblem,
        server_vars: Sequence[LogicalVariable],
        mapping: ConsolidationMapping
    ):
        for server in range(problem.nr_servers):
            mapping.set_server_index(server, server_vars[server].representative)

    @staticmethod
    def set_consistency_groups(
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        capacity_vars: CapacityVars,
        aux_activation_vars: Sequence[Sequence[LogicalVariable]],
        aux_assignment_vars: Optional[Sequence[Sequence[LogicalVariable]]],
        server_vars: Sequence[LogicalVariable],
        mapping: ConsolidationMapping
    ):
        """Record qubit groups that agree at the optimum, and the role of every qubit."""
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                qubits = tenant_vars[tenant][server].qubits
                mapping.add_consistent_qubits(qubits)
                mapping.set_role(qubits, "tenant")
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                for var in capacity_vars[(server, metric)]:
                    mapping.add_consistent_qubits(var.qubits)
                    mapping.set_role(var.qubits, "capacity")
        aux_rows = list(aux_activation_vars)
        if aux_assignment_vars is not None:
            aux_rows.extend(aux_assignment_vars)
        for row in aux_rows:
            for var in row:
                mapping.add_consistent_qubits(var.qubits)
                mapping.set_role(var.qubits, "auxiliary")
        for var in server_vars:
            mapping.add_consistent_qubits(var.qubits)
            mapping.set_role(var.qubits, "server")

    def finalize(
        self,
        problem: ConsolidationProblem,
        tenant_vars: Sequence[Sequence[LogicalVariable]],
        capacity_vars: CapacityVars,
        aux_activation_vars: Sequence[Sequence[LogicalVariable]],
        aux_assignment_vars: Optional[Sequence[Sequence[LogicalVariable]]],
        server_vars: Sequence[LogicalVariable],
        mapping: ConsolidationMapping
    ):
        """
        Tie chains together and record the index tables.

        Must be called once every other weight has been imposed.
        """
        variables = self.all_variables(
            problem, tenant_vars, capacity_vars, aux_activation_vars, aux_assignment_vars
        )
        self.encoder.impose_chain_consistency(variables, mapping)
        self.set_tenant_indices(problem, tenant_vars, mapping)
        self.set_server_indices(problem, server_vars, mapping)
        self.set_consistency_groups(
            problem, tenant_vars, capacity_vars, aux_activation_vars,
            aux_assignment_vars, server_vars, mapping
        )
        self.layout["nr_variables"] = len(variables) + len(server_vars)
        self.report(problem, mapping)

    def report(self, problem: ConsolidationProblem, mapping: ConsolidationMapping):
        """Print layout statistics if verbose."""
        if not self.verbose:
            return
        print(f"\n[{self.name}] Mapped {problem.nr_tenants} tenants, "
              f"{problem.nr_servers} servers, {problem.nr_metrics} metrics")
        for key, value in self.layout.items():
            print(f"  {key}: {value}")
        print(f"  Used qubits: {len(mapping.qubit_roles)}")
        print(f"  Max |weight|: {mapping.get_max_abs_weight():.3f}")
