"""
Minimum-energy search over a consolidation mapping.

Stands in for the annealer: the mapping energy
    E(z) = Σ_q w_q z_q + Σ_{q<r} w_qr z_q z_r
is minimized exactly as a MILP, replacing each product by a binary p_qr
with p_qr <= z_q, p_qr <= z_r and p_qr >= z_q + z_r - 1. The optimum is
decoded back into a consolidation solution.
"""

from typing import Dict, List, Optional, Sequence, Tuple
import pulp

from ..config import DOUBLE_TOLERANCE, SolverConfig
from ..consolidation.problem import ConsolidationProblem, ConsolidationSolution
from ..mappers.base import Mapper
from ..qubo.mapping import ConsolidationMapping


class QuadraticConsolidationSolver:
    """
    Solves consolidation problems through the QUBO produced by a mapper.

    Intermediate results of the last solve stay on the instance for
    inspection: the mapping, qubit values and all decoding flags.
    """

    def __init__(self, mapper: Mapper, config: Optional[SolverConfig] = None, verbose: bool = False):
        """
        Initialize quadratic solver.

        Args:
            mapper: Transforms problems into mappings
            config: CBC settings
            verbose: Print the decoding report after each solve
        """
        self.mapper = mapper
        self.config = config or SolverConfig()
        self.verbose = verbose

        # Results storage
        self.problem: Optional[ConsolidationProblem] = None
        self.assignment_constraints: Optional[List[int]] = None
        self.mapping: Optional[ConsolidationMapping] = None
        self.model: Optional[pulp.LpProblem] = None
        self.qubit_vars: Dict[int, pulp.LpVariable] = {}
        self.product_vars: Dict[Tuple[int, int], pulp.LpVariable] = {}
        self.objective_value: Optional[float] = None
        self.qubit_values: Dict[int, int] = {}
        self.solution_is_consistent = False
        self.tenant_assignments: List[int] = []
        self.all_tenants_assigned = False
        self.capacities_respected = False
        self.server_activated: List[bool] = []
        self.activation_consistency = False
        self.total_activation_cost = 0.0
        self.solution: Optional[ConsolidationSolution] = None

    # ------------------------------------------------------------------
    # Model
    # ------------------------------------------------------------------

    def _relevant_qubits(self) -> List[int]:
        qubits = self.mapping.weighted_qubits()
        for group in self.mapping.get_consistent_qubits():
            qubits |= group
        return sorted(qubits)

    def build_model(self) -> pulp.LpProblem:
        """Energy minimization model of the current mapping."""
        self.model = pulp.LpProblem("QuboEnergy", pulp.LpMinimize)
        self.qubit_vars = {
            qubit: pulp.LpVariable(f"z_{qubit}", cat=pulp.LpBinary)
            for qubit in self._relevant_qubits()
        }
        self.product_vars = {}

        energy_terms = []
        for qubit1, qubit2, weight in self.mapping.nonzero_entries():
            if qubit1 == qubit2:
                energy_terms.append(weight * self.qubit_vars[qubit1])
                continue
            product = pulp.LpVariable(f"p_{qubit1}_{qubit2}", cat=pulp.LpBinary)
            z1, z2 = self.qubit_vars[qubit1], self.qubit_vars[qubit2]
            self.model += product <= z1, f"ProdUpper1_{qubit1}_{qubit2}"
            self.model += product <= z2, f"ProdUpper2_{qubit1}_{qubit2}"
            self.model += product >= z1 + z2 - 1, f"ProdLower_{qubit1}_{qubit2}"
            self.product_vars[(qubit1, qubit2)] = product
            energy_terms.append(weight * product)

        self.model += pulp.lpSum(energy_terms), "Energy"
        self._add_assignment_constraints()
        return self.model

    def _add_assignment_constraints(self):
        """Fix every qubit of every tenant variable to the requested assignment."""
        if self.assignment_constraints is None:
            return
        for tenant in range(self.problem.nr_tenants):
            for server in range(self.problem.nr_servers):
                index = self.mapping.get_tenant_index(tenant, server)
                value = 1 if self.assignment_constraints[tenant] == server else 0
                group = self.mapping.consistent_group_of(index) or {index}
                for qubit in sorted(group):
                    self.model += (
                        self.qubit_vars[qubit] == value,
                        f"Fix_{tenant}_{server}_{qubit}"
                    )

    # ------------------------------------------------------------------
    # Decoding
    # ------------------------------------------------------------------

    def extract_qubit_values(self):
        self.qubit_values = {
            qubit: int(round(var.varValue or 0)) for qubit, var in self.qubit_vars.items()
        }

    def _value(self, qubit: int) -> int:
        return self.qubit_values.get(qubit, 0)

    def check_consistency(self):
        """All qubits of one logical variable take one value."""
        self.solution_is_consistent = all(
            len({self._value(qubit) for qubit in group}) == 1
            for group in self.mapping.get_consistent_qubits()
        )

    def extract_tenant_assignments(self):
        """First server whose assignment qubit is set, -1 if none."""
        self.tenant_assignments = []
        for tenant in range(self.problem.nr_tenants):
            assigned = -1
            for server in range(self.problem.nr_servers):
                if self._value(self.mapping.get_tenant_index(tenant, server)) == 1:
                    assigned = server
                    break
            self.tenant_assignments.append(assigned)

    def check_all_tenants_assigned(self):
        self.all_tenants_assigned = all(server != -1 for server in self.tenant_assignments)

    def check_capacities_respected(self):
        problem = self.problem
        self.capacities_respected = True
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                consumption = sum(
                    problem.get_consumption(tenant, metric)
                    for tenant in range(problem.nr_tenants)
                    if self.tenant_assignments[tenant] == server
                )
                if consumption - problem.get_capacity(server, metric) > DOUBLE_TOLERANCE:
                    self.capacities_respected = False

    def extract_server_activation(self):
        self.server_activated = [
            self._value(self.mapping.get_server_index(server)) == 1
            for server in range(self.problem.nr_servers)
        ]

    def check_server_activation_consistency(self):
        """Exactly the servers hosting tenants are active."""
        self.activation_consistency = all(
            self.server_activated[server] == (server in self.tenant_assignments)
            for server in range(self.problem.nr_servers)
        )

    def calculate_activation_cost(self):
        self.total_activation_cost = sum(
            self.problem.get_cost(server)
            for server in range(self.problem.nr_servers) if self.server_activated[server]
        )

    def extract_solution(self) -> ConsolidationSolution:
        self.extract_qubit_values()
        self.check_consistency()
        assert self.solution_is_consistent, "Qubits of one variable disagree at the optimum"
        self.extract_tenant_assignments()
        self.check_all_tenants_assigned()
        self.check_capacities_respected()
        self.extract_server_activation()
        self.check_server_activation_consistency()
        self.calculate_activation_cost()

        is_feasible = self.all_tenants_assigned and self.capacities_respected
        self.solution = ConsolidationSolution(
            is_feasible, self.total_activation_cost, list(self.tenant_assignments)
        )
        return self.solution

    # ------------------------------------------------------------------
    # Solving
    # ------------------------------------------------------------------

    def solve_with_constraints(
        self,
        problem: ConsolidationProblem,
        assignment_constraints: Optional[Sequence[int]] = None
    ) -> ConsolidationSolution:
        """
        Solve while optionally fixing the server of every tenant.

        Args:
            problem: Consolidation problem
            assignment_constraints: Server per tenant, or None for a free solve

        Returns:
            Decoded solution of the minimum-energy state

        Raises:
            InfeasibleEmbeddingError: If the mapper cannot embed the problem
            RuntimeError: If CBC does not prove optimality
        """
        assert assignment_constraints is None or len(assignment_constraints) == problem.nr_tenants
        self.problem = problem
        self.assignment_constraints = (
            list(assignment_constraints) if assignment_constraints is not None else None
        )
        self.mapping = self.mapper.transform(problem)

        self.build_model()
        lp_solver = pulp.PULP_CBC_CMD(
            msg=self.config.msg, timeLimit=self.config.time_limit, gapRel=self.config.gap_rel
        )
        self.model.solve(lp_solver)
        status = pulp.LpStatus[self.model.status]
        if self.model.status != pulp.LpStatusOptimal:
            raise RuntimeError(f"Unexpected solver status: {status}")
        self.objective_value = pulp.value(self.model.objective) or 0.0

        solution = self.extract_solution()
        if self.verbose:
            self.report()
        return solution

    def solve(self, problem: ConsolidationProblem) -> ConsolidationSolution:
        return self.solve_with_constraints(problem, None)

    def report(self):
        """Print the decoded minimum-energy state."""
        print("=" * 60)
        print(self.problem.summary())
        print(f"Objective value: {self.objective_value}")
        for tenant in range(self.problem.nr_tenants):
            entries = []
            for server in range(self.problem.nr_servers):
                index = self.mapping.get_tenant_index(tenant, server)
                entries.append(f"{self._value(index)} ({index})")
            print(f"Tenant {tenant} assignment vector:\t" + "\t".join(entries))
        entries = []
        for server in range(self.problem.nr_servers):
            index = self.mapping.get_server_index(server)
            entries.append(f"{self._value(index)} ({index})")
        print("Server activation vector:\t" + "\t".join(entries))
        print(f"Qubit consistency: {self.solution_is_consistent}")
        print(f"All tenants assigned: {self.all_tenants_assigned}")
        print(f"Capacities respected: {self.capacities_respected}")
        print(f"Activation consistent: {self.activation_consistency}")
        print("=" * 60)
