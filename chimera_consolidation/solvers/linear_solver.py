"""
Direct MILP formulation of the consolidation problem.

Serves as ground truth for the embedded formulations:
    min  Σ_s cost_s · y_s
    s.t. Σ_s x_ts = 1                          (every tenant placed once)
         x_ts <= y_s                           (hosting servers are active)
         Σ_t consumption_tm · x_ts <= cap_sm   (capacity per metric)
"""

from typing import Dict, Optional, Tuple
import pulp

from ..config import SolverConfig
from ..consolidation.problem import ConsolidationProblem, ConsolidationSolution


class LinearConsolidationSolver:
    """
    Solves consolidation problems with PuLP and CBC.

    Every call to solve() builds its own model and solver command, so one
    instance can be reused for many problems.
    """

    def __init__(self, config: Optional[SolverConfig] = None, verbose: bool = False):
        """
        Initialize linear solver.

        Args:
            config: CBC settings
            verbose: Print a summary after each solve
        """
        self.config = config or SolverConfig()
        self.verbose = verbose

        # Model of the last solve
        self.model: Optional[pulp.LpProblem] = None
        self.x: Dict[Tuple[int, int], pulp.LpVariable] = {}  # Tenant on server
        self.y: Dict[int, pulp.LpVariable] = {}              # Server active

        # Results
        self.solve_status: Optional[str] = None
        self.optimal_value: Optional[float] = None

    def build_model(self, problem: ConsolidationProblem) -> pulp.LpProblem:
        """
        Build the MILP for one problem.

        Returns:
            PuLP LpProblem object
        """
        self.model = pulp.LpProblem("Consolidation", pulp.LpMinimize)
        self.x = {}
        self.y = {}

        for server in range(problem.nr_servers):
            self.y[server] = pulp.LpVariable(f"y_{server}", cat=pulp.LpBinary)
            for tenant in range(problem.nr_tenants):
                self.x[(tenant, server)] = pulp.LpVariable(f"x_{tenant}_{server}", cat=pulp.LpBinary)

        # Objective: activation cost
        self.model += pulp.lpSum(
            problem.get_cost(server) * self.y[server] for server in range(problem.nr_servers)
        ), "ActivationCost"

        self._add_assignment_constraints(problem)
        self._add_activation_constraints(problem)
        self._add_capacity_constraints(problem)
        return self.model

    def _add_assignment_constraints(self, problem: ConsolidationProblem):
        """Σ_s x_ts = 1"""
        for tenant in range(problem.nr_tenants):
            self.model += (
                pulp.lpSum(self.x[(tenant, server)] for server in range(problem.nr_servers)) == 1,
                f"Assign_{tenant}"
            )

    def _add_activation_constraints(self, problem: ConsolidationProblem):
        """x_ts <= y_s"""
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                self.model += (
                    self.x[(tenant, server)] <= self.y[server],
                    f"Activate_{tenant}_{server}"
                )

    def _add_capacity_constraints(self, problem: ConsolidationProblem):
        """Σ_t consumption_tm · x_ts <= capacity_sm"""
        if problem.nr_tenants == 0:
            return
        for server in range(problem.nr_servers):
            for metric in range(problem.nr_metrics):
                consumption = pulp.lpSum(
                    problem.get_consumption(tenant, metric) * self.x[(tenant, server)]
                    for tenant in range(problem.nr_tenants)
                )
                self.model += (
                    consumption <= problem.get_capacity(server, metric),
                    f"Capacity_{server}_{metric}"
                )

    def solve(self, problem: ConsolidationProblem) -> ConsolidationSolution:
        """
        Solve a consolidation problem.

        Returns:
            Solution; infeasible problems yield is_feasible=False

        Raises:
            RuntimeError: If CBC ends neither optimal nor infeasible
        """
        self.build_model(problem)
        lp_solver = pulp.PULP_CBC_CMD(
            msg=self.config.msg, timeLimit=self.config.time_limit, gapRel=self.config.gap_rel
        )
        self.model.solve(lp_solver)
        self.solve_status = pulp.LpStatus[self.model.status]

        if self.model.status == pulp.LpStatusInfeasible:
            self.optimal_value = float('inf')
            solution = ConsolidationSolution(False, float('inf'))
        elif self.model.status == pulp.LpStatusOptimal:
            self.optimal_value = pulp.value(self.model.objective) or 0.0
            assigned = []
            for tenant in range(problem.nr_tenants):
                server = next(
                    s for s in range(problem.nr_servers)
                    if (self.x[(tenant, s)].varValue or 0) > 0.5
                )
                assigned.append(server)
            solution = ConsolidationSolution(True, self.optimal_value, assigned)
        else:
            raise RuntimeError(f"Unexpected solver status: {self.solve_status}")

        if self.verbose:
            print(f"\n[Linear Solver] Status: {self.solve_status}")
            print(f"  {solution.summary()}")
        return solution
