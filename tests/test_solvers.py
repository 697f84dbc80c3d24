"""
Cross-validation of the MILP ground truth and the minimum-energy solver.
"""

import pytest

from chimera_consolidation.config import FactoryConfig
from chimera_consolidation.consolidation import ConsolidationProblem, ProblemFactory
from chimera_consolidation.errors import InfeasibleEmbeddingError
from chimera_consolidation.mappers import MAPPERS, QuboMapper, TriangleMapper
from chimera_consolidation.solvers import LinearConsolidationSolver, QuadraticConsolidationSolver


def single_tenant_problem(consumption):
    problem = ConsolidationProblem(1, 1, 1, 0.5)
    problem.set_consumption(0, 0, consumption)
    problem.set_capacity(0, 0, 1)
    problem.set_server_cost(0, 2)
    return problem


def two_tenant_problem():
    """Both tenants fit only on the expensive server together."""
    problem = ConsolidationProblem(2, 2, 1, 0.5)
    problem.set_consumption(0, 0, 1)
    problem.set_consumption(1, 0, 1)
    problem.set_capacity(0, 0, 2)
    problem.set_capacity(1, 0, 1)
    problem.set_server_cost(0, 3)
    problem.set_server_cost(1, 1)
    return problem


class TestLinearSolver:

    def test_feasible(self):
        solution = LinearConsolidationSolver().solve(single_tenant_problem(0.5))
        assert solution.is_feasible
        assert solution.min_total_cost == pytest.approx(2)
        assert solution.assigned_server == [0]

    def test_infeasible(self):
        solver = LinearConsolidationSolver()
        solution = solver.solve(single_tenant_problem(1.5))
        assert not solution.is_feasible
        assert solver.solve_status == "Infeasible"

    def test_consolidates_on_one_server(self):
        solution = LinearConsolidationSolver().solve(two_tenant_problem())
        assert solution.min_total_cost == pytest.approx(3)
        assert solution.assigned_server == [0, 0]

    def test_model_size(self):
        solver = LinearConsolidationSolver()
        model = solver.build_model(two_tenant_problem())
        assert len(model.variables()) == 6
        # Assignment, activation and capacity constraints
        assert len(model.constraints) == 2 + 4 + 2


@pytest.mark.parametrize("mapper_name", sorted(MAPPERS))
class TestQuadraticSolver:

    def test_feasible_single_tenant(self, mapper_name):
        solver = QuadraticConsolidationSolver(MAPPERS[mapper_name]())
        solution = solver.solve(single_tenant_problem(0.5))
        assert solution.is_feasible
        assert solution.min_total_cost == pytest.approx(2)
        assert solver.solution_is_consistent
        assert solver.activation_consistency

    def test_infeasible_single_tenant(self, mapper_name):
        solver = QuadraticConsolidationSolver(MAPPERS[mapper_name]())
        solution = solver.solve(single_tenant_problem(1.5))
        assert not solution.is_feasible

    def test_matches_linear_solver(self, mapper_name):
        problem = two_tenant_problem()
        expected = LinearConsolidationSolver().solve(problem)
        actual = QuadraticConsolidationSolver(MAPPERS[mapper_name]()).solve(problem)
        assert actual.is_equivalent(expected)
        assert actual.assigned_server == [0, 0]

    def test_fixed_assignment(self, mapper_name):
        solver = QuadraticConsolidationSolver(MAPPERS[mapper_name]())
        split = solver.solve_with_constraints(two_tenant_problem(), [0, 1])
        assert split.is_feasible
        assert split.min_total_cost == pytest.approx(4)

        overloaded = solver.solve_with_constraints(two_tenant_problem(), [1, 1])
        assert not overloaded.is_feasible
        assert not solver.capacities_respected
        assert solver.all_tenants_assigned

    @pytest.mark.parametrize("seed", range(3))
    def test_random_problems(self, mapper_name, seed):
        factory = ProblemFactory(FactoryConfig(nr_tenants=2, nr_servers=2, nr_metrics=1), random_seed=seed)
        problem = factory.produce()
        try:
            actual = QuadraticConsolidationSolver(MAPPERS[mapper_name]()).solve(problem)
        except InfeasibleEmbeddingError:
            pytest.skip(f"{mapper_name} mapper cannot embed the problem")
        expected = LinearConsolidationSolver().solve(problem)
        assert actual.is_equivalent(expected)


def test_solver_keeps_last_mapping():
    solver = QuadraticConsolidationSolver(TriangleMapper())
    solver.solve(single_tenant_problem(0.5))
    assert solver.mapping.get_tenant_index(0, 0) == 4
    assert solver.qubit_values[4] == 1
    assert solver.tenant_assignments == [0]
    assert solver.server_activated == [True]


def test_objective_equals_decoded_energy():
    solver = QuadraticConsolidationSolver(QuboMapper())
    solver.solve(two_tenant_problem())
    assert solver.objective_value == pytest.approx(solver.mapping.energy(solver.qubit_values))
