"""
Tests for the triangle mapper.
"""

import pytest

from chimera_consolidation.config import EPSILON_WEIGHT
from chimera_consolidation.consolidation.problem import ConsolidationProblem
from chimera_consolidation.errors import InfeasibleEmbeddingError
from chimera_consolidation.mappers import TriangleMapper
from chimera_consolidation.qubo.mapping import ConsolidationMapping

T, F = True, False


def problem1():
    problem = ConsolidationProblem(1, 1, 1, 0.25)
    problem.set_consumption(0, 0, 1)
    problem.set_capacity(0, 0, 0.25)
    problem.set_server_cost(0, 0.5)
    return problem


def problem2():
    problem = ConsolidationProblem(10, 1, 1, 0.25)
    for tenant in range(10):
        problem.set_consumption(tenant, 0, 1 + tenant)
    problem.set_capacity(0, 0, 0.25)
    problem.set_server_cost(0, 1)
    return problem


def problem3():
    problem = ConsolidationProblem(5, 1, 1, 0.25)
    for tenant in range(5):
        problem.set_consumption(tenant, 0, 1.5 + 0.25 * tenant)
    problem.set_capacity(0, 0, 3.25)
    problem.set_server_cost(0, 5)
    return problem


def problem4():
    problem = ConsolidationProblem(5, 2, 3, 0.25)
    for server in range(2):
        for metric in range(3):
            problem.set_capacity(server, metric, 3.25)
        problem.set_server_cost(server, 0.5)
    return problem


def problem5():
    problem = ConsolidationProblem(1, 2, 2, 0.5)
    problem.set_consumption(0, 0, 0.5)
    problem.set_consumption(0, 1, 1.5)
    for server in range(2):
        for metric in range(2):
            problem.set_capacity(server, metric, 0.5)
        problem.set_server_cost(server, 1 + 0.5 * server)
    return problem


def problem6():
    problem = ConsolidationProblem(3, 4, 1, 0.5)
    for tenant, consumption in enumerate([1, 2.5, 0.5]):
        problem.set_consumption(tenant, 0, consumption)
    for server, capacity in enumerate([2.5, 0.5, 1, 2.5]):
        problem.set_capacity(server, 0, capacity)
    for server, cost in enumerate([0, 0, 2.5, 0.5]):
        problem.set_server_cost(server, cost)
    return problem


@pytest.fixture
def mapper():
    return TriangleMapper()


def layout(mapper, problem):
    """Blocks and variables of a problem without imposing weights."""
    triangle = mapper.create_triangle(problem)
    is_tenant_chain = mapper.tenant_chains(problem, triangle)
    bars = mapper.create_max_bars(problem, is_tenant_chain)
    tenant_vars = mapper.assign_tenant_vars(problem, triangle, bars, is_tenant_chain)
    capacity_vars = mapper.assign_capacity_vars(problem, triangle)
    aux_vars = mapper.assign_aux_activation_vars(problem, bars)
    server_vars = mapper.assign_server_vars(problem, bars)
    return triangle, is_tenant_chain, bars, tenant_vars, capacity_vars, aux_vars, server_vars


class TestSizing:

    @pytest.mark.parametrize("problem, expected", [
        (problem1(), 8),
        (problem2(), 20),
        (problem3(), 12),
        (problem4(), 40),
        (problem5(), 12),
        (problem6(), 24),
    ])
    def test_nr_triangle_chains(self, mapper, problem, expected):
        assert mapper.nr_triangle_chains(problem) == expected

    def test_too_many_chains(self, mapper):
        with pytest.raises(InfeasibleEmbeddingError):
            mapper.create_triangle(problem4())
        with pytest.raises(InfeasibleEmbeddingError):
            mapper.transform(problem4())


class TestLayout:

    def test_tenant_chains(self, mapper):
        problem = problem1()
        assert mapper.tenant_chains(problem, mapper.create_triangle(problem)) == [T, F]

    def test_tenant_chain_avoids_broken_qubit(self, mapper):
        problem = problem2()
        is_tenant_chain = mapper.tenant_chains(problem, mapper.create_triangle(problem))
        assert is_tenant_chain == [T, F] * 5 + [F, T] + [T, F] * 4

    def test_variables_of_single_tenant(self, mapper):
        _, _, _, tenant_vars, capacity_vars, aux_vars, server_vars = layout(mapper, problem1())
        assert tenant_vars[0][0].qubits == {4, 8, 12, 72}
        assert [var.qubits for var in capacity_vars[(0, 0)]] == [{9, 13, 73}]
        assert capacity_vars[(0, 0)][0].capacity == 0.25
        assert aux_vars[0][0].qubits == {0, 5}
        assert server_vars[0].qubits == {0}

    def test_tenant_var_on_broken_chain_neighbour(self, mapper):
        _, _, _, tenant_vars, _, _, _ = layout(mapper, problem2())
        assert tenant_vars[5][0].qubits == {135, 143, 151, 155, 159, 219, 283}

    def test_variables_of_two_servers(self, mapper):
        _, _, bars, tenant_vars, capacity_vars, aux_vars, server_vars = layout(mapper, problem5())
        assert tenant_vars[0][0].qubits == {4, 8, 12, 72, 136}
        assert tenant_vars[0][1].qubits == {6, 10, 14, 74, 138}
        assert capacity_vars[(0, 0)][0].qubits == {9, 13, 73, 137}
        assert capacity_vars[(0, 1)][0].qubits == {11, 15, 75, 139}
        assert capacity_vars[(1, 0)][0].qubits == {76, 80, 84, 144}
        assert capacity_vars[(1, 1)][0].qubits == {77, 81, 85, 145}
        assert aux_vars[0][0].qubits == {0, 5}
        assert aux_vars[1][0].qubits == {2, 7}
        assert [var.qubits for var in server_vars] == [{0}, {2}]

    def test_activation_bars_share_column(self, mapper):
        _, _, bars, _, _, aux_vars, server_vars = layout(mapper, problem6())
        assert [aux_vars[0][t].qubits for t in range(3)] == [{0, 5}, {2, 7, 66}, {64, 69}]
        assert aux_vars[1][0].qubits == {67, 71, 131}
        assert server_vars[0].qubits == {64}
        for bar in bars[1:]:
            assert bar.qubits.isdisjoint(bars[0].qubits)

    def test_variables_are_connected(self, mapper):
        _, _, _, tenant_vars, capacity_vars, aux_vars, _ = layout(mapper, problem6())
        graph = mapper.graph
        problem = problem6()
        for tenant in range(problem.nr_tenants):
            for server in range(problem.nr_servers):
                assert graph.is_connected_group(tenant_vars[tenant][server].qubits)
                assert graph.is_group_intact(tenant_vars[tenant][server].qubits)
        for variables in capacity_vars.values():
            for var in variables:
                assert graph.is_connected_group(var.qubits)
        mapper.assert_no_overlap(problem, tenant_vars, capacity_vars, aux_vars)


class TestWeights:

    @pytest.mark.parametrize("problem, assignment, capacity, activation", [
        (problem1(), 0.5, 0.5 / 0.0625, 0.5),
        (problem2(), 1, 1 / 0.0625, 1),
        (problem3(), 5, 5 / 0.0625, 5),
        (problem5(), 2.5, 1.5 / 0.25, 1.5),
        (problem6(), 3, 2.5 / 0.25, 2.5),
    ])
    def test_scalings(self, mapper, problem, assignment, capacity, activation):
        calculator = mapper.calculator
        assert calculator.assignment_scaling(problem) == pytest.approx(assignment + EPSILON_WEIGHT)
        assert calculator.capacity_scaling(problem) == pytest.approx(capacity + EPSILON_WEIGHT)
        assert calculator.activation_max_scaling(problem) == pytest.approx(activation + EPSILON_WEIGHT)

    def test_one_hot_assignment(self, mapper):
        problem = problem5()
        _, _, _, tenant_vars, _, _, _ = layout(mapper, problem)
        mapping = ConsolidationMapping(mapper.graph, 1, 2)
        mapper.impose_one_hot_assignment(problem, tenant_vars, mapping)

        scaling = mapper.calculator.assignment_scaling(problem)
        assert tenant_vars[0][0].get_weight(mapping) == pytest.approx(-scaling)
        assert tenant_vars[0][1].get_weight(mapping) == pytest.approx(-scaling)
        assert tenant_vars[0][0].get_connection_weight(mapping, tenant_vars[0][1]) == pytest.approx(2 * scaling)

    def test_capacity_weights(self, mapper):
        problem = problem1()
        _, _, _, tenant_vars, capacity_vars, _, _ = layout(mapper, problem)
        mapping = ConsolidationMapping(mapper.graph, 1, 1)
        mapper.encoder.impose_capacity_constraints(problem, tenant_vars, capacity_vars, mapping)

        scaling = mapper.calculator.capacity_scaling(problem)
        tenant_var = tenant_vars[0][0]
        capacity_var = capacity_vars[(0, 0)][0]
        assert tenant_var.get_weight(mapping) == pytest.approx(scaling)
        assert capacity_var.get_weight(mapping) == pytest.approx(0.0625 * scaling)
        assert tenant_var.get_connection_weight(mapping, capacity_var) == pytest.approx(-2 * 0.25 * scaling)

    def test_capacity_weights_between_tenants(self, mapper):
        problem = problem3()
        _, _, _, tenant_vars, capacity_vars, _, _ = layout(mapper, problem)
        mapping = ConsolidationMapping(mapper.graph, 5, 1)
        mapper.encoder.impose_capacity_constraints(problem, tenant_vars, capacity_vars, mapping)

        scaling = mapper.calculator.capacity_scaling(problem)
        tenant1, tenant3 = tenant_vars[1][0], tenant_vars[3][0]
        capacity1, capacity2 = capacity_vars[(0, 0)][:2]
        assert capacity1.capacity == 0.25
        assert capacity2.capacity == 0.5
        assert tenant1.get_weight(mapping) == pytest.approx(1.75 ** 2 * scaling)
        assert tenant1.get_connection_weight(mapping, tenant3) == pytest.approx(2 * 1.75 * 2.25 * scaling)
        assert tenant3.get_connection_weight(mapping, capacity2) == pytest.approx(-2 * 2.25 * 0.5 * scaling)
        assert capacity1.get_connection_weight(mapping, capacity2) == pytest.approx(2 * 0.25 * 0.5 * scaling)

    def test_activation_weights(self, mapper):
        problem = problem5()
        _, _, _, tenant_vars, _, aux_vars, server_vars = layout(mapper, problem)
        mapping = ConsolidationMapping(mapper.graph, 1, 2)
        mapper.encoder.impose_max_activation_constraints(problem, tenant_vars, aux_vars, mapping)
        mapper.encoder.impose_goal_formula(problem, server_vars, mapping)

        scaling = mapper.calculator.activation_max_scaling(problem)
        for server in range(2):
            tenant_var, aux_var = tenant_vars[0][server], aux_vars[server][0]
            assert tenant_var.get_weight(mapping) == pytest.approx(scaling)
            assert tenant_var.get_connection_weight(mapping, aux_var) == pytest.approx(-2 * scaling)
        # Server variables sit on the last auxiliary qubit
        assert mapping.get_weight(0) == pytest.approx(scaling + 1)
        assert mapping.get_weight(2) == pytest.approx(scaling + 1.5)


class TestTransform:

    def test_index_tables(self, mapper):
        mapping = mapper.transform(problem5())
        assert mapping.get_tenant_index(0, 0) == 4
        assert mapping.get_tenant_index(0, 1) == 6
        assert mapping.get_server_index(0) == 0
        assert mapping.get_server_index(1) == 2

    def test_roles(self, mapper):
        mapping = mapper.transform(problem1())
        assert mapping.qubit_roles[72] == "tenant"
        assert mapping.qubit_roles[73] == "capacity"
        assert mapping.qubit_roles[5] == "auxiliary"
        assert mapping.qubit_roles[0] == "server"
        assert len(mapping.get_consistent_qubits()) == 4

    @pytest.mark.parametrize("problem", [problem1(), problem2(), problem3(), problem5(), problem6()])
    def test_only_intact_used_qubits_weighted(self, mapper, problem):
        mapping = mapper.transform(problem)
        weighted = mapping.weighted_qubits()
        assert weighted.isdisjoint(mapper.graph.damaged_qubits)
        assert weighted <= set(mapping.qubit_roles)

    def test_chains_tied_together(self, mapper):
        mapping = mapper.transform(problem1())
        # Qubits 8 and 12 of the tenant chain only meet through the consistency coupling
        assert mapping.get_connection_weight(8, 12) < 0
        assert mapping.get_connection_weight(12, 4) < 0

    def test_layout_statistics(self, mapper):
        mapper.transform(problem2())
        assert mapper.layout["triangle_chains"] == 20
        assert mapper.layout["broken_chains"] == 1
        assert mapper.layout["nr_variables"] == 10 + 1 + 10 + 1
