"""
Tests for logical variables spread over qubit chains.
"""

import pytest

from chimera_consolidation.hardware.connectivity import ChimeraGraph
from chimera_consolidation.qubo.mapping import Mapping
from chimera_consolidation.qubo.variables import CapacityVariable, LogicalVariable


@pytest.fixture
def graph():
    return ChimeraGraph()


def test_weight_goes_to_smallest_qubit(graph):
    mapping = Mapping(graph)
    var = LogicalVariable(graph, {72, 12, 8})
    var.add_weight(mapping, 2.0)
    assert mapping.get_weight(8) == 2.0
    assert mapping.get_weight(12) == 0.0
    assert var.get_weight(mapping) == 2.0


def test_weight_is_read_over_all_qubits(graph):
    mapping = Mapping(graph)
    var = LogicalVariable(graph, {8, 12})
    mapping.add_weight(8, 8, 1.0)
    mapping.add_weight(12, 12, 0.5)
    assert var.get_weight(mapping) == 1.5


def test_connection_weight(graph):
    mapping = Mapping(graph)
    var1 = LogicalVariable(graph, {8, 12, 72})
    var2 = LogicalVariable(graph, {10, 14, 74})
    var1.add_connection_weight(mapping, -3.0, var2)
    # Written once, on the first connected pair
    assert mapping.get_connection_weight(8, 14) == -3.0
    assert var1.get_connection_weight(mapping, var2) == -3.0
    assert var2.get_connection_weight(mapping, var1) == -3.0


def test_connection_weight_sums_all_couplers(graph):
    mapping = Mapping(graph)
    var1 = LogicalVariable(graph, {8, 12})
    var2 = LogicalVariable(graph, {10, 14})
    mapping.add_weight(8, 14, 1.0)
    mapping.add_weight(10, 12, 2.0)
    assert var1.get_connection_weight(mapping, var2) == 3.0


def test_unconnected_variables_rejected(graph):
    mapping = Mapping(graph)
    var1 = LogicalVariable(graph, {0})
    var2 = LogicalVariable(graph, {8})
    with pytest.raises(AssertionError):
        var1.add_connection_weight(mapping, 1.0, var2)


def test_overlapping_variables_rejected(graph):
    mapping = Mapping(graph)
    var1 = LogicalVariable(graph, {0, 4})
    var2 = LogicalVariable(graph, {4, 12})
    with pytest.raises(AssertionError):
        var1.get_connection_weight(mapping, var2)


def test_empty_variable_has_no_representative(graph):
    with pytest.raises(AssertionError):
        LogicalVariable(graph).representative


def test_capacity_variable(graph):
    var = CapacityVariable(graph, 0.5, [9, 13])
    assert var.capacity == 0.5
    assert var.qubits == {9, 13}
    assert var.representative == 9
    assert repr(var) == "CapacityVariable([9, 13])"
