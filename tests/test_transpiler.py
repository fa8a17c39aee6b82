import pytest

from qiskit import QuantumCircuit

from qxtranspiler.routing.placement import permute_lines
from qxtranspiler.transpiler import GraphTranspiler, RemoveDuplicateGates

from conftest import assert_equivalent, assert_native


def build_sample_circuit():
    in_circ = QuantumCircuit(4)
    in_circ.cx(0, 1)
    in_circ.h(2)
    in_circ.cx(1, 3)
    in_circ.cx(0, 2)
    in_circ.h(1)
    in_circ.cx(3, 2)
    in_circ.cx(0, 1)
    return in_circ


@pytest.mark.parametrize("layout", [None, [3, 2, 0, 4]])
def test_transpile(qx4_engine, layout):
    in_circ = build_sample_circuit()
    out_circ = GraphTranspiler(qx4_engine, layout).transpile(in_circ)
    placed = permute_lines(in_circ, layout or range(4), 5)
    assert out_circ.num_qubits == 5
    assert out_circ.size() <= qx4_engine.expand(placed).gate_count
    assert_native(out_circ, qx4_engine.graph)
    assert_equivalent(out_circ, placed)


def test_remove_duplicates_pass():
    circuit = QuantumCircuit(2)
    circuit.h(0)
    circuit.cx(0, 1)
    circuit.cx(0, 1)
    circuit.h(0)
    circuit.x(1)
    from qiskit.converters import circuit_to_dag, dag_to_circuit
    cleaned = dag_to_circuit(RemoveDuplicateGates().run(circuit_to_dag(circuit)))
    assert cleaned.count_ops() == {"x": 1}


def test_transpile_from_graph(line_graph):
    in_circ = QuantumCircuit(3)
    in_circ.cx(2, 0)
    in_circ.h(1)
    out_circ = GraphTranspiler(line_graph).transpile(in_circ)
    assert out_circ.num_qubits == 4
    assert_native(out_circ, line_graph)
    assert_equivalent(out_circ, permute_lines(in_circ, range(3), 4))
