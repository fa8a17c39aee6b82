import pytest

from qiskit import QuantumCircuit
from qiskit.converters import circuit_to_dag, dag_to_circuit
from qiskit.transpiler.exceptions import TranspilerError

from qxtranspiler.exceptions import RoutingError
from qxtranspiler.routing.expand import ExpandCNOTs, expand, relay_window
from qxtranspiler.routing.moves import move
from qxtranspiler.routing.table import build_routing_table

from conftest import assert_equivalent, assert_native, cnot, gate_list


def test_scenario_a(two_qubit_graph):
    """CNOT(1, 0) becomes CNOT(0, 1) between two Hadamard layers."""
    table = build_routing_table(two_qubit_graph)
    result = expand(cnot(2, 1, 0), table)
    assert gate_list(result.circuit) == [
        ("h", [1]), ("h", [0]), ("cx", [0, 1]), ("h", [1]), ("h", [0])]
    assert result.gate_count == 5
    assert_equivalent(result.circuit, cnot(2, 1, 0))


def test_relay_window_size():
    """n nested relays emit 3 * 2^n - 2 CNOTs."""
    for n in range(1, 5):
        relays = [move("cnot3", i, i + 1, n + 1) for i in range(n)]
        window = relay_window(relays)
        assert len(window) == 3 * 2**n - 2
        assert all(gate[0] == "cx" for gate in window)


def test_relay_window_reuses_inner_window():
    window = relay_window([move("cnot3", 0, 1, 3), move("cnot3", 1, 2, 3)])
    inner = [("cx", 1, 2), ("cx", 2, 3), ("cx", 1, 2), ("cx", 2, 3)]
    assert window == [("cx", 0, 1)] + inner + [("cx", 0, 1)] + inner


def test_nested_relays(line_engine):
    result = line_engine.expand(cnot(4, 0, 3))
    assert result.circuit.count_ops() == {"cx": 10}
    assert_native(result.circuit, line_engine.graph)
    assert_equivalent(result.circuit, cnot(4, 0, 3))


def test_other_gates_pass_through(line_engine):
    circuit = QuantumCircuit(4)
    circuit.h(0)
    circuit.x(1)
    circuit.t(2)
    circuit.sdg(3)
    circuit.rz(0.3, 1)
    circuit.csx(0, 1)
    circuit.cx(1, 2)
    result = line_engine.expand(circuit)
    assert gate_list(result.circuit) == gate_list(circuit)
    assert result.gate_count == 7
    assert result.depth == circuit.depth()


def test_negative_control(line_engine):
    reference = cnot(4, 3, 1, ctrl_state=0)
    result = line_engine.expand(reference)
    assert_native(result.circuit, line_engine.graph)
    assert_equivalent(result.circuit, reference)


def test_native_negative_control_is_kept(line_engine):
    reference = cnot(4, 0, 1, ctrl_state=0)
    result = line_engine.expand(reference)
    assert result.gate_count == 1
    assert result.circuit.data[0].operation.ctrl_state == 0


def test_mixed_circuit(qx4_engine):
    circuit = QuantumCircuit(5)
    circuit.h(0)
    circuit.cx(0, 3)
    circuit.t(3)
    circuit.cx(4, 1)
    circuit.cx(2, 4)
    circuit.s(1)
    circuit.cx(3, 0)
    result = qx4_engine.expand(circuit)
    assert_native(result.circuit, qx4_engine.graph)
    assert_equivalent(result.circuit, circuit)


def test_smaller_circuit_uses_device_lines(qx4_engine):
    circuit = cnot(3, 0, 1)
    result = qx4_engine.expand(circuit)
    assert result.circuit.num_qubits == 5
    assert_native(result.circuit, qx4_engine.graph)


def test_multi_control_gate_is_rejected(line_engine):
    circuit = QuantumCircuit(4)
    circuit.ccx(0, 1, 2)
    with pytest.raises(RoutingError):
        line_engine.expand(circuit)


def test_unknown_gate_is_rejected(line_engine):
    circuit = QuantumCircuit(4)
    circuit.swap(0, 1)
    with pytest.raises(RoutingError):
        line_engine.expand(circuit)


def test_capacity_guard(line_engine):
    circuit = cnot(6, 0, 5)
    result = line_engine.expand(circuit)
    assert not result.ok
    assert result.circuit is circuit
    assert "6 qubits" in result.diagnostic


def test_expand_pass(qx4_engine):
    circuit = QuantumCircuit(5)
    circuit.cx(0, 3)
    circuit.h(2)
    circuit.cx(4, 0)
    routed = dag_to_circuit(ExpandCNOTs(qx4_engine.table).run(circuit_to_dag(circuit)))
    assert routed.count_ops() == qx4_engine.expand(circuit).circuit.count_ops()
    assert_native(routed, qx4_engine.graph)
    assert_equivalent(routed, circuit)


def test_expand_pass_needs_whole_device(qx4_engine):
    with pytest.raises(TranspilerError):
        ExpandCNOTs(qx4_engine.table).run(circuit_to_dag(cnot(3, 0, 1)))
