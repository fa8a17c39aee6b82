import pytest

from qiskit import QuantumCircuit
from qiskit.quantum_info import Clifford, Operator

from qxtranspiler.architectures import ConnectivityGraph
from qxtranspiler.routing.table import RoutingEngine, get_engine


def assert_equivalent(circuit, reference):
    """Both circuits implement the same unitary up to global phase."""
    if circuit.num_qubits <= 6:
        assert Operator(circuit).equiv(Operator(reference))
    else:
        assert Clifford(circuit) == Clifford(reference)


def assert_native(circuit, graph):
    """Every CNOT of ``circuit`` runs along an edge of ``graph``."""
    for instruction in circuit.data:
        if instruction.operation.name == "cx":
            control, target = (circuit.find_bit(q).index for q in instruction.qubits)
            assert graph.adjacent(control, target), (control, target)


def gate_list(circuit):
    return [(instruction.operation.name,
             [circuit.find_bit(q).index for q in instruction.qubits])
            for instruction in circuit.data]


def cnot(size, control, target, **kwargs):
    circuit = QuantumCircuit(size)
    circuit.cx(control, target, **kwargs)
    return circuit


@pytest.fixture
def two_qubit_graph():
    return ConnectivityGraph.from_edges(2, [(0, 1)])


@pytest.fixture
def line_graph():
    """0 -> 1 -> 2 -> 3"""
    return ConnectivityGraph.from_edges(4, [(0, 1), (1, 2), (2, 3)])


@pytest.fixture
def line_engine(line_graph):
    engine = RoutingEngine(line_graph)
    engine.build()
    return engine


@pytest.fixture(scope="session")
def qx2_engine():
    return get_engine("qx2")


@pytest.fixture(scope="session")
def qx4_engine():
    return get_engine("qx4")
