import pytest

from qiskit import QuantumCircuit

from qxtranspiler.routing.expand import path_gates
from qxtranspiler.routing.gates import emit
from qxtranspiler.routing.moves import MoveKind, MovePrimitive, RoutingPath, move

from conftest import assert_equivalent, cnot


def circuit_of(path, size=3):
    circuit = QuantumCircuit(size)
    emit(circuit, path_gates(path))
    return circuit


@pytest.mark.parametrize("kind, cost", [
    (MoveKind.CAB, 6), (MoveKind.CBA, 5), (MoveKind.TAB, 5), (MoveKind.TBA, 6),
    (MoveKind.CABI, 6), (MoveKind.CBAI, 5), (MoveKind.TABI, 5), (MoveKind.TBAI, 6),
    (MoveKind.NOP, 0), (MoveKind.FLIP, 4), (MoveKind.CNOT3, 3)
])
def test_costs(kind, cost):
    assert kind.cost == cost


def test_inverses():
    for kind in MoveKind:
        assert kind.inverse.inverse is kind
        assert kind.inverse.cost == kind.cost
    assert MoveKind.CAB.inverse is MoveKind.CABI
    assert MoveKind.TBAI.inverse is MoveKind.TBA
    assert MoveKind.FLIP.inverse is MoveKind.FLIP
    assert MoveKind.CNOT3.inverse is MoveKind.CNOT3


def test_inverse_pattern_is_reversed():
    forward = MovePrimitive(MoveKind.CBA, (0, 1)).gates()
    backward = MovePrimitive(MoveKind.CBAI, (0, 1)).gates()
    assert backward == list(reversed(forward))


def test_arity():
    with pytest.raises(ValueError):
        MovePrimitive(MoveKind.CNOT3, (0, 1))
    with pytest.raises(ValueError):
        move("cab", 0, 1, 2)
    assert move("cnot3", 0, 1, 2).qubits == (0, 1, 2)


def test_from_label():
    assert MoveKind.from_label("tbai") is MoveKind.TBAI
    with pytest.raises(ValueError):
        MoveKind.from_label("swap")


def test_cab_pattern():
    assert move("cab", 3, 4).gates() == [("h", 3), ("h", 4), ("cx", 3, 4),
                                         ("h", 3), ("h", 4), ("cx", 3, 4)]


def test_cost_without_relays():
    path = RoutingPath([move("cab", 0, 1), move("tba", 3, 2), move("flip", 1, 2)])
    assert path.cost() == 16
    assert path.cost_round_trip() == 28


def test_relay_run_discount():
    """n nested cnot3 relays cost 3 * 2^n - 3."""
    one = RoutingPath([move("cnot3", 0, 1, 3)])
    two = RoutingPath([move("cnot3", 0, 1, 3), move("cnot3", 1, 2, 3)])
    three = RoutingPath([move("cnot3", 0, 1, 4), move("cnot3", 1, 2, 4),
                         move("cnot3", 2, 3, 4)])
    assert one.cost() == 3
    assert two.cost() == 9
    assert three.cost() == 21
    assert RoutingPath([move("tab", 4, 3)] + two.steps).cost() == 14


def test_round_trip_cost_of_relays():
    two = RoutingPath([move("cnot3", 0, 1, 3), move("cnot3", 1, 2, 3)])
    assert two.cost_round_trip() == 15


def test_append_inverse():
    path = RoutingPath([move("cab", 0, 1), move("tba", 3, 2), move("nop", 1, 2)])
    path.append_inverse()
    assert path.steps == [
        move("cab", 0, 1), move("tba", 3, 2), move("nop", 1, 2),
        move("tbai", 3, 2), move("cabi", 0, 1)
    ]


def test_append_inverse_skips_relays():
    path = RoutingPath([move("cba", 0, 4), move("cnot3", 4, 1, 3)])
    path.append_inverse()
    assert path.steps == [move("cba", 0, 4), move("cnot3", 4, 1, 3), move("cbai", 0, 4)]


def test_collapse_relays():
    path = RoutingPath([move("tab", 5, 4), move("cab", 0, 1), move("cab", 1, 2),
                        move("nop", 2, 4)])
    assert path.collapse_relays().steps == [
        move("tab", 5, 4), move("cnot3", 0, 1, 4), move("cnot3", 1, 2, 4)
    ]


def test_collapse_needs_nop_terminal():
    assert RoutingPath([move("cab", 0, 1), move("flip", 1, 2)]).collapse_relays() is None
    assert RoutingPath([move("cba", 0, 1), move("nop", 1, 2)]).collapse_relays() is None
    assert RoutingPath([move("nop", 0, 1)]).collapse_relays() is None


@pytest.mark.parametrize("forward", [
    [move("cab", 0, 1), move("nop", 1, 2)],
    [move("cba", 0, 1), move("nop", 1, 2)],
    [move("tab", 2, 1), move("nop", 0, 1)],
    [move("tba", 2, 1), move("nop", 0, 1)],
    [move("cab", 0, 1), move("flip", 1, 2)],
    [move("tba", 2, 1), move("flip", 0, 1)],
    [move("cnot3", 0, 1, 2)],
])
def test_moves_realise_cnot(forward):
    """Forward moves, native CNOT and the inverse moves act as CNOT(0, 2)."""
    path = RoutingPath(forward)
    path.append_inverse()
    assert_equivalent(circuit_of(path), cnot(3, 0, 2))


def test_gate_count():
    path = RoutingPath([move("cab", 0, 1), move("nop", 1, 2)])
    path.append_inverse()
    assert path.gate_count() == path.cost_round_trip() + 1 == 13
    relays = RoutingPath([move("cnot3", 0, 1, 3), move("cnot3", 1, 2, 3)])
    assert relays.gate_count() == 10


def test_str():
    path = RoutingPath([move("cnot3", 0, 1, 3), move("nop", 1, 2)])
    assert str(path) == "cnot3 0 1 3 nop 1 2"
