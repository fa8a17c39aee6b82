# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

import logging

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from qiskit import QuantumCircuit
from qiskit.circuit import ControlledGate
from qiskit.circuit.library import CSXGate, CXGate, HGate, SXdgGate, TdgGate, TGate, XGate

from qxtranspiler.exceptions import RoutingError

logger = logging.getLogger(__name__)

PAULI_GATES = ("x", "y", "z", "s", "sdg", "t", "tdg", "sx", "sxdg")
ROTATION_GATES = ("rz", "p")

_GATES = {
    "h": HGate,
    "cx": CXGate,
    "x": XGate,
    "t": TGate,
    "tdg": TdgGate,
}


class GateKind(Enum):
    NOT = 0
    CNOT = 1
    HADAMARD = 2
    PAULI = 3
    ROTATION = 4
    CONTROLLED_V = 5


def classify(operation) -> GateKind:
    """Gate kind the routing engine sees, multi-control and unknown gates are
    rejected."""
    if isinstance(operation, ControlledGate):
        if operation.num_ctrl_qubits != 1:
            raise RoutingError(
                f"Gate '{operation.name}' has {operation.num_ctrl_qubits} "
                "controls, decompose it to one-control gates first.")
        base = operation.base_gate.name
        if base == "x":
            return GateKind.CNOT
        if base in ("sx", "sxdg"):
            return GateKind.CONTROLLED_V
        raise RoutingError(f"Unsupported controlled gate '{operation.name}'.")

    name = operation.name
    if name == "x":
        return GateKind.NOT
    if name == "h":
        return GateKind.HADAMARD
    if name in PAULI_GATES:
        return GateKind.PAULI
    if name in ROTATION_GATES:
        return GateKind.ROTATION
    raise RoutingError(f"Unsupported gate '{name}'.")


def is_positive(operation) -> bool:
    return operation.ctrl_state == 1


def is_adjoint(operation) -> bool:
    """True for a controlled V+ gate."""
    return operation.base_gate.name == "sxdg"


def controlled_v(adjoint: bool = False):
    if adjoint:
        return SXdgGate().control(1)
    return CSXGate()


def emit(circuit: QuantumCircuit, gates) -> None:
    """Append (name, *qubits) tuples to ``circuit``."""
    for name, *qubits in gates:
        circuit.append(_GATES[name](), [circuit.qubits[q] for q in qubits])


def gate_operation(name: str):
    return _GATES[name]()


def qubit_indices(circuit: QuantumCircuit, instruction) -> List[int]:
    return [circuit.find_bit(qubit).index for qubit in instruction.qubits]


@dataclass
class RoutingResult:
    """A rewritten circuit and the statistics reported for it.

    ``diagnostic`` is set, and ``circuit`` is the untouched input, when the
    circuit does not fit the device.
    """

    circuit: QuantumCircuit
    gate_count: int
    depth: Optional[int] = None
    mapping: Optional[Tuple[int, ...]] = None
    diagnostic: Optional[str] = None
    candidates: List[Tuple[Tuple[int, ...], int, int]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.diagnostic is None


def capacity_exceeded(circuit: QuantumCircuit, capacity: int) -> Optional[RoutingResult]:
    """No-op result when ``circuit`` needs more than ``capacity`` qubits."""
    if circuit.num_qubits <= capacity:
        return None
    diagnostic = (f"Circuit uses {circuit.num_qubits} qubits, the device has "
                  f"only {capacity}.")
    logger.warning(diagnostic)
    return RoutingResult(circuit, circuit.size(), circuit.depth(), diagnostic=diagnostic)
