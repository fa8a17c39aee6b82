# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

"""Template based mapping for 5-qubit devices.

Every (control, target) pair of the device is classified by a static method
matrix. Pairs that are not coupled in either direction are routed through the
ancilla line 2, which is coupled to every other qubit. Each relay has a
"swap" form that exchanges qubit roles explicitly and a shorter "template"
form.
"""

from enum import Enum
from typing import Callable, Dict, List, Tuple

import numpy as np

from qiskit import QuantumCircuit

from qxtranspiler.exceptions import RoutingError
from qxtranspiler.routing.gates import (GateKind, RoutingResult, capacity_exceeded,
                                        classify, emit, is_adjoint, is_positive,
                                        qubit_indices)
from qxtranspiler.utils import circuit_levels

DEVICE_SIZE = 5
ANCILLA = 2

Gates = List[Tuple]


class MapMethod(Enum):
    DIRECT = 1
    FLIP = 2
    TARGET_RELAY = 3
    CONTROL_RELAY = 4
    TARGET_FLIP_RELAY = 5
    CHAIN_RELAY = 6


def _h(*qubits) -> Gates:
    return [("h", q) for q in qubits]


def _cx(control, target) -> Gates:
    return [("cx", control, target)]


def direct(c, t, a) -> Gates:
    return _cx(c, t)


def flip(c, t, a) -> Gates:
    return _h(c, t) + _cx(t, c) + _h(c, t)


# Relays through the ancilla using t->a and c->a.
def target_relay_swap(c, t, a) -> Gates:
    return (_cx(t, a) + _h(a, t) + _cx(t, a) + _h(a) + _cx(c, a) + _h(a) +
            _cx(t, a) + _h(a, t) + _cx(t, a))


def target_relay_template(c, t, a) -> Gates:
    return (_cx(c, a) + _h(t, a) + _cx(t, a) + _h(a) + _cx(c, a) + _h(a) +
            _cx(t, a) + _h(t, a))


# Relays using a->c and a->t.
def control_relay_swap(c, t, a) -> Gates:
    return (_cx(a, c) + _h(a, c) + _cx(a, c) + _h(a) + _cx(a, t) + _h(a) +
            _cx(a, c) + _h(c, a) + _cx(a, c))


def control_relay_template(c, t, a) -> Gates:
    return (_h(a, c) + _cx(a, c) + _h(a) + _cx(a, t) + _h(a) + _cx(a, c) +
            _h(a, c) + _cx(a, t))


# Relays using t->a and a->c.
def target_flip_relay_swap(c, t, a) -> Gates:
    return (_cx(t, a) + _h(a, t) + _cx(t, a) + _h(c) + _cx(a, c) + _h(c) +
            _cx(t, a) + _h(a, t) + _cx(t, a))


def target_flip_relay_template(c, t, a) -> Gates:
    return (_h(t, c) + _cx(a, c) + _cx(t, a) + _cx(a, c) + _cx(t, a) +
            _h(t, c))


# Relays using c->a and a->t.
def chain_relay_swap(c, t, a) -> Gates:
    return (_h(a, c) + _cx(c, a) + _h(a, c) + _cx(c, a) + _cx(a, t) +
            _cx(c, a) + _h(a, c) + _cx(c, a) + _h(a, c))


def chain_relay_template(c, t, a) -> Gates:
    return _cx(c, a) + _cx(a, t) + _cx(c, a) + _cx(a, t)


Generator = Callable[[int, int, int], Gates]

GENERATORS: Dict[MapMethod, Tuple[Generator, Generator]] = {
    MapMethod.DIRECT: (direct, direct),
    MapMethod.FLIP: (flip, flip),
    MapMethod.TARGET_RELAY: (target_relay_swap, target_relay_template),
    MapMethod.CONTROL_RELAY: (control_relay_swap, control_relay_template),
    MapMethod.TARGET_FLIP_RELAY: (target_flip_relay_swap, target_flip_relay_template),
    MapMethod.CHAIN_RELAY: (chain_relay_swap, chain_relay_template),
}


def method_for(methods: np.ndarray, control: int, target: int) -> MapMethod:
    try:
        return MapMethod(int(methods[control][target]))
    except ValueError:
        raise RoutingError(
            f"No mapping method for CNOT({control}, {target}).") from None


def cnot_template(methods, control: int, target: int, template: bool = False) -> Gates:
    """Gates realising CNOT(control, target) on the device of ``methods``."""
    generator = GENERATORS[method_for(methods, control, target)][int(template)]
    return generator(control, target, ANCILLA)


def v_template(methods,
               control: int,
               target: int,
               adjoint: bool = False,
               template: bool = False) -> Gates:
    """Controlled V (or V+) as H, controlled phase, H.

    The controlled phase uses the cheaper of the two CNOT orientations,
    phase corrections are T or T+ depending on ``adjoint``.
    """
    if methods[control][target] < methods[target][control]:
        a, b = control, target
    else:
        a, b = target, control
    relay = cnot_template(methods, a, b, template)
    inner = "t" if adjoint else "tdg"
    outer = "tdg" if adjoint else "t"
    return (_h(target) + relay + [(inner, b)] + relay + [(outer, control)] +
            [(outer, target)] + _h(target))


def transform_fixed5(circuit: QuantumCircuit, methods, template: bool = False) -> RoutingResult:
    """Map ``circuit`` onto a 5-qubit device described by its method matrix.

    The result is padded to 5 qubits and reports its gate count and depth.
    A circuit with more than 5 qubits is returned unchanged with a
    diagnostic.
    """
    methods = np.asarray(methods, dtype=int)
    if methods.shape != (DEVICE_SIZE, DEVICE_SIZE):
        raise ValueError(f"Method matrix must be 5x5, got {methods.shape}.")

    overflow = capacity_exceeded(circuit, DEVICE_SIZE)
    if overflow is not None:
        return overflow

    mapped = QuantumCircuit(DEVICE_SIZE, name=circuit.name)
    for instruction in circuit.data:
        operation = instruction.operation
        qubits = qubit_indices(circuit, instruction)
        kind = classify(operation)
        if kind is GateKind.CNOT:
            if method_for(methods, *qubits) is MapMethod.DIRECT:
                mapped.append(operation, [mapped.qubits[q] for q in qubits])
                continue
            gates = cnot_template(methods, *qubits, template)
        elif kind is GateKind.CONTROLLED_V:
            gates = v_template(methods, *qubits, is_adjoint(operation), template)
        else:
            mapped.append(operation, [mapped.qubits[q] for q in qubits])
            continue
        if not is_positive(operation):
            gates = [("x", qubits[0])] + gates + [("x", qubits[0])]
        emit(mapped, gates)
    return RoutingResult(mapped, mapped.size(), circuit_levels(mapped))
