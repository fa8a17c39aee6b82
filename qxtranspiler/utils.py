# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

import logging
import time

from typing import List, Optional

import numpy as np

from qiskit import QuantumCircuit

logger = logging.getLogger(__name__)

# Gates equal to their own inverse that the cleanup may cancel.
SELF_INVERSE = ("x", "cx", "h")


class Profile:

    def __init__(self, func):
        self.func = func
        self.args = list()
        self.kwargs = list()
        self.return_values = list()
        self.times = list()

    def add_run(self, *args, **kwargs):
        start = time.perf_counter()
        return_value = self.func(*args, **kwargs)
        end = time.perf_counter()
        self.args.append(args)
        self.kwargs.append(kwargs)
        self.return_values.append(return_value)
        self.times.append(end - start)
        return return_value

    def average_value(self, key=lambda x: x):
        values = [key(v) for v in self.return_values]
        return sum(values) / self.num_runs()

    def average_time(self):
        return sum(self.times) / self.num_runs()

    def num_runs(self):
        return len(self.times)

    def __repr__(self):
        name = f"function: {self.func.__name__}\n"
        runs = f"runs: {self.num_runs()}\n"
        timing = f"time: {self.times}"
        return name + runs + timing


def profile_func(func, inputs, *args, **kwargs) -> Profile:
    """Time ``func(x, *args, **kwargs)`` for every ``x`` in ``inputs``."""
    runs = Profile(func)
    for value in inputs:
        runs.add_run(value, *args, **kwargs)
    return runs


def random_cnot_circuit(num_qubits: int,
                        num_gates: int,
                        hadamard_ratio: float = 0.25,
                        seed: Optional[int] = None) -> QuantumCircuit:
    """Random circuit of CNOTs and Hadamards for benchmarking."""
    if num_qubits < 2:
        raise ValueError(f"Need at least 2 qubits, got {num_qubits}.")
    rng = np.random.default_rng(seed)
    circuit = QuantumCircuit(num_qubits)
    for _ in range(num_gates):
        if rng.random() < hadamard_ratio:
            circuit.h(int(rng.integers(num_qubits)))
        else:
            control, target = rng.choice(num_qubits, size=2, replace=False)
            circuit.cx(int(control), int(target))
    return circuit


def _signature(circuit: QuantumCircuit, instruction):
    operation = instruction.operation
    qubits = tuple(circuit.find_bit(q).index for q in instruction.qubits)
    return operation.name, getattr(operation, "ctrl_state", None), qubits


def _cancels(circuit, first, second) -> bool:
    return (first.operation.name in SELF_INVERSE and not first.operation.params
            and _signature(circuit, first) == _signature(circuit, second))


def _can_pass(circuit, first, second) -> bool:
    # Only a Hadamard is moved, and only past gates on other qubits.
    if first.operation.name != "h":
        return False
    return not set(first.qubits) & set(second.qubits)


def remove_dup_gates(circuit: QuantumCircuit) -> QuantumCircuit:
    """Cancel adjacent pairs of identical NOT, CNOT and Hadamard gates.

    A Hadamard is also cancelled against an identical later Hadamard when
    every gate in between acts on other qubits. The scan starts over after
    each cancellation.
    """
    gates: List = list(circuit.data)
    removed = 0
    i = 0
    while i < len(gates) - 1:
        cancelled = False
        for j in range(i + 1, len(gates)):
            if _cancels(circuit, gates[i], gates[j]):
                del gates[j]
                del gates[i]
                removed += 2
                cancelled = True
                break
            if not _can_pass(circuit, gates[i], gates[j]):
                break
        i = 0 if cancelled else i + 1

    result = circuit.copy_empty_like()
    for instruction in gates:
        result.append(instruction.operation, instruction.qubits, instruction.clbits)
    logger.debug("removed %d duplicate gates", removed)
    return result


def invert_circuit(circuit: QuantumCircuit) -> QuantumCircuit:
    """Gates in reverse order, each replaced by its inverse."""
    return circuit.inverse()


def circuit_levels(circuit: QuantumCircuit) -> int:
    """Number of gate levels when every gate is moved as early as it can."""
    return circuit.depth()
