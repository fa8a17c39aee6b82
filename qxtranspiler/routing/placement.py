# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

import itertools
import logging

from typing import List, Optional, Sequence, Tuple

import numpy as np

from qiskit import QuantumCircuit

from qxtranspiler.routing.expand import expand
from qxtranspiler.routing.fixed5 import DEVICE_SIZE, transform_fixed5
from qxtranspiler.routing.gates import (GateKind, RoutingResult, capacity_exceeded,
                                        classify, qubit_indices)
from qxtranspiler.utils import circuit_levels, remove_dup_gates

logger = logging.getLogger(__name__)

# Mappings whose estimate is within this many gates of the best estimate
# are expanded and compared on their real gate count.
PLACEMENT_SLACK = 10


def cnot_histogram(circuit: QuantumCircuit, size: Optional[int] = None) -> np.ndarray:
    """``histogram[c][t]`` counts the CNOTs with control c and target t."""
    if size is None:
        size = circuit.num_qubits
    histogram = np.zeros((size, size), dtype=int)
    for instruction in circuit.data:
        if classify(instruction.operation) is GateKind.CNOT:
            control, target = qubit_indices(circuit, instruction)
            histogram[control][target] += 1
    return histogram


def permute_lines(circuit: QuantumCircuit,
                  mapping: Sequence[int],
                  num_qubits: Optional[int] = None) -> QuantumCircuit:
    """Move qubit ``i`` of ``circuit`` to line ``mapping[i]``.

    Gates are copied as they are, so controls keep their polarity.
    """
    if num_qubits is None:
        num_qubits = circuit.num_qubits
    mapping = [int(m) for m in mapping]
    if len(mapping) != circuit.num_qubits:
        raise ValueError(
            f"Mapping has {len(mapping)} entries for {circuit.num_qubits} qubits.")
    if len(set(mapping)) != len(mapping):
        raise ValueError(f"Mapping {mapping} is not injective.")
    if any(not 0 <= m < num_qubits for m in mapping):
        raise ValueError(f"Mapping {mapping} does not fit {num_qubits} lines.")

    permuted = QuantumCircuit(num_qubits, circuit.num_clbits, name=circuit.name)
    for instruction in circuit.data:
        qubits = [permuted.qubits[mapping[q]] for q in qubit_indices(circuit, instruction)]
        clbits = [permuted.clbits[circuit.find_bit(c).index] for c in instruction.clbits]
        permuted.append(instruction.operation, qubits, clbits)
    return permuted


def _estimate(pairs, costs, mapping) -> int:
    return sum(count * costs[mapping[c]][mapping[t]] for c, t, count in pairs)


def _retain_mappings(pairs, costs, device_size: int, num_qubits: int):
    best_estimate = None
    retained: List[Tuple[int, Tuple[int, ...]]] = []
    for combination in itertools.combinations(range(device_size), num_qubits):
        for mapping in itertools.permutations(combination):
            estimate = _estimate(pairs, costs, mapping)
            if best_estimate is None or estimate < best_estimate:
                best_estimate = estimate
                retained = [r for r in retained if r[0] <= estimate + PLACEMENT_SLACK]
            if estimate <= best_estimate + PLACEMENT_SLACK:
                retained.append((estimate, mapping))
    return best_estimate, retained


def search_placement(circuit: QuantumCircuit, table, device_size: Optional[int] = None) -> RoutingResult:
    """Choose the logical to physical mapping with the fewest gates.

    Every injective mapping is scored by the CNOT histogram weighted with the
    routing costs. Mappings within ``PLACEMENT_SLACK`` of the best score are
    expanded and cleaned up, the one with the fewest gates wins.
    """
    if device_size is None:
        device_size = table.size()
    if device_size != table.size():
        raise ValueError(
            f"Device size {device_size} does not match the {table.size()}-qubit table.")

    overflow = capacity_exceeded(circuit, device_size)
    if overflow is not None:
        return overflow

    histogram = cnot_histogram(circuit)
    pairs = [(int(c), int(t), int(histogram[c][t])) for c, t in zip(*np.nonzero(histogram))]
    costs = table.costs.tolist()

    if pairs:
        best_estimate, retained = _retain_mappings(pairs, costs, device_size, circuit.num_qubits)
    else:
        # every mapping scores 0, keep the first one
        best_estimate, retained = 0, [(0, tuple(range(circuit.num_qubits)))]
    retained.sort(key=lambda r: r[0])
    logger.info("%d mappings within %d of the best estimate %s",
                len(retained), PLACEMENT_SLACK, best_estimate)

    best = None
    candidates = []
    for estimate, mapping in retained:
        mapped = expand(permute_lines(circuit, mapping, device_size), table).circuit
        cleaned = remove_dup_gates(mapped)
        gates = cleaned.size()
        candidates.append((mapping, estimate, gates))
        logger.debug("mapping %s: estimate %d, %d gates", mapping, estimate, gates)
        if best is None or gates < best[2]:
            best = (mapping, cleaned, gates)

    mapping, cleaned, gates = best
    logger.info("Chose mapping %s with %d gates", mapping, gates)
    return RoutingResult(cleaned, gates, circuit_levels(cleaned),
                         mapping=tuple(mapping), candidates=candidates)


def _swap_lines(cnots: np.ndarray, lines: np.ndarray, x: int, y: int) -> None:
    if x == y:
        return
    cnots[[x, y]] = cnots[[y, x]]
    cnots[:, [x, y]] = cnots[:, [y, x]]
    lines[[x, y]] = lines[[y, x]]


def _heaviest_line(cnots: np.ndarray, costs: np.ndarray, placed: List[int]) -> int:
    weighted = cnots * costs
    load = weighted.sum(axis=0) + weighted.sum(axis=1)
    usage = cnots.sum(axis=0) + cnots.sum(axis=1)
    heaviest = 0
    heaviest_key = None
    for line in range(len(cnots)):
        if line in placed:
            continue
        key = (load[line], usage[line])
        if heaviest_key is None or key > heaviest_key:
            heaviest, heaviest_key = line, key
    return heaviest


def greedy_placement(circuit: QuantumCircuit, costs, methods, template: bool = False) -> RoutingResult:
    """Swap-greedy placement on a 5-qubit device.

    Repeatedly takes the line with the highest weighted CNOT cost and swaps
    it with the line that lowers the estimated cost the most. The chosen
    mapping is then mapped with ``transform_fixed5``.
    """
    costs = np.asarray(costs, dtype=int)
    size = len(costs)
    overflow = capacity_exceeded(circuit, size)
    if overflow is not None:
        return overflow

    cnots = cnot_histogram(circuit, size)
    base = circuit.size()

    def estimate():
        return int((cnots * costs).sum()) + base

    lines = np.arange(size)
    best_cost = estimate()
    best_lines = lines.copy()
    placed: List[int] = []
    for _ in range(size):
        heaviest = _heaviest_line(cnots, costs, placed)
        choice = heaviest
        for line in range(size):
            _swap_lines(cnots, lines, heaviest, line)
            cost = estimate()
            if cost <= best_cost:
                best_cost, best_lines, choice = cost, lines.copy(), line
            _swap_lines(cnots, lines, heaviest, line)
        _swap_lines(cnots, lines, heaviest, choice)
        placed.append(choice)

    # best_lines[position] is the logical line placed there.
    mapping = tuple(int(p) for p in np.argsort(best_lines)[:circuit.num_qubits])
    result = transform_fixed5(permute_lines(circuit, mapping, size), methods, template)
    result.mapping = mapping
    result.candidates = [(mapping, best_cost, result.gate_count)]
    logger.info("Greedy mapping %s, estimate %d, %d gates", mapping, best_cost, result.gate_count)
    return result


def search_fixed5(circuit: QuantumCircuit, methods, template: bool = False) -> RoutingResult:
    """Try every placement on a 5-qubit device with ``transform_fixed5`` and
    keep the one with the fewest gates after cleanup."""
    overflow = capacity_exceeded(circuit, DEVICE_SIZE)
    if overflow is not None:
        return overflow

    best = None
    candidates = []
    seen = set()
    for permutation in itertools.permutations(range(DEVICE_SIZE)):
        mapping = permutation[:circuit.num_qubits]
        if mapping in seen:
            continue
        seen.add(mapping)
        mapped = transform_fixed5(permute_lines(circuit, mapping, DEVICE_SIZE), methods, template)
        cleaned = remove_dup_gates(mapped.circuit)
        gates = cleaned.size()
        candidates.append((mapping, gates, gates))
        if best is None or gates < best[2]:
            best = (mapping, cleaned, gates)

    mapping, cleaned, gates = best
    logger.info("Chose mapping %s with %d gates", mapping, gates)
    return RoutingResult(cleaned, gates, circuit_levels(cleaned),
                         mapping=mapping, candidates=candidates)
