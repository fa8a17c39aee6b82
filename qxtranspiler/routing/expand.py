# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

from typing import List, Sequence, Tuple

from qiskit import QuantumCircuit
from qiskit.transpiler.basepasses import TransformationPass
from qiskit.transpiler.exceptions import TranspilerError

from qxtranspiler.routing.gates import (GateKind, RoutingResult, capacity_exceeded,
                                        classify, emit, gate_operation, is_positive,
                                        qubit_indices)
from qxtranspiler.routing.moves import MoveKind, MovePrimitive, RoutingPath


def relay_window(relays: Sequence[MovePrimitive]) -> List[Tuple]:
    """CNOTs of a run of nested cnot3 relays.

    The innermost relay is built first, every enclosing relay wraps the
    window below it twice: CX(a,b), window, CX(a,b), window.
    """
    _, last, target = relays[-1].qubits
    window = [("cx", last, target)]
    for relay in reversed(relays):
        a, b, _ = relay.qubits
        window = [("cx", a, b)] + window + [("cx", a, b)] + window
    return window


def path_gates(path: RoutingPath) -> List[Tuple]:
    gates = []
    steps = list(path)
    position = 0
    while position < len(steps):
        if steps[position].kind is MoveKind.CNOT3:
            end = position
            while end < len(steps) and steps[end].kind is MoveKind.CNOT3:
                end += 1
            gates.extend(relay_window(steps[position:end]))
            position = end
        else:
            gates.extend(steps[position].gates())
            position += 1
    return gates


def cnot_gates(table, control: int, target: int, positive: bool = True) -> List[Tuple]:
    """Native gate sequence for CNOT(control, target) on the table's graph."""
    if table.graph.adjacent(control, target):
        gates = [("cx", control, target)]
    else:
        gates = path_gates(table.path(control, target))
    if not positive:
        gates = [("x", control)] + gates + [("x", control)]
    return gates


def expand(circuit: QuantumCircuit, table) -> RoutingResult:
    """Rewrite every CNOT of ``circuit`` onto the native edges of the graph
    ``table`` was built for. Other gates are copied unchanged.

    Raises:
        RoutingError: if the circuit has a gate with more than one control or
        a gate the engine does not know.
    """
    overflow = capacity_exceeded(circuit, table.size())
    if overflow is not None:
        return overflow

    mapped = QuantumCircuit(table.size(), name=circuit.name)
    for instruction in circuit.data:
        operation = instruction.operation
        qubits = qubit_indices(circuit, instruction)
        kind = classify(operation)
        if kind is GateKind.CNOT and not table.graph.adjacent(*qubits):
            emit(mapped, cnot_gates(table, *qubits, positive=is_positive(operation)))
            continue
        mapped.append(operation, [mapped.qubits[q] for q in qubits])
    return RoutingResult(mapped, mapped.size(), mapped.depth())


class ExpandCNOTs(TransformationPass):
    """Rewrite non-native CNOTs of a physical circuit using a routing table."""

    def __init__(self, table):
        """ExpandCNOTs initializer.

        Args:
            table (RoutingTable): routing paths of the target coupling graph.
        """
        super().__init__()
        self.table = table

    def run(self, dag):
        """Run the ExpandCNOTs pass on `dag`.

        Args:
            dag (DAGCircuit): DAG to map.

        Returns:
            DAGCircuit: A mapped DAG.

        Raises:
            TranspilerError: if the DAG is not laid out on the whole device.
        """
        if len(dag.qregs) != 1 or dag.qregs.get('q', None) is None:
            raise TranspilerError('ExpandCNOTs runs on physical circuits only')

        if len(dag.qubits) != self.table.size():
            raise TranspilerError(
                'The DAG must span all qubits of the coupling graph')

        new_dag = dag.copy_empty_like()
        index = {qubit: i for i, qubit in enumerate(dag.qubits)}
        for node in dag.topological_op_nodes():
            qubits = [index[qubit] for qubit in node.qargs]
            if classify(node.op) is GateKind.CNOT and not self.table.graph.adjacent(*qubits):
                gates = cnot_gates(self.table, *qubits, positive=is_positive(node.op))
                for name, *operands in gates:
                    new_dag.apply_operation_back(gate_operation(name),
                                                 qargs=[dag.qubits[q] for q in operands],
                                                 cargs=[])
                continue
            new_dag.apply_operation_back(node.op, qargs=node.qargs, cargs=node.cargs)
        return new_dag
