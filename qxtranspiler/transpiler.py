# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

from qiskit.converters import circuit_to_dag, dag_to_circuit
from qiskit.transpiler import Layout, PassManager
from qiskit.transpiler.basepasses import TransformationPass
from qiskit.transpiler.passes import (ApplyLayout, EnlargeWithAncilla,
                                      FullAncillaAllocation, SetLayout, TrivialLayout)

from qxtranspiler.architectures import ConnectivityGraph
from qxtranspiler.routing.expand import ExpandCNOTs
from qxtranspiler.routing.table import RoutingEngine
from qxtranspiler.utils import remove_dup_gates


class RemoveDuplicateGates(TransformationPass):
    """Cancel pairs of identical NOT, CNOT and Hadamard gates."""

    def run(self, dag):
        return circuit_to_dag(remove_dup_gates(dag_to_circuit(dag)))


class GraphTranspiler():
    """Lay a circuit out on a device and route its CNOTs with a
    ``RoutingEngine``. A bare ``ConnectivityGraph`` gets an engine of its own."""

    def __init__(self, engine, layout=None):
        if isinstance(engine, ConnectivityGraph):
            engine = RoutingEngine(engine)
            engine.build()
        self.engine = engine
        self.coupling_map = engine.graph.to_coupling_map()
        self.layout = layout

    def transpile(self, in_circ):
        pm = PassManager()
        # 1. choose the layout, then add ancilla qbits
        if self.layout is None:
            _choose_layout = [TrivialLayout(self.coupling_map)]
        else:
            _choose_layout = [SetLayout(Layout.from_intlist(list(self.layout), *in_circ.qregs))]
        _embed = [FullAncillaAllocation(self.coupling_map), EnlargeWithAncilla(), ApplyLayout()]
        # 2. rewrite non-native CNOTs
        _route = [ExpandCNOTs(self.engine.table)]
        # 3. clean up
        _cleanup = [RemoveDuplicateGates()]
        pm.append(_choose_layout)
        pm.append(_embed)
        pm.append(_route)
        pm.append(_cleanup)
        out_circ = pm.run(in_circ)
        return out_circ
