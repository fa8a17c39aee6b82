# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

import logging
import os

from functools import lru_cache
from typing import List, Optional

import numpy as np

from qxtranspiler.architectures import ConnectivityGraph, get_architecture, parse_graph_lines
from qxtranspiler.exceptions import ArchitectureError, RoutingError
from qxtranspiler.routing.expand import expand
from qxtranspiler.routing.moves import MoveKind, MovePrimitive, RoutingPath
from qxtranspiler.routing.paths import best_path
from qxtranspiler.routing.placement import search_placement

logger = logging.getLogger(__name__)


class RoutingTable:
    """Cheapest routing path and its cost for every ordered qubit pair of a
    graph. Diagonal entries have no path."""

    def __init__(self, graph: ConnectivityGraph, costs, paths: List[List[Optional[RoutingPath]]]) -> None:
        size = graph.size()
        costs = np.array(costs, dtype=int)
        if costs.shape != (size, size) or len(paths) != size or any(
                len(row) != size for row in paths):
            raise ArchitectureError(
                f"Routing table does not match the {size}-qubit graph.")
        costs.flags.writeable = False
        self.graph = graph
        self.costs = costs
        self.paths = paths

    def size(self) -> int:
        return self.graph.size()

    def cost(self, control: int, target: int) -> int:
        return int(self.costs[control][target])

    def path(self, control: int, target: int) -> RoutingPath:
        if control == target:
            raise ValueError(f"No routing path from qubit {control} to itself.")
        return self.paths[control][target]

    def check(self, graph: ConnectivityGraph) -> None:
        if graph != self.graph:
            raise ArchitectureError("Routing table was built for another graph.")

    def to_text(self) -> str:
        lines = [self.graph.to_text().rstrip("\n")]
        lines.extend(" ".join(str(c) for c in row) for row in self.costs)
        for v in range(self.size()):
            for w in range(self.size()):
                if v != w:
                    lines.append(f"cost {self.paths[v][w]}")
        return "\n".join(lines) + "\n"

    def write(self, path) -> None:
        with open(path, "w") as cache:
            cache.write(self.to_text())
        logger.info("Wrote %d-qubit routing table to %s", self.size(), path)

    @classmethod
    def parse(cls, text: str) -> "RoutingTable":
        lines = text.splitlines()
        adjacency, consumed = parse_graph_lines(lines)
        graph = ConnectivityGraph(adjacency)
        size = graph.size()

        rows = lines[consumed:consumed + size]
        if len(rows) != size:
            raise ArchitectureError("Truncated cost matrix.")
        try:
            costs = [[int(token) for token in row.split()] for row in rows]
        except ValueError:
            raise ArchitectureError("Cost matrix entries must be integers.") from None
        if any(len(row) != size for row in costs):
            raise ArchitectureError(f"Cost matrix rows must have {size} entries.")

        tokens = " ".join(lines[consumed + size:]).split()
        entries = _split_entries(tokens)
        expected = size * (size - 1)
        if len(entries) != expected:
            raise ArchitectureError(
                f"Expected {expected} stored paths, found {len(entries)}.")

        paths = [[None] * size for _ in range(size)]
        pairs = ((v, w) for v in range(size) for w in range(size) if v != w)
        for (v, w), entry in zip(pairs, entries):
            paths[v][w] = _parse_path(entry)
        return cls(graph, costs, paths)

    @classmethod
    def read(cls, path) -> "RoutingTable":
        if not os.path.isfile(path):
            raise ArchitectureError(f"Routing table cache '{path}' not found.")
        with open(path) as cache:
            table = cls.parse(cache.read())
        logger.info("Read %d-qubit routing table from %s", table.size(), path)
        return table


def _split_entries(tokens: List[str]) -> List[List[str]]:
    entries = []
    for token in tokens:
        if token == "cost":
            entries.append([])
        elif not entries:
            raise ArchitectureError(f"Expected 'cost', found '{token}'.")
        else:
            entries[-1].append(token)
    return entries


def _parse_path(tokens: List[str]) -> RoutingPath:
    path = RoutingPath()
    position = 0
    while position < len(tokens):
        try:
            kind = MoveKind.from_label(tokens[position])
        except ValueError as error:
            raise ArchitectureError(str(error)) from None
        operands = tokens[position + 1:position + 1 + kind.arity]
        if len(operands) != kind.arity:
            raise ArchitectureError(f"Truncated '{kind.label}' step.")
        try:
            qubits = tuple(int(q) for q in operands)
        except ValueError:
            raise ArchitectureError(f"Invalid operands {operands} for '{kind.label}'.") from None
        path.add(MovePrimitive(kind, qubits))
        position += 1 + kind.arity
    if not path.steps:
        raise ArchitectureError("Empty routing path in cache.")
    return path


def build_routing_table(graph: ConnectivityGraph) -> RoutingTable:
    """Find the cheapest routing path for every ordered pair of ``graph``."""
    size = graph.size()
    distances = graph.undirected_distances()
    costs = np.zeros((size, size), dtype=int)
    paths = [[None] * size for _ in range(size)]

    for v in range(size):
        for w in range(size):
            if v == w:
                continue
            if graph.adjacent(v, w):
                path = RoutingPath([MovePrimitive(MoveKind.NOP, (v, w))])
                cost = 0
            else:
                if distances[v][w] < 0:
                    raise RoutingError(
                        f"Qubits {v} and {w} are not connected, the graph "
                        "must be weakly connected.")
                cost, path = best_path(graph, v, w, distances)
                path = path.copy()
                path.append_inverse()
            costs[v][w] = cost
            paths[v][w] = path
            logger.debug("route %d -> %d: cost %d, %s", v, w, cost, path)

    logger.info("Built routing table for %d qubits", size)
    return RoutingTable(graph, costs, paths)


class RoutingEngine:
    """Owns a connectivity graph and the routing table built from it."""

    def __init__(self, graph: Optional[ConnectivityGraph] = None) -> None:
        self.graph = graph
        self._table = None

    @classmethod
    def for_architecture(cls, name: str) -> "RoutingEngine":
        return cls(get_architecture(name).graph)

    def load_graph(self, path) -> bool:
        """Install the graph stored at ``path``; on failure keep the current
        state and return False."""
        try:
            graph = ConnectivityGraph.load(path)
        except ArchitectureError as error:
            logger.error("Cannot load graph: %s", error)
            return False
        self.set_graph(graph)
        return True

    def set_graph(self, graph: ConnectivityGraph) -> None:
        self.graph = graph
        self._table = None

    def build(self) -> RoutingTable:
        if self.graph is None:
            raise RoutingError("No connectivity graph loaded.")
        self._table = build_routing_table(self.graph)
        return self._table

    def clear(self) -> None:
        self.graph = None
        self._table = None

    @property
    def is_built(self) -> bool:
        return self._table is not None

    @property
    def table(self) -> RoutingTable:
        if self._table is None:
            raise RoutingError("Routing table has not been built.")
        return self._table

    def write_cache(self, path) -> None:
        self.table.write(path)

    def read_cache(self, path) -> bool:
        """Install the table cached at ``path``. An engine that already owns
        a graph only accepts a table built for that graph."""
        try:
            table = RoutingTable.read(path)
            if self.graph is not None:
                table.check(self.graph)
        except ArchitectureError as error:
            logger.error("Cannot read routing table: %s", error)
            return False
        self.graph = table.graph
        self._table = table
        return True

    def expand(self, circuit):
        return expand(circuit, self.table)

    def search_placement(self, circuit):
        return search_placement(circuit, self.table)


@lru_cache(maxsize=None)
def get_engine(name: str) -> RoutingEngine:
    """Built engine for a named architecture, kept for the whole session."""
    engine = RoutingEngine.for_architecture(name)
    engine.build()
    return engine
