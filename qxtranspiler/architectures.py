# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

import logging
import os

from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional, Tuple

import networkx as nx
import numpy as np

from matplotlib import pyplot as plt
from qiskit.transpiler import CouplingMap

from qxtranspiler.exceptions import ArchitectureError

logger = logging.getLogger(__name__)

_TRUE_TOKENS = ("1", "true", "x")
_FALSE_TOKENS = ("0", "false", "-")


def _parse_bool(token: str) -> bool:
    lowered = token.lower()
    if lowered in _TRUE_TOKENS:
        return True
    if lowered in _FALSE_TOKENS:
        return False
    raise ArchitectureError(f"Invalid adjacency token '{token}'.")


def parse_graph_lines(lines: List[str]) -> Tuple[np.ndarray, int]:
    """Parse the size line and adjacency rows at the head of ``lines``.

    Returns the adjacency matrix and the number of lines consumed.
    """
    lines = [line.strip() for line in lines]
    offset = 0
    while offset < len(lines) and not lines[offset]:
        offset += 1
    if offset == len(lines):
        raise ArchitectureError("Empty architecture description.")
    try:
        size = int(lines[offset])
    except ValueError:
        raise ArchitectureError(
            f"Expected qubit count, found '{lines[offset]}'.") from None
    if size <= 0:
        raise ArchitectureError(f"Invalid qubit count {size}.")

    rows = lines[offset + 1:offset + 1 + size]
    if len(rows) != size:
        raise ArchitectureError(
            f"Expected {size} adjacency rows, found {len(rows)}.")

    adjacency = np.zeros((size, size), dtype=bool)
    for v, row in enumerate(rows):
        tokens = row.split()
        if len(tokens) != size:
            raise ArchitectureError(
                f"Adjacency row {v} has {len(tokens)} entries, expected {size}.")
        adjacency[v] = [_parse_bool(token) for token in tokens]
    return adjacency, offset + 1 + size


class ConnectivityGraph:
    """Directed coupling graph of a device.

    ``adjacent(v, w)`` is true when CNOT(control=v, target=w) can be executed
    natively.
    """

    def __init__(self, adjacency) -> None:
        adjacency = np.array(adjacency, dtype=bool)
        if adjacency.ndim != 2 or adjacency.shape[0] != adjacency.shape[1]:
            raise ValueError(
                f"Adjacency must be a square matrix, got shape {adjacency.shape}.")
        np.fill_diagonal(adjacency, False)
        adjacency.flags.writeable = False
        self._adjacency = adjacency
        self.graph = self.build_graph()
        undirected = adjacency | adjacency.T
        self._neighbors = [tuple(int(i) for i in np.nonzero(row)[0]) for row in undirected]

    @classmethod
    def from_edges(cls, size: int, edges: Iterable[Tuple[int, int]]):
        adjacency = np.zeros((size, size), dtype=bool)
        for v, w in edges:
            if not (0 <= v < size and 0 <= w < size):
                raise ValueError(f"Edge ({v}, {w}) out of range for {size} qubits.")
            adjacency[v][w] = True
        return cls(adjacency)

    @classmethod
    def from_adjacency(cls, matrix):
        return cls(matrix)

    @classmethod
    def parse(cls, text: str):
        lines = text.splitlines()
        adjacency, consumed = parse_graph_lines(lines)
        extra = [line for line in lines[consumed:] if line.strip()]
        if extra:
            raise ArchitectureError(
                f"{len(extra)} lines after the {len(adjacency)} adjacency rows.")
        return cls(adjacency)

    @classmethod
    def load(cls, path):
        """Read a graph file: qubit count, then one adjacency row per qubit."""
        if not os.path.isfile(path):
            raise ArchitectureError(f"Architecture file '{path}' not found.")
        with open(path) as graph_file:
            graph = cls.parse(graph_file.read())
        logger.info("Loaded %d-qubit graph from %s", graph.size(), path)
        return graph

    def build_graph(self) -> nx.DiGraph:
        graph = nx.DiGraph()
        graph.add_nodes_from(range(len(self._adjacency)))
        graph.add_edges_from(self.edges())
        return graph

    def adjacent(self, v: int, w: int) -> bool:
        return bool(self._adjacency[v][w])

    def neighbors(self, v: int) -> Tuple[int, ...]:
        """Qubits coupled to ``v`` in either direction, in index order."""
        return self._neighbors[v]

    def adjacency(self) -> np.ndarray:
        return self._adjacency.copy()

    def size(self) -> int:
        return len(self._adjacency)

    def edges(self) -> List[Tuple[int, int]]:
        return [(int(v), int(w)) for v, w in zip(*np.nonzero(self._adjacency))]

    def undirected_distances(self) -> np.ndarray:
        """Hop distances ignoring edge direction, -1 for unreachable pairs."""
        size = self.size()
        distances = np.full((size, size), -1, dtype=int)
        lengths = nx.all_pairs_shortest_path_length(self.graph.to_undirected())
        for v, row in lengths:
            for w, length in row.items():
                distances[v][w] = length
        return distances

    def shortest_undirected_path(self, v: int, w: int) -> List[int]:
        return nx.shortest_path(self.graph.to_undirected(), v, w)

    def to_coupling_map(self) -> CouplingMap:
        coupling_map = CouplingMap(couplinglist=[list(e) for e in self.edges()])
        for qubit in range(self.size()):
            if qubit not in coupling_map.physical_qubits:
                coupling_map.add_physical_qubit(qubit)
        return coupling_map

    def to_text(self) -> str:
        rows = [
            " ".join("1" if entry else "0" for entry in row)
            for row in self._adjacency
        ]
        return "\n".join([str(self.size())] + rows) + "\n"

    def write(self, path) -> None:
        with open(path, "w") as graph_file:
            graph_file.write(self.to_text())

    def print_graph(self) -> None:
        print(self)

    def draw(self, positions=None, show=True) -> None:
        if positions is None:
            positions = nx.circular_layout(self.graph)
        nx.draw_networkx(self.graph, pos=positions, arrows=True)
        if show:
            plt.show()

    def __eq__(self, other) -> bool:
        if not isinstance(other, ConnectivityGraph):
            return NotImplemented
        return np.array_equal(self._adjacency, other._adjacency)

    def __hash__(self) -> int:
        return hash(self._adjacency.tobytes())

    def __str__(self) -> str:
        return "\n".join(
            " ".join("X" if entry else "-" for entry in row)
            for row in self._adjacency)

    def __repr__(self) -> str:
        return f"ConnectivityGraph(size={self.size()}, edges={self.edges()})"


@dataclass(frozen=True)
class Architecture:
    """A device: its coupling graph and, for 5-qubit devices, the static
    method and cost matrices used by the fixed-template transform and the
    greedy placement."""

    name: str
    graph: ConnectivityGraph
    methods: Optional[Tuple[Tuple[int, ...], ...]] = None
    costs: Optional[Tuple[Tuple[int, ...], ...]] = None

    def size(self) -> int:
        return self.graph.size()

    def method_matrix(self) -> np.ndarray:
        if self.methods is None:
            raise ArchitectureError(f"Architecture {self.name} has no method matrix.")
        return np.array(self.methods, dtype=int)

    def cost_matrix(self) -> np.ndarray:
        if self.costs is None:
            raise ArchitectureError(f"Architecture {self.name} has no cost matrix.")
        return np.array(self.costs, dtype=int)


def _adjacency_list(size: int, targets: Dict[int, List[int]]):
    return ConnectivityGraph.from_edges(
        size, [(v, w) for v, ws in targets.items() for w in ws])


def _bidirectional(size: int, edges: List[Tuple[int, int]]):
    return ConnectivityGraph.from_edges(
        size, edges + [(w, v) for v, w in edges])


QX2 = Architecture(
    "qx2",
    ConnectivityGraph.from_edges(5, [(0, 1), (0, 2), (1, 2), (3, 2), (3, 4), (4, 2)]),
    methods=((0, 1, 1, 3, 3),
             (2, 0, 1, 3, 3),
             (2, 2, 0, 2, 2),
             (3, 3, 1, 0, 1),
             (3, 3, 1, 2, 0)),
    costs=((0, 0, 0, 10, 10),
           (4, 0, 0, 10, 10),
           (4, 4, 0, 4, 4),
           (10, 10, 0, 0, 0),
           (10, 10, 0, 4, 0)),
)

QX4 = Architecture(
    "qx4",
    ConnectivityGraph.from_edges(5, [(1, 0), (2, 0), (2, 1), (3, 2), (3, 4), (2, 4)]),
    methods=((0, 2, 2, 5, 4),
             (1, 0, 2, 5, 4),
             (1, 1, 0, 2, 1),
             (6, 6, 1, 0, 1),
             (4, 4, 2, 2, 0)),
    costs=((0, 4, 4, 10, 10),
           (0, 0, 4, 10, 10),
           (0, 0, 0, 4, 0),
           (10, 10, 0, 0, 0),
           (10, 10, 4, 4, 0)),
)

QX3 = Architecture(
    "qx3",
    _adjacency_list(16, {0: [1], 1: [2], 2: [3], 3: [14], 4: [3, 5], 6: [7, 11],
                         7: [10], 8: [7], 9: [8, 10], 11: [10],
                         12: [5, 11, 13], 13: [4, 14], 15: [0, 14]}),
)

QX5 = Architecture(
    "qx5",
    ConnectivityGraph.from_edges(16, [
        (1, 0), (1, 2), (2, 3), (3, 4), (3, 14), (5, 4), (6, 5), (6, 7),
        (6, 11), (7, 10), (8, 7), (9, 8), (9, 10), (11, 10), (12, 5),
        (12, 11), (12, 13), (13, 4), (13, 14), (15, 0), (15, 2), (15, 14)]),
)

# IBM Q 20 Tokyo, all couplings usable in both directions.
QX20 = Architecture(
    "qx20",
    _bidirectional(20, [
        (0, 1), (1, 2), (2, 3), (3, 4), (0, 5), (1, 6), (1, 7), (2, 6),
        (2, 7), (3, 8), (3, 9), (4, 8), (4, 9), (5, 6), (6, 7), (7, 8),
        (8, 9), (5, 10), (5, 11), (6, 10), (6, 11), (7, 12), (7, 13),
        (8, 12), (8, 13), (9, 14), (10, 11), (11, 12), (12, 13), (13, 14),
        (10, 15), (11, 16), (11, 17), (12, 16), (12, 17), (13, 18),
        (13, 19), (14, 18), (14, 19), (15, 16), (16, 17), (17, 18),
        (18, 19)]),
)

ARCHITECTURES = {arch.name: arch for arch in (QX2, QX3, QX4, QX5, QX20)}


def get_architecture(name: str) -> Architecture:
    try:
        return ARCHITECTURES[name.lower()]
    except KeyError:
        raise ArchitectureError(
            f"Unknown architecture '{name}', expected one of "
            f"{sorted(ARCHITECTURES)}.") from None
