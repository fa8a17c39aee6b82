# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

import math

from typing import Callable, Iterator, List, Optional, Sequence, Tuple

import numpy as np

from qxtranspiler.architectures import ConnectivityGraph
from qxtranspiler.exceptions import RoutingError
from qxtranspiler.routing.moves import MoveKind, MovePrimitive, RoutingPath

Prune = Callable[[Sequence[MovePrimitive], int, int], bool]


def _walk(graph: ConnectivityGraph,
          v: int,
          w: int,
          steps: List[MovePrimitive],
          visited: List[bool],
          prune: Optional[Prune] = None) -> Iterator[RoutingPath]:
    """Depth first search over control/target moves from the pair (v, w).

    ``steps`` and ``visited`` belong to the caller's frame, each recursion
    level works on its own copy of ``steps`` and restores ``visited``.
    """
    if prune is not None and prune(steps, v, w):
        return

    done = False
    if graph.adjacent(v, w):
        yield RoutingPath(steps + [MovePrimitive(MoveKind.NOP, (v, w))])
        done = True
    if graph.adjacent(w, v):
        yield RoutingPath(steps + [MovePrimitive(MoveKind.FLIP, (v, w))])
        done = True
    if done:
        return

    # Only neighbours of v or w offer a move, visit them in index order.
    for i in sorted(set(graph.neighbors(v)) | set(graph.neighbors(w))):
        moves = (
            (MoveKind.CAB, graph.adjacent(v, i), v, (i, w)),
            (MoveKind.CBA, graph.adjacent(i, v), v, (i, w)),
            (MoveKind.TAB, graph.adjacent(w, i), w, (v, i)),
            (MoveKind.TBA, graph.adjacent(i, w), w, (v, i)),
        )
        for kind, connected, source, pair in moves:
            if not connected or visited[i]:
                continue
            visited[i] = True
            step = MovePrimitive(kind, (source, i))
            yield from _walk(graph, *pair, steps + [step], visited, prune)
            visited[i] = False


def enumerate_paths(graph: ConnectivityGraph, v: int, w: int) -> List[RoutingPath]:
    """All simple routing paths that realise CNOT(v, w) on ``graph``."""
    if v == w:
        raise ValueError(f"Control and target must differ, got {v}.")
    visited = [False] * graph.size()
    visited[v] = True
    visited[w] = True
    return list(_walk(graph, v, w, [], visited))


def route_candidates(path: RoutingPath) -> Iterator[RoutingPath]:
    """The path itself and, when it ends in a cab run and a nop, its
    cnot3-relay rewrite."""
    yield path
    collapsed = path.collapse_relays()
    if collapsed is not None:
        yield collapsed


def select_path(paths) -> Tuple[int, RoutingPath]:
    """Cheapest candidate by round trip cost, earliest wins ties."""
    best_cost = math.inf
    best = None
    for path in paths:
        for candidate in route_candidates(path):
            cost = candidate.cost_round_trip()
            if cost < best_cost:
                best_cost, best = cost, candidate
    if best is None:
        raise RoutingError("No routing path found.")
    return best_cost, best


def _relay_bound(run: int) -> int:
    return min(12 * run, 3 * 2**run - 3)


def lower_bound(steps: Sequence[MovePrimitive], distance: int) -> int:
    """Admissible bound on the round trip cost of any completion of ``steps``.

    A trailing cab run may still collapse into cnot3 relays, every other
    move is paid twice and each missing hop costs at least 3.
    """
    bound = 0
    run = 0
    for step in steps:
        if step.kind is MoveKind.CAB:
            run += 1
            continue
        bound += 12 * run + 2 * step.cost
        run = 0
    bound += _relay_bound(run)
    return bound + 3 * max(distance - 1, 0)


def _seed_path(graph: ConnectivityGraph, v: int, w: int) -> RoutingPath:
    # Walk the control along a shortest undirected path.
    hops = graph.shortest_undirected_path(v, w)
    path = RoutingPath()
    current = v
    for node in hops[1:-1]:
        kind = MoveKind.CAB if graph.adjacent(current, node) else MoveKind.CBA
        path.add(MovePrimitive(kind, (current, node)))
        current = node
    kind = MoveKind.NOP if graph.adjacent(current, w) else MoveKind.FLIP
    path.add(MovePrimitive(kind, (current, w)))
    return path


def best_path(graph: ConnectivityGraph,
              v: int,
              w: int,
              distances: Optional[np.ndarray] = None) -> Tuple[int, RoutingPath]:
    """Cheapest routing path for CNOT(v, w).

    Selects the same path as ``select_path(enumerate_paths(graph, v, w))``
    but cuts branches whose lower bound cannot beat the best candidate.
    """
    if v == w:
        raise ValueError(f"Control and target must differ, got {v}.")
    if distances is None:
        distances = graph.undirected_distances()
    if distances[v][w] < 0:
        raise RoutingError(f"Qubits {v} and {w} are not connected.")

    seed, _ = select_path([_seed_path(graph, v, w)])
    best = {"cost": math.inf, "path": None}

    def prune(steps, control, target):
        bound = lower_bound(steps, distances[control][target])
        return bound > seed or bound >= best["cost"]

    visited = [False] * graph.size()
    visited[v] = True
    visited[w] = True
    for path in _walk(graph, v, w, [], visited, prune):
        for candidate in route_candidates(path):
            cost = candidate.cost_round_trip()
            if cost < best["cost"]:
                best["cost"], best["path"] = cost, candidate

    if best["path"] is None:
        raise RoutingError(f"No routing path found from {v} to {w}.")
    return best["cost"], best["path"]
