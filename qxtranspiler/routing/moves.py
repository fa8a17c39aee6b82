# Copyright (c) 2022 R. Tohid (@rtohid)
#
# Distributed under the Boost Software License, Version 1.0. (See accompanying
# file LICENSE_1_0.txt or copy at http://www.boost.org/LICENSE_1_0.txt)

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List, Tuple

# A gate in a move pattern: ("h", slot) or ("cx", control_slot, target_slot),
# slots index the operands of the move.
Pattern = Tuple[Tuple, ...]

_CAB = (("h", 0), ("h", 1), ("cx", 0, 1), ("h", 0), ("h", 1), ("cx", 0, 1))
_CBA = (("cx", 1, 0), ("h", 0), ("h", 1), ("cx", 1, 0), ("h", 1))
_TAB = (("cx", 0, 1), ("h", 0), ("h", 1), ("cx", 0, 1), ("h", 1))
_TBA = (("h", 0), ("h", 1), ("cx", 1, 0), ("h", 0), ("h", 1), ("cx", 1, 0))
_NOP = (("cx", 0, 1),)
_FLIP = (("h", 0), ("h", 1), ("cx", 1, 0), ("h", 0), ("h", 1))


class MoveKind(Enum):
    """Relay operations used to route a CNOT across the coupling graph.

    ``cab``/``cba`` move the control from ``a`` to ``b`` along an edge a->b or
    b->a, ``tab``/``tba`` do the same for the target. The ``*i`` kinds undo
    them. ``nop`` and ``flip`` are the terminal native CNOT and its
    Hadamard-reversed form, ``cnot3(a, b, c)`` relays CNOT(a, c) through b.
    """

    CAB = ("cab", 6, _CAB)
    CBA = ("cba", 5, _CBA)
    TAB = ("tab", 5, _TAB)
    TBA = ("tba", 6, _TBA)
    CABI = ("cabi", 6, tuple(reversed(_CAB)))
    CBAI = ("cbai", 5, tuple(reversed(_CBA)))
    TABI = ("tabi", 5, tuple(reversed(_TAB)))
    TBAI = ("tbai", 6, tuple(reversed(_TBA)))
    NOP = ("nop", 0, _NOP)
    FLIP = ("flip", 4, _FLIP)
    CNOT3 = ("cnot3", 3, None)

    def __init__(self, label: str, cost: int, pattern: Pattern) -> None:
        self.label = label
        self.cost = cost
        self.pattern = pattern

    @property
    def arity(self) -> int:
        return 3 if self is MoveKind.CNOT3 else 2

    @property
    def inverse(self) -> "MoveKind":
        return _INVERSES.get(self, self)

    @property
    def is_terminal(self) -> bool:
        return self in (MoveKind.NOP, MoveKind.FLIP)

    @classmethod
    def from_label(cls, label: str) -> "MoveKind":
        for kind in cls:
            if kind.label == label:
                return kind
        raise ValueError(f"Unknown move '{label}'.")


_INVERSES = {
    MoveKind.CAB: MoveKind.CABI,
    MoveKind.CBA: MoveKind.CBAI,
    MoveKind.TAB: MoveKind.TABI,
    MoveKind.TBA: MoveKind.TBAI,
    MoveKind.CABI: MoveKind.CAB,
    MoveKind.CBAI: MoveKind.CBA,
    MoveKind.TABI: MoveKind.TAB,
    MoveKind.TBAI: MoveKind.TBA,
}


@dataclass(frozen=True)
class MovePrimitive:

    kind: MoveKind
    qubits: Tuple[int, ...]

    def __post_init__(self):
        if len(self.qubits) != self.kind.arity:
            raise ValueError(
                f"{self.kind.label} takes {self.kind.arity} qubits, "
                f"got {self.qubits}.")

    @property
    def cost(self) -> int:
        return self.kind.cost

    def inverse(self) -> "MovePrimitive":
        return MovePrimitive(self.kind.inverse, self.qubits)

    def gates(self) -> List[Tuple]:
        """The (name, *qubits) gate sequence this move emits."""
        if self.kind is MoveKind.CNOT3:
            a, b, c = self.qubits
            return [("cx", a, b), ("cx", b, c), ("cx", a, b), ("cx", b, c)]
        return [(gate[0], ) + tuple(self.qubits[slot] for slot in gate[1:])
                for gate in self.kind.pattern]

    def __str__(self) -> str:
        return " ".join([self.kind.label] + [str(q) for q in self.qubits])


def move(label: str, *qubits: int) -> MovePrimitive:
    return MovePrimitive(MoveKind.from_label(label), tuple(qubits))


def cnot3_run_cost(length: int) -> int:
    """Cost of ``length`` nested cnot3 relays."""
    if length == 0:
        return 0
    return 3 * 2**length - 3


class RoutingPath:
    """Ordered moves that realise one CNOT on a pair of qubits."""

    def __init__(self, steps: Iterable[MovePrimitive] = ()) -> None:
        self.steps = list(steps)

    def add(self, step: MovePrimitive) -> None:
        self.steps.append(step)

    def remove_last(self) -> None:
        self.steps.pop()

    def copy(self) -> "RoutingPath":
        return RoutingPath(self.steps)

    def cost(self) -> int:
        total = 0
        run = 0
        for step in self.steps:
            if step.kind is MoveKind.CNOT3:
                run += 1
                continue
            total += cnot3_run_cost(run) + step.cost
            run = 0
        return total + cnot3_run_cost(run)

    def cost_round_trip(self) -> int:
        # The terminal step is shared between the forward and the reverse half.
        if not self.steps:
            return 0
        return 2 * self.cost() - self.steps[-1].cost

    def append_inverse(self) -> None:
        if not self.steps:
            return
        forward = self.steps
        if forward[-1].kind.is_terminal:
            forward = forward[:-1]
        undo = [
            step.inverse() for step in reversed(forward)
            if step.kind is not MoveKind.CNOT3
        ]
        self.steps.extend(undo)

    def has_cnot3(self) -> bool:
        return any(step.kind is MoveKind.CNOT3 for step in self.steps)

    def collapse_relays(self) -> "RoutingPath":
        """Replace the cab run ending in the nop terminal by nested cnot3
        relays, ``cab(v,i1) ... cab(ik-1,ik) nop(ik,w)`` becoming
        ``cnot3(v,i1,w) ... cnot3(ik-1,ik,w)``.

        Returns None when the path does not end that way.
        """
        if len(self.steps) < 2 or self.steps[-1].kind is not MoveKind.NOP:
            return None
        target = self.steps[-1].qubits[1]
        start = len(self.steps) - 1
        while start > 0 and self.steps[start - 1].kind is MoveKind.CAB:
            start -= 1
        if start == len(self.steps) - 1:
            return None
        relays = [
            MovePrimitive(MoveKind.CNOT3, (step.qubits[0], step.qubits[1], target))
            for step in self.steps[start:-1]
        ]
        return RoutingPath(self.steps[:start] + relays)

    def gate_count(self) -> int:
        return sum(len(step.gates()) for step in self.steps
                   if step.kind is not MoveKind.CNOT3) + _window_size(self)

    def __iter__(self):
        return iter(self.steps)

    def __len__(self) -> int:
        return len(self.steps)

    def __getitem__(self, index):
        return self.steps[index]

    def __eq__(self, other) -> bool:
        if not isinstance(other, RoutingPath):
            return NotImplemented
        return self.steps == other.steps

    def __str__(self) -> str:
        return " ".join(str(step) for step in self.steps)

    def __repr__(self) -> str:
        return f"RoutingPath({self})"


def _window_size(path: RoutingPath) -> int:
    size = 0
    run = 0
    for step in list(path.steps) + [None]:
        if step is not None and step.kind is MoveKind.CNOT3:
            run += 1
        elif run:
            size += 3 * 2**run - 2
            run = 0
    return size
