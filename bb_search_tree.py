#!/usr/bin/env python3
"""
bb_search_tree.py - Branch & Bound Search Tree Structures
=========================================================
Immutable decision states with structurally shared choice records, and the
best-first frontier of open nodes ordered by bound with FIFO tie-breaking.
"""

import heapq
import threading
from dataclasses import dataclass, replace
from typing import Any, Hashable, Iterator, List, Optional, Tuple

from bb_bounding_functions import ObjectiveSense, ObjectiveValue, priority_key


@dataclass(frozen=True, eq=False)
class ChoiceRecord:
    """
    One link of a persistent singly linked list of decisions.
    Children point at their parent's record, so branching appends in O(1)
    and never copies the decisions made so far. Equality and hashing walk the
    chain in a loop, so arbitrarily deep records compare without recursion.
    """
    decision: Any
    parent: Optional['ChoiceRecord'] = None
    length: int = 1

    def append(self, decision: Any) -> 'ChoiceRecord':
        return ChoiceRecord(decision=decision, parent=self, length=self.length + 1)

    def __iter__(self) -> Iterator[Any]:
        return iter(self.to_tuple())

    def to_tuple(self) -> Tuple[Any, ...]:
        """Decisions in the order they were made."""
        decisions = []
        record = self
        while record is not None:
            decisions.append(record.decision)
            record = record.parent
        decisions.reverse()
        return tuple(decisions)

    def __eq__(self, other):
        if not isinstance(other, ChoiceRecord):
            return NotImplemented
        left, right = self, other
        # Shared tails end the walk early
        while left is not right:
            if left is None or right is None:
                return False
            if left.length != right.length or left.decision != right.decision:
                return False
            left, right = left.parent, right.parent
        return True

    def __hash__(self):
        return hash(self.to_tuple())

    def __repr__(self) -> str:
        return f"ChoiceRecord({list(self.to_tuple())})"


@dataclass(frozen=True)
class DecisionState:
    """
    Node in the Branch & Bound tree: one partial assignment of decisions.

    ``payload`` carries immutable problem-specific derived data (used weight,
    visited bitmask, ...) so children can be derived incrementally. ``bound``
    is attached exactly once, when the node is created, via ``with_bound``.
    """
    depth: int = 0
    partial_cost: ObjectiveValue = 0
    choice_record: Optional[ChoiceRecord] = None
    payload: Hashable = None
    bound: Optional[ObjectiveValue] = None

    @classmethod
    def root(cls, payload: Hashable = None, partial_cost: ObjectiveValue = 0) -> 'DecisionState':
        """Create the root state (no decisions fixed)."""
        return cls(depth=0, partial_cost=partial_cost, choice_record=None, payload=payload)

    @property
    def choices(self) -> Tuple[Any, ...]:
        """Ordered decisions made so far."""
        if self.choice_record is None:
            return ()
        return self.choice_record.to_tuple()

    @property
    def last_choice(self) -> Any:
        return None if self.choice_record is None else self.choice_record.decision

    def extend(self, decision: Any, cost_delta: ObjectiveValue = 0,
               payload: Hashable = None) -> 'DecisionState':
        """
        Derive a child state fixing one more decision.
        The child's partial cost is the parent's plus the increment of this decision.
        """
        if self.choice_record is None:
            record = ChoiceRecord(decision=decision)
        else:
            record = self.choice_record.append(decision)

        return DecisionState(
            depth=self.depth + 1,
            partial_cost=self.partial_cost + cost_delta,
            choice_record=record,
            payload=payload,
        )

    def with_bound(self, bound: ObjectiveValue) -> 'DecisionState':
        """Copy of this state with its cached bound attached."""
        return replace(self, bound=bound)

    def __repr__(self) -> str:
        return (
            f"DecisionState(depth={self.depth}, "
            f"partial_cost={self.partial_cost}, "
            f"bound={self.bound}, "
            f"choices={list(self.choices)})"
        )


class Frontier:
    """
    Best-first collection of open nodes.

    Array-backed binary heap keyed on ``(priority_key(bound), insertion_seq)``:
    best bound first, equal bounds in insertion order. Entries are never
    looked up or updated in place.
    """

    def __init__(self, sense: ObjectiveSense):
        self.sense = sense
        self._heap: List[Tuple[float, int, DecisionState]] = []
        self._insertion_seq = 0
        self.max_size = 0

    def push(self, node: DecisionState):
        """Insert a bounded node."""
        if node.bound is None:
            raise ValueError("Frontier nodes must carry a bound")

        heapq.heappush(self._heap, (priority_key(self.sense, node.bound), self._insertion_seq, node))
        self._insertion_seq += 1
        if len(self._heap) > self.max_size:
            self.max_size = len(self._heap)

    def pop_best(self) -> Optional[DecisionState]:
        """Remove and return the best-bound node, or None when empty."""
        if not self._heap:
            return None
        _, _, node = heapq.heappop(self._heap)
        return node

    def peek_bound(self) -> Optional[ObjectiveValue]:
        """Bound of the best open node without removing it."""
        if not self._heap:
            return None
        return self._heap[0][2].bound

    def is_empty(self) -> bool:
        return not self._heap

    def __len__(self) -> int:
        return len(self._heap)


class SynchronizedFrontier(Frontier):
    """Frontier shared by several worker threads; every operation takes one lock."""

    def __init__(self, sense: ObjectiveSense):
        super().__init__(sense)
        self._lock = threading.Lock()

    def push(self, node: DecisionState):
        with self._lock:
            super().push(node)

    def push_many(self, nodes: List[DecisionState]):
        """Insert several nodes under a single lock acquisition, in order."""
        with self._lock:
            for node in nodes:
                super().push(node)

    def pop_best(self) -> Optional[DecisionState]:
        with self._lock:
            return super().pop_best()

    def peek_bound(self) -> Optional[ObjectiveValue]:
        with self._lock:
            return super().peek_bound()

    def is_empty(self) -> bool:
        with self._lock:
            return super().is_empty()

    def __len__(self) -> int:
        with self._lock:
            return super().__len__()
