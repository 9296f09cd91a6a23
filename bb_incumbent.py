#!/usr/bin/env python3
"""
bb_incumbent.py - Incumbent Tracking for Branch & Bound
=======================================================
Holds the best complete solution found so far and exposes an atomic
improve-if-better operation, plus a lock-guarded variant shared by worker
threads.
"""

import logging
import threading
from typing import Callable, List, Optional, Tuple

from bb_bounding_functions import Comparison, ObjectiveValue, is_finite_value
from bb_search_tree import DecisionState

logger = logging.getLogger(__name__)

CompareFn = Callable[[ObjectiveValue, ObjectiveValue], Comparison]
TieBreakFn = Callable[[DecisionState, DecisionState], bool]


class IncumbentTracker:
    """
    Best known terminal solution and its objective value.
    Starts undefined; every accepted update strictly improves the value
    or wins the tie-break.
    """

    def __init__(self, compare: CompareFn, tie_break: Optional[TieBreakFn] = None):
        self._compare = compare
        self._tie_break = tie_break
        self._value: Optional[ObjectiveValue] = None
        self._solution: Optional[DecisionState] = None
        self.history: List[ObjectiveValue] = []

    def current_value(self) -> Optional[ObjectiveValue]:
        return self._value

    def current_solution(self) -> Optional[DecisionState]:
        return self._solution

    def snapshot(self) -> Tuple[Optional[ObjectiveValue], Optional[DecisionState]]:
        return self._value, self._solution

    def try_improve(self, candidate_value: ObjectiveValue,
                    candidate_solution: DecisionState) -> bool:
        """Replace the incumbent if the candidate is better; return whether it was."""
        if not is_finite_value(candidate_value):
            logger.debug(f"Refusing non-finite incumbent candidate {candidate_value!r}")
            return False

        if self._value is not None:
            outcome = self._compare(candidate_value, self._value)
            if outcome is Comparison.WORSE:
                return False
            if outcome is Comparison.TIE:
                if self._tie_break is None or not self._tie_break(candidate_solution, self._solution):
                    return False

        self._value = candidate_value
        self._solution = candidate_solution
        self.history.append(candidate_value)
        return True


class SharedIncumbent(IncumbentTracker):
    """
    Incumbent shared by worker threads.
    Reads and the compare-and-swap in ``try_improve`` run under one re-entrant
    lock, so a read never observes a value older than the last completed update.
    """

    def __init__(self, compare: CompareFn, tie_break: Optional[TieBreakFn] = None):
        super().__init__(compare, tie_break)
        self.lock = threading.RLock()

    def current_value(self) -> Optional[ObjectiveValue]:
        with self.lock:
            return self._value

    def current_solution(self) -> Optional[DecisionState]:
        with self.lock:
            return self._solution

    def snapshot(self) -> Tuple[Optional[ObjectiveValue], Optional[DecisionState]]:
        with self.lock:
            return self._value, self._solution

    def try_improve(self, candidate_value: ObjectiveValue,
                    candidate_solution: DecisionState) -> bool:
        with self.lock:
            return super().try_improve(candidate_value, candidate_solution)
