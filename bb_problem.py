#!/usr/bin/env python3
"""
bb_problem.py - Problem Contract for the Branch & Bound Engine
==============================================================
Abstract interface a combinatorial problem implements to be solved by the
search drivers: root state, bound, branching, terminal test, objective,
comparison with optional tie-break, and an optional heuristic seed.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

from bb_bounding_functions import Comparison, ObjectiveSense, ObjectiveValue, compare_values
from bb_search_tree import DecisionState


class ProblemInstance(ABC):
    """
    Pluggable policy consumed by the search drivers.

    Preconditions the engine relies on but cannot check:
    - ``bound`` is pure and admissible for every state: never worse than the
      best objective reachable by completing the state. Return +inf (minimize)
      or -inf (maximize) when a state has no feasible completion.
    - ``branch`` is only called on non-terminal states, returns fresh children
      one decision deeper, and never cycles.
    """

    sense: ObjectiveSense = ObjectiveSense.MINIMIZE
    has_tie_break: bool = False

    @property
    @abstractmethod
    def problem_size(self) -> int:
        """Number of decisions in a complete solution."""
        pass

    @abstractmethod
    def initial_state(self) -> DecisionState:
        """Root state with no decisions fixed."""
        pass

    @abstractmethod
    def bound(self, state: DecisionState) -> ObjectiveValue:
        """Optimistic estimate of the best objective reachable from ``state``."""
        pass

    @abstractmethod
    def branch(self, state: DecisionState) -> Sequence[DecisionState]:
        """Children of ``state``, one per available next decision."""
        pass

    def is_terminal(self, state: DecisionState) -> bool:
        return state.depth == self.problem_size

    def objective_of(self, state: DecisionState) -> ObjectiveValue:
        """True objective of a terminal state; partial cost is complete by then."""
        return state.partial_cost

    def compare(self, candidate: ObjectiveValue, reference: ObjectiveValue) -> Comparison:
        return compare_values(self.sense, candidate, reference)

    def tie_break(self, candidate: DecisionState, incumbent: DecisionState) -> bool:
        """Whether ``candidate`` should replace an equally valued incumbent."""
        return False

    def heuristic_solution(self) -> Optional[DecisionState]:
        """Feasible terminal state used to seed the incumbent, if the problem has one."""
        return None

    def describe_solution(self, state: DecisionState) -> dict:
        """Problem-specific, JSON-friendly view of a solution for reports."""
        return {'choices': list(state.choices)}
