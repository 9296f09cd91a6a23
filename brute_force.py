#!/usr/bin/env python3
"""
brute_force.py - Exhaustive Reference Solver
============================================
Enumerates every terminal state reachable from a given state through the
problem's own branching, without any bounding. Used to check Branch & Bound
results and bound admissibility on small instances.
"""

import logging
from typing import Iterator, Optional, Tuple

from bb_bounding_functions import Comparison, ObjectiveValue, is_finite_value
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState

logger = logging.getLogger(__name__)


def enumerate_terminals(problem: ProblemInstance,
                        state: Optional[DecisionState] = None) -> Iterator[DecisionState]:
    """Depth-first walk yielding terminal states in branching order."""
    stack = [state if state is not None else problem.initial_state()]

    while stack:
        current = stack.pop()
        if problem.is_terminal(current):
            yield current
            continue
        # Reverse so children come off the stack in branching order
        stack.extend(reversed(list(problem.branch(current))))


def brute_force_optimum(problem: ProblemInstance,
                        state: Optional[DecisionState] = None
                        ) -> Optional[Tuple[ObjectiveValue, DecisionState]]:
    """
    Best terminal value and state reachable from ``state`` (root by default).

    Terminals with a non-finite objective are infeasible and skipped. Equal
    values keep the first one found unless the problem's tie-break prefers
    the later one. Returns None when no feasible terminal exists.
    """
    best_value: Optional[ObjectiveValue] = None
    best_state: Optional[DecisionState] = None
    count = 0

    for terminal in enumerate_terminals(problem, state):
        count += 1
        value = problem.objective_of(terminal)
        if not is_finite_value(value):
            continue

        if best_value is None:
            best_value, best_state = value, terminal
            continue

        outcome = problem.compare(value, best_value)
        if outcome is Comparison.BETTER or (
                outcome is Comparison.TIE and problem.has_tie_break
                and problem.tie_break(terminal, best_state)):
            best_value, best_state = value, terminal

    logger.debug(f"Brute force enumerated {count} terminals")

    if best_value is None:
        return None
    return best_value, best_state
