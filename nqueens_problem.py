#!/usr/bin/env python3
"""
nqueens_problem.py - N-Queens Optimization as a Branch & Bound Problem
======================================================================
One queen per row, placed top to bottom. The objective is the number of
attacking queen pairs. In safe mode only non-attacking columns are offered,
so every complete board scores zero; in the center and symmetry modes the
solution score then decides between boards through the tie-break.

Modes select the column ordering and the solution score:

- ``conflicts``: fewest attacks first; score 100 / (1 + conflicts)
- ``center``: columns nearest the middle first; score sum of 1 / (1 + |col - n/2|)
- ``symmetry``: the column mirroring an already placed row first; score 10
  for boards symmetric under 180-degree rotation, else 1
"""

import logging
import math
from typing import Dict, List, Optional, Tuple

from bb_bounding_functions import ObjectiveValue
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState
from utils import ValidationError

logger = logging.getLogger(__name__)

MODES = ('conflicts', 'center', 'symmetry')


def attacks(row_a: int, col_a: int, row_b: int, col_b: int) -> bool:
    """Whether queens on two different rows attack each other."""
    return col_a == col_b or abs(row_a - row_b) == abs(col_a - col_b)


class NQueensProblem(ProblemInstance):
    """
    Minimize attacking pairs on an ``n`` x ``n`` board.

    Payload of a state: tuple of the columns placed so far, one per row.
    """

    def __init__(self, board_size: int, mode: str = 'conflicts', allow_conflicts: bool = True):
        if board_size < 1:
            raise ValidationError(f"board size must be positive, got {board_size}")
        if mode not in MODES:
            raise ValidationError(f"unknown mode '{mode}', expected one of {MODES}")

        self.n = board_size
        self.mode = mode
        self.allow_conflicts = allow_conflicts
        # The conflicts score only restates the objective, so ties there never matter
        self.has_tie_break = mode != 'conflicts'

    @property
    def problem_size(self) -> int:
        return self.n

    def initial_state(self) -> DecisionState:
        return DecisionState.root(payload=())

    def _conflicts_with(self, columns: Tuple[int, ...], row: int, col: int) -> int:
        return sum(1 for placed_row, placed_col in enumerate(columns)
                   if attacks(placed_row, placed_col, row, col))

    def _allowed_columns(self, columns: Tuple[int, ...], row: int) -> List[int]:
        if self.allow_conflicts:
            return list(range(self.n))
        return [col for col in range(self.n) if self._conflicts_with(columns, row, col) == 0]

    def bound(self, state: DecisionState) -> ObjectiveValue:
        """Conflicts so far plus, per open row, its least conflict with the placed queens."""
        columns = state.payload
        estimate = state.partial_cost

        for row in range(state.depth, self.n):
            allowed = self._allowed_columns(columns, row)
            if not allowed:
                return math.inf
            estimate += min(self._conflicts_with(columns, row, col) for col in allowed)

        return estimate

    def _column_order(self, columns: Tuple[int, ...], row: int) -> List[int]:
        candidates = self._allowed_columns(columns, row)
        conflict_count = {col: self._conflicts_with(columns, row, col) for col in candidates}

        if self.mode == 'center':
            return sorted(candidates, key=lambda col: (abs(col - self.n // 2), conflict_count[col]))

        if self.mode == 'symmetry':
            mirror_row = self.n - 1 - row
            preferred = self.n - 1 - columns[mirror_row] if mirror_row < row else None
            return sorted(candidates, key=lambda col: (col != preferred, conflict_count[col]))

        return sorted(candidates, key=lambda col: conflict_count[col])

    def branch(self, state: DecisionState) -> List[DecisionState]:
        columns = state.payload
        row = state.depth
        return [
            state.extend(col, self._conflicts_with(columns, row, col), payload=columns + (col,))
            for col in self._column_order(columns, row)
        ]

    def score(self, state: DecisionState) -> float:
        """Mode-specific quality of a complete board; higher is better."""
        columns = state.payload

        if self.mode == 'center':
            return sum(1.0 / (1.0 + abs(col - self.n / 2.0)) for col in columns)

        if self.mode == 'symmetry':
            symmetric = all(columns[i] == self.n - 1 - columns[self.n - 1 - i] for i in range(self.n))
            return 10.0 if symmetric else 1.0

        return 100.0 / (1.0 + state.partial_cost)

    def tie_break(self, candidate: DecisionState, incumbent: DecisionState) -> bool:
        return self.score(candidate) > self.score(incumbent)

    def heuristic_solution(self) -> Optional[DecisionState]:
        """Greedy row by row with the preferred column; None when it runs into a dead end."""
        state = self.initial_state()
        while state.depth < self.n:
            children = self.branch(state)
            if not children:
                logger.debug(f"Greedy placement stuck at row {state.depth}")
                return None
            state = children[0]
        return state

    def render(self, state: DecisionState) -> List[str]:
        """Board rows as text, ``Q`` for a queen."""
        return [''.join('Q' if col == placed else '.' for col in range(self.n))
                for placed in state.payload]

    def describe_solution(self, state: DecisionState) -> Dict:
        return {
            'columns': list(state.payload),
            'conflicts': state.partial_cost,
            'score': self.score(state),
            'board': self.render(state),
        }
