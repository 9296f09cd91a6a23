"""
conftest.py - Shared Test Fixtures
==================================
A tiny table-driven problem for driver tests and a fixture that restores the
class-level configuration after a test changes it.
"""

import copy
import math

import pytest

from bb_bounding_functions import ObjectiveSense
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState
from config import Config


class TableProblem(ProblemInstance):
    """
    Pick one column per row of ``costs``; the objective is the sum of the picks.

    ``nan_choices`` holds ``(row, column)`` decisions whose child bound is NaN.
    With ``prefer_larger_choices`` ties go to the lexicographically larger
    choice tuple.
    """

    def __init__(self, costs, sense=ObjectiveSense.MINIMIZE, nan_choices=(),
                 prefer_larger_choices=False):
        self.costs = costs
        self.sense = sense
        self.nan_choices = set(nan_choices)
        self.has_tie_break = prefer_larger_choices

    @property
    def problem_size(self):
        return len(self.costs)

    def initial_state(self):
        return DecisionState.root()

    def bound(self, state):
        if state.depth and (state.depth - 1, state.last_choice) in self.nan_choices:
            return math.nan
        pick = min if self.sense is ObjectiveSense.MINIMIZE else max
        return state.partial_cost + sum(pick(row) for row in self.costs[state.depth:])

    def branch(self, state):
        row = self.costs[state.depth]
        return [state.extend(column, cost) for column, cost in enumerate(row)]

    def tie_break(self, candidate, incumbent):
        return candidate.choices > incumbent.choices


@pytest.fixture
def table_problem_cls():
    return TableProblem


@pytest.fixture
def restore_config():
    """Snapshot the mutable Config sections and put them back afterwards."""
    sections = ('SEARCH', 'PARALLEL', 'DEMO', 'LOGGING')
    saved = {name: copy.deepcopy(getattr(Config, name)) for name in sections}
    yield Config
    for name, value in saved.items():
        setattr(Config, name, value)
