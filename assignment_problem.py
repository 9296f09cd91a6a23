#!/usr/bin/env python3
"""
assignment_problem.py - Job Assignment as a Branch & Bound Problem
==================================================================
Workers are assigned in row order; each decision picks an unused job for the
next worker. Two lower bounds are available: the cheapest free job per
remaining worker, and the tighter row-plus-column reduction of the remaining
cost sub-matrix.
"""

import logging
from enum import Enum
from typing import Dict, List, Optional

import numpy as np

from bb_bounding_functions import ObjectiveValue
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState
from utils import ValidationError, as_matrix

logger = logging.getLogger(__name__)


class BoundMethod(Enum):
    """Lower bound used for a partial assignment."""
    ROW_MIN = "row_min"
    REDUCTION = "reduction"


class AssignmentProblem(ProblemInstance):
    """
    Minimize the total cost of assigning each worker (row) to a distinct job (column).

    Payload of a state: bitmask of the jobs already taken.
    """

    def __init__(self, costs, bound_method: BoundMethod = BoundMethod.REDUCTION):
        self.costs = as_matrix(costs, "cost matrix", square=True, non_negative=False)
        if self.costs.shape[0] == 0:
            raise ValidationError("cost matrix must have at least one worker")
        if isinstance(bound_method, str):
            bound_method = BoundMethod(bound_method)
        self.bound_method = bound_method
        self.size = self.costs.shape[0]

    @property
    def problem_size(self) -> int:
        return self.size

    def initial_state(self) -> DecisionState:
        return DecisionState.root(payload=0)

    def _free_jobs(self, used_mask: int) -> List[int]:
        return [job for job in range(self.size) if not used_mask & (1 << job)]

    def bound(self, state: DecisionState) -> ObjectiveValue:
        if state.depth == self.size:
            return state.partial_cost

        rows = list(range(state.depth, self.size))
        columns = self._free_jobs(state.payload)
        remaining = self.costs[np.ix_(rows, columns)]

        row_minima = remaining.min(axis=1)
        if self.bound_method is BoundMethod.ROW_MIN:
            return state.partial_cost + float(row_minima.sum())

        # Column reduction of the row-reduced matrix
        column_minima = (remaining - row_minima[:, None]).min(axis=0)
        return state.partial_cost + float(row_minima.sum() + column_minima.sum())

    def branch(self, state: DecisionState) -> List[DecisionState]:
        worker = state.depth
        jobs = sorted(self._free_jobs(state.payload), key=lambda job: self.costs[worker, job])
        return [
            state.extend(job, float(self.costs[worker, job]), payload=state.payload | (1 << job))
            for job in jobs
        ]

    def heuristic_solution(self) -> Optional[DecisionState]:
        """Greedy: each worker in turn takes its cheapest free job."""
        state = self.initial_state()
        while state.depth < self.size:
            state = self.branch(state)[0]
        return state

    def describe_solution(self, state: DecisionState) -> Dict:
        return {
            'assignment': {f"worker_{worker}": f"job_{job}" for worker, job in enumerate(state.choices)},
            'costs': [float(self.costs[worker, job]) for worker, job in enumerate(state.choices)],
            'total_cost': state.partial_cost,
            'bound_method': self.bound_method.value,
        }
