#!/usr/bin/env python3
"""
knapsack_problem.py - 0/1 Knapsack as a Branch & Bound Problem
==============================================================
Items are considered in decreasing value/weight order. Each decision takes
(True) or skips (False) the next item; the bound is the fractional knapsack
relaxation over the items not decided yet.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from bb_bounding_functions import ObjectiveSense, ObjectiveValue
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState
from utils import ValidationError, as_vector

logger = logging.getLogger(__name__)


class KnapsackProblem(ProblemInstance):
    """
    Maximize total value of the selected items subject to the weight capacity.

    Payload of a state: total weight of the items taken so far.
    """

    sense = ObjectiveSense.MAXIMIZE

    def __init__(self, weights: Sequence[float], values: Sequence[float], capacity: float):
        weight_array = as_vector(weights, "weights")
        value_array = as_vector(values, "values")

        if len(weight_array) != len(value_array):
            raise ValidationError(
                f"weights and values differ in length: {len(weight_array)} != {len(value_array)}"
            )
        if np.any(weight_array <= 0):
            raise ValidationError("Item weights must be positive")
        if not np.isfinite(capacity) or capacity < 0:
            raise ValidationError(f"Capacity must be a non-negative number, got {capacity}")

        self.capacity = capacity
        self.original_weights = weights
        self.original_values = values

        # Stable sort keeps the input order among equal ratios
        ratios = value_array / weight_array
        self.order: List[int] = [int(i) for i in np.argsort(-ratios, kind='stable')]
        self.weights = [weights[i] for i in self.order]
        self.values = [values[i] for i in self.order]

        logger.debug(f"Knapsack with {len(self.order)} items, capacity {capacity}, order {self.order}")

    @property
    def problem_size(self) -> int:
        return len(self.order)

    def initial_state(self) -> DecisionState:
        return DecisionState.root(payload=0)

    def bound(self, state: DecisionState) -> ObjectiveValue:
        """Value so far plus the greedy fractional fill of the remaining capacity."""
        estimate = state.partial_cost
        room = self.capacity - state.payload

        for index in range(state.depth, len(self.order)):
            weight = self.weights[index]
            if weight <= room:
                estimate += self.values[index]
                room -= weight
            else:
                estimate += self.values[index] * room / weight
                break

        return estimate

    def branch(self, state: DecisionState) -> List[DecisionState]:
        index = state.depth
        used = state.payload
        children = []

        # Include first: it reaches good incumbents early
        if used + self.weights[index] <= self.capacity:
            children.append(state.extend(True, self.values[index], payload=used + self.weights[index]))
        children.append(state.extend(False, 0, payload=used))

        return children

    def heuristic_solution(self) -> Optional[DecisionState]:
        """Greedy by ratio: take every item that still fits."""
        state = self.initial_state()
        while state.depth < self.problem_size:
            index = state.depth
            if state.payload + self.weights[index] <= self.capacity:
                state = state.extend(True, self.values[index], payload=state.payload + self.weights[index])
            else:
                state = state.extend(False, 0, payload=state.payload)
        return state

    def selected_items(self, state: DecisionState) -> List[int]:
        """Original indices of the items taken in ``state``."""
        return sorted(self.order[i] for i, taken in enumerate(state.choices) if taken)

    def describe_solution(self, state: DecisionState) -> Dict:
        return {
            'selected_items': self.selected_items(state),
            'total_weight': state.payload,
            'total_value': state.partial_cost,
            'capacity': self.capacity,
        }
