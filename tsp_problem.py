#!/usr/bin/env python3
"""
tsp_problem.py - Traveling Salesman as a Branch & Bound Problem
===============================================================
Tours start and end at a fixed city. Each decision picks the next unvisited
city; the edge back to the start is charged together with the last city, so
a terminal state's partial cost is the full tour length.

Bound: every city still to be left (the current one and each unvisited one)
must be left once more through some outgoing edge, so the cheapest admissible
outgoing edge of each is a lower bound on the rest of the tour.
"""

import logging
from typing import Dict, List, Optional

import numpy as np

from bb_bounding_functions import ObjectiveValue
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState
from utils import ValidationError, as_matrix, distance_matrix

logger = logging.getLogger(__name__)


class TravelingSalesmanProblem(ProblemInstance):
    """
    Minimize the length of a closed tour visiting every city once.

    Payload of a state: ``(current_city, visited_mask)``.
    """

    def __init__(self, distances, start_city: int = 0):
        self.distances = as_matrix(distances, "distance matrix", square=True)
        self.num_cities = self.distances.shape[0]

        if self.num_cities == 0:
            raise ValidationError("distance matrix must contain at least one city")
        if not 0 <= start_city < self.num_cities:
            raise ValidationError(f"start city {start_city} outside 0..{self.num_cities - 1}")

        self.start_city = start_city

    @classmethod
    def from_coordinates(cls, points, start_city: int = 0) -> 'TravelingSalesmanProblem':
        """Symmetric Euclidean instance from city coordinates."""
        return cls(distance_matrix(points, points), start_city=start_city)

    @property
    def problem_size(self) -> int:
        return self.num_cities - 1

    def initial_state(self) -> DecisionState:
        return DecisionState.root(payload=(self.start_city, 1 << self.start_city))

    def _unvisited(self, visited_mask: int) -> List[int]:
        return [city for city in range(self.num_cities) if not visited_mask & (1 << city)]

    def bound(self, state: DecisionState) -> ObjectiveValue:
        if state.depth == self.problem_size:
            return state.partial_cost

        current, visited = state.payload
        unvisited = self._unvisited(visited)

        estimate = state.partial_cost + float(self.distances[current, unvisited].min())
        targets = unvisited + [self.start_city]
        for city in unvisited:
            estimate += min(float(self.distances[city, other]) for other in targets if other != city)

        return estimate

    def branch(self, state: DecisionState) -> List[DecisionState]:
        current, visited = state.payload
        closes_tour = state.depth + 1 == self.problem_size

        children = []
        for city in sorted(self._unvisited(visited), key=lambda c: self.distances[current, c]):
            step = float(self.distances[current, city])
            if closes_tour:
                step += float(self.distances[city, self.start_city])
            children.append(state.extend(city, step, payload=(city, visited | (1 << city))))

        return children

    def heuristic_solution(self) -> Optional[DecisionState]:
        """Nearest-neighbour tour."""
        state = self.initial_state()
        while state.depth < self.problem_size:
            state = self.branch(state)[0]
        return state

    def tour(self, state: DecisionState) -> List[int]:
        """Cities in visiting order, closed at the start city for complete tours."""
        path = [self.start_city] + list(state.choices)
        if state.depth == self.problem_size:
            path.append(self.start_city)
        return path

    def describe_solution(self, state: DecisionState) -> Dict:
        path = self.tour(state)
        legs = [float(self.distances[a, b]) for a, b in zip(path, path[1:])]
        return {
            'tour': path,
            'legs': legs,
            'total_distance': float(np.sum(legs)) if legs else 0.0,
        }
