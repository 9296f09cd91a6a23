#!/usr/bin/env python3
"""
facility_location_problem.py - Uncapacitated Facility Location
==============================================================
Facilities are decided in index order, open (True) or closed (False). Every
customer is served by its cheapest open facility; the objective is total
fixed opening cost plus total service cost.

Bound: each customer is eventually served by a facility that is open now or
still undecided, so its cheapest such service cost is a lower bound on its
share. While nothing is open, the cheapest undecided fixed cost is added too.
"""

import logging
import math
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from bb_bounding_functions import ObjectiveValue
from bb_problem import ProblemInstance
from bb_search_tree import DecisionState
from utils import ValidationError, as_matrix, as_vector, distance_matrix

logger = logging.getLogger(__name__)


class FacilityLocationProblem(ProblemInstance):
    """
    Minimize fixed plus service cost of serving every customer.

    ``service_costs[c][f]`` is the cost of serving customer ``c`` from
    facility ``f``. With customers present, at least one facility must open;
    with no facility at all the instance is infeasible.

    Payload of a state: ``(any_open, best_service)``, where ``best_service``
    holds each customer's cheapest open service cost (inf while none is open).
    """

    def __init__(self, fixed_costs: Sequence[float], service_costs,
                 facility_names: Optional[List[str]] = None,
                 customer_names: Optional[List[str]] = None):
        self.fixed_costs = as_vector(fixed_costs, "fixed costs")
        self.service_costs = as_matrix(service_costs, "service costs")

        self.num_facilities = len(self.fixed_costs)
        self.num_customers = self.service_costs.shape[0]

        if self.service_costs.shape[1] != self.num_facilities:
            raise ValidationError(
                f"service costs have {self.service_costs.shape[1]} facility columns, "
                f"expected {self.num_facilities}"
            )

        self.facility_names = facility_names or [f"F{i}" for i in range(self.num_facilities)]
        self.customer_names = customer_names or [f"C{j}" for j in range(self.num_customers)]

        if len(self.facility_names) != self.num_facilities or len(self.customer_names) != self.num_customers:
            raise ValidationError("facility/customer names do not match the cost data")

    @classmethod
    def from_coordinates(cls, facility_locations, customer_locations,
                         fixed_costs: Sequence[float], **kwargs) -> 'FacilityLocationProblem':
        """Service cost is the Euclidean distance from customer to facility."""
        service = distance_matrix(customer_locations, facility_locations)
        return cls(fixed_costs, service.reshape(len(customer_locations), len(facility_locations)), **kwargs)

    @property
    def problem_size(self) -> int:
        return self.num_facilities

    @property
    def requires_open_facility(self) -> bool:
        return self.num_customers > 0

    def initial_state(self) -> DecisionState:
        return DecisionState.root(payload=(False, (math.inf,) * self.num_customers))

    def _decide(self, state: DecisionState, open_facility: bool) -> DecisionState:
        facility = state.depth
        any_open, best = state.payload

        if not open_facility:
            return state.extend(False, 0, payload=(any_open, best))

        column = self.service_costs[:, facility]
        improved = tuple(min(current, float(cost)) for current, cost in zip(best, column))
        return state.extend(True, float(self.fixed_costs[facility]), payload=(True, improved))

    def bound(self, state: DecisionState) -> ObjectiveValue:
        any_open, best = state.payload
        remaining = slice(state.depth, self.num_facilities)
        has_remaining = state.depth < self.num_facilities

        if self.requires_open_facility and not any_open and not has_remaining:
            return math.inf

        estimate = state.partial_cost
        if self.num_customers:
            if has_remaining:
                cheapest_remaining = self.service_costs[:, remaining].min(axis=1)
                estimate += float(np.minimum(np.asarray(best), cheapest_remaining).sum())
            else:
                estimate += float(sum(best))

        if self.requires_open_facility and not any_open:
            estimate += float(self.fixed_costs[remaining].min())

        return estimate

    def branch(self, state: DecisionState) -> List[DecisionState]:
        return [self._decide(state, True), self._decide(state, False)]

    def objective_of(self, state: DecisionState) -> ObjectiveValue:
        any_open, best = state.payload
        if self.requires_open_facility and not any_open:
            return math.inf
        return state.partial_cost + float(sum(best))

    def total_cost(self, open_set) -> float:
        """Fixed plus service cost of opening exactly ``open_set``."""
        facilities = sorted(open_set)
        if not facilities:
            return math.inf if self.requires_open_facility else 0.0
        fixed = float(self.fixed_costs[facilities].sum())
        if not self.num_customers:
            return fixed
        return fixed + float(self.service_costs[:, facilities].min(axis=1).sum())

    def heuristic_solution(self) -> Optional[DecisionState]:
        """Add-greedy: keep opening the facility that lowers total cost most."""
        if self.num_facilities == 0:
            return None

        chosen = set()
        current = math.inf if self.requires_open_facility else 0.0
        while True:
            candidates = [
                (self.total_cost(chosen | {f}), f)
                for f in range(self.num_facilities) if f not in chosen
            ]
            if not candidates:
                break
            cost, facility = min(candidates)
            if cost >= current:
                break
            chosen.add(facility)
            current = cost

        state = self.initial_state()
        for facility in range(self.num_facilities):
            state = self._decide(state, facility in chosen)
        return state

    def open_facilities(self, state: DecisionState) -> List[int]:
        return [f for f, is_open in enumerate(state.choices) if is_open]

    def describe_solution(self, state: DecisionState) -> Dict:
        facilities = self.open_facilities(state)
        assignment = {}
        if facilities:
            for customer in range(self.num_customers):
                served_by = facilities[int(np.argmin(self.service_costs[customer, facilities]))]
                assignment[self.customer_names[customer]] = self.facility_names[served_by]

        _, best = state.payload
        return {
            'open_facilities': [self.facility_names[f] for f in facilities],
            'assignment': assignment,
            'fixed_cost': state.partial_cost,
            'service_cost': float(sum(best)) if facilities else None,
            'total_cost': self.objective_of(state),
        }


def build_facility_instance(facilities: Sequence[Tuple[float, float]],
                            customers: Sequence[Tuple[float, float]],
                            fixed_costs: Sequence[float]) -> FacilityLocationProblem:
    """Convenience constructor used by the demo data sets."""
    return FacilityLocationProblem.from_coordinates(
        facilities, customers, fixed_costs,
        facility_names=[f"Facility_{chr(ord('A') + i)}" for i in range(len(facilities))],
        customer_names=[f"Customer_{j + 1}" for j in range(len(customers))],
    )
