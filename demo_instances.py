#!/usr/bin/env python3
"""
demo_instances.py - Demo and Random Problem Instances
=====================================================
Hand-made demo data sets for every problem type, and seeded random
generators for scaling runs. Random sizes and ranges default to
``Config.DEMO``.
"""

import logging
from typing import Any, Callable, Dict, Optional

import numpy as np

from assignment_problem import AssignmentProblem, BoundMethod
from bb_problem import ProblemInstance
from config import Config
from facility_location_problem import FacilityLocationProblem, build_facility_instance
from knapsack_problem import KnapsackProblem
from nqueens_problem import NQueensProblem
from tsp_problem import TravelingSalesmanProblem
from utils import ValidationError

logger = logging.getLogger(__name__)


# ============================================================================
# DEMO DATA SETS
# ============================================================================

KNAPSACK_CASES = {
    1: {'weights': [10, 20, 30], 'values': [60, 100, 120], 'capacity': 50},
    2: {'weights': [5, 4, 6, 3, 7, 2, 8], 'values': [10, 40, 30, 50, 20, 60, 25], 'capacity': 15},
}

ASSIGNMENT_CASES = {
    1: [[9, 2, 7, 8],
        [6, 4, 3, 7],
        [5, 8, 1, 8],
        [7, 6, 9, 4]],
    2: [[12, 9, 27, 10, 23],
        [7, 13, 13, 30, 19],
        [25, 18, 26, 15, 24],
        [6, 20, 14, 8, 17],
        [18, 24, 20, 21, 14]],
}

TSP_CASES = {
    1: [[0, 10, 15, 20],
        [10, 0, 35, 25],
        [15, 35, 0, 30],
        [20, 25, 30, 0]],
    2: [[0, 12, 29, 22, 13],
        [12, 0, 19, 28, 25],
        [29, 19, 0, 21, 10],
        [22, 28, 21, 0, 24],
        [13, 25, 10, 24, 0]],
}

FACILITY_CASES = {
    1: {
        'facilities': [(1, 1), (4, 1), (2, 4)],
        'customers': [(2, 2), (3, 1), (1, 3), (4, 3)],
        'fixed_costs': [50.0, 60.0, 55.0],
    },
    2: {
        'facilities': [(0, 0), (2, 0), (4, 0), (1, 3), (3, 3)],
        'customers': [(0.5, 1), (1.5, 1), (2.5, 1), (3.5, 1), (1, 2), (3, 2)],
        'fixed_costs': [40.0, 45.0, 50.0, 35.0, 42.0],
    },
}

NQUEENS_CASES = {
    1: {'board_size': 8, 'mode': 'conflicts'},
    2: {'board_size': 6, 'mode': 'center'},
    3: {'board_size': 4, 'mode': 'symmetry'},
}


def knapsack_demo(case: int = 1) -> KnapsackProblem:
    data = _case(KNAPSACK_CASES, case, 'knapsack')
    return KnapsackProblem(data['weights'], data['values'], data['capacity'])


def assignment_demo(case: int = 1, bound_method: BoundMethod = BoundMethod.REDUCTION) -> AssignmentProblem:
    return AssignmentProblem(_case(ASSIGNMENT_CASES, case, 'assignment'), bound_method=bound_method)


def tsp_demo(case: int = 1) -> TravelingSalesmanProblem:
    return TravelingSalesmanProblem(_case(TSP_CASES, case, 'tsp'), start_city=0)


def facility_demo(case: int = 1) -> FacilityLocationProblem:
    data = _case(FACILITY_CASES, case, 'facility')
    return build_facility_instance(data['facilities'], data['customers'], data['fixed_costs'])


def nqueens_demo(case: int = 1, allow_conflicts: Optional[bool] = None) -> NQueensProblem:
    data = _case(NQUEENS_CASES, case, 'nqueens')
    if allow_conflicts is None:
        allow_conflicts = Config.DEMO['nqueens'].get('allow_conflicts', False)
    return NQueensProblem(data['board_size'], data['mode'], allow_conflicts=allow_conflicts)


def _case(cases: Dict[int, Any], case: int, name: str) -> Any:
    if case not in cases:
        raise ValidationError(f"No {name} demo case {case}; available: {sorted(cases)}")
    return cases[case]


# ============================================================================
# RANDOM GENERATORS
# ============================================================================

def _rng(seed: Optional[int]) -> np.random.Generator:
    return np.random.default_rng(Config.DEMO['random_seed'] if seed is None else seed)


def random_knapsack(num_items: Optional[int] = None, seed: Optional[int] = None) -> KnapsackProblem:
    settings = Config.DEMO['knapsack']
    if num_items is None:
        num_items = settings['num_items']
    rng = _rng(seed)

    weights = rng.integers(settings['min_weight'], settings['max_weight'] + 1, size=num_items)
    values = rng.integers(settings['min_value'], settings['max_value'] + 1, size=num_items)
    capacity = max(settings['base_capacity'], int(weights.sum()) // 2)

    return KnapsackProblem(weights.tolist(), values.tolist(), capacity)


def random_assignment(size: Optional[int] = None, seed: Optional[int] = None) -> AssignmentProblem:
    settings = Config.DEMO['assignment']
    if size is None:
        size = settings['size']
    rng = _rng(seed)

    costs = rng.integers(settings['min_cost'], settings['max_cost'] + 1, size=(size, size))
    return AssignmentProblem(costs.tolist())


def random_tsp(num_cities: Optional[int] = None, seed: Optional[int] = None) -> TravelingSalesmanProblem:
    """Symmetric integer distances in 1..max_distance."""
    settings = Config.DEMO['tsp']
    if num_cities is None:
        num_cities = settings['num_cities']
    rng = _rng(seed)

    upper = np.triu(rng.integers(1, settings['max_distance'] + 1, size=(num_cities, num_cities)), k=1)
    distances = upper + upper.T
    return TravelingSalesmanProblem(distances.tolist())


def random_facility_location(num_facilities: Optional[int] = None,
                             num_customers: Optional[int] = None,
                             seed: Optional[int] = None) -> FacilityLocationProblem:
    settings = Config.DEMO['facility_location']
    if num_facilities is None:
        num_facilities = settings['num_facilities']
    if num_customers is None:
        num_customers = settings['num_customers']
    rng = _rng(seed)

    grid = settings['grid_size']
    facilities = rng.uniform(0.0, grid, size=(num_facilities, 2)).round(2)
    customers = rng.uniform(0.0, grid, size=(num_customers, 2)).round(2)
    fixed_costs = rng.uniform(settings['min_fixed_cost'], settings['max_fixed_cost'], size=num_facilities).round(2)

    return build_facility_instance(facilities.tolist(), customers.tolist(), fixed_costs.tolist())


def random_nqueens(board_size: Optional[int] = None, seed: Optional[int] = None) -> NQueensProblem:
    """The board has no random data; the seed draws the ordering mode."""
    settings = Config.DEMO['nqueens']
    if board_size is None:
        board_size = settings['board_size']
    rng = _rng(seed)

    mode = str(rng.choice(settings['modes']))
    return NQueensProblem(board_size, mode, allow_conflicts=settings.get('allow_conflicts', False))


# ============================================================================
# REGISTRY
# ============================================================================

DEMO_FACTORIES: Dict[str, Callable[..., ProblemInstance]] = {
    'knapsack': knapsack_demo,
    'assignment': assignment_demo,
    'tsp': tsp_demo,
    'facility': facility_demo,
    'nqueens': nqueens_demo,
}

RANDOM_FACTORIES: Dict[str, Callable[..., ProblemInstance]] = {
    'knapsack': random_knapsack,
    'assignment': random_assignment,
    'tsp': random_tsp,
    'facility': random_facility_location,
    'nqueens': random_nqueens,
}

PROBLEM_TYPES = sorted(DEMO_FACTORIES)


def build_instance(problem_type: str, source: str = 'demo', case: int = 1,
                   size: Optional[int] = None, seed: Optional[int] = None) -> ProblemInstance:
    """
    Create a problem instance by name.

    Args:
        problem_type: One of ``PROBLEM_TYPES``
        source: ``'demo'`` for a hand-made case, ``'random'`` for a generated one
        case: Demo case number
        size: Main size parameter of a random instance
        seed: Random seed (``Config.DEMO['random_seed']`` when omitted)

    Returns:
        The problem instance
    """
    if problem_type not in DEMO_FACTORIES:
        raise ValidationError(f"Unknown problem type '{problem_type}'; expected one of {PROBLEM_TYPES}")

    if source == 'demo':
        problem = DEMO_FACTORIES[problem_type](case)
    elif source == 'random':
        factory = RANDOM_FACTORIES[problem_type]
        problem = factory(size, seed=seed)
    else:
        raise ValidationError(f"Unknown instance source '{source}'")

    logger.info(f"Built {source} {problem_type} instance (size {problem.problem_size})")
    return problem
