#!/usr/bin/env python3
"""
Tests for the multi-threaded driver: agreement with the sequential optimum,
termination, limits and error propagation.
"""

import pytest

from bb_parallel import ParallelSearchDriver, solve_parallel
from bb_search_strategies import (
    SearchConfiguration, SearchState, SearchStateError, TerminationStatus, solve
)
from demo_instances import (
    assignment_demo, facility_demo, knapsack_demo, nqueens_demo, random_knapsack, random_tsp
)
from facility_location_problem import FacilityLocationProblem
from knapsack_problem import KnapsackProblem


@pytest.mark.parametrize('factory', [
    lambda: knapsack_demo(1),
    lambda: knapsack_demo(2),
    lambda: random_knapsack(14, seed=8),
    lambda: assignment_demo(2),
    lambda: random_tsp(7, seed=6),
    lambda: facility_demo(2),
    lambda: nqueens_demo(2),
])
@pytest.mark.parametrize('workers', [1, 3])
def test_parallel_matches_sequential(factory, workers):
    problem = factory()
    sequential = solve(problem)
    parallel = solve_parallel(problem, num_workers=workers)

    assert parallel.terminated is TerminationStatus.EXHAUSTED
    assert parallel.best_value == pytest.approx(sequential.best_value)
    assert problem.objective_of(parallel.best_solution) == pytest.approx(sequential.best_value)


def test_parallel_infeasible_instance():
    result = solve_parallel(FacilityLocationProblem([], [[]]), num_workers=2)

    assert result.terminated is TerminationStatus.EXHAUSTED
    assert result.is_infeasible


def test_parallel_counters_are_consistent():
    result = solve_parallel(random_knapsack(12, seed=2), num_workers=4)
    stats = result.statistics

    assert stats.nodes_processed == stats.nodes_explored + stats.nodes_pruned_at_extraction
    assert stats.incumbent_updates == len(result.incumbent_history)
    assert result.statistics.final_gap == 0.0


def test_parallel_node_limit():
    result = solve_parallel(random_knapsack(16, seed=5), SearchConfiguration(max_nodes=3), num_workers=2)

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert "node limit" in result.stop_reason


def test_parallel_run_twice_raises():
    driver = ParallelSearchDriver(knapsack_demo(1), num_workers=2)
    driver.run()
    assert driver.state is SearchState.EXHAUSTED

    with pytest.raises(SearchStateError):
        driver.run()


def test_parallel_rejects_zero_workers():
    with pytest.raises(ValueError):
        ParallelSearchDriver(knapsack_demo(1), num_workers=0)


class ExplodingKnapsack(KnapsackProblem):
    def branch(self, state):
        if state.depth == 1:
            raise RuntimeError("branching failed")
        return super().branch(state)


def test_worker_errors_propagate():
    problem = ExplodingKnapsack([10, 20, 30], [60, 100, 120], 50)
    with pytest.raises(RuntimeError, match="branching failed"):
        solve_parallel(problem, num_workers=3)


def test_node_limit_counts_nodes_held_by_workers():
    extracted = []
    configuration = SearchConfiguration(max_nodes=3)
    result = solve_parallel(random_knapsack(16, seed=5), configuration, num_workers=4,
                            observer=extracted.append)

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert len(extracted) == 3
    assert result.statistics.nodes_processed == 3


@pytest.mark.parametrize('workers', [1, 4])
def test_zero_gap_tolerance_still_proves_optimality(workers):
    result = solve_parallel(knapsack_demo(1), SearchConfiguration(gap_tolerance=0.0), num_workers=workers)

    assert result.terminated is TerminationStatus.EXHAUSTED
    assert result.is_proven_optimal
    assert result.best_value == 220
    assert result.stop_reason is None
