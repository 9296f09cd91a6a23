#!/usr/bin/env python3
"""
Tests for stop conditions, alone and wired into the search driver.
"""

import itertools

import pytest

from bb_search_limits import (
    FrontierLimit, GapLimit, MemoryLimit, NodeLimit, SearchClock, SearchProgress,
    SolutionLimit, TimeLimit, first_triggered
)
from bb_search_strategies import SearchConfiguration, SearchDriver, TerminationStatus, solve
from knapsack_problem import KnapsackProblem


def scenario_knapsack():
    return KnapsackProblem([10, 20, 30], [60, 100, 120], 50)


def progress(**overrides):
    values = dict(nodes_processed=0, nodes_explored=0, solutions_found=0,
                  frontier_size=1, elapsed_time=0.0)
    values.update(overrides)
    return SearchProgress(**values)


def test_conditions_fire_at_their_thresholds():
    assert NodeLimit(10).check(progress(nodes_processed=9)) is None
    assert NodeLimit(10).check(progress(nodes_processed=10))

    assert TimeLimit(1.5).check(progress(elapsed_time=1.0)) is None
    assert TimeLimit(1.5).check(progress(elapsed_time=1.5))

    assert FrontierLimit(3).check(progress(frontier_size=3)) is None
    assert FrontierLimit(3).check(progress(frontier_size=4))

    assert SolutionLimit(2).check(progress(solutions_found=2))


def test_gap_limit_needs_an_incumbent():
    limit = GapLimit(0.05)
    assert limit.check(progress(gap=0.0)) is None
    assert limit.check(progress(incumbent_value=100, gap=0.04))
    assert limit.check(progress(incumbent_value=100, gap=0.06)) is None


def test_gap_limit_waits_while_a_tie_can_still_win():
    limit = GapLimit(0.0)
    assert limit.check(progress(incumbent_value=100, best_open_bound=100, gap=0.0, tie_open=True)) is None
    assert limit.check(progress(incumbent_value=100, best_open_bound=100, gap=0.0))


def test_memory_limit_samples_every_interval():
    readings = []

    def reader():
        readings.append(1)
        return 512 * 1024 * 1024

    limit = MemoryLimit(256, check_interval=3, rss_reader=reader)
    reasons = [limit.check(progress()) for _ in range(7)]

    assert len(readings) == 3  # calls 1, 4 and 7
    assert reasons[0] and reasons[3] and reasons[6]
    assert reasons[1] is None
    assert limit.last_rss_mb == 512


def test_first_triggered_reports_first_in_order():
    conditions = [NodeLimit(100), TimeLimit(1.0), FrontierLimit(0)]
    reason = first_triggered(conditions, progress(elapsed_time=2.0))
    assert reason.startswith("time limit")


def test_search_clock_uses_injected_clock():
    ticks = iter([10.0, 12.5])
    clock = SearchClock(lambda: next(ticks))
    assert clock.elapsed() == 0.0
    clock.start()
    assert clock.elapsed() == 2.5


def test_node_limit_without_incumbent_returns_no_solution():
    result = solve(scenario_knapsack(), SearchConfiguration(max_nodes=1))

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert "node limit" in result.stop_reason
    assert result.best_value is None
    assert not result.is_infeasible


def test_node_limit_keeps_seeded_incumbent():
    result = solve(scenario_knapsack(), SearchConfiguration(max_nodes=1, seed_incumbent=True))

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert result.best_value == 160
    assert not result.is_proven_optimal


def test_time_limit_with_fake_clock():
    ticks = itertools.count(0.0, 1.0)
    driver = SearchDriver(
        scenario_knapsack(),
        stop_conditions=[TimeLimit(2.5)],
        clock=SearchClock(lambda: next(ticks)),
    )
    result = driver.run()

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert "time limit" in result.stop_reason
    assert result.statistics.nodes_processed == 2


def test_gap_tolerance_stops_once_close_enough():
    # Greedy seed 160 against root bound 240 is a 50% gap
    result = solve(scenario_knapsack(), SearchConfiguration(gap_tolerance=0.5, seed_incumbent=True))

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert result.best_value == 160
    assert result.nodes_explored == 0
    assert result.statistics.final_gap == pytest.approx(0.5)


def test_solution_limit_stops_after_first_terminal(table_problem_cls):
    # Equal-valued boards can still win the tie-break after the first terminal
    problem = table_problem_cls([[1, 1], [1, 1]], prefer_larger_choices=True)
    result = solve(problem, SearchConfiguration(max_solutions=1))

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert result.statistics.terminals_evaluated == 1
    assert result.best_solution.choices == (0, 0)


def test_limits_do_not_interrupt_a_proven_optimum():
    # After the first terminal (220) every open bound is worse
    result = solve(scenario_knapsack(), SearchConfiguration(max_solutions=1))

    assert result.terminated is TerminationStatus.EXHAUSTED
    assert result.is_proven_optimal
    assert result.best_value == 220
    assert result.nodes_explored == 6
    assert result.nodes_pruned == 4


def test_zero_gap_tolerance_finishes_exhausted():
    plain = solve(scenario_knapsack())
    result = solve(scenario_knapsack(), SearchConfiguration(gap_tolerance=0.0))

    assert result.terminated is TerminationStatus.EXHAUSTED
    assert result.is_proven_optimal
    assert result.stop_reason is None
    assert result.best_value == 220
    assert result.statistics.final_gap == 0.0
    assert (result.nodes_explored, result.nodes_pruned) == (plain.nodes_explored, plain.nodes_pruned)


def test_zero_gap_tolerance_keeps_tie_break_candidates(table_problem_cls):
    problem = table_problem_cls([[1, 1], [1, 1]], prefer_larger_choices=True)
    result = solve(problem, SearchConfiguration(gap_tolerance=0.0))

    assert result.terminated is TerminationStatus.EXHAUSTED
    assert result.best_solution.choices == (1, 1)
    assert result.incumbent_history == [2, 2, 2, 2]


def test_frontier_limit():
    result = solve(scenario_knapsack(), SearchConfiguration(max_frontier_size=1))

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert "frontier" in result.stop_reason


def test_memory_limit_in_driver():
    driver = SearchDriver(
        scenario_knapsack(),
        stop_conditions=[MemoryLimit(100, rss_reader=lambda: 2 * 1024 ** 3)],
    )
    result = driver.run()

    assert result.terminated is TerminationStatus.STOPPED_BY_LIMIT
    assert "memory" in result.stop_reason
    assert result.statistics.nodes_processed == 0
