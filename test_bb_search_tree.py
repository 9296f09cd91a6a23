#!/usr/bin/env python3
"""
Tests for decision states, the frontier and the objective ordering helpers.
"""

import math

import pytest

from bb_bounding_functions import (
    Comparison, ObjectiveSense, can_beat, compare_values, is_finite_value, relative_gap
)
from bb_search_tree import DecisionState, Frontier, SynchronizedFrontier


def node(bound, tag=None):
    return DecisionState.root(payload=tag).with_bound(bound)


def test_extend_shares_parent_choices():
    root = DecisionState.root(payload='r')
    child = root.extend('a', 5, payload='c')
    grandchild = child.extend('b', 2)

    assert grandchild.depth == 2
    assert grandchild.partial_cost == 7
    assert grandchild.choices == ('a', 'b')
    assert grandchild.last_choice == 'b'
    assert grandchild.choice_record.parent is child.choice_record

    # Parent is untouched
    assert child.choices == ('a',)
    assert root.choices == ()
    assert root.last_choice is None


def deep_state(depth, last=0):
    state = DecisionState.root()
    for index in range(depth - 1):
        state = state.extend(index % 3, 1)
    return state.extend(last, 1)


def test_deep_states_compare_and_hash_without_recursion():
    first = deep_state(3000)
    second = deep_state(3000)

    assert first.choice_record is not second.choice_record
    assert first == second
    assert hash(first) == hash(second)
    assert first != deep_state(3000, last=1)
    assert first != deep_state(2999)
    assert len({first, second}) == 1
    assert repr(first.choice_record).startswith("ChoiceRecord([0, 1, 2")


def test_states_sharing_a_parent_compare_by_choices():
    parent = DecisionState.root().extend('a', 1)

    assert parent.extend('b', 2) == parent.extend('b', 2)
    assert parent.extend('b', 2) != parent.extend('c', 2)
    assert parent.choice_record != ('a',)


def test_with_bound_returns_copy():
    state = DecisionState.root().extend(1, 3)
    bounded = state.with_bound(10)

    assert bounded.bound == 10
    assert state.bound is None
    assert bounded.choices == state.choices


def test_frontier_pops_lowest_bound_when_minimizing():
    frontier = Frontier(ObjectiveSense.MINIMIZE)
    for bound in (5, 1, 3):
        frontier.push(node(bound))

    assert [frontier.pop_best().bound for _ in range(3)] == [1, 3, 5]
    assert frontier.pop_best() is None


def test_frontier_pops_highest_bound_when_maximizing():
    frontier = Frontier(ObjectiveSense.MAXIMIZE)
    for bound in (5, 1, 3):
        frontier.push(node(bound))

    assert frontier.peek_bound() == 5
    assert [frontier.pop_best().bound for _ in range(3)] == [5, 3, 1]


def test_frontier_equal_bounds_pop_in_insertion_order():
    frontier = Frontier(ObjectiveSense.MINIMIZE)
    for tag in ('first', 'second', 'third'):
        frontier.push(node(7, tag))
    frontier.push(node(2, 'best'))

    assert [frontier.pop_best().payload for _ in range(4)] == ['best', 'first', 'second', 'third']


def test_frontier_requires_bound():
    frontier = Frontier(ObjectiveSense.MINIMIZE)
    with pytest.raises(ValueError):
        frontier.push(DecisionState.root())


def test_frontier_tracks_size():
    frontier = Frontier(ObjectiveSense.MINIMIZE)
    assert frontier.is_empty()
    assert frontier.peek_bound() is None

    for bound in range(4):
        frontier.push(node(bound))
    frontier.pop_best()

    assert len(frontier) == 3
    assert frontier.max_size == 4
    assert not frontier.is_empty()


def test_synchronized_frontier_push_many_keeps_order():
    frontier = SynchronizedFrontier(ObjectiveSense.MINIMIZE)
    frontier.push_many([node(3, 'a'), node(3, 'b'), node(1, 'c')])

    assert len(frontier) == 3
    assert [frontier.pop_best().payload for _ in range(3)] == ['c', 'a', 'b']


def test_compare_values_respects_direction():
    assert compare_values(ObjectiveSense.MINIMIZE, 1, 2) is Comparison.BETTER
    assert compare_values(ObjectiveSense.MINIMIZE, 3, 2) is Comparison.WORSE
    assert compare_values(ObjectiveSense.MAXIMIZE, 3, 2) is Comparison.BETTER
    assert compare_values(ObjectiveSense.MAXIMIZE, 2, 2.0) is Comparison.TIE


def test_can_beat_ties_only_with_tie_break():
    assert can_beat(Comparison.BETTER, False)
    assert not can_beat(Comparison.WORSE, True)
    assert not can_beat(Comparison.TIE, False)
    assert can_beat(Comparison.TIE, True)


def test_is_finite_value():
    assert is_finite_value(3)
    assert is_finite_value(2.5)
    assert not is_finite_value(math.nan)
    assert not is_finite_value(math.inf)
    assert not is_finite_value(None)
    assert not is_finite_value(True)


def test_relative_gap():
    assert relative_gap(None, 5) == math.inf
    assert relative_gap(10, None) == math.inf
    assert relative_gap(100, 90) == pytest.approx(0.1)
    # Best open bound can no longer beat the incumbent
    assert relative_gap(100, 120, ObjectiveSense.MINIMIZE) == 0.0
    assert relative_gap(100, 120, ObjectiveSense.MAXIMIZE) == pytest.approx(0.2)
