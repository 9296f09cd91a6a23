#!/usr/bin/env python3
"""
bb_bounding_functions.py - Objective Ordering and Bound Checks for Branch & Bound
================================================================================
Optimization direction, the three-way comparison contract used for pruning and
incumbent updates, frontier priority keys, and numeric sanity checks that keep
NaN/overflow out of the priority ordering.
"""

import math
from enum import Enum
from numbers import Real
from typing import Optional, Union

ObjectiveValue = Union[int, float]


class ObjectiveSense(Enum):
    """Optimization direction of a problem."""
    MINIMIZE = "minimize"
    MAXIMIZE = "maximize"


class Comparison(Enum):
    """Outcome of comparing a candidate value against a reference value."""
    BETTER = "better"
    WORSE = "worse"
    TIE = "tie"


def compare_values(sense: ObjectiveSense, candidate: ObjectiveValue,
                   reference: ObjectiveValue) -> Comparison:
    """
    Compare two objective values under the given direction.
    Exact equality is a TIE; tie-breaking is left to the problem.
    """
    if candidate == reference:
        return Comparison.TIE
    if sense is ObjectiveSense.MINIMIZE:
        return Comparison.BETTER if candidate < reference else Comparison.WORSE
    return Comparison.BETTER if candidate > reference else Comparison.WORSE


def priority_key(sense: ObjectiveSense, bound: ObjectiveValue) -> float:
    """Min-heap key for a bound: best bound pops first in either direction."""
    if sense is ObjectiveSense.MINIMIZE:
        return bound
    return -bound


def worst_value(sense: ObjectiveSense) -> float:
    """Value every finite objective beats."""
    return math.inf if sense is ObjectiveSense.MINIMIZE else -math.inf


def is_finite_value(value) -> bool:
    """True for real, non-NaN, non-infinite numbers (numpy scalars included)."""
    if isinstance(value, bool) or not isinstance(value, Real):
        return False
    return math.isfinite(value)


def can_beat(comparison: Comparison, tie_break_enabled: bool) -> bool:
    """
    Whether a node whose bound compared as ``comparison`` against the incumbent
    may still lead to an incumbent update.
    """
    if comparison is Comparison.BETTER:
        return True
    if comparison is Comparison.TIE:
        return tie_break_enabled
    return False


def relative_gap(incumbent: Optional[ObjectiveValue],
                 best_bound: Optional[ObjectiveValue],
                 sense: Optional[ObjectiveSense] = None) -> float:
    """
    Relative optimality gap |incumbent - bound| / |incumbent|.
    Infinite while either side is unknown; zero once no open bound can beat
    the incumbent (only decided when ``sense`` is given).
    """
    if incumbent is None or best_bound is None:
        return math.inf

    if sense is not None and compare_values(sense, best_bound, incumbent) is not Comparison.BETTER:
        return 0.0

    # Small epsilon keeps a zero incumbent from dividing by zero
    denominator = 1e-10 + abs(incumbent)
    return abs(incumbent - best_bound) / denominator
