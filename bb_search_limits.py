#!/usr/bin/env python3
"""
bb_search_limits.py - Stop Conditions for Branch & Bound Search
===============================================================
Node-count, wall-clock, frontier-size, process-memory, optimality-gap and
solution-count ceilings. They are checked between driver iterations only and
turn an over-budget run into a best-effort STOPPED_BY_LIMIT result.
"""

import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

import psutil

from bb_bounding_functions import ObjectiveValue


@dataclass
class SearchProgress:
    """Read-only view of a running search handed to stop conditions."""
    nodes_processed: int
    nodes_explored: int
    solutions_found: int
    frontier_size: int
    elapsed_time: float
    incumbent_value: Optional[ObjectiveValue] = None
    best_open_bound: Optional[ObjectiveValue] = None
    gap: float = float('inf')
    # Best open bound ties the incumbent and may still win its tie-break
    tie_open: bool = False


class StopCondition(ABC):
    """A budget that can interrupt the search between iterations."""

    @abstractmethod
    def check(self, progress: SearchProgress) -> Optional[str]:
        """Return a human-readable reason when the search must stop, else None."""
        pass


class NodeLimit(StopCondition):
    """Stop after a number of extracted nodes."""

    def __init__(self, max_nodes: int):
        self.max_nodes = max_nodes

    def check(self, progress: SearchProgress) -> Optional[str]:
        if progress.nodes_processed >= self.max_nodes:
            return f"node limit {self.max_nodes} reached"
        return None


class TimeLimit(StopCondition):
    """Stop once the wall-clock budget is used up."""

    def __init__(self, seconds: float):
        self.seconds = seconds

    def check(self, progress: SearchProgress) -> Optional[str]:
        if progress.elapsed_time >= self.seconds:
            return f"time limit {self.seconds:.2f}s reached"
        return None


class FrontierLimit(StopCondition):
    """Stop when the number of open nodes grows past a ceiling."""

    def __init__(self, max_open_nodes: int):
        self.max_open_nodes = max_open_nodes

    def check(self, progress: SearchProgress) -> Optional[str]:
        if progress.frontier_size > self.max_open_nodes:
            return f"frontier size {progress.frontier_size} exceeds {self.max_open_nodes}"
        return None


class MemoryLimit(StopCondition):
    """
    Stop when the process resident set size exceeds a ceiling (in MB).
    RSS is sampled every ``check_interval`` calls to keep the check cheap.
    """

    def __init__(self, max_rss_mb: float, check_interval: int = 256,
                 rss_reader: Optional[Callable[[], int]] = None):
        self.max_rss_mb = max_rss_mb
        self.check_interval = max(1, check_interval)
        self._rss_reader = rss_reader or self._read_process_rss
        self._calls = 0
        self.last_rss_mb = 0.0

    @staticmethod
    def _read_process_rss() -> int:
        return psutil.Process().memory_info().rss

    def check(self, progress: SearchProgress) -> Optional[str]:
        self._calls += 1
        if (self._calls - 1) % self.check_interval:
            return None

        self.last_rss_mb = self._rss_reader() / (1024 * 1024)
        if self.last_rss_mb > self.max_rss_mb:
            return f"memory {self.last_rss_mb:.1f}MB exceeds {self.max_rss_mb:.1f}MB"
        return None


class GapLimit(StopCondition):
    """Stop when the incumbent is within a relative gap of the best open bound."""

    def __init__(self, tolerance: float):
        self.tolerance = tolerance

    def check(self, progress: SearchProgress) -> Optional[str]:
        if progress.incumbent_value is None or progress.tie_open:
            return None
        if progress.gap <= self.tolerance:
            return f"gap {progress.gap:.4%} within tolerance {self.tolerance:.4%}"
        return None


class SolutionLimit(StopCondition):
    """Stop after a number of terminal solutions were evaluated."""

    def __init__(self, max_solutions: int):
        self.max_solutions = max_solutions

    def check(self, progress: SearchProgress) -> Optional[str]:
        if progress.solutions_found >= self.max_solutions:
            return f"{self.max_solutions} solutions evaluated"
        return None


class SearchClock:
    """Monotonic stopwatch for a single search run."""

    def __init__(self, clock: Callable[[], float] = time.perf_counter):
        self._clock = clock
        self._start: Optional[float] = None

    def start(self):
        self._start = self._clock()

    def elapsed(self) -> float:
        if self._start is None:
            return 0.0
        return self._clock() - self._start


def first_triggered(conditions: List[StopCondition], progress: SearchProgress) -> Optional[str]:
    """Reason of the first condition that fires, in list order."""
    for condition in conditions:
        reason = condition.check(progress)
        if reason:
            return reason
    return None
