#!/usr/bin/env python3
"""
bb_parallel.py - Multi-Threaded Branch & Bound Search
=====================================================
Worker threads run the best-first loop against one shared frontier and one
lock-guarded incumbent. Bounding and branching happen outside any lock; only
frontier access, counters and the in-flight bookkeeping are serialized.

The search ends when the frontier is empty and no worker holds an unfinished
node, or when a stop condition fires. Node counts vary between runs; the
best value matches the single-threaded driver.
"""

import logging
import threading
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional, Tuple

from bb_bounding_functions import is_finite_value
from bb_incumbent import SharedIncumbent
from bb_problem import ProblemInstance
from bb_search_limits import SearchClock, SearchProgress, StopCondition
from bb_search_strategies import (
    NodeObserver, SearchConfiguration, SearchDriver, SearchResult, SearchState,
    SearchStateError, evaluate_child
)
from bb_search_tree import DecisionState, SynchronizedFrontier

logger = logging.getLogger(__name__)


class ParallelSearchDriver(SearchDriver):
    """
    Best-first Branch & Bound over a pool of worker threads.

    The observer, when given, is called from several threads and must be
    thread-safe.
    """

    def __init__(self, problem: ProblemInstance,
                 configuration: Optional[SearchConfiguration] = None,
                 num_workers: Optional[int] = None,
                 idle_wait: Optional[float] = None,
                 observer: Optional[NodeObserver] = None,
                 stop_conditions: Optional[List[StopCondition]] = None,
                 clock: Optional[SearchClock] = None):
        from config import Config

        parallel_config = Config.PARALLEL
        self.num_workers = num_workers if num_workers is not None else parallel_config['num_workers']
        self.idle_wait = idle_wait if idle_wait is not None else parallel_config['idle_wait']
        if self.num_workers < 1:
            raise ValueError(f"num_workers must be positive, got {self.num_workers}")

        self._condition = threading.Condition()
        self._in_flight = 0
        self._aborted = False

        super().__init__(problem, configuration, observer=observer,
                         stop_conditions=stop_conditions, clock=clock)

    def _create_frontier(self) -> SynchronizedFrontier:
        return SynchronizedFrontier(self.problem.sense)

    def _create_incumbent(self) -> SharedIncumbent:
        return SharedIncumbent(
            self.problem.compare,
            self.problem.tie_break if self.problem.has_tie_break else None
        )

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> SearchResult:
        if self.state is not SearchState.INITIALIZED:
            raise SearchStateError(f"Cannot run a search in state {self.state.value}")

        self.state = SearchState.RUNNING
        self.clock.start()
        logger.info(
            f"Starting parallel {type(self.problem).__name__} search with "
            f"{self.num_workers} workers ({self.problem.sense.value}, size {self.problem.problem_size})"
        )

        with ThreadPoolExecutor(max_workers=self.num_workers, thread_name_prefix="bb-worker") as executor:
            futures = [executor.submit(self._worker, f"worker_{i}") for i in range(self.num_workers)]
            for future in futures:
                # Re-raises the first exception of a failed worker
                future.result()

        return self._build_result()

    def _next_node(self) -> Optional[DecisionState]:
        """Take the best open node, or None once the search is over."""
        with self._condition:
            while True:
                if self.state is not SearchState.RUNNING or self._aborted:
                    return None

                if self.frontier.is_empty():
                    if self._in_flight == 0:
                        self.state = SearchState.EXHAUSTED
                        self._condition.notify_all()
                        return None
                    # Busy workers may still push children
                    self._condition.wait(self.idle_wait)
                    continue

                reason = self._check_limits()
                if reason:
                    self.stop_reason = reason
                    self.state = SearchState.STOPPED_BY_LIMIT
                    logger.info(f"Search stopped: {reason}")
                    self._condition.notify_all()
                    return None

                self._in_flight += 1
                return self.frontier.pop_best()

    def _progress(self) -> SearchProgress:
        progress = super()._progress()
        # Nodes held by workers count against the node budget
        progress.nodes_processed += self._in_flight
        return progress

    def _worker(self, worker_id: str):
        processed = 0
        try:
            while True:
                node = self._next_node()
                if node is None:
                    break

                children: List[DecisionState] = []
                counts: Counter = Counter()
                try:
                    children, counts = self._evaluate(node)
                finally:
                    self._finish(children, counts, node.depth)
                processed += 1
        except Exception:
            with self._condition:
                self._aborted = True
                self._condition.notify_all()
            logger.exception(f"{worker_id} failed")
            raise

        logger.debug(f"{worker_id} processed {processed} nodes")

    def _evaluate(self, node: DecisionState) -> Tuple[List[DecisionState], Counter]:
        """Prune, evaluate or expand one node without holding the driver lock."""
        counts: Counter = Counter()
        if self.observer is not None:
            self.observer(node)

        if not self._can_improve(node.bound):
            counts['nodes_pruned'] += 1
            counts['nodes_pruned_at_extraction'] += 1
            return [], counts

        counts['nodes_explored'] += 1

        if self.problem.is_terminal(node):
            counts['terminals_evaluated'] += 1
            value = self.problem.objective_of(node)
            if not is_finite_value(value):
                counts['nodes_rejected'] += 1
            elif self.incumbent.try_improve(value, node):
                counts['incumbent_updates'] += 1
                logger.debug(f"New incumbent {value}")
            return [], counts

        survivors = []
        for child in self.problem.branch(node):
            counts['nodes_generated'] += 1
            bounded = evaluate_child(self.problem, child)
            if bounded is None:
                counts['nodes_rejected'] += 1
            elif self.config.prune_on_creation and not self._can_improve(bounded.bound):
                counts['nodes_pruned'] += 1
            else:
                survivors.append(bounded)

        return survivors, counts

    def _finish(self, children: List[DecisionState], counts: Counter, depth: int):
        """Publish a processed node's children and counters."""
        with self._condition:
            self.frontier.push_many(children)

            stats = self.statistics
            for name, amount in counts.items():
                setattr(stats, name, getattr(stats, name) + amount)
            if counts['nodes_explored']:
                stats.max_depth = max(stats.max_depth, depth)

            self._in_flight -= 1
            self._condition.notify_all()

            if counts and stats.nodes_processed % self.config.log_interval == 0:
                self._log_progress()


def solve_parallel(problem: ProblemInstance,
                   configuration: Optional[SearchConfiguration] = None,
                   num_workers: int = 4,
                   observer: Optional[NodeObserver] = None) -> SearchResult:
    """Run the multi-threaded best-first search on ``problem``."""
    return ParallelSearchDriver(problem, configuration, num_workers=num_workers,
                                observer=observer).run()
