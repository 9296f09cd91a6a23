#!/usr/bin/env python3
"""
bb_search_strategies.py - Best-First Branch & Bound Search Driver
=================================================================
Search configuration, statistics and result types, and the single-threaded
driver loop: pop the best open node, prune it against the incumbent, record
terminal solutions, otherwise branch and push the surviving children.
"""

import logging
import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from bb_bounding_functions import (
    Comparison, ObjectiveValue, can_beat, is_finite_value, relative_gap
)
from bb_incumbent import IncumbentTracker
from bb_problem import ProblemInstance
from bb_search_limits import (
    FrontierLimit, GapLimit, MemoryLimit, NodeLimit, SearchClock, SearchProgress,
    SolutionLimit, StopCondition, TimeLimit, first_triggered
)
from bb_search_tree import DecisionState, Frontier

logger = logging.getLogger(__name__)

NodeObserver = Callable[[DecisionState], None]


class SearchState(Enum):
    """Lifecycle of a search driver."""
    INITIALIZED = "initialized"
    RUNNING = "running"
    EXHAUSTED = "exhausted"
    STOPPED_BY_LIMIT = "stopped_by_limit"


class TerminationStatus(Enum):
    """How a finished search ended."""
    EXHAUSTED = "exhausted"                 # frontier empty: incumbent is proven optimal
    STOPPED_BY_LIMIT = "stopped_by_limit"   # budget hit: incumbent is best effort


class SearchStateError(RuntimeError):
    """Raised when a driver is used outside its lifecycle."""
    pass


@dataclass
class SearchConfiguration:
    """Budgets and switches for one search run. ``None`` disables a limit."""
    max_nodes: Optional[int] = None
    time_limit: Optional[float] = None          # seconds
    max_frontier_size: Optional[int] = None
    memory_limit_mb: Optional[float] = None
    gap_tolerance: Optional[float] = None       # relative gap, e.g. 0.01
    max_solutions: Optional[int] = None

    prune_on_creation: bool = True
    seed_incumbent: bool = False
    log_interval: int = 1000                    # extracted nodes between progress lines

    def __post_init__(self):
        for name in ('max_nodes', 'max_frontier_size', 'max_solutions'):
            value = getattr(self, name)
            if value is not None and value < 1:
                raise ValueError(f"{name} must be positive, got {value}")
        for name in ('time_limit', 'memory_limit_mb', 'gap_tolerance'):
            value = getattr(self, name)
            if value is not None and (value < 0 or math.isnan(value)):
                raise ValueError(f"{name} must be non-negative, got {value}")
        if self.log_interval < 1:
            raise ValueError(f"log_interval must be positive, got {self.log_interval}")

    @classmethod
    def from_config(cls, overrides: Optional[Dict[str, Any]] = None) -> 'SearchConfiguration':
        """Build from ``Config.SEARCH`` with optional keyword overrides."""
        from config import Config

        values = dict(Config.SEARCH)
        if overrides:
            values.update({k: v for k, v in overrides.items() if v is not None})
        known = cls.__dataclass_fields__.keys()
        return cls(**{k: v for k, v in values.items() if k in known})

    def build_stop_conditions(self) -> List[StopCondition]:
        """Stop conditions for the limits that are set."""
        conditions: List[StopCondition] = []
        if self.max_nodes is not None:
            conditions.append(NodeLimit(self.max_nodes))
        if self.time_limit is not None:
            conditions.append(TimeLimit(self.time_limit))
        if self.max_frontier_size is not None:
            conditions.append(FrontierLimit(self.max_frontier_size))
        if self.memory_limit_mb is not None:
            conditions.append(MemoryLimit(self.memory_limit_mb))
        if self.gap_tolerance is not None:
            conditions.append(GapLimit(self.gap_tolerance))
        if self.max_solutions is not None:
            conditions.append(SolutionLimit(self.max_solutions))
        return conditions


@dataclass
class SearchStatistics:
    """Counters collected during search."""
    nodes_explored: int = 0         # extracted and expanded or evaluated
    nodes_pruned: int = 0           # discarded by the bound test (extraction or creation)
    nodes_generated: int = 0        # children returned by branch
    nodes_pruned_at_extraction: int = 0
    nodes_rejected: int = 0         # non-finite bound or objective
    terminals_evaluated: int = 0
    incumbent_updates: int = 0
    max_frontier_size: int = 0
    max_depth: int = 0
    time_elapsed: float = 0.0
    final_gap: float = float('inf')

    @property
    def nodes_processed(self) -> int:
        """Nodes taken off the frontier."""
        return self.nodes_explored + self.nodes_pruned_at_extraction

    @property
    def pruning_efficiency(self) -> float:
        total = self.nodes_explored + self.nodes_pruned
        if total == 0:
            return 0.0
        return self.nodes_pruned / total

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data['nodes_processed'] = self.nodes_processed
        data['pruning_efficiency'] = self.pruning_efficiency
        return data


@dataclass
class SearchResult:
    """Outcome of a search; ``best_value is None`` means no solution was found."""
    best_solution: Optional[DecisionState]
    best_value: Optional[ObjectiveValue]
    nodes_explored: int
    nodes_pruned: int
    terminated: TerminationStatus
    stop_reason: Optional[str] = None
    statistics: SearchStatistics = field(default_factory=SearchStatistics)
    incumbent_history: List[ObjectiveValue] = field(default_factory=list)

    @property
    def has_solution(self) -> bool:
        return self.best_solution is not None

    @property
    def is_proven_optimal(self) -> bool:
        return self.has_solution and self.terminated is TerminationStatus.EXHAUSTED

    @property
    def is_infeasible(self) -> bool:
        """Exhausted without ever finding a terminal solution."""
        return not self.has_solution and self.terminated is TerminationStatus.EXHAUSTED


def evaluate_child(problem: ProblemInstance, child: DecisionState) -> Optional[DecisionState]:
    """
    Attach the child's bound, computed exactly once.
    Returns None when the bound is NaN or infinite; such a child never enters
    the frontier.
    """
    bound = problem.bound(child)
    if not is_finite_value(bound):
        logger.debug(f"Rejecting node at depth {child.depth}: bound {bound!r}")
        return None
    return child.with_bound(bound)


class SearchDriver:
    """
    Single-threaded best-first Branch & Bound.

    The driver owns the frontier and the incumbent; the problem supplies bound
    and branching. Call ``run()`` once.
    """

    def __init__(self, problem: ProblemInstance,
                 configuration: Optional[SearchConfiguration] = None,
                 observer: Optional[NodeObserver] = None,
                 stop_conditions: Optional[List[StopCondition]] = None,
                 clock: Optional[SearchClock] = None):
        self.problem = problem
        self.config = configuration or SearchConfiguration()
        self.observer = observer
        self.stop_conditions = (stop_conditions if stop_conditions is not None
                                else self.config.build_stop_conditions())
        self.clock = clock or SearchClock()

        self.statistics = SearchStatistics()
        self.frontier = self._create_frontier()
        self.incumbent = self._create_incumbent()
        self.stop_reason: Optional[str] = None

        self._initialize()
        self.state = SearchState.INITIALIZED

    def _create_frontier(self) -> Frontier:
        return Frontier(self.problem.sense)

    def _create_incumbent(self) -> IncumbentTracker:
        return IncumbentTracker(
            self.problem.compare,
            self.problem.tie_break if self.problem.has_tie_break else None
        )

    def _initialize(self):
        """Bound and push the root, optionally seed the incumbent."""
        root = evaluate_child(self.problem, self.problem.initial_state())
        if root is None:
            self.statistics.nodes_rejected += 1
            logger.info("Root has no feasible completion; frontier starts empty")
        else:
            self.frontier.push(root)

        if self.config.seed_incumbent:
            seed = self.problem.heuristic_solution()
            if seed is not None and self.incumbent.try_improve(self.problem.objective_of(seed), seed):
                self.statistics.incumbent_updates += 1
                logger.info(f"Incumbent seeded by heuristic: {self.incumbent.current_value()}")

    # ------------------------------------------------------------------
    # Pruning
    # ------------------------------------------------------------------

    def _can_improve(self, bound: ObjectiveValue) -> bool:
        incumbent_value = self.incumbent.current_value()
        if incumbent_value is None:
            return True
        return can_beat(self.problem.compare(bound, incumbent_value), self.problem.has_tie_break)

    def _check_limits(self) -> Optional[str]:
        """
        Reason of the first stop condition that fires, or None.

        Limits are not consulted while the best open node cannot beat the
        incumbent: the rest of the frontier is then pruned on extraction and
        the run ends as exhausted with a proven optimum.
        """
        best_bound = self.frontier.peek_bound()
        if best_bound is not None and not self._can_improve(best_bound):
            return None
        return first_triggered(self.stop_conditions, self._progress())

    # ------------------------------------------------------------------
    # Main loop
    # ------------------------------------------------------------------

    def run(self) -> SearchResult:
        """Search until the frontier empties or a stop condition fires."""
        if self.state is not SearchState.INITIALIZED:
            raise SearchStateError(f"Cannot run a search in state {self.state.value}")

        self.state = SearchState.RUNNING
        self.clock.start()
        logger.info(
            f"Starting {type(self.problem).__name__} search "
            f"({self.problem.sense.value}, size {self.problem.problem_size})"
        )

        while self.state is SearchState.RUNNING:
            self.step()

        return self._build_result()

    def step(self):
        """Run one iteration of the driver loop."""
        if self.frontier.is_empty():
            self.state = SearchState.EXHAUSTED
            return

        reason = self._check_limits()
        if reason:
            self.stop_reason = reason
            self.state = SearchState.STOPPED_BY_LIMIT
            logger.info(f"Search stopped: {reason}")
            return

        node = self.frontier.pop_best()
        self._process(node)

        if self.statistics.nodes_processed % self.config.log_interval == 0:
            self._log_progress()

    def _process(self, node: DecisionState):
        stats = self.statistics
        if self.observer is not None:
            self.observer(node)

        # Prune check
        if not self._can_improve(node.bound):
            stats.nodes_pruned += 1
            stats.nodes_pruned_at_extraction += 1
            return

        stats.nodes_explored += 1
        stats.max_depth = max(stats.max_depth, node.depth)

        # Terminal check
        if self.problem.is_terminal(node):
            stats.terminals_evaluated += 1
            value = self.problem.objective_of(node)
            if not is_finite_value(value):
                stats.nodes_rejected += 1
                logger.debug(f"Rejecting terminal with objective {value!r}")
                return
            if self.incumbent.try_improve(value, node):
                stats.incumbent_updates += 1
                logger.debug(f"New incumbent {value} after {stats.nodes_processed} nodes")
            return

        self._expand(node)

    def _expand(self, node: DecisionState):
        stats = self.statistics
        for child in self.problem.branch(node):
            stats.nodes_generated += 1
            bounded = evaluate_child(self.problem, child)
            if bounded is None:
                stats.nodes_rejected += 1
                continue
            if self.config.prune_on_creation and not self._can_improve(bounded.bound):
                stats.nodes_pruned += 1
                continue
            self.frontier.push(bounded)

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _progress(self) -> SearchProgress:
        incumbent_value = self.incumbent.current_value()
        best_bound = self.frontier.peek_bound()
        tie_open = (
            self.problem.has_tie_break
            and incumbent_value is not None
            and best_bound is not None
            and self.problem.compare(best_bound, incumbent_value) is Comparison.TIE
        )
        return SearchProgress(
            nodes_processed=self.statistics.nodes_processed,
            nodes_explored=self.statistics.nodes_explored,
            solutions_found=self.statistics.terminals_evaluated,
            frontier_size=len(self.frontier),
            elapsed_time=self.clock.elapsed(),
            incumbent_value=incumbent_value,
            best_open_bound=best_bound,
            gap=relative_gap(incumbent_value, best_bound, self.problem.sense),
            tie_open=tie_open,
        )

    def _log_progress(self):
        progress = self._progress()
        incumbent = progress.incumbent_value if progress.incumbent_value is not None else '-'
        logger.info(
            f"{progress.nodes_processed:>8d} nodes | open {progress.frontier_size:>7d} | "
            f"incumbent {incumbent} | best bound {progress.best_open_bound} | "
            f"gap {progress.gap:.2%} | {progress.elapsed_time:.2f}s"
        )

    def _build_result(self) -> SearchResult:
        stats = self.statistics
        stats.time_elapsed = self.clock.elapsed()
        stats.max_frontier_size = self.frontier.max_size

        value, solution = self.incumbent.snapshot()
        if self.state is SearchState.EXHAUSTED:
            terminated = TerminationStatus.EXHAUSTED
            stats.final_gap = 0.0 if value is not None else float('inf')
        else:
            terminated = TerminationStatus.STOPPED_BY_LIMIT
            stats.final_gap = relative_gap(value, self.frontier.peek_bound(), self.problem.sense)

        if value is None:
            logger.info(f"Search {terminated.value}: no solution ({stats.nodes_explored} nodes explored)")
        else:
            logger.info(
                f"Search {terminated.value}: best value {value} "
                f"({stats.nodes_explored} explored, {stats.nodes_pruned} pruned, "
                f"{stats.time_elapsed:.3f}s)"
            )

        return SearchResult(
            best_solution=solution,
            best_value=value,
            nodes_explored=stats.nodes_explored,
            nodes_pruned=stats.nodes_pruned,
            terminated=terminated,
            stop_reason=self.stop_reason,
            statistics=stats,
            incumbent_history=list(self.incumbent.history),
        )


def solve(problem: ProblemInstance,
          configuration: Optional[SearchConfiguration] = None,
          observer: Optional[NodeObserver] = None) -> SearchResult:
    """Run a single-threaded best-first search on ``problem``."""
    return SearchDriver(problem, configuration, observer=observer).run()
