#!/usr/bin/env python3
"""
Branch & Bound Solver
=====================
Main entry point: solve a demo or random problem instance with the
best-first Branch & Bound engine and print or save a report.
"""

import argparse
import logging
import sys
import time
from typing import Any, Dict, List, Optional

import yaml

from bb_parallel import solve_parallel
from bb_problem import ProblemInstance
from bb_search_strategies import SearchConfiguration, SearchResult, solve
from brute_force import brute_force_optimum
from config import Config
from demo_instances import PROBLEM_TYPES, build_instance
from utils import save_json, setup_logging, timer

# Setup logging
logger = logging.getLogger(__name__)


class BranchBoundSolverSystem:
    """Builds instances, runs the search and assembles reports."""

    def __init__(self, config_path: Optional[str] = None,
                 settings: Optional[List[str]] = None):
        """
        Initialize the solver system.

        Args:
            config_path: JSON or YAML file merged into Config
            settings: KEY=VALUE overrides in dot notation, applied after the file
        """
        self.config = Config()
        if config_path:
            self.config.from_file(config_path)

        for setting in settings or []:
            key, separator, raw_value = setting.partition('=')
            if not separator:
                raise ValueError(f"Expected KEY=VALUE, got {setting!r}")
            # YAML parsing turns "500" into 500 and "null" into None
            self.config.set(key.strip(), yaml.safe_load(raw_value))
            logger.debug(f"Config {key.strip()} = {self.config.get(key.strip())!r}")

        logger.info("Branch & Bound solver initialized")

    @timer
    def solve_instance(self, problem: ProblemInstance,
                       overrides: Optional[Dict[str, Any]] = None,
                       workers: Optional[int] = None) -> SearchResult:
        """
        Solve a problem instance.

        Args:
            problem: Instance to solve
            overrides: SearchConfiguration fields overriding Config.SEARCH
            workers: Worker threads; parallel search when more than one

        Returns:
            SearchResult of the run
        """
        configuration = SearchConfiguration.from_config(overrides)

        if workers is None and self.config.PARALLEL['enabled']:
            workers = self.config.PARALLEL['num_workers']

        if workers and workers > 1:
            return solve_parallel(problem, configuration, num_workers=workers)
        return solve(problem, configuration)

    def build_report(self, problem_type: str, problem: ProblemInstance,
                     result: SearchResult, verify: bool = False) -> Dict[str, Any]:
        """JSON-friendly summary of a run."""
        report = {
            'problem': problem_type,
            'sense': problem.sense.value,
            'problem_size': problem.problem_size,
            'terminated': result.terminated.value,
            'stop_reason': result.stop_reason,
            'proven_optimal': result.is_proven_optimal,
            'best_value': result.best_value,
            'solution': problem.describe_solution(result.best_solution) if result.has_solution else None,
            'statistics': result.statistics.to_dict(),
            'incumbent_history': list(result.incumbent_history),
        }

        if verify:
            start = time.perf_counter()
            optimum = brute_force_optimum(problem)
            report['brute_force'] = {
                'best_value': optimum[0] if optimum else None,
                'agrees': (optimum[0] if optimum else None) == result.best_value,
                'time': time.perf_counter() - start,
            }

        return report


def print_report(report: Dict[str, Any]):
    """Print a report in human-readable form."""
    stats = report['statistics']

    print("\n" + "=" * 60)
    print("BRANCH & BOUND RESULTS")
    print("=" * 60)
    print(f"Problem: {report['problem']} ({report['sense']}, size {report['problem_size']})")
    print(f"Termination: {report['terminated']}"
          + (f" ({report['stop_reason']})" if report['stop_reason'] else ""))

    if report['best_value'] is None:
        print("No feasible solution found")
    else:
        label = "Optimal value" if report['proven_optimal'] else "Best value found"
        print(f"{label}: {report['best_value']}")
        for key, value in report['solution'].items():
            if key == 'board':
                print("Board:")
                for row in value:
                    print(f"  {row}")
            else:
                print(f"  {key}: {value}")

    print()
    print(f"Nodes explored: {stats['nodes_explored']}")
    print(f"Nodes pruned: {stats['nodes_pruned']}")
    print(f"Nodes generated: {stats['nodes_generated']}")
    print(f"Max frontier size: {stats['max_frontier_size']}")
    print(f"Pruning efficiency: {stats['pruning_efficiency'] * 100:.1f}%")
    if stats['final_gap'] != float('inf'):
        print(f"Final gap: {stats['final_gap'] * 100:.2f}%")
    print(f"Search time: {stats['time_elapsed']:.3f}s")

    if 'brute_force' in report:
        check = report['brute_force']
        mark = '✓' if check['agrees'] else '✗'
        print(f"\nBrute force: {check['best_value']} {mark} ({check['time']:.3f}s)")

    print("=" * 60)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Best-First Branch & Bound Solver",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s knapsack                          # Solve the classic 3-item knapsack
  %(prog)s assignment --case 2               # Second demo assignment matrix
  %(prog)s tsp --random --size 9 --seed 7    # Random 9-city tour
  %(prog)s facility --workers 4              # Parallel search with 4 threads
  %(prog)s nqueens --max-nodes 500           # Stop after 500 nodes
  %(prog)s knapsack --json report.json       # Save the report as JSON
        """
    )

    parser.add_argument(
        "problem",
        choices=PROBLEM_TYPES,
        help="Problem type to solve"
    )

    parser.add_argument(
        "--case",
        type=int,
        default=1,
        help="Demo case number (default: 1)"
    )

    parser.add_argument(
        "--random",
        action="store_true",
        help="Solve a seeded random instance instead of a demo case"
    )

    parser.add_argument(
        "--size",
        type=int,
        help="Size of the random instance (default from config)"
    )

    parser.add_argument(
        "--seed",
        type=int,
        help="Random seed (default from config)"
    )

    parser.add_argument("--max-nodes", type=int, help="Stop after this many extracted nodes")
    parser.add_argument("--time-limit", type=float, help="Stop after this many seconds")
    parser.add_argument("--max-frontier", type=int, help="Stop when more nodes are open")
    parser.add_argument("--memory-limit", type=float, help="Stop above this RSS in MB")
    parser.add_argument("--gap", type=float, help="Stop within this relative gap, e.g. 0.01")

    parser.add_argument(
        "--seed-incumbent",
        action="store_true",
        help="Seed the incumbent with the problem's greedy heuristic"
    )

    parser.add_argument(
        "--workers",
        type=int,
        help="Number of worker threads (parallel search when > 1)"
    )

    parser.add_argument(
        "--verify",
        action="store_true",
        help="Compare with exhaustive enumeration (small instances only)"
    )

    parser.add_argument(
        "--json",
        help="Save the report to this JSON file"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--config",
        help="Path to configuration file (JSON or YAML)"
    )

    parser.add_argument(
        "--set",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a configuration value, e.g. SEARCH.log_interval=500 (repeatable)"
    )

    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    # Setup logging
    if args.verbose:
        setup_logging("DEBUG")
    else:
        setup_logging(Config.get('LOGGING.level', 'INFO'))

    try:
        system = BranchBoundSolverSystem(args.config, args.set)

        problem = build_instance(
            args.problem,
            source='random' if args.random else 'demo',
            case=args.case,
            size=args.size,
            seed=args.seed,
        )

        overrides = {
            'max_nodes': args.max_nodes,
            'time_limit': args.time_limit,
            'max_frontier_size': args.max_frontier,
            'memory_limit_mb': args.memory_limit,
            'gap_tolerance': args.gap,
        }
        if args.seed_incumbent:
            overrides['seed_incumbent'] = True

        result = system.solve_instance(problem, overrides, workers=args.workers)
        report = system.build_report(args.problem, problem, result, verify=args.verify)

        print_report(report)

        if args.json:
            save_json(report, args.json)
            print(f"\nReport saved to: {args.json}")

    except Exception as e:
        logger.error(f"Error: {e}", exc_info=args.verbose)
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
