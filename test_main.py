#!/usr/bin/env python3
"""
Command-line smoke tests.
"""

import json

import pytest

from demo_instances import build_instance
from main import main
from utils import ValidationError, load_json


@pytest.fixture(autouse=True)
def quiet_logging(restore_config):
    restore_config.LOGGING['console_output'] = False
    yield


def test_knapsack_demo_report(capsys):
    assert main(['knapsack']) == 0
    output = capsys.readouterr().out

    assert "BRANCH & BOUND RESULTS" in output
    assert "Optimal value: 220" in output
    assert "selected_items: [1, 2]" in output


def test_json_report_and_verification(tmp_path, capsys):
    report_path = tmp_path / "report.json"
    assert main(['assignment', '--verify', '--json', str(report_path)]) == 0

    report = load_json(report_path)
    assert report['best_value'] == 13
    assert report['terminated'] == 'exhausted'
    assert report['brute_force']['agrees'] is True
    assert report['statistics']['nodes_explored'] > 0


def test_random_instance_with_workers(capsys):
    assert main(['tsp', '--random', '--size', '6', '--seed', '3', '--workers', '2']) == 0
    assert "Optimal value" in capsys.readouterr().out


def test_limit_reports_best_effort(capsys):
    assert main(['knapsack', '--max-nodes', '2', '--seed-incumbent']) == 0
    output = capsys.readouterr().out

    assert "stopped_by_limit" in output
    assert "Best value found" in output


def test_infeasible_board(capsys):
    assert main(['nqueens', '--random', '--size', '3']) == 0
    assert "No feasible solution found" in capsys.readouterr().out


def test_config_file_is_applied(tmp_path, capsys):
    config_path = tmp_path / "settings.json"
    config_path.write_text(json.dumps({'SEARCH': {'max_nodes': 1}}))

    assert main(['tsp', '--config', str(config_path)]) == 0
    assert "node limit 1 reached" in capsys.readouterr().out


def test_unknown_demo_case_fails(capsys):
    assert main(['tsp', '--case', '9']) == 1


def test_build_instance_rejects_unknown_names():
    with pytest.raises(ValidationError):
        build_instance('sudoku')
    with pytest.raises(ValidationError):
        build_instance('tsp', source='file')


def test_set_overrides_config_values(capsys):
    assert main(['tsp', '--set', 'SEARCH.max_nodes=1', '--set', 'SEARCH.seed_incumbent=false']) == 0
    assert "node limit 1 reached" in capsys.readouterr().out


def test_set_without_value_fails(capsys):
    assert main(['tsp', '--set', 'SEARCH.max_nodes']) == 1
    assert main(['tsp', '--set', 'NOPE.value=1']) == 1
