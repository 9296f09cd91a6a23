"""
config.py - System Configuration Settings
==========================================
Central configuration for the Branch & Bound solver: search budgets,
parallel workers, demo instance generation and logging.
"""

from pathlib import Path
from typing import Dict, Any


class Config:
    """System-wide configuration settings."""

    # ============================================================================
    # PATH CONFIGURATION
    # ============================================================================

    BASE_DIR = Path(__file__).parent

    # ============================================================================
    # SEARCH CONFIGURATION
    # ============================================================================

    # Keys mirror SearchConfiguration; None disables a limit
    SEARCH = {
        'max_nodes': None,
        'time_limit': None,  # seconds
        'max_frontier_size': None,
        'memory_limit_mb': None,
        'gap_tolerance': None,  # relative, e.g. 0.01 for 1%
        'max_solutions': None,
        'prune_on_creation': True,
        'seed_incumbent': False,
        'log_interval': 1000  # extracted nodes between progress lines
    }

    # ============================================================================
    # PARALLEL SEARCH CONFIGURATION
    # ============================================================================

    PARALLEL = {
        'enabled': False,
        'num_workers': 4,
        'idle_wait': 0.05  # seconds a worker waits for new open nodes
    }

    # ============================================================================
    # DEMO / RANDOM INSTANCE CONFIGURATION
    # ============================================================================

    DEMO = {
        'random_seed': 42,
        'knapsack': {
            'num_items': 12,
            'min_weight': 1,
            'max_weight': 10,
            'min_value': 5,
            'max_value': 49,
            'base_capacity': 20
        },
        'assignment': {
            'size': 6,
            'min_cost': 1,
            'max_cost': 30
        },
        'tsp': {
            'num_cities': 8,
            'max_distance': 100
        },
        'facility_location': {
            'num_facilities': 6,
            'num_customers': 10,
            'grid_size': 10.0,
            'min_fixed_cost': 20.0,
            'max_fixed_cost': 80.0
        },
        'nqueens': {
            'board_size': 8,
            'modes': ['conflicts', 'center', 'symmetry'],  # random instances draw one
            'allow_conflicts': False  # False: only non-attacking placements
        }
    }

    # ============================================================================
    # LOGGING CONFIGURATION
    # ============================================================================

    LOGGING = {
        'level': 'INFO',
        'format': '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        'date_format': '%Y-%m-%d %H:%M:%S',
        'file': None,
        'max_bytes': 10 * 1024 * 1024,  # 10 MB
        'backup_count': 5,
        'console_output': True
    }

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-notation key."""
        keys = key.split('.')
        value = cls

        for k in keys:
            if hasattr(value, k):
                value = getattr(value, k)
            elif isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    @classmethod
    def set(cls, key: str, value: Any):
        """Set configuration value by dot-notation key."""
        keys = key.split('.')
        target = cls

        for k in keys[:-1]:
            if hasattr(target, k):
                target = getattr(target, k)
            elif isinstance(target, dict) and k in target:
                target = target[k]
            else:
                raise KeyError(f"Configuration key not found: {key}")

        final_key = keys[-1]
        if isinstance(target, dict):
            target[final_key] = value
        elif hasattr(target, final_key):
            setattr(target, final_key, value)
        else:
            raise KeyError(f"Cannot set configuration key: {key}")

    @classmethod
    def to_dict(cls) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        result = {}

        for attr in dir(cls):
            if not attr.startswith('_') and attr.isupper():
                value = getattr(cls, attr)
                if not callable(value):
                    result[attr] = value

        return result

    @classmethod
    def from_file(cls, filepath: str):
        """Load configuration from JSON or YAML file; sections are merged key by key."""
        import json

        with open(filepath, 'r') as f:
            if filepath.endswith('.json'):
                config_data = json.load(f)
            elif filepath.endswith(('.yml', '.yaml')):
                import yaml
                config_data = yaml.safe_load(f) or {}
            else:
                raise ValueError(f"Unsupported config file format: {filepath}")

        for key, value in config_data.items():
            if not hasattr(cls, key):
                continue
            current = getattr(cls, key)
            if isinstance(current, dict) and isinstance(value, dict):
                current.update(value)
            else:
                setattr(cls, key, value)

    @classmethod
    def save_to_file(cls, filepath: str):
        """Save configuration to JSON or YAML file."""
        import json

        config_data = cls.to_dict()

        with open(filepath, 'w') as f:
            if filepath.endswith('.json'):
                json.dump(config_data, f, indent=2, default=str)
            elif filepath.endswith(('.yml', '.yaml')):
                import yaml
                yaml.safe_dump(
                    {k: v for k, v in config_data.items() if not isinstance(v, Path)},
                    f, default_flow_style=False
                )
            else:
                raise ValueError(f"Unsupported config file format: {filepath}")

