"""
utils.py - Utility Functions and Helpers
=========================================
Common utility functions used throughout the system.
"""

import json
import logging
import time
from functools import wraps
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple, Union

import numpy as np


logger = logging.getLogger(__name__)


# ============================================================================
# FILE OPERATIONS
# ============================================================================

def ensure_directory(path: Union[str, Path]) -> Path:
    """Ensure directory exists, create if necessary."""
    path = Path(path)
    path.mkdir(parents=True, exist_ok=True)
    return path


def save_json(data: Dict, filepath: Union[str, Path], indent: int = 2):
    """Save data to JSON file."""
    filepath = Path(filepath)
    ensure_directory(filepath.parent)

    with open(filepath, 'w') as f:
        json.dump(data, f, indent=indent, default=_json_default)

    logger.debug(f"Saved JSON to {filepath}")


def load_json(filepath: Union[str, Path]) -> Dict:
    """Load data from JSON file."""
    filepath = Path(filepath)

    if not filepath.exists():
        raise FileNotFoundError(f"File not found: {filepath}")

    with open(filepath, 'r') as f:
        return json.load(f)


def _json_default(value: Any) -> Any:
    """Serialize numpy scalars/arrays and enums found in reports."""
    if isinstance(value, np.generic):
        return value.item()
    if isinstance(value, np.ndarray):
        return value.tolist()
    if hasattr(value, 'value'):
        return value.value
    return str(value)


# ============================================================================
# GEOMETRY UTILITIES
# ============================================================================

def distance_matrix(sources: Sequence[Tuple[float, float]],
                    targets: Sequence[Tuple[float, float]]) -> np.ndarray:
    """Pairwise Euclidean distances, shape (len(sources), len(targets))."""
    src = np.asarray(sources, dtype=float).reshape(-1, 2)
    dst = np.asarray(targets, dtype=float).reshape(-1, 2)
    diff = src[:, None, :] - dst[None, :, :]
    return np.hypot(diff[..., 0], diff[..., 1])


# ============================================================================
# PERFORMANCE UTILITIES
# ============================================================================

def timer(func):
    """Decorator to time function execution."""
    @wraps(func)
    def wrapper(*args, **kwargs):
        start = time.perf_counter()
        result = func(*args, **kwargs)
        end = time.perf_counter()
        logger.debug(f"{func.__name__} took {end - start:.2f} seconds")
        return result
    return wrapper


# ============================================================================
# LOGGING UTILITIES
# ============================================================================

def setup_logging(log_level: str = "INFO", log_file: Optional[str] = None):
    """Setup logging configuration."""
    from config import Config

    log_config = Config.LOGGING

    # Set log level
    level = getattr(logging, log_level.upper(), logging.INFO)

    # Create formatter
    formatter = logging.Formatter(
        log_config['format'],
        datefmt=log_config['date_format']
    )

    # Setup handlers
    handlers = []

    # Console handler
    if log_config.get('console_output', True):
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    # File handler
    if log_file or log_config.get('file'):
        file_path = log_file or log_config['file']
        ensure_directory(Path(file_path).parent)

        from logging.handlers import RotatingFileHandler
        file_handler = RotatingFileHandler(
            file_path,
            maxBytes=log_config.get('max_bytes', 10*1024*1024),
            backupCount=log_config.get('backup_count', 5)
        )
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    # Configure root logger
    logging.basicConfig(
        level=level,
        handlers=handlers,
        force=True
    )

    logger.info(f"Logging configured: level={log_level}")


# ============================================================================
# VALIDATION AND ERROR HANDLING
# ============================================================================

class ValidationError(Exception):
    """Custom exception for validation errors."""
    pass


def as_matrix(data, name: str, square: bool = False,
              non_negative: bool = True) -> np.ndarray:
    """Convert ``data`` to a finite 2-D float array or raise ValidationError."""
    try:
        matrix = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} is not numeric: {exc}") from exc

    if matrix.ndim != 2:
        raise ValidationError(f"{name} must be 2-dimensional, got shape {matrix.shape}")
    if square and matrix.shape[0] != matrix.shape[1]:
        raise ValidationError(f"{name} must be square, got shape {matrix.shape}")
    if not np.all(np.isfinite(matrix)):
        raise ValidationError(f"{name} contains NaN or infinite entries")
    if non_negative and np.any(matrix < 0):
        raise ValidationError(f"{name} contains negative entries")

    return matrix


def as_vector(data, name: str, non_negative: bool = True) -> np.ndarray:
    """Convert ``data`` to a finite 1-D float array or raise ValidationError."""
    try:
        vector = np.asarray(data, dtype=float)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} is not numeric: {exc}") from exc

    if vector.ndim != 1:
        raise ValidationError(f"{name} must be 1-dimensional, got shape {vector.shape}")
    if not np.all(np.isfinite(vector)):
        raise ValidationError(f"{name} contains NaN or infinite entries")
    if non_negative and np.any(vector < 0):
        raise ValidationError(f"{name} contains negative entries")

    return vector

