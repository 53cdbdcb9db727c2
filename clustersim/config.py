import os
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

DEFAULT_NUM_WORKERS = 20
DEFAULT_TIME_SLICE = 0.1
DEFAULT_TIMEOUT_CEILING = 10.0
DEFAULT_MIN_LOAD = 1.0
DEFAULT_MAX_LOAD = 15.0


class ConfigurationError(ValueError):
    """Fatal startup problem: bad input file, bad parameter, unknown site."""


def _env_value(name: str, cast, default):
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name}={raw!r} is not a valid {cast.__name__}") from None


def get_num_workers() -> int:
    """
    Return the worker pool size from CLUSTERSIM_WORKERS (default 20).

    Raises:
        ConfigurationError: if the value is not a positive integer.
    """
    workers = _env_value("CLUSTERSIM_WORKERS", int, DEFAULT_NUM_WORKERS)
    if workers <= 0:
        raise ConfigurationError(f"CLUSTERSIM_WORKERS must be positive, got {workers}")
    return workers


def get_seed() -> Optional[int]:
    """Return the run seed from CLUSTERSIM_SEED, or None when unset."""
    return _env_value("CLUSTERSIM_SEED", int, None)


def get_time_slice() -> float:
    return _env_value("CLUSTERSIM_TIME_SLICE", float, DEFAULT_TIME_SLICE)


def get_timeout_ceiling() -> float:
    return _env_value("CLUSTERSIM_TIMEOUT_CEILING", float, DEFAULT_TIMEOUT_CEILING)
