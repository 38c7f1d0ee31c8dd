"""Runtime settings resolved from environment variables."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ValueError(f"{name} must be an integer, got {raw_value!r}") from exc


@dataclass(frozen=True)
class Settings:
    app_name: str
    app_version: str
    log_level: str
    venues_path: Path
    solver_max_time_seconds: int
    solver_random_seed: int
    solver_workers: int


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Build settings once per process; tests derive variants via `replace`."""
    return Settings(
        app_name="Venue Planner",
        app_version="1.0.0",
        log_level=os.getenv("VENUE_PLANNER_LOG_LEVEL", "INFO"),
        venues_path=Path(os.getenv("VENUE_PLANNER_VENUES_PATH", "venues.txt")),
        solver_max_time_seconds=_env_int("VENUE_PLANNER_SOLVER_MAX_TIME_SECONDS", 10),
        solver_random_seed=_env_int("VENUE_PLANNER_SOLVER_RANDOM_SEED", 42),
        solver_workers=_env_int("VENUE_PLANNER_SOLVER_WORKERS", 1),
    )
