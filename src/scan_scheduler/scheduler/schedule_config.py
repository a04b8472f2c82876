"""YAML overrides for job schedules.

Example::

    jobs:
      scheduled_scan_launcher:
        interval_minutes: 60
      daily_scan_cycle_launcher:
        daily_at: "${DAILY_SCAN_AT}"
      monitor_active_scan_cycles:
        enabled: false

``${VAR}`` and ``$VAR`` references are substituted from the environment.
"""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from scan_scheduler.scheduler.triggers import DailyTrigger, IntervalTrigger, Trigger

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})
_MAX_ENV_VAR_DEPTH = 20


@dataclass(frozen=True)
class JobSchedule:
    enabled: bool = True
    trigger: Trigger | None = None


def _substitute_env_vars(value: str) -> str:
    def replace(match: re.Match[str]) -> str:
        var_name = match.group(1) or match.group(2)
        return os.environ.get(var_name, match.group(0))

    pattern = r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}|\$([A-Za-z_][A-Za-z0-9_]*)"
    return re.sub(pattern, replace, value)


def _process_env_vars(obj: Any, _depth: int = 0) -> Any:
    if _depth > _MAX_ENV_VAR_DEPTH:
        return obj
    if isinstance(obj, str):
        return _substitute_env_vars(obj)
    elif isinstance(obj, dict):
        return {k: _process_env_vars(v, _depth + 1) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_process_env_vars(item, _depth + 1) for item in obj]
    return obj


def _parse_bool(value: Any, field_name: str) -> bool:
    if isinstance(value, bool):
        return value
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    raise ValueError(f"{field_name} must be a boolean, got {value!r}")


def _parse_job_schedule(name: str, data: Any) -> JobSchedule:
    if data is None:
        return JobSchedule()
    if not isinstance(data, dict):
        raise ValueError(f"jobs.{name} must be a mapping")

    unknown = set(data) - {"enabled", "interval_minutes", "daily_at"}
    if unknown:
        raise ValueError(f"jobs.{name} has unknown keys: {', '.join(sorted(unknown))}")
    if "interval_minutes" in data and "daily_at" in data:
        raise ValueError(f"jobs.{name} must set only one of interval_minutes, daily_at")

    enabled = _parse_bool(data.get("enabled", True), f"jobs.{name}.enabled")

    trigger: Trigger | None = None
    if "interval_minutes" in data:
        try:
            minutes = float(data["interval_minutes"])
        except (TypeError, ValueError) as exc:
            raise ValueError(f"jobs.{name}.interval_minutes must be a number") from exc
        trigger = IntervalTrigger(seconds=minutes * 60)
    elif "daily_at" in data:
        trigger = DailyTrigger.parse(str(data["daily_at"]))

    return JobSchedule(enabled=enabled, trigger=trigger)


def load_schedule_config(config_path: str | Path) -> dict[str, JobSchedule]:
    """Load per-job schedule overrides from YAML."""
    path = Path(config_path)
    if not path.exists():
        raise FileNotFoundError(f"Schedule config file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        raw_data = yaml.safe_load(f) or {}

    data = _process_env_vars(raw_data)
    if not isinstance(data, dict):
        raise ValueError("Schedule config must be a mapping")

    jobs = data.get("jobs") or {}
    if not isinstance(jobs, dict):
        raise ValueError("jobs must be a mapping of job name to schedule")

    return {str(name): _parse_job_schedule(str(name), data) for name, data in jobs.items()}
