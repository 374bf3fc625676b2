from __future__ import annotations

import math
import os
from dataclasses import dataclass
from functools import lru_cache


_INPUT_PATH_ENV = "UTILISATION_INPUT_PATH"
_OUTPUT_PATH_ENV = "UTILISATION_OUTPUT_PATH"
_TRIGGER_LEVEL_ENV = "UTILISATION_TRIGGER_LEVEL"
_MAX_READINGS_ENV = "UTILISATION_MAX_READINGS"
_MAX_ISSUES_ENV = "UTILISATION_MAX_ISSUES"
_ERROR_POLICY_ENV = "UTILISATION_ERROR_POLICY"
_DUMP_READINGS_ENV = "UTILISATION_DUMP_READINGS"
_LOG_LEVEL_ENV = "LOG_LEVEL"

DEFAULT_TRIGGER_LEVEL = 10.0
DEFAULT_MAX_READINGS = 255
DEFAULT_MAX_ISSUES = 100

_ERROR_POLICIES = {"abort", "skip"}
_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class Settings:
    input_path: str
    output_path: str
    trigger_level: float
    max_readings: int
    max_issues: int
    error_policy: str
    dump_readings: bool
    log_level: str


def _read_str_env(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    return candidate or default


def _read_trigger_level(default: float) -> float:
    value = os.getenv(_TRIGGER_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = float(candidate)
    except ValueError:
        return default
    # nan fails every comparison and inf pins the result to 0 or 100
    return parsed if math.isfinite(parsed) else default


def _read_positive_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    try:
        parsed = int(candidate)
    except ValueError:
        return default
    return parsed if parsed > 0 else default


def _read_error_policy(default: str) -> str:
    candidate = _read_str_env(_ERROR_POLICY_ENV, default).lower()
    return candidate if candidate in _ERROR_POLICIES else default


def _read_bool_env(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    candidate = value.strip().lower()
    if candidate in _TRUTHY:
        return True
    if candidate in _FALSY:
        return False
    return default


def _read_log_level(default: str) -> str:
    value = os.getenv(_LOG_LEVEL_ENV)
    if value is None:
        return default
    candidate = value.strip()
    if not candidate:
        return default
    return candidate.upper()


@lru_cache
def get_settings() -> Settings:
    return Settings(
        input_path=_read_str_env(_INPUT_PATH_ENV, "data.txt"),
        output_path=_read_str_env(_OUTPUT_PATH_ENV, "results.txt"),
        trigger_level=_read_trigger_level(DEFAULT_TRIGGER_LEVEL),
        max_readings=_read_positive_int(_MAX_READINGS_ENV, DEFAULT_MAX_READINGS),
        max_issues=_read_positive_int(_MAX_ISSUES_ENV, DEFAULT_MAX_ISSUES),
        error_policy=_read_error_policy("abort"),
        dump_readings=_read_bool_env(_DUMP_READINGS_ENV, False),
        log_level=_read_log_level("INFO"),
    )
