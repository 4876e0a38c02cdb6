import logging
import os
from dataclasses import dataclass

LOG_LEVEL_ENV = "PAYMENTS_LOG_LEVEL"
REPORT_STATS_ENV = "PAYMENTS_REPORT_STATS"


@dataclass(frozen=True)
class EngineConfig:
    log_level: int = logging.WARNING
    report_stats: bool = True


def load_config() -> EngineConfig:
    return EngineConfig(
        log_level=_get_log_level(LOG_LEVEL_ENV, logging.WARNING),
        report_stats=_get_bool(REPORT_STATS_ENV, True),
    )


def _get_log_level(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    level = logging.getLevelName(value.strip().upper())
    if isinstance(level, int):
        return level
    return default


def _get_bool(key: str, default: bool) -> bool:
    value = os.getenv(key)
    if value is None or value == "":
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return default
