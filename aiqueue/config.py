from __future__ import annotations

import logging
import os
from dataclasses import dataclass

log = logging.getLogger(__name__)

AI_GEN_COOLDOWN_S = 15.0
DEFAULT_POLL_INTERVAL_S = 1.0
DEFAULT_BACKOFF_UNIT_S = 1.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_MODEL = "gpt-5-mini"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    if value < 0:
        log.warning("Ignoring negative %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        log.warning("Ignoring invalid %s=%r, using %s", name, raw, default)
        return default
    return max(0, value)


@dataclass(slots=True)
class QueueSettings:
    cooldown: float = AI_GEN_COOLDOWN_S
    poll_interval: float = DEFAULT_POLL_INTERVAL_S
    backoff_unit: float = DEFAULT_BACKOFF_UNIT_S
    max_retries: int = DEFAULT_MAX_RETRIES

    @classmethod
    def from_env(cls) -> "QueueSettings":
        return cls(
            cooldown=_env_float("AI_GEN_COOLDOWN", AI_GEN_COOLDOWN_S),
            poll_interval=_env_float("AI_QUEUE_POLL_INTERVAL", DEFAULT_POLL_INTERVAL_S),
            backoff_unit=_env_float("AI_QUEUE_BACKOFF_UNIT", DEFAULT_BACKOFF_UNIT_S),
            max_retries=_env_int("AI_QUEUE_MAX_RETRIES", DEFAULT_MAX_RETRIES),
        )

    def backoff_delay(self, retry_count: int) -> float:
        return (2**retry_count) * self.backoff_unit


def model_from_env() -> str:
    return os.getenv("AI_MODEL") or DEFAULT_MODEL
