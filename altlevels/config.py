"""Bot configuration utilities."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass


def env(name: str, default: str | None = None) -> str:
    value = os.getenv(name, default)
    if value is None:
        raise RuntimeError(f"Missing required environment variable: {name}")
    return value


@dataclass(slots=True)
class BotConfig:
    token: str
    max_raise_batch: int = 100
    legacy_raise_batch: int = 10
    log_level: str = "INFO"

    @property
    def logging_level(self) -> int:
        level = logging.getLevelName(self.log_level.upper())
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def from_env(cls) -> "BotConfig":
        token = env("DISCORD_TOKEN")
        max_raise_batch = int(os.getenv("ALTLEVELS_MAX_RAISE_BATCH", "100"))
        legacy_raise_batch = int(os.getenv("ALTLEVELS_LEGACY_RAISE_BATCH", "10"))
        log_level = os.getenv("ALTLEVELS_LOG_LEVEL", "INFO")
        max_raise_batch = max(1, max_raise_batch)
        legacy_raise_batch = max(1, min(legacy_raise_batch, max_raise_batch))

        return cls(
            token=token,
            max_raise_batch=max_raise_batch,
            legacy_raise_batch=legacy_raise_batch,
            log_level=log_level,
        )


__all__ = ["BotConfig", "env"]
