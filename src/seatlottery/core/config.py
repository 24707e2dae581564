"""Runtime settings for the seat lottery.

Limits and storage options are read from ``SEATLOTTERY_*`` environment
variables so deployments and tests can adjust them without code changes.
Malformed values fall back to the built-in defaults.

Usage::

    from seatlottery.core.config import LotterySettings

    settings = LotterySettings.from_env()

Recognised variables: ``SEATLOTTERY_MAX_GRID_DIMENSION``,
``SEATLOTTERY_MAX_GENERATED_STUDENTS``, ``SEATLOTTERY_PROBE_SLACK``,
``SEATLOTTERY_HISTORY_LIMIT``, ``SEATLOTTERY_NUMBER_SUFFIX``,
``SEATLOTTERY_STORAGE_DIR``, ``SEATLOTTERY_LOG_LEVEL``, ``SEATLOTTERY_HOST``
and ``SEATLOTTERY_PORT``.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path
from typing import Final

__all__ = ["DEFAULT_SETTINGS", "LotterySettings"]

_ENV_PREFIX: Final = "SEATLOTTERY_"

logger = logging.getLogger(__name__)


def _env_int(environ: Mapping[str, str], name: str, default: int, *, minimum: int = 1) -> int:
    raw = environ.get(_ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError:
        logger.warning("Ignoring malformed %s%s=%r", _ENV_PREFIX, name, raw)
        return default
    if value < minimum:
        logger.warning("Ignoring out-of-range %s%s=%r", _ENV_PREFIX, name, raw)
        return default
    return value


def _env_str(environ: Mapping[str, str], name: str, default: str) -> str:
    raw = environ.get(_ENV_PREFIX + name)
    if raw is None or not raw.strip():
        return default
    return raw.strip()


@dataclass(frozen=True)
class LotterySettings:
    """Limits shared by the roster, grid, repository and web adapter."""

    max_grid_dimension: int = 20
    max_generated_students: int = 100
    probe_slack: int = 50
    history_limit: int = 10
    number_suffix: str = "번"
    storage_dir: Path | None = None
    log_level: str = "INFO"
    host: str = "127.0.0.1"
    port: int = 8000

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> LotterySettings:
        env = os.environ if environ is None else environ
        storage_raw = _env_str(env, "STORAGE_DIR", "")
        return cls(
            max_grid_dimension=_env_int(env, "MAX_GRID_DIMENSION", cls.max_grid_dimension),
            max_generated_students=_env_int(env, "MAX_GENERATED_STUDENTS", cls.max_generated_students),
            probe_slack=_env_int(env, "PROBE_SLACK", cls.probe_slack, minimum=0),
            history_limit=_env_int(env, "HISTORY_LIMIT", cls.history_limit),
            number_suffix=_env_str(env, "NUMBER_SUFFIX", cls.number_suffix),
            storage_dir=Path(storage_raw).expanduser() if storage_raw else None,
            log_level=_env_str(env, "LOG_LEVEL", cls.log_level).upper(),
            host=_env_str(env, "HOST", cls.host),
            port=_env_int(env, "PORT", cls.port),
        )


DEFAULT_SETTINGS = LotterySettings()
