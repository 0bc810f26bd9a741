from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace
from typing import Mapping, Optional

DEFAULT_POLL_INTERVAL = 0.1
DEFAULT_SHUTDOWN_TIMEOUT = 2.0

ENV_POLL_INTERVAL = "KAVIN_POLL_INTERVAL"
ENV_SHUTDOWN_TIMEOUT = "KAVIN_SHUTDOWN_TIMEOUT"


@dataclass(frozen=True)
class WatcherConfig:
    poll_interval: float = DEFAULT_POLL_INTERVAL
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT


def _positive_float(name: str, raw: str) -> float:
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise ValueError(f"{name} must be a finite number, got {raw!r}")
    if value <= 0:
        raise ValueError(f"{name} must be greater than zero, got {raw!r}")
    return value


def load_config(
    poll_interval: Optional[float] = None,
    shutdown_timeout: Optional[float] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> WatcherConfig:
    """Build the config from defaults, environment overrides and explicit values.

    Explicit arguments win over the environment.

    Raises:
        ValueError: If a value is not a positive number
    """
    env = os.environ if environ is None else environ
    config = WatcherConfig()

    raw = env.get(ENV_POLL_INTERVAL)
    if raw:
        config = replace(config, poll_interval=_positive_float(ENV_POLL_INTERVAL, raw))
    raw = env.get(ENV_SHUTDOWN_TIMEOUT)
    if raw:
        config = replace(config, shutdown_timeout=_positive_float(ENV_SHUTDOWN_TIMEOUT, raw))

    if poll_interval is not None:
        config = replace(config, poll_interval=_positive_float("--interval", str(poll_interval)))
    if shutdown_timeout is not None:
        config = replace(config, shutdown_timeout=_positive_float("--timeout", str(shutdown_timeout)))
    return config
