from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ExitStatus:
    exited: bool
    code: int | None = None


STILL_RUNNING = ExitStatus(False)


def get_mtime(path: str) -> int:
    """Modification time in nanoseconds, or 0 when the path cannot be read."""
    try:
        return os.stat(path).st_mtime_ns
    except OSError:
        return 0


def short_text(text: str, max_len: int = 120) -> str:
    t = " ".join(text.split())
    if len(t) <= max_len:
        return t
    return t[: max_len - 3].rstrip() + "..."
