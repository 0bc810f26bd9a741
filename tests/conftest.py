from __future__ import annotations

import os

import pytest

from kavin.core.util import ExitStatus

# Fixed timestamps far from "now" so explicit touches never collide with
# the mtime a file got when it was created.
T1 = 1_000_000_000_000_000_000
T2 = 1_100_000_000_000_000_000


def touch(path, ns: int) -> None:
    if not os.path.exists(path):
        with open(path, "w", encoding="utf-8") as f:
            f.write("x")
    os.utime(path, ns=(ns, ns))


class FakeProcess:
    def __init__(self, pid: int) -> None:
        self.pid = pid
        self.returncode = None


class FakeController:
    def __init__(self, exit_on_term: bool = True, exit_on_kill: bool = True) -> None:
        self.exit_on_term = exit_on_term
        self.exit_on_kill = exit_on_kill
        self.fail = False
        self.started: list[FakeProcess] = []
        self.signals: list[tuple[str, int]] = []
        self.waited: list[int] = []

    def start(self, command: str):
        if self.fail:
            return None
        process = FakeProcess(1000 + len(self.started))
        self.started.append(process)
        return process

    def request_graceful_stop(self, process) -> None:
        self.signals.append(("term", process.pid))
        if self.exit_on_term:
            process.returncode = -15

    def force_stop(self, process) -> None:
        self.signals.append(("kill", process.pid))
        if self.exit_on_kill:
            process.returncode = -9

    def poll_exit(self, process) -> ExitStatus:
        if process.returncode is None:
            return ExitStatus(False)
        return ExitStatus(True, process.returncode)

    def wait(self, process) -> int:
        self.waited.append(process.pid)
        if process.returncode is None:
            process.returncode = -15
        return process.returncode


class FakeClock:
    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def controller() -> FakeController:
    return FakeController()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
