"""
Process control for the supervised command.

The child runs through the platform shell in its own process group so that
termination requests reach the shell and everything it started.
"""

from __future__ import annotations

import logging
import os
import signal
import subprocess
from typing import Optional, Protocol

from .util import STILL_RUNNING, ExitStatus

log = logging.getLogger(__name__)


class ProcessController(Protocol):
    def start(self, command: str) -> Optional[subprocess.Popen]:
        ...

    def request_graceful_stop(self, process: subprocess.Popen) -> None:
        ...

    def force_stop(self, process: subprocess.Popen) -> None:
        ...

    def poll_exit(self, process: subprocess.Popen) -> ExitStatus:
        ...

    def wait(self, process: subprocess.Popen) -> int:
        ...


class _BaseController:
    def poll_exit(self, process: subprocess.Popen) -> ExitStatus:
        code = process.poll()
        if code is None:
            return STILL_RUNNING
        return ExitStatus(True, code)

    def wait(self, process: subprocess.Popen) -> int:
        return process.wait()


class PosixProcessController(_BaseController):
    shell = "/bin/sh"

    def start(self, command: str) -> Optional[subprocess.Popen]:
        try:
            return subprocess.Popen([self.shell, "-c", command], start_new_session=True)
        except OSError as exc:
            log.error("Spawn failed: %s", exc)
            return None

    def _signal_group(self, process: subprocess.Popen, sig: int) -> None:
        if process.pid <= 0:
            return
        try:
            # start_new_session makes the child its own group leader
            os.killpg(process.pid, sig)
        except ProcessLookupError:
            log.debug("Process group %d already gone", process.pid)
        except PermissionError as exc:
            log.warning("Cannot signal process group %d: %s", process.pid, exc)

    def request_graceful_stop(self, process: subprocess.Popen) -> None:
        self._signal_group(process, signal.SIGTERM)

    def force_stop(self, process: subprocess.Popen) -> None:
        self._signal_group(process, signal.SIGKILL)


class WindowsProcessController(_BaseController):
    def start(self, command: str) -> Optional[subprocess.Popen]:
        try:
            return subprocess.Popen(
                command,
                shell=True,
                creationflags=getattr(subprocess, "CREATE_NEW_PROCESS_GROUP", 0),
            )
        except OSError as exc:
            log.error("Spawn failed: %s", exc)
            return None

    def request_graceful_stop(self, process: subprocess.Popen) -> None:
        if process.pid <= 0 or process.poll() is not None:
            return
        try:
            process.send_signal(signal.CTRL_BREAK_EVENT)
        except OSError as exc:
            log.warning("Cannot send CTRL_BREAK to %d: %s", process.pid, exc)

    def force_stop(self, process: subprocess.Popen) -> None:
        if process.pid <= 0:
            return
        # /T = tree, /F = force
        subprocess.run(
            ["taskkill", "/PID", str(process.pid), "/T", "/F"],
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            check=False,
        )


if os.name == "nt":
    PlatformController = WindowsProcessController
else:
    PlatformController = PosixProcessController


def default_controller() -> ProcessController:
    return PlatformController()
