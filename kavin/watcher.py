"""
Watcher Layer - Supervision of a single command.

Runs a fixed-interval polling loop that restarts the command whenever a
watched file changes. Each tick dispatches to the handler of the current
state:

    RESTARTING -> RUNNING -> SHUTTING_DOWN -> (FORCE_KILLING) -> RESTARTING

A child that exits on its own goes from RUNNING straight to RESTARTING.
"""

from __future__ import annotations

import enum
import logging
import subprocess
import threading
import time
from typing import Callable, Dict, List, Optional, Sequence

from .core.config import WatcherConfig
from .core.detector import ChangeDetector
from .core.paths import classify_paths
from .core.process import ProcessController, default_controller
from .core.util import short_text

log = logging.getLogger(__name__)


class State(enum.Enum):
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    FORCE_KILLING = "force_killing"
    RESTARTING = "restarting"


class Watcher:
    """Owns the supervised command, the watched paths and the state machine."""

    def __init__(
        self,
        command: str,
        paths: Sequence[str],
        controller: Optional[ProcessController] = None,
        config: Optional[WatcherConfig] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        files, directories = classify_paths(paths)
        self.command = command
        self.detector = ChangeDetector(files, directories)
        self.controller = controller if controller is not None else default_controller()
        self.config = config if config is not None else WatcherConfig()
        self.process: Optional[subprocess.Popen] = None
        self.state = State.RESTARTING
        self.shutdown_started = 0.0
        self.restart_count = 0
        self._clock = clock
        self._sleep = sleep
        self._handlers: Dict[State, Callable[[], None]] = {
            State.RUNNING: self.handle_running,
            State.SHUTTING_DOWN: self.handle_shutting_down,
            State.FORCE_KILLING: self.handle_force_killing,
            State.RESTARTING: self.handle_restarting,
        }

    @property
    def watched_files(self) -> Dict[str, int]:
        return self.detector.files

    @property
    def watched_directories(self) -> List[str]:
        return self.detector.directories

    @property
    def pid(self) -> int:
        return self.process.pid if self.process is not None else 0

    def _transition(self, state: State) -> None:
        if state is not self.state:
            log.info("%s -> %s (pid %d)", self.state.name, state.name, self.pid)
        self.state = state

    def _has_exited(self) -> bool:
        return self.process is not None and self.controller.poll_exit(self.process).exited

    def spawn(self) -> None:
        log.info("Starting application: %s", short_text(self.command))
        self.process = self.controller.start(self.command)
        if self.process is not None:
            log.info("Started [PID: %d]", self.process.pid)
        else:
            log.error("Failed to start process")

    def initiate_shutdown(self) -> None:
        if self.process is None:
            return
        log.info("Stopping process (PID: %d)", self.process.pid)
        self.controller.request_graceful_stop(self.process)
        self.shutdown_started = self._clock()

    def handle_running(self) -> None:
        if self.process is not None:
            status = self.controller.poll_exit(self.process)
            if status.exited:
                log.info("Process died unexpectedly (PID: %d, exit code %s)", self.process.pid, status.code)
                self._transition(State.RESTARTING)
                return

        if self.detector.detect_changes():
            self.initiate_shutdown()
            self._transition(State.SHUTTING_DOWN)

    def handle_shutting_down(self) -> None:
        if self.process is None or self._has_exited():
            self._transition(State.RESTARTING)
            return
        if self._clock() - self.shutdown_started >= self.config.shutdown_timeout:
            log.info("Process did not respond to SIGTERM, sending SIGKILL (PID: %d)", self.process.pid)
            self.controller.force_stop(self.process)
            self._transition(State.FORCE_KILLING)

    def handle_force_killing(self) -> None:
        if self.process is None or self._has_exited():
            self._transition(State.RESTARTING)

    def handle_restarting(self) -> None:
        if self.process is not None:
            self.controller.wait(self.process)
            self.process = None
        self.spawn()
        if self.process is not None:
            self.restart_count += 1
        self._transition(State.RUNNING)

    def tick(self) -> None:
        self._handlers[self.state]()

    def _announce(self) -> None:
        for path in self.watched_files:
            log.info("Watching: %s", path)
        for path in self.watched_directories:
            log.info("Watching directory: %s", path)
        log.info("Command: %s", self.command)

    def shutdown(self) -> None:
        """Stop the supervised child, if any, and wait for it to exit."""
        if self.process is None:
            return
        log.info("Shutting down process (PID: %d)...", self.process.pid)
        self.controller.request_graceful_stop(self.process)
        self.controller.wait(self.process)
        self.process = None

    def run(self, stop: threading.Event) -> int:
        """Supervise until ``stop`` is set. Returns the restart count."""
        self.detector.seed()
        self._announce()

        while not stop.is_set():
            self.tick()
            if not stop.is_set():
                self._sleep(self.config.poll_interval)

        self.shutdown()
        return self.restart_count
