"""
Change detection by polling modification times.

Watched files are kept as an ordered mapping of path to the last seen
modification time. A value of 0 means the file has not been observed yet
(or was missing the last time it was read) and never triggers a restart on
its own.
"""

from __future__ import annotations

import logging
import os
import stat
from typing import Dict, Iterable, List

from watchdog.utils.dirsnapshot import DirectorySnapshot

from .util import get_mtime

log = logging.getLogger(__name__)


class ChangeDetector:
    def __init__(self, files: Iterable[str] = (), directories: Iterable[str] = ()) -> None:
        self.files: Dict[str, int] = {path: 0 for path in files}
        self.directories: List[str] = list(directories)

    def seed(self) -> None:
        """Record the current modification time of every watched file."""
        for path in self.files:
            self.files[path] = get_mtime(path)

    def add_file(self, path: str) -> bool:
        if path in self.files:
            return False
        self.files[path] = get_mtime(path)
        log.info("Now watching new file: %s", path)
        return True

    def _list_regular_files(self, directory: str) -> List[str]:
        try:
            snapshot = DirectorySnapshot(directory, recursive=False, stat=os.lstat)
        except OSError as exc:
            log.debug("Cannot list %s: %s", directory, exc)
            return []
        found = []
        for path in snapshot.paths:
            if path == directory:
                continue
            if stat.S_ISREG(snapshot.stat_info(path).st_mode):
                found.append(path)
        return sorted(found)

    def rescan_directories(self) -> List[str]:
        """Adopt regular files that appeared in watched directories.

        Returns the newly adopted paths. Subdirectories are not descended.
        """
        added = []
        for directory in self.directories:
            for path in self._list_regular_files(directory):
                if self.add_file(path):
                    added.append(path)
        return added

    def detect_changes(self) -> bool:
        """Return True when a watched file was modified or deleted.

        Stops at the first changed file and re-baselines every watched file,
        so several changes within one poll window count as a single change.
        """
        self.rescan_directories()
        for path, last in self.files.items():
            current = get_mtime(path)
            if last == 0:
                if current:
                    self.files[path] = current
                continue
            if current == 0:
                log.info("File deleted: %s", path)
                self.seed()
                return True
            if current != last:
                log.info("Change detected in %s", path)
                self.seed()
                return True
        return False
