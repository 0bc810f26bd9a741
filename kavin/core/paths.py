from __future__ import annotations

import logging
import os
import stat
from typing import Iterable, List, Tuple

log = logging.getLogger(__name__)


def classify_paths(paths: Iterable[str]) -> Tuple[List[str], List[str]]:
    """Split watch arguments into regular files and directories.

    Missing paths are reported and dropped. Paths that exist but are neither
    a regular file nor a directory are ignored.
    """
    files: List[str] = []
    directories: List[str] = []
    for path in paths:
        try:
            st = os.stat(path)
        except OSError:
            log.warning("Path not found and will be ignored: %s", path)
            continue
        if stat.S_ISDIR(st.st_mode):
            directories.append(path)
        elif stat.S_ISREG(st.st_mode):
            files.append(path)
    return files, directories
