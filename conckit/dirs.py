"""Directory preparation and level-based logging helpers."""

from __future__ import annotations

import logging
import os

_log = logging.getLogger(__name__)


def check_dir_path(dir_path: str) -> str:
    """Return the absolute form of *dir_path*, creating the directory if missing.

    Raises ValueError for an empty path and NotADirectoryError when the path
    names something that is not a directory.
    """
    if not dir_path:
        raise ValueError(f"invalid dir path: {dir_path}")
    abs_dir_path = dir_path if os.path.isabs(dir_path) else os.path.abspath(dir_path)
    if os.path.exists(abs_dir_path):
        if not os.path.isdir(abs_dir_path):
            raise NotADirectoryError(f"not directory: {abs_dir_path}")
    else:
        os.makedirs(abs_dir_path, mode=0o700, exist_ok=True)
    return abs_dir_path


def record(level: int, content: str) -> None:
    """Log *content*: level 0 and 2 as info, level 1 as a warning."""
    if not content:
        return
    if level in (0, 2):
        _log.info(content)
    elif level == 1:
        _log.warning(content)