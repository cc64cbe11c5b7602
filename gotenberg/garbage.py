"""Removal of expired temporary files and directories."""

from __future__ import annotations

import logging
import os
import shutil
import stat
from datetime import datetime
from typing import Iterable


def _remove(path: str, info: os.stat_result) -> None:
    try:
        if stat.S_ISDIR(info.st_mode):
            shutil.rmtree(path)
        else:
            os.remove(path)
    except FileNotFoundError:
        pass


def garbage_collect(
    logger: logging.Logger,
    root_path: str,
    include_substr: Iterable[str],
    expiration_time: datetime | float,
) -> None:
    """Remove the entries directly under ``root_path`` that have expired.

    An entry is removed when its name contains one of ``include_substr`` or its
    path equals one of them, and it was modified before ``expiration_time``.
    Only the top level of ``root_path`` is scanned.
    """
    logger = logger.getChild("gc")
    expiration = (
        expiration_time.timestamp() if isinstance(expiration_time, datetime) else float(expiration_time)
    )
    substrings = list(include_substr)

    root_info = os.lstat(root_path)
    if not stat.S_ISDIR(root_info.st_mode):
        return

    for name in sorted(os.listdir(root_path)):
        path = os.path.normpath(os.path.join(root_path, name))
        info = os.lstat(path)
        if info.st_mtime >= expiration:
            continue
        if any(sub in name or path == sub for sub in substrings):
            try:
                _remove(path, info)
            except OSError as exc:
                raise OSError(f"garbage collect '{path}': {exc}") from exc
            logger.debug("'%s' removed", path)