"""Unique working directories inside the system's temporary directory."""

from __future__ import annotations

import os
import tempfile
import uuid
from typing import Callable


def _os_mkdir_all(path: str, mode: int) -> None:
    os.makedirs(path, mode, exist_ok=True)


class FileSystem:
    """Creates uniquely named directories under a unique working directory.

    ``mkdir_all`` is called as ``mkdir_all(path, mode)`` and defaults to a
    recursive directory creation that accepts existing directories.
    """

    def __init__(self, mkdir_all: Callable[[str, int], None] | None = None) -> None:
        self._working_dir = str(uuid.uuid4())
        self._mkdir_all = mkdir_all if mkdir_all is not None else _os_mkdir_all

    def working_dir(self) -> str:
        """Return the unique name of the working directory."""
        return self._working_dir

    def working_dir_path(self) -> str:
        """Return the full path of the working directory."""
        return f"{tempfile.gettempdir()}/{self._working_dir}"

    def new_dir_path(self) -> str:
        """Return a new unique directory path inside the working directory."""
        return f"{self.working_dir_path()}/{uuid.uuid4()}"

    def mkdir_all(self) -> str:
        """Create a new unique directory inside the working directory and return its path."""
        path = self.new_dir_path()
        try:
            self._mkdir_all(path, 0o755)
        except OSError as exc:
            raise OSError(f"create directory {path}: {exc}") from exc
        return path