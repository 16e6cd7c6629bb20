"""
EmulatorPatchAccessor — accessor rooted at a directory on the local machine.

Used for emulator installs, where the console's hard drive is a plain
folder.  Relative paths are joined onto the root; absolute paths are used
as given.
"""

from __future__ import annotations

import os
import shutil
from typing import IO

from refresher.accessors.base import PatchAccessor


class EmulatorPatchAccessor(PatchAccessor):
    """Map every capability straight onto the local filesystem."""

    def __init__(self, base_path: str) -> None:
        self.base_path = base_path

    def _get_path(self, path: str) -> str:
        if os.path.isabs(path):
            return path
        return os.path.join(self.base_path, path)

    def directory_exists(self, path: str) -> bool:
        return os.path.isdir(self._get_path(path))

    def file_exists(self, path: str) -> bool:
        return os.path.isfile(self._get_path(path))

    def create_directory_if_not_exists(self, path: str) -> None:
        os.makedirs(self._get_path(path), exist_ok=True)

    def remove_file(self, path: str) -> None:
        os.remove(self._get_path(path))

    def get_directories_in_directory(self, path: str) -> list[str]:
        with os.scandir(self._get_path(path)) as entries:
            return [entry.path for entry in entries if entry.is_dir()]

    def get_files_in_directory(self, path: str) -> list[str]:
        with os.scandir(self._get_path(path)) as entries:
            return [entry.path for entry in entries if entry.is_file()]

    def open_read(self, path: str) -> IO[bytes]:
        return open(self._get_path(path), "rb")

    def open_write(self, path: str) -> IO[bytes]:
        return open(self._get_path(path), "wb")

    def upload_file(self, local_path: str, path: str) -> None:
        shutil.copyfile(local_path, self._get_path(path))

    def __repr__(self) -> str:
        return f"EmulatorPatchAccessor(base_path={self.base_path!r})"
