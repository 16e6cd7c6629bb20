"""
SftpPatchAccessor — accessor for a physical console reachable over SFTP.

Paths are POSIX paths on the console; relative ones are resolved against
``base_path`` (the console's hard-drive root by default).  Use
``SftpPatchAccessor.connect()`` to open a session; the constructor takes an
already-open ``paramiko.SFTPClient`` so callers can supply their own.
"""

from __future__ import annotations

import posixpath
import stat
from typing import IO

import paramiko

from refresher.accessors.base import PatchAccessor
from refresher.core.logging import get_logger
from refresher.pipeline.errors import AccessorError

logger = get_logger(__name__)


class SftpPatchAccessor(PatchAccessor):
    """Storage capability set backed by a paramiko SFTP session."""

    def __init__(
        self,
        sftp: paramiko.SFTPClient,
        base_path: str = "/",
        ssh_client: paramiko.SSHClient | None = None,
    ) -> None:
        self._sftp = sftp
        self._ssh_client = ssh_client
        self.base_path = base_path
        self._closed = False

    @classmethod
    def connect(
        cls,
        host: str,
        *,
        port: int = 22,
        username: str = "root",
        password: str = "",
        base_path: str = "/",
        timeout: float = 10.0,
    ) -> SftpPatchAccessor:
        """Open an SSH connection to ``host`` and start an SFTP session on it."""
        client = paramiko.SSHClient()
        client.set_missing_host_key_policy(paramiko.AutoAddPolicy())

        try:
            client.connect(
                hostname=host,
                port=port,
                username=username,
                password=password,
                timeout=timeout,
                allow_agent=False,
                look_for_keys=False,
            )
            sftp = client.open_sftp()
        except (paramiko.SSHException, OSError) as exc:
            client.close()
            raise AccessorError(
                f"Could not open an SFTP session to {host}:{port}: {exc}",
                details={"host": host, "port": port},
            ) from exc

        logger.info("SFTP session opened", host=host, port=port, base_path=base_path)
        return cls(sftp, base_path=base_path, ssh_client=client)

    def _get_path(self, path: str) -> str:
        if posixpath.isabs(path):
            return path
        return posixpath.join(self.base_path, path)

    def _stat(self, path: str) -> paramiko.SFTPAttributes | None:
        try:
            return self._sftp.stat(self._get_path(path))
        except FileNotFoundError:
            return None

    def _list(self, path: str, predicate) -> list[str]:
        resolved = self._get_path(path)
        return [
            posixpath.join(resolved, attr.filename)
            for attr in self._sftp.listdir_attr(resolved)
            if attr.st_mode is not None and predicate(attr.st_mode)
        ]

    # ─── Capability set ────────────────────────────────

    def directory_exists(self, path: str) -> bool:
        attrs = self._stat(path)
        return attrs is not None and attrs.st_mode is not None and stat.S_ISDIR(attrs.st_mode)

    def file_exists(self, path: str) -> bool:
        attrs = self._stat(path)
        return attrs is not None and attrs.st_mode is not None and stat.S_ISREG(attrs.st_mode)

    def create_directory_if_not_exists(self, path: str) -> None:
        resolved = self._get_path(path).rstrip("/")
        current = "/" if resolved.startswith("/") else ""

        for part in resolved.split("/"):
            if not part:
                continue
            current = posixpath.join(current, part)
            if not self.directory_exists(current):
                self._sftp.mkdir(current)

    def remove_file(self, path: str) -> None:
        self._sftp.remove(self._get_path(path))

    def get_directories_in_directory(self, path: str) -> list[str]:
        return self._list(path, stat.S_ISDIR)

    def get_files_in_directory(self, path: str) -> list[str]:
        return self._list(path, stat.S_ISREG)

    def open_read(self, path: str) -> IO[bytes]:
        return self._sftp.open(self._get_path(path), "rb")

    def open_write(self, path: str) -> IO[bytes]:
        return self._sftp.open(self._get_path(path), "wb")

    def upload_file(self, local_path: str, path: str) -> None:
        self._sftp.put(local_path, self._get_path(path))

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True

        try:
            self._sftp.close()
        finally:
            if self._ssh_client is not None:
                self._ssh_client.close()
        logger.info("SFTP session closed", base_path=self.base_path)
