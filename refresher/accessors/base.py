"""
PatchAccessor — storage capability set every backend implements.

Steps never touch the filesystem or a network connection directly; they go
through the accessor held on the pipeline's RunContext.  Relative paths are
resolved against the backend's root; absolute paths pass through unchanged.

Every variant must honour the same semantics:
    - open_write truncates or creates the file
    - create_directory_if_not_exists creates missing parents
    - close() releases the backend and is a no-op when called twice
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, Awaitable, Callable

from refresher.core.logging import get_logger
from refresher.pipeline.cancellation import OperationCancelledError


class PatchAccessor(ABC):
    """Base class for local and remote storage backends."""

    @abstractmethod
    def directory_exists(self, path: str) -> bool: ...

    @abstractmethod
    def file_exists(self, path: str) -> bool: ...

    @abstractmethod
    def create_directory_if_not_exists(self, path: str) -> None: ...

    @abstractmethod
    def remove_file(self, path: str) -> None: ...

    @abstractmethod
    def get_directories_in_directory(self, path: str) -> list[str]:
        """Return the full paths of the immediate subdirectories of ``path``."""
        ...

    @abstractmethod
    def get_files_in_directory(self, path: str) -> list[str]:
        """Return the full paths of the regular files directly inside ``path``."""
        ...

    @abstractmethod
    def open_read(self, path: str) -> IO[bytes]: ...

    @abstractmethod
    def open_write(self, path: str) -> IO[bytes]: ...

    @abstractmethod
    def upload_file(self, local_path: str, path: str) -> None:
        """Copy a file from the local machine to ``path`` on this backend."""
        ...

    def close(self) -> None:
        """Release backend resources.  Default: nothing to release."""
        pass

    def __enter__(self) -> PatchAccessor:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ─── Guarded execution ─────────────────────────────

    @staticmethod
    async def try_async(
        action: Callable[[], Awaitable[None]],
        logger=None,
    ) -> bool:
        """
        Run a best-effort storage action.

        Failures are logged and swallowed (returns False); cancellation
        always propagates.  Use only where the step's outcome does not
        depend on the action succeeding.
        """
        log = logger or get_logger(__name__)
        try:
            await action()
        except OperationCancelledError:
            raise
        except Exception as exc:
            log.error(
                "Accessor operation failed, continuing",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False
        return True
