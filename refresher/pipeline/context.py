"""
RunContext — mutable state shared by every step of a pipeline run.

This is the only channel between steps: an upstream step writes a field,
a downstream step reads it.  Step ordering is therefore part of the
contract: a step must never be placed before the step that produces the
state it depends on.

Field ownership:

    accessor            produced by Setup*AccessorStep, read by all storage steps
    patcher             produced by patch-preparation steps, read by patch steps
    game_information    produced by ValidateGameStep, read by downstream steps
    encryption_details  produced by license/decrypt steps, read by encrypt steps
    auto_discover       produced by Pipeline.invoke_auto_discover_async
    game_list           produced by DownloadGameListStep

The context is owned by its Pipeline and never outlives it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from refresher.accessors.base import PatchAccessor
    from refresher.discovery.client import AutoDiscoverResponse


# ═══════════════════════════════════════════════════════════
#  Per-title metadata
# ═══════════════════════════════════════════════════════════

@dataclass
class GameInformation:
    """Metadata for one installed title."""

    title_id: str
    name: str | None = None
    version: str | None = None
    content_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "title_id": self.title_id,
            "name": self.name,
            "version": self.version,
            "content_id": self.content_id,
        }


@dataclass
class EncryptionDetails:
    """Everything the encrypt step needs to re-sign a decrypted binary."""

    content_id: str | None = None
    license_path: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)


# ═══════════════════════════════════════════════════════════
#  RunContext
# ═══════════════════════════════════════════════════════════

@dataclass
class RunContext:
    """Run-scoped objects passed by reference to every step."""

    accessor: PatchAccessor | None = None
    patcher: Any | None = None
    game_information: GameInformation | None = None
    encryption_details: EncryptionDetails | None = None

    # ─── Survive reset ────────────────────────────────
    auto_discover: AutoDiscoverResponse | None = None
    game_list: list[GameInformation] | None = None

    def release(self) -> None:
        """
        Close the accessor and drop every run-scoped reference.

        Safe to call repeatedly; closing an accessor twice is a no-op.
        ``auto_discover`` and ``game_list`` are left untouched.
        """
        if self.accessor is not None:
            self.accessor.close()
        self.accessor = None
        self.patcher = None
        self.game_information = None
        self.encryption_details = None

    def to_summary_dict(self) -> dict[str, Any]:
        """Compact summary for logging."""
        return {
            "accessor": type(self.accessor).__name__ if self.accessor else None,
            "has_patcher": self.patcher is not None,
            "game": self.game_information.title_id if self.game_information else None,
            "has_encryption_details": self.encryption_details is not None,
            "auto_discover": self.auto_discover.server_brand if self.auto_discover else None,
            "games_listed": len(self.game_list) if self.game_list is not None else None,
        }
