"""Shared constants and enums used across the application."""

from enum import StrEnum


class PipelineState(StrEnum):
    """Lifecycle state of a pipeline run."""

    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    FINISHED = "FINISHED"
    CANCELLED = "CANCELLED"
    ERROR = "ERROR"


class StepInputType(StrEnum):
    """Kind of value a step input expects, used by front-ends to pick a widget."""

    TEXT = "TEXT"
    URL = "URL"
    DIRECTORY = "DIRECTORY"
    OPEN_FILE = "OPEN_FILE"
    GAME = "GAME"
    CONSOLE_IP = "CONSOLE_IP"


# File names of the Patchwork plugin, per target
PATCHWORK_SPRX = "patchwork.sprx"
PATCHWORK_SPRX_EMULATOR = "patchwork-rpcs3.sprx"
