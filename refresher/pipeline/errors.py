"""
Domain-specific exception hierarchy for the pipeline engine.

All pipeline exceptions inherit from PipelineError so callers can
catch broadly or narrowly as needed.  Each exception carries structured
context (pipeline id, step name, etc.) for logging/debugging.

Validation errors (InvalidStateError, MissingInputError,
UnsupportedOperationError) are raised before any step runs.  Faults
raised by steps propagate verbatim once the pipeline is running.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline errors."""

    def __init__(
        self,
        message: str,
        *,
        pipeline_id: str | None = None,
        step_name: str | None = None,
        details: dict | None = None,
    ) -> None:
        self.pipeline_id = pipeline_id
        self.step_name = step_name
        self.details = details or {}
        super().__init__(message)


class InvalidStateError(PipelineError):
    """The pipeline is not in a state that allows the requested operation."""
    pass


class MissingInputError(PipelineError):
    """A required input was not supplied before execution."""

    def __init__(
        self,
        message: str,
        *,
        input_id: str,
        **kwargs,
    ) -> None:
        self.input_id = input_id
        super().__init__(message, **kwargs)


class UnsupportedOperationError(PipelineError):
    """The pipeline does not support the requested operation."""
    pass


class StepExecutionError(PipelineError):
    """A step failed during execution."""
    pass


class DownloadFailedError(PipelineError):
    """The game-list run finished without producing a list."""
    pass


class PipelineResolutionError(PipelineError):
    """No pipeline is registered under the requested id."""
    pass


class AccessorError(PipelineError):
    """A storage backend operation (local or remote) failed."""

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        **kwargs,
    ) -> None:
        self.path = path
        super().__init__(message, **kwargs)
