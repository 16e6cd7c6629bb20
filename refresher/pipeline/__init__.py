"""
Pipeline Engine — ordered, cancellable patching runs.

This package provides the step-based engine that drives a patch run
against a storage accessor, with per-step progress, input aggregation,
and a strict run state machine.
"""

from refresher.pipeline.cancellation import CancellationToken, OperationCancelledError
from refresher.pipeline.context import EncryptionDetails, GameInformation, RunContext
from refresher.pipeline.step import Step, StepInput
from refresher.pipeline.pipeline import Pipeline

__all__ = [
    "CancellationToken",
    "OperationCancelledError",
    "EncryptionDetails",
    "GameInformation",
    "RunContext",
    "Step",
    "StepInput",
    "Pipeline",
]
