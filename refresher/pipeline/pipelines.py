"""
Concrete pipelines.

Each pipeline declares its accessor setup step and the ordered list of
steps that follow it.  Order matters: a step may only rely on context
fields produced by the steps before it.
"""

from __future__ import annotations

from refresher.pipeline.pipeline import Pipeline
from refresher.pipeline.steps.setup_emulator_accessor import SetupEmulatorAccessorStep
from refresher.pipeline.steps.setup_sftp_accessor import SetupSftpAccessorStep
from refresher.pipeline.steps.upload_patchwork_sprx import UploadPatchworkSprxStep
from refresher.pipeline.steps.validate_game import ValidateGameStep


class EmulatorPatchworkPipeline(Pipeline):
    """Install Patchwork for a game on a local emulator."""

    id = "rpcs3-patchwork"
    name = "RPCS3 Patchwork"

    setup_accessor_step = SetupEmulatorAccessorStep
    step_factories = (
        ValidateGameStep,
        UploadPatchworkSprxStep,
    )


class ConsolePatchworkPipeline(Pipeline):
    """Install Patchwork for a game on a console reachable over the network."""

    id = "ps3-patchwork"
    name = "PS3 Patchwork"

    setup_accessor_step = SetupSftpAccessorStep
    step_factories = (
        ValidateGameStep,
        UploadPatchworkSprxStep,
    )
