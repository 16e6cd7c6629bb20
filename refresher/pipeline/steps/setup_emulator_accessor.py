"""
SetupEmulatorAccessorStep — points the pipeline at a local emulator install.
"""

from __future__ import annotations

import os

from refresher.accessors.emulator import EmulatorPatchAccessor
from refresher.core.config import settings
from refresher.pipeline.cancellation import CancellationToken
from refresher.pipeline.errors import StepExecutionError
from refresher.pipeline.inputs import CommonStepInputs
from refresher.pipeline.step import Step


class SetupEmulatorAccessorStep(Step):
    """Root an EmulatorPatchAccessor at the emulator's virtual hard drive."""

    name = "setup_emulator_accessor"
    description = "Connect to the emulator's files"
    inputs = (CommonStepInputs.EMULATOR_DIRECTORY,)

    async def execute(self, token: CancellationToken) -> None:
        emulator_path = self.get_input(CommonStepInputs.EMULATOR_DIRECTORY)

        if not os.path.isdir(emulator_path):
            raise StepExecutionError(
                f"Emulator directory '{emulator_path}' does not exist",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            )

        hdd_path = os.path.join(emulator_path, settings.EMULATOR_HDD_DIRECTORY)

        if self.context.accessor is not None:
            self.context.accessor.close()
        self.context.accessor = EmulatorPatchAccessor(hdd_path)
        self._report_progress(1.0)

        self.logger.info("Emulator accessor ready", base_path=hdd_path)
