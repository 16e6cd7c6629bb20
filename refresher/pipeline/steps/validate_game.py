"""
ValidateGameStep — checks the chosen title is installed on the accessor.

Produces ``context.game_information`` for every later step.
"""

from __future__ import annotations

import posixpath

from refresher.core.config import settings
from refresher.pipeline.cancellation import CancellationToken
from refresher.pipeline.context import GameInformation
from refresher.pipeline.errors import StepExecutionError
from refresher.pipeline.inputs import CommonStepInputs
from refresher.pipeline.step import Step


class ValidateGameStep(Step):
    """Make sure the title folder exists before anything touches it."""

    name = "validate_game"
    description = "Validate the selected game"
    inputs = (CommonStepInputs.GAME,)

    async def execute(self, token: CancellationToken) -> None:
        title_id = self.get_input(CommonStepInputs.GAME).strip().upper()
        accessor = self.context.accessor

        if accessor is None:
            raise StepExecutionError(
                "No accessor was set up before validating the game",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            )

        if not title_id:
            raise StepExecutionError(
                "No game was selected",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            )

        token.raise_if_cancelled()

        game_path = posixpath.join(settings.GAME_DIRECTORY, title_id)
        if not await self._run_blocking(accessor.directory_exists, game_path):
            raise StepExecutionError(
                f"Game {title_id} is not installed (looked in {game_path})",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
                details={"title_id": title_id, "path": game_path},
            )

        self.context.game_information = GameInformation(title_id=title_id)
        self._report_progress(1.0)

        self.logger.info("Game validated", title_id=title_id)
