"""
DownloadGameListStep — enumerates installed titles on the accessor.

Each subdirectory of the game directory is one title; its name is the
title id.  The result is stored on ``context.game_list`` for
``Pipeline.download_game_list_async`` to return.
"""

from __future__ import annotations

import posixpath

from refresher.core.config import settings
from refresher.pipeline.cancellation import CancellationToken
from refresher.pipeline.context import GameInformation
from refresher.pipeline.errors import StepExecutionError
from refresher.pipeline.step import Step


class DownloadGameListStep(Step):
    """List every title folder under the game directory."""

    name = "download_game_list"
    description = "Download the list of installed games"

    async def execute(self, token: CancellationToken) -> None:
        accessor = self.context.accessor
        if accessor is None:
            raise StepExecutionError(
                "No accessor was set up before listing games",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            )

        token.raise_if_cancelled()

        if not await self._run_blocking(accessor.directory_exists, settings.GAME_DIRECTORY):
            self.logger.warning("Game directory not found", path=settings.GAME_DIRECTORY)
            self.context.game_list = []
            self._report_progress(1.0)
            return

        directories = await self._run_blocking(
            accessor.get_directories_in_directory, settings.GAME_DIRECTORY
        )
        token.raise_if_cancelled()
        games: list[GameInformation] = []

        for index, directory in enumerate(directories, start=1):
            token.raise_if_cancelled()
            # Both local and remote paths may come back; normalise separators
            title_id = posixpath.basename(directory.replace("\\", "/").rstrip("/"))
            games.append(GameInformation(title_id=title_id))
            self._report_progress(index / len(directories))

        games.sort(key=lambda game: game.title_id)
        self.context.game_list = games
        self._report_progress(1.0)

        self.logger.info("Game list downloaded", count=len(games))
