"""
UploadPatchworkSprxStep — installs the Patchwork plugin next to the game.

Best effort: a failed upload is logged and the run carries on, since the
patched game still works without the plugin's extras.

A custom build placed in ``PATCHWORK_OVERRIDE_DIRECTORY`` wins over the
copy bundled in ``refresher.resources``.
"""

from __future__ import annotations

import importlib.resources
import os
import posixpath
from typing import IO

from refresher.accessors.base import PatchAccessor
from refresher.accessors.emulator import EmulatorPatchAccessor
from refresher.core.config import settings
from refresher.core.constants import PATCHWORK_SPRX, PATCHWORK_SPRX_EMULATOR
from refresher.pipeline.cancellation import CancellationToken, OperationCancelledError
from refresher.pipeline.errors import StepExecutionError
from refresher.pipeline.step import Step

CHUNK_SIZE = 64 * 1024


def open_bundled_plugin(file_name: str) -> IO[bytes] | None:
    """Open a plugin binary shipped inside the package, or None if absent."""
    resource = importlib.resources.files("refresher.resources").joinpath(file_name)
    if not resource.is_file():
        return None
    return resource.open("rb")


class UploadPatchworkSprxStep(Step):
    """Upload patchwork.sprx into the plugins directory."""

    name = "upload_patchwork_sprx"
    description = "Upload the Patchwork plugin"

    async def execute(self, token: CancellationToken) -> None:
        accessor = self.context.accessor
        if accessor is None:
            raise StepExecutionError(
                "No accessor was set up before uploading the plugin",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            )

        uploaded = await PatchAccessor.try_async(
            lambda: self._run_blocking(self._upload, accessor, token),
            logger=self.logger,
        )
        if not uploaded:
            self.logger.warning("Patchwork plugin was not uploaded")

        self._report_progress(1.0)

    def _upload(self, accessor: PatchAccessor, token: CancellationToken) -> None:
        plugins_folder = settings.PLUGINS_DIRECTORY
        sprx_path = posixpath.join(plugins_folder, PATCHWORK_SPRX)

        accessor.create_directory_if_not_exists(plugins_folder)

        if accessor.file_exists(sprx_path):
            accessor.remove_file(sprx_path)

        self._report_progress(0.5)
        token.raise_if_cancelled()

        local_name = (
            PATCHWORK_SPRX_EMULATOR
            if isinstance(accessor, EmulatorPatchAccessor)
            else PATCHWORK_SPRX
        )

        override_path = os.path.join(settings.PATCHWORK_OVERRIDE_DIRECTORY, local_name)
        if os.path.isfile(override_path):
            self.logger.info("Found custom plugin, uploading that instead", path=override_path)
            accessor.upload_file(override_path, sprx_path)
            return

        read_stream = open_bundled_plugin(local_name)
        if read_stream is None:
            raise StepExecutionError(
                f"The {local_name} plugin for {type(accessor).__name__} is missing from this build",
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            )

        try:
            with read_stream, accessor.open_write(sprx_path) as write_stream:
                for chunk in iter(lambda: read_stream.read(CHUNK_SIZE), b""):
                    token.raise_if_cancelled()
                    write_stream.write(chunk)
                write_stream.flush()
        except OperationCancelledError:
            # Never leave a truncated plugin behind
            accessor.remove_file(sprx_path)
            raise

        self.logger.info("Bundled plugin uploaded", plugin=local_name, path=sprx_path)
