"""
SetupSftpAccessorStep — opens an SFTP session to a console on the network.

The connection is blocking (paramiko), so it runs in the default executor
to keep the event loop responsive.
"""

from __future__ import annotations

import asyncio
import functools

from refresher.accessors.sftp import SftpPatchAccessor
from refresher.core.config import settings
from refresher.pipeline.cancellation import CancellationToken
from refresher.pipeline.inputs import CommonStepInputs
from refresher.pipeline.step import Step


class SetupSftpAccessorStep(Step):
    """Connect to the console and store the accessor on the run context."""

    name = "setup_sftp_accessor"
    description = "Connect to the console over SFTP"
    inputs = (CommonStepInputs.CONSOLE_IP,)

    async def execute(self, token: CancellationToken) -> None:
        host = self.get_input(CommonStepInputs.CONSOLE_IP).strip()

        token.raise_if_cancelled()
        self.logger.info("Connecting to console", host=host, port=settings.SFTP_PORT)

        loop = asyncio.get_running_loop()
        accessor = await loop.run_in_executor(
            None,
            functools.partial(
                SftpPatchAccessor.connect,
                host,
                port=settings.SFTP_PORT,
                username=settings.SFTP_USERNAME,
                password=settings.SFTP_PASSWORD,
                base_path=settings.SFTP_BASE_PATH,
                timeout=settings.SFTP_TIMEOUT,
            ),
        )

        if self.context.accessor is not None:
            self.context.accessor.close()
        self.context.accessor = accessor
        self._report_progress(1.0)
