"""Step inputs shared by several steps and pipelines."""

from __future__ import annotations

from refresher.core.constants import StepInputType
from refresher.pipeline.step import StepInput


class CommonStepInputs:
    """Catalogue of StepInput definitions reused across steps."""

    SERVER_URL = StepInput(
        id="url",
        name="Server URL",
        type=StepInputType.URL,
        placeholder="https://refresh.example.com",
        description="The URL of the server the patched game should connect to.",
    )

    GAME = StepInput(
        id="game",
        name="Game",
        type=StepInputType.GAME,
        placeholder="NPUA80662",
        description="The title id of the game to patch.",
    )

    EMULATOR_DIRECTORY = StepInput(
        id="emulator-path",
        name="Emulator Path",
        type=StepInputType.DIRECTORY,
        placeholder="/home/user/.config/rpcs3",
        description="The emulator's data directory (the one containing dev_hdd0).",
    )

    CONSOLE_IP = StepInput(
        id="console-ip",
        name="Console IP",
        type=StepInputType.CONSOLE_IP,
        placeholder="192.168.1.100",
        description="The IP address of the console on your local network.",
    )
