#!/usr/bin/env python3
"""
Demo script — run the emulator pipeline locally against a throwaway tree.

Builds a fake emulator install in a temp directory, lists its games,
then patches one of them, printing progress along the way.

Usage:
    python scripts/demo_pipeline.py
"""

import asyncio
import os
import tempfile

from refresher.core.logging import setup_logging
from refresher.pipeline.cancellation import CancellationToken
from refresher.pipeline.inputs import CommonStepInputs
from refresher.pipeline.registry import PipelineResolver


def _build_fake_emulator(root: str) -> None:
    """Create dev_hdd0/game/<title> folders like an emulator install has."""
    for title_id in ("BCUS98148", "NPUA80662"):
        os.makedirs(os.path.join(root, "dev_hdd0", "game", title_id, "USRDIR"))


async def _watch_progress(pipeline, done: asyncio.Event) -> None:
    while not done.is_set():
        print(f"  progress {pipeline.progress:6.1%}  state={pipeline.state}")
        await asyncio.sleep(0.05)


async def main() -> None:
    setup_logging("INFO")

    with tempfile.TemporaryDirectory() as emulator_dir:
        _build_fake_emulator(emulator_dir)

        pipeline = PipelineResolver().resolve("rpcs3-patchwork")

        print("\n" + "=" * 70)
        print(f"  {pipeline.name}: required inputs")
        print("=" * 70)
        for step_input in sorted(pipeline.required_inputs, key=lambda i: i.id):
            print(f"  {step_input.id:<15} {step_input.name}")

        # ── Listing run ─────────────────────────────
        pipeline.inputs[CommonStepInputs.EMULATOR_DIRECTORY.id] = emulator_dir
        games = await pipeline.download_game_list_async()
        print(f"\n  Found games: {[game.title_id for game in games]}")
        print(f"  State after listing: {pipeline.state}")

        # ── Full run ────────────────────────────────
        pipeline.inputs[CommonStepInputs.EMULATOR_DIRECTORY.id] = emulator_dir
        pipeline.inputs[CommonStepInputs.GAME.id] = games[0].title_id

        token = CancellationToken()
        done = asyncio.Event()
        watcher = asyncio.create_task(_watch_progress(pipeline, done))
        try:
            await pipeline.execute_async(token)
        finally:
            done.set()
            await watcher

        print(f"\n  Final state: {pipeline.state}  progress={pipeline.progress:.0%}")
        pipeline.reset()


if __name__ == "__main__":
    asyncio.run(main())
