import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from conftest import fake_step, make_pipeline
from refresher.accessors.emulator import EmulatorPatchAccessor
from refresher.core.constants import PipelineState
from refresher.discovery.client import AutoDiscoverResponse
from refresher.pipeline.cancellation import CancellationToken, OperationCancelledError
from refresher.pipeline.errors import (
    DownloadFailedError,
    InvalidStateError,
    MissingInputError,
    UnsupportedOperationError,
)


# ═══════════════════════════════════════════════════════════
#  Initialize / required inputs
# ═══════════════════════════════════════════════════════════

def test_required_inputs_are_deduplicated_by_id():
    pipeline = make_pipeline(
        fake_step("first"),
        fake_step("second", inputs=["id", "region"]),
        fake_step("third", inputs=["id"]),
    )
    pipeline.initialize()

    ids = [i.id for i in pipeline.required_inputs]
    assert sorted(ids) == ["id", "region"]


def test_setup_step_is_prepended_and_contributes_inputs():
    setup = fake_step("setup", inputs=["path"])
    pipeline = make_pipeline(fake_step("work", inputs=["path", "game"]), setup=setup)
    pipeline.initialize()

    assert [step.step_name for step in pipeline.steps] == ["setup", "work"]
    assert {i.id for i in pipeline.required_inputs} == {"path", "game"}


def test_initialize_again_replaces_steps_without_touching_state():
    pipeline = make_pipeline(fake_step("a"), fake_step("b"))
    pipeline.initialize()
    first_steps = pipeline.steps
    pipeline.inputs["kept"] = "yes"

    pipeline.initialize()

    assert len(pipeline.steps) == 2
    assert pipeline.steps[0] is not first_steps[0]
    assert pipeline.inputs == {"kept": "yes"}
    assert pipeline.state == PipelineState.NOT_STARTED


def test_steps_hold_back_reference_to_pipeline():
    pipeline = make_pipeline(fake_step("a"))
    pipeline.initialize()

    assert pipeline.steps[0].pipeline is pipeline
    assert pipeline.steps[0].context is pipeline.context


# ═══════════════════════════════════════════════════════════
#  Validation before a run
# ═══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_missing_input_is_named_and_state_stays_not_started():
    pipeline = make_pipeline(
        fake_step("first"),
        fake_step("second", inputs=["id", "region"]),
        fake_step("third", inputs=["id"]),
    )
    pipeline.initialize()
    pipeline.inputs["id"] = "NPUA80662"

    with pytest.raises(MissingInputError, match="region") as exc_info:
        await pipeline.execute_async()

    assert exc_info.value.input_id == "region"
    assert pipeline.state == PipelineState.NOT_STARTED
    assert pipeline.step_count == 0


@pytest.mark.asyncio
async def test_execute_twice_without_reset_fails_and_marks_error():
    pipeline = make_pipeline(fake_step("only"))
    pipeline.initialize()

    await pipeline.execute_async()
    assert pipeline.state == PipelineState.FINISHED

    with pytest.raises(InvalidStateError):
        await pipeline.execute_async()
    assert pipeline.state == PipelineState.ERROR


@pytest.mark.asyncio
async def test_reset_allows_a_second_run():
    executed = []

    async def record(step, token):
        executed.append(step.step_name)

    pipeline = make_pipeline(fake_step("only", behaviour=record))
    pipeline.initialize()

    await pipeline.execute_async()
    pipeline.reset()
    pipeline.initialize()
    await pipeline.execute_async()

    assert executed == ["only", "only"]
    assert pipeline.state == PipelineState.FINISHED


@pytest.mark.asyncio
async def test_execute_before_initialize_is_rejected():
    pipeline = make_pipeline(fake_step("only"))

    with pytest.raises(InvalidStateError, match="initialized"):
        await pipeline.execute_async()
    assert pipeline.state == PipelineState.NOT_STARTED


# ═══════════════════════════════════════════════════════════
#  Failure vs cancellation
# ═══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_step_failure_marks_error_and_propagates_with_progress_snapshot():
    seen = {}
    executed = []

    async def record(step, token):
        executed.append(step.step_name)

    async def fail(step, token):
        executed.append(step.step_name)
        step._report_progress(0.25)
        seen["progress"] = step.pipeline.progress
        raise RuntimeError("boom")

    pipeline = make_pipeline(
        fake_step("s1", behaviour=record),
        fake_step("s2", behaviour=record),
        fake_step("s3", behaviour=fail),
        fake_step("s4", behaviour=record),
    )
    pipeline.initialize()

    with pytest.raises(RuntimeError, match="boom"):
        await pipeline.execute_async()

    assert seen["progress"] == pytest.approx(2 / 4 + 0.25 / 4)
    assert pipeline.state == PipelineState.ERROR
    assert executed == ["s1", "s2", "s3"]
    assert pipeline.current_step_index == 3


@pytest.mark.asyncio
async def test_cancellation_raised_by_step_ends_quietly():
    executed = []

    async def record(step, token):
        executed.append(step.step_name)

    async def cancel(step, token):
        executed.append(step.step_name)
        token.cancel()
        token.raise_if_cancelled()

    pipeline = make_pipeline(
        fake_step("s1", behaviour=record),
        fake_step("s2", behaviour=cancel),
        fake_step("s3", behaviour=record),
    )
    pipeline.initialize()

    await pipeline.execute_async(CancellationToken())

    assert pipeline.state == PipelineState.CANCELLED
    assert executed == ["s1", "s2"]


@pytest.mark.asyncio
async def test_token_is_checked_after_a_step_that_swallows_cancellation():
    executed = []

    async def record(step, token):
        executed.append(step.step_name)

    async def swallow(step, token):
        executed.append(step.step_name)
        token.cancel()
        try:
            token.raise_if_cancelled()
        except OperationCancelledError:
            pass

    pipeline = make_pipeline(
        fake_step("s1", behaviour=swallow),
        fake_step("s2", behaviour=record),
    )
    pipeline.initialize()

    await pipeline.execute_async(CancellationToken())

    assert pipeline.state == PipelineState.CANCELLED
    assert executed == ["s1"]


@pytest.mark.asyncio
async def test_task_cancellation_marks_cancelled_and_reraises():
    started = asyncio.Event()

    async def hang(step, token):
        started.set()
        await asyncio.Event().wait()

    pipeline = make_pipeline(fake_step("hang", behaviour=hang))
    pipeline.initialize()

    task = asyncio.create_task(pipeline.execute_async())
    await started.wait()
    task.cancel()

    with pytest.raises(asyncio.CancelledError):
        await task
    assert pipeline.state == PipelineState.CANCELLED


# ═══════════════════════════════════════════════════════════
#  Progress
# ═══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_progress_is_monotonic_and_ends_at_one():
    samples = []

    async def advance(step, token):
        for value in (0.0, 0.3, 0.7, 1.0):
            step._report_progress(value)
            samples.append(step.pipeline.progress)
            await asyncio.sleep(0)

    pipeline = make_pipeline(*(fake_step(f"s{i}", behaviour=advance) for i in range(3)))
    pipeline.initialize()

    assert pipeline.progress == 0.0

    await pipeline.execute_async()

    assert samples == sorted(samples)
    assert samples[0] == 0.0
    assert pipeline.step_count == 3
    assert pipeline.state == PipelineState.FINISHED
    assert pipeline.progress == 1.0
    assert pipeline.current_step_progress == 1.0


def test_step_progress_is_clamped():
    pipeline = make_pipeline(fake_step("only"))
    pipeline.initialize()
    step = pipeline.steps[0]

    step._report_progress(1.5)
    assert step.progress == 1.0
    step._report_progress(-2)
    assert step.progress == 0.0


# ═══════════════════════════════════════════════════════════
#  Reset
# ═══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_reset_releases_accessor_and_clears_run_state():
    accessor = MagicMock()

    async def attach(step, token):
        step.context.accessor = accessor
        step.context.patcher = object()

    pipeline = make_pipeline(fake_step("attach", behaviour=attach), fake_step("after"))
    pipeline.initialize()
    pipeline.inputs["anything"] = "value"
    await pipeline.execute_async()

    pipeline.reset()
    pipeline.reset()

    accessor.close.assert_called_once()
    assert pipeline.context.accessor is None
    assert pipeline.context.patcher is None
    assert pipeline.inputs == {}
    assert pipeline.state == PipelineState.NOT_STARTED
    assert pipeline.step_count == 0
    assert pipeline.current_step_index == 0
    assert pipeline.current_step is None


# ═══════════════════════════════════════════════════════════
#  Game list run
# ═══════════════════════════════════════════════════════════

def _emulator_setup(hdd_path):
    async def attach(step, token):
        step.context.accessor = EmulatorPatchAccessor(str(hdd_path))

    return fake_step("setup", inputs=["emulator-path"], behaviour=attach)


@pytest.mark.asyncio
async def test_download_game_list_requires_setup_step():
    pipeline = make_pipeline(fake_step("only"))
    pipeline.initialize()

    with pytest.raises(UnsupportedOperationError):
        await pipeline.download_game_list_async()
    assert pipeline.state == PipelineState.NOT_STARTED


@pytest.mark.asyncio
async def test_download_game_list_returns_titles_and_resets(emulator_dir):
    pipeline = make_pipeline(
        fake_step("work"),
        setup=_emulator_setup(emulator_dir / "dev_hdd0"),
    )
    pipeline.initialize()
    pipeline.inputs["emulator-path"] = str(emulator_dir)

    games = await pipeline.download_game_list_async()

    assert [game.title_id for game in games] == ["BCUS98148", "NPUA80662"]
    assert pipeline.state == PipelineState.NOT_STARTED
    assert pipeline.inputs == {}
    assert pipeline.context.accessor is None
    assert pipeline.step_count == 0


@pytest.mark.asyncio
async def test_download_game_list_resets_after_failure():
    async def fail(step, token):
        raise ConnectionError("console unreachable")

    pipeline = make_pipeline(fake_step("work"), setup=fake_step("setup", behaviour=fail))
    pipeline.initialize()

    with pytest.raises(ConnectionError):
        await pipeline.download_game_list_async()
    assert pipeline.state == PipelineState.NOT_STARTED


@pytest.mark.asyncio
async def test_download_game_list_cancelled_reports_download_failed(emulator_dir):
    token = CancellationToken()

    async def cancel(step, token):
        token.cancel()

    pipeline = make_pipeline(fake_step("work"), setup=fake_step("setup", behaviour=cancel))
    pipeline.initialize()

    with pytest.raises(DownloadFailedError):
        await pipeline.download_game_list_async(token)
    assert pipeline.state == PipelineState.NOT_STARTED


@pytest.mark.asyncio
async def test_download_game_list_rejects_dirty_pipeline(emulator_dir):
    pipeline = make_pipeline(
        fake_step("work"),
        setup=_emulator_setup(emulator_dir / "dev_hdd0"),
    )
    pipeline.initialize()
    pipeline.inputs["emulator-path"] = str(emulator_dir)
    await pipeline.execute_async()

    with pytest.raises(InvalidStateError):
        await pipeline.download_game_list_async()
    assert pipeline.state == PipelineState.ERROR


# ═══════════════════════════════════════════════════════════
#  Auto-discover
# ═══════════════════════════════════════════════════════════

@pytest.mark.asyncio
async def test_invoke_auto_discover_stores_non_null_response():
    response = AutoDiscoverResponse(version=3, server_brand="Refresh", url="https://refresh.example.com")
    discovery = MagicMock()
    discovery.invoke_auto_discover_async = AsyncMock(side_effect=[response, None])

    pipeline = make_pipeline(fake_step("only"), discovery_client=discovery)

    assert await pipeline.invoke_auto_discover_async("refresh.example.com") is response
    assert pipeline.context.auto_discover is response

    assert await pipeline.invoke_auto_discover_async("offline.example.com") is None
    assert pipeline.context.auto_discover is response
    assert pipeline.state == PipelineState.NOT_STARTED
