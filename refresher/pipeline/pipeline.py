"""
Pipeline — the orchestrator that runs steps sequentially.

Responsibilities:
    - Build the ordered step list from the pipeline's step factories
    - Aggregate every step's declared inputs into ``required_inputs``
    - Validate inputs and state before a run
    - Execute steps strictly in order against a shared RunContext
    - Track the run state machine and aggregate progress
    - Offer a short listing run (``download_game_list_async``) and
      endpoint auto-discovery for front-ends

State machine::

    NOT_STARTED ──► RUNNING ──► FINISHED | CANCELLED | ERROR
         ▲                                   │
         └──────────────── reset() ──────────┘

Usage::

    pipeline = EmulatorPatchworkPipeline()
    pipeline.initialize()
    for step_input in pipeline.required_inputs:
        pipeline.inputs[step_input.id] = ask_user(step_input)
    await pipeline.execute_async(token)
    ...
    pipeline.reset()

A Pipeline instance is not safe for concurrent runs; callers serialise
initialize / execute / reset on one instance.
"""

from __future__ import annotations

import asyncio
from abc import ABC
from typing import ClassVar

from refresher.core.constants import PipelineState
from refresher.core.logging import get_logger
from refresher.discovery.client import AutoDiscoverClient, AutoDiscoverResponse
from refresher.pipeline.cancellation import CancellationToken, OperationCancelledError
from refresher.pipeline.context import GameInformation, RunContext
from refresher.pipeline.errors import (
    DownloadFailedError,
    InvalidStateError,
    MissingInputError,
    UnsupportedOperationError,
)
from refresher.pipeline.step import Step, StepFactory, StepInput
from refresher.pipeline.steps.download_game_list import DownloadGameListStep


class Pipeline(ABC):
    """
    Base class for every concrete pipeline.

    Subclasses set:
        - id / name            — stable identifier and display name
        - step_factories       — ordered callables taking the pipeline and
                                 returning a Step (a Step subclass works)
        - setup_accessor_step  — optional factory prepended to the run and
                                 required by download_game_list_async
        - guide_link           — optional documentation URL
    """

    id: ClassVar[str] = "unnamed-pipeline"
    name: ClassVar[str] = "Unnamed Pipeline"
    guide_link: ClassVar[str | None] = None

    setup_accessor_step: ClassVar[StepFactory | None] = None
    step_factories: ClassVar[tuple[StepFactory, ...]] = ()

    def __init__(
        self,
        *,
        logger=None,
        discovery_client: AutoDiscoverClient | None = None,
    ) -> None:
        self.inputs: dict[str, str] = {}
        self.required_inputs: frozenset[StepInput] = frozenset()
        self.context = RunContext()

        self.logger = (logger or get_logger(f"pipeline.{self.id}")).bind(pipeline_id=self.id)
        self.discovery_client = discovery_client or AutoDiscoverClient()

        self._state = PipelineState.NOT_STARTED
        self._initialized = False
        self._steps: list[Step] = []

        self._step_count = 0
        self._current_step_index = 0
        self._current_step: Step | None = None

    # ─── Read-only views (pollable from outside the run) ──

    @property
    def state(self) -> PipelineState:
        return self._state

    @property
    def steps(self) -> tuple[Step, ...]:
        return tuple(self._steps)

    @property
    def step_count(self) -> int:
        return self._step_count

    @property
    def current_step_index(self) -> int:
        """1-based index of the in-flight step; 0 when nothing has run."""
        return self._current_step_index

    @property
    def current_step(self) -> Step | None:
        return self._current_step

    @property
    def progress(self) -> float:
        """
        Aggregate progress in [0, 1].

        Completed steps each contribute ``1 / step_count``; the in-flight
        step contributes its own progress scaled by the same weight.
        """
        if self._state == PipelineState.FINISHED:
            return 1.0
        if self._step_count == 0:
            return 0.0

        step_weight = 1.0 / self._step_count
        completed = (self._current_step_index - 1) * step_weight
        current = self._current_step.progress if self._current_step is not None else 0.0
        return completed + current * step_weight

    @property
    def current_step_progress(self) -> float:
        if self._state == PipelineState.FINISHED:
            return 1.0
        return self._current_step.progress if self._current_step is not None else 0.0

    # ─── Lifecycle ─────────────────────────────────────

    def initialize(self) -> None:
        """
        Build the step list and compute ``required_inputs``.

        Safe to call again; it replaces the steps and requirements but does
        not reset run state.
        """
        declared: list[StepInput] = []
        self._steps = []

        setup_factory = type(self).setup_accessor_step
        if setup_factory is not None:
            self._add_step(declared, setup_factory)

        for factory in self.step_factories:
            self._add_step(declared, factory)

        distinct: dict[str, StepInput] = {}
        for step_input in declared:
            distinct.setdefault(step_input.id, step_input)
        self.required_inputs = frozenset(distinct.values())
        self._initialized = True

        self.logger.debug(
            "Pipeline initialized",
            steps=[step.step_name for step in self._steps],
            required_inputs=sorted(distinct),
        )

    def _add_step(self, declared: list[StepInput], factory: StepFactory) -> None:
        step = factory(self)
        self._steps.append(step)
        declared.extend(step.inputs)

    def reset(self) -> None:
        """Return to NOT_STARTED, clearing inputs and releasing run state."""
        self.inputs.clear()

        self._state = PipelineState.NOT_STARTED

        self._step_count = 0
        self._current_step_index = 0
        self._current_step = None

        self.context.release()

    # ─── Execution ─────────────────────────────────────

    async def execute_async(self, token: CancellationToken | None = None) -> None:
        """
        Run every step in order.

        Raises:
            InvalidStateError: the pipeline was not reset since its last run
                (state becomes ERROR), or was never initialized.
            MissingInputError: a required input has no value (state untouched).
            Exception: any fault raised by a step, verbatim (state is ERROR).

        Cancellation is not an error: the call returns and state is CANCELLED.
        """
        if self._state != PipelineState.NOT_STARTED:
            self._state = PipelineState.ERROR
            raise InvalidStateError(
                "Pipeline must be reset before it can be executed again.",
                pipeline_id=self.id,
            )

        if not self._initialized:
            raise InvalidStateError(
                "Pipeline must be initialized before it can be executed.",
                pipeline_id=self.id,
            )

        missing = sorted(i.id for i in self.required_inputs if i.id not in self.inputs)
        if missing:
            raise MissingInputError(
                f"Input {missing[0]} was not provided to the pipeline before execution.",
                input_id=missing[0],
                pipeline_id=self.id,
                details={"missing": missing},
            )

        token = token or CancellationToken()

        self.logger.info("Pipeline started", name=self.name, total_steps=len(self._steps))
        self._state = PipelineState.RUNNING

        await self._run_steps(self._steps, token)

        if self._state == PipelineState.RUNNING:
            self._state = PipelineState.FINISHED
            self.logger.info("Pipeline finished", context=self.context.to_summary_dict())

    async def _run_steps(self, steps: list[Step], token: CancellationToken) -> None:
        """
        Execute ``steps`` in order, shared by the main and listing runs.

        The token is checked after every step returns; a step that swallows
        cancellation internally is still followed by that check.
        """
        self._step_count = len(steps)

        for index, step in enumerate(steps, start=1):
            self._current_step_index = index
            self._current_step = step

            step_log = self.logger.bind(
                step=step.step_name,
                step_index=index,
                step_count=len(steps),
            )
            step_log.info(f"Executing step {index}/{len(steps)}: {step.description}")

            try:
                await step.execute(token)
            except OperationCancelledError:
                self._mark_cancelled(step_log)
                return
            except asyncio.CancelledError:
                self._mark_cancelled(step_log)
                raise
            except Exception as exc:
                self._state = PipelineState.ERROR
                step_log.error(
                    "Step failed, pipeline stopping",
                    error=str(exc),
                    error_type=type(exc).__name__,
                )
                raise

            if token.cancelled:
                self._mark_cancelled(step_log)
                return

    def _mark_cancelled(self, log) -> None:
        self._state = PipelineState.CANCELLED
        log.info("Pipeline cancelled")

    # ─── Front-end helpers ─────────────────────────────

    async def download_game_list_async(
        self,
        token: CancellationToken | None = None,
    ) -> list[GameInformation]:
        """
        Enumerate installed titles without running the full pipeline.

        Runs [setup accessor, list games] and then resets unconditionally,
        so the pipeline is clean for the real run afterwards.
        """
        if self._state != PipelineState.NOT_STARTED:
            self._state = PipelineState.ERROR
            raise InvalidStateError(
                "Pipeline must be in a clean state before downloading games.",
                pipeline_id=self.id,
            )

        setup_factory = type(self).setup_accessor_step
        if setup_factory is None:
            raise UnsupportedOperationError(
                "This pipeline doesn't have an accessor configured.",
                pipeline_id=self.id,
            )

        token = token or CancellationToken()
        steps = [setup_factory(self), DownloadGameListStep(self)]

        self.context.game_list = None
        self._state = PipelineState.RUNNING

        try:
            await self._run_steps(steps, token)
        finally:
            self.reset()

        if self.context.game_list is None:
            raise DownloadFailedError(
                "Could not download the list of games.",
                pipeline_id=self.id,
            )

        return self.context.game_list

    async def invoke_auto_discover_async(
        self,
        url: str,
        token: CancellationToken | None = None,
    ) -> AutoDiscoverResponse | None:
        """Resolve ``url`` and keep a non-null response for later steps."""
        response = await self.discovery_client.invoke_auto_discover_async(url, token)
        if response is not None:
            self.context.auto_discover = response

        return response

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, state={self._state})"
