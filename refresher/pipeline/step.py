"""
Step — abstract base class for every pipeline step.

A step is constructed once per Initialize(), bound to its owning pipeline,
executed at most once and discarded on the next Initialize().  It declares
the inputs it needs, reports its own 0..1 progress, and reads/writes the
pipeline's RunContext to hand results to later steps.

Subclasses MUST implement:
    - execute(token)      — the actual work

Subclasses MAY set:
    - name / description  — labels for logs and front-ends
    - inputs              — the StepInput values this step requires
"""

from __future__ import annotations

import asyncio
import functools
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable, ClassVar, TypeVar

from refresher.core.constants import StepInputType
from refresher.pipeline.errors import MissingInputError

if TYPE_CHECKING:
    from refresher.pipeline.cancellation import CancellationToken
    from refresher.pipeline.context import RunContext
    from refresher.pipeline.pipeline import Pipeline

T = TypeVar("T")


@dataclass(frozen=True)
class StepInput:
    """
    A named value the front-end must supply before a run.

    Equality and hashing use ``id`` only, so two steps declaring the
    same id collapse into a single requirement.
    """

    id: str
    name: str = field(default="", compare=False)
    type: StepInputType = field(default=StepInputType.TEXT, compare=False)
    placeholder: str | None = field(default=None, compare=False)
    description: str | None = field(default=None, compare=False)


class Step(ABC):
    """Base class for every pipeline step."""

    name: ClassVar[str] = ""
    description: ClassVar[str] = "No description"
    inputs: ClassVar[tuple[StepInput, ...]] = ()

    def __init__(self, pipeline: Pipeline) -> None:
        # Non-owning back-reference used to reach shared run state
        self.pipeline = pipeline
        self._progress = 0.0
        self.logger = pipeline.logger.bind(step=self.step_name)

    @abstractmethod
    async def execute(self, token: CancellationToken) -> None:
        """
        Run the step's logic.

        Read from and write to ``self.context`` to pass data between steps.
        Call ``token.raise_if_cancelled()`` around I/O so cancellation takes
        effect promptly.  Accessor calls block; await them through
        ``_run_blocking`` so the loop stays free for progress polling.
        Raise StepExecutionError on domain failures.
        """
        ...

    # ─── Helpers available to all steps ────────────────

    @property
    def step_name(self) -> str:
        return self.name or type(self).__name__

    @property
    def progress(self) -> float:
        """Step-local progress in [0, 1]."""
        return self._progress

    @property
    def context(self) -> RunContext:
        return self.pipeline.context

    def _report_progress(self, value: float) -> None:
        self._progress = min(max(value, 0.0), 1.0)

    async def _run_blocking(self, func: Callable[..., T], *args) -> T:
        """Run blocking storage work in the default thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, functools.partial(func, *args))

    def get_input(self, step_input: StepInput) -> str:
        """Return the value supplied for ``step_input`` or raise MissingInputError."""
        try:
            return self.pipeline.inputs[step_input.id]
        except KeyError:
            raise MissingInputError(
                f"Input {step_input.id} was not provided to the pipeline.",
                input_id=step_input.id,
                pipeline_id=self.pipeline.id,
                step_name=self.step_name,
            ) from None


StepFactory = Callable[["Pipeline"], Step]
