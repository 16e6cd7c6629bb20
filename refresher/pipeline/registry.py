"""
PipelineResolver — maps a pipeline id to a ready-to-use pipeline.

To add a new pipeline:
    1. Define it in pipelines.py (or its own module)
    2. Register it in PIPELINE_REGISTRY below
    3. Front-ends pick it up from list_available_pipelines()
"""

from __future__ import annotations

from refresher.core.logging import get_logger
from refresher.pipeline.errors import PipelineResolutionError
from refresher.pipeline.pipeline import Pipeline
from refresher.pipeline.pipelines import ConsolePatchworkPipeline, EmulatorPatchworkPipeline

logger = get_logger(__name__)


# ═══════════════════════════════════════════════════════════
#  Pipeline Registry
# ═══════════════════════════════════════════════════════════

PIPELINE_REGISTRY: dict[str, type[Pipeline]] = {
    EmulatorPatchworkPipeline.id: EmulatorPatchworkPipeline,
    ConsolePatchworkPipeline.id: ConsolePatchworkPipeline,
}


class PipelineResolver:
    """Creates initialized pipelines by id."""

    def __init__(self, registry: dict[str, type[Pipeline]] | None = None) -> None:
        self.registry = registry if registry is not None else PIPELINE_REGISTRY

    def resolve(self, pipeline_id: str, **kwargs) -> Pipeline:
        """
        Return a new, initialized pipeline for ``pipeline_id``.

        Keyword arguments are forwarded to the pipeline constructor
        (``logger``, ``discovery_client``).

        Raises:
            PipelineResolutionError: If no pipeline is registered under the id.
        """
        pipeline_cls = self.registry.get(pipeline_id)
        if pipeline_cls is None:
            raise PipelineResolutionError(
                f"No pipeline registered under '{pipeline_id}'",
                pipeline_id=pipeline_id,
                details={"available": self.list_available_pipelines()},
            )

        pipeline = pipeline_cls(**kwargs)
        pipeline.initialize()
        logger.info("Pipeline resolved", pipeline_id=pipeline_id, name=pipeline.name)
        return pipeline

    def list_available_pipelines(self) -> list[str]:
        """Return all registered pipeline ids."""
        return list(self.registry.keys())
