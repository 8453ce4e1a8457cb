"""
Pipeline Phase Stage.

Groups several steps into one named phase backed by a nested
PipelineCoordinator. The phase shares the outer run's context, so the
inner steps bind their outputs under their own names and later steps read
them as if the pipeline were flat. A failing inner step is reported with
its own name and kind.
"""

import time
from collections.abc import Sequence
from typing import Any

import structlog

from fulfillment.orchestrator.pipeline.context import PipelineContext
from fulfillment.orchestrator.pipeline.coordinator import PipelineCoordinator, Projection
from fulfillment.orchestrator.pipeline.result import StepResult
from fulfillment.orchestrator.stages.base import PipelineStage

logger = structlog.get_logger(__name__)


class PhaseStage(PipelineStage[Any]):
    """
    Step that runs a nested pipeline of steps.

    Example:
        >>> verify = PhaseStage("verify_order_details", [
        ...     FunctionStage("fetch_user", fetch_user),
        ...     FunctionStage("fetch_orders", fetch_orders),
        ... ])
        >>> coordinator = PipelineCoordinator([verify, payment, shipping])
    """

    def __init__(
        self,
        name: str,
        stages: Sequence[PipelineStage[Any]],
        projection: Projection | None = None,
    ) -> None:
        if not name:
            raise ValueError("Phase name must be a non-empty string")
        self._name = name
        self._pipeline = PipelineCoordinator(stages, projection=projection)

    @property
    def name(self) -> str:
        return self._name

    @property
    def step_names(self) -> list[str]:
        return self._pipeline.get_step_names()

    async def execute(self, context: PipelineContext) -> Any:
        """Run the nested steps; raises OrderProcessingError on failure."""
        run = await self._pipeline.run(None, context=context)
        return run.outcome.unwrap()

    async def run(self, context: PipelineContext) -> StepResult[Any]:
        """
        Run the nested pipeline on the shared context.

        Inner steps time themselves, so the phase does not add a context
        timing of its own.
        """
        logger.debug(
            "pipeline_phase_start",
            phase=self.name,
            steps=self.step_names,
            correlation_id=str(context.correlation_id),
        )

        started = time.perf_counter()
        inner = await self._pipeline.run(None, context=context)
        execution_time_ms = (time.perf_counter() - started) * 1000

        if inner.success:
            logger.debug(
                "pipeline_phase_complete",
                phase=self.name,
                execution_time_ms=round(execution_time_ms, 2),
                correlation_id=str(context.correlation_id),
            )
            return StepResult.ok(
                output=inner.outcome.value,
                stage_name=self.name,
                execution_time_ms=execution_time_ms,
                inner_results=inner.stage_results,
            )

        failure = inner.outcome
        logger.debug(
            "pipeline_phase_failed",
            phase=self.name,
            step=failure.step_name,
            failure_kind=failure.kind.value,
            correlation_id=str(context.correlation_id),
        )
        return StepResult.fail(
            error=failure.reason,
            stage_name=self.name,
            failure_kind=failure.kind,
            execution_time_ms=execution_time_ms,
            inner_results=inner.stage_results,
            inner_failure=failure,
        )

    def __repr__(self) -> str:
        return f"PhaseStage(name={self._name!r}, steps={self.step_names!r})"
