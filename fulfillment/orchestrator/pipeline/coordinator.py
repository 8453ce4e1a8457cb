"""
Pipeline Coordinator.

Runs an ordered list of named steps sequentially, stops at the first
failure and reports a terminal Outcome.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any
from uuid import UUID

import structlog

from fulfillment.models.errors import (
    FailureKind,
    PipelineConfigurationError,
    PipelineStateError,
)
from fulfillment.orchestrator.pipeline.cancellation import CancellationToken
from fulfillment.orchestrator.pipeline.context import PipelineContext, PipelineContextBuilder
from fulfillment.orchestrator.pipeline.result import (
    Failure,
    Outcome,
    RunState,
    StepResult,
    Success,
)

if TYPE_CHECKING:
    from fulfillment.orchestrator.stages.base import PipelineStage

logger = structlog.get_logger(__name__)

Projection = Callable[[PipelineContext], Any]

_ALLOWED_TRANSITIONS: dict[RunState, tuple[RunState, ...]] = {
    RunState.NOT_STARTED: (RunState.RUNNING,),
    RunState.RUNNING: (RunState.SUCCEEDED, RunState.FAILED),
    RunState.SUCCEEDED: (),
    RunState.FAILED: (),
}


def last_output(context: PipelineContext) -> Any:
    """Default projection: output of the last bound step (or the input)."""
    names = context.step_names
    if not names:
        return context.input
    return context[names[-1]]


@dataclass
class PipelineRun:
    """
    Report of one pipeline run.

    Tracks the run state machine, the per-step results in execution order
    and the terminal outcome.
    """

    correlation_id: UUID
    total_steps: int
    state: RunState = RunState.NOT_STARTED
    current_step_index: int | None = None
    outcome: Outcome[Any] | None = None
    stage_results: dict[str, StepResult[Any]] = field(default_factory=dict)
    total_time_ms: float = 0.0

    def transition(self, new_state: RunState) -> None:
        """
        Move to new_state.

        Raises:
            PipelineStateError: If the transition is not allowed
        """
        if new_state not in _ALLOWED_TRANSITIONS[self.state]:
            raise PipelineStateError(
                f"Illegal run transition {self.state.value} -> {new_state.value}"
            )
        self.state = new_state

    @property
    def success(self) -> bool:
        return self.state == RunState.SUCCEEDED

    @property
    def executed_steps(self) -> list[str]:
        """Names of steps that were invoked, in invocation order."""
        return list(self.stage_results)

    def get_stage_times(self) -> dict[str, float]:
        """Get execution times per step."""
        return {name: result.execution_time_ms for name, result in self.stage_results.items()}


class PipelineCoordinator:
    """
    Coordinates sequential step execution.

    Each step receives the run's context holding the initial input and
    the outputs of every earlier step. The first failing step ends the
    run; later steps are never invoked and nothing is rolled back.

    Steps whose output is already bound when the run starts (see
    PipelineContextBuilder.with_data) are skipped, so a run can resume
    after its last completed step.

    Example:
        >>> coordinator = PipelineCoordinator([
        ...     FunctionStage("fetch_user", fetch_user),
        ...     FunctionStage("fetch_orders", fetch_orders),
        ... ], projection=lambda ctx: ctx["fetch_orders"].id)
        >>> run = await coordinator.run(request)
        >>> if run.success:
        ...     print(run.outcome.value)
    """

    def __init__(
        self,
        stages: Sequence[PipelineStage[Any]] | None = None,
        projection: Projection | None = None,
    ) -> None:
        """
        Initialize coordinator with pipeline steps.

        Args:
            stages: Ordered list of steps to execute
            projection: Builds the success value from the final context

        Raises:
            PipelineConfigurationError: On duplicate step names
        """
        self._stages: list[PipelineStage[Any]] = []
        self._projection: Projection = projection or last_output
        for stage in stages or []:
            self.add_stage(stage)

    def add_stage(self, stage: PipelineStage[Any]) -> None:
        """
        Add a step to the end of the pipeline.

        Raises:
            PipelineConfigurationError: If the step (or any step nested in
                it) reuses a name already in the pipeline
        """
        taken = set(self.get_stage_names()) | set(self.get_step_names())
        new_names = [stage.name, *stage.step_names]
        clashes = sorted({name for name in new_names if name in taken})
        if clashes:
            raise PipelineConfigurationError(f"Duplicate step name '{clashes[0]}'")
        self._stages.append(stage)

    def get_stages(self) -> list[PipelineStage[Any]]:
        """Get list of configured steps."""
        return self._stages.copy()

    def get_stage_names(self) -> list[str]:
        """Get names of configured top-level steps in declared order."""
        return [stage.name for stage in self._stages]

    def get_step_names(self) -> list[str]:
        """Get names of the leaf steps in execution order (phases expanded)."""
        return [name for stage in self._stages for name in stage.step_names]

    async def run(
        self,
        initial_input: Any,
        context: PipelineContext | None = None,
        cancel_token: CancellationToken | None = None,
    ) -> PipelineRun:
        """
        Execute the pipeline.

        Args:
            initial_input: Value bound under the reserved input key
            context: Optional pre-built context; it already carries the
                input, so initial_input is ignored when one is given
            cancel_token: Checked before each step; when set the run fails
                with FailureKind.CANCELLED at the step that would run next.
                Defaults to the token already attached to the context.

        Returns:
            PipelineRun with terminal state, outcome and step metrics
        """
        if context is None:
            context = PipelineContextBuilder().with_input(initial_input).build()
        if cancel_token is not None:
            context.cancel_token = cancel_token
        cancel_token = context.cancel_token

        run = PipelineRun(
            correlation_id=context.correlation_id,
            total_steps=len(self.get_step_names()),
        )
        resumed = {stage.name for stage in self._stages if stage.name in context}

        logger.info(
            "pipeline_coordinator_start",
            stages=len(self._stages),
            resumed=sorted(resumed),
            correlation_id=str(context.correlation_id),
        )

        run.transition(RunState.RUNNING)

        step_offset = 0
        for stage in self._stages:
            index = step_offset
            step_offset += len(stage.step_names)
            run.current_step_index = index

            if stage.name in resumed:
                logger.info(
                    "pipeline_stage_skipped",
                    stage=stage.name,
                    step_index=index,
                    correlation_id=str(context.correlation_id),
                )
                continue

            if cancel_token is not None and cancel_token.is_cancelled:
                logger.warning(
                    "pipeline_cancelled",
                    stage=stage.name,
                    step_index=index,
                    reason=cancel_token.reason,
                    correlation_id=str(context.correlation_id),
                )
                self._fail(
                    run,
                    Failure(
                        step_name=(stage.step_names or [stage.name])[0],
                        step_index=index,
                        kind=FailureKind.CANCELLED,
                        reason=cancel_token.reason,
                    ),
                )
                break

            if stage.name in context:
                self._fail(run, self._rebound(stage.name, index))
                break

            stage_result = await stage.run(context)
            if stage_result.inner_results is not None:
                run.stage_results.update(stage_result.inner_results)
            else:
                run.stage_results[stage.name] = stage_result

            if not stage_result.success:
                inner = stage_result.inner_failure
                failure = Failure(
                    step_name=inner.step_name if inner else stage.name,
                    step_index=index + inner.step_index if inner else index,
                    kind=stage_result.failure_kind or FailureKind.UNEXPECTED,
                    reason=stage_result.error or "unknown error",
                )
                logger.warning(
                    "pipeline_stage_failed",
                    stage=failure.step_name,
                    step_index=failure.step_index,
                    error=failure.reason,
                    failure_kind=failure.kind.value,
                    correlation_id=str(context.correlation_id),
                )
                self._fail(run, failure)
                break

            if stage.name in context:
                self._fail(run, self._rebound(stage.name, index))
                break
            context._bind(stage.name, stage_result.output)

        if run.state == RunState.RUNNING:
            run.current_step_index = None
            run.outcome = Success(self._projection(context))
            run.transition(RunState.SUCCEEDED)

        run.total_time_ms = context.get_total_time_ms()

        logger.info(
            "pipeline_coordinator_complete",
            success=run.success,
            state=run.state.value,
            stages_executed=len(run.stage_results),
            total_time_ms=round(run.total_time_ms, 2),
            correlation_id=str(context.correlation_id),
        )

        return run

    @staticmethod
    def _rebound(stage_name: str, index: int) -> Failure:
        return Failure(
            step_name=stage_name,
            step_index=index,
            kind=FailureKind.UNEXPECTED,
            reason=f"Output of '{stage_name}' was bound outside the coordinator",
        )

    @staticmethod
    def _fail(run: PipelineRun, failure: Failure) -> None:
        run.current_step_index = failure.step_index
        run.outcome = failure
        run.transition(RunState.FAILED)

    async def execute(
        self,
        initial_input: Any,
        cancel_token: CancellationToken | None = None,
    ) -> Outcome[Any]:
        """Run the pipeline and return only its terminal Outcome."""
        run = await self.run(initial_input, cancel_token=cancel_token)
        assert run.outcome is not None
        return run.outcome
