"""
Pipeline Stage Base Class.

Provides the abstract base class for pipeline steps with timing, logging
and failure capture, and FunctionStage for steps defined as plain
coroutine functions.
"""

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

import structlog

from fulfillment.models.errors import FailureKind, OrderProcessingError
from fulfillment.orchestrator.pipeline.context import PipelineContext
from fulfillment.orchestrator.pipeline.result import StepResult

logger = structlog.get_logger(__name__)

TOutput = TypeVar("TOutput")

StepFunction = Callable[[PipelineContext], Awaitable[Any]]


class PipelineStage(ABC, Generic[TOutput]):
    """
    Abstract base class for pipeline steps.

    Generic over output type TOutput for type-safe pipelines.

    Provides:
    - Standard run() method with timing and failure capture
    - Abstract execute() method for step-specific logic
    - Structured logging with step name and correlation_id

    Subclasses must implement:
    - name property: Unique step identifier
    - execute(): The actual step logic. Raise OrderProcessingError to
      signal a tagged failure; any other exception is reported as
      FailureKind.UNEXPECTED.

    Example:
        >>> class FetchUserStage(PipelineStage[User]):
        ...     @property
        ...     def name(self) -> str:
        ...         return "fetch_user"
        ...
        ...     async def execute(self, context: PipelineContext) -> User:
        ...         return await users.fetch_user(context.input.user_id)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """
        Unique identifier for this step.

        Returns:
            Step name string (e.g., "fetch_user", "check_stock")
        """
        pass

    @property
    def step_names(self) -> list[str]:
        """Names of the leaf steps this stage runs (just its own name)."""
        return [self.name]

    @abstractmethod
    async def execute(self, context: PipelineContext) -> TOutput:
        """
        Execute the step logic.

        Args:
            context: Pipeline context with the run input and prior outputs

        Returns:
            Step-specific output data of type TOutput
        """
        pass

    async def run(self, context: PipelineContext) -> StepResult[TOutput]:
        """
        Run step with timing and failure capture.

        Wraps execute() with:
        - Timing via context.timer() (single source of truth)
        - Structured logging
        - Failure capture and result creation

        Args:
            context: Pipeline context

        Returns:
            StepResult with success status, output, timing, and any failure
        """
        logger.debug(
            "pipeline_stage_start",
            stage=self.name,
            correlation_id=str(context.correlation_id),
        )

        try:
            with context.timer(self.name) as timing:
                output = await self.execute(context)

            execution_time_ms = timing.duration_ms

            logger.debug(
                "pipeline_stage_complete",
                stage=self.name,
                success=True,
                execution_time_ms=round(execution_time_ms, 2),
                correlation_id=str(context.correlation_id),
            )

            return StepResult.ok(
                output=output,
                stage_name=self.name,
                execution_time_ms=execution_time_ms,
            )

        except Exception as e:
            # Timer records even on exception
            timing = context.get_timing(self.name)
            execution_time_ms = timing.duration_ms if timing else 0.0
            context.add_error(self.name, e)

            if isinstance(e, OrderProcessingError):
                kind = e.kind
                reason = e.message
            else:
                kind = FailureKind.UNEXPECTED
                reason = str(e) or type(e).__name__

            logger.error(
                "pipeline_stage_error",
                stage=self.name,
                error=reason,
                error_type=type(e).__name__,
                failure_kind=kind.value,
                execution_time_ms=round(execution_time_ms, 2),
                correlation_id=str(context.correlation_id),
            )

            return StepResult.fail(
                error=reason,
                stage_name=self.name,
                failure_kind=kind,
                execution_time_ms=execution_time_ms,
            )


class FunctionStage(PipelineStage[Any]):
    """
    Step backed by a coroutine function of the context.

    Example:
        >>> async def fetch_user(context: PipelineContext) -> User:
        ...     return await users.fetch_user(context.input.user_id)
        >>> stage = FunctionStage("fetch_user", fetch_user)
    """

    def __init__(self, name: str, func: StepFunction) -> None:
        if not name:
            raise ValueError("Step name must be a non-empty string")
        self._name = name
        self._func = func

    @property
    def name(self) -> str:
        return self._name

    async def execute(self, context: PipelineContext) -> Any:
        return await self._func(context)

    def __repr__(self) -> str:
        return f"FunctionStage(name={self._name!r})"
