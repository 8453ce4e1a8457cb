"""
Pipeline Result Models.

Provides the per-step StepResult, the terminal Outcome of a run
(Success or Failure) and the RunState machine states.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, TypeVar, Union

from fulfillment.models.errors import FailureKind, OrderProcessingError

T = TypeVar("T")


class RunState(str, Enum):
    """
    Lifecycle of one pipeline run.

    NOT_STARTED -> RUNNING -> SUCCEEDED | FAILED. Terminal states are final.
    """

    NOT_STARTED = "NOT_STARTED"
    RUNNING = "RUNNING"
    SUCCEEDED = "SUCCEEDED"
    FAILED = "FAILED"

    @property
    def is_terminal(self) -> bool:
        return self in (RunState.SUCCEEDED, RunState.FAILED)


@dataclass
class StepResult(Generic[T]):
    """
    Result from a single step execution.

    Generic over output type T for type-safe step outputs.
    Contains success status, output data, failure info, and timing metrics.

    Attributes:
        success: Whether the step completed successfully
        output: Step output data (type T)
        error: Failure reason if the step failed
        failure_kind: Tagged kind of the failure
        execution_time_ms: Step execution time in milliseconds
        stage_name: Name of the step that produced this result
        inner_results: Per-step results of a nested pipeline, in execution order
        inner_failure: Failure reported by a nested pipeline
    """

    success: bool
    output: T | None = None
    error: str | None = None
    failure_kind: FailureKind | None = None
    execution_time_ms: float = 0.0
    stage_name: str = ""
    inner_results: "dict[str, StepResult[Any]] | None" = None
    inner_failure: "Failure | None" = None

    @classmethod
    def ok(
        cls,
        output: T,
        stage_name: str,
        execution_time_ms: float = 0.0,
        inner_results: "dict[str, StepResult[Any]] | None" = None,
    ) -> "StepResult[T]":
        """Create a successful result."""
        return cls(
            success=True,
            output=output,
            stage_name=stage_name,
            execution_time_ms=execution_time_ms,
            inner_results=inner_results,
        )

    @classmethod
    def fail(
        cls,
        error: str,
        stage_name: str,
        failure_kind: FailureKind = FailureKind.UNEXPECTED,
        execution_time_ms: float = 0.0,
        inner_results: "dict[str, StepResult[Any]] | None" = None,
        inner_failure: "Failure | None" = None,
    ) -> "StepResult[Any]":
        """Create a failed result."""
        return cls(
            success=False,
            output=None,
            error=error,
            failure_kind=failure_kind,
            stage_name=stage_name,
            execution_time_ms=execution_time_ms,
            inner_results=inner_results,
            inner_failure=inner_failure,
        )


@dataclass(frozen=True)
class Success(Generic[T]):
    """Terminal outcome of a run where every step completed."""

    value: T

    @property
    def is_success(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    """
    Terminal outcome of a run that stopped at a failing step.

    Attributes:
        step_name: Name of the failing step
        step_index: Zero-based position of the failing step
        kind: Tagged failure kind
        reason: Failure message
    """

    step_name: str
    step_index: int
    kind: FailureKind
    reason: str

    @property
    def is_success(self) -> bool:
        return False

    def to_error(self) -> OrderProcessingError:
        """Build the exception raised by front-ends that surface failures."""
        return OrderProcessingError(self.kind, self.reason, step_name=self.step_name)

    def unwrap(self) -> Any:
        raise self.to_error()

    def describe(self) -> str:
        return f"{self.step_name} failed ({self.kind.value}): {self.reason}"


Outcome = Union[Success[T], Failure]

