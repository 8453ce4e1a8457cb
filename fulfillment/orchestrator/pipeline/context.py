"""
Pipeline Context and Builder.

Provides the per-run context that carries the initial input and the
outputs of completed steps, with timing and error tracking.
"""

from __future__ import annotations

import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any
from uuid import UUID, uuid4

from fulfillment.models.errors import PipelineStateError
from fulfillment.orchestrator.pipeline.cancellation import CancellationToken

INPUT_KEY = "__input__"


@dataclass
class StageError:
    """Error recorded during stage execution."""

    stage_name: str
    error: Exception
    timestamp: float = field(default_factory=time.time)

    @property
    def message(self) -> str:
        """Get error message."""
        return str(self.error)


@dataclass
class StageTiming:
    """Timing information for a stage."""

    stage_name: str
    start_time: float
    end_time: float | None = None

    @property
    def duration_ms(self) -> float:
        """Get duration in milliseconds."""
        if self.end_time is None:
            return 0.0
        return (self.end_time - self.start_time) * 1000


@dataclass
class PipelineContext:
    """
    Context for passing data between pipeline steps.

    Provides:
    - Correlation ID for request tracing
    - The run's initial input under the reserved INPUT_KEY
    - Outputs of completed steps, keyed by step name (bind-once)
    - Timing tracking per step
    - Error recording

    Steps read outputs through get()/[]/outputs; only the coordinator binds.

    Attributes:
        correlation_id: Unique identifier for this pipeline run
        timings: Timing records for each step
        errors: Errors recorded during execution
        cancel_token: Cancellation signal shared with nested pipelines
    """

    correlation_id: UUID
    _outputs: dict[str, Any] = field(default_factory=dict, repr=False)
    timings: list[StageTiming] = field(default_factory=list)
    errors: list[StageError] = field(default_factory=list)
    cancel_token: CancellationToken | None = field(default=None, repr=False)

    @property
    def input(self) -> Any:
        """Initial input of the run."""
        return self._outputs.get(INPUT_KEY)

    @property
    def outputs(self) -> Mapping[str, Any]:
        """Read-only view of bound values (input and step outputs)."""
        return MappingProxyType(self._outputs)

    @property
    def step_names(self) -> list[str]:
        """Names of steps whose outputs are bound, in binding order."""
        return [key for key in self._outputs if key != INPUT_KEY]

    @contextmanager
    def timer(self, stage_name: str) -> Iterator[StageTiming]:
        """
        Context manager for timing a step.

        Usage:
            with context.timer("fetch_user") as timing:
                # Step execution
                pass
            print(f"Took {timing.duration_ms}ms")
        """
        timing = StageTiming(stage_name=stage_name, start_time=time.perf_counter())
        self.timings.append(timing)
        try:
            yield timing
        finally:
            timing.end_time = time.perf_counter()

    def add_error(self, stage_name: str, error: Exception) -> None:
        """Record an error from a step."""
        self.errors.append(StageError(stage_name=stage_name, error=error))

    def get_timing(self, stage_name: str) -> StageTiming | None:
        """Get timing for a specific step."""
        for timing in self.timings:
            if timing.stage_name == stage_name:
                return timing
        return None

    def get_total_time_ms(self) -> float:
        """Get total execution time across all steps."""
        return sum(t.duration_ms for t in self.timings)

    @property
    def has_errors(self) -> bool:
        """Check if any errors were recorded."""
        return len(self.errors) > 0

    def _bind(self, key: str, value: Any) -> None:
        """
        Bind a step output under its name. Called by the coordinator only.

        Raises:
            PipelineStateError: If the key is already bound
        """
        if key in self._outputs:
            raise PipelineStateError(f"Context key '{key}' is already bound")
        self._outputs[key] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Retrieve an output from a previous step."""
        return self._outputs.get(key, default)

    def __getitem__(self, key: str) -> Any:
        return self._outputs[key]

    def __contains__(self, key: object) -> bool:
        return key in self._outputs


class PipelineContextBuilder:
    """
    Builder for creating PipelineContext instances.

    Provides a fluent interface for context construction.

    Example:
        context = (
            PipelineContextBuilder()
            .with_input(order_request)
            .with_data("fetch_user", user)
            .build()
        )
    """

    def __init__(self) -> None:
        """Initialize builder with defaults."""
        self._correlation_id: UUID | None = None
        self._input: Any = None
        self._data: dict[str, Any] = {}

    def with_correlation_id(self, correlation_id: UUID) -> PipelineContextBuilder:
        """Set correlation ID."""
        self._correlation_id = correlation_id
        return self

    def with_input(self, value: Any) -> PipelineContextBuilder:
        """Set the initial input bound under INPUT_KEY."""
        self._input = value
        return self

    def with_data(self, key: str, value: Any) -> PipelineContextBuilder:
        """
        Pre-bind a step output.

        The coordinator skips steps whose output is already bound, so a run
        can resume after the last completed step.
        """
        if key == INPUT_KEY:
            raise ValueError(f"'{INPUT_KEY}' is reserved; use with_input()")
        self._data[key] = value
        return self

    def build(self) -> PipelineContext:
        """
        Build the PipelineContext.

        Generates a correlation ID if not provided.

        Returns:
            Configured PipelineContext instance
        """
        outputs: dict[str, Any] = {INPUT_KEY: self._input}
        outputs.update(self._data)
        return PipelineContext(
            correlation_id=self._correlation_id or uuid4(),
            _outputs=outputs,
        )
