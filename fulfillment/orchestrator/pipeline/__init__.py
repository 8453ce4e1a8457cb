"""
Pipeline Infrastructure Package.

Provides context, results, cancellation and coordination for pipeline steps.
"""

from fulfillment.orchestrator.pipeline.cancellation import CancellationToken
from fulfillment.orchestrator.pipeline.context import (
    INPUT_KEY,
    PipelineContext,
    PipelineContextBuilder,
)
from fulfillment.orchestrator.pipeline.coordinator import PipelineCoordinator, PipelineRun
from fulfillment.orchestrator.pipeline.result import (
    Failure,
    Outcome,
    RunState,
    StepResult,
    Success,
)

__all__ = [
    "INPUT_KEY",
    "CancellationToken",
    "Failure",
    "Outcome",
    "PipelineContext",
    "PipelineContextBuilder",
    "PipelineCoordinator",
    "PipelineRun",
    "RunState",
    "StepResult",
    "Success",
]
