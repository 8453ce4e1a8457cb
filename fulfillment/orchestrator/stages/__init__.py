"""
Pipeline Stages Package.

Provides the step base classes used to assemble pipelines.
"""

from fulfillment.orchestrator.stages.base import FunctionStage, PipelineStage, StepFunction
from fulfillment.orchestrator.stages.phase import PhaseStage

__all__ = [
    "FunctionStage",
    "PhaseStage",
    "PipelineStage",
    "StepFunction",
]
