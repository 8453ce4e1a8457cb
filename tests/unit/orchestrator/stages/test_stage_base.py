"""
Unit tests for PipelineStage and FunctionStage.
"""

import asyncio

import pytest

from fulfillment.models.errors import FailureKind, OrderProcessingError
from fulfillment.orchestrator.pipeline.context import PipelineContext, PipelineContextBuilder
from fulfillment.orchestrator.stages.base import FunctionStage, PipelineStage


class TestPipelineStage:
    """Tests for PipelineStage abstract base class."""

    def test_cannot_instantiate_abstract(self):
        with pytest.raises(TypeError):
            PipelineStage()

    @pytest.mark.asyncio
    async def test_run_success(self):
        """Test successful stage run."""

        class DoubleStage(PipelineStage[int]):
            @property
            def name(self) -> str:
                return "double_stage"

            async def execute(self, context: PipelineContext) -> int:
                await asyncio.sleep(0.001)
                return context.input * 2

        context = PipelineContextBuilder().with_input(5).build()

        result = await DoubleStage().run(context)

        assert result.success is True
        assert result.output == 10
        assert result.error is None
        assert result.failure_kind is None
        assert result.stage_name == "double_stage"
        assert result.execution_time_ms > 0

    @pytest.mark.asyncio
    async def test_run_tagged_failure(self):
        """Test OrderProcessingError keeps its kind and message."""

        class OutOfStockStage(PipelineStage[bool]):
            @property
            def name(self) -> str:
                return "check_stock"

            async def execute(self, context: PipelineContext) -> bool:
                raise OrderProcessingError(FailureKind.BUSINESS_RULE, "out of stock")

        context = PipelineContextBuilder().build()

        result = await OutOfStockStage().run(context)

        assert result.success is False
        assert result.output is None
        assert result.error == "out of stock"
        assert result.failure_kind == FailureKind.BUSINESS_RULE

    @pytest.mark.asyncio
    async def test_run_untagged_failure(self):
        """Test other exceptions become UNEXPECTED failures."""

        class FailingStage(PipelineStage[None]):
            @property
            def name(self) -> str:
                return "failing_stage"

            async def execute(self, context: PipelineContext) -> None:
                raise ValueError("Processing failed")

        result = await FailingStage().run(PipelineContextBuilder().build())

        assert result.success is False
        assert result.error == "Processing failed"
        assert result.failure_kind == FailureKind.UNEXPECTED

    @pytest.mark.asyncio
    async def test_run_empty_exception_message_uses_type_name(self):
        class SilentStage(PipelineStage[None]):
            @property
            def name(self) -> str:
                return "silent"

            async def execute(self, context: PipelineContext) -> None:
                raise KeyError()

        result = await SilentStage().run(PipelineContextBuilder().build())

        assert result.error == "KeyError"

    @pytest.mark.asyncio
    async def test_run_records_error_and_timing_in_context(self):
        class FailingStage(PipelineStage[None]):
            @property
            def name(self) -> str:
                return "ship"

            async def execute(self, context: PipelineContext) -> None:
                raise OrderProcessingError(FailureKind.SHIPPING, "Shipping service unavailable")

        context = PipelineContextBuilder().build()

        await FailingStage().run(context)

        assert context.has_errors is True
        assert context.errors[0].stage_name == "ship"
        assert context.get_timing("ship") is not None

    @pytest.mark.asyncio
    async def test_run_does_not_bind_output(self):
        """Test binding is left to the coordinator."""

        class EchoStage(PipelineStage[str]):
            @property
            def name(self) -> str:
                return "echo"

            async def execute(self, context: PipelineContext) -> str:
                return "out"

        context = PipelineContextBuilder().build()

        await EchoStage().run(context)

        assert "echo" not in context


class TestFunctionStage:
    """Tests for FunctionStage."""

    @pytest.mark.asyncio
    async def test_wraps_coroutine_function(self):
        async def fetch_user(context: PipelineContext) -> str:
            return f"user:{context.input}"

        stage = FunctionStage("fetch_user", fetch_user)
        result = await stage.run(PipelineContextBuilder().with_input("user123").build())

        assert stage.name == "fetch_user"
        assert result.output == "user:user123"

    def test_empty_name_rejected(self):
        async def noop(context):
            return None

        with pytest.raises(ValueError):
            FunctionStage("", noop)

    def test_repr(self):
        async def noop(context):
            return None

        assert repr(FunctionStage("notify", noop)) == "FunctionStage(name='notify')"
