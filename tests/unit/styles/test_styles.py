"""
Unit tests for the control-flow front-ends.

All four styles must report the same result for the same step outcomes.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from fulfillment.models.errors import FailureKind, OrderProcessingError
from fulfillment.orchestrator.pipeline.result import Failure, Success
from fulfillment.styles.callbacks import CompletionHandler, process_order_with_callback
from fulfillment.styles.deferred import _pending_tasks, process_order_deferred, then
from fulfillment.styles.direct import process_order
from fulfillment.styles.effects import (
    AMBIENT_FAILURE_KINDS,
    DEFAULT_HANDLERS,
    RECOVERY_TEMPLATES,
    STEP_FAILURE_KINDS,
    catch_tags,
    possible_failure_kinds,
    process_order_with_recovery,
    recover,
)
from fulfillment.workflows.order_fulfillment import STEP_NAMES

ORDER = ("user123", "prod1", 2, "123 Main St")


class TestDirectStyle:
    """Tests for process_order."""

    @pytest.mark.asyncio
    async def test_success(self, services):
        confirmation = await process_order(*ORDER, services=services)

        assert confirmation.startswith("Order order123 processed successfully")

    @pytest.mark.asyncio
    async def test_failure_raises_once(self, make_services):
        services = make_services(forced_failures={"charge"})

        with pytest.raises(OrderProcessingError) as exc_info:
            await process_order(*ORDER, services=services)

        assert exc_info.value.step_name == "charge"
        assert exc_info.value.kind == FailureKind.PAYMENT
        assert exc_info.value.message == "Payment processing failed"


class TestCallbackStyle:
    """Tests for process_order_with_callback."""

    @pytest.mark.asyncio
    async def test_success_invokes_callback_once(self, services):
        callback = MagicMock()

        await process_order_with_callback(*ORDER, callback, services=services)

        callback.assert_called_once()
        error, result = callback.call_args.args
        assert error is None
        assert result.startswith("Order order123")

    @pytest.mark.asyncio
    async def test_failure_invokes_callback_with_error(self, make_services):
        services = make_services(forced_failures={"ship"})
        callback = MagicMock()

        await process_order_with_callback(*ORDER, callback, services=services)

        callback.assert_called_once()
        error, result = callback.call_args.args
        assert isinstance(error, OrderProcessingError)
        assert error.step_name == "ship"
        assert result is None

    @pytest.mark.asyncio
    async def test_validation_error_reaches_callback(self, services):
        callback = MagicMock()

        await process_order_with_callback("user123", "prod1", 0, "addr", callback, services=services)

        error, result = callback.call_args.args
        assert error is not None
        assert result is None

    def test_completion_handler_exactly_once(self):
        callback = MagicMock()
        handler = CompletionHandler(callback)

        handler.complete(None, "done")

        assert handler.completed is True
        with pytest.raises(RuntimeError, match="more than once"):
            handler.complete(ValueError("late"), None)
        callback.assert_called_once_with(None, "done")

    @pytest.mark.asyncio
    async def test_cancelled_run_completes_callback(self, services):
        """Test cancelling the run task still reports through the callback."""

        async def hang(user_id):
            await asyncio.Event().wait()

        services.users.fetch_user = hang
        callback = MagicMock()

        task = process_order_with_callback(*ORDER, callback, services=services)
        await asyncio.sleep(0)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0)

        callback.assert_called_once()
        error, result = callback.call_args.args
        assert isinstance(error, asyncio.CancelledError)
        assert result is None

    @pytest.mark.asyncio
    async def test_cancelled_before_start_completes_callback(self, services):
        callback = MagicMock()

        task = process_order_with_callback(*ORDER, callback, services=services)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task
        await asyncio.sleep(0)

        callback.assert_called_once()
        assert isinstance(callback.call_args.args[0], asyncio.CancelledError)


class TestDeferredStyle:
    """Tests for process_order_deferred and then()."""

    @pytest.mark.asyncio
    async def test_future_resolves(self, services):
        future = process_order_deferred(*ORDER, services=services)

        assert isinstance(future, asyncio.Future)
        assert (await future).startswith("Order order123")

    @pytest.mark.asyncio
    async def test_future_fails(self, make_services):
        services = make_services(forced_failures={"notify"})

        with pytest.raises(OrderProcessingError) as exc_info:
            await process_order_deferred(*ORDER, services=services)

        assert exc_info.value.step_name == "notify"
        assert exc_info.value.kind == FailureKind.NOTIFICATION

    @pytest.mark.asyncio
    async def test_then_success(self, services):
        chained = then(process_order_deferred(*ORDER, services=services), str.upper)

        assert (await chained).startswith("ORDER ORDER123")

    @pytest.mark.asyncio
    async def test_then_failure_handler(self, make_services):
        services = make_services(forced_failures={"fetch_user"})
        on_success = MagicMock()

        chained = then(
            process_order_deferred(*ORDER, services=services),
            on_success,
            lambda error: f"recovered: {error}",
        )

        assert await chained == "recovered: Database connection failed"
        on_success.assert_not_called()

    @pytest.mark.asyncio
    async def test_then_without_failure_handler_propagates(self, make_services):
        services = make_services(forced_failures={"fetch_user"})

        chained = then(process_order_deferred(*ORDER, services=services), str.upper)

        with pytest.raises(OrderProcessingError):
            await chained

    @pytest.mark.asyncio
    async def test_then_awaits_async_handler(self):
        future = asyncio.get_running_loop().create_future()
        future.set_result(2)
        handler = AsyncMock(return_value=4)

        assert await then(future, handler) == 4
        handler.assert_awaited_once_with(2)

    @pytest.mark.asyncio
    async def test_then_handler_exception_fails_chain(self):
        future = asyncio.get_running_loop().create_future()
        future.set_result(1)

        def explode(value):
            raise ValueError("handler failed")

        with pytest.raises(ValueError, match="handler failed"):
            await then(future, explode)

    @pytest.mark.asyncio
    async def test_then_propagates_cancellation(self):
        future = asyncio.get_running_loop().create_future()
        chained = then(future, str.upper)

        future.cancel()

        with pytest.raises(asyncio.CancelledError):
            await chained

    @pytest.mark.asyncio
    async def test_then_after_caller_cancelled_chain(self):
        """Test resolving the source after the chain was cancelled reports nothing."""
        loop = asyncio.get_running_loop()
        errors = MagicMock()
        previous = loop.get_exception_handler()
        loop.set_exception_handler(errors)
        try:
            source = loop.create_future()
            on_success = MagicMock()
            chained = then(source, on_success)

            chained.cancel()
            source.set_result("ok")
            await asyncio.sleep(0)
            await asyncio.sleep(0)
        finally:
            loop.set_exception_handler(previous)

        assert chained.cancelled()
        on_success.assert_not_called()
        errors.assert_not_called()

    @pytest.mark.asyncio
    async def test_then_chain_cancelled_while_handler_runs(self):
        """Test an async handler finishing after the chain was cancelled."""
        source = asyncio.get_running_loop().create_future()
        gate = asyncio.Event()

        async def slow_upper(value):
            await gate.wait()
            return value.upper()

        chained = then(source, slow_upper)
        source.set_result("ok")
        await asyncio.sleep(0)
        settling = set(_pending_tasks)

        chained.cancel()
        gate.set()
        await asyncio.gather(*settling)

        assert settling
        assert chained.cancelled()


class TestEffectStyle:
    """Tests for declared failure kinds and exhaustive recovery."""

    def test_every_step_declares_kinds(self):
        assert set(STEP_FAILURE_KINDS) == set(STEP_NAMES)

    def test_every_kind_has_template(self):
        assert set(RECOVERY_TEMPLATES) == set(FailureKind)
        assert set(DEFAULT_HANDLERS) == set(FailureKind)

    def test_possible_kinds_for_prefix(self):
        kinds = possible_failure_kinds(["fetch_user", "charge"])

        assert kinds == AMBIENT_FAILURE_KINDS | {FailureKind.DATA_ACCESS, FailureKind.PAYMENT}

    def test_possible_kinds_unknown_step(self):
        with pytest.raises(KeyError):
            possible_failure_kinds(["teleport"])

    def test_catch_tags_rejects_incomplete_handlers(self):
        handlers = {kind: DEFAULT_HANDLERS[kind] for kind in FailureKind}
        del handlers[FailureKind.SHIPPING]

        with pytest.raises(ValueError, match="SHIPPING"):
            catch_tags(Success("ok"), handlers)

    def test_catch_tags_accepts_handlers_for_subset_of_steps(self):
        handlers = {
            FailureKind.DATA_ACCESS: lambda f: "db",
            FailureKind.UNEXPECTED: lambda f: "unexpected",
            FailureKind.CANCELLED: lambda f: "cancelled",
        }
        failure = Failure("fetch_user", 0, FailureKind.DATA_ACCESS, "down")

        assert catch_tags(failure, handlers, step_names=["fetch_user"]) == "db"

    @pytest.mark.parametrize(
        "kind,expected",
        [
            (FailureKind.DATA_ACCESS, "Database error handled: boom"),
            (FailureKind.BUSINESS_RULE, "Business rule error handled: boom"),
            (FailureKind.INVENTORY, "Inventory error handled: boom"),
            (FailureKind.PAYMENT, "Payment error handled: boom"),
            (FailureKind.SHIPPING, "Shipping error handled: boom"),
            (FailureKind.NOTIFICATION, "Notification error handled: boom"),
            (FailureKind.UNEXPECTED, "Unexpected error handled: boom"),
            (FailureKind.CANCELLED, "Cancellation handled: boom"),
        ],
    )
    def test_recover_every_kind(self, kind, expected):
        assert recover(Failure("step", 0, kind, "boom")) == expected

    def test_recover_success(self):
        assert recover(Success("Order order123 shipped")) == "Order order123 shipped"

    @pytest.mark.asyncio
    async def test_recovery_always_returns_string(self, make_services):
        services = make_services(forced_failures={"check_stock"})

        summary = await process_order_with_recovery(*ORDER, services=services)

        assert summary == "Inventory error handled: Inventory system error"

    @pytest.mark.asyncio
    async def test_recovery_out_of_stock(self, services):
        summary = await process_order_with_recovery(
            "user123", "prod1", 50, "123 Main St", services=services
        )

        assert summary == "Business rule error handled: out of stock"


class TestStylesAgree:
    """Tests that all styles report the same outcome."""

    async def _all_styles(self, make_services, **kwargs):
        direct = await _settle(process_order(*ORDER, services=make_services(**kwargs)))
        deferred = await _settle(process_order_deferred(*ORDER, services=make_services(**kwargs)))

        done = asyncio.get_running_loop().create_future()
        await process_order_with_callback(
            *ORDER,
            lambda error, result: done.set_result((error, result)),
            services=make_services(**kwargs),
        )
        callback = await done

        effect = await process_order_with_recovery(*ORDER, services=make_services(**kwargs))
        return direct, deferred, callback, effect

    @pytest.mark.asyncio
    async def test_success_agrees(self, make_services):
        direct, deferred, callback, effect = await self._all_styles(make_services, seed=5)

        assert direct == (None, deferred[1])
        assert deferred == callback
        assert effect == direct[1]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("operation", ["fetch_orders", "charge", "ship"])
    async def test_failure_agrees(self, make_services, operation):
        direct, deferred, callback, effect = await self._all_styles(
            make_services, forced_failures={operation}
        )

        errors = [direct[0], deferred[0], callback[0]]
        assert len({(e.step_name, e.kind, e.message) for e in errors}) == 1
        assert all(result is None for result in (direct[1], deferred[1], callback[1]))
        assert effect == RECOVERY_TEMPLATES[errors[0].kind].format(reason=errors[0].message)


async def _settle(awaitable):
    try:
        return None, await awaitable
    except OrderProcessingError as e:
        return e, None
