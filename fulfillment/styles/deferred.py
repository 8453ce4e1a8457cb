"""
Deferred-value front-end.

Returns an asyncio.Future for the order confirmation; failures travel
through the future's exception channel. then() chains continuations the
way promise chains do: a failure skips on_success and reaches the first
on_failure handler.
"""

import asyncio
import inspect
from collections.abc import Callable
from typing import Any

from fulfillment.orchestrator.pipeline.result import Success
from fulfillment.services.container import Services
from fulfillment.workflows.order_fulfillment import run_order_pipeline

# Strong references to in-flight tasks; the loop only keeps weak ones
_pending_tasks: set["asyncio.Task[None]"] = set()


def _spawn(coro: Any) -> None:
    task = asyncio.get_running_loop().create_task(coro)
    _pending_tasks.add(task)
    task.add_done_callback(_pending_tasks.discard)


def process_order_deferred(
    user_id: str,
    product_id: str,
    quantity: int,
    address: str,
    *,
    services: Services | None = None,
) -> "asyncio.Future[str]":
    """
    Start an order run and return a future for its confirmation.

    Must be called with a running event loop. The future fails with
    OrderProcessingError when a step fails.
    """
    loop = asyncio.get_running_loop()
    future: asyncio.Future[str] = loop.create_future()

    async def _resolve() -> None:
        try:
            outcome = await run_order_pipeline(
                user_id, product_id, quantity, address, services=services
            )
        except Exception as e:
            if not future.done():
                future.set_exception(e)
            return
        if future.done():
            return
        if isinstance(outcome, Success):
            future.set_result(outcome.value)
        else:
            future.set_exception(outcome.to_error())

    _spawn(_resolve())
    return future


def then(
    future: "asyncio.Future[Any]",
    on_success: Callable[[Any], Any],
    on_failure: Callable[[BaseException], Any] | None = None,
) -> "asyncio.Future[Any]":
    """
    Chain a continuation onto a deferred value.

    Handlers may return a plain value or an awaitable. Exceptions raised by
    a handler fail the returned future.

    Example:
        >>> confirmation = process_order_deferred("user123", "prod1", 2, "123 Main St")
        >>> shouted = then(confirmation, str.upper, lambda e: f"failed: {e}")
        >>> print(await shouted)
    """
    loop = asyncio.get_running_loop()
    chained: asyncio.Future[Any] = loop.create_future()

    async def _settle(handler: Callable[[Any], Any], value: Any) -> None:
        try:
            result = handler(value)
            if inspect.isawaitable(result):
                result = await result
        except Exception as e:
            if not chained.done():
                chained.set_exception(e)
            return
        if not chained.done():
            chained.set_result(result)

    def _on_done(source: "asyncio.Future[Any]") -> None:
        # The caller may have cancelled the chained future already
        if chained.done():
            if not source.cancelled():
                source.exception()
            return
        if source.cancelled():
            chained.cancel()
            return
        error = source.exception()
        if error is None:
            _spawn(_settle(on_success, source.result()))
        elif on_failure is not None:
            _spawn(_settle(on_failure, error))
        else:
            chained.set_exception(error)

    future.add_done_callback(_on_done)
    return chained
