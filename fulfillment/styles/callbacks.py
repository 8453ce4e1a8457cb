"""
Continuation (callback) front-end.

The caller passes a completion handler ``callback(error, result)``. Every
run invokes it exactly once: with (None, confirmation) on success or with
(error, None) on any failure, including cancellation of the run task.
"""

import asyncio
from collections.abc import Callable
from typing import Any

import structlog

from fulfillment.orchestrator.pipeline.result import Success
from fulfillment.services.container import Services
from fulfillment.workflows.order_fulfillment import run_order_pipeline

logger = structlog.get_logger(__name__)

CompletionCallback = Callable[[BaseException | None, Any], None]


class CompletionHandler:
    """
    Exactly-once wrapper around a completion callback.

    Raises:
        RuntimeError: On a second completion
    """

    def __init__(self, callback: CompletionCallback) -> None:
        self._callback = callback
        self._completed = False

    @property
    def completed(self) -> bool:
        return self._completed

    def complete(self, error: BaseException | None, result: Any = None) -> None:
        if self._completed:
            raise RuntimeError("Completion callback invoked more than once")
        self._completed = True
        self._callback(error, result)


def process_order_with_callback(
    user_id: str,
    product_id: str,
    quantity: int,
    address: str,
    callback: CompletionCallback,
    *,
    services: Services | None = None,
) -> "asyncio.Task[None]":
    """
    Start an order run that reports through callback.

    Must be called with a running event loop. The returned task finishes
    after the callback has been invoked. Cancelling the task completes the
    callback with asyncio.CancelledError as the error.

    Example:
        >>> def on_done(error, result):
        ...     print("Error:" if error else "Success:", error or result)
        >>> await process_order_with_callback("user123", "prod1", 2, "123 Main St", on_done)
    """
    handler = CompletionHandler(callback)

    async def _drive() -> None:
        try:
            outcome = await run_order_pipeline(
                user_id, product_id, quantity, address, services=services
            )
        except Exception as e:
            logger.error("order_callback_error", error=str(e), error_type=type(e).__name__)
            handler.complete(e, None)
            return

        if isinstance(outcome, Success):
            handler.complete(None, outcome.value)
        else:
            handler.complete(outcome.to_error(), None)

    def _on_cancelled(task: "asyncio.Task[None]") -> None:
        if task.cancelled() and not handler.completed:
            logger.warning("order_callback_cancelled")
            handler.complete(asyncio.CancelledError(), None)

    task = asyncio.get_running_loop().create_task(_drive())
    task.add_done_callback(_on_cancelled)
    return task
