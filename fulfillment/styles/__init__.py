"""
Control-flow front-ends over the order pipeline.

- callbacks: completion handler invoked exactly once
- deferred: asyncio.Future with a then() combinator
- direct: async/await, raises at the boundary
- effects: declared failure kinds with exhaustive recovery
"""

from fulfillment.styles.callbacks import CompletionHandler, process_order_with_callback
from fulfillment.styles.deferred import process_order_deferred, then
from fulfillment.styles.direct import process_order
from fulfillment.styles.effects import (
    STEP_FAILURE_KINDS,
    catch_tags,
    possible_failure_kinds,
    process_order_with_recovery,
    recover,
)

__all__ = [
    "STEP_FAILURE_KINDS",
    "CompletionHandler",
    "catch_tags",
    "possible_failure_kinds",
    "process_order",
    "process_order_deferred",
    "process_order_with_callback",
    "process_order_with_recovery",
    "recover",
    "then",
]
