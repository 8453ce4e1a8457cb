"""Workflows assembled on the pipeline executor."""

from fulfillment.workflows.order_fulfillment import (
    NO_ORDERS_FOUND,
    OUT_OF_STOCK,
    PHASES,
    STEP_NAMES,
    OrderFulfillmentSteps,
    build_order_pipeline,
    confirmation_message,
    run_order_pipeline,
)

__all__ = [
    "NO_ORDERS_FOUND",
    "OUT_OF_STOCK",
    "PHASES",
    "STEP_NAMES",
    "OrderFulfillmentSteps",
    "build_order_pipeline",
    "confirmation_message",
    "run_order_pipeline",
]
