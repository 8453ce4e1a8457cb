"""
Direct (async/await) front-end.

Awaits the order run and raises OrderProcessingError once at the boundary.
"""

import structlog

from fulfillment.orchestrator.pipeline.result import Success
from fulfillment.services.container import Services
from fulfillment.workflows.order_fulfillment import run_order_pipeline

logger = structlog.get_logger(__name__)


async def process_order(
    user_id: str,
    product_id: str,
    quantity: int,
    address: str,
    *,
    services: Services | None = None,
) -> str:
    """
    Process an order and return its confirmation.

    Raises:
        OrderProcessingError: Carrying the failing step, kind and reason
    """
    outcome = await run_order_pipeline(
        user_id, product_id, quantity, address, services=services
    )
    if isinstance(outcome, Success):
        return outcome.value

    error = outcome.to_error()
    logger.error(
        "order_processing_error",
        step=error.step_name,
        failure_kind=error.kind.value,
        error=error.message,
    )
    raise error
