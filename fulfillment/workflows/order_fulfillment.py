"""
Order Fulfillment Workflow.

Defines the nine dependent steps of the order flow and assembles them into
a PipelineCoordinator:

fetch_user → fetch_orders → fetch_product → check_stock → charge →
mark_processing → ship → mark_shipped → notify

The steps are grouped into three phases (verify_order_details,
handle_payment_and_update, handle_shipping), each a nested pipeline.
Failures still name the inner step and its position in the flat list.

Each step reads earlier outputs from the context by step name. Business
predicates ("no orders found", "out of stock") fail the step the same way
technical errors do. A failure after charge does not refund the payment.
"""

from typing import Any

import structlog

from fulfillment.config import settings
from fulfillment.models.entities import (
    Order,
    OrderRequest,
    OrderStatus,
    Payment,
    Product,
    ShippingInfo,
    User,
)
from fulfillment.models.errors import FailureKind, OrderProcessingError
from fulfillment.orchestrator.pipeline.cancellation import CancellationToken
from fulfillment.orchestrator.pipeline.context import PipelineContext
from fulfillment.orchestrator.pipeline.coordinator import PipelineCoordinator
from fulfillment.orchestrator.pipeline.result import Outcome
from fulfillment.orchestrator.stages.base import FunctionStage
from fulfillment.orchestrator.stages.phase import PhaseStage
from fulfillment.services.container import Services

logger = structlog.get_logger(__name__)

STEP_NAMES: tuple[str, ...] = (
    "fetch_user",
    "fetch_orders",
    "fetch_product",
    "check_stock",
    "charge",
    "mark_processing",
    "ship",
    "mark_shipped",
    "notify",
)

# Phase name -> steps, in execution order
PHASES: dict[str, tuple[str, ...]] = {
    "verify_order_details": STEP_NAMES[:4],
    "handle_payment_and_update": STEP_NAMES[4:6],
    "handle_shipping": STEP_NAMES[6:],
}

NO_ORDERS_FOUND = "no orders found"
OUT_OF_STOCK = "out of stock"


class OrderFulfillmentSteps:
    """
    Step bodies of the order flow, bound to one Services bundle.

    Every method takes the run context and returns the step output that
    the coordinator binds under the method's step name.
    """

    def __init__(self, services: Services) -> None:
        self.services = services

    async def fetch_user(self, context: PipelineContext) -> User:
        request: OrderRequest = context.input
        return await self.services.users.fetch_user(request.user_id)

    async def fetch_orders(self, context: PipelineContext) -> Order:
        """Returns the order being fulfilled (the user's first order)."""
        request: OrderRequest = context.input
        orders = await self.services.orders.fetch_orders(request.user_id)
        if not orders:
            raise OrderProcessingError(FailureKind.BUSINESS_RULE, NO_ORDERS_FOUND)
        return orders[0]

    async def fetch_product(self, context: PipelineContext) -> Product:
        request: OrderRequest = context.input
        return await self.services.products.fetch_product(request.product_id)

    async def check_stock(self, context: PipelineContext) -> bool:
        request: OrderRequest = context.input
        product: Product = context["fetch_product"]
        available = await self.services.products.check_stock(product, request.quantity)
        if not available:
            raise OrderProcessingError(FailureKind.BUSINESS_RULE, OUT_OF_STOCK)
        return available

    async def charge(self, context: PipelineContext) -> Payment:
        request: OrderRequest = context.input
        order: Order = context["fetch_orders"]
        product: Product = context["fetch_product"]
        return await self.services.payments.charge(order, product.price * request.quantity)

    async def mark_processing(self, context: PipelineContext) -> Order:
        order: Order = context["fetch_orders"]
        return await self.services.orders.set_order_status(order.id, OrderStatus.PROCESSING)

    async def ship(self, context: PipelineContext) -> ShippingInfo:
        request: OrderRequest = context.input
        order: Order = context["mark_processing"]
        return await self.services.shipping.ship(order, request.address)

    async def mark_shipped(self, context: PipelineContext) -> Order:
        order: Order = context["mark_processing"]
        return await self.services.orders.set_order_status(order.id, OrderStatus.SHIPPED)

    async def notify(self, context: PipelineContext) -> bool:
        user: User = context["fetch_user"]
        order: Order = context["mark_shipped"]
        shipping: ShippingInfo = context["ship"]
        return await self.services.notifications.notify(user.email, order, shipping)

    def stages(self) -> list[FunctionStage]:
        """Steps in declared order."""
        return [FunctionStage(name, getattr(self, name)) for name in STEP_NAMES]

    def phases(self) -> list[PhaseStage]:
        """Steps grouped into the verification, payment and shipping phases."""
        return [
            PhaseStage(phase, [FunctionStage(name, getattr(self, name)) for name in names])
            for phase, names in PHASES.items()
        ]


def confirmation_message(context: PipelineContext) -> str:
    """Success value of a completed order run."""
    order: Order = context["fetch_orders"]
    shipping: ShippingInfo = context["ship"]
    return (
        f"Order {order.id} processed successfully and shipped to {shipping.address} "
        f"with tracking number {shipping.tracking_number}"
    )


def build_order_pipeline(services: Services, phased: bool = True) -> PipelineCoordinator:
    """
    Assemble the order flow over the given collaborators.

    Args:
        services: Collaborators used by the steps
        phased: Group the steps into PHASES (default) or run them as one
            flat list; step names, indices and outcomes are the same
    """
    steps = OrderFulfillmentSteps(services)
    stages = steps.phases() if phased else steps.stages()
    return PipelineCoordinator(stages, projection=confirmation_message)


async def run_order_pipeline(
    user_id: str,
    product_id: str,
    quantity: int,
    address: str,
    *,
    services: Services | None = None,
    cancel_token: CancellationToken | None = None,
) -> Outcome[str]:
    """
    Run the order flow once.

    Args:
        user_id: Customer identifier
        product_id: Product to order
        quantity: Units to order (> 0)
        address: Shipping destination
        services: Collaborators (built from settings when omitted)
        cancel_token: Optional cooperative cancellation

    Returns:
        Success(confirmation string) or Failure(step_name, step_index, kind, reason)

    Raises:
        pydantic.ValidationError: If the request fields are invalid
    """
    request = OrderRequest(
        user_id=user_id,
        product_id=product_id,
        quantity=quantity,
        address=address,
    )
    if services is None:
        services = Services.from_settings(settings)

    coordinator = build_order_pipeline(services)
    run = await coordinator.run(request, cancel_token=cancel_token)

    outcome: Any = run.outcome
    if run.success:
        logger.info(
            "order_pipeline_succeeded",
            user_id=user_id,
            product_id=product_id,
            correlation_id=str(run.correlation_id),
        )
    else:
        logger.warning(
            "order_pipeline_failed",
            user_id=user_id,
            product_id=product_id,
            step=outcome.step_name,
            failure_kind=outcome.kind.value,
            reason=outcome.reason,
            correlation_id=str(run.correlation_id),
        )
    return outcome
