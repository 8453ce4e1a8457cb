"""Shipping and notification service stubs."""

import structlog

from fulfillment.models.entities import Order, ShippingInfo
from fulfillment.models.errors import FailureKind
from fulfillment.services.simulation import ServiceSimulator

logger = structlog.get_logger(__name__)


class ShippingService:
    """Creates shipments with a generated tracking number."""

    def __init__(self, simulator: ServiceSimulator) -> None:
        self._simulator = simulator

    async def ship(self, order: Order, address: str) -> ShippingInfo:
        logger.info("shipping_service_call", operation="ship", order_id=order.id, address=address)
        await self._simulator.call("ship", FailureKind.SHIPPING, "Shipping service unavailable")

        return ShippingInfo(
            order_id=order.id,
            address=address,
            tracking_number=self._simulator.tracking_number(),
        )


class NotificationService:
    """Sends order confirmations (logged only)."""

    def __init__(self, simulator: ServiceSimulator) -> None:
        self._simulator = simulator

    async def notify(self, email: str, order: Order, shipping: ShippingInfo) -> bool:
        logger.info("notification_service_call", operation="notify", email=email, order_id=order.id)
        await self._simulator.call("notify", FailureKind.NOTIFICATION, "Email service down")

        logger.info(
            "order_confirmation_sent",
            email=email,
            order_id=order.id,
            tracking_number=shipping.tracking_number,
        )
        return True
