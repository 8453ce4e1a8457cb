"""Payment service stub."""

from decimal import Decimal

import structlog

from fulfillment.models.entities import Order, Payment, PaymentStatus
from fulfillment.models.errors import FailureKind
from fulfillment.services.simulation import ServiceSimulator, quantize_amount

logger = structlog.get_logger(__name__)


class PaymentService:
    """Charges orders; never refunds."""

    def __init__(self, simulator: ServiceSimulator) -> None:
        self._simulator = simulator

    async def charge(self, order: Order, amount: Decimal) -> Payment:
        amount = quantize_amount(amount)
        logger.info(
            "payment_service_call",
            operation="charge",
            order_id=order.id,
            amount=str(amount),
        )
        await self._simulator.call("charge", FailureKind.PAYMENT, "Payment processing failed")

        return Payment(
            id=self._simulator.payment_id(),
            order_id=order.id,
            amount=amount,
            status=PaymentStatus.COMPLETED,
        )
