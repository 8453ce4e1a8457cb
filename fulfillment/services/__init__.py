"""Stubbed order fulfillment collaborators."""

from fulfillment.services.catalog import OrderService, ProductService, UserService
from fulfillment.services.container import Services
from fulfillment.services.payment import PaymentService
from fulfillment.services.shipping import NotificationService, ShippingService
from fulfillment.services.simulation import (
    DEFAULT_LATENCIES_MS,
    OPERATIONS,
    FailureInjector,
    ServiceSimulator,
)

__all__ = [
    "DEFAULT_LATENCIES_MS",
    "OPERATIONS",
    "FailureInjector",
    "NotificationService",
    "OrderService",
    "PaymentService",
    "ProductService",
    "ServiceSimulator",
    "Services",
    "ShippingService",
    "UserService",
]
