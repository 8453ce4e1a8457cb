"""Models package."""

from fulfillment.models.entities import (
    Order,
    OrderItem,
    OrderRequest,
    OrderStatus,
    Payment,
    PaymentStatus,
    Product,
    ShippingInfo,
    User,
)
from fulfillment.models.errors import (
    FailureKind,
    OrderProcessingError,
    PipelineConfigurationError,
    PipelineError,
    PipelineStateError,
)

__all__ = [
    "FailureKind",
    "Order",
    "OrderItem",
    "OrderProcessingError",
    "OrderRequest",
    "OrderStatus",
    "Payment",
    "PaymentStatus",
    "PipelineConfigurationError",
    "PipelineError",
    "PipelineStateError",
    "Product",
    "ShippingInfo",
    "User",
]
