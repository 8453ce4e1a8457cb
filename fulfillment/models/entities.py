"""
Order Fulfillment Entity Models.

Pydantic models for the records exchanged between the stubbed services
and the order pipeline steps.
"""

from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class OrderStatus(str, Enum):
    """Order lifecycle status."""

    PENDING = "pending"
    PROCESSING = "processing"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    """Payment settlement status."""

    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"


class User(BaseModel):
    """Customer placing the order."""

    id: str = Field(..., min_length=1, description="User identifier")
    name: str = Field(..., description="Display name")
    email: str = Field(..., description="Address for order confirmations")

    model_config = ConfigDict(frozen=True)


class OrderItem(BaseModel):
    """Single product line of an order."""

    product_id: str = Field(..., min_length=1, description="Product identifier")
    quantity: int = Field(..., gt=0, description="Units ordered")

    model_config = ConfigDict(frozen=True)


class Order(BaseModel):
    """
    Customer order.

    Status changes never mutate an existing Order; services return an
    updated copy via model_copy().
    """

    id: str = Field(..., min_length=1, description="Order identifier")
    user_id: str = Field(..., description="Owning user identifier")
    items: tuple[OrderItem, ...] = Field(default_factory=tuple, description="Ordered lines")
    status: OrderStatus = Field(default=OrderStatus.PENDING, description="Current status")
    payment_id: str | None = Field(default=None, description="Payment reference once charged")

    model_config = ConfigDict(frozen=True)


class Product(BaseModel):
    """Catalog product with available stock."""

    id: str = Field(..., min_length=1, description="Product identifier")
    name: str = Field(..., description="Product name")
    price: Decimal = Field(..., ge=Decimal("0"), description="Unit price")
    stock: int = Field(..., ge=0, description="Units available")

    model_config = ConfigDict(frozen=True)


class Payment(BaseModel):
    """Charge recorded against an order."""

    id: str = Field(..., description="Payment identifier (pay_...)")
    order_id: str = Field(..., description="Charged order")
    amount: Decimal = Field(..., ge=Decimal("0"), description="Charged amount")
    status: PaymentStatus = Field(default=PaymentStatus.PENDING, description="Settlement status")

    model_config = ConfigDict(frozen=True)


class ShippingInfo(BaseModel):
    """Shipment created for an order."""

    order_id: str = Field(..., description="Shipped order")
    address: str = Field(..., description="Destination address")
    tracking_number: str | None = Field(default=None, description="Carrier tracking number")

    model_config = ConfigDict(frozen=True)


class OrderRequest(BaseModel):
    """
    Input of one order pipeline run.

    Bound into the pipeline context under the reserved input key.

    Example:
    --------
    >>> OrderRequest(user_id="user123", product_id="prod1", quantity=2, address="123 Main St")
    """

    user_id: str = Field(..., min_length=1, description="Customer identifier")
    product_id: str = Field(..., min_length=1, description="Product to order")
    quantity: int = Field(..., gt=0, description="Units to order")
    address: str = Field(..., min_length=1, description="Shipping destination")

    model_config = ConfigDict(frozen=True)
