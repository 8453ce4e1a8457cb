"""
Data Access Services (users, orders, products).

In-memory stubs seeded with fixture records. Lookups never mutate the
fixtures; status updates return an updated copy of the order.
"""

from collections.abc import Iterable
from decimal import Decimal

import structlog

from fulfillment.models.entities import Order, OrderItem, OrderStatus, Product, User
from fulfillment.models.errors import FailureKind, OrderProcessingError
from fulfillment.services.simulation import ServiceSimulator

logger = structlog.get_logger(__name__)


def default_user(user_id: str) -> User:
    return User(id=user_id, name="John Doe", email="john@example.com")


def default_orders(user_id: str) -> list[Order]:
    return [
        Order(
            id="order123",
            user_id=user_id,
            items=(OrderItem(product_id="prod1", quantity=2),),
            status=OrderStatus.PENDING,
        )
    ]


def default_product(product_id: str) -> Product:
    return Product(id=product_id, name="Awesome Product", price=Decimal("49.99"), stock=10)


class UserService:
    """
    User lookup stub.

    Without configured users every id resolves to a default profile.
    """

    def __init__(self, simulator: ServiceSimulator, users: Iterable[User] | None = None) -> None:
        self._simulator = simulator
        self._users = {user.id: user for user in users} if users is not None else None

    async def fetch_user(self, user_id: str) -> User:
        logger.info("user_service_call", operation="fetch_user", user_id=user_id)
        await self._simulator.call("fetch_user", FailureKind.DATA_ACCESS, "Database connection failed")

        if self._users is None:
            return default_user(user_id)
        user = self._users.get(user_id)
        if user is None:
            raise OrderProcessingError(FailureKind.DATA_ACCESS, f"User {user_id} not found")
        return user


class OrderService:
    """
    Order lookup and status stub.

    Args:
        simulator: Shared call simulator
        orders: Fixture orders; None serves the default single pending order
    """

    def __init__(self, simulator: ServiceSimulator, orders: Iterable[Order] | None = None) -> None:
        self._simulator = simulator
        self._orders = tuple(orders) if orders is not None else None
        # Default orders served so far, by id (default orders are built per user)
        self._served: dict[str, Order] = {}

    async def fetch_orders(self, user_id: str) -> list[Order]:
        logger.info("order_service_call", operation="fetch_orders", user_id=user_id)
        await self._simulator.call("fetch_orders", FailureKind.DATA_ACCESS, "Failed to retrieve orders")

        if self._orders is None:
            orders = default_orders(user_id)
            self._served.update((order.id, order) for order in orders)
            return orders
        return [order for order in self._orders if order.user_id == user_id]

    async def set_order_status(self, order_id: str, status: OrderStatus) -> Order:
        logger.info(
            "order_service_call",
            operation="set_order_status",
            order_id=order_id,
            status=status.value,
        )
        await self._simulator.call(
            "set_order_status", FailureKind.DATA_ACCESS, "Failed to update order status"
        )

        order = self._find(order_id)
        if order is None:
            raise OrderProcessingError(FailureKind.DATA_ACCESS, f"Order {order_id} not found")
        return order.model_copy(update={"status": status})

    def _find(self, order_id: str) -> Order | None:
        if self._orders is None:
            return self._served.get(order_id)
        for order in self._orders:
            if order.id == order_id:
                return order
        return None


class ProductService:
    """Product catalog and inventory stub."""

    def __init__(
        self, simulator: ServiceSimulator, products: Iterable[Product] | None = None
    ) -> None:
        self._simulator = simulator
        self._products = {p.id: p for p in products} if products is not None else None

    async def fetch_product(self, product_id: str) -> Product:
        logger.info("product_service_call", operation="fetch_product", product_id=product_id)
        await self._simulator.call("fetch_product", FailureKind.DATA_ACCESS, "Product not found")

        if self._products is None:
            return default_product(product_id)
        product = self._products.get(product_id)
        if product is None:
            raise OrderProcessingError(FailureKind.DATA_ACCESS, "Product not found")
        return product

    async def check_stock(self, product: Product, quantity: int) -> bool:
        logger.info(
            "product_service_call",
            operation="check_stock",
            product_id=product.id,
            quantity=quantity,
        )
        await self._simulator.call("check_stock", FailureKind.INVENTORY, "Inventory system error")
        return product.stock >= quantity
