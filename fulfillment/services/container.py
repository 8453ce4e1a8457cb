"""
Service Container.

Bundles one set of stubbed collaborators sharing a ServiceSimulator. Each
bundle owns its RNG, so independent runs built from separate bundles
share no mutable state.
"""

import random
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from fulfillment.config import FulfillmentSettings
from fulfillment.models.entities import Order, Product, User
from fulfillment.services.catalog import OrderService, ProductService, UserService
from fulfillment.services.payment import PaymentService
from fulfillment.services.shipping import NotificationService, ShippingService
from fulfillment.services.simulation import FailureInjector, ServiceSimulator

logger = structlog.get_logger(__name__)


@dataclass
class Services:
    """
    Collaborators used by the order pipeline steps.

    Any attribute may be replaced by a mock in tests.

    Example:
        >>> services = Services.create(failure_probability=0.0, latency_scale=0, seed=7)
        >>> outcome = await run_order_pipeline("user123", "prod1", 2, "123 Main St", services=services)
    """

    users: UserService
    orders: OrderService
    products: ProductService
    payments: PaymentService
    shipping: ShippingService
    notifications: NotificationService

    @classmethod
    def create(
        cls,
        failure_probability: float = 0.1,
        latency_scale: float = 1.0,
        seed: int | None = None,
        forced_failures: Iterable[str] = (),
        users: Iterable[User] | None = None,
        orders: Iterable[Order] | None = None,
        products: Iterable[Product] | None = None,
    ) -> "Services":
        """
        Build a bundle with its own simulator and RNG.

        Args:
            failure_probability: Chance that any call fails
            latency_scale: Multiplier for simulated latencies (0 disables)
            seed: RNG seed for deterministic failures and generated ids
            forced_failures: Operations that always fail (e.g. {"ship"})
            users: Fixture users (None = default profile for any id)
            orders: Fixture orders (None = default pending order123)
            products: Fixture products (None = default product for any id)
        """
        injector = FailureInjector(
            probability=failure_probability,
            forced_failures=forced_failures,
            rng=random.Random(seed),
        )
        simulator = ServiceSimulator(injector=injector, latency_scale=latency_scale)

        logger.debug(
            "services_created",
            failure_probability=failure_probability,
            latency_scale=latency_scale,
            seed=seed,
            forced_failures=sorted(injector.forced_failures),
        )

        return cls(
            users=UserService(simulator, users),
            orders=OrderService(simulator, orders),
            products=ProductService(simulator, products),
            payments=PaymentService(simulator),
            shipping=ShippingService(simulator),
            notifications=NotificationService(simulator),
        )

    @classmethod
    def from_settings(cls, config: FulfillmentSettings) -> "Services":
        """Build a bundle from application settings."""
        return cls.create(
            failure_probability=config.failure_probability,
            latency_scale=config.latency_scale,
            seed=config.random_seed,
            forced_failures=config.forced_failures,
        )
