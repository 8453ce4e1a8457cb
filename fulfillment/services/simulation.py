"""
Service Call Simulation.

Latency and failure injection shared by every stubbed collaborator. All
randomness flows through one injectable random.Random so runs can be made
deterministic (seeded RNG, zero failure probability or forced failures).
"""

import asyncio
import random
import string
from collections.abc import Iterable
from decimal import Decimal

import structlog

from fulfillment.models.errors import FailureKind, OrderProcessingError

logger = structlog.get_logger(__name__)

# Simulated latency per operation, in milliseconds
DEFAULT_LATENCIES_MS: dict[str, int] = {
    "fetch_user": 500,
    "fetch_orders": 700,
    "fetch_product": 600,
    "check_stock": 400,
    "charge": 800,
    "set_order_status": 500,
    "ship": 900,
    "notify": 300,
}

OPERATIONS = frozenset(DEFAULT_LATENCIES_MS)

_ID_ALPHABET = string.digits + string.ascii_lowercase


class FailureInjector:
    """
    Decides whether a simulated call fails.

    A call fails when its operation is in forced_failures, or otherwise
    with the configured probability drawn from the shared RNG.

    Example:
        >>> injector = FailureInjector(probability=0.0, forced_failures={"ship"})
        >>> injector.should_fail("ship")
        True
    """

    def __init__(
        self,
        probability: float = 0.1,
        forced_failures: Iterable[str] = (),
        rng: random.Random | None = None,
    ) -> None:
        if not 0.0 <= probability <= 1.0:
            raise ValueError(f"Failure probability must be within [0, 1], got {probability}")
        forced = frozenset(forced_failures)
        unknown = forced - OPERATIONS
        if unknown:
            raise ValueError(f"Unknown operations in forced_failures: {sorted(unknown)}")
        self.probability = probability
        self.forced_failures = forced
        self.rng = rng or random.Random()

    def should_fail(self, operation: str) -> bool:
        if operation in self.forced_failures:
            return True
        if self.probability <= 0.0:
            return False
        return self.rng.random() < self.probability


class ServiceSimulator:
    """
    Latency, failure and identifier generation for stubbed services.

    Args:
        injector: Failure decision source (its RNG is reused for ids)
        latency_scale: Multiplier for DEFAULT_LATENCIES_MS; 0 only yields
            control to the event loop
        latencies_ms: Per-operation overrides
    """

    def __init__(
        self,
        injector: FailureInjector | None = None,
        latency_scale: float = 1.0,
        latencies_ms: dict[str, int] | None = None,
    ) -> None:
        if latency_scale < 0:
            raise ValueError("latency_scale must be >= 0")
        self.injector = injector or FailureInjector()
        self.latency_scale = latency_scale
        self.latencies_ms = {**DEFAULT_LATENCIES_MS, **(latencies_ms or {})}

    @property
    def rng(self) -> random.Random:
        return self.injector.rng

    async def call(self, operation: str, kind: FailureKind, failure_message: str) -> None:
        """
        Simulate one remote call.

        Sleeps for the scaled latency, then raises OrderProcessingError
        with the given kind if the injector decides the call fails.
        """
        delay = self.latencies_ms.get(operation, 0) * self.latency_scale / 1000
        await asyncio.sleep(delay)

        if self.injector.should_fail(operation):
            logger.debug(
                "simulated_call_failed",
                operation=operation,
                failure_kind=kind.value,
                error=failure_message,
            )
            raise OrderProcessingError(kind, failure_message)

    def payment_id(self) -> str:
        """pay_ followed by 9 base-36 characters."""
        return "pay_" + "".join(self.rng.choice(_ID_ALPHABET) for _ in range(9))

    def tracking_number(self) -> str:
        """TRK followed by up to 6 digits."""
        return f"TRK{self.rng.randrange(1_000_000)}"


def quantize_amount(amount: Decimal) -> Decimal:
    """Round a monetary amount to cents."""
    return amount.quantize(Decimal("0.01"))
