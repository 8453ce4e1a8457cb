"""
Order Processing Failure Kinds.

A closed set of tagged failure kinds shared by every collaborator and the
pipeline executor. Failures carry a kind and a message instead of forming
an exception hierarchy, so recovery code can map every kind exhaustively
without isinstance checks.
"""

from enum import Enum


class FailureKind(str, Enum):
    """
    Closed enumeration of order processing failure kinds.

    Values:
    -------
    - DATA_ACCESS: User, order or product lookup / status update failed
    - BUSINESS_RULE: Business predicate violated (no orders found, out of stock)
    - INVENTORY: Inventory system failed while checking stock
    - PAYMENT: Payment processing failed
    - SHIPPING: Shipment could not be created
    - NOTIFICATION: Confirmation could not be delivered
    - UNEXPECTED: Untagged exception raised by a step
    - CANCELLED: Run halted by a cancellation token between steps
    """

    DATA_ACCESS = "DATA_ACCESS"
    BUSINESS_RULE = "BUSINESS_RULE"
    INVENTORY = "INVENTORY"
    PAYMENT = "PAYMENT"
    SHIPPING = "SHIPPING"
    NOTIFICATION = "NOTIFICATION"
    UNEXPECTED = "UNEXPECTED"
    CANCELLED = "CANCELLED"


class OrderProcessingError(Exception):
    """
    Raised by a step or collaborator to signal a tagged failure.

    Attributes:
        kind: FailureKind tag
        message: Human-readable reason (e.g. "out of stock")
        step_name: Name of the failing step, when known
    """

    def __init__(self, kind: FailureKind, message: str, step_name: str | None = None) -> None:
        self.kind = kind
        self.message = message
        self.step_name = step_name
        super().__init__(message)

    def __repr__(self) -> str:
        return (
            f"OrderProcessingError(kind={self.kind.value!r}, message={self.message!r}, "
            f"step_name={self.step_name!r})"
        )


class PipelineError(Exception):
    """Base class for executor misuse (not step failures)."""


class PipelineConfigurationError(PipelineError):
    """Raised when a pipeline is assembled with invalid steps."""


class PipelineStateError(PipelineError):
    """Raised on an illegal run state transition."""
