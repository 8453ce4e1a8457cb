"""
Typed-effect front-end.

Every step declares the closed set of FailureKinds it can fail with, so the
kinds a whole pipeline can produce are known before it runs. catch_tags()
refuses handler tables that do not cover them, and recover() maps every
kind to a recovered summary string so the call always succeeds.
"""

from collections.abc import Callable, Iterable, Mapping

import structlog

from fulfillment.models.errors import FailureKind
from fulfillment.orchestrator.pipeline.result import Failure, Outcome, Success
from fulfillment.services.container import Services
from fulfillment.workflows.order_fulfillment import STEP_NAMES, run_order_pipeline

logger = structlog.get_logger(__name__)

# Kinds every pipeline can produce regardless of its steps
AMBIENT_FAILURE_KINDS = frozenset({FailureKind.UNEXPECTED, FailureKind.CANCELLED})

STEP_FAILURE_KINDS: dict[str, frozenset[FailureKind]] = {
    "fetch_user": frozenset({FailureKind.DATA_ACCESS}),
    "fetch_orders": frozenset({FailureKind.DATA_ACCESS, FailureKind.BUSINESS_RULE}),
    "fetch_product": frozenset({FailureKind.DATA_ACCESS}),
    "check_stock": frozenset({FailureKind.INVENTORY, FailureKind.BUSINESS_RULE}),
    "charge": frozenset({FailureKind.PAYMENT}),
    "mark_processing": frozenset({FailureKind.DATA_ACCESS}),
    "ship": frozenset({FailureKind.SHIPPING}),
    "mark_shipped": frozenset({FailureKind.DATA_ACCESS}),
    "notify": frozenset({FailureKind.NOTIFICATION}),
}

RECOVERY_TEMPLATES: dict[FailureKind, str] = {
    FailureKind.DATA_ACCESS: "Database error handled: {reason}",
    FailureKind.BUSINESS_RULE: "Business rule error handled: {reason}",
    FailureKind.INVENTORY: "Inventory error handled: {reason}",
    FailureKind.PAYMENT: "Payment error handled: {reason}",
    FailureKind.SHIPPING: "Shipping error handled: {reason}",
    FailureKind.NOTIFICATION: "Notification error handled: {reason}",
    FailureKind.UNEXPECTED: "Unexpected error handled: {reason}",
    FailureKind.CANCELLED: "Cancellation handled: {reason}",
}

_missing_templates = set(FailureKind) - set(RECOVERY_TEMPLATES)
if _missing_templates:
    raise RuntimeError(f"Recovery templates missing for {sorted(k.value for k in _missing_templates)}")

FailureHandler = Callable[[Failure], str]


def possible_failure_kinds(step_names: Iterable[str] = STEP_NAMES) -> frozenset[FailureKind]:
    """
    Union of the failure kinds the given steps can produce.

    Raises:
        KeyError: For a step without declared failure kinds
    """
    kinds: set[FailureKind] = set(AMBIENT_FAILURE_KINDS)
    for name in step_names:
        kinds |= STEP_FAILURE_KINDS[name]
    return frozenset(kinds)


def catch_tags(
    outcome: Outcome[str],
    handlers: Mapping[FailureKind, FailureHandler],
    step_names: Iterable[str] = STEP_NAMES,
) -> str:
    """
    Resolve an outcome to a string with one handler per failure kind.

    Args:
        outcome: Outcome of a run over step_names
        handlers: Handler per FailureKind
        step_names: Steps the outcome was produced by

    Raises:
        ValueError: If handlers do not cover every kind the steps can produce
    """
    uncovered = possible_failure_kinds(step_names) - set(handlers)
    if uncovered:
        raise ValueError(
            f"No handler for failure kinds: {sorted(k.value for k in uncovered)}"
        )

    if isinstance(outcome, Success):
        return outcome.value
    return handlers[outcome.kind](outcome)


def _template_handler(kind: FailureKind) -> FailureHandler:
    template = RECOVERY_TEMPLATES[kind]
    return lambda failure: template.format(reason=failure.reason)


DEFAULT_HANDLERS: dict[FailureKind, FailureHandler] = {
    kind: _template_handler(kind) for kind in FailureKind
}


def recover(outcome: Outcome[str]) -> str:
    """Map any outcome to a summary string (success value or recovered message)."""
    return catch_tags(outcome, DEFAULT_HANDLERS)


async def process_order_with_recovery(
    user_id: str,
    product_id: str,
    quantity: int,
    address: str,
    *,
    services: Services | None = None,
) -> str:
    """
    Process an order with centralized per-kind recovery.

    Always returns a string; step failures never propagate.
    """
    outcome = await run_order_pipeline(
        user_id, product_id, quantity, address, services=services
    )
    if isinstance(outcome, Failure):
        logger.info(
            "order_failure_recovered",
            step=outcome.step_name,
            failure_kind=outcome.kind.value,
            reason=outcome.reason,
        )
    return recover(outcome)
