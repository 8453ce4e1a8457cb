"""
CLI for running the simulated order pipeline.

Provides the `fulfillment-demo run` command for a single order run in any
of the four control-flow styles, and `fulfillment-demo showcase` which
launches three independent runs concurrently.
"""

from __future__ import annotations

import asyncio

import click
import structlog

from fulfillment.config import settings
from fulfillment.logging_config import configure_logging
from fulfillment.models.errors import OrderProcessingError
from fulfillment.orchestrator.pipeline.result import Success
from fulfillment.services.container import Services
from fulfillment.services.simulation import OPERATIONS
from fulfillment.styles.callbacks import process_order_with_callback
from fulfillment.styles.deferred import process_order_deferred
from fulfillment.styles.direct import process_order
from fulfillment.styles.effects import process_order_with_recovery
from fulfillment.workflows.order_fulfillment import run_order_pipeline

logger = structlog.get_logger(__name__)

STYLES = ("pipeline", "callback", "deferred", "direct", "effect")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level (default: from settings)",
)
@click.option("--json-logs", is_flag=True, help="Render logs as JSON (default: from settings)")
def cli(log_level, json_logs):
    """Order fulfillment pipeline demo."""
    configure_logging(
        level=log_level or settings.log_level,
        json_logs=json_logs or settings.json_logs,
    )


def _service_options(func):
    func = click.option(
        "--fail",
        "forced_failures",
        multiple=True,
        type=click.Choice(sorted(OPERATIONS)),
        help="Force a service operation to fail (repeatable)",
    )(func)
    func = click.option(
        "--seed", type=int, default=None, help="RNG seed (default: from settings)"
    )(func)
    func = click.option(
        "--latency-scale",
        type=float,
        default=None,
        help="Latency multiplier, 0 disables delays (default: from settings)",
    )(func)
    func = click.option(
        "--failure-probability",
        type=click.FloatRange(0.0, 1.0),
        default=None,
        help="Random failure probability per call (default: from settings)",
    )(func)
    return func


def _build_services(
    failure_probability: float | None,
    latency_scale: float | None,
    seed: int | None,
    forced_failures: tuple[str, ...],
    seed_offset: int = 0,
) -> Services:
    if seed is None:
        seed = settings.random_seed
    return Services.create(
        failure_probability=settings.failure_probability
        if failure_probability is None
        else failure_probability,
        latency_scale=settings.latency_scale if latency_scale is None else latency_scale,
        seed=None if seed is None else seed + seed_offset,
        forced_failures=forced_failures or settings.forced_failures,
    )


def _describe(error: Exception) -> str:
    if isinstance(error, OrderProcessingError):
        return f"{error.step_name} failed ({error.kind.value}): {error.message}"
    return str(error)


async def run_style(
    style: str,
    user_id: str,
    product_id: str,
    quantity: int,
    address: str,
    services: Services,
) -> tuple[bool, str]:
    """
    Run one order in the given style.

    Returns:
        (succeeded, message) where message is the confirmation or the error
    """
    if style == "pipeline":
        outcome = await run_order_pipeline(
            user_id, product_id, quantity, address, services=services
        )
        if isinstance(outcome, Success):
            return True, outcome.value
        return False, outcome.describe()

    if style == "direct":
        try:
            return True, await process_order(
                user_id, product_id, quantity, address, services=services
            )
        except OrderProcessingError as e:
            return False, _describe(e)

    if style == "deferred":
        try:
            return True, await process_order_deferred(
                user_id, product_id, quantity, address, services=services
            )
        except OrderProcessingError as e:
            return False, _describe(e)

    if style == "callback":
        done: asyncio.Future[tuple[bool, str]] = asyncio.get_running_loop().create_future()

        def on_complete(error, result):
            if error is None:
                done.set_result((True, result))
            else:
                done.set_result((False, _describe(error)))

        await process_order_with_callback(
            user_id, product_id, quantity, address, on_complete, services=services
        )
        return await done

    if style == "effect":
        return True, await process_order_with_recovery(
            user_id, product_id, quantity, address, services=services
        )

    raise ValueError(f"Unknown style '{style}'")


def _report(succeeded: bool, message: str, label: str = "") -> None:
    prefix = f"[{label}] " if label else ""
    if succeeded:
        click.echo(f"{prefix}Success: {message}")
    else:
        click.echo(f"{prefix}Error: {message}", err=True)


@cli.command()
@click.option("--user-id", default="user123", show_default=True, help="Customer id")
@click.option("--product-id", default="prod1", show_default=True, help="Product id")
@click.option("--quantity", type=click.IntRange(min=1), default=2, show_default=True)
@click.option("--address", default="123 Main St", show_default=True, help="Shipping address")
@click.option(
    "--style",
    type=click.Choice(STYLES),
    default="pipeline",
    show_default=True,
    help="Control-flow front-end",
)
@_service_options
def run(
    user_id,
    product_id,
    quantity,
    address,
    style,
    failure_probability,
    latency_scale,
    seed,
    forced_failures,
):
    """
    Process one order.

    Example:
        fulfillment-demo run --style direct --latency-scale 0 --fail ship
    """
    services = _build_services(failure_probability, latency_scale, seed, forced_failures)
    succeeded, message = asyncio.run(
        run_style(style, user_id, product_id, quantity, address, services)
    )
    _report(succeeded, message)
    raise SystemExit(0 if succeeded else 1)


@cli.command()
@click.option(
    "--style",
    type=click.Choice(STYLES),
    default="pipeline",
    show_default=True,
    help="Control-flow front-end",
)
@_service_options
def showcase(style, failure_probability, latency_scale, seed, forced_failures):
    """
    Launch three independent order runs concurrently.

    Each run gets its own service bundle; runs share no state.
    """
    orders = [
        ("user123", "prod1", 2, "123 Main St"),
        ("user456", "prod2", 1, "456 Oak Ave"),
        ("user789", "prod3", 5, "789 Pine Rd"),
    ]

    async def _run_all() -> list[tuple[bool, str]]:
        return await asyncio.gather(
            *(
                run_style(
                    style,
                    *order,
                    _build_services(
                        failure_probability, latency_scale, seed, forced_failures, seed_offset=i
                    ),
                )
                for i, order in enumerate(orders)
            )
        )

    results = asyncio.run(_run_all())
    for (user_id, *_), (succeeded, message) in zip(orders, results):
        _report(succeeded, message, label=user_id)

    logger.info(
        "showcase_complete",
        runs=len(results),
        succeeded=sum(1 for ok, _ in results if ok),
    )
    raise SystemExit(0 if all(ok for ok, _ in results) else 1)


def main():  # pragma: no cover
    cli()


if __name__ == "__main__":  # pragma: no cover
    main()
