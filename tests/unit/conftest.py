"""
Unit test conftest - minimal setup for isolated unit tests.

Provides deterministic service bundles: no random failures, no simulated
latency and a fixed RNG seed.
"""

import asyncio
import sys

import pytest

from fulfillment.services.container import Services


@pytest.fixture(autouse=True)
def _reset_event_loop_policy():
    """Ensure consistent event loop policy for unit tests."""
    if sys.platform == "win32":
        asyncio.set_event_loop_policy(asyncio.WindowsSelectorEventLoopPolicy())
    yield


@pytest.fixture
def services() -> Services:
    """Services that never fail and never sleep."""
    return Services.create(failure_probability=0.0, latency_scale=0, seed=7)


@pytest.fixture
def make_services():
    """Factory for deterministic services with forced failures or fixtures."""

    def _make(**kwargs) -> Services:
        kwargs.setdefault("failure_probability", 0.0)
        kwargs.setdefault("latency_scale", 0)
        kwargs.setdefault("seed", 7)
        return Services.create(**kwargs)

    return _make
