"""
Application configuration module using Pydantic Settings.

Centralizes the knobs of the simulated order services (failure injection,
latency, randomness) and logging output. Values are read from environment
variables prefixed with FULFILLMENT_ with fallback to a .env file.
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class FulfillmentSettings(BaseSettings):
    """
    Simulation and logging settings with validation.

    Example:
        # Via environment variables:
        FULFILLMENT_FAILURE_PROBABILITY=0.0
        FULFILLMENT_LATENCY_SCALE=0
        FULFILLMENT_RANDOM_SEED=42
    """

    model_config = SettingsConfigDict(
        env_prefix="FULFILLMENT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Failure injection
    failure_probability: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Probability that any simulated service call fails",
    )
    forced_failures: list[str] = Field(
        default_factory=list,
        description="Service operations that always fail (e.g. ['ship'])",
    )
    random_seed: int | None = Field(
        default=None,
        description="Seed for the simulated services' RNG (None = nondeterministic)",
    )

    # Latency simulation
    latency_scale: float = Field(
        default=1.0,
        ge=0.0,
        le=10.0,
        description="Multiplier applied to simulated service latencies (0 disables)",
    )

    # Logging
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Minimum log level",
    )
    json_logs: bool = Field(
        default=False,
        description="Render logs as JSON instead of console output",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lower-case level names from the environment."""
        if isinstance(v, str):
            return v.upper()
        return v


# Global settings instance
settings = FulfillmentSettings()
