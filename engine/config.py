"""Dataclass-based configurator configuration.

Storage, pricing and logging settings live in frozen dataclasses:
defaults work out of the box, and ``from_env`` overrides them from
environment variables.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP


# ---------------------------------------------------------------------------
# Nested config sections
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DatabaseConfig:
    """Storage connection settings."""

    url: str = "sqlite+aiosqlite:///./configurator.db"
    echo: bool = False
    pool_size: int = 20
    max_overflow: int = 10


@dataclass(frozen=True)
class PricingConfig:
    """Rounding applied to final totals."""

    currency_quantum: Decimal = Decimal("0.01")
    rounding: str = ROUND_HALF_UP


# ---------------------------------------------------------------------------
# Top-level config
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfiguratorConfig:
    """Complete configuration for the configurator.

    Usage::

        config = ConfiguratorConfig.from_env()
        db = Database.from_config(config.database)
        service = ConfigurationService(db, pricing=config.pricing)
    """

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    pricing: PricingConfig = field(default_factory=PricingConfig)
    log_level: str = "INFO"

    @classmethod
    def default(cls) -> "ConfiguratorConfig":
        """Create config with all defaults."""
        return cls()

    @classmethod
    def from_env(cls, prefix: str = "CONFIGURATOR_") -> "ConfiguratorConfig":
        """Create config from environment variables.

        Example: CONFIGURATOR_DATABASE_URL=postgresql+asyncpg://localhost/bikes
        """
        db_overrides = {}
        url = os.getenv(f"{prefix}DATABASE_URL")
        if url:
            db_overrides["url"] = url
        echo = os.getenv(f"{prefix}DB_ECHO")
        if echo:
            db_overrides["echo"] = echo.lower() == "true"

        pricing_overrides = {}
        quantum = os.getenv(f"{prefix}CURRENCY_QUANTUM")
        if quantum:
            pricing_overrides["currency_quantum"] = Decimal(quantum)

        overrides = {
            "database": DatabaseConfig(**db_overrides),
            "pricing": PricingConfig(**pricing_overrides),
        }
        log_level = os.getenv(f"{prefix}LOG_LEVEL")
        if log_level:
            overrides["log_level"] = log_level

        return cls(**overrides)
