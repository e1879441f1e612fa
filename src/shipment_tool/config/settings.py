"""
Centralized settings for the shipment tool.

Values come from environment variables; the saved pricing settings document
(if any) is read from a JSON file named by ``SHIPMENT_TOOL_PRICING_FILE``.
"""
import json
import logging
import os
from pathlib import Path
from dataclasses import dataclass
from typing import Mapping, Optional

from ..engine.models import DEFAULT_RATES, RateConfiguration
from ..services.rates_service import FRACTION, normalize_settings

logger = logging.getLogger(__name__)

ENV_PREFIX = "SHIPMENT_TOOL_"


@dataclass
class Settings:
    """Application settings with sensible defaults."""

    # Saved pricing settings document
    pricing_file: Optional[Path] = None

    # Unit the saved rates are expressed in (fraction or percent)
    rate_unit: str = FRACTION

    currency: str = "USD"
    log_level: str = "INFO"

    # API server (scripts/run_api.py)
    host: str = "0.0.0.0"
    port: int = 8000
    reload: bool = False

    @classmethod
    def load(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """Load settings from the environment."""
        env = os.environ if environ is None else environ

        pricing_file = env.get(f"{ENV_PREFIX}PRICING_FILE", "").strip()

        return cls(
            pricing_file=Path(pricing_file) if pricing_file else None,
            rate_unit=env.get(f"{ENV_PREFIX}RATE_UNIT", FRACTION),
            currency=env.get(f"{ENV_PREFIX}CURRENCY", "USD").strip().upper() or "USD",
            log_level=env.get(f"{ENV_PREFIX}LOG_LEVEL", "INFO"),
            host=env.get(f"{ENV_PREFIX}HOST", "0.0.0.0"),
            port=int(env.get(f"{ENV_PREFIX}PORT", env.get("PORT", "8000"))),
            reload=env.get(f"{ENV_PREFIX}RELOAD", "").strip().lower() in ("1", "true", "yes"),
        )

    def default_rates(self) -> RateConfiguration:
        """
        Base rates for new invoices.

        Saved settings are normalized over the built-in defaults; a missing or
        unreadable file falls back to the defaults.
        """
        if self.pricing_file is None:
            return DEFAULT_RATES

        try:
            with open(self.pricing_file, 'r', encoding='utf-8') as f:
                doc = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Could not read pricing settings from %s: %s", self.pricing_file, e)
            return DEFAULT_RATES

        rates = normalize_settings(doc, unit=self.rate_unit)
        logger.info("Loaded pricing settings from %s", self.pricing_file)
        return rates


# Default settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings.load()
    return _settings
