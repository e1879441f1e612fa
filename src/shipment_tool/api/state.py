"""Shared engine instances for the API routes."""
from ..config.settings import get_settings
from ..engine import PricingEngine, TrackingNormalizer

settings = get_settings()

pricing_engine = PricingEngine(settings.default_rates())
tracking_normalizer = TrackingNormalizer()
