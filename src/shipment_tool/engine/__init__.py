"""Engine subpackage - invoice pricing and tracking normalization."""
from .pricing_engine import PricingEngine, compute_invoice_from_declared_value
from .tracking import TrackingNormalizer, normalize_and_group, normalize_key
from .models import (
    DEFAULT_RATES,
    InvoiceBreakdown,
    InvoiceQuote,
    Location,
    MilestoneGroup,
    RateConfiguration,
    StatusFallback,
    TrackingEvent,
    TrackingTimeline,
)

__all__ = [
    'PricingEngine', 'compute_invoice_from_declared_value',
    'TrackingNormalizer', 'normalize_and_group', 'normalize_key',
    'DEFAULT_RATES', 'InvoiceBreakdown', 'InvoiceQuote', 'Location',
    'MilestoneGroup', 'RateConfiguration', 'StatusFallback', 'TrackingEvent',
    'TrackingTimeline',
]
