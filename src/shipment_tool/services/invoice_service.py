"""
Invoice Service - builds and reads the invoice document stored on a shipment.

The rates used at creation time are stored next to the breakdown so a
historical invoice always redisplays the percentages that were in effect then.
"""
import re
from collections.abc import Mapping
from typing import Any, Optional

from ..engine.models import InvoiceBreakdown, InvoiceQuote, RateConfiguration

DEFAULT_CURRENCY = "USD"
INVOICE_PREFIX = "INV-"

_UNSAFE_ID_CHARS = re.compile(r"[^A-Z0-9-]", re.IGNORECASE)


def invoice_number(shipment_id: Any) -> str:
    """Invoice number for a shipment, e.g. ``INV-EX-2024-US-1234567``."""
    clean = _UNSAFE_ID_CHARS.sub("", str(shipment_id or ""))
    return f"{INVOICE_PREFIX}{clean or 'SHIP'}"


def normalize_currency(value: Any, default: str = DEFAULT_CURRENCY) -> str:
    return str(value or "").strip().upper() or default


def build_invoice_document(
    quote: InvoiceQuote,
    currency: Any = DEFAULT_CURRENCY,
    paid: bool = False,
) -> dict:
    """
    Invoice document persisted as ``shipment.invoice``.

    Returns:
        Dict with amount, currency, paid, breakdown (including rates) and
        pricingSnapshot
    """
    rates = quote.pricing.to_dict()
    breakdown = quote.breakdown.to_dict()
    breakdown["rates"] = rates

    return {
        "amount": quote.breakdown.total,
        "currency": normalize_currency(currency),
        "paid": bool(paid),
        "breakdown": breakdown,
        "pricingSnapshot": dict(rates),
    }


def stored_breakdown(invoice: Any) -> tuple[Optional[InvoiceBreakdown], Optional[RateConfiguration]]:
    """
    Read a stored breakdown and the rates it was computed with.

    Either half is ``None`` when the document does not carry it (invoices
    created before breakdowns were stored have neither).
    """
    if not isinstance(invoice, Mapping):
        return None, None

    raw = invoice.get("breakdown")
    if not isinstance(raw, Mapping):
        return None, None

    rates_doc = raw.get("rates")
    if not isinstance(rates_doc, Mapping):
        rates_doc = invoice.get("pricingSnapshot")
    rates = RateConfiguration.from_mapping(rates_doc) if isinstance(rates_doc, Mapping) else None

    return InvoiceBreakdown.from_mapping(raw), rates
