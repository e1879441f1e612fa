"""
Pricing Engine - invoice breakdown from a declared value and percentage rates.

Cascading model:
- Shipping is a percentage of the declared value
- Insurance, customs, fuel and discount are percentages of shipping
- Tax is a percentage of the subtotal

Every field is computed from unrounded intermediates and then rounded to cents
independently, so ``total`` may differ by a cent from ``subtotal + tax`` of the
rounded fields.
"""
import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

from .models import (
    DEFAULT_RATES,
    InvoiceBreakdown,
    InvoiceQuote,
    RateConfiguration,
    TraceStep,
    to_finite_float,
)

logger = logging.getLogger(__name__)

MONEY = Decimal("0.01")


def round2(value: float) -> float:
    """Round to cents, half-up, on the shortest decimal form of the float."""
    try:
        return float(Decimal(repr(value)).quantize(MONEY, rounding=ROUND_HALF_UP))
    except InvalidOperation:
        # Too large to carry cents; already a whole number at this magnitude
        return value


def coerce_declared_value(declared_value: Any) -> float:
    """Declared values that are negative or not finite numbers count as 0."""
    dv = to_finite_float(declared_value)
    if dv < 0:
        logger.debug("Negative declared value %r treated as 0", declared_value)
        return 0.0
    return dv


def compute_invoice_from_declared_value(declared_value: Any, rates: Any) -> InvoiceBreakdown:
    """
    Compute an itemized invoice breakdown.

    Args:
        declared_value: Declared value of the goods
        rates: RateConfiguration or a rates mapping (missing fields count as 0)

    Returns:
        InvoiceBreakdown with every field rounded to 2 decimal places
    """
    dv = coerce_declared_value(declared_value)
    r = RateConfiguration.coerce(rates)

    shipping = dv * r.shipping_rate

    insurance = shipping * r.insurance_rate
    customs = shipping * r.customs_rate
    fuel = shipping * r.fuel_rate
    discount = shipping * r.discount_rate

    subtotal = shipping + insurance + customs + fuel - discount
    tax = subtotal * r.tax_rate
    total = subtotal + tax

    return InvoiceBreakdown(
        declared_value=round2(dv),
        shipping=round2(shipping),
        insurance=round2(insurance),
        customs=round2(customs),
        fuel=round2(fuel),
        discount=round2(discount),
        subtotal=round2(subtotal),
        tax=round2(tax),
        total=round2(total),
    )


class PricingEngine:
    """
    Computes invoice breakdowns against a base rate configuration.

    The base rates are injected by the caller (saved pricing settings or the
    built-in defaults); the engine holds no other state.
    """

    def __init__(self, base_rates: Optional[RateConfiguration] = None):
        self.base_rates = DEFAULT_RATES if base_rates is None else RateConfiguration.coerce(base_rates)

    def _rates(self, rates: Any) -> RateConfiguration:
        return self.base_rates if rates is None else RateConfiguration.coerce(rates)

    def calculate(self, declared_value: Any, rates: Any = None) -> InvoiceBreakdown:
        """Breakdown using ``rates`` if given, otherwise the base rates."""
        return compute_invoice_from_declared_value(declared_value, self._rates(rates))

    def quote(self, declared_value: Any, rates: Any = None) -> InvoiceQuote:
        """Breakdown plus the rates used, for storing as an invoice snapshot."""
        pricing = self._rates(rates)
        breakdown = compute_invoice_from_declared_value(declared_value, pricing)
        return InvoiceQuote(
            declared_value=coerce_declared_value(declared_value),
            pricing=pricing,
            breakdown=breakdown,
        )

    def quote_with_trace(self, declared_value: Any, rates: Any = None) -> InvoiceQuote:
        """
        Quote with a step-by-step trace of the cascade.

        Returns:
            InvoiceQuote whose ``trace`` lists each computed charge
        """
        quote = self.quote(declared_value, rates)
        r = quote.pricing
        b = quote.breakdown

        trace = [
            TraceStep("Declared Value", "Value of goods", f"${b.declared_value:.2f}"),
            TraceStep("Shipping", f"{r.shipping_rate:.2%} of declared value", f"${b.shipping:.2f}"),
            TraceStep("Insurance", f"{r.insurance_rate:.2%} of shipping", f"${b.insurance:.2f}"),
            TraceStep("Customs", f"{r.customs_rate:.2%} of shipping", f"${b.customs:.2f}"),
            TraceStep("Fuel", f"{r.fuel_rate:.2%} of shipping", f"${b.fuel:.2f}"),
            TraceStep("Discount", f"{r.discount_rate:.2%} of shipping", f"-${b.discount:.2f}"),
            TraceStep("Subtotal", "Shipping + surcharges - discount", f"${b.subtotal:.2f}"),
            TraceStep("Tax", f"{r.tax_rate:.2%} of subtotal", f"${b.tax:.2f}"),
            TraceStep("Total", "Subtotal + tax", f"${b.total:.2f}"),
        ]

        return InvoiceQuote(
            declared_value=quote.declared_value,
            pricing=r,
            breakdown=b,
            trace=tuple(trace),
        )
