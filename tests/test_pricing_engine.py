import dataclasses
import math
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from shipment_tool.engine import (
    DEFAULT_RATES,
    PricingEngine,
    RateConfiguration,
    compute_invoice_from_declared_value,
)
from shipment_tool.engine.pricing_engine import round2

ZERO_RATES = RateConfiguration()

CHARGES = ('shipping', 'insurance', 'customs', 'fuel', 'discount', 'subtotal', 'tax', 'total')


def test_concrete_default_breakdown():
    """1000 at the default rates gives the documented invoice."""
    b = compute_invoice_from_declared_value(1000, DEFAULT_RATES)

    assert b.declared_value == 1000.00
    assert b.shipping == 100.00
    assert b.insurance == 10.00
    assert b.customs == 20.00
    assert b.fuel == 5.00
    assert b.discount == 0.00
    assert b.subtotal == 135.00
    # 135 x 0.085 = 11.475 rounds half-up
    assert b.tax == 11.48
    assert b.total == 146.48


@pytest.mark.parametrize("declared_value", [0, 1, 99.99, 1234.565, 1_000_000])
def test_zero_rates_produce_no_charges(declared_value):
    """With every rate at 0 nothing is charged and the declared value is echoed."""
    b = compute_invoice_from_declared_value(declared_value, ZERO_RATES)

    assert b.declared_value == round2(declared_value)
    for name in CHARGES:
        assert getattr(b, name) == 0, f"{name} should be 0 with zero rates, got {getattr(b, name)}"


@pytest.mark.parametrize("declared_value,rates", [
    (1000, DEFAULT_RATES),
    (333.33, DEFAULT_RATES),
    (12.34, RateConfiguration(0.17, 0.031, 0.29, 0.077, 0.013, 0.0725)),
    (98765.43, RateConfiguration(0.0333, 0.15, 0.05, 0.09, 0.2, 0.2)),
    (0.01, RateConfiguration(1, 1, 1, 1, 0, 1)),
])
def test_subtotal_and_total_invariants(declared_value, rates):
    """Rounded fields stay within a cent of the sums they are built from."""
    b = compute_invoice_from_declared_value(declared_value, rates)

    parts = round2(b.shipping + b.insurance + b.customs + b.fuel - b.discount)
    assert abs(parts - b.subtotal) <= 0.01 + 1e-9, \
        f"Subtotal {b.subtotal} drifted from components {parts}"
    assert abs(round2(b.subtotal + b.tax) - b.total) <= 0.01 + 1e-9, \
        f"Total {b.total} drifted from subtotal + tax"


def test_non_negative_inputs_give_non_negative_fields():
    b = compute_invoice_from_declared_value(5432.1, RateConfiguration(0.2, 0.3, 0.1, 0.05, 0.4, 0.1))
    for name in ('declared_value',) + CHARGES:
        assert getattr(b, name) >= 0, f"{name} should not be negative"


def test_discount_can_push_subtotal_negative():
    """Subtotal is not clamped when the discount exceeds the other charges."""
    rates = RateConfiguration(shipping_rate=1.0, discount_rate=2.0, tax_rate=0.1)
    b = compute_invoice_from_declared_value(100, rates)

    assert b.shipping == 100.00
    assert b.discount == 200.00
    assert b.subtotal == -100.00
    assert b.tax == -10.00
    assert b.total == -110.00


@pytest.mark.parametrize("declared_value", [-100, float("nan"), float("inf"), float("-inf"), None, "abc", ""])
def test_invalid_declared_value_degrades_to_zero(declared_value):
    """Bad declared values never raise; everything comes out as 0."""
    b = compute_invoice_from_declared_value(declared_value, DEFAULT_RATES)

    assert b.declared_value == 0
    for name in CHARGES:
        assert getattr(b, name) == 0


def test_numeric_string_declared_value_is_accepted():
    b = compute_invoice_from_declared_value("1000", DEFAULT_RATES)
    assert b.total == 146.48


def test_rates_mapping_with_missing_fields():
    """Missing rate fields count as 0."""
    b = compute_invoice_from_declared_value(1000, {"shippingRate": 0.1, "taxRate": 0.1})

    assert b.shipping == 100.00
    assert b.insurance == 0
    assert b.customs == 0
    assert b.fuel == 0
    assert b.subtotal == 100.00
    assert b.tax == 10.00
    assert b.total == 110.00


def test_rates_mapping_accepts_snake_case_keys():
    b = compute_invoice_from_declared_value(1000, {"shipping_rate": 0.1, "insurance_rate": 0.1})
    assert b.insurance == 10.00


@pytest.mark.parametrize("bad_rate", [float("nan"), float("inf"), None, "ten", -0.5])
def test_bad_rate_values_count_as_zero(bad_rate):
    b = compute_invoice_from_declared_value(1000, {"shippingRate": 0.1, "fuelRate": bad_rate})
    assert b.fuel == 0
    assert b.shipping == 100.00


@pytest.mark.parametrize("rates", [None, "0.1", 42, []])
def test_non_mapping_rates_count_as_zero(rates):
    b = compute_invoice_from_declared_value(1000, rates)
    assert b.total == 0
    assert b.declared_value == 1000.00


@pytest.mark.parametrize("value,expected", [
    (0.125, 0.13),
    (2.675, 2.68),
    (11.475, 11.48),
    (1.005, 1.01),
    (10.0, 10.0),
    (0.0, 0.0),
])
def test_round2_is_half_up(value, expected):
    assert round2(value) == expected


def test_round2_leaves_huge_values_alone():
    assert round2(1e300) == 1e300


def test_breakdown_is_immutable():
    b = compute_invoice_from_declared_value(1000, DEFAULT_RATES)
    with pytest.raises(dataclasses.FrozenInstanceError):
        b.total = 0


def test_breakdown_to_dict_uses_document_keys():
    b = compute_invoice_from_declared_value(1000, DEFAULT_RATES)
    assert b.to_dict() == {
        "declaredValue": 1000.0,
        "shipping": 100.0,
        "insurance": 10.0,
        "customs": 20.0,
        "fuel": 5.0,
        "discount": 0.0,
        "subtotal": 135.0,
        "tax": 11.48,
        "total": 146.48,
    }


def test_rate_configuration_coerces_bad_fields():
    rates = RateConfiguration(shipping_rate=float("nan"), insurance_rate=-1, customs_rate="0.2")
    assert rates.shipping_rate == 0.0
    assert rates.insurance_rate == 0.0
    assert rates.customs_rate == 0.2
    assert not math.isnan(rates.to_dict()["shippingRate"])


class TestPricingEngine:

    def test_uses_injected_base_rates(self):
        engine = PricingEngine(RateConfiguration(shipping_rate=0.5))
        b = engine.calculate(100)
        assert b.shipping == 50.00
        assert b.total == 50.00

    def test_explicit_rates_replace_base_rates(self):
        engine = PricingEngine(RateConfiguration(shipping_rate=0.5))
        b = engine.calculate(1000, DEFAULT_RATES)
        assert b.total == 146.48

    def test_base_rates_default_to_builtin(self):
        assert PricingEngine().base_rates == DEFAULT_RATES

    def test_quote_keeps_rates_used(self):
        engine = PricingEngine()
        rates = RateConfiguration(shipping_rate=0.2)
        quote = engine.quote(500, rates)

        assert quote.pricing == rates
        assert quote.breakdown.shipping == 100.00
        assert quote.declared_value == 500
        assert quote.to_dict()["pricing"]["shippingRate"] == 0.2

    def test_quote_declared_value_is_coerced(self):
        quote = PricingEngine().quote(-5)
        assert quote.declared_value == 0
        assert quote.breakdown.total == 0

    def test_quote_with_trace(self):
        quote = PricingEngine().quote_with_trace(1000)

        steps = [t.step for t in quote.trace]
        assert steps[0] == "Declared Value"
        assert steps[-1] == "Total"
        assert len(steps) == 9

        text = quote.get_trace_text()
        assert "Shipping: 10.00% of declared value = $100.00" in text
        assert "Total: Subtotal + tax = $146.48" in text
