#!/usr/bin/env python
"""
Print an invoice breakdown with its computation trace.

Usage:
    python scripts/preview_invoice.py 1000
    python scripts/preview_invoice.py 1000 --rate taxRate=8.5 --unit percent
"""
import argparse
import sys
from pathlib import Path

# Add src to path
src_path = Path(__file__).parent.parent / 'src'
sys.path.insert(0, str(src_path))

from shipment_tool.config.settings import get_settings
from shipment_tool.engine import PricingEngine
from shipment_tool.services.rates_service import merge_override


def parse_rate(text):
    name, _, value = text.partition("=")
    if not value:
        raise argparse.ArgumentTypeError(f"Expected name=value, got '{text}'")
    return name.strip(), value.strip()


def main():
    arg_parser = argparse.ArgumentParser(description="Preview an invoice breakdown")
    arg_parser.add_argument("declared_value", type=float)
    arg_parser.add_argument("--rate", type=parse_rate, action="append", default=[],
                            help="Override a rate, e.g. shippingRate=0.12")
    arg_parser.add_argument("--unit", default="fraction", choices=["fraction", "percent"])
    args = arg_parser.parse_args()

    settings = get_settings()
    engine = PricingEngine(settings.default_rates())
    rates = merge_override(engine.base_rates, dict(args.rate), args.unit)

    quote = engine.quote_with_trace(args.declared_value, rates)

    print("=" * 60)
    print("INVOICE PREVIEW")
    print("=" * 60)
    print(quote.get_trace_text())
    print()
    print("Rates used:")
    for name, value in quote.pricing.to_dict().items():
        print(f"  {name}: {value:.4f}")


if __name__ == "__main__":
    main()
