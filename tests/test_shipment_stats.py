import math
import os
import sys

import pytest

# Add src to path for internal imports
src_path = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from shipment_tool.engine import PricingEngine
from shipment_tool.services.invoice_service import build_invoice_document
from shipment_tool.services.shipment_stats import (
    compact_status,
    invoices_frame,
    shipment_stats,
    shipments_frame,
)


@pytest.fixture
def shipments():
    paid_invoice = build_invoice_document(PricingEngine().quote(1000), paid=True)
    return [
        {"shipmentId": "EX-1", "status": "In Transit", "invoice": {"amount": 100, "currency": "usd", "paid": False}},
        {"shipmentId": "EX-2", "status": "in_transit", "invoice": {"amount": 50.5, "paid": False}},
        {"shipmentId": "EX-3", "status": "Delivered", "invoice": paid_invoice},
        {"shipmentId": "EX-4", "status": "Custom Clearance", "invoice": {"amount": 300, "currency": "EUR", "paid": False}},
        {"shipmentId": "EX-5", "status": "UNCLAIMED", "invoice": {"amount": 0, "paid": False}},
        {"shipmentId": "EX-6", "status": None, "invoice": {"amount": "n/a", "paid": False}},
        {"shipmentId": "EX-7", "status": "Created"},
    ]


@pytest.mark.parametrize("raw,expected", [
    ("In Transit", "intransit"),
    ("in_transit", "intransit"),
    ("IN-TRANSIT", "intransit"),
    (" Custom  Clearance ", "customclearance"),
    (None, ""),
])
def test_compact_status(raw, expected):
    assert compact_status(raw) == expected


def test_status_counts(shipments):
    stats = shipment_stats(shipments)

    assert stats["total"] == 7
    assert stats["inTransit"] == 2
    assert stats["delivered"] == 1
    assert stats["custom"] == 1
    assert stats["unclaimed"] == 1


def test_pending_invoices(shipments):
    stats = shipment_stats(shipments)

    # unpaid with a positive amount only
    assert stats["pendingInvoicesCount"] == 3
    assert stats["pendingInvoicesByCurrency"] == {"USD": pytest.approx(150.5), "EUR": pytest.approx(300.0)}
    assert stats["pendingInvoicesCurrencies"] == ["EUR", "USD"]


def test_stats_on_empty_input():
    stats = shipment_stats([])

    assert stats["total"] == 0
    assert stats["inTransit"] == 0
    assert stats["pendingInvoicesCount"] == 0
    assert stats["pendingInvoicesByCurrency"] == {}
    assert stats["pendingInvoicesCurrencies"] == []


def test_stats_ignore_non_documents():
    stats = shipment_stats([None, "x", {"status": "Delivered"}])
    assert stats["total"] == 1
    assert stats["delivered"] == 1


def test_shipments_frame_columns(shipments):
    df = shipments_frame(shipments)
    assert list(df.columns) == ["shipment_id", "status_key", "paid", "amount", "currency"]
    assert df.loc[df["shipment_id"] == "EX-4", "currency"].iloc[0] == "EUR"
    assert math.isnan(df.loc[df["shipment_id"] == "EX-6", "amount"].iloc[0])


def test_invoices_frame(shipments):
    df = invoices_frame(shipments)

    assert len(df) == 7
    row = df[df["shipment_id"] == "EX-3"].iloc[0]
    assert row["invoice_number"] == "INV-EX-3"
    assert bool(row["paid"]) is True
    assert row["total"] == 146.48
    assert row["shipping"] == 100.00

    no_breakdown = df[df["shipment_id"] == "EX-1"].iloc[0]
    assert math.isnan(no_breakdown["total"])
