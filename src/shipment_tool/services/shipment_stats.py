"""
Shipment Stats - dashboard counters and invoice listings over shipment documents.

Status strings are typed by admins, so they are compared in compact form
("In Transit", "in_transit" and "in-transit" all become "intransit").
"""
import logging
import re
from collections.abc import Mapping
from typing import Any, Iterable, Optional

import pandas as pd

from ..engine.models import BREAKDOWN_FIELDS, to_finite_float
from .invoice_service import invoice_number, normalize_currency, stored_breakdown

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s_-]+")

# compact status -> stats key
STATUS_COUNTERS = {
    "intransit": "inTransit",
    "delivered": "delivered",
    "customclearance": "custom",
    "unclaimed": "unclaimed",
}

SHIPMENT_COLUMNS = ["shipment_id", "status_key", "paid", "amount", "currency"]
INVOICE_COLUMNS = (
    ["shipment_id", "invoice_number", "currency", "paid", "amount"]
    + [attr for attr, _ in BREAKDOWN_FIELDS]
)


def compact_status(value: Any) -> str:
    """Lowercase, trim and drop all whitespace/underscore/hyphen runs."""
    return _SEPARATORS.sub("", str(value or "").lower().strip())


def _documents(shipments: Optional[Iterable]) -> list[Mapping]:
    if shipments is None:
        return []
    return [s for s in shipments if isinstance(s, Mapping)]


def _invoice(shipment: Mapping) -> Mapping:
    invoice = shipment.get("invoice")
    return invoice if isinstance(invoice, Mapping) else {}


def shipments_frame(shipments: Optional[Iterable]) -> pd.DataFrame:
    """One row per shipment with its compact status and invoice state."""
    rows = []
    for shipment in _documents(shipments):
        invoice = _invoice(shipment)
        rows.append({
            "shipment_id": str(shipment.get("shipmentId") or ""),
            "status_key": compact_status(shipment.get("status")),
            "paid": bool(invoice.get("paid")),
            "amount": to_finite_float(invoice.get("amount"), default=float("nan")),
            "currency": normalize_currency(invoice.get("currency")),
        })

    return pd.DataFrame(rows, columns=SHIPMENT_COLUMNS).astype({"paid": bool, "amount": float})


def shipment_stats(shipments: Optional[Iterable]) -> dict:
    """
    Dashboard statistics.

    Pending invoices are unpaid ones with a positive amount; their totals are
    split by currency, and currencies are listed largest pending total first.
    """
    df = shipments_frame(shipments)
    counts = df["status_key"].value_counts()

    stats = {"total": int(len(df))}
    for status_key, name in STATUS_COUNTERS.items():
        stats[name] = int(counts.get(status_key, 0))

    pending = df[~df["paid"] & (df["amount"] > 0)]
    by_currency = pending.groupby("currency", sort=False)["amount"].sum()

    stats["pendingInvoicesCount"] = int(len(pending))
    stats["pendingInvoicesByCurrency"] = {str(c): float(a) for c, a in by_currency.items()}
    stats["pendingInvoicesCurrencies"] = [
        str(c) for c in by_currency.sort_values(ascending=False, kind="stable").index
    ]

    logger.info(
        "Computed stats for %d shipments (%d pending invoices)",
        stats["total"], stats["pendingInvoicesCount"],
    )
    return stats


def invoices_frame(shipments: Optional[Iterable]) -> pd.DataFrame:
    """
    Invoice listing for the admin dashboard.

    Breakdown columns are NaN for shipments whose invoice has no stored
    breakdown.
    """
    rows = []
    for shipment in _documents(shipments):
        invoice = _invoice(shipment)
        breakdown, _ = stored_breakdown(invoice)

        row = {
            "shipment_id": str(shipment.get("shipmentId") or ""),
            "invoice_number": invoice_number(shipment.get("shipmentId")),
            "currency": normalize_currency(invoice.get("currency")),
            "paid": bool(invoice.get("paid")),
            "amount": to_finite_float(invoice.get("amount"), default=float("nan")),
        }
        for attr, _ in BREAKDOWN_FIELDS:
            row[attr] = getattr(breakdown, attr) if breakdown else float("nan")
        rows.append(row)

    return pd.DataFrame(rows, columns=INVOICE_COLUMNS)
