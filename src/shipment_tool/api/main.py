import logging
import math
from typing import Any, Dict, List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, ConfigDict, Field

from shipment_tool.config.logging_config import setup_logging
from shipment_tool.services.invoice_service import build_invoice_document, invoice_number
from shipment_tool.services.rates_service import (
    InvalidRateUnitError,
    merge_override,
    normalize_settings,
)
from shipment_tool.services.shipment_stats import shipment_stats
from shipment_tool.api.state import pricing_engine, settings, tracking_normalizer

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Shipment Tool API",
    description="Invoice pricing and tracking timelines for the logistics back-office",
    version="1.0.0"
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class PricingSettingsRequest(CamelModel):
    settings: Dict[str, Any] = Field(default_factory=dict)
    unit: str = "fraction"


class PreviewRequest(CamelModel):
    declared_value: float = Field(alias="declaredValue")
    pricing_override: Optional[Dict[str, Any]] = Field(default=None, alias="pricingOverride")
    unit: str = "fraction"


class InvoiceDocumentRequest(PreviewRequest):
    shipment_id: str = Field(default="", alias="shipmentId")
    currency: Optional[str] = None
    paid: bool = False


class TimelineRequest(CamelModel):
    shipment_id: Optional[str] = Field(default=None, alias="shipmentId")
    tracking_number: Optional[str] = Field(default=None, alias="trackingNumber")
    tracking_events: Any = Field(default=None, alias="trackingEvents")
    status: Optional[str] = None
    status_note: Optional[str] = Field(default=None, alias="statusNote")
    created_at: Any = Field(default=None, alias="createdAt")


class StatsRequest(CamelModel):
    shipments: List[Dict[str, Any]] = Field(default_factory=list)


def _quote(req: PreviewRequest):
    if not math.isfinite(req.declared_value) or req.declared_value <= 0:
        raise HTTPException(status_code=400, detail="declaredValue must be > 0")
    try:
        pricing = merge_override(pricing_engine.base_rates, req.pricing_override, req.unit)
    except InvalidRateUnitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return pricing_engine.quote(req.declared_value, pricing)


@app.get("/")
async def root():
    return {"status": "online", "message": "Shipment Tool API Active"}


@app.get("/api/pricing/defaults")
async def pricing_defaults():
    return {"ok": True, "settings": pricing_engine.base_rates.to_dict()}


@app.post("/api/pricing/normalize")
async def normalize_pricing(req: PricingSettingsRequest):
    try:
        rates = normalize_settings(req.settings, unit=req.unit)
    except InvalidRateUnitError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return {"ok": True, "settings": rates.to_dict()}


@app.post("/api/invoice/preview")
async def preview_invoice(req: PreviewRequest):
    quote = _quote(req)
    return {"ok": True, **quote.to_dict()}


@app.post("/api/invoice/document")
async def invoice_document(req: InvoiceDocumentRequest):
    quote = _quote(req)
    document = build_invoice_document(quote, currency=req.currency or settings.currency, paid=req.paid)
    logger.info("Built invoice document for shipment %s", req.shipment_id or "(unsaved)")
    return {
        "ok": True,
        "invoiceNumber": invoice_number(req.shipment_id),
        "invoice": document,
    }


@app.post("/api/track/timeline")
async def track_timeline(req: TimelineRequest):
    fallback = {
        "status": req.status,
        "statusNote": req.status_note,
        "createdAt": req.created_at,
    }
    timeline = tracking_normalizer.timeline(req.tracking_events, fallback)
    return {
        "shipmentId": req.shipment_id,
        "trackingNumber": req.tracking_number,
        **timeline.to_dict(),
    }


@app.post("/api/dashboard/stats")
async def dashboard_stats(req: StatsRequest):
    return shipment_stats(req.shipments)
