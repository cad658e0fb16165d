"""
Lead Routes - JSON API for Seller Leads

Routes:
- POST /leads                       - Create a lead and price it
- GET  /leads                       - List leads (expired leads purged first)
- GET  /leads/{id}                  - Lead detail with valuation and photos
- PUT  /leads/{id}/intake           - Replace intake answers / baseline
- PUT  /leads/{id}/rental           - Set rental assumptions
- POST /leads/{id}/photos           - Upload a photo
- POST /leads/{id}/photos/analyze   - Analyse photos and re-price
- GET  /leads/{id}/sqft-offer       - Alternative rehab/sqft offer
- GET  /leads/{id}/offer-sheet      - Offer sheet PDF
- GET  /reference/rehab-tiers       - Rehab tiers and intake presets
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, ConfigDict

from core.leads import LeadRecord, LeadService, get_lead_service
from core.valuation import REHAB_PER_SF_PRESETS, REHAB_PPSF_BY_TIER
from reporting import OfferSheet, generate_offer_sheet


# =============================================================================
# Router Setup
# =============================================================================

router = APIRouter(tags=["leads"])


# =============================================================================
# Request Models
# =============================================================================


class LeadCreateRequest(BaseModel):
    """
    New lead payload.

    Intake answers of any schema revision are passed as extra fields.
    """

    model_config = ConfigDict(extra="allow")

    street: str = ""
    city: str = ""
    state: str = ""
    zip: str = ""
    seller_name: Optional[str] = None
    seller_phone: Optional[str] = None
    seller_email: Optional[str] = None
    created_by_email: Optional[str] = None
    baseline_market_value: Optional[Any] = None


class IntakeUpdateRequest(BaseModel):
    """Replacement intake answers, optionally with a new baseline."""

    model_config = ConfigDict(extra="allow")

    baseline_market_value: Optional[Any] = None


class RentalRequest(BaseModel):
    current_rent: Optional[float] = None
    market_rent: Optional[float] = None
    mgmt_mode: Optional[str] = None
    mgmt_pct: Optional[float] = None


# =============================================================================
# Serialisation
# =============================================================================


def lead_summary(record: LeadRecord) -> dict:
    return {
        **record.lead.to_dict(),
        "cash_offer_low": record.valuation.cash_offer_low,
        "cash_offer_high": record.valuation.cash_offer_high,
        "pursue_score": record.valuation.pursue_score,
    }


def lead_detail(record: LeadRecord, service: LeadService) -> dict:
    profile = service.profile_for(record)
    return {
        "lead": record.lead.to_dict(),
        "baseline_market_value": record.baseline_market_value,
        "intake": dict(record.intake),
        "profile": profile.to_dict(),
        "rental": record.rental.to_dict() if record.rental else None,
        "valuation": record.valuation.to_dict(),
        "photos": [p.to_dict() for p in record.photos],
        "photo_analysis": record.photo_analysis.to_dict() if record.photo_analysis else None,
    }


def _require_lead(service: LeadService, lead_id: str) -> LeadRecord:
    record = service.get_lead(lead_id)
    if record is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return record


# =============================================================================
# Leads
# =============================================================================


@router.post("/leads", status_code=201)
async def create_lead(
    payload: LeadCreateRequest,
    service: LeadService = Depends(get_lead_service),
):
    """Create a lead, normalise its intake and compute its valuation."""
    data = payload.model_dump()
    created_by = data.pop("created_by_email", None)

    record, validation = service.create_lead(data, created_by_email=created_by)
    if record is None:
        raise HTTPException(status_code=400, detail=validation.to_dict())

    return lead_detail(record, service)


@router.get("/leads")
async def list_leads(service: LeadService = Depends(get_lead_service)):
    """List leads newest first."""
    return {"leads": [lead_summary(r) for r in service.list_leads()]}


@router.get("/leads/{lead_id}")
async def get_lead(lead_id: str, service: LeadService = Depends(get_lead_service)):
    record = _require_lead(service, lead_id)
    return lead_detail(record, service)


@router.put("/leads/{lead_id}/intake")
async def update_intake(
    lead_id: str,
    payload: IntakeUpdateRequest,
    service: LeadService = Depends(get_lead_service),
):
    """Replace intake answers and re-derive the valuation."""
    data = payload.model_dump()
    baseline = data.pop("baseline_market_value", None)

    try:
        record = service.update_intake(lead_id, data, baseline_market_value=baseline)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if record is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead_detail(record, service)


@router.put("/leads/{lead_id}/rental")
async def update_rental(
    lead_id: str,
    payload: RentalRequest,
    service: LeadService = Depends(get_lead_service),
):
    record = service.update_rental(lead_id, payload.model_dump())
    if record is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return lead_detail(record, service)


# =============================================================================
# Photos
# =============================================================================


@router.post("/leads/{lead_id}/photos", status_code=201)
async def upload_photo(
    lead_id: str,
    photo: UploadFile = File(...),
    service: LeadService = Depends(get_lead_service),
):
    """Upload one photo for a lead."""
    content = await photo.read()
    try:
        record = service.add_photo(lead_id, photo.filename or "photo", photo.content_type, content)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if record is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return record.to_dict()


@router.post("/leads/{lead_id}/photos/analyze")
async def analyze_photos(lead_id: str, service: LeadService = Depends(get_lead_service)):
    """Analyse a lead's photos (vision model or heuristic) and re-price."""
    try:
        record = service.analyze_photos(lead_id)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if record is None:
        raise HTTPException(status_code=404, detail="Lead not found")

    analysis = record.photo_analysis
    return {
        "ok": True,
        "mode": "heuristic" if analysis.is_heuristic else "vision",
        "analysis": analysis.to_dict(),
        "valuation": record.valuation.to_dict(),
    }


# =============================================================================
# Offers
# =============================================================================


@router.get("/leads/{lead_id}/sqft-offer")
async def sqft_offer(
    lead_id: str,
    tier: Optional[str] = Query(None, description="Rehab tier"),
    service: LeadService = Depends(get_lead_service),
):
    """Alternative rehab/sqft offer; reported separately from the cash band."""
    offer = service.sqft_offer(lead_id, tier)
    if offer is None:
        raise HTTPException(status_code=404, detail="Lead not found")
    return offer.to_dict()


@router.get("/leads/{lead_id}/offer-sheet")
async def offer_sheet(
    lead_id: str,
    tier: Optional[str] = Query(None, description="Rehab tier for the sqft model"),
    service: LeadService = Depends(get_lead_service),
):
    """Download the lead's offer sheet PDF."""
    record = _require_lead(service, lead_id)

    sheet = OfferSheet(
        reference=record.id,
        address=record.lead.address_line,
        valuation=record.valuation,
        sqft_offer=service.sqft_offer(lead_id, tier),
        photo_analysis=record.photo_analysis,
        prepared_on=date.today().isoformat(),
    )
    return Response(
        content=generate_offer_sheet(sheet),
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="offer-{record.id}.pdf"'},
    )


# =============================================================================
# Reference Data
# =============================================================================


@router.get("/reference/rehab-tiers")
async def rehab_tiers():
    return {
        "tiers": [{"tier": tier.value, "ppsf": ppsf} for tier, ppsf in REHAB_PPSF_BY_TIER.items()],
        "intake_presets": list(REHAB_PER_SF_PRESETS),
    }
