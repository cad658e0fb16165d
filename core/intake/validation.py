"""
Lead Validation - Submission Rules and Failure States

Validates raw lead payloads before anything is stored or priced. Address
parts and a positive, finite baseline market value are required; the
condition answers themselves are never rejected (see normalize.py).
"""

from __future__ import annotations

import uuid
from typing import Any, Optional

from core.intake.schema import (
    OPTIONAL_CONTACT_FIELDS,
    REQUIRED_LEAD_FIELDS,
    Lead,
    LeadStatus,
    LeadValidationResult,
)
from core.valuation.models import optional_number


# =============================================================================
# Field Parsing
# =============================================================================


def _clean_text(value: Any) -> str:
    if value is None:
        return ""
    return str(value).strip()


def parse_baseline_value(value: Any) -> Optional[float]:
    """
    Parse a baseline market value.

    Returns:
        The value as a float, or None when missing, non-numeric, non-finite,
        zero or negative
    """
    number = optional_number(value)
    if number is None or number <= 0:
        return None
    return number


# =============================================================================
# Validation Functions
# =============================================================================


def validate_lead_payload(
    data: dict[str, Any],
    require_baseline: bool = True,
) -> LeadValidationResult:
    """
    Validate a raw lead payload.

    Args:
        data: Raw payload (address, contact, baseline_market_value, answers)
        require_baseline: Whether a baseline market value must be present

    Returns:
        LeadValidationResult with validation outcome
    """
    errors: list[str] = []
    missing_required: list[str] = []

    # === Address ===
    for name in REQUIRED_LEAD_FIELDS:
        if not _clean_text(data.get(name)):
            missing_required.append(name)
            errors.append(f"{name} is required and cannot be empty")

    # === Baseline ===
    baseline = None
    if require_baseline:
        raw_baseline = data.get("baseline_market_value")
        baseline = parse_baseline_value(raw_baseline)
        if raw_baseline is None or _clean_text(raw_baseline) == "":
            missing_required.append("baseline_market_value")
            errors.append("baseline_market_value is required")
        elif baseline is None:
            errors.append(f"baseline_market_value must be a positive number: {raw_baseline}")

    valid = not errors
    return LeadValidationResult(
        valid=valid,
        status=LeadStatus.ACCEPTED if valid else LeadStatus.REJECTED,
        missing_required_fields=tuple(missing_required),
        errors=tuple(errors),
        baseline_market_value=baseline,
    )


# =============================================================================
# Lead Creation
# =============================================================================


def create_lead(
    data: dict[str, Any],
    created_by_email: Optional[str] = None,
) -> tuple[Optional[Lead], LeadValidationResult]:
    """
    Create a Lead from a raw payload with validation.

    Args:
        data: Raw lead payload
        created_by_email: Email of the operator creating the lead

    Returns:
        Tuple of (Lead or None, LeadValidationResult)
    """
    validation = validate_lead_payload(data)
    if validation.is_blocked:
        return None, validation

    contact = {name: _clean_text(data.get(name)) or None for name in OPTIONAL_CONTACT_FIELDS}
    lead = Lead(
        id=str(uuid.uuid4()),
        street=_clean_text(data["street"]),
        city=_clean_text(data["city"]),
        state=_clean_text(data["state"]),
        zip=_clean_text(data["zip"]),
        created_by_email=created_by_email,
        **contact,
    )
    return lead, validation
