"""
Lead Intake Module

Lead payload validation and the normalisation of intake answers (any
schema revision) into the canonical ConditionProfile.

Unknown answer values never raise; they fall back to documented defaults.
"""

from core.intake.schema import (
    Lead,
    LeadStatus,
    LeadValidationResult,
    REQUIRED_LEAD_FIELDS,
)
from core.intake.validation import (
    create_lead,
    parse_baseline_value,
    validate_lead_payload,
)
from core.intake.normalize import (
    condition_from_age,
    detect_schema_revision,
    normalize_intake,
    normalize_v1,
    normalize_v2,
    normalize_v3,
    resolve_key,
)

__all__ = [
    # Schema
    "Lead",
    "LeadStatus",
    "LeadValidationResult",
    "REQUIRED_LEAD_FIELDS",
    # Validation
    "create_lead",
    "parse_baseline_value",
    "validate_lead_payload",
    # Normalisation
    "condition_from_age",
    "detect_schema_revision",
    "normalize_intake",
    "normalize_v1",
    "normalize_v2",
    "normalize_v3",
    "resolve_key",
]
