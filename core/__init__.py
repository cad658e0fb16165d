"""
Lead Valuation Engine - Core Business Logic

Pipeline:
1. Intake (lead validation, schema-revision normalisation)
2. Valuation (additive penalty engine, scoring policies)
3. Photos (vision/heuristic analysis, signal merge, photo adjustment)
4. Leads (repository, retention, orchestration)
"""

from .valuation import (
    ConditionProfile,
    Valuation,
    RentalAssumptions,
    PhotoAnalysisResult,
    RehabTier,
    ScoringPolicy,
    get_policy,
    compute_valuation,
    adjust_valuation_from_photo_analysis,
    compute_sqft_model_offer,
    apply_rent_gap_adjustment,
)
from .intake import Lead, normalize_intake, validate_lead_payload
from .photos import merge_photo_signals, run_photo_pipeline

__all__ = [
    # Valuation
    "ConditionProfile",
    "Valuation",
    "RentalAssumptions",
    "PhotoAnalysisResult",
    "RehabTier",
    "ScoringPolicy",
    "get_policy",
    "compute_valuation",
    "adjust_valuation_from_photo_analysis",
    "compute_sqft_model_offer",
    "apply_rent_gap_adjustment",
    # Intake
    "Lead",
    "normalize_intake",
    "validate_lead_payload",
    # Photos
    "merge_photo_signals",
    "run_photo_pipeline",
]
