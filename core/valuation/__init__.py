"""
Valuation Engine

Deterministic cash-offer pricing for seller leads: the additive penalty
engine, the photo-analysis adjuster, the rehab/sqft side model and the
rental economics helpers. Everything in this package is pure.
"""

from .models import (
    ConditionProfile,
    ManagementMode,
    PhotoAnalysisResult,
    RehabTier,
    RentalAssumptions,
    SchemaRevision,
    SqftOffer,
    Valuation,
    UNKNOWN,
)
from .policy import (
    CURRENT_POLICY,
    DEFAULT_POLICY,
    LEGACY_ROOM_RATINGS_POLICY,
    POLICIES,
    PenaltyTable,
    ScoringPolicy,
    SizeBand,
    SystemAdjustment,
    SystemTable,
    get_policy,
)
from .engine import PenaltyBreakdown, ValuationEngine, compute_valuation
from .photo import adjust_valuation_from_photo_analysis, photo_bump
from .rehab import REHAB_PER_SF_PRESETS, REHAB_PPSF_BY_TIER, compute_sqft_model_offer
from .rental import (
    apply_rent_gap_adjustment,
    compute_management_expense,
    compute_rent_spread,
    rent_gap_bump,
    resolve_management_pct,
)

__all__ = [
    # Models
    "ConditionProfile",
    "ManagementMode",
    "PhotoAnalysisResult",
    "RehabTier",
    "RentalAssumptions",
    "SchemaRevision",
    "SqftOffer",
    "Valuation",
    "UNKNOWN",
    # Policy
    "CURRENT_POLICY",
    "DEFAULT_POLICY",
    "LEGACY_ROOM_RATINGS_POLICY",
    "POLICIES",
    "PenaltyTable",
    "ScoringPolicy",
    "SizeBand",
    "SystemAdjustment",
    "SystemTable",
    "get_policy",
    # Engine
    "PenaltyBreakdown",
    "ValuationEngine",
    "compute_valuation",
    # Photo adjuster
    "adjust_valuation_from_photo_analysis",
    "photo_bump",
    # Rehab model
    "REHAB_PER_SF_PRESETS",
    "REHAB_PPSF_BY_TIER",
    "compute_sqft_model_offer",
    # Rental
    "apply_rent_gap_adjustment",
    "compute_management_expense",
    "compute_rent_spread",
    "rent_gap_bump",
    "resolve_management_pct",
]

__version__ = "3.0"
