"""
Data models for the valuation engine.

Defines the canonical condition profile consumed by the engine, the
valuation record it produces, and the side records used by the photo
adjuster, the rental helpers and the rehab/sqft model.

All records are immutable once produced. Adjusters return new instances.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any, Optional


# =============================================================================
# Enums
# =============================================================================


class SchemaRevision(Enum):
    """
    Wire shape an intake record was captured in.

    V1: numeric roof/HVAC ages, combined kitchen_baths rating
    V2: room-by-room ratings, no plumbing or water fields
    V3: current canonical shape (V2 plus plumbing, water, ages)
    """

    V1 = "v1"
    V2 = "v2"
    V3 = "v3"

    @classmethod
    def from_string(cls, value: Any) -> Optional["SchemaRevision"]:
        """Convert string to SchemaRevision, case-insensitive."""
        if value is None:
            return None
        normalised = str(value).lower().strip()
        if normalised and not normalised.startswith("v"):
            normalised = f"v{normalised}"
        for member in cls:
            if member.value == normalised:
                return member
        return None


class RehabTier(Enum):
    """Price-per-square-foot presets for the rehab/sqft offer model."""

    LOW_REHAB_RENTAL_ALMOST = "low_rehab_rental_almost"
    MID_REHAB = "mid_rehab"
    FULL_REHAB_INTERIOR_COSMETICS = "full_rehab_interior_cosmetics"
    ADD_EXTERIOR_COSMETICS = "add_exterior_cosmetics"
    FULL_REHAB_PLUS_BIG_TICKET = "full_rehab_plus_big_ticket"
    GUT_JOB = "gut_job"

    @classmethod
    def from_string(cls, value: Any) -> Optional["RehabTier"]:
        """Convert string to RehabTier, case-insensitive."""
        if isinstance(value, cls):
            return value
        if value is None:
            return None
        normalised = str(value).lower().strip().replace("-", "_").replace(" ", "_")
        for member in cls:
            if member.value == normalised:
                return member
        return None


class ManagementMode(Enum):
    """Who manages the rental."""

    SELF = "self"
    THIRD_PARTY = "third_party"

    @classmethod
    def from_string(cls, value: Any) -> "ManagementMode":
        """Convert string to ManagementMode. Anything unrecognised is self-managed."""
        if isinstance(value, cls):
            return value
        normalised = str(value or "").lower().strip().replace("-", "_")
        if normalised == cls.THIRD_PARTY.value:
            return cls.THIRD_PARTY
        return cls.SELF


# =============================================================================
# Condition Profile
# =============================================================================


UNKNOWN: str = "unknown"


@dataclass(frozen=True)
class ConditionProfile:
    """
    Canonical intake answers used by the valuation engine.

    Categorical fields hold lowercase keys. A key the scoring policy does
    not know is scored with that field's documented default weight.
    """

    occupancy: str = "occupied"
    timeline: str = UNKNOWN
    motivation: str = UNKNOWN

    condition_overall: str = UNKNOWN
    kitchen_condition: str = UNKNOWN
    bathrooms_condition: str = UNKNOWN
    roof_condition: str = UNKNOWN
    mechanicals_condition: str = UNKNOWN

    # Big-ticket systems
    electrical: str = UNKNOWN
    plumbing: str = UNKNOWN
    foundation: str = UNKNOWN
    water_issues: str = "no"

    # Optional numerics
    square_feet: Optional[float] = None
    beds: Optional[float] = None
    baths: Optional[float] = None
    roof_age: Optional[float] = None
    hvac_age: Optional[float] = None

    notes: Optional[str] = None
    schema_revision: SchemaRevision = SchemaRevision.V3

    def to_dict(self) -> dict:
        """Convert profile to dictionary for serialisation."""
        data = asdict(self)
        data["schema_revision"] = self.schema_revision.value
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "ConditionProfile":
        """Rebuild a profile previously produced by to_dict()."""
        values = {k: v for k, v in data.items() if k in cls.__dataclass_fields__}
        revision = SchemaRevision.from_string(values.get("schema_revision"))
        values["schema_revision"] = revision or SchemaRevision.V3
        return cls(**values)


# =============================================================================
# Valuation
# =============================================================================


@dataclass(frozen=True)
class Valuation:
    """
    Output of the valuation engine.

    cash_offer_low <= cash_offer_high, both >= 0.
    explanation_bullets is ordered: baseline first, then each material
    contributor in a fixed order.
    """

    baseline_market_value: float
    cash_offer_low: int
    cash_offer_high: int
    confidence: float
    pursue_score: int
    listing_net_estimate: int
    explanation_bullets: tuple[str, ...] = field(default_factory=tuple)

    @property
    def offer_midpoint(self) -> int:
        """Midpoint of the cash-offer band."""
        return round((self.cash_offer_low + self.cash_offer_high) / 2)

    def to_dict(self) -> dict:
        """Convert valuation to dictionary for serialisation."""
        return {
            "baseline_market_value": self.baseline_market_value,
            "cash_offer_low": self.cash_offer_low,
            "cash_offer_high": self.cash_offer_high,
            "confidence": self.confidence,
            "pursue_score": self.pursue_score,
            "listing_net_estimate": self.listing_net_estimate,
            "explanation_bullets": list(self.explanation_bullets),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Valuation":
        """Rebuild a valuation, coercing stored numerics."""
        bullets = data.get("explanation_bullets")
        return cls(
            baseline_market_value=float(data.get("baseline_market_value", 0)),
            cash_offer_low=int(data.get("cash_offer_low", 0)),
            cash_offer_high=int(data.get("cash_offer_high", 0)),
            confidence=float(data.get("confidence", 0)),
            pursue_score=int(data.get("pursue_score", 0)),
            listing_net_estimate=int(data.get("listing_net_estimate", 0)),
            explanation_bullets=tuple(bullets) if isinstance(bullets, list) else (),
        )


# =============================================================================
# Rental Assumptions
# =============================================================================


@dataclass(frozen=True)
class RentalAssumptions:
    """Optional per-lead rental economics."""

    current_rent: Optional[float] = None
    market_rent: Optional[float] = None
    mgmt_mode: ManagementMode = ManagementMode.SELF
    mgmt_pct: Optional[float] = None  # Percentage, e.g. 8 means 8%

    def to_dict(self) -> dict:
        """Convert assumptions to dictionary for serialisation."""
        return {
            "current_rent": self.current_rent,
            "market_rent": self.market_rent,
            "mgmt_mode": self.mgmt_mode.value,
            "mgmt_pct": self.mgmt_pct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RentalAssumptions":
        """Create assumptions from raw data. Non-numeric values become None."""
        return cls(
            current_rent=optional_number(data.get("current_rent")),
            market_rent=optional_number(data.get("market_rent")),
            mgmt_mode=ManagementMode.from_string(data.get("mgmt_mode")),
            mgmt_pct=optional_number(data.get("mgmt_pct")),
        )


# =============================================================================
# Photo Analysis
# =============================================================================


@dataclass(frozen=True)
class PhotoAnalysisResult:
    """
    Condition read of a lead's photos.

    Produced by the vision model or the photo-count heuristic. The two are
    told apart only by flags["model"].
    """

    condition_score: float
    confidence: float
    update_level: str = "Moderate refresh"
    rehab_tier: str = "Tier 2"
    observed_kitchen: str = UNKNOWN
    observed_overall: str = UNKNOWN
    observed_water_issues: str = UNKNOWN
    observed_system_risk: str = UNKNOWN
    observations: tuple[str, ...] = field(default_factory=tuple)
    flags: dict = field(default_factory=dict)

    @property
    def model(self) -> str:
        """Name of the model that produced this result."""
        return str(self.flags.get("model", "heuristic"))

    @property
    def is_heuristic(self) -> bool:
        return self.model == "heuristic"

    def to_dict(self) -> dict:
        """Convert result to dictionary for serialisation."""
        return {
            "condition_score": self.condition_score,
            "confidence": self.confidence,
            "update_level": self.update_level,
            "rehab_tier": self.rehab_tier,
            "observed_kitchen": self.observed_kitchen,
            "observed_overall": self.observed_overall,
            "observed_water_issues": self.observed_water_issues,
            "observed_system_risk": self.observed_system_risk,
            "observations": list(self.observations),
            "flags": dict(self.flags),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PhotoAnalysisResult":
        """Rebuild a stored result."""
        observations = data.get("observations")
        return cls(
            condition_score=float(data.get("condition_score", 0)),
            confidence=float(data.get("confidence", 0)),
            update_level=str(data.get("update_level", "Moderate refresh")),
            rehab_tier=str(data.get("rehab_tier", "Tier 2")),
            observed_kitchen=str(data.get("observed_kitchen", UNKNOWN)),
            observed_overall=str(data.get("observed_overall", UNKNOWN)),
            observed_water_issues=str(data.get("observed_water_issues", UNKNOWN)),
            observed_system_risk=str(data.get("observed_system_risk", UNKNOWN)),
            observations=tuple(observations) if isinstance(observations, list) else (),
            flags=dict(data.get("flags") or {}),
        )


# =============================================================================
# Rehab / Sqft Offer
# =============================================================================


@dataclass(frozen=True)
class SqftOffer:
    """Alternative offer: ARV minus a per-square-foot rehab allowance."""

    tier: RehabTier
    ppsf: float
    rehab_cost: int
    offer: int

    def to_dict(self) -> dict:
        return {
            "tier": self.tier.value,
            "ppsf": self.ppsf,
            "rehab_cost": self.rehab_cost,
            "offer": self.offer,
        }


# =============================================================================
# Helpers
# =============================================================================


def optional_number(value: Any) -> Optional[float]:
    """Coerce a raw value to float, or None when blank or non-finite."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str) and not value.strip():
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number
