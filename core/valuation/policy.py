"""
Scoring Policy - Versioned Penalty Tables

All numeric weights used by the valuation engine live here, as immutable
policy objects injected into the engine. Changing how a condition is scored
means publishing a new policy, not editing engine logic.

Policies:
- CURRENT_POLICY: canonical scoring (v3 intake shape)
- LEGACY_ROOM_RATINGS_POLICY: the room-ratings revision, which ignored
  plumbing and water and reported pursue score and confidence as 0
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Final, Mapping, Optional


# =============================================================================
# Building Blocks
# =============================================================================


@dataclass(frozen=True)
class PenaltyTable:
    """Condition key -> fractional penalty, with a fallback for unknown keys."""

    weights: Mapping[str, float]
    default: float

    def lookup(self, key: Optional[str]) -> float:
        if key is None:
            return self.default
        return self.weights.get(key, self.default)


@dataclass(frozen=True)
class SystemAdjustment:
    """
    Big-ticket system adjustment.

    repairs: dollar reserve subtracted from both offer bounds
    pct: spread haircut added to the offer-band percentages (<= 0)
    """

    repairs: float = 0.0
    pct: float = 0.0

    @property
    def is_zero(self) -> bool:
        return self.repairs == 0 and self.pct == 0


@dataclass(frozen=True)
class SystemTable:
    """System tier -> SystemAdjustment, with a fallback for unknown tiers."""

    adjustments: Mapping[str, SystemAdjustment]
    default: SystemAdjustment = SystemAdjustment()

    def lookup(self, key: Optional[str]) -> SystemAdjustment:
        if key is None:
            return self.default
        return self.adjustments.get(key, self.default)


@dataclass(frozen=True)
class SizeBand:
    """
    One step of the square-footage multiplier.

    A band matches when min_sqft <= sqft (min_sqft None = unbounded) and
    sqft <= max_sqft (max_sqft None = unbounded). Bands are checked in order.
    """

    multiplier: float
    min_sqft: Optional[float] = None
    max_sqft: Optional[float] = None

    def matches(self, sqft: float) -> bool:
        if self.min_sqft is not None and sqft < self.min_sqft:
            return False
        if self.max_sqft is not None and sqft > self.max_sqft:
            return False
        return True


def _table(weights: dict, default: float) -> PenaltyTable:
    return PenaltyTable(weights=MappingProxyType(dict(weights)), default=default)


def _systems(adjustments: dict) -> SystemTable:
    return SystemTable(
        adjustments=MappingProxyType(
            {k: SystemAdjustment(repairs=r, pct=p) for k, (r, p) in adjustments.items()}
        )
    )


# =============================================================================
# Policy
# =============================================================================


@dataclass(frozen=True)
class ScoringPolicy:
    """
    Complete scoring configuration for the valuation engine.

    Every table lookup is total: unknown keys fall back to the table default.
    """

    name: str

    base_penalty: float
    condition_overall: PenaltyTable
    kitchen: PenaltyTable
    bathrooms: PenaltyTable
    roof: PenaltyTable
    mechanicals: PenaltyTable

    # Bath-count add-on, applied only for the listed bathroom ratings
    bath_count_rate: float
    bath_count_cap: float
    bath_count_ratings: frozenset

    size_bands: tuple[SizeBand, ...]
    occupancy: PenaltyTable

    electrical: SystemTable
    plumbing: SystemTable
    foundation: SystemTable

    water_penalty: float

    # Offer band
    base_low_pct: float = 0.88
    base_high_pct: float = 0.94

    # Listing net benchmark
    listing_factor: float = 0.93
    listing_penalty_share: float = 0.35

    # Caps
    confidence_cap: float = 0.92
    photo_confidence_cap: float = 0.97

    # Pursue score
    pursue_score_enabled: bool = True
    pursue_base: float = 55.0
    pursue_penalty_weight: float = 60.0
    pursue_system_risk_cap: float = 25.0
    pursue_motivation: Mapping[str, float] = field(default_factory=dict)
    pursue_motivation_default: float = 5.0
    pursue_timeline: Mapping[str, float] = field(default_factory=dict)
    pursue_timeline_default: float = 4.0
    pursue_vacant_bonus: float = 5.0

    # Confidence
    confidence_enabled: bool = True
    confidence_base: float = 0.55
    confidence_notes_short: tuple[int, float] = (40, 0.05)
    confidence_notes_long: tuple[int, float] = (200, 0.10)
    confidence_motivation: Mapping[str, float] = field(default_factory=dict)
    confidence_per_field: float = 0.04
    confidence_rooms_bonus: float = 0.02

    def size_multiplier(self, square_feet: Optional[float]) -> float:
        """Step function over square footage. Unknown size is neutral (1.0)."""
        if square_feet is None or square_feet <= 0:
            return 1.0
        for band in self.size_bands:
            if band.matches(square_feet):
                return band.multiplier
        return 1.0


# =============================================================================
# Published Policies
# =============================================================================

_CONDITION_OVERALL = {
    "high_end": 0.02,
    "rent_ready": 0.04,
    "standard": 0.06,
    "dated": 0.12,
    "fixer_upper": 0.20,
}

_ROOM = {
    "updated": 0.015,
    "average": 0.04,
    "dated": 0.07,
    "needs_replaced": 0.10,
}

_ROOF_MECHANICALS = {
    "new": 0.0,
    "average": 0.03,
    "older": 0.06,
    "needs_replaced": 0.10,
}

# Canonical breakpoints: >= 3000 sf 1.14x, >= 2200 sf 1.08x, <= 950 sf 0.90x
_SIZE_BANDS = (
    SizeBand(multiplier=1.14, min_sqft=3000),
    SizeBand(multiplier=1.08, min_sqft=2200),
    SizeBand(multiplier=0.90, max_sqft=950),
)

CURRENT_POLICY: Final[ScoringPolicy] = ScoringPolicy(
    name="current",
    base_penalty=0.08,
    condition_overall=_table(_CONDITION_OVERALL, 0.08),
    kitchen=_table(_ROOM, 0.06),
    bathrooms=_table(_ROOM, 0.06),
    roof=_table(_ROOF_MECHANICALS, 0.04),
    mechanicals=_table(_ROOF_MECHANICALS, 0.04),
    bath_count_rate=0.005,
    bath_count_cap=0.03,
    bath_count_ratings=frozenset({"dated", "needs_replaced"}),
    size_bands=_SIZE_BANDS,
    occupancy=_table({"tenant": 0.03, "occupied": 0.02, "vacant": 0.0}, 0.02),
    electrical=_systems(
        {
            "updated": (0, 0.0),
            "serviceable": (2500, 0.0),
            "outdated": (12000, -0.02),
            "major": (25000, -0.05),
        }
    ),
    plumbing=_systems(
        {
            "updated": (0, 0.0),
            "serviceable": (2000, 0.0),
            "outdated": (9000, -0.015),
            "major": (20000, -0.04),
        }
    ),
    foundation=_systems(
        {
            "good": (0, 0.0),
            "minor": (7000, -0.01),
            "major": (35000, -0.07),
        }
    ),
    water_penalty=0.03,
    pursue_motivation=MappingProxyType({"high": 20.0, "medium": 10.0, "low": 0.0}),
    pursue_timeline=MappingProxyType({"asap": 15.0, "soon": 8.0, "flexible": 0.0}),
    confidence_motivation=MappingProxyType({"high": 0.05, "medium": 0.03}),
)

# The room-ratings revision scored no plumbing or water, and its pursue
# score and confidence were hardcoded to 0.
# TODO: confirm with underwriting whether the zeroed pursue score was intended
# before retiring this policy.
LEGACY_ROOM_RATINGS_POLICY: Final[ScoringPolicy] = replace(
    CURRENT_POLICY,
    name="legacy_room_ratings",
    plumbing=SystemTable(adjustments=MappingProxyType({})),
    water_penalty=0.0,
    pursue_score_enabled=False,
    confidence_enabled=False,
)

POLICIES: Final[Mapping[str, ScoringPolicy]] = MappingProxyType(
    {
        CURRENT_POLICY.name: CURRENT_POLICY,
        LEGACY_ROOM_RATINGS_POLICY.name: LEGACY_ROOM_RATINGS_POLICY,
    }
)

DEFAULT_POLICY: Final[ScoringPolicy] = CURRENT_POLICY


def get_policy(name: Optional[str] = None) -> ScoringPolicy:
    """
    Look up a published policy by name.

    Args:
        name: Policy name (default: current)

    Raises:
        ValueError: If no policy has that name
    """
    if not name:
        return DEFAULT_POLICY
    key = name.lower().strip()
    if key not in POLICIES:
        raise ValueError(f"Unknown scoring policy: {name}")
    return POLICIES[key]
