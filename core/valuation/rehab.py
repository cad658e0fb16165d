"""
Rehab/Sqft Offer Model

An alternative underwriting view: after-repair value minus a flat
per-square-foot rehab allowance picked by tier. It is reported next to the
engine's condition-discount band and never blended into it.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Any, Final, Mapping, Optional

from .models import RehabTier, SqftOffer


REHAB_PPSF_BY_TIER: Final[Mapping[RehabTier, float]] = MappingProxyType(
    {
        RehabTier.LOW_REHAB_RENTAL_ALMOST: 15,
        RehabTier.MID_REHAB: 25,
        RehabTier.FULL_REHAB_INTERIOR_COSMETICS: 35,
        RehabTier.ADD_EXTERIOR_COSMETICS: 40,
        RehabTier.FULL_REHAB_PLUS_BIG_TICKET: 45,
        RehabTier.GUT_JOB: 62,
    }
)

DEFAULT_TIER: Final = RehabTier.FULL_REHAB_INTERIOR_COSMETICS

# Intake dropdown presets (rehab $/sf by overall finish)
REHAB_PER_SF_PRESETS: Final[tuple[dict, ...]] = (
    {"key": "excellent", "value": 8, "label": "Excellent ($8/sf)"},
    {"key": "good", "value": 12, "label": "Good ($12/sf)"},
    {"key": "fair", "value": 16, "label": "Fair ($16/sf)"},
    {"key": "poor", "value": 22, "label": "Poor ($22/sf)"},
)


def compute_sqft_model_offer(
    arv: float,
    square_feet: Optional[float],
    tier: Any,
) -> SqftOffer:
    """
    Compute the ARV-minus-rehab offer.

    Args:
        arv: After-repair value
        square_feet: Living area, None when unknown (treated as 0)
        tier: RehabTier or its string value

    Returns:
        SqftOffer with ppsf, rehab_cost and offer (both >= 0)
    """
    resolved = RehabTier.from_string(tier) or DEFAULT_TIER
    ppsf = REHAB_PPSF_BY_TIER[resolved]
    sqft = max(0.0, square_feet or 0.0)

    rehab_cost = max(0, round(sqft * ppsf))
    offer = max(0, round(arv - rehab_cost))

    return SqftOffer(tier=resolved, ppsf=ppsf, rehab_cost=rehab_cost, offer=offer)
