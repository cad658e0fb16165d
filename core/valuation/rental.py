"""
Rental Economics Helpers

Management-fee resolution and the rent-gap adjustment applied to an engine
valuation when a lead carries rental assumptions.
"""

from __future__ import annotations

import math
from dataclasses import replace
from typing import Final, Optional

from utils.formatting import format_currency, format_signed_percent

from .models import ManagementMode, RentalAssumptions, Valuation
from .policy import DEFAULT_POLICY, ScoringPolicy


SELF_MANAGED_PCT: Final = 0.02
THIRD_PARTY_PCT: Final = 0.10

# Two independent clamps: on the raw gap ratio, then on the applied bump
MAX_RENT_SPREAD: Final = 0.40
RENT_BUMP_PER_SPREAD: Final = 0.12
MAX_RENT_BUMP: Final = 0.04

PURSUE_NUDGE_PER_BUMP: Final = 50
CONFIDENCE_NUDGE: Final = 0.02


def resolve_management_pct(assumptions: RentalAssumptions) -> float:
    """
    Management fee as a fraction of rent.

    An explicit, finite mgmt_pct (a percentage) wins; otherwise third-party
    management is 10% and self-management 2%.
    """
    if assumptions.mgmt_pct is not None and math.isfinite(assumptions.mgmt_pct):
        return assumptions.mgmt_pct / 100
    if assumptions.mgmt_mode == ManagementMode.THIRD_PARTY:
        return THIRD_PARTY_PCT
    return SELF_MANAGED_PCT


def compute_management_expense(annual_rent: float, assumptions: RentalAssumptions) -> float:
    """Annual management expense for a given annual rent."""
    return annual_rent * resolve_management_pct(assumptions)


def compute_rent_spread(
    current_rent: Optional[float],
    market_rent: Optional[float],
) -> Optional[float]:
    """
    Fractional gap between market and current rent.

    Positive when the property is under-rented. Clamped to [-0.4, 0.4].

    Returns:
        The clamped spread, or None when either rent is missing or market
        rent is not positive
    """
    if current_rent is None or market_rent is None:
        return None
    if not (math.isfinite(current_rent) and math.isfinite(market_rent)):
        return None
    if market_rent <= 0:
        return None

    spread = (market_rent - current_rent) / market_rent
    return max(-MAX_RENT_SPREAD, min(MAX_RENT_SPREAD, spread))


def rent_gap_bump(spread: float) -> float:
    """Multiplicative band bump for a rent spread, capped at +/-4%."""
    clamped_spread = max(-MAX_RENT_SPREAD, min(MAX_RENT_SPREAD, spread))
    return max(-MAX_RENT_BUMP, min(MAX_RENT_BUMP, clamped_spread * RENT_BUMP_PER_SPREAD))


def apply_rent_gap_adjustment(
    valuation: Valuation,
    assumptions: Optional[RentalAssumptions],
    policy: Optional[ScoringPolicy] = None,
) -> Valuation:
    """
    Adjust a valuation for the gap between current and market rent.

    Args:
        valuation: Valuation to adjust (not modified)
        assumptions: Rental assumptions, or None
        policy: Scoring policy supplying caps (default: current policy)

    Returns:
        Adjusted Valuation, or the input unchanged when there is no usable
        rent pair
    """
    if assumptions is None:
        return valuation

    spread = compute_rent_spread(assumptions.current_rent, assumptions.market_rent)
    if spread is None:
        return valuation

    policy = policy or DEFAULT_POLICY
    bump = rent_gap_bump(spread)

    low = max(0, round(valuation.cash_offer_low * (1 + bump)))
    high = max(0, round(valuation.cash_offer_high * (1 + bump)))

    if policy.pursue_score_enabled:
        pursue_score = max(0, min(100, valuation.pursue_score + round(bump * PURSUE_NUDGE_PER_BUMP)))
    else:
        pursue_score = 0

    confidence = valuation.confidence
    if policy.confidence_enabled and confidence < policy.confidence_cap:
        confidence = round(min(policy.confidence_cap, confidence + CONFIDENCE_NUDGE), 2)

    line = (
        f"Rent gap: current {format_currency(round(assumptions.current_rent), 'USD')} vs market "
        f"{format_currency(round(assumptions.market_rent), 'USD')} ({format_signed_percent(spread * 100)}) "
        f"adjusted range by {format_signed_percent(bump * 100)}."
    )

    return replace(
        valuation,
        cash_offer_low=min(low, high),
        cash_offer_high=high,
        pursue_score=pursue_score,
        confidence=confidence,
        explanation_bullets=valuation.explanation_bullets + (line,),
    )
