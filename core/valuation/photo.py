"""
Photo-Analysis Adjuster

Relative correction applied on top of an engine valuation, driven by a
condition score / confidence pair read from the lead's photos.

The adjuster never recomputes penalties. Whether photo observations should
also replace intake answers is decided upstream (see core.photos.pipeline).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Final, Optional

from .models import Valuation
from .policy import DEFAULT_POLICY, ScoringPolicy


# Score at which photos neither raise nor lower the band
NEUTRAL_CONDITION_SCORE: Final = 70.0
CONDITION_SCALE: Final = 200.0

# Zero-confidence analyses still carry 60% of the nominal bump
CONFIDENCE_FLOOR_WEIGHT: Final = 0.6
CONFIDENCE_SLOPE: Final = 0.4

MAX_PHOTO_BUMP: Final = 0.15
PURSUE_NUDGE_PER_CONFIDENCE: Final = 5
CONFIDENCE_NUDGE_PER_CONFIDENCE: Final = 0.1


def photo_bump(condition_score: float, confidence: float) -> float:
    """
    Relative band adjustment for a photo read.

    Args:
        condition_score: 0-100 (clamped)
        confidence: 0-1 (clamped)

    Returns:
        Fractional bump in [-0.15, 0.15]
    """
    score = _clamp(condition_score, 0.0, 100.0)
    weight_input = _clamp(confidence, 0.0, 1.0)

    condition_delta = (score - NEUTRAL_CONDITION_SCORE) / CONDITION_SCALE
    confidence_weight = CONFIDENCE_FLOOR_WEIGHT + weight_input * CONFIDENCE_SLOPE
    return _clamp(condition_delta * confidence_weight, -MAX_PHOTO_BUMP, MAX_PHOTO_BUMP)


def adjust_valuation_from_photo_analysis(
    valuation: Valuation,
    condition_score: float,
    confidence: float,
    policy: Optional[ScoringPolicy] = None,
) -> Valuation:
    """
    Scale the offer band by the photo bump and nudge signals upward.

    Args:
        valuation: Valuation to adjust (not modified)
        condition_score: Photo condition score, 0-100
        confidence: Photo analysis confidence, 0-1
        policy: Scoring policy supplying caps (default: current policy)

    Returns:
        New Valuation with an extra explanation bullet
    """
    policy = policy or DEFAULT_POLICY
    evidence_confidence = _clamp(confidence, 0.0, 1.0)
    bump = photo_bump(condition_score, evidence_confidence)

    low = max(0, round(valuation.cash_offer_low * (1 + bump)))
    high = max(0, round(valuation.cash_offer_high * (1 + bump)))

    if policy.pursue_score_enabled:
        pursue_score = min(
            100,
            max(0, valuation.pursue_score + round(evidence_confidence * PURSUE_NUDGE_PER_CONFIDENCE)),
        )
    else:
        pursue_score = 0

    new_confidence = round(
        min(
            policy.photo_confidence_cap,
            max(0.0, valuation.confidence + evidence_confidence * CONFIDENCE_NUDGE_PER_CONFIDENCE),
        ),
        2,
    )

    return replace(
        valuation,
        cash_offer_low=min(low, high),
        cash_offer_high=high,
        pursue_score=pursue_score,
        confidence=new_confidence,
        explanation_bullets=valuation.explanation_bullets
        + (f"Photo review adjusted range by {bump * 100:.1f}%.",),
    )


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, float(value)))
