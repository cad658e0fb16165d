"""
Photo Analysis Results

Builds PhotoAnalysisResult records from either a vision-model payload or
the deterministic photo-count heuristic. Both paths produce the same record
shape; only flags["model"] tells them apart.
"""

from __future__ import annotations

from typing import Any, Final, Mapping

from core.valuation.models import UNKNOWN, PhotoAnalysisResult, optional_number


# =============================================================================
# Vocabularies
# =============================================================================

HEURISTIC_MODEL: Final = "heuristic"

UPDATE_LEVELS: Final = ("Light cosmetics", "Moderate refresh", "Full renovation")
REHAB_TIERS: Final = ("Tier 1", "Tier 2", "Tier 3")

OBSERVED_KITCHEN: Final = frozenset({"updated", "average", "dated", UNKNOWN})
OBSERVED_OVERALL: Final = frozenset({"excellent", "good", "fair", "poor", UNKNOWN})
OBSERVED_WATER: Final = frozenset({"yes", "no", UNKNOWN})
OBSERVED_SYSTEM_RISK: Final = frozenset({"none", "minor", "major", UNKNOWN})

VISION_FLAG_KEYS: Final = ("limited_photos", "poor_lighting", "mostly_exterior", "severe_damage_visible")

MAX_OBSERVATIONS: Final = 6


# =============================================================================
# Heuristic Fallback
# =============================================================================


def update_level_for_score(score: float) -> str:
    if score > 85:
        return "Light cosmetics"
    if score > 70:
        return "Moderate refresh"
    return "Full renovation"


def rehab_tier_for_score(score: float) -> str:
    if score > 80:
        return "Tier 1"
    if score > 65:
        return "Tier 2"
    return "Tier 3"


def heuristic_from_photo_count(photo_count: int) -> PhotoAnalysisResult:
    """
    Deterministic analysis used when no vision model is available.

    More photos raise both the score and the confidence, within fixed caps.

    Args:
        photo_count: Number of photos on the lead

    Returns:
        PhotoAnalysisResult with flags["model"] == "heuristic"
    """
    count = max(0, int(photo_count))
    score = max(45, min(95, 68 + count * 2))
    confidence = round(min(0.92, 0.55 + count * 0.04), 2)

    return PhotoAnalysisResult(
        condition_score=score,
        confidence=confidence,
        update_level=update_level_for_score(score),
        rehab_tier=rehab_tier_for_score(score),
        observations=(
            f"Analyzed {count} photos from the latest upload batch.",
            "Fallback heuristic used (no vision model configured).",
        ),
        flags={
            "limited_photos": count < 6,
            "exterior_only_risk": 0 < count < 4,
            "model": HEURISTIC_MODEL,
        },
    )


# =============================================================================
# Vision Payload
# =============================================================================


def _clamp(value: Any, low: float, high: float) -> float:
    number = optional_number(value)
    if number is None:
        return low
    return max(low, min(high, number))


def _choice(value: Any, allowed: frozenset) -> str:
    text = str(value).strip().lower() if value is not None else ""
    return text if text in allowed else UNKNOWN


def parse_vision_payload(payload: Mapping[str, Any], model: str) -> PhotoAnalysisResult:
    """
    Re-validate a vision model's JSON answer.

    The model is asked for strict JSON but nothing it returns is trusted:
    numerics are clamped, enums outside the allowed set become "unknown",
    and observations are capped.

    Args:
        payload: Parsed JSON object from the model
        model: Model name recorded in flags["model"]

    Returns:
        PhotoAnalysisResult
    """
    score = _clamp(payload.get("conditionScore"), 0, 100)

    update_level = str(payload.get("updateLevel") or "")
    if update_level not in UPDATE_LEVELS:
        update_level = update_level_for_score(score)
    rehab_tier = str(payload.get("rehabTier") or "")
    if rehab_tier not in REHAB_TIERS:
        rehab_tier = rehab_tier_for_score(score)

    raw_observations = payload.get("observations")
    observations = (
        tuple(str(item) for item in raw_observations[:MAX_OBSERVATIONS])
        if isinstance(raw_observations, list)
        else ()
    )

    raw_flags = payload.get("flags")
    flags = {
        key: bool(raw_flags.get(key))
        for key in VISION_FLAG_KEYS
        if isinstance(raw_flags, Mapping) and key in raw_flags
    }
    flags["model"] = model

    return PhotoAnalysisResult(
        condition_score=score,
        confidence=_clamp(payload.get("confidence"), 0, 1),
        update_level=update_level,
        rehab_tier=rehab_tier,
        observed_kitchen=_choice(payload.get("observedKitchen"), OBSERVED_KITCHEN),
        observed_overall=_choice(payload.get("observedOverall"), OBSERVED_OVERALL),
        observed_water_issues=_choice(payload.get("observedWaterIssues"), OBSERVED_WATER),
        observed_system_risk=_choice(payload.get("observedSystemRisk"), OBSERVED_SYSTEM_RISK),
        observations=observations,
        flags=flags,
    )
