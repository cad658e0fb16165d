"""
Intake Normalisation - Wire Shapes to ConditionProfile

Intake answers have been captured in three shapes over time. Each shape has
an explicit mapping into the canonical ConditionProfile; the engine only
ever sees the canonical form.

Every categorical value resolves to a canonical key or to "unknown", which
the scoring policy scores with that field's default weight. Nothing here
raises on bad input.
"""

from __future__ import annotations

from typing import Any, Callable, Final, Mapping, Optional

from core.valuation.models import (
    UNKNOWN,
    ConditionProfile,
    SchemaRevision,
    optional_number,
)


# =============================================================================
# Canonical Vocabularies
# =============================================================================

OVERALL_KEYS: Final = frozenset({"high_end", "rent_ready", "standard", "dated", "fixer_upper"})
ROOM_KEYS: Final = frozenset({"updated", "average", "dated", "needs_replaced"})
ROOF_KEYS: Final = frozenset({"new", "average", "older", "needs_replaced"})
SYSTEM_KEYS: Final = frozenset({"updated", "serviceable", "outdated", "major"})
FOUNDATION_KEYS: Final = frozenset({"good", "minor", "major"})
OCCUPANCY_KEYS: Final = frozenset({"vacant", "occupied", "tenant"})
TIMELINE_KEYS: Final = frozenset({"asap", "soon", "flexible"})
MOTIVATION_KEYS: Final = frozenset({"high", "medium", "low"})
WATER_KEYS: Final = frozenset({"yes", "no"})


# =============================================================================
# Aliases (legacy and free-form values)
# =============================================================================

OVERALL_ALIASES: Final[Mapping[str, str]] = {
    "excellent": "high_end",
    "good": "standard",
    "fair": "dated",
    "poor": "fixer_upper",
    "fixer": "fixer_upper",
}

ROOM_ALIASES: Final[Mapping[str, str]] = {
    "new": "updated",
    "modern": "updated",
    "remodeled": "updated",
    "needs_replacement": "needs_replaced",
    "poor": "needs_replaced",
}

ROOF_ALIASES: Final[Mapping[str, str]] = {
    "old": "older",
    "needs_replacement": "needs_replaced",
}

SYSTEM_ALIASES: Final[Mapping[str, str]] = {
    "new": "updated",
    "modern": "updated",
    "ok": "updated",
    "fuse_knob_tube": "outdated",
    "knob_and_tube": "outdated",
    "needs_work": "outdated",
}

FOUNDATION_ALIASES: Final[Mapping[str, str]] = {
    "solid": "good",
    "ok": "good",
    "needs_work": "minor",
    "structural": "major",
}

OCCUPANCY_ALIASES: Final[Mapping[str, str]] = {
    "owner": "occupied",
    "owner_occupied": "occupied",
    "tenant_occupied": "tenant",
    "rented": "tenant",
    "empty": "vacant",
}

TIMELINE_ALIASES: Final[Mapping[str, str]] = {
    "immediately": "asap",
    "now": "asap",
    "30_days": "asap",
    "60_days": "soon",
    "90_days": "soon",
    "later": "flexible",
    "no_rush": "flexible",
    "6_months": "flexible",
}

WATER_ALIASES: Final[Mapping[str, str]] = {
    "true": "yes",
    "1": "yes",
    "false": "no",
    "0": "no",
    "none": "no",
}

# Age (years) -> condition breakpoints, inclusive upper bounds
ROOF_AGE_BANDS: Final[tuple[tuple[float, str], ...]] = (
    (5, "new"),
    (15, "average"),
    (25, "older"),
)
HVAC_AGE_BANDS: Final[tuple[tuple[float, str], ...]] = (
    (5, "new"),
    (12, "average"),
    (20, "older"),
)


# =============================================================================
# Helpers
# =============================================================================


def _key(value: Any) -> str:
    """Lowercase, underscore-separated key for a raw value."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return "_".join(str(value).lower().replace("-", " ").split())


def resolve_key(
    value: Any,
    vocabulary: frozenset,
    aliases: Optional[Mapping[str, str]] = None,
    fallback: str = UNKNOWN,
) -> str:
    """
    Resolve a raw value to a canonical key.

    Args:
        value: Raw wire value
        vocabulary: Canonical keys
        aliases: Legacy/free-form value -> canonical key
        fallback: Returned when the value is blank or unrecognised

    Returns:
        Canonical key or fallback
    """
    key = _key(value)
    if key in vocabulary:
        return key
    if aliases and key in aliases:
        return aliases[key]
    return fallback


def condition_from_age(
    age: Optional[float],
    bands: tuple[tuple[float, str], ...],
) -> str:
    """Map a component age in years to a roof/mechanicals condition key."""
    if age is None or age < 0:
        return UNKNOWN
    for upper, key in bands:
        if age <= upper:
            return key
    return "needs_replaced"


def _positive(value: Any) -> Optional[float]:
    number = optional_number(value)
    if number is None or number <= 0:
        return None
    return number


def _non_negative(value: Any) -> Optional[float]:
    number = optional_number(value)
    if number is None or number < 0:
        return None
    return number


def _notes(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _common_fields(raw: Mapping[str, Any]) -> dict:
    """Fields shared by every revision."""
    return {
        "occupancy": resolve_key(raw.get("occupancy"), OCCUPANCY_KEYS, OCCUPANCY_ALIASES, "occupied"),
        "timeline": resolve_key(raw.get("timeline"), TIMELINE_KEYS, TIMELINE_ALIASES),
        "motivation": resolve_key(raw.get("motivation"), MOTIVATION_KEYS),
        "condition_overall": resolve_key(raw.get("condition_overall"), OVERALL_KEYS, OVERALL_ALIASES),
        "electrical": resolve_key(raw.get("electrical"), SYSTEM_KEYS, SYSTEM_ALIASES),
        "foundation": resolve_key(raw.get("foundation"), FOUNDATION_KEYS, FOUNDATION_ALIASES),
        "square_feet": _positive(raw.get("square_feet")),
        "beds": _non_negative(raw.get("beds")),
        "baths": _non_negative(raw.get("baths")),
        "notes": _notes(raw.get("notes")),
    }


# =============================================================================
# Per-Revision Normalisers
# =============================================================================


def normalize_v1(raw: Mapping[str, Any]) -> ConditionProfile:
    """
    Age-based shape: combined kitchen_baths rating and numeric roof/HVAC ages.

    The combined rating is applied to both kitchen and bathrooms; ages are
    bucketed into roof and mechanicals conditions.
    """
    kitchen_baths = resolve_key(raw.get("kitchen_baths"), ROOM_KEYS, ROOM_ALIASES)
    roof_age = _non_negative(raw.get("roof_age"))
    hvac_age = _non_negative(raw.get("hvac_age"))

    return ConditionProfile(
        **_common_fields(raw),
        kitchen_condition=kitchen_baths,
        bathrooms_condition=kitchen_baths,
        roof_condition=condition_from_age(roof_age, ROOF_AGE_BANDS),
        mechanicals_condition=condition_from_age(hvac_age, HVAC_AGE_BANDS),
        plumbing=resolve_key(raw.get("plumbing"), SYSTEM_KEYS, SYSTEM_ALIASES),
        water_issues=resolve_key(raw.get("water_issues"), WATER_KEYS, WATER_ALIASES, "no"),
        roof_age=roof_age,
        hvac_age=hvac_age,
        schema_revision=SchemaRevision.V1,
    )


def normalize_v2(raw: Mapping[str, Any]) -> ConditionProfile:
    """Room-ratings shape. Plumbing and water were not captured."""
    return ConditionProfile(
        **_common_fields(raw),
        kitchen_condition=resolve_key(raw.get("kitchen_condition"), ROOM_KEYS, ROOM_ALIASES),
        bathrooms_condition=resolve_key(raw.get("bathrooms_condition"), ROOM_KEYS, ROOM_ALIASES),
        roof_condition=resolve_key(raw.get("roof_condition"), ROOF_KEYS, ROOF_ALIASES),
        mechanicals_condition=resolve_key(raw.get("mechanicals_condition"), ROOF_KEYS, ROOF_ALIASES),
        schema_revision=SchemaRevision.V2,
    )


def normalize_v3(raw: Mapping[str, Any]) -> ConditionProfile:
    """Current canonical shape. Ages fill in roof/mechanicals when no rating is given."""
    roof_age = _non_negative(raw.get("roof_age"))
    hvac_age = _non_negative(raw.get("hvac_age"))

    roof = resolve_key(raw.get("roof_condition"), ROOF_KEYS, ROOF_ALIASES)
    if roof == UNKNOWN:
        roof = condition_from_age(roof_age, ROOF_AGE_BANDS)
    mechanicals = resolve_key(raw.get("mechanicals_condition"), ROOF_KEYS, ROOF_ALIASES)
    if mechanicals == UNKNOWN:
        mechanicals = condition_from_age(hvac_age, HVAC_AGE_BANDS)

    return ConditionProfile(
        **_common_fields(raw),
        kitchen_condition=resolve_key(raw.get("kitchen_condition"), ROOM_KEYS, ROOM_ALIASES),
        bathrooms_condition=resolve_key(raw.get("bathrooms_condition"), ROOM_KEYS, ROOM_ALIASES),
        roof_condition=roof,
        mechanicals_condition=mechanicals,
        plumbing=resolve_key(raw.get("plumbing"), SYSTEM_KEYS, SYSTEM_ALIASES),
        water_issues=resolve_key(raw.get("water_issues"), WATER_KEYS, WATER_ALIASES, "no"),
        roof_age=roof_age,
        hvac_age=hvac_age,
        schema_revision=SchemaRevision.V3,
    )


NORMALIZERS: Final[Mapping[SchemaRevision, Callable[[Mapping[str, Any]], ConditionProfile]]] = {
    SchemaRevision.V1: normalize_v1,
    SchemaRevision.V2: normalize_v2,
    SchemaRevision.V3: normalize_v3,
}


# =============================================================================
# Entry Points
# =============================================================================


def detect_schema_revision(raw: Mapping[str, Any]) -> SchemaRevision:
    """
    Work out which shape a raw intake record uses.

    An explicit schema_version wins. Otherwise:
    - kitchen_baths, or ages without a roof rating -> V1
    - plumbing or water_issues -> V3
    - kitchen or roof rating without either -> V2
    - anything else -> V3
    """
    explicit = SchemaRevision.from_string(raw.get("schema_version") or raw.get("schema_revision"))
    if explicit is not None:
        return explicit

    if "kitchen_baths" in raw:
        return SchemaRevision.V1
    has_ages = "roof_age" in raw or "hvac_age" in raw
    if has_ages and "roof_condition" not in raw and "kitchen_condition" not in raw:
        return SchemaRevision.V1
    if "plumbing" in raw or "water_issues" in raw:
        return SchemaRevision.V3
    if "kitchen_condition" in raw or "roof_condition" in raw:
        return SchemaRevision.V2
    return SchemaRevision.V3


def normalize_intake(
    raw: Optional[Mapping[str, Any]],
    revision: Optional[SchemaRevision] = None,
) -> ConditionProfile:
    """
    Normalise a raw intake record into a ConditionProfile.

    Args:
        raw: Wire-format answers (any revision); None yields a default profile
        revision: Force a revision instead of detecting it

    Returns:
        Canonical ConditionProfile
    """
    data = raw or {}
    revision = revision or detect_schema_revision(data)
    return NORMALIZERS[revision](data)
