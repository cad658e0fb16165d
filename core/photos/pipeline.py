"""
Photo Pipeline - Intake + Photo Evidence -> Valuation

Three pure stages, always run from the stored intake so repeated analyses
never compound:

1. MERGE - high-confidence photo signals override intake fields
2. ENGINE - compute the base valuation on the effective profile
   (rent-gap adjustment applied here when the lead has rental data)
3. ADJUST - relative photo-evidence bump on top
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Final, Optional

from core.intake.normalize import OVERALL_ALIASES
from core.valuation import (
    UNKNOWN,
    ConditionProfile,
    PhotoAnalysisResult,
    RentalAssumptions,
    ScoringPolicy,
    Valuation,
    adjust_valuation_from_photo_analysis,
    apply_rent_gap_adjustment,
    compute_valuation,
)


DEFAULT_OVERRIDE_CONFIDENCE: Final = 0.75

# Systems downgraded one notch on a "minor" system-risk read
MINOR_RISK_DOWNGRADES: Final[dict[str, tuple[str, str]]] = {
    "electrical": ("updated", "serviceable"),
    "plumbing": ("updated", "serviceable"),
    "foundation": ("good", "minor"),
}

MAJOR_RISK_SYSTEMS: Final = ("electrical", "plumbing", "foundation")

OVERRIDES_PREFIX: Final = "Overrides applied:"


# =============================================================================
# Result Types
# =============================================================================


@dataclass(frozen=True)
class SignalMerge:
    """Stage 1 output: the effective profile and what changed."""

    profile: ConditionProfile
    conflict_notes: tuple[str, ...] = field(default_factory=tuple)
    applied_overrides: tuple[str, ...] = field(default_factory=tuple)

    @property
    def has_overrides(self) -> bool:
        return bool(self.applied_overrides) or bool(self.conflict_notes)


@dataclass(frozen=True)
class PipelineResult:
    """Full pipeline output."""

    base_valuation: Valuation
    valuation: Valuation
    merge: SignalMerge
    analysis: Optional[PhotoAnalysisResult] = None


# =============================================================================
# Stage 1: Merge
# =============================================================================


def merge_photo_signals(
    profile: ConditionProfile,
    analysis: Optional[PhotoAnalysisResult],
    override_confidence: float = DEFAULT_OVERRIDE_CONFIDENCE,
) -> SignalMerge:
    """
    Fold photo signals into a condition profile.

    Overrides apply only when the analysis confidence is at least
    override_confidence and the observed value is not "unknown".

    Args:
        profile: Profile normalised from the stored intake
        analysis: Latest photo analysis, or None
        override_confidence: Minimum confidence for any override

    Returns:
        SignalMerge with the effective profile and explanation notes
    """
    if analysis is None or analysis.confidence < override_confidence:
        return SignalMerge(profile=profile)

    changes: dict[str, str] = {}
    notes: list[str] = []
    applied: list[str] = []

    # Kitchen
    observed_kitchen = analysis.observed_kitchen
    if observed_kitchen != UNKNOWN and observed_kitchen != profile.kitchen_condition:
        notes.append(
            f"Photo evidence overrode intake kitchen rating: "
            f"{profile.kitchen_condition} -> {observed_kitchen}."
        )
        applied.append("kitchen_condition")
        changes["kitchen_condition"] = observed_kitchen

    # Overall condition (photo vocabulary -> canonical key)
    if analysis.observed_overall != UNKNOWN:
        observed_overall = OVERALL_ALIASES.get(analysis.observed_overall, UNKNOWN)
        if observed_overall != UNKNOWN and observed_overall != profile.condition_overall:
            notes.append(
                f"Photo evidence overrode overall condition: "
                f"{profile.condition_overall} -> {observed_overall}."
            )
            applied.append("condition_overall")
            changes["condition_overall"] = observed_overall

    # Water
    observed_water = analysis.observed_water_issues
    if observed_water != UNKNOWN and observed_water != profile.water_issues:
        notes.append(
            f"Photo evidence overrode water-issue indicator: "
            f"{profile.water_issues} -> {observed_water}."
        )
        applied.append("water_issues")
        changes["water_issues"] = observed_water

    # System risk
    if analysis.observed_system_risk == "major":
        for system in MAJOR_RISK_SYSTEMS:
            if getattr(profile, system) != "major":
                notes.append(f"Photo evidence flagged major system risk; {system} set to major.")
                applied.append(system)
            changes[system] = "major"
    elif analysis.observed_system_risk == "minor":
        for system, (from_key, to_key) in MINOR_RISK_DOWNGRADES.items():
            if getattr(profile, system) == from_key:
                changes[system] = to_key
                applied.append(system)
        notes.append(
            "Photo evidence flagged minor system risk; system assumptions were made more conservative."
        )

    return SignalMerge(
        profile=replace(profile, **changes) if changes else profile,
        conflict_notes=tuple(notes),
        applied_overrides=tuple(applied),
    )


# =============================================================================
# Full Pipeline
# =============================================================================


def run_photo_pipeline(
    baseline_market_value: float,
    profile: ConditionProfile,
    analysis: Optional[PhotoAnalysisResult] = None,
    rental: Optional[RentalAssumptions] = None,
    policy: Optional[ScoringPolicy] = None,
    override_confidence: float = DEFAULT_OVERRIDE_CONFIDENCE,
) -> PipelineResult:
    """
    Derive a lead's valuation from its intake, rental data and photo analysis.

    Args:
        baseline_market_value: Caller-validated baseline (> 0)
        profile: Profile normalised from the stored intake
        analysis: Latest photo analysis, or None
        rental: Rental assumptions, or None
        policy: Scoring policy (default: current policy)
        override_confidence: Minimum analysis confidence for field overrides

    Returns:
        PipelineResult. The returned analysis leads with an
        "Overrides applied: ..." observation exactly when overrides applied.
    """
    merge = merge_photo_signals(profile, analysis, override_confidence)

    base = compute_valuation(baseline_market_value, merge.profile, policy)
    if merge.conflict_notes:
        base = replace(base, explanation_bullets=merge.conflict_notes + base.explanation_bullets)
    base = apply_rent_gap_adjustment(base, rental, policy)

    if analysis is None:
        return PipelineResult(base_valuation=base, valuation=base, merge=merge)

    valuation = adjust_valuation_from_photo_analysis(
        base, analysis.condition_score, analysis.confidence, policy
    )

    observations = tuple(o for o in analysis.observations if not o.startswith(OVERRIDES_PREFIX))
    if merge.applied_overrides:
        note = f"{OVERRIDES_PREFIX} {', '.join(merge.applied_overrides)}."
        observations = (note,) + observations
    analysis = replace(analysis, observations=observations)

    return PipelineResult(
        base_valuation=base,
        valuation=valuation,
        merge=merge,
        analysis=analysis,
    )
