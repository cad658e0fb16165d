"""
Valuation Engine - Additive Penalty Model

Turns a baseline (after-repair) market value and a condition profile into a
cash-offer band, confidence, pursue score, listing-net benchmark and an
ordered explanation trail.

Pipeline order:
1. PENALTY - base friction plus per-field condition penalties
2. SIZE - square-footage multiplier on the overall-condition penalty
3. OCCUPANCY - tenant/owner friction
4. SYSTEMS - dollar repair reserves and spread haircuts (outside the penalty)
5. BAND - offer percentages shifted by haircuts, minus reserves
6. SIGNALS - pursue score and confidence
7. EXPLAIN - fixed-order explanation bullets

The engine is pure: no I/O, no clock, no randomness. It does not validate
the baseline; callers reject zero or non-finite values before invoking it.
A non-finite baseline is valued as 0 rather than raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

from utils.formatting import format_currency, format_percent

from .models import ConditionProfile, Valuation
from .policy import DEFAULT_POLICY, ScoringPolicy, SystemAdjustment


@dataclass(frozen=True)
class PenaltyBreakdown:
    """Every intermediate term of a valuation, kept for explanations and tests."""

    size_multiplier: float
    condition_base: float
    condition_sized: float
    kitchen: float
    bathrooms: float
    bath_count: float
    roof: float
    mechanicals: float
    occupancy: float
    water: float
    electrical: SystemAdjustment
    plumbing: SystemAdjustment
    foundation: SystemAdjustment
    total_penalty: float

    @property
    def system_repairs(self) -> float:
        return self.electrical.repairs + self.plumbing.repairs + self.foundation.repairs

    @property
    def system_pct_haircut(self) -> float:
        return self.electrical.pct + self.plumbing.pct + self.foundation.pct


class ValuationEngine:
    """
    Deterministic cash-offer valuation.

    Usage:
        engine = ValuationEngine()
        valuation = engine.compute(200000, profile)
    """

    def __init__(self, policy: Optional[ScoringPolicy] = None):
        """
        Initialize the engine.

        Args:
            policy: Scoring policy (default: current policy)
        """
        self._policy = policy or DEFAULT_POLICY

    @property
    def policy(self) -> ScoringPolicy:
        return self._policy

    def compute(
        self,
        baseline_market_value: float,
        answers: ConditionProfile,
    ) -> Valuation:
        """
        Compute a valuation.

        Args:
            baseline_market_value: After-repair market value (caller-validated > 0)
            answers: Canonical condition profile

        Returns:
            Fully populated Valuation
        """
        base = float(baseline_market_value)
        if not math.isfinite(base):
            base = 0.0
        breakdown = self.breakdown(answers)

        # Step 1: Adjusted value
        adjusted = base * max(0.0, 1 - breakdown.total_penalty)

        # Step 2: Offer band
        cash_offer_low, cash_offer_high = self._offer_band(adjusted, breakdown)

        # Step 3: Signals
        pursue_score = self._pursue_score(base, answers, breakdown)
        confidence = self._confidence(answers)

        # Step 4: Listing benchmark (independent of the band)
        listing_net = self._listing_net(base, breakdown.total_penalty)

        return Valuation(
            baseline_market_value=base,
            cash_offer_low=cash_offer_low,
            cash_offer_high=cash_offer_high,
            confidence=confidence,
            pursue_score=pursue_score,
            listing_net_estimate=listing_net,
            explanation_bullets=tuple(self._explain(base, answers, breakdown)),
        )

    def breakdown(self, answers: ConditionProfile) -> PenaltyBreakdown:
        """Resolve every penalty term for a profile."""
        policy = self._policy

        size_multiplier = policy.size_multiplier(answers.square_feet)

        condition_base = policy.condition_overall.lookup(answers.condition_overall)
        condition_sized = condition_base * size_multiplier
        kitchen = policy.kitchen.lookup(answers.kitchen_condition)
        bathrooms = policy.bathrooms.lookup(answers.bathrooms_condition)
        roof = policy.roof.lookup(answers.roof_condition)
        mechanicals = policy.mechanicals.lookup(answers.mechanicals_condition)
        occupancy = policy.occupancy.lookup(answers.occupancy)

        bath_count = 0.0
        if answers.bathrooms_condition in policy.bath_count_ratings:
            baths = max(0.0, answers.baths or 0.0)
            bath_count = min(policy.bath_count_cap, baths * policy.bath_count_rate)

        water = 0.0
        if answers.water_issues == "yes":
            water = policy.water_penalty * size_multiplier

        total = (
            policy.base_penalty
            + condition_sized
            + kitchen
            + bathrooms
            + bath_count
            + roof
            + mechanicals
            + occupancy
            + water
        )

        return PenaltyBreakdown(
            size_multiplier=size_multiplier,
            condition_base=condition_base,
            condition_sized=condition_sized,
            kitchen=kitchen,
            bathrooms=bathrooms,
            bath_count=bath_count,
            roof=roof,
            mechanicals=mechanicals,
            occupancy=occupancy,
            water=water,
            electrical=policy.electrical.lookup(answers.electrical),
            plumbing=policy.plumbing.lookup(answers.plumbing),
            foundation=policy.foundation.lookup(answers.foundation),
            total_penalty=total,
        )

    def _offer_band(
        self,
        adjusted: float,
        breakdown: PenaltyBreakdown,
    ) -> tuple[int, int]:
        """Offer percentages shifted by the system haircut, minus repair reserves."""
        haircut = breakdown.system_pct_haircut
        repairs = breakdown.system_repairs

        low_pct = max(0.0, self._policy.base_low_pct + haircut)
        high_pct = max(low_pct, self._policy.base_high_pct + haircut)

        high = max(0, round(adjusted * high_pct - repairs))
        low = max(0, round(adjusted * low_pct - repairs))
        return min(low, high), high

    def _pursue_score(
        self,
        base: float,
        answers: ConditionProfile,
        breakdown: PenaltyBreakdown,
    ) -> int:
        """
        Deal attractiveness (0-100).

        Lower penalty and lower system risk raise the score; seller motivation,
        a short timeline and a vacant house raise it further.
        """
        policy = self._policy
        if not policy.pursue_score_enabled:
            return 0

        system_risk = 0.0
        if base > 0:
            system_risk = min(
                policy.pursue_system_risk_cap,
                breakdown.system_repairs / base * 100,
            )

        score = policy.pursue_base
        score -= breakdown.total_penalty * policy.pursue_penalty_weight
        score -= system_risk
        score += policy.pursue_motivation.get(
            answers.motivation, policy.pursue_motivation_default
        )
        score += policy.pursue_timeline.get(
            answers.timeline, policy.pursue_timeline_default
        )
        if answers.occupancy == "vacant":
            score += policy.pursue_vacant_bonus

        return int(max(0, min(100, round(score))))

    def _confidence(self, answers: ConditionProfile) -> float:
        """Data-completeness confidence, capped by policy."""
        policy = self._policy
        if not policy.confidence_enabled:
            return 0.0

        confidence = policy.confidence_base

        notes_length = len((answers.notes or "").strip())
        long_min, long_bonus = policy.confidence_notes_long
        short_min, short_bonus = policy.confidence_notes_short
        if notes_length >= long_min:
            confidence += long_bonus
        elif notes_length >= short_min:
            confidence += short_bonus

        confidence += policy.confidence_motivation.get(answers.motivation, 0.0)

        for value in (answers.roof_age, answers.hvac_age, answers.square_feet):
            if value is not None:
                confidence += policy.confidence_per_field

        if answers.beds is not None and answers.baths is not None:
            confidence += policy.confidence_rooms_bonus

        return round(max(0.0, min(policy.confidence_cap, confidence)), 2)

    def _listing_net(self, base: float, total_penalty: float) -> int:
        """Traditional-sale net benchmark: a flat discount off baseline."""
        policy = self._policy
        net = base * policy.listing_factor - base * (total_penalty * policy.listing_penalty_share)
        return max(0, round(net))

    def _explain(
        self,
        base: float,
        answers: ConditionProfile,
        breakdown: PenaltyBreakdown,
    ) -> list[str]:
        """Build explanation bullets in a fixed order."""
        bullets = [f"Baseline value: {_money(base)}."]

        sf = answers.square_feet
        if sf:
            extra = base * (breakdown.condition_sized - breakdown.condition_base)
            bullets.append(
                f"Square footage effect: {sf:,.0f} sf is in the "
                f"{breakdown.size_multiplier:.2f}x band, so overall-condition penalty is "
                f"{_pct(breakdown.condition_base)} -> {_pct(breakdown.condition_sized)} "
                f"(about {_money(extra)} additional value impact before spread/repairs)."
            )
        else:
            bullets.append(
                "Square footage effect: not provided, so a neutral 1.00x multiplier "
                "is used for overall-condition penalty."
            )

        bullets.append(_penalty_line("Overall condition", answers.condition_overall, breakdown.condition_sized, base))
        bullets.append(_penalty_line("Kitchen", answers.kitchen_condition, breakdown.kitchen, base))

        bathrooms_line = (
            f"Bathrooms ({answers.bathrooms_condition}): base {_pct(breakdown.bathrooms)} "
            f"penalty (about {_money(base * breakdown.bathrooms)})"
        )
        if breakdown.bath_count > 0:
            bathrooms_line += (
                f", plus bath-count add-on {_pct(breakdown.bath_count)} "
                f"(about {_money(base * breakdown.bath_count)})."
            )
            bullets.append(bathrooms_line)
            bullets.append(
                f"Bath count ({_count(answers.baths)}): adds {_pct(breakdown.bath_count)} "
                f"because bathroom condition is {answers.bathrooms_condition}."
            )
        else:
            bullets.append(bathrooms_line + ".")

        bullets.append(_penalty_line("Roof", answers.roof_condition, breakdown.roof, base))
        bullets.append(_penalty_line("Mechanicals", answers.mechanicals_condition, breakdown.mechanicals, base))

        if breakdown.occupancy > 0:
            bullets.append(_penalty_line("Occupancy", answers.occupancy, breakdown.occupancy, base))

        for label, key, adjustment in (
            ("Electrical", answers.electrical, breakdown.electrical),
            ("Plumbing", answers.plumbing, breakdown.plumbing),
            ("Foundation", answers.foundation, breakdown.foundation),
        ):
            if adjustment.is_zero:
                continue
            bullets.append(
                f"{label} ({key}): spread haircut {_pct(adjustment.pct)} and repair "
                f"reserve {_money(adjustment.repairs)}."
            )

        if breakdown.water > 0:
            bullets.append(
                f"Water intrusion reported: adds {_pct(breakdown.water)} penalty "
                f"(about {_money(base * breakdown.water)})."
            )

        bullets.append(
            f"Total condition/systems penalty before spread/repairs: "
            f"~{_pct(breakdown.total_penalty)}."
        )
        return bullets


def compute_valuation(
    baseline_market_value: float,
    answers: ConditionProfile,
    policy: Optional[ScoringPolicy] = None,
) -> Valuation:
    """
    Compute a valuation with the given (or default) scoring policy.

    This is the primary entry point for the engine.
    """
    return ValuationEngine(policy).compute(baseline_market_value, answers)


# =============================================================================
# Formatting Helpers
# =============================================================================


def _money(amount: float) -> str:
    return format_currency(round(amount), "USD")


def _pct(fraction: float) -> str:
    return format_percent(fraction * 100)


def _count(value: Optional[float]) -> str:
    if value is None:
        return "unknown"
    return f"{value:g}"


def _penalty_line(label: str, key: str, penalty: float, base: float) -> str:
    return f"{label} ({key}): adds {_pct(penalty)} penalty (about {_money(base * penalty)})."
