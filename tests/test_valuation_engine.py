"""
Tests for the Valuation Engine

Tests cover:
- Reference scenario (penalty, band, signals, listing net)
- Size multiplier bands
- Unknown enum fallbacks
- System haircuts and repair reserves
- Monotonicity and band invariants
- Scoring policies
"""

from dataclasses import replace

import pytest

from core.valuation import (
    CURRENT_POLICY,
    LEGACY_ROOM_RATINGS_POLICY,
    ConditionProfile,
    ValuationEngine,
    compute_valuation,
    get_policy,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def standard_profile():
    """Mid-range house with no system issues."""
    return ConditionProfile(
        condition_overall="standard",
        kitchen_condition="average",
        bathrooms_condition="average",
        roof_condition="average",
        mechanicals_condition="average",
        electrical="updated",
        foundation="good",
        occupancy="vacant",
        square_feet=1800,
    )


@pytest.fixture
def distressed_profile():
    """Worst case on every field."""
    return ConditionProfile(
        condition_overall="fixer_upper",
        kitchen_condition="needs_replaced",
        bathrooms_condition="needs_replaced",
        roof_condition="needs_replaced",
        mechanicals_condition="needs_replaced",
        electrical="major",
        plumbing="major",
        foundation="major",
        water_issues="yes",
        occupancy="tenant",
        baths=4,
        square_feet=3400,
    )


# =============================================================================
# Reference Scenario
# =============================================================================


class TestReferenceScenario:
    """$200,000 baseline, standard condition, no system issues."""

    def test_total_penalty(self, standard_profile):
        breakdown = ValuationEngine().breakdown(standard_profile)

        assert breakdown.size_multiplier == 1.0
        assert breakdown.total_penalty == pytest.approx(0.28)
        assert breakdown.system_repairs == 0
        assert breakdown.system_pct_haircut == 0

    def test_offer_band(self, standard_profile):
        valuation = compute_valuation(200000, standard_profile)

        assert valuation.cash_offer_low == 126720
        assert valuation.cash_offer_high == 135360
        assert valuation.offer_midpoint == 131040

    def test_signals(self, standard_profile):
        valuation = compute_valuation(200000, standard_profile)

        # 55 - 0.28*60 + 5 (motivation unknown) + 4 (timeline unknown) + 5 (vacant)
        assert valuation.pursue_score == 52
        # Base 0.55 plus square footage
        assert valuation.confidence == 0.59

    def test_listing_net_estimate(self, standard_profile):
        valuation = compute_valuation(200000, standard_profile)

        # 200000 * 0.93 - 200000 * 0.28 * 0.35
        assert valuation.listing_net_estimate == 166400

    def test_explanation_order(self, standard_profile):
        bullets = compute_valuation(200000, standard_profile).explanation_bullets

        assert bullets[0] == "Baseline value: $200,000."
        assert bullets[1].startswith("Square footage effect: 1,800 sf is in the 1.00x band")
        assert bullets[2] == "Overall condition (standard): adds 6.0% penalty (about $12,000)."
        assert bullets[3] == "Kitchen (average): adds 4.0% penalty (about $8,000)."
        assert bullets[-1] == "Total condition/systems penalty before spread/repairs: ~28.0%."

    def test_vacant_has_no_occupancy_bullet(self, standard_profile):
        bullets = compute_valuation(200000, standard_profile).explanation_bullets

        assert not any(b.startswith("Occupancy") for b in bullets)

    def test_deterministic(self, standard_profile):
        first = compute_valuation(200000, standard_profile)
        second = compute_valuation(200000, standard_profile)

        assert first == second


# =============================================================================
# Size Multiplier
# =============================================================================


class TestSizeMultiplier:
    """Tests for the square-footage step function."""

    @pytest.mark.parametrize(
        "sqft, expected",
        [
            (None, 1.0),
            (0, 1.0),
            (600, 0.90),
            (950, 0.90),
            (951, 1.0),
            (1800, 1.0),
            (2199, 1.0),
            (2200, 1.08),
            (2999, 1.08),
            (3000, 1.14),
            (5200, 1.14),
        ],
    )
    def test_bands(self, sqft, expected):
        assert CURRENT_POLICY.size_multiplier(sqft) == expected

    def test_size_scales_overall_condition_only(self):
        profile = ConditionProfile(condition_overall="fixer_upper", kitchen_condition="dated", square_feet=3200)

        breakdown = ValuationEngine().breakdown(profile)

        assert breakdown.condition_base == pytest.approx(0.20)
        assert breakdown.condition_sized == pytest.approx(0.228)
        assert breakdown.kitchen == pytest.approx(0.07)

    def test_missing_size_explained_as_neutral(self):
        valuation = compute_valuation(150000, ConditionProfile())

        assert "neutral 1.00x multiplier" in valuation.explanation_bullets[1]


# =============================================================================
# Fallbacks
# =============================================================================


class TestUnknownValues:
    """Unrecognised keys score with the field's default weight."""

    def test_unknown_room_rating_uses_default(self):
        breakdown = ValuationEngine().breakdown(ConditionProfile(kitchen_condition="granite"))

        assert breakdown.kitchen == pytest.approx(0.06)

    def test_unknown_roof_uses_default(self):
        breakdown = ValuationEngine().breakdown(ConditionProfile(roof_condition="unknown"))

        assert breakdown.roof == pytest.approx(0.04)

    def test_unknown_system_has_no_adjustment(self):
        breakdown = ValuationEngine().breakdown(ConditionProfile(electrical="mystery"))

        assert breakdown.electrical.is_zero

    def test_default_profile_never_fails(self):
        valuation = compute_valuation(100000, ConditionProfile())

        assert 0 <= valuation.cash_offer_low <= valuation.cash_offer_high


# =============================================================================
# Systems, Water, Bath Count, Occupancy
# =============================================================================


class TestSystemAdjustments:
    """Tests for dollar reserves and spread haircuts."""

    def test_major_electrical(self, standard_profile):
        profile = replace(standard_profile, electrical="major")

        valuation = compute_valuation(200000, profile)

        # 144,000 * 0.83 - 25,000 and 144,000 * 0.89 - 25,000
        assert valuation.cash_offer_low == 94520
        assert valuation.cash_offer_high == 103160
        assert "Electrical (major): spread haircut -5.0% and repair reserve $25,000." in (
            valuation.explanation_bullets
        )

    def test_system_reserves_lower_pursue_score(self, standard_profile):
        clean = compute_valuation(200000, standard_profile)
        risky = compute_valuation(200000, replace(standard_profile, foundation="major"))

        assert risky.pursue_score < clean.pursue_score

    def test_water_penalty_scaled_by_size(self):
        profile = ConditionProfile(water_issues="yes", square_feet=3000)

        breakdown = ValuationEngine().breakdown(profile)

        assert breakdown.water == pytest.approx(0.0342)

    def test_water_bullet(self, standard_profile):
        valuation = compute_valuation(200000, replace(standard_profile, water_issues="yes"))

        assert any(b.startswith("Water intrusion reported") for b in valuation.explanation_bullets)

    def test_bath_count_add_on(self):
        profile = ConditionProfile(bathrooms_condition="dated", baths=3)

        valuation = compute_valuation(200000, profile)
        breakdown = ValuationEngine().breakdown(profile)

        assert breakdown.bath_count == pytest.approx(0.015)
        assert "Bath count (3): adds 1.5% because bathroom condition is dated." in (
            valuation.explanation_bullets
        )

    def test_bath_count_capped(self):
        breakdown = ValuationEngine().breakdown(ConditionProfile(bathrooms_condition="needs_replaced", baths=12))

        assert breakdown.bath_count == pytest.approx(0.03)

    def test_no_bath_count_for_average_bathrooms(self):
        breakdown = ValuationEngine().breakdown(ConditionProfile(bathrooms_condition="average", baths=4))

        assert breakdown.bath_count == 0

    def test_tenant_occupancy_bullet(self, standard_profile):
        valuation = compute_valuation(200000, replace(standard_profile, occupancy="tenant"))

        assert "Occupancy (tenant): adds 3.0% penalty (about $6,000)." in valuation.explanation_bullets


# =============================================================================
# Invariants
# =============================================================================


class TestInvariants:
    """Band ordering, clamping and monotonicity."""

    @pytest.mark.parametrize(
        "field_name, ladder",
        [
            ("condition_overall", ["high_end", "rent_ready", "standard", "dated", "fixer_upper"]),
            ("kitchen_condition", ["updated", "average", "dated", "needs_replaced"]),
            ("bathrooms_condition", ["updated", "average", "dated", "needs_replaced"]),
            ("roof_condition", ["new", "average", "older", "needs_replaced"]),
            ("mechanicals_condition", ["new", "average", "older", "needs_replaced"]),
            ("electrical", ["updated", "serviceable", "outdated", "major"]),
            ("plumbing", ["updated", "serviceable", "outdated", "major"]),
            ("foundation", ["good", "minor", "major"]),
            ("water_issues", ["no", "yes"]),
        ],
    )
    def test_degrading_never_raises_offer(self, standard_profile, field_name, ladder):
        highs = [
            compute_valuation(200000, replace(standard_profile, **{field_name: value})).cash_offer_high
            for value in ladder
        ]

        assert highs == sorted(highs, reverse=True)

    def test_distressed_band_clamped(self, distressed_profile):
        valuation = compute_valuation(60000, distressed_profile)

        assert valuation.cash_offer_low >= 0
        assert valuation.cash_offer_high >= 0
        assert valuation.cash_offer_low <= valuation.cash_offer_high
        assert valuation.listing_net_estimate >= 0
        assert 0 <= valuation.pursue_score <= 100

    @pytest.mark.parametrize("baseline", [1, 25000, 200000, 3500000])
    def test_low_never_exceeds_high(self, distressed_profile, standard_profile, baseline):
        for profile in (distressed_profile, standard_profile):
            valuation = compute_valuation(baseline, profile)
            assert 0 <= valuation.cash_offer_low <= valuation.cash_offer_high

    @pytest.mark.parametrize("baseline", [0, float("nan"), float("inf"), float("-inf")])
    def test_degenerate_baseline_never_raises(self, standard_profile, baseline):
        valuation = compute_valuation(baseline, standard_profile)

        assert valuation.cash_offer_low == 0
        assert valuation.cash_offer_high == 0
        assert valuation.listing_net_estimate == 0
        assert 0 <= valuation.pursue_score <= 100
        assert valuation.explanation_bullets

    def test_confidence_capped(self):
        profile = ConditionProfile(
            motivation="high",
            notes="x" * 250,
            roof_age=4,
            hvac_age=6,
            square_feet=1500,
            beds=3,
            baths=2,
        )

        valuation = compute_valuation(200000, profile)

        # 0.55 + 0.10 + 0.05 + 3 * 0.04 + 0.02
        assert valuation.confidence == 0.84
        assert valuation.confidence <= CURRENT_POLICY.confidence_cap

    def test_motivated_seller_scores_higher(self, standard_profile):
        neutral = compute_valuation(200000, standard_profile)
        motivated = compute_valuation(
            200000, replace(standard_profile, motivation="high", timeline="asap")
        )

        assert motivated.pursue_score > neutral.pursue_score


# =============================================================================
# Policies
# =============================================================================


class TestPolicies:
    """Tests for published scoring policies."""

    def test_get_policy_default(self):
        assert get_policy() is CURRENT_POLICY
        assert get_policy("current") is CURRENT_POLICY

    def test_get_policy_case_insensitive(self):
        assert get_policy(" Legacy_Room_Ratings ") is LEGACY_ROOM_RATINGS_POLICY

    def test_get_policy_unknown(self):
        with pytest.raises(ValueError, match="Unknown scoring policy"):
            get_policy("aggressive")

    def test_legacy_zeroes_signals(self, standard_profile):
        valuation = compute_valuation(200000, standard_profile, LEGACY_ROOM_RATINGS_POLICY)

        assert valuation.pursue_score == 0
        assert valuation.confidence == 0.0
        assert valuation.cash_offer_low == 126720
        assert valuation.cash_offer_high == 135360

    def test_legacy_ignores_plumbing_and_water(self, standard_profile):
        baseline = compute_valuation(200000, standard_profile, LEGACY_ROOM_RATINGS_POLICY)
        leaky = compute_valuation(
            200000,
            replace(standard_profile, plumbing="major", water_issues="yes"),
            LEGACY_ROOM_RATINGS_POLICY,
        )

        assert leaky.cash_offer_high == baseline.cash_offer_high

    def test_engine_exposes_policy(self):
        assert ValuationEngine(LEGACY_ROOM_RATINGS_POLICY).policy.name == "legacy_room_ratings"
