"""
Tests for Lead Storage and the Lead Service

Tests cover:
- Repository CRUD, persistence and retention
- Lead creation and rejection
- Intake and rental updates (always re-derived from stored intake)
- Photo upload and analysis (heuristic, vision, vision failure)
- Rehab/sqft offer for a lead
"""

from datetime import datetime, timedelta

import pytest

from core.leads import LeadRepository, LeadService, rental_from_payload, split_intake_answers
from core.leads.service import VISION_UNAVAILABLE_NOTE, build_lead_service
from core.photos import PhotoStorage, VisionAPIError, VisionClient
from core.valuation import (
    LEGACY_ROOM_RATINGS_POLICY,
    ManagementMode,
    PhotoAnalysisResult,
    RehabTier,
)
from utils.config import Config


JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg-body"


# =============================================================================
# Fixtures
# =============================================================================


class FakeVisionClient:
    """Stands in for VisionClient; returns a canned result or raises."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = 0

    @property
    def is_configured(self):
        return True

    def analyze(self, photos):
        self.calls += 1
        if self.error:
            raise self.error
        return self.result


class CannedSession:
    """Stands in for requests.Session; every POST returns the same JSON body."""

    def __init__(self, body):
        self.body = body

    def post(self, url, **kwargs):
        return self

    def raise_for_status(self):
        pass

    def json(self):
        return self.body


@pytest.fixture
def lead_payload():
    """Reference lead: $200,000 baseline, room-ratings intake."""
    return {
        "street": "42 Elm Street",
        "city": "Dayton",
        "state": "OH",
        "zip": "45402",
        "seller_name": "Pat Doe",
        "baseline_market_value": 200000,
        "condition_overall": "standard",
        "kitchen_condition": "average",
        "bathrooms_condition": "average",
        "roof_condition": "average",
        "mechanicals_condition": "average",
        "electrical": "updated",
        "foundation": "good",
        "occupancy": "vacant",
        "square_feet": 1800,
    }


@pytest.fixture
def photo_storage(tmp_path):
    return PhotoStorage(str(tmp_path / "photos"))


@pytest.fixture
def service(photo_storage):
    """Service with in-memory repository and no vision model."""
    return LeadService(LeadRepository(), photo_storage)


@pytest.fixture
def created(service, lead_payload):
    record, _ = service.create_lead(lead_payload, created_by_email="ops@example.com")
    return record


def vision_result(**overrides):
    defaults = dict(
        condition_score=60,
        confidence=0.9,
        update_level="Full renovation",
        rehab_tier="Tier 3",
        observed_kitchen="dated",
        observations=("Original cabinets and laminate counters.",),
        flags={"model": "gpt-4.1-mini"},
    )
    defaults.update(overrides)
    return PhotoAnalysisResult(**defaults)


# =============================================================================
# Payload Helpers
# =============================================================================


class TestPayloadHelpers:
    """Tests for splitting lead payloads."""

    def test_split_intake_answers(self, lead_payload):
        lead_payload["market_rent"] = 1400
        lead_payload["notes"] = None

        answers = split_intake_answers(lead_payload)

        assert "street" not in answers
        assert "baseline_market_value" not in answers
        assert "market_rent" not in answers
        assert "notes" not in answers
        assert answers["kitchen_condition"] == "average"

    def test_rental_from_top_level_fields(self):
        rental = rental_from_payload({"current_rent": "950", "market_rent": 1200, "mgmt_mode": "third_party"})

        assert rental.current_rent == 950.0
        assert rental.mgmt_mode == ManagementMode.THIRD_PARTY

    def test_rental_from_nested_object(self):
        rental = rental_from_payload({"rental": {"market_rent": 1200}})

        assert rental.market_rent == 1200.0

    def test_no_rental(self, lead_payload):
        assert rental_from_payload(lead_payload) is None
        assert rental_from_payload({"current_rent": ""}) is None


# =============================================================================
# Repository
# =============================================================================


class TestLeadRepository:
    """Tests for lead storage."""

    def test_duplicate_rejected(self, service, created):
        with pytest.raises(ValueError, match="already exists"):
            service.repository.add(created)

    def test_newest_first(self, service, lead_payload, created):
        created.lead.created_at = datetime.utcnow() - timedelta(days=1)
        newer, _ = service.create_lead(lead_payload)

        assert [r.id for r in service.repository.list_all()] == [newer.id, created.id]

    def test_delete(self, service, created):
        assert service.repository.delete(created.id)
        assert not service.repository.delete(created.id)
        assert service.get_lead(created.id) is None

    def test_persistence(self, tmp_path, photo_storage, lead_payload):
        path = tmp_path / "leads.json"
        first = LeadService(LeadRepository(str(path)), photo_storage)
        record, _ = first.create_lead(lead_payload)
        first.update_rental(record.id, {"current_rent": 1000, "market_rent": 1250})

        reloaded = LeadRepository(str(path))

        assert reloaded.count() == 1
        stored = reloaded.get(record.id)
        assert stored.valuation == record.valuation
        assert stored.rental == record.rental
        assert stored.intake == record.intake

    def test_corrupt_file_ignored(self, tmp_path):
        path = tmp_path / "leads.json"
        path.write_text("{not json")

        assert LeadRepository(str(path)).count() == 0

    def test_purge_expired(self, service, created):
        now = datetime.utcnow() + timedelta(days=8)

        assert service.repository.purge_expired(now=now) == [created.id]
        assert service.repository.count() == 0


# =============================================================================
# Lead Lifecycle
# =============================================================================


class TestCreateLead:
    """Tests for lead creation and pricing."""

    def test_reference_valuation(self, created):
        assert created.valuation.cash_offer_low == 126720
        assert created.valuation.cash_offer_high == 135360
        assert created.lead.created_by_email == "ops@example.com"
        assert created.intake["occupancy"] == "vacant"

    def test_rejected_payload(self, service, lead_payload):
        del lead_payload["city"]

        record, validation = service.create_lead(lead_payload)

        assert record is None
        assert "city" in validation.missing_required_fields
        assert service.repository.count() == 0

    def test_nan_baseline_rejected(self, service, lead_payload):
        lead_payload["baseline_market_value"] = "NaN"

        record, validation = service.create_lead(lead_payload)

        assert record is None
        assert validation.is_blocked

    def test_rental_on_create(self, service, lead_payload):
        lead_payload.update({"current_rent": 1000, "market_rent": 1250})

        record, _ = service.create_lead(lead_payload)

        assert record.valuation.cash_offer_high == 138609

    def test_legacy_policy(self, photo_storage, lead_payload):
        service = LeadService(LeadRepository(), photo_storage, policy=LEGACY_ROOM_RATINGS_POLICY)

        record, _ = service.create_lead(lead_payload)

        assert record.valuation.pursue_score == 0


class TestUpdates:
    """Tests for intake and rental updates."""

    def test_update_intake(self, service, created):
        answers = dict(created.intake, kitchen_condition="needs_replaced")

        record = service.update_intake(created.id, answers)

        assert record.valuation.cash_offer_high < 135360
        assert record.intake["kitchen_condition"] == "needs_replaced"

    def test_update_baseline(self, service, created):
        record = service.update_intake(created.id, created.intake, baseline_market_value="300000")

        assert record.baseline_market_value == 300000.0
        assert record.valuation.cash_offer_high == 203040

    def test_invalid_baseline(self, service, created):
        with pytest.raises(ValueError, match="must be a positive number"):
            service.update_intake(created.id, created.intake, baseline_market_value=-1)

    def test_unknown_lead(self, service):
        assert service.update_intake("missing", {}) is None
        assert service.update_rental("missing", {}) is None
        assert service.sqft_offer("missing") is None
        assert service.add_photo("missing", "a.jpg", "image/jpeg", JPEG_BYTES) is None
        assert service.analyze_photos("missing") is None

    def test_rental_set_and_cleared(self, service, created):
        record = service.update_rental(created.id, {"current_rent": 1000, "market_rent": 1250})
        assert record.valuation.cash_offer_high == 138609

        record = service.update_rental(created.id, {})
        assert record.rental is None
        assert record.valuation.cash_offer_high == 135360

    def test_sqft_offer(self, service, created):
        offer = service.sqft_offer(created.id, "gut_job")

        assert offer.tier == RehabTier.GUT_JOB
        assert offer.rehab_cost == 111600
        assert offer.offer == 88400


# =============================================================================
# Photos
# =============================================================================


class TestPhotos:
    """Tests for photo upload and analysis."""

    def test_add_photo(self, service, created):
        photo = service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)

        assert service.get_lead(created.id).photos == [photo]

    def test_newest_photo_first(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        latest = service.add_photo(created.id, "back.jpg", "image/jpeg", JPEG_BYTES)

        assert service.get_lead(created.id).photos[0] == latest

    def test_invalid_photo(self, service, created):
        with pytest.raises(ValueError, match="Unsupported content type"):
            service.add_photo(created.id, "notes.txt", "text/plain", b"hello")

    def test_analyze_without_photos(self, service, created):
        with pytest.raises(ValueError, match="No photos found"):
            service.analyze_photos(created.id)

    def test_heuristic_analysis(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)

        record = service.analyze_photos(created.id)

        assert record.photo_analysis.is_heuristic
        assert record.photo_analysis.condition_score == 70
        # Neutral score: band unchanged, signals nudged
        assert record.valuation.cash_offer_low == 126720
        assert record.valuation.cash_offer_high == 135360
        assert record.valuation.pursue_score == 55

    def test_repeated_analysis_does_not_compound(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        service.vision_client = FakeVisionClient(vision_result())

        first = service.analyze_photos(created.id).valuation
        second = service.analyze_photos(created.id).valuation

        assert first == second

    def test_vision_overrides_leave_intake_untouched(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        service.vision_client = FakeVisionClient(vision_result())

        record = service.analyze_photos(created.id)

        assert record.intake["kitchen_condition"] == "average"
        assert service.profile_for(record).kitchen_condition == "average"
        assert record.photo_analysis.observations[0] == "Overrides applied: kitchen_condition."
        assert record.valuation.explanation_bullets[0] == (
            "Photo evidence overrode intake kitchen rating: average -> dated."
        )

    def test_intake_update_keeps_photo_evidence(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        service.vision_client = FakeVisionClient(vision_result())
        service.analyze_photos(created.id)

        record = service.update_intake(created.id, dict(created.intake, occupancy="tenant"))

        assert record.valuation.explanation_bullets[-1].startswith("Photo review adjusted range by")
        assert record.valuation.explanation_bullets[0].startswith("Photo evidence overrode")

    def test_vision_failure_falls_back(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        service.vision_client = FakeVisionClient(error=VisionAPIError("timeout"))

        record = service.analyze_photos(created.id)

        assert record.photo_analysis.is_heuristic
        assert record.photo_analysis.observations[0] == VISION_UNAVAILABLE_NOTE

    def test_malformed_vision_response_falls_back(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        service.vision_client = VisionClient(api_key="sk-test", session=CannedSession({"output": ["unexpected"]}))

        record = service.analyze_photos(created.id)

        assert record.photo_analysis.is_heuristic
        assert record.photo_analysis.observations[0] == VISION_UNAVAILABLE_NOTE
        assert record.valuation.cash_offer_high == 135360

    def test_low_confidence_vision_only_adjusts(self, service, created):
        service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        service.vision_client = FakeVisionClient(vision_result(confidence=0.4))

        record = service.analyze_photos(created.id)

        assert not any(
            b.startswith("Photo evidence overrode") for b in record.valuation.explanation_bullets
        )
        assert record.valuation.cash_offer_high < 135360


# =============================================================================
# Retention
# =============================================================================


class TestRetention:
    """Leads past the retention window are purged with their photos."""

    def test_list_purges_expired(self, service, created, photo_storage, lead_payload):
        photo = service.add_photo(created.id, "front.jpg", "image/jpeg", JPEG_BYTES)
        created.lead.created_at = datetime.utcnow() - timedelta(days=8)
        fresh, _ = service.create_lead(lead_payload)

        remaining = service.list_leads()

        assert [r.id for r in remaining] == [fresh.id]
        assert photo_storage.retrieve_photo(photo.storage_path) is None

    def test_within_window_kept(self, service, created):
        created.lead.created_at = datetime.utcnow() - timedelta(days=6)

        assert [r.id for r in service.list_leads()] == [created.id]


# =============================================================================
# Wiring
# =============================================================================


class TestBuildService:
    """Tests for configuration wiring."""

    def test_build_without_api_key(self, tmp_path):
        config = Config(
            data_dir=str(tmp_path),
            openai_api_key=None,
            scoring_policy="legacy_room_ratings",
            photo_override_confidence=0.8,
        )

        service = build_lead_service(config)

        assert service.vision_client is None
        assert service.policy is LEGACY_ROOM_RATINGS_POLICY
        assert service.override_confidence == 0.8

    def test_config_redacts_key(self):
        assert Config(openai_api_key="sk-secret").to_dict()["openai_api_key"] == "***"
