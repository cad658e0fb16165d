"""
Lead Service - Lead Lifecycle Orchestration

Creates leads, stores intake/rental/photo data and keeps each lead's
valuation in step with it. Every change re-derives the valuation from the
stored intake through the photo pipeline; nothing is adjusted in place, so
repeated edits or analyses never compound.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Final, Optional

from core.intake.normalize import normalize_intake
from core.intake.schema import OPTIONAL_CONTACT_FIELDS, REQUIRED_LEAD_FIELDS, LeadValidationResult
from core.intake.validation import create_lead, parse_baseline_value
from core.leads.repository import LeadRecord, LeadRepository, get_lead_repository
from core.photos.analysis import heuristic_from_photo_count
from core.photos.pipeline import DEFAULT_OVERRIDE_CONFIDENCE, run_photo_pipeline
from core.photos.storage import PhotoRecord, PhotoStorage, get_photo_storage
from core.photos.vision import VisionAPIError, VisionClient
from core.valuation import (
    ConditionProfile,
    PhotoAnalysisResult,
    RentalAssumptions,
    ScoringPolicy,
    SqftOffer,
    compute_sqft_model_offer,
    get_policy,
)
from utils.config import Config

logger = logging.getLogger(__name__)


RENTAL_FIELDS: Final[tuple[str, ...]] = ("current_rent", "market_rent", "mgmt_mode", "mgmt_pct")

# Payload keys that are not intake answers
NON_INTAKE_FIELDS: Final = frozenset(
    REQUIRED_LEAD_FIELDS
    + OPTIONAL_CONTACT_FIELDS
    + RENTAL_FIELDS
    + ("baseline_market_value", "created_by_email", "rental")
)

VISION_UNAVAILABLE_NOTE: Final = "Vision model unavailable; used fallback heuristic."


def split_intake_answers(payload: dict[str, Any]) -> dict[str, Any]:
    """The intake-answer part of a lead payload."""
    return {k: v for k, v in payload.items() if k not in NON_INTAKE_FIELDS and v is not None}


def rental_from_payload(payload: dict[str, Any]) -> Optional[RentalAssumptions]:
    """
    Rental assumptions from a payload, or None when no rental field is set.

    Accepts either top-level rental fields or a nested "rental" object.
    """
    source = payload.get("rental") if isinstance(payload.get("rental"), dict) else payload
    if not any(source.get(name) not in (None, "") for name in RENTAL_FIELDS):
        return None
    return RentalAssumptions.from_dict(source)


class LeadService:
    """
    Orchestrates leads, their valuations and photos.

    Usage:
        service = LeadService(LeadRepository(), PhotoStorage("data/photos"))
        record, validation = service.create_lead(payload)
    """

    def __init__(
        self,
        repository: LeadRepository,
        photo_storage: PhotoStorage,
        vision_client: Optional[VisionClient] = None,
        policy: Optional[ScoringPolicy] = None,
        override_confidence: float = DEFAULT_OVERRIDE_CONFIDENCE,
    ):
        self.repository = repository
        self.photo_storage = photo_storage
        self.vision_client = vision_client
        self.policy = policy or get_policy()
        self.override_confidence = override_confidence

    # =========================================================================
    # Derivation
    # =========================================================================

    def profile_for(self, record: LeadRecord) -> ConditionProfile:
        """Canonical profile for a record's stored intake."""
        return normalize_intake(record.intake)

    def _derive(self, record: LeadRecord) -> LeadRecord:
        result = run_photo_pipeline(
            record.baseline_market_value,
            self.profile_for(record),
            analysis=record.photo_analysis,
            rental=record.rental,
            policy=self.policy,
            override_confidence=self.override_confidence,
        )
        record.valuation = result.valuation
        if result.analysis is not None:
            record.photo_analysis = result.analysis
        return record

    # =========================================================================
    # Leads
    # =========================================================================

    def create_lead(
        self,
        payload: dict[str, Any],
        created_by_email: Optional[str] = None,
    ) -> tuple[Optional[LeadRecord], LeadValidationResult]:
        """
        Validate a payload and create a priced lead.

        Args:
            payload: Address, contact, baseline_market_value, intake answers
                (any schema revision) and optional rental fields
            created_by_email: Operator creating the lead

        Returns:
            Tuple of (LeadRecord or None, LeadValidationResult)
        """
        lead, validation = create_lead(payload, created_by_email=created_by_email)
        if lead is None:
            logger.info("Rejected lead payload: %s", "; ".join(validation.errors))
            return None, validation

        intake = split_intake_answers(payload)
        rental = rental_from_payload(payload)
        profile = normalize_intake(intake)
        result = run_photo_pipeline(
            validation.baseline_market_value,
            profile,
            rental=rental,
            policy=self.policy,
        )

        record = LeadRecord(
            lead=lead,
            baseline_market_value=validation.baseline_market_value,
            intake=intake,
            valuation=result.valuation,
            rental=rental,
        )
        self.repository.add(record)
        logger.info(
            "Created lead %s (%s intake) offer %d-%d",
            lead.id,
            profile.schema_revision.value,
            record.valuation.cash_offer_low,
            record.valuation.cash_offer_high,
        )
        return record, validation

    def get_lead(self, lead_id: str) -> Optional[LeadRecord]:
        return self.repository.get(lead_id)

    def list_leads(self) -> list[LeadRecord]:
        """Purge expired leads, then list the rest newest first."""
        for lead_id in self.repository.purge_expired():
            self.photo_storage.delete_lead_photos(lead_id)
        return self.repository.list_all()

    def update_intake(
        self,
        lead_id: str,
        answers: dict[str, Any],
        baseline_market_value: Any = None,
    ) -> Optional[LeadRecord]:
        """
        Replace a lead's intake answers (and optionally its baseline).

        Returns:
            Updated record, or None if the lead does not exist

        Raises:
            ValueError: If a baseline is given but is not a positive number
        """
        record = self.repository.get(lead_id)
        if record is None:
            return None

        if baseline_market_value is not None:
            baseline = parse_baseline_value(baseline_market_value)
            if baseline is None:
                raise ValueError(
                    f"baseline_market_value must be a positive number: {baseline_market_value}"
                )
            record.baseline_market_value = baseline

        record.intake = split_intake_answers(answers)
        self._derive(record)
        return self.repository.save(record)

    def update_rental(self, lead_id: str, data: dict[str, Any]) -> Optional[LeadRecord]:
        """Set (or clear, with an empty payload) a lead's rental assumptions."""
        record = self.repository.get(lead_id)
        if record is None:
            return None

        record.rental = rental_from_payload(data)
        self._derive(record)
        return self.repository.save(record)

    def sqft_offer(self, lead_id: str, tier: Any = None) -> Optional[SqftOffer]:
        """Rehab/sqft offer using the lead's baseline as ARV."""
        record = self.repository.get(lead_id)
        if record is None:
            return None
        profile = self.profile_for(record)
        return compute_sqft_model_offer(record.baseline_market_value, profile.square_feet, tier)

    # =========================================================================
    # Photos
    # =========================================================================

    def add_photo(
        self,
        lead_id: str,
        file_name: str,
        content_type: Optional[str],
        content: bytes,
    ) -> Optional[PhotoRecord]:
        """
        Store a photo against a lead.

        Returns:
            PhotoRecord, or None if the lead does not exist

        Raises:
            ValueError: Unsupported content type, empty or oversize photo
        """
        record = self.repository.get(lead_id)
        if record is None:
            return None

        photo = self.photo_storage.store_photo(lead_id, file_name, content_type, content)
        record.photos.insert(0, photo)
        self.repository.save(record)
        logger.info("Stored photo %s for lead %s (%d bytes)", photo.id, lead_id, photo.size)
        return photo

    def _analyse(self, photos: list[PhotoRecord]) -> PhotoAnalysisResult:
        if self.vision_client is None or not self.vision_client.is_configured:
            return heuristic_from_photo_count(len(photos))

        try:
            return self.vision_client.analyze(photos)
        except VisionAPIError as e:
            logger.warning("Vision analysis failed, falling back to heuristic: %s", e)
            fallback = heuristic_from_photo_count(len(photos))
            return replace(
                fallback,
                observations=(VISION_UNAVAILABLE_NOTE,) + fallback.observations,
            )

    def analyze_photos(self, lead_id: str) -> Optional[LeadRecord]:
        """
        Analyse a lead's photos and re-derive its valuation.

        Returns:
            Updated record, or None if the lead does not exist

        Raises:
            ValueError: If the lead has no photos
        """
        record = self.repository.get(lead_id)
        if record is None:
            return None
        if not record.photos:
            raise ValueError("No photos found for this lead")

        record.photo_analysis = self._analyse(record.photos)
        self._derive(record)
        logger.info(
            "Photo analysis for lead %s via %s: score %.0f confidence %.2f",
            lead_id,
            record.photo_analysis.model,
            record.photo_analysis.condition_score,
            record.photo_analysis.confidence,
        )
        return self.repository.save(record)


# =============================================================================
# Singleton Instance
# =============================================================================

_service_instance: Optional[LeadService] = None


def build_lead_service(config: Optional[Config] = None) -> LeadService:
    """Wire a LeadService from configuration."""
    config = config or Config.load()
    vision = None
    if config.openai_api_key:
        vision = VisionClient(
            api_key=config.openai_api_key,
            model=config.openai_vision_model,
            timeout=config.vision_timeout,
            max_photos=config.vision_max_photos,
        )
    return LeadService(
        repository=get_lead_repository(config.leads_file, config.lead_retention_days),
        photo_storage=get_photo_storage(config.resolved_photo_storage_dir),
        vision_client=vision,
        policy=get_policy(config.scoring_policy),
        override_confidence=config.photo_override_confidence,
    )


def get_lead_service() -> LeadService:
    """Get the lead service singleton."""
    global _service_instance
    if _service_instance is None:
        _service_instance = build_lead_service()
    return _service_instance
