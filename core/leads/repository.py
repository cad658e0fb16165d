"""
Lead Repository - In-Memory Storage for Seller Leads

Stores each lead together with its raw intake answers, rental assumptions,
derived valuation, photos and latest photo analysis. In-memory with
optional JSON file persistence. Leads older than the retention window are
purged on demand.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any, Optional

from core.intake.schema import Lead
from core.photos.storage import PhotoRecord
from core.valuation.models import PhotoAnalysisResult, RentalAssumptions, Valuation

logger = logging.getLogger(__name__)

DEFAULT_RETENTION_DAYS = 7


# =============================================================================
# Lead Record
# =============================================================================


@dataclass
class LeadRecord:
    """
    Everything stored for one lead.

    intake holds the answers as submitted (any schema revision); the
    valuation is always re-derivable from intake, rental and photo_analysis.
    """

    lead: Lead
    baseline_market_value: float
    intake: dict[str, Any]
    valuation: Valuation
    rental: Optional[RentalAssumptions] = None
    photos: list[PhotoRecord] = field(default_factory=list)
    photo_analysis: Optional[PhotoAnalysisResult] = None
    updated_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def id(self) -> str:
        return self.lead.id

    @property
    def created_at(self) -> datetime:
        return self.lead.created_at

    def to_dict(self) -> dict:
        """Convert record to dictionary for serialisation."""
        return {
            "lead": self.lead.to_dict(),
            "baseline_market_value": self.baseline_market_value,
            "intake": dict(self.intake),
            "valuation": self.valuation.to_dict(),
            "rental": self.rental.to_dict() if self.rental else None,
            "photos": [p.to_dict() for p in self.photos],
            "photo_analysis": self.photo_analysis.to_dict() if self.photo_analysis else None,
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "LeadRecord":
        """Rebuild a record previously produced by to_dict()."""
        rental = data.get("rental")
        analysis = data.get("photo_analysis")
        updated_at = data.get("updated_at")
        return cls(
            lead=Lead.from_dict(data["lead"]),
            baseline_market_value=float(data["baseline_market_value"]),
            intake=dict(data.get("intake") or {}),
            valuation=Valuation.from_dict(data["valuation"]),
            rental=RentalAssumptions.from_dict(rental) if rental else None,
            photos=[PhotoRecord.from_dict(p) for p in data.get("photos", [])],
            photo_analysis=PhotoAnalysisResult.from_dict(analysis) if analysis else None,
            updated_at=datetime.fromisoformat(updated_at) if updated_at else datetime.utcnow(),
        )


# =============================================================================
# Repository
# =============================================================================


class LeadRepository:
    """
    Repository for storing and retrieving lead records.

    Uses in-memory storage with optional file persistence.
    """

    def __init__(
        self,
        persist_path: Optional[str] = None,
        retention_days: int = DEFAULT_RETENTION_DAYS,
    ):
        """
        Initialise repository.

        Args:
            persist_path: Optional path to persist data to JSON file
            retention_days: Age in days after which leads are purged
        """
        self._records: dict[str, LeadRecord] = {}
        self._persist_path = Path(persist_path) if persist_path else None
        self.retention_days = retention_days

        if self._persist_path and self._persist_path.exists():
            self._load_from_file()

    def _save_to_file(self) -> None:
        """Persist data to file."""
        if not self._persist_path:
            return

        data = {
            "leads": {lid: record.to_dict() for lid, record in self._records.items()},
            "saved_at": datetime.utcnow().isoformat(),
        }

        self._persist_path.parent.mkdir(parents=True, exist_ok=True)
        self._persist_path.write_text(json.dumps(data, indent=2))

    def _load_from_file(self) -> None:
        """Load data from file."""
        if not self._persist_path or not self._persist_path.exists():
            return

        try:
            data = json.loads(self._persist_path.read_text())
            for lid, record_data in data.get("leads", {}).items():
                self._records[lid] = LeadRecord.from_dict(record_data)
        except (json.JSONDecodeError, KeyError, ValueError, TypeError) as e:
            logger.warning("Could not load lead repository from %s: %s", self._persist_path, e)

    # =========================================================================
    # CRUD Operations
    # =========================================================================

    def add(self, record: LeadRecord) -> LeadRecord:
        """
        Store a new lead record.

        Raises:
            ValueError: If the lead id already exists
        """
        if record.id in self._records:
            raise ValueError(f"Lead {record.id} already exists")

        self._records[record.id] = record
        self._save_to_file()
        return record

    def get(self, lead_id: str) -> Optional[LeadRecord]:
        """Get a lead record by id, or None if not found."""
        return self._records.get(lead_id)

    def save(self, record: LeadRecord) -> LeadRecord:
        """Replace a stored record and stamp updated_at."""
        record.updated_at = datetime.utcnow()
        self._records[record.id] = record
        self._save_to_file()
        return record

    def delete(self, lead_id: str) -> bool:
        """
        Delete a lead record.

        Returns:
            True if deleted, False if not found
        """
        if lead_id in self._records:
            del self._records[lead_id]
            self._save_to_file()
            return True
        return False

    # =========================================================================
    # Query Operations
    # =========================================================================

    def list_all(self) -> list[LeadRecord]:
        """All records, newest first."""
        return sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)

    def count(self) -> int:
        return len(self._records)

    # =========================================================================
    # Retention
    # =========================================================================

    def purge_expired(self, now: Optional[datetime] = None) -> list[str]:
        """
        Delete leads created before the retention cutoff.

        Args:
            now: Reference time (default: utcnow)

        Returns:
            Ids of purged leads
        """
        cutoff = (now or datetime.utcnow()) - timedelta(days=self.retention_days)
        expired = [lid for lid, record in self._records.items() if record.created_at < cutoff]

        for lid in expired:
            del self._records[lid]

        if expired:
            logger.info("Purged %d lead(s) older than %d days", len(expired), self.retention_days)
            self._save_to_file()
        return expired

    def clear(self) -> None:
        """Clear all data (for testing)."""
        self._records.clear()
        self._save_to_file()


# =============================================================================
# Singleton Instance
# =============================================================================

_repository_instance: Optional[LeadRepository] = None


def get_lead_repository(
    persist_path: Optional[str] = None,
    retention_days: int = DEFAULT_RETENTION_DAYS,
) -> LeadRepository:
    """
    Get the lead repository singleton.

    Args:
        persist_path: Optional persistence path (only used on first call)
        retention_days: Retention window (only used on first call)

    Returns:
        LeadRepository instance
    """
    global _repository_instance
    if _repository_instance is None:
        _repository_instance = LeadRepository(persist_path, retention_days)
    return _repository_instance
