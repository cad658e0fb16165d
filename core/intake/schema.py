"""
Lead Intake Schema - Seller Lead Records

Defines the lead record captured at intake time and the result object
returned by lead payload validation. The address is mandatory; seller
contact details are optional.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Final, Optional


# =============================================================================
# Enums
# =============================================================================


class LeadStatus(Enum):
    """
    Outcome of lead payload validation.

    ACCEPTED: address and baseline present, lead can be priced
    REJECTED: address fields or baseline missing/invalid - hard stop
    """

    ACCEPTED = "accepted"
    REJECTED = "rejected"


# =============================================================================
# Constants
# =============================================================================

# Address fields - lead rejected if any missing
REQUIRED_LEAD_FIELDS: Final[tuple[str, ...]] = (
    "street",
    "city",
    "state",
    "zip",
)

OPTIONAL_CONTACT_FIELDS: Final[tuple[str, ...]] = (
    "seller_name",
    "seller_phone",
    "seller_email",
)


# =============================================================================
# Lead
# =============================================================================


@dataclass
class Lead:
    """
    A seller lead.

    Address fields are stored trimmed. Contact fields are None when not
    supplied.
    """

    id: str
    street: str
    city: str
    state: str
    zip: str

    seller_name: Optional[str] = None
    seller_phone: Optional[str] = None
    seller_email: Optional[str] = None
    created_by_email: Optional[str] = None

    created_at: datetime = field(default_factory=datetime.utcnow)

    def __post_init__(self) -> None:
        for name in REQUIRED_LEAD_FIELDS:
            value = getattr(self, name)
            if not value or not str(value).strip():
                raise ValueError(f"{name} is required and cannot be empty")

    @property
    def address_line(self) -> str:
        """Single-line postal address."""
        return f"{self.street}, {self.city}, {self.state} {self.zip}"

    def to_dict(self) -> dict:
        """Convert lead to dictionary for serialisation."""
        return {
            "id": self.id,
            "created_at": self.created_at.isoformat(),
            "street": self.street,
            "city": self.city,
            "state": self.state,
            "zip": self.zip,
            "seller_name": self.seller_name,
            "seller_phone": self.seller_phone,
            "seller_email": self.seller_email,
            "created_by_email": self.created_by_email,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Lead":
        """Rebuild a lead previously produced by to_dict()."""
        created_at = data.get("created_at")
        return cls(
            id=data["id"],
            street=data["street"],
            city=data["city"],
            state=data["state"],
            zip=data["zip"],
            seller_name=data.get("seller_name"),
            seller_phone=data.get("seller_phone"),
            seller_email=data.get("seller_email"),
            created_by_email=data.get("created_by_email"),
            created_at=datetime.fromisoformat(created_at) if created_at else datetime.utcnow(),
        )


# =============================================================================
# Validation Result
# =============================================================================


@dataclass(frozen=True)
class LeadValidationResult:
    """
    Result of lead payload validation.

    Contains validation outcome, status, the parsed baseline and any error
    messages.
    """

    valid: bool
    status: LeadStatus
    missing_required_fields: tuple[str, ...]
    errors: tuple[str, ...]
    baseline_market_value: Optional[float] = None

    @property
    def is_blocked(self) -> bool:
        """Check if the lead is blocked from creation."""
        return self.status == LeadStatus.REJECTED

    def to_dict(self) -> dict:
        """Convert result to dictionary."""
        return {
            "valid": self.valid,
            "status": self.status.value,
            "is_blocked": self.is_blocked,
            "missing_required_fields": list(self.missing_required_fields),
            "errors": list(self.errors),
        }
