"""
Leads

Lead records, their storage and retention, and the service that keeps each
lead's valuation derived from its intake, rental data and photos.
"""

from core.leads.repository import (
    DEFAULT_RETENTION_DAYS,
    LeadRecord,
    LeadRepository,
    get_lead_repository,
)
from core.leads.service import (
    LeadService,
    build_lead_service,
    get_lead_service,
    rental_from_payload,
    split_intake_answers,
)

__all__ = [
    "DEFAULT_RETENTION_DAYS",
    "LeadRecord",
    "LeadRepository",
    "get_lead_repository",
    "LeadService",
    "build_lead_service",
    "get_lead_service",
    "rental_from_payload",
    "split_intake_answers",
]
