"""
Reporting module for the Lead Valuation Engine.

Renders one-page offer sheet PDFs for priced leads.

Usage:
    from reporting import OfferSheet, generate_offer_sheet

    pdf_bytes = generate_offer_sheet(OfferSheet(reference=lead_id, address=address, valuation=valuation))
"""

from .offer_sheet import OfferSheet, OfferSheetGenerator, generate_offer_sheet

__all__ = [
    "OfferSheet",
    "OfferSheetGenerator",
    "generate_offer_sheet",
]
