"""
Offer Sheet - One-Page Lead Valuation PDF

Renders a lead's valuation for internal review: the cash-offer band and
listing-net benchmark, confidence and pursue score, the explanation trail,
the latest photo read and, in its own table, the rehab/sqft model offer.

Uses ReportLab with invariant=True so the same input renders the same bytes.
"""

from __future__ import annotations

from dataclasses import dataclass
from io import BytesIO
from pathlib import Path
from typing import Optional
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import LETTER
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import (
    ListFlowable,
    ListItem,
    Paragraph,
    SimpleDocTemplate,
    Spacer,
    Table,
    TableStyle,
)

from core.valuation import PhotoAnalysisResult, SqftOffer, Valuation
from utils.formatting import format_currency, format_percent


# =============================================================================
# Input
# =============================================================================


@dataclass(frozen=True)
class OfferSheet:
    """Everything printed on one offer sheet."""

    reference: str
    address: str
    valuation: Valuation
    sqft_offer: Optional[SqftOffer] = None
    photo_analysis: Optional[PhotoAnalysisResult] = None
    prepared_on: Optional[str] = None  # Display date, e.g. "2026-10-19"


# =============================================================================
# Styles
# =============================================================================


class Palette:
    """Print-friendly colours."""

    CHARCOAL = colors.Color(0.2, 0.2, 0.22)
    GRAY = colors.Color(0.5, 0.5, 0.5)
    LIGHT_GRAY = colors.Color(0.85, 0.85, 0.85)
    PALE_GRAY = colors.Color(0.95, 0.95, 0.95)
    WHITE = colors.white


def get_sheet_styles():
    styles = getSampleStyleSheet()
    styles.add(ParagraphStyle(
        name="SheetTitle",
        parent=styles["Title"],
        fontSize=16,
        leading=20,
        alignment=0,
        textColor=Palette.CHARCOAL,
        spaceAfter=2,
    ))
    styles.add(ParagraphStyle(
        name="SheetMeta",
        parent=styles["Normal"],
        fontSize=8.5,
        textColor=Palette.GRAY,
        spaceAfter=8,
    ))
    styles.add(ParagraphStyle(
        name="SectionTitle",
        parent=styles["Heading3"],
        fontSize=10.5,
        textColor=Palette.CHARCOAL,
        spaceBefore=10,
        spaceAfter=4,
    ))
    styles.add(ParagraphStyle(
        name="SheetBullet",
        parent=styles["Normal"],
        fontSize=8.5,
        leading=11,
    ))
    return styles


def _table_style() -> TableStyle:
    return TableStyle([
        ("FONTNAME", (0, 0), (-1, 0), "Helvetica-Bold"),
        ("FONTNAME", (0, 1), (-1, -1), "Helvetica"),
        ("FONTSIZE", (0, 0), (-1, -1), 8.5),
        ("BACKGROUND", (0, 0), (-1, 0), Palette.CHARCOAL),
        ("TEXTCOLOR", (0, 0), (-1, 0), Palette.WHITE),
        ("TEXTCOLOR", (0, 1), (-1, -1), Palette.CHARCOAL),
        ("ALIGN", (1, 0), (-1, -1), "RIGHT"),
        ("GRID", (0, 0), (-1, -1), 0.5, Palette.LIGHT_GRAY),
        ("TOPPADDING", (0, 0), (-1, -1), 2.5 * mm),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 2.5 * mm),
        ("ROWBACKGROUNDS", (0, 1), (-1, -1), [Palette.WHITE, Palette.PALE_GRAY]),
    ])


def _money(amount: float) -> str:
    return format_currency(round(amount), "USD")


# =============================================================================
# Generator
# =============================================================================


class OfferSheetGenerator:
    """
    Builds offer sheet PDFs.

    Usage:
        pdf_bytes = OfferSheetGenerator().generate_to_buffer(sheet)
    """

    MARGIN = 16 * mm

    def __init__(self):
        self.styles = get_sheet_styles()

    def generate_to_buffer(self, sheet: OfferSheet) -> bytes:
        """Render the sheet and return the PDF bytes."""
        buffer = BytesIO()
        self._build_document(sheet, buffer)
        return buffer.getvalue()

    def generate_to_file(self, sheet: OfferSheet, output_path: str) -> Path:
        """Render the sheet to a file and return its path."""
        path = Path(output_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(self.generate_to_buffer(sheet))
        return path

    def _build_document(self, sheet: OfferSheet, buffer: BytesIO) -> None:
        doc = SimpleDocTemplate(
            buffer,
            pagesize=LETTER,
            leftMargin=self.MARGIN,
            rightMargin=self.MARGIN,
            topMargin=self.MARGIN,
            bottomMargin=self.MARGIN,
            title=f"Offer Sheet - {sheet.reference}",
            author="Lead Valuation Engine",
            invariant=True,
        )

        story = []
        story.extend(self._build_header(sheet))
        story.extend(self._build_offer_table(sheet.valuation))
        if sheet.sqft_offer is not None:
            story.extend(self._build_sqft_table(sheet.sqft_offer))
        if sheet.photo_analysis is not None:
            story.extend(self._build_photo_section(sheet.photo_analysis))
        story.extend(self._build_explanation(sheet.valuation))

        doc.build(story)

    # =========================================================================
    # Sections
    # =========================================================================

    def _build_header(self, sheet: OfferSheet) -> list:
        meta = f"Reference {escape(sheet.reference)}"
        if sheet.prepared_on:
            meta += f" | Prepared {escape(sheet.prepared_on)}"
        return [
            Paragraph(escape(sheet.address), self.styles["SheetTitle"]),
            Paragraph(meta, self.styles["SheetMeta"]),
        ]

    def _build_offer_table(self, valuation: Valuation) -> list:
        rows = [
            ["Cash offer", "Value"],
            ["Baseline market value", _money(valuation.baseline_market_value)],
            ["Cash offer (low)", _money(valuation.cash_offer_low)],
            ["Cash offer (high)", _money(valuation.cash_offer_high)],
            ["Listing net estimate", _money(valuation.listing_net_estimate)],
            ["Confidence", format_percent(valuation.confidence * 100, 0)],
            ["Pursue score", f"{valuation.pursue_score} / 100"],
        ]
        table = Table(rows, colWidths=[110 * mm, 60 * mm])
        table.setStyle(_table_style())
        return [Paragraph("Offer Band", self.styles["SectionTitle"]), table]

    def _build_sqft_table(self, offer: SqftOffer) -> list:
        rows = [
            ["Rehab / sqft model", "Value"],
            ["Rehab tier", offer.tier.value.replace("_", " ")],
            ["Rehab $/sqft", _money(offer.ppsf)],
            ["Rehab cost", _money(offer.rehab_cost)],
            ["ARV minus rehab", _money(offer.offer)],
        ]
        table = Table(rows, colWidths=[110 * mm, 60 * mm])
        table.setStyle(_table_style())
        return [
            Paragraph("Alternative: Rehab / Sqft Model", self.styles["SectionTitle"]),
            table,
            Spacer(1, 3),
            Paragraph(
                "Shown for comparison only. Not blended into the cash-offer band.",
                self.styles["SheetMeta"],
            ),
        ]

    def _build_photo_section(self, analysis: PhotoAnalysisResult) -> list:
        summary = (
            f"Score {analysis.condition_score:.0f} / 100, confidence "
            f"{format_percent(analysis.confidence * 100, 0)}, {escape(analysis.update_level)}, "
            f"{escape(analysis.rehab_tier)} (via {escape(analysis.model)})."
        )
        elements = [
            Paragraph("Photo Review", self.styles["SectionTitle"]),
            Paragraph(summary, self.styles["SheetBullet"]),
        ]
        if analysis.observations:
            elements.append(self._bullets(analysis.observations))
        return elements

    def _build_explanation(self, valuation: Valuation) -> list:
        return [
            Paragraph("How This Was Priced", self.styles["SectionTitle"]),
            self._bullets(valuation.explanation_bullets),
        ]

    def _bullets(self, lines) -> ListFlowable:
        return ListFlowable(
            [ListItem(Paragraph(escape(line), self.styles["SheetBullet"])) for line in lines],
            bulletType="bullet",
            leftIndent=10,
        )


def generate_offer_sheet(sheet: OfferSheet) -> bytes:
    """Render an offer sheet to PDF bytes."""
    return OfferSheetGenerator().generate_to_buffer(sheet)
