"""Summary view — the display-ready projection of a VerificationResult."""

from __future__ import annotations

from vericite.models.citation import Citation, CitationStatus
from vericite.models.report import BIBLIOGRAPHY_STYLES, VerificationResult

STATUS_LABELS = {
    CitationStatus.VERIFIED: "Confirmed",
    CitationStatus.HALLUCINATION: "Likely Fabricated",
}
DEFAULT_STATUS_LABEL = "Unverifiable"

STYLE_LABELS = {"apa": "APA 7"}


def status_label(status: CitationStatus) -> str:
    return STATUS_LABELS.get(status, DEFAULT_STATUS_LABEL)


def style_label(style: str) -> str:
    return STYLE_LABELS.get(style, style.upper())


def build_summary_view(result: VerificationResult) -> dict:
    """Counts, one card per citation, and labelled bibliography blocks."""
    view = {
        "summary": result.summary.to_dict(),
        "cards": [_card(c) for c in result.citations],
        "bibliography": [],
    }
    if result.multi_style_bib is not None:
        styles = result.multi_style_bib.to_dict()
        view["bibliography"] = [
            {"style": style, "label": style_label(style), "text": styles[style]}
            for style in BIBLIOGRAPHY_STYLES
        ]
    return view


def _card(citation: Citation) -> dict:
    meta = citation.parsed_metadata
    return {
        "id": citation.id,
        "title": meta.title or "No Identifiable Title",
        "authors": ", ".join(meta.authors) or "Unknown Authors",
        "year": meta.year or "N/A",
        "status": citation.status.value,
        "label": status_label(citation.status),
        "confidencePct": round(citation.confidence_score * 100),
        "rawText": citation.raw_text,
        "explanation": citation.explanation,
        "sourceUrl": citation.source_url,
        "verificationSource": citation.verification_source,
    }
