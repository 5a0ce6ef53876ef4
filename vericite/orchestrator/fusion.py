"""Evidence fusion — turns verification signals into a citation status.

Two independent channels can corroborate a citation: the DOI resolving in the
metadata registry, and the search-grounded audit surfacing at least one web
reference. A positive status needs corroboration:

    no signal      -> UNVERIFIED     (0.5)
    one signal     -> PARTIAL_MATCH  (0.75)
    both signals   -> VERIFIED       (0.99)

Explicit fabrication markers in the audit text override all of the above with
HALLUCINATION (0.95), whatever the signals say.
"""

from __future__ import annotations

import logging

from vericite.backends.base import ReviewProposal
from vericite.models.citation import Citation, CitationStatus

logger = logging.getLogger(__name__)

FABRICATION_MARKERS = ("hallucinated", "fabricated", "fake")
REVIEW_MARKER = "[Skeptic Review]"

# Labels the review model may use that are not CitationStatus values
STATUS_ALIASES = {
    "UNVERIFIABLE": CitationStatus.UNVERIFIED,
}


def fuse(
    registry_match: bool, grounding_match: bool, fabrication_signal: bool
) -> tuple[CitationStatus, float]:
    """Combine the evidence flags into a (status, confidence) pair."""
    status, confidence = CitationStatus.UNVERIFIED, 0.5

    if registry_match != grounding_match:
        status, confidence = CitationStatus.PARTIAL_MATCH, 0.75

    if registry_match and grounding_match:
        status, confidence = CitationStatus.VERIFIED, 0.99

    if fabrication_signal:
        status, confidence = CitationStatus.HALLUCINATION, 0.95

    return status, confidence


def has_fabrication_markers(text: str) -> bool:
    lowered = (text or "").lower()
    return any(marker in lowered for marker in FABRICATION_MARKERS)


def parse_review_status(label: str) -> CitationStatus | None:
    """Map a proposed status label onto a final CitationStatus.

    Returns None for labels that cannot be a final status (PENDING, unknown).
    """
    key = (label or "").strip().upper().replace(" ", "_")
    if key in STATUS_ALIASES:
        return STATUS_ALIASES[key]
    try:
        status = CitationStatus(key)
    except ValueError:
        return None
    if status is CitationStatus.PENDING:
        return None
    return status


def apply_review(
    citations: list[Citation], proposals: list[ReviewProposal]
) -> list[Citation]:
    """Apply skeptic-review proposals in place and return the citations.

    A proposal only takes effect when it names a different status; the
    reasoning is appended to the existing explanation. Citations without a
    proposal are left untouched.
    """
    by_id: dict[str, ReviewProposal] = {}
    for proposal in proposals:
        by_id.setdefault(proposal.id, proposal)

    for citation in citations:
        proposal = by_id.get(citation.id)
        if proposal is None:
            continue
        new_status = parse_review_status(proposal.new_status)
        if new_status is None:
            logger.warning(
                "Ignoring review of %s with unknown status %r",
                citation.id, proposal.new_status,
            )
            continue
        if new_status == citation.status:
            continue

        logger.info(
            "Review changed %s from %s to %s",
            citation.id, citation.status.value, new_status.value,
        )
        citation.status = new_status
        citation.explanation = (
            f"{citation.explanation}\n\n{REVIEW_MARKER}: {proposal.reasoning}"
        )

    return citations
