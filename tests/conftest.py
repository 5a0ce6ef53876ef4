"""Shared fixtures: in-memory stand-ins for the Gemini and Crossref services."""

from __future__ import annotations

import pytest

from vericite.backends.base import (
    ExtractedCitation,
    GroundingReference,
    RegistryRecord,
    ReviewProposal,
    VerificationEvidence,
)
from vericite.models.citation import Citation
from vericite.models.report import Bibliography


class StubAuditor:
    """Scripted CitationAuditor; every call is recorded in ``calls``."""

    name = "Stub"

    def __init__(
        self,
        candidates: list[ExtractedCitation] | None = None,
        evidence: dict[str, VerificationEvidence] | None = None,
        proposals: list[ReviewProposal] | None = None,
        bibliography: Bibliography | None = None,
        extract_error: Exception | None = None,
        verify_error: Exception | None = None,
        review_error: Exception | None = None,
        bibliography_error: Exception | None = None,
    ) -> None:
        self.candidates = candidates or []
        self.evidence = evidence or {}
        self.proposals = proposals or []
        self.bibliography = bibliography or Bibliography(
            apa="Smith, J. (2020). X. Journal.",
            mla="Smith, John. \"X.\" Journal, 2020.",
            chicago="Smith, John. 2020. \"X.\" Journal.",
            ieee="[1] J. Smith, \"X,\" Journal, 2020.",
        )
        self.extract_error = extract_error
        self.verify_error = verify_error
        self.review_error = review_error
        self.bibliography_error = bibliography_error
        self.calls: list[str] = []
        self.reviewed: list[dict] = []
        self.rendered: list[str] = []
        self.exported: list[tuple[list[str], str]] = []

    async def extract_citations(self, text: str) -> list[ExtractedCitation]:
        self.calls.append("extract")
        if self.extract_error:
            raise self.extract_error
        return list(self.candidates)

    async def verify_citation(self, raw_text: str) -> VerificationEvidence:
        self.calls.append("verify")
        if self.verify_error:
            raise self.verify_error
        return self.evidence.get(raw_text, VerificationEvidence(text="No evidence found."))

    async def review_batch(self, citations: list[Citation]) -> list[ReviewProposal]:
        self.calls.append("review")
        self.reviewed = [c.to_dict() for c in citations]
        if self.review_error:
            raise self.review_error
        return list(self.proposals)

    async def render_bibliography(self, citations: list[Citation]) -> Bibliography:
        self.calls.append("bibliography")
        self.rendered = [c.id for c in citations]
        if self.bibliography_error:
            raise self.bibliography_error
        return self.bibliography

    async def ask(self, prompt: str) -> str:
        return f"echo: {prompt}"

    async def export_bibliography(self, citations: list[Citation], style: str) -> str:
        self.exported.append(([c.id for c in citations], style))
        return f"{style} bibliography"


class StubRegistry:
    """Resolves only the DOIs it was given; records lookups."""

    name = "Crossref"

    def __init__(self, records: dict[str, RegistryRecord] | None = None, error: Exception | None = None) -> None:
        self.records = records or {}
        self.error = error
        self.lookups: list[str] = []

    async def lookup(self, doi: str) -> RegistryRecord | None:
        self.lookups.append(doi)
        if self.error:
            raise self.error
        return self.records.get(doi)


def grounded(text: str = "The source exists.", uri: str = "https://example.org/paper") -> VerificationEvidence:
    return VerificationEvidence(text=text, grounding=[GroundingReference(uri=uri)])


@pytest.fixture
def smith_record() -> RegistryRecord:
    return RegistryRecord(
        title="Finding X",
        authors=["John Smith"],
        year="2020",
        journal="Journal of X",
        volume="4",
        issue="2",
    )
