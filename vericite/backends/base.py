"""Capability protocols for the external services VeriCite depends on."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, runtime_checkable

from vericite.models.citation import Citation
from vericite.models.report import Bibliography


@dataclass
class ExtractedCitation:
    """A citation candidate as returned by the extraction call."""

    raw_text: str
    id: str | None = None
    title: str | None = None
    authors: list[str] = field(default_factory=list)
    year: str | None = None
    doi: str | None = None


@dataclass
class GroundingReference:
    """A web source surfaced by the search-grounded verification pass."""

    uri: str


@dataclass
class VerificationEvidence:
    """Free-text verdict of the verification pass plus its grounding."""

    text: str
    grounding: list[GroundingReference] = field(default_factory=list)


@dataclass
class ReviewProposal:
    """A skeptic-review suggestion to change one citation's status."""

    id: str
    new_status: str
    reasoning: str = ""


@dataclass
class RegistryRecord:
    """Bibliographic record resolved from the metadata registry."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    year: str | None = None
    journal: str | None = None
    volume: str | None = None
    issue: str | None = None
    url: str | None = None


@runtime_checkable
class CitationAuditor(Protocol):
    """Interface to the generative service that extracts and audits citations."""

    name: str

    async def extract_citations(self, text: str) -> list[ExtractedCitation]:
        """Extract citation candidates from manuscript text.

        Must raise on a malformed or empty upstream response.
        """
        ...

    async def verify_citation(self, raw_text: str) -> VerificationEvidence:
        """Run the web-grounded audit of a single citation."""
        ...

    async def review_batch(self, citations: list[Citation]) -> list[ReviewProposal]:
        """Skeptically re-evaluate a fused batch."""
        ...

    async def render_bibliography(self, citations: list[Citation]) -> Bibliography:
        """Render the given citations in APA, MLA, Chicago and IEEE styles."""
        ...


@runtime_checkable
class MetadataRegistry(Protocol):
    """Interface to a DOI metadata registry."""

    name: str

    async def lookup(self, doi: str) -> RegistryRecord | None:
        """Resolve a DOI, returning None when it cannot be found."""
        ...
