"""Citation data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class CitationStatus(str, Enum):
    VERIFIED = "VERIFIED"
    PARTIAL_MATCH = "PARTIAL_MATCH"
    UNVERIFIED = "UNVERIFIED"
    HALLUCINATION = "HALLUCINATION"
    PENDING = "PENDING"


@dataclass
class ParsedMetadata:
    """Bibliographic fields, filled from whichever source succeeded."""

    title: str | None = None
    authors: list[str] = field(default_factory=list)
    year: str | None = None
    doi: str | None = None
    journal: str | None = None
    volume: str | None = None
    issue: str | None = None

    def to_dict(self) -> dict:
        data: dict = {"authors": list(self.authors)}
        for key in ("title", "year", "doi", "journal", "volume", "issue"):
            value = getattr(self, key)
            if value is not None:
                data[key] = value
        return data


@dataclass
class Citation:
    """One audited reference with its verification outcome."""

    id: str
    raw_text: str
    parsed_metadata: ParsedMetadata = field(default_factory=ParsedMetadata)
    status: CitationStatus = CitationStatus.PENDING
    confidence_score: float = 0.0
    verification_source: str = ""
    source_url: str | None = None
    explanation: str = ""

    def to_dict(self) -> dict:
        """Serialize to the camelCase wire form."""
        data = {
            "id": self.id,
            "rawText": self.raw_text,
            "parsedMetadata": self.parsed_metadata.to_dict(),
            "status": self.status.value,
            "confidenceScore": self.confidence_score,
            "verificationSource": self.verification_source,
            "explanation": self.explanation,
        }
        if self.source_url:
            data["sourceUrl"] = self.source_url
        return data

