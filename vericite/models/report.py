"""Verification result and bibliography data models."""

from __future__ import annotations

from dataclasses import dataclass, field

from vericite.models.citation import Citation, CitationStatus

BIBLIOGRAPHY_STYLES = ("apa", "mla", "chicago", "ieee")


@dataclass(frozen=True)
class Summary:
    """Counts over the final citation statuses."""

    total: int
    verified: int
    hallucinated: int
    unverified: int

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "verified": self.verified,
            "hallucinated": self.hallucinated,
            "unverified": self.unverified,
        }


@dataclass
class Bibliography:
    """The same verified-source set rendered in four citation styles."""

    apa: str
    mla: str
    chicago: str
    ieee: str

    def to_dict(self) -> dict:
        return {style: getattr(self, style) for style in BIBLIOGRAPHY_STYLES}

    @classmethod
    def from_dict(cls, data: dict) -> Bibliography:
        """Build from a style mapping.

        Raises ValueError unless all four styles are present and non-empty.
        """
        if not isinstance(data, dict):
            raise ValueError("bibliography payload must be an object")
        values: dict[str, str] = {}
        for style in BIBLIOGRAPHY_STYLES:
            text = data.get(style)
            if not isinstance(text, str) or not text.strip():
                raise ValueError(f"bibliography style {style!r} is missing or empty")
            values[style] = text
        return cls(**values)


@dataclass
class VerificationResult:
    """Outcome of one verification request."""

    citations: list[Citation] = field(default_factory=list)
    multi_style_bib: Bibliography | None = None

    @property
    def summary(self) -> Summary:
        statuses = [c.status for c in self.citations]
        return Summary(
            total=len(statuses),
            verified=statuses.count(CitationStatus.VERIFIED),
            hallucinated=statuses.count(CitationStatus.HALLUCINATION),
            unverified=sum(
                1
                for s in statuses
                if s in (CitationStatus.UNVERIFIED, CitationStatus.PARTIAL_MATCH)
            ),
        )

    def to_dict(self) -> dict:
        data = {
            "citations": [c.to_dict() for c in self.citations],
            "summary": self.summary.to_dict(),
        }
        if self.multi_style_bib is not None:
            data["multiStyleBib"] = self.multi_style_bib.to_dict()
        return data

