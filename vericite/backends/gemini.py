"""Gemini auditor backend — Google Generative Language API via httpx."""

from __future__ import annotations

import json
import logging

import httpx

from vericite.backends.base import (
    ExtractedCitation,
    GroundingReference,
    ReviewProposal,
    VerificationEvidence,
)
from vericite.config import settings
from vericite.errors import ConfigurationError
from vericite.models.citation import Citation
from vericite.models.report import BIBLIOGRAPHY_STYLES, Bibliography

logger = logging.getLogger(__name__)

GENERATE_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"

EXTRACTION_PROMPT = """\
Extract all academic citations from this text. Identify in-text, parenthetical, \
or numbered references.
Return a JSON array of objects with id, rawText, title, authors[], year, and doi.

TEXT: {text}\
"""

VERIFICATION_PROMPT = """\
You are an academic integrity auditor. Verify if this source exists: "{raw_text}".

STRICT RULES:
1. A source is "VERIFIED" ONLY if:
   - Title, Author, and Year (±1) match exactly across TWO or more independent scholarly databases.
2. If metadata is missing or mismatched, it is "UNVERIFIABLE".
3. If there are strong indicators of fabrication, it is "HALLUCINATION".

Accuracy is more important than being helpful. If unsure, mark as UNVERIFIABLE.\
"""

REVIEW_PROMPT = """\
Review these citation verification results as a skeptic. Downgrade 'VERIFIED' \
to 'UNVERIFIABLE' if confidence is not absolute.
Return a JSON array of objects with id, newStatus, and reasoning.

DATA: {data}\
"""

BIBLIOGRAPHY_PROMPT = """\
Generate clean bibliographies for these verified sources in APA 7, MLA, \
Chicago, and IEEE styles.
Return as a JSON object with keys: apa, mla, chicago, ieee.

DATA: {data}\
"""

EXPORT_PROMPT = """\
Generate a clean, professional bibliography in {style} style.
Only include sources verified as REAL.

DATA: {data}\
"""

EXTRACTION_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "rawText": {"type": "STRING"},
            "title": {"type": "STRING"},
            "authors": {"type": "ARRAY", "items": {"type": "STRING"}},
            "year": {"type": "STRING"},
            "doi": {"type": "STRING"},
        },
        "required": ["id", "rawText"],
    },
}

REVIEW_SCHEMA = {
    "type": "ARRAY",
    "items": {
        "type": "OBJECT",
        "properties": {
            "id": {"type": "STRING"},
            "newStatus": {"type": "STRING"},
            "reasoning": {"type": "STRING"},
        },
        "required": ["id", "newStatus", "reasoning"],
    },
}

BIBLIOGRAPHY_SCHEMA = {
    "type": "OBJECT",
    "properties": {style: {"type": "STRING"} for style in BIBLIOGRAPHY_STYLES},
    "required": list(BIBLIOGRAPHY_STYLES),
}


class GeminiBackend:
    """Citation auditor backed by Gemini, with Google Search grounding."""

    name: str = "Gemini"

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.api_key = (api_key or settings.gemini_api_key).strip()
        if not self.api_key:
            raise ConfigurationError("A Gemini API key is required")
        self.model = model or settings.gemini_model
        self.timeout = timeout or settings.gemini_timeout
        self._transport = transport

    # -- Auditor capabilities --

    async def extract_citations(self, text: str) -> list[ExtractedCitation]:
        """Extract citation candidates; raises ValueError on malformed output."""
        data = await self._generate(
            EXTRACTION_PROMPT.format(text=text), schema=EXTRACTION_SCHEMA
        )
        raw_text = self._response_text(data)
        if not raw_text.strip():
            raise ValueError("Gemini returned an empty extraction response")

        parsed = _loads(raw_text)
        if not isinstance(parsed, list):
            raise ValueError("Extraction response is not a JSON array")

        candidates: list[ExtractedCitation] = []
        for item in parsed:
            if not isinstance(item, dict) or not isinstance(item.get("rawText"), str):
                raise ValueError(f"Malformed extraction item: {item!r}")
            candidates.append(
                ExtractedCitation(
                    raw_text=item["rawText"],
                    id=_optional_str(item.get("id")),
                    title=_optional_str(item.get("title")),
                    authors=[str(a) for a in item.get("authors") or [] if a],
                    year=_optional_str(item.get("year")),
                    doi=_optional_str(item.get("doi")),
                )
            )
        logger.info("Gemini extracted %d citation candidates", len(candidates))
        return candidates

    async def verify_citation(self, raw_text: str) -> VerificationEvidence:
        data = await self._generate(
            VERIFICATION_PROMPT.format(raw_text=raw_text), search=True
        )
        return VerificationEvidence(
            text=self._response_text(data),
            grounding=self._grounding_references(data),
        )

    async def review_batch(self, citations: list[Citation]) -> list[ReviewProposal]:
        """Ask for a skeptic review; raises ValueError on malformed output."""
        payload = json.dumps([c.to_dict() for c in citations], ensure_ascii=False)
        data = await self._generate(REVIEW_PROMPT.format(data=payload), schema=REVIEW_SCHEMA)

        parsed = _loads(self._response_text(data))
        if not isinstance(parsed, list):
            raise ValueError("Review response is not a JSON array")
        return [
            ReviewProposal(
                id=str(r["id"]),
                new_status=str(r["newStatus"]),
                reasoning=str(r.get("reasoning", "")),
            )
            for r in parsed
            if isinstance(r, dict) and "id" in r and "newStatus" in r
        ]

    async def render_bibliography(self, citations: list[Citation]) -> Bibliography:
        payload = json.dumps([c.to_dict() for c in citations], ensure_ascii=False)
        data = await self._generate(
            BIBLIOGRAPHY_PROMPT.format(data=payload), schema=BIBLIOGRAPHY_SCHEMA
        )
        return Bibliography.from_dict(_loads(self._response_text(data)))

    # -- Free-form helpers --

    async def ask(self, prompt: str) -> str:
        """Send a plain prompt and return the model's text."""
        data = await self._generate(prompt)
        return self._response_text(data)

    async def export_bibliography(self, citations: list[Citation], style: str) -> str:
        """Render a single-style bibliography for the given citations."""
        payload = json.dumps([c.to_dict() for c in citations], ensure_ascii=False)
        data = await self._generate(EXPORT_PROMPT.format(style=style, data=payload))
        return self._response_text(data)

    # -- HTTP --

    async def _generate(
        self, prompt: str, schema: dict | None = None, search: bool = False
    ) -> dict:
        body: dict = {"contents": [{"role": "user", "parts": [{"text": prompt}]}]}
        if schema is not None:
            body["generationConfig"] = {
                "responseMimeType": "application/json",
                "responseSchema": schema,
            }
        if search:
            body["tools"] = [{"google_search": {}}]

        async with httpx.AsyncClient(
            timeout=self.timeout, transport=self._transport
        ) as client:
            response = await client.post(
                GENERATE_URL.format(model=self.model),
                headers={
                    "Content-Type": "application/json",
                    "x-goog-api-key": self.api_key,
                },
                json=body,
            )
            response.raise_for_status()

        return response.json()

    def _response_text(self, data: dict) -> str:
        """Concatenate the text parts of the first candidate."""
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(p.get("text", "") for p in parts if isinstance(p, dict))

    def _grounding_references(self, data: dict) -> list[GroundingReference]:
        candidates = data.get("candidates") or []
        if not candidates:
            return []
        metadata = candidates[0].get("groundingMetadata") or {}
        refs: list[GroundingReference] = []
        for chunk in metadata.get("groundingChunks") or []:
            web = chunk.get("web") if isinstance(chunk, dict) else None
            if web and web.get("uri"):
                refs.append(GroundingReference(uri=web["uri"]))
        return refs


def _loads(raw_text: str):
    """Parse JSON, tolerating a surrounding Markdown code fence."""
    text = raw_text.strip()
    if text.startswith("```"):
        text = text.partition("\n")[2]
        text = text.rsplit("```", 1)[0]
    return json.loads(text)


def _optional_str(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)
