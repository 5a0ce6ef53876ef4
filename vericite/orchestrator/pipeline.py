"""Verification pipeline — extraction, per-citation audit, review, bibliography."""

from __future__ import annotations

import asyncio
import logging
import uuid

from vericite.backends.base import (
    CitationAuditor,
    ExtractedCitation,
    MetadataRegistry,
    RegistryRecord,
    VerificationEvidence,
)
from vericite.config import settings
from vericite.errors import VerificationFailed
from vericite.models.citation import Citation, CitationStatus, ParsedMetadata
from vericite.models.report import Bibliography, VerificationResult
from vericite.orchestrator.doi import extract_doi, normalize_doi
from vericite.orchestrator.fusion import apply_review, fuse, has_fabrication_markers

logger = logging.getLogger(__name__)


class VerificationPipeline:
    """Audits every citation found in a manuscript.

    Per-citation work runs concurrently, bounded by ``max_concurrency``, but
    results keep extraction order. Review starts only once every citation is
    fused, and the bibliography only once review is done.
    """

    def __init__(
        self,
        auditor: CitationAuditor,
        registry: MetadataRegistry,
        max_concurrency: int | None = None,
        enable_review: bool | None = None,
    ) -> None:
        self.auditor = auditor
        self.registry = registry
        self.max_concurrency = max(1, max_concurrency or settings.max_concurrent_items)
        self.enable_review = (
            settings.enable_review if enable_review is None else enable_review
        )

    async def run(self, text: str) -> VerificationResult:
        """Verify all citations in ``text``.

        Raises VerificationFailed if the extraction step fails; every other
        failure only degrades the affected citation or optional step.
        """
        try:
            candidates = await self.auditor.extract_citations(text)
        except Exception as exc:
            logger.error("Citation extraction via %s failed: %s", self.auditor.name, exc)
            raise VerificationFailed("Citation extraction failed") from exc

        logger.info("Auditing %d citations", len(candidates))
        ids = self._assign_ids(candidates)

        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def _bounded(candidate: ExtractedCitation, citation_id: str) -> Citation:
            async with semaphore:
                return await self._audit(candidate, citation_id)

        citations = list(
            await asyncio.gather(*[_bounded(c, i) for c, i in zip(candidates, ids)])
        )

        if self.enable_review and citations:
            await self._review(citations)

        bibliography = await self._bibliography(citations)
        result = VerificationResult(citations=citations, multi_style_bib=bibliography)

        summary = result.summary
        logger.info(
            "Audit complete: %d total, %d verified, %d hallucinated, %d unverified",
            summary.total, summary.verified, summary.hallucinated, summary.unverified,
        )
        return result

    # -- Per-citation audit --

    async def _audit(self, candidate: ExtractedCitation, citation_id: str) -> Citation:
        citation = Citation(id=citation_id, raw_text=candidate.raw_text)

        doi = extract_doi(candidate.raw_text, candidate.doi)
        record = await self._lookup(doi) if doi else None
        evidence, fabrication = await self._verify(candidate.raw_text)

        registry_match = record is not None
        grounding_match = len(evidence.grounding) > 0
        citation.status, citation.confidence_score = fuse(
            registry_match, grounding_match, fabrication
        )

        citation.parsed_metadata = _merge_metadata(candidate, record, doi)
        citation.explanation = evidence.text
        sources = []
        if registry_match:
            sources.append(self.registry.name)
        if grounding_match:
            sources.append("Web Search")
        citation.verification_source = " + ".join(sources)
        if grounding_match:
            citation.source_url = evidence.grounding[0].uri
        elif record is not None and record.url:
            citation.source_url = record.url
        elif doi:
            citation.source_url = f"https://doi.org/{normalize_doi(doi)}"

        logger.debug(
            "Citation %s fused to %s (registry=%s, grounding=%s, fabrication=%s)",
            citation.id, citation.status.value, registry_match, grounding_match, fabrication,
        )
        return citation

    async def _lookup(self, doi: str) -> RegistryRecord | None:
        try:
            return await self.registry.lookup(doi)
        except Exception as exc:
            logger.warning("Registry lookup for %s failed: %s", doi, exc)
            return None

    async def _verify(self, raw_text: str) -> tuple[VerificationEvidence, bool]:
        """Run the grounded audit; returns the evidence and the fabrication flag."""
        try:
            evidence = await self.auditor.verify_citation(raw_text)
        except Exception as exc:
            logger.warning("Verification pass failed: %s", exc)
            return VerificationEvidence(text="Verification pass unavailable."), False
        return evidence, has_fabrication_markers(evidence.text)

    # -- Batch steps --

    async def _review(self, citations: list[Citation]) -> None:
        try:
            proposals = await self.auditor.review_batch(citations)
        except Exception as exc:
            logger.warning("Skeptic review skipped: %s", exc)
            return
        apply_review(citations, proposals)

    async def _bibliography(self, citations: list[Citation]) -> Bibliography | None:
        verified = [c for c in citations if c.status == CitationStatus.VERIFIED]
        if not verified:
            return None
        try:
            return await self.auditor.render_bibliography(verified)
        except Exception as exc:
            logger.warning("Bibliography generation skipped: %s", exc)
            return None

    def _assign_ids(self, candidates: list[ExtractedCitation]) -> list[str]:
        """Keep extractor ids where usable; generate the rest so all are unique."""
        seen: set[str] = set()
        ids: list[str] = []
        for candidate in candidates:
            citation_id = (candidate.id or "").strip()
            while not citation_id or citation_id in seen:
                citation_id = uuid.uuid4().hex[:9]
            seen.add(citation_id)
            ids.append(citation_id)
        return ids


def _merge_metadata(
    candidate: ExtractedCitation, record: RegistryRecord | None, doi: str | None
) -> ParsedMetadata:
    """Registry values win over extractor guesses wherever they are present."""
    metadata = ParsedMetadata(
        title=candidate.title,
        authors=list(candidate.authors),
        year=candidate.year,
        doi=doi,
    )
    if record is None:
        return metadata

    metadata.title = record.title or metadata.title
    metadata.authors = list(record.authors) or metadata.authors
    metadata.year = record.year or metadata.year
    metadata.journal = record.journal
    metadata.volume = record.volume
    metadata.issue = record.issue
    return metadata
