"""Typst generator — produces a printable audit report from a VerificationResult."""

from __future__ import annotations

import textwrap
from datetime import datetime
from pathlib import Path

from vericite.config import settings
from vericite.models.citation import Citation
from vericite.models.report import BIBLIOGRAPHY_STYLES, VerificationResult
from vericite.orchestrator.report_view import style_label

TEMPLATE_PATH = Path(__file__).resolve().parent.parent / "templates" / "report.typ"
CONTENT_MARKER = "// VERICITE:CONTENT"

RAW_TEXT_LIMIT = 100
ANALYSIS_LIMIT = 150
BIB_LINE_WIDTH = 95
BIB_LINES_PER_PAGE = 60
PAGE_BREAK = "#pagebreak()"


class TypstGenerator:
    """Generates a paginated Typst document from a VerificationResult."""

    def __init__(
        self, template: str | None = None, entries_per_page: int | None = None
    ) -> None:
        if template is not None:
            self._template = template
        else:
            self._template = TEMPLATE_PATH.read_text(encoding="utf-8")
        self.entries_per_page = max(1, entries_per_page or settings.report_entries_per_page)

    def generate(self, result: VerificationResult, generated_at: datetime | None = None) -> str:
        """Produce a complete Typst document.

        Pages are separated explicitly: the executive summary opens the first
        page, audit entries are laid out ``entries_per_page`` at a time, and
        each bibliography style gets its own run of pages.
        """
        pages = self.paginate(result, generated_at or datetime.now())
        content = f"\n\n{PAGE_BREAK}\n\n".join("\n".join(page) for page in pages)
        return self._template.replace(CONTENT_MARKER, content)

    def paginate(self, result: VerificationResult, generated_at: datetime) -> list[list[str]]:
        """Lay the report out as a list of pages, each a list of Typst lines."""
        first_page = self._render_header(result, generated_at)
        first_page.append("")
        first_page.append("== Detailed Source Audit")
        first_page.append("")

        chunks = [
            result.citations[i : i + self.entries_per_page]
            for i in range(0, len(result.citations), self.entries_per_page)
        ] or [[]]

        pages: list[list[str]] = []
        for chunk_index, chunk in enumerate(chunks):
            page = first_page if chunk_index == 0 else []
            offset = chunk_index * self.entries_per_page
            for i, citation in enumerate(chunk, offset + 1):
                page.append(self._render_entry(i, citation))
            pages.append(page)

        if result.multi_style_bib is not None:
            styles = result.multi_style_bib.to_dict()
            for n, style in enumerate(BIBLIOGRAPHY_STYLES):
                pages.extend(self._render_bibliography_pages(style, styles[style], first=n == 0))

        return pages

    def _render_header(self, result: VerificationResult, generated_at: datetime) -> list[str]:
        summary = result.summary
        return [
            f'#report-title("{generated_at.strftime("%Y-%m-%d %H:%M")}")',
            "",
            "== Executive Summary",
            "",
            f'#summary-row("Total Citations Audited", {summary.total})',
            f'#summary-row("Verified as Confirmed", {summary.verified})',
            f'#summary-row("Likely Fabricated", {summary.hallucinated})',
            f'#summary-row("Unverifiable/Partial", {summary.unverified})',
        ]

    def _render_entry(self, num: int, citation: Citation) -> str:
        """Render a single audit entry with truncated source and analysis."""
        title = citation.parsed_metadata.title or "Untitled Fragment"
        return (
            f"#audit-entry({num}, "
            f'"{self._escape(title)}", '
            f'"{citation.status.value}", '
            f'"{self._escape(truncate(citation.raw_text, RAW_TEXT_LIMIT))}", '
            f'"{self._escape(truncate(citation.explanation, ANALYSIS_LIMIT))}")'
        )

    def _render_bibliography_pages(self, style: str, text: str, first: bool) -> list[list[str]]:
        lines: list[str] = []
        for paragraph in text.splitlines():
            lines.extend(textwrap.wrap(paragraph, BIB_LINE_WIDTH) or [""])

        pages: list[list[str]] = []
        for start in range(0, len(lines), BIB_LINES_PER_PAGE):
            chunk = lines[start : start + BIB_LINES_PER_PAGE]
            label = style_label(style) if start == 0 else f"{style_label(style)} (cont.)"
            page: list[str] = []
            if first and start == 0:
                page.extend(["= Verified References - Bibliography", ""])
            quoted = ", ".join(f'"{self._escape(line)}"' for line in chunk)
            page.append(f'#bib-block("{self._escape(label)}", ({quoted},))')
            pages.append(page)
        return pages

    def _escape(self, text: str) -> str:
        """Escape text for use inside a Typst string literal."""
        # Backslash first, then quotes
        return (
            text.replace("\\", "\\\\")
            .replace('"', '\\"')
            .replace("\n", "\\n")
            .replace("\r", "")
        )


def truncate(text: str, limit: int) -> str:
    """Cut ``text`` to ``limit`` characters, marking the cut with an ellipsis."""
    text = text or ""
    if len(text) <= limit:
        return text
    return text[:limit] + "..."
