"""DOI detection and normalisation."""

from __future__ import annotations

import re

DOI_PATTERN = re.compile(r"""\b(10[.][0-9]{4,}(?:[.][0-9]+)*/(?:(?!["&'<>])\S)+)\b""", re.IGNORECASE)
RESOLVER_PREFIX = re.compile(r"^(https?://)?(dx\.)?doi\.org/", re.IGNORECASE)


def extract_doi(raw_text: str, known: str | None = None) -> str | None:
    """Return ``known`` if set, else the first DOI found in ``raw_text``."""
    if known and known.strip():
        return known.strip()
    match = DOI_PATTERN.search(raw_text or "")
    return match.group(0) if match else None


def normalize_doi(doi: str) -> str:
    """Strip resolver URL prefixes such as ``https://doi.org/``."""
    return RESOLVER_PREFIX.sub("", doi.strip()).strip()
