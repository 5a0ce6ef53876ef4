"""Crossref metadata registry client — REST API via httpx."""

from __future__ import annotations

import logging
from urllib.parse import quote

import httpx

from vericite.backends.base import RegistryRecord
from vericite.config import settings
from vericite.orchestrator.doi import normalize_doi

logger = logging.getLogger(__name__)

USER_AGENT = "VeriCite/0.1"


class CrossrefClient:
    """Looks up DOIs against the public Crossref works endpoint.

    Lookup failures never raise: a DOI that cannot be resolved for any reason
    (transport error, non-2xx status, malformed payload) is reported as None.
    """

    name: str = "Crossref"

    def __init__(
        self,
        base_url: str | None = None,
        mailto: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.crossref_base_url).rstrip("/")
        self.mailto = mailto if mailto is not None else settings.crossref_mailto
        self.timeout = timeout or settings.crossref_timeout
        self._transport = transport

    async def lookup(self, doi: str) -> RegistryRecord | None:
        clean = normalize_doi(doi)
        if not clean:
            return None
        url = f"{self.base_url}/works/{quote(clean, safe='')}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self._transport
            ) as client:
                response = await client.get(url, headers=self._headers())
            if not response.is_success:
                logger.info("Crossref returned %d for %s", response.status_code, clean)
                return None
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.warning("Crossref lookup failed for %s: %s", clean, exc)
            return None

        message = payload.get("message") if isinstance(payload, dict) else None
        if not isinstance(message, dict):
            logger.warning("Crossref payload for %s has no message object", clean)
            return None
        return self._parse_message(message)

    def _headers(self) -> dict[str, str]:
        agent = USER_AGENT
        if self.mailto:
            # Identified requests are routed to Crossref's "polite" pool
            agent = f"{USER_AGENT} (mailto:{self.mailto})"
        return {"Accept": "application/json", "User-Agent": agent}

    def _parse_message(self, message: dict) -> RegistryRecord:
        """Map a Crossref ``message`` object onto a RegistryRecord."""
        authors = []
        for author in message.get("author") or []:
            if not isinstance(author, dict):
                continue
            name = " ".join(
                part for part in (author.get("given"), author.get("family")) if part
            )
            name = name or author.get("name", "")
            if name:
                authors.append(name)

        return RegistryRecord(
            title=_first(message.get("title")),
            authors=authors,
            year=_year(message),
            journal=_first(message.get("container-title")),
            volume=_text(message.get("volume")),
            issue=_text(message.get("issue")),
            url=_text(message.get("URL")),
        )


def _first(values) -> str | None:
    if isinstance(values, list):
        return next((str(v) for v in values if v), None)
    return _text(values)


def _text(value) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _year(message: dict) -> str | None:
    """Publication year: issued, then published, then the deposit date."""
    for key in ("issued", "published", "created"):
        try:
            year = message[key]["date-parts"][0][0]
        except (KeyError, IndexError, TypeError):
            continue
        if year:
            return str(year)
    return None
