"""Tests for the HTTP surface."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from conftest import StubAuditor, StubRegistry, grounded
from vericite.backends.base import ExtractedCitation
from vericite.config import settings
from vericite.errors import ConfigurationError
from vericite.main import CitationModel, create_app
from vericite.models.citation import Citation, CitationStatus, ParsedMetadata
from vericite.orchestrator.pipeline import VerificationPipeline

SMITH = "Smith (2020) found X [doi: 10.1000/xyz123]"


def _client(auditor: StubAuditor, registry: StubRegistry | None = None) -> TestClient:
    pipeline = VerificationPipeline(auditor, registry or StubRegistry(), enable_review=False)
    return TestClient(create_app(pipeline=pipeline, auditor=auditor))


@pytest.fixture
def verified_client(smith_record) -> TestClient:
    auditor = StubAuditor(
        candidates=[ExtractedCitation(raw_text=SMITH, id="c1")],
        evidence={SMITH: grounded()},
    )
    return _client(auditor, StubRegistry({"10.1000/xyz123": smith_record}))


def test_health(verified_client: TestClient) -> None:
    assert verified_client.get("/health").json() == {"status": "ok"}


def test_verify_returns_wire_contract(verified_client: TestClient) -> None:
    response = verified_client.post("/verify", json={"text": SMITH})

    assert response.status_code == 200
    body = response.json()
    citation = body["citations"][0]
    assert citation["id"] == "c1"
    assert citation["rawText"] == SMITH
    assert citation["status"] == "VERIFIED"
    assert citation["confidenceScore"] == 0.99
    assert citation["parsedMetadata"]["doi"] == "10.1000/xyz123"
    assert citation["sourceUrl"] == "https://example.org/paper"
    assert body["summary"] == {"total": 1, "verified": 1, "hallucinated": 0, "unverified": 0}
    assert set(body["multiStyleBib"]) == {"apa", "mla", "chicago", "ieee"}


def test_verify_omits_bibliography_when_nothing_verified() -> None:
    client = _client(StubAuditor(candidates=[ExtractedCitation(raw_text="Jones (2019)", id="j")]))
    body = client.post("/verify", json={"text": "Jones (2019)"}).json()

    assert body["citations"][0]["status"] == "UNVERIFIED"
    assert "multiStyleBib" not in body


def test_verify_rejects_wrong_method(verified_client: TestClient) -> None:
    response = verified_client.get("/verify")
    assert response.status_code == 405
    assert "error" in response.json()


@pytest.mark.parametrize("payload", [{}, {"text": ""}, {"text": 5}])
def test_verify_rejects_malformed_body(verified_client: TestClient, payload: dict) -> None:
    response = verified_client.post("/verify", json=payload)
    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_verify_extraction_failure_is_500() -> None:
    client = _client(StubAuditor(extract_error=ValueError("not JSON")))
    response = client.post("/verify", json={"text": SMITH})

    assert response.status_code == 500
    assert response.json() == {"error": "Verification failed"}


def test_ask_requires_prompt(verified_client: TestClient) -> None:
    assert verified_client.post("/ask", json={"prompt": " "}).status_code == 400
    response = verified_client.post("/ask", json={"prompt": "hello"})
    assert response.json() == {"text": "echo: hello"}


def test_bibliography_export_uses_only_verified() -> None:
    auditor = StubAuditor()
    client = _client(auditor)
    citations = [
        {"id": "a", "rawText": "A", "status": "VERIFIED", "confidenceScore": 0.99},
        {"id": "b", "rawText": "B", "status": "HALLUCINATION", "confidenceScore": 0.95},
    ]
    response = client.post("/bibliography", json={"citations": citations, "style": "APA"})

    assert response.json() == {"style": "APA", "text": "APA bibliography"}
    assert auditor.exported == [(["a"], "APA")]


def test_bibliography_export_without_verified_is_400() -> None:
    client = _client(StubAuditor())
    citations = [{"id": "b", "rawText": "B", "status": "UNVERIFIED"}]
    assert client.post("/bibliography", json={"citations": citations, "style": "MLA"}).status_code == 400


def test_report_renders_summary_and_typst(verified_client: TestClient) -> None:
    result = verified_client.post("/verify", json={"text": SMITH}).json()
    response = verified_client.post("/report", json=result)

    assert response.status_code == 200
    body = response.json()
    assert body["summary"]["cards"][0]["label"] == "Confirmed"
    assert "#audit-entry(1," in body["typstSource"]
    assert "#bib-block(" in body["typstSource"]


def test_report_rejects_invalid_result(verified_client: TestClient) -> None:
    response = verified_client.post("/report", json={"citations": [{"rawText": "no id"}]})
    assert response.status_code == 400


def test_missing_api_key_fails_at_startup(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(settings, "gemini_api_key", "")
    with pytest.raises(ConfigurationError):
        with TestClient(create_app()):
            pass


def test_wire_citation_converts_back_to_domain() -> None:
    citation = Citation(
        id="1",
        raw_text="Smith (2020)",
        parsed_metadata=ParsedMetadata(title="X", authors=["John Smith"], year="2020"),
        status=CitationStatus.PARTIAL_MATCH,
        confidence_score=0.75,
        verification_source="Crossref",
        source_url="https://doi.org/10.1000/xyz123",
        explanation="why",
    )
    assert CitationModel.model_validate(citation.to_dict()).to_domain() == citation


@pytest.mark.parametrize(
    "citation",
    [
        {"id": "1", "rawText": "r", "status": "VERIFIED", "parsedMetadata": {"authors": [None]}},
        {"id": "1", "rawText": "r", "status": "VERIFIED", "parsedMetadata": "x"},
        {"id": "1", "rawText": "r", "status": "VERIFIED", "parsedMetadata": {"title": ["T"]}},
        {"id": "1", "rawText": None, "status": "VERIFIED"},
        {"id": "1", "rawText": "r", "status": "VERIFIED", "explanation": {"a": 1}},
        {"id": "1", "rawText": "r", "status": "VERIFIED", "confidenceScore": 2},
        {"id": "1", "rawText": "r", "status": "MAYBE"},
        {"id": "1", "rawText": "r", "status": "PENDING"},
    ],
)
def test_report_rejects_malformed_citation(verified_client: TestClient, citation: dict) -> None:
    response = verified_client.post("/report", json={"citations": [citation]})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}


def test_report_rejects_incomplete_bibliography(verified_client: TestClient) -> None:
    body = {
        "citations": [{"id": "1", "rawText": "r", "status": "VERIFIED"}],
        "multiStyleBib": {"apa": "A", "mla": "M", "chicago": "C", "ieee": ""},
    }
    assert verified_client.post("/report", json=body).status_code == 400


@pytest.mark.parametrize(
    "citation",
    [
        {"id": "a", "rawText": "A", "status": "VERIFIED", "parsedMetadata": "x"},
        {"id": "a", "rawText": "A", "status": "VERIFIED", "parsedMetadata": {"authors": [None]}},
    ],
)
def test_bibliography_rejects_malformed_citation(citation: dict) -> None:
    auditor = StubAuditor()
    response = _client(auditor).post("/bibliography", json={"citations": [citation], "style": "APA"})

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid request body"}
    assert auditor.exported == []
