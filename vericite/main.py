"""VeriCite — FastAPI application entry point."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Literal

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException as StarletteHTTPException

from vericite.backends.crossref import CrossrefClient
from vericite.backends.gemini import GeminiBackend
from vericite.config import settings
from vericite.models.citation import Citation, CitationStatus, ParsedMetadata
from vericite.models.report import Bibliography, VerificationResult
from vericite.orchestrator.pipeline import VerificationPipeline
from vericite.orchestrator.report_view import build_summary_view
from vericite.orchestrator.typst_generator import TypstGenerator

logger = logging.getLogger(__name__)


# --- Request models ---


FinalStatus = Literal["VERIFIED", "PARTIAL_MATCH", "UNVERIFIED", "HALLUCINATION"]


class VerifyRequest(BaseModel):
    text: str = Field(min_length=1)


class AskRequest(BaseModel):
    prompt: str = ""


class MetadataModel(BaseModel):
    title: str | None = None
    authors: list[str] = []
    year: str | None = None
    doi: str | None = None
    journal: str | None = None
    volume: str | None = None
    issue: str | None = None

    def to_domain(self) -> ParsedMetadata:
        return ParsedMetadata(**self.model_dump())


class CitationModel(BaseModel):
    """A citation in wire form, as returned by POST /verify."""

    id: str = Field(min_length=1)
    raw_text: str = Field(alias="rawText")
    parsed_metadata: MetadataModel = Field(default_factory=MetadataModel, alias="parsedMetadata")
    status: FinalStatus
    confidence_score: float = Field(0.0, ge=0.0, le=1.0, alias="confidenceScore")
    verification_source: str = Field("", alias="verificationSource")
    source_url: str | None = Field(None, alias="sourceUrl")
    explanation: str = ""

    def to_domain(self) -> Citation:
        return Citation(
            id=self.id,
            raw_text=self.raw_text,
            parsed_metadata=self.parsed_metadata.to_domain(),
            status=CitationStatus(self.status),
            confidence_score=self.confidence_score,
            verification_source=self.verification_source,
            source_url=self.source_url,
            explanation=self.explanation,
        )


class BibliographyModel(BaseModel):
    apa: str = Field(min_length=1)
    mla: str = Field(min_length=1)
    chicago: str = Field(min_length=1)
    ieee: str = Field(min_length=1)

    def to_domain(self) -> Bibliography:
        return Bibliography(**self.model_dump())


class ReportRequest(BaseModel):
    citations: list[CitationModel] = []
    multi_style_bib: BibliographyModel | None = Field(None, alias="multiStyleBib")

    def to_domain(self) -> VerificationResult:
        return VerificationResult(
            citations=[c.to_domain() for c in self.citations],
            multi_style_bib=self.multi_style_bib.to_domain() if self.multi_style_bib else None,
        )


class BibliographyRequest(BaseModel):
    citations: list[CitationModel]
    style: str = Field(min_length=1)


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def create_app(
    pipeline: VerificationPipeline | None = None,
    auditor: GeminiBackend | None = None,
) -> FastAPI:
    """Build the application.

    Without injected collaborators the Gemini and Crossref clients are built
    from settings when the app starts; a missing API key aborts start-up with
    ConfigurationError.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if app.state.auditor is None:
            app.state.auditor = GeminiBackend(api_key=settings.require_gemini_key())
        if app.state.pipeline is None:
            app.state.pipeline = VerificationPipeline(app.state.auditor, CrossrefClient())
        logger.info("VeriCite ready (auditor=%s)", app.state.auditor.name)
        yield

    app = FastAPI(
        title="VeriCite",
        description="Manuscript citation auditor",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.pipeline = pipeline
    app.state.auditor = auditor

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(RequestValidationError)
    async def validation_error(request: Request, exc: RequestValidationError):
        return _error(400, "Invalid request body")

    @app.exception_handler(StarletteHTTPException)
    async def http_error(request: Request, exc: StarletteHTTPException):
        return _error(exc.status_code, str(exc.detail))

    # --- Routes ---

    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post("/verify")
    async def verify(req: VerifyRequest, request: Request):
        """Audit every citation found in the submitted text."""
        pipeline: VerificationPipeline = request.app.state.pipeline
        try:
            result = await asyncio.wait_for(
                pipeline.run(req.text), timeout=settings.request_timeout
            )
        except Exception:
            logger.exception("Verification failed")
            return _error(500, "Verification failed")
        return result.to_dict()

    @app.post("/ask")
    async def ask(req: AskRequest, request: Request):
        """Pass a free-form prompt straight to the generative service."""
        if not req.prompt.strip():
            return _error(400, "Prompt required")
        try:
            text = await request.app.state.auditor.ask(req.prompt)
        except Exception:
            logger.exception("Prompt request failed")
            return _error(500, "API error")
        return {"text": text}

    @app.post("/bibliography")
    async def bibliography(req: BibliographyRequest, request: Request):
        """Export a single-style bibliography of the verified citations."""
        citations = [c.to_domain() for c in req.citations]
        verified = [c for c in citations if c.status == CitationStatus.VERIFIED]
        if not verified:
            return _error(400, "No verified citations to export")
        try:
            text = await request.app.state.auditor.export_bibliography(verified, req.style)
        except Exception:
            logger.exception("Bibliography export failed")
            return _error(500, "Bibliography export failed")
        return {"style": req.style, "text": text}

    @app.post("/report")
    async def report(req: ReportRequest):
        """Render a verification result as a summary view and Typst document."""
        result = req.to_domain()
        return {
            "summary": build_summary_view(result),
            "typstSource": TypstGenerator().generate(result),
        }

    return app


app = create_app()
