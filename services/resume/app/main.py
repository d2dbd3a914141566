from __future__ import annotations

from typing import Any, Dict, List, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from libs.core import logging as core_logging
from libs.core.document_store import AboutMeStore, DocumentStoreError, HistoryStore
from libs.core.llm_provider import LLMProvider
from libs.tools.resume_docx import render_resume_docx
from libs.tools.resume_html import render_resume_html
from libs.tools.resume_pdf import PdfRenderError, render_resume_pdf
from services.resume.resume_core import (
    GenerationClient,
    GenerationError,
    InvalidModelOutput,
    Settings,
    create_provider,
    generate_resume,
    load_settings,
    normalize_resume,
    refine_resume,
)

core_logging.configure_logging("resume")
LOGGER = core_logging.get_logger("resume")

_ERROR_STATUS = {
    "missing_input": 400,
    "malformed_refinement_input": 400,
    "provider_unavailable": 502,
    "generation_timeout": 504,
    "invalid_model_output": 502,
}
_DOCX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class GenerateRequest(_CamelModel):
    target_text: Optional[str] = Field(default=None, alias="targetText")
    about_me: Optional[str] = Field(default=None, alias="aboutMe")


class RefineRequestBody(_CamelModel):
    resume: Any = None
    feedback: Optional[str] = None


class ResumeResponse(BaseModel):
    resume: Dict[str, Any]


class AboutMeBody(BaseModel):
    content: Any = None


class RenderRequest(BaseModel):
    resume: Dict[str, Any]


class ExportRequest(BaseModel):
    resume: Dict[str, Any]
    filename: Optional[str] = None


class HistoryItem(_CamelModel):
    target_text: str = Field(alias="targetText")
    result_html: str = Field(alias="resultHtml")
    timestamp: str


class HistoryResponse(BaseModel):
    items: List[HistoryItem]


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


def _validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
    message = first.get("msg", "invalid value")
    return f"Invalid request: {field}: {message}" if field else f"Invalid request: {message}"


def _attachment(filename: Optional[str], extension: str) -> Dict[str, str]:
    name = (filename or "").replace('"', "").strip() or "resume"
    return {"Content-Disposition": f'attachment; filename="{name}.{extension}"'}


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[LLMProvider] = None,
) -> FastAPI:
    settings = settings or load_settings()
    provider = provider or create_provider(settings)

    app = FastAPI(title="Resume Generation Service")
    app.state.settings = settings
    app.state.generation_client = GenerationClient(provider, timeout_s=settings.generation_timeout_s)
    app.state.about_me_store = AboutMeStore(settings.data_dir)
    app.state.history_store = HistoryStore(settings.data_dir)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(GenerationError)
    async def _generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
        status_code = _ERROR_STATUS.get(exc.code, 500)
        if isinstance(exc, InvalidModelOutput):
            LOGGER.error(
                "invalid_model_output",
                path=request.url.path,
                detail=exc.detail,
                raw_text=core_logging.truncate_for_log(exc.raw_text),
            )
            return _error(status_code, "The model returned an unusable resume. Please try again.")
        if exc.code == "generation_timeout":
            LOGGER.warning("generation_timeout", path=request.url.path, detail=exc.detail)
            return _error(status_code, "Generation timed out. Please try again.")
        LOGGER.warning("generation_failed", path=request.url.path, code=exc.code, detail=exc.detail)
        if exc.code == "provider_unavailable":
            return _error(status_code, "Failed to generate resume")
        return _error(status_code, exc.detail)

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        message = _validation_message(exc)
        LOGGER.warning("request_invalid", path=request.url.path, error=message)
        return _error(400, message)

    @app.exception_handler(DocumentStoreError)
    async def _store_error_handler(request: Request, exc: DocumentStoreError) -> JSONResponse:
        LOGGER.error("document_store_failed", path=request.url.path, error=str(exc))
        return _error(500, "Storage error")

    @app.exception_handler(Exception)
    async def _unexpected_error_handler(request: Request, exc: Exception) -> JSONResponse:
        LOGGER.error("unhandled_error", path=request.url.path, error=str(exc), exc_info=True)
        return _error(500, "Internal server error")

    @app.get("/api/health")
    def health() -> Dict[str, bool]:
        return {"ok": True}

    @app.get("/api/aboutme")
    def read_about_me() -> Dict[str, str]:
        return {"content": app.state.about_me_store.read()}

    @app.put("/api/aboutme")
    def write_about_me(body: AboutMeBody):
        if not isinstance(body.content, str):
            return _error(400, "content must be a string")
        app.state.about_me_store.write(body.content)
        return {"ok": True}

    @app.post("/api/generate", response_model=ResumeResponse)
    def generate_endpoint(body: GenerateRequest) -> ResumeResponse:
        about_me = body.about_me or ""
        if not about_me.strip():
            about_me = app.state.about_me_store.read()
        target_text = body.target_text or ""
        resume = generate_resume(
            about_me,
            target_text,
            app.state.generation_client,
            content_rules=settings.content_rules,
        )
        if settings.history_enabled:
            app.state.history_store.append(target_text.strip(), render_resume_html(resume))
        return ResumeResponse(resume=resume.to_payload())

    @app.post("/api/refine", response_model=ResumeResponse)
    def refine_endpoint(body: RefineRequestBody) -> ResumeResponse:
        resume = refine_resume(
            body.resume,
            body.feedback or "",
            app.state.generation_client,
            content_rules=settings.content_rules,
        )
        return ResumeResponse(resume=resume.to_payload())

    @app.get("/api/history", response_model=HistoryResponse, response_model_by_alias=True)
    def history() -> HistoryResponse:
        items = [
            HistoryItem(
                target_text=entry.target_text,
                result_html=entry.result_html,
                timestamp=entry.timestamp.isoformat(),
            )
            for entry in app.state.history_store.list()
        ]
        return HistoryResponse(items=items)

    @app.post("/api/render")
    def render_endpoint(body: RenderRequest) -> Dict[str, str]:
        return {"html": render_resume_html(normalize_resume(body.resume))}

    @app.post("/api/export/docx")
    def export_docx(body: ExportRequest) -> Response:
        content = render_resume_docx(normalize_resume(body.resume))
        return Response(
            content=content,
            media_type=_DOCX_MEDIA_TYPE,
            headers=_attachment(body.filename, "docx"),
        )

    @app.post("/api/export/pdf")
    def export_pdf(body: ExportRequest) -> Response:
        try:
            content = render_resume_pdf(normalize_resume(body.resume))
        except PdfRenderError as exc:
            LOGGER.error("pdf_export_failed", error=str(exc))
            return _error(500, "Failed to export PDF")
        return Response(
            content=content,
            media_type="application/pdf",
            headers=_attachment(body.filename, "pdf"),
        )

    return app


app = create_app()
