import logging
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile, status

from app.ai.credentials import PROVIDER_INFO, get_available_models, get_key_status, probe_api_key, resolve_key
from app.ai.errors import (
    CONFIGURATION_ERRORS,
    CONTENT_ERRORS,
    AIError,
    EmptyResponseError,
    ModelsExhaustedError,
    RateLimitedError,
    SafetyBlockedError,
    UnsupportedModelError,
    friendly_error_message,
)
from app.ai.orchestrator import ExtractionResult
from app.ai.types import DOCX_MIME_TYPE, PDF_MIME_TYPE, CredentialOptions
from app.analytics import db as analytics_db
from app.core.config import settings
from app.core.security import request_credentials
from app.parsing.parse import parse_document
from app.schemas.ai_requests import (
    AnalyzeJobRequest,
    ATSRequest,
    CoverLetterRequest,
    ModifyLatexRequest,
    RegenerateTemplateRequest,
)
from app.services import ai_service

logger = logging.getLogger(__name__)

router = APIRouter()

VISION_MIME_TYPES = {
    "pdf": PDF_MIME_TYPE,
    "docx": DOCX_MIME_TYPE,
    "png": "image/png",
    "jpg": "image/jpeg",
    "jpeg": "image/jpeg",
    "webp": "image/webp",
    "gif": "image/gif",
}

TEXT_EXTENSIONS = {"txt", "tex"}


def _extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


async def _read_upload(file: UploadFile) -> bytes:
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = await file.read(1024 * 64)
        if not chunk:
            break
        total += len(chunk)
        if total > settings.max_upload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"File too large. Maximum allowed size is {settings.max_upload_bytes // (1024 * 1024)} MB.",
            )
        chunks.append(chunk)
    return b"".join(chunks)


def _unsupported_file(ext: str, allowed: set[str]) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(allowed))}.",
    )


def _raise_ai_http_error(exc: Exception) -> NoReturn:
    if isinstance(exc, (ModelsExhaustedError, *CONFIGURATION_ERRORS)):
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from exc
    if isinstance(exc, UnsupportedModelError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    if isinstance(exc, CONTENT_ERRORS):
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)) from exc
    if isinstance(exc, RateLimitedError):
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=friendly_error_message(exc),
        ) from exc
    if isinstance(exc, AIError):
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=friendly_error_message(exc)) from exc
    if isinstance(exc, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc)) from exc
    raise exc


def _dump(value: Any) -> Any:
    if hasattr(value, "model_dump"):
        return value.model_dump(by_alias=True)
    return value


def _envelope(outcome: ExtractionResult, **payload: Any) -> dict[str, Any]:
    return {
        **payload,
        "modelUsed": outcome.model_used,
        "requestedModel": outcome.requested_model,
        "fallbackUsed": outcome.fallback_used,
        "triedModels": list(outcome.tried_models),
    }


@router.get("/ai/models")
async def ai_models(credentials: CredentialOptions = Depends(request_credentials)):
    return {
        "models": get_available_models(credentials),
        "defaultModel": settings.ai_default_model,
    }


@router.get("/ai/keys")
async def ai_keys(credentials: CredentialOptions = Depends(request_credentials)):
    return {"providers": get_key_status(credentials)}


@router.get("/ai/runs")
def ai_runs(limit: int = Query(default=20, ge=1, le=200)):
    return analytics_db.get_latest_runs(limit=limit)


@router.get("/ai/keys/test")
async def ai_keys_test(
    provider: str = Query(...),
    credentials: CredentialOptions = Depends(request_credentials),
):
    if provider not in PROVIDER_INFO:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown provider '{provider}'. Allowed: {', '.join(sorted(PROVIDER_INFO))}.",
        )
    return await probe_api_key(provider, resolve_key(provider, credentials))


@router.post("/ai/extract-latex")
async def ai_extract_latex(
    file: UploadFile = File(...),
    model: str | None = Form(default=None),
    template: str | None = Form(default=None),
    credentials: CredentialOptions = Depends(request_credentials),
):
    filename = file.filename or "uploaded-file"
    ext = _extension(filename)
    if ext != "tex" and ext not in VISION_MIME_TYPES:
        raise _unsupported_file(ext, set(VISION_MIME_TYPES) | {"tex"})

    payload = await _read_upload(file)

    if ext == "tex":
        latex = payload.decode("utf-8", errors="replace")
        if "\\documentclass" not in latex:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Invalid LaTeX file: missing \\documentclass",
            )
        return {"latex": latex, "modelUsed": None, "requestedModel": None, "fallbackUsed": False, "triedModels": []}

    mime_type = VISION_MIME_TYPES[ext]
    try:
        if template:
            outcome = await ai_service.extract_with_template(
                payload, mime_type, template, model=model, credentials=credentials
            )
            return _envelope(
                outcome,
                latex=outcome.result.latex,
                content=_dump(outcome.result.content),
                templateId=outcome.result.template_id,
            )
        outcome = await ai_service.extract_latex_with_model(payload, mime_type, model=model, credentials=credentials)
    except (AIError, ValueError) as exc:
        logger.warning("ai_extract_latex_failed filename=%s error=%s", filename, exc)
        _raise_ai_http_error(exc)
    return _envelope(outcome, latex=outcome.result)


@router.post("/ai/regenerate-template")
async def ai_regenerate_template(payload: RegenerateTemplateRequest):
    try:
        latex = ai_service.regenerate_with_template(payload.content, payload.template_id)
    except ValueError as exc:
        _raise_ai_http_error(exc)
    return {"latex": latex, "templateId": payload.template_id}


@router.post("/ai/parse-cv")
async def ai_parse_cv(
    file: UploadFile = File(...),
    model: str | None = Form(default=None),
    credentials: CredentialOptions = Depends(request_credentials),
):
    filename = file.filename or "uploaded-file"
    ext = _extension(filename)
    allowed = set(VISION_MIME_TYPES) | TEXT_EXTENSIONS
    if ext not in allowed:
        raise _unsupported_file(ext, allowed)

    payload = await _read_upload(file)
    try:
        if ext in VISION_MIME_TYPES and ext != "docx":
            try:
                outcome = await ai_service.parse_cv(
                    payload, VISION_MIME_TYPES[ext], model=model, credentials=credentials
                )
            except (SafetyBlockedError, EmptyResponseError) as exc:
                if ext != "pdf":
                    raise
                parsed = parse_document(payload, filename=filename, content_type=file.content_type)
                if parsed.is_empty:
                    raise
                logger.warning("ai_parse_cv_vision_failed filename=%s error=%s fallback=text", filename, exc)
                outcome = await ai_service.parse_cv_text(parsed.text, model=model, credentials=credentials)
        else:
            parsed = parse_document(payload, filename=filename, content_type=file.content_type)
            if parsed.is_empty:
                raise HTTPException(
                    status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
                    detail="; ".join(parsed.parsing_warnings) or "No extractable text found in file.",
                )
            outcome = await ai_service.parse_cv_text(parsed.text, model=model, credentials=credentials)
    except AIError as exc:
        logger.warning("ai_parse_cv_failed filename=%s error=%s", filename, exc)
        _raise_ai_http_error(exc)
    return _envelope(outcome, data=_dump(outcome.result))


@router.post("/ai/analyze-job")
async def ai_analyze_job(payload: AnalyzeJobRequest, credentials: CredentialOptions = Depends(request_credentials)):
    try:
        outcome = await ai_service.analyze_job(
            payload.job_description, payload.user_cv, model=payload.model, credentials=credentials
        )
    except AIError as exc:
        _raise_ai_http_error(exc)
    return _envelope(outcome, analysis=_dump(outcome.result))


@router.post("/ai/cover-letter")
async def ai_cover_letter(payload: CoverLetterRequest, credentials: CredentialOptions = Depends(request_credentials)):
    try:
        outcome = await ai_service.generate_cover_letter(
            payload.analysis, payload.user_cv, model=payload.model, credentials=credentials
        )
    except AIError as exc:
        _raise_ai_http_error(exc)
    return _envelope(outcome, coverLetter=outcome.result)


@router.post("/ai/ats")
async def ai_ats(payload: ATSRequest, credentials: CredentialOptions = Depends(request_credentials)):
    try:
        outcome = await ai_service.analyze_ats_compliance(payload.latex, model=payload.model, credentials=credentials)
    except AIError as exc:
        _raise_ai_http_error(exc)
    return _envelope(outcome, analysis=_dump(outcome.result))


@router.post("/ai/modify-latex")
async def ai_modify_latex(payload: ModifyLatexRequest, credentials: CredentialOptions = Depends(request_credentials)):
    try:
        outcome = await ai_service.modify_latex(
            payload.latex, payload.instruction, model=payload.model, credentials=credentials
        )
    except AIError as exc:
        _raise_ai_http_error(exc)
    return _envelope(outcome, latex=outcome.result)
