from __future__ import annotations

import io
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from app.ai.types import DOCX_MIME_TYPE, PDF_MIME_TYPE

from .models import ParsedDoc

_MIME_SOURCE_TYPES = {
    PDF_MIME_TYPE: "pdf",
    DOCX_MIME_TYPE: "docx",
    "text/plain": "txt",
    "application/x-tex": "tex",
    "text/x-tex": "tex",
}

_EXTENSION_SOURCE_TYPES = {".pdf": "pdf", ".docx": "docx", ".txt": "txt", ".tex": "tex"}


def detect_source_type(filename: str | None, content_type: str | None = None) -> str | None:
    extension = Path(filename or "").suffix.lower()
    if extension in _EXTENSION_SOURCE_TYPES:
        return _EXTENSION_SOURCE_TYPES[extension]
    return _MIME_SOURCE_TYPES.get((content_type or "").split(";")[0].strip().lower())


def _parse_text(data: bytes) -> tuple[str, list[str]]:
    text = data.decode("utf-8", errors="replace")
    return text, []


def _parse_pdf(data: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []

    try:
        reader = PdfReader(io.BytesIO(data))
        text_parts: list[str] = []
        for page in reader.pages:
            page_text = (page.extract_text() or "").strip()
            if page_text:
                text_parts.append(page_text)
        if not text_parts:
            warnings.append("No extractable text found in PDF.")
        return "\n".join(text_parts), warnings
    except Exception as exc:
        warnings.append(f"PDF parsing failed: {exc}")
        return "", warnings


def _parse_docx(data: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []

    try:
        document = Document(io.BytesIO(data))
        paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
        if not paragraphs:
            warnings.append("No extractable text found in DOCX.")
        return "\n".join(paragraphs), warnings
    except Exception as exc:
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", warnings


def parse_document(data: bytes, filename: str | None = None, content_type: str | None = None) -> ParsedDoc:
    """Extract plain text from an uploaded CV for text-mode parsing."""
    source_type = detect_source_type(filename, content_type)
    if source_type == "pdf":
        text, warnings = _parse_pdf(data)
    elif source_type == "docx":
        text, warnings = _parse_docx(data)
    elif source_type in {"txt", "tex"}:
        text, warnings = _parse_text(data)
    else:
        raise NotImplementedError(
            f"Unsupported file type '{Path(filename or '').suffix or content_type}'. "
            "Supported types: .txt, .tex, .pdf, .docx"
        )

    return ParsedDoc(
        source_type=source_type,
        text=text,
        parsing_warnings=warnings,
    )
