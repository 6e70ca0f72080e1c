from __future__ import annotations

from typing import Any

from app.ai.catalog import get_model_info
from app.ai.errors import UnsupportedModelError
from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.types import DocumentInput
from app.core.config import settings

OPENROUTER_BASE_URL = "https://openrouter.ai/api/v1"

# pdf-text is free; the default OCR engine is billed per page.
PDF_PARSER_PLUGIN = {"id": "file-parser", "pdf": {"engine": "pdf-text"}}


class OpenRouterProvider(OpenAIProvider):
    """Unified gateway adapter; one catalog entry per gateway model id."""

    label = "OpenRouter"
    env_var = "OPENROUTER_API_KEY"

    def _api_model_name(self, model_id: str) -> str:
        info = get_model_info(model_id)
        if info is None or not info.gateway_model_id:
            raise UnsupportedModelError(model_id)
        return info.gateway_model_id

    def _default_base_url(self) -> str | None:
        return OPENROUTER_BASE_URL

    def _request_extras(self, document: DocumentInput | None) -> dict[str, Any]:
        extras: dict[str, Any] = {
            "extra_headers": {
                "HTTP-Referer": settings.openrouter_referer,
                "X-Title": settings.openrouter_title,
            }
        }
        if document is not None and document.is_pdf:
            extras["extra_body"] = {"plugins": [PDF_PARSER_PLUGIN]}
        return extras
