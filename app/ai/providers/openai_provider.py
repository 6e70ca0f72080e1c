from __future__ import annotations

import logging
import os
from typing import Any, Optional

import openai
from openai import AsyncOpenAI

from app.ai.catalog import get_model_name
from app.ai.errors import (
    CredentialMissingError,
    EmptyResponseError,
    RateLimitedError,
    SafetyBlockedError,
    TransportError,
)
from app.ai.prompts import LATEX_EXTRACTION_PROMPT
from app.ai.types import DocumentInput, Generation

logger = logging.getLogger(__name__)

LATEX_TOKEN_BUDGET = 16384


class OpenAIProvider:
    """Adapter for OpenAI-compatible chat completion APIs."""

    label = "OpenAI"
    env_var = "OPENAI_API_KEY"

    def __init__(
        self,
        model_id: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: float = 120.0,
        max_retries: int = 0,
        client: Any = None,
    ):
        self.model_id = model_id
        self._model = self._api_model_name(model_id)
        if client is None:
            key = (api_key or "").strip()
            if not key:
                raise CredentialMissingError(f"{self.env_var} is not configured")
            # Retries stay off: capacity failures are handled by moving to the next model.
            client = AsyncOpenAI(
                api_key=key,
                base_url=(base_url or self._default_base_url()),
                timeout=timeout_s,
                max_retries=max_retries,
            )
        self._client = client

    def _api_model_name(self, model_id: str) -> str:
        return get_model_name(model_id)

    def _default_base_url(self) -> str | None:
        return os.getenv("OPENAI_BASE_URL") or None

    def _document_part(self, document: DocumentInput) -> dict[str, Any]:
        if document.is_pdf:
            return {
                "type": "file",
                "file": {"filename": "document.pdf", "file_data": document.data_url},
            }
        return {"type": "image_url", "image_url": {"url": document.data_url}}

    def _request_extras(self, document: DocumentInput | None) -> dict[str, Any]:
        return {}

    def build_request(
        self,
        prompt: str,
        *,
        document: DocumentInput | None = None,
        max_output_tokens: int = 16384,
    ) -> dict[str, Any]:
        if document is None:
            content: Any = prompt
        else:
            content = [self._document_part(document), {"type": "text", "text": prompt}]

        request: dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_output_tokens,
            "messages": [{"role": "user", "content": content}],
        }
        request.update(self._request_extras(document))
        return request

    async def generate(
        self,
        prompt: str,
        *,
        document: DocumentInput | None = None,
        max_output_tokens: int = 16384,
    ) -> Generation:
        request = self.build_request(prompt, document=document, max_output_tokens=max_output_tokens)
        try:
            response = await self._client.chat.completions.create(**request)
        except openai.RateLimitError as exc:
            raise RateLimitedError(f"{self.label} API error: 429 - {exc.message}") from exc
        except openai.APIStatusError as exc:
            raise TransportError(
                f"{self.label} API error: {exc.status_code} - {exc.message}",
                status_code=exc.status_code,
            ) from exc
        except openai.APITimeoutError as exc:
            raise TransportError(f"{self.label} request timed out") from exc
        except openai.APIConnectionError as exc:
            raise TransportError(f"{self.label} request failed: {exc}") from exc

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise EmptyResponseError(f"No content in {self.label} response")

        choice = choices[0]
        finish_reason = getattr(choice, "finish_reason", None)
        if finish_reason == "content_filter":
            raise SafetyBlockedError(f"Content blocked by safety filter ({self.model_id})")

        message = getattr(choice, "message", None)
        text = (getattr(message, "content", None) or "").strip()
        if not text:
            raise EmptyResponseError(f"No content in {self.label} response")
        return Generation(text=text, finish_reason=finish_reason)

    async def extract_latex(self, document: DocumentInput) -> str:
        generation = await self.generate(
            LATEX_EXTRACTION_PROMPT,
            document=document,
            max_output_tokens=LATEX_TOKEN_BUDGET,
        )
        if generation.truncated:
            logger.warning("ai_latex_truncated model=%s max_tokens=%s", self.model_id, LATEX_TOKEN_BUDGET)
        return generation.text
