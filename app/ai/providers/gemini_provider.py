from __future__ import annotations

import base64
import json
import logging
from typing import Any, Optional

import httpx
from google import genai
from google.genai import errors as genai_errors
from google.genai import types as genai_types

from app.ai.catalog import TWO_PASS_MODELS, get_model_name
from app.ai.errors import (
    CredentialMissingError,
    EmptyResponseError,
    InvalidJSONError,
    RateLimitedError,
    SafetyBlockedError,
    TransportError,
)
from app.ai.prompts import LATEX_EXTRACTION_PROMPT, STYLE_ANALYSIS_PROMPT, latex_from_style_prompt
from app.ai.types import DocumentInput, Generation
from app.ai.utils import clean_json_response

logger = logging.getLogger(__name__)

LATEX_TOKEN_BUDGETS = (16384, 32768)
STYLE_TOKEN_BUDGET = 4096
TWO_PASS_LATEX_TOKEN_BUDGET = 32768

_SAFETY_FINISH_REASONS = {"SAFETY", "PROHIBITED_CONTENT", "BLOCKLIST", "SPII", "RECITATION"}


def _enum_name(value: Any) -> str | None:
    if value is None:
        return None
    return str(getattr(value, "name", value)).upper()


class GeminiProvider:
    """Direct Gemini API adapter (documents sent as inline data)."""

    def __init__(
        self,
        model_id: str,
        api_key: Optional[str] = None,
        timeout_s: float = 120.0,
        client: Any = None,
    ):
        self.model_id = model_id
        self._model_name = get_model_name(model_id)
        if client is None:
            key = (api_key or "").strip()
            if not key:
                raise CredentialMissingError("GEMINI_API_KEY is not configured")
            client = genai.Client(
                api_key=key,
                http_options=genai_types.HttpOptions(timeout=int(timeout_s * 1000)),
            )
        self._client = client

    def _contents(self, prompt: str, document: DocumentInput | None) -> list[Any]:
        if document is None:
            return [prompt]
        part = genai_types.Part.from_bytes(
            data=base64.b64decode(document.data),
            mime_type=document.mime_type,
        )
        return [part, prompt]

    async def _request(self, prompt: str, document: DocumentInput | None, max_output_tokens: int) -> Generation:
        try:
            response = await self._client.aio.models.generate_content(
                model=self._model_name,
                contents=self._contents(prompt, document),
                config=genai_types.GenerateContentConfig(max_output_tokens=max_output_tokens),
            )
        except genai_errors.APIError as exc:
            if exc.code == 429:
                raise RateLimitedError(f"Gemini API error: 429 {exc.message or exc}") from exc
            raise TransportError(f"Gemini API error: {exc.code} - {exc.message or exc}", status_code=exc.code) from exc
        except httpx.TimeoutException as exc:
            raise TransportError(f"Gemini request timed out: {exc}") from exc
        except httpx.HTTPError as exc:
            raise TransportError(f"Gemini request failed: {exc}") from exc

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = _enum_name(getattr(feedback, "block_reason", None))
        if block_reason and block_reason != "BLOCKED_REASON_UNSPECIFIED":
            raise SafetyBlockedError(f"Content blocked by safety filter ({block_reason})")

        candidates = getattr(response, "candidates", None) or []
        finish_reason = _enum_name(getattr(candidates[0], "finish_reason", None)) if candidates else None
        if finish_reason in _SAFETY_FINISH_REASONS:
            raise SafetyBlockedError(f"Content blocked by safety filter ({finish_reason})")

        return Generation(text=(response.text or "").strip(), finish_reason=finish_reason)

    async def generate(
        self,
        prompt: str,
        *,
        document: DocumentInput | None = None,
        max_output_tokens: int = 16384,
    ) -> Generation:
        generation = await self._request(prompt, document, max_output_tokens)
        if not generation.text:
            raise EmptyResponseError(f"Empty response from {self.model_id}")
        return generation

    async def extract_latex(self, document: DocumentInput) -> str:
        if self.model_id in TWO_PASS_MODELS:
            return await self.extract_latex_two_pass(document)

        # Start conservative to stay inside free-tier limits; escalate only on truncation.
        # Thinking tokens count against the budget, so a truncated reply can be empty.
        for budget in LATEX_TOKEN_BUDGETS[:-1]:
            generation = await self._request(LATEX_EXTRACTION_PROMPT, document, budget)
            if not generation.truncated:
                if not generation.text:
                    raise EmptyResponseError(f"Empty response from {self.model_id}")
                return generation.text
            logger.warning("ai_latex_truncated model=%s max_tokens=%s retrying", self.model_id, budget)

        generation = await self.generate(
            LATEX_EXTRACTION_PROMPT,
            document=document,
            max_output_tokens=LATEX_TOKEN_BUDGETS[-1],
        )
        return generation.text

    async def extract_latex_two_pass(self, document: DocumentInput) -> str:
        """Describe the visual style first, then generate LaTeX conditioned on it."""
        style = await self.generate(STYLE_ANALYSIS_PROMPT, document=document, max_output_tokens=STYLE_TOKEN_BUDGET)
        style_json = clean_json_response(style.text)
        try:
            json.loads(style_json)
        except json.JSONDecodeError:
            raise InvalidJSONError("Style analysis returned invalid JSON") from None
        logger.info("ai_two_pass_style_ready model=%s preview=%s", self.model_id, style_json[:200])

        generation = await self.generate(
            latex_from_style_prompt(style_json),
            document=document,
            max_output_tokens=TWO_PASS_LATEX_TOKEN_BUDGET,
        )
        return generation.text
