"""Model catalog.

Order is the fallback order: when a model is rate limited the orchestrator walks
the remaining entries from the top.
"""

from __future__ import annotations

from app.ai.types import ModelInfo
from app.core.config import settings

DEFAULT_MODEL = "gemini-2.5-flash"

MODEL_CATALOG: tuple[ModelInfo, ...] = (
    ModelInfo(
        id="gemini-2.5-flash",
        name="Gemini 2.5 Flash",
        provider="gemini",
        cost="Free",
        description="Fast, good for most CVs",
    ),
    ModelInfo(
        id="gemini-2.0-flash-or",
        name="Gemini 2.0 Flash (OpenRouter)",
        provider="openrouter",
        cost="Free",
        description="Gemini 2.0 via OpenRouter - different rate limits",
        gateway_model_id="google/gemini-2.0-flash-exp:free",
    ),
    ModelInfo(
        id="nova-2-lite",
        name="Amazon Nova 2 Lite",
        provider="openrouter",
        cost="Free",
        description="Amazon vision model via OpenRouter",
        gateway_model_id="amazon/nova-2-lite-v1:free",
    ),
    ModelInfo(
        id="mistral-small-3.1",
        name="Mistral Small 3.1",
        provider="openrouter",
        cost="Free",
        description="Mistral 24B vision model via OpenRouter",
        gateway_model_id="mistralai/mistral-small-3.1-24b-instruct:free",
    ),
    ModelInfo(
        id="gemma-3-27b",
        name="Google Gemma 3 27B",
        provider="openrouter",
        cost="Free",
        description="Google's open Gemma model via OpenRouter",
        gateway_model_id="google/gemma-3-27b-it:free",
    ),
    ModelInfo(
        id="gemini-2.5-pro",
        name="Gemini 2.5 Pro",
        provider="gemini",
        cost="Paid",
        description="Best reasoning (requires billing enabled)",
    ),
    ModelInfo(
        id="gemini-3-pro-preview",
        name="Gemini 3 Pro (Preview)",
        provider="gemini",
        cost="Paid",
        description="Best multimodal (requires billing enabled)",
    ),
    ModelInfo(
        id="gpt-4o",
        name="GPT-4o",
        provider="openai",
        cost="~$0.01",
        description="OpenAI vision model",
    ),
)

_GEMINI_MODEL_NAMES = {
    "gemini-2.5-flash": "gemini-2.5-flash",
    "gemini-2.5-pro": "gemini-2.5-pro",
    "gemini-3-pro-preview": "gemini-3-pro-preview",
}

TWO_PASS_MODELS = frozenset({"gemini-2.5-pro", "gemini-3-pro-preview"})


def get_model_info(model_id: str) -> ModelInfo | None:
    for info in MODEL_CATALOG:
        if info.id == model_id:
            return info
    return None


def get_model_name(model_id: str) -> str:
    """API model name for a direct-provider catalog id."""
    info = get_model_info(model_id)
    if info is not None and info.provider == "openai":
        return model_id
    return _GEMINI_MODEL_NAMES.get(model_id, _GEMINI_MODEL_NAMES[DEFAULT_MODEL])


def catalog_ids() -> list[str]:
    return [info.id for info in MODEL_CATALOG]


if settings.ai_default_model not in catalog_ids():
    raise RuntimeError(f"AI_DEFAULT_MODEL must be one of: {', '.join(catalog_ids())}.")
