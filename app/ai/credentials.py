from __future__ import annotations

import logging
import os
import re
from dataclasses import asdict, dataclass
from typing import Any

import httpx

from app.ai.catalog import MODEL_CATALOG, get_model_info
from app.ai.types import CredentialOptions

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ProviderInfo:
    name: str
    description: str
    get_key_url: str
    env_var: str
    placeholder: str


PROVIDER_INFO: dict[str, ProviderInfo] = {
    "gemini": ProviderInfo(
        name="Google Gemini",
        description="Primary AI provider. Fast and free for most use cases.",
        get_key_url="https://aistudio.google.com/app/apikey",
        env_var="GEMINI_API_KEY",
        placeholder="AIza...",
    ),
    "openrouter": ProviderInfo(
        name="OpenRouter",
        description="Fallback provider with access to multiple models.",
        get_key_url="https://openrouter.ai/keys",
        env_var="OPENROUTER_API_KEY",
        placeholder="sk-or-v1-...",
    ),
    "openai": ProviderInfo(
        name="OpenAI",
        description="Paid vision model, used when explicitly selected or as a last resort.",
        get_key_url="https://platform.openai.com/api-keys",
        env_var="OPENAI_API_KEY",
        placeholder="sk-...",
    ),
}

_KEY_PATTERNS = {
    "gemini": re.compile(r"^AIza[A-Za-z0-9_-]{35}$"),
    "openrouter": re.compile(r"^sk-or-v1-[a-f0-9]{64}$"),
    "openai": re.compile(r"^sk-[A-Za-z0-9_-]{20,}$"),
}

_KEY_TEST_TIMEOUT_S = 10.0


def _looks_like_placeholder(value: str) -> bool:
    lower = value.strip().lower()
    return lower.startswith("your_") or lower.startswith("replace_") or lower in {"changeme", "todo"}


def _usable(value: str | None) -> str | None:
    if not value:
        return None
    clean = value.strip()
    if not clean or _looks_like_placeholder(clean):
        return None
    return clean


def env_key(provider: str) -> str | None:
    info = PROVIDER_INFO.get(provider)
    if info is None:
        return None
    return _usable(os.getenv(info.env_var))


def resolve_key(provider: str, options: CredentialOptions | None = None) -> str | None:
    """Explicit key, then the caller's stored key, then the process-wide key."""
    if options is not None:
        explicit = _usable(options.explicit_keys.get(provider))
        if explicit:
            return explicit
        if options.user_keys is not None:
            stored = _usable(options.user_keys.get_key(provider))
            if stored:
                return stored
    return env_key(provider)


def is_model_available(model_id: str, options: CredentialOptions | None = None) -> bool:
    info = get_model_info(model_id)
    if info is None:
        return False
    return resolve_key(info.provider, options) is not None


def get_available_models(options: CredentialOptions | None = None) -> list[dict[str, Any]]:
    models = []
    for info in MODEL_CATALOG:
        entry = asdict(info)
        entry["available"] = is_model_available(info.id, options)
        models.append(entry)
    return models


def validate_key_format(provider: str, key: str) -> bool:
    """Shape check only; it does not prove the key works."""
    pattern = _KEY_PATTERNS.get(provider)
    if pattern is None:
        return False
    return bool(pattern.match(key.strip()))


def mask_key(key: str) -> str:
    if len(key) < 12:
        return "****"
    return f"{key[:4]}...{key[-4:]}"


def get_key_status(options: CredentialOptions | None = None) -> dict[str, dict[str, Any]]:
    status: dict[str, dict[str, Any]] = {}
    for provider, info in PROVIDER_INFO.items():
        key = resolve_key(provider, options)
        status[provider] = {
            "configured": key is not None,
            "valid_format": key is not None and validate_key_format(provider, key),
            "masked_key": mask_key(key) if key else None,
            "env_var": info.env_var,
        }
    return status


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None
    if isinstance(payload, dict):
        error = payload.get("error")
        if isinstance(error, dict) and error.get("message"):
            return str(error["message"])
    return f"API returned {response.status_code}"


async def probe_api_key(provider: str, key: str | None) -> dict[str, Any]:
    """Make a minimal authenticated request. Never raises."""
    if not key:
        return {"valid": False, "error": "No key provided"}

    if provider == "gemini":
        url = "https://generativelanguage.googleapis.com/v1beta/models"
        request_kwargs: dict[str, Any] = {"params": {"key": key}}
    elif provider == "openrouter":
        url = "https://openrouter.ai/api/v1/auth/key"
        request_kwargs = {"headers": {"Authorization": f"Bearer {key}"}}
    elif provider == "openai":
        url = "https://api.openai.com/v1/models"
        request_kwargs = {"headers": {"Authorization": f"Bearer {key}"}}
    else:
        return {"valid": False, "error": "Unknown provider"}

    try:
        async with httpx.AsyncClient(timeout=_KEY_TEST_TIMEOUT_S) as client:
            response = await client.get(url, **request_kwargs)
    except httpx.HTTPError as exc:
        logger.warning("ai_key_test_network_error provider=%s: %s", provider, exc)
        return {"valid": False, "error": f"Network error - could not reach {PROVIDER_INFO[provider].name} API"}

    if response.is_success:
        return {"valid": True}
    return {"valid": False, "error": _error_message(response)}
