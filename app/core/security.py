from __future__ import annotations

from fastapi import Header

from app.ai.types import CredentialOptions, StaticKeyStore


def _clean(value: str | None) -> str | None:
    value = (value or "").strip()
    return value or None


def request_credentials(
    x_gemini_api_key: str | None = Header(default=None),
    x_openrouter_api_key: str | None = Header(default=None),
    x_openai_api_key: str | None = Header(default=None),
) -> CredentialOptions:
    """Per-user keys sent by the client; they rank above the server environment."""
    keys = {
        "gemini": _clean(x_gemini_api_key),
        "openrouter": _clean(x_openrouter_api_key),
        "openai": _clean(x_openai_api_key),
    }
    user_keys = {provider: key for provider, key in keys.items() if key}
    if not user_keys:
        return CredentialOptions()
    return CredentialOptions(user_keys=StaticKeyStore(user_keys))
