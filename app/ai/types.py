from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Mapping, Optional, Protocol


AIProvider = Literal["gemini", "openrouter", "openai"]

ModelId = Literal[
    "gemini-2.5-flash",
    "gemini-2.0-flash-or",
    "nova-2-lite",
    "mistral-small-3.1",
    "gemma-3-27b",
    "gemini-2.5-pro",
    "gemini-3-pro-preview",
    "gpt-4o",
]

PDF_MIME_TYPE = "application/pdf"
DOCX_MIME_TYPE = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


@dataclass(frozen=True)
class ModelInfo:
    id: str
    name: str
    provider: AIProvider
    cost: str
    description: str
    gateway_model_id: Optional[str] = None


class KeyStore(Protocol):
    def get_key(self, provider: str) -> str | None: ...


@dataclass(frozen=True)
class StaticKeyStore:
    """Per-user keys supplied by the client (browser storage, request headers)."""

    keys: Mapping[str, str] = field(default_factory=dict)

    def get_key(self, provider: str) -> str | None:
        return self.keys.get(provider)


@dataclass(frozen=True)
class CredentialOptions:
    explicit_keys: Mapping[str, str] = field(default_factory=dict)
    user_keys: Optional[KeyStore] = None

    @classmethod
    def with_keys(cls, **keys: str | None) -> "CredentialOptions":
        return cls(explicit_keys={name: value for name, value in keys.items() if value})


@dataclass(frozen=True)
class DocumentInput:
    """A document already encoded as base64, plus its MIME type."""

    data: str
    mime_type: str

    @property
    def is_pdf(self) -> bool:
        return self.mime_type == PDF_MIME_TYPE

    @property
    def data_url(self) -> str:
        return f"data:{self.mime_type};base64,{self.data}"


@dataclass(frozen=True)
class Generation:
    text: str
    finish_reason: str | None = None

    @property
    def truncated(self) -> bool:
        return (self.finish_reason or "").upper() in {"MAX_TOKENS", "LENGTH"}


class AIClient(Protocol):
    """Uniform adapter surface over one backend."""

    model_id: str

    async def generate(
        self,
        prompt: str,
        *,
        document: DocumentInput | None = None,
        max_output_tokens: int = 16384,
    ) -> Generation: ...

    async def extract_latex(self, document: DocumentInput) -> str: ...
