from __future__ import annotations

from typing import Sequence


class AIError(RuntimeError):
    code = "ai_error"

    def __init__(self, message: str, *, code: str | None = None):
        super().__init__(message)
        if code:
            self.code = code


class CredentialMissingError(AIError):
    code = "credential_missing"


class NoModelsAvailableError(AIError):
    code = "no_models_available"

    def __init__(self, message: str = "No AI models available. Please configure at least one API key."):
        super().__init__(message)


class UnsupportedModelError(AIError):
    code = "unsupported_model"

    def __init__(self, model_id: str):
        super().__init__(f"Unsupported model: {model_id}")
        self.model_id = model_id


class RateLimitedError(AIError):
    code = "rate_limited"


class SafetyBlockedError(AIError):
    code = "safety_blocked"


class EmptyResponseError(AIError):
    code = "empty_response"


class TransportError(AIError):
    code = "http_error"

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def transient(self) -> bool:
        return self.status_code is None or self.status_code >= 500


class InvalidJSONError(AIError):
    code = "invalid_json"


class InvalidLatexError(AIError):
    code = "invalid_latex"


class SchemaValidationError(AIError):
    code = "schema_invalid"

    def __init__(self, context: str, issues: Sequence[tuple[str, str]]):
        self.issues = list(issues)
        details = ", ".join(f"{path}: {message}" for path, message in self.issues)
        super().__init__(f"{context} failed validation: {details}")


class ModelsExhaustedError(AIError):
    code = "models_exhausted"

    def __init__(self, tried_models: Sequence[str]):
        self.tried_models = list(tried_models)
        super().__init__(
            "All available AI models are unavailable or rate limited. "
            f"Tried: {', '.join(self.tried_models)}. Please wait a moment and try again."
        )


CONTENT_ERRORS = (SafetyBlockedError, EmptyResponseError, InvalidJSONError, InvalidLatexError, SchemaValidationError)
CONFIGURATION_ERRORS = (CredentialMissingError, NoModelsAvailableError)


def friendly_error_message(error: BaseException) -> str:
    """Map an AI failure to text suitable for end users."""
    if isinstance(error, (ModelsExhaustedError, NoModelsAvailableError, SchemaValidationError)):
        return str(error)
    if isinstance(error, RateLimitedError):
        return "Rate limit exceeded. Please wait a moment and try again."
    if isinstance(error, SafetyBlockedError):
        return "The document couldn't be processed due to content restrictions. Please try a different file."
    if isinstance(error, CredentialMissingError):
        return "API key is invalid or missing. Please check your configuration."
    if isinstance(error, UnsupportedModelError):
        return "Selected AI model is not available. Please try a different model."

    message = str(error)
    lower = message.lower()
    if "429" in message or "too many requests" in lower or "quota" in lower:
        if "gemini-2.5-pro" in message or "gemini-3" in message:
            return (
                "This model requires a paid Google Cloud account. "
                "Please select Gemini 2.5 Flash (free) or add billing to your account."
            )
        return "Rate limit exceeded. Please wait a moment and try again."
    if "401" in message or "403" in message or "api key" in lower or "authentication" in lower:
        return "API key is invalid or missing. Please check your configuration."
    if "404" in message or "not found" in lower:
        return "Selected AI model is not available. Please try a different model."
    if "timeout" in lower or "timed out" in lower:
        return "Request timed out. Please try again with a smaller file."
    return message or "AI request failed. Please try again."
