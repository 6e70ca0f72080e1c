from app.ai.catalog import get_model_info
from app.ai.errors import UnsupportedModelError
from app.ai.types import AIClient
from app.core.config import settings

from app.ai.providers.gemini_provider import GeminiProvider
from app.ai.providers.openai_provider import OpenAIProvider
from app.ai.providers.openrouter_provider import OpenRouterProvider


PROVIDER_REGISTRY = {
    "gemini": GeminiProvider,
    "openrouter": OpenRouterProvider,
    "openai": OpenAIProvider,
}


def get_ai_client(model_id: str, api_key: str) -> AIClient:
    info = get_model_info(model_id)
    if info is None:
        raise UnsupportedModelError(model_id)

    provider_cls = PROVIDER_REGISTRY.get(info.provider)
    if provider_cls is None:
        raise UnsupportedModelError(model_id)

    return provider_cls(model_id, api_key=api_key, timeout_s=settings.ai_timeout_s)
