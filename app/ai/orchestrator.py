"""Sequential multi-model fallback.

One call walks the catalog at most once: the requested model first (or the first
available substitute), then, only after retryable failures, every remaining
entry that has a credential, in catalog order.
"""

from __future__ import annotations

import logging
import time
import uuid
from dataclasses import dataclass
from typing import Awaitable, Callable, Generic, Sequence, TypeVar

from app.ai.catalog import MODEL_CATALOG
from app.ai.credentials import resolve_key
from app.ai.errors import AIError, ModelsExhaustedError, NoModelsAvailableError, UnsupportedModelError
from app.ai.factory import get_ai_client
from app.ai.rate_limit import is_retryable_error
from app.ai.types import AIClient, CredentialOptions, ModelInfo
from app.analytics.db import log_ai_run
from app.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

ClientFactory = Callable[[str, str], AIClient]
AdapterCall = Callable[[AIClient], Awaitable[str]]


@dataclass(frozen=True)
class ExtractionResult(Generic[T]):
    result: T
    model_used: str
    requested_model: str
    tried_models: tuple[str, ...]

    @property
    def fallback_used(self) -> bool:
        return self.model_used != self.requested_model


class Orchestrator:
    def __init__(
        self,
        *,
        client_factory: ClientFactory = get_ai_client,
        catalog: Sequence[ModelInfo] = MODEL_CATALOG,
        failover_on_transport: bool | None = None,
    ):
        self._client_factory = client_factory
        self._catalog = tuple(catalog)
        self._failover_on_transport = (
            settings.ai_failover_on_transport_errors if failover_on_transport is None else failover_on_transport
        )

    def _entry(self, model_id: str) -> ModelInfo | None:
        for info in self._catalog:
            if info.id == model_id:
                return info
        return None

    def _has_key(self, info: ModelInfo, credentials: CredentialOptions | None) -> bool:
        return resolve_key(info.provider, credentials) is not None

    def _next_candidate(self, tried: Sequence[str], credentials: CredentialOptions | None) -> ModelInfo | None:
        for info in self._catalog:
            if info.id not in tried and self._has_key(info, credentials):
                return info
        return None

    def select_model(self, requested: str, credentials: CredentialOptions | None = None) -> ModelInfo:
        info = self._entry(requested)
        if info is None:
            raise UnsupportedModelError(requested)
        if self._has_key(info, credentials):
            return info

        substitute = self._next_candidate([requested], credentials)
        if substitute is None:
            raise NoModelsAvailableError()
        logger.warning("ai_model_unavailable requested=%s substitute=%s", requested, substitute.id)
        return substitute

    async def run(
        self,
        operation: str,
        call: AdapterCall,
        parse: Callable[[str], T],
        *,
        model: str | None = None,
        credentials: CredentialOptions | None = None,
    ) -> ExtractionResult[T]:
        requested = model or settings.ai_default_model
        run_id = uuid.uuid4().hex
        started = time.perf_counter()
        tried: list[str] = []

        def _record(status: str, model_used: str | None, error: BaseException | None = None) -> None:
            log_ai_run(
                run_id=run_id,
                operation=operation,
                requested_model=requested,
                model_used=model_used,
                tried_models=tried,
                status=status,
                error_code=getattr(error, "code", None) or (type(error).__name__ if error else None),
                latency_ms=int((time.perf_counter() - started) * 1000),
            )

        try:
            current = self.select_model(requested, credentials)
        except AIError as exc:
            _record("error", None, exc)
            raise

        while True:
            tried.append(current.id)
            api_key = resolve_key(current.provider, credentials) or ""
            try:
                client = self._client_factory(current.id, api_key)
                raw = await call(client)
            except Exception as exc:
                if not is_retryable_error(exc, failover_on_transport=self._failover_on_transport):
                    logger.warning("ai_attempt_failed operation=%s model=%s error=%s", operation, current.id, exc)
                    _record("error", current.id, exc)
                    raise

                logger.warning("ai_rate_limited operation=%s model=%s error=%s", operation, current.id, exc)
                next_model = self._next_candidate(tried, credentials)
                if next_model is None:
                    exhausted = ModelsExhaustedError(tried)
                    _record("exhausted", None, exhausted)
                    raise exhausted from exc
                logger.warning(
                    "ai_fallback_attempt operation=%s model=%s tried=%s",
                    operation,
                    next_model.id,
                    ",".join(tried),
                )
                current = next_model
                continue

            try:
                result = parse(raw)
            except Exception as exc:
                _record("invalid", current.id, exc)
                raise

            if current.id != requested:
                logger.info("ai_fallback_succeeded operation=%s model=%s requested=%s", operation, current.id, requested)
            _record("success", current.id)
            return ExtractionResult(
                result=result,
                model_used=current.id,
                requested_model=requested,
                tried_models=tuple(tried),
            )


_default_orchestrator: Orchestrator | None = None


def get_orchestrator() -> Orchestrator:
    global _default_orchestrator
    if _default_orchestrator is None:
        _default_orchestrator = Orchestrator()
    return _default_orchestrator
