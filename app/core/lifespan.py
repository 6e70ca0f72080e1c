import contextlib
from contextlib import asynccontextmanager
import asyncio
import logging

from app.ai.credentials import get_available_models
from app.analytics.db import init_db, purge_old_records

logger = logging.getLogger(__name__)

PURGE_INTERVAL_S = 3600


@asynccontextmanager
async def lifespan(app):
    init_db()
    purge_old_records()

    available = [model["id"] for model in get_available_models() if model["available"]]
    if available:
        logger.info("ai_models_available models=%s", ",".join(available))
    else:
        logger.warning("ai_models_available models=none configure GEMINI_API_KEY, OPENROUTER_API_KEY or OPENAI_API_KEY")

    stop_event = asyncio.Event()

    async def periodic_purge() -> None:
        while not stop_event.is_set():
            try:
                deleted = purge_old_records()
                if deleted:
                    logger.info("ai_runs_retention_purge deleted=%s", deleted)
            except Exception as exc:  # pragma: no cover
                logger.warning("ai_runs_retention_purge_failed: %s", exc)
            try:
                await asyncio.wait_for(stop_event.wait(), timeout=PURGE_INTERVAL_S)
            except asyncio.TimeoutError:
                continue

    purge_task = asyncio.create_task(periodic_purge())
    yield
    stop_event.set()
    if not purge_task.done():
        purge_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await purge_task
