from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Sequence

from app.core.config import settings

logger = logging.getLogger(__name__)


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _get_db_path() -> Path:
    return Path(settings.ai_runs_db_path)


def init_db() -> None:
    if not settings.ai_runs_log_enabled:
        return
    db_path = _get_db_path()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    with sqlite3.connect(db_path) as conn:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS ai_extraction_runs (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                created_at TEXT NOT NULL,
                run_id TEXT NOT NULL,
                operation TEXT NOT NULL,
                requested_model TEXT NOT NULL,
                model_used TEXT,
                fallback_used INTEGER NOT NULL,
                tried_models TEXT NOT NULL,
                status TEXT NOT NULL,
                error_code TEXT,
                latency_ms INTEGER
            )
            """
        )
        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_ai_extraction_runs_created_at
            ON ai_extraction_runs (created_at)
            """
        )
        conn.commit()


def log_ai_run(
    *,
    run_id: str,
    operation: str,
    requested_model: str,
    model_used: str | None,
    tried_models: Sequence[str],
    status: str,
    error_code: str | None = None,
    latency_ms: int | None = None,
) -> None:
    if not settings.ai_runs_log_enabled:
        return
    try:
        with sqlite3.connect(_get_db_path()) as conn:
            conn.execute(
                """
                INSERT INTO ai_extraction_runs (
                    created_at, run_id, operation, requested_model, model_used,
                    fallback_used, tried_models, status, error_code, latency_ms
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    _utc_now(),
                    run_id,
                    operation,
                    requested_model,
                    model_used,
                    1 if model_used is not None and model_used != requested_model else 0,
                    ",".join(tried_models),
                    status,
                    error_code,
                    latency_ms,
                ),
            )
            conn.commit()
    except Exception:  # pragma: no cover - run logging must not break AI responses
        logger.debug("ai_run_logging_failed", exc_info=True)


def purge_old_records() -> int:
    if not settings.ai_runs_log_enabled:
        return 0
    retention = max(1, int(settings.ai_runs_retention_days))
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            "DELETE FROM ai_extraction_runs WHERE created_at < ?",
            (_cutoff_iso(retention),),
        )
        conn.commit()
        return int(cur.rowcount or 0)


def _cutoff_iso(days: int) -> str:
    return (datetime.now(timezone.utc) - timedelta(days=days)).isoformat()


def _row_to_dict(cursor: sqlite3.Cursor, row: tuple) -> dict[str, Any]:
    return {col[0]: row[idx] for idx, col in enumerate(cursor.description)}


def get_latest_runs(limit: int = 20) -> list[dict[str, Any]]:
    if not settings.ai_runs_log_enabled:
        return []
    with sqlite3.connect(_get_db_path()) as conn:
        cur = conn.execute(
            """
            SELECT created_at, run_id, operation, requested_model, model_used,
                   fallback_used, tried_models, status, error_code, latency_ms
            FROM ai_extraction_runs
            ORDER BY id DESC
            LIMIT ?
            """,
            (limit,),
        )
        rows = cur.fetchall()
        return [_row_to_dict(cur, row) for row in rows]
