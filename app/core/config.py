from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

def _get_env(name: str, default: str | None = None) -> str | None:
    value = os.getenv(name)
    if value is None or value == "":
        return default
    return value


def _get_env_bool(name: str, default: bool) -> bool:
    raw = _get_env(name, None)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _get_env_int(name: str, default: int) -> int:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _get_env_float(name: str, default: float) -> float:
    raw = _get_env(name, None)
    if raw is None:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _get_env_list(name: str, default: list[str]) -> tuple[str, ...]:
    raw = _get_env(name, None)
    if raw is None:
        return tuple(default)
    values = [item.strip() for item in raw.split(",")]
    clean = [item for item in values if item]
    return tuple(clean) if clean else tuple(default)


@dataclass(frozen=True)
class Settings:
    log_level: str
    sentry_dsn: str | None
    cors_allowed_origins: tuple[str, ...]
    cors_allow_origin_regex: str | None
    ai_default_model: str
    ai_timeout_s: float
    ai_failover_on_transport_errors: bool
    max_upload_bytes: int
    ai_runs_log_enabled: bool
    ai_runs_db_path: str
    ai_runs_retention_days: int
    openrouter_referer: str
    openrouter_title: str


settings = Settings(
    log_level=_get_env("LOG_LEVEL", "INFO") or "INFO",
    sentry_dsn=_get_env("SENTRY_DSN"),
    cors_allowed_origins=_get_env_list(
        "CORS_ALLOWED_ORIGINS",
        [
            "http://localhost:3000",
            "http://127.0.0.1:3000",
            "http://localhost:5173",
        ],
    ),
    cors_allow_origin_regex=_get_env("CORS_ALLOW_ORIGIN_REGEX"),
    ai_default_model=(_get_env("AI_DEFAULT_MODEL", "gemini-2.5-flash") or "gemini-2.5-flash").strip(),
    ai_timeout_s=_get_env_float("AI_TIMEOUT_S", 120.0),
    ai_failover_on_transport_errors=_get_env_bool("AI_FAILOVER_ON_TRANSPORT_ERRORS", True),
    max_upload_bytes=_get_env_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
    ai_runs_log_enabled=_get_env_bool("AI_RUNS_LOG_ENABLED", True),
    ai_runs_db_path=_get_env("AI_RUNS_DB_PATH", "data/ai_runs.db") or "data/ai_runs.db",
    ai_runs_retention_days=_get_env_int("AI_RUNS_RETENTION_DAYS", 90),
    openrouter_referer=_get_env("OPENROUTER_REFERER", "https://job-hunt-ai.vercel.app") or "",
    openrouter_title=_get_env("OPENROUTER_TITLE", "Job Hunt AI - CV Editor") or "",
)
