"""
Centralized runtime settings for NextMove.

Planning policy (tiers, bands, thresholds) lives in config/planning_policy.yaml
and is loaded by nextmove.policy. Only process-level knobs belong here.
Override via environment variables where marked.
"""

import os

# ============================================================
# Logging
# ============================================================

LOG_LEVEL: str = os.environ.get("NEXTMOVE_LOG_LEVEL", "INFO")
"""Root log level for the API server and CLI."""

_log_json = os.environ.get("NEXTMOVE_LOG_JSON", "").strip().lower()
LOG_JSON: bool | None = None if not _log_json else _log_json in ("1", "true", "yes")
"""Force JSON (true) or human (false) log lines. Unset = auto-detect from TTY."""

# ============================================================
# API
# ============================================================

API_HOST: str = os.environ.get("NEXTMOVE_API_HOST", "127.0.0.1")
API_PORT: int = int(os.environ.get("NEXTMOVE_API_PORT", "8420"))

CORS_ORIGINS: list[str] = [
    o.strip() for o in os.environ.get("NEXTMOVE_CORS_ORIGINS", "*").split(",") if o.strip()
]
"""Comma-separated list of allowed origins. Dev default allows all."""
