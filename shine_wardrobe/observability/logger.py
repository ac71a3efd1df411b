"""
Request Logger (v2.0.0)
Structured JSON log of recommendation requests, one object per line.
"""
import os
import json
import logging
from pathlib import Path
from typing import Optional

from shine_wardrobe.core.models import utc_now

LOGS_DIR = Path(os.getenv("SHINE_LOGS_DIR", Path(__file__).parent.parent.parent / "logs"))
REQUEST_LOG_FILE = LOGS_DIR / "requests.log"

request_logger = logging.getLogger("shine.requests")
request_logger.setLevel(logging.INFO)
# Request entries stay out of the application log
request_logger.propagate = False


def _ensure_handler() -> None:
    """Attach the file handler on first use."""
    if request_logger.handlers:
        return
    LOGS_DIR.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(REQUEST_LOG_FILE, encoding="utf-8")
    handler.setFormatter(logging.Formatter("%(message)s"))
    request_logger.addHandler(handler)


def log_request(
    recommendation_id: Optional[str],
    user_id: str,
    provider: str,
    source: str,
    latency_ms: int,
    status: str,
    error: Optional[str] = None,
):
    """
    Append one generation attempt to the request log.

    Args:
        recommendation_id: Persisted recommendation id (None on failure)
        user_id: Requesting user
        provider: Configured LLM provider
        source: "ai" or "fallback"
        latency_ms: Wall time of the whole generation
        status: "success" or "fail"
        error: Failure message, omitted on success
    """
    if not is_logging_enabled():
        return

    entry = {
        "timestamp": utc_now(),
        "recommendation_id": recommendation_id,
        "user_id": user_id,
        "provider": provider,
        "source": source,
        "latency_ms": latency_ms,
        "status": status,
    }
    if error:
        entry["error"] = error

    _ensure_handler()
    request_logger.info(json.dumps(entry, ensure_ascii=False))


def is_logging_enabled() -> bool:
    return os.getenv("SHINE_LOGGING_ENABLED", "true").lower() == "true"
