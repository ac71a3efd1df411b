"""
Metrics Module (v2.0.0)
Track recommendation counts, AI vs fallback outcomes, and latency.
"""
import threading
from typing import Dict, Any


def _empty_metrics() -> Dict[str, Any]:
    return {
        "total_recommendations": 0,
        "ai_recommendations": 0,
        "fallback_recommendations": 0,
        "requests_by_provider": {},
        "errors": 0,
        "total_latency_ms": 0,
    }


# Thread-safe metrics storage
_lock = threading.Lock()
_metrics = _empty_metrics()


def record_recommendation(provider: str, source: str, latency_ms: int = 0, error: bool = False):
    """
    Record a recommendation request in metrics.

    Args:
        provider: Configured LLM provider
        source: "ai" or "fallback" (ignored when error is set)
        latency_ms: End-to-end latency
        error: Whether request failed
    """
    with _lock:
        if error:
            _metrics["errors"] += 1
            return

        _metrics["total_recommendations"] += 1
        _metrics["total_latency_ms"] += latency_ms

        if source == "ai":
            _metrics["ai_recommendations"] += 1
        else:
            _metrics["fallback_recommendations"] += 1

        if provider:
            _metrics["requests_by_provider"][provider] = _metrics["requests_by_provider"].get(provider, 0) + 1


def get_metrics() -> Dict[str, Any]:
    """Get current metrics snapshot."""
    with _lock:
        total = _metrics["total_recommendations"]
        ai = _metrics["ai_recommendations"]

        return {
            "total_recommendations": total,
            "ai_recommendations": ai,
            "fallback_recommendations": _metrics["fallback_recommendations"],
            "ai_ratio": round(ai / total, 3) if total > 0 else 0.0,
            "requests_by_provider": dict(_metrics["requests_by_provider"]),
            "errors": _metrics["errors"],
            "avg_latency_ms": round(_metrics["total_latency_ms"] / total) if total > 0 else 0,
        }


def reset_metrics():
    """Reset all metrics (for testing)."""
    global _metrics
    with _lock:
        _metrics = _empty_metrics()
