"""Metrics infrastructure package."""

from optimism.infrastructure.metrics.prometheus_metrics import (
    # Pipeline metrics
    REFRAME_REQUESTS_TOTAL,
    REFRAME_DURATION,
    CRISIS_VERDICTS_TOTAL,
    ICEBERG_LAYER_REACHED,
    PARSE_STRATEGY_TOTAL,
    # LLM metrics
    LLM_REQUESTS_TOTAL,
    LLM_LATENCY,
    LLM_TOKENS_USED,
    # API metrics
    RATE_LIMIT_EXCEEDED,
    # Helpers
    track_llm_request,
    track_reframe_outcome,
    track_crisis_verdict,
    track_layer,
    track_parse_strategy,
    track_rate_limit,
    update_system_info,
    # Router
    metrics_router,
)

__all__ = [
    "REFRAME_REQUESTS_TOTAL",
    "REFRAME_DURATION",
    "CRISIS_VERDICTS_TOTAL",
    "ICEBERG_LAYER_REACHED",
    "PARSE_STRATEGY_TOTAL",
    "LLM_REQUESTS_TOTAL",
    "LLM_LATENCY",
    "LLM_TOKENS_USED",
    "RATE_LIMIT_EXCEEDED",
    "track_llm_request",
    "track_reframe_outcome",
    "track_crisis_verdict",
    "track_layer",
    "track_parse_strategy",
    "track_rate_limit",
    "update_system_info",
    "metrics_router",
]
