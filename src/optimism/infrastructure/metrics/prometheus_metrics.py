"""
Prometheus Metrics

Metrics for reframe pipeline observability.
Exposes metrics at /metrics endpoint for Prometheus scraping.

ARCHITECTURE: Metrics are decoupled from business logic.
Only increment/observe; never block on metrics operations.
"""

from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    Info,
    generate_latest,
    CONTENT_TYPE_LATEST,
    REGISTRY,
)
from fastapi import APIRouter, Response

from optimism.config.logging_config import get_logger

logger = get_logger(__name__)

# =============================================================================
# PIPELINE METRICS
# =============================================================================

REFRAME_REQUESTS_TOTAL = Counter(
    "optimism_reframe_requests_total",
    "Reframe pipeline runs by outcome",
    ["outcome"],  # success, crisis, rate_limited, invalid, provider_unavailable, parse_failure
)

REFRAME_DURATION = Histogram(
    "optimism_reframe_duration_seconds",
    "End to end pipeline duration",
    buckets=[0.5, 1.0, 2.5, 5.0, 10.0, 20.0, 30.0, 60.0],
)

CRISIS_VERDICTS_TOTAL = Counter(
    "optimism_crisis_verdicts_total",
    "Crisis gate verdicts by severity",
    ["severity"],  # LOW, MODERATE, HIGH
)

ICEBERG_LAYER_REACHED = Counter(
    "optimism_iceberg_layer_reached_total",
    "Replies by conversation depth layer",
    ["layer"],
)

PARSE_STRATEGY_TOTAL = Counter(
    "optimism_parse_strategy_total",
    "Parse strategy that recovered a provider reply",
    ["phase", "strategy"],  # strategy: direct_json, brace_span, fenced_json, labeled_text, none
)

# =============================================================================
# LLM METRICS
# =============================================================================

LLM_REQUESTS_TOTAL = Counter(
    "optimism_llm_requests_total",
    "Total LLM requests by provider",
    ["provider", "status"],  # success, empty, error, timeout
)

LLM_LATENCY = Histogram(
    "optimism_llm_latency_seconds",
    "LLM response latency",
    ["provider"],
    buckets=[0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0, 15.0],
)

LLM_TOKENS_USED = Counter(
    "optimism_llm_tokens_total",
    "Total tokens used by LLM",
    ["provider"],
)

# =============================================================================
# API METRICS
# =============================================================================

RATE_LIMIT_EXCEEDED = Counter(
    "optimism_rate_limit_exceeded_total",
    "Rate limit exceeded events",
    ["endpoint_class"],
)

# =============================================================================
# SYSTEM INFO
# =============================================================================

SYSTEM_INFO = Info(
    "optimism_system",
    "Optimism engine information",
)

SYSTEM_INFO.info({
    "version": "0.1.0",
    "environment": "development",  # Updated at runtime
})


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def track_llm_request(
    provider: str,
    status: str,
    duration_seconds: float,
    tokens: Optional[int] = None,
) -> None:
    """Record one provider attempt."""
    LLM_REQUESTS_TOTAL.labels(provider=provider, status=status).inc()
    LLM_LATENCY.labels(provider=provider).observe(duration_seconds)
    if tokens:
        LLM_TOKENS_USED.labels(provider=provider).inc(tokens)


def track_reframe_outcome(outcome: str, duration_seconds: Optional[float] = None) -> None:
    """Record a pipeline run outcome."""
    REFRAME_REQUESTS_TOTAL.labels(outcome=outcome).inc()
    if duration_seconds is not None:
        REFRAME_DURATION.observe(duration_seconds)


def track_crisis_verdict(severity: str) -> None:
    """Record crisis gate verdict."""
    CRISIS_VERDICTS_TOTAL.labels(severity=severity).inc()


def track_layer(layer: str) -> None:
    ICEBERG_LAYER_REACHED.labels(layer=layer).inc()


def track_parse_strategy(phase: str, strategy: str) -> None:
    PARSE_STRATEGY_TOTAL.labels(phase=phase, strategy=strategy).inc()


def track_rate_limit(endpoint_class: str) -> None:
    RATE_LIMIT_EXCEEDED.labels(endpoint_class=endpoint_class).inc()


# =============================================================================
# METRICS ENDPOINT
# =============================================================================

metrics_router = APIRouter(tags=["metrics"])


@metrics_router.get("/metrics")
async def metrics() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format for scraping.
    """
    return Response(
        content=generate_latest(REGISTRY),
        media_type=CONTENT_TYPE_LATEST,
    )


def update_system_info(environment: str, version: str = "0.1.0") -> None:
    """Update system info metric with current environment."""
    SYSTEM_INFO.info({
        "version": version,
        "environment": environment,
    })
