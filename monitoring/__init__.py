"""monitoring package"""
from .logger import (
    logger,
    metrics,
    timed,
    async_timed,
    start_metrics_server,
    get_logger,
    EXTRACTION_REQUESTS,
    EXTRACTION_LATENCY,
    EVENTS_EXTRACTED,
    TIMELINE_BLOCKS,
    GUARDRAIL_FAILURES,
)

__all__ = [
    "logger", "metrics", "timed", "async_timed", "start_metrics_server",
    "get_logger", "EXTRACTION_REQUESTS", "EXTRACTION_LATENCY",
    "EVENTS_EXTRACTED", "TIMELINE_BLOCKS", "GUARDRAIL_FAILURES",
]
