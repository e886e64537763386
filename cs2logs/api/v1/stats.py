"""Stats API endpoint for ingestion statistics."""
from __future__ import annotations

from typing import Any

from litestar import get
from litestar.di import Provide

from cs2logs.services.ingestion import LogIngestionService
from cs2logs.services.logparser import LogClassifier
from cs2logs.api.dependencies import provide_ingestion_service as pis


@get("/api/stats", dependencies={"ingestion_service": Provide(pis, sync_to_thread=False)})
async def stats(
    ingestion_service: LogIngestionService | None,
    log_classifier: LogClassifier,
) -> dict[str, Any]:
    """Get classification and ingestion statistics.

    Returns zeros with ``is_running`` false if the ingestion service is not
    available (degraded mode).
    """
    counters: dict[str, Any] = {
        "total_requests": 0,
        "total_lines": 0,
        "parsed_lines": 0,
        "failed_lines": 0,
        "buffered_lines": 0,
        "reparsed_lines": 0,
        "open_stats_buffers": 0,
        "last_ingest_at": None,
    }
    if ingestion_service is not None:
        counters.update(ingestion_service.snapshot())
    counters["is_running"] = ingestion_service is not None
    counters["event_types"] = log_classifier.event_types
    return counters
