from __future__ import annotations

from datetime import datetime, timezone

from litestar import get


@get("/health", tags=["Health"])
async def health() -> dict[str, str]:
    """Liveness check; does not touch the database."""
    return {"status": "healthy", "time": datetime.now(timezone.utc).isoformat()}
