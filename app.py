"""Run the CS2 log service under uvicorn."""
from __future__ import annotations

from dotenv import load_dotenv

load_dotenv()

import uvicorn  # noqa: E402

from cs2logs.config.settings import get_settings  # noqa: E402


def main() -> None:
    settings = get_settings()
    uvicorn.run(
        "cs2logs.server.core:create_app",
        factory=True,
        host=settings.api.host,
        port=settings.api.port,
        reload=settings.api.reload,
        workers=settings.api.workers,
        log_level=settings.api.log_level.lower(),
    )


if __name__ == "__main__":
    main()
