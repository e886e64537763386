"""Global plugin instances and configurations.

This module provides singleton instances for:
- LogClassifier (parsing only, no DB)
- RoundStatsAssembler (per-server JSON block buffers)
- SQLAlchemy async configuration
- Logging configuration
"""
from __future__ import annotations

from typing import Any

from litestar.logging import LoggingConfig
from litestar.serialization import decode_json, encode_json
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from advanced_alchemy.extensions.litestar import (
    AsyncSessionConfig,
    SQLAlchemyAsyncConfig,
    SQLAlchemyInitPlugin,
    base,
)

from cs2logs.services.logparser.logparser import LogClassifier
from cs2logs.services.ingestion.stats_assembler import RoundStatsAssembler
from cs2logs.config.settings import get_settings

settings = get_settings()

# Stateless, shared by every request handler and scheduled job
classifier = LogClassifier()

assembler = RoundStatsAssembler()


def engine_options() -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` from the DB settings."""
    db = settings.database
    options: dict[str, Any] = {
        "echo": db.echo,
        "echo_pool": db.echo_pool,
        "future": True,
        "json_serializer": encode_json,
        "json_deserializer": decode_json,
        "pool_pre_ping": db.pool_pre_ping,
    }
    if db.pool_disabled:
        options["poolclass"] = NullPool
    else:
        options.update(
            pool_size=db.pool_size,
            max_overflow=db.max_overflow,
            pool_timeout=db.pool_timeout,
            pool_recycle=db.pool_recycle,
            pool_use_lifo=True,  # use lifo to reduce the number of idle connections
        )
    return options


_engine = create_async_engine(url=settings.database.url, **engine_options())

# SQLAlchemy configuration for Litestar
sqlalchemy_config = SQLAlchemyAsyncConfig(
    engine_instance=_engine,
    session_config=AsyncSessionConfig(expire_on_commit=False),
    create_all=False,
    metadata=base.DefaultBase.metadata,
)

sqlalchemy_plugin = SQLAlchemyInitPlugin(config=sqlalchemy_config)

# Logging configuration
logging_config = LoggingConfig(
    root={"level": settings.api.log_level, "handlers": ["queue_listener"]},
    formatters={
        "standard": {"format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"}
    },
    log_exceptions="always",
)
