"""Shared dependency providers for API layer."""
from __future__ import annotations

from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError

from litestar import Request
from litestar.params import Parameter
from litestar.plugins.sqlalchemy import filters
from litestar.exceptions import ClientException
from litestar.status_codes import HTTP_409_CONFLICT

from cs2logs.config.settings import Settings, get_settings
from cs2logs.services.logparser import LogClassifier
from cs2logs.services.ingestion import LogIngestionService
from cs2logs.server.plugins import classifier
from cs2logs.domain.servers.repositories import GameServerRepository
from cs2logs.domain.logs.repositories import (
    RawLogRepository,
    ParsedLogRepository,
    FailedParseRepository,
)
from cs2logs.domain.sessions.repositories import GameSessionRepository


def provide_classifier() -> LogClassifier:
    """The process-wide classifier; it holds no per-request state."""
    return classifier


def provide_settings() -> Settings:
    return get_settings()


def provide_ingestion_service(request: Request) -> LogIngestionService | None:
    """The ingestion service built at startup, or None in degraded mode."""
    return getattr(request.app.state, "ingestion_service", None)


async def provide_transaction(
    db_session: AsyncSession,
) -> AsyncGenerator[AsyncSession, None]:
    """Run the handler inside one transaction; integrity errors become 409."""
    try:
        async with db_session.begin():
            yield db_session
    except IntegrityError as exc:
        raise ClientException(
            status_code=HTTP_409_CONFLICT,
            detail=str(exc),
        ) from exc


async def provide_server_repo(db_session: AsyncSession) -> GameServerRepository:
    """Provide GameServerRepository."""
    return GameServerRepository(session=db_session)


async def provide_raw_log_repo(db_session: AsyncSession) -> RawLogRepository:
    """Provide RawLogRepository."""
    return RawLogRepository(session=db_session)


async def provide_parsed_log_repo(db_session: AsyncSession) -> ParsedLogRepository:
    """Provide ParsedLogRepository."""
    return ParsedLogRepository(session=db_session)


async def provide_failed_parse_repo(db_session: AsyncSession) -> FailedParseRepository:
    """Provide FailedParseRepository."""
    return FailedParseRepository(session=db_session)


async def provide_game_session_repo(db_session: AsyncSession) -> GameSessionRepository:
    """Provide GameSessionRepository."""
    return GameSessionRepository(session=db_session)


def provide_limit_offset_pagination(
    current_page: int = Parameter(ge=1, query="currentPage", default=1, required=False),
    page_size: int = Parameter(
        query="pageSize",
        ge=1,
        le=500,
        default=50,
        required=False,
    ),
) -> filters.LimitOffset:
    """Translate `currentPage`/`pageSize` into a repository `LimitOffset` filter."""
    return filters.LimitOffset(page_size, page_size * (current_page - 1))
