"""Log browsing endpoints: raw, parsed and failed listings plus download."""
from __future__ import annotations

from datetime import datetime, timezone
from collections.abc import Iterable
from typing import Any, Literal
from uuid import UUID

from litestar import Controller, MediaType, Response, get
from litestar.di import Provide
from litestar.params import Parameter
from litestar.pagination import OffsetPagination
from litestar.plugins.sqlalchemy import filters

from cs2logs.domain.logs.models import RawLog, ParsedLog, FailedParse
from cs2logs.domain.logs.repositories import (
    RawLogRepository,
    ParsedLogRepository,
    FailedParseRepository,
    EventTypeCount,
)
from cs2logs.domain.logs.dtos import RawLogDTO, ParsedLogDTO, FailedParseDTO
from cs2logs.api.dependencies import (
    provide_raw_log_repo,
    provide_parsed_log_repo,
    provide_failed_parse_repo,
)


NEWEST_FIRST = filters.OrderBy(field_name="created_at", sort_order="desc")

# Row cap for `download=true&limit=0` on the dashboard endpoint
DOWNLOAD_ALL_LIMIT = 1_000_000

LogType = Literal["raw", "parsed", "failed"]


def _filters(**kwargs: object) -> dict[str, object]:
    """Drop unset query filters so they are not applied as ``IS NULL``."""
    return {k: v for k, v in kwargs.items() if v is not None}


def format_download_line(item: RawLog | ParsedLog | FailedParse) -> str:
    """``[<created_at>] <server_id>: <content>``, with the event type for parsed logs."""
    prefix = f"[{item.created_at.isoformat()}] {item.server_id}"
    if isinstance(item, ParsedLog):
        prefix = f"{prefix} [{item.event_type}]"
    return f"{prefix}: {item.content}"


def log_row(item: RawLog | ParsedLog | FailedParse) -> dict[str, Any]:
    """Flat JSON row used by the dashboard log browser."""
    row: dict[str, Any] = {
        "id": item.id,
        "server_id": item.server_id,
        "content": item.content,
        "created_at": item.created_at,
    }
    if isinstance(item, ParsedLog):
        row.update(event_type=item.event_type, event_data=item.event_data, session_id=item.session_id)
    elif isinstance(item, FailedParse):
        row.update(
            error_message=item.error_message,
            retry_count=item.retry_count,
            resolved=item.resolved,
        )
    return row


def _text_download(lines: Iterable[str]) -> Response[str]:
    filename = f"cs2-logs-{datetime.now(timezone.utc):%Y%m%d-%H%M%S}.txt"
    return Response(
        content="".join(f"{line}\n" for line in lines),
        media_type=MediaType.TEXT,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


class LogsController(Controller):
    """Paginated access to stored logs."""

    path = "/api/logs"
    tags = ["Logs"]

    dependencies = {
        "raw_log_repo": Provide(provide_raw_log_repo),
        "parsed_log_repo": Provide(provide_parsed_log_repo),
        "failed_parse_repo": Provide(provide_failed_parse_repo),
    }

    @get("/raw", return_dto=RawLogDTO)
    async def list_raw_logs(
        self,
        raw_log_repo: RawLogRepository,
        limit_offset: filters.LimitOffset,
        server_id: UUID | None = Parameter(query="serverId", required=False, default=None),
    ) -> OffsetPagination[RawLog]:
        """List raw logs, newest first."""
        results, total = await raw_log_repo.list_and_count(
            limit_offset, NEWEST_FIRST, **_filters(server_id=server_id)
        )
        return OffsetPagination[RawLog](
            items=results,
            total=total,
            limit=limit_offset.limit,
            offset=limit_offset.offset,
        )

    @get("/parsed", return_dto=ParsedLogDTO)
    async def list_parsed_logs(
        self,
        parsed_log_repo: ParsedLogRepository,
        limit_offset: filters.LimitOffset,
        server_id: UUID | None = Parameter(query="serverId", required=False, default=None),
        event_type: str | None = Parameter(query="eventType", required=False, default=None),
    ) -> OffsetPagination[ParsedLog]:
        """List parsed logs, newest first, optionally of one event type."""
        results, total = await parsed_log_repo.list_and_count(
            limit_offset, NEWEST_FIRST, **_filters(server_id=server_id, event_type=event_type)
        )
        return OffsetPagination[ParsedLog](
            items=results,
            total=total,
            limit=limit_offset.limit,
            offset=limit_offset.offset,
        )

    @get("/failed", return_dto=FailedParseDTO)
    async def list_failed_parses(
        self,
        failed_parse_repo: FailedParseRepository,
        limit_offset: filters.LimitOffset,
        server_id: UUID | None = Parameter(query="serverId", required=False, default=None),
    ) -> OffsetPagination[FailedParse]:
        """List lines no grammar could classify, newest first."""
        results, total = await failed_parse_repo.list_and_count(
            limit_offset, NEWEST_FIRST, **_filters(server_id=server_id)
        )
        return OffsetPagination[FailedParse](
            items=results,
            total=total,
            limit=limit_offset.limit,
            offset=limit_offset.offset,
        )

    @get("/event-types")
    async def list_event_types(
        self,
        parsed_log_repo: ParsedLogRepository,
        server_id: UUID | None = Parameter(query="serverId", required=False, default=None),
    ) -> list[EventTypeCount]:
        """Parsed log counts per event type, most frequent first."""
        return await parsed_log_repo.count_by_event_type(server_id=server_id)

    async def _fetch(
        self,
        log_type: LogType,
        window: filters.LimitOffset,
        raw_log_repo: RawLogRepository,
        parsed_log_repo: ParsedLogRepository,
        failed_parse_repo: FailedParseRepository,
        server_id: UUID | None,
        event_type: str | None,
    ) -> list[RawLog] | list[ParsedLog] | list[FailedParse]:
        """Newest-first rows of one log table."""
        if log_type == "parsed":
            return list(await parsed_log_repo.list(
                window, NEWEST_FIRST, **_filters(server_id=server_id, event_type=event_type)
            ))
        if log_type == "failed":
            return list(await failed_parse_repo.list(window, NEWEST_FIRST, **_filters(server_id=server_id)))
        return list(await raw_log_repo.list(window, NEWEST_FIRST, **_filters(server_id=server_id)))

    @get("/")
    async def browse_logs(
        self,
        raw_log_repo: RawLogRepository,
        parsed_log_repo: ParsedLogRepository,
        failed_parse_repo: FailedParseRepository,
        log_type: LogType = Parameter(query="type", required=False, default="raw"),
        server_id: UUID | None = Parameter(query="server_id", required=False, default=None),
        event_type: str | None = Parameter(query="event_type", required=False, default=None),
        limit: int = Parameter(query="limit", ge=0, required=False, default=100),
        offset: int = Parameter(query="offset", ge=0, required=False, default=0),
        download: bool = Parameter(query="download", required=False, default=False),
    ) -> Response[Any]:
        """Dashboard log browser: a plain JSON list, or a text file with ``download=true``.

        ``limit=0`` together with ``download=true`` downloads everything.
        """
        if download and limit == 0:
            limit = DOWNLOAD_ALL_LIMIT
        items = await self._fetch(
            log_type,
            filters.LimitOffset(limit=limit, offset=offset),
            raw_log_repo,
            parsed_log_repo,
            failed_parse_repo,
            server_id,
            event_type,
        )
        if download:
            return _text_download(format_download_line(item) for item in items)
        return Response(content=[log_row(item) for item in items], media_type=MediaType.JSON)

    @get("/download", media_type=MediaType.TEXT)
    async def download_logs(
        self,
        raw_log_repo: RawLogRepository,
        parsed_log_repo: ParsedLogRepository,
        failed_parse_repo: FailedParseRepository,
        log_type: LogType = Parameter(query="type", required=False, default="raw"),
        server_id: UUID | None = Parameter(query="serverId", required=False, default=None),
        event_type: str | None = Parameter(query="eventType", required=False, default=None),
        limit: int = Parameter(query="limit", ge=1, le=100_000, required=False, default=10_000),
    ) -> Response[str]:
        """Download the newest ``limit`` logs as a text file in chronological order.

        Downloaded raw logs keep the ingestion envelope format, so the file can
        be pasted back into the parse-test endpoint.
        """
        items = await self._fetch(
            log_type,
            filters.LimitOffset(limit=limit, offset=0),
            raw_log_repo,
            parsed_log_repo,
            failed_parse_repo,
            server_id,
            event_type,
        )
        return _text_download(format_download_line(item) for item in reversed(items))
