"""Repositories for raw, parsed and failed log data."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence
from uuid import UUID

from sqlalchemy import select, func
from advanced_alchemy.repository import SQLAlchemyAsyncRepository

from cs2logs.domain.logs.models import RawLog, ParsedLog, FailedParse


@dataclass
class EventTypeCount:
    """Number of parsed logs of one event type."""

    type: str
    count: int


class RawLogRepository(SQLAlchemyAsyncRepository[RawLog]):
    """Repository for RawLog model."""

    model_type = RawLog


class ParsedLogRepository(SQLAlchemyAsyncRepository[ParsedLog]):
    """Repository for ParsedLog model."""

    model_type = ParsedLog

    async def count_by_event_type(self, server_id: UUID | None = None) -> list[EventTypeCount]:
        """Parsed log counts grouped by event type, most frequent first.

        Args:
            server_id: Restrict the counts to one server.
        """
        count = func.count(ParsedLog.id).label("count")
        stmt = select(ParsedLog.event_type, count).group_by(ParsedLog.event_type)
        if server_id is not None:
            stmt = stmt.where(ParsedLog.server_id == server_id)
        stmt = stmt.order_by(count.desc(), ParsedLog.event_type)
        result = await self.session.execute(stmt)
        return [EventTypeCount(type=row.event_type, count=row.count) for row in result]


class FailedParseRepository(SQLAlchemyAsyncRepository[FailedParse]):
    """Repository for FailedParse model."""

    model_type = FailedParse

    async def list_retryable(self, max_retries: int, limit: int) -> Sequence[FailedParse]:
        """Oldest unresolved failures that have not exhausted their retries."""
        stmt = (
            select(FailedParse)
            .where(
                FailedParse.resolved.is_(False),
                FailedParse.retry_count < max_retries,
            )
            .order_by(FailedParse.created_at)
            .limit(limit)
        )
        result = await self.session.execute(stmt)
        return result.scalars().all()
