"""Repository for game sessions."""
from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from advanced_alchemy.repository import SQLAlchemyAsyncRepository

from cs2logs.domain.sessions.models import GameSession, SessionStatus


class GameSessionRepository(SQLAlchemyAsyncRepository[GameSession]):
    """Repository for GameSession model."""

    model_type = GameSession

    async def get_active(self, server_id: UUID) -> GameSession | None:
        """Most recently started active session of a server, if any."""
        stmt = (
            select(GameSession)
            .where(
                GameSession.server_id == server_id,
                GameSession.status == SessionStatus.ACTIVE.value,
            )
            .order_by(GameSession.started_at.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()
