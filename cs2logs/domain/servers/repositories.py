"""Repository for game servers."""
from __future__ import annotations

from typing import Sequence

from sqlalchemy import select
from advanced_alchemy.repository import SQLAlchemyAsyncRepository

from cs2logs.domain.servers.models import GameServer


class GameServerRepository(SQLAlchemyAsyncRepository[GameServer]):
    """Repository for GameServer model."""

    model_type = GameServer

    async def list_active(self) -> Sequence[GameServer]:
        """Active servers ordered by name."""
        stmt = select(GameServer).where(GameServer.is_active.is_(True)).order_by(GameServer.name)
        result = await self.session.execute(stmt)
        return result.scalars().all()
