"""GameSession API endpoints."""
from __future__ import annotations

from uuid import UUID

from litestar import Controller, get
from litestar.di import Provide
from litestar.params import Parameter
from litestar.pagination import OffsetPagination
from litestar.exceptions import NotFoundException
from litestar.plugins.sqlalchemy import filters

from cs2logs.domain.sessions.models import GameSession, SessionStatus
from cs2logs.domain.sessions.repositories import GameSessionRepository
from cs2logs.domain.sessions.dtos import GameSessionDTO
from cs2logs.api.dependencies import provide_game_session_repo


class GameSessionController(Controller):
    """Game sessions reconstructed from map, round and game-over events."""

    path = "/api/sessions"
    return_dto = GameSessionDTO
    tags = ["Sessions"]

    dependencies = {
        "game_session_repo": Provide(provide_game_session_repo),
    }

    @get("/")
    async def list_sessions(
        self,
        game_session_repo: GameSessionRepository,
        limit_offset: filters.LimitOffset,
        server_id: UUID | None = Parameter(query="serverId", required=False, default=None),
        status: SessionStatus | None = Parameter(query="status", required=False, default=None),
    ) -> OffsetPagination[GameSession]:
        """List sessions, most recently started first."""
        kwargs: dict[str, object] = {}
        if server_id is not None:
            kwargs["server_id"] = server_id
        if status is not None:
            kwargs["status"] = status.value
        results, total = await game_session_repo.list_and_count(
            limit_offset,
            filters.OrderBy(field_name="started_at", sort_order="desc"),
            **kwargs,
        )
        return OffsetPagination[GameSession](
            items=results,
            total=total,
            limit=limit_offset.limit,
            offset=limit_offset.offset,
        )

    @get("/{session_id:uuid}")
    async def get_session(
        self,
        game_session_repo: GameSessionRepository,
        session_id: UUID,
    ) -> GameSession:
        game_session = await game_session_repo.get_one_or_none(id=session_id)
        if game_session is None:
            raise NotFoundException(detail=f"Session {session_id} not found")
        return game_session
