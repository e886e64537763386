"""DTOs for game session data transfer."""
from __future__ import annotations

from advanced_alchemy.extensions.litestar import SQLAlchemyDTO, SQLAlchemyDTOConfig

from cs2logs.domain.sessions.models import GameSession


class GameSessionDTO(SQLAlchemyDTO[GameSession]):
    """Data transfer object for GameSession model."""
    config = SQLAlchemyDTOConfig(exclude={"updated_at"})
