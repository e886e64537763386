"""DTOs for game server data transfer."""
from __future__ import annotations

from advanced_alchemy.extensions.litestar import SQLAlchemyDTO, SQLAlchemyDTOConfig

from cs2logs.domain.servers.models import GameServer


class GameServerOptionDTO(SQLAlchemyDTO[GameServer]):
    """Id and name only, for server pickers."""
    config = SQLAlchemyDTOConfig(include={"id", "name"})
