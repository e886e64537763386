"""GameServer API endpoints."""
from __future__ import annotations

from litestar import Controller, get
from litestar.di import Provide

from cs2logs.domain.servers.models import GameServer
from cs2logs.domain.servers.repositories import GameServerRepository
from cs2logs.domain.servers.dtos import GameServerOptionDTO
from cs2logs.api.dependencies import provide_server_repo


class GameServerController(Controller):
    path = "/api/servers"
    return_dto = GameServerOptionDTO
    tags = ["Servers"]

    dependencies = {
        "server_repo": Provide(provide_server_repo),
    }

    @get("/")
    async def list_servers(self, server_repo: GameServerRepository) -> list[GameServer]:
        """Active servers as ``{id, name}`` pairs for filter dropdowns."""
        return list(await server_repo.list_active())
