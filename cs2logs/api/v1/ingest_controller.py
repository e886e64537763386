"""Ingest endpoint used by CS2 servers (``logaddress_add_http``)."""
from __future__ import annotations

import secrets
from uuid import UUID

from litestar import Controller, Request, post
from litestar.di import Provide
from litestar.params import Parameter
from litestar.exceptions import NotAuthorizedException, ServiceUnavailableException
from litestar.status_codes import HTTP_200_OK
from sqlalchemy.ext.asyncio import AsyncSession

from cs2logs.config.settings import Settings
from cs2logs.domain.servers.models import GameServer
from cs2logs.domain.servers.repositories import GameServerRepository
from cs2logs.services.ingestion import IngestResult, LogIngestionService
from cs2logs.api.dependencies import provide_server_repo, provide_ingestion_service


class IngestController(Controller):
    """Receives pushed log blocks from registered game servers."""

    path = "/logs"
    tags = ["Ingestion"]

    dependencies = {
        "server_repo": Provide(provide_server_repo),
        "ingestion_service": Provide(provide_ingestion_service, sync_to_thread=False),
    }

    @staticmethod
    async def authenticate(
        server_repo: GameServerRepository,
        server_id: UUID,
        key: str | None,
        settings: Settings,
        source_ip: str | None,
    ) -> GameServer:
        server = await server_repo.get_one_or_none(id=server_id)
        if server is None:
            if not settings.logparser.auto_register_servers:
                raise NotAuthorizedException(detail="Unknown server")
            server = await server_repo.add(
                GameServer(id=server_id, name=f"server-{server_id.hex[:8]}", ip_address=source_ip)
            )
        if not server.is_active:
            raise NotAuthorizedException(detail="Server is not active")
        if key and not secrets.compare_digest(key, server.api_key):
            raise NotAuthorizedException(detail="Invalid server key")
        return server

    @post("/{server_id:uuid}", status_code=HTTP_200_OK)
    async def ingest_logs(
        self,
        request: Request,
        server_id: UUID,
        transaction: AsyncSession,
        server_repo: GameServerRepository,
        ingestion_service: LogIngestionService | None,
        settings: Settings,
        key: str | None = Parameter(query="key", required=False, default=None),
    ) -> IngestResult:
        """Store, classify and attribute a plain-text block of log lines."""
        if ingestion_service is None:
            raise ServiceUnavailableException(detail="Ingestion is unavailable without a database")

        source_ip = request.client.host if request.client else None
        server = await self.authenticate(server_repo, server_id, key, settings, source_ip)

        body = await request.body()
        return await ingestion_service.ingest(
            transaction,
            server,
            body.decode("utf-8", errors="replace"),
            source_ip=source_ip,
        )
