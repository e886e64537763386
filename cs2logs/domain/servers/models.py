import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy import String, Text
from sqlalchemy.orm import Mapped, mapped_column
from advanced_alchemy.types import DateTimeUTC
from advanced_alchemy.extensions.litestar import base
from litestar.dto import dto_field


def generate_api_key() -> str:
    return secrets.token_hex(32)


class GameServer(base.UUIDAuditBase):
    """A CS2 game server that pushes its logs to the service.

    The row id is the server id used in the ingest URL.
    """

    __tablename__ = "servers"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    ip_address: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    api_key: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        default=generate_api_key,
        info=dto_field("private"),
    )
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(default=True, index=True)
    last_seen: Mapped[Optional[datetime]] = mapped_column(
        DateTimeUTC(timezone=True),
        nullable=True,
        info=dto_field("read-only"),
    )

    def __repr__(self) -> str:
        return f"<GameServer(id={self.id}, name={self.name}, active={self.is_active})>"
