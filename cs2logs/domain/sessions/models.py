from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy import Integer, String, Index, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column
from advanced_alchemy.types import DateTimeUTC
from advanced_alchemy.extensions.litestar import base


class SessionStatus(str, Enum):
    ACTIVE = "active"
    COMPLETED = "completed"
    TERMINATED = "terminated"


class SessionPhase(str, Enum):
    WARMUP = "warmup"
    LIVE = "live"
    POSTGAME = "postgame"


class GameSession(base.UUIDAuditBase):
    """One match on one server, from map start until game over.

    A server has at most one ``active`` session. Loading a new map terminates
    it; a ``Game Over`` line completes it.
    """

    __tablename__ = "game_sessions"

    server_id: Mapped[UUID] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
    )
    map_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    game_mode: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default=SessionStatus.ACTIVE.value, index=True)
    phase: Mapped[str] = mapped_column(String(20), nullable=False, default=SessionPhase.WARMUP.value)
    score_ct: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    score_t: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rounds_played: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    duration_minutes: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    started_at: Mapped[datetime] = mapped_column(DateTimeUTC(timezone=True), nullable=False)
    ended_at: Mapped[Optional[datetime]] = mapped_column(DateTimeUTC(timezone=True), nullable=True)

    __table_args__ = (
        Index("ix_game_sessions_server_status", "server_id", "status"),
    )

    def __repr__(self) -> str:
        return f"<GameSession(id={self.id}, map={self.map_name}, status={self.status})>"
