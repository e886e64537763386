from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from sqlalchemy import (
    Integer,
    String,
    Text,
    Index,
    ForeignKey,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from advanced_alchemy.types import DateTimeUTC, JsonB
from advanced_alchemy.extensions.litestar import base
from litestar.dto import dto_field


class RawLog(base.UUIDAuditBase):
    """Every non-blank line received from a game server, as received.

    ``content`` has the ingestion envelope removed but keeps the native
    ``L <timestamp>:`` prefix.
    """

    __tablename__ = "raw_logs"

    server_id: Mapped[UUID] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
    )
    content: Mapped[str] = mapped_column(Text, nullable=False, info=dto_field("read-only"))
    logged_at: Mapped[Optional[datetime]] = mapped_column(
        DateTimeUTC(timezone=True),
        nullable=True,
        comment="Timestamp printed by the game server",
    )

    __table_args__ = (
        Index("ix_raw_logs_server_created", "server_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<RawLog(id={self.id}, server_id={self.server_id})>"


class ParsedLog(base.UUIDAuditBase):
    """A classified log line with its typed event payload."""

    __tablename__ = "parsed_logs"

    server_id: Mapped[UUID] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
    )
    raw_log_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("raw_logs.id", ondelete="SET NULL"),
        nullable=True,
    )
    session_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("game_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    event_type: Mapped[str] = mapped_column(String(50), nullable=False, index=True)
    event_data: Mapped[dict[str, Any]] = mapped_column(JsonB, nullable=False, default=dict)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    logged_at: Mapped[Optional[datetime]] = mapped_column(DateTimeUTC(timezone=True), nullable=True)

    raw_log: Mapped[Optional["RawLog"]] = relationship("RawLog", foreign_keys=[raw_log_id])
    session: Mapped[Optional["GameSession"]] = relationship(
        "GameSession", foreign_keys=[session_id]
    )

    __table_args__ = (
        Index("ix_parsed_logs_server_created", "server_id", "created_at"),
        Index("ix_parsed_logs_event_type_created", "event_type", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<ParsedLog(id={self.id}, event_type={self.event_type})>"


class FailedParse(base.UUIDAuditBase):
    """A line no grammar could classify, kept for later re-classification."""

    __tablename__ = "failed_parses"

    server_id: Mapped[UUID] = mapped_column(
        ForeignKey("servers.id", ondelete="CASCADE"),
        nullable=False,
    )
    raw_log_id: Mapped[Optional[UUID]] = mapped_column(
        ForeignKey("raw_logs.id", ondelete="SET NULL"),
        nullable=True,
    )
    line_number: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    error_message: Mapped[str] = mapped_column(Text, nullable=False)
    retry_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_retry: Mapped[Optional[datetime]] = mapped_column(DateTimeUTC(timezone=True), nullable=True)
    resolved: Mapped[bool] = mapped_column(default=False, index=True)

    raw_log: Mapped[Optional["RawLog"]] = relationship("RawLog", foreign_keys=[raw_log_id])

    __table_args__ = (
        Index("ix_failed_parses_server_created", "server_id", "created_at"),
    )

    def __repr__(self) -> str:
        return f"<FailedParse(id={self.id}, resolved={self.resolved}, retries={self.retry_count})>"
