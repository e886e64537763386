"""Game session tracking driven by classified events.

Rules:
- ``map_started`` terminates the active session and opens a new one (warmup).
- ``Match_Start`` opens a session when none is active and switches to live.
- ``Warmup_Start`` switches back to warmup.
- ``Round_End`` counts a played round.
- ``MatchStatus`` refreshes scores, map and the round counter.
- ``Game Over`` completes the session with its final score.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING
from uuid import UUID

from cs2logs.domain.sessions.models import GameSession, SessionPhase, SessionStatus
from cs2logs.services.logparser.schemas import (
    CS2Event,
    GameOver,
    MapStarted,
    MatchStatus,
    RoundEvent,
)

if TYPE_CHECKING:
    from cs2logs.domain.sessions.repositories import GameSessionRepository

logger = logging.getLogger(__name__)

_UNLOADED = object()


class SessionTracker:
    """Attributes events to game sessions and moves sessions through their phases.

    One tracker is created per unit of work. The active session of each server
    is loaded once and then kept in memory for the rest of the batch.

    Example:
        tracker = SessionTracker(session_repo)
        game_session = await tracker.apply(server_id, event, occurred_at)
    """

    def __init__(self, session_repo: "GameSessionRepository") -> None:
        self.session_repo = session_repo
        self._active: dict[UUID, GameSession | None] = {}

    async def active_session(self, server_id: UUID) -> GameSession | None:
        cached = self._active.get(server_id, _UNLOADED)
        if cached is _UNLOADED:
            cached = await self.session_repo.get_active(server_id)
            self._active[server_id] = cached
        return cached  # type: ignore[return-value]

    async def _open(self, server_id: UUID, map_name: str | None, phase: SessionPhase, at: datetime) -> GameSession:
        game_session = await self.session_repo.add(
            GameSession(
                server_id=server_id,
                map_name=map_name,
                status=SessionStatus.ACTIVE.value,
                phase=phase.value,
                score_ct=0,
                score_t=0,
                rounds_played=0,
                started_at=at,
            )
        )
        self._active[server_id] = game_session
        logger.info("Opened game session %s on server %s (map %s)", game_session.id, server_id, map_name)
        return game_session

    async def apply(self, server_id: UUID, event: CS2Event, at: datetime) -> GameSession | None:
        """Update session state for one event.

        Returns:
            The session the event belongs to, or None when the server has no
            session.
        """
        active = await self.active_session(server_id)

        if isinstance(event, MapStarted):
            if active is not None:
                active.status = SessionStatus.TERMINATED.value
                active.ended_at = at
                logger.info("Terminated game session %s: new map %s", active.id, event.map)
            return await self._open(server_id, event.map, SessionPhase.WARMUP, at)

        if isinstance(event, RoundEvent):
            if event.trigger == "Match_Start":
                if active is None:
                    return await self._open(server_id, event.map, SessionPhase.LIVE, at)
                active.phase = SessionPhase.LIVE.value
                if event.map and not active.map_name:
                    active.map_name = event.map
            elif active is None:
                return None
            elif event.trigger == "Warmup_Start":
                active.phase = SessionPhase.WARMUP.value
            elif event.trigger == "Round_End":
                active.rounds_played += 1
            if active is not None and event.score_ct is not None and event.score_t is not None:
                active.score_ct = event.score_ct
                active.score_t = event.score_t
            return active

        if active is None:
            return None

        if isinstance(event, MatchStatus):
            active.score_ct = event.score_ct
            active.score_t = event.score_t
            active.rounds_played = event.rounds_played
            active.map_name = event.map or active.map_name
        elif isinstance(event, GameOver):
            active.status = SessionStatus.COMPLETED.value
            active.phase = SessionPhase.POSTGAME.value
            active.score_ct = event.score_a
            active.score_t = event.score_b
            active.game_mode = event.mode
            active.map_name = event.map
            active.duration_minutes = event.duration_minutes
            active.ended_at = at
            self._active[server_id] = None
            logger.info(
                "Completed game session %s: %d:%d after %d min",
                active.id, event.score_a, event.score_b, event.duration_minutes,
            )
        return active
