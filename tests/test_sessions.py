from datetime import datetime, timedelta, timezone
from uuid import UUID, uuid4

import pytest

from cs2logs.domain.sessions.models import GameSession, SessionPhase, SessionStatus
from cs2logs.domain.sessions.service import SessionTracker
from cs2logs.services.logparser import LogClassifier, Parsed
from cs2logs.services.logparser.schemas import GameOver, MapStarted, MatchStatus, RoundEvent


T0 = datetime(2025, 8, 19, 15, 10, tzinfo=timezone.utc)


class FakeSessionRepository:
    """In-memory stand-in for GameSessionRepository."""

    def __init__(self) -> None:
        self.sessions: list[GameSession] = []
        self.lookups = 0

    async def get_active(self, server_id: UUID) -> GameSession | None:
        self.lookups += 1
        active = [
            s for s in self.sessions
            if s.server_id == server_id and s.status == SessionStatus.ACTIVE.value
        ]
        return active[-1] if active else None

    async def add(self, game_session: GameSession) -> GameSession:
        game_session.id = uuid4()
        self.sessions.append(game_session)
        return game_session


@pytest.fixture
def repo() -> FakeSessionRepository:
    return FakeSessionRepository()


@pytest.fixture
def tracker(repo: FakeSessionRepository) -> SessionTracker:
    return SessionTracker(repo)  # type: ignore[arg-type]


async def test_map_start_opens_session(tracker: SessionTracker, repo: FakeSessionRepository) -> None:
    server_id = uuid4()
    game_session = await tracker.apply(server_id, MapStarted(map="de_dust2"), T0)

    assert game_session is not None
    assert game_session.map_name == "de_dust2"
    assert game_session.status == SessionStatus.ACTIVE.value
    assert game_session.phase == SessionPhase.WARMUP.value
    assert game_session.started_at == T0
    assert len(repo.sessions) == 1


async def test_new_map_terminates_active_session(tracker: SessionTracker, repo: FakeSessionRepository) -> None:
    server_id = uuid4()
    first = await tracker.apply(server_id, MapStarted(map="de_dust2"), T0)
    second = await tracker.apply(server_id, MapStarted(map="de_inferno"), T0 + timedelta(minutes=5))

    assert first is not None and second is not None
    assert first.status == SessionStatus.TERMINATED.value
    assert first.ended_at == T0 + timedelta(minutes=5)
    assert second.status == SessionStatus.ACTIVE.value
    assert second.map_name == "de_inferno"


async def test_match_start_without_session_opens_live_session(tracker: SessionTracker) -> None:
    server_id = uuid4()
    game_session = await tracker.apply(server_id, RoundEvent(trigger="Match_Start", map="de_nuke"), T0)

    assert game_session is not None
    assert game_session.phase == SessionPhase.LIVE.value
    assert game_session.map_name == "de_nuke"


async def test_events_without_session_are_unattributed(tracker: SessionTracker) -> None:
    server_id = uuid4()
    assert await tracker.apply(server_id, RoundEvent(trigger="Round_Start"), T0) is None
    assert await tracker.apply(server_id, MatchStatus(score_ct=1, score_t=0, map="x", rounds_played=1), T0) is None


async def test_round_end_and_game_over(tracker: SessionTracker) -> None:
    server_id = uuid4()
    await tracker.apply(server_id, MapStarted(map="de_mirage"), T0)
    await tracker.apply(server_id, RoundEvent(trigger="Match_Start", map="de_mirage"), T0)
    await tracker.apply(server_id, RoundEvent(trigger="Round_End"), T0)
    game_session = await tracker.apply(server_id, RoundEvent(trigger="Round_End"), T0)
    assert game_session is not None and game_session.rounds_played == 2
    assert game_session.phase == SessionPhase.LIVE.value

    finished = await tracker.apply(
        server_id,
        GameOver(mode="competitive", map="de_mirage", score_a=16, score_b=14, duration_minutes=45),
        T0 + timedelta(minutes=45),
    )
    assert finished is game_session
    assert finished.status == SessionStatus.COMPLETED.value
    assert finished.phase == SessionPhase.POSTGAME.value
    assert (finished.score_ct, finished.score_t) == (16, 14)
    assert finished.game_mode == "competitive"
    assert finished.duration_minutes == 45
    assert finished.ended_at == T0 + timedelta(minutes=45)

    assert await tracker.apply(server_id, RoundEvent(trigger="Round_Start"), T0) is None


async def test_warmup_start_resets_phase(tracker: SessionTracker) -> None:
    server_id = uuid4()
    await tracker.apply(server_id, RoundEvent(trigger="Match_Start"), T0)
    game_session = await tracker.apply(server_id, RoundEvent(trigger="Warmup_Start"), T0)
    assert game_session is not None and game_session.phase == SessionPhase.WARMUP.value


async def test_active_session_is_loaded_once(tracker: SessionTracker, repo: FakeSessionRepository) -> None:
    server_id = uuid4()
    for _ in range(3):
        await tracker.apply(server_id, RoundEvent(trigger="Round_Start"), T0)
    assert repo.lookups == 1


async def test_sample_log_produces_completed_session(tracker: SessionTracker, sample_match_log: str) -> None:
    server_id = uuid4()
    result = LogClassifier().parse_text(sample_match_log)
    last = None
    for line_result in result.results:
        outcome = line_result.outcome
        if isinstance(outcome, Parsed):
            attributed = await tracker.apply(server_id, outcome.event, line_result.line.logged_at or T0)
            if attributed is not None:
                last = attributed

    assert last is not None
    assert last.status == SessionStatus.COMPLETED.value
    assert last.map_name == "de_dust2"
    assert (last.score_ct, last.score_t) == (13, 7)
    assert last.rounds_played == 1
