"""Schemas for classified log lines - pure data, no ORM dependencies."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from typing import Any, ClassVar, TypeAlias


def _compact(value: Any) -> Any:
    """Drop None entries recursively and turn tuples into lists."""
    if isinstance(value, dict):
        return {k: _compact(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_compact(v) for v in value]
    return value


@dataclass(frozen=True)
class PlayerDescriptor:
    """A player as CS2 prints it: ``Name<slot><id><team>``.

    ``id`` is kept opaque (``[U:1:123]``, ``BOT``, ``STEAM_1:0:1`` ...).
    ``team`` is None when the descriptor has no team group or an empty one.
    """

    name: str
    slot: int
    id: str
    team: str | None = None


@dataclass(frozen=True)
class Position:
    """Integer world coordinates, as printed in ``[x y z]`` brackets."""

    x: int
    y: int
    z: int


@dataclass(frozen=True)
class Vector:
    """Float coordinates used by projectile lines."""

    x: float
    y: float
    z: float


@dataclass(frozen=True)
class CS2Event:
    """Base class of the closed event catalogue."""

    event_type: ClassVar[str] = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the open ``event_data`` mapping."""
        return _compact(asdict(self))


@dataclass(frozen=True)
class RoundEvent(CS2Event):
    event_type: ClassVar[str] = "round_event"

    trigger: str
    map: str | None = None
    score_ct: int | None = None
    score_t: int | None = None


@dataclass(frozen=True)
class GameOver(CS2Event):
    event_type: ClassVar[str] = "game_over"

    mode: str
    map: str
    score_a: int
    score_b: int
    duration_minutes: int
    map_group: str | None = None


@dataclass(frozen=True)
class Kill(CS2Event):
    event_type: ClassVar[str] = "kill"

    killer: PlayerDescriptor
    victim: PlayerDescriptor
    weapon: str
    killer_position: Position | None = None
    victim_position: Position | None = None
    modifiers: tuple[str, ...] | None = None


@dataclass(frozen=True)
class Purchase(CS2Event):
    event_type: ClassVar[str] = "purchase"

    player: PlayerDescriptor
    item: str


@dataclass(frozen=True)
class Pickup(CS2Event):
    event_type: ClassVar[str] = "pickup"

    player: PlayerDescriptor
    item: str


@dataclass(frozen=True)
class Chat(CS2Event):
    event_type: ClassVar[str] = "chat"

    player: PlayerDescriptor
    message: str
    team_only: bool = False


@dataclass(frozen=True)
class GrenadeThrown(CS2Event):
    event_type: ClassVar[str] = "grenade_thrown"

    player: PlayerDescriptor
    item: str
    position: Position


@dataclass(frozen=True)
class PlayerConnected(CS2Event):
    event_type: ClassVar[str] = "player_connected"

    player: PlayerDescriptor
    address: str
    port: int | None = None


@dataclass(frozen=True)
class PlayerDisconnected(CS2Event):
    event_type: ClassVar[str] = "player_disconnected"

    player: PlayerDescriptor
    reason: str | None = None


@dataclass(frozen=True)
class PlayerEntered(CS2Event):
    event_type: ClassVar[str] = "player_entered"

    player: PlayerDescriptor


@dataclass(frozen=True)
class PlayerValidated(CS2Event):
    event_type: ClassVar[str] = "player_validated"

    player: PlayerDescriptor


@dataclass(frozen=True)
class TeamSwitch(CS2Event):
    event_type: ClassVar[str] = "team_switch"

    player: PlayerDescriptor
    from_team: str
    to_team: str


@dataclass(frozen=True)
class KillAssist(CS2Event):
    event_type: ClassVar[str] = "kill_assist"

    assister: PlayerDescriptor
    victim: PlayerDescriptor
    flash_assist: bool = False


@dataclass(frozen=True)
class Attack(CS2Event):
    event_type: ClassVar[str] = "attack"

    attacker: PlayerDescriptor
    victim: PlayerDescriptor
    weapon: str
    damage: int
    damage_armor: int
    health: int
    armor: int
    hitgroup: str
    attacker_position: Position | None = None
    victim_position: Position | None = None


@dataclass(frozen=True)
class Suicide(CS2Event):
    event_type: ClassVar[str] = "suicide"

    player: PlayerDescriptor
    weapon: str
    position: Position | None = None


@dataclass(frozen=True)
class KilledByBomb(CS2Event):
    event_type: ClassVar[str] = "killed_by_bomb"

    player: PlayerDescriptor
    position: Position | None = None


@dataclass(frozen=True)
class Blinded(CS2Event):
    event_type: ClassVar[str] = "blinded"

    victim: PlayerDescriptor
    attacker: PlayerDescriptor
    duration: float
    item: str
    entindex: int


@dataclass(frozen=True)
class MoneyChange(CS2Event):
    event_type: ClassVar[str] = "money_change"

    player: PlayerDescriptor
    previous: int
    delta: int
    total: int
    tracked: bool = False
    item: str | None = None


@dataclass(frozen=True)
class Dropped(CS2Event):
    event_type: ClassVar[str] = "dropped"

    player: PlayerDescriptor
    item: str


@dataclass(frozen=True)
class BombEvent(CS2Event):
    event_type: ClassVar[str] = "bomb_event"

    player: PlayerDescriptor
    action: str
    site: str | None = None
    position: Position | None = None


@dataclass(frozen=True)
class LeftBuyzone(CS2Event):
    event_type: ClassVar[str] = "left_buyzone"

    player: PlayerDescriptor
    items: tuple[str, ...] = ()


@dataclass(frozen=True)
class PlayerTriggered(CS2Event):
    event_type: ClassVar[str] = "player_triggered"

    player: PlayerDescriptor
    trigger: str
    site: str | None = None


@dataclass(frozen=True)
class TeamNotice(CS2Event):
    event_type: ClassVar[str] = "team_notice"

    team: str
    trigger: str
    score_ct: int | None = None
    score_t: int | None = None


@dataclass(frozen=True)
class TeamScored(CS2Event):
    event_type: ClassVar[str] = "team_scored"

    team: str
    score: int
    players: int


@dataclass(frozen=True)
class TeamPlaying(CS2Event):
    event_type: ClassVar[str] = "team_playing"

    team: str
    name: str


@dataclass(frozen=True)
class MatchStatus(CS2Event):
    event_type: ClassVar[str] = "match_status"

    score_ct: int
    score_t: int
    map: str
    rounds_played: int


@dataclass(frozen=True)
class FreezePeriod(CS2Event):
    event_type: ClassVar[str] = "freeze_period"


@dataclass(frozen=True)
class MatchPause(CS2Event):
    event_type: ClassVar[str] = "match_pause"

    action: str
    reason: str | None = None


@dataclass(frozen=True)
class Accolade(CS2Event):
    event_type: ClassVar[str] = "accolade"

    type: str
    final: bool
    player_name: str
    slot: int
    value: float
    position: int
    score: float


@dataclass(frozen=True)
class MapLoading(CS2Event):
    event_type: ClassVar[str] = "map_loading"

    map: str


@dataclass(frozen=True)
class MapStarted(CS2Event):
    event_type: ClassVar[str] = "map_started"

    map: str


@dataclass(frozen=True)
class LogFile(CS2Event):
    event_type: ClassVar[str] = "log_file"

    action: str
    file: str | None = None
    game: str | None = None
    version: str | None = None


@dataclass(frozen=True)
class RconCommand(CS2Event):
    event_type: ClassVar[str] = "rcon_command"

    address: str
    port: int
    command: str


@dataclass(frozen=True)
class ServerCvar(CS2Event):
    event_type: ClassVar[str] = "server_cvar"

    name: str
    value: str


@dataclass(frozen=True)
class ProjectileSpawned(CS2Event):
    event_type: ClassVar[str] = "projectile_spawned"

    item: str
    position: Vector
    velocity: Vector


@dataclass(frozen=True)
class RoundStats(CS2Event):
    """Assembled ``JSON_BEGIN{ ... }}JSON_END`` statistics block.

    Produced by the ingestion pipeline, never by single-line classification.
    """

    event_type: ClassVar[str] = "round_stats"

    payload: dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return dict(self.payload)


@dataclass(frozen=True)
class LogLine:
    """One non-blank input line after envelope and native-prefix stripping.

    ``raw_content`` still carries the native ``L <timestamp>:`` prefix; ``body``
    is what the grammars are matched against.
    """

    line_number: int
    raw_content: str
    body: str
    server_id: str | None = None
    received_at: str | None = None
    logged_at: datetime | None = None


@dataclass(frozen=True)
class Parsed:
    """The line matched a grammar of the catalogue."""

    event: CS2Event
    success: ClassVar[bool] = True

    @property
    def event_type(self) -> str:
        return self.event.event_type

    @property
    def event_data(self) -> dict[str, Any]:
        return self.event.to_dict()


@dataclass(frozen=True)
class Failed:
    """No grammar matched, or a matched line carried an invalid field."""

    error: str
    success: ClassVar[bool] = False


ParseOutcome: TypeAlias = Parsed | Failed


@dataclass(frozen=True)
class LineResult:
    """Outcome of one line of a batch."""

    line: LogLine
    outcome: ParseOutcome

    @property
    def line_number(self) -> int:
        return self.line.line_number

    @property
    def content(self) -> str:
        return self.line.raw_content

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "line_number": self.line_number,
            "content": self.content,
            "success": self.outcome.success,
        }
        if isinstance(self.outcome, Parsed):
            result["event_type"] = self.outcome.event_type
            result["event_data"] = self.outcome.event_data
        else:
            result["error"] = self.outcome.error
        return result


@dataclass(frozen=True)
class ParseBatchResult:
    """Aggregate over one parse call, results in input order."""

    results: list[LineResult] = field(default_factory=list)

    @property
    def total_lines(self) -> int:
        return len(self.results)

    @property
    def parsed_count(self) -> int:
        return sum(1 for r in self.results if r.outcome.success)

    @property
    def failed_count(self) -> int:
        return self.total_lines - self.parsed_count

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_lines": self.total_lines,
            "parsed_count": self.parsed_count,
            "failed_count": self.failed_count,
            "results": [r.to_dict() for r in self.results],
        }
