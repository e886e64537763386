import re
import logging
from collections.abc import Callable, Iterable, Iterator, Sequence
from dataclasses import dataclass
from datetime import datetime, timezone

from . import constants as c
from .constants import (
    TEAM_LABELS,
    NATIVE_TIMESTAMP_FORMAT,
    NO_MATCH_ERROR,
    envelope_pattern,
    bare_server_id_pattern,
    native_prefix_pattern,
    descriptor_pattern,
)
from .schemas import (
    Accolade,
    Attack,
    Blinded,
    BombEvent,
    CS2Event,
    Chat,
    Dropped,
    Failed,
    FreezePeriod,
    GameOver,
    GrenadeThrown,
    Kill,
    KillAssist,
    KilledByBomb,
    LeftBuyzone,
    LineResult,
    LogFile,
    LogLine,
    MapLoading,
    MapStarted,
    MatchPause,
    MatchStatus,
    MoneyChange,
    ParseBatchResult,
    ParseOutcome,
    Parsed,
    Pickup,
    PlayerConnected,
    PlayerDescriptor,
    PlayerDisconnected,
    PlayerEntered,
    PlayerTriggered,
    PlayerValidated,
    Position,
    ProjectileSpawned,
    Purchase,
    RconCommand,
    RoundEvent,
    ServerCvar,
    Suicide,
    TeamNotice,
    TeamPlaying,
    TeamScored,
    TeamSwitch,
    Vector,
)


logger = logging.getLogger(__name__)


class GrammarError(ValueError):
    """A line matched a grammar but one of its fields is invalid."""


@dataclass(frozen=True)
class Grammar:
    """One entry of the classification catalogue."""

    name: str
    pattern: re.Pattern[str]
    build: Callable[[re.Match[str]], CS2Event]


def to_int(value: str | None, field: str) -> int:
    try:
        return int(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise GrammarError(f"invalid integer {value!r} for {field}") from None


def to_float(value: str | None, field: str) -> float:
    try:
        return float(value)  # type: ignore[arg-type]
    except (TypeError, ValueError):
        raise GrammarError(f"invalid number {value!r} for {field}") from None


def optional_int(value: str | None, field: str) -> int | None:
    return None if value is None else to_int(value, field)


def team_label(value: str | None, field: str) -> str | None:
    """Validate a team label against the closed set; empty means no team."""
    if not value:
        return None
    if value not in TEAM_LABELS:
        raise GrammarError(f"unknown team {value!r} for {field}")
    return value


def player(raw: str, field: str) -> PlayerDescriptor:
    """Split ``Name<slot><id><team>`` (team group optional)."""
    matched = descriptor_pattern().match(raw)
    if not matched:
        raise GrammarError(f"malformed player descriptor for {field}")
    slot = to_int(matched["slot"], f"{field}.slot")
    if slot < 0:
        raise GrammarError(f"negative slot {slot} for {field}")
    return PlayerDescriptor(
        name=matched["name"],
        slot=slot,
        id=matched["id"],
        team=team_label(matched["team"], f"{field}.team"),
    )


def position(raw: str | None, field: str) -> Position | None:
    if raw is None:
        return None
    parts = raw.split()
    if len(parts) != 3:
        raise GrammarError(f"expected 3 coordinates for {field}, got {len(parts)}")
    x, y, z = (to_int(p, field) for p in parts)
    return Position(x=x, y=y, z=z)


def vector(raw: str, field: str) -> Vector:
    x, y, z = (to_float(p, field) for p in raw.split())
    return Vector(x=x, y=y, z=z)


# -- builders -----------------------------------------------------------------

def _round_event(m: re.Match[str]) -> RoundEvent:
    return RoundEvent(
        trigger=m["trigger"],
        map=m["map"],
        score_ct=optional_int(m["score_ct"], "score_ct"),
        score_t=optional_int(m["score_t"], "score_t"),
    )


def _game_over(m: re.Match[str]) -> GameOver:
    return GameOver(
        mode=m["mode"],
        map=m["map"],
        score_a=to_int(m["score_a"], "score_a"),
        score_b=to_int(m["score_b"], "score_b"),
        duration_minutes=to_int(m["duration"], "duration_minutes"),
        map_group=m["map_group"],
    )


def _kill(m: re.Match[str]) -> Kill:
    modifiers = tuple(m["modifiers"].replace("(", " ").replace(")", " ").split())
    return Kill(
        killer=player(m["killer"], "killer"),
        victim=player(m["victim"], "victim"),
        weapon=m["weapon"],
        killer_position=position(m["killer_pos"], "killer_position"),
        victim_position=position(m["victim_pos"], "victim_position"),
        modifiers=modifiers or None,
    )


def _purchase(m: re.Match[str]) -> Purchase:
    return Purchase(player=player(m["player"], "player"), item=m["item"])


def _pickup(m: re.Match[str]) -> Pickup:
    return Pickup(player=player(m["player"], "player"), item=m["item"])


def _chat(m: re.Match[str]) -> Chat:
    return Chat(
        player=player(m["player"], "player"),
        message=m["message"],
        team_only=m["channel"] == "say_team",
    )


def _grenade_thrown(m: re.Match[str]) -> GrenadeThrown:
    return GrenadeThrown(
        player=player(m["player"], "player"),
        item=m["item"],
        position=position(m["position"], "position"),  # type: ignore[arg-type]
    )


def _player_connected(m: re.Match[str]) -> PlayerConnected:
    address, sep, port = m["address"].rpartition(":")
    if not sep:
        return PlayerConnected(player=player(m["player"], "player"), address=m["address"])
    return PlayerConnected(
        player=player(m["player"], "player"),
        address=address,
        port=to_int(port, "port"),
    )


def _player_disconnected(m: re.Match[str]) -> PlayerDisconnected:
    return PlayerDisconnected(player=player(m["player"], "player"), reason=m["reason"])


def _player_entered(m: re.Match[str]) -> PlayerEntered:
    return PlayerEntered(player=player(m["player"], "player"))


def _player_validated(m: re.Match[str]) -> PlayerValidated:
    return PlayerValidated(player=player(m["player"], "player"))


def _team_switch(m: re.Match[str]) -> TeamSwitch:
    return TeamSwitch(
        player=player(m["player"], "player"),
        from_team=team_label(m["from_team"], "from_team") or "",
        to_team=team_label(m["to_team"], "to_team") or "",
    )


def _kill_assist(m: re.Match[str]) -> KillAssist:
    return KillAssist(
        assister=player(m["assister"], "assister"),
        victim=player(m["victim"], "victim"),
        flash_assist=m["flash"] is not None,
    )


def _attack(m: re.Match[str]) -> Attack:
    return Attack(
        attacker=player(m["attacker"], "attacker"),
        victim=player(m["victim"], "victim"),
        weapon=m["weapon"],
        damage=to_int(m["damage"], "damage"),
        damage_armor=to_int(m["damage_armor"], "damage_armor"),
        health=to_int(m["health"], "health"),
        armor=to_int(m["armor"], "armor"),
        hitgroup=m["hitgroup"],
        attacker_position=position(m["attacker_pos"], "attacker_position"),
        victim_position=position(m["victim_pos"], "victim_position"),
    )


def _suicide(m: re.Match[str]) -> Suicide:
    return Suicide(
        player=player(m["player"], "player"),
        weapon=m["weapon"],
        position=position(m["position"], "position"),
    )


def _killed_by_bomb(m: re.Match[str]) -> KilledByBomb:
    return KilledByBomb(
        player=player(m["player"], "player"),
        position=position(m["position"], "position"),
    )


def _blinded(m: re.Match[str]) -> Blinded:
    return Blinded(
        victim=player(m["victim"], "victim"),
        attacker=player(m["attacker"], "attacker"),
        duration=to_float(m["duration"], "duration"),
        item=m["item"],
        entindex=to_int(m["entindex"], "entindex"),
    )


def _money_change(m: re.Match[str]) -> MoneyChange:
    amount = to_int(m["amount"], "delta")
    return MoneyChange(
        player=player(m["player"], "player"),
        previous=to_int(m["previous"], "previous"),
        delta=amount if m["sign"] == "+" else -amount,
        total=to_int(m["total"], "total"),
        tracked=m["tracked"] is not None,
        item=m["item"],
    )


def _dropped(m: re.Match[str]) -> Dropped:
    return Dropped(player=player(m["player"], "player"), item=m["item"])


def _bomb_event(m: re.Match[str]) -> BombEvent:
    return BombEvent(
        player=player(m["player"], "player"),
        action=m["action"],
        site=m["site"],
        position=position(m["position"], "position"),
    )


def _left_buyzone(m: re.Match[str]) -> LeftBuyzone:
    return LeftBuyzone(player=player(m["player"], "player"), items=tuple(m["items"].split()))


def _player_triggered(m: re.Match[str]) -> PlayerTriggered:
    return PlayerTriggered(
        player=player(m["player"], "player"),
        trigger=m["trigger"],
        site=m["site"],
    )


def _team_notice(m: re.Match[str]) -> TeamNotice:
    return TeamNotice(
        team=team_label(m["team"], "team") or "",
        trigger=m["trigger"],
        score_ct=optional_int(m["score_ct"], "score_ct"),
        score_t=optional_int(m["score_t"], "score_t"),
    )


def _team_scored(m: re.Match[str]) -> TeamScored:
    return TeamScored(
        team=team_label(m["team"], "team") or "",
        score=to_int(m["score"], "score"),
        players=to_int(m["players"], "players"),
    )


def _team_playing(m: re.Match[str]) -> TeamPlaying:
    return TeamPlaying(team=team_label(m["team"], "team") or "", name=m["name"])


def _match_status(m: re.Match[str]) -> MatchStatus:
    return MatchStatus(
        score_ct=to_int(m["score_ct"], "score_ct"),
        score_t=to_int(m["score_t"], "score_t"),
        map=m["map"],
        rounds_played=to_int(m["rounds"], "rounds_played"),
    )


def _freeze_period(m: re.Match[str]) -> FreezePeriod:
    return FreezePeriod()


def _match_pause(m: re.Match[str]) -> MatchPause:
    if m["unpaused"]:
        return MatchPause(action="unpaused")
    return MatchPause(action=m["action"], reason=m["reason"] or None)


def _accolade(m: re.Match[str]) -> Accolade:
    return Accolade(
        type=m["type"],
        final=m["kind"] == "FINAL",
        player_name=m["name"],
        slot=to_int(m["slot"], "slot"),
        value=to_float(m["value"], "value"),
        position=to_int(m["pos"], "position"),
        score=to_float(m["score"], "score"),
    )


def _map_loading(m: re.Match[str]) -> MapLoading:
    return MapLoading(map=m["map"])


def _map_started(m: re.Match[str]) -> MapStarted:
    return MapStarted(map=m["map"])


def _log_file(m: re.Match[str]) -> LogFile:
    return LogFile(action=m["action"], file=m["file"], game=m["game"], version=m["version"])


def _rcon_command(m: re.Match[str]) -> RconCommand:
    address, _, port = m["address"].rpartition(":")
    return RconCommand(address=address, port=to_int(port, "port"), command=m["command"])


def _server_cvar(m: re.Match[str]) -> ServerCvar:
    if m["name"] is not None:
        return ServerCvar(name=m["name"], value=m["value"])
    return ServerCvar(name=m["assigned_name"], value=m["assigned_value"])


def _projectile_spawned(m: re.Match[str]) -> ProjectileSpawned:
    return ProjectileSpawned(
        item=m["item"].lower(),
        position=vector(m["position"], "position"),
        velocity=vector(m["velocity"], "velocity"),
    )


# Order matters: first match wins, specific grammars before generic ones.
GRAMMARS: tuple[Grammar, ...] = (
    Grammar("round_event", c.WORLD_TRIGGERED, _round_event),
    Grammar("game_over", c.GAME_OVER, _game_over),
    Grammar("kill", c.KILL, _kill),
    Grammar("purchase", c.PURCHASE, _purchase),
    Grammar("pickup", c.PICKUP, _pickup),
    Grammar("chat", c.CHAT, _chat),
    Grammar("grenade_thrown", c.GRENADE_THROWN, _grenade_thrown),
    Grammar("player_connected", c.PLAYER_CONNECTED, _player_connected),
    Grammar("player_disconnected", c.PLAYER_DISCONNECTED, _player_disconnected),
    Grammar("player_entered", c.PLAYER_ENTERED, _player_entered),
    Grammar("player_validated", c.PLAYER_VALIDATED, _player_validated),
    Grammar("team_switch", c.TEAM_SWITCH, _team_switch),
    Grammar("kill_assist", c.KILL_ASSIST, _kill_assist),
    Grammar("attack", c.ATTACK, _attack),
    Grammar("suicide", c.SUICIDE, _suicide),
    Grammar("killed_by_bomb", c.KILLED_BY_BOMB, _killed_by_bomb),
    Grammar("blinded", c.BLINDED, _blinded),
    Grammar("money_change", c.MONEY_CHANGE, _money_change),
    Grammar("dropped", c.DROPPED, _dropped),
    Grammar("bomb_event", c.BOMB_EVENT, _bomb_event),
    Grammar("left_buyzone", c.LEFT_BUYZONE, _left_buyzone),
    Grammar("player_triggered", c.PLAYER_TRIGGERED, _player_triggered),
    Grammar("team_notice", c.TEAM_NOTICE, _team_notice),
    Grammar("team_scored", c.TEAM_SCORED, _team_scored),
    Grammar("match_status", c.MATCH_STATUS, _match_status),
    Grammar("team_playing", c.TEAM_PLAYING, _team_playing),
    Grammar("freeze_period", c.FREEZE_PERIOD, _freeze_period),
    Grammar("match_pause", c.MATCH_PAUSE, _match_pause),
    Grammar("accolade", c.ACCOLADE, _accolade),
    Grammar("map_loading", c.MAP_LOADING, _map_loading),
    Grammar("map_started", c.MAP_STARTED, _map_started),
    Grammar("log_file", c.LOG_FILE, _log_file),
    Grammar("rcon_command", c.RCON_COMMAND, _rcon_command),
    Grammar("server_cvar", c.SERVER_CVAR, _server_cvar),
    Grammar("projectile_spawned", c.PROJECTILE_SPAWNED, _projectile_spawned),
)


def iter_nonblank(lines: Iterable[str]) -> Iterator[str]:
    """Split every chunk on line breaks and yield stripped, non-blank lines."""
    for chunk in lines:
        for raw in chunk.splitlines():
            if stripped := raw.strip():
                yield stripped


class LogClassifier:
    """Classifies CS2 server log lines into typed events.

    Stateless: the only attribute is the grammar catalogue, which is never
    mutated, so a single instance is shared by every request handler.
    """

    def __init__(self, grammars: Sequence[Grammar] = GRAMMARS) -> None:
        self.grammars: tuple[Grammar, ...] = tuple(grammars)
        logger.debug("Log classifier loaded with %d grammars", len(self.grammars))

    @property
    def event_types(self) -> list[str]:
        """Event types this classifier can emit, in priority order."""
        return [g.name for g in self.grammars]

    @staticmethod
    def count_lines(text: str) -> int:
        """Number of non-blank lines ``parse_text`` would classify."""
        return sum(1 for _ in iter_nonblank([text]))

    @staticmethod
    def prepare_line(raw: str, line_number: int = 1) -> LogLine:
        """Strip the ingestion envelope and the native ``L <timestamp>:`` prefix."""
        content = raw.strip()
        server_id: str | None = None
        received_at: str | None = None

        if envelope := envelope_pattern().match(content):
            server_id = envelope["server_id"]
            received_at = envelope["received_at"]
            content = content[envelope.end():]
        elif bare := bare_server_id_pattern().match(content):
            server_id = bare["server_id"]
            content = content[bare.end():]

        prefix = native_prefix_pattern().match(content)
        body = content[prefix.end():] if prefix else content
        logged_at: datetime | None = None
        if prefix and prefix["logged_at"]:
            try:
                logged_at = datetime.strptime(
                    prefix["logged_at"], NATIVE_TIMESTAMP_FORMAT
                ).replace(tzinfo=timezone.utc)
            except ValueError:
                logger.debug("Unparseable native timestamp %r", prefix["logged_at"])

        return LogLine(
            line_number=line_number,
            raw_content=content,
            body=body,
            server_id=server_id,
            received_at=received_at,
            logged_at=logged_at,
        )

    def classify_line(self, line: LogLine) -> ParseOutcome:
        """Match one prepared line against the catalogue; never raises."""
        for grammar in self.grammars:
            matched = grammar.pattern.match(line.body)
            if not matched:
                continue
            try:
                return Parsed(event=grammar.build(matched))
            except GrammarError as e:
                logger.debug("Line %d matched %s but is invalid: %s", line.line_number, grammar.name, e)
                return Failed(error=f"line {line.line_number}: {grammar.name}: {e}")
        logger.debug("Line %d matched no grammar: %r", line.line_number, line.body)
        return Failed(error=f"line {line.line_number}: {NO_MATCH_ERROR}")

    def classify(self, raw: str, line_number: int = 1) -> ParseOutcome:
        """Classify a single raw line."""
        return self.classify_line(self.prepare_line(raw, line_number))

    def parse(self, lines: Iterable[str]) -> ParseBatchResult:
        """Classify a batch; blank lines are dropped before numbering."""
        results: list[LineResult] = []
        for number, raw in enumerate(iter_nonblank(lines), start=1):
            line = self.prepare_line(raw, number)
            results.append(LineResult(line=line, outcome=self.classify_line(line)))
        return ParseBatchResult(results=results)

    def parse_text(self, text: str) -> ParseBatchResult:
        """Classify a multi-line text block."""
        return self.parse([text])
