"""Regular expressions and closed vocabularies for CS2 log lines."""
from __future__ import annotations

import re
from enum import Enum
from functools import lru_cache


class Team(str, Enum):
    """Team labels CS2 prints inside player descriptors and team lines."""

    CT = "CT"
    T = "T"
    TERRORIST = "TERRORIST"
    SPECTATOR = "Spectator"
    UNASSIGNED = "Unassigned"


TEAM_LABELS: frozenset[str] = frozenset(team.value for team in Team)

NATIVE_TIMESTAMP_FORMAT = "%m/%d/%Y - %H:%M:%S"

NO_MATCH_ERROR = "no matching pattern"


@lru_cache(maxsize=None)
def envelope_pattern() -> re.Pattern[str]:
    """``[2025-08-19T15:12:44Z] <server-id>: `` added by the ingestion path."""
    return re.compile(r"^\[(?P<received_at>[^\]]+)\]\s+(?P<server_id>[^\s:]+):\s+")


@lru_cache(maxsize=None)
def bare_server_id_pattern() -> re.Pattern[str]:
    """``<uuid>: `` prefix without the bracketed timestamp."""
    return re.compile(
        r"^(?P<server_id>[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-"
        r"[0-9a-fA-F]{4}-[0-9a-fA-F]{12}):\s+"
    )


@lru_cache(maxsize=None)
def native_prefix_pattern() -> re.Pattern[str]:
    """Optional ``L `` marker and ``MM/DD/YYYY - HH:MM:SS[.mmm]`` timestamp.

    The timestamp ends with ``:`` on classic logs and with `` -`` on logs that
    carry milliseconds.
    """
    return re.compile(
        r"^(?:L\s+)?"
        r"(?:(?P<logged_at>\d{2}/\d{2}/\d{4} - \d{2}:\d{2}:\d{2})(?:\.\d+)?(?::|\s+-)\s*)?"
    )


@lru_cache(maxsize=None)
def descriptor_pattern() -> re.Pattern[str]:
    """``Name<slot><id>`` with an optional ``<team>`` group."""
    return re.compile(
        r"^(?P<name>.*?)<(?P<slot>[^<>]*)><(?P<id>[^<>]*)>(?:<(?P<team>[^<>]*)>)?$"
    )


def _player(group: str) -> str:
    return rf'"(?P<{group}>[^"]*?<[^<>"]*><[^<>"]*>(?:<[^<>"]*>)?)"'


def _position(group: str) -> str:
    return rf"(?: \[(?P<{group}>[^\]]*)\])?"


_END = r"\s*$"

WORLD_TRIGGERED = re.compile(
    r'^World triggered "(?P<trigger>[^"]+)"'
    r'(?: on "(?P<map>[^"]+)")?'
    r'(?: \(CT "(?P<score_ct>[^"]*)"\) \(T "(?P<score_t>[^"]*)"\))?' + _END
)

GAME_OVER = re.compile(
    r"^Game Over: (?P<mode>\S+) (?:(?P<map_group>\S+) )?(?P<map>\S+) "
    r"score (?P<score_a>[^\s:]+):(?P<score_b>\S+) after (?P<duration>\S+) min" + _END
)

KILL = re.compile(
    "^" + _player("killer") + _position("killer_pos")
    + " killed " + _player("victim") + _position("victim_pos")
    + r' with "(?P<weapon>[^"]*)"(?P<modifiers>(?: \([^)]*\))*)' + _END
)

PURCHASE = re.compile("^" + _player("player") + r' purchased "(?P<item>[^"]*)"' + _END)

PICKUP = re.compile("^" + _player("player") + r' picked up "(?P<item>[^"]*)"' + _END)

CHAT = re.compile(
    "^" + _player("player") + r' (?P<channel>say|say_team) "(?P<message>.*)"' + _END
)

GRENADE_THROWN = re.compile(
    "^" + _player("player") + r" threw (?P<item>\S+) \[(?P<position>[^\]]*)\].*$"
)

PLAYER_CONNECTED = re.compile(
    "^" + _player("player") + r' connected, address "(?P<address>[^"]*)"' + _END
)

PLAYER_DISCONNECTED = re.compile(
    "^" + _player("player") + r' disconnected(?: \(reason "(?P<reason>[^"]*)"\))?' + _END
)

PLAYER_ENTERED = re.compile("^" + _player("player") + " entered the game" + _END)

PLAYER_VALIDATED = re.compile("^" + _player("player") + " STEAM USERID validated" + _END)

TEAM_SWITCH = re.compile(
    "^" + _player("player")
    + r" switched from team <(?P<from_team>[^<>]*)> to <(?P<to_team>[^<>]*)>" + _END
)

KILL_ASSIST = re.compile(
    "^" + _player("assister") + r" (?P<flash>flash-)?assisted killing " + _player("victim") + _END
)

ATTACK = re.compile(
    "^" + _player("attacker") + _position("attacker_pos")
    + " attacked " + _player("victim") + _position("victim_pos")
    + r' with "(?P<weapon>[^"]*)"'
    r' \(damage "(?P<damage>[^"]*)"\)'
    r' \(damage_armor "(?P<damage_armor>[^"]*)"\)'
    r' \(health "(?P<health>[^"]*)"\)'
    r' \(armor "(?P<armor>[^"]*)"\)'
    r' \(hitgroup "(?P<hitgroup>[^"]*)"\)' + _END
)

SUICIDE = re.compile(
    "^" + _player("player") + _position("position")
    + r' committed suicide with "(?P<weapon>[^"]*)"' + _END
)

KILLED_BY_BOMB = re.compile(
    "^" + _player("player") + _position("position") + r" was killed by the bomb\.?" + _END
)

BLINDED = re.compile(
    "^" + _player("victim") + r" blinded for (?P<duration>\S+) by " + _player("attacker")
    + r" from (?P<item>\S+) entindex (?P<entindex>\S+)" + _END
)

MONEY_CHANGE = re.compile(
    "^" + _player("player")
    + r" money change (?P<previous>\d+)(?P<sign>[+-])(?P<amount>\d+) = \$(?P<total>\S+)"
    r"(?P<tracked> \(tracked\))?(?: \(purchase: (?P<item>[^)]*)\))?" + _END
)

DROPPED = re.compile("^" + _player("player") + r' dropped "(?P<item>[^"]*)"' + _END)

BOMB_EVENT = re.compile(
    "^" + _player("player") + _position("position")
    + r" (?P<action>planted|defused|dropped) the bomb(?: at bombsite (?P<site>\S+))?" + _END
)

LEFT_BUYZONE = re.compile(
    "^" + _player("player") + r" left buyzone with \[(?P<items>[^\]]*)\]" + _END
)

PLAYER_TRIGGERED = re.compile(
    "^" + _player("player")
    + r' triggered "(?P<trigger>[^"]+)"(?: at bombsite (?P<site>\S+))?' + _END
)

TEAM_NOTICE = re.compile(
    r'^Team "(?P<team>[^"]+)" triggered "(?P<trigger>[^"]+)"'
    r'(?: \(CT "(?P<score_ct>[^"]*)"\) \(T "(?P<score_t>[^"]*)"\))?' + _END
)

TEAM_SCORED = re.compile(
    r'^Team "(?P<team>[^"]+)" scored "(?P<score>[^"]*)" with "(?P<players>[^"]*)" players' + _END
)

TEAM_PLAYING = re.compile(
    r'^(?:MatchStatus: )?Team playing "(?P<team>[^"]+)": (?P<name>.*?)' + _END
)

MATCH_STATUS = re.compile(
    r'^MatchStatus: Score: (?P<score_ct>[^\s:]+):(?P<score_t>\S+) '
    r'on map "(?P<map>[^"]*)" RoundsPlayed: (?P<rounds>\S+)' + _END
)

FREEZE_PERIOD = re.compile(r"^Starting Freeze period" + _END)

MATCH_PAUSE = re.compile(
    r"^Match (?:pause is (?P<action>enabled|disabled)(?: - (?P<reason>.*?))?"
    r"|(?P<unpaused>unpaused))" + _END
)

ACCOLADE = re.compile(
    r"^ACCOLADE, (?P<kind>FINAL|ROUND): \{(?P<type>[^}]*)\},\s+"
    r"(?P<name>.*?)<(?P<slot>[^<>]*)>,\s+VALUE: (?P<value>\S+),\s+"
    r"POS: (?P<pos>\S+),\s+SCORE: (?P<score>\S+)" + _END
)

MAP_LOADING = re.compile(r'^Loading map "(?P<map>[^"]+)"' + _END)

MAP_STARTED = re.compile(r'^Started map "(?P<map>[^"]+)"(?: \(CRC "[^"]*"\))?' + _END)

LOG_FILE = re.compile(
    r"^Log file (?P<action>started|closed)"
    r'(?: \(file "(?P<file>[^"]*)"\))?'
    r'(?: \(game "(?P<game>[^"]*)"\))?'
    r'(?: \(version "(?P<version>[^"]*)"\))?' + _END
)

RCON_COMMAND = re.compile(
    r'^rcon from "(?P<address>[^"]*)": command "(?P<command>.*)"' + _END
)

SERVER_CVAR = re.compile(
    r'^(?:server_cvar: "(?P<name>[^"]+)" "(?P<value>[^"]*)"'
    r'|"(?P<assigned_name>[^"]+)" = "(?P<assigned_value>[^"]*)")' + _END
)

PROJECTILE_SPAWNED = re.compile(
    r"^(?P<item>\w+) projectile spawned at (?P<position>\S+ \S+ \S+), "
    r"velocity (?P<velocity>\S+ \S+ \S+)" + _END
)
