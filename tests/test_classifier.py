import re

import pytest

from cs2logs.services.logparser import (
    Failed,
    GRAMMARS,
    LogClassifier,
    Parsed,
    PlayerDescriptor,
)
from cs2logs.services.logparser.logparser import iter_nonblank


ENVELOPE = "[2025-08-19T15:12:44Z] 3f2b8c1e-9d4a-4f6b-8e2a-1c5d7e9f0a1b: "
KILL_LINE = '"A<1><X><CT>" killed "B<2><Y><T>" with "ak47"'


@pytest.fixture
def classifier() -> LogClassifier:
    """Return an instance of the LogClassifier class."""
    return LogClassifier()


def test_round_start(classifier: LogClassifier) -> None:
    outcome = classifier.classify('World triggered "Round_Start"')
    assert isinstance(outcome, Parsed)
    assert outcome.event_type == "round_event"
    assert outcome.event_data == {"trigger": "Round_Start"}


def test_game_over(classifier: LogClassifier) -> None:
    outcome = classifier.classify("Game Over: competitive de_mirage score 16:14 after 30 min")
    assert isinstance(outcome, Parsed)
    assert outcome.event_type == "game_over"
    assert outcome.event_data == {
        "mode": "competitive",
        "map": "de_mirage",
        "score_a": 16,
        "score_b": 14,
        "duration_minutes": 30,
    }


def test_game_over_with_map_group(classifier: LogClassifier) -> None:
    outcome = classifier.classify("Game Over: competitive mg_active de_dust2 score 13:7 after 42 min")
    assert isinstance(outcome, Parsed)
    assert outcome.event_data["map"] == "de_dust2"
    assert outcome.event_data["map_group"] == "mg_active"


def test_invalid_line(classifier: LogClassifier) -> None:
    outcome = classifier.classify("Invalid log line that will fail parsing")
    assert isinstance(outcome, Failed)
    assert outcome.error
    assert outcome.success is False


def test_batch_of_ten_with_two_failures(classifier: LogClassifier) -> None:
    lines = [
        'World triggered "Round_Start"',
        KILL_LINE,
        '"A<1><X><CT>" purchased "ak47"',
        "garbage one",
        '"A<1><X><CT>" picked up "deagle"',
        '"A<1><X><CT>" say "gg"',
        "garbage two",
        '"A<1><X><CT>" threw flashbang [10 20 30]',
        '"A<1><X><CT>" connected, address "10.0.0.1:27005"',
        'World triggered "Round_End"',
    ]
    result = classifier.parse(lines)
    assert result.total_lines == 10
    assert result.parsed_count == 8
    assert result.failed_count == 2
    assert [r.line_number for r in result.results if not r.outcome.success] == [4, 7]


def test_kill_round_trip(classifier: LogClassifier) -> None:
    outcome = classifier.classify(KILL_LINE)
    assert isinstance(outcome, Parsed)
    assert outcome.event_type == "kill"
    assert outcome.event_data == {
        "killer": {"name": "A", "slot": 1, "id": "X", "team": "CT"},
        "victim": {"name": "B", "slot": 2, "id": "Y", "team": "T"},
        "weapon": "ak47",
    }


def test_kill_with_positions_and_modifiers(classifier: LogClassifier) -> None:
    line = (
        '"alker007<8><[U:1:869707820]><CT>" [-1987 1958 0] killed '
        '"NxS Sebo<6><[U:1:387734521]><TERRORIST>" [-1946 1416 88] with "m4a1_silencer" (headshot penetrated)'
    )
    outcome = classifier.classify(line)
    assert isinstance(outcome, Parsed)
    assert outcome.event.killer == PlayerDescriptor("alker007", 8, "[U:1:869707820]", "CT")
    assert outcome.event_data["victim"]["name"] == "NxS Sebo"
    assert outcome.event_data["killer_position"] == {"x": -1987, "y": 1958, "z": 0}
    assert outcome.event_data["modifiers"] == ["headshot", "penetrated"]


def test_envelope_does_not_change_event(classifier: LogClassifier) -> None:
    bare = classifier.classify(KILL_LINE)
    wrapped = classifier.classify(ENVELOPE + KILL_LINE)
    assert isinstance(bare, Parsed) and isinstance(wrapped, Parsed)
    assert wrapped.event_type == bare.event_type
    assert wrapped.event_data == bare.event_data


def test_envelope_is_stripped_from_content(classifier: LogClassifier) -> None:
    result = classifier.parse([ENVELOPE + "L 08/19/2025 - 15:12:44: " + KILL_LINE])
    line = result.results[0].line
    assert line.server_id == "3f2b8c1e-9d4a-4f6b-8e2a-1c5d7e9f0a1b"
    assert line.received_at == "2025-08-19T15:12:44Z"
    assert result.results[0].content == "L 08/19/2025 - 15:12:44: " + KILL_LINE
    assert line.logged_at is not None and line.logged_at.minute == 12


def test_bare_server_id_prefix(classifier: LogClassifier) -> None:
    outcome = classifier.classify('3f2b8c1e-9d4a-4f6b-8e2a-1c5d7e9f0a1b: World triggered "Round_End"')
    assert isinstance(outcome, Parsed)
    assert outcome.event_data == {"trigger": "Round_End"}


def test_millisecond_timestamp_prefix(classifier: LogClassifier) -> None:
    outcome = classifier.classify('08/19/2025 - 15:12:44.123 - World triggered "Round_End"')
    assert isinstance(outcome, Parsed)
    assert outcome.event_type == "round_event"


def test_blank_lines_are_not_numbered(classifier: LogClassifier) -> None:
    result = classifier.parse_text('\n\nWorld triggered "Round_Start"\n   \nnope\n\n')
    assert result.total_lines == 2
    assert [r.line_number for r in result.results] == [1, 2]
    assert result.results[1].outcome.error == "line 2: no matching pattern"


def test_parse_is_idempotent(classifier: LogClassifier, sample_match_log: str) -> None:
    first = classifier.parse_text(sample_match_log).to_dict()
    second = classifier.parse_text(sample_match_log).to_dict()
    assert first == second


def test_counts_are_consistent(classifier: LogClassifier, sample_match_log: str) -> None:
    result = classifier.parse_text(sample_match_log + "\nnot a cs2 line\n")
    assert result.parsed_count + result.failed_count == result.total_lines
    assert len(result.results) == result.total_lines
    assert [r.line_number for r in result.results] == list(range(1, result.total_lines + 1))


def test_sample_match_log_fully_classified(classifier: LogClassifier, sample_match_log: str) -> None:
    result = classifier.parse_text(sample_match_log)
    failures = [r.to_dict() for r in result.results if not r.outcome.success]
    assert failures == []
    assert result.total_lines == classifier.count_lines(sample_match_log)


def test_every_grammar_is_exercised_by_sample(classifier: LogClassifier, sample_match_log: str) -> None:
    result = classifier.parse_text(sample_match_log)
    seen = {r.outcome.event_type for r in result.results if isinstance(r.outcome, Parsed)}
    # Covered by test_grammar_fields instead
    assert seen == {g.name for g in GRAMMARS} - {"suicide", "killed_by_bomb", "bomb_event"}


@pytest.mark.parametrize(
    ("line", "event_type", "expected"),
    [
        (
            '"Bob<3><[U:1:42]><CT>" say_team "rotate B"',
            "chat",
            {"message": "rotate B", "team_only": True},
        ),
        (
            '"Bob<3><[U:1:42]><CT>" threw hegrenade [100 -200 30] flashbang entindex 234)',
            "grenade_thrown",
            {"item": "hegrenade", "position": {"x": 100, "y": -200, "z": 30}},
        ),
        (
            '"Bob<3><[U:1:42]><>" connected, address "192.168.1.50:27005"',
            "player_connected",
            {"address": "192.168.1.50", "port": 27005},
        ),
        (
            '"Bob<3><[U:1:42]>" connected, address "1.2.3.4:27005"',
            "player_connected",
            {
                "player": {"name": "Bob", "slot": 3, "id": "[U:1:42]"},
                "address": "1.2.3.4",
                "port": 27005,
            },
        ),
        (
            '"Bob<3><[U:1:42]><CT>" money change 800+300 = $1100',
            "money_change",
            {"previous": 800, "delta": 300, "total": 1100, "tracked": False},
        ),
        (
            '"Bob<3><[U:1:42]><CT>" blinded for 3.25 by "Eve<4><[U:1:43]><TERRORIST>" from flashbang entindex 88',
            "blinded",
            {"duration": 3.25, "entindex": 88, "item": "flashbang"},
        ),
        (
            '"Bob<3><[U:1:42]><TERRORIST>" [100 200 0] planted the bomb at bombsite A',
            "bomb_event",
            {"action": "planted", "site": "A", "position": {"x": 100, "y": 200, "z": 0}},
        ),
        (
            '"Bob<3><[U:1:42]><CT>" [1 2 3] committed suicide with "world"',
            "suicide",
            {"weapon": "world", "position": {"x": 1, "y": 2, "z": 3}},
        ),
        (
            '"Bob<3><[U:1:42]><CT>" [1 2 3] was killed by the bomb.',
            "killed_by_bomb",
            {"position": {"x": 1, "y": 2, "z": 3}},
        ),
        (
            '"Bob<3><[U:1:42]><CT>" assisted killing "Eve<4><[U:1:43]><TERRORIST>"',
            "kill_assist",
            {"flash_assist": False},
        ),
        (
            'World triggered "SFUI_Notice_Round_Draw" (CT "6") (T "5")',
            "round_event",
            {"trigger": "SFUI_Notice_Round_Draw", "score_ct": 6, "score_t": 5},
        ),
        (
            'Team "TERRORIST" triggered "SFUI_Notice_Terrorists_Win" (CT "3") (T "4")',
            "team_notice",
            {"team": "TERRORIST", "score_ct": 3, "score_t": 4},
        ),
        (
            'MatchStatus: Score: 5:3 on map "de_inferno" RoundsPlayed: 8',
            "match_status",
            {"score_ct": 5, "score_t": 3, "map": "de_inferno", "rounds_played": 8},
        ),
        (
            "ACCOLADE, ROUND: {mvp}, Bob<3>, VALUE: 1.000000, POS: 2, SCORE: 10.500000",
            "accolade",
            {"type": "mvp", "final": False, "player_name": "Bob", "slot": 3, "position": 2},
        ),
        (
            'rcon from "10.0.0.5:51234": command "mp_restartgame 1"',
            "rcon_command",
            {"address": "10.0.0.5", "port": 51234, "command": "mp_restartgame 1"},
        ),
        (
            'Match pause is disabled - mp_unpause_match',
            "match_pause",
            {"action": "disabled", "reason": "mp_unpause_match"},
        ),
    ],
)
def test_grammar_fields(classifier: LogClassifier, line: str, event_type: str, expected: dict) -> None:
    outcome = classifier.classify(line)
    assert isinstance(outcome, Parsed), getattr(outcome, "error", None)
    assert outcome.event_type == event_type
    for key, value in expected.items():
        assert outcome.event_data[key] == value


def test_absent_optional_fields_are_omitted(classifier: LogClassifier) -> None:
    outcome = classifier.classify('"Bob<3><[U:1:42]><CT>" disconnected')
    assert isinstance(outcome, Parsed)
    assert "reason" not in outcome.event_data


def test_descriptor_without_team(classifier: LogClassifier) -> None:
    outcome = classifier.classify('"Bob<3><BOT><>" entered the game')
    assert isinstance(outcome, Parsed)
    assert outcome.event_data["player"] == {"name": "Bob", "slot": 3, "id": "BOT"}


def test_non_numeric_slot_downgrades_to_failed(classifier: LogClassifier) -> None:
    outcome = classifier.classify('"A<x><X><CT>" killed "B<2><Y><T>" with "ak47"')
    assert isinstance(outcome, Failed)
    assert re.match(r"^line 1: kill: invalid integer 'x'", outcome.error)


def test_non_numeric_score_downgrades_to_failed(classifier: LogClassifier) -> None:
    outcome = classifier.classify("Game Over: competitive de_mirage score 16:xx after 30 min", line_number=7)
    assert isinstance(outcome, Failed)
    assert outcome.error.startswith("line 7: game_over:")


def test_unknown_team_downgrades_to_failed(classifier: LogClassifier) -> None:
    outcome = classifier.classify('"A<1><X><Blue>" purchased "ak47"')
    assert isinstance(outcome, Failed)
    assert "unknown team 'Blue'" in outcome.error


def test_batch_result_serialization(classifier: LogClassifier) -> None:
    payload = classifier.parse_text(KILL_LINE + "\nnope").to_dict()
    assert payload["total_lines"] == 2
    assert payload["parsed_count"] == 1
    assert payload["failed_count"] == 1
    ok, bad = payload["results"]
    assert ok["success"] is True and ok["event_type"] == "kill" and "error" not in ok
    assert bad == {"line_number": 2, "content": "nope", "success": False, "error": "line 2: no matching pattern"}


def test_iter_nonblank_splits_chunks() -> None:
    assert list(iter_nonblank(["a\r\nb", "", "  c  \n\n"])) == ["a", "b", "c"]


def test_grammar_names_are_unique() -> None:
    names = [g.name for g in GRAMMARS]
    assert len(names) == len(set(names))
    assert names[:8] == [
        "round_event",
        "game_over",
        "kill",
        "purchase",
        "pickup",
        "chat",
        "grenade_thrown",
        "player_connected",
    ]
