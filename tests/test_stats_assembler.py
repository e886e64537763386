import time

import pytest

from cs2logs.services.ingestion import RoundStatsAssembler
from cs2logs.services.logparser import LogClassifier, RoundStats


@pytest.fixture
def assembler() -> RoundStatsAssembler:
    return RoundStatsAssembler()


def _bodies(text: str) -> list[str]:
    classifier = LogClassifier()
    return [classifier.prepare_line(raw).body for raw in text.splitlines() if raw.strip()]


def test_unrelated_line_is_not_consumed(assembler: RoundStatsAssembler) -> None:
    assert assembler.feed("srv", 'World triggered "Round_Start"') is None


def test_block_is_assembled(assembler: RoundStatsAssembler, sample_round_stats: str) -> None:
    *inner, last = _bodies(sample_round_stats)
    for body in inner:
        outcome = assembler.feed("srv", body)
        assert outcome is not None and outcome.complete is False
    assert assembler.open_buffers == 1

    final = assembler.feed("srv", last)
    assert final is not None and final.complete is True
    assert isinstance(final.event, RoundStats)
    assert final.event.event_type == "round_stats"
    assert final.event.to_dict()["map"] == "de_dust2"
    assert final.event.to_dict()["players"] == {"player_0": "869707820, 3, 1100, 1"}
    assert assembler.open_buffers == 0


def test_buffers_are_per_server(assembler: RoundStatsAssembler) -> None:
    assembler.feed("a", "JSON_BEGIN{")
    assert assembler.feed("b", '"name": "round_stats",') is None
    assert assembler.feed("a", '"name": "round_stats"') is not None
    outcome = assembler.feed("a", "}JSON_END")
    assert outcome is not None and outcome.event is not None
    assert outcome.event.payload == {"name": "round_stats"}


def test_invalid_json_reports_error(assembler: RoundStatsAssembler) -> None:
    assembler.feed("srv", "JSON_BEGIN{")
    assembler.feed("srv", '"name": "round_stats",,,')
    outcome = assembler.feed("srv", "}JSON_END")
    assert outcome is not None and outcome.complete is True
    assert outcome.event is None
    assert outcome.error and outcome.error.startswith("invalid round stats JSON")


def test_end_without_begin_is_classified_normally(assembler: RoundStatsAssembler) -> None:
    assert assembler.feed("srv", "}}JSON_END") is None


def test_cleanup_drops_stale_buffers(assembler: RoundStatsAssembler, monkeypatch) -> None:
    assembler.feed("old", "JSON_BEGIN{")
    now = time.monotonic()
    monkeypatch.setattr(time, "monotonic", lambda: now + 1000)
    assembler.feed("fresh", "JSON_BEGIN{")

    assert assembler.cleanup(max_age_seconds=600) == 1
    assert assembler.open_buffers == 1
    assert assembler.feed("old", '"name": "x"') is None


def test_checkpoint_and_restore(assembler: RoundStatsAssembler) -> None:
    assert assembler.checkpoint("srv") is None

    assembler.feed("srv", "JSON_BEGIN{")
    saved = assembler.checkpoint("srv")
    assert saved == ["{"]

    assembler.feed("srv", '"name": "round_stats",')
    assembler.restore("srv", saved)
    assert assembler.checkpoint("srv") == ["{"]

    assembler.restore("srv", None)
    assert assembler.open_buffers == 0
