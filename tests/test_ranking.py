from __future__ import annotations

from prizeboard.services.ranking import (
    PlayerBest,
    RankPosition,
    clamp_limit,
    rank_attempts,
    rank_best,
    rank_of,
)
from prizeboard.services.scores import ScoreEntry
from tests.conftest import iso


def build_log(*rows: tuple[str, int, str]) -> list[ScoreEntry]:
    return [
        ScoreEntry(id=index, player_id=player_id, score=score, ts=ts)
        for index, (player_id, score, ts) in enumerate(rows, start=1)
    ]


def test_earlier_timestamp_wins_equal_best_score():
    log = build_log(("P1", 100, iso(1)), ("P1", 150, iso(2)), ("P2", 150, iso(3)))

    ranked = rank_best(log, cutoff=iso(3))

    assert ranked == [
        PlayerBest(player_id="P1", score=150, ts=iso(2), attempts=2),
        PlayerBest(player_id="P2", score=150, ts=iso(3), attempts=1),
    ]
    assert rank_best(log, cutoff=iso(100)) == ranked


def test_fewer_attempts_breaks_score_and_timestamp_tie():
    log = build_log(("busy", 10, iso(1)), ("busy", 200, iso(5)), ("calm", 200, iso(5)))

    ranked = rank_best(log)

    assert [p.player_id for p in ranked] == ["calm", "busy"]
    assert [p.attempts for p in ranked] == [1, 2]


def test_best_keeps_earliest_timestamp_of_repeated_max():
    log = build_log(("P1", 300, iso(9)), ("P1", 300, iso(4)), ("P1", 120, iso(1)))

    (best,) = rank_best(log)

    assert best.score == 300
    assert best.ts == iso(4)
    assert best.attempts == 3


def test_cutoff_excludes_later_entries():
    log = build_log(("P1", 50, iso(1)), ("P2", 70, iso(2)), ("P1", 999, iso(10)))

    ranked = rank_best(log, cutoff=iso(2))

    assert [(p.player_id, p.score) for p in ranked] == [("P2", 70), ("P1", 50)]
    assert ranked[1].attempts == 1


def test_cutoff_is_inclusive():
    log = build_log(("P1", 50, iso(5)))

    assert len(rank_best(log, cutoff=iso(5))) == 1
    assert rank_best(log, cutoff=iso(4)) == []


def test_ranking_is_deterministic():
    log = build_log(
        ("a", 10, iso(3)),
        ("b", 10, iso(3)),
        ("c", 30, iso(1)),
        ("a", 5, iso(4)),
        ("d", 10, iso(2)),
    )

    first = rank_best(log)
    second = rank_best(log)

    assert first == second
    assert [p.player_id for p in first] == ["c", "d", "b", "a"]


def test_empty_log():
    assert rank_best([]) == []
    assert rank_attempts([]) == []
    assert rank_of([], "P1") is None


def test_attempts_mode_lists_every_submission():
    log = build_log(("P1", 100, iso(1)), ("P1", 150, iso(2)), ("P2", 150, iso(3)), ("P2", 20, iso(4)))

    rows = rank_attempts(log, limit=3)

    assert [(e.player_id, e.score) for e in rows] == [("P1", 150), ("P2", 150), ("P1", 100)]


def test_attempts_mode_respects_cutoff():
    log = build_log(("P1", 100, iso(1)), ("P2", 900, iso(8)))

    rows = rank_attempts(log, cutoff=iso(5))

    assert [e.player_id for e in rows] == ["P1"]


def test_rank_of_reports_position_and_total():
    log = build_log(("P1", 100, iso(1)), ("P2", 300, iso(2)), ("P3", 200, iso(3)))

    assert rank_of(log, "P3") == RankPosition(rank=2, total_players=3)
    assert rank_of(log, "P3", cutoff=iso(2)) is None
    assert rank_of(log, "nobody") is None


def test_clamp_limit():
    assert clamp_limit(0) == 1
    assert clamp_limit(-4) == 1
    assert clamp_limit(500) == 100
    assert clamp_limit("25") == 25
    assert clamp_limit(None) == 10
    assert clamp_limit("many") == 10
