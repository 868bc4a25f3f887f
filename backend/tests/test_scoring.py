from types import SimpleNamespace

import pytest

from memorygame.services.games.difficulty import Difficulty
from memorygame.services.games.scoring import (
    Result,
    efficiency_percent,
    final_score,
    format_elapsed,
    parse_elapsed,
    performance_rating,
    score_for_match,
    time_bonus,
)


def fake_session(difficulty='easy', score=0, moves=4, matched=4, elapsed=0.0):
    settings = Difficulty(difficulty).settings
    return SimpleNamespace(
        settings=settings,
        score=score,
        moves=moves,
        matched_pairs=matched,
        total_pairs=settings.pair_count,
        start_time=100.0,
        clock=lambda: 100.0 + elapsed,
    )


@pytest.mark.parametrize('difficulty, expected', [('easy', 100), ('medium', 225), ('hard', 400)])
def test_match_at_minimum_moves_pays_base_times_multiplier(difficulty, expected):
    pairs = Difficulty(difficulty).settings.pair_count
    assert score_for_match(difficulty, pairs, pairs * 2) == expected


def test_match_efficiency_floor_is_half():
    assert score_for_match('easy', 4, 1000) == 50
    # 150 * 0.5 * 1.5 = 112.5 rounds half up
    assert score_for_match('medium', 6, 1000) == 113


def test_match_efficiency_in_between():
    # 8 / 12 of the base score
    assert score_for_match('easy', 4, 12) == 67


def test_early_matches_do_not_exceed_full_points():
    assert score_for_match('easy', 4, 1) == 100


def test_match_needs_a_move():
    with pytest.raises(ValueError):
        score_for_match('easy', 4, 0)


def test_final_score_perfect_game():
    result = final_score(fake_session(score=400, moves=4, elapsed=5.0))
    assert isinstance(result, Result)
    assert result.score == 400 + 50 + 200
    assert result.elapsed_seconds == 5
    assert result.efficiency_percent == 100


def test_perfect_bonus_boundary():
    at_limit = final_score(fake_session(score=0, moves=8, elapsed=0.0))
    over_limit = final_score(fake_session(score=0, moves=9, elapsed=0.0))
    assert at_limit.score == 50 + 200
    assert over_limit.score == 50


def test_time_bonus_drops_every_ten_seconds():
    assert time_bonus('easy', 9) == 50
    assert time_bonus('easy', 10) == 49
    assert time_bonus('easy', 125) == 38
    assert time_bonus('easy', 10_000) == 0
    assert final_score(fake_session(score=0, moves=20, elapsed=10_000.0)).score == 0


def test_elapsed_is_floored():
    result = final_score(fake_session(moves=9, elapsed=19.99))
    assert result.elapsed_seconds == 19
    assert result.score == 49


def test_final_score_uses_explicit_now():
    session = fake_session(score=100, moves=9, elapsed=0.0)
    result = final_score(session, now=100.0 + 600)
    assert result.elapsed_seconds == 600
    assert result.score == 100 + 0


def test_efficiency_percent_guards_zero_moves():
    assert efficiency_percent(0, 0) == 0
    assert efficiency_percent(4, 0) == 400
    assert efficiency_percent(4, 8) == 50
    assert efficiency_percent(6, 9) == 67


def test_result_wire_shape():
    result = final_score(fake_session(score=400, moves=4, elapsed=65.0))
    data = result.to_dict()
    assert set(data) == {'score', 'moves', 'elapsedTime', 'difficulty', 'efficiencyPercent', 'date'}
    assert data['elapsedTime'] == '01:05'
    assert data['difficulty'] == 'easy'
    assert result.performance == 'perfect'


def test_format_and_parse_elapsed():
    assert format_elapsed(0) == '00:00'
    assert format_elapsed(65) == '01:05'
    assert format_elapsed(6000) == '100:00'
    assert parse_elapsed('01:05') == 65
    assert parse_elapsed('100:00') == 6000
    for bad in ('', '1:5', '01:60', 'aa:bb', '0105', '-1:00'):
        with pytest.raises(ValueError):
            parse_elapsed(bad)


@pytest.mark.parametrize('efficiency, rating', [
    (100, 'perfect'), (90, 'perfect'), (89, 'excellent'), (75, 'excellent'),
    (60, 'good'), (40, 'average'), (39, 'practice'), (0, 'practice'),
])
def test_performance_rating(efficiency, rating):
    assert performance_rating(efficiency) == rating
