import random
from collections import Counter

import pytest

from memorygame.services.games.board import generate
from memorygame.services.games.difficulty import (
    SYMBOLS,
    ConfigurationError,
    Difficulty,
    DifficultySettings,
    resolve_difficulty,
)


@pytest.mark.parametrize('difficulty', list(Difficulty))
def test_deck_has_each_symbol_exactly_twice(difficulty):
    pairs = difficulty.settings.pair_count
    cards = generate(difficulty, rng=random.Random(7))
    assert len(cards) == 2 * pairs
    counts = Counter(c.value for c in cards)
    assert set(counts) == set(SYMBOLS[:pairs])
    assert all(n == 2 for n in counts.values())
    assert sorted(c.index for c in cards) == list(range(2 * pairs))


def test_cards_start_face_down_and_unmatched():
    cards = generate('hard', rng=random.Random(3))
    assert not any(c.flipped or c.matched for c in cards)
    assert [c.index for c in cards] == list(range(len(cards)))


def test_same_seed_same_board_different_seed_differs():
    a = [c.value for c in generate('hard', rng=random.Random(42))]
    b = [c.value for c in generate('hard', rng=random.Random(42))]
    boards = {tuple(c.value for c in generate('hard', rng=random.Random(seed))) for seed in range(10)}
    assert a == b
    assert len(boards) > 1


def test_generate_without_rng_is_independent_per_call():
    # No shared generator state: calls may differ but each deck is valid
    for _ in range(5):
        cards = generate(Difficulty.MEDIUM)
        assert Counter(Counter(c.value for c in cards).values()) == {2: 6}


def test_too_many_pairs_for_alphabet():
    settings = DifficultySettings('huge', pair_count=len(SYMBOLS) + 1, multiplier=1.0,
                                  base_score=100, time_bonus_budget=0, perfect_bonus=0)
    with pytest.raises(ConfigurationError):
        generate(settings)


def test_zero_pairs_rejected():
    settings = DifficultySettings('empty', pair_count=0, multiplier=1.0,
                                  base_score=100, time_bonus_budget=0, perfect_bonus=0)
    with pytest.raises(ConfigurationError):
        generate(settings)


def test_custom_alphabet_must_cover_pairs():
    with pytest.raises(ConfigurationError):
        generate('easy', symbols=('A', 'B', 'C'))
    cards = generate('easy', symbols=('A', 'B', 'C', 'D'), rng=random.Random(0))
    assert sorted(c.value for c in cards) == ['A', 'A', 'B', 'B', 'C', 'C', 'D', 'D']


def test_resolve_difficulty_names():
    assert resolve_difficulty('EASY') is Difficulty.EASY.settings
    assert resolve_difficulty(Difficulty.HARD).pair_count == 8
    with pytest.raises(ConfigurationError):
        resolve_difficulty('impossible')
    # ConfigurationError is a ValueError
    with pytest.raises(ValueError):
        resolve_difficulty('')


def test_difficulty_table():
    assert [(d.settings.pair_count, d.settings.multiplier, d.settings.base_score,
             d.settings.time_bonus_budget, d.settings.perfect_bonus) for d in Difficulty] == [
        (4, 1.0, 100, 50, 200),
        (6, 1.5, 150, 75, 300),
        (8, 2.0, 200, 100, 400),
    ]
