from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Tuple, Union


# Card faces, in the order boards draw from them.
SYMBOLS: Tuple[str, ...] = (
    '🐶', '🐱', '🐭', '🐹', '🐰', '🦊', '🐻', '🐼', '🐨', '🐯', '🦁', '🐮',
)


class ConfigurationError(ValueError):
    """Raised when a difficulty cannot produce a playable board."""


@dataclass(frozen=True)
class DifficultySettings:
    """Scoring and board-size parameters for one difficulty level."""
    name: str
    pair_count: int
    multiplier: float
    base_score: int
    time_bonus_budget: int
    perfect_bonus: int


class Difficulty(str, Enum):
    EASY = 'easy'
    MEDIUM = 'medium'
    HARD = 'hard'

    @property
    def settings(self) -> DifficultySettings:
        return DIFFICULTY_TABLE[self]


DIFFICULTY_TABLE: Dict[Difficulty, DifficultySettings] = {
    Difficulty.EASY: DifficultySettings('easy', pair_count=4, multiplier=1.0, base_score=100, time_bonus_budget=50, perfect_bonus=200),
    Difficulty.MEDIUM: DifficultySettings('medium', pair_count=6, multiplier=1.5, base_score=150, time_bonus_budget=75, perfect_bonus=300),
    Difficulty.HARD: DifficultySettings('hard', pair_count=8, multiplier=2.0, base_score=200, time_bonus_budget=100, perfect_bonus=400),
}

DifficultyLike = Union[str, Difficulty, DifficultySettings]


def resolve_difficulty(value: DifficultyLike) -> DifficultySettings:
    """Turn a difficulty name, enum member or settings object into settings.

    Unknown names raise ConfigurationError so callers can refuse to start
    a session.
    """
    if isinstance(value, DifficultySettings):
        return value
    if isinstance(value, Difficulty):
        return value.settings
    try:
        return Difficulty(str(value).strip().lower()).settings
    except ValueError:
        raise ConfigurationError(f'Unknown difficulty: {value!r}') from None


def validate_settings(settings: DifficultySettings, symbols: Tuple[str, ...] = SYMBOLS) -> None:
    """Check that a board can be built for these settings."""
    if settings.pair_count < 1:
        raise ConfigurationError(f'Difficulty {settings.name!r} needs at least one pair, got {settings.pair_count}')
    if settings.pair_count > len(symbols):
        raise ConfigurationError(
            f'Difficulty {settings.name!r} needs {settings.pair_count} symbols but only {len(symbols)} are available'
        )
