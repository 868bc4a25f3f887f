from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Any, Dict, Optional

from .difficulty import DifficultyLike, resolve_difficulty

if TYPE_CHECKING:
    from .engine import Session


# (minimum efficiency percent, rating), best first
PERFORMANCE_RATINGS = (
    (90, 'perfect'),
    (75, 'excellent'),
    (60, 'good'),
    (40, 'average'),
)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class Result:
    """Final snapshot of a completed session, handed to ranking and history."""
    score: int
    moves: int
    elapsed_seconds: int
    difficulty: str
    efficiency_percent: int
    date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def elapsed_time(self) -> str:
        return format_elapsed(self.elapsed_seconds)

    @property
    def performance(self) -> str:
        return performance_rating(self.efficiency_percent)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'score': self.score,
            'moves': self.moves,
            'elapsedTime': self.elapsed_time,
            'difficulty': self.difficulty,
            'efficiencyPercent': self.efficiency_percent,
            'date': self.date.isoformat(),
        }


def score_for_match(difficulty: DifficultyLike, total_pairs: int, moves_so_far: int) -> int:
    """Points awarded for one match.

    Efficiency is the minimum possible move count over moves so far,
    kept within [0.5, 1.0]; a match on pace pays base score times the
    difficulty multiplier. The 1.0 ceiling departs from the plain
    max(0.5, 2N / moves) ratio, which would pay an early first match
    several times over; with it a perfect easy game totals 650.
    """
    if moves_so_far < 1:
        raise ValueError('A match requires at least one move')
    settings = resolve_difficulty(difficulty)
    efficiency = min(1.0, max(0.5, (total_pairs * 2) / moves_so_far))
    return _round_half_up(settings.base_score * efficiency * settings.multiplier)


def efficiency_percent(matched_pairs: int, moves: int) -> int:
    return _round_half_up(matched_pairs / max(1, moves) * 100)


def time_bonus(difficulty: DifficultyLike, elapsed_seconds: int) -> int:
    settings = resolve_difficulty(difficulty)
    return max(0, settings.time_bonus_budget - elapsed_seconds // 10)


def perfect_bonus(difficulty: DifficultyLike, total_pairs: int, moves: int) -> int:
    settings = resolve_difficulty(difficulty)
    return settings.perfect_bonus if moves <= total_pairs * 2 else 0


def final_score(session: 'Session', now: Optional[float] = None) -> Result:
    """Builds the Result for a session: running score plus time and perfect bonuses."""
    if now is None:
        now = session.clock()
    elapsed = max(0, int(math.floor(now - session.start_time)))
    settings = session.settings
    total = (
        session.score
        + time_bonus(settings, elapsed)
        + perfect_bonus(settings, session.total_pairs, session.moves)
    )
    return Result(
        score=max(0, total),
        moves=session.moves,
        elapsed_seconds=elapsed,
        difficulty=settings.name,
        efficiency_percent=efficiency_percent(session.matched_pairs, session.moves),
    )


def format_elapsed(seconds: int) -> str:
    """Formats whole seconds as MM:SS."""
    seconds = max(0, int(seconds))
    return f"{seconds // 60:02d}:{seconds % 60:02d}"


def parse_elapsed(text: str) -> int:
    """Inverse of format_elapsed. Raises ValueError on malformed input."""
    minutes_s, sep, seconds_s = str(text).strip().partition(':')
    if not sep or not minutes_s.isdigit() or not seconds_s.isdigit() or len(seconds_s) != 2:
        raise ValueError(f'Invalid time {text!r}, expected MM:SS')
    seconds = int(seconds_s)
    if seconds >= 60:
        raise ValueError(f'Invalid time {text!r}, seconds must be below 60')
    return int(minutes_s) * 60 + seconds


def performance_rating(efficiency: int) -> str:
    for threshold, label in PERFORMANCE_RATINGS:
        if efficiency >= threshold:
            return label
    return 'practice'
