"""Game domain services: board, match engine, scoring and timers.

This package contains the pure game logic that HTTP routes and socket
handlers drive, keeping transport concerns separated from core game
mechanics. Only ``registry`` knows about Flask and Socket.IO.
"""

from .difficulty import ConfigurationError, Difficulty, DifficultySettings, resolve_difficulty
from .board import Card, generate
from .engine import Session, SessionState
from .scoring import Result, final_score, score_for_match

__all__ = [
    'Card',
    'ConfigurationError',
    'Difficulty',
    'DifficultySettings',
    'Result',
    'Session',
    'SessionState',
    'final_score',
    'generate',
    'resolve_difficulty',
    'score_for_match',
]
