from __future__ import annotations

import random
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .difficulty import SYMBOLS, DifficultyLike, resolve_difficulty, validate_settings


@dataclass
class Card:
    """One card on the board. ``index`` is its position for the whole session."""
    index: int
    value: str
    flipped: bool = False
    matched: bool = False

    def to_dict(self, reveal: bool = False) -> dict:
        shown = reveal or self.flipped or self.matched
        return {
            'index': self.index,
            'value': self.value if shown else None,
            'flipped': self.flipped,
            'matched': self.matched,
        }


def generate(
    difficulty: DifficultyLike,
    rng: Optional[random.Random] = None,
    symbols: Tuple[str, ...] = SYMBOLS,
) -> List[Card]:
    """Deals a shuffled board with every symbol present exactly twice."""
    settings = resolve_difficulty(difficulty)
    validate_settings(settings, symbols)
    rng = rng or random.Random()
    selected = list(symbols[:settings.pair_count])
    deck = selected + selected
    rng.shuffle(deck)
    return [Card(index=i, value=value) for i, value in enumerate(deck)]
