from __future__ import annotations

import math
import random
import threading
import time
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

from .board import Card, generate
from .difficulty import SYMBOLS, DifficultyLike, resolve_difficulty
from .events import CardFlipped, CardRef, MatchFound, MismatchFound, MismatchSettled, SessionComplete
from .scheduler import ThreadingScheduler, TimerHandle
from .scoring import Result, efficiency_percent, final_score, format_elapsed, score_for_match

Listener = Callable[[Any], None]


class SessionState(str, Enum):
    IDLE = 'idle'
    ONE_FLIPPED = 'one_flipped'
    EVALUATING = 'evaluating'
    COMPLETE = 'complete'


class Session:
    """A single memory game in progress.

    The only input is ``flip(index)``. Flips that break a rule (card
    already matched or face-up, two cards awaiting evaluation, finished
    game) are ignored. A mismatch keeps both cards face-up until the settle
    timer fires or ``settle()`` is called; until then every flip is
    rejected because the flip window is still full.
    """

    def __init__(
        self,
        difficulty: DifficultyLike,
        rng: Optional[random.Random] = None,
        clock: Callable[[], float] = time.time,
        scheduler=None,
        settle_delay: float = 1.0,
        symbols: Tuple[str, ...] = SYMBOLS,
    ):
        self.settings = resolve_difficulty(difficulty)
        self.cards: List[Card] = generate(self.settings, rng=rng, symbols=symbols)
        self.total_pairs = self.settings.pair_count
        self.flip_window: List[int] = []
        self.matched_pairs = 0
        self.moves = 0
        self.score = 0
        self.state = SessionState.IDLE
        self.result: Optional[Result] = None
        self.closed = False
        self.clock = clock
        self.start_time = clock()
        self.scheduler = scheduler or ThreadingScheduler()
        self.settle_delay = settle_delay
        self._pending: Optional[TimerHandle] = None
        self._pending_token: Optional[object] = None
        self._listeners: List[Listener] = []
        self._lock = threading.RLock()

    @property
    def difficulty(self) -> str:
        return self.settings.name

    @property
    def complete(self) -> bool:
        return self.state is SessionState.COMPLETE

    @property
    def settle_pending(self) -> bool:
        return self._pending is not None

    def subscribe(self, listener: Listener) -> Listener:
        self._listeners.append(listener)
        return listener

    def unsubscribe(self, listener: Listener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def can_flip(self, index: Any) -> bool:
        if self.closed or self.complete:
            return False
        if isinstance(index, bool) or not isinstance(index, int):
            return False
        if not 0 <= index < len(self.cards):
            return False
        card = self.cards[index]
        return not (card.matched or card.flipped) and len(self.flip_window) < 2

    def flip(self, index: Any) -> List[Any]:
        with self._lock:
            if not self.can_flip(index):
                return []
            card = self.cards[index]
            card.flipped = True
            self.flip_window.append(index)
            events: List[Any] = [CardFlipped(index=card.index, value=card.value)]
            if len(self.flip_window) == 1:
                self.state = SessionState.ONE_FLIPPED
            else:
                # One move per evaluated pair of flips
                self.moves += 1
                self.state = SessionState.EVALUATING
                events.extend(self._evaluate())
            self._publish(events)
            return events

    def settle(self) -> List[Any]:
        """Flips a pending mismatch back face-down right away."""
        with self._lock:
            if self._pending is None:
                return []
            self._pending.cancel()
            events = self._resolve_mismatch()
            self._publish(events)
            return events

    def close(self) -> None:
        """Ends the session. A pending settle timer no longer has any effect."""
        with self._lock:
            self.closed = True
            if self._pending is not None:
                self._pending.cancel()
            self._pending = None
            self._pending_token = None

    def elapsed_seconds(self) -> int:
        if self.result is not None:
            return self.result.elapsed_seconds
        return max(0, int(math.floor(self.clock() - self.start_time)))

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            elapsed = self.elapsed_seconds()
            return {
                'state': self.state.value,
                'difficulty': self.difficulty,
                'cards': [c.to_dict(reveal=self.complete) for c in self.cards],
                'flip_window': list(self.flip_window),
                'moves': self.moves,
                'matched_pairs': self.matched_pairs,
                'total_pairs': self.total_pairs,
                'score': self.score,
                'efficiency_percent': efficiency_percent(self.matched_pairs, self.moves),
                'elapsed_seconds': elapsed,
                'elapsed_time': format_elapsed(elapsed),
                'settle_pending': self.settle_pending,
                'closed': self.closed,
                'result': self.result.to_dict() if self.result else None,
                'performance': self.result.performance if self.result else None,
            }

    def _evaluate(self) -> List[Any]:
        first, second = (self.cards[i] for i in self.flip_window)
        refs = (CardRef(first.index, first.value), CardRef(second.index, second.value))
        if first.value != second.value:
            token = object()
            self._pending_token = token
            self._pending = self.scheduler(self.settle_delay, lambda: self._on_settle_timer(token))
            return [MismatchFound(*refs)]

        first.matched = second.matched = True
        self.flip_window = []
        self.matched_pairs += 1
        points = score_for_match(self.settings, self.total_pairs, self.moves)
        self.score += points
        events: List[Any] = [MatchFound(*refs, points=points, score=self.score)]
        if self.matched_pairs == self.total_pairs:
            self.state = SessionState.COMPLETE
            self.result = final_score(self)
            events.append(SessionComplete(self.result))
        else:
            self.state = SessionState.IDLE
        return events

    def _on_settle_timer(self, token: object) -> None:
        with self._lock:
            if self.closed or token is not self._pending_token:
                return
            events = self._resolve_mismatch()
            self._publish(events)

    def _resolve_mismatch(self) -> List[Any]:
        first, second = (self.cards[i] for i in self.flip_window)
        first.flipped = second.flipped = False
        self.flip_window = []
        self._pending = None
        self._pending_token = None
        self.state = SessionState.IDLE
        return [MismatchSettled(CardRef(first.index, first.value), CardRef(second.index, second.value))]

    def _publish(self, events: List[Any]) -> None:
        for event in events:
            for listener in list(self._listeners):
                listener(event)
