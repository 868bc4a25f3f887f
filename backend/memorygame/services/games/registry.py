import random
import string
import threading
import time
from functools import partial
from typing import Dict, List, Optional, Set, Tuple

from memorygame import socketio
from .difficulty import DifficultyLike, resolve_difficulty
from .engine import Session
from .scheduler import ManualScheduler, SocketIOScheduler


def generate_game_code(taken, length=4):
    """Generate a unique, short game code."""
    while True:
        code = ''.join(random.choices(string.ascii_uppercase + string.digits, k=length))
        if code not in taken:
            return code


class SessionRegistry:
    """Holds the live session for each game code.

    Starting a session under a code that already has one closes the old
    session first, so its pending settle timer cannot touch anything.
    Session events are forwarded to the Socket.IO room ``game:<code>``.

    The registry is bounded. Each ``start`` first drops sessions idle for
    longer than ``SESSION_IDLE_TTL_SEC``, then, while ``MAX_LIVE_SESSIONS``
    are still live, evicts one: submitted sessions go first, then finished
    ones, then the least recently used.
    """

    def __init__(self, app, clock=time.monotonic):
        self.app = app
        self.clock = clock
        self._sessions: Dict[str, Session] = {}
        self._touched: Dict[str, float] = {}
        self._submitted: Set[str] = set()
        self._lock = threading.Lock()

    def start(self, difficulty: DifficultyLike, game_code: Optional[str] = None) -> Tuple[str, Session]:
        settings = resolve_difficulty(difficulty)
        with self._lock:
            code = game_code.upper() if game_code else generate_game_code(self._sessions)
            session = Session(
                settings,
                scheduler=self._scheduler_for(code),
                settle_delay=self.app.config.get('MISMATCH_SETTLE_MS', 1000) / 1000.0,
            )
            session.subscribe(partial(self._broadcast, code))
            previous = self._pop_locked(code)
            evicted = self._prune_locked()
            self._sessions[code] = session
            self._touched[code] = self.clock()
        if previous is not None:
            previous.close()
            self._log(f"[session-replace] game={code}")
        for old_code, old_session, reason in evicted:
            old_session.close()
            self._log(f"[session-evict] game={old_code} reason={reason}")
        self._log(f"[session-start] game={code} difficulty={settings.name} pairs={settings.pair_count}")
        return code, session

    def get(self, game_code: str) -> Optional[Session]:
        code = (game_code or '').upper()
        with self._lock:
            session = self._sessions.get(code)
            if session is not None:
                self._touched[code] = self.clock()
        return session

    def end(self, game_code: str) -> bool:
        code = (game_code or '').upper()
        with self._lock:
            session = self._pop_locked(code)
        if session is None:
            return False
        session.close()
        self._log(f"[session-end] game={code}")
        return True

    def mark_submitted(self, game_code: str) -> bool:
        """Record that a session's result was submitted. False if it already was."""
        code = (game_code or '').upper()
        with self._lock:
            if code in self._submitted:
                return False
            self._submitted.add(code)
            return True

    def release_submission(self, game_code: str) -> None:
        """Undo ``mark_submitted`` after the result could not be stored."""
        with self._lock:
            self._submitted.discard((game_code or '').upper())

    def __contains__(self, game_code) -> bool:
        return (game_code or '').upper() in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)

    def _pop_locked(self, code: str) -> Optional[Session]:
        self._touched.pop(code, None)
        self._submitted.discard(code)
        return self._sessions.pop(code, None)

    def _prune_locked(self) -> List[Tuple[str, Session, str]]:
        evicted = []
        ttl = self.app.config.get('SESSION_IDLE_TTL_SEC')
        if ttl:
            cutoff = self.clock() - ttl
            for code in [c for c, t in self._touched.items() if t < cutoff]:
                evicted.append((code, self._pop_locked(code), 'idle'))
        cap = self.app.config.get('MAX_LIVE_SESSIONS')
        if cap:
            while self._sessions and len(self._sessions) >= cap:
                code = min(self._sessions, key=self._eviction_rank)
                evicted.append((code, self._pop_locked(code), 'capacity'))
        return evicted

    def _eviction_rank(self, code: str):
        return (
            code not in self._submitted,
            not self._sessions[code].complete,
            self._touched.get(code, 0.0),
        )

    def _scheduler_for(self, code: str):
        # Tests drive settle timers by hand
        if self.app.config.get('TESTING') and not self.app.config.get('ENABLE_SCHEDULER_IN_TESTS'):
            return ManualScheduler()
        return SocketIOScheduler(socketio, self.app, label=f'settle game={code}')

    def _broadcast(self, code: str, event) -> None:
        payload = {'game_code': code}
        payload.update(event.to_dict())
        socketio.emit(event.name, payload, to=f"game:{code}", namespace='/ws')
        if event.name == 'session_complete':
            self._log(f"[session-complete] game={code} score={event.result.score} moves={event.result.moves}")

    def _log(self, message: str) -> None:
        try:
            self.app.logger.info(message)
        except Exception:
            pass


def get_registry(app) -> SessionRegistry:
    return app.extensions['session_registry']
