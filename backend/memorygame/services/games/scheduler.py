"""Cancellable delayed tasks for the mismatch settle timer.

A scheduler is any callable ``scheduler(delay, callback) -> TimerHandle``.
The handle's ``cancel()`` guarantees the callback will not run afterwards.
"""

import threading
import time
from typing import Callable, List, Optional, Tuple


class TimerHandle:
    def __init__(self, callback: Callable[[], None]):
        self._callback = callback
        self._lock = threading.Lock()
        self.cancelled = False
        self.fired = False

    @property
    def pending(self) -> bool:
        return not (self.cancelled or self.fired)

    def cancel(self) -> None:
        with self._lock:
            self.cancelled = True

    def fire(self) -> bool:
        """Run the callback unless cancelled or already run. Returns True if it ran."""
        with self._lock:
            if not self.pending:
                return False
            self.fired = True
        self._callback()
        return True


class ThreadingScheduler:
    """Runs callbacks on ``threading.Timer`` threads."""

    def __call__(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        timer = threading.Timer(max(0.0, delay), handle.fire)
        timer.daemon = True
        timer.start()
        return handle


class ManualScheduler:
    """Keeps timers until ``run_pending`` is called. Used under test."""

    def __init__(self):
        self.scheduled: List[Tuple[float, TimerHandle]] = []

    def __call__(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        self.scheduled.append((delay, handle))
        return handle

    @property
    def pending(self) -> List[TimerHandle]:
        return [h for _, h in self.scheduled if h.pending]

    def run_pending(self) -> int:
        ran = 0
        due, self.scheduled = self.scheduled, []
        for _, handle in due:
            if handle.fire():
                ran += 1
        return ran


class SocketIOScheduler:
    """Runs callbacks in Socket.IO background tasks.

    The worker sleeps for the delay, then fires the handle; a handle
    cancelled while sleeping is skipped.
    """

    def __init__(self, socketio, app=None, label: Optional[str] = None):
        self.socketio = socketio
        self.app = app
        self.label = label or 'settle'

    def __call__(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        handle = TimerHandle(callback)
        deadline = time.time() + max(0.0, delay)
        self._log(f"[timer-set] task={self.label} delay={delay:.2f}s deadline={deadline:.3f}")

        def _worker():
            sleep_for = max(0.0, deadline - time.time())
            if sleep_for:
                self.socketio.sleep(sleep_for)
            if not handle.pending:
                self._log(f"[timer-abort] task={self.label} cancelled")
                return
            self._log(f"[timer-fire] task={self.label}")
            if self.app is not None:
                with self.app.app_context():
                    handle.fire()
            else:
                handle.fire()

        self.socketio.start_background_task(_worker)
        return handle

    def _log(self, message: str) -> None:
        if self.app is None:
            return
        try:
            self.app.logger.info(message)
        except Exception:
            pass
