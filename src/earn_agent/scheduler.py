from __future__ import annotations

import logging
import threading
from typing import Any, Callable

logger = logging.getLogger(__name__)


class ExecutionGate:
    """Single-slot gate: ``try_acquire`` either takes the slot or returns False."""

    def __init__(self) -> None:
        self._lock = threading.Lock()

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    def try_acquire(self) -> bool:
        return self._lock.acquire(blocking=False)

    def release(self) -> None:
        self._lock.release()


class AgentScheduler:
    """Routes timer ticks and operator messages through one ExecutionGate.

    Triggers that arrive while a cycle is running are dropped, not queued.
    """

    def __init__(
        self,
        check: Callable[[], Any],
        chat: Callable[[str], Any],
        interval_seconds: float,
        gate: ExecutionGate | None = None,
    ) -> None:
        self.check = check
        self.chat = chat
        self.interval_seconds = interval_seconds
        self.gate = gate or ExecutionGate()
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_exclusive(self, label: str, fn: Callable[[], Any]) -> bool:
        if not self.gate.try_acquire():
            logger.info("Earn Agent is busy; skipping %s...", label)
            return False
        try:
            fn()
        except Exception:
            logger.exception("%s error", label)
        finally:
            self.gate.release()
        return True

    def tick(self) -> bool:
        return self.run_exclusive("interval check", self.check)

    def submit_message(self, message: str) -> bool:
        return self.run_exclusive("chat", lambda: self.chat(message))

    def start(self) -> None:
        if self._thread is not None:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run_timer, name="earn-agent-timer", daemon=True)
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _run_timer(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.tick()
