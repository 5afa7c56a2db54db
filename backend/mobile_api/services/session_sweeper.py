"""Background thread that periodically removes expired sessions."""

from __future__ import annotations

import logging
import threading
import time
from typing import Optional

from mobile_api.config import settings
from mobile_api.core.database import SessionLocal
from mobile_api.services.session_service import session_service

logger = logging.getLogger(__name__)


class SessionSweeper:
    """Runs session_service.sweep() on a fixed interval, independent of traffic."""

    def __init__(self, interval_seconds: float) -> None:
        self.interval_seconds = interval_seconds
        self._thread: Optional[threading.Thread] = None
        self._stop_event = threading.Event()
        self._last_run: float = 0.0
        self._removed_total: int = 0
        self._lock = threading.Lock()

    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running():
            return
        self._stop_event.clear()
        self._thread = threading.Thread(target=self._run_loop, name="session-sweeper", daemon=True)
        self._thread.start()
        logger.info("Session sweeper started (interval %.0fs)", self.interval_seconds)

    def stop(self) -> None:
        self._stop_event.set()
        if self._thread and self._thread.is_alive():
            self._thread.join(timeout=5)
        logger.info("Session sweeper stopped")

    def status(self) -> dict:
        return {
            "running": self.is_running(),
            "last_run": self._last_run,
            "removed_total": self._removed_total,
        }

    def _run_loop(self) -> None:
        # First sweep happens one interval after startup.
        while not self._stop_event.wait(max(1.0, self.interval_seconds)):
            try:
                self.sweep_once()
            except Exception:
                logger.exception("Session cleanup error")

    def sweep_once(self) -> int:
        db = SessionLocal()
        try:
            removed = session_service.sweep(db)
        finally:
            db.close()
        with self._lock:
            self._removed_total += removed
            self._last_run = time.time()
        return removed


session_sweeper = SessionSweeper(settings.SESSION_SWEEP_INTERVAL_SECONDS)
