# Overview: Background day-rollover task.

"""
Periodic "is there a session for today?" check.

All state lives in the database (ensure_session_for_today is idempotent),
so a restart mid-day or a missed tick is harmless: the next run, or the
check performed at startup, catches up.
"""

from __future__ import annotations

import threading

from flask import Flask


class DayRolloverScheduler:
    """Daemon thread that runs ensure_session_for_today() every `interval_seconds`."""

    def __init__(self, app: Flask, interval_seconds: int = 60):
        self.app = app
        self.interval_seconds = max(1, int(interval_seconds))
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def run_once(self):
        """
        One rollover check inside an app context.

        Failures are logged and swallowed so the thread keeps running.
        Returns the session created, if any.
        """
        from .services import business_session_service

        with self.app.app_context():
            try:
                return business_session_service.ensure_session_for_today()
            except Exception:
                self.app.logger.exception("Day rollover check failed")
                return None

    def _worker(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            self.run_once()

    def start(self) -> threading.Thread:
        if self._thread and self._thread.is_alive():
            return self._thread
        self._stop.clear()
        self._thread = threading.Thread(target=self._worker, name="day-rollover", daemon=True)
        self._thread.start()
        self.app.logger.info("Day rollover task started (every %ss)", self.interval_seconds)
        return self._thread

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return bool(self._thread and self._thread.is_alive())
