"""Elapsed-Time Ticker: a cancellable one-second periodic task."""

import logging
import threading
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ElapsedTimeTicker:
    """
    Calls ``callback`` once per ``interval`` seconds on a background thread
    until stopped.

    Stopping only signals the thread; a callback already in flight may still
    run, so receivers must drop ticks that arrive after they stopped the
    ticker (see QuizEngine._on_tick).
    """

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self._stop_event = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._thread is not None and not self._stop_event.is_set()

    def start(self):
        if self.running:
            return
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="elapsed-ticker", daemon=True
        )
        self._thread.start()
        logger.debug("Ticker started")

    def _run(self, stop_event: threading.Event):
        while not stop_event.wait(self.interval):
            try:
                self.callback()
            except Exception as e:
                logger.error(f"Tick callback failed: {e}")

    def stop(self):
        if self._thread is None:
            return
        self._stop_event.set()
        self._thread = None
        logger.debug("Ticker stopped")


class ManualTicker:
    """Ticker that never fires on its own; tests and scripted runs call ``fire()``."""

    def __init__(self, callback: Callable[[], None], interval: float = 1.0):
        self.callback = callback
        self.interval = interval
        self.running = False

    def start(self):
        self.running = True

    def stop(self):
        self.running = False

    def fire(self, times: int = 1):
        for _ in range(times):
            if self.running:
                self.callback()
