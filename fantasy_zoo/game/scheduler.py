"""Fixed-period driver for the zoo engine"""
import logging
import threading
from contextlib import contextmanager
from typing import Callable, List, Optional

from fantasy_zoo.game.engine import ZooEngine, StepReport

logger = logging.getLogger(__name__)

StepListener = Callable[[StepReport], None]


class GameLoop:
    """
    Runs `engine.step()` once per period on a background thread.

    start/stop are idempotent: starting a running loop or stopping a stopped
    one only logs a warning. A step is never started while the previous step
    (or its listeners) is still in flight; such ticks are skipped.
    """

    def __init__(self, engine: ZooEngine, period_ms: Optional[int] = None):
        self.engine = engine
        self.period_ms = period_ms if period_ms is not None else engine.config["TICK_MS"]
        self.listeners: List[StepListener] = []
        self.skipped_ticks = 0
        self._in_flight = threading.Lock()
        self._stop_event: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None

    @property
    def running(self) -> bool:
        return self._alive() and not self._stop_event.is_set()

    def _alive(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def add_listener(self, listener: StepListener):
        """Call `listener(report)` after every step (rendering, saving, ...)"""
        self.listeners.append(listener)

    def start(self) -> bool:
        """
        Start ticking. Refused while a loop is running or while a stopped
        loop's thread is still finishing its last step.
        """
        if self.running:
            logger.warning("Game loop already running; start ignored")
            return False
        if self._alive():
            logger.warning("Previous game loop still finishing its step; start ignored")
            return False
        # Each thread watches only its own stop signal
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self._run, args=(self._stop_event,), name="zoo-game-loop", daemon=True
        )
        self._thread.start()
        logger.info(f"Game loop started (period {self.period_ms} ms)")
        return True

    def stop(self, timeout: Optional[float] = None) -> bool:
        """
        Signal the loop to stop and wait up to `timeout` seconds for it.

        If the thread outlives the timeout it is kept, so `start` can tell
        that it is still finishing.
        """
        if not self.running:
            logger.warning("Game loop not running; stop ignored")
            return False
        self._stop_event.set()
        if self._thread is not threading.current_thread():
            self._thread.join(timeout)
        if self._thread.is_alive():
            logger.warning("Game loop stop requested; last step still in flight")
        else:
            self._thread = None
            logger.info("Game loop stopped")
        return True

    def tick_once(self, now: Optional[int] = None) -> Optional[StepReport]:
        """
        Run one step plus listeners, unless a step is already in flight.

        Returns the step report, or None when the tick was skipped.
        """
        if not self._in_flight.acquire(blocking=False):
            self.skipped_ticks += 1
            logger.warning("Previous step still in flight; tick skipped")
            return None
        try:
            report = self.engine.step(now)
            for listener in list(self.listeners):
                try:
                    listener(report)
                except Exception:
                    logger.exception(f"Step listener {listener!r} failed")
            return report
        finally:
            self._in_flight.release()

    @contextmanager
    def exclusive(self):
        """Hold off steps while a user action mutates the state"""
        with self._in_flight:
            yield self.engine

    def _run(self, stop_event: threading.Event):
        interval = self.period_ms / 1000.0
        while not stop_event.wait(interval):
            self.tick_once()
