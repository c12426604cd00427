"""Background scheduler running the production tick of an island."""
from __future__ import annotations

import asyncio
import logging
import threading
from typing import Optional

from . import config
from .facade import GameFacade, MutationResult


logger = logging.getLogger(__name__)


class ProductionScheduler:
    """Calls :meth:`GameFacade.tick` every ``interval`` seconds.

    The loop runs on a daemon thread driving its own asyncio event loop. Only
    one loop exists per scheduler, so ticks never overlap.
    """

    def __init__(self, facade: GameFacade, interval: float = config.PRODUCTION_INTERVAL_SEC) -> None:
        if interval <= 0:
            raise ValueError("Production interval must be positive")
        self.facade = facade
        self.interval = float(interval)
        self._thread: Optional[threading.Thread] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._task: Optional[asyncio.Task] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()

    # ------------------------------------------------------------------
    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def run_once(self) -> MutationResult:
        return self.facade.tick()

    async def _run_tick_loop(self) -> None:
        while not self._stopped.is_set():
            await asyncio.sleep(self.interval)
            if self._stopped.is_set():
                break
            try:
                self.run_once()
            except Exception:
                logger.exception("Production tick failed")

    def start(self) -> None:
        """Start the tick loop if it is not already running."""

        with self._lock:
            if self.running:
                return
            self._stopped.clear()

            def runner() -> None:
                loop = asyncio.new_event_loop()
                # registered under the lock so stop() either sees the task or
                # sets the flag before the loop's first check
                with self._lock:
                    self._loop = loop
                    task = self._task = loop.create_task(self._run_tick_loop())
                try:
                    loop.run_until_complete(task)
                except asyncio.CancelledError:
                    pass
                finally:
                    with self._lock:
                        self._loop = None
                        self._task = None
                    loop.close()

            thread = threading.Thread(target=runner, name="island-production-tick", daemon=True)
            thread.start()
            self._thread = thread
            logger.info("Production tick loop started (every %.1fs)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        with self._lock:
            self._stopped.set()
            loop, task, thread = self._loop, self._task, self._thread
            self._thread = None
            if loop is not None and task is not None:
                try:
                    loop.call_soon_threadsafe(task.cancel)
                except RuntimeError:
                    # loop closed between the read and the call
                    pass
        if thread is not None:
            thread.join(timeout)
            logger.info("Production tick loop stopped")
