"""Periodic poll loop.

One daemon thread, one cycle at a time. A failed fetch is logged and the previous result
stays published; retry happens naturally on the next tick (no backoff here).
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from podmon.core.errors import MonitorError
from podmon.core.models import CycleResult
from podmon.service import MonitorService

logger = logging.getLogger(__name__)


class Poller:
    def __init__(
        self,
        service: MonitorService,
        *,
        interval: float,
        namespace: Optional[str] = None,
        on_result: Optional[Callable[[CycleResult], None]] = None,
    ) -> None:
        if interval <= 0:
            raise ValueError("interval must be positive")
        self.service = service
        self.interval = interval
        self.namespace = namespace
        self.on_result = on_result
        self.failures = 0
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def tick(self) -> Optional[CycleResult]:
        try:
            result = self.service.refresh(self.namespace)
        except MonitorError as e:
            self.failures += 1
            logger.warning("Poll cycle failed (%s): %s", e.code, e)
            return None
        except Exception:
            self.failures += 1
            logger.exception("Poll cycle crashed")
            return None
        if self.on_result is not None:
            self.on_result(result)
        return result

    def _run(self) -> None:
        while not self._stop.is_set():
            self.tick()
            self._stop.wait(self.interval)

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="podmon-poller", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def run_forever(self) -> None:
        """Blocking variant for the CLI `--watch` mode; returns after `stop()` or Ctrl-C."""
        try:
            self._run()
        except KeyboardInterrupt:
            self._stop.set()
