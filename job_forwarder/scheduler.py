from __future__ import annotations

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)


class SingleFlightScheduler:
    """Re-runs ``job`` on a fixed interval, never letting two runs overlap."""

    def __init__(self, job: Callable[[], object], interval_seconds: float):
        self.job = job
        self.interval_seconds = interval_seconds
        self._lock = threading.Lock()

    @property
    def in_flight(self) -> bool:
        return self._lock.locked()

    def run_once(self) -> bool:
        """Run the job unless a previous run is still going; returns whether it ran."""
        if not self._lock.acquire(blocking=False):
            logger.warning("Previous scan still in progress, skipping this tick")
            return False
        try:
            self.job()
        finally:
            self._lock.release()
        return True

    def run_forever(self, stop_event: threading.Event | None = None) -> None:
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            self.run_once()
            if stop_event.wait(self.interval_seconds):
                break
