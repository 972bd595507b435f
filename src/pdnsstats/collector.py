"""
Collection cycles and the background thread that schedules them.
"""

from __future__ import annotations

import logging
import threading
import time
from typing import Dict

from .config.config_parser import CollectorSettings
from .submit import Submitter
from .targets import TargetRegistry

logger = logging.getLogger(__name__)


class Collector:
    """
    Bundle of everything one collection cycle needs.

    Inputs (constructor):
        registry: TargetRegistry with the configured targets.
        submitter: Submitter wired to the dispatch backend.
        settings: CollectorSettings (interval, timeout, local socket path).

    Outputs:
        Collector instance; run_cycle() polls every target once.

    Example:
        >>> collector = Collector(registry, submitter, CollectorSettings())
        >>> results = collector.run_cycle()
    """

    def __init__(
        self,
        registry: TargetRegistry,
        submitter: Submitter,
        settings: CollectorSettings,
    ) -> None:
        self.registry = registry
        self.submitter = submitter
        self.settings = settings
        self._cycle_lock = threading.Lock()

    def run_cycle(self) -> Dict[str, bool]:
        """
        Poll every target once.

        Outputs:
            dict mapping "kind/instance" to success, as returned by
            TargetRegistry.collect_all().

        Cycles never overlap; a second caller waits for the running cycle.
        """
        with self._cycle_lock:
            start = time.monotonic()
            results = self.registry.collect_all(
                self.submitter,
                local_path=self.settings.local_socket,
                timeout_ms=self.settings.timeout_ms or None,
            )
            failed = sum(1 for ok in results.values() if not ok)
            logger.debug(
                "Collection cycle finished in %.3fs: %d targets, %d failed",
                time.monotonic() - start,
                len(results),
                failed,
            )
            return results


class Poller(threading.Thread):
    """
    Background daemon thread running collection cycles periodically.

    Inputs (constructor):
        collector: Collector to run.
        interval_seconds: Seconds between cycle starts (defaults to the
            collector's configured interval).

    Outputs:
        Poller thread instance (call start() to begin)

    The first cycle runs immediately. trigger() requests an extra cycle
    without waiting for the interval; stop() ends the loop.

    Example:
        >>> poller = Poller(collector)
        >>> poller.start()
        >>> poller.stop()
    """

    def __init__(self, collector: Collector, interval_seconds: float | None = None) -> None:
        super().__init__(daemon=True, name="Poller")
        self.collector = collector
        if interval_seconds is None:
            interval_seconds = collector.settings.interval
        self.interval_seconds = max(0.01, float(interval_seconds))
        self._stop_event = threading.Event()
        self._wake_event = threading.Event()
        self.cycles = 0

    def run(self) -> None:
        """
        Poller main loop (called by start()).

        Runs a cycle, then waits for the interval, a trigger(), or stop().
        """
        while not self._stop_event.is_set():
            try:
                self.collector.run_cycle()
            except Exception as e:  # pragma: no cover
                logger.error("Poller error: %s", e, exc_info=True)
            self.cycles += 1
            self._wake_event.wait(self.interval_seconds)
            self._wake_event.clear()

    def trigger(self) -> None:
        """Request an immediate collection cycle."""
        self._wake_event.set()

    def stop(self, timeout: float = 5.0) -> None:
        """
        Signal the poller to stop and wait for the thread to exit.

        Inputs:
            timeout: Maximum seconds to wait for thread join (default 5.0)
        """
        self._stop_event.set()
        self._wake_event.set()
        if self.is_alive():
            self.join(timeout=timeout)
