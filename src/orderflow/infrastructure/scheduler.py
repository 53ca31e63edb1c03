"""Background scheduler for periodic shipment reconciliation."""

from __future__ import annotations

import threading

import structlog

from orderflow.application.reconcile_shipments import ReconcileShipmentsHandler
from orderflow.domain.exceptions import DomainException

logger = structlog.get_logger(__name__)


class ReconciliationScheduler:
    """Runs ``ReconcileShipmentsHandler`` every ``interval`` seconds.

    The first run happens immediately.  ``stop()`` wakes the thread and
    waits for the run in progress to finish.
    """

    def __init__(
        self,
        reconcile: ReconcileShipmentsHandler,
        interval: float = 12.0,
        limit: int = 100,
    ) -> None:
        self._reconcile = reconcile
        self._interval = interval
        self._limit = limit
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None
        self.runs = 0

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._loop, name="shipment-reconciler", daemon=True
        )
        self._thread.start()
        logger.info("reconciler_started", interval=self._interval, limit=self._limit)

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("reconciler_stopped", runs=self.runs)

    def wait(self, timeout: float | None = None) -> None:
        """Block until the thread exits or ``timeout`` elapses."""
        thread = self._thread
        if thread is not None:
            thread.join(timeout)

    def run_once(self) -> None:
        try:
            self._reconcile.handle(self._limit)
        except DomainException as exc:
            logger.error("reconciliation_run_failed", error=str(exc))
        except Exception:
            # Keep the thread alive; the next tick retries.
            logger.exception("reconciliation_run_crashed")
        finally:
            self.runs += 1

    def _loop(self) -> None:
        while not self._stop.is_set():
            self.run_once()
            self._stop.wait(self._interval)
