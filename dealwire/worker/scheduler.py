import threading
import time
from collections.abc import Callable

from dealwire.config.settings import Settings
from dealwire.database.models import DocumentStatus
from dealwire.database.repositories.document_repository import DocumentRepository
from dealwire.logging.logger import Log
from dealwire.pipeline.claim import ClaimController
from dealwire.worker.job_runner import DocumentRunner


class Scheduler:
    """Poll loop: sweep stale -> process NEW -> retry FAILED -> sleep.

    Owns no global state. ``start()`` runs the loop in a background thread and
    ``stop()`` ends it; the pair can be called repeatedly.
    """

    def __init__(
        self,
        doc_repo: DocumentRepository,
        claims: ClaimController,
        runner: DocumentRunner,
        settings: Settings,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._doc_repo = doc_repo
        self._claims = claims
        self._runner = runner
        self._settings = settings
        self._clock = clock
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._last_retry_at: float | None = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.is_running:
            return
        # Each run gets its own event; a thread left behind by a timed-out
        # stop() keeps the old, already set one.
        self._stop_event = threading.Event()
        self._thread = threading.Thread(
            target=self.run,
            kwargs={"stop_event": self._stop_event},
            name="dealwire-scheduler",
            daemon=True,
        )
        self._thread.start()

    def stop(self, timeout: float | None = None) -> None:
        self._stop_event.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        Log.info("Scheduler stopped")

    def run(
        self,
        max_cycles: int | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        """Main poll loop. Runs until stop() or interrupted.

        If max_cycles is set, stop after that many cycles (for testing).
        """
        stop_event = stop_event or self._stop_event
        Log.info("Scheduler started, polling for documents")
        cycles = 0
        try:
            while not stop_event.is_set():
                self.run_cycle()
                cycles += 1
                if max_cycles is not None and cycles >= max_cycles:
                    break
                stop_event.wait(self._settings.scheduler_poll_interval_seconds)
        except KeyboardInterrupt:
            Log.info("Scheduler shutting down gracefully")

    def run_cycle(self) -> int:
        """Run one sweep/process/retry pass. Returns the number of attempts run."""
        try:
            swept = self._claims.sweep_stale(self._settings.stale_processing_seconds)
            attempts = self._process_batch(
                self._doc_repo.find_claimable_ids(
                    DocumentStatus.NEW, self._settings.scheduler_batch_size
                )
            )
            if self._retry_due():
                attempts += self._process_batch(
                    self._doc_repo.find_claimable_ids(
                        DocumentStatus.FAILED,
                        self._settings.retry_batch_size,
                        max_attempts=self._settings.max_auto_attempts,
                    )
                )
        except Exception as exc:
            Log.warning(f"Database error, will retry: {exc}")
            return 0
        if attempts or swept:
            Log.info("Scheduler cycle finished", attempts=attempts, swept=len(swept))
        return attempts

    def _process_batch(self, document_ids: list[str]) -> int:
        return sum(1 for document_id in document_ids if self._runner.run(document_id))

    def _retry_due(self) -> bool:
        now = self._clock()
        if self._last_retry_at is None:
            self._last_retry_at = now
            return False
        if now - self._last_retry_at < self._settings.retry_interval_seconds:
            return False
        self._last_retry_at = now
        return True
