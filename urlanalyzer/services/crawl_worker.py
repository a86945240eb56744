import logging
import threading
from typing import Callable, Optional

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from urlanalyzer.domain import CrawlRequest, CrawlResult, CrawlStatus
from urlanalyzer.exceptions import CrawlError, RequestStateError

logger = logging.getLogger(__name__)

POLL_JOB_ID = "crawl_worker_poll"


class CrawlWorker:
    """Background worker that drives crawl requests through their lifecycle.

    Every poll tick claims at most one QUEUED request (the claim itself moves
    it to PROCESSING), analyzes the page and records COMPLETED or FAILED.
    A request that was finished elsewhere in the meantime keeps its status.
    Errors of a single attempt never escape a tick.

    `stop()` sets the stop event so no new tick claims work, then waits up to
    the grace period for in-flight requests to reach a terminal state.
    """

    def __init__(
        self,
        *,
        requests_repo,
        results_repo,
        analysis_service,
        poll_interval_seconds: float = 5.0,
        max_instances: int = 1,
        shutdown_grace_seconds: float = 10.0,
        recovery=None,
        scheduler_factory: Callable[[], BackgroundScheduler] = BackgroundScheduler,
        stop_event: Optional[threading.Event] = None,
    ):
        self.requests_repo = requests_repo
        self.results_repo = results_repo
        self.analysis_service = analysis_service
        self.poll_interval_seconds = float(poll_interval_seconds)
        self.max_instances = max(1, int(max_instances))
        self.shutdown_grace_seconds = float(shutdown_grace_seconds)
        self.recovery = recovery
        self._scheduler_factory = scheduler_factory
        self._sched = None
        self._stop_event = stop_event or threading.Event()
        self._state = threading.Condition()
        self._in_flight = 0

    @property
    def stop_event(self) -> threading.Event:
        return self._stop_event

    @property
    def running(self) -> bool:
        return self._sched is not None

    @property
    def in_flight(self) -> int:
        with self._state:
            return self._in_flight

    def start(self) -> None:
        if self._sched is not None:
            return
        self._stop_event.clear()
        if self.recovery is not None:
            self.recovery.recover()
        self._sched = self._scheduler_factory()
        self._sched.start()
        self._sched.add_job(
            self.run_once,
            trigger=IntervalTrigger(seconds=self.poll_interval_seconds),
            id=POLL_JOB_ID,
            max_instances=self.max_instances,
            coalesce=True,
            replace_existing=True,
        )
        logger.info("Worker started, polling every %s seconds", self.poll_interval_seconds)

    def stop(self, grace_seconds: Optional[float] = None) -> bool:
        """Stop polling and wait for in-flight requests.

        Returns True when every in-flight request finished within the grace
        period. Requests still running afterwards are abandoned in PROCESSING;
        their results are never partially written.
        """
        grace = self.shutdown_grace_seconds if grace_seconds is None else grace_seconds
        self._stop_event.set()
        sched, self._sched = self._sched, None
        if sched is not None:
            sched.shutdown(wait=False)

        with self._state:
            finished = self._state.wait_for(lambda: self._in_flight == 0, timeout=grace)
            abandoned = self._in_flight

        if finished:
            logger.info("Worker shutdown complete")
        else:
            logger.warning("Worker shutdown grace period of %ss expired; %d request(s) abandoned mid-processing", grace, abandoned)
        return finished

    def run_once(self) -> bool:
        """Run a single poll cycle. Returns True if a request was processed."""
        with self._state:
            if self._stop_event.is_set():
                return False
            self._in_flight += 1
        try:
            try:
                request = self.requests_repo.claim_next_queued()
            except Exception:
                logger.exception("Failed to claim next queued request")
                return False
            if request is None:
                logger.debug("No queued crawl requests found")
                return False
            self.process_request(request)
            return True
        finally:
            with self._state:
                self._in_flight -= 1
                self._state.notify_all()

    def process_request(self, request: CrawlRequest) -> CrawlStatus:
        """Analyze a claimed (PROCESSING) request and record its terminal status.

        The result row and the COMPLETED status are written in one transaction.
        """
        logger.info("Processing crawl request %s (%s)", request.request_id, request.url)
        try:
            metrics = self.analysis_service.analyze_url(request.url)
            result = CrawlResult.from_metrics(request.request_id, metrics)
            self.results_repo.save_result(result)
        except RequestStateError as e:
            logger.warning("Discarding result of crawl request %s: %s", request.request_id, e)
            return CrawlStatus(e.current_status) if e.current_status else CrawlStatus.FAILED
        except CrawlError as e:
            logger.error("Crawl request %s failed for %s: %s", request.request_id, request.url, e)
            self._mark_failed(request, str(e))
            return CrawlStatus.FAILED
        except Exception as e:
            logger.exception("Unexpected error processing crawl request %s for %s", request.request_id, request.url)
            self._mark_failed(request, f"unexpected error: {e}")
            return CrawlStatus.FAILED

        request.status = CrawlStatus.COMPLETED
        logger.info("Successfully processed crawl request %s (%s)", request.request_id, request.url)
        return CrawlStatus.COMPLETED

    def _mark_failed(self, request: CrawlRequest, error: str) -> None:
        try:
            updated = self.requests_repo.update_status(request.request_id, CrawlStatus.FAILED, error=error)
        except Exception:
            logger.exception("Failed to mark request %s as failed", request.request_id)
            return
        if updated:
            request.status = CrawlStatus.FAILED
