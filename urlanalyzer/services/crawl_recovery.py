import logging
from typing import Optional

logger = logging.getLogger(__name__)

RECOVERY_MODES = ("fail", "ignore")


class CrawlRequestRecovery:
    """Startup handling for requests left PROCESSING by a forced shutdown.

    Mode "fail" moves them to FAILED; "ignore" leaves them untouched.
    Only requests not updated for `older_than_seconds` are considered stale,
    so another live worker keeps its in-flight requests. Requests are never
    re-queued.
    """

    def __init__(
        self,
        *,
        requests_repo,
        mode: str = "fail",
        older_than_seconds: Optional[float] = 300.0,
        message: str = "abandoned mid-processing on shutdown",
    ):
        mode = (mode or "fail").strip().lower()
        if mode not in RECOVERY_MODES:
            logger.warning("Unknown recovery mode %r, using 'fail'", mode)
            mode = "fail"
        self.requests_repo = requests_repo
        self.mode = mode
        self.older_than_seconds = older_than_seconds
        self.message = message

    def recover(self) -> int:
        if self.mode == "ignore":
            logger.info("Recovery: mode=ignore, leaving stale processing requests as-is")
            return 0
        try:
            count = self.requests_repo.fail_stale_processing(self.message, older_than_seconds=self.older_than_seconds)
        except Exception:
            logger.exception("Recovery: failed marking stale processing requests")
            return 0
        if count:
            logger.warning("Recovery: marked %d stale processing request(s) as failed", count)
        else:
            logger.debug("Recovery: no stale processing requests")
        return count
