from enum import Enum


class CrawlStatus(str, Enum):
    """Lifecycle of a crawl request.

    QUEUED -> PROCESSING -> COMPLETED | FAILED. Terminal states are absorbing.
    """

    QUEUED = "queued"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (CrawlStatus.COMPLETED, CrawlStatus.FAILED)
