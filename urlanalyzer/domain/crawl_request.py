from datetime import datetime
from typing import Optional

from .crawl_status import CrawlStatus


class CrawlRequest:
    def __init__(self, request_id: Optional[int], url: str, status: CrawlStatus = CrawlStatus.QUEUED, created_at: Optional[datetime] = None, updated_at: Optional[datetime] = None, error: Optional[str] = None):
        self.request_id = request_id
        self.url = url
        self.status = status
        self.created_at = created_at
        self.updated_at = updated_at
        self.error = error

    def to_dict(self) -> dict:
        return {
            "id": self.request_id,
            "url": self.url,
            "status": self.status.value,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
            "error": self.error,
        }

    def __repr__(self):
        return f"<CrawlRequest id={self.request_id} url={self.url} status={self.status.value}>"
