"""Crawl result data model."""
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Optional

from .crawl_metrics import CrawlMetrics


@dataclass(frozen=True)
class CrawlResult:
    """Persisted outcome of one successful crawl.

    Immutable once built; `result_id` and `created_at` are filled in by the
    repository when the row is stored.
    """

    crawl_request_id: int
    html_version: str
    title: str
    h1_count: int
    h2_count: int
    h3_count: int
    h4_count: int
    h5_count: int
    h6_count: int
    internal_links: int
    external_links: int
    broken_links: int
    has_login_form: bool
    processing_time: float
    result_id: Optional[int] = None
    created_at: Optional[datetime] = None
    url: Optional[str] = None
    """URL of the owning request; only populated on reads."""

    @classmethod
    def from_metrics(cls, crawl_request_id: int, metrics: CrawlMetrics) -> "CrawlResult":
        return cls(
            crawl_request_id=crawl_request_id,
            html_version=metrics.html_version,
            title=metrics.title,
            h1_count=metrics.h1_count,
            h2_count=metrics.h2_count,
            h3_count=metrics.h3_count,
            h4_count=metrics.h4_count,
            h5_count=metrics.h5_count,
            h6_count=metrics.h6_count,
            internal_links=metrics.internal_links,
            external_links=metrics.external_links,
            broken_links=min(metrics.broken_links, metrics.external_links),
            has_login_form=metrics.has_login_form,
            processing_time=max(metrics.processing_time, 0.0),
        )

    def to_dict(self) -> dict:
        return asdict(self)
