"""Domain objects for the URL analyzer - explicit re-exports to satisfy linters."""
from .crawl_status import CrawlStatus as CrawlStatus
from .crawl_request import CrawlRequest as CrawlRequest
from .crawl_metrics import CrawlMetrics as CrawlMetrics
from .crawl_result import CrawlResult as CrawlResult
from .http_response import HttpResponse as HttpResponse

__all__ = ["CrawlStatus", "CrawlRequest", "CrawlMetrics", "CrawlResult", "HttpResponse"]
