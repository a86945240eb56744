from .crawl_requests import CrawlRequestsRepository
from .crawl_results import CrawlResultsRepository

__all__ = ["CrawlRequestsRepository", "CrawlResultsRepository"]
