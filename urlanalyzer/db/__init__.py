from .engine import make_engine, init_schema
from .models import Base, CrawlRequest, CrawlResult

__all__ = [
    "make_engine",
    "init_schema",
    "Base",
    "CrawlRequest",
    "CrawlResult",
]
