"""Custom exceptions for the crawl-and-analyze pipeline."""


class CrawlError(Exception):
    """Base class for errors that fail a single crawl attempt."""


class InvalidURLError(CrawlError):
    """Raised when a URL is not a syntactically valid absolute http(s) URL.

    No network call is attempted for such input.
    """

    def __init__(self, url: str, reason: str = "not an absolute http(s) URL"):
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid URL {url!r}: {reason}")


class FetchError(CrawlError):
    """Raised when an HTTP fetch fails due to network/transport errors."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"HTTP fetch failed for {url}: {original}")


class UnexpectedStatusError(CrawlError):
    """Raised when the primary fetch returns a non-success status code."""

    def __init__(self, url: str, status_code: int):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Received status code {status_code} for {url}")


class ParseError(CrawlError):
    """Raised when a fetched document cannot be parsed as HTML."""

    def __init__(self, url: str, original: Exception):
        self.url = url
        self.original = original
        super().__init__(f"Failed to parse HTML for {url}: {original}")


class PersistenceError(CrawlError):
    """Raised when a store write fails. The write is rolled back."""

    def __init__(self, operation: str, original: Exception):
        self.operation = operation
        self.original = original
        super().__init__(f"Persistence failure during {operation}: {original}")


class RequestStateError(CrawlError):
    """Raised when a request is not in the status a write requires.

    Typically the request was already finished, e.g. failed by startup recovery.
    """

    def __init__(self, request_id: int, current_status, expected_status):
        self.request_id = request_id
        self.current_status = current_status
        self.expected_status = expected_status
        super().__init__(f"Crawl request {request_id} is {current_status}, expected {expected_status}")
