from __future__ import annotations

import logging
from typing import Protocol
from urllib.parse import urlsplit

from urlanalyzer.exceptions import InvalidURLError, UnexpectedStatusError
from urlanalyzer.services.http_service import HttpService

logger = logging.getLogger(__name__)

SUPPORTED_SCHEMES = ("http", "https")


class Fetcher(Protocol):
    """Fetch a URL and return the raw response body.

    Implementations raise InvalidURLError, FetchError or UnexpectedStatusError.
    """

    def fetch(self, url: str) -> bytes: ...


def validate_url(url: str) -> str:
    """Return `url` unchanged if it is an absolute http(s) URL, else raise InvalidURLError."""
    if not isinstance(url, str) or not url.strip():
        raise InvalidURLError(str(url), "empty URL")
    if url != url.strip() or any(ch.isspace() for ch in url):
        raise InvalidURLError(url, "URL contains whitespace")
    try:
        parts = urlsplit(url)
        host = parts.hostname
    except ValueError as e:
        raise InvalidURLError(url, str(e)) from e
    if parts.scheme.lower() not in SUPPORTED_SCHEMES:
        raise InvalidURLError(url, "scheme must be http or https")
    if not host:
        raise InvalidURLError(url, "missing host")
    return url


class PageFetcher:
    """Single-shot GET of a target page. No retries; those belong to the caller."""

    def __init__(self, http_service: HttpService):
        self._http_service = http_service

    def fetch(self, url: str) -> bytes:
        validate_url(url)
        response = self._http_service.fetch(url)
        if response.status_code < 200 or response.status_code >= 300:
            raise UnexpectedStatusError(url, response.status_code)
        logger.debug("Fetched %s -> status %s, %d bytes", url, response.status_code, len(response.content))
        return response.content
