import requests
from typing import Callable, Optional

from urlanalyzer.domain.http_response import HttpResponse
from urlanalyzer.exceptions import FetchError


class HttpService:
    """
    HTTP client wrapper for page fetches and link probes.

    Requires the GET (and optionally HEAD) callables for dependency injection.
    This enables easy testing without patching and allows swapping HTTP libraries.
    Every outbound call carries the configured timeout and User-Agent.
    """

    def __init__(self, user_agent: str, http_client: Callable, head_client: Optional[Callable] = None, timeout: float = 10):
        self.user_agent = user_agent
        self.timeout = timeout
        self.http_client = http_client
        self.head_client = head_client or requests.head

    def fetch(self, url: str) -> HttpResponse:
        """GET `url` and return its status code and fully buffered body."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.http_client(url, headers=headers, timeout=self.timeout)
            body = resp.content
        except requests.exceptions.RequestException as e:
            raise FetchError(url, e) from e

        return HttpResponse(resp.status_code, body)

    def head(self, url: str) -> int:
        """Issue a HEAD for `url` (following redirects) and return the final status code."""
        headers = {"User-Agent": self.user_agent}
        try:
            resp = self.head_client(url, headers=headers, timeout=self.timeout, allow_redirects=True)
        except requests.exceptions.RequestException as e:
            raise FetchError(url, e) from e
        return resp.status_code
