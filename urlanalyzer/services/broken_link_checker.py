import concurrent.futures
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Callable, Iterable, List
from urllib.parse import urljoin, urlsplit

from urlanalyzer.exceptions import FetchError
from urlanalyzer.services.http_service import HttpService

logger = logging.getLogger(__name__)

PROBED_SCHEMES = ("http", "https")


class LinkProbeBatch:
    """Probes for the external links of one page.

    Links are submitted while the page is still being analyzed; `wait()`
    returns the broken count once every probe finished or the deadline
    passed. Probes still running at the deadline count as broken.
    """

    def __init__(self, probe: Callable[[str], bool], base_url: str, max_workers: int, deadline_seconds: float, clock: Callable[[], float] = time.monotonic):
        self._probe = probe
        self._base_url = base_url
        self._clock = clock
        self._deadline = clock() + deadline_seconds
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="link-probe")
        self._futures: List[Future] = []
        self._unparsable = 0

    def submit(self, href: str) -> None:
        try:
            target = urljoin(self._base_url, href.strip())
            scheme = urlsplit(target).scheme.lower()
        except ValueError:
            logger.debug("Unparsable link %r on %s", href, self._base_url)
            self._unparsable += 1
            return
        if scheme not in PROBED_SCHEMES:
            logger.debug("Not probing non-http link %s", target)
            return
        self._futures.append(self._executor.submit(self._probe, target))

    def wait(self) -> int:
        try:
            if not self._futures:
                return self._unparsable
            remaining = max(self._deadline - self._clock(), 0.0)
            done, not_done = concurrent.futures.wait(self._futures, timeout=remaining)
            broken = self._unparsable + len(not_done)
            if not_done:
                logger.warning("%d link probe(s) for %s did not finish before the deadline", len(not_done), self._base_url)
            for f in done:
                err = f.exception()
                if err is not None:
                    logger.warning("Link probe error on %s: %s", self._base_url, err)
                    broken += 1
                elif not f.result():
                    broken += 1
            return broken
        finally:
            self.close()

    def close(self) -> None:
        self._executor.shutdown(wait=False, cancel_futures=True)

    def __enter__(self) -> "LinkProbeBatch":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


class BrokenLinkChecker:
    """Counts broken external links with concurrent HEAD probes.

    A link is broken when the probe raises a transport error or answers with
    a status of 400 or more.
    """

    def __init__(self, http_service: HttpService, max_workers: int = 8, timeout_seconds: float = 30.0):
        self.http_service = http_service
        self.max_workers = max(1, int(max_workers))
        self.timeout_seconds = float(timeout_seconds)

    def is_reachable(self, url: str) -> bool:
        try:
            status = self.http_service.head(url)
        except FetchError as e:
            logger.info("Broken link %s: %s", url, e.original)
            return False
        if status >= 400:
            logger.info("Broken link %s: status %s", url, status)
            return False
        return True

    def start(self, base_url: str = "") -> LinkProbeBatch:
        return LinkProbeBatch(self.is_reachable, base_url, self.max_workers, self.timeout_seconds)

    def check_broken(self, links: Iterable[str], base_url: str = "") -> int:
        with self.start(base_url) as batch:
            for link in links:
                batch.submit(link)
            return batch.wait()
