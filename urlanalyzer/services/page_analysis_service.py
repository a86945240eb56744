import logging
import time
from typing import Callable

from urlanalyzer.domain.crawl_metrics import CrawlMetrics
from urlanalyzer.services.broken_link_checker import BrokenLinkChecker
from urlanalyzer.services.fetcher import Fetcher
from urlanalyzer.services.html_analyzer import HtmlAnalyzer

logger = logging.getLogger(__name__)


class PageAnalysisService:
    """Fetches one page and computes its metrics, including the broken-link count.

    Link probes start while the analyzer is still walking the document and
    are always finished (or timed out) before metrics are returned.
    """

    def __init__(
        self,
        fetcher: Fetcher,
        analyzer: HtmlAnalyzer,
        broken_link_checker: BrokenLinkChecker,
        clock: Callable[[], float] = time.perf_counter,
    ):
        self.fetcher = fetcher
        self.analyzer = analyzer
        self.broken_link_checker = broken_link_checker
        self._clock = clock

    def analyze_url(self, url: str) -> CrawlMetrics:
        started = self._clock()
        raw = self.fetcher.fetch(url)

        with self.broken_link_checker.start(url) as probes:
            metrics = self.analyzer.analyze(raw, url, on_external_link=probes.submit)
            metrics.broken_links = probes.wait()

        metrics.processing_time = max(self._clock() - started, 0.0)
        logger.info(
            "Analyzed %s: version=%s internal=%d external=%d broken=%d in %.3fs",
            url,
            metrics.html_version,
            metrics.internal_links,
            metrics.external_links,
            metrics.broken_links,
            metrics.processing_time,
        )
        return metrics
