from unittest.mock import Mock

import pytest
import requests

from urlanalyzer.exceptions import FetchError, InvalidURLError
from urlanalyzer.services.broken_link_checker import BrokenLinkChecker
from urlanalyzer.services.html_analyzer import HtmlAnalyzer
from urlanalyzer.services.page_analysis_service import PageAnalysisService

PAGE = b"""<!DOCTYPE html>
<html><head><title>Example</title></head>
<body>
  <h1>One</h1><h1>Two</h1>
  <a href="/about">About</a>
  <a href="https://other.com/x">Other</a>
  <a href="https://gone.com/y">Gone</a>
</body></html>
"""


class StubFetcher:
    def __init__(self, body=PAGE, error=None):
        self.body = body
        self.error = error
        self.calls = []

    def fetch(self, url):
        self.calls.append(url)
        if self.error is not None:
            raise self.error
        return self.body


def _http(statuses):
    http = Mock()
    http.head.side_effect = lambda url: statuses[url]
    return http


def test_analyze_url_combines_metrics_and_broken_links():
    http = _http({"https://other.com/x": 200, "https://gone.com/y": 404})
    ticks = iter([10.0, 10.25])
    svc = PageAnalysisService(StubFetcher(), HtmlAnalyzer(), BrokenLinkChecker(http), clock=lambda: next(ticks))

    m = svc.analyze_url("https://example.com")

    assert m.title == "Example"
    assert m.h1_count == 2
    assert m.internal_links == 1
    assert m.external_links == 2
    assert m.broken_links == 1
    assert m.processing_time == pytest.approx(0.25)


def test_broken_links_never_exceed_external_links():
    http = Mock()
    http.head.side_effect = FetchError("x", requests.exceptions.ConnectionError("down"))
    svc = PageAnalysisService(StubFetcher(), HtmlAnalyzer(), BrokenLinkChecker(http))
    m = svc.analyze_url("https://example.com")
    assert m.broken_links == m.external_links == 2
    assert m.processing_time >= 0


def test_fetch_errors_propagate_without_analysis():
    analyzer = Mock()
    svc = PageAnalysisService(StubFetcher(error=InvalidURLError("nope")), analyzer, BrokenLinkChecker(Mock()))
    with pytest.raises(InvalidURLError):
        svc.analyze_url("nope")
    analyzer.analyze.assert_not_called()
