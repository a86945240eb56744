import logging
import re
from typing import Callable, Optional

from bs4 import BeautifulSoup, Doctype, Tag
from bs4.builder import ParserRejectedMarkup

from urlanalyzer.domain.crawl_metrics import CrawlMetrics
from urlanalyzer.exceptions import ParseError
from urlanalyzer.services.link_classifier import LinkClassifier, LinkKind

logger = logging.getLogger(__name__)

DEFAULT_HTML_VERSION = "HTML5"

# Checked in order; the first label whose marker occurs in the public identifier wins.
HTML_VERSION_MARKERS = (
    ("HTML 4.01", "HTML 4.01"),
    ("XHTML 1.0", "XHTML 1.0"),
    ("XHTML 1.1", "XHTML 1.1"),
)

HEADING_TAGS = {f"h{level}": level for level in range(1, 7)}

_PUBLIC_ID_RE = re.compile(r"\bPUBLIC\s+([\"'])(.*?)\1", re.IGNORECASE | re.DOTALL)


def public_identifier(doctype: str) -> Optional[str]:
    """Return the public identifier of a doctype declaration, if it has one."""
    m = _PUBLIC_ID_RE.search(doctype or "")
    return m.group(2) if m else None


def detect_html_version(doctype: Optional[str]) -> str:
    public_id = public_identifier(doctype) if doctype else None
    if public_id:
        for marker, label in HTML_VERSION_MARKERS:
            if marker in public_id:
                return label
    return DEFAULT_HTML_VERSION


class HtmlAnalyzer:
    """Extract structural metrics from an HTML document in one traversal.

    The document is walked depth-first with an explicit stack, so every node
    is visited once regardless of nesting depth.
    """

    def __init__(
        self,
        link_classifier: Optional[LinkClassifier] = None,
        soup_factory: Optional[Callable[[bytes], BeautifulSoup]] = None,
    ):
        self.link_classifier = link_classifier or LinkClassifier()
        self._soup_factory = soup_factory or (lambda markup: BeautifulSoup(markup, "html.parser"))

    def parse(self, raw: bytes, base_url: str) -> BeautifulSoup:
        try:
            return self._soup_factory(raw)
        except (ParserRejectedMarkup, ValueError, TypeError) as e:
            raise ParseError(base_url, e) from e

    def analyze(
        self,
        raw: bytes,
        base_url: str,
        on_external_link: Optional[Callable[[str], None]] = None,
    ) -> CrawlMetrics:
        """Parse `raw` and compute metrics for the page at `base_url`.

        `on_external_link(href)` is called as soon as an external anchor is
        found, letting link probes start before the traversal finishes.
        """
        soup = self.parse(raw, base_url)
        metrics = CrawlMetrics()

        doctype_seen = False
        title_text: Optional[str] = None
        first_h1: Optional[Tag] = None

        # (node, inside_form)
        stack = [(soup, False)]
        while stack:
            node, in_form = stack.pop()

            if isinstance(node, Doctype):
                if not doctype_seen:
                    doctype_seen = True
                    metrics.html_version = detect_html_version(str(node))
                continue
            if not isinstance(node, Tag):
                # text, comments and other character data
                continue

            name = node.name
            level = HEADING_TAGS.get(name)
            if level is not None:
                metrics.add_heading(level)
                if level == 1 and first_h1 is None:
                    first_h1 = node
            elif name == "title":
                if title_text is None:
                    text = node.get_text().strip()
                    if text:
                        title_text = text
            elif name == "a":
                self._count_link(node, base_url, metrics, on_external_link)
            elif name == "input":
                if in_form and not metrics.has_login_form and _is_password_input(node):
                    metrics.has_login_form = True

            child_in_form = in_form or name == "form"
            for child in reversed(node.contents):
                stack.append((child, child_in_form))

        metrics.title = _extract_title(title_text, first_h1)
        return metrics

    def _count_link(self, node: Tag, base_url: str, metrics: CrawlMetrics, on_external_link) -> None:
        if not node.has_attr("href"):
            return
        href = node["href"]
        if self.link_classifier.classify(base_url, href) is LinkKind.INTERNAL:
            metrics.internal_links += 1
            return
        metrics.external_links += 1
        if on_external_link is not None:
            on_external_link(href)


def _is_password_input(node: Tag) -> bool:
    input_type = node.get("type")
    return isinstance(input_type, str) and input_type.lower() == "password"


def _extract_title(title_text: Optional[str], first_h1: Optional[Tag]) -> str:
    if title_text:
        return title_text
    if first_h1 is not None:
        return first_h1.get_text().strip()
    return ""
