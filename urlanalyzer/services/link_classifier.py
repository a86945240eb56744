import logging
from enum import Enum
from urllib.parse import urlsplit

logger = logging.getLogger(__name__)


class LinkKind(str, Enum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class LinkClassifier:
    """Classify an anchor target relative to the page it was found on.

    A link is internal when it has no host (a relative reference) or when its
    hostname equals the page's hostname. Port is never compared. The scheme is
    only compared when `match_scheme` is set.
    """

    def __init__(self, match_scheme: bool = False):
        self.match_scheme = match_scheme

    def classify(self, base_url: str, href: str) -> LinkKind:
        try:
            base = urlsplit(base_url)
            link = urlsplit(href.strip())
            base_host = base.hostname
            link_host = link.hostname
        except (ValueError, AttributeError, TypeError):
            # Unparsable links count as external rather than failing the page.
            logger.debug("Unparsable link %r on %s", href, base_url)
            return LinkKind.EXTERNAL

        if not link_host:
            return LinkKind.INTERNAL
        # `hostname` is lowercased, so host matching ignores case.
        if link_host != base_host:
            return LinkKind.EXTERNAL
        if self.match_scheme and link.scheme.lower() != base.scheme.lower():
            return LinkKind.EXTERNAL
        return LinkKind.INTERNAL
