import pytest

from urlanalyzer.services.link_classifier import LinkClassifier, LinkKind

BASE = "https://example.com/"


@pytest.mark.parametrize(
    "href",
    [
        "/about",
        "about.html",
        "#section",
        "?page=2",
        "",
        "https://example.com/contact",
        "http://example.com/contact",
        "https://example.com:8443/admin",
        "https://EXAMPLE.com/upper",
        "  /padded  ",
    ],
)
def test_internal_links(href):
    assert LinkClassifier().classify(BASE, href) is LinkKind.INTERNAL


@pytest.mark.parametrize(
    "href",
    [
        "https://other.com/x",
        "//cdn.example.org/lib.js",
        "https://sub.example.com/",
        "http://[not-a-host",
    ],
)
def test_external_links(href):
    assert LinkClassifier().classify(BASE, href) is LinkKind.EXTERNAL


def test_unparsable_base_treats_link_as_external():
    assert LinkClassifier().classify("http://[bad", "https://example.com/") is LinkKind.EXTERNAL


def test_non_string_href_is_external():
    assert LinkClassifier().classify(BASE, None) is LinkKind.EXTERNAL


def test_strict_mode_requires_matching_scheme():
    strict = LinkClassifier(match_scheme=True)
    assert strict.classify(BASE, "http://example.com/x") is LinkKind.EXTERNAL
    assert strict.classify(BASE, "https://example.com/x") is LinkKind.INTERNAL
    assert strict.classify(BASE, "/relative") is LinkKind.INTERNAL
