"""Structural metrics computed for one analyzed page."""
from dataclasses import dataclass


@dataclass
class CrawlMetrics:
    html_version: str = "HTML5"
    title: str = ""
    h1_count: int = 0
    h2_count: int = 0
    h3_count: int = 0
    h4_count: int = 0
    h5_count: int = 0
    h6_count: int = 0
    internal_links: int = 0
    external_links: int = 0
    broken_links: int = 0
    has_login_form: bool = False
    processing_time: float = 0.0

    def add_heading(self, level: int) -> None:
        attr = f"h{level}_count"
        setattr(self, attr, getattr(self, attr) + 1)
