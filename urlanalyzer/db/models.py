from __future__ import annotations


from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text, func
from sqlalchemy.orm import declarative_base, relationship


Base = declarative_base()


class CrawlRequest(Base):
    __tablename__ = "crawl_requests"

    request_id = Column(Integer, primary_key=True)
    url = Column(Text, nullable=False)
    status = Column(String(16), nullable=False, index=True)  # see domain.CrawlStatus
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now(), onupdate=func.now())
    error = Column(Text, nullable=True)


class CrawlResult(Base):
    __tablename__ = "crawl_results"

    result_id = Column(Integer, primary_key=True)
    crawl_request_id = Column(Integer, ForeignKey("crawl_requests.request_id"), nullable=False, index=True)
    html_version = Column(String(16), nullable=False)
    title = Column(Text, nullable=False, default="")
    h1_count = Column(Integer, nullable=False, default=0)
    h2_count = Column(Integer, nullable=False, default=0)
    h3_count = Column(Integer, nullable=False, default=0)
    h4_count = Column(Integer, nullable=False, default=0)
    h5_count = Column(Integer, nullable=False, default=0)
    h6_count = Column(Integer, nullable=False, default=0)
    internal_links = Column(Integer, nullable=False, default=0)
    external_links = Column(Integer, nullable=False, default=0)
    broken_links = Column(Integer, nullable=False, default=0)
    has_login_form = Column(Boolean, nullable=False, default=False)
    processing_time = Column(Float, nullable=False, default=0.0)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    crawl_request = relationship("CrawlRequest")
