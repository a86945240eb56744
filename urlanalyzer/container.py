"""Dependency injection container for the application."""
from dependency_injector import containers, providers
import requests
from sqlalchemy.orm import sessionmaker

from urlanalyzer import config as env
from urlanalyzer.db.engine import make_engine
from urlanalyzer.repository.crawl_requests import CrawlRequestsRepository
from urlanalyzer.repository.crawl_results import CrawlResultsRepository
from urlanalyzer.services.broken_link_checker import BrokenLinkChecker
from urlanalyzer.services.crawl_recovery import CrawlRequestRecovery
from urlanalyzer.services.crawl_worker import CrawlWorker
from urlanalyzer.services.fetcher import PageFetcher
from urlanalyzer.services.html_analyzer import HtmlAnalyzer
from urlanalyzer.services.http_service import HttpService
from urlanalyzer.services.link_classifier import LinkClassifier
from urlanalyzer.services.page_analysis_service import PageAnalysisService


# Environment variables used by the container (read via `urlanalyzer.config` helpers).
#
# DATABASE_URL (str | optional)
#   SQLAlchemy connection string. Required once the engine is first created.
#
# USER_AGENT (str, default: "URLAnalyzer/0.1")
#   User-Agent header for the page GET and the link HEAD probes.
#
# HTTP_TIMEOUT (float seconds, default: 10)
#   Timeout applied to every outbound request.
#
# WORKER_POLL_INTERVAL (float seconds, default: 5)
#   How often the worker polls for a queued crawl request.
#
# WORKER_MAX_INSTANCES (int, default: 1)
#   Poll ticks allowed to run at the same time. Claims stay atomic either way.
#
# WORKER_SHUTDOWN_GRACE (float seconds, default: 10)
#   How long shutdown waits for in-flight requests before abandoning them.
#
# BROKEN_LINK_TIMEOUT (float seconds, default: 30)
#   Overall deadline for all link probes of one page.
#
# BROKEN_LINK_MAX_WORKERS (int, default: 8)
#   Concurrent link probes per page.
#
# LINK_MATCH_SCHEME (bool, default: false)
#   Also require a matching scheme for a link to count as internal.
#
# RECOVERY_MODE (str, default: "fail")
#   Startup handling of requests left processing: "fail" or "ignore".
#
# RECOVERY_STALE_AFTER (float seconds, default: 300)
#   Processing requests untouched for longer than this are treated as abandoned.
#
# API_HOST / API_PORT (default: 0.0.0.0 / 8080)
#   Bind address for the HTTP API.
ENV = {
    "DATABASE_URL": env.get_optional_str_env("DATABASE_URL"),
    "USER_AGENT": env.get_str_env("USER_AGENT", "URLAnalyzer/0.1"),
    "HTTP_TIMEOUT": env.get_float_env("HTTP_TIMEOUT", 10.0),
    "WORKER_POLL_INTERVAL": env.get_float_env("WORKER_POLL_INTERVAL", 5.0),
    "WORKER_MAX_INSTANCES": env.get_int_env("WORKER_MAX_INSTANCES", 1),
    "WORKER_SHUTDOWN_GRACE": env.get_float_env("WORKER_SHUTDOWN_GRACE", 10.0),
    "BROKEN_LINK_TIMEOUT": env.get_float_env("BROKEN_LINK_TIMEOUT", 30.0),
    "BROKEN_LINK_MAX_WORKERS": env.get_int_env("BROKEN_LINK_MAX_WORKERS", 8),
    "LINK_MATCH_SCHEME": env.get_bool_env("LINK_MATCH_SCHEME", False),
    "RECOVERY_MODE": env.get_str_env("RECOVERY_MODE", "fail").strip().lower(),
    "RECOVERY_STALE_AFTER": env.get_float_env("RECOVERY_STALE_AFTER", 300.0),
    "API_HOST": env.get_str_env("API_HOST", "0.0.0.0"),
    "API_PORT": env.get_int_env("API_PORT", 8080),
}


class Container(containers.DeclarativeContainer):
    """Dependency injection container for the URL analyzer."""

    # Configuration
    config = providers.Configuration(default=ENV)

    # Database engine - Singleton to reuse connection pool
    db_engine = providers.Singleton(
        make_engine,
        database_url=config.DATABASE_URL
    )
    # Session factory bound to the engine
    session_factory = providers.Factory(
        sessionmaker,
        bind=db_engine,
        future=True
    )

    # Repositories - Singleton instances
    crawl_requests_repository = providers.Singleton(
        CrawlRequestsRepository,
        session_factory=session_factory
    )

    crawl_results_repository = providers.Singleton(
        CrawlResultsRepository,
        session_factory=session_factory
    )

    # Services - Singleton instances
    http_service = providers.Singleton(
        HttpService,
        user_agent=config.USER_AGENT.as_(str),
        http_client=providers.Object(requests.get),
        head_client=providers.Object(requests.head),
        timeout=config.HTTP_TIMEOUT.as_(float)
    )

    page_fetcher = providers.Singleton(
        PageFetcher,
        http_service=http_service,
    )

    link_classifier = providers.Singleton(
        LinkClassifier,
        match_scheme=config.LINK_MATCH_SCHEME.as_(bool),
    )

    html_analyzer = providers.Singleton(
        HtmlAnalyzer,
        link_classifier=link_classifier,
    )

    broken_link_checker = providers.Singleton(
        BrokenLinkChecker,
        http_service=http_service,
        max_workers=config.BROKEN_LINK_MAX_WORKERS.as_(int),
        timeout_seconds=config.BROKEN_LINK_TIMEOUT.as_(float),
    )

    page_analysis_service = providers.Singleton(
        PageAnalysisService,
        fetcher=page_fetcher,
        analyzer=html_analyzer,
        broken_link_checker=broken_link_checker,
    )

    crawl_recovery = providers.Singleton(
        CrawlRequestRecovery,
        requests_repo=crawl_requests_repository,
        mode=config.RECOVERY_MODE.as_(str),
        older_than_seconds=config.RECOVERY_STALE_AFTER.as_(float),
    )

    # Worker - Singleton instance
    crawl_worker = providers.Singleton(
        CrawlWorker,
        requests_repo=crawl_requests_repository,
        results_repo=crawl_results_repository,
        analysis_service=page_analysis_service,
        poll_interval_seconds=config.WORKER_POLL_INTERVAL.as_(float),
        max_instances=config.WORKER_MAX_INSTANCES.as_(int),
        shutdown_grace_seconds=config.WORKER_SHUTDOWN_GRACE.as_(float),
        recovery=crawl_recovery,
    )
