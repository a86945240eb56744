from fastapi import FastAPI

from urlanalyzer.api.routers import create_crawl_router, create_systems_router


def create_app(requests_repo, results_repo, container_env: dict, worker=None) -> FastAPI:
    """Return the FastAPI application exposing submission, results and system endpoints."""
    app = FastAPI(title="URL Analyzer")
    app.include_router(create_crawl_router(requests_repo, results_repo))
    app.include_router(create_systems_router(container_env, worker=worker))
    return app
