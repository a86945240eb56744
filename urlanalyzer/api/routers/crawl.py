import logging
import math

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel

from urlanalyzer.exceptions import InvalidURLError
from urlanalyzer.repository.crawl_results import DEFAULT_PAGE, DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from urlanalyzer.services.fetcher import validate_url

logger = logging.getLogger(__name__)


class SubmitRequest(BaseModel):
    url: str


def create_crawl_router(requests_repo, results_repo):
    router = APIRouter(prefix="/api", tags=["Crawl"])

    @router.post("/crawl", status_code=201)
    def submit_url(req: SubmitRequest):
        try:
            url = validate_url(req.url)
        except InvalidURLError:
            raise HTTPException(status_code=400, detail="invalid URL format")
        try:
            crawl_request = requests_repo.create_request(url)
        except Exception:
            logger.exception("Could not create crawl request for %s", url)
            raise HTTPException(status_code=500, detail="failed to create crawl request")
        return {"data": crawl_request.to_dict(), "message": "URL submitted successfully"}

    @router.get("/crawl/{request_id}")
    def get_crawl(request_id: int):
        try:
            crawl_request = requests_repo.get_request(request_id)
            result = results_repo.get_result_for_request(request_id) if crawl_request else None
        except Exception:
            logger.exception("Could not load crawl request %s", request_id)
            raise HTTPException(status_code=500, detail="failed to fetch crawl request")
        if not crawl_request:
            raise HTTPException(status_code=404, detail="crawl request not found")
        data = crawl_request.to_dict()
        data["result"] = result.to_dict() if result else None
        return {"data": data}

    @router.get("/results")
    def get_results(page: int = DEFAULT_PAGE, pageSize: int = DEFAULT_PAGE_SIZE):
        if page < 1:
            raise HTTPException(status_code=400, detail="invalid page parameter")
        if pageSize < 1:
            raise HTTPException(status_code=400, detail="invalid pageSize parameter")
        pageSize = min(pageSize, MAX_PAGE_SIZE)
        try:
            results, total = results_repo.list_results(page, pageSize)
        except Exception:
            logger.exception("Could not list crawl results")
            raise HTTPException(status_code=500, detail="failed to fetch results")
        total_pages = math.ceil(total / pageSize) if total else 0
        return {
            "data": [r.to_dict() for r in results],
            "pagination": {
                "currentPage": page,
                "pageSize": pageSize,
                "totalItems": total,
                "totalPages": total_pages,
                "hasNext": page < total_pages,
                "hasPrev": page > 1,
            },
            "message": "Results fetched successfully",
        }

    return router
