from dataclasses import replace
from datetime import datetime, timezone
from typing import List, Optional, Tuple

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from urlanalyzer.db.models import CrawlRequest as DBCrawlRequest
from urlanalyzer.db.models import CrawlResult as DBCrawlResult
from urlanalyzer.domain import CrawlResult, CrawlStatus
from urlanalyzer.exceptions import PersistenceError, RequestStateError

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100


class CrawlResultsRepository:
    """Repository for CrawlResult rows.

    Requires an explicit `session_factory` (callable returning a `Session`).
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    def get_session(self) -> Session:
        return self.session_factory()

    @staticmethod
    def _to_domain(row: DBCrawlResult, url: Optional[str] = None) -> CrawlResult:
        return CrawlResult(
            result_id=row.result_id,
            crawl_request_id=row.crawl_request_id,
            html_version=row.html_version,
            title=row.title,
            h1_count=row.h1_count,
            h2_count=row.h2_count,
            h3_count=row.h3_count,
            h4_count=row.h4_count,
            h5_count=row.h5_count,
            h6_count=row.h6_count,
            internal_links=row.internal_links,
            external_links=row.external_links,
            broken_links=row.broken_links,
            has_login_form=row.has_login_form,
            processing_time=row.processing_time,
            created_at=row.created_at,
            url=url,
        )

    def save_result(self, result: CrawlResult) -> CrawlResult:
        """Insert `result` and mark its request COMPLETED in one transaction.

        The request must still be PROCESSING; otherwise RequestStateError is
        raised. Raises PersistenceError on database failure. Nothing is
        written in either case.
        """
        now = datetime.now(timezone.utc)
        try:
            with self.get_session() as session:
                completed = session.execute(
                    update(DBCrawlRequest)
                    .where(
                        DBCrawlRequest.request_id == result.crawl_request_id,
                        DBCrawlRequest.status == CrawlStatus.PROCESSING.value,
                    )
                    .values(status=CrawlStatus.COMPLETED.value, error=None, updated_at=now)
                    .execution_options(synchronize_session=False)
                )
                if completed.rowcount != 1:
                    session.rollback()
                    current = session.execute(
                        select(DBCrawlRequest.status).where(DBCrawlRequest.request_id == result.crawl_request_id)
                    ).scalar_one_or_none()
                    raise RequestStateError(result.crawl_request_id, current, CrawlStatus.PROCESSING.value)

                row = DBCrawlResult(
                    crawl_request_id=result.crawl_request_id,
                    html_version=result.html_version,
                    title=result.title,
                    h1_count=result.h1_count,
                    h2_count=result.h2_count,
                    h3_count=result.h3_count,
                    h4_count=result.h4_count,
                    h5_count=result.h5_count,
                    h6_count=result.h6_count,
                    internal_links=result.internal_links,
                    external_links=result.external_links,
                    broken_links=result.broken_links,
                    has_login_form=result.has_login_form,
                    processing_time=result.processing_time,
                    created_at=result.created_at or now,
                )
                session.add(row)
                session.commit()
                session.refresh(row)
                return replace(result, result_id=row.result_id, created_at=row.created_at)
        except SQLAlchemyError as e:
            raise PersistenceError("save_result", e) from e

    def get_result_for_request(self, request_id: int) -> Optional[CrawlResult]:
        """Return the most recent result recorded for `request_id`."""
        with self.get_session() as session:
            q = (
                select(DBCrawlResult)
                .options(joinedload(DBCrawlResult.crawl_request))
                .where(DBCrawlResult.crawl_request_id == request_id)
                .order_by(DBCrawlResult.result_id.desc())
            )
            row = session.execute(q).scalars().first()
            if not row:
                return None
            return self._to_domain(row, url=row.crawl_request.url)

    def list_results(self, page: int = DEFAULT_PAGE, page_size: int = DEFAULT_PAGE_SIZE) -> Tuple[List[CrawlResult], int]:
        """Return one page of results (newest first) and the total result count.

        `page` below 1 falls back to the first page; `page_size` outside
        1..MAX_PAGE_SIZE falls back to the default / maximum.
        """
        if page < 1:
            page = DEFAULT_PAGE
        if page_size < 1:
            page_size = DEFAULT_PAGE_SIZE
        page_size = min(page_size, MAX_PAGE_SIZE)

        with self.get_session() as session:
            total = session.execute(select(func.count()).select_from(DBCrawlResult)).scalar_one()
            q = (
                select(DBCrawlResult)
                .options(joinedload(DBCrawlResult.crawl_request))
                .order_by(DBCrawlResult.created_at.desc(), DBCrawlResult.result_id.desc())
                .offset((page - 1) * page_size)
                .limit(page_size)
            )
            rows = session.execute(q).scalars().all()
            return [self._to_domain(r, url=r.crawl_request.url) for r in rows], total
