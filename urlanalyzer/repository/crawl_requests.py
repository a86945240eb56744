import logging
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from urlanalyzer.db.models import CrawlRequest as DBCrawlRequest
from urlanalyzer.domain import CrawlRequest, CrawlStatus
from urlanalyzer.exceptions import PersistenceError

logger = logging.getLogger(__name__)

# Status a request must hold before it may be moved to the key status.
ALLOWED_SOURCE_STATUS = {
    CrawlStatus.PROCESSING: CrawlStatus.QUEUED,
    CrawlStatus.COMPLETED: CrawlStatus.PROCESSING,
    CrawlStatus.FAILED: CrawlStatus.PROCESSING,
}


class CrawlRequestsRepository:
    """Repository for CrawlRequest rows.

    Requires an explicit `session_factory` (callable returning a `Session`).
    The claim is a compare-and-swap on `status` so concurrent pollers never
    move the same request to PROCESSING twice.
    """

    def __init__(self, session_factory, claim_attempts: int = 5):
        self.session_factory = session_factory
        self.claim_attempts = claim_attempts

    def get_session(self) -> Session:
        return self.session_factory()

    @staticmethod
    def _to_domain(row: DBCrawlRequest) -> CrawlRequest:
        return CrawlRequest(
            request_id=row.request_id,
            url=row.url,
            status=CrawlStatus(row.status),
            created_at=row.created_at,
            updated_at=row.updated_at,
            error=row.error,
        )

    def create_request(self, url: str) -> CrawlRequest:
        now = datetime.now(timezone.utc)
        try:
            with self.get_session() as session:
                row = DBCrawlRequest(url=url, status=CrawlStatus.QUEUED.value, created_at=now, updated_at=now)
                session.add(row)
                session.commit()
                session.refresh(row)
                return self._to_domain(row)
        except SQLAlchemyError as e:
            raise PersistenceError("create_request", e) from e

    def get_request(self, request_id: int) -> Optional[CrawlRequest]:
        with self.get_session() as session:
            row = session.get(DBCrawlRequest, request_id)
            if not row:
                return None
            return self._to_domain(row)

    def list_by_status(self, status: CrawlStatus, limit: int = 100) -> List[CrawlRequest]:
        with self.get_session() as session:
            q = (
                select(DBCrawlRequest)
                .where(DBCrawlRequest.status == status.value)
                .order_by(DBCrawlRequest.created_at, DBCrawlRequest.request_id)
                .limit(limit)
            )
            return [self._to_domain(r) for r in session.execute(q).scalars().all()]

    def claim_next_queued(self) -> Optional[CrawlRequest]:
        """Atomically move the oldest QUEUED request to PROCESSING and return it.

        Returns None when nothing is queued, or when every candidate was
        claimed by another poller during `claim_attempts` tries.
        """
        for _ in range(self.claim_attempts):
            with self.get_session() as session:
                q = (
                    select(DBCrawlRequest.request_id)
                    .where(DBCrawlRequest.status == CrawlStatus.QUEUED.value)
                    .order_by(DBCrawlRequest.created_at, DBCrawlRequest.request_id)
                    .limit(1)
                )
                candidate = session.execute(q).scalars().first()
                if candidate is None:
                    return None

                stmt = (
                    update(DBCrawlRequest)
                    .where(
                        DBCrawlRequest.request_id == candidate,
                        DBCrawlRequest.status == CrawlStatus.QUEUED.value,
                    )
                    .values(status=CrawlStatus.PROCESSING.value, updated_at=datetime.now(timezone.utc))
                    .execution_options(synchronize_session=False)
                )
                res = session.execute(stmt)
                if res.rowcount != 1:
                    # Lost the race for this row; look for the next one.
                    session.rollback()
                    logger.debug("Claim of request %s lost to another poller", candidate)
                    continue
                session.commit()
                row = session.get(DBCrawlRequest, candidate)
                return self._to_domain(row)
        return None

    def update_status(self, request_id: int, status: CrawlStatus, error: Optional[str] = None) -> bool:
        """Move a request to `status` if it is in the required source status.

        Only QUEUED -> PROCESSING and PROCESSING -> COMPLETED/FAILED are
        written; finished requests are never changed again. Returns True when
        the write happened or the request already holds `status`, False when
        the transition was refused. Raises ValueError for unknown requests.
        """
        source = ALLOWED_SOURCE_STATUS.get(status)
        if source is None:
            raise ValueError(f"Requests cannot be moved to {status.value}")
        try:
            with self.get_session() as session:
                stmt = (
                    update(DBCrawlRequest)
                    .where(
                        DBCrawlRequest.request_id == request_id,
                        DBCrawlRequest.status == source.value,
                    )
                    .values(status=status.value, error=error, updated_at=datetime.now(timezone.utc))
                    .execution_options(synchronize_session=False)
                )
                res = session.execute(stmt)
                if res.rowcount == 1:
                    session.commit()
                    return True
                session.rollback()
                current = session.execute(
                    select(DBCrawlRequest.status).where(DBCrawlRequest.request_id == request_id)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise PersistenceError("update_status", e) from e

        if current is None:
            raise ValueError(f"CrawlRequest with request_id={request_id} not found")
        if current == status.value:
            return True
        logger.warning("Refusing to move request %s from %s to %s", request_id, current, status.value)
        return False

    def fail_stale_processing(self, message: str, older_than_seconds: Optional[float] = None) -> int:
        """Mark PROCESSING requests as FAILED. Returns the number of rows changed.

        With `older_than_seconds`, only requests whose last update is older than
        that are touched, so work still owned by a live worker is left alone.
        """
        now = datetime.now(timezone.utc)
        with self.get_session() as session:
            stmt = (
                update(DBCrawlRequest)
                .where(DBCrawlRequest.status == CrawlStatus.PROCESSING.value)
                .values(status=CrawlStatus.FAILED.value, error=message, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if older_than_seconds is not None:
                stmt = stmt.where(DBCrawlRequest.updated_at < now - timedelta(seconds=older_than_seconds))
            res = session.execute(stmt)
            session.commit()
            return res.rowcount or 0
