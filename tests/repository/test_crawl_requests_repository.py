import threading
from datetime import datetime, timedelta, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from urlanalyzer.db.models import Base
from urlanalyzer.db.models import CrawlRequest as DBCrawlRequest
from urlanalyzer.domain import CrawlStatus
from urlanalyzer.repository.crawl_requests import CrawlRequestsRepository


def _repo(url="sqlite:///:memory:"):
    engine = create_engine(url, future=True)
    Base.metadata.create_all(engine)
    session_factory = sessionmaker(bind=engine, future=True)
    return CrawlRequestsRepository(session_factory)


def test_create_request_is_queued():
    repo = _repo()
    req = repo.create_request("https://example.com")
    assert req.request_id is not None
    assert req.status is CrawlStatus.QUEUED
    assert req.created_at is not None

    stored = repo.get_request(req.request_id)
    assert stored.url == "https://example.com"
    assert stored.status is CrawlStatus.QUEUED


def test_get_unknown_request_returns_none():
    assert _repo().get_request(999) is None


def test_claim_returns_none_when_nothing_queued():
    repo = _repo()
    assert repo.claim_next_queued() is None


def test_claim_marks_oldest_request_processing():
    repo = _repo()
    first = repo.create_request("https://a.example")
    second = repo.create_request("https://b.example")

    claimed = repo.claim_next_queued()
    assert claimed.request_id == first.request_id
    assert claimed.status is CrawlStatus.PROCESSING
    assert repo.get_request(first.request_id).status is CrawlStatus.PROCESSING
    assert repo.get_request(second.request_id).status is CrawlStatus.QUEUED

    assert repo.claim_next_queued().request_id == second.request_id
    assert repo.claim_next_queued() is None


def test_claim_skips_rows_claimed_between_select_and_update(tmp_path):
    repo = _repo(f"sqlite:///{tmp_path / 'race.db'}")
    first = repo.create_request("https://a.example")
    second = repo.create_request("https://b.example")

    # Another poller wins the first row right after our SELECT.
    real_factory = repo.session_factory
    raced = {"done": False}

    def racing_factory():
        session = real_factory()
        original_execute = session.execute

        def execute(stmt, *args, **kwargs):
            if raced["done"] or not stmt.is_select:
                return original_execute(stmt, *args, **kwargs)
            # Buffer the rows so the SELECT holds no read lock during the race.
            frozen = original_execute(stmt, *args, **kwargs).freeze()
            raced["done"] = True
            with real_factory() as other:
                row = other.get(DBCrawlRequest, first.request_id)
                row.status = CrawlStatus.PROCESSING.value
                other.commit()
            return frozen()

        session.execute = execute
        return session

    repo.session_factory = racing_factory
    claimed = repo.claim_next_queued()
    assert claimed.request_id == second.request_id


def test_concurrent_claims_single_queued_request(tmp_path):
    repo = _repo(f"sqlite:///{tmp_path / 'claims.db'}")
    req = repo.create_request("https://example.com")

    barrier = threading.Barrier(2)
    outcomes = []
    lock = threading.Lock()

    def claim():
        barrier.wait()
        got = repo.claim_next_queued()
        with lock:
            outcomes.append(got)

    threads = [threading.Thread(target=claim) for _ in range(2)]
    for t in threads:
        t.start()
    for t in threads:
        t.join(10)

    winners = [o for o in outcomes if o is not None]
    assert len(outcomes) == 2
    assert len(winners) == 1
    assert winners[0].request_id == req.request_id
    assert repo.get_request(req.request_id).status is CrawlStatus.PROCESSING


def _age(repo, request_id, seconds):
    with repo.get_session() as session:
        row = session.get(DBCrawlRequest, request_id)
        row.updated_at = datetime.now(timezone.utc) - timedelta(seconds=seconds)
        session.commit()


def test_update_status_is_idempotent_and_records_error():
    repo = _repo()
    req = repo.create_request("https://example.com")
    repo.claim_next_queued()
    assert repo.update_status(req.request_id, CrawlStatus.FAILED, error="boom") is True
    assert repo.update_status(req.request_id, CrawlStatus.FAILED, error="boom") is True
    stored = repo.get_request(req.request_id)
    assert stored.status is CrawlStatus.FAILED
    assert stored.error == "boom"


def test_update_status_unknown_request_raises():
    with pytest.raises(ValueError):
        _repo().update_status(42, CrawlStatus.COMPLETED)


def test_update_status_cannot_requeue():
    repo = _repo()
    req = repo.create_request("https://example.com")
    with pytest.raises(ValueError):
        repo.update_status(req.request_id, CrawlStatus.QUEUED)


def test_finished_request_is_never_changed_again(caplog):
    repo = _repo()
    req = repo.create_request("https://example.com")
    repo.claim_next_queued()
    repo.update_status(req.request_id, CrawlStatus.FAILED, error="abandoned")

    assert repo.update_status(req.request_id, CrawlStatus.COMPLETED) is False
    assert repo.update_status(req.request_id, CrawlStatus.PROCESSING) is False

    stored = repo.get_request(req.request_id)
    assert stored.status is CrawlStatus.FAILED
    assert stored.error == "abandoned"
    assert "Refusing to move request" in caplog.text


def test_queued_request_cannot_jump_to_terminal_status():
    repo = _repo()
    req = repo.create_request("https://example.com")
    assert repo.update_status(req.request_id, CrawlStatus.COMPLETED) is False
    assert repo.get_request(req.request_id).status is CrawlStatus.QUEUED


def test_fail_stale_processing_only_touches_processing_rows():
    repo = _repo()
    queued = repo.create_request("https://q.example")
    stale = repo.create_request("https://p.example")
    done = repo.create_request("https://d.example")
    repo.update_status(stale.request_id, CrawlStatus.PROCESSING)
    repo.update_status(done.request_id, CrawlStatus.PROCESSING)
    repo.update_status(done.request_id, CrawlStatus.COMPLETED)

    assert repo.fail_stale_processing("abandoned") == 1

    assert repo.get_request(queued.request_id).status is CrawlStatus.QUEUED
    assert repo.get_request(done.request_id).status is CrawlStatus.COMPLETED
    failed = repo.get_request(stale.request_id)
    assert failed.status is CrawlStatus.FAILED
    assert failed.error == "abandoned"


def test_fail_stale_processing_skips_recently_updated_rows():
    repo = _repo()
    old = repo.create_request("https://old.example")
    fresh = repo.create_request("https://fresh.example")
    repo.claim_next_queued()
    repo.claim_next_queued()
    _age(repo, old.request_id, 3600)

    assert repo.fail_stale_processing("abandoned", older_than_seconds=300) == 1

    assert repo.get_request(old.request_id).status is CrawlStatus.FAILED
    assert repo.get_request(fresh.request_id).status is CrawlStatus.PROCESSING


def test_list_by_status():
    repo = _repo()
    a = repo.create_request("https://a.example")
    repo.create_request("https://b.example")
    repo.update_status(a.request_id, CrawlStatus.PROCESSING)
    repo.update_status(a.request_id, CrawlStatus.COMPLETED)
    queued = repo.list_by_status(CrawlStatus.QUEUED)
    assert [r.url for r in queued] == ["https://b.example"]
