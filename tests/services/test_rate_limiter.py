from datetime import timedelta

from app.repositories.files_repository import FileRepository
from app.services.rate_limiter import RateLimiter

ORIGIN = "203.0.113.5"


def limiter(db_session, clock, maximum=2):
    return RateLimiter(
        FileRepository(db_session), maximum=maximum, window=timedelta(days=1), clock=clock
    )


def test_counts_only_uploads_from_origin(db_session, make_file, clock):
    make_file()
    make_file()
    make_file(uploader_ip="198.51.100.1")
    assert limiter(db_session, clock).count_recent(ORIGIN) == 2
    assert limiter(db_session, clock).count_recent("198.51.100.1") == 1


def test_uploads_outside_window_are_ignored(db_session, make_file, clock):
    make_file(uploaded_at=clock() - timedelta(days=1, seconds=1))
    make_file(uploaded_at=clock() - timedelta(hours=23))
    assert limiter(db_session, clock).count_recent(ORIGIN) == 1
    assert limiter(db_session, clock).count_recent(ORIGIN, timedelta(hours=1)) == 0


def test_limit_reached_at_maximum(db_session, make_file, clock):
    rate_limiter = limiter(db_session, clock, maximum=2)
    make_file()
    assert not rate_limiter.is_limit_reached(ORIGIN)
    make_file()
    assert rate_limiter.is_limit_reached(ORIGIN)
    assert not rate_limiter.is_limit_reached("198.51.100.1")


def test_limit_lifts_once_window_elapses(db_session, make_file, clock):
    rate_limiter = limiter(db_session, clock, maximum=1)
    make_file()
    assert rate_limiter.is_limit_reached(ORIGIN)
    clock.advance(days=1, seconds=1)
    assert not rate_limiter.is_limit_reached(ORIGIN)
