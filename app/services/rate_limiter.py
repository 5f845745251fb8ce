from datetime import datetime, timedelta
from typing import Callable

from app.repositories.files_repository import FileRepository


class RateLimiter:
    """Bounds uploads per origin within a rolling window ending now."""

    def __init__(
        self, repository: FileRepository, maximum: int, window: timedelta,
        clock: Callable[[], datetime],
    ):
        self.repository = repository
        self.maximum = maximum
        self.window = window
        self.clock = clock

    def count_recent(self, origin: str, window: timedelta | None = None) -> int:
        now = self.clock()
        since = now - (window if window is not None else self.window)
        return self.repository.count_recent_uploads(origin, since=since, until=now)

    def is_limit_reached(self, origin: str) -> bool:
        return self.count_recent(origin) >= self.maximum
