import uuid
from datetime import datetime

from app.models.access_log import AccessLogEntry
from app.models.stored_file import StoredFile
from app.repositories.files_repository import FileRepository


class AccessLedger:
    def __init__(self, repository: FileRepository, max_attempts: int, one_shot: bool = True):
        self.repository = repository
        self.max_attempts = max_attempts
        self.one_shot = one_shot

    def find_eligible(self, file_id: uuid.UUID, now: datetime) -> StoredFile | None:
        """Return the locked file record if it is downloadable at ``now``."""
        return self.repository.find_eligible_file(
            file_id, now, max_attempts=self.max_attempts, one_shot=self.one_shot
        )

    def is_eligible(self, file_id: uuid.UUID, now: datetime) -> bool:
        return self.find_eligible(file_id, now) is not None

    def next_attempt(self, file_id: uuid.UUID) -> int:
        return self.repository.count_attempts(file_id) + 1

    def record_attempt(
        self, file_id: uuid.UUID, origin: str, successful: bool, *, attempt: int, now: datetime
    ) -> AccessLogEntry:
        """Append one entry. ``attempt`` must be the number reserved via
        ``next_attempt`` in the same transaction; a concurrent writer that
        took the same number makes the commit fail."""
        return self.repository.insert_ledger_entry(
            file_id=file_id, attempt=attempt, ip=origin, date_time=now, successful=successful
        )
