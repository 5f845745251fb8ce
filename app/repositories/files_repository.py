import uuid
from datetime import datetime

from sqlalchemy import exists, func, select, update
from sqlalchemy.orm import Session

from app.models.access_log import AccessLogEntry
from app.models.stored_file import StoredFile


class FileRepository:
    def __init__(self, db_session: Session):
        self.db_session = db_session

    def insert_file(
        self, *, file_id: uuid.UUID, key_digest: str, uploader_ip: str,
        uploaded_at: datetime, download_until: datetime, encrypted_metadata: bytes,
    ) -> StoredFile:
        rec = StoredFile(
            id=file_id,
            key_digest=key_digest,
            uploader_ip=uploader_ip,
            uploaded_at=uploaded_at,
            download_until=download_until,
            encrypted_metadata=encrypted_metadata,
        )
        self.db_session.add(rec)
        return rec

    def insert_ledger_entry(
        self, *, file_id: uuid.UUID, attempt: int, ip: str, date_time: datetime, successful: bool
    ) -> AccessLogEntry:
        entry = AccessLogEntry(
            file_id=file_id,
            attempt=attempt,
            ip=ip,
            date_time=date_time,
            successful=successful,
        )
        self.db_session.add(entry)
        return entry

    def lock_file(self, file_id: uuid.UUID) -> None:
        # Self-assignment takes the row's write lock (the database write lock
        # on SQLite). Must be the first statement of the transaction so every
        # later read sees what earlier lock holders committed.
        stmt = (
            update(StoredFile)
            .where(StoredFile.id == file_id)
            .values(download_until=StoredFile.download_until)
            .execution_options(synchronize_session=False)
        )
        self.db_session.execute(stmt)

    def find_eligible_file(
        self, file_id: uuid.UUID, now: datetime, max_attempts: int, one_shot: bool
    ) -> StoredFile | None:
        """Lock the file and return it if it may be downloaded at ``now``.

        Eligible means not expired, fewer than ``max_attempts`` logged
        attempts, and (with ``one_shot``) no successful attempt yet. The
        checks run as separate statements after the lock is held.
        """
        self.lock_file(file_id)
        stmt = select(StoredFile).where(
            StoredFile.id == file_id,
            StoredFile.download_until >= now,
        )
        rec = self.db_session.execute(stmt).scalar_one_or_none()
        if rec is None:
            return None
        if self.count_attempts(file_id) >= max_attempts:
            return None
        if one_shot and self.has_successful_attempt(file_id):
            return None
        return rec

    def count_attempts(self, file_id: uuid.UUID) -> int:
        stmt = select(func.count(AccessLogEntry.id)).where(AccessLogEntry.file_id == file_id)
        return self.db_session.execute(stmt).scalar_one()

    def has_successful_attempt(self, file_id: uuid.UUID) -> bool:
        stmt = select(
            exists().where(
                AccessLogEntry.file_id == file_id,
                AccessLogEntry.successful.is_(True),
            )
        )
        return self.db_session.execute(stmt).scalar_one()

    def count_recent_uploads(self, uploader_ip: str, since: datetime, until: datetime) -> int:
        stmt = select(func.count(StoredFile.id)).where(
            StoredFile.uploader_ip == uploader_ip,
            StoredFile.uploaded_at >= since,
            StoredFile.uploaded_at <= until,
        )
        return self.db_session.execute(stmt).scalar_one()
