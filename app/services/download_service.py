# app/services/download_service.py
# One transaction per attempt: lock the file, check eligibility, verify, append.
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Mapping

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.config import Settings
from app.errors import FileUnavailable, KeyMismatch, internal_errors
from app.repositories.files_repository import FileRepository
from app.schemas import FileMetadata
from app.services.access_ledger import AccessLedger
from app.services.blob_store import BlobStore
from app.services.cipher import Cipher, decode_key
from app.services.origin import resolve_origin
from app.services.verifier import KeyVerifier

logger = logging.getLogger("sealbox.download")

RESERVATION_RETRIES = 5


@dataclass(frozen=True)
class DownloadResult:
    content: bytes
    metadata: FileMetadata


class DownloadService:
    def __init__(
        self, db_session: Session, settings: Settings, cipher: Cipher, verifier: KeyVerifier,
        blob_store: BlobStore, clock: Callable[[], datetime],
    ):
        self.db_session = db_session
        self.settings = settings
        self.cipher = cipher
        self.verifier = verifier
        self.blob_store = blob_store
        self.clock = clock
        self.ledger = AccessLedger(
            FileRepository(db_session),
            max_attempts=settings.max_download_attempts,
            one_shot=settings.one_shot,
        )

    def download(self, file_id: str, encoded_key: str, headers: Mapping[str, str]) -> DownloadResult:
        origin = resolve_origin(headers, self.settings.origin_header)
        try:
            file_uuid = uuid.UUID(file_id)
        except ValueError:
            raise FileUnavailable()
        key = decode_key(encoded_key)

        for _ in range(RESERVATION_RETRIES):
            with internal_errors(logger, f"Download of {file_uuid}"):
                try:
                    return self._attempt(file_uuid, key, origin)
                except IntegrityError:
                    self.db_session.rollback()
                    logger.info("Concurrent attempt on file %s, re-evaluating", file_uuid)
                except Exception:
                    self.db_session.rollback()
                    raise
        logger.warning("Gave up reserving an attempt on file %s", file_uuid)
        raise FileUnavailable()

    def _attempt(self, file_id: uuid.UUID, key: bytes | None, origin: str) -> DownloadResult:
        now = self.clock()
        record = self.ledger.find_eligible(file_id, now)
        if record is None:
            self.db_session.rollback()
            logger.info("File %s is not available to %s", file_id, origin)
            raise FileUnavailable()

        attempt = self.ledger.next_attempt(file_id)
        ciphertext = self.blob_store.load(file_id)
        encrypted_metadata = record.encrypted_metadata

        if key is None or not self.verifier.verify(key, record.key_digest):
            self.ledger.record_attempt(file_id, origin, False, attempt=attempt, now=now)
            self.db_session.commit()
            logger.info("Wrong key for file %s from %s (attempt %d)", file_id, origin, attempt)
            raise KeyMismatch()

        content = self.cipher.decrypt(ciphertext, key)
        metadata = FileMetadata.from_bytes(self.cipher.decrypt(encrypted_metadata, key))

        self.ledger.record_attempt(file_id, origin, True, attempt=attempt, now=now)
        self.db_session.commit()
        logger.info("File %s downloaded by %s (attempt %d)", file_id, origin, attempt)
        return DownloadResult(content=content, metadata=metadata)
