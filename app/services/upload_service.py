import logging
import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import AsyncIterator, Callable, Mapping

from sqlalchemy.orm import Session
from starlette.concurrency import run_in_threadpool

from app.config import METADATA_MAX_SIZE, Settings
from app.errors import BodyTooLarge, MetadataTooLarge, UploadLimitReached, internal_errors
from app.repositories.files_repository import FileRepository
from app.schemas import FileMetadata
from app.services.blob_store import BlobStore
from app.services.cipher import Cipher
from app.services.origin import resolve_origin
from app.services.rate_limiter import RateLimiter
from app.services.verifier import KeyVerifier

logger = logging.getLogger("sealbox.upload")


@dataclass(frozen=True)
class UploadResult:
    file_id: uuid.UUID
    key: bytes


async def read_limited(body: AsyncIterator[bytes], max_size: int) -> bytes:
    """Collect ``body`` but stop as soon as it grows past ``max_size``."""
    chunks = []
    size = 0
    async for chunk in body:
        size += len(chunk)
        if size > max_size:
            raise BodyTooLarge()
        chunks.append(chunk)
    return b"".join(chunks)


class UploadService:
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
        self.repository = FileRepository(db_session)
        self.rate_limiter = RateLimiter(
            self.repository,
            maximum=settings.recent_uploads_maximum,
            window=settings.recent_uploads_window,
            clock=clock,
        )

    async def upload(self, headers: Mapping[str, str], body: AsyncIterator[bytes]) -> UploadResult:
        origin = resolve_origin(headers, self.settings.origin_header)

        with internal_errors(logger, "Upload quota check"):
            limited = await run_in_threadpool(self.rate_limiter.is_limit_reached, origin)
        if limited:
            logger.info("Upload limit reached for %s", origin)
            raise UploadLimitReached()

        self._check_declared_length(headers)
        content = await read_limited(body, self.settings.body_max_size)
        metadata = FileMetadata.from_headers(headers)

        with internal_errors(logger, "Upload"):
            result = await run_in_threadpool(self.store, origin, content, metadata)
        logger.info("Stored file %s from %s (%d bytes)", result.file_id, origin, len(content))
        return result

    def store(self, origin: str, content: bytes, metadata: FileMetadata) -> UploadResult:
        key = self.cipher.generate_key()
        encrypted_content = self.cipher.encrypt(content, key)

        encrypted_metadata = self.cipher.encrypt(metadata.to_bytes(), key)
        if len(encrypted_metadata) > METADATA_MAX_SIZE:
            logger.info("Rejected upload from %s: metadata %d bytes", origin, len(encrypted_metadata))
            raise MetadataTooLarge()

        key_digest = self.verifier.derive_verifier(key)
        file_id = uuid.uuid4()
        self.blob_store.store(file_id, encrypted_content)

        now = self.clock()
        # The row publishes the file; a blob without one is unreachable
        self.repository.insert_file(
            file_id=file_id,
            key_digest=key_digest,
            uploader_ip=origin,
            uploaded_at=now,
            download_until=now + self.settings.file_lifetime,
            encrypted_metadata=encrypted_metadata,
        )
        try:
            self.db_session.commit()
        except Exception:
            self.db_session.rollback()
            raise
        return UploadResult(file_id=file_id, key=key)

    def _check_declared_length(self, headers: Mapping[str, str]) -> None:
        declared = headers.get("Content-Length")
        if declared is not None and declared.isdigit() and int(declared) > self.settings.body_max_size:
            raise BodyTooLarge()
