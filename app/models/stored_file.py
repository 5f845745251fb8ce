from datetime import datetime, timezone
from sqlalchemy import Column, String, LargeBinary, DateTime, Index, Uuid
from app.database import Base


class StoredFile(Base):
    __tablename__ = "stored_files"

    id = Column(Uuid, primary_key=True)
    # Verifier digest of the key; the key itself is never stored
    key_digest = Column(String(255), nullable=False)
    uploader_ip = Column(String(45), nullable=False)
    uploaded_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    download_until = Column(DateTime(timezone=True), nullable=False, index=True)
    encrypted_metadata = Column(LargeBinary(255), nullable=False)

    __table_args__ = (
        Index("ix_stored_files_uploader_ip_uploaded_at", "uploader_ip", "uploaded_at"),
    )
