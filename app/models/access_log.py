import uuid
from datetime import datetime, timezone
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, Integer, UniqueConstraint, Uuid
from app.database import Base


class AccessLogEntry(Base):
    """One download attempt. Rows are only ever inserted."""

    __tablename__ = "access_log"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    file_id = Column(Uuid, ForeignKey("stored_files.id"), nullable=False, index=True)
    # 1-based position among this file's attempts
    attempt = Column(Integer, nullable=False)
    ip = Column(String(45), nullable=False)
    date_time = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    successful = Column(Boolean, nullable=False)

    __table_args__ = (
        UniqueConstraint("file_id", "attempt", name="uq_access_log_file_id_attempt"),
    )
