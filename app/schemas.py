"""Request and response bodies, and the encrypted metadata record."""
from typing import Mapping

from pydantic import BaseModel

FILE_NAME_HEADER = "X-File-Name"


class FileMetadata(BaseModel):
    file_name: str | None = None
    content_type: str | None = None

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "FileMetadata":
        return cls(
            file_name=headers.get(FILE_NAME_HEADER) or None,
            content_type=headers.get("Content-Type") or None,
        )

    def to_bytes(self) -> bytes:
        return self.model_dump_json().encode("utf-8")

    @classmethod
    def from_bytes(cls, data: bytes) -> "FileMetadata":
        return cls.model_validate_json(data)


class UploadResponse(BaseModel):
    id: str
    key: str


class DownloadRequest(BaseModel):
    key: str
