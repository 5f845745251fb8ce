import logging
import os
import tempfile
import uuid
from pathlib import Path

logger = logging.getLogger("sealbox.blobs")


class BlobStoreError(Exception):
    """Underlying I/O failure."""


class BlobNotFound(BlobStoreError):
    pass


class BlobStore:
    def __init__(self, root: str | Path):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _path(self, blob_id: uuid.UUID) -> Path:
        return self.root / blob_id.hex

    def store(self, blob_id: uuid.UUID, data: bytes) -> None:
        """Write ``data`` under ``blob_id``; returns only once it is durable."""
        final_path = self._path(blob_id)
        tmp = tempfile.NamedTemporaryFile(delete=False, dir=str(self.root), prefix=".tmp-")
        try:
            with tmp:
                tmp.write(data)
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp.name, final_path)
            self._sync_dir()
        except OSError as exc:
            if os.path.exists(tmp.name):
                os.unlink(tmp.name)
            raise BlobStoreError(f"storing blob {blob_id} failed") from exc
        logger.debug("Stored blob %s (%d bytes)", blob_id, len(data))

    def load(self, blob_id: uuid.UUID) -> bytes:
        try:
            return self._path(blob_id).read_bytes()
        except FileNotFoundError as exc:
            raise BlobNotFound(f"blob {blob_id} not found") from exc
        except OSError as exc:
            raise BlobStoreError(f"loading blob {blob_id} failed") from exc

    def _sync_dir(self) -> None:
        # Persist the rename itself; directories cannot be opened on Windows
        if os.name != "posix":
            return
        fd = os.open(self.root, os.O_RDONLY)
        try:
            os.fsync(fd)
        finally:
            os.close(fd)
