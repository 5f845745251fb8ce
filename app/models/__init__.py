from app.models.stored_file import StoredFile
from app.models.access_log import AccessLogEntry

__all__ = ["StoredFile", "AccessLogEntry"]
