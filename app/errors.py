"""Error taxonomy shared by the orchestrators and the HTTP layer.

Every failure that reaches a response is one of four kinds:

- ``ClientInputError``: the request itself is unusable
- ``AuthorizationError``: the supplied key does not match
- ``ResourceExhausted``: quota, attempt budget, expiry or prior consumption
- ``InternalError``: anything on our side; details stay in the log

Each concrete class carries the status code and the public message used
for the response. Internal details never go into ``detail``.
"""
import logging
from contextlib import contextmanager
from typing import Iterator


class VaultError(Exception):
    status_code: int = 500
    detail: str = "Internal server error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class ClientInputError(VaultError):
    status_code = 400
    detail = "Bad request"


class OriginUnresolvable(ClientInputError):
    status_code = 502
    detail = "Could not determine request origin"


class BodyTooLarge(ClientInputError):
    status_code = 413
    detail = "File too large"


class MetadataTooLarge(ClientInputError):
    status_code = 431
    detail = "File metadata too large"


class AuthorizationError(VaultError):
    status_code = 401
    detail = "Unauthorized"


class KeyMismatch(AuthorizationError):
    detail = "Invalid key"


class ResourceExhausted(VaultError):
    status_code = 429
    detail = "Resource exhausted"


class UploadLimitReached(ResourceExhausted):
    detail = "Upload limit reached"


class FileUnavailable(ResourceExhausted):
    # Expired, exhausted, consumed and unknown files look the same
    status_code = 404
    detail = "File not found"


class InternalError(VaultError):
    pass


@contextmanager
def internal_errors(logger: logging.Logger, action: str) -> Iterator[None]:
    """Map any non-taxonomy exception raised in the block to ``InternalError``.

    Taxonomy errors pass through untouched. Everything else is logged with
    its traceback and replaced, so no internal type or message crosses the
    response boundary.
    """
    try:
        yield
    except VaultError:
        raise
    except Exception as exc:
        logger.exception("%s failed", action)
        raise InternalError() from exc
