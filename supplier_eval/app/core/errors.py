"""Service error taxonomy.

Services raise these; `main.py` renders them as JSON with `detail` and a
machine-readable `reason`.
"""
# app/core/errors.py
from contextlib import contextmanager

from sqlalchemy.exc import DisconnectionError, OperationalError, TimeoutError as PoolTimeoutError


class ServiceError(Exception):
    status_code = 500
    reason = "internal_error"

    def __init__(self, detail: str = "", reason: str | None = None):
        super().__init__(detail)
        self.detail = detail or self.__class__.__name__
        if reason is not None:
            self.reason = reason


class Unauthenticated(ServiceError):
    status_code = 401
    reason = "unauthenticated"


class Forbidden(ServiceError):
    status_code = 403
    reason = "forbidden"


class NotFound(ServiceError):
    status_code = 404
    reason = "not_found"


class InvalidArgument(ServiceError):
    status_code = 400
    reason = "invalid_argument"


class DataIntegrity(ServiceError):
    """A referential invariant was violated upstream (e.g. a response without its question)."""
    status_code = 500
    reason = "data_integrity"


class Transient(ServiceError):
    """Storage timeout or lost connection; safe to retry with backoff."""
    status_code = 503
    reason = "transient"


@contextmanager
def storage_guard():
    """Translate storage connectivity failures into `Transient`."""
    try:
        yield
    except (OperationalError, DisconnectionError, PoolTimeoutError) as e:
        raise Transient(f"Storage unavailable: {e.__class__.__name__}") from e
