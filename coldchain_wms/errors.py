"""
Typed API errors with a normalized ``{"detail", "code"}`` payload
"""
from typing import Any, Optional


class WMSError(Exception):
    """Base class for errors surfaced by the API layer."""

    status_code: int = 500
    code: str = "internal_error"

    def __init__(self, detail: str, code: Optional[str] = None, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        if code is not None:
            self.code = code
        if status_code is not None:
            self.status_code = status_code

    def to_payload(self) -> dict[str, Any]:
        return {"detail": self.detail, "code": self.code}


class BadRequestError(WMSError):
    status_code = 400
    code = "bad_request"


class AuthError(WMSError):
    status_code = 401
    code = "auth.invalid_credentials"


class NotFoundError(WMSError):
    status_code = 404
    code = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        code = entity.lower().replace(" ", "_")
        super().__init__(f"{entity} '{entity_id}' not found", code=f"{code}.not_found")
        self.entity = entity
        self.entity_id = entity_id


class ConflictError(WMSError):
    status_code = 409
    code = "conflict"


class CapacityExceeded(ConflictError):
    code = "location.capacity_exceeded"


class InvalidOrderUpdate(WMSError):
    status_code = 422
    code = "order.invalid_update"


class RequestTimeout(WMSError):
    status_code = 504
    code = "request.timeout"
