"""Error models"""

from enum import Enum
from typing import Any, Dict, Optional


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNAUTHENTICATED = "UNAUTHENTICATED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    SERVER_ERROR = "SERVER_ERROR"


HTTP_STATUS = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.UNAUTHENTICATED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.CONFLICT: 409,
    ErrorCode.SERVER_ERROR: 500,
}


class ApplicationError(Exception):
    """Base error rendered as a JSON response by the app's exception handler.

    ``field`` names the form field a validation message belongs to; ``extra``
    is merged into the response body (e.g. ``unavailable_rooms``).
    """

    code = ErrorCode.SERVER_ERROR

    def __init__(self, message: str, field: Optional[str] = None, **extra: Any):
        self.message = message
        self.field = field
        self.extra = extra
        super().__init__(message)

    @property
    def http_status(self) -> int:
        return HTTP_STATUS.get(self.code, 500)

    def model_dump(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"detail": self.message, "code": self.code.value}
        if self.field:
            body["field"] = self.field
        body.update(self.extra)
        return body


class ValidationFailed(ApplicationError):
    code = ErrorCode.VALIDATION_ERROR


class Forbidden(ApplicationError):
    code = ErrorCode.FORBIDDEN


class NotFound(ApplicationError):
    code = ErrorCode.NOT_FOUND


class Conflict(ApplicationError):
    code = ErrorCode.CONFLICT


class Unauthenticated(ApplicationError):
    code = ErrorCode.UNAUTHENTICATED
