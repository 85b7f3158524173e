"""Error taxonomy shared by the services and the HTTP layer."""

from http import HTTPStatus
from typing import Any, Dict


class AppError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code: HTTPStatus = HTTPStatus.INTERNAL_SERVER_ERROR
    message: str = "Internal Server Error"

    def __init__(self, message: str | None = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(AppError):
    status_code = HTTPStatus.BAD_REQUEST
    message = "Invalid data"


class NotFoundError(AppError):
    # Missing referenced entities are reported as bad input.
    status_code = HTTPStatus.BAD_REQUEST
    message = "Referenced entity not found"


class ConflictError(AppError):
    status_code = HTTPStatus.CONFLICT
    message = "User already exists"


class UnauthenticatedError(AppError):
    status_code = HTTPStatus.UNAUTHORIZED
    message = "Not authenticated"


class InvalidTokenError(AppError):
    status_code = HTTPStatus.FORBIDDEN
    message = "Invalid token"


class ExpiredTokenError(InvalidTokenError):
    message = "Token expired"
