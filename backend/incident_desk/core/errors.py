from typing import Any, Dict

from fastapi import status


class ApiError(Exception):
    """
    Error rendered as ``{"message": ..., **extra}`` with ``status_code``.

    Extra keyword arguments (``details``, ``received``, ``id``, ``q``...) are
    echoed verbatim in the response body.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int = None, **extra: Any):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, **self.extra}


class BadRequest(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotFound(ApiError):
    status_code = status.HTTP_404_NOT_FOUND


class FormattingFailure(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


class DatabaseFailure(ApiError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
