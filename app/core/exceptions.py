from typing import List, Optional


class AppError(Exception):
    """Base class for typed errors that map onto an HTTP status code."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class BadRequestError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409

    def __init__(self, message: str, seat_ids: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.seat_ids = seat_ids
