from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class AuthenticationError(AppError):
    """The bearer credential was rejected; the session is no longer valid."""


class NetworkError(AppError):
    """Transient failure: the request may be retried."""


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ValidationError(AppError):
    pass


class MalformedPayloadError(AppError):
    pass
