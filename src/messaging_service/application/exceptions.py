from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    code = "app_error"

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    code = "not_found"


class ForbiddenError(AppError):
    code = "forbidden"


class ValidationError(AppError):
    code = "validation_error"


class UnknownIdentityError(AppError):
    """Sender or receiver does not resolve to a marketplace user."""

    code = "unknown_identity"


class TransportFailureError(AppError):
    """A live socket write or a client network call failed."""

    code = "transport_failure"


ERRORS_BY_CODE: dict[str, type[AppError]] = {
    cls.code: cls
    for cls in (
        NotFoundError,
        ForbiddenError,
        ValidationError,
        UnknownIdentityError,
        TransportFailureError,
    )
}
