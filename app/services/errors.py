from __future__ import annotations


class ServiceError(ValueError):
    """Rejected operation; ``code`` is the client-facing detail string."""

    status_code = 400
    default_code = "bad_request"

    def __init__(self, code: str | None = None) -> None:
        self.code = code or self.default_code
        super().__init__(self.code)


class ValidationError(ServiceError):
    default_code = "validation_error"


class NotFoundError(ServiceError):
    status_code = 404
    default_code = "not_found"


class ForbiddenError(ServiceError):
    status_code = 403
    default_code = "forbidden"


class ConflictError(ServiceError):
    status_code = 409
    default_code = "conflict"


class NoActiveSeasonError(ServiceError):
    default_code = "no_active_season"
