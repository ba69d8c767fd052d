"""Typed errors raised by the service layer.

Handlers registered in :func:`evapi.app.create_app` turn every
:class:`ServiceError` into a JSON error body with the matching status code.
"""


class ServiceError(Exception):
    def __init__(self, status: int, code: str, message: str, details=None):
        super().__init__(message)
        self.status = status
        self.code = code
        self.message = message
        self.details = details

    @classmethod
    def not_found(cls, message: str, details=None) -> "ServiceError":
        return cls(404, "NOT_FOUND", message, details)

    @classmethod
    def validation_failed(cls, message: str, details=None) -> "ServiceError":
        return cls(400, "VALIDATION_FAILED", message, details)

    @classmethod
    def unauthorized(cls, message: str, details=None) -> "ServiceError":
        return cls(401, "UNAUTHORIZED", message, details)

    @classmethod
    def forbidden(cls, message: str, details=None) -> "ServiceError":
        return cls(403, "FORBIDDEN", message, details)

    @classmethod
    def capacity_exceeded(cls, message: str, details=None) -> "ServiceError":
        return cls(403, "CAPACITY_EXCEEDED", message, details)

    @classmethod
    def conflict(cls, message: str, details=None) -> "ServiceError":
        return cls(409, "CONFLICT", message, details)

    def __repr__(self) -> str:
        return f"ServiceError({self.status}, {self.code!r}, {self.message!r})"
