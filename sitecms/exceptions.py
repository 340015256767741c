"""Application error taxonomy.

Every error raised by services derives from ``AppException`` and is rendered
by ``sitecms.middleware.error_handler`` as ``{"success": false, "message": ...}``.
"""


class AppException(Exception):
    status_code: int = 500
    default_detail: str = "An unexpected error occurred."

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)


class ValidationError(AppException):
    status_code = 422
    default_detail = "The given data was invalid."

    def __init__(self, detail: str | None = None, errors: dict[str, list[str]] | None = None):
        super().__init__(detail)
        self.errors = errors or {}

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, errors={field: [message]})


class NotFoundError(AppException):
    status_code = 404
    default_detail = "Not found."


class ConflictError(AppException):
    status_code = 409
    default_detail = "The request conflicts with the current state."


class CircularReferenceError(ConflictError):
    default_detail = "Cannot set a descendant category as parent."


class DuplicateSubmission(AppException):
    status_code = 409
    default_detail = "A similar inquiry was recently submitted. Please wait before submitting again."


class RateLimitExceeded(AppException):
    status_code = 429
    default_detail = "Too many requests. Please try again later."

    def __init__(self, retry_after: int, detail: str | None = None):
        super().__init__(detail)
        self.retry_after = max(1, int(retry_after))


class StorageError(AppException):
    status_code = 500
    default_detail = "A storage error occurred."
