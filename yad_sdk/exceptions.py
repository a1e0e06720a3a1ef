"""
Custom exceptions for the Yandex.Disk SDK.

Transport failures raised by ``requests`` or ``aiohttp`` are not wrapped
here; they reach the caller unchanged. Everything below describes either
an error decoded from the server or a contract violation detected locally.
"""

from typing import Optional


class YadError(Exception):
    """Base exception for all SDK errors."""

    def __init__(self, message: str, error_code: str = None, details: dict = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}

    def __str__(self):
        if self.error_code:
            return f"[{self.error_code}] {self.message}"
        return self.message


class ApiError(YadError):
    """
    Error response decoded from the server.

    Raised whenever a response falls outside the 2xx range, or outside the
    status an endpoint is documented to return.
    """

    def __init__(
        self,
        status_code: int,
        message: str = "",
        description: str = "",
        error: str = "",
        **kwargs
    ):
        super().__init__(message or description, error_code="API_ERROR", **kwargs)
        self.status_code = status_code
        self.message = message
        self.description = description
        self.error = error

    @classmethod
    def from_dict(cls, status_code: int, data: dict) -> "ApiError":
        """Create ApiError from a decoded error body."""
        return cls(
            status_code,
            message=data.get("message", ""),
            description=data.get("description", ""),
            error=data.get("error", ""),
        )

    def __str__(self):
        return f"{self.status_code}: {self.description}"


class ProtocolError(YadError):
    """Raised when the server answers something the client cannot interpret."""

    def __init__(self, message: str = "Unexpected server response", **kwargs):
        kwargs.setdefault("error_code", "PROTOCOL_ERROR")
        super().__init__(message, **kwargs)


class TemplatedLinkError(ProtocolError):
    """Raised when the server returns a link that needs URI template expansion."""

    def __init__(self, message: str = "Unsupported templated link", href: str = None, **kwargs):
        super().__init__(message, error_code="TEMPLATED_LINK", **kwargs)
        self.href = href


class NotADirectoryError(YadError):
    """Raised when a listing is requested for something that is not a directory."""

    def __init__(self, message: str = "Not a directory", path: str = None, **kwargs):
        super().__init__(message, error_code="NOT_A_DIRECTORY", **kwargs)
        self.path = path


class NotAnOperationError(YadError):
    """Raised when a status check is requested for a link that is not an operation."""

    def __init__(self, message: str = "Link is not an operation", href: str = None, **kwargs):
        super().__init__(message, error_code="NOT_AN_OPERATION", **kwargs)
        self.href = href


class ValidationError(YadError):
    """Raised when input validation fails."""

    def __init__(self, message: str = "Validation failed", field: str = None, **kwargs):
        super().__init__(message, error_code="VALIDATION_ERROR", **kwargs)
        self.field = field


class UploadError(YadError):
    """Raised when the upload link does not answer 201 Created."""

    def __init__(self, message: str = "File upload failed", status_code: Optional[int] = None, **kwargs):
        super().__init__(message, error_code="UPLOAD_ERROR", **kwargs)
        self.status_code = status_code


class OperationFailedError(YadError):
    """Raised when a polled operation finishes with the failure status."""

    def __init__(self, message: str = "Operation failed", operation_id: str = None, **kwargs):
        super().__init__(message, error_code="OPERATION_FAILED", **kwargs)
        self.operation_id = operation_id


class OperationTimeoutError(YadError):
    """Raised when an operation is still in progress after the wait timeout."""

    def __init__(
        self,
        message: str = "Operation timed out",
        operation_id: str = None,
        timeout_seconds: float = None,
        **kwargs
    ):
        super().__init__(message, error_code="TIMEOUT_ERROR", **kwargs)
        self.operation_id = operation_id
        self.timeout_seconds = timeout_seconds


class ConfigurationError(YadError):
    """Raised when SDK configuration is invalid."""

    def __init__(self, message: str = "Invalid configuration", config_key: str = None, **kwargs):
        super().__init__(message, error_code="CONFIG_ERROR", **kwargs)
        self.config_key = config_key
