"""Client-level exceptions."""

from typing import Optional


class AppError(Exception):
    """Base exception for client errors."""

    retryable: bool = False

    def __init__(self, message: str, code: str = "APP_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class ValidationError(AppError):
    """Raised when input validation fails."""

    def __init__(self, message: str):
        super().__init__(message, code="VALIDATION_ERROR")


class UnauthenticatedError(AppError):
    """Raised when there is no valid session or bearer token."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, code="UNAUTHENTICATED")


class AuthorizationDeniedError(AppError):
    """Raised when the current user lacks the role an operation requires."""

    def __init__(self, message: str = "Access Denied"):
        super().__init__(message, code="ACCESS_DENIED")


class NotFoundError(AppError):
    """Raised when a requested resource is not found."""

    def __init__(self, resource: str, identifier: str, message: Optional[str] = None):
        self.resource = resource
        self.identifier = identifier
        super().__init__(message or f"{resource} not found: {identifier}", code="NOT_FOUND")


class ApiError(AppError):
    """Raised for a non-success HTTP status from the gateway."""

    RETRYABLE_STATUSES = frozenset({408, 429})

    def __init__(self, status_code: int, message: Optional[str] = None):
        self.status_code = status_code
        self.retryable = status_code >= 500 or status_code in self.RETRYABLE_STATUSES
        super().__init__(message or f"API Error: {status_code}", code="API_ERROR")


class NetworkError(AppError):
    """Raised when the gateway cannot be reached."""

    retryable = True

    def __init__(self, message: str = "Network unavailable"):
        super().__init__(message, code="NETWORK_ERROR")


class RequestTimeoutError(AppError):
    """Raised when a gateway request exceeds the configured timeout."""

    retryable = True

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(
            f"Request timed out after {timeout_seconds:g}s",
            code="TIMEOUT",
        )


class MalformedResponseError(AppError):
    """Raised when a response body does not match its expected schema."""

    def __init__(self, endpoint: str, detail: str):
        self.endpoint = endpoint
        super().__init__(
            f"Malformed response from {endpoint}: {detail}",
            code="MALFORMED_RESPONSE",
        )


class MutationInProgressError(AppError):
    """Raised when a mutation is started while another holds the same scope."""

    def __init__(self, scope: str):
        self.scope = scope
        super().__init__(
            f"Another operation is already in progress for {scope}",
            code="MUTATION_IN_PROGRESS",
        )
