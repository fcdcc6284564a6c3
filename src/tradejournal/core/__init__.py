"""Core utilities and shared functionality."""

from tradejournal.core.timezone import (
    now_utc,
    to_utc,
    parse_timestamp,
    parse_date,
    UTC,
)
from tradejournal.core.exceptions import (
    AppError,
    ValidationError,
    UnauthenticatedError,
    AuthorizationDeniedError,
    NotFoundError,
    ApiError,
    NetworkError,
    RequestTimeoutError,
    MalformedResponseError,
    MutationInProgressError,
)

__all__ = [
    "now_utc",
    "to_utc",
    "parse_timestamp",
    "parse_date",
    "UTC",
    "AppError",
    "ValidationError",
    "UnauthenticatedError",
    "AuthorizationDeniedError",
    "NotFoundError",
    "ApiError",
    "NetworkError",
    "RequestTimeoutError",
    "MalformedResponseError",
    "MutationInProgressError",
]
