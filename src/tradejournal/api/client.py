"""HTTP gateway client: bearer auth, error normalization, schema validation."""

import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from tradejournal.core.exceptions import (
    ApiError,
    AuthorizationDeniedError,
    MalformedResponseError,
    NetworkError,
    NotFoundError,
    RequestTimeoutError,
    UnauthenticatedError,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], Awaitable[Optional[str]]]
ModelT = TypeVar("ModelT", bound=BaseModel)


def extract_error_message(response: httpx.Response) -> str:
    """
    Human-readable message for a failed response.

    Uses the body's "detail" (or "message") field when present, otherwise a
    generic status-coded message.
    """
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        detail = body.get("detail") or body.get("message")
        if isinstance(detail, str) and detail:
            return detail
        if detail:
            return str(detail)
    return f"API Error: {response.status_code}"


class ApiClient:
    """
    Uniform request construction for every gateway call.

    A token is resolved before each request; with no token the call fails
    with UnauthenticatedError and the network is never touched.
    """

    def __init__(
        self,
        base_url: str,
        token_provider: TokenProvider,
        timeout_seconds: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self._token_provider = token_provider
        self._timeout = timeout_seconds
        self._http = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout_seconds,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the underlying connection pool."""
        await self._http.aclose()

    async def request(
        self,
        method: str,
        path: str,
        *,
        json: Any = None,
    ) -> Any:
        """
        Send an authenticated request and return the decoded JSON body.

        Returns None for 204 or an empty body.
        """
        token = await self._token_provider()
        if not token:
            raise UnauthenticatedError()

        headers = {
            "Authorization": f"Bearer {token}",
            "Content-Type": "application/json",
        }

        try:
            response = await self._http.request(method, path, json=json, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning(f"{method} {path} timed out: {e}")
            raise RequestTimeoutError(self._timeout) from e
        except httpx.TransportError as e:
            logger.warning(f"{method} {path} failed: {e}")
            raise NetworkError(str(e) or "Network unavailable") from e

        if not response.is_success:
            raise self._error_for(method, path, response)

        if response.status_code == 204 or not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(path, "body is not valid JSON") from e

    async def request_model(
        self,
        method: str,
        path: str,
        schema: type[ModelT],
        *,
        json: Any = None,
    ) -> ModelT:
        """Send a request and validate the body against a schema."""
        payload = await self.request(method, path, json=json)
        try:
            return schema.model_validate(payload)
        except PydanticValidationError as e:
            raise MalformedResponseError(path, _summarize(e)) from e

    async def request_list(
        self,
        method: str,
        path: str,
        schema: type[ModelT],
        *,
        json: Any = None,
    ) -> list[ModelT]:
        """Send a request and validate the body as a list of schema items."""
        payload = await self.request(method, path, json=json)
        try:
            return TypeAdapter(list[schema]).validate_python(payload)
        except PydanticValidationError as e:
            raise MalformedResponseError(path, _summarize(e)) from e

    @staticmethod
    def _error_for(method: str, path: str, response: httpx.Response) -> Exception:
        message = extract_error_message(response)
        status = response.status_code
        logger.error(f"API error: {method} {path} -> {status}: {message}")

        if status == 401:
            return UnauthenticatedError(message)
        if status == 403:
            return AuthorizationDeniedError(message)
        if status == 404:
            return NotFoundError("Resource", path, message)
        return ApiError(status, message)


def _summarize(error: PydanticValidationError) -> str:
    first = error.errors()[0]
    location = ".".join(str(part) for part in first.get("loc", ())) or "<root>"
    return f"{location}: {first.get('msg', 'invalid')}"
