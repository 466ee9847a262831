"""Retrying request primitive over the notion-client async transport.

``NotionAPI.fetch`` sends one logical request and decodes the JSON body into a
typed model. Rate limiting (429) and server errors (5xx) are retried with
exponential backoff that never undercuts the server's ``Retry-After`` hint;
every other failure is mapped onto the ``notion_mirror.errors`` taxonomy
without retrying. Write calls pass ``retry=False`` and are attempted once.
"""

import asyncio
import json
import logging
import math
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, TypeVar

import httpx
from notion_client import AsyncClient
from notion_client.errors import HTTPResponseError, InvalidPathParameterError, RequestTimeoutError
from pydantic import JsonValue, TypeAdapter, ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, stop_after_attempt

from notion_mirror.config import get_settings
from notion_mirror.errors import (
    DecodeError,
    EncodeError,
    InvalidEndpointError,
    InvalidResponseError,
    InvalidResponseStatusError,
    MissingTokenError,
    RateLimitExceededError,
    RequestFailedError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_JSON_OBJECT = TypeAdapter(dict[str, JsonValue])

_api: "NotionAPI | None" = None


def _is_retryable(error: BaseException) -> bool:
    """Retry rate limits (429) and server errors (5xx), nothing else."""
    if not isinstance(error, HTTPResponseError):
        return False
    return error.status == 429 or 500 <= error.status <= 599


def parse_retry_after(headers: Mapping[str, str] | None, default: float) -> float:
    """Read ``Retry-After`` as seconds, falling back to ``default``.

    HTTP-date values, negatives, non-finite numbers and missing headers all
    use the default.
    """
    if headers is None:
        return default
    try:
        seconds = float(headers.get("Retry-After", ""))
    except (TypeError, ValueError):
        return default
    return seconds if math.isfinite(seconds) and seconds >= 0 else default


class NotionAPI:
    """Typed, retrying access to the Notion REST API.

    Args:
        token: Integration token. An empty token fails each fetch with
            ``MissingTokenError`` before anything is sent.
        notion_version: Value of the ``Notion-Version`` header.
        base_url: API origin, without the ``/v1`` suffix.
        timeout: Per-request timeout in seconds.
        max_retries: Retries after the first attempt for retryable statuses.
        min_retry_delay: Base of the exponential backoff, in seconds.
        max_retry_delay: Cap on the exponential backoff, in seconds.
        default_retry_after: Used when a 429/5xx response has no usable
            ``Retry-After`` header.
        http_client: Optional preconfigured ``httpx.AsyncClient`` (tests pass
            one with a mock transport).
        sleep: Coroutine used to wait between attempts.
    """

    def __init__(
        self,
        token: str | None,
        *,
        notion_version: str = "2022-06-28",
        base_url: str = "https://api.notion.com",
        timeout: float = 60.0,
        max_retries: int = 3,
        min_retry_delay: float = 1.0,
        max_retry_delay: float = 60.0,
        default_retry_after: float = 5.0,
        http_client: httpx.AsyncClient | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._token = token or None
        self.max_retries = max_retries
        self.min_retry_delay = min_retry_delay
        self.max_retry_delay = max_retry_delay
        self.default_retry_after = default_retry_after
        self._sleep = sleep
        self._client = AsyncClient(
            auth=self._token,
            notion_version=notion_version,
            base_url=base_url,
            timeout_ms=int(timeout * 1000),
            logger=logging.getLogger("notion_client"),
            # Retries happen in fetch(), where writes can opt out.
            retry=False,
            client=http_client,
        )
        self.request_count = 0
        self.retry_count = 0

    async def aclose(self) -> None:
        await self._client.aclose()

    async def fetch(
        self,
        method: str,
        path: str,
        decode: Callable[[Any], T],
        *,
        query: dict[str, str] | None = None,
        body: Any = None,
        retry: bool = True,
    ) -> T:
        """Send one request and decode its JSON body.

        Args:
            method: HTTP method.
            path: Path below ``/v1/``, e.g. ``blocks/{id}/children``.
            decode: Callable turning the parsed JSON into the result type,
                usually a model's ``model_validate``.
            query: Query-string parameters.
            body: JSON body: a dict or a pydantic model. Nested models are
                dumped as-is, so callers pass wire dicts where nulls matter.
            retry: Retry 429/5xx responses. Writes pass False.

        Returns:
            The decoded response.

        Raises:
            MissingTokenError: No token configured.
            InvalidEndpointError: ``path`` is not a relative API path.
            EncodeError: ``body`` cannot be serialized to a JSON object.
            RateLimitExceededError: Still 429 after the last attempt.
            InvalidResponseStatusError: Any other non-2xx final status.
            InvalidResponseError: 2xx body is JSON but not an object.
            RequestFailedError: Network error or timeout.
            DecodeError: 2xx body is not JSON or does not match ``decode``.
        """
        if not self._token:
            raise MissingTokenError()
        path = self._check_path(path)
        payload = self._encode_body(body)

        def log_retry(retry_state: RetryCallState) -> None:
            self.retry_count += 1
            error = retry_state.outcome.exception() if retry_state.outcome else None
            delay = retry_state.next_action.sleep if retry_state.next_action else 0.0
            logger.warning(
                "Retrying %s %s after HTTP %s in %.1fs (retry %d of %d)",
                method,
                path,
                getattr(error, "status", None),
                delay,
                retry_state.attempt_number,
                self.max_retries,
                extra={
                    "method": method,
                    "path": path,
                    "status": getattr(error, "status", None),
                    "attempt": retry_state.attempt_number,
                },
            )

        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            wait=self._retry_delay,
            stop=stop_after_attempt(self.max_retries + 1 if retry else 1),
            sleep=self._sleep,
            before_sleep=log_retry,
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    self.request_count += 1
                    logger.debug(
                        "%s %s",
                        method,
                        path,
                        extra={"method": method, "path": path, "attempt": attempt.retry_state.attempt_number},
                    )
                    response = await self._client.request(path=path, method=method, query=query, body=payload)
        except HTTPResponseError as exc:
            raise self._status_error(method, path, exc) from exc
        except InvalidPathParameterError as exc:
            raise InvalidEndpointError(str(exc)) from exc
        except (RequestTimeoutError, httpx.HTTPError) as exc:
            logger.error("%s %s failed: %s", method, path, exc, extra={"method": method, "path": path})
            raise RequestFailedError(exc) from exc
        except json.JSONDecodeError as exc:
            logger.error("%s %s returned a non-JSON body", method, path, extra={"method": method, "path": path})
            raise DecodeError(exc) from exc

        if not isinstance(response, dict):
            logger.error("%s %s returned a non-object body", method, path, extra={"method": method, "path": path})
            raise InvalidResponseError(f"Expected a JSON object from {method} {path}")

        try:
            return decode(response)
        except (ValidationError, ValueError, TypeError, KeyError) as exc:
            logger.error(
                "Could not decode %s %s response: %s",
                method,
                path,
                exc,
                extra={"method": method, "path": path},
            )
            raise DecodeError(exc) from exc

    def _retry_delay(self, retry_state: RetryCallState) -> float:
        """Seconds to wait: ``1 + max(retry_after, min(max, min * 2**retry))``."""
        error = retry_state.outcome.exception() if retry_state.outcome else None
        retry_after = parse_retry_after(getattr(error, "headers", None), self.default_retry_after)
        retry_index = retry_state.attempt_number - 1
        backoff = min(self.max_retry_delay, self.min_retry_delay * 2**retry_index)
        return 1 + max(retry_after, backoff)

    def _status_error(self, method: str, path: str, error: HTTPResponseError) -> Exception:
        context = {"method": method, "path": path, "status": error.status}
        if error.status == 429:
            retry_after = parse_retry_after(error.headers, self.default_retry_after)
            logger.error("Rate limit exceeded for %s %s", method, path, extra=context)
            return RateLimitExceededError(retry_after)
        logger.error("%s %s returned HTTP %d: %s", method, path, error.status, error, extra=context)
        return InvalidResponseStatusError(error.status, getattr(error, "body", ""))

    @staticmethod
    def _check_path(path: str) -> str:
        cleaned = path.lstrip("/")
        if not cleaned or ".." in cleaned or "://" in cleaned or any(char.isspace() for char in cleaned):
            raise InvalidEndpointError(f"Not a relative API path: {path!r}")
        return cleaned

    @staticmethod
    def _encode_body(body: Any) -> dict[str, JsonValue] | None:
        if body is None:
            return None
        try:
            return _JSON_OBJECT.validate_python(to_jsonable_python(body, by_alias=True))
        except (ValidationError, PydanticSerializationError) as exc:
            raise EncodeError(exc) from exc


async def get_notion_api() -> NotionAPI:
    """Return a cached ``NotionAPI`` built from application settings."""
    global _api
    if _api is None:
        settings = get_settings()
        _api = NotionAPI(
            settings.notion_api_key,
            notion_version=settings.notion_version,
            base_url=settings.notion_base_url,
            timeout=settings.request_timeout,
            max_retries=settings.max_retries,
            min_retry_delay=settings.min_retry_delay,
            max_retry_delay=settings.max_retry_delay,
            default_retry_after=settings.default_retry_after,
        )
    return _api


def reset_client() -> None:
    """Drop the cached API instance. Used for testing."""
    global _api
    _api = None
