"""Typed errors surfaced by the Notion fetch layer.

Field-level decode anomalies never reach these types: the model codec absorbs
them into fallback variants. Everything here is a call-level failure that
propagates to the caller.
"""


class NotionMirrorError(Exception):
    """Base class for all call-level failures."""


class MissingTokenError(NotionMirrorError):
    """No API token is configured. Fatal, never retried."""

    def __init__(self) -> None:
        super().__init__("Notion API token is not configured (set NOTION_API_KEY)")


class InvalidEndpointError(NotionMirrorError):
    """A request could not be built from the given arguments."""


class InvalidResponseError(NotionMirrorError):
    """The transport returned something that is not an HTTP response body."""


class InvalidResponseStatusError(NotionMirrorError):
    """Terminal non-2xx HTTP status."""

    def __init__(self, status: int, body: str = "") -> None:
        self.status = status
        self.body = body
        super().__init__(f"Notion API returned HTTP {status}")


class RateLimitExceededError(NotionMirrorError):
    """Still rate limited after the retry budget was spent."""

    def __init__(self, retry_after: float) -> None:
        self.retry_after = retry_after
        super().__init__(f"Notion API rate limit exceeded (retry after {retry_after:g}s)")


class RequestFailedError(NotionMirrorError):
    """Network or timeout failure before any HTTP status was received."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Notion API request failed: {cause}")


class DecodeError(NotionMirrorError):
    """A 2xx response body did not match the expected top-level shape."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Could not decode Notion API response: {cause}")


class EncodeError(NotionMirrorError):
    """A request body could not be serialized to JSON."""

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Could not encode request body: {cause}")


class DataCorruptedError(NotionMirrorError):
    """The block graph revisits an ancestor or exceeds the depth limit."""

    def __init__(self, block_id: str, reason: str) -> None:
        self.block_id = block_id
        self.reason = reason
        super().__init__(f"Corrupted block tree at {block_id}: {reason}")
