"""Exception hierarchy for the pollbot Bot API SDK.

Every failure of :meth:`sdk.client.BotClient.execute` is an
:class:`ExecuteError`; its subclasses say *where* the call failed and
:attr:`ExecuteError.retryable` says whether trying again can help.
"""

from typing import Any, Dict, Optional


class EncodingError(Exception):
    """A method's parameters could not be serialized into a request."""


class ExecuteError(Exception):
    """Base class for every failure of a single API call."""

    @property
    def retryable(self) -> bool:
        """Whether repeating the same call may succeed."""
        return False


class TransportError(ExecuteError):
    """The HTTP exchange itself failed (connection, DNS, timeout, …).

    Attributes:
        cause: The underlying ``requests`` exception.
    """

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Transport error: {cause}")

    @property
    def retryable(self) -> bool:
        return True


class HTTPStatusError(ExecuteError):
    """Non-2xx response whose body is not an API envelope.

    Typically produced by a proxy or load balancer in front of the API.

    Attributes:
        status_code: HTTP status code of the response.
        response_body: Raw response text.
    """

    def __init__(self, status_code: int, response_body: str = "") -> None:
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(f"HTTP error {status_code}: {response_body[:200]}")

    @property
    def retryable(self) -> bool:
        return self.status_code >= 500 or self.status_code == 429


class APIException(ExecuteError):
    """The API answered with ``ok: false``.

    Attributes:
        error_code: Error code from the envelope (mirrors the HTTP status).
        description: Human-readable description from the envelope.
        retry_after: Seconds to wait before repeating the request, if the
            API asked for it (flood control).
        migrate_to_chat_id: New identifier of a group migrated to a supergroup.
        response_body: The decoded envelope, when available.
    """

    def __init__(
        self,
        error_code: int,
        description: str = "Unknown error",
        retry_after: Optional[int] = None,
        migrate_to_chat_id: Optional[int] = None,
        response_body: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.error_code = error_code
        self.description = description
        self.retry_after = retry_after
        self.migrate_to_chat_id = migrate_to_chat_id
        self.response_body = response_body or {}
        super().__init__(f"API error {error_code}: {description}")

    @property
    def retryable(self) -> bool:
        return self.retry_after is not None


class DecodeError(ExecuteError):
    """The response could not be decoded into the expected shape.

    Attributes:
        cause: The JSON or validation error raised while decoding.
    """

    def __init__(self, cause: BaseException) -> None:
        self.cause = cause
        super().__init__(f"Failed to decode response: {cause}")
