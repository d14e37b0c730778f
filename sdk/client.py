"""BotClient — executes Bot API methods over HTTP.

A method is turned into a :class:`~sdk.request.RequestDescriptor`, sent with
the ``requests`` library and the uniform ``{ok, result, …}`` envelope is
decoded into the method's declared response type.  Blocking I/O is offloaded
via :func:`asyncio.to_thread` so the event loop is never blocked.

The client never retries: every failure is raised as an
:class:`~sdk.exceptions.ExecuteError` subclass and the caller decides.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Dict, Optional

import requests
from pydantic import ValidationError

from core.logger import PollbotLogger
from sdk.exceptions import (
    APIException,
    DecodeError,
    HTTPStatusError,
    TransportError,
)
from sdk.methods import Method
from sdk.models import ApiResponse
from sdk.request import FormBody, JsonBody, RequestDescriptor

logger = PollbotLogger.get_logger(__name__)

DEFAULT_BASE_URL: str = "https://api.telegram.org"


class BotClient:
    """Client-side executor for the Bot API.

    One instance may be shared by the long-poll loop and any number of
    handlers; it holds no per-call state.
    """

    _DEFAULT_TIMEOUT: float = 10

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = _DEFAULT_TIMEOUT,
    ) -> None:
        """Create a client bound to *token*.

        Args:
            token: Bot token issued by the API.
            base_url: API root, without the ``bot<token>`` segment.
            timeout: Default request timeout in seconds.
        """
        self._token = token
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def __repr__(self) -> str:
        return f"BotClient(base_url={self._base_url!r})"

    # ------------------------------------------------------------------
    #  Public API
    # ------------------------------------------------------------------

    async def execute(self, method: Method) -> Any:
        """Execute *method* and return its decoded result.

        Raises:
            EncodingError: If the method's parameters cannot be encoded.
            TransportError: On connection failures and timeouts.
            HTTPStatusError: On a non-2xx response that is not an envelope.
            APIException: When the API answers ``ok: false``.
            DecodeError: When the response does not match the expected shape.
        """
        descriptor = method.into_request()
        response = await asyncio.to_thread(self._send, descriptor)
        result = self._parse_envelope(descriptor.endpoint, response)
        try:
            return method.decode_response(result)
        except ValidationError as exc:
            logger.error(
                "Response does not match the expected type",
                extra={"api_endpoint": descriptor.endpoint, "error": str(exc)},
            )
            raise DecodeError(exc) from exc

    # ------------------------------------------------------------------
    #  Internal helpers
    # ------------------------------------------------------------------

    def _send(self, descriptor: RequestDescriptor) -> requests.Response:
        """Perform the HTTP call described by *descriptor* (blocking)."""
        url = descriptor.build_url(self._base_url, self._token)
        kwargs: Dict[str, Any] = {
            "timeout": descriptor.timeout or self._timeout,
        }
        body = descriptor.body
        if isinstance(body, JsonBody):
            kwargs["data"] = body.data
            kwargs["headers"] = {"Content-Type": "application/json"}
        elif isinstance(body, FormBody):
            kwargs["files"] = body.to_multipart()

        logger.debug(
            "Sending request",
            extra={"api_endpoint": descriptor.endpoint, "http_method": descriptor.method.value},
        )
        try:
            return requests.request(descriptor.method.value, url, **kwargs)
        except requests.RequestException as exc:
            logger.warning(
                "Request failed",
                extra={"api_endpoint": descriptor.endpoint, "error": str(exc)},
            )
            raise TransportError(exc) from exc

    def _parse_envelope(self, endpoint: str, response: requests.Response) -> Any:
        """Return the ``result`` of a successful envelope or raise."""
        envelope = self._load_envelope(response)
        if envelope is None:
            if not response.ok:
                logger.warning(
                    "Non-2xx response without envelope",
                    extra={"api_endpoint": endpoint, "status_code": response.status_code},
                )
                raise HTTPStatusError(response.status_code, response.text)
            raise DecodeError(ValueError(f"Response body is not an API envelope: {response.text[:200]!r}"))

        if not envelope.ok:
            parameters = envelope.parameters
            exc = APIException(
                error_code=envelope.error_code or response.status_code,
                description=envelope.description or "Unknown error",
                retry_after=parameters.retry_after if parameters else None,
                migrate_to_chat_id=parameters.migrate_to_chat_id if parameters else None,
                response_body=envelope.model_dump(exclude_none=True),
            )
            logger.warning(
                "API returned an error",
                extra={
                    "api_endpoint": endpoint,
                    "error_code": exc.error_code,
                    "description": exc.description,
                    "retry_after": exc.retry_after,
                },
            )
            raise exc
        return envelope.result

    @staticmethod
    def _load_envelope(response: requests.Response) -> Optional[ApiResponse]:
        try:
            body = response.json()
        except (ValueError, json.JSONDecodeError):
            return None
        if not isinstance(body, dict):
            return None
        try:
            return ApiResponse.model_validate(body)
        except ValidationError:
            return None
