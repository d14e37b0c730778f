"""Long-polling update loop.

:class:`LongPoll` repeatedly calls ``getUpdates`` with the current offset and
hands each update to a handler, one at a time and in ascending ``update_id``
order.  Once an update has been handed over, the offset moves past it whether
the handler succeeded or not, so no update is ever delivered twice.  An
update the models cannot parse is logged and confirmed without delivery.

Transient failures (network errors, 5xx, flood control) put the loop into
backoff; errors that cannot heal by waiting (bad token, malformed responses)
stop it and are raised from :meth:`LongPoll.run`.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Awaitable, Callable, List, Optional, Protocol, Sequence, Tuple, Union

from pydantic import ValidationError

from core.logger import PollbotLogger
from sdk.client import BotClient
from sdk.exceptions import APIException, ExecuteError
from sdk.methods import GetUpdates
from sdk.models import Update

logger = PollbotLogger.get_logger(__name__)

DEFAULT_POLL_TIMEOUT: int = 30


class PollState(str, Enum):
    """Where the loop currently is."""

    IDLE = "idle"
    POLLING = "polling"
    DELIVERING = "delivering"
    BACKOFF = "backoff"
    STOPPED = "stopped"


class UpdateHandler(Protocol):
    """Anything with an async ``handle(update)`` method."""

    async def handle(self, update: Update) -> Any:
        ...


Handler = Union[UpdateHandler, Callable[[Update], Any]]
ErrorCallback = Callable[[Update, Exception], Optional[Awaitable[None]]]


@dataclass
class Backoff:
    """Bounded exponential delay: ``initial``, ``initial * factor``, … up to ``maximum``."""

    initial: float = 1.0
    maximum: float = 60.0
    factor: float = 2.0
    _attempts: int = field(default=0, init=False, repr=False)

    def next_delay(self) -> float:
        delay = min(self.initial * (self.factor ** self._attempts), self.maximum)
        self._attempts += 1
        return delay

    def reset(self) -> None:
        self._attempts = 0


class LongPoll:
    """Fetch updates with ``getUpdates`` and feed them to *handler*.

    Args:
        client: Executor used for ``getUpdates``.
        handler: An :class:`UpdateHandler` or a callable taking the update;
            coroutine results are awaited.
        poll_timeout: Seconds the server may hold each poll open.
        limit: Maximum number of updates per batch.
        allowed_updates: Update kinds to receive; ``None`` keeps the server's choice.
        offset: Starting offset; ``None`` lets the server pick.
        backoff: Delay policy after transient failures.
        on_error: Called with ``(update, exc)`` when the handler raises.
            Defaults to logging the error.
    """

    def __init__(
        self,
        client: BotClient,
        handler: Handler,
        *,
        poll_timeout: int = DEFAULT_POLL_TIMEOUT,
        limit: Optional[int] = None,
        allowed_updates: Optional[List[str]] = None,
        offset: Optional[int] = None,
        backoff: Optional[Backoff] = None,
        on_error: Optional[ErrorCallback] = None,
    ) -> None:
        self._client = client
        self._handler = handler
        self._poll_timeout = poll_timeout
        self._limit = limit
        self._allowed_updates = allowed_updates
        self._offset = offset
        self._backoff = backoff or Backoff()
        self._on_error = on_error or self._log_handler_error
        self._state = PollState.IDLE
        self._stop_event = asyncio.Event()

    @property
    def offset(self) -> Optional[int]:
        """Identifier of the next update to fetch."""
        return self._offset

    @property
    def state(self) -> PollState:
        return self._state

    def stop(self) -> None:
        """Ask the loop to stop.

        An in-flight poll is abandoned; a running handler call is allowed to
        finish, but the rest of its batch is not delivered.
        """
        logger.info("Stop requested", extra={"state": self._state.value, "offset": self._offset})
        self._stop_event.set()

    async def run(self) -> None:
        """Poll and deliver until :meth:`stop` is called or a fatal error occurs.

        Raises:
            ExecuteError: The fatal error that stopped the loop.
        """
        logger.info("Polling for updates", extra={"offset": self._offset, "poll_timeout": self._poll_timeout})
        try:
            while not self._stop_event.is_set():
                self._state = PollState.POLLING
                try:
                    updates = await self._poll()
                except ExecuteError as exc:
                    delay = self._retry_delay(exc)
                    if delay is None:
                        logger.error(
                            "Polling failed with a non-recoverable error, stopping",
                            extra={"api_endpoint": GetUpdates.endpoint, "error": str(exc)},
                        )
                        raise
                    logger.warning(
                        "Polling failed, backing off",
                        extra={"api_endpoint": GetUpdates.endpoint, "error": str(exc), "delay": delay},
                    )
                    self._state = PollState.BACKOFF
                    await self._pause(delay)
                    continue

                if updates is None:
                    break
                self._backoff.reset()
                if updates:
                    logger.debug("Received updates", extra={"count": len(updates), "offset": self._offset})
                    await self._deliver(updates)
        finally:
            self._state = PollState.STOPPED
            logger.info("Polling stopped", extra={"offset": self._offset})

    # ------------------------------------------------------------------
    # Polling
    # ------------------------------------------------------------------

    def _build_request(self) -> GetUpdates:
        return GetUpdates(
            offset=self._offset,
            limit=self._limit,
            timeout=self._poll_timeout,
            allowed_updates=self._allowed_updates,
        )

    async def _poll(self) -> Optional[Sequence[Any]]:
        """Fetch one batch, or return ``None`` if stopped while waiting."""
        poll_task = asyncio.ensure_future(self._client.execute(self._build_request()))
        stop_task = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({poll_task, stop_task}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop_task.cancel()
        if poll_task.done():
            return poll_task.result()
        poll_task.cancel()
        try:
            await poll_task
        except (asyncio.CancelledError, ExecuteError):
            pass
        return None

    def _retry_delay(self, exc: ExecuteError) -> Optional[float]:
        """Seconds to wait before polling again, or ``None`` if *exc* is fatal."""
        if not exc.retryable:
            return None
        delay = self._backoff.next_delay()
        if isinstance(exc, APIException) and exc.retry_after is not None:
            delay = max(float(exc.retry_after), delay)
        return delay

    async def _pause(self, delay: float) -> None:
        """Sleep for *delay* seconds unless stopped first."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    # ------------------------------------------------------------------
    # Delivery
    # ------------------------------------------------------------------

    async def _deliver(self, items: Sequence[Any]) -> None:
        self._state = PollState.DELIVERING
        for update_id, item in self._ordered(items):
            if self._stop_event.is_set():
                logger.info("Stopped mid-batch, remaining updates left on the server", extra={"offset": self._offset})
                return
            if self._offset is not None and update_id < self._offset:
                logger.warning(
                    "Skipping already delivered update",
                    extra={"update_id": update_id, "offset": self._offset},
                )
                continue
            update = self._parse(update_id, item)
            if update is not None:
                try:
                    await self._call_handler(update)
                except Exception as exc:
                    await self._report(update, exc)
            self._offset = update_id + 1

    @staticmethod
    def _ordered(items: Sequence[Any]) -> List[Tuple[int, Any]]:
        """Pair each item with its ``update_id`` and sort ascending.

        Items without an integer ``update_id`` cannot be confirmed and are dropped.
        """
        ordered: List[Tuple[int, Any]] = []
        for item in items:
            if isinstance(item, Update):
                update_id = item.update_id
            elif isinstance(item, dict):
                update_id = item.get("update_id")
            else:
                update_id = None
            if not isinstance(update_id, int) or isinstance(update_id, bool):
                logger.warning("Dropping update without an identifier", extra={"item": repr(item)[:200]})
                continue
            ordered.append((update_id, item))
        ordered.sort(key=lambda pair: pair[0])
        return ordered

    @staticmethod
    def _parse(update_id: int, item: Any) -> Optional[Update]:
        """Validate one raw update, or ``None`` if the models cannot parse it."""
        if isinstance(item, Update):
            return item
        try:
            return Update.model_validate(item)
        except ValidationError as exc:
            logger.warning(
                "Failed to parse update, skipping",
                extra={"update_id": update_id, "error": str(exc)},
            )
            return None

    async def _call_handler(self, update: Update) -> None:
        handle = getattr(self._handler, "handle", self._handler)
        result = handle(update)
        if inspect.isawaitable(result):
            await result

    async def _report(self, update: Update, exc: Exception) -> None:
        try:
            result = self._on_error(update, exc)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Error callback failed", extra={"update_id": update.update_id})

    @staticmethod
    def _log_handler_error(update: Update, exc: Exception) -> None:
        logger.error(
            "Update handler failed",
            extra={"update_id": update.update_id, "error": str(exc)},
            exc_info=exc,
        )
