"""Command registry — maps slash-commands to async handler functions.

``@registry.register`` binds a function to a command and a ``/help``
description in one place; :meth:`CommandRegistry.dispatch` looks the command
up and invokes it with a :class:`CommandContext`.
"""

from __future__ import annotations

import dataclasses
from typing import Any, Awaitable, Callable, Protocol, runtime_checkable

from sdk.client import BotClient
from sdk.models import Message
from session.session import Session


@dataclasses.dataclass(frozen=True, slots=True)
class CommandContext:
    """Everything a command handler needs for one incoming message."""

    client: BotClient
    message: Message
    session: Session
    args: list[str]


@runtime_checkable
class CommandHandler(Protocol):
    async def __call__(self, ctx: CommandContext) -> None: ...  # noqa: E704


@dataclasses.dataclass(frozen=True, slots=True)
class CommandEntry:
    """Metadata for a single registered slash-command."""

    command: str              # e.g. "/count"
    description: str          # shown in /help
    handler: Callable[[CommandContext], Awaitable[Any]]


def parse_command(text: str) -> tuple[str, list[str]]:
    """Split ``"/cmd@bot a b"`` into ``("/cmd", ["a", "b"])``.

    Returns ``("", [])`` for text that is not a command.
    """
    if not text.startswith("/"):
        return "", []
    parts = text.split()
    return parts[0].split("@")[0], parts[1:]


class CommandRegistry:
    """Registry of slash-commands.

    Usage::

        registry = CommandRegistry()

        @registry.register("/ping", description="Ping")
        async def handle_ping(ctx: CommandContext) -> None: ...

        handled = await registry.dispatch("/ping", ctx)
    """

    def __init__(self) -> None:
        self._entries: dict[str, CommandEntry] = {}

    def register(self, command: str, *, description: str) -> Callable[[CommandHandler], CommandHandler]:
        """Decorator that registers the decorated function for *command*."""
        def decorator(func: CommandHandler) -> CommandHandler:
            self._entries[command] = CommandEntry(command=command, description=description, handler=func)
            return func
        return decorator

    def get(self, command: str) -> CommandEntry | None:
        return self._entries.get(command)

    def entries(self) -> dict[str, CommandEntry]:
        """Return a copy of all registered commands."""
        return dict(self._entries)

    async def dispatch(self, command: str, ctx: CommandContext) -> bool:
        """Invoke the handler for *command*.

        Returns ``True`` if a handler was found and called, ``False`` otherwise.
        """
        entry = self._entries.get(command)
        if entry is None:
            return False
        await entry.handler(ctx)
        return True
