"""Dialogues — multi-step conversations whose state lives in the session.

A :class:`Dialogue` stores its current state under ``dialogue:<name>`` in
the conversation's :class:`~session.session.Session`.  Each incoming message
is fed to a step function as a :class:`~bot.registry.CommandContext`
together with that state; the step answers with :meth:`DialogueResult.next`
to keep going from a new state or :meth:`DialogueResult.exit` to finish,
which removes the stored state.

State is serialized like any session value, so Pydantic models, dataclasses
and plain JSON values all work.

Usage::

    async def step(ctx: CommandContext, state: Form) -> DialogueResult[Form]:
        ...

    form = Dialogue("form", Form, step)
    await form.start(ctx.session, Form())
    handled = await form.feed(ctx)
"""

from __future__ import annotations

import dataclasses
from typing import Any, Awaitable, Callable, Generic, Optional, Type, TypeVar

from core.logger import PollbotLogger
from bot.registry import CommandContext
from session.session import Session

logger = PollbotLogger.get_logger(__name__)

S = TypeVar("S")


@dataclasses.dataclass(frozen=True)
class DialogueResult(Generic[S]):
    """Outcome of one dialogue step: the next state, or the end."""

    state: Optional[S] = None
    finished: bool = False

    @classmethod
    def next(cls, state: S) -> "DialogueResult[S]":
        return cls(state=state)

    @classmethod
    def exit(cls) -> "DialogueResult[Any]":
        return cls(finished=True)


DialogueStep = Callable[[CommandContext, S], Awaitable[DialogueResult[S]]]


class Dialogue(Generic[S]):
    """A named state machine driven by incoming messages.

    Args:
        name: Distinguishes this dialogue's state from other session values.
        state_type: Type the stored state is validated into.
        step: Coroutine ``(ctx, state) -> DialogueResult``.
    """

    KEY_PREFIX: str = "dialogue:"

    def __init__(self, name: str, state_type: Type[S], step: DialogueStep) -> None:
        self._name = name
        self._state_type = state_type
        self._step = step

    def __repr__(self) -> str:
        return f"Dialogue(name={self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def key(self) -> str:
        return f"{self.KEY_PREFIX}{self._name}"

    async def state(self, session: Session) -> Optional[S]:
        """Current state, or ``None`` when the dialogue is not active."""
        return await session.get(self.key, self._state_type)

    async def is_active(self, session: Session) -> bool:
        return await self.state(session) is not None

    async def start(self, session: Session, initial: S) -> None:
        """Enter the dialogue at *initial*, replacing any state in progress."""
        await session.set(self.key, initial)
        logger.debug("Dialogue started", extra={"dialogue": self._name, "namespace": session.namespace})

    async def cancel(self, session: Session) -> None:
        await session.delete(self.key)
        logger.debug("Dialogue cancelled", extra={"dialogue": self._name, "namespace": session.namespace})

    async def feed(self, ctx: CommandContext) -> bool:
        """Run one step for the message in *ctx*.

        Returns ``False`` without calling the step when the dialogue is not
        active.  If the step raises, the stored state is left unchanged.
        """
        session = ctx.session
        current = await self.state(session)
        if current is None:
            return False
        result = await self._step(ctx, current)
        if result.finished:
            await session.delete(self.key)
            logger.debug("Dialogue finished", extra={"dialogue": self._name, "namespace": session.namespace})
        else:
            await session.set(self.key, result.state)
        return True
