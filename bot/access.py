"""Access control — let an update through only if a policy grants it.

An :class:`AccessHandler` wraps any :class:`~bot.longpoll.UpdateHandler`.
Rules are checked in order and the first rule whose principal matches the
update decides; when no rule matches, access is denied.

Usage::

    policy = InMemoryAccessPolicy([
        AccessRule.deny(username="spammer"),
        AccessRule.allow(chat_id=-100123),
        AccessRule.allow(user_id=42),
    ])
    handler = AccessHandler(EchoBot(client, sessions), policy)
"""

from __future__ import annotations

import dataclasses
import inspect
from abc import ABC, abstractmethod
from typing import Any, Iterable, Optional

from core.logger import PollbotLogger
from sdk.models import Update

logger = PollbotLogger.get_logger(__name__)


def _same_username(expected: str, actual: Optional[str]) -> bool:
    return actual is not None and expected.lstrip("@").lower() == actual.lower()


@dataclasses.dataclass(frozen=True, slots=True)
class AccessRule:
    """Grant or deny access to one principal.

    Set exactly one of the principal fields, or none to match every update.
    """

    is_granted: bool
    user_id: Optional[int] = None
    username: Optional[str] = None
    chat_id: Optional[int] = None
    chat_username: Optional[str] = None

    def __post_init__(self) -> None:
        principals = [self.user_id, self.username, self.chat_id, self.chat_username]
        if sum(p is not None for p in principals) > 1:
            raise ValueError("An access rule takes at most one principal")

    @classmethod
    def allow(cls, **principal: Any) -> "AccessRule":
        return cls(True, **principal)

    @classmethod
    def deny(cls, **principal: Any) -> "AccessRule":
        return cls(False, **principal)

    @classmethod
    def allow_all(cls) -> "AccessRule":
        return cls(True)

    @classmethod
    def deny_all(cls) -> "AccessRule":
        return cls(False)

    def matches(self, update: Update) -> bool:
        user = update.get_user()
        chat = update.get_chat()
        if self.user_id is not None:
            return user is not None and user.id == self.user_id
        if self.username is not None:
            return user is not None and _same_username(self.username, user.username)
        if self.chat_id is not None:
            return chat is not None and chat.id == self.chat_id
        if self.chat_username is not None:
            return chat is not None and _same_username(self.chat_username, chat.username)
        return True


class AccessPolicy(ABC):
    """Decides whether an update may reach the wrapped handler."""

    @abstractmethod
    async def is_granted(self, update: Update) -> bool: ...


class InMemoryAccessPolicy(AccessPolicy):
    """First matching rule wins; no match means denied."""

    def __init__(self, rules: Iterable[AccessRule] = ()) -> None:
        self._rules = list(rules)

    @property
    def rules(self) -> list[AccessRule]:
        return list(self._rules)

    async def is_granted(self, update: Update) -> bool:
        for rule in self._rules:
            if rule.matches(update):
                return rule.is_granted
        return False


class AccessHandler:
    """Forward updates granted by *policy* to *handler*; drop the rest."""

    def __init__(self, handler: Any, policy: AccessPolicy) -> None:
        self._handler = handler
        self._policy = policy

    async def handle(self, update: Update) -> None:
        if not await self._policy.is_granted(update):
            user = update.get_user()
            logger.info(
                "Access denied",
                extra={"update_id": update.update_id, "user_id": user.id if user else None},
            )
            return
        handle = getattr(self._handler, "handle", self._handler)
        result = handle(update)
        if inspect.isawaitable(result):
            await result


def rules_from_allowed(entries: Iterable[str]) -> list[AccessRule]:
    """Build allow rules from user ids and usernames, e.g. ``["42", "@alice"]``."""
    rules = []
    for entry in entries:
        entry = entry.strip()
        if not entry:
            continue
        try:
            rules.append(AccessRule.allow(user_id=int(entry)))
        except ValueError:
            rules.append(AccessRule.allow(username=entry))
    return rules
