"""Namespaced sessions over a shared :class:`~session.store.SessionStore`.

A :class:`Session` binds one namespace (usually derived from an update, see
:func:`session.namespace.namespace_from_update`) to the store every other
session also uses.  It keeps no state of its own, so building one per update
is cheap.

Values are serialized to JSON with Pydantic, so models, dataclasses, dates
and plain containers all round-trip.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import timedelta
from functools import lru_cache
from typing import TYPE_CHECKING, Any, Optional, Type, TypeVar, Union

from pydantic import TypeAdapter

from session.namespace import namespace_from_update

if TYPE_CHECKING:
    from sdk.models import Update
    from session.store import SessionStore

T = TypeVar("T")

_ANY_ADAPTER: TypeAdapter = TypeAdapter(Any)


@lru_cache(maxsize=None)
def _adapter(value_type: Any) -> TypeAdapter:
    return TypeAdapter(value_type)


@dataclass(frozen=True)
class SessionKey:
    """A key in the store: ``"{namespace}-{name}"``.

    The namespace has the form ``(chat-id|user-id)-(chat-id|user-id)``.
    """

    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}-{self.name}"


@dataclass(frozen=True)
class SessionLifetime:
    """How long session values live after being set.

    ``seconds is None`` means forever, which is the default.
    """

    seconds: Optional[int] = None

    @classmethod
    def forever(cls) -> "SessionLifetime":
        return cls()

    @classmethod
    def duration(cls, value: Union[int, float, timedelta]) -> "SessionLifetime":
        if isinstance(value, timedelta):
            value = value.total_seconds()
        if value < 0:
            raise ValueError(f"Session lifetime must not be negative, got {value}")
        return cls(int(value))

    @classmethod
    def coerce(cls, value: Union["SessionLifetime", int, float, timedelta, None]) -> "SessionLifetime":
        """Accept a lifetime, a number of seconds, a timedelta or ``None`` (forever)."""
        if isinstance(value, SessionLifetime):
            return value
        if value is None:
            return cls.forever()
        return cls.duration(value)

    @property
    def is_forever(self) -> bool:
        return self.seconds is None


class Session:
    """Key-value access scoped to one namespace.

    Args:
        namespace: Prefix for every key of this session.
        store: The shared store.
        lifetime: When not forever, every :meth:`set` stores its value with
            that expiry in a single store operation.
    """

    def __init__(
        self,
        namespace: str,
        store: "SessionStore",
        lifetime: SessionLifetime = SessionLifetime(),
    ) -> None:
        self._namespace = namespace
        self._store = store
        self._lifetime = lifetime

    def __repr__(self) -> str:
        return f"Session(namespace={self._namespace!r})"

    @property
    def namespace(self) -> str:
        return self._namespace

    def _key(self, name: str) -> SessionKey:
        return SessionKey(self._namespace, name)

    async def get(self, name: str, value_type: Optional[Type[T]] = None) -> Optional[T]:
        """Return the value stored under *name*, or ``None`` if absent.

        With *value_type* the stored JSON is validated into that type;
        otherwise plain JSON values are returned.

        Raises:
            StoreError: On backend failure.
            pydantic.ValidationError: If the value does not match *value_type*.
        """
        raw = await self._store.get(self._key(name))
        if raw is None:
            return None
        if value_type is None:
            return json.loads(raw)
        return _adapter(value_type).validate_json(raw)

    async def set(self, name: str, value: Any) -> None:
        """Store *value* under *name*, replacing any previous value and expiry."""
        await self._store.set(self._key(name), _ANY_ADAPTER.dump_json(value), ttl=self._lifetime.seconds)

    async def expire(self, name: str, seconds: int) -> None:
        """Remove *name* automatically after *seconds*."""
        await self._store.expire(self._key(name), seconds)

    async def delete(self, name: str) -> None:
        """Remove *name*.  Removing an absent key is not an error."""
        await self._store.delete(self._key(name))


class SessionManager:
    """Creates sessions bound to one shared store.

    Usage::

        manager = SessionManager(MemoryStore(), lifetime=3600)
        session = manager.get_session(update)
        counter = await session.get("counter", int) or 0
        await session.set("counter", counter + 1)
    """

    def __init__(
        self,
        store: "SessionStore",
        lifetime: Union[SessionLifetime, int, float, timedelta, None] = None,
    ) -> None:
        self._store = store
        self._lifetime = SessionLifetime.coerce(lifetime)

    @property
    def store(self) -> "SessionStore":
        return self._store

    @property
    def lifetime(self) -> SessionLifetime:
        return self._lifetime

    def get_session(self, update: "Update") -> Session:
        """Session for the conversation the update belongs to.

        Raises:
            NamespaceError: If the update carries no chat or user identity.
        """
        return self.for_namespace(namespace_from_update(update))

    def for_namespace(self, namespace: str) -> Session:
        return Session(namespace, self._store, self._lifetime)

    async def close(self) -> None:
        await self._store.close()
