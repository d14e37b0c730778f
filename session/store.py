"""Abstract key-value store behind every :class:`~session.session.Session`.

Stores deal in raw bytes keyed by :class:`~session.session.SessionKey`; how
values are serialized is the session's business.  A single store instance is
shared by all sessions, so implementations serialize their own operations.

Every backend follows the same contract:

* ``get`` of an absent or expired key returns ``None``.
* ``set`` overwrites unconditionally and clears any expiry the key had;
  with ``ttl`` it sets the new expiry in the same operation, and
  ``ttl <= 0`` leaves the key absent.
* ``expire`` sets or replaces a relative expiry; on an absent key it does
  nothing; ``seconds <= 0`` removes the key at once.
* ``delete`` is idempotent.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from session.session import SessionKey


class StoreError(Exception):
    """A backend failed to perform an operation."""


class SessionStore(ABC):
    """Contract for session storage backends."""

    @abstractmethod
    async def get(self, key: "SessionKey") -> Optional[bytes]:
        """Return the value stored under *key*, or ``None``."""

    @abstractmethod
    async def set(self, key: "SessionKey", value: bytes, ttl: Optional[int] = None) -> None:
        """Store *value* under *key*, expiring after *ttl* seconds if given."""

    @abstractmethod
    async def expire(self, key: "SessionKey", seconds: int) -> None:
        """Make *key* disappear after *seconds*."""

    @abstractmethod
    async def delete(self, key: "SessionKey") -> None:
        """Remove *key* if present."""

    async def close(self) -> None:
        """Release backend resources.  The default does nothing."""
