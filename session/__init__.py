"""Namespaced, TTL-aware session layer over pluggable key-value stores.

This package may import from ``core/`` and ``sdk.models`` only.
"""

from session.namespace import NamespaceError, identities_from_update, namespace_from_update
from session.session import Session, SessionKey, SessionLifetime, SessionManager
from session.store import SessionStore, StoreError

__all__ = [
    "NamespaceError",
    "identities_from_update",
    "namespace_from_update",
    "Session",
    "SessionKey",
    "SessionLifetime",
    "SessionManager",
    "SessionStore",
    "StoreError",
]
