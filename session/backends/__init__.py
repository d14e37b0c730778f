"""Session store backends and a factory choosing one by name."""

from __future__ import annotations

import os

from core.logger import PollbotLogger
from session.backends.fs import FileSystemStore
from session.backends.memory import MemoryStore
from session.backends.redis_store import RedisStore
from session.store import SessionStore

logger = PollbotLogger.get_logger(__name__)

BACKENDS = ("memory", "redis", "fs")


def create_store(
    backend: str,
    redis_url: str | None = None,
    directory: str | os.PathLike | None = None,
) -> SessionStore:
    """Build the store named by *backend*.

    Args:
        backend: ``"memory"``, ``"redis"`` or ``"fs"``.
        redis_url: Required for ``"redis"``.
        directory: Required for ``"fs"``.

    Raises:
        ValueError: On an unknown backend or a missing setting.
    """
    backend = backend.lower()
    if backend == "memory":
        logger.warning("Using in-memory session store (lost on restart)")
        return MemoryStore()

    if backend == "redis":
        if not redis_url:
            raise ValueError("redis_url required for redis backend")
        return RedisStore.from_url(redis_url)

    if backend == "fs":
        if not directory:
            raise ValueError("directory required for fs backend")
        logger.info("Using filesystem session store", extra={"directory": str(directory)})
        return FileSystemStore(directory)

    raise ValueError(f"Unknown session backend: {backend} (expected one of {', '.join(BACKENDS)})")


__all__ = [
    "BACKENDS",
    "create_store",
    "FileSystemStore",
    "MemoryStore",
    "RedisStore",
]
