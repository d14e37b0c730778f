"""Filesystem-backed session store.

Each key lives in its own file under a root directory.  File names are the
SHA-256 of the key, so characters in namespaces or names never reach the
filesystem.  A file holds a small JSON record::

    {"key": "<key>", "expires_at": <unix time or null>, "value": "<base64>"}

Expiry uses wall-clock time so it survives restarts.
"""

from __future__ import annotations

import asyncio
import base64
import hashlib
import json
import os
import tempfile
import time
from pathlib import Path
from typing import Any, Callable, Optional

from core.logger import PollbotLogger
from session.session import SessionKey
from session.store import SessionStore, StoreError

logger = PollbotLogger.get_logger(__name__)


class FileSystemStore(SessionStore):
    """Store values as files under *root*.

    Blocking file I/O runs in worker threads; an :class:`asyncio.Lock`
    serializes operations within the process.

    Args:
        root: Directory holding the session files; created if missing.
        clock: Wall-clock time source, injectable for tests.
    """

    def __init__(self, root: str | os.PathLike, clock: Callable[[], float] = time.time) -> None:
        self._root = Path(root)
        self._clock = clock
        self._lock = asyncio.Lock()
        self._root.mkdir(parents=True, exist_ok=True)

    def _path(self, key: SessionKey) -> Path:
        digest = hashlib.sha256(str(key).encode("utf-8")).hexdigest()
        return self._root / f"{digest}.json"

    # ------------------------------------------------------------------
    # Blocking helpers (run in threads)
    # ------------------------------------------------------------------

    def _read(self, path: Path) -> Optional[dict]:
        try:
            with path.open("r", encoding="utf-8") as fh:
                record = json.load(fh)
        except FileNotFoundError:
            return None
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read session file {path.name}: {exc}") from exc
        self._check_record(path, record)
        expires_at = record.get("expires_at")
        if expires_at is not None and expires_at <= self._clock():
            self._remove(path)
            logger.debug("Session key expired", extra={"session_key": record.get("key")})
            return None
        return record

    @staticmethod
    def _check_record(path: Path, record: Any) -> None:
        if not isinstance(record, dict) or not isinstance(record.get("value"), str):
            raise StoreError(f"Malformed session file {path.name}: missing value")
        expires_at = record.get("expires_at")
        if expires_at is not None and (isinstance(expires_at, bool) or not isinstance(expires_at, (int, float))):
            raise StoreError(f"Malformed session file {path.name}: bad expires_at {expires_at!r}")

    def _write(self, path: Path, record: dict) -> None:
        try:
            fd, tmp_name = tempfile.mkstemp(dir=self._root, suffix=".tmp")
        except OSError as exc:
            raise StoreError(f"Cannot write session file {path.name}: {exc}") from exc
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(record, fh)
            os.replace(tmp_name, path)
        except OSError as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise StoreError(f"Cannot write session file {path.name}: {exc}") from exc

    def _remove(self, path: Path) -> None:
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise StoreError(f"Cannot remove session file {path.name}: {exc}") from exc

    def _get_sync(self, key: SessionKey) -> Optional[bytes]:
        path = self._path(key)
        record = self._read(path)
        if record is None:
            return None
        try:
            return base64.b64decode(record["value"], validate=True)
        except ValueError as exc:
            raise StoreError(f"Malformed session file {path.name}: {exc}") from exc

    def _set_sync(self, key: SessionKey, value: bytes, ttl: Optional[int]) -> None:
        path = self._path(key)
        if ttl is not None and ttl <= 0:
            self._remove(path)
            return
        record = {
            "key": str(key),
            "expires_at": self._clock() + ttl if ttl is not None else None,
            "value": base64.b64encode(value).decode("ascii"),
        }
        self._write(path, record)

    def _expire_sync(self, key: SessionKey, seconds: int) -> None:
        path = self._path(key)
        record = self._read(path)
        if record is None:
            return
        if seconds <= 0:
            self._remove(path)
            return
        record["expires_at"] = self._clock() + seconds
        self._write(path, record)

    # ------------------------------------------------------------------
    # SessionStore
    # ------------------------------------------------------------------

    async def get(self, key: SessionKey) -> Optional[bytes]:
        async with self._lock:
            return await asyncio.to_thread(self._get_sync, key)

    async def set(self, key: SessionKey, value: bytes, ttl: Optional[int] = None) -> None:
        async with self._lock:
            await asyncio.to_thread(self._set_sync, key, value, ttl)

    async def expire(self, key: SessionKey, seconds: int) -> None:
        async with self._lock:
            await asyncio.to_thread(self._expire_sync, key, seconds)

    async def delete(self, key: SessionKey) -> None:
        async with self._lock:
            await asyncio.to_thread(self._remove, self._path(key))
