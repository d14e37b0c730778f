"""Tests for session keys, lifetimes, sessions and namespace resolution."""

import sys
import os
from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest
from pydantic import BaseModel, ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.models import Update
from session.backends.memory import MemoryStore
from session.namespace import NamespaceError, identities_from_update, namespace_from_update
from session.session import Session, SessionKey, SessionLifetime, SessionManager


class Profile(BaseModel):
    name: str
    visits: int
    since: date


def _update(payload: dict) -> Update:
    return Update.model_validate(payload)


# ── SessionKey / SessionLifetime ─────────────────────────────────────────────


class TestSessionKey:
    def test_parts_and_text(self) -> None:
        key = SessionKey("namespace", "name")
        assert key.namespace == "namespace"
        assert key.name == "name"
        assert str(key) == "namespace-name"

    def test_hashable_and_equal(self) -> None:
        assert SessionKey("1-1", "a") == SessionKey("1-1", "a")
        assert len({SessionKey("1-1", "a"), SessionKey("1-1", "a")}) == 1


class TestSessionLifetime:
    def test_default_is_forever(self) -> None:
        assert SessionLifetime() == SessionLifetime.forever()
        assert SessionLifetime().is_forever

    def test_duration(self) -> None:
        assert SessionLifetime.duration(timedelta(seconds=1)) == SessionLifetime(1)
        assert SessionLifetime.duration(1) == SessionLifetime(1)
        assert not SessionLifetime.duration(1).is_forever

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            SessionLifetime.duration(-1)

    def test_coerce(self) -> None:
        assert SessionLifetime.coerce(None).is_forever
        assert SessionLifetime.coerce(60) == SessionLifetime(60)
        assert SessionLifetime.coerce(timedelta(minutes=1)) == SessionLifetime(60)
        lifetime = SessionLifetime(5)
        assert SessionLifetime.coerce(lifetime) is lifetime


# ── Session ──────────────────────────────────────────────────────────────────


class TestSession:
    """Session façade over a store."""

    @pytest.mark.asyncio
    async def test_delegates_with_namespaced_key(self) -> None:
        store = AsyncMock()
        store.get.return_value = b"1"
        session = Session("namespace", store)

        await session.set("key", 1)
        assert await session.get("key", int) == 1
        await session.expire("key", 10)
        await session.delete("key")

        key = SessionKey("namespace", "key")
        store.set.assert_awaited_once_with(key, b"1", ttl=None)
        store.get.assert_awaited_once_with(key)
        store.expire.assert_awaited_once_with(key, 10)
        store.delete.assert_awaited_once_with(key)

    @pytest.mark.asyncio
    async def test_round_trip_plain_values(self) -> None:
        session = Session("1-1", MemoryStore())
        value = {"items": [1, 2, 3], "name": "test", "nested": {"ok": True}}
        await session.set("data", value)
        assert await session.get("data") == value

    @pytest.mark.asyncio
    async def test_round_trip_model(self) -> None:
        session = Session("1-1", MemoryStore())
        profile = Profile(name="Ada", visits=3, since=date(2020, 1, 2))
        await session.set("profile", profile)
        assert await session.get("profile", Profile) == profile

    @pytest.mark.asyncio
    async def test_missing_is_none(self) -> None:
        session = Session("1-1", MemoryStore())
        assert await session.get("missing") is None
        assert await session.get("missing", int) is None

    @pytest.mark.asyncio
    async def test_delete_then_get(self) -> None:
        session = Session("1-1", MemoryStore())
        await session.set("key", "value")
        await session.delete("key")
        assert await session.get("key") is None
        await session.delete("key")

    @pytest.mark.asyncio
    async def test_type_mismatch_raises(self) -> None:
        session = Session("1-1", MemoryStore())
        await session.set("key", "not a number")
        with pytest.raises(ValidationError):
            await session.get("key", int)

    @pytest.mark.asyncio
    async def test_namespaces_are_isolated(self) -> None:
        store = MemoryStore()
        first = Session("1-1", store)
        second = Session("2-2", store)
        await first.set("key", "first")
        await second.set("key", "second")
        assert await first.get("key") == "first"
        assert await second.get("key") == "second"

    @pytest.mark.asyncio
    async def test_lifetime_is_set_with_value(self) -> None:
        store = AsyncMock()
        session = Session("ns", store, SessionLifetime(30))
        await session.set("key", True)
        store.set.assert_awaited_once_with(SessionKey("ns", "key"), b"true", ttl=30)
        store.expire.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_forever_sets_no_expiry(self) -> None:
        store = AsyncMock()
        await Session("ns", store).set("key", True)
        store.set.assert_awaited_once_with(SessionKey("ns", "key"), b"true", ttl=None)
        store.expire.assert_not_awaited()


# ── SessionManager ───────────────────────────────────────────────────────────


class TestSessionManager:
    @pytest.mark.asyncio
    async def test_sessions_share_store(self) -> None:
        store = MemoryStore()
        manager = SessionManager(store)
        update = _update({
            "update_id": 1,
            "message": {
                "message_id": 1,
                "date": 0,
                "from": {"id": 7, "is_bot": False, "first_name": "test"},
                "chat": {"id": 7, "type": "private"},
                "text": "hi",
            },
        })
        await manager.get_session(update).set("seen", True)

        again = manager.get_session(update)
        assert again.namespace == "7-7"
        assert await again.get("seen") is True
        assert manager.store is store

    def test_lifetime_coerced(self) -> None:
        assert SessionManager(MemoryStore(), lifetime=60).lifetime == SessionLifetime(60)
        assert SessionManager(MemoryStore()).lifetime.is_forever

    def test_update_without_identity(self) -> None:
        update = _update({
            "update_id": 1,
            "poll": {
                "id": "p1",
                "question": "?",
                "options": [],
                "total_voter_count": 0,
                "is_closed": False,
                "is_anonymous": True,
                "type": "regular",
                "allows_multiple_answers": False,
            },
        })
        with pytest.raises(NamespaceError):
            SessionManager(MemoryStore()).get_session(update)


# ── Namespace resolution ─────────────────────────────────────────────────────


class TestNamespace:
    """Namespace derivation from update identities."""

    def test_message(self) -> None:
        update = _update({
            "update_id": 1,
            "message": {
                "message_id": 1,
                "date": 0,
                "from": {"id": 1, "is_bot": False, "first_name": "test", "username": "username1"},
                "chat": {"id": 1, "type": "private", "first_name": "test", "username": "username1"},
                "text": "test middleware",
            },
        })
        assert namespace_from_update(update) == "1-1"

    def test_inline_query(self) -> None:
        update = _update({
            "update_id": 1,
            "inline_query": {
                "id": "query id",
                "from": {"id": 1111, "first_name": "Test Firstname", "is_bot": False},
                "query": "query text",
                "offset": "query offset",
            },
        })
        assert namespace_from_update(update) == "1111-1111"

    def test_channel_post(self) -> None:
        update = _update({
            "update_id": 1,
            "channel_post": {
                "message_id": 1111,
                "date": 0,
                "author_signature": "test",
                "chat": {"id": 1, "type": "channel", "title": "channeltitle", "username": "channelusername"},
                "text": "test message from channel",
            },
        })
        assert namespace_from_update(update) == "1-1"

    def test_group_message_uses_chat_and_user(self) -> None:
        update = _update({
            "update_id": 1,
            "message": {
                "message_id": 1,
                "date": 0,
                "from": {"id": 42, "is_bot": False, "first_name": "test"},
                "chat": {"id": -100, "type": "supergroup", "title": "group"},
                "text": "hello",
            },
        })
        assert namespace_from_update(update) == "-100-42"

    def test_callback_query(self) -> None:
        update = _update({
            "update_id": 1,
            "callback_query": {
                "id": "cb",
                "from": {"id": 5, "is_bot": False, "first_name": "test"},
                "chat_instance": "ci",
                "message": {"message_id": 3, "date": 0, "chat": {"id": -9, "type": "group", "title": "g"}},
                "data": "x",
            },
        })
        assert namespace_from_update(update) == "-9-5"

    def test_callback_query_from_inline_message(self) -> None:
        update = _update({
            "update_id": 1,
            "callback_query": {
                "id": "cb",
                "from": {"id": 5, "is_bot": False, "first_name": "test"},
                "chat_instance": "ci",
                "inline_message_id": "im",
            },
        })
        assert namespace_from_update(update) == "5-5"

    def test_poll_answer(self) -> None:
        update = _update({
            "update_id": 1,
            "poll_answer": {
                "poll_id": "p",
                "user": {"id": 77, "is_bot": False, "first_name": "test"},
                "option_ids": [0],
            },
        })
        assert namespace_from_update(update) == "77-77"

    def test_poll_answer_from_chat(self) -> None:
        update = _update({
            "update_id": 1,
            "poll_answer": {
                "poll_id": "p",
                "voter_chat": {"id": -100, "type": "channel", "title": "c"},
                "option_ids": [0],
            },
        })
        assert namespace_from_update(update) == "-100--100"
        assert identities_from_update(update) == (-100, None)

    def test_deterministic(self) -> None:
        payload = {
            "update_id": 1,
            "message": {
                "message_id": 1,
                "date": 0,
                "from": {"id": 3, "is_bot": False, "first_name": "test"},
                "chat": {"id": 4, "type": "group", "title": "g"},
            },
        }
        assert namespace_from_update(_update(payload)) == namespace_from_update(_update(payload))

    def test_empty_update_raises(self) -> None:
        with pytest.raises(NamespaceError):
            namespace_from_update(Update(update_id=1))
