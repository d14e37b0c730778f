"""Tests for Pydantic data models."""

import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.models import ApiResponse, ChatPermissions, Message, Update


# ── ApiResponse ──────────────────────────────────────────────────────────────


class TestApiResponse:
    """Validate the response envelope."""

    def test_success(self) -> None:
        envelope = ApiResponse.model_validate({"ok": True, "result": [1, 2]})
        assert envelope.ok is True
        assert envelope.result == [1, 2]
        assert envelope.parameters is None

    def test_error_with_parameters(self) -> None:
        envelope = ApiResponse.model_validate({
            "ok": False,
            "error_code": 429,
            "description": "Too Many Requests",
            "parameters": {"retry_after": 30},
        })
        assert envelope.error_code == 429
        assert envelope.parameters.retry_after == 30

    def test_missing_ok_raises(self) -> None:
        with pytest.raises(ValidationError):
            ApiResponse.model_validate({"result": True})


# ── Update ───────────────────────────────────────────────────────────────────


class TestUpdate:
    """Variant detection and helpers."""

    def test_kind_message(self) -> None:
        update = Update.model_validate({
            "update_id": 1,
            "message": {"message_id": 1, "date": 0, "chat": {"id": 1, "type": "private"}, "text": "hi"},
        })
        assert update.kind == "message"
        assert update.get_message().get_text() == "hi"

    def test_kind_edited_channel_post(self) -> None:
        update = Update.model_validate({
            "update_id": 1,
            "edited_channel_post": {"message_id": 1, "date": 0, "chat": {"id": -5, "type": "channel"}},
        })
        assert update.kind == "edited_channel_post"
        assert update.get_message().get_chat_id() == -5
        assert update.get_message().get_user_id() is None

    def test_unknown_kind(self) -> None:
        update = Update.model_validate({"update_id": 1, "my_chat_member": {"anything": True}})
        assert update.kind is None
        assert update.get_message() is None

    def test_from_alias(self) -> None:
        message = Message.model_validate({
            "message_id": 1,
            "date": 0,
            "chat": {"id": 1, "type": "private"},
            "from": {"id": 9, "is_bot": False, "first_name": "Ada"},
            "caption": "photo caption",
        })
        assert message.get_user_id() == 9
        assert message.get_text() == "photo caption"
        assert message.model_dump(by_alias=True, exclude_none=True)["from"]["id"] == 9

    def test_user_and_chat(self) -> None:
        update = Update.model_validate({
            "update_id": 1,
            "callback_query": {
                "id": "cb",
                "from": {"id": 5, "is_bot": False, "first_name": "test"},
                "chat_instance": "ci",
                "message": {"message_id": 3, "date": 0, "chat": {"id": -9, "type": "group", "title": "g"}},
            },
        })
        assert update.get_user().id == 5
        assert update.get_chat().id == -9

    def test_anonymous_poll_answer(self) -> None:
        update = Update.model_validate({
            "update_id": 1,
            "poll_answer": {
                "poll_id": "p",
                "voter_chat": {"id": -100, "type": "channel", "title": "c"},
                "option_ids": [1],
            },
        })
        assert update.kind == "poll_answer"
        assert update.get_user() is None
        assert update.get_chat().id == -100


# ── ChatPermissions ──────────────────────────────────────────────────────────


class TestChatPermissions:
    def test_default_is_empty(self) -> None:
        assert ChatPermissions().model_dump(exclude_none=True) == {}

    def test_restricted_and_allowed(self) -> None:
        assert set(ChatPermissions.restricted().model_dump().values()) == {False}
        assert set(ChatPermissions.allowed().model_dump().values()) == {True}

    def test_with_setters_copy(self) -> None:
        base = ChatPermissions()
        changed = base.with_send_polls(False).with_invite_users(True)
        assert base.can_send_polls is None
        assert changed.model_dump(exclude_none=True) == {"can_send_polls": False, "can_invite_users": True}
