"""Tests for request descriptors and typed API methods."""

import json
import sys
import os

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

from sdk.exceptions import EncodingError
from sdk.methods import (
    AnswerCallbackQuery,
    GetMe,
    GetUpdates,
    LONG_POLL_GRACE,
    RestrictChatMember,
    SendDocument,
    SendMessage,
)
from sdk.models import ChatPermissions, InlineKeyboardButton, InlineKeyboardMarkup, InputFile, Message
from sdk.request import EmptyBody, FormBody, JsonBody, RequestDescriptor, RequestMethod


def _json_body(descriptor: RequestDescriptor) -> dict:
    assert isinstance(descriptor.body, JsonBody)
    return json.loads(descriptor.body.data)


# ── RequestDescriptor ────────────────────────────────────────────────────────


class TestRequestDescriptor:
    """Validate URL building and body variants."""

    def test_build_url(self) -> None:
        descriptor = RequestDescriptor.json("restrictChatMember", b"{}")
        assert descriptor.build_url("base-url", "token") == "base-url/bottoken/restrictChatMember"

    def test_build_url_strips_trailing_slash(self) -> None:
        descriptor = RequestDescriptor.empty("getMe")
        assert descriptor.build_url("https://api.example.com/", "42:abc") == "https://api.example.com/bot42:abc/getMe"

    def test_empty_is_get(self) -> None:
        descriptor = RequestDescriptor.empty("getMe")
        assert descriptor.method == RequestMethod.GET
        assert isinstance(descriptor.body, EmptyBody)

    def test_immutable(self) -> None:
        descriptor = RequestDescriptor.empty("getMe")
        with pytest.raises(Exception):
            descriptor.endpoint = "other"  # type: ignore[misc]

    def test_form_from_values(self) -> None:
        upload = InputFile(data=b"hello", file_name="hello.txt", mime_type="text/plain")
        form = FormBody.from_values({"chat_id": 1, "caption": "hi", "document": upload, "flag": False})
        assert form.fields == {"chat_id": "1", "caption": "hi", "flag": "false"}
        assert form.files == {"document": upload}

        parts = form.to_multipart()
        assert parts["caption"] == (None, "hi", None)
        assert parts["document"] == ("hello.txt", b"hello", "text/plain")


# ── Optional parameters ─────────────────────────────────────────────────────


class TestSkipIfAbsent:
    """Unset optional parameters must not appear in the body."""

    def test_unset_optional_is_absent(self) -> None:
        data = _json_body(SendMessage(chat_id=1, text="hi").into_request())
        assert data == {"chat_id": 1, "text": "hi"}
        assert "disable_notification" not in data

    def test_false_is_sent_explicitly(self) -> None:
        method = SendMessage(chat_id=1, text="hi").with_disable_notification(False)
        data = _json_body(method.into_request())
        assert data["disable_notification"] is False

    def test_setter_returns_copy(self) -> None:
        original = SendMessage(chat_id=1, text="hi")
        changed = original.with_parse_mode("HTML")
        assert original.parse_mode is None
        assert changed.parse_mode == "HTML"

    def test_string_chat_id(self) -> None:
        data = _json_body(SendMessage(chat_id="@channel", text="hi").into_request())
        assert data["chat_id"] == "@channel"

    def test_reply_markup_nested(self) -> None:
        markup = InlineKeyboardMarkup(inline_keyboard=[[InlineKeyboardButton(text="Go", callback_data="go")]])
        data = _json_body(SendMessage(chat_id=1, text="hi").with_reply_markup(markup).into_request())
        assert data["reply_markup"] == {"inline_keyboard": [[{"text": "Go", "callback_data": "go"}]]}

    def test_answer_callback_query(self) -> None:
        request = AnswerCallbackQuery(callback_query_id="cb1").with_show_alert(False).into_request()
        assert request.endpoint == "answerCallbackQuery"
        assert _json_body(request) == {"callback_query_id": "cb1", "show_alert": False}


# ── RestrictChatMember ──────────────────────────────────────────────────────


class TestRestrictChatMember:
    """Builder behaviour around chat permissions."""

    def test_restrict_all(self) -> None:
        request = RestrictChatMember(chat_id=1, user_id=2).restrict_all().with_until_date(100).into_request()
        assert request.method == RequestMethod.POST
        assert request.build_url("base-url", "token") == "base-url/bottoken/restrictChatMember"
        data = _json_body(request)
        assert data["chat_id"] == 1
        assert data["user_id"] == 2
        assert data["until_date"] == 100
        assert data["permissions"] == {
            "can_send_messages": False,
            "can_send_media_messages": False,
            "can_send_polls": False,
            "can_send_other_messages": False,
            "can_add_web_page_previews": False,
            "can_change_info": False,
            "can_invite_users": False,
            "can_pin_messages": False,
        }

    def test_allow_all(self) -> None:
        data = _json_body(RestrictChatMember(chat_id=1, user_id=2).allow_all().into_request())
        assert all(value is True for value in data["permissions"].values())
        assert len(data["permissions"]) == 8
        assert "until_date" not in data

    def test_custom(self) -> None:
        method = (
            RestrictChatMember(chat_id=1, user_id=2)
            .can_send_messages(True)
            .can_send_media_messages(False)
            .can_send_other_messages(True)
            .can_add_web_page_previews(False)
            .with_until_date(100)
        )
        data = _json_body(method.into_request())
        assert data["permissions"] == {
            "can_send_messages": True,
            "can_send_media_messages": False,
            "can_send_other_messages": True,
            "can_add_web_page_previews": False,
        }

    def test_with_permissions(self) -> None:
        permissions = ChatPermissions().with_pin_messages(True)
        data = _json_body(RestrictChatMember(chat_id=1, user_id=2).with_permissions(permissions).into_request())
        assert data["permissions"] == {"can_pin_messages": True}


# ── Other methods ───────────────────────────────────────────────────────────


class TestMethods:
    """Spot-check endpoint names, encodings and response types."""

    def test_get_me_is_empty_get(self) -> None:
        request = GetMe().into_request()
        assert request.endpoint == "getMe"
        assert request.method == RequestMethod.GET
        assert isinstance(request.body, EmptyBody)

    def test_get_updates_timeout_hint(self) -> None:
        request = GetUpdates(offset=10, timeout=30).into_request()
        assert request.timeout == 30 + LONG_POLL_GRACE
        assert _json_body(request) == {"offset": 10, "timeout": 30}

    def test_get_updates_without_timeout(self) -> None:
        request = GetUpdates().into_request()
        assert request.timeout is None
        assert _json_body(request) == {}

    def test_get_updates_keeps_raw_items(self) -> None:
        raw = [{"update_id": 5}, {"update_id": 6, "poll_answer": {"poll_id": "p"}}]
        assert GetUpdates.decode_response(raw) == raw

    def test_get_updates_requires_list(self) -> None:
        with pytest.raises(ValidationError):
            GetUpdates.decode_response({"update_id": 5})

    def test_decode_mismatch_raises(self) -> None:
        with pytest.raises(ValidationError):
            SendMessage.decode_response({"unexpected": True})

    def test_send_message_decodes_message(self) -> None:
        message = SendMessage.decode_response(
            {"message_id": 1, "date": 0, "chat": {"id": 3, "type": "private"}, "text": "hi"}
        )
        assert isinstance(message, Message)
        assert message.get_chat_id() == 3

    def test_send_document_by_file_id_is_json(self) -> None:
        request = SendDocument(chat_id=1, document="file-id").into_request()
        assert _json_body(request) == {"chat_id": 1, "document": "file-id"}

    def test_send_document_upload_is_form(self) -> None:
        upload = InputFile(data=b"%PDF", file_name="doc.pdf", mime_type="application/pdf")
        request = SendDocument(chat_id=1, document=upload).with_caption("report").into_request()
        assert isinstance(request.body, FormBody)
        assert request.body.fields == {"chat_id": "1", "caption": "report"}
        assert request.body.files["document"].file_name == "doc.pdf"

    def test_encoding_error(self) -> None:
        method = SendMessage(chat_id=1, text="hi").with_reply_markup({"bad": object()})
        with pytest.raises(EncodingError):
            method.into_request()
