"""Bot API methods — typed request builders.

Every method is a Pydantic model holding its own parameters.  Calling
:meth:`Method.into_request` turns it into a :class:`~sdk.request.RequestDescriptor`
and :meth:`Method.decode_response` validates the envelope's ``result`` into the
method's declared ``response_type``.

Optional parameters default to ``None`` and are left out of the encoded body
entirely, so "not sent" and ``False`` stay distinguishable.  Setters named
``with_*`` return a modified copy and never mutate the receiver.
"""

import json
from functools import lru_cache
from typing import Any, ClassVar, Dict, List, Optional, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic_core import PydanticSerializationError

from sdk.exceptions import EncodingError
from sdk.models import (
    ChatPermissions,
    File,
    InlineQueryResultArticle,
    InputFile,
    Message,
    ReplyMarkup,
    User,
)
from sdk.request import FormBody, RequestDescriptor

ChatId = Union[int, str]

# Extra seconds granted to the HTTP layer on top of a long-poll timeout.
LONG_POLL_GRACE: int = 5


@lru_cache(maxsize=None)
def _adapter(response_type: Any) -> TypeAdapter:
    return TypeAdapter(response_type)


class Method(BaseModel):
    """Base class for every API method.

    Subclasses set ``endpoint`` and ``response_type`` and declare their
    parameters as model fields.  The default encoding is a JSON POST; override
    :meth:`into_request` for anything else.
    """

    endpoint: ClassVar[str]
    response_type: ClassVar[Any] = bool

    model_config = {"populate_by_name": True}

    def with_params(self, **params: Any) -> "Method":
        """Return a copy with *params* set."""
        return self.model_copy(update=params)

    def payload(self) -> Dict[str, Any]:
        """Parameters as JSON-compatible values, ``None`` fields dropped."""
        try:
            return self.model_dump(mode="json", by_alias=True, exclude_none=True)
        except (PydanticSerializationError, TypeError, ValueError) as exc:
            raise EncodingError(f"Cannot encode {type(self).__name__}: {exc}") from exc

    def into_request(self) -> RequestDescriptor:
        """Build the request descriptor for this method.

        Raises:
            EncodingError: If a parameter cannot be serialized.
        """
        try:
            data = json.dumps(self.payload()).encode("utf-8")
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Cannot encode {type(self).__name__}: {exc}") from exc
        return RequestDescriptor.json(self.endpoint, data)

    @classmethod
    def decode_response(cls, result: Any) -> Any:
        """Validate a raw ``result`` into ``response_type``.

        Raises:
            pydantic.ValidationError: If *result* does not match.
        """
        return _adapter(cls.response_type).validate_python(result)


# ── Updates ──────────────────────────────────────────────────────────────────


class GetUpdates(Method):
    """Receive incoming updates using long polling.

    *offset* is the identifier of the first update to return; every update
    with a smaller identifier is confirmed and never returned again.

    The result is left as raw JSON objects: each one is validated into an
    :class:`~sdk.models.Update` on its own, so a single update the models
    cannot parse does not reject the whole batch.
    """

    endpoint: ClassVar[str] = "getUpdates"
    response_type: ClassVar[Any] = List[Any]

    offset: Optional[int] = None
    limit: Optional[int] = None
    timeout: Optional[int] = None
    allowed_updates: Optional[List[str]] = None

    def into_request(self) -> RequestDescriptor:
        descriptor = super().into_request()
        if self.timeout:
            return RequestDescriptor.json(
                descriptor.endpoint,
                descriptor.body.data,
                timeout=self.timeout + LONG_POLL_GRACE,
            )
        return descriptor


class GetMe(Method):
    """Returns basic information about the bot."""

    endpoint: ClassVar[str] = "getMe"
    response_type: ClassVar[Any] = User

    def into_request(self) -> RequestDescriptor:
        return RequestDescriptor.empty(self.endpoint)


# ── Messages ─────────────────────────────────────────────────────────────────


class SendMessage(Method):
    """Send a text message."""

    endpoint: ClassVar[str] = "sendMessage"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    text: str
    parse_mode: Optional[str] = None
    disable_web_page_preview: Optional[bool] = None
    disable_notification: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None

    def with_parse_mode(self, parse_mode: str) -> "SendMessage":
        return self.model_copy(update={"parse_mode": parse_mode})

    def with_disable_web_page_preview(self, flag: bool) -> "SendMessage":
        return self.model_copy(update={"disable_web_page_preview": flag})

    def with_disable_notification(self, flag: bool) -> "SendMessage":
        return self.model_copy(update={"disable_notification": flag})

    def with_reply_to_message_id(self, message_id: int) -> "SendMessage":
        return self.model_copy(update={"reply_to_message_id": message_id})

    def with_reply_markup(self, markup: ReplyMarkup) -> "SendMessage":
        return self.model_copy(update={"reply_markup": markup})


class DeleteMessage(Method):
    """Delete a message, including service messages."""

    endpoint: ClassVar[str] = "deleteMessage"

    chat_id: ChatId
    message_id: int


class SendDocument(Method):
    """Send a general file.

    *document* is either a file id / HTTP URL (sent as JSON) or an
    :class:`~sdk.models.InputFile` (sent as multipart form data).
    """

    endpoint: ClassVar[str] = "sendDocument"
    response_type: ClassVar[Any] = Message

    chat_id: ChatId
    document: Union[InputFile, str]
    caption: Optional[str] = None
    parse_mode: Optional[str] = None
    disable_notification: Optional[bool] = None
    reply_to_message_id: Optional[int] = None
    reply_markup: Optional[ReplyMarkup] = None

    def with_caption(self, caption: str) -> "SendDocument":
        return self.model_copy(update={"caption": caption})

    def into_request(self) -> RequestDescriptor:
        if not isinstance(self.document, InputFile):
            return super().into_request()
        values = self.model_dump(by_alias=True, exclude_none=True, exclude={"document"})
        values["document"] = self.document
        try:
            form = FormBody.from_values(values)
        except (TypeError, ValueError) as exc:
            raise EncodingError(f"Cannot encode {type(self).__name__}: {exc}") from exc
        return RequestDescriptor.form(self.endpoint, form)


class GetFile(Method):
    """Get basic info about a file and prepare it for downloading."""

    endpoint: ClassVar[str] = "getFile"
    response_type: ClassVar[Any] = File

    file_id: str


# ── Queries ──────────────────────────────────────────────────────────────────


class AnswerCallbackQuery(Method):
    """Send an answer to a callback query sent from an inline keyboard."""

    endpoint: ClassVar[str] = "answerCallbackQuery"

    callback_query_id: str
    text: Optional[str] = None
    show_alert: Optional[bool] = None
    url: Optional[str] = None
    cache_time: Optional[int] = None

    def with_text(self, text: str) -> "AnswerCallbackQuery":
        return self.model_copy(update={"text": text})

    def with_show_alert(self, flag: bool) -> "AnswerCallbackQuery":
        return self.model_copy(update={"show_alert": flag})


class AnswerInlineQuery(Method):
    """Send answers to an inline query."""

    endpoint: ClassVar[str] = "answerInlineQuery"

    inline_query_id: str
    results: List[InlineQueryResultArticle] = Field(default_factory=list)
    cache_time: Optional[int] = None
    is_personal: Optional[bool] = None
    next_offset: Optional[str] = None

    def with_cache_time(self, seconds: int) -> "AnswerInlineQuery":
        return self.model_copy(update={"cache_time": seconds})

    def with_personal(self, flag: bool) -> "AnswerInlineQuery":
        return self.model_copy(update={"is_personal": flag})


# ── Chat members ─────────────────────────────────────────────────────────────


class RestrictChatMember(Method):
    """Restrict a user in a supergroup.

    The bot must be an administrator in the supergroup with the appropriate
    admin rights.  Pass ``True`` for all permissions to lift restrictions.
    """

    endpoint: ClassVar[str] = "restrictChatMember"

    chat_id: ChatId
    user_id: int
    permissions: ChatPermissions = Field(default_factory=ChatPermissions)
    until_date: Optional[int] = None

    def with_permissions(self, permissions: ChatPermissions) -> "RestrictChatMember":
        """Replace current permissions with *permissions*."""
        return self.model_copy(update={"permissions": permissions})

    def restrict_all(self) -> "RestrictChatMember":
        return self.with_permissions(ChatPermissions.restricted())

    def allow_all(self) -> "RestrictChatMember":
        return self.with_permissions(ChatPermissions.allowed())

    def with_until_date(self, until_date: int) -> "RestrictChatMember":
        """Unix time when restrictions are lifted.

        Less than 30 seconds or more than 366 days from now means forever.
        """
        return self.model_copy(update={"until_date": until_date})

    def can_send_messages(self, flag: bool) -> "RestrictChatMember":
        return self.with_permissions(self.permissions.with_send_messages(flag))

    def can_send_media_messages(self, flag: bool) -> "RestrictChatMember":
        return self.with_permissions(self.permissions.with_send_media_messages(flag))

    def can_send_other_messages(self, flag: bool) -> "RestrictChatMember":
        return self.with_permissions(self.permissions.with_send_other_messages(flag))

    def can_add_web_page_previews(self, flag: bool) -> "RestrictChatMember":
        return self.with_permissions(self.permissions.with_add_web_page_previews(flag))
