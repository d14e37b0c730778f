"""Pydantic data models for the Bot API objects the SDK sends and receives.

Only the shapes the execution pipeline, the long-poll loop and the session
layer actually touch are modelled here.  Unknown fields in API responses are
ignored, so newer API versions keep decoding.
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from pydantic import BaseModel, Field


class ResponseParameters(BaseModel):
    """Contains information about why a request was unsuccessful."""

    migrate_to_chat_id: Optional[int] = None
    retry_after: Optional[int] = None

    model_config = {"populate_by_name": True}


class ApiResponse(BaseModel):
    """The uniform response envelope wrapping every API result."""

    ok: bool
    result: Any = None
    error_code: Optional[int] = None
    description: Optional[str] = None
    parameters: Optional["ResponseParameters"] = None

    model_config = {"populate_by_name": True}


class User(BaseModel):
    """This object represents a Telegram user or bot."""

    id: int
    is_bot: bool
    first_name: str
    last_name: Optional[str] = None
    username: Optional[str] = None
    language_code: Optional[str] = None

    model_config = {"populate_by_name": True}


class Chat(BaseModel):
    """This object represents a chat."""

    id: int
    type: str
    title: Optional[str] = None
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None

    model_config = {"populate_by_name": True}


class MessageEntity(BaseModel):
    """This object represents one special entity in a text message. For example, hashtags, usernames, URLs, etc."""

    type: str
    offset: int
    length: int
    url: Optional[str] = None
    user: Optional["User"] = None
    language: Optional[str] = None

    model_config = {"populate_by_name": True}


class PhotoSize(BaseModel):
    """This object represents one size of a photo or a file / sticker thumbnail."""

    file_id: str
    file_unique_id: str
    width: int
    height: int
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Document(BaseModel):
    """This object represents a general file (as opposed to photos, voice messages and audio files)."""

    file_id: str
    file_unique_id: str
    file_name: Optional[str] = None
    mime_type: Optional[str] = None
    file_size: Optional[int] = None

    model_config = {"populate_by_name": True}


class Location(BaseModel):
    """This object represents a point on the map."""

    longitude: float
    latitude: float

    model_config = {"populate_by_name": True}


class Message(BaseModel):
    """This object represents a message."""

    message_id: int
    date: int
    chat: "Chat"
    from_field: Optional["User"] = Field(None, alias="from")
    sender_chat: Optional["Chat"] = None
    reply_to_message: Optional["Message"] = None
    edit_date: Optional[int] = None
    author_signature: Optional[str] = None
    text: Optional[str] = None
    entities: Optional[List["MessageEntity"]] = None
    caption: Optional[str] = None
    document: Optional["Document"] = None
    photo: Optional[List["PhotoSize"]] = None
    location: Optional["Location"] = None
    migrate_to_chat_id: Optional[int] = None
    migrate_from_chat_id: Optional[int] = None

    model_config = {"populate_by_name": True}

    def get_chat_id(self) -> int:
        return self.chat.id

    def get_user_id(self) -> Optional[int]:
        """Id of the sending user, if the message has one (channel posts do not)."""
        return self.from_field.id if self.from_field else None

    def get_text(self) -> Optional[str]:
        return self.text if self.text is not None else self.caption


class File(BaseModel):
    """This object represents a file ready to be downloaded."""

    file_id: str
    file_unique_id: str
    file_size: Optional[int] = None
    file_path: Optional[str] = None

    model_config = {"populate_by_name": True}


class InputFile(BaseModel):
    """The contents of a file to be uploaded as a multipart part."""

    data: bytes
    file_name: str = "file"
    mime_type: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardButton(BaseModel):
    """This object represents one button of an inline keyboard."""

    text: str
    url: Optional[str] = None
    callback_data: Optional[str] = None
    switch_inline_query: Optional[str] = None
    switch_inline_query_current_chat: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineKeyboardMarkup(BaseModel):
    """This object represents an inline keyboard that appears right next to the message it belongs to."""

    inline_keyboard: List[List["InlineKeyboardButton"]]

    model_config = {"populate_by_name": True}


class CallbackQuery(BaseModel):
    """This object represents an incoming callback query from a callback button in an inline keyboard."""

    id: str
    from_field: "User" = Field(..., alias="from")
    chat_instance: str
    message: Optional["Message"] = None
    inline_message_id: Optional[str] = None
    data: Optional[str] = None

    model_config = {"populate_by_name": True}


class InlineQuery(BaseModel):
    """This object represents an incoming inline query. When the user sends an empty query, your bot could return some default or trending results."""

    id: str
    from_field: "User" = Field(..., alias="from")
    query: str
    offset: str
    location: Optional["Location"] = None

    model_config = {"populate_by_name": True}


class ChosenInlineResult(BaseModel):
    """Represents a result of an inline query that was chosen by the user and sent to their chat partner."""

    result_id: str
    from_field: "User" = Field(..., alias="from")
    query: str
    location: Optional["Location"] = None
    inline_message_id: Optional[str] = None

    model_config = {"populate_by_name": True}


class InputTextMessageContent(BaseModel):
    """Represents the content of a text message to be sent as the result of an inline query."""

    message_text: str
    parse_mode: Optional[str] = None
    disable_web_page_preview: Optional[bool] = None

    model_config = {"populate_by_name": True}


class InlineQueryResultArticle(BaseModel):
    """Represents a link to an article or web page."""

    type: str = "article"
    id: str
    title: str
    input_message_content: "InputTextMessageContent"
    reply_markup: Optional["InlineKeyboardMarkup"] = None
    url: Optional[str] = None
    description: Optional[str] = None

    model_config = {"populate_by_name": True}


class ShippingAddress(BaseModel):
    """This object represents a shipping address."""

    country_code: str
    state: str
    city: str
    street_line1: str
    street_line2: str
    post_code: str

    model_config = {"populate_by_name": True}


class OrderInfo(BaseModel):
    """This object represents information about an order."""

    name: Optional[str] = None
    phone_number: Optional[str] = None
    email: Optional[str] = None
    shipping_address: Optional["ShippingAddress"] = None

    model_config = {"populate_by_name": True}


class ShippingQuery(BaseModel):
    """This object contains information about an incoming shipping query."""

    id: str
    from_field: "User" = Field(..., alias="from")
    invoice_payload: str
    shipping_address: "ShippingAddress"

    model_config = {"populate_by_name": True}


class PreCheckoutQuery(BaseModel):
    """This object contains information about an incoming pre-checkout query."""

    id: str
    from_field: "User" = Field(..., alias="from")
    currency: str
    total_amount: int
    invoice_payload: str
    shipping_option_id: Optional[str] = None
    order_info: Optional["OrderInfo"] = None

    model_config = {"populate_by_name": True}


class PollOption(BaseModel):
    """This object contains information about one answer option in a poll."""

    text: str
    voter_count: int

    model_config = {"populate_by_name": True}


class Poll(BaseModel):
    """This object contains information about a poll."""

    id: str
    question: str
    options: List["PollOption"]
    total_voter_count: int
    is_closed: bool
    is_anonymous: bool
    type: str
    allows_multiple_answers: bool

    model_config = {"populate_by_name": True}


class PollAnswer(BaseModel):
    """This object represents an answer of a user in a non-anonymous poll.

    Votes cast on behalf of a chat carry *voter_chat* instead of *user*.
    """

    poll_id: str
    voter_chat: Optional["Chat"] = None
    user: Optional["User"] = None
    option_ids: List[int]

    model_config = {"populate_by_name": True}


class ChatPermissions(BaseModel):
    """Describes actions that a non-administrator user is allowed to take in a chat.

    Unset permissions are omitted from requests, which is not the same as
    passing ``False``.
    """

    can_send_messages: Optional[bool] = None
    can_send_media_messages: Optional[bool] = None
    can_send_polls: Optional[bool] = None
    can_send_other_messages: Optional[bool] = None
    can_add_web_page_previews: Optional[bool] = None
    can_change_info: Optional[bool] = None
    can_invite_users: Optional[bool] = None
    can_pin_messages: Optional[bool] = None

    model_config = {"populate_by_name": True}

    @classmethod
    def _all(cls, value: bool) -> "ChatPermissions":
        return cls(**{name: value for name in cls.model_fields})

    @classmethod
    def restricted(cls) -> "ChatPermissions":
        """Every permission explicitly denied."""
        return cls._all(False)

    @classmethod
    def allowed(cls) -> "ChatPermissions":
        """Every permission explicitly granted."""
        return cls._all(True)

    def with_send_messages(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_send_messages": flag})

    def with_send_media_messages(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_send_media_messages": flag})

    def with_send_polls(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_send_polls": flag})

    def with_send_other_messages(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_send_other_messages": flag})

    def with_add_web_page_previews(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_add_web_page_previews": flag})

    def with_change_info(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_change_info": flag})

    def with_invite_users(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_invite_users": flag})

    def with_pin_messages(self, flag: bool) -> "ChatPermissions":
        return self.model_copy(update={"can_pin_messages": flag})


ReplyMarkup = Union[InlineKeyboardMarkup, dict]

_UPDATE_KINDS = (
    "message",
    "edited_message",
    "channel_post",
    "edited_channel_post",
    "inline_query",
    "chosen_inline_result",
    "callback_query",
    "shipping_query",
    "pre_checkout_query",
    "poll",
    "poll_answer",
)


class Update(BaseModel):
    """This object represents an incoming update. At most **one** of the optional parameters can be present in any given update."""

    update_id: int
    message: Optional["Message"] = None
    edited_message: Optional["Message"] = None
    channel_post: Optional["Message"] = None
    edited_channel_post: Optional["Message"] = None
    inline_query: Optional["InlineQuery"] = None
    chosen_inline_result: Optional["ChosenInlineResult"] = None
    callback_query: Optional["CallbackQuery"] = None
    shipping_query: Optional["ShippingQuery"] = None
    pre_checkout_query: Optional["PreCheckoutQuery"] = None
    poll: Optional["Poll"] = None
    poll_answer: Optional["PollAnswer"] = None

    model_config = {"populate_by_name": True}

    @property
    def kind(self) -> Optional[str]:
        """Name of the populated variant, or ``None`` for an unknown one."""
        for name in _UPDATE_KINDS:
            if getattr(self, name) is not None:
                return name
        return None

    def get_message(self) -> Optional["Message"]:
        """The message carried by a message-like variant, if any."""
        return (
            self.message
            or self.edited_message
            or self.channel_post
            or self.edited_channel_post
        )

    def get_user(self) -> Optional["User"]:
        """The user who caused the update, if the variant names one."""
        message = self.get_message()
        if message is not None:
            return message.from_field
        for source in (
            self.callback_query,
            self.inline_query,
            self.chosen_inline_result,
            self.shipping_query,
            self.pre_checkout_query,
        ):
            if source is not None:
                return source.from_field
        if self.poll_answer is not None:
            return self.poll_answer.user
        return None

    def get_chat(self) -> Optional["Chat"]:
        """The chat the update happened in, if the variant names one."""
        message = self.get_message()
        if message is not None:
            return message.chat
        if self.callback_query is not None and self.callback_query.message is not None:
            return self.callback_query.message.chat
        if self.poll_answer is not None:
            return self.poll_answer.voter_chat
        return None


for _model in (
    ApiResponse,
    MessageEntity,
    Message,
    InlineKeyboardMarkup,
    CallbackQuery,
    InlineQuery,
    ChosenInlineResult,
    InlineQueryResultArticle,
    OrderInfo,
    ShippingQuery,
    PreCheckoutQuery,
    Poll,
    PollAnswer,
    Update,
):
    _model.model_rebuild()
