"""Typed Bot API SDK — request methods, Pydantic models, executor and errors.

Usage::

    from sdk import BotClient, SendMessage

    client = BotClient(token)
    message = await client.execute(SendMessage(chat_id=42, text="hello"))
"""

from sdk.client import BotClient
from sdk.exceptions import (
    APIException,
    DecodeError,
    EncodingError,
    ExecuteError,
    HTTPStatusError,
    TransportError,
)
from sdk.methods import (
    AnswerCallbackQuery,
    AnswerInlineQuery,
    DeleteMessage,
    GetFile,
    GetMe,
    GetUpdates,
    Method,
    RestrictChatMember,
    SendDocument,
    SendMessage,
)
from sdk.request import EmptyBody, FormBody, JsonBody, RequestDescriptor, RequestMethod

__all__ = [
    "BotClient",
    # Errors
    "APIException",
    "DecodeError",
    "EncodingError",
    "ExecuteError",
    "HTTPStatusError",
    "TransportError",
    # Methods
    "Method",
    "AnswerCallbackQuery",
    "AnswerInlineQuery",
    "DeleteMessage",
    "GetFile",
    "GetMe",
    "GetUpdates",
    "RestrictChatMember",
    "SendDocument",
    "SendMessage",
    # Requests
    "RequestDescriptor",
    "RequestMethod",
    "EmptyBody",
    "JsonBody",
    "FormBody",
]
