"""Namespace resolution — which conversation does an update belong to?

The namespace is ``"{chat_id}-{user_id}"``.  When only one identity is
available it is used for both halves, so a channel post in chat ``1`` and an
inline query from user ``1111`` resolve to ``"1-1"`` and ``"1111-1111"``.
"""

from __future__ import annotations

from typing import Optional, Tuple

from sdk.models import Update


class NamespaceError(ValueError):
    """The update carries no chat or user identity."""


def identities_from_update(update: Update) -> Tuple[Optional[int], Optional[int]]:
    """Return ``(chat_id, user_id)`` for the populated variant.

    Either half is ``None`` when the variant does not carry it; a vote cast
    on behalf of a chat yields only the chat.
    """
    chat = update.get_chat()
    user = update.get_user()
    return (chat.id if chat else None), (user.id if user else None)


def namespace_from_update(update: Update) -> str:
    """Derive the session namespace of *update*.

    Raises:
        NamespaceError: For variants without identity (e.g. ``poll``).
    """
    chat_id, user_id = identities_from_update(update)
    if chat_id is None and user_id is None:
        raise NamespaceError(
            f"Update {update.update_id} ({update.kind or 'unknown'}) has no chat or user identity"
        )
    if chat_id is None:
        chat_id = user_id
    if user_id is None:
        user_id = chat_id
    return f"{chat_id}-{user_id}"
