"""Bot application layer — the long-poll loop, handler wrappers and an example handler.

This package may import from ``core/``, ``sdk/``, ``session/`` and ``config``.
"""

from bot.access import AccessHandler, AccessPolicy, AccessRule, InMemoryAccessPolicy
from bot.dialogue import Dialogue, DialogueResult
from bot.handlers import EchoBot, registry
from bot.longpoll import Backoff, LongPoll, PollState, UpdateHandler
from bot.ratelimit import RateLimitHandler, RateLimitKey, RateLimiter
from bot.registry import CommandContext, CommandRegistry

__all__ = [
    # Long polling
    "LongPoll",
    "PollState",
    "Backoff",
    "UpdateHandler",
    # Handler wrappers
    "AccessHandler",
    "AccessPolicy",
    "AccessRule",
    "InMemoryAccessPolicy",
    "RateLimitHandler",
    "RateLimitKey",
    "RateLimiter",
    # Dialogues
    "Dialogue",
    "DialogueResult",
    # Example handler
    "EchoBot",
    "registry",
    "CommandContext",
    "CommandRegistry",
]
