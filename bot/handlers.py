"""Example update handler: an echo bot with per-conversation session state.

:class:`EchoBot` is an :class:`~bot.longpoll.UpdateHandler`.  Text messages
are echoed back, slash-commands go through the module-level
:data:`registry`, inline queries are answered with an echo article and
callback queries are acknowledged.  Commands keep their state in the
:class:`~session.session.Session` of the conversation, and /profile runs a
short :class:`~bot.dialogue.Dialogue` that collects a name and an age.

API errors raised here propagate to the long-poll loop, which reports them
and moves on to the next update.
"""

from typing import Optional

from pydantic import BaseModel

from sdk.client import BotClient
from sdk.methods import AnswerCallbackQuery, AnswerInlineQuery, SendMessage
from sdk.models import InlineQueryResultArticle, InputTextMessageContent, Update
from core.logger import PollbotLogger
from session.session import SessionManager
from bot.dialogue import Dialogue, DialogueResult
from bot.registry import CommandContext, CommandRegistry, parse_command

logger = PollbotLogger.get_logger(__name__)

registry = CommandRegistry()

COUNTER_KEY = "counter"
NOTE_KEY = "note"
PROFILE_KEY = "profile"


async def _reply(ctx: CommandContext, text: str) -> None:
    await ctx.client.execute(SendMessage(chat_id=ctx.message.get_chat_id(), text=text))


@registry.register("/start", description="Say hello")
async def handle_start(ctx: CommandContext) -> None:
    """Handle /start — greet the user."""
    user = ctx.message.from_field
    name = user.first_name if user else "there"
    await _reply(ctx, f"Hello, {name}! Send me anything and I will echo it. /help lists commands.")


@registry.register("/help", description="Show available commands")
async def handle_help(ctx: CommandContext) -> None:
    lines = [f"{entry.command} - {entry.description}" for entry in registry.entries().values()]
    await _reply(ctx, "Available commands:\n" + "\n".join(lines))


@registry.register("/count", description="Count how many times you asked")
async def handle_count(ctx: CommandContext) -> None:
    """Handle /count — increment the conversation's counter.

    Get-then-set is not atomic; concurrent /count calls in one conversation
    may lose an increment.
    """
    counter = (await ctx.session.get(COUNTER_KEY, int) or 0) + 1
    await ctx.session.set(COUNTER_KEY, counter)
    await _reply(ctx, f"Count: {counter}")


@registry.register("/remember", description="Remember a note: /remember [seconds] <text>")
async def handle_remember(ctx: CommandContext) -> None:
    """Handle /remember — store a note, optionally expiring after N seconds."""
    args = list(ctx.args)
    seconds = None
    if args and args[0].isdigit():
        seconds = int(args.pop(0))
    if not args:
        await _reply(ctx, "Usage: /remember [seconds] <text>")
        return

    await ctx.session.set(NOTE_KEY, " ".join(args))
    if seconds is not None:
        await ctx.session.expire(NOTE_KEY, seconds)
        await _reply(ctx, f"Noted for {seconds} s.")
    else:
        await _reply(ctx, "Noted.")


@registry.register("/recall", description="Show the remembered note")
async def handle_recall(ctx: CommandContext) -> None:
    note = await ctx.session.get(NOTE_KEY, str)
    await _reply(ctx, note if note is not None else "Nothing remembered.")


@registry.register("/reset", description="Forget the counter and the note")
async def handle_reset(ctx: CommandContext) -> None:
    await ctx.session.delete(COUNTER_KEY)
    await ctx.session.delete(NOTE_KEY)
    await _reply(ctx, "Session cleared.")


# ── Profile dialogue ─────────────────────────────────────────────────────────


class ProfileForm(BaseModel):
    """Answers collected so far by the /profile dialogue."""

    name: Optional[str] = None


async def _profile_step(ctx: CommandContext, form: ProfileForm) -> DialogueResult[ProfileForm]:
    text = (ctx.message.get_text() or "").strip()
    if form.name is None:
        if not text:
            await _reply(ctx, "Please send your name as text.")
            return DialogueResult.next(form)
        await _reply(ctx, f"Nice to meet you, {text}. How old are you?")
        return DialogueResult.next(form.model_copy(update={"name": text}))

    if not text.isdigit():
        await _reply(ctx, "Please send your age as a number.")
        return DialogueResult.next(form)
    await ctx.session.set(PROFILE_KEY, {"name": form.name, "age": int(text)})
    await _reply(ctx, f"Saved: {form.name}, {text}.")
    return DialogueResult.exit()


profile_dialogue: Dialogue[ProfileForm] = Dialogue("profile", ProfileForm, _profile_step)


@registry.register("/profile", description="Tell me your name and age")
async def handle_profile(ctx: CommandContext) -> None:
    await profile_dialogue.start(ctx.session, ProfileForm())
    await _reply(ctx, "What is your name? /cancel stops.")


@registry.register("/cancel", description="Stop the current dialogue")
async def handle_cancel(ctx: CommandContext) -> None:
    if await profile_dialogue.is_active(ctx.session):
        await profile_dialogue.cancel(ctx.session)
        await _reply(ctx, "Cancelled.")
    else:
        await _reply(ctx, "Nothing to cancel.")


class EchoBot:
    """Route each update to a command, an echo, or a query answer."""

    def __init__(self, client: BotClient, sessions: SessionManager) -> None:
        self._client = client
        self._sessions = sessions

    async def handle(self, update: Update) -> None:
        logger.debug("Processing update", extra={"update_id": update.update_id, "kind": update.kind})

        if update.callback_query is not None:
            await self._client.execute(AnswerCallbackQuery(callback_query_id=update.callback_query.id))
            return

        if update.inline_query is not None:
            await self._answer_inline(update)
            return

        message = update.get_message()
        if message is None:
            logger.debug("Update has no message, skipping", extra={"update_id": update.update_id})
            return

        text = message.get_text() or ""
        command, args = parse_command(text)
        ctx = CommandContext(
            client=self._client,
            message=message,
            session=self._sessions.get_session(update),
            args=args,
        )
        if command and await registry.dispatch(command, ctx):
            logger.info("Command handled", extra={"update_id": update.update_id, "command": command})
            return

        if not command and await profile_dialogue.feed(ctx):
            return

        if text:
            await self._client.execute(SendMessage(chat_id=message.get_chat_id(), text=text))

    async def _answer_inline(self, update: Update) -> None:
        query = update.inline_query
        text = query.query or "…"
        article = InlineQueryResultArticle(
            id=query.id,
            title=f"Echo: {text[:32]}",
            input_message_content=InputTextMessageContent(message_text=text),
        )
        await self._client.execute(
            AnswerInlineQuery(inline_query_id=query.id, results=[article]).with_cache_time(0)
        )
