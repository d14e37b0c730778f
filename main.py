"""pollbot entrypoint — runs the example echo bot with long polling.

Usage::

    BOT_TOKEN=123:abc python main.py

SIGINT / SIGTERM stop the loop gracefully.
"""

import asyncio
import signal

from config import (
    ALLOWED_UPDATES,
    ALLOWED_USERS,
    API_BASE_URL,
    BOT_TOKEN,
    HTTP_TIMEOUT,
    LOG_LEVEL,
    POLL_LIMIT,
    POLL_TIMEOUT,
    RATE_LIMIT,
    RATE_LIMIT_KEY,
    RATE_LIMIT_PERIOD,
    REDIS_URL,
    SESSION_BACKEND,
    SESSION_DIR,
    SESSION_LIFETIME,
)
from core.logger import PollbotLogger
from sdk.client import BotClient
from sdk.exceptions import ExecuteError
from sdk.methods import GetMe
from session.backends import create_store
from session.session import SessionManager
from bot.access import AccessHandler, InMemoryAccessPolicy, rules_from_allowed
from bot.handlers import EchoBot
from bot.longpoll import LongPoll
from bot.ratelimit import RateLimitHandler, RateLimitKey

logger = PollbotLogger.get_logger(__name__)


def build_handler(
    client: BotClient,
    sessions: SessionManager,
    allowed_users: list[str] | None = ALLOWED_USERS,
    rate_limit: int = RATE_LIMIT,
    rate_limit_period: int = RATE_LIMIT_PERIOD,
    rate_limit_key: str = RATE_LIMIT_KEY,
):
    """Wrap the echo bot in the configured rate limit and access policy.

    Access is checked first, so denied users never consume rate-limit capacity.
    """
    handler = EchoBot(client, sessions)
    if rate_limit > 0:
        handler = RateLimitHandler(handler, rate_limit, rate_limit_period, key=RateLimitKey(rate_limit_key))
    if allowed_users:
        handler = AccessHandler(handler, InMemoryAccessPolicy(rules_from_allowed(allowed_users)))
    return handler


async def run() -> None:
    """Wire the client, the session store and the loop, then poll until stopped.

    Raises:
        EnvironmentError: If ``BOT_TOKEN`` is not set.
    """
    if not BOT_TOKEN:
        raise EnvironmentError("BOT_TOKEN environment variable is not set or is empty.")

    client = BotClient(BOT_TOKEN, base_url=API_BASE_URL, timeout=HTTP_TIMEOUT)
    me = await client.execute(GetMe())
    logger.info("Authorized", extra={"bot_id": me.id, "bot_username": me.username})

    store = create_store(SESSION_BACKEND, redis_url=REDIS_URL, directory=SESSION_DIR)
    sessions = SessionManager(store, lifetime=SESSION_LIFETIME or None)

    poll = LongPoll(
        client,
        build_handler(client, sessions),
        poll_timeout=POLL_TIMEOUT,
        limit=POLL_LIMIT,
        allowed_updates=ALLOWED_UPDATES,
    )

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, poll.stop)
        except NotImplementedError:
            # Windows event loops have no signal handler support.
            pass

    try:
        await poll.run()
    finally:
        await sessions.close()


def main() -> None:
    PollbotLogger.set_level(LOG_LEVEL)
    try:
        asyncio.run(run())
    except ExecuteError as exc:
        logger.error("Bot stopped on a fatal API error", extra={"error": str(exc)})
        raise SystemExit(1) from exc
    except KeyboardInterrupt:
        logger.info("Interrupted")


if __name__ == "__main__":
    main()
