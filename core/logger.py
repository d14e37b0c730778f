"""PollbotLogger — Singleton JSON logger with console and rotating file output.

Provides one project-wide ``pollbot`` logger that writes structured JSON to
both stdout and ``<log dir>/pollbot.log`` (with automatic rotation).  Modules
ask for a child logger so the ``logger`` field names its origin.
"""

import json
import logging
import os
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Optional


class _JsonFormatter(logging.Formatter):
    """Format every log record as a single-line JSON object.

    Standard fields (timestamp, level, logger, message, module, func_name)
    are always present.  Any *extra* key-value pairs passed via the ``extra``
    parameter of a logging call are merged into the JSON object, giving
    callers a way to attach context such as ``update_id``, ``offset``,
    ``api_endpoint`` or ``delay``.

    Example::

        logger.warning(
            "Polling failed, backing off",
            extra={"api_endpoint": "getUpdates", "offset": 42, "delay": 4.0},
        )

    Produces::

        {"timestamp": "…", "level": "WARNING", …, "offset": 42, "delay": 4.0}
    """

    # Keys that belong to the standard LogRecord; everything else is extra.
    _BUILTIN_ATTRS: frozenset[str] = frozenset(vars(logging.LogRecord(
        name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None,
    ))) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        """Serialize *record* to a JSON string."""
        log_entry: dict = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "func_name": record.funcName,
        }

        for key, value in record.__dict__.items():
            if key not in self._BUILTIN_ATTRS and key not in log_entry:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, ensure_ascii=False, default=str)


class PollbotLogger:
    """Singleton logger with dual handlers (console + rotating file).

    Usage::

        from core.logger import PollbotLogger

        logger = PollbotLogger.get_logger(__name__)
        logger.info("Polling started")
    """

    ROOT_NAME: str = "pollbot"

    _instance: Optional["PollbotLogger"] = None
    _logger: Optional[logging.Logger] = None

    # Rotation settings
    _DEFAULT_LOG_DIR: str = "logs"
    _LOG_FILE: str = "pollbot.log"
    _MAX_BYTES: int = 5 * 1024 * 1024  # 5 MB
    _BACKUP_COUNT: int = 5

    def __new__(cls, level: int = logging.INFO) -> "PollbotLogger":
        """Ensure only one instance is ever created (Singleton)."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._init_logger(level)
        return cls._instance

    # ------------------------------------------------------------------
    # Initialisation helpers
    # ------------------------------------------------------------------

    def _init_logger(self, level: int) -> None:
        """Create the root ``pollbot`` logger and attach handlers."""
        self._logger = logging.getLogger(self.ROOT_NAME)
        self._logger.setLevel(level)

        # Avoid duplicate handlers if the module is reloaded.
        if self._logger.handlers:
            return

        formatter = _JsonFormatter()

        stream_handler = logging.StreamHandler()
        stream_handler.setLevel(level)
        stream_handler.setFormatter(formatter)
        self._logger.addHandler(stream_handler)

        log_dir = os.environ.get("LOG_DIR", self._DEFAULT_LOG_DIR)
        os.makedirs(log_dir, exist_ok=True)
        log_path = os.path.join(log_dir, self._LOG_FILE)

        file_handler = RotatingFileHandler(
            log_path,
            maxBytes=self._MAX_BYTES,
            backupCount=self._BACKUP_COUNT,
            encoding="utf-8",
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        self._logger.addHandler(file_handler)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    @staticmethod
    def get_logger(name: str | None = None, level: int = logging.INFO) -> logging.Logger:
        """Return the shared logger, or a named child of it.

        Creates the singleton on first call; subsequent calls reuse the same
        handlers regardless of the *level* argument.  Child loggers propagate
        to the root ``pollbot`` logger, so they share its handlers.
        """
        instance = PollbotLogger(level)
        assert instance._logger is not None  # guaranteed by __new__
        if not name:
            return instance._logger
        return instance._logger.getChild(name)

    @classmethod
    def set_level(cls, level: int | str) -> None:
        """Change the level of the root logger and all of its handlers."""
        root = cls.get_logger()
        root.setLevel(level)
        for handler in root.handlers:
            handler.setLevel(level)

    def cleanup(self) -> None:
        """Flush and close all handlers attached to the logger."""
        if self._logger is None:
            return
        for handler in list(self._logger.handlers):
            handler.flush()
            handler.close()
            self._logger.removeHandler(handler)
