"""Logging configuration for client-balance."""

from __future__ import annotations

import asyncio
import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any

LOG_FILE_NAME = "app.log"
# records queued per websocket before new ones are dropped for it
MAX_PENDING_RECORDS = 32


def setup_logging(
    level: str = "INFO",
    format_type: str = "standard",
    log_directory: Path | None = None,
    log_stream: LogStreamHandler | None = None,
) -> None:
    """Configure the root logger.

    Records always go to stdout. With ``log_directory`` they are also written
    to ``<log_directory>/app.log``, rolled over at midnight into
    ``app.log.YYYY-MM-DD``. With ``log_stream`` they are fanned out to the
    websocket subscribers of that handler.

    ``format_type`` is either ``"standard"`` or ``"json"``.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    if format_type == "json":
        formatter: logging.Formatter = JsonFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_directory is not None:
        log_directory.mkdir(parents=True, exist_ok=True)
        handlers.append(
            TimedRotatingFileHandler(
                log_directory / LOG_FILE_NAME, when="midnight", encoding="utf-8"
            )
        )
    if log_stream is not None:
        handlers.append(log_stream)

    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    logging.getLogger("client_balance").setLevel(log_level)
    logging.getLogger("asyncpg").setLevel(logging.WARNING)


class JsonFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


class LogStreamHandler(logging.Handler):
    """Hands every formatted record to the queues of live subscribers.

    Records may be emitted from any thread; they are delivered on the event
    loop each queue was subscribed from. A subscriber that falls
    ``MAX_PENDING_RECORDS`` behind misses records until it catches up.
    """

    def __init__(self) -> None:
        super().__init__()
        self.__subscribers = dict[asyncio.Queue[str], asyncio.AbstractEventLoop]()

    def subscribe(self) -> asyncio.Queue[str]:
        queue = asyncio.Queue[str](maxsize=MAX_PENDING_RECORDS)
        self.__subscribers[queue] = asyncio.get_running_loop()
        return queue

    def unsubscribe(self, queue: asyncio.Queue[str]) -> None:
        self.__subscribers.pop(queue, None)

    def emit(self, record: logging.LogRecord) -> None:
        if not self.__subscribers:
            return
        try:
            message = self.format(record)
        except Exception:
            self.handleError(record)
            return
        for queue, loop in list(self.__subscribers.items()):
            try:
                loop.call_soon_threadsafe(self.__offer, queue, message)
            except RuntimeError:
                # loop already closed
                self.unsubscribe(queue)

    @staticmethod
    def __offer(queue: asyncio.Queue[str], message: str) -> None:
        if not queue.full():
            queue.put_nowait(message)
