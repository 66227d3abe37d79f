"""Tests for logging setup and the log stream handler."""

import asyncio
import json
import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from client_balance.logging import (
    MAX_PENDING_RECORDS,
    JsonFormatter,
    LogStreamHandler,
    setup_logging,
)


@pytest.fixture
def restore_root_logger():
    root_logger = logging.getLogger()
    package_logger = logging.getLogger("client_balance")
    level, package_level = root_logger.level, package_logger.level
    yield root_logger
    # pytest's own capture handlers are never plain StreamHandlers
    for handler in root_logger.handlers[:]:
        if type(handler) is logging.StreamHandler or isinstance(
            handler, (TimedRotatingFileHandler, LogStreamHandler)
        ):
            root_logger.removeHandler(handler)
            handler.close()
    root_logger.setLevel(level)
    package_logger.setLevel(package_level)


class TestSetupLogging:
    def test_writes_to_rotating_file(self, tmp_path: Path, restore_root_logger) -> None:
        log_directory = tmp_path / "logs"

        setup_logging("INFO", "standard", log_directory)
        logging.getLogger("client_balance.tests").info("ledger opened")
        for handler in restore_root_logger.handlers:
            handler.flush()

        file_handlers = [
            handler
            for handler in restore_root_logger.handlers
            if isinstance(handler, TimedRotatingFileHandler)
        ]
        assert len(file_handlers) == 1
        assert file_handlers[0].suffix == "%Y-%m-%d"
        content = (log_directory / "app.log").read_text()
        assert "INFO" in content
        assert "ledger opened" in content

    def test_json_format(self, tmp_path: Path, restore_root_logger) -> None:
        setup_logging("DEBUG", "json", tmp_path)
        logging.getLogger("client_balance.tests").debug("ledger %s", "opened")
        for handler in restore_root_logger.handlers:
            handler.flush()

        records = [
            json.loads(line) for line in (tmp_path / "app.log").read_text().splitlines()
        ]
        record = next(r for r in records if r["logger"] == "client_balance.tests")
        assert record["level"] == "DEBUG"
        assert record["message"] == "ledger opened"

    def test_without_directory_only_stdout(self, restore_root_logger) -> None:
        setup_logging("WARNING")

        assert len(restore_root_logger.handlers) == 1
        assert restore_root_logger.level == logging.WARNING

    def test_stream_handler_is_installed(self, restore_root_logger) -> None:
        log_stream = LogStreamHandler()

        setup_logging("INFO", "json", log_stream=log_stream)

        assert log_stream in restore_root_logger.handlers
        assert isinstance(log_stream.formatter, JsonFormatter)


class TestLogStreamHandler:
    @pytest.fixture
    def logger(self):
        logger = logging.getLogger("client_balance.tests.stream")
        logger.propagate = False
        logger.setLevel(logging.INFO)
        yield logger
        for handler in logger.handlers[:]:
            logger.removeHandler(handler)
        logger.propagate = True
        logger.setLevel(logging.NOTSET)

    @pytest.mark.asyncio
    async def test_subscribers_receive_records(self, logger) -> None:
        handler = LogStreamHandler()
        logger.addHandler(handler)
        first, second = handler.subscribe(), handler.subscribe()

        logger.info("balance %s", 10)

        assert await asyncio.wait_for(first.get(), 1) == "balance 10"
        assert await asyncio.wait_for(second.get(), 1) == "balance 10"

    @pytest.mark.asyncio
    async def test_unsubscribed_queue_gets_nothing(self, logger) -> None:
        handler = LogStreamHandler()
        logger.addHandler(handler)
        queue = handler.subscribe()
        handler.unsubscribe(queue)

        logger.info("ignored")
        await asyncio.sleep(0)

        assert queue.empty()

    @pytest.mark.asyncio
    async def test_slow_subscriber_drops_records(self, logger) -> None:
        handler = LogStreamHandler()
        logger.addHandler(handler)
        queue = handler.subscribe()

        for index in range(MAX_PENDING_RECORDS + 5):
            logger.info("record %d", index)
        await asyncio.sleep(0)

        assert queue.qsize() == MAX_PENDING_RECORDS
        assert queue.get_nowait() == "record 0"
