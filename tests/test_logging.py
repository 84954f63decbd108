"""Tests for logging setup."""

import json
import logging

import pytest

from gitshelf.utils.logging import get_logger, log_async_execution_time, setup_logging


def _installed_handlers():
    return [h for h in logging.getLogger().handlers if getattr(h, "_gitshelf_handler", False)]


class TestLoggingSetup:
    """Test handler installation and structured output."""

    def teardown_method(self):
        for handler in _installed_handlers():
            logging.getLogger().removeHandler(handler)
            handler.close()

    def test_json_file_logging(self, tmp_path):
        log_file = tmp_path / "logs" / "gitshelf.log"
        setup_logging(log_level="INFO", log_format="json", log_file=str(log_file))

        get_logger("test").info("File uploaded", file_path="ab/cd.png")
        for handler in _installed_handlers():
            handler.flush()

        lines = log_file.read_text(encoding="utf-8").strip().splitlines()
        entry = json.loads(lines[-1])
        assert entry["event"] == "File uploaded"
        assert entry["file_path"] == "ab/cd.png"
        assert entry["level"] == "info"

    def test_repeated_setup_replaces_handlers(self, tmp_path):
        setup_logging(log_level="DEBUG", log_file=str(tmp_path / "a.log"))
        setup_logging(log_level="DEBUG", log_file=str(tmp_path / "b.log"))

        assert len(_installed_handlers()) == 2
        assert logging.getLogger().level == logging.DEBUG

    def test_console_only_when_file_disabled(self, monkeypatch):
        monkeypatch.setenv("GITSHELF_LOG_LOG_TO_FILE", "false")
        setup_logging(log_level="WARNING")

        assert len(_installed_handlers()) == 1


class TestExecutionTimeDecorator:
    """Test the timing decorator."""

    @pytest.mark.asyncio
    async def test_returns_result(self):
        @log_async_execution_time
        async def add(a, b):
            return a + b

        assert await add(1, 2) == 3

    @pytest.mark.asyncio
    async def test_propagates_errors(self):
        @log_async_execution_time
        async def fail():
            raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            await fail()
