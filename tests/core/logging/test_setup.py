"""Tests for logging setup and configuration."""

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

import pytest

from core.logging.context import clear_log_context, get_log_context
from core.logging.formatters import ConsoleFormatter, JSONFormatter
from core.logging.setup import NOISY_LOGGERS, get_log_file_path, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)
    clear_log_context()


class TestGetLogFilePath:
    def test_name_only(self):
        assert get_log_file_path(Path("logs"), "azure_binding") == Path("logs/azure_binding.log")

    def test_with_worker_id(self):
        path = get_log_file_path(Path("logs"), "azure_binding", "brave-tiger")
        assert path == Path("logs/azure_binding_brave-tiger.log")


class TestSetupLogging:
    def test_console_and_json_file_handlers(self, tmp_path):
        setup_logging(log_dir=tmp_path)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 2
        console, file_handler = handlers
        assert isinstance(console.formatter, ConsoleFormatter)
        assert console.level == logging.INFO
        assert isinstance(file_handler, TimedRotatingFileHandler)
        assert isinstance(file_handler.formatter, JSONFormatter)
        assert (tmp_path / "azure_binding.log").exists()

    def test_stdout_only(self, tmp_path):
        setup_logging(log_dir=tmp_path, log_to_stdout=True)

        handlers = logging.getLogger().handlers
        assert len(handlers) == 1
        assert handlers[0].level == logging.DEBUG
        assert not (tmp_path / "azure_binding.log").exists()

    def test_plain_text_file_format(self, tmp_path):
        setup_logging(log_dir=tmp_path, json_format=False)

        file_handler = logging.getLogger().handlers[1]
        assert not isinstance(file_handler.formatter, JSONFormatter)

    def test_worker_id_sets_context_and_filename(self, tmp_path):
        setup_logging(log_dir=tmp_path, worker_id="calm-ocean")

        assert get_log_context()["worker_id"] == "calm-ocean"
        assert (tmp_path / "azure_binding_calm-ocean.log").exists()

    def test_suppresses_noisy_loggers(self, tmp_path):
        setup_logging(log_dir=tmp_path, log_to_stdout=True)

        for name in NOISY_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_returns_named_logger(self, tmp_path):
        logger = setup_logging(name="orders-service", log_dir=tmp_path, log_to_stdout=True)
        assert logger.name == "orders-service"
