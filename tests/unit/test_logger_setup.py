import json
import logging
import logging.handlers

import pytest

from thenutils.utils import logger_setup
from thenutils.utils.config_manager import get_config_manager


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    root.setLevel(level)


def test_setup_logging_console_only_by_default():
    logger_setup.setup_logging()

    root = logging.getLogger()
    assert root.level == logging.INFO
    assert len(root.handlers) == 1
    assert not isinstance(root.handlers[0], logging.handlers.RotatingFileHandler)


def test_setup_logging_level_argument_wins():
    logger_setup.setup_logging(level="debug")

    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_invalid_level_falls_back_to_info():
    logger_setup.setup_logging(level="chatty")

    assert logging.getLogger().level == logging.INFO


def test_setup_logging_creates_rotating_handler(tmp_path):
    get_config_manager().update_configuration({
        "logging": {
            "enable_file_logging": True,
            "log_directory": str(tmp_path / "logs"),
            "enable_structured_logging": True,
        }
    })

    logger_setup.setup_logging()
    logging.getLogger("thenutils.test").warning("disk %s", "full")
    for handler in logging.getLogger().handlers:
        handler.flush()

    root = logging.getLogger()
    assert any(isinstance(h, logging.handlers.RotatingFileHandler) for h in root.handlers)
    lines = (tmp_path / "logs" / logger_setup.LOG_FILENAME).read_text().splitlines()
    entry = json.loads(lines[-1])
    assert entry["message"] == "disk full"
    assert entry["level"] == "WARNING"
    assert entry["args"] == ["full"]


def test_json_formatter_handles_unserializable_args():
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "value %s", (object(),), None)

    entry = json.loads(logger_setup.JsonFormatter().format(record))

    assert entry["args"][0].startswith("<object object")
