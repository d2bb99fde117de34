import io
import json
import logging
from unittest.mock import patch

import pytest

from querystone.engine import Database
from querystone.logging import get_logger, setup_logging
from querystone.settings import Settings


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_writes_json_lines(restore_root_logger):
    stream = io.StringIO()
    setup_logging("debug", stream=stream)

    assert restore_root_logger.level == logging.DEBUG
    get_logger("querystone.tests").debug("statement ran", extra={"rows_affected": 3})

    payload = json.loads(stream.getvalue().splitlines()[-1])
    assert payload["message"] == "statement ran"
    assert payload["level"] == "DEBUG"
    assert payload["logger"] == "querystone.tests"
    assert payload["rows_affected"] == 3
    assert "querystone_version" in payload


def test_setup_logging_honours_level(restore_root_logger):
    stream = io.StringIO()
    setup_logging("WARNING", stream=stream)

    get_logger("querystone.tests").info("hidden")
    assert stream.getvalue() == ""


def test_engine_from_settings_configures_logging_on_request():
    settings = Settings(
        _env_file=None,
        connections=[{"key": "main", "dsn": "sqlite://"}],
        logging={"configure": True, "level": "debug"},
    )
    with patch("querystone.engine.database.setup_logging") as setup:
        Database.from_settings(settings).disconnect()
    setup.assert_called_once_with("DEBUG")


def test_engine_from_settings_leaves_logging_alone_by_default():
    settings = Settings(_env_file=None, connections=[{"key": "main", "dsn": "sqlite://"}])
    with patch("querystone.engine.database.setup_logging") as setup:
        Database.from_settings(settings).disconnect()
    setup.assert_not_called()
