import json
import logging
import logging.config

import pytest

from gaiax_credentials.config import Settings
from gaiax_credentials.logging import RunIdFilter, configure_logging, get_logger


@pytest.fixture(autouse=True)
def reset_logging():
    yield
    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "root": {"handlers": [], "level": "WARNING"},
        "loggers": {
            "gaiax_credentials": {"handlers": [], "level": "NOTSET", "propagate": True},
            "httpx": {"handlers": [], "level": "NOTSET", "propagate": True},
        },
    })


def test_text_format(capsys):
    run_id = configure_logging(Settings(log_format="text", log_level="INFO"))

    get_logger("gaiax_credentials.pipeline").info("Building Participant Verifiable Credential")

    err = capsys.readouterr().err
    assert f"[{run_id}] - Building Participant Verifiable Credential" in err
    assert "gaiax_credentials.pipeline - INFO" in err


def test_json_format(capsys):
    run_id = configure_logging(Settings(log_format="json", log_level="DEBUG"), run_id="run-1234")

    get_logger("gaiax_credentials.compliance").debug("POST -> https://compliance.test")

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert run_id == "run-1234"
    assert record["run_id"] == "run-1234"
    assert record["level"] == "DEBUG"
    assert record["name"] == "gaiax_credentials.compliance"
    assert record["message"] == "POST -> https://compliance.test"
    assert "timestamp" in record


def test_level_filters_records(capsys):
    configure_logging(Settings(log_level="WARNING"))

    get_logger("gaiax_credentials.service").info("Loading OpenAPI document")

    assert capsys.readouterr().err == ""


def test_invalid_format_falls_back_to_text(capsys):
    configure_logging(Settings(log_format="xml"))

    get_logger().warning("still logged")

    captured = capsys.readouterr()
    assert "Invalid log_format 'xml'" in captured.out
    assert "still logged" in captured.err


def test_run_id_filter_keeps_existing_value():
    record = logging.LogRecord("gaiax_credentials", logging.INFO, __file__, 1, "message", None, None)
    record.run_id = "outer"

    assert RunIdFilter("inner").filter(record)
    assert record.run_id == "outer"


def test_get_logger_default_name():
    assert get_logger().name == "gaiax_credentials"
