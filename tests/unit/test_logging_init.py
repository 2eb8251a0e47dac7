from __future__ import annotations

import logging
from io import StringIO

from flashcsv.logging.init import (
    APP_LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    reset_logging,
    set_debug,
    setup_logging,
)


def test_setup_logging_creates_logger_with_labeled_formatter():
    reset_logging()
    logger = setup_logging()

    assert logger.name == APP_LOGGER_NAME == "flashcsv"
    assert logger.level == logging.INFO
    assert len(logger.handlers) == 1
    assert isinstance(logger.handlers[0].formatter, LabeledFormatter)
    assert logger.propagate is False
    # 冪等
    assert setup_logging() is logger
    assert get_logger() is logger


def test_labeled_prefixes():
    fmt = LabeledFormatter()

    def render(level: int, msg: str) -> str:
        record = logging.LogRecord("flashcsv", level, __file__, 1, msg, None, None)
        return fmt.format(record)

    assert render(logging.INFO, "hello") == "INFO hello"
    assert render(logging.WARNING, "careful") == "WARN careful"
    assert render(logging.ERROR, "bad") == "ERROR bad"
    assert render(SUMMARY_LEVEL, "files=1") == "SUMMARY files=1"


def test_module_loggers_propagate_to_app_logger(capsys):
    reset_logging()
    setup_logging()
    logging.getLogger("flashcsv.services.importer").info("created deck 'Spanish'")
    log_summary("files=0")
    out = capsys.readouterr().out
    assert "INFO created deck 'Spanish'" in out
    assert "SUMMARY files=0" in out


def test_set_debug_lowers_levels():
    reset_logging()
    logger = setup_logging()
    stream = StringIO()
    logger.handlers[0].setStream(stream)
    logger.debug("hidden")
    set_debug()
    logger.debug("shown")
    text = stream.getvalue()
    assert "hidden" not in text
    assert "DEBUG shown" in text
    reset_logging()
