"""
Tests for logging configuration helpers.
"""

import json
import logging
import sys

from classfinder.utils.logging_setup import (
    JSONFormatter,
    get_logger,
    log_operation,
    setup_logging,
)


class TestLoggingSetup:
    """Tests for setup_logging and friends."""

    def test_get_logger_prefixes_names(self):
        assert get_logger("scanner").name == "classfinder.scanner"
        assert get_logger("classfinder.finder").name == "classfinder.finder"

    def test_console_handler_replaced_on_reconfigure(self):
        setup_logging(level="INFO")
        logger = setup_logging(level="DEBUG")
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1

    def test_json_file_output(self, tmp_path):
        logger = setup_logging(level="INFO", log_dir=tmp_path, console=False, file=True)
        log_operation(get_logger("finder"), "find", roots=2)
        for handler in logger.handlers:
            handler.flush()

        files = list(tmp_path.glob("classfinder_*.jsonl"))
        assert len(files) == 1
        record = json.loads(files[0].read_text().splitlines()[0])
        assert record["operation"] == "find"
        assert record["roots"] == 2
        assert record["logger"] == "classfinder.finder"

        for handler in logger.handlers:
            handler.close()

    def test_json_formatter_includes_exception(self):
        try:
            raise ValueError("broken")
        except ValueError:
            record = logging.LogRecord("classfinder", logging.ERROR, __file__, 1,
                                       "failed", None, sys.exc_info())
        data = json.loads(JSONFormatter().format(record))
        assert data["message"] == "failed"
        assert "ValueError: broken" in data["exception"]
