"""Unit tests for logging setup."""

import json
import logging

import pytest

from formguard.logs import JSONFormatter, setup_logging


def make_record(**extra):
    record = logging.LogRecord(
        name="formguard.predicates",
        level=logging.DEBUG,
        pathname=__file__,
        lineno=1,
        msg="Checked %d element(s)",
        args=(2,),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


@pytest.fixture
def package_logger():
    logger = logging.getLogger("formguard")
    handlers, level = list(logger.handlers), logger.level
    yield logger
    logger.handlers = handlers
    logger.setLevel(level)


class TestJSONFormatter:
    """Test JSON log lines."""

    def test_basic_fields(self):
        """Should render level, logger and formatted message."""
        line = json.loads(JSONFormatter().format(make_record()))

        assert line["level"] == "DEBUG"
        assert line["logger"] == "formguard.predicates"
        assert line["message"] == "Checked 2 element(s)"
        assert "timestamp" in line

    def test_extra_fields(self):
        """Should include known extra attributes when present."""
        line = json.loads(JSONFormatter().format(make_record(path="elements[0]", element_id="abc")))

        assert line["path"] == "elements[0]"
        assert line["element_id"] == "abc"
        assert "issue_code" not in line


class TestSetupLogging:
    """Test attaching handlers."""

    def test_json_handler(self, package_logger):
        """Should attach a JSON handler at the given level."""
        handler = setup_logging("debug")

        assert handler in package_logger.handlers
        assert isinstance(handler.formatter, JSONFormatter)
        assert package_logger.level == logging.DEBUG

    def test_text_handler(self, package_logger):
        """Should use a plain formatter for other formats."""
        handler = setup_logging("warning", fmt="text")

        assert not isinstance(handler.formatter, JSONFormatter)
        assert package_logger.level == logging.WARNING

    def test_unknown_level_falls_back_to_info(self, package_logger):
        """Should use INFO for unknown level names."""
        setup_logging("chatty")

        assert package_logger.level == logging.INFO

    def test_records_reach_handler(self, package_logger, caplog):
        """Should emit debug records from formguard modules."""
        setup_logging("debug")

        with caplog.at_level(logging.DEBUG, logger="formguard"):
            from formguard.runtime import validate_form_or_raise

            validate_form_or_raise({"name": "Intake"})

        assert any(record.name == "formguard.index" for record in caplog.records)
