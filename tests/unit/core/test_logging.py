"""Tests for erlboot.core.logging."""

from __future__ import annotations

import io
import logging

from erlboot.core.logging import ROOT_LOGGER_NAME, configure_logging, get_logger


class TestGetLogger:
    def test_module_names_are_kept(self) -> None:
        assert get_logger("erlboot.config.loader").name == "erlboot.config.loader"

    def test_foreign_names_are_nested(self) -> None:
        assert get_logger("tests.helper").name == "erlboot.tests.helper"


class TestConfigureLogging:
    def test_default_level_is_warning(self) -> None:
        logger = configure_logging(stream=io.StringIO())
        assert logger.level == logging.WARNING

    def test_debug_wins_over_quiet(self) -> None:
        logger = configure_logging(debug=True, quiet=True, stream=io.StringIO())
        assert logger.level == logging.DEBUG

    def test_verbose_and_quiet_levels(self) -> None:
        assert configure_logging(verbose=True, stream=io.StringIO()).level == logging.INFO
        assert configure_logging(quiet=True, stream=io.StringIO()).level == logging.ERROR

    def test_records_reach_stream_once(self) -> None:
        stream = io.StringIO()
        configure_logging(verbose=True, stream=io.StringIO())
        configure_logging(verbose=True, stream=stream)
        get_logger("erlboot.test").info("hello")
        assert stream.getvalue().count("hello") == 1
        assert len(logging.getLogger(ROOT_LOGGER_NAME).handlers) == 1
