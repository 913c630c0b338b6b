"""Tests for CLI logging setup."""

import logging

from mail_sts.utils.logger import VerbosityLevel, setup_logger


class TestVerbosityLevel:
    """Test verbosity ordering and log levels."""

    def test_ordering(self):
        assert VerbosityLevel.DEBUG >= VerbosityLevel.VERBOSE
        assert VerbosityLevel.VERBOSE >= VerbosityLevel.VERBOSE
        assert not VerbosityLevel.QUIET >= VerbosityLevel.NORMAL

    def test_log_levels(self):
        assert VerbosityLevel.QUIET.log_level == logging.ERROR
        assert VerbosityLevel.NORMAL.log_level == logging.WARNING
        assert VerbosityLevel.VERBOSE.log_level == logging.INFO
        assert VerbosityLevel.DEBUG.log_level == logging.DEBUG


class TestSetupLogger:
    """Test handler configuration."""

    def test_single_handler_after_repeated_setup(self):
        """Test calling setup twice does not duplicate handlers."""
        setup_logger("mail_sts.test_setup", VerbosityLevel.VERBOSE)
        logger = setup_logger("mail_sts.test_setup", VerbosityLevel.DEBUG)
        assert len(logger.handlers) == 1
        assert logger.level == logging.DEBUG
        assert logger.propagate is False

    def test_logs_to_stderr(self, capsys):
        """Test records go to stderr and leave stdout untouched."""
        logger = setup_logger("mail_sts.test_stderr", VerbosityLevel.NORMAL)
        logger.warning("policy fetch failed")
        captured = capsys.readouterr()
        assert captured.out == ""
        assert "mail-sts: WARNING: policy fetch failed" in captured.err
