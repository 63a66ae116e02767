"""Tests for logging setup."""

import logging

import structlog
from core.logging_config import execution_log_context, setup_logging


def test_execution_context_bound_and_cleared():
    with execution_log_context("exec_1", "wf"):
        bound = structlog.contextvars.get_contextvars()
        assert bound["execution_id"] == "exec_1"
        assert bound["workflow_id"] == "wf"
    assert "execution_id" not in structlog.contextvars.get_contextvars()


def test_setup_logging_level_override():
    setup_logging(level="debug", fmt="json")
    assert logging.getLogger().level == logging.DEBUG
    assert logging.getLogger("httpx").level == logging.WARNING
    setup_logging()
