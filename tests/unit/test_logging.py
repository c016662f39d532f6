"""Tests for the gitdir.logging module."""

from __future__ import annotations

import logging
import os
from unittest.mock import patch

import pytest
import structlog

from gitdir.logging import (
    bind_context,
    clear_context,
    configure_logging,
    get_logger,
)


class TestConfigureLogging:
    """Tests for configure_logging function."""

    def test_configure_logging_default_level(self) -> None:
        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("GITDIR_LOG_LEVEL", None)
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_configure_logging_custom_level(self) -> None:
        configure_logging(level=logging.DEBUG)

        assert logging.getLogger().level == logging.DEBUG

    def test_configure_logging_level_from_env(self) -> None:
        with patch.dict(os.environ, {"GITDIR_LOG_LEVEL": "error"}):
            configure_logging()

        assert logging.getLogger().level == logging.ERROR

    def test_unknown_level_falls_back_to_warning(self) -> None:
        with patch.dict(os.environ, {"GITDIR_LOG_LEVEL": "chatty"}):
            configure_logging()

        assert logging.getLogger().level == logging.WARNING

    def test_repeated_calls_keep_one_handler(self) -> None:
        configure_logging()
        configure_logging()

        assert len(logging.getLogger().handlers) == 1

    def test_json_output_via_env(self, capsys: pytest.CaptureFixture[str]) -> None:
        with patch.dict(os.environ, {"GITDIR_LOG_FORMAT": "json"}):
            configure_logging(level=logging.INFO)

        get_logger("gitdir.test").info("branch_pushed", branch="gh-pages")

        err = capsys.readouterr().err
        assert '"event": "branch_pushed"' in err
        assert '"branch": "gh-pages"' in err

    def test_force_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(force_json=True, level=logging.INFO)

        get_logger("gitdir.test").info("workspace_created")

        assert '"event": "workspace_created"' in capsys.readouterr().err

    def test_below_level_is_dropped(self, capsys: pytest.CaptureFixture[str]) -> None:
        configure_logging(force_json=True, level=logging.WARNING)

        get_logger("gitdir.test").debug("git_command")

        assert "git_command" not in capsys.readouterr().err


class TestContext:
    def test_bound_context_appears_in_events(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        configure_logging(force_json=True, level=logging.INFO)
        bind_context(repository="/srv/site")
        try:
            get_logger("gitdir.test").info("branch_unchanged")
        finally:
            clear_context()

        assert '"repository": "/srv/site"' in capsys.readouterr().err

    def test_clear_context(self) -> None:
        bind_context(branch="docs")
        clear_context()

        assert structlog.contextvars.get_contextvars() == {}


def test_get_logger_returns_bound_logger() -> None:
    log = get_logger(__name__)

    assert hasattr(log, "info")
    assert hasattr(log, "bind")
