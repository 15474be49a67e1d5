"""Tests for multibuild.logging_config."""

import logging
from pathlib import Path
from unittest.mock import patch

import pytest

from multibuild import logging_config
from multibuild.logging_config import log_sinks, setup_logging


@pytest.fixture
def fresh_logging(monkeypatch):
    """Allow setup_logging to run again and undo the handlers it adds."""
    logger = logging.getLogger("multibuild")
    handlers, level = list(logger.handlers), logger.level
    monkeypatch.setattr(logging_config, "_initialized", False)
    yield logger
    logger.handlers[:] = handlers
    logger.setLevel(level)


def test_log_sinks(tmp_path: Path) -> None:
    assert log_sinks(tmp_path) == [f"sqlite:{tmp_path / 'multibuild.db'}"]
    assert log_sinks(tmp_path, enable_sqlite=False) == []
    assert log_sinks(tmp_path, enable_csv=True)[-1] == f"csv:{tmp_path / 'multibuild.csv'}"


def test_setup_logging_configures_nfo(fresh_logging, tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    with patch.object(logging_config, "configure") as configure:
        logger = setup_logging(level="info", log_dir=str(log_dir))

    assert log_dir.is_dir()
    kwargs = configure.call_args.kwargs
    assert kwargs["name"] == "multibuild"
    assert kwargs["sinks"] == [f"sqlite:{log_dir / 'multibuild.db'}"]
    assert "multibuild.orchestrator" in kwargs["modules"]
    assert kwargs["propagate_stdlib"] is True
    assert logger.level == logging.DEBUG
    assert logger.handlers[-1].level == logging.INFO


def test_setup_logging_runs_once(fresh_logging, tmp_path: Path) -> None:
    with patch.object(logging_config, "configure") as configure:
        setup_logging(log_dir=str(tmp_path))
        setup_logging(log_dir=str(tmp_path))
    assert configure.call_count == 1


def test_log_dir_from_env(fresh_logging, tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setenv("MULTIBUILD_LOG_DIR", str(tmp_path / "env-logs"))
    monkeypatch.setenv("MULTIBUILD_LOG_LEVEL", "error")
    with patch.object(logging_config, "configure") as configure:
        logger = setup_logging(enable_sqlite=False)

    assert (tmp_path / "env-logs").is_dir()
    assert configure.call_args.kwargs["sinks"] is None
    assert configure.call_args.kwargs["modules"] is None
    assert logger.level == logging.ERROR
