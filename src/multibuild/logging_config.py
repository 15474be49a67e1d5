"""
Centralized logging configuration for multibuild.

Usage at the entry point (cli.py):

    from multibuild.logging_config import setup_logging
    setup_logging()

Every module logs through ``logging.getLogger("multibuild.<module>")``.
This configures, once per process:
- a rich console handler on stderr for the ``multibuild`` logger
- nfo sinks (SQLite by default) in the log directory, bridged to the
  ``multibuild.*`` stdlib loggers so every build run is kept and queryable
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from nfo import configure
from rich.console import Console
from rich.logging import RichHandler

from . import __version__

_initialized = False

# Stdlib logger names bridged to the nfo sinks.
_BRIDGE_MODULES = [
    "multibuild.orchestrator",
    "multibuild.progress",
    "multibuild.backends",
    "multibuild.host",
    "multibuild.selection",
    "multibuild.config",
]


def default_log_dir() -> Path:
    return Path(os.environ.get(
        "MULTIBUILD_LOG_DIR", str(Path(tempfile.gettempdir()) / "multibuild-logs")
    ))


def log_sinks(log_dir: Path, *, enable_sqlite: bool = True, enable_csv: bool = False) -> list[str]:
    sinks: list[str] = []
    if enable_sqlite:
        sinks.append(f"sqlite:{log_dir / 'multibuild.db'}")
    if enable_csv:
        sinks.append(f"csv:{log_dir / 'multibuild.csv'}")
    return sinks


def setup_logging(
    *,
    level: Optional[str] = None,
    log_dir: Optional[str] = None,
    console: Optional[Console] = None,
    enable_sqlite: bool = True,
    enable_csv: bool = False,
) -> logging.Logger:
    """
    Initialize logging for multibuild.

    Args:
        level: Console log level. Defaults to MULTIBUILD_LOG_LEVEL or WARNING.
        log_dir: Directory for the nfo sinks. Defaults to MULTIBUILD_LOG_DIR
            or <tmp>/multibuild-logs.
        console: Console for the rich handler (stderr by default).
        enable_sqlite: Write logs to a SQLite database.
        enable_csv: Write logs to a CSV file.
    """
    global _initialized

    logger = logging.getLogger("multibuild")
    if _initialized:
        return logger

    level_name = (level or os.environ.get("MULTIBUILD_LOG_LEVEL") or "WARNING").upper()
    console_level = getattr(logging, level_name, logging.WARNING)

    log_path = Path(log_dir) if log_dir else default_log_dir()
    log_path.mkdir(parents=True, exist_ok=True)
    sinks = log_sinks(log_path, enable_sqlite=enable_sqlite, enable_csv=enable_csv)

    configure(
        name="multibuild",
        level="DEBUG",
        sinks=sinks if sinks else None,
        modules=_BRIDGE_MODULES if sinks else None,
        propagate_stdlib=True,
        environment=os.environ.get("MULTIBUILD_ENV"),
        version=__version__,
    )

    handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(console_level)
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if sinks else console_level)

    _initialized = True
    return logger
