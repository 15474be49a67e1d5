"""Backend registry – resolve the right BuildBackend for a project."""

from __future__ import annotations

from typing import Callable, Optional

from ..config import ProjectConfig
from ..host import BuildHost
from .base import BuildBackend, BuildError
from .command import CommandBackend
from .dry_run import DryRunBackend

BACKEND_NAMES = ("command", "dry-run")


def get_backend(
    name: str,
    host: BuildHost,
    config: ProjectConfig,
    *,
    on_log: Optional[Callable[[str], None]] = None,
) -> BuildBackend:
    """Return a backend instance for *name*."""
    key = (name or "").strip().lower()
    if key == "command":
        return CommandBackend(host, config.backend, project_dir=config.project_dir, on_log=on_log)
    if key == "dry-run":
        return DryRunBackend()
    raise BuildError(f"No backend registered with name: {name}")


def get_backend_for_config(
    host: BuildHost,
    config: ProjectConfig,
    *,
    dry_run: bool = False,
    on_log: Optional[Callable[[str], None]] = None,
) -> BuildBackend:
    """Return the backend configured for the project (dry-run when requested)."""
    if dry_run:
        return DryRunBackend()
    return get_backend(config.backend.name, host, config, on_log=on_log)
