"""Build backends that execute a single player build."""

from .base import BuildBackend, BuildError, BuildOutcome, BuildRequest, ShellResult
from .command import CommandBackend
from .dry_run import DryRunBackend
from .registry import BACKEND_NAMES, get_backend, get_backend_for_config

__all__ = [
    "BuildBackend",
    "BuildError",
    "BuildOutcome",
    "BuildRequest",
    "ShellResult",
    "CommandBackend",
    "DryRunBackend",
    "BACKEND_NAMES",
    "get_backend",
    "get_backend_for_config",
]
