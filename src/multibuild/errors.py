"""Error types raised by multibuild."""

from __future__ import annotations

from typing import Any, Optional


class MultiBuildError(Exception):
    """Base class for all multibuild errors."""


class ConfigError(MultiBuildError):
    """Raised when the project configuration cannot be loaded."""


class InvalidSelection(MultiBuildError):
    """Raised when a build is requested with no targets."""


class UnsupportedTarget(MultiBuildError):
    """Raised when a requested target is not buildable on this host."""

    def __init__(self, targets: list[Any]):
        self.targets = list(targets)
        names = ", ".join(str(getattr(t, "value", t)) for t in self.targets)
        super().__init__(f"Unsupported target(s) on this host: {names}")


class InvalidTarget(MultiBuildError):
    """Raised when toggling a target the selection does not know about."""


class RunInProgress(MultiBuildError):
    """Raised when a run is triggered while another one is still running."""


class BuildFailed(MultiBuildError):
    """Terminal error of a run whose backend reported a failed build."""

    def __init__(self, target: Any, message: str = ""):
        self.target = target
        self.message = message
        name = getattr(target, "value", target)
        text = f"Build for {name} failed"
        if message:
            text = f"{text}: {message}"
        super().__init__(text)


class BuildCancelled(MultiBuildError):
    """Terminal error of a run that was cancelled between targets."""


class HostStateRestoreFailed(MultiBuildError):
    """Switching the host back to its original active target failed."""

    def __init__(self, target: Any, cause: Optional[BaseException] = None):
        self.target = target
        self.cause = cause
        name = getattr(target, "value", target)
        super().__init__(f"Could not restore active target {name}: {cause}")
