"""Multibuild – build a game project for several platforms, one after another."""

__version__ = "0.1.0"

from .backends import (
    BuildBackend,
    BuildError,
    BuildOutcome,
    BuildRequest,
    CommandBackend,
    DryRunBackend,
    get_backend,
    get_backend_for_config,
)
from .config import BackendConfig, ProjectConfig, load_config
from .errors import (
    BuildCancelled,
    BuildFailed,
    ConfigError,
    HostStateRestoreFailed,
    InvalidSelection,
    InvalidTarget,
    MultiBuildError,
    RunInProgress,
    UnsupportedTarget,
)
from .events import EventRecorder, LoggingSink, Phase, ProgressEvent, ProgressSink, fan_out
from .host import BuildHost, ProjectHost
from .orchestrator import BuildOrchestrator, OrchestrationRun, RunStatus
from .selection import SelectionStore
from .targets import (
    OUTPUT_EXTENSIONS,
    TargetCatalog,
    TargetGroup,
    TargetId,
    group_of,
    output_path_for,
)

__all__ = [
    "__version__",
    # Backends
    "BuildBackend",
    "BuildError",
    "BuildOutcome",
    "BuildRequest",
    "CommandBackend",
    "DryRunBackend",
    "get_backend",
    "get_backend_for_config",
    # Config
    "BackendConfig",
    "ProjectConfig",
    "load_config",
    # Errors
    "BuildCancelled",
    "BuildFailed",
    "ConfigError",
    "HostStateRestoreFailed",
    "InvalidSelection",
    "InvalidTarget",
    "MultiBuildError",
    "RunInProgress",
    "UnsupportedTarget",
    # Events
    "EventRecorder",
    "LoggingSink",
    "Phase",
    "ProgressEvent",
    "ProgressSink",
    "fan_out",
    # Host
    "BuildHost",
    "ProjectHost",
    # Orchestration
    "BuildOrchestrator",
    "OrchestrationRun",
    "RunStatus",
    "SelectionStore",
    # Targets
    "OUTPUT_EXTENSIONS",
    "TargetCatalog",
    "TargetGroup",
    "TargetId",
    "group_of",
    "output_path_for",
]
