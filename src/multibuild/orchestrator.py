"""Sequential multi-target build orchestration."""

from __future__ import annotations

import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from threading import Event, Lock
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from .backends.base import BuildBackend, BuildOutcome, BuildRequest
from .errors import (
    BuildCancelled,
    BuildFailed,
    HostStateRestoreFailed,
    InvalidSelection,
    MultiBuildError,
    RunInProgress,
    UnsupportedTarget,
)
from .events import Phase, ProgressEvent, ProgressSink
from .host import BuildHost
from .targets import DEFAULT_BUILDS_ROOT, TargetCatalog, TargetId, group_of, output_path_for

if TYPE_CHECKING:
    from .config import ProjectConfig

_logger = logging.getLogger("multibuild.orchestrator")


class RunStatus(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class OrchestrationRun:
    """State of one build-all invocation."""
    targets: tuple[TargetId, ...]
    original_target: TargetId
    index: int = 0
    status: RunStatus = RunStatus.RUNNING
    outcomes: list[BuildOutcome] = field(default_factory=list)
    requests: list[BuildRequest] = field(default_factory=list)
    error: Optional[MultiBuildError] = None
    restore_error: Optional[HostStateRestoreFailed] = None
    started_at: float = field(default_factory=time.monotonic)
    finished_at: Optional[float] = None

    @property
    def total(self) -> int:
        return len(self.targets)

    @property
    def succeeded(self) -> bool:
        return self.status == RunStatus.SUCCEEDED

    @property
    def failed_target(self) -> Optional[TargetId]:
        if isinstance(self.error, BuildFailed):
            return self.error.target
        return None

    @property
    def elapsed_seconds(self) -> float:
        end = self.finished_at if self.finished_at is not None else time.monotonic()
        return end - self.started_at

    def raise_for_status(self) -> None:
        """Raise the terminal error of a failed or cancelled run."""
        if self.error is not None:
            raise self.error


class BuildOrchestrator:
    """Builds a list of targets one after another.

    Stops at the first failed target and always switches the host back to
    the target that was active when the run started.
    """

    def __init__(
        self,
        host: BuildHost,
        backend: BuildBackend,
        *,
        catalog: Optional[TargetCatalog] = None,
        on_progress: Optional[ProgressSink] = None,
        builds_root: str = DEFAULT_BUILDS_ROOT,
        output_extensions: Optional[Mapping[TargetId, str]] = None,
        settle_seconds: float = 0.0,
    ):
        self.host = host
        self.backend = backend
        self.catalog = catalog
        self.on_progress = on_progress
        self.builds_root = builds_root
        self.output_extensions = dict(output_extensions or {})
        self.settle_seconds = settle_seconds

        self.last_run: Optional[OrchestrationRun] = None
        self._current: Optional[OrchestrationRun] = None
        self._lock = Lock()
        self._cancel = Event()
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_config(
        cls,
        config: "ProjectConfig",
        host: BuildHost,
        backend: BuildBackend,
        on_progress: Optional[ProgressSink] = None,
    ) -> "BuildOrchestrator":
        return cls(
            host,
            backend,
            catalog=TargetCatalog(host),
            on_progress=on_progress,
            builds_root=config.builds_root,
            output_extensions=config.output_extensions,
            settle_seconds=config.settle_seconds,
        )

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> RunStatus:
        return RunStatus.RUNNING if self._lock.locked() else RunStatus.IDLE

    @property
    def current_run(self) -> Optional[OrchestrationRun]:
        return self._current

    def cancel(self) -> None:
        """Ask the in-flight run to stop before its next target."""
        if self.state == RunStatus.RUNNING:
            _logger.warning("Cancellation requested, stopping after the current target")
            self._cancel.set()

    # ------------------------------------------------------------------
    # Entry points
    # ------------------------------------------------------------------

    def run(self, targets: Iterable[TargetId]) -> OrchestrationRun:
        """Build *targets* in order, blocking until the run ends."""
        ordered = self._validate(targets)
        self._acquire()
        return self._run_locked(ordered)

    def submit(self, targets: Iterable[TargetId]) -> "Future[OrchestrationRun]":
        """Start a run on a worker thread and return its future."""
        ordered = self._validate(targets)
        self._acquire()
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="multibuild")
        try:
            return self._executor.submit(self._run_locked, ordered)
        except RuntimeError:
            self._lock.release()
            raise

    def shutdown(self, wait: bool = True) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=wait)
            self._executor = None

    # ------------------------------------------------------------------
    # Request construction
    # ------------------------------------------------------------------

    def output_path(self, target: TargetId) -> str:
        return output_path_for(
            target,
            self.host.product_name(),
            builds_root=self.builds_root,
            extensions=self.output_extensions,
        )

    def make_request(self, target: TargetId) -> BuildRequest:
        """Derive the build request for *target* from the current product settings."""
        output = self.output_path(target)
        return BuildRequest(
            target=target,
            group=group_of(target),
            scenes=tuple(self.host.scene_list()),
            output_path=output,
            allow_append=self.backend.can_append(target, output),
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _validate(self, targets: Iterable[TargetId]) -> tuple[TargetId, ...]:
        ordered = tuple(targets)
        if not ordered:
            raise InvalidSelection("No targets selected to build")
        if self.catalog is not None:
            available = self.catalog.refresh()
            unsupported = [t for t in ordered if t not in available]
            if unsupported:
                raise UnsupportedTarget(unsupported)
        return ordered

    def _acquire(self) -> None:
        if not self._lock.acquire(blocking=False):
            raise RunInProgress("A build run is already in progress")
        self._cancel.clear()

    def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress is not None:
            self.on_progress(event)

    def _run_locked(self, targets: tuple[TargetId, ...]) -> OrchestrationRun:
        try:
            original = self.host.active_target()
        except Exception:
            self._lock.release()
            raise
        run = OrchestrationRun(targets=targets, original_target=original)
        self._current = run
        _logger.info("Building %d target(s): %s", run.total, ", ".join(t.value for t in targets))

        try:
            self._emit(ProgressEvent(Phase.START_ALL, total=run.total))

            for index, target in enumerate(targets):
                if self._cancel.is_set():
                    run.status = RunStatus.CANCELLED
                    run.error = BuildCancelled(f"Run cancelled before building {target.value}")
                    self._emit(ProgressEvent(Phase.ALL_CANCELLED, index=index))
                    _logger.warning("Run cancelled, %d target(s) not built", run.total - index)
                    break

                run.index = index
                self._emit(ProgressEvent(Phase.START_TARGET, index=index, target=target))

                outcome = self._build_one(run, target)
                run.outcomes.append(outcome)

                if not outcome.succeeded:
                    _logger.error("Build for %s failed", target.value)
                    run.status = RunStatus.FAILED
                    run.error = BuildFailed(target, outcome.message or "")
                    self._emit(ProgressEvent(
                        Phase.TARGET_FAILED,
                        index=index,
                        target=target,
                        elapsed_seconds=outcome.elapsed_seconds,
                        message=outcome.message,
                    ))
                    self._emit(ProgressEvent(Phase.ALL_FAILED))
                    break

                _logger.info("Build for %s completed in %d seconds", target.value, int(outcome.elapsed_seconds))
                self._emit(ProgressEvent(
                    Phase.TARGET_SUCCEEDED,
                    index=index,
                    elapsed_seconds=outcome.elapsed_seconds,
                ))

                if self.settle_seconds > 0 and index < run.total - 1:
                    time.sleep(self.settle_seconds)
            else:
                run.status = RunStatus.SUCCEEDED
                self._emit(ProgressEvent(Phase.ALL_SUCCEEDED))
        finally:
            self._restore(run)
            if run.status == RunStatus.RUNNING:
                run.status = RunStatus.FAILED
            run.finished_at = time.monotonic()
            self.last_run = run
            self._current = None
            self._cancel.clear()
            self._lock.release()

        return run

    def _build_one(self, run: OrchestrationRun, target: TargetId) -> BuildOutcome:
        try:
            request = self.make_request(target)
            run.requests.append(request)
            return self.backend.build(request)
        except Exception as e:
            _logger.exception("Backend raised while building %s", target.value)
            return BuildOutcome(succeeded=False, message=str(e) or type(e).__name__)

    def _restore(self, run: OrchestrationRun) -> None:
        original = run.original_target
        try:
            if self.host.active_target() != original:
                _logger.info("Restoring active build target to %s", original.value)
                self.host.switch_active_target(group_of(original), original)
        except Exception as e:
            run.restore_error = HostStateRestoreFailed(original, e)
            _logger.error("%s", run.restore_error)
