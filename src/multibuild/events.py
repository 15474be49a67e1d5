"""
Progress events emitted by the build orchestrator.

A run produces a strictly ordered stream:

    start-all(total)
      start-target(index, target)
      target-succeeded(index, elapsed) | target-failed(index, target, message)
      ...
    all-succeeded | all-failed | all-cancelled

Any callable accepting a :class:`ProgressEvent` can act as a sink.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Optional

from .targets import TargetId


class Phase(str, Enum):
    START_ALL = "start-all"
    START_TARGET = "start-target"
    TARGET_SUCCEEDED = "target-succeeded"
    TARGET_FAILED = "target-failed"
    ALL_SUCCEEDED = "all-succeeded"
    ALL_FAILED = "all-failed"
    ALL_CANCELLED = "all-cancelled"


@dataclass(frozen=True)
class ProgressEvent:
    """
    One step of a run.

    Attributes:
        phase: What happened
        index: Position of the target in the run (per-target phases only)
        target: Target being built (start-target / target-failed)
        total: Number of targets in the run (start-all only)
        elapsed_seconds: Backend build time (target-succeeded / target-failed)
        message: Backend diagnostic, if any
    """
    phase: Phase
    index: Optional[int] = None
    target: Optional[TargetId] = None
    total: Optional[int] = None
    elapsed_seconds: Optional[float] = None
    message: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize, omitting unset fields."""
        d: Dict[str, Any] = {"phase": self.phase.value}
        if self.index is not None:
            d["index"] = self.index
        if self.target is not None:
            d["target"] = self.target.value
        if self.total is not None:
            d["total"] = self.total
        if self.elapsed_seconds is not None:
            d["elapsed_seconds"] = self.elapsed_seconds
        if self.message:
            d["message"] = self.message
        return d


ProgressSink = Callable[[ProgressEvent], None]


class EventRecorder:
    """Sink that keeps every event in memory."""

    def __init__(self) -> None:
        self._events: List[ProgressEvent] = []
        self._lock = Lock()

    def __call__(self, event: ProgressEvent) -> None:
        with self._lock:
            self._events.append(event)

    @property
    def events(self) -> List[ProgressEvent]:
        with self._lock:
            return list(self._events)

    @property
    def phases(self) -> List[Phase]:
        return [e.phase for e in self.events]

    def clear(self) -> None:
        with self._lock:
            self._events.clear()


class LoggingSink:
    """Sink that writes each event to a stdlib logger."""

    def __init__(self, logger: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.logger = logger or logging.getLogger("multibuild.progress")
        self.level = level

    def __call__(self, event: ProgressEvent) -> None:
        level = logging.ERROR if event.phase in (Phase.TARGET_FAILED, Phase.ALL_FAILED) else self.level
        self.logger.log(level, "[%s] %s", event.phase.value, event.to_dict())


def fan_out(*sinks: Optional[ProgressSink]) -> ProgressSink:
    """Combine several sinks into one; ``None`` entries are ignored."""
    active = [s for s in sinks if s is not None]

    def _emit(event: ProgressEvent) -> None:
        for sink in active:
            sink(event)

    return _emit
