"""Base build backend interface."""

from __future__ import annotations

import logging
import os
import signal
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from ..targets import TargetGroup, TargetId

_logger = logging.getLogger("multibuild.backends")


class BuildError(Exception):
    """Raised when a backend cannot even attempt a build (misconfiguration)."""


@dataclass(frozen=True)
class BuildRequest:
    """Everything a backend needs to produce one player build."""

    target: TargetId
    group: TargetGroup
    scenes: tuple[str, ...]
    output_path: str
    allow_append: bool = False


@dataclass
class BuildOutcome:
    """Result of one build request."""

    succeeded: bool
    elapsed_seconds: float = 0.0
    message: Optional[str] = None
    logs: list[str] = field(default_factory=list)
    artifacts: list[Path] = field(default_factory=list)


@dataclass
class ShellResult:
    """Exit status and merged output of one shell command."""

    returncode: int
    lines: list[str] = field(default_factory=list)
    elapsed_seconds: float = 0.0
    timed_out: bool = False

    @property
    def ok(self) -> bool:
        return self.returncode == 0 and not self.timed_out

    def tail(self, count: int = 15) -> str:
        return "\n".join(self.lines[-count:]) if self.lines else "(no output)"

    def failure_message(self) -> Optional[str]:
        if self.timed_out:
            return f"Timed out after {self.elapsed_seconds:.0f}s"
        if self.returncode != 0:
            return f"Build command failed with exit code {self.returncode}"
        return None


class BuildBackend(ABC):
    """Executes a single player build. Calls are blocking and non-preemptible."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier used by the registry."""

    @abstractmethod
    def build(self, request: BuildRequest) -> BuildOutcome:
        """Build one target and report the outcome."""

    def can_append(self, target: TargetId, output_path: str) -> bool:
        """Whether the existing output at *output_path* can be built over incrementally."""
        return False

    @staticmethod
    def _run_shell(
        cmd: str,
        *,
        cwd: Path,
        env: Optional[dict[str, str]] = None,
        on_log: Optional[Callable[[str], None]] = None,
        timeout: int = 3600,
    ) -> ShellResult:
        """Run *cmd* through the shell, passing each output line to *on_log*.

        stderr is merged into stdout. The process is killed once *timeout*
        seconds have passed, even while it is still producing output.
        """
        run_env = {**os.environ, **(env or {})}
        _logger.debug("$ %s (cwd=%s, timeout=%ds)", cmd, cwd, timeout)

        started = time.monotonic()
        proc = subprocess.Popen(
            cmd,
            shell=True,
            cwd=str(cwd),
            env=run_env,
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            bufsize=1,
            start_new_session=os.name == "posix",
        )
        killed = threading.Event()

        def _kill() -> None:
            killed.set()
            if os.name != "posix":
                proc.kill()
                return
            # the shell's children share its session and hold the pipe open
            try:
                os.killpg(proc.pid, signal.SIGKILL)
            except ProcessLookupError:
                pass

        watchdog = threading.Timer(timeout, _kill)
        watchdog.daemon = True
        watchdog.start()

        lines: list[str] = []
        try:
            for line in proc.stdout or ():
                line = line.rstrip("\n")
                lines.append(line)
                if on_log:
                    on_log(line)
            returncode = proc.wait()
        finally:
            watchdog.cancel()

        result = ShellResult(
            returncode=returncode,
            lines=lines,
            elapsed_seconds=time.monotonic() - started,
            timed_out=killed.is_set(),
        )
        if result.timed_out:
            _logger.error("Killed after %ds (pid=%d): %s\n%s", timeout, proc.pid, cmd, result.tail())
        elif returncode != 0:
            _logger.warning("Exit %d after %.1fs: %s\n%s", returncode, result.elapsed_seconds, cmd, result.tail())
        else:
            _logger.info("Exit 0 after %.1fs: %s", result.elapsed_seconds, cmd)
        return result
