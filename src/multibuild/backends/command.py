"""Backend that drives the engine's batch-mode build through a shell command."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable, Optional

from ..config import BackendConfig
from ..host import BuildHost
from ..targets import TargetId
from .base import BuildBackend, BuildError, BuildOutcome, BuildRequest

_logger = logging.getLogger("multibuild.backends.command")

# Targets whose player output is a generated IDE project that the engine can
# regenerate in place instead of replacing.
APPENDABLE_TARGETS = frozenset({TargetId.IOS, TargetId.TVOS})


class CommandBackend(BuildBackend):
    """Runs one configured command per build request.

    The command template is formatted with ``{editor}``, ``{project}``,
    ``{target}``, ``{group}``, ``{output}``, ``{scenes}``, ``{append}`` and
    ``{product}``. Exit code 0 means the build succeeded. Before the command
    runs the host is switched to the request's target, the same way the
    engine switches platforms before building a player.
    """

    def __init__(
        self,
        host: BuildHost,
        config: Optional[BackendConfig] = None,
        *,
        project_dir: Optional[Path] = None,
        on_log: Optional[Callable[[str], None]] = None,
    ):
        self.host = host
        self.config = config or BackendConfig()
        self.project_dir = Path(project_dir) if project_dir else Path.cwd()
        self.on_log = on_log

    @property
    def name(self) -> str:
        return "command"

    def _resolve_output(self, output_path: str) -> Path:
        p = Path(output_path)
        return p if p.is_absolute() else self.project_dir / p

    def can_append(self, target: TargetId, output_path: str) -> bool:
        return target in APPENDABLE_TARGETS and self._resolve_output(output_path).is_dir()

    def render_command(self, request: BuildRequest) -> str:
        values = {
            "editor": self.config.editor,
            "project": str(self.project_dir),
            "target": request.target.value,
            "group": request.group.value,
            "output": request.output_path,
            "scenes": ";".join(request.scenes),
            "append": "true" if request.allow_append else "false",
            "product": Path(request.output_path).stem,
        }
        try:
            return self.config.command.format(**values)
        except (KeyError, IndexError) as e:
            raise BuildError(f"Unknown placeholder in build command: {e}") from e

    def build(self, request: BuildRequest) -> BuildOutcome:
        t0 = time.monotonic()
        logs: list[str] = []

        def _log(msg: str) -> None:
            logs.append(msg)
            if self.on_log:
                self.on_log(msg)

        cmd = self.render_command(request)

        if self.host.active_target() != request.target:
            self.host.switch_active_target(request.group, request.target)

        output = self._resolve_output(request.output_path)
        output.parent.mkdir(parents=True, exist_ok=True)

        _log(f"[{request.target.value}] $ {cmd}")
        result = self._run_shell(
            cmd,
            cwd=self.project_dir,
            env=self.config.env,
            on_log=_log,
            timeout=self.config.timeout,
        )
        elapsed = time.monotonic() - t0

        if not result.ok:
            message = result.failure_message()
            _logger.debug("Build for %s failed: %s", request.target.value, message)
            return BuildOutcome(
                succeeded=False,
                elapsed_seconds=elapsed,
                message=message,
                logs=logs,
            )

        artifacts = [output] if output.exists() else []
        return BuildOutcome(
            succeeded=True,
            elapsed_seconds=elapsed,
            message=f"Built {request.output_path}",
            logs=logs,
            artifacts=artifacts,
        )
