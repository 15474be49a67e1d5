"""Host environment the builds run against.

The host owns the process-wide "active build target" register, answers
which targets are buildable, and supplies the global product settings
(scene list, product name) that every build request is derived from.
"""

from __future__ import annotations

import logging
import platform
from abc import ABC, abstractmethod
from pathlib import Path
from threading import Lock
from typing import Any, Optional

import yaml

from .config import ProjectConfig
from .selection import SelectionStore
from .targets import TargetGroup, TargetId, group_of

_logger = logging.getLogger("multibuild.host")


class BuildHost(ABC):
    """Abstract host: active target register plus product settings."""

    @abstractmethod
    def active_target(self) -> TargetId:
        """Return the target the host is currently configured for."""

    @abstractmethod
    def switch_active_target(self, group: TargetGroup, target: TargetId) -> None:
        """Reconfigure the host for *target*."""

    @abstractmethod
    def is_target_supported(self, group: TargetGroup, target: TargetId) -> bool:
        """Whether *target* can be built on this machine/toolchain."""

    @abstractmethod
    def scene_list(self) -> list[str]:
        """Scenes included in player builds, in build order."""

    @abstractmethod
    def product_name(self) -> str:
        """Product name used for artifact file names."""


def native_standalone_targets(system: Optional[str] = None) -> list[TargetId]:
    """Standalone targets the current OS can build without extra modules."""
    system = (system or platform.system()).lower()
    if system == "windows":
        return [TargetId.STANDALONE_WINDOWS, TargetId.STANDALONE_WINDOWS64]
    if system == "darwin":
        return [TargetId.STANDALONE_OSX, TargetId.IOS, TargetId.TVOS]
    return [TargetId.STANDALONE_LINUX64]


def default_supported_targets(system: Optional[str] = None) -> list[TargetId]:
    return native_standalone_targets(system) + [TargetId.WEBGL, TargetId.ANDROID]


class ProjectHost(BuildHost):
    """Host backed by a :class:`ProjectConfig` and a YAML state file.

    The state file keeps the active target and the saved selection so both
    survive between CLI invocations.
    """

    def __init__(self, config: ProjectConfig, system: Optional[str] = None):
        self.config = config
        self.system = system
        self._lock = Lock()

    # ------------------------------------------------------------------
    # State file
    # ------------------------------------------------------------------

    def _load_state(self) -> dict[str, Any]:
        path = self.config.state_file
        if not path.exists():
            return {}
        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            _logger.warning("Ignoring unreadable state file %s: %s", path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save_state(self, state: dict[str, Any]) -> None:
        path: Path = self.config.state_file
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            yaml.safe_dump(state, f, default_flow_style=False, sort_keys=False)

    def _update_state(self, **values: Any) -> None:
        with self._lock:
            state = self._load_state()
            state.update(values)
            self._save_state(state)

    def load_selection(self) -> SelectionStore:
        with self._lock:
            return SelectionStore.from_dict(self._load_state().get("selection"))

    def save_selection(self, store: SelectionStore) -> None:
        self._update_state(selection=store.to_dict())

    # ------------------------------------------------------------------
    # BuildHost
    # ------------------------------------------------------------------

    def _fallback_target(self) -> TargetId:
        """Active target before any switch: the configured default, else the
        desktop player this OS builds, provided the host supports it."""
        if self.config.default_target is not None:
            return self.config.default_target
        desktop = [
            t for t in native_standalone_targets(self.system)
            if group_of(t) == TargetGroup.STANDALONE
        ]
        supported = self.supported_targets()
        for target in reversed(desktop):
            if target in supported:
                return target
        return supported[0] if supported else desktop[-1]

    def active_target(self) -> TargetId:
        with self._lock:
            raw = self._load_state().get("active_target")
        if raw:
            try:
                return TargetId.parse(str(raw))
            except ValueError:
                _logger.warning("Unknown active target %r in state file, using default", raw)
        return self._fallback_target()

    def switch_active_target(self, group: TargetGroup, target: TargetId) -> None:
        if not self.is_target_supported(group, target):
            raise ValueError(f"Cannot switch to unsupported target {target.value}")
        _logger.info("Switching active build target to %s (%s)", target.value, group.value)
        self._update_state(active_target=target.value)

    def supported_targets(self) -> list[TargetId]:
        if self.config.supported_targets is not None:
            return list(self.config.supported_targets)
        return default_supported_targets(self.system)

    def is_target_supported(self, group: TargetGroup, target: TargetId) -> bool:
        if group == TargetGroup.UNKNOWN:
            return False
        return target in self.supported_targets()

    def scene_list(self) -> list[str]:
        return list(self.config.scenes)

    def product_name(self) -> str:
        return self.config.product_name
