"""Configuration models for multibuild projects."""

import os

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Optional

import yaml

from .errors import ConfigError
from .targets import DEFAULT_BUILDS_ROOT, TargetId

DEFAULT_CONFIG_NAME = "multibuild.yaml"
DEFAULT_STATE_PATH = ".multibuild/state.yaml"

DEFAULT_COMMAND = (
    '"{editor}" -batchmode -quit -nographics -projectPath "{project}" '
    "-buildTarget {target} -executeMethod MultiBuild.CommandLine.Build "
    '-multibuildOutput "{output}" -multibuildScenes "{scenes}" '
    "-multibuildAppend {append} -logFile -"
)


def _parse_target(value: Any, field_name: str) -> TargetId:
    try:
        return TargetId.parse(str(value))
    except ValueError as e:
        raise ConfigError(f"Invalid target in '{field_name}': {value!r}") from e


@dataclass
class BackendConfig:
    """How individual player builds are executed."""
    name: str = "command"
    editor: str = "unity"
    command: str = DEFAULT_COMMAND
    timeout: int = 3600
    env: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Optional[dict], env: Optional[dict[str, str]] = None) -> "BackendConfig":
        data = data or {}
        src = env if env is not None else os.environ

        editor = (src.get("MULTIBUILD_EDITOR") or "").strip() or data.get("editor", "unity")

        return cls(
            name=str(data.get("name", "command")).strip().lower(),
            editor=editor,
            command=data.get("command") or DEFAULT_COMMAND,
            timeout=int(data.get("timeout", 3600)),
            env={str(k): str(v) for k, v in (data.get("env") or {}).items()},
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "editor": self.editor,
            "command": self.command,
            "timeout": self.timeout,
            "env": dict(self.env),
        }


@dataclass
class ProjectConfig:
    """Configuration for one game project."""
    product_name: str
    project_path: str = "."
    scenes: list[str] = field(default_factory=list)
    builds_root: str = DEFAULT_BUILDS_ROOT
    supported_targets: Optional[list[TargetId]] = None
    default_target: Optional[TargetId] = None
    output_extensions: dict[TargetId, str] = field(default_factory=dict)
    state_path: str = DEFAULT_STATE_PATH
    settle_seconds: float = 0.0
    backend: BackendConfig = field(default_factory=BackendConfig)
    base_path: Path = field(default_factory=Path.cwd)

    @classmethod
    def from_yaml(cls, path: Path) -> "ProjectConfig":
        """Load project configuration from YAML file."""
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"Expected a mapping at the top of {path}")
        return cls.from_dict(data, base_path=path.parent)

    @classmethod
    def from_dict(
        cls,
        data: dict,
        base_path: Optional[Path] = None,
        env: Optional[dict[str, str]] = None,
    ) -> "ProjectConfig":
        """Create configuration from dictionary."""
        product_name = str(data.get("product_name") or "").strip()
        if not product_name:
            raise ConfigError("'product_name' is required")

        supported = data.get("supported_targets")
        if supported is not None:
            if isinstance(supported, str):
                supported = [s.strip() for s in supported.split(",") if s.strip()]
            supported = [_parse_target(t, "supported_targets") for t in supported]

        default_target = data.get("default_target")
        if default_target is not None:
            default_target = _parse_target(default_target, "default_target")
            if supported is not None and default_target not in supported:
                raise ConfigError(
                    f"default_target {default_target.value} is not in supported_targets"
                )

        extensions = {
            _parse_target(name, "output_extensions"): str(ext or "")
            for name, ext in (data.get("output_extensions") or {}).items()
        }

        return cls(
            product_name=product_name,
            project_path=str(data.get("project_path", ".")),
            scenes=[str(s) for s in data.get("scenes", [])],
            builds_root=str(data.get("builds_root", DEFAULT_BUILDS_ROOT)),
            supported_targets=supported,
            default_target=default_target,
            output_extensions=extensions,
            state_path=str(data.get("state_path", DEFAULT_STATE_PATH)),
            settle_seconds=float(data.get("settle_seconds", 0.0)),
            backend=BackendConfig.from_dict(data.get("backend"), env=env),
            base_path=base_path or Path.cwd(),
        )

    def resolve(self, relative: str) -> Path:
        """Resolve a config-relative path against the config file's directory."""
        p = Path(relative)
        return p if p.is_absolute() else self.base_path / p

    @property
    def project_dir(self) -> Path:
        return self.resolve(self.project_path)

    @property
    def state_file(self) -> Path:
        return self.resolve(self.state_path)

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        data: dict[str, Any] = {
            "product_name": self.product_name,
            "project_path": self.project_path,
            "scenes": list(self.scenes),
            "builds_root": self.builds_root,
        }
        if self.supported_targets is not None:
            data["supported_targets"] = [t.value for t in self.supported_targets]
        if self.default_target is not None:
            data["default_target"] = self.default_target.value
        if self.output_extensions:
            data["output_extensions"] = {t.value: ext for t, ext in self.output_extensions.items()}
        data["state_path"] = self.state_path
        data["settle_seconds"] = self.settle_seconds
        data["backend"] = self.backend.to_dict()
        return data

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


def load_config(path: str | Path) -> ProjectConfig:
    """Load project configuration from file."""
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Config file not found: {path}")
    return ProjectConfig.from_yaml(path)
