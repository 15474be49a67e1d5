"""Tests for multibuild configuration."""

from pathlib import Path

import pytest

from multibuild.config import (
    DEFAULT_COMMAND,
    BackendConfig,
    ProjectConfig,
    load_config,
)
from multibuild.errors import ConfigError
from multibuild.targets import TargetId


def test_backend_config_defaults():
    backend = BackendConfig.from_dict(None, env={})
    assert backend.name == "command"
    assert backend.editor == "unity"
    assert backend.command == DEFAULT_COMMAND
    assert backend.timeout == 3600


def test_backend_config_editor_env_override():
    backend = BackendConfig.from_dict(
        {"editor": "/Applications/Unity/Unity.app/Contents/MacOS/Unity"},
        env={"MULTIBUILD_EDITOR": "/opt/unity/Editor/Unity"},
    )
    assert backend.editor == "/opt/unity/Editor/Unity"


def test_project_config_from_dict():
    config = ProjectConfig.from_dict({
        "product_name": "Space Game",
        "scenes": ["Assets/Main.unity"],
        "supported_targets": ["android", "StandaloneLinux64"],
        "default_target": "StandaloneLinux64",
        "output_extensions": {"StandaloneOSX": ".app"},
        "settle_seconds": 1,
        "backend": {"name": "Dry-Run", "timeout": 60, "env": {"UNITY_CACHE": 1}},
    }, env={})
    assert config.product_name == "Space Game"
    assert config.scenes == ["Assets/Main.unity"]
    assert config.supported_targets == [TargetId.ANDROID, TargetId.STANDALONE_LINUX64]
    assert config.default_target == TargetId.STANDALONE_LINUX64
    assert config.output_extensions == {TargetId.STANDALONE_OSX: ".app"}
    assert config.settle_seconds == 1.0
    assert config.backend.name == "dry-run"
    assert config.backend.timeout == 60
    assert config.backend.env == {"UNITY_CACHE": "1"}
    assert config.builds_root == "Builds"


def test_supported_targets_as_string():
    config = ProjectConfig.from_dict({"product_name": "G", "supported_targets": "WebGL, iOS"}, env={})
    assert config.supported_targets == [TargetId.WEBGL, TargetId.IOS]


def test_product_name_required():
    with pytest.raises(ConfigError, match="product_name"):
        ProjectConfig.from_dict({"scenes": []})


def test_invalid_target_name():
    with pytest.raises(ConfigError, match="supported_targets"):
        ProjectConfig.from_dict({"product_name": "G", "supported_targets": ["Dreamcast"]})


def test_default_target_must_be_supported():
    with pytest.raises(ConfigError, match="not in supported_targets"):
        ProjectConfig.from_dict({
            "product_name": "G",
            "supported_targets": ["Android"],
            "default_target": "WebGL",
        }, env={})


def test_config_roundtrip_yaml(tmp_path: Path):
    config = ProjectConfig(
        product_name="Game",
        scenes=["Assets/Main.unity"],
        supported_targets=[TargetId.ANDROID],
        default_target=TargetId.ANDROID,
        base_path=tmp_path,
    )
    path = tmp_path / "multibuild.yaml"
    config.to_yaml(path)

    loaded = load_config(path)
    assert loaded.to_dict() == config.to_dict()
    assert loaded.base_path == tmp_path


def test_paths_resolve_against_config_dir(tmp_path: Path):
    config = ProjectConfig.from_dict({"product_name": "G", "project_path": "game"}, base_path=tmp_path)
    assert config.project_dir == tmp_path / "game"
    assert config.state_file == tmp_path / ".multibuild" / "state.yaml"


def test_load_config_missing(tmp_path: Path):
    with pytest.raises(ConfigError, match="not found"):
        load_config(tmp_path / "nope.yaml")


def test_load_config_not_a_mapping(tmp_path: Path):
    path = tmp_path / "multibuild.yaml"
    path.write_text("- just\n- a list\n")
    with pytest.raises(ConfigError, match="mapping"):
        load_config(path)
