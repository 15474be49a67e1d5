"""Tests for the file-backed project host."""

from pathlib import Path

import pytest

from multibuild.backends import CommandBackend
from multibuild.config import BackendConfig, ProjectConfig
from multibuild.host import ProjectHost, default_supported_targets, native_standalone_targets
from multibuild.orchestrator import BuildOrchestrator
from multibuild.selection import SelectionStore
from multibuild.targets import TargetCatalog, TargetGroup, TargetId


def _host(tmp_path: Path, system: str = "Linux", **data) -> ProjectHost:
    data.setdefault("product_name", "Game")
    config = ProjectConfig.from_dict(data, base_path=tmp_path, env={})
    return ProjectHost(config, system=system)


def test_native_targets_per_os() -> None:
    assert native_standalone_targets("Linux") == [TargetId.STANDALONE_LINUX64]
    assert TargetId.STANDALONE_WINDOWS64 in native_standalone_targets("Windows")
    assert TargetId.IOS in native_standalone_targets("Darwin")


def test_default_supported_targets_linux() -> None:
    assert default_supported_targets("Linux") == [
        TargetId.STANDALONE_LINUX64,
        TargetId.WEBGL,
        TargetId.ANDROID,
    ]


def test_active_target_defaults(tmp_path: Path) -> None:
    assert _host(tmp_path).active_target() == TargetId.STANDALONE_LINUX64
    assert _host(tmp_path, default_target="WebGL").active_target() == TargetId.WEBGL
    assert _host(tmp_path, system="Darwin").active_target() == TargetId.STANDALONE_OSX
    assert _host(tmp_path, system="Windows").active_target() == TargetId.STANDALONE_WINDOWS64


def test_active_target_default_is_supported(tmp_path: Path) -> None:
    host = _host(tmp_path, supported_targets=["Android", "WebGL"])
    assert host.active_target() == TargetId.ANDROID
    assert host.is_target_supported(TargetGroup.ANDROID, host.active_target())

    mac = _host(tmp_path, system="Darwin", supported_targets=["iOS", "StandaloneOSX"])
    assert mac.active_target() == TargetId.STANDALONE_OSX


def test_switch_active_target_persists(tmp_path: Path) -> None:
    host = _host(tmp_path)
    host.switch_active_target(TargetGroup.ANDROID, TargetId.ANDROID)

    again = _host(tmp_path)
    assert again.active_target() == TargetId.ANDROID
    assert (tmp_path / ".multibuild" / "state.yaml").exists()


def test_switch_to_unsupported_target_raises(tmp_path: Path) -> None:
    host = _host(tmp_path)
    with pytest.raises(ValueError, match="unsupported"):
        host.switch_active_target(TargetGroup.PS5, TargetId.PS5)


def test_supported_targets_from_config(tmp_path: Path) -> None:
    host = _host(tmp_path, supported_targets=["iOS", "PS5"])
    assert TargetCatalog(host).available() == [TargetId.IOS, TargetId.PS5]


def test_scene_list_and_product(tmp_path: Path) -> None:
    host = _host(tmp_path, scenes=["Assets/A.unity"], product_name="Space")
    assert host.scene_list() == ["Assets/A.unity"]
    assert host.product_name() == "Space"


def test_selection_persistence(tmp_path: Path) -> None:
    host = _host(tmp_path)
    store = SelectionStore()
    store.reconcile(TargetCatalog(host).refresh())
    store.toggle(TargetId.ANDROID, True)
    host.save_selection(store)
    host.switch_active_target(TargetGroup.WEBGL, TargetId.WEBGL)

    loaded = _host(tmp_path).load_selection()
    assert loaded.selected() == [TargetId.ANDROID]
    assert loaded == store
    # active target and selection live side by side in the state file
    assert _host(tmp_path).active_target() == TargetId.WEBGL


def test_corrupt_state_file_is_ignored(tmp_path: Path) -> None:
    state = tmp_path / ".multibuild" / "state.yaml"
    state.parent.mkdir(parents=True)
    state.write_text("active_target: [unclosed\n")
    host = _host(tmp_path)
    assert host.active_target() == TargetId.STANDALONE_LINUX64
    assert len(host.load_selection()) == 0


def test_unknown_active_target_in_state_falls_back(tmp_path: Path) -> None:
    state = tmp_path / ".multibuild" / "state.yaml"
    state.parent.mkdir(parents=True)
    state.write_text("active_target: Dreamcast\n")
    assert _host(tmp_path).active_target() == TargetId.STANDALONE_LINUX64


def test_build_restores_default_active_target(tmp_path: Path) -> None:
    host = _host(tmp_path, supported_targets=["Android", "WebGL"])
    backend = CommandBackend(host, BackendConfig(command="true"), project_dir=tmp_path)
    orch = BuildOrchestrator(host, backend, catalog=TargetCatalog(host))

    run = orch.run([TargetId.WEBGL])

    assert run.succeeded
    assert run.restore_error is None
    assert host.active_target() == TargetId.ANDROID
