from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Optional, Union

import pytest

_PROJECT_ROOT = Path(__file__).resolve().parents[1]
_SRC = (_PROJECT_ROOT / "src").resolve()
if str(_SRC) not in sys.path:
    sys.path.insert(0, str(_SRC))

from multibuild.backends.base import BuildBackend, BuildOutcome, BuildRequest  # noqa: E402
from multibuild.events import EventRecorder  # noqa: E402
from multibuild.host import BuildHost  # noqa: E402
from multibuild.targets import TargetGroup, TargetId  # noqa: E402


class FakeHost(BuildHost):
    """In-memory host with a switchable active target."""

    def __init__(
        self,
        supported: Optional[set[TargetId]] = None,
        active: TargetId = TargetId.STANDALONE_LINUX64,
        scenes: Optional[list[str]] = None,
        product: str = "Game",
    ):
        self.supported = set(supported if supported is not None else {
            TargetId.STANDALONE_LINUX64,
            TargetId.STANDALONE_WINDOWS64,
            TargetId.ANDROID,
            TargetId.WEBGL,
            TargetId.IOS,
        })
        self.active = active
        self.scenes = list(scenes or ["Assets/Scenes/Main.unity", "Assets/Scenes/Level1.unity"])
        self.product = product
        self.switches: list[tuple[TargetGroup, TargetId]] = []
        self.fail_switch_to: Optional[TargetId] = None

    def active_target(self) -> TargetId:
        return self.active

    def switch_active_target(self, group: TargetGroup, target: TargetId) -> None:
        if target == self.fail_switch_to:
            raise RuntimeError(f"switch to {target.value} refused")
        self.switches.append((group, target))
        self.active = target

    def is_target_supported(self, group: TargetGroup, target: TargetId) -> bool:
        return group != TargetGroup.UNKNOWN and target in self.supported

    def scene_list(self) -> list[str]:
        return list(self.scenes)

    def product_name(self) -> str:
        return self.product


Result = Union[bool, Exception, Callable[[BuildRequest], BuildOutcome]]


class StubBackend(BuildBackend):
    """Backend that records requests and answers from a per-target table.

    Like the engine, it switches the host to the requested target before
    "building".
    """

    def __init__(self, host: Optional[FakeHost] = None):
        self.host = host
        self.results: dict[TargetId, Result] = {}
        self.appendable: set[str] = set()
        self.requests: list[BuildRequest] = []
        self.append_queries: list[tuple[TargetId, str]] = []
        self.on_build: Optional[Callable[[BuildRequest], None]] = None

    @property
    def name(self) -> str:
        return "stub"

    def can_append(self, target: TargetId, output_path: str) -> bool:
        self.append_queries.append((target, output_path))
        return output_path in self.appendable

    @property
    def built(self) -> list[TargetId]:
        return [r.target for r in self.requests]

    def build(self, request: BuildRequest) -> BuildOutcome:
        self.requests.append(request)
        if self.host is not None:
            self.host.switch_active_target(request.group, request.target)
        if self.on_build is not None:
            self.on_build(request)

        result = self.results.get(request.target, True)
        if isinstance(result, Exception):
            raise result
        if callable(result):
            return result(request)
        if result:
            return BuildOutcome(succeeded=True, elapsed_seconds=12.0)
        return BuildOutcome(succeeded=False, elapsed_seconds=3.0, message=f"{request.target.value} exploded")


@pytest.fixture
def host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def backend(host: FakeHost) -> StubBackend:
    return StubBackend(host)


@pytest.fixture
def recorder() -> EventRecorder:
    return EventRecorder()
