"""Build target definitions and the target catalog.

Targets are the engine's player-build platforms:
- ``TargetId``: one buildable platform (``StandaloneWindows64``, ``Android``, ...)
- ``TargetGroup``: the family a target belongs to, used for support queries
  and for switching the host's active target
"""

from __future__ import annotations

import os
from enum import Enum
from typing import TYPE_CHECKING, Iterable, Mapping, Optional

if TYPE_CHECKING:
    from .host import BuildHost


class TargetId(str, Enum):
    """Buildable platform, declared in the engine's enumeration order."""

    STANDALONE_OSX = "StandaloneOSX"
    STANDALONE_WINDOWS = "StandaloneWindows"
    IOS = "iOS"
    ANDROID = "Android"
    STANDALONE_WINDOWS64 = "StandaloneWindows64"
    WEBGL = "WebGL"
    WSA_PLAYER = "WSAPlayer"
    STANDALONE_LINUX64 = "StandaloneLinux64"
    PS4 = "PS4"
    XBOX_ONE = "XboxOne"
    TVOS = "tvOS"
    SWITCH = "Switch"
    LUMIN = "Lumin"
    GAME_CORE_XBOX_SERIES = "GameCoreXboxSeries"
    PS5 = "PS5"
    EMBEDDED_LINUX = "EmbeddedLinux"

    @classmethod
    def parse(cls, name: str) -> "TargetId":
        """Look up a target by value, case-insensitively."""
        key = (name or "").strip().lower()
        for target in cls:
            if target.value.lower() == key:
                return target
        raise ValueError(f"Unknown build target: {name!r}")


class TargetGroup(str, Enum):
    """Platform family of a target."""

    UNKNOWN = "Unknown"
    STANDALONE = "Standalone"
    IOS = "iOS"
    ANDROID = "Android"
    WEBGL = "WebGL"
    WSA = "WSA"
    PS4 = "PS4"
    PS5 = "PS5"
    XBOX_ONE = "XboxOne"
    GAME_CORE_XBOX_SERIES = "GameCoreXboxSeries"
    TVOS = "tvOS"
    SWITCH = "Switch"
    LUMIN = "Lumin"
    EMBEDDED_LINUX = "EmbeddedLinux"


# ---------------------------------------------------------------------------
# Policy tables
# ---------------------------------------------------------------------------

TARGET_GROUPS: dict[TargetId, TargetGroup] = {
    TargetId.STANDALONE_WINDOWS: TargetGroup.STANDALONE,
    TargetId.STANDALONE_WINDOWS64: TargetGroup.STANDALONE,
    TargetId.STANDALONE_OSX: TargetGroup.STANDALONE,
    TargetId.STANDALONE_LINUX64: TargetGroup.STANDALONE,
    TargetId.EMBEDDED_LINUX: TargetGroup.EMBEDDED_LINUX,
    TargetId.ANDROID: TargetGroup.ANDROID,
    TargetId.IOS: TargetGroup.IOS,
    TargetId.TVOS: TargetGroup.TVOS,
    TargetId.WEBGL: TargetGroup.WEBGL,
    TargetId.XBOX_ONE: TargetGroup.XBOX_ONE,
    TargetId.GAME_CORE_XBOX_SERIES: TargetGroup.GAME_CORE_XBOX_SERIES,
    TargetId.PS4: TargetGroup.PS4,
    TargetId.PS5: TargetGroup.PS5,
    TargetId.SWITCH: TargetGroup.SWITCH,
    TargetId.LUMIN: TargetGroup.LUMIN,
    TargetId.WSA_PLAYER: TargetGroup.WSA,
}

# Executable extension of the player artifact. Targets not listed produce
# a bare directory/bundle named after the product.
OUTPUT_EXTENSIONS: dict[TargetId, str] = {
    TargetId.ANDROID: ".apk",
    TargetId.STANDALONE_WINDOWS64: ".exe",
    TargetId.STANDALONE_LINUX64: ".x86_64",
}

DEFAULT_BUILDS_ROOT = "Builds"


def group_of(target: TargetId) -> TargetGroup:
    """Return the platform group of *target* (``Unknown`` when unmapped)."""
    return TARGET_GROUPS.get(target, TargetGroup.UNKNOWN)


def enumeration_order(targets: Iterable[TargetId]) -> list[TargetId]:
    """Sort targets into the catalog's enumeration order."""
    wanted = set(targets)
    return [t for t in TargetId if t in wanted]


def output_extension(
    target: TargetId,
    overrides: Optional[Mapping[TargetId, str]] = None,
) -> str:
    if overrides and target in overrides:
        return overrides[target]
    return OUTPUT_EXTENSIONS.get(target, "")


def output_path_for(
    target: TargetId,
    product_name: str,
    *,
    builds_root: str = DEFAULT_BUILDS_ROOT,
    extensions: Optional[Mapping[TargetId, str]] = None,
) -> str:
    """Return ``<builds_root>/<TargetId>/<product_name><ext>``."""
    filename = product_name + output_extension(target, extensions)
    return os.path.join(builds_root, target.value, filename)


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

class TargetCatalog:
    """Enumerates the targets the host can currently build."""

    def __init__(self, host: "BuildHost"):
        self.host = host

    def refresh(self) -> frozenset[TargetId]:
        """Query the host for every supported target."""
        return frozenset(
            t for t in TargetId if self.host.is_target_supported(group_of(t), t)
        )

    def available(self) -> list[TargetId]:
        """Supported targets in enumeration order."""
        return enumeration_order(self.refresh())

    @staticmethod
    def group_of(target: TargetId) -> TargetGroup:
        return group_of(target)
