"""Release build matrix.

The set of target platforms is closed: a release must build on every member
of BUILD_MATRIX, and adding a platform is a code change rather than a config
change.
"""

from __future__ import annotations

from enum import Enum, auto

__all__ = ["BUILD_MATRIX", "Platform"]


class Platform(Enum):
    """Target platform of a release build."""

    LINUX = auto()
    WINDOWS = auto()
    MACOS = auto()

    def __str__(self) -> str:
        return self.name.lower()

    @classmethod
    def parse(cls, name: str) -> Platform | None:
        """Look up a platform by its lowercase name ("linux", "windows", "macos")."""
        for platform in cls:
            if str(platform) == name:
                return platform
        return None

    @property
    def default_target(self) -> str:
        """Default Rust target triple for this platform."""
        return {
            Platform.LINUX: "x86_64-unknown-linux-gnu",
            Platform.WINDOWS: "x86_64-pc-windows-gnu",
            Platform.MACOS: "x86_64-apple-darwin",
        }[self]


BUILD_MATRIX: tuple[Platform, ...] = (Platform.LINUX, Platform.WINDOWS, Platform.MACOS)
