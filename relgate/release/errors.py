"""Error types for the release pipeline.

Every error is terminal for the run that produced it; nothing is retried.
"""

from __future__ import annotations

from dataclasses import dataclass

from relgate.platform.matrix import Platform


@dataclass(frozen=True, slots=True)
class MalformedTag:
    tag_ref: str
    expected: str = "refs/tags/v<version>"


@dataclass(frozen=True, slots=True)
class NotOnReleaseBranch:
    """The tagged commit is not in the release branch history.

    `commit` is None when the tag could not be resolved at all; `detail`
    carries the underlying collaborator failure when there is one.
    """

    tag_ref: str
    branch: str
    commit: str | None = None
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class VersionMismatch:
    """The manifest does not declare exactly the tagged version.

    `manifest_version` is None when no version could be read from the manifest.
    """

    version: str
    manifest_path: str
    manifest_version: str | None = None
    detail: str | None = None


@dataclass(frozen=True, slots=True)
class BuildFailure:
    platform: Platform
    detail: str | None = None
    cancelled: bool = False


@dataclass(frozen=True, slots=True)
class PublishFailure:
    """The publish step failed.

    When `attempted` is True the registry may have accepted the package even
    though the call failed; registry state must be checked by hand before the
    release is run again.
    """

    name: str
    version: str
    attempted: bool
    detail: str | None = None


ReleaseError = MalformedTag | NotOnReleaseBranch | VersionMismatch | BuildFailure | PublishFailure
