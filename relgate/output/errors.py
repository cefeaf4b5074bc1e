"""Error presentation utilities.

Centralized release error formatting and exit code mapping, so every aborted
stage is reported the same way by every command.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from relgate.core.errors import ErrorCode
from relgate.output.console import Style
from relgate.release.errors import (
    BuildFailure,
    MalformedTag,
    NotOnReleaseBranch,
    PublishFailure,
    ReleaseError,
    VersionMismatch,
)

if TYPE_CHECKING:
    from relgate.output.console import ConsoleProtocol

__all__ = ["print_release_error", "release_error_exit_code"]


def print_release_error(error: ReleaseError, console: ConsoleProtocol) -> None:
    """Print a release error to the console with appropriate formatting."""
    match error:
        case MalformedTag(tag_ref=tag_ref, expected=expected):
            console.error(f"malformed tag reference: {tag_ref!r}")
            console.print(f"expected: {expected}", Style.DIM)
        case NotOnReleaseBranch(branch=branch, commit=commit, detail=detail):
            if commit is None:
                console.error(f"cannot release: tag is not on the {branch} branch")
            else:
                console.error(f"cannot release commit {commit}: not on the {branch} branch")
            if detail:
                console.detail(detail)
        case VersionMismatch(
            version=version,
            manifest_path=path,
            manifest_version=manifest_version,
            detail=detail,
        ):
            if manifest_version is None:
                console.error(f"version mismatch: tag is {version}, {path} declares no version")
            else:
                console.error(
                    f"version mismatch: tag is {version}, {path} declares {manifest_version}"
                )
            if detail:
                console.detail(detail)
        case BuildFailure(platform=platform, detail=detail):
            console.error(f"build failed on {platform}")
            if detail:
                console.detail(detail)
        case PublishFailure(name=name, version=version, attempted=attempted, detail=detail):
            console.error(f"publish failed for {name} {version}")
            if detail:
                console.detail(detail)
            if attempted:
                console.warning(
                    "the registry may have accepted the package; "
                    "verify registry state before re-running this release"
                )


def release_error_exit_code(error: ReleaseError) -> int:
    """Get the exit code for the stage that produced a release error."""
    match error:
        case MalformedTag():
            return int(ErrorCode.MALFORMED_TAG)
        case NotOnReleaseBranch():
            return int(ErrorCode.NOT_ON_RELEASE_BRANCH)
        case VersionMismatch():
            return int(ErrorCode.VERSION_MISMATCH)
        case BuildFailure():
            return int(ErrorCode.BUILD_FAILED)
        case PublishFailure():
            return int(ErrorCode.PUBLISH_FAILED)
    raise AssertionError(f"unexpected release error: {error!r}")
