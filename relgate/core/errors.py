"""Process exit codes.

Each aborted pipeline stage has its own exit code so the invoking CI job can
tell which gate refused the release without parsing output.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for CLI commands.

    These values are used as process exit codes and should remain stable.
    - 0: Pipeline reached DONE
    - 1: User error (bad arguments, invalid config)
    - 2: Environment error (not a git repository, missing tools)
    - 10-14: Aborted release, one code per failing stage
    """

    OK = 0
    USER_ERROR = 1
    ENV_ERROR = 2
    MALFORMED_TAG = 10
    NOT_ON_RELEASE_BRANCH = 11
    VERSION_MISMATCH = 12
    BUILD_FAILED = 13
    PUBLISH_FAILED = 14

    def __str__(self) -> str:
        """Return human-readable name."""
        return self.name.lower().replace("_", " ")

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK

    @property
    def is_release_abort(self) -> bool:
        """Check if this code comes from an aborted pipeline stage."""
        return self >= ErrorCode.MALFORMED_TAG
