"""Tests for relgate.core.errors module."""

from __future__ import annotations

from relgate.core.errors import ErrorCode


def test_success_is_zero() -> None:
    assert int(ErrorCode.OK) == 0
    assert ErrorCode.OK.is_success is True
    assert ErrorCode.BUILD_FAILED.is_success is False


def test_release_abort_codes_are_distinct_and_nonzero() -> None:
    aborts = [
        ErrorCode.MALFORMED_TAG,
        ErrorCode.NOT_ON_RELEASE_BRANCH,
        ErrorCode.VERSION_MISMATCH,
        ErrorCode.BUILD_FAILED,
        ErrorCode.PUBLISH_FAILED,
    ]
    assert len({int(c) for c in aborts}) == len(aborts)
    assert all(int(c) != 0 for c in aborts)
    assert all(c.is_release_abort for c in aborts)


def test_user_and_env_errors_are_not_release_aborts() -> None:
    assert ErrorCode.USER_ERROR.is_release_abort is False
    assert ErrorCode.ENV_ERROR.is_release_abort is False


def test_str() -> None:
    assert str(ErrorCode.NOT_ON_RELEASE_BRANCH) == "not on release branch"
