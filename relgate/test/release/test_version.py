from __future__ import annotations

import pytest

from relgate.core.result import Err, Ok
from relgate.release.errors import MalformedTag
from relgate.release.version import derive_release_version, derive_version, matches_trigger


@pytest.mark.parametrize(
    ("tag_ref", "version"),
    [
        ("refs/tags/v1.4.0", "1.4.0"),
        ("refs/tags/v0.0.1-beta.2", "0.0.1-beta.2"),
        ("refs/tags/v1.2", "1.2"),
        ("refs/tags/v 1.0 ", " 1.0 "),
        ("refs/tags/vv1", "v1"),
    ],
)
def test_derive_version_is_verbatim(tag_ref: str, version: str) -> None:
    assert derive_version(tag_ref) == Ok(version)


@pytest.mark.parametrize(
    "tag_ref",
    [
        "",
        "v1.4.0",
        "refs/tags/v",
        "refs/tags/1.4.0",
        "refs/heads/v1.4.0",
        "refs/tags/V1.4.0",
        "prefix/refs/tags/v1.4.0",
    ],
)
def test_derive_version_rejects_malformed(tag_ref: str) -> None:
    assert derive_version(tag_ref) == Err(MalformedTag(tag_ref=tag_ref))


def test_trailing_newline_is_kept_in_version() -> None:
    assert derive_version("refs/tags/v1.0.0\n") == Ok("1.0.0\n")


class TestTrigger:
    def test_matches_release_tags(self) -> None:
        assert matches_trigger("refs/tags/v1.4.0", "v*.*.*")
        assert matches_trigger("refs/tags/v1.4.0-rc.1", "v*.*.*")

    def test_rejects_non_release_tags(self) -> None:
        assert not matches_trigger("refs/tags/v1.4", "v*.*.*")
        assert not matches_trigger("refs/tags/nightly", "v*.*.*")
        assert not matches_trigger("refs/heads/v1.4.0", "v*.*.*")

    def test_derive_release_version(self) -> None:
        assert derive_release_version("refs/tags/v2.0.0", pattern="v*.*.*") == Ok("2.0.0")

    def test_non_trigger_tag_is_malformed(self) -> None:
        result = derive_release_version("refs/tags/v2.0", pattern="v*.*.*")
        assert result == Err(MalformedTag(tag_ref="refs/tags/v2.0", expected="refs/tags/v*.*.*"))
