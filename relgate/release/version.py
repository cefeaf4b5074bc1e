from __future__ import annotations

import re
from fnmatch import fnmatchcase

from relgate.core.result import Err, Ok, Result
from relgate.release.errors import MalformedTag

_TAG_PREFIX = "refs/tags/"
_TAG_REF_RE = re.compile(r"refs/tags/v(.+)", re.DOTALL)


def derive_version(tag_ref: str) -> Result[str, MalformedTag]:
    """Extract the version from `refs/tags/v<version>`.

    The text after the `v` is returned verbatim.
    """
    m = _TAG_REF_RE.fullmatch(tag_ref)
    if m is None:
        return Err(MalformedTag(tag_ref=tag_ref))
    return Ok(m.group(1))


def matches_trigger(tag_ref: str, pattern: str) -> bool:
    """Check a tag reference against the release trigger glob (e.g. `v*.*.*`).

    The pattern applies to the tag name, without the `refs/tags/` prefix.
    """
    if not tag_ref.startswith(_TAG_PREFIX):
        return False
    return fnmatchcase(tag_ref[len(_TAG_PREFIX) :], pattern)


def derive_release_version(tag_ref: str, *, pattern: str) -> Result[str, MalformedTag]:
    """Derive the version of a tag that is also a release trigger."""
    if not matches_trigger(tag_ref, pattern):
        return Err(MalformedTag(tag_ref=tag_ref, expected=f"refs/tags/{pattern}"))
    return derive_version(tag_ref)
