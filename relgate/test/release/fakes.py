"""In-memory collaborators for pipeline tests."""

from __future__ import annotations

import threading
from dataclasses import dataclass, field

from relgate.core.result import Err, Ok, Result
from relgate.git.repository import GitError
from relgate.platform.matrix import Platform
from relgate.release.errors import BuildFailure, PublishFailure
from relgate.release.manifest import Manifest, ManifestError
from relgate.release.publish import PackageIdentity
from relgate.release.secrets import SecretToken, TokenUnavailable

COMMIT = "c0ffee" + "0" * 34
OTHER_COMMIT = "deadbeef" + "0" * 32


@dataclass
class FakeVcs:
    commits: dict[str, str] = field(default_factory=dict)
    history: tuple[str, ...] = ()
    history_error: str | None = None
    calls: list[str] = field(default_factory=list)

    def commit_of(self, tag_ref: str) -> Result[str, GitError]:
        self.calls.append(f"commit_of {tag_ref}")
        sha = self.commits.get(tag_ref)
        if sha is None:
            return Err(GitError(command="rev-parse", message=f"unknown revision: {tag_ref}"))
        return Ok(sha)

    def history_of(self, branch: str) -> Result[tuple[str, ...], GitError]:
        self.calls.append(f"history_of {branch}")
        if self.history_error is not None:
            return Err(GitError(command="log", message=self.history_error))
        return Ok(self.history)


@dataclass
class FakeManifests:
    name: str = "speculos-client"
    version: str | None = "1.4.0"
    path: str = "Cargo.toml"
    calls: list[str] = field(default_factory=list)

    def read(self, tag_ref: str) -> Result[Manifest, ManifestError]:
        self.calls.append(tag_ref)
        if self.version is None:
            return Err(ManifestError(path=self.path, message="missing package.version"))
        return Ok(Manifest(path=self.path, name=self.name, version=self.version))


@dataclass
class FakeBuilder:
    """Builder failing on `failing` platforms.

    Platforms in `blocking` wait for cancellation and then report themselves
    cancelled, which makes ordering in fail-fast tests deterministic.
    """

    failing: frozenset[Platform] = frozenset()
    blocking: frozenset[Platform] = frozenset()
    calls: list[Platform] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def build(self, platform: Platform, *, cancel: threading.Event) -> Result[None, BuildFailure]:
        with self._lock:
            self.calls.append(platform)
        if platform in self.blocking:
            if not cancel.wait(timeout=10):
                raise AssertionError(f"{platform} build was never cancelled")
            return Err(BuildFailure(platform=platform, detail="cancelled", cancelled=True))
        if platform in self.failing:
            return Err(BuildFailure(platform=platform, detail=f"error: {platform} build broke"))
        return Ok(None)


@dataclass
class FakePublisher:
    failure: PublishFailure | None = None
    calls: list[tuple[PackageIdentity, SecretToken]] = field(default_factory=list)

    def publish(self, identity: PackageIdentity, token: SecretToken) -> Result[None, PublishFailure]:
        self.calls.append((identity, token))
        if self.failure is not None:
            return Err(self.failure)
        return Ok(None)


@dataclass
class FakeTokenStore:
    value: str | None = "s3cret-token"
    reads: int = 0

    def __call__(self) -> Result[SecretToken, TokenUnavailable]:
        self.reads += 1
        if self.value is None:
            return Err(TokenUnavailable(source="CRATES_IO_API_TOKEN", message="not set"))
        return Ok(SecretToken(self.value))
