from __future__ import annotations

from typing import Protocol

from relgate.core.result import Err, Ok, Result
from relgate.git.repository import GitError, Repository
from relgate.release.errors import NotOnReleaseBranch


class VersionControl(Protocol):
    def commit_of(self, tag_ref: str) -> Result[str, GitError]: ...

    def history_of(self, branch: str) -> Result[tuple[str, ...], GitError]:
        """Every commit of `branch`; never a truncated view."""
        ...


class GitHistory:
    """VersionControl backed by a local clone.

    Branch history is read from the remote-tracking ref, so a stale or
    missing local branch does not matter. With `fetch` enabled the clone is
    unshallowed and the release branch refreshed before it is read.
    """

    def __init__(self, repo: Repository, *, remote: str, fetch: bool = True) -> None:
        self._repo = repo
        self._remote = remote
        self._fetch = fetch

    def commit_of(self, tag_ref: str) -> Result[str, GitError]:
        return self._repo.commit_of(tag_ref)

    def history_of(self, branch: str) -> Result[tuple[str, ...], GitError]:
        if self._fetch:
            fetched = self._repo.fetch_full_history(self._remote, branch)
            if isinstance(fetched, Err):
                return fetched
        return self._repo.history_of(f"{self._remote}/{branch}")


def check_branch_containment(
    vcs: VersionControl,
    *,
    tag_ref: str,
    branch: str,
) -> Result[str, NotOnReleaseBranch]:
    """Check that the tagged commit is part of the release branch history.

    Returns:
        Ok(commit id) when the commit is on the branch.
    """
    commit = vcs.commit_of(tag_ref)
    if isinstance(commit, Err):
        return Err(
            NotOnReleaseBranch(
                tag_ref=tag_ref,
                branch=branch,
                detail=f"cannot resolve {tag_ref}: {commit.error.message}",
            )
        )

    history = vcs.history_of(branch)
    if isinstance(history, Err):
        return Err(
            NotOnReleaseBranch(
                tag_ref=tag_ref,
                branch=branch,
                commit=commit.value,
                detail=f"cannot read history of {branch}: {history.error.message}",
            )
        )

    if commit.value not in frozenset(history.value):
        return Err(NotOnReleaseBranch(tag_ref=tag_ref, branch=branch, commit=commit.value))
    return Ok(commit.value)
