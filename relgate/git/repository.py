"""Git repository abstraction.

This module provides the Repository class used by the release gates to query
version-control state. All operations return Result types for proper error
handling.

Usage:
    repo = Repository(Path("/path/to/checkout"))

    match repo.commit_of("refs/tags/v1.4.0"):
        case Ok(sha):
            print(f"tag points at {sha}")
        case Err(e):
            print(f"Error: {e.message}")

    match repo.history_of("origin/master"):
        case Ok(commits):
            print(f"{len(commits)} commits on master")
        case Err(e):
            print(f"history unavailable: {e.message}")
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from relgate.core.result import Err, Ok, Result
from relgate.platform.process import ProcessError
from relgate.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0
_GIT_NETWORK_TIMEOUT_SECONDS = 3 * 60.0

__all__ = [
    "GitError",
    "Repository",
]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """Git repository abstraction.

    Attributes:
        path: Path to the repository root
    """

    def __init__(self, path: Path, *, environ: Mapping[str, str] | None = None) -> None:
        self.path = path
        self._env = None if environ is None else dict(environ)

    def exists(self) -> bool:
        """Check if this is a valid git repository (or worktree)."""
        return (self.path / ".git").exists()

    def commit_of(self, ref: str) -> Result[str, GitError]:
        """Resolve a reference to the full id of the commit it points at.

        Annotated tags are peeled to their commit.
        """
        result = self._run(["rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="rev-parse",
                        message=e.stderr.strip() or f"unknown revision: {ref}",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip())

    def is_shallow(self) -> Result[bool, GitError]:
        """Check whether the clone has truncated history."""
        result = self._run(["rev-parse", "--is-shallow-repository"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="rev-parse --is-shallow-repository",
                        message=e.stderr.strip() or "cannot determine clone depth",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout.strip() == "true")

    def fetch_full_history(self, remote: str, branch: str) -> Result[None, GitError]:
        """Deepen a shallow clone and update the remote-tracking ref of `branch`.

        Returns:
            Ok(None) on success
            Err(GitError) on failure
        """
        shallow = self.is_shallow()
        if isinstance(shallow, Err):
            return shallow

        if shallow.value:
            unshallow = self._run(["fetch", "--unshallow", remote])
            if isinstance(unshallow, Err):
                return Err(
                    GitError(
                        command="fetch --unshallow",
                        message=unshallow.error.stderr.strip() or "unshallow failed",
                        returncode=unshallow.error.returncode,
                    )
                )

        refspec = f"+refs/heads/{branch}:refs/remotes/{remote}/{branch}"
        result = self._run(["fetch", remote, refspec])
        if isinstance(result, Err):
            return Err(
                GitError(
                    command="fetch",
                    message=result.error.stderr.strip() or f"fetch {remote} {branch} failed",
                    returncode=result.error.returncode,
                )
            )
        return Ok(None)

    def history_of(self, rev: str) -> Result[tuple[str, ...], GitError]:
        """List every commit reachable from `rev`, newest first.

        Refuses to answer from a shallow clone, whose history would be
        silently truncated.
        """
        shallow = self.is_shallow()
        if isinstance(shallow, Err):
            return shallow
        if shallow.value:
            return Err(
                GitError(
                    command="log",
                    message="repository is a shallow clone; full history is required",
                )
            )

        result = self._run(["log", "--format=%H", rev, "--"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="log",
                        message=e.stderr.strip() or f"cannot read history of {rev}",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(tuple(ln.strip() for ln in stdout.splitlines() if ln.strip()))

    def show_file(self, ref: str, path: str) -> Result[str, GitError]:
        """Read the content of `path` as recorded at `ref`."""
        result = self._run(["show", f"{ref}:{path}"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="show",
                        message=e.stderr.strip() or f"{path} not found at {ref}",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                return Ok(stdout)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        """Run a git command in this repository."""
        command = args[0] if args else ""
        timeout = (
            _GIT_NETWORK_TIMEOUT_SECONDS
            if command in {"fetch", "pull", "push", "clone"}
            else _GIT_TIMEOUT_SECONDS
        )
        return run_process(
            ["git", "-C", str(self.path), *args], cwd=self.path, env=self._env, timeout=timeout
        )
