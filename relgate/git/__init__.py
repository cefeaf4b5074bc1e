"""Git operations module.

Usage:
    from relgate.git import Repository

    repo = Repository(Path("/path/to/checkout"))
    sha = repo.commit_of("refs/tags/v1.4.0")
"""

from relgate.git.repository import (
    GitError,
    Repository,
)

__all__ = [
    "GitError",
    "Repository",
]
