from __future__ import annotations

from pathlib import Path

from relgate.core.config import Config
from relgate.git.repository import Repository
from relgate.output.console import ConsoleProtocol
from relgate.release.branch import GitHistory
from relgate.release.build import CommandBuilder
from relgate.release.manifest import GitManifestReader
from relgate.release.orchestrator import ReleaseOrchestrator
from relgate.release.publish import CommandPublisher
from relgate.release.secrets import env_token_provider, scrubbed_environ


def build_orchestrator(
    *,
    repo_root: Path,
    config: Config,
    console: ConsoleProtocol,
    fetch: bool = True,
) -> ReleaseOrchestrator:
    """Wire the orchestrator to git, the build command and the publish command.

    Git and the builds run without the registry secret in their environment;
    the publisher receives the token only as `publish.token_env`.
    """
    env = scrubbed_environ((config.publish.secret_env, config.publish.token_env))
    repo = Repository(repo_root, environ=env)
    return ReleaseOrchestrator(
        vcs=GitHistory(repo, remote=config.release.remote, fetch=fetch),
        manifests=GitManifestReader(repo, path=config.manifest.path),
        builder=CommandBuilder(
            workdir=repo_root,
            command=config.build.command,
            targets=config.build.targets,
            timeout=config.build.timeout,
            environ=env,
        ),
        publisher=CommandPublisher(
            workdir=repo_root,
            command=config.publish.command,
            token_env=config.publish.token_env,
            timeout=config.publish.timeout,
            environ=env,
        ),
        token_provider=env_token_provider(config.publish.secret_env),
        console=console,
        release_branch=config.release.branch,
        tag_pattern=config.release.tag_pattern,
        eager_builds=config.build.eager,
    )
