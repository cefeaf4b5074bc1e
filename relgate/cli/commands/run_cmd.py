from __future__ import annotations

from pathlib import Path

import typer

from relgate.cli.context import build_context
from relgate.core.errors import ErrorCode
from relgate.output.console import Style
from relgate.output.errors import print_release_error, release_error_exit_code
from relgate.release.service import build_orchestrator


def run(
    ref: str = typer.Option(
        ...,
        "--ref",
        envvar="GITHUB_REF",
        help="Tag reference that triggered the release (refs/tags/vX.Y.Z).",
    ),
    repo: Path = typer.Option(Path("."), "--repo", help="Repository checkout to release from."),
    config: Path | None = typer.Option(
        None, "--config", help="Config file (default: relgate.toml in the repository)."
    ),
    dry_run: bool = typer.Option(
        False, "--dry-run", help="Run every gate but do not publish."
    ),
    fetch: bool = typer.Option(
        True, "--fetch/--no-fetch", help="Fetch the full release branch history first."
    ),
) -> None:
    """Gate a tagged commit and publish it when every gate passes."""
    ctx = build_context(repo=repo, config_path=config)
    ctx.console.print(f"repository: {ctx.repo_root}", Style.DIM)
    ctx.console.print(f"release branch: {ctx.config.release.branch}", Style.DIM)

    orchestrator = build_orchestrator(
        repo_root=ctx.repo_root,
        config=ctx.config,
        console=ctx.console,
        fetch=fetch,
    )
    outcome = orchestrator.run(ref, dry_run=dry_run)

    if outcome.succeeded:
        raise typer.Exit(code=int(ErrorCode.OK))

    if outcome.error is None:
        ctx.console.error(f"release aborted in state {outcome.transitions[-2]}")
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    print_release_error(outcome.error, ctx.console)
    raise typer.Exit(code=release_error_exit_code(outcome.error))
