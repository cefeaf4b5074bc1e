from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import typer

from relgate.core.config import CONFIG_FILE_NAME, Config, load_config_or_default
from relgate.core.errors import ErrorCode
from relgate.core.result import Err
from relgate.git.repository import Repository
from relgate.output.console import ConsoleProtocol, RichConsole


@dataclass(frozen=True, slots=True)
class CLIContext:
    repo_root: Path
    config: Config
    console: ConsoleProtocol


def build_context(*, repo: Path, config_path: Path | None) -> CLIContext:
    console = RichConsole()

    try:
        root = repo.expanduser().resolve()
    except OSError as e:
        typer.echo(f"error: invalid --repo: {e}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    if not Repository(root).exists():
        typer.echo(f"error: not a git repository: {root}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    path = config_path if config_path is not None else root / CONFIG_FILE_NAME
    if config_path is not None and not path.exists():
        typer.echo(f"error: config file not found: {path}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    config_result = load_config_or_default(path)
    if isinstance(config_result, Err):
        typer.echo(f"error: {config_result.error.message}", err=True)
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))

    return CLIContext(repo_root=root, config=config_result.value, console=console)
