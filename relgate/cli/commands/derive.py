from __future__ import annotations

from pathlib import Path

import typer

from relgate.core.errors import ErrorCode
from relgate.core.result import Err
from relgate.output.console import RichConsole
from relgate.output.errors import print_release_error, release_error_exit_code
from relgate.release.version import derive_version


def derive(
    ref: str = typer.Option(
        ...,
        "--ref",
        envvar="GITHUB_REF",
        help="Tag reference to derive the version from.",
    ),
    output_file: Path | None = typer.Option(
        None,
        "--output-file",
        envvar="GITHUB_OUTPUT",
        help="Append `version=<version>` to this file (CI step outputs).",
    ),
) -> None:
    """Print the version a tag reference releases."""
    result = derive_version(ref)
    if isinstance(result, Err):
        print_release_error(result.error, RichConsole(stderr=True))
        raise typer.Exit(code=release_error_exit_code(result.error))

    version = result.value
    if output_file is not None:
        try:
            with output_file.open("a", encoding="utf-8") as f:
                f.write(f"version={version}\n")
        except OSError as e:
            typer.echo(f"error: cannot write {output_file}: {e}", err=True)
            raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    typer.echo(version)
