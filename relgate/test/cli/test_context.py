from __future__ import annotations

from pathlib import Path

import pytest
import typer

from relgate.cli.context import build_context
from relgate.core.errors import ErrorCode
from relgate.test._gitrepo import init_repo, requires_git


def test_not_a_repository(tmp_path: Path) -> None:
    with pytest.raises(typer.Exit) as exc:
        build_context(repo=tmp_path, config_path=None)

    assert exc.value.exit_code == int(ErrorCode.ENV_ERROR)


@requires_git
class TestWithRepository:
    def test_defaults_without_config_file(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        ctx = build_context(repo=repo, config_path=None)

        assert ctx.repo_root == repo.resolve()
        assert ctx.config.release.branch == "master"

    def test_reads_config_file_from_repository(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")
        (repo / "relgate.toml").write_text('[release]\nbranch = "main"\n', encoding="utf-8")

        ctx = build_context(repo=repo, config_path=None)

        assert ctx.config.release.branch == "main"

    def test_missing_explicit_config(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")

        with pytest.raises(typer.Exit) as exc:
            build_context(repo=repo, config_path=tmp_path / "nope.toml")

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)

    def test_invalid_config(self, tmp_path: Path) -> None:
        repo = init_repo(tmp_path / "repo")
        (repo / "relgate.toml").write_text("[build]\ntimeout = -1\n", encoding="utf-8")

        with pytest.raises(typer.Exit) as exc:
            build_context(repo=repo, config_path=None)

        assert exc.value.exit_code == int(ErrorCode.USER_ERROR)
