from __future__ import annotations

import json
import tomllib
from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Protocol

from relgate.core.result import Err, Ok, Result
from relgate.core.structured import StrDict, as_str_dict, get_table, get_verbatim_str
from relgate.git.repository import Repository
from relgate.release.errors import VersionMismatch


@dataclass(frozen=True, slots=True)
class Manifest:
    """Package identity as declared by the manifest at the tagged commit."""

    path: str
    name: str
    version: str


@dataclass(frozen=True, slots=True)
class ManifestError:
    path: str
    message: str


class ManifestReader(Protocol):
    def read(self, tag_ref: str) -> Result[Manifest, ManifestError]: ...


class GitManifestReader:
    """Reads the manifest as committed at the tag, not from the working tree."""

    def __init__(self, repo: Repository, *, path: str) -> None:
        self._repo = repo
        self._path = path

    @property
    def path(self) -> str:
        return self._path

    def read(self, tag_ref: str) -> Result[Manifest, ManifestError]:
        content = self._repo.show_file(tag_ref, self._path)
        if isinstance(content, Err):
            return Err(ManifestError(path=self._path, message=content.error.message))
        return parse_manifest(self._path, content.value)


def parse_manifest(path: str, text: str) -> Result[Manifest, ManifestError]:
    """Parse a manifest by file name: Cargo.toml, pyproject.toml or package.json."""
    file_name = PurePosixPath(path).name
    match file_name:
        case "Cargo.toml":
            return _parse_toml_section(path, text, section="package")
        case "pyproject.toml":
            return _parse_toml_section(path, text, section="project")
        case "package.json":
            return _parse_package_json(path, text)
        case _:
            return Err(ManifestError(path=path, message=f"unsupported manifest type: {file_name}"))


def check_manifest_version(version: str, manifest: Manifest) -> Result[None, VersionMismatch]:
    """Require the manifest to declare exactly `version` (no normalization)."""
    if manifest.version != version:
        return Err(
            VersionMismatch(
                version=version,
                manifest_path=manifest.path,
                manifest_version=manifest.version,
            )
        )
    return Ok(None)


def _parse_toml_section(path: str, text: str, *, section: str) -> Result[Manifest, ManifestError]:
    try:
        data: StrDict = tomllib.loads(text)
    except tomllib.TOMLDecodeError as e:
        return Err(ManifestError(path=path, message=f"invalid TOML: {e}"))

    table = get_table(data, section)
    if table is None:
        return Err(ManifestError(path=path, message=f"missing [{section}] section"))
    return _identity(path, table, prefix=f"{section}.")


def _parse_package_json(path: str, text: str) -> Result[Manifest, ManifestError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(ManifestError(path=path, message=f"invalid JSON: {e}"))

    data = as_str_dict(obj)
    if data is None:
        return Err(ManifestError(path=path, message="invalid JSON root"))
    return _identity(path, data, prefix="")


def _identity(path: str, table: StrDict, *, prefix: str) -> Result[Manifest, ManifestError]:
    name = get_verbatim_str(table, "name")
    if not name:
        return Err(ManifestError(path=path, message=f"missing {prefix}name"))

    if isinstance(table.get("version"), dict):
        return Err(
            ManifestError(
                path=path,
                message=f"{prefix}version is inherited; an explicit version string is required",
            )
        )
    version = get_verbatim_str(table, "version")
    if version is None:
        return Err(ManifestError(path=path, message=f"missing {prefix}version"))

    return Ok(Manifest(path=path, name=name, version=version))
