"""Typed configuration loading and access.

Configuration lives in an optional `relgate.toml` at the repository root.
Every value has a default matching a Rust crate released from `master` to
crates.io, so a repository without the file gets the stock pipeline.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

from relgate.platform.matrix import BUILD_MATRIX, Platform

from .result import Err, Ok, Result
from .structured import (
    StrDict,
    as_str_dict,
    get_bool,
    get_float,
    get_str,
    get_str_list,
    get_table,
)

__all__ = [
    "BuildConfig",
    "Config",
    "ConfigError",
    "CONFIG_FILE_NAME",
    "ManifestConfig",
    "PublishConfig",
    "ReleaseConfig",
    "load_config",
    "load_config_or_default",
]

CONFIG_FILE_NAME = "relgate.toml"

DEFAULT_BUILD_COMMAND: tuple[str, ...] = (
    "cargo",
    "build",
    "--all-targets",
    "--target",
    "{target}",
    "--target-dir",
    "{build_dir}",
)
DEFAULT_BUILD_TIMEOUT_SECONDS = 30 * 60.0

DEFAULT_PUBLISH_COMMAND: tuple[str, ...] = ("cargo", "publish")
DEFAULT_PUBLISH_TIMEOUT_SECONDS = 10 * 60.0


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when config cannot be loaded or parsed."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class ReleaseConfig:
    """Where releases may come from."""

    branch: str = "master"
    remote: str = "origin"
    tag_pattern: str = "v*.*.*"


@dataclass(frozen=True, slots=True)
class ManifestConfig:
    """Package manifest location, relative to the repository root."""

    path: str = "Cargo.toml"


def _default_targets() -> dict[Platform, str]:
    return {p: p.default_target for p in BUILD_MATRIX}


@dataclass(frozen=True, slots=True)
class BuildConfig:
    """Build verification settings.

    Every platform of the matrix is built on the host running relgate. The
    default command cross-compiles with `--target {target}`, so the host
    needs the Rust targets and linkers for all three triples (for example
    `rustup target add` plus mingw-w64 and an osxcross toolchain on Linux).
    Projects without cross toolchains set `command` to something that
    dispatches each `{platform}` to a native runner.

    Attributes:
        command: argv template; `{platform}`, `{target}` and `{build_dir}` are substituted.
        targets: Target identifier substituted for `{target}`, per platform.
        timeout: Seconds allowed per platform build.
        eager: Start builds together with the read-only gates instead of after them.
    """

    command: tuple[str, ...] = DEFAULT_BUILD_COMMAND
    targets: dict[Platform, str] = field(default_factory=_default_targets)
    timeout: float = DEFAULT_BUILD_TIMEOUT_SECONDS
    eager: bool = False


@dataclass(frozen=True, slots=True)
class PublishConfig:
    """Publish step settings.

    Attributes:
        command: argv template; `{name}` and `{version}` are substituted.
        token_env: Variable the publish command reads the token from.
        secret_env: Variable the token is read from when publishing starts.
        timeout: Seconds allowed for the publish command.
    """

    command: tuple[str, ...] = DEFAULT_PUBLISH_COMMAND
    token_env: str = "CARGO_REGISTRY_TOKEN"
    secret_env: str = "CRATES_IO_API_TOKEN"
    timeout: float = DEFAULT_PUBLISH_TIMEOUT_SECONDS


@dataclass(frozen=True, slots=True)
class Config:
    """Main configuration container."""

    release: ReleaseConfig = field(default_factory=ReleaseConfig)
    manifest: ManifestConfig = field(default_factory=ManifestConfig)
    build: BuildConfig = field(default_factory=BuildConfig)
    publish: PublishConfig = field(default_factory=PublishConfig)

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> Config:
        """Create Config from a mapping (parsed TOML).

        Raises:
            ValueError: A value is present but has the wrong shape.
        """
        release = _section(data, "release")
        manifest = _section(data, "manifest")
        build = _section(data, "build")
        publish = _section(data, "publish")

        defaults = cls()
        return cls(
            release=ReleaseConfig(
                branch=_string(release, "release.branch") or defaults.release.branch,
                remote=_string(release, "release.remote") or defaults.release.remote,
                tag_pattern=_string(release, "release.tag_pattern") or defaults.release.tag_pattern,
            ),
            manifest=ManifestConfig(
                path=_string(manifest, "manifest.path") or defaults.manifest.path,
            ),
            build=BuildConfig(
                command=_command(build, "build.command") or defaults.build.command,
                targets=_targets(build),
                timeout=_timeout(build, "build.timeout") or defaults.build.timeout,
                eager=_flag(build, "build.eager", default=defaults.build.eager),
            ),
            publish=PublishConfig(
                command=_command(publish, "publish.command") or defaults.publish.command,
                token_env=_string(publish, "publish.token_env") or defaults.publish.token_env,
                secret_env=_string(publish, "publish.secret_env") or defaults.publish.secret_env,
                timeout=_timeout(publish, "publish.timeout") or defaults.publish.timeout,
            ),
        )


def _section(data: Mapping[str, object], name: str) -> StrDict:
    if name not in data:
        return {}
    table = get_table(data, name)
    if table is None:
        raise ValueError(f"[{name}] must be a table")
    return table


def _string(table: StrDict, name: str) -> str | None:
    key = name.rsplit(".", 1)[-1]
    if key not in table:
        return None
    value = get_str(table, key)
    if value is None:
        raise ValueError(f"{name} must be a non-empty string")
    return value


def _flag(table: StrDict, name: str, *, default: bool) -> bool:
    key = name.rsplit(".", 1)[-1]
    if key not in table:
        return default
    value = get_bool(table, key)
    if value is None:
        raise ValueError(f"{name} must be true or false")
    return value


def _command(table: StrDict, name: str) -> tuple[str, ...] | None:
    key = name.rsplit(".", 1)[-1]
    if key not in table:
        return None
    items = get_str_list(table, key)
    if not items:
        raise ValueError(f"{name} must be a non-empty list of strings")
    return tuple(items)


def _timeout(table: StrDict, name: str) -> float | None:
    key = name.rsplit(".", 1)[-1]
    if key not in table:
        return None
    value = get_float(table, key)
    if value is None or value <= 0:
        raise ValueError(f"{name} must be a positive number of seconds")
    return value


def _targets(build: StrDict) -> dict[Platform, str]:
    targets = _default_targets()
    if "targets" not in build:
        return targets
    raw = get_table(build, "targets")
    if raw is None:
        raise ValueError("[build.targets] must be a table")
    for name in raw:
        platform = Platform.parse(name)
        if platform is None:
            known = ", ".join(str(p) for p in BUILD_MATRIX)
            raise ValueError(f"unknown platform in build.targets: {name} (expected one of {known})")
        value = get_str(raw, name)
        if value is None:
            raise ValueError(f"build.targets.{name} must be a non-empty string")
        targets[platform] = value
    return targets


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    """Parse a TOML file, handling read and parse errors."""
    import tomllib

    try:
        content = path.read_bytes()
        data_obj: object = tomllib.loads(content.decode("utf-8"))
        data = as_str_dict(data_obj)
        if data is None:
            return Err(ConfigError("Config root must be a TOML table", path=path))
        return Ok(data)
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))


def load_config(path: Path) -> Result[Config, ConfigError]:
    """Load and parse configuration from a TOML file.

    Args:
        path: Path to relgate.toml

    Returns:
        Ok(Config) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(Config.from_dict(result.value))
    except ValueError as e:
        return Err(ConfigError(f"Invalid config: {e}", path=path))


def load_config_or_default(path: Path) -> Result[Config, ConfigError]:
    """Load config from file, or return the defaults if the file doesn't exist.

    A file that exists but is invalid is still an error.
    """
    if not path.exists():
        return Ok(Config())
    return load_config(path)
