"""Build verification across the release matrix.

Each platform is built independently and in parallel. The gate passes only
when every platform builds; the first failure cancels the builds still
running.
"""

from __future__ import annotations

import tempfile
import threading
from collections.abc import Callable, Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relgate.core.result import Err, Ok, Result
from relgate.platform.matrix import BUILD_MATRIX, Platform
from relgate.platform.process import run as run_process
from relgate.release.errors import BuildFailure

__all__ = [
    "BuildResult",
    "Builder",
    "CommandBuilder",
    "verify_builds",
]

_STDERR_TAIL_LINES = 20


@dataclass(frozen=True, slots=True)
class BuildResult:
    platform: Platform
    passed: bool
    detail: str | None = None


class Builder(Protocol):
    def build(self, platform: Platform, *, cancel: threading.Event) -> Result[None, BuildFailure]:
        """Build the package for `platform` with every build target enabled."""
        ...


class CommandBuilder:
    """Builder running a command template once per platform.

    Placeholders `{platform}`, `{target}` and `{build_dir}` are substituted in
    every argument. Each build gets its own scratch directory, removed once
    the build finishes. Builds run with `environ` (inherited when None).
    """

    def __init__(
        self,
        *,
        workdir: Path,
        command: Sequence[str],
        targets: Mapping[Platform, str],
        timeout: float,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._workdir = workdir
        self._command = tuple(command)
        self._targets = dict(targets)
        self._timeout = timeout
        self._env = None if environ is None else dict(environ)

    def command_for(self, platform: Platform, *, build_dir: Path) -> list[str]:
        target = self._targets.get(platform, platform.default_target)
        return [
            arg.replace("{platform}", str(platform))
            .replace("{target}", target)
            .replace("{build_dir}", str(build_dir))
            for arg in self._command
        ]

    def build(self, platform: Platform, *, cancel: threading.Event) -> Result[None, BuildFailure]:
        with tempfile.TemporaryDirectory(prefix=f"relgate-build-{platform}-") as build_dir:
            cmd = self.command_for(platform, build_dir=Path(build_dir))
            result = run_process(
                cmd, cwd=self._workdir, env=self._env, timeout=self._timeout, cancel=cancel
            )

        if isinstance(result, Err):
            e = result.error
            tail = "\n".join(e.stderr.strip().splitlines()[-_STDERR_TAIL_LINES:])
            detail = str(e) if not tail else f"{e}\n{tail}"
            return Err(BuildFailure(platform=platform, detail=detail, cancelled=e.cancelled))
        return Ok(None)


def verify_builds(
    builder: Builder,
    *,
    matrix: Sequence[Platform] = BUILD_MATRIX,
    cancel: threading.Event | None = None,
    on_result: Callable[[BuildResult], None] | None = None,
) -> Result[tuple[BuildResult, ...], BuildFailure]:
    """Build every platform of the matrix in parallel.

    Args:
        builder: Collaborator performing one platform build.
        matrix: Platforms to build (the full release matrix by default).
        cancel: Shared cancellation event; set here on the first failure.
        on_result: Called as each platform finishes.

    Returns:
        Ok(results in matrix order) if every platform built, else
        Err(BuildFailure) of the first platform that failed. A genuine
        failure is preferred over a cancellation.
    """
    if not matrix:
        raise ValueError("build matrix must not be empty")

    if cancel is None:
        cancel = threading.Event()

    results: dict[Platform, BuildResult] = {}
    failure: BuildFailure | None = None

    executor = ThreadPoolExecutor(max_workers=len(matrix), thread_name_prefix="relgate-build")
    try:
        futures = {executor.submit(builder.build, p, cancel=cancel): p for p in matrix}
        for future in as_completed(futures):
            platform = futures[future]
            outcome = future.result()
            if isinstance(outcome, Err):
                error = outcome.error
                if failure is None or (failure.cancelled and not error.cancelled):
                    failure = error
                cancel.set()
                result = BuildResult(platform=platform, passed=False, detail=error.detail)
            else:
                result = BuildResult(platform=platform, passed=True)

            results[platform] = result
            if on_result is not None:
                on_result(result)
    except BaseException:
        cancel.set()
        raise
    finally:
        cancel_pending = failure is not None
        executor.shutdown(wait=True, cancel_futures=cancel_pending)

    if failure is not None:
        return Err(failure)
    return Ok(tuple(results[p] for p in matrix))
