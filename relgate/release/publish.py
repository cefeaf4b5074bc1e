from __future__ import annotations

import os
from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from relgate.core.result import Err, Ok, Result
from relgate.platform.process import run as run_process
from relgate.release.errors import PublishFailure
from relgate.release.secrets import SecretToken

_STDERR_TAIL_LINES = 20


@dataclass(frozen=True, slots=True)
class PackageIdentity:
    name: str
    version: str

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


class Publisher(Protocol):
    def publish(self, identity: PackageIdentity, token: SecretToken) -> Result[None, PublishFailure]:
        """Publish `identity` to the registry. Called at most once per run."""
        ...


class CommandPublisher:
    """Publisher running the registry's own publish command.

    The token reaches the child process through the environment variable
    `token_env`, never through its arguments, and is masked in any output
    kept for diagnostics. Placeholders `{name}` and `{version}` are
    substituted in the command.
    """

    def __init__(
        self,
        *,
        workdir: Path,
        command: Sequence[str],
        token_env: str,
        timeout: float,
        environ: Mapping[str, str] | None = None,
    ) -> None:
        self._workdir = workdir
        self._command = tuple(command)
        self._token_env = token_env
        self._timeout = timeout
        self._environ = environ

    def command_for(self, identity: PackageIdentity) -> list[str]:
        return [
            arg.replace("{name}", identity.name).replace("{version}", identity.version)
            for arg in self._command
        ]

    def publish(self, identity: PackageIdentity, token: SecretToken) -> Result[None, PublishFailure]:
        base = os.environ if self._environ is None else self._environ
        env = {**base, self._token_env: token.reveal()}

        result = run_process(
            self.command_for(identity),
            cwd=self._workdir,
            env=env,
            timeout=self._timeout,
        )
        if isinstance(result, Err):
            e = result.error
            # A child that never started cannot have reached the registry.
            attempted = not (e.returncode == -1 and not e.timed_out)
            tail = "\n".join(token.redact(e.stderr).strip().splitlines()[-_STDERR_TAIL_LINES:])
            detail = str(e) if not tail else f"{e}\n{tail}"
            return Err(
                PublishFailure(
                    name=identity.name,
                    version=identity.version,
                    attempted=attempted,
                    detail=detail,
                )
            )
        return Ok(None)
