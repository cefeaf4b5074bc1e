"""Registry authentication token handling.

The token is only ever read when the pipeline reaches the publish step and
is handed to the publisher as an opaque value. Its string forms never
contain the secret.
"""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass

from relgate.core.result import Err, Ok, Result

_MASK = "***"


class SecretToken:
    """Opaque wrapper around a registry token."""

    __slots__ = ("_value",)

    def __init__(self, value: str) -> None:
        self._value = value

    def reveal(self) -> str:
        """Return the raw token. Only the publisher calls this."""
        return self._value

    def redact(self, text: str) -> str:
        """Mask every occurrence of the token in `text`."""
        if not self._value:
            return text
        return text.replace(self._value, _MASK)

    def __repr__(self) -> str:
        return f"SecretToken({_MASK})"

    def __str__(self) -> str:
        return _MASK

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SecretToken):
            return NotImplemented
        return self._value == other._value

    def __hash__(self) -> int:
        return hash(self._value)


@dataclass(frozen=True, slots=True)
class TokenUnavailable:
    source: str
    message: str


TokenProvider = Callable[[], Result[SecretToken, TokenUnavailable]]


def env_token_provider(name: str, *, environ: Mapping[str, str] | None = None) -> TokenProvider:
    """Token provider reading environment variable `name` when called.

    Args:
        name: Variable the secret store exposes the token in.
        environ: Mapping to read from (os.environ when None, looked up at call time).
    """

    def provide() -> Result[SecretToken, TokenUnavailable]:
        env = os.environ if environ is None else environ
        value = env.get(name, "")
        if not value.strip():
            return Err(TokenUnavailable(source=name, message=f"${name} is not set"))
        return Ok(SecretToken(value))

    return provide


def scrubbed_environ(
    names: Iterable[str], *, environ: Mapping[str, str] | None = None
) -> dict[str, str]:
    """Copy of the environment without the variables in `names`.

    Child processes of every stage but the publisher run with this, so the
    token never reaches build scripts or git hooks.
    """
    env = os.environ if environ is None else environ
    hidden = frozenset(names)
    return {k: v for k, v in env.items() if k not in hidden}
