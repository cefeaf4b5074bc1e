from __future__ import annotations

import pytest

from relgate.core.result import Err, Ok
from relgate.release.secrets import SecretToken, env_token_provider, scrubbed_environ


class TestSecretToken:
    def test_string_forms_are_masked(self) -> None:
        token = SecretToken("s3cret")

        assert str(token) == "***"
        assert repr(token) == "SecretToken(***)"
        assert "s3cret" not in f"{token} {token!r}"

    def test_reveal(self) -> None:
        assert SecretToken("s3cret").reveal() == "s3cret"

    def test_redact(self) -> None:
        token = SecretToken("s3cret")

        assert token.redact("auth s3cret failed for s3cret") == "auth *** failed for ***"
        assert token.redact("nothing here") == "nothing here"

    def test_equality(self) -> None:
        assert SecretToken("a") == SecretToken("a")
        assert SecretToken("a") != SecretToken("b")


class TestEnvTokenProvider:
    def test_reads_at_call_time(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RELGATE_TEST_TOKEN", raising=False)
        provide = env_token_provider("RELGATE_TEST_TOKEN")

        monkeypatch.setenv("RELGATE_TEST_TOKEN", "abc123")

        assert provide() == Ok(SecretToken("abc123"))

    @pytest.mark.parametrize("environ", [{}, {"TOKEN": ""}, {"TOKEN": "  "}])
    def test_missing_or_blank_token(self, environ: dict[str, str]) -> None:
        result = env_token_provider("TOKEN", environ=environ)()

        assert isinstance(result, Err)
        assert result.error.source == "TOKEN"
        assert "TOKEN" in result.error.message


class TestScrubbedEnviron:
    def test_removes_named_variables(self) -> None:
        environ = {"PATH": "/bin", "CRATES_IO_API_TOKEN": "t", "CARGO_REGISTRY_TOKEN": "t"}

        env = scrubbed_environ(("CRATES_IO_API_TOKEN", "CARGO_REGISTRY_TOKEN"), environ=environ)

        assert env == {"PATH": "/bin"}
        assert "CRATES_IO_API_TOKEN" in environ

    def test_defaults_to_process_environment(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RELGATE_TEST_TOKEN", "abc123")
        monkeypatch.setenv("RELGATE_TEST_OTHER", "kept")

        env = scrubbed_environ(["RELGATE_TEST_TOKEN"])

        assert "RELGATE_TEST_TOKEN" not in env
        assert env["RELGATE_TEST_OTHER"] == "kept"
