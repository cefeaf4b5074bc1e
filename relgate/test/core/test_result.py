"""Tests for relgate.core.result module."""

import pytest

from relgate.core.result import Err, Ok, Result, is_err, is_ok


class TestOk:
    """Tests for Ok type."""

    def test_ok_is_ok(self) -> None:
        result = Ok("1.4.0")
        assert result.is_ok() is True
        assert result.is_err() is False

    def test_ok_unwrap(self) -> None:
        assert Ok("1.4.0").unwrap() == "1.4.0"
        assert Ok("1.4.0").unwrap_or("0.0.0") == "1.4.0"

    def test_ok_map(self) -> None:
        """Ok.map() transforms the value, map_err leaves it alone."""
        result = Ok("1.4.0")
        assert result.map(lambda v: f"v{v}") == Ok("v1.4.0")
        assert result.map_err(lambda e: f"error: {e}") == Ok("1.4.0")


class TestErr:
    """Tests for Err type."""

    def test_err_is_err(self) -> None:
        result = Err("mismatch")
        assert result.is_err() is True
        assert result.is_ok() is False

    def test_err_unwrap_raises(self) -> None:
        with pytest.raises(ValueError, match="called unwrap on Err"):
            Err("mismatch").unwrap()

    def test_err_unwrap_or(self) -> None:
        assert Err("mismatch").unwrap_or("fallback") == "fallback"

    def test_err_map_err(self) -> None:
        result = Err("mismatch")
        assert result.map_err(str.upper) == Err("MISMATCH")
        assert result.map(lambda v: v) == Err("mismatch")


class TestPatternMatching:
    def test_match_ok_and_err(self) -> None:
        def describe(result: Result[str, str]) -> str:
            match result:
                case Ok(value):
                    return f"ok {value}"
                case Err(error):
                    return f"err {error}"

        assert describe(Ok("1.4.0")) == "ok 1.4.0"
        assert describe(Err("bad tag")) == "err bad tag"


def test_type_guards() -> None:
    assert is_ok(Ok(1)) is True
    assert is_ok(Err(1)) is False
    assert is_err(Err(1)) is True
    assert is_err(Ok(1)) is False
