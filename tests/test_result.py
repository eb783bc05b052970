from __future__ import annotations

import dataclasses

import pytest

from kratos.domain.permissions.result import AuthorizationResult, ResultType


@pytest.mark.parametrize(
    "factory, glyph",
    [
        (AuthorizationResult.success, ":ok:"),
        (AuthorizationResult.warning, ":warning:"),
        (AuthorizationResult.failure, ":x:"),
    ],
)
def test_render_prefixes_reason_with_glyph(factory, glyph):
    result = factory("Because reasons")
    assert result.render() == f"{glyph} Because reasons"
    assert "Because reasons" in str(result)


def test_render_is_pure():
    a = AuthorizationResult.warning("same")
    b = AuthorizationResult.warning("same")
    assert a.render() == b.render() == a.render()
    assert a == b


def test_kind_helpers():
    assert AuthorizationResult.success("x").is_success
    assert AuthorizationResult.warning("x").is_warning
    assert AuthorizationResult.failure("x").is_failure
    assert not AuthorizationResult.failure("x").is_success


def test_result_is_immutable():
    result = AuthorizationResult.success("ok")
    with pytest.raises(dataclasses.FrozenInstanceError):
        result.type = ResultType.FAILURE  # type: ignore[misc]


def test_unrecognized_kind_renders_as_absent():
    result = AuthorizationResult("bogus", "reason")  # type: ignore[arg-type]
    assert result.render() is None
    assert str(result) == ""


def test_reason_must_be_text():
    with pytest.raises(TypeError):
        AuthorizationResult.success(None)  # type: ignore[arg-type]
