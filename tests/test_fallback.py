import pytest
from sqlalchemy.exc import OperationalError

from career_advisor.core.errors import AppError
from career_advisor.core.fallback import (
    FALLBACK,
    PRIMARY,
    Sourced,
    allows_fallback,
    log_store_failure_once,
    settled,
    store_failed,
)
from career_advisor.llm.parsing import ResponseParseError, parse_json_object, strip_code_fences


def test_store_failure_is_logged_once_per_context():
    assert log_store_failure_once("Skills API") is True
    assert log_store_failure_once("Skills API") is False
    assert log_store_failure_once("Colleges API") is True


def test_settled_degrades_failed_read(db):
    def broken():
        raise OperationalError("SELECT 1", {}, Exception("permission denied"))

    assert settled(db, "Broken read", broken, []) == []
    assert settled(db, "Working read", lambda: [1, 2], []) == [1, 2]


def test_fallback_policy_per_endpoint():
    assert allows_fallback("colleges")
    assert allows_fallback("saved_colleges")
    assert not allows_fallback("dashboard")
    assert not allows_fallback("checkout")
    assert not allows_fallback("unknown-endpoint")


def test_store_failed_applies_endpoint_policy(db):
    error = OperationalError("INSERT", {}, Exception("permission denied"))

    assert store_failed(db, "saved_colleges", error) is None
    with pytest.raises(AppError, match="Database query failed"):
        store_failed(db, "dashboard", error)


def test_sourced_marks_fallback():
    assert Sourced(FALLBACK, []).is_fallback
    assert not Sourced(PRIMARY, []).is_fallback


def test_code_fences_are_stripped():
    assert strip_code_fences('```json\n{"a": 1}\n```') == '{"a": 1}'
    assert parse_json_object('```\n{"a": 1}\n```') == {"a": 1}


def test_object_embedded_in_prose_is_found():
    assert parse_json_object('Here you go: {"title": "x"} Enjoy!') == {"title": "x"}


def test_parse_error_keeps_raw_text():
    with pytest.raises(ResponseParseError) as info:
        parse_json_object("not json at all")
    assert info.value.raw_text == "not json at all"

    with pytest.raises(ResponseParseError):
        parse_json_object("[1, 2, 3]")
