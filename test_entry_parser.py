from __future__ import annotations

import pytest

from entry_parser import (
    InvalidNumber,
    ValidationError,
    parse_activity,
    parse_weight,
    validate_entry_payload,
)
from models import ParsedDetail


def test_parse_activity_name_and_reps() -> None:
    assert parse_activity("Pushups - 40") == ParsedDetail(name="pushups", reps=40)


def test_parse_activity_without_spaces() -> None:
    assert parse_activity("Squats-25") == ParsedDetail(name="squats", reps=25)


def test_parse_activity_keeps_internal_whitespace() -> None:
    assert parse_activity("  Push Ups  - 30") == ParsedDetail(name="push ups", reps=30)


def test_parse_activity_ignores_trailing_text_after_number() -> None:
    assert parse_activity("Pushups - 40 reps") == ParsedDetail(name="pushups", reps=40)


def test_parse_activity_splits_on_first_dash() -> None:
    assert parse_activity("Pull - 10 - 5") == ParsedDetail(name="pull", reps=10)
    assert parse_activity("Pull-ups - 10") is None


@pytest.mark.parametrize(
    "text",
    ["noseparator", "Squats - abc", " - 10", "-10", "Pushups - ", "Pushups - -5", ""],
)
def test_parse_activity_failures(text: str) -> None:
    assert parse_activity(text) is None


def test_parse_activity_requires_ascii_digits() -> None:
    assert parse_activity("Pushups - \u0664\u0660") is None
    assert parse_activity("Pushups - \uff14\uff10") is None


def test_parse_activity_non_string() -> None:
    assert parse_activity(None) is None  # type: ignore[arg-type]


def test_parse_weight_accepts_decimals_and_negatives() -> None:
    assert parse_weight("72.5") == 72.5
    assert parse_weight(" 70 ") == 70.0
    assert parse_weight("-3") == -3.0
    assert parse_weight(0) == 0.0
    assert parse_weight(81.2) == 81.2
    assert parse_weight("+72.") == 72.0
    assert parse_weight(".5") == 0.5
    assert parse_weight("7.2e1") == 72.0


@pytest.mark.parametrize(
    "value", ["abc", "", "   ", "nan", "inf", "72kg", "7_2", "\u0667\u0662", "1e999", None, True]
)
def test_parse_weight_rejects_non_numbers(value: object) -> None:
    with pytest.raises(InvalidNumber):
        parse_weight(value)


def test_invalid_number_is_a_validation_error() -> None:
    with pytest.raises(ValidationError):
        parse_weight("heavy")


def test_validate_weight_payload_converts_numeric_string() -> None:
    kind, value, details = validate_entry_payload(
        {"type": "weight", "value": "72.5", "details": {"name": "x", "reps": 1}}
    )
    assert kind == "weight"
    assert value == 72.5
    assert details is None


def test_validate_activity_payload_derives_details() -> None:
    kind, value, details = validate_entry_payload({"type": "activity", "value": " Pushups - 40 "})
    assert kind == "activity"
    assert value == "Pushups - 40"
    assert details == ParsedDetail(name="pushups", reps=40)


def test_validate_activity_payload_unparsed_text_has_no_details() -> None:
    _, value, details = validate_entry_payload({"type": "activity", "value": "went for a walk"})
    assert value == "went for a walk"
    assert details is None


def test_validate_activity_payload_uses_given_details() -> None:
    _, _, details = validate_entry_payload(
        {"type": "activity", "value": "Pushups - 40", "details": {"name": " PushUps ", "reps": 40}}
    )
    assert details == ParsedDetail(name="pushups", reps=40)


@pytest.mark.parametrize(
    "payload",
    [
        None,
        [],
        {},
        {"type": "activity"},
        {"value": "Pushups - 40"},
        {"type": "cardio", "value": "run"},
        {"type": "weight", "value": "abc"},
        {"type": "activity", "value": ""},
        {"type": "activity", "value": "   "},
        {"type": "activity", "value": 42},
        {"type": "activity", "value": "Pushups - 4", "details": {"name": "pushups", "reps": -4}},
        {"type": "activity", "value": "Pushups - 4", "details": {"name": "", "reps": 4}},
        {"type": "activity", "value": "Pushups - 4", "details": "pushups"},
    ],
)
def test_validate_payload_rejects(payload: object) -> None:
    with pytest.raises(ValidationError):
        validate_entry_payload(payload)
