#!/usr/bin/env python3
"""
Entry Parser
Turns free-text activity input ("Pushups - 40") and weight input into
structured values, and validates entry payloads before they are stored
"""

import math
import re
from typing import Any, Optional, Tuple

from models import ACTIVITY, ENTRY_KINDS, WEIGHT, ParsedDetail, detail_from_json


class ValidationError(ValueError):
    """Bad entry type, non-numeric weight, empty activity text"""


class InvalidNumber(ValidationError):
    """Text that is not a finite decimal number"""


class ParseFailure(ValidationError):
    """Activity text without a recognizable "name - number" shape"""


class StorageError(Exception):
    """Entry store unavailable or a read/write failed"""


# Leading unsigned integer; trailing text ("40 reps") is ignored
REPS_PATTERN = re.compile(r'^([0-9]+)')

# Plain decimal: optional sign, digits with an optional fraction, optional exponent
DECIMAL_PATTERN = re.compile(r'^[+-]?([0-9]+(\.[0-9]*)?|\.[0-9]+)([eE][+-]?[0-9]+)?$')


def parse_activity(text: str) -> Optional[ParsedDetail]:
    """
    Parse an activity line into (name, reps)

    Formats supported:
    - "Pushups - 40"
    - "squats-25"
    - "Push ups - 30 reps"

    Splits on the first '-'. Returns None when there is no separator, the
    name is empty, or the reps part does not start with a number.
    """
    if not isinstance(text, str):
        return None

    if '-' not in text:
        return None

    name_part, reps_part = text.split('-', 1)
    name = name_part.strip().lower()
    if not name:
        return None

    reps_match = REPS_PATTERN.match(reps_part.strip())
    if not reps_match:
        return None

    return ParsedDetail(name=name, reps=int(reps_match.group(1)))


def parse_weight(text: Any) -> float:
    """
    Parse a weight measurement

    Raises InvalidNumber unless the input is a finite decimal number.
    Negative and zero weights are accepted.
    """
    if isinstance(text, bool):
        raise InvalidNumber("Weight value must be a number.")
    if isinstance(text, (int, float)):
        value = float(text)
    else:
        if not isinstance(text, str) or not text.strip():
            raise InvalidNumber("Weight value must be a number.")
        # float() alone would also take "7_2", "nan" and non-ASCII digits
        if not DECIMAL_PATTERN.match(text.strip()):
            raise InvalidNumber(f"Weight value must be a number, got {text!r}.")
        value = float(text.strip())
    if not math.isfinite(value):
        raise InvalidNumber("Weight value must be a finite number.")
    return value


def validate_entry_payload(data: Any) -> Tuple[str, Any, Optional[ParsedDetail]]:
    """
    Validate a create-entry request body

    Returns (kind, value, details) ready for the store. Activities sent
    without details get them from parse_activity; weights never carry details.
    """
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object.")

    kind = data.get('type')
    value = data.get('value')

    if not kind or value is None or value == '':
        raise ValidationError("Missing required fields: type and value.")
    if kind not in ENTRY_KINDS:
        raise ValidationError("Invalid entry type.")

    if kind == WEIGHT:
        return WEIGHT, parse_weight(value), None

    # Activity
    if not isinstance(value, str):
        raise ValidationError("Activity value must be a string.")
    text = value.strip()
    if not text:
        raise ValidationError("Activity value must not be empty.")

    raw_details = data.get('details')
    if raw_details:
        try:
            details = detail_from_json(raw_details)
        except ValueError as e:
            raise ValidationError(str(e))
    else:
        details = parse_activity(text)

    return ACTIVITY, text, details


if __name__ == '__main__':
    # Test parser
    test_lines = [
        "Pushups - 40",
        "squats-25",
        "Push ups - 30 reps",
        "noseparator",
        "Squats - abc",
        " - 10",
    ]

    print("Testing parser:")
    for line in test_lines:
        parsed = parse_activity(line)
        print(f"\n{line!r}")
        if parsed:
            print(f"  Exercise: {parsed.name}")
            print(f"  Reps: {parsed.reps}")
        else:
            print("  (not parsed)")
