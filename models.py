#!/usr/bin/env python3
"""
Entry models for the fitness tracker
An entry is either an activity ("Pushups - 40") or a weight measurement
"""

import math
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Union

from dateutil import parser as date_parser

ACTIVITY = 'activity'
WEIGHT = 'weight'
ENTRY_KINDS = (ACTIVITY, WEIGHT)


@dataclass(frozen=True)
class ParsedDetail:
    """Exercise name and repetition count extracted from activity text"""

    name: str
    reps: int

    def to_json(self) -> Dict[str, Any]:
        return {'name': self.name, 'reps': self.reps}


@dataclass(frozen=True)
class ActivityEntry:
    """A logged activity; details is None when the text did not parse"""

    id: str
    timestamp: datetime
    text: str
    details: Optional[ParsedDetail] = None

    kind = ACTIVITY

    def to_json(self) -> Dict[str, Any]:
        data = {
            '_id': self.id,
            'timestamp': format_timestamp(self.timestamp),
            'type': ACTIVITY,
            'value': self.text,
        }
        if self.details is not None:
            data['details'] = self.details.to_json()
        return data


@dataclass(frozen=True)
class WeightEntry:
    """A body weight measurement (no unit conversion)"""

    id: str
    timestamp: datetime
    weight: float

    kind = WEIGHT

    def to_json(self) -> Dict[str, Any]:
        return {
            '_id': self.id,
            'timestamp': format_timestamp(self.timestamp),
            'type': WEIGHT,
            'value': self.weight,
        }


Entry = Union[ActivityEntry, WeightEntry]


def ensure_utc(value: datetime) -> datetime:
    """Naive datetimes are treated as UTC"""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return ensure_utc(value).isoformat(timespec='milliseconds')


def parse_timestamp(value: Any) -> datetime:
    """Parse an ISO-8601 string (or an export's {"$date": ...} wrapper)"""
    if isinstance(value, dict) and '$date' in value:
        value = value['$date']
    if isinstance(value, datetime):
        return ensure_utc(value)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        # Epoch milliseconds
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Invalid timestamp: {value!r}")
    return ensure_utc(date_parser.isoparse(value.strip()))


def entry_from_json(data: Dict[str, Any]) -> Entry:
    """
    Build an entry from its JSON wire shape

    Accepts the API shape and the {"$oid": ...} / {"$date": ...} wrappers
    found in database exports. Raises ValueError on anything malformed.
    """
    if not isinstance(data, dict):
        raise ValueError("Entry must be a JSON object")

    entry_id = data.get('_id', data.get('id'))
    if isinstance(entry_id, dict) and '$oid' in entry_id:
        entry_id = entry_id['$oid']
    if entry_id is None or str(entry_id).strip() == '':
        raise ValueError("Entry is missing an id")

    timestamp = parse_timestamp(data.get('timestamp'))
    kind = data.get('type')
    value = data.get('value')

    if kind == WEIGHT:
        if isinstance(value, bool):
            raise ValueError("Weight value must be a number")
        try:
            weight = float(value)
        except (TypeError, ValueError):
            raise ValueError(f"Weight value must be a number, got {value!r}")
        if not math.isfinite(weight):
            raise ValueError("Weight value must be a finite number")
        return WeightEntry(id=str(entry_id), timestamp=timestamp, weight=weight)

    if kind == ACTIVITY:
        if not isinstance(value, str) or not value.strip():
            raise ValueError("Activity value must be non-empty text")
        details = None
        raw_details = data.get('details')
        if raw_details:
            details = detail_from_json(raw_details)
        return ActivityEntry(id=str(entry_id), timestamp=timestamp, text=value, details=details)

    raise ValueError(f"Invalid entry type: {kind!r}")


def detail_from_json(data: Any) -> ParsedDetail:
    """Validate a {"name", "reps"} object"""
    if not isinstance(data, dict):
        raise ValueError("Details must be an object with name and reps")
    name = data.get('name')
    reps = data.get('reps')
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Details name must be non-empty text")
    # Whole floats (40.0) come through JSON round-trips from some clients
    if isinstance(reps, float) and reps.is_integer():
        reps = int(reps)
    if isinstance(reps, bool) or not isinstance(reps, int) or reps < 0:
        raise ValueError("Details reps must be a non-negative integer")
    return ParsedDetail(name=name.strip().lower(), reps=reps)
