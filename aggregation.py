#!/usr/bin/env python3
"""
Aggregation Engine
Computes dashboard values from the full entry list: today's activities,
current weight, monthly totals, personal records and the weekly weight chart

Every function takes the reference instant and timezone explicitly.
"""

import re
from dataclasses import dataclass, field
from datetime import MAXYEAR, MINYEAR, date, datetime, time, timedelta, tzinfo
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from entry_parser import ValidationError
from models import ActivityEntry, Entry, WeightEntry

CURRENT_MONTH = 'current'
MONTH_KEY_PATTERN = re.compile(r'^([0-9]{4})-([0-9]{1,2})$')


@dataclass(frozen=True)
class WeeklyWeight:
    """One chart point: the last weight recorded in an ISO week"""

    iso_year: int
    iso_week: int
    week_start: date
    weight: float
    total: float
    count: int

    @property
    def label(self) -> str:
        return self.week_start.isoformat()

    @property
    def average(self) -> float:
        return self.total / self.count

    def to_json(self) -> Dict[str, Any]:
        return {
            'isoYear': self.iso_year,
            'isoWeek': self.iso_week,
            'label': self.label,
            'weight': self.weight,
            'average': round(self.average, 2),
            'count': self.count,
        }


@dataclass(frozen=True)
class MonthOption:
    key: str
    label: str
    year: int
    month: int

    def to_json(self) -> Dict[str, Any]:
        return {'key': self.key, 'label': self.label, 'year': self.year, 'month': self.month}


def sort_chronologically(entries: Iterable[Entry]) -> List[Entry]:
    """Stable ascending sort by timestamp"""
    return sorted(entries, key=lambda entry: entry.timestamp)


def local_day_bounds(now: datetime, tz: tzinfo) -> Tuple[datetime, datetime]:
    """[start of the local day containing now, start of the next local day)"""
    today = now.astimezone(tz).date()
    start = datetime.combine(today, time.min, tzinfo=tz)
    end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz)
    return start, end


def in_month(entry: Entry, year: int, month: int, tz: tzinfo) -> bool:
    local = entry.timestamp.astimezone(tz)
    return local.year == year and local.month == month


def todays_activities(entries: Sequence[Entry], now: datetime, tz: tzinfo) -> List[ActivityEntry]:
    """
    Activities logged during the local day of `now`, in input order

    Unparsed activities are included; this list is for display.
    """
    start, end = local_day_bounds(now, tz)
    return [
        entry for entry in entries
        if isinstance(entry, ActivityEntry) and start <= entry.timestamp < end
    ]


def has_activity_today(entries: Sequence[Entry], now: datetime, tz: tzinfo) -> bool:
    return bool(todays_activities(entries, now, tz))


def avatar_mood(entries: Sequence[Entry], now: datetime, tz: tzinfo) -> str:
    """The avatar is happy once anything has been logged today"""
    return 'happy' if has_activity_today(entries, now, tz) else 'unhappy'


def current_weight(entries: Sequence[Entry]) -> Optional[WeightEntry]:
    """Latest weight entry; identical timestamps resolve to the last one in input order"""
    latest = None
    for entry in sort_chronologically(entries):
        if isinstance(entry, WeightEntry):
            latest = entry
    return latest


def format_weight(entry: Optional[WeightEntry]) -> str:
    if entry is None:
        return '--'
    return f"{entry.weight:.1f}"


def monthly_totals(
    entries: Sequence[Entry],
    year: int,
    month: int,
    tz: tzinfo,
    exercises: Sequence[str] = (),
) -> Dict[str, int]:
    """
    Sum reps per exercise name over parsed activities in a local calendar month

    Names in `exercises` are always reported, with 0 when nothing was logged.
    """
    totals: Dict[str, int] = {name: 0 for name in exercises}
    for entry in entries:
        if not isinstance(entry, ActivityEntry) or entry.details is None:
            continue
        if not in_month(entry, year, month, tz):
            continue
        name = entry.details.name
        totals[name] = totals.get(name, 0) + entry.details.reps
    return totals


def personal_records(entries: Sequence[Entry]) -> Dict[str, int]:
    """All-time max reps per exercise; exercises never logged are absent"""
    records: Dict[str, int] = {}
    for entry in entries:
        if not isinstance(entry, ActivityEntry) or entry.details is None:
            continue
        name = entry.details.name
        if name not in records or entry.details.reps > records[name]:
            records[name] = entry.details.reps
    return records


def iso_week_start(day: date) -> date:
    """Monday of the ISO week containing day"""
    return day - timedelta(days=day.isoweekday() - 1)


def weekly_weight_series(
    entries: Sequence[Entry],
    year: int,
    month: int,
    tz: tzinfo,
) -> List[WeeklyWeight]:
    """
    Weight entries of a local month bucketed by ISO week

    Each point carries the last weight recorded in its week (not the
    average), ordered by (ISO year, ISO week).
    """
    buckets: Dict[Tuple[int, int], Dict[str, Any]] = {}
    for entry in sort_chronologically(entries):
        if not isinstance(entry, WeightEntry) or not in_month(entry, year, month, tz):
            continue
        local_day = entry.timestamp.astimezone(tz).date()
        iso_year, iso_week, _ = local_day.isocalendar()
        bucket = buckets.setdefault((iso_year, iso_week), {
            'total': 0.0,
            'count': 0,
            'last': None,
            'week_start': iso_week_start(local_day),
        })
        bucket['total'] += entry.weight
        bucket['count'] += 1
        bucket['last'] = entry.weight

    return [
        WeeklyWeight(
            iso_year=key[0],
            iso_week=key[1],
            week_start=bucket['week_start'],
            weight=bucket['last'],
            total=bucket['total'],
            count=bucket['count'],
        )
        for key, bucket in sorted(buckets.items())
        if bucket['count'] > 0
    ]


def month_label(year: int, month: int) -> str:
    return date(year, month, 1).strftime('%B %Y')


def month_roster(entries: Sequence[Entry], now: datetime, tz: tzinfo) -> List[MonthOption]:
    """The "This Month" option first, then every month with entries, newest first"""
    local_now = now.astimezone(tz)
    roster = [MonthOption(CURRENT_MONTH, 'This Month', local_now.year, local_now.month)]

    months = set()
    for entry in entries:
        local = entry.timestamp.astimezone(tz)
        months.add((local.year, local.month))

    for year, month in sorted(months, reverse=True):
        roster.append(MonthOption(f"{year:04d}-{month:02d}", month_label(year, month), year, month))
    return roster


def resolve_month(key: Optional[str], now: datetime, tz: tzinfo) -> Tuple[int, int]:
    """Turn a month selector value ("current" or "YYYY-MM") into (year, month)"""
    if not key or key == CURRENT_MONTH:
        local_now = now.astimezone(tz)
        return local_now.year, local_now.month

    match = MONTH_KEY_PATTERN.match(key.strip())
    if not match:
        raise ValidationError(f"Invalid month: {key!r}. Use 'current' or YYYY-MM.")
    year, month = int(match.group(1)), int(match.group(2))
    if not MINYEAR <= year <= MAXYEAR:
        raise ValidationError(f"Invalid month: {key!r}. Year must be {MINYEAR:04d}-{MAXYEAR}.")
    if not 1 <= month <= 12:
        raise ValidationError(f"Invalid month: {key!r}. Month must be 01-12.")
    return year, month


@dataclass
class DashboardSummary:
    year: int
    month: int
    todays_activities: List[ActivityEntry]
    current_weight: Optional[WeightEntry]
    monthly_totals: Dict[str, int]
    personal_records: Dict[str, int]
    weekly_weights: List[WeeklyWeight]
    months: List[MonthOption]
    avatar_mood: str

    def to_json(self) -> Dict[str, Any]:
        return {
            'month': {'year': self.year, 'month': self.month, 'label': month_label(self.year, self.month)},
            'todaysActivities': [entry.to_json() for entry in self.todays_activities],
            'currentWeight': self.current_weight.weight if self.current_weight else None,
            'currentWeightDisplay': format_weight(self.current_weight),
            'monthlyTotals': self.monthly_totals,
            'personalRecords': self.personal_records,
            'weightChart': {
                'labels': [point.label for point in self.weekly_weights],
                'points': [point.to_json() for point in self.weekly_weights],
            },
            'months': [option.to_json() for option in self.months],
            'avatar': {'mood': self.avatar_mood},
        }


@dataclass
class EntryLog:
    """
    In-memory working set of entries, newest first

    Owned by whoever loads it (a request handler or a FitnessTracker);
    refreshed with replace() and grown with append() after a confirmed write.
    """

    _entries: List[Entry] = field(default_factory=list)

    @property
    def entries(self) -> List[Entry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def replace(self, entries: Iterable[Entry]) -> None:
        self._entries = sorted(entries, key=lambda entry: entry.timestamp, reverse=True)

    def append(self, entry: Entry) -> None:
        self._entries.insert(0, entry)

    def summarize(
        self,
        now: datetime,
        tz: tzinfo,
        year: Optional[int] = None,
        month: Optional[int] = None,
        exercises: Sequence[str] = (),
    ) -> DashboardSummary:
        if year is None or month is None:
            year, month = resolve_month(CURRENT_MONTH, now, tz)

        # Today's list reads oldest to newest
        chronological = sort_chronologically(self._entries)
        return DashboardSummary(
            year=year,
            month=month,
            todays_activities=todays_activities(chronological, now, tz),
            current_weight=current_weight(chronological),
            monthly_totals=monthly_totals(chronological, year, month, tz, exercises),
            personal_records=personal_records(chronological),
            weekly_weights=weekly_weight_series(chronological, year, month, tz),
            months=month_roster(chronological, now, tz),
            avatar_mood=avatar_mood(chronological, now, tz),
        )
