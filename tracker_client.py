#!/usr/bin/env python3
"""
Fitness Tracker client
HTTP gateway to the entries API plus the application state a frontend
works against: load entries, log activities/weights, summarize a month
"""

import os
from datetime import datetime, timezone

import requests
from dateutil import tz as dateutil_tz

from aggregation import EntryLog, resolve_month
from entry_parser import ParseFailure, StorageError, ValidationError, parse_activity, parse_weight
from models import ACTIVITY, WEIGHT, entry_from_json

API_BASE_URL = os.getenv('FITNESS_API_URL', 'http://localhost:3000/api')
DEFAULT_TIMEOUT = 10


class EntryStoreClient:
    """Entry Store Gateway over HTTP (GET/POST /api/entries)"""

    def __init__(self, base_url=API_BASE_URL, session=None, timeout=DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout

    def list_entries(self):
        """All entries from the server (newest first)"""
        data = self._request('GET', '/entries')
        if not isinstance(data, list):
            raise StorageError("Unexpected response from server: expected a list of entries")
        return [entry_from_json(item) for item in data]

    def create_entry(self, kind, value, details=None):
        """Create an entry; the server assigns id and timestamp"""
        payload = {'type': kind, 'value': value}
        if details is not None:
            payload['details'] = details.to_json()
        return entry_from_json(self._request('POST', '/entries', json=payload))

    def _request(self, method, path, **kwargs):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise StorageError(f"Could not reach {url}: {e}") from e

        if response.status_code == 400:
            raise ValidationError(_error_message(response))
        if not response.ok:
            raise StorageError(f"HTTP error! status: {response.status_code} - {_error_message(response)}")
        try:
            return response.json()
        except ValueError as e:
            raise StorageError(f"Invalid JSON from {url}") from e


def _error_message(response):
    try:
        return response.json().get('message', response.reason)
    except (ValueError, AttributeError):
        return response.reason or 'Unknown error'


class FitnessTracker:
    """
    Application state for one user session

    Owns the entry log. Writes go to the server first; the log only changes
    after the server confirms, so a failed write leaves it as it was.
    """

    def __init__(self, client, tz=None, exercises=('pushups', 'squats')):
        self.client = client
        self.tz = tz or dateutil_tz.tzlocal()
        self.exercises = tuple(exercises)
        self.log = EntryLog()

    @property
    def entries(self):
        return self.log.entries

    def refresh(self):
        """Reload every entry from the server"""
        self.log.replace(self.client.list_entries())
        return self.log.entries

    def log_activity(self, text):
        """Parse and submit "Name - Reps"; nothing is sent when it doesn't parse"""
        text = (text or '').strip()
        if not text:
            raise ValidationError("Please enter an activity (e.g., Pushups - 40).")
        details = parse_activity(text)
        if details is None:
            raise ParseFailure(f"Could not read {text!r}; use the form 'Pushups - 40'.")

        entry = self.client.create_entry(ACTIVITY, text, details)
        self.log.append(entry)
        return entry

    def log_weight(self, text):
        """Validate and submit a weight measurement"""
        weight = parse_weight(text)
        entry = self.client.create_entry(WEIGHT, weight)
        self.log.append(entry)
        return entry

    def summary(self, month='current', now=None):
        """Dashboard values for the selected month ('current' or YYYY-MM)"""
        now = now or datetime.now(timezone.utc)
        year, month_number = resolve_month(month, now, self.tz)
        return self.log.summarize(now, self.tz, year=year, month=month_number, exercises=self.exercises)
