"""
Schedule Grid Module
Six-version view of one schedule record (Month0__c..Month5__c,
Amount0__c..Amount5__c) with version-over-version deltas and debounced
auto-save of edited cells.
"""

import logging
import re
import threading
from dataclasses import replace

from forecast_errors import ForecastError
from forecast_formatting import MONTH_ABBREVIATIONS, delta_class, format_currency, format_signed_number, to_number
from forecast_models import SCHEDULE_VERSIONS
from forecast_views import Toast

logger = logging.getLogger(__name__)

AUTO_SAVE_DELAY_SECONDS = 1.0
FIELD_PATTERN = re.compile(r'^(Month|Amount)([0-5])__c$')


def format_schedule_month(date_string):
    """
    "3/15/25" -> "Mar-25". Two-digit years below 50 are 20xx, others 19xx.
    Blank gives "", anything unparseable is returned unchanged.
    """
    if date_string is None or not str(date_string).strip():
        return ''

    parts = str(date_string).split('/')
    if len(parts) != 3:
        return date_string

    month_part, _day_part, year_part = parts
    try:
        month = int(month_part)
        year = int(year_part)
    except ValueError:
        return date_string

    if month < 1 or month > 12:
        return date_string

    if len(year_part.strip()) <= 2:
        year += 2000 if year < 50 else 1900

    return f"{MONTH_ABBREVIATIONS[month - 1]}-{str(year)[-2:]}"


def schedule_deltas(amounts):
    """amounts[i] - amounts[i+1] for each adjacent pair of versions"""
    values = [to_number(amount) or 0 for amount in amounts]
    return [values[i] - values[i + 1] for i in range(len(values) - 1)]


def schedule_rows(record):
    """One row per version; the oldest version has no delta"""
    deltas = schedule_deltas(record.amounts)
    rows = []
    for i in range(SCHEDULE_VERSIONS):
        delta = deltas[i] if i < len(deltas) else None
        rows.append({
            'Version': i,
            'Month': format_schedule_month(record.months[i]),
            'Amount': format_currency(record.amounts[i]),
            'Delta': format_signed_number(delta) if delta is not None else '',
            'delta_class': delta_class(delta, threshold=0) if delta else 'weak',
        })
    return rows


def apply_field(record, field_name, value):
    """Return a copy of record with one Month/Amount field changed"""
    match = FIELD_PATTERN.match(field_name or '')
    if not match:
        raise ValueError(f"Unknown schedule field: {field_name!r}")

    kind, index = match.group(1), int(match.group(2))
    if kind == 'Month':
        months = list(record.months)
        months[index] = '' if value is None else str(value)
        return replace(record, months=tuple(months))

    if isinstance(value, str):
        value = value.replace(',', '')
    amounts = list(record.amounts)
    amounts[index] = to_number(value) or 0.0
    return replace(record, amounts=tuple(amounts))


class ScheduleEditor:
    """
    Holds the record being edited. Every set_field() restarts a timer and
    the record is saved once edits pause for `delay` seconds.
    """

    def __init__(self, api, record, delay=AUTO_SAVE_DELAY_SECONDS):
        self.api = api
        self.record = record
        self.delay = delay
        self.last_toast = None
        self._timer = None
        self._lock = threading.Lock()

    @property
    def pending(self):
        return self._timer is not None

    def set_field(self, field_name, value):
        self.record = apply_field(self.record, field_name, value)
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._timer = threading.Timer(self.delay, self.save)
            self._timer.daemon = True
            self._timer.start()

    def flush(self):
        """Save now instead of waiting for the timer"""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
        return self.save()

    def cancel(self):
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    def save(self):
        with self._lock:
            self._timer = None
        try:
            self.api.update_schedule_record(self.record)
        except ForecastError as e:
            logger.error("Auto-save of schedule %s failed: %s", self.record.id, e)
            self.last_toast = Toast('Error', 'Failed to save changes', 'error')
            return False

        logger.info("Schedule %s auto-saved", self.record.id)
        self.last_toast = None
        return True
