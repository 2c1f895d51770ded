"""
Forecast Month Resolver
Parses the server's "M/D/YYYY" forecast month and derives the analysis month.

Recap, reconciliation and pipeline math views always report on the month
BEFORE the current forecast month: advancing to March closes out February.
"""

import logging
from dataclasses import dataclass

from forecast_formatting import MONTH_ABBREVIATIONS

logger = logging.getLogger(__name__)

MONTH_NAMES = ['January', 'February', 'March', 'April', 'May', 'June',
               'July', 'August', 'September', 'October', 'November', 'December']


@dataclass(frozen=True, order=True)
class ForecastMonth:
    """A calendar month. The day of the source date is not kept."""

    year: int
    month: int

    def __post_init__(self):
        if not 1 <= self.month <= 12:
            raise ValueError(f"Month must be 1-12, got {self.month}")

    @property
    def name(self):
        return MONTH_NAMES[self.month - 1]

    @property
    def abbreviation(self):
        return MONTH_ABBREVIATIONS[self.month - 1]

    def previous(self):
        return previous_month(self)

    def __str__(self):
        return f"{self.name} {self.year}"


def parse_forecast_month(text):
    """
    Parse "M/D/YYYY" (e.g. "2/1/2025") into a ForecastMonth.
    Raises ValueError when the string is not three numeric parts.
    """
    if not isinstance(text, str):
        raise ValueError(f"Could not parse forecast month string: {text!r}")

    parts = text.strip().split('/')
    if len(parts) != 3:
        raise ValueError(f"Could not parse forecast month string: {text!r}")

    try:
        month, _day, year = (int(part) for part in parts)
    except ValueError:
        raise ValueError(f"Could not parse forecast month string: {text!r}") from None

    return ForecastMonth(year=year, month=month)


def previous_month(forecast_month):
    """January rolls back to December of the prior year"""
    if forecast_month.month == 1:
        return ForecastMonth(year=forecast_month.year - 1, month=12)
    return ForecastMonth(year=forecast_month.year, month=forecast_month.month - 1)


# Until the server answers, views behave as if February 2025 is current
DEFAULT_FORECAST_MONTH = ForecastMonth(year=2025, month=2)


class MonthResolver:
    """
    Tracks the current forecast month for one view.

    update() swallows unparseable input: the failure is logged and the
    previous month is retained so the view keeps showing consistent data.
    """

    def __init__(self, initial=DEFAULT_FORECAST_MONTH, owner='forecast'):
        self.current = initial
        self.source_text = ''
        self.owner = owner

    def update(self, text):
        """Apply a server month string. Returns True when month/year changed."""
        if not text or text == self.source_text:
            return False

        self.source_text = text
        try:
            parsed = parse_forecast_month(text)
        except ValueError:
            logger.warning("%s: could not parse forecast month string %r", self.owner, text)
            return False

        if parsed == self.current:
            return False

        logger.info("%s: forecast month updated to %s", self.owner, parsed)
        self.current = parsed
        return True

    @property
    def analysis_month(self):
        return previous_month(self.current)
