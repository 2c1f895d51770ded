"""
Forecast Formatting Module
Shared currency, delta and month-label formatting used by every dashboard view
"""

import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

# ==========================================
# FORMATTING CONFIGURATION
# ==========================================
MATERIALITY_THRESHOLD = 10000  # Deltas below this are never colored
MINUS_SIGN = '−'  # Typographic minus used by signed amounts

MONTH_ABBREVIATIONS = ['Jan', 'Feb', 'Mar', 'Apr', 'May', 'Jun',
                       'Jul', 'Aug', 'Sep', 'Oct', 'Nov', 'Dec']

DELTA_SUCCESS = 'success'
DELTA_ERROR = 'error'
DELTA_NEUTRAL = 'neutral'


def to_number(value):
    """Return value as a float, or None for null/NaN/non-numeric input"""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _quantize(value, places):
    try:
        return Decimal(str(value)).quantize(Decimal(places), rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal(0)


def format_currency(amount):
    """
    Whole-dollar USD string: 1234.5 -> "$1,235", -1234.5 -> "-$1,235"
    None, NaN and anything rounding to zero render as "$0"
    """
    number = to_number(amount)
    if number is None:
        return '$0'

    whole = int(_quantize(number, '1'))
    if whole == 0:
        return '$0'
    if whole < 0:
        return f"-${-whole:,}"
    return f"${whole:,}"


def format_currency_with_sign(amount):
    """
    Signed whole-dollar USD string: "+$1,235" / "−$1,235"
    Zero is never signed.
    """
    number = to_number(amount)
    if number is None:
        return '$0'

    whole = int(_quantize(number, '1'))
    if whole == 0:
        return '$0'

    magnitude = format_currency(abs(whole))
    return ('+' if whole > 0 else MINUS_SIGN) + magnitude


def format_currency_cents(amount):
    """USD with cents, used for opportunity totals: "$1,234.50" """
    number = to_number(amount) or 0
    value = _quantize(number, '0.01')
    if value < 0:
        return f"-${-value:,.2f}"
    return f"${value:,.2f}"


def format_signed_number(delta):
    """Plain signed number for grid deltas: "+1,500", "-250.5", zero -> "—" """
    number = to_number(delta) or 0
    if number == 0:
        return '—'

    magnitude = f"{abs(number):,.3f}".rstrip('0').rstrip('.')
    return ('+' if number > 0 else '-') + magnitude


def delta_class(delta, baseline=None, threshold=MATERIALITY_THRESHOLD):
    """
    Color class for a month-over-month change.

    A change is neutral when it is measured against a zero baseline or when
    its size is under the materiality threshold; otherwise positive changes
    are 'success' and negative ones 'error'.
    """
    number = to_number(delta) or 0
    if baseline is not None and (to_number(baseline) or 0) == 0:
        return DELTA_NEUTRAL
    if abs(number) < threshold:
        return DELTA_NEUTRAL
    if number > 0:
        return DELTA_SUCCESS
    if number < 0:
        return DELTA_ERROR
    return DELTA_NEUTRAL


def sign_class(amount):
    """'positive' for zero and up, 'negative' below zero"""
    return 'positive' if (to_number(amount) or 0) >= 0 else 'negative'


def _forward_impact(item):
    return item.forward_impact


def sort_by_impact(items, impact=None):
    """
    Sort items by descending absolute impact.
    Ties keep their source order.
    """
    if impact is None:
        impact = _forward_impact
    return sorted(items, key=lambda item: abs(to_number(impact(item)) or 0), reverse=True)


def create_short_label(month_year):
    """Convert "1/2025" to "Jan'25"; anything else is returned unchanged"""
    if not isinstance(month_year, str):
        return month_year

    parts = month_year.split('/')
    if len(parts) != 2:
        return month_year

    try:
        month_num = int(parts[0])
    except ValueError:
        return month_year

    if month_num < 1 or month_num > 12:
        return month_year

    return MONTH_ABBREVIATIONS[month_num - 1] + "'" + parts[1][2:]


def quarter_totals(monthly_amounts):
    """
    Sum a January-first 12 month series into [Q1, Q2, Q3, Q4]
    Missing or null months count as zero.
    """
    values = [to_number(amount) or 0 for amount in list(monthly_amounts or [])[:12]]
    values += [0] * (12 - len(values))
    return [sum(values[start:start + 3]) for start in range(0, 12, 3)]
