"""Lenient parsing of dates, times and numbers sent by clients or read by Gemini."""
from __future__ import annotations

from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation
from typing import Any, Optional

from django.utils.dateparse import parse_date, parse_datetime, parse_time


def parse_day(value: Any) -> Optional[date]:
    """Accept ``YYYY-MM-DD`` or an ISO datetime; None when unparseable."""
    if value is None or value == '':
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        parsed = parse_date(text)
        if parsed is None:
            dt = parse_datetime(text)
            parsed = dt.date() if dt else None
        return parsed
    except ValueError:
        return None


def normalize_time(value: Any) -> Optional[time]:
    """``HH`` becomes ``HH:00``; unparseable text is dropped."""
    if not value:
        return None
    if isinstance(value, time):
        return value
    text = str(value).strip()
    if ':' not in text:
        text = f"{text}:00"
    try:
        return parse_time(text)
    except ValueError:
        return None


def to_decimal(value: Any) -> Optional[Decimal]:
    """Numeric value of a reading, or None for text like "normal"."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, Decimal)):
        number = Decimal(str(value))
        return number if number.is_finite() else None
    text = str(value).strip().replace(',', '')
    # leading number, like parseFloat("14.5 g/dL")
    end = 0
    for i, ch in enumerate(text):
        if ch.isdigit() or (ch in '+-' and i == 0) or (ch == '.' and '.' not in text[:i]):
            end = i + 1
        else:
            break
    try:
        return Decimal(text[:end]) if end else None
    except InvalidOperation:
        return None


def to_amount(value: Any) -> Optional[Decimal]:
    """Money value rounded to paise; None when not numeric."""
    number = to_decimal(value)
    return number.quantize(Decimal('0.01')) if number is not None else None
