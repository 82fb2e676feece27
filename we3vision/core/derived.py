"""
Derived fields computed from stored records.

Everything here is a pure function of its arguments. Slugs are computed at
write time; salary ranges and open/closed status are computed on every
read so they can never go stale.
"""

import math
import re
import time
from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Mapping, Optional

_INVALID_SLUG_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE = re.compile(r"\s+")
_HYPHENS = re.compile(r"-+")
NUMERIC_PATTERN = re.compile(r"^\s*[+-]?(\d+(\.\d*)?|\.\d+)([eE][+-]?\d+)?\s*$", re.ASCII)

DEFAULT_JOB_SLUG = "job"
DEFAULT_CURRENCY = "INR"
DEFAULT_PERIOD = "monthly"
NOT_SPECIFIED = "Not specified"
INVALID_AMOUNT = "Invalid"


def slugify(title: str) -> str:
    """
    Normalize a title into a URL slug.

    >>> slugify("  Hello, World -- 2024! ")
    'hello-world-2024'
    """
    slug = title.lower()
    slug = _INVALID_SLUG_CHARS.sub("", slug)
    slug = _WHITESPACE.sub("-", slug)
    slug = _HYPHENS.sub("-", slug)
    return slug.strip("-")


def generate_job_slug(title: str, timestamp_ms: Optional[int] = None) -> str:
    """
    Slug for a job posting: the normalized title plus a millisecond timestamp.

    Unlike blog slugs, job slugs are made unique by the suffix instead of
    rejecting duplicate titles.
    """
    base = slugify(title) or DEFAULT_JOB_SLUG
    if timestamp_ms is None:
        timestamp_ms = current_timestamp_ms()
    return f"{base}-{timestamp_ms}"


def current_timestamp_ms() -> int:
    return int(time.time() * 1000)


def _to_number(amount: Any) -> Optional[float]:
    if isinstance(amount, bool):
        return float(amount)
    if isinstance(amount, (int, float)):
        number = float(amount)
    else:
        text = str(amount).strip()
        if not text:
            return 0.0
        if not NUMERIC_PATTERN.match(text):
            return None
        number = float(text)
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def _round_half_up(value: float, places: int) -> str:
    quantum = Decimal(1).scaleb(-places)
    return str(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _plain(number: float) -> str:
    return str(int(number)) if number.is_integer() else str(number)


def format_salary_amount(amount: Any, period: Optional[str]) -> str:
    """
    Format a single salary amount for display.

    Monthly and yearly amounts are scaled to lakhs ("L") or thousands ("K");
    hourly amounts are rendered as "<n>/hr". Values that are not numeric
    render as "Invalid".
    """
    number = _to_number(amount)
    if number is None:
        return INVALID_AMOUNT

    if period in ("monthly", "yearly"):
        if number >= 100000:
            return f"{_round_half_up(number / 100000, 1)}L"
        if number >= 1000:
            return f"{_round_half_up(number / 1000, 0)}K"
        return _plain(number)
    if period == "hourly":
        return f"{_plain(number)}/hr"
    return _plain(number)


def format_salary_range(salary: Optional[Mapping[str, Any]]) -> str:
    """Human-readable salary range, e.g. "50K - 80K INR/monthly"."""
    if not salary:
        return NOT_SPECIFIED

    minimum = salary.get("min")
    maximum = salary.get("max")
    currency = salary.get("currency") or DEFAULT_CURRENCY
    period = salary.get("period") or DEFAULT_PERIOD
    suffix = f"{currency}/{period}"

    if minimum and maximum:
        return f"{format_salary_amount(minimum, period)} - {format_salary_amount(maximum, period)} {suffix}"
    if minimum:
        return f"{format_salary_amount(minimum, period)}+ {suffix}"
    if maximum:
        return f"Up to {format_salary_amount(maximum, period)} {suffix}"
    return NOT_SPECIFIED


def as_utc(value: datetime) -> datetime:
    """Treat naive datetimes as UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_job_open(is_active: bool, deadline: Optional[datetime], now: Optional[datetime] = None) -> bool:
    """A posting is open while active and its deadline (if any) has not passed."""
    if not is_active:
        return False
    if deadline is None:
        return True
    now = as_utc(now) if now is not None else datetime.now(timezone.utc)
    return now <= as_utc(deadline)
