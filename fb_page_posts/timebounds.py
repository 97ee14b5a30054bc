from __future__ import annotations

import re
from datetime import date
from typing import Any

import pandas as pd

from .errors import TimeBoundError


_UNIX_SECONDS_RE = re.compile(r"^\d+(\.\d+)?$")
_RELATIVE_RE = re.compile(
    r"^(?P<amount>[+-]?\d+)\s*(?P<unit>sec|second|min|minute|hour|day|week|month|year)s?"
    r"(?P<ago>\s+ago)?$"
)

_UNIT_ALIASES = {
    "sec": "seconds",
    "second": "seconds",
    "min": "minutes",
    "minute": "minutes",
    "hour": "hours",
    "day": "days",
    "week": "weeks",
    "month": "months",
    "year": "years",
}

_NAMED_DAYS = {
    "today": 0,
    "yesterday": -1,
    "tomorrow": 1,
}


def _utc_now() -> pd.Timestamp:
    return pd.Timestamp.now(tz="UTC")


def _as_utc(ts: pd.Timestamp) -> pd.Timestamp:
    if ts.tzinfo is None:
        return ts.tz_localize("UTC")
    return ts.tz_convert("UTC")


def parse_graph_time(value: Any) -> pd.Timestamp | None:
    """Parse a Graph timestamp such as 2013-01-31T12:00:00+0000; None if unusable."""
    if not isinstance(value, str) or not value.strip():
        return None
    ts = pd.to_datetime(value.strip(), utc=True, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts


def graph_date(value: Any) -> date | None:
    ts = parse_graph_time(value)
    return ts.date() if ts is not None else None


def resolve_time_bound(value: str | int | float, *, now: pd.Timestamp | None = None) -> pd.Timestamp:
    """
    Interpret a since/until value the way the Graph API accepts it.

    Supports UNIX seconds, absolute dates and datetimes, now/today/yesterday/tomorrow
    and relative offsets like "-2 weeks" or "3 days ago". Results are UTC.
    """
    if isinstance(value, bool) or value is None:
        raise TimeBoundError(f"Unsupported time bound: {value!r}")

    if isinstance(value, (int, float)):
        return pd.Timestamp(float(value), unit="s", tz="UTC")

    text = str(value).strip()
    if not text:
        raise TimeBoundError("Time bound must be a non-empty value")

    if _UNIX_SECONDS_RE.fullmatch(text):
        return pd.Timestamp(float(text), unit="s", tz="UTC")

    base = _as_utc(now) if now is not None else _utc_now()
    key = text.casefold()

    if key == "now":
        return base
    if key in _NAMED_DAYS:
        return base.normalize() + pd.Timedelta(days=_NAMED_DAYS[key])

    m = _RELATIVE_RE.fullmatch(key)
    if m:
        amount = int(m.group("amount"))
        if m.group("ago"):
            amount = -amount
        unit = _UNIT_ALIASES[m.group("unit")]
        return base + pd.DateOffset(**{unit: amount})

    try:
        ts = pd.to_datetime(text, utc=True)
    except (ValueError, TypeError, OverflowError) as e:
        raise TimeBoundError(f"Could not interpret time bound {text!r}: {e}") from e

    if ts is None or pd.isna(ts):
        raise TimeBoundError(f"Could not interpret time bound {text!r}")
    return ts


def bound_date(value: str | int | float, *, now: pd.Timestamp | None = None) -> date:
    return resolve_time_bound(value, now=now).date()
