"""Timestamp parsing for WhatsApp Web message metadata (core domain).

WhatsApp renders message times in several shapes depending on locale and on
which element carries them:

    [10:32, 12/05/2024] Ahmed:     data-pre-plain-text attribute
    10:32 PM / 10:32 م             visible msg-time span
    2024-05-12T10:32:00+03:00      datetime / title attributes
    Yesterday / أمس                relative day separators

All results are epoch milliseconds. KNOWN_OLD (0) means the page says the
message is old; None means nothing could be parsed.
"""

from __future__ import annotations

import re
from datetime import date, datetime, time as dt_time
from typing import Optional, Tuple

from whatsalarm.core.models import KNOWN_OLD

_DIGIT_FOLD = {0x0660 + i: ord("0") + i for i in range(10)}
_DIGIT_FOLD.update({0x06F0 + i: ord("0") + i for i in range(10)})

# "yesterday", then three Arabic spellings of it.
RELATIVE_OLD_TOKENS = (
    "yesterday",
    "\u0623\u0645\u0633",
    "\u0627\u0645\u0633",
    "\u0627\u0644\u0628\u0627\u0631\u062d\u0629",
)

_ARABIC_AM = "\u0635"
_ARABIC_PM = "\u0645"

_BRACKET_RE = re.compile(r"\[\s*([^\]]+?)\s*\]")
_TIME_RE = re.compile(
    r"(?<!\d)(\d{1,2}):(\d{2})(?::(\d{2}))?\s*"
    r"([AaPp]\.?[Mm]\.?|" + _ARABIC_AM + "|" + _ARABIC_PM + r")?"
)
_DATE_RE = re.compile(r"(?<!\d)(\d{1,4})[/.\-](\d{1,2})[/.\-](\d{1,4})(?!\d)")


def fold_digits(text: str) -> str:
    """Replace Arabic-Indic and extended Arabic-Indic digits with ASCII ones."""

    return text.translate(_DIGIT_FOLD)


def _to_ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def parse_time_of_day(text: str) -> Optional[dt_time]:
    match = _TIME_RE.search(text)
    if not match:
        return None
    hour, minute = int(match.group(1)), int(match.group(2))
    second = int(match.group(3) or 0)
    meridiem = (match.group(4) or "").replace(".", "").lower()
    if meridiem in ("am", _ARABIC_AM):
        if not 1 <= hour <= 12:
            return None
        hour = 0 if hour == 12 else hour
    elif meridiem in ("pm", _ARABIC_PM):
        if not 1 <= hour <= 12:
            return None
        hour = 12 if hour == 12 else hour + 12
    try:
        return dt_time(hour, minute, second)
    except ValueError:
        return None


def _build_date(year: int, month: int, day: int) -> Optional[date]:
    if year < 100:
        year += 2000
    try:
        return date(year, month, day)
    except ValueError:
        return None


def parse_date(text: str, day_first: bool = True) -> Optional[date]:
    """Parse the first numeric date in text.

    Four-digit leading groups are read as Y-M-D. Otherwise the day_first
    preference decides D/M/Y vs M/D/Y, and the other order is tried when the
    preferred one is not a valid date.
    """

    match = _DATE_RE.search(text)
    if not match:
        return None
    first, second, third = (int(group) for group in match.groups())
    if len(match.group(1)) == 4:
        return _build_date(first, second, third)
    orders: Tuple[Tuple[int, int], ...] = ((first, second), (second, first))
    if not day_first:
        orders = tuple(reversed(orders))
    for day, month in orders:
        parsed = _build_date(third, month, day)
        if parsed is not None:
            return parsed
    return None


def _parse_iso(text: str) -> Optional[int]:
    candidate = text.strip()
    if candidate.endswith("Z"):
        candidate = candidate[:-1] + "+00:00"
    try:
        return _to_ms(datetime.fromisoformat(candidate))
    except ValueError:
        return None


def parse_full(text: str, day_first: bool = True) -> Optional[int]:
    """Parse a full date-time (ISO 8601 or a date plus an optional time)."""

    iso = _parse_iso(text)
    if iso is not None:
        return iso
    parsed_date = parse_date(text, day_first)
    if parsed_date is None:
        return None
    time_of_day = parse_time_of_day(_DATE_RE.sub(" ", text)) or dt_time(0, 0)
    return _to_ms(datetime.combine(parsed_date, time_of_day))


def parse_time_only(text: str, now_ms: int) -> Optional[int]:
    """Parse H:MM (with optional AM/PM) anchored to the local date of now_ms."""

    time_of_day = parse_time_of_day(text)
    if time_of_day is None:
        return None
    today = datetime.fromtimestamp(now_ms / 1000).date()
    return _to_ms(datetime.combine(today, time_of_day))


def is_relative_old(text: str) -> bool:
    lowered = text.lower()
    return any(token in lowered for token in RELATIVE_OLD_TOKENS)


def parse_timestamp(raw: Optional[str], now_ms: int, day_first: bool = True) -> Optional[int]:
    """Resolve a raw timestamp string to epoch ms, KNOWN_OLD, or None."""

    if not raw or not raw.strip():
        return None
    text = fold_digits(raw).strip()

    bracket = _BRACKET_RE.search(text)
    if bracket:
        content = bracket.group(1)
        parsed = parse_full(content, day_first)
        if parsed is None:
            parsed = parse_time_only(content, now_ms)
        if parsed is not None:
            return parsed

    if is_relative_old(text):
        return KNOWN_OLD

    parsed = parse_full(text, day_first)
    if parsed is not None:
        return parsed
    return parse_time_only(text, now_ms)
