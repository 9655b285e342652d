"""Flexible datetime parsing for tool arguments.

Tools accept time arguments in whatever shape an LLM or a human is likely to
produce and turn them into epoch seconds:

- epoch seconds: ``1732795200``
- relative time: ``now``, ``now-1h``, ``now+2d``
- shorthand offsets: ``-1d``, ``2h`` (past), ``+1w`` (future)
- natural language: ``yesterday``, ``last week``, ``5 days ago``, ``in 2 weeks``
- ISO 8601: ``2025-11-28T12:00:00Z``, ``2025-11-28``

Month and year in the shorthand and ``now±`` forms are fixed 30 and 365 day
approximations. Natural-language phrases go through dateparser and use real
calendar arithmetic.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import math
import re
import time
from typing import Protocol

import dateparser
from dateutil.relativedelta import relativedelta, weekday, MO, TU, WE, TH, FR, SA, SU


DatetimeInput = int | float | str

DATETIME_DESCRIPTION = (
    "Time specification. Accepts: epoch seconds (number), relative time (now, now-1h, now-30m, now-7d, now+2d), "
    "shorthand offsets (-1d, 2h, +1w), ISO 8601 (2025-11-28T12:00:00Z, 2025-11-28), "
    "or natural language (yesterday, today, last week, last month, 5 days ago, in 2 weeks)"
)

_SUPPORTED_FORMATS = (
    "epoch seconds (number), relative time (now-1h, now-7d), shorthand (-1d, +2h), "
    "ISO 8601 (2025-11-28T12:00:00Z), natural language (yesterday, today, last week, 5 days ago)"
)

UNIT_ALIASES: dict[str, str] = {
    "s": "second",
    "sec": "second",
    "secs": "second",
    "second": "second",
    "seconds": "second",
    "m": "minute",
    "min": "minute",
    "mins": "minute",
    "minute": "minute",
    "minutes": "minute",
    "h": "hour",
    "hr": "hour",
    "hrs": "hour",
    "hour": "hour",
    "hours": "hour",
    "d": "day",
    "day": "day",
    "days": "day",
    "w": "week",
    "wk": "week",
    "wks": "week",
    "week": "week",
    "weeks": "week",
    "mo": "month",
    "mos": "month",
    "month": "month",
    "months": "month",
    "y": "year",
    "yr": "year",
    "yrs": "year",
    "year": "year",
    "years": "year",
}

# Fixed-length approximations; not calendar accurate.
UNIT_SECONDS: dict[str, int] = {
    "second": 1,
    "minute": 60,
    "hour": 3600,
    "day": 86400,
    "week": 604800,
    "month": 30 * 86400,
    "year": 365 * 86400,
}

_AGO_RE = re.compile(r"(\d+)\s*([a-z]+)\s+ago", re.IGNORECASE)
_IN_RE = re.compile(r"in\s+(\d+)\s*([a-z]+)", re.IGNORECASE)
_MINUS_RE = re.compile(r"minus\s+(\d+)\s*([a-z]+)", re.IGNORECASE)
_PLUS_RE = re.compile(r"plus\s+(\d+)\s*([a-z]+)", re.IGNORECASE)

_SHORTHAND_RE = re.compile(r"([+-]?)(\d+)([a-z]+)")
_NOW_OFFSET_RE = re.compile(r"now\s*([+-])\s*(\d+)\s*([a-z]+)")
_EPOCH_RE = re.compile(r"\d+")

_WEEKDAYS: dict[str, weekday] = {
    "mon": MO,
    "tue": TU,
    "wed": WE,
    "thu": TH,
    "fri": FR,
    "sat": SA,
    "sun": SU,
}
_RELATIVE_WEEKDAY_RE = re.compile(
    r"(last|next)\s+(mon|tue|tues|wed|thu|thur|thurs|fri|sat|sun)(?:day|nesday|sday|rsday|urday)?",
    re.IGNORECASE,
)


class InvalidDatetimeFormat(ValueError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(f'Invalid datetime format: "{value}". Supported formats: {_SUPPORTED_FORMATS}')


class EpochOutOfRange(ValueError):
    """Raised when a resolved epoch cannot be represented as a calendar date."""

    def __init__(self, epoch: int):
        self.epoch = epoch
        super().__init__(
            f"Epoch {epoch} is outside the representable date range (years 1-9999). "
            "Epoch values must be in seconds, not milliseconds."
        )


class NaturalLanguageDateParser(Protocol):
    def parse(self, phrase: str, anchor: datetime) -> datetime | None: ...


def _canonical_phrase(amount: str, unit: str, past: bool) -> str | None:
    canonical = UNIT_ALIASES.get(unit.lower())
    if canonical is None:
        return None
    n = int(amount)
    if n != 1:
        canonical += "s"
    if past:
        return f"{n} {canonical} ago"
    return f"in {n} {canonical}"


def normalize_expression(text: str) -> str:
    """Rewrite abbreviated offsets into the phrasing dateparser understands.

    ``"3h ago"`` becomes ``"3 hours ago"``, ``"plus 1 wk"`` becomes
    ``"in 1 week"``. Anything else comes back unchanged.
    """
    stripped = text.strip()
    for pattern, past in ((_AGO_RE, True), (_MINUS_RE, True), (_IN_RE, False), (_PLUS_RE, False)):
        m = pattern.fullmatch(stripped)
        if m:
            phrase = _canonical_phrase(m.group(1), m.group(2), past)
            return phrase if phrase is not None else text
    return text


def _parse_iso(text: str) -> datetime | None:
    if text[-1:] in ("Z", "z"):
        text = text[:-1] + "+00:00"
    try:
        dt = datetime.fromisoformat(text)
    except ValueError:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _relative_weekday(phrase: str, anchor: datetime) -> datetime | None:
    """``last friday`` is the most recent Friday strictly before the anchor's
    day, ``next monday`` the first Monday strictly after it. Time of day is
    kept from the anchor."""
    m = _RELATIVE_WEEKDAY_RE.fullmatch(phrase.strip())
    if m is None:
        return None
    direction, name = m.group(1).lower(), m.group(2).lower()
    day = _WEEKDAYS[name[:3]]
    if direction == "last":
        return anchor + relativedelta(days=-1, weekday=day(-1))
    return anchor + relativedelta(days=+1, weekday=day(+1))


class DateparserParser:
    """Natural-language parsing backed by dateparser, pinned to UTC and English."""

    def __init__(self, languages: list[str] | None = None):
        self._languages = languages or ["en"]

    def parse(self, phrase: str, anchor: datetime) -> datetime | None:
        iso = _parse_iso(phrase)
        if iso is not None:
            return iso
        weekday_dt = _relative_weekday(phrase, anchor.astimezone(timezone.utc))
        if weekday_dt is not None:
            return weekday_dt
        base = anchor.astimezone(timezone.utc).replace(tzinfo=None)
        dt = dateparser.parse(
            phrase,
            languages=self._languages,
            settings={
                "RELATIVE_BASE": base,
                "TIMEZONE": "UTC",
                "TO_TIMEZONE": "UTC",
                "RETURN_AS_TIMEZONE_AWARE": True,
            },
        )
        if dt is None:
            return None
        if dt.tzinfo is None:
            return dt.replace(tzinfo=timezone.utc)
        return dt


def _offset(now: int, sign: str, amount: str, unit: str) -> int | None:
    canonical = UNIT_ALIASES.get(unit)
    if canonical is None:
        return None
    delta = int(amount) * UNIT_SECONDS[canonical]
    if sign == "+":
        return now + delta
    return now - delta


class DatetimeResolver:
    def __init__(self, parser: NaturalLanguageDateParser | None = None):
        self._parser = parser or DateparserParser()

    def resolve(self, value: DatetimeInput, now: int | None = None) -> int:
        """Resolve ``value`` to epoch seconds relative to ``now``.

        ``now`` defaults to the wall clock, read on every call.
        Raises InvalidDatetimeFormat when no dialect matches.
        """
        if isinstance(value, bool):
            raise InvalidDatetimeFormat(value)
        if isinstance(value, int):
            return value
        if isinstance(value, float):
            if not math.isfinite(value):
                raise InvalidDatetimeFormat(value)
            return math.floor(value)
        if not isinstance(value, str):
            raise InvalidDatetimeFormat(value)

        if now is None:
            now = int(time.time())
        text = value.strip()
        lowered = text.lower()
        if not lowered:
            raise InvalidDatetimeFormat(value)
        if lowered == "now":
            return now
        if _EPOCH_RE.fullmatch(lowered):
            return int(lowered)

        m = _SHORTHAND_RE.fullmatch(lowered)
        if m:
            sign, amount, unit = m.groups()
            resolved = _offset(now, sign, amount, unit)
            if resolved is not None:
                return resolved

        m = _NOW_OFFSET_RE.fullmatch(lowered)
        if m:
            sign, amount, unit = m.groups()
            resolved = _offset(now, sign, amount, unit)
            if resolved is not None:
                return resolved

        phrase = normalize_expression(text)
        anchor = datetime.fromtimestamp(now, tz=timezone.utc)
        dt = self._parser.parse(phrase, anchor)
        if dt is None:
            logging.debug("datetime fallback parse failed, value=%r, phrase=%r", value, phrase)
            raise InvalidDatetimeFormat(value)
        return math.floor(dt.timestamp())


_default_resolver = DatetimeResolver()


def resolve_datetime(value: DatetimeInput, now: int | None = None) -> int:
    return _default_resolver.resolve(value, now)


def epoch_to_iso(epoch: int) -> str:
    try:
        return datetime.fromtimestamp(epoch, tz=timezone.utc).isoformat()
    except (ValueError, OverflowError, OSError) as exc:
        raise EpochOutOfRange(epoch) from exc
