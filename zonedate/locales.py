"""Keyword tables for the calendar engine.

Each :class:`LocaleTable` describes how one language writes "now", day
keywords ("today"), relative offsets ("3 hours ago"), period shifts
("next week") and weekday names, plus the long display format. English and
Japanese ship by default; more can be added with
:meth:`zonedate.engine.CalendarEngine.register_locale`.
"""

from __future__ import annotations

import datetime
import re
import unicodedata
from collections.abc import Callable
from dataclasses import dataclass, field

from .exceptions import InvalidOptionError

# (pattern, direction used when the pattern has no "dir" group)
RelativePattern = tuple[re.Pattern[str], int]


@dataclass(frozen=True)
class LocaleTable:
    """Relative-expression vocabulary for one locale."""

    code: str
    now_words: frozenset[str]
    day_words: dict[str, int]
    unit_words: dict[str, str]
    direction_words: dict[str, int]
    relative_patterns: tuple[RelativePattern, ...]
    weekday_words: dict[str, int]
    weekday_pattern: re.Pattern[str]
    month_names: tuple[str, ...]
    long_formatter: Callable[[LocaleTable, datetime.datetime], str]
    number_words: dict[str, int] = field(default_factory=dict)
    period_words: dict[str, tuple[str, int]] = field(default_factory=dict)
    period_pattern: re.Pattern[str] | None = None
    normalizer: Callable[[str], str] = str.strip
    absolute_rewriter: Callable[[str], str] | None = None

    def normalize(self, text: str) -> str:
        return self.normalizer(text)

    def parse_number(self, token: str) -> int | None:
        """Integer value of a numeral token, or None if it is not one."""
        if token.isdecimal():
            return int(token)
        if token in self.number_words:
            return self.number_words[token]
        return _parse_kanji_number(token)

    def absolute_text(self, text: str) -> str:
        """Rewrite locale-specific absolute dates into something dateutil reads."""
        if self.absolute_rewriter is None:
            return text
        return self.absolute_rewriter(text)

    def format_long(self, dt: datetime.datetime) -> str:
        return self.long_formatter(self, dt)


_KANJI_DIGITS = {"〇": 0, "零": 0, "一": 1, "二": 2, "三": 3, "四": 4, "五": 5, "六": 6, "七": 7, "八": 8, "九": 9}
_KANJI_MULTIPLIERS = {"十": 10, "百": 100, "千": 1000}


def _parse_kanji_number(token: str) -> int | None:
    if not token or any(ch not in _KANJI_DIGITS and ch not in _KANJI_MULTIPLIERS for ch in token):
        return None

    total = 0
    current = 0
    for ch in token:
        if ch in _KANJI_DIGITS:
            current = current * 10 + _KANJI_DIGITS[ch]
        else:
            total += (current or 1) * _KANJI_MULTIPLIERS[ch]
            current = 0
    return total + current


# English

_EN_MONTHS = (
    "January", "February", "March", "April", "May", "June",
    "July", "August", "September", "October", "November", "December",
)

_EN_NUMBER = r"\d+|an?|one|two|three|four|five|six|seven|eight|nine|ten|eleven|twelve"


def _normalize_en(text: str) -> str:
    return " ".join(text.split())


def _format_long_en(table: LocaleTable, dt: datetime.datetime) -> str:
    hour12 = dt.hour % 12 or 12
    suffix = "am" if dt.hour < 12 else "pm"
    return f"{table.month_names[dt.month - 1]} {dt.day}, {dt.year} {hour12}:{dt.minute:02d}{suffix}"


EN = LocaleTable(
    code="en",
    now_words=frozenset({"now", "right now", "just now"}),
    day_words={
        "today": 0,
        "tomorrow": 1,
        "yesterday": -1,
        "day after tomorrow": 2,
        "the day after tomorrow": 2,
        "day before yesterday": -2,
        "the day before yesterday": -2,
    },
    unit_words={
        "millisecond": "millisecond", "milliseconds": "millisecond", "ms": "millisecond",
        "second": "second", "seconds": "second", "sec": "second", "secs": "second",
        "minute": "minute", "minutes": "minute", "min": "minute", "mins": "minute",
        "hour": "hour", "hours": "hour", "hr": "hour", "hrs": "hour",
        "day": "day", "days": "day",
        "week": "week", "weeks": "week",
        "month": "month", "months": "month",
        "year": "year", "years": "year",
    },
    direction_words={
        "ago": -1, "before": -1, "earlier": -1,
        "from now": 1, "later": 1, "after": 1, "hence": 1,
        "next": 1, "last": -1, "this": 0,
    },
    relative_patterns=(
        (re.compile(rf"^(?P<num>{_EN_NUMBER})\s+(?P<unit>[a-z]+)\s+(?P<dir>ago|before|earlier|from now|later|after|hence)$"), 0),
        (re.compile(rf"^in\s+(?P<num>{_EN_NUMBER})\s+(?P<unit>[a-z]+)$"), 1),
    ),
    weekday_words={
        "monday": 0, "mon": 0,
        "tuesday": 1, "tue": 1, "tues": 1,
        "wednesday": 2, "wed": 2,
        "thursday": 3, "thu": 3, "thurs": 3,
        "friday": 4, "fri": 4,
        "saturday": 5, "sat": 5,
        "sunday": 6, "sun": 6,
    },
    weekday_pattern=re.compile(r"^(?:(?P<dir>next|last|this)\s+)?(?P<weekday>[a-z]+)$"),
    month_names=_EN_MONTHS,
    long_formatter=_format_long_en,
    number_words={
        "a": 1, "an": 1, "one": 1, "two": 2, "three": 3, "four": 4, "five": 5, "six": 6,
        "seven": 7, "eight": 8, "nine": 9, "ten": 10, "eleven": 11, "twelve": 12,
    },
    period_pattern=re.compile(r"^(?P<dir>next|last|this)\s+(?P<unit>[a-z]+)$"),
    normalizer=_normalize_en,
)


# Japanese

_JA_ABSOLUTE = re.compile(
    r"^(?:(?P<year>\d{1,4})年)?(?P<month>\d{1,2})月(?P<day>\d{1,2})日"
    r"(?:\s*(?P<hour>\d{1,2})時(?:(?P<minute>\d{1,2})分)?)?$"
)


def _normalize_ja(text: str) -> str:
    # NFKC folds full-width digits, letters and spaces to ASCII
    return " ".join(unicodedata.normalize("NFKC", text).split())


def _rewrite_absolute_ja(text: str) -> str:
    match = _JA_ABSOLUTE.match(text)
    if not match:
        return text

    parts = match.groupdict()
    date_part = f"{parts['month']}/{parts['day']}"
    if parts["year"]:
        date_part = f"{parts['year']}/{date_part}"
    if parts["hour"] is None:
        return date_part
    return f"{date_part} {parts['hour']}:{parts['minute'] or '00'}"


def _format_long_ja(table: LocaleTable, dt: datetime.datetime) -> str:
    return f"{dt.year}年{dt.month}月{dt.day}日 {dt.hour}時{dt.minute:02d}分"


JA = LocaleTable(
    code="ja",
    now_words=frozenset({"今", "いま", "現在"}),
    day_words={
        "今日": 0, "きょう": 0, "本日": 0,
        "明日": 1, "あした": 1, "あす": 1,
        "昨日": -1, "きのう": -1,
        "明後日": 2, "あさって": 2,
        "一昨日": -2, "おととい": -2,
    },
    unit_words={
        "ミリ秒": "millisecond",
        "秒": "second", "秒間": "second",
        "分": "minute", "分間": "minute",
        "時間": "hour",
        "日": "day", "日間": "day",
        "週": "week", "週間": "week",
        "ヶ月": "month", "ヵ月": "month", "か月": "month", "カ月": "month", "ケ月": "month",
        "年": "year", "年間": "year",
    },
    direction_words={"前": -1, "後": 1, "来週": 1, "先週": -1, "今週": 0},
    relative_patterns=(
        (
            re.compile(
                r"^(?P<num>[0-9〇零一二三四五六七八九十百千]+)"
                r"(?P<unit>ミリ秒|秒間?|分間?|時間|日間?|週間?|[ヶヵかカケ]月|年間?)"
                r"(?P<dir>前|後)$"
            ),
            0,
        ),
    ),
    weekday_words={"月": 0, "火": 1, "水": 2, "木": 3, "金": 4, "土": 5, "日": 6},
    weekday_pattern=re.compile(r"^(?P<dir>来週|先週|今週)?\s*の?(?P<weekday>[月火水木金土日])曜日?$"),
    month_names=tuple(f"{m}月" for m in range(1, 13)),
    long_formatter=_format_long_ja,
    period_words={
        "来週": ("week", 1), "先週": ("week", -1), "今週": ("week", 0),
        "来月": ("month", 1), "先月": ("month", -1), "今月": ("month", 0),
        "来年": ("year", 1), "去年": ("year", -1), "昨年": ("year", -1), "今年": ("year", 0),
    },
    normalizer=_normalize_ja,
    absolute_rewriter=_rewrite_absolute_ja,
)

DEFAULT_LOCALES: dict[str, LocaleTable] = {EN.code: EN, JA.code: JA}


def lookup_locale(tables: dict[str, LocaleTable], code: str) -> LocaleTable:
    """Find the table for ``code``, falling back from "ja-JP" to "ja".

    Raises:
        InvalidOptionError: If code is not a string or no table matches
    """
    if not isinstance(code, str) or not code:
        raise InvalidOptionError("Locale must be a non-empty string", option="locale", value=code)

    key = code.replace("_", "-").lower()
    if key in tables:
        return tables[key]
    language = key.split("-", 1)[0]
    if language in tables:
        return tables[language]
    raise InvalidOptionError("Unsupported locale", option="locale", value=code)


def get_locale_table(code: str) -> LocaleTable:
    """Table for ``code`` among the built-in locales."""
    return lookup_locale(DEFAULT_LOCALES, code)
