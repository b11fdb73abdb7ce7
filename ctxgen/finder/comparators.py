"""Size and date comparator strings used by file filters (``> 10K``, ``since yesterday``)."""

from __future__ import annotations

import operator
import re
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable

from ctxgen.errors import ConfigurationError

_OPERATORS: dict[str, Callable[[float, float], bool]] = {
    "==": operator.eq,
    "!=": operator.ne,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}

_SIZE_UNITS = {
    "": 1,
    "k": 1000,
    "ki": 1024,
    "m": 1000**2,
    "mi": 1024**2,
    "g": 1000**3,
    "gi": 1024**3,
}

_SIZE_RE = re.compile(r"^\s*(==|!=|<=|>=|<|>)?\s*(\d+(?:\.\d+)?)\s*([kmg]i?)?\s*b?\s*$", re.IGNORECASE)

_DATE_OPERATORS = {
    "since": ">",
    "after": ">",
    "until": "<",
    "before": "<",
}

_DATE_RE = re.compile(r"^\s*(==|!=|<=|>=|<|>|since|after|until|before)?\s*(.+?)\s*$", re.IGNORECASE)

_UNIT_SECONDS = {
    "second": 1,
    "sec": 1,
    "minute": 60,
    "min": 60,
    "hour": 3600,
    "day": 86400,
    "week": 7 * 86400,
    "month": 30 * 86400,
    "year": 365 * 86400,
}

_RELATIVE_RE = re.compile(
    r"^(?:([+-])\s*)?(\d+)\s*(second|sec|minute|min|hour|day|week|month|year)s?(\s+ago)?$",
    re.IGNORECASE,
)


@dataclass(frozen=True)
class NumberComparator:
    """``[op] N[unit]`` where units are k/ki/m/mi/g/gi and op defaults to ``==``."""

    op: str
    target: float

    @classmethod
    def parse(cls, expression: str) -> NumberComparator:
        m = _SIZE_RE.match(str(expression))
        if not m:
            raise ConfigurationError(f"Invalid size comparator: {expression!r}")
        op, number, unit = m.groups()
        target = float(number) * _SIZE_UNITS[(unit or "").lower()]
        return cls(op=op or "==", target=target)

    def test(self, value: float) -> bool:
        return _OPERATORS[self.op](value, self.target)


@dataclass(frozen=True)
class DateComparator:
    """Compares file mtimes against an absolute or relative point in time."""

    op: str
    target: float

    @classmethod
    def parse(cls, expression: str, now: datetime | None = None) -> DateComparator:
        m = _DATE_RE.match(str(expression))
        if not m:
            raise ConfigurationError(f"Invalid date comparator: {expression!r}")
        op, when = m.groups()
        op = _DATE_OPERATORS.get((op or "").lower(), op or "==")
        moment = parse_date(when, now or datetime.now())
        return cls(op=op, target=moment.timestamp())

    def test(self, timestamp: float) -> bool:
        return _OPERATORS[self.op](timestamp, self.target)


def parse_date(text: str, now: datetime) -> datetime:
    """Parse ``now``, ``today``, ``yesterday``, ``tomorrow``, ``3 days ago``, ``+1 week`` or ISO-8601."""
    value = text.strip().lower()
    midnight = now.replace(hour=0, minute=0, second=0, microsecond=0)
    keywords = {
        "now": now,
        "today": midnight,
        "yesterday": midnight - timedelta(days=1),
        "tomorrow": midnight + timedelta(days=1),
    }
    if value in keywords:
        return keywords[value]

    m = _RELATIVE_RE.match(value)
    if m:
        sign, amount, unit, ago = m.groups()
        delta = timedelta(seconds=int(amount) * _UNIT_SECONDS[unit])
        if ago or sign == "-":
            return now - delta
        return now + delta

    try:
        return datetime.fromisoformat(text.strip())
    except ValueError as e:
        raise ConfigurationError(f"Unrecognised date: {text!r}") from e
