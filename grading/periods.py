"""Zuordnung eines Kalendertags zu einem Trimester.

Alle Tage werden auf 12:00 Uhr Ortszeit normiert, damit Zeitzonen und
Sommerzeit keinen Tag verschieben. Nicht zuordenbare Tage ergeben ``None``.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional, Sequence, Union

from config.schema import PeriodRange

DayLike = Union[str, date, datetime, None]


def parse_calendar_day(value: DayLike) -> Optional[datetime]:
    """Liest "YYYY-MM-DD" oder "DD/MM/YYYY" und gibt den Tag um 12:00 zurück.

    Ein anhängender Uhrzeitteil ("2025-10-15T08:00:00Z") wird ignoriert.
    Ungültige Eingaben ergeben ``None``.
    """
    if isinstance(value, datetime):
        return value.replace(hour=12, minute=0, second=0, microsecond=0, tzinfo=None)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day, 12)
    if not isinstance(value, str):
        return None

    text = value.strip().split("T")[0].split(" ")[0]
    if "/" in text:
        parts = text.split("/")
        if len(parts) != 3:
            return None
        day_s, month_s, year_s = parts
    else:
        parts = text.split("-")
        if len(parts) != 3:
            return None
        year_s, month_s, day_s = parts
    try:
        return datetime(int(year_s), int(month_s), int(day_s), 12)
    except ValueError:
        return None


@dataclass(frozen=True)
class _Bounds:
    key: str
    start: datetime
    end: datetime


class PeriodClassifier:
    """Ordnet Daten den konfigurierten Trimestern zu (erster Treffer gewinnt)."""

    def __init__(self, periods: Sequence[PeriodRange]):
        self._bounds: list[_Bounds] = []
        for p in periods:
            start = parse_calendar_day(p.start)
            end = parse_calendar_day(p.end)
            if start is None or end is None:
                continue
            self._bounds.append(_Bounds(p.key, start, end))

    @property
    def period_keys(self) -> list[str]:
        return [b.key for b in self._bounds]

    def classify(self, day: DayLike) -> Optional[str]:
        checked = parse_calendar_day(day)
        if checked is None:
            return None
        for b in self._bounds:
            if b.start <= checked <= b.end:
                return b.key
        return None


def classify(day: DayLike, periods: Sequence[PeriodRange]) -> Optional[str]:
    """Kurzform für eine einzelne Zuordnung."""
    return PeriodClassifier(periods).classify(day)
