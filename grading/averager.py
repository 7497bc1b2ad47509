"""Gewichteter Durchschnitt eines Bewertungszeitraums.

Nur Instrumente mit Note gehen ein; die Gewichte der vorhandenen werden
neu normiert. Ein fehlendes Instrument zählt nie als 0.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from config.schema import (
    AcademicPeriod,
    ExamInstrument,
    ExamPeriod,
    ManualInstrument,
    ServiceAverageInstrument,
)


def parse_grade(value: Any) -> Optional[float]:
    """Wandelt eine eingetragene Note in eine Zahl um.

    Akzeptiert Zahlen und Text mit Dezimalkomma ("7,5"). Leere, nicht
    numerische oder NaN-Werte ergeben ``None``.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip().replace(",", ".")
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


@dataclass(frozen=True)
class GradeSource:
    """Alle Notenquellen eines Schülers für einen Zeitraum."""

    service_averages: Mapping[str, Optional[float]] = field(default_factory=dict)
    exam_scores: Mapping[ExamPeriod, Optional[float]] = field(default_factory=dict)
    manual_grades: Mapping[str, Any] = field(default_factory=dict)


class PeriodAverager:
    """Berechnet Zeitraum-Durchschnitte aus getaggten Instrumenten."""

    def resolve(
        self, instrument, period_key: str, source: GradeSource
    ) -> Optional[float]:
        """Liefert die Note eines Instruments oder ``None``."""
        if isinstance(instrument, ManualInstrument):
            return parse_grade(source.manual_grades.get(instrument.key))
        if isinstance(instrument, ServiceAverageInstrument):
            return parse_grade(
                source.service_averages.get(instrument.period or period_key)
            )
        if isinstance(instrument, ExamInstrument):
            return parse_grade(source.exam_scores.get(instrument.exam_period))
        raise TypeError(f"Unbekannter Instrumenttyp: {type(instrument).__name__}")

    def average(self, period: AcademicPeriod, source: GradeSource) -> Optional[float]:
        weighted_sum = 0.0
        total_weight = 0.0
        for instrument in period.instruments:
            grade = self.resolve(instrument, period.key, source)
            if grade is None:
                continue
            weighted_sum += grade * instrument.weight
            total_weight += instrument.weight
        if total_weight <= 0:
            return None
        return round(weighted_sum / total_weight, 2)
