"""Abgeleitete Noten aller Schüler (reine Funktion des Schnappschusses)."""

from typing import Mapping, Optional

from pydantic import BaseModel

from config.schema import AcademicPeriod, ExamPeriod, GradingConfig
from grading.aggregator import GradeAggregator
from grading.averager import GradeSource, PeriodAverager, parse_grade
from grading.periods import PeriodClassifier
from models.practice_data import GradeValue, PracticeData

COURSE_GRADE_KEYS = ("t1", "t2", "t3", "rec")


class CalculatedGrades(BaseModel):
    """Servicenoten je Trimester + Abschlussnoten der praktischen Prüfungen."""

    service_averages: dict[str, Optional[float]]
    practical_exams: dict[ExamPeriod, Optional[float]]


class InstrumentGrade(BaseModel):
    """Eine Zeile der Instrument-Aufschlüsselung."""

    key: str
    name: str
    weight: float
    grade: Optional[float]


class PeriodBreakdown(BaseModel):
    """Instrumente und gewichteter Durchschnitt eines Zeitraums."""

    key: str
    name: str
    instruments: list[InstrumentGrade]
    average: Optional[float]


def build_aggregator(config: GradingConfig) -> GradeAggregator:
    return GradeAggregator(config.service_weights, PeriodClassifier(config.trimesters))


def calculate_student_grades(
    data: PracticeData, config: GradingConfig, student_id: str,
    aggregator: Optional[GradeAggregator] = None,
) -> CalculatedGrades:
    aggregator = aggregator or build_aggregator(config)
    averages = aggregator.service_averages(
        student_id, data.services, data.service_evaluations, data.practice_groups
    )
    exams: dict[ExamPeriod, Optional[float]] = {}
    for period in ExamPeriod:
        exam = data.get_exam(student_id, period)
        exams[period] = exam.final_score if exam is not None else None
    return CalculatedGrades(service_averages=averages, practical_exams=exams)


def calculate_all_grades(
    data: PracticeData, config: GradingConfig
) -> dict[str, CalculatedGrades]:
    """CalculatedGrades für jeden Schüler, indiziert nach Schüler-ID."""
    aggregator = build_aggregator(config)
    return {
        s.id: calculate_student_grades(data, config, s.id, aggregator)
        for s in data.students
    }


def grade_source_for(
    calculated: CalculatedGrades, manual_grades: Mapping[str, GradeValue]
) -> GradeSource:
    return GradeSource(
        service_averages=calculated.service_averages,
        exam_scores=calculated.practical_exams,
        manual_grades=manual_grades,
    )


def period_breakdown(
    period: AcademicPeriod,
    calculated: CalculatedGrades,
    manual_grades: Mapping[str, GradeValue],
    averager: Optional[PeriodAverager] = None,
) -> PeriodBreakdown:
    averager = averager or PeriodAverager()
    source = grade_source_for(calculated, manual_grades)
    rows = [
        InstrumentGrade(
            key=i.key, name=i.name, weight=i.weight,
            grade=averager.resolve(i, period.key, source),
        )
        for i in period.instruments
    ]
    return PeriodBreakdown(
        key=period.key,
        name=period.name,
        instruments=rows,
        average=averager.average(period, source),
    )


def student_period_breakdowns(
    data: PracticeData,
    config: GradingConfig,
    student_id: str,
    calculated: CalculatedGrades,
) -> list[PeriodBreakdown]:
    """Aufschlüsselung aller konfigurierten Zeiträume eines Schülers."""
    manual = data.academic_grades.get(student_id, {})
    averager = PeriodAverager()
    return [
        period_breakdown(p, calculated, manual.get(p.key, {}), averager)
        for p in config.evaluation
    ]


def course_module_average(grades: Mapping[str, GradeValue]) -> Optional[float]:
    """Mittelwert aller gültigen Modulnoten (t1, t2, t3, rec)."""
    values = [parse_grade(grades.get(k)) for k in COURSE_GRADE_KEYS]
    valid = [v for v in values if v is not None]
    if not valid:
        return None
    return sum(valid) / len(valid)
