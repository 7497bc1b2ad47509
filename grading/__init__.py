"""Notenberechnung: Trimester-Zuordnung, Servicenoten, Zeitraum-Durchschnitte."""

from grading.periods import PeriodClassifier, classify, parse_calendar_day
from grading.aggregator import GradeAggregator, PeriodScores
from grading.averager import GradeSource, PeriodAverager, parse_grade
from grading.calculated import (
    CalculatedGrades, PeriodBreakdown, calculate_all_grades,
    calculate_student_grades, course_module_average, student_period_breakdowns,
)

__all__ = [
    "PeriodClassifier",
    "classify",
    "parse_calendar_day",
    "GradeAggregator",
    "PeriodScores",
    "GradeSource",
    "PeriodAverager",
    "parse_grade",
    "CalculatedGrades",
    "PeriodBreakdown",
    "calculate_all_grades",
    "calculate_student_grades",
    "course_module_average",
    "student_period_breakdowns",
]
