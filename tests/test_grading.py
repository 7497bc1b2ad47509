"""Tests für die Notenberechnung (Trimester, Servicenoten, Zeitraum-Durchschnitte)."""

import math
from datetime import date, datetime

import pytest

from config.defaults import default_grading_config, default_trimesters
from config.schema import (
    AcademicPeriod,
    ExamInstrument,
    ExamPeriod,
    ManualInstrument,
    PeriodRange,
    ServiceAverageInstrument,
    ServiceGradeWeights,
)
from grading import (
    GradeAggregator,
    GradeSource,
    PeriodAverager,
    PeriodClassifier,
    PeriodScores,
    calculate_all_grades,
    calculate_student_grades,
    classify,
    course_module_average,
    parse_calendar_day,
    parse_grade,
    student_period_breakdowns,
)
from models import (
    PracticalExamEvaluation,
    PracticeData,
    PracticeGroup,
    Service,
    ServiceDayEvaluation,
    ServiceDayGroupScores,
    ServiceDayIndividualScores,
    ServiceEvaluation,
    Student,
)


# ─── Testdaten-Hilfsfunktionen ────────────────────────────────────────────────

def _aggregator() -> GradeAggregator:
    return GradeAggregator(
        ServiceGradeWeights(individual=0.6, group=0.4),
        PeriodClassifier(default_trimesters()),
    )


def _evaluation(service_id: str, individual: dict, group: dict) -> ServiceEvaluation:
    return ServiceEvaluation(
        id=f"ev-{service_id}",
        service_id=service_id,
        service_day=ServiceDayEvaluation(
            individual_scores={
                sid: ServiceDayIndividualScores(attendance=att, scores=scores)
                for sid, (att, scores) in individual.items()
            },
            group_scores={
                gid: ServiceDayGroupScores(scores=scores) for gid, scores in group.items()
            },
        ),
    )


GROUPS = [PracticeGroup(id="g1", name="Grupo 1", student_ids=["a", "b"])]


# ─── TRIMESTER-ZUORDNUNG ──────────────────────────────────────────────────────

class TestPeriodClassifier:
    def test_parse_iso_and_spanish_format(self):
        assert parse_calendar_day("2025-10-15") == datetime(2025, 10, 15, 12)
        assert parse_calendar_day("15/10/2025") == datetime(2025, 10, 15, 12)
        assert parse_calendar_day("2025-10-15T23:30:00Z") == datetime(2025, 10, 15, 12)
        assert parse_calendar_day(date(2025, 10, 15)) == datetime(2025, 10, 15, 12)

    def test_parse_invalid_returns_none(self):
        assert parse_calendar_day("") is None
        assert parse_calendar_day("morgen") is None
        assert parse_calendar_day("2025-02-30") is None
        assert parse_calendar_day(None) is None

    def test_boundaries_inclusive(self):
        periods = default_trimesters()
        assert classify("2025-09-01", periods) == "t1"
        assert classify("2025-12-22", periods) == "t1"
        assert classify("2026-01-08", periods) == "t2"
        assert classify("2026-06-24", periods) == "t3"

    def test_holidays_unclassified(self):
        """Tage zwischen den Trimestern gehören zu keinem Zeitraum."""
        periods = default_trimesters()
        assert classify("2025-12-23", periods) is None
        assert classify("2026-04-15", periods) is None
        assert classify("2025-08-31", periods) is None

    def test_invalid_date_fails_closed(self):
        assert classify("kein Datum", default_trimesters()) is None

    def test_first_match_wins_on_overlap(self):
        periods = [
            PeriodRange(key="a", name="A", start="2025-01-01", end="2025-06-30"),
            PeriodRange(key="b", name="B", start="2025-06-01", end="2025-12-31"),
        ]
        assert classify("2025-06-15", periods) == "a"

    def test_period_keys_in_order(self):
        assert PeriodClassifier(default_trimesters()).period_keys == ["t1", "t2", "t3"]


# ─── SERVICENOTEN ─────────────────────────────────────────────────────────────

class TestGradeAggregator:
    def test_weighted_service_grade(self):
        """7.5 einzeln / 6.0 Gruppe bei 0.6/0.4 → 6.9."""
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"a": (True, [2, 3, 2.5])}, {"g1": [2, 2, 2]})]
        averages = _aggregator().service_averages("a", services, evals, GROUPS)
        assert averages["t1"] == pytest.approx(6.9)
        assert averages["t2"] is None
        assert averages["t3"] is None

    def test_no_qualifying_evaluation_gives_none(self):
        """Kein zählender Service im Trimester → None, nicht 0."""
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"a": (False, [2, 3])}, {})]
        averages = _aggregator().service_averages("a", services, evals, GROUPS)
        assert averages == {"t1": None, "t2": None, "t3": None}

    def test_absent_student_gets_no_group_score(self):
        """Die Gruppennote zählt nur mit Anwesenheit des Schülers."""
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"a": (False, [])}, {"g1": [2, 2]})]
        buckets = _aggregator().aggregate("a", services, evals, GROUPS)
        assert buckets["t1"].group == []
        assert buckets["t1"].individual == []

    def test_group_only_when_individual_empty(self):
        """Anwesend ohne Einzelwerte: nur die Gruppennote zählt."""
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"a": (True, [None, None])}, {"g1": [3, 4]})]
        averages = _aggregator().service_averages("a", services, evals, GROUPS)
        assert averages["t1"] == pytest.approx(7.0)

    def test_individual_only_without_group(self):
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"c": (True, [4, 4])}, {"g1": [3, 4]})]
        averages = _aggregator().service_averages("c", services, evals, GROUPS)
        assert averages["t1"] == pytest.approx(8.0)

    def test_all_null_group_vector_ignored(self):
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"a": (True, [5, 3])}, {"g1": [None, None]})]
        buckets = _aggregator().aggregate("a", services, evals, GROUPS)
        assert buckets["t1"].group == []
        assert buckets["t1"].individual == [8]

    def test_means_collected_independently(self):
        """Einzel- und Gruppensummen werden getrennt gemittelt."""
        services = [
            Service(id="s1", name="S1", date="2025-10-01"),
            Service(id="s2", name="S2", date="2025-11-05"),
        ]
        evals = [
            _evaluation("s1", {"a": (True, [8])}, {"g1": [None]}),
            _evaluation("s2", {"a": (True, [6])}, {"g1": [5]}),
        ]
        buckets = _aggregator().aggregate("a", services, evals, GROUPS)
        assert buckets["t1"].individual_average == pytest.approx(7.0)
        assert buckets["t1"].group_average == pytest.approx(5.0)
        assert _aggregator().combine(buckets["t1"]) == pytest.approx(7.0 * 0.6 + 5.0 * 0.4)

    def test_service_outside_trimesters_excluded(self):
        services = [
            Service(id="s1", name="Navidad", date="2025-12-29"),
            Service(id="s2", name="Mal", date="sin fecha"),
        ]
        evals = [
            _evaluation("s1", {"a": (True, [9])}, {"g1": [9]}),
            _evaluation("s2", {"a": (True, [9])}, {"g1": [9]}),
        ]
        buckets = _aggregator().aggregate("a", services, evals, GROUPS)
        assert all(not b.individual and not b.group for b in buckets.values())

    def test_evaluation_without_service_skipped(self):
        evals = [_evaluation("ghost", {"a": (True, [9])}, {})]
        buckets = _aggregator().aggregate("a", [], evals, GROUPS)
        assert all(not b.individual for b in buckets.values())

    def test_services_bucketed_by_trimester(self):
        services = [
            Service(id="s1", name="S1", date="2025-10-15"),
            Service(id="s2", name="S2", date="2026-02-11"),
        ]
        evals = [
            _evaluation("s1", {"a": (True, [5])}, {}),
            _evaluation("s2", {"a": (True, [9])}, {}),
        ]
        averages = _aggregator().service_averages("a", services, evals, GROUPS)
        assert averages["t1"] == pytest.approx(5.0)
        assert averages["t2"] == pytest.approx(9.0)

    def test_aggregate_is_idempotent(self):
        services = [Service(id="s1", name="S1", date="2025-10-15")]
        evals = [_evaluation("s1", {"a": (True, [1.1, 2.2])}, {"g1": [3.3]})]
        agg = _aggregator()
        first = agg.aggregate("a", services, evals, GROUPS)
        second = agg.aggregate("a", services, evals, GROUPS)
        assert first == second
        assert agg.combine(first["t1"]) == agg.combine(second["t1"])

    def test_combine_empty_is_none(self):
        assert _aggregator().combine(PeriodScores()) is None


# ─── ZEITRAUM-DURCHSCHNITT ────────────────────────────────────────────────────

class TestPeriodAverager:
    def _period(self, *instruments) -> AcademicPeriod:
        return AcademicPeriod(key="t1", name="T1", instruments=list(instruments))

    def test_missing_instrument_renormalized(self):
        """{A: 0.5, 8.0}, {B: 0.5, fehlt} → 8.0."""
        period = self._period(
            ManualInstrument(key="A", name="A", weight=0.5),
            ManualInstrument(key="B", name="B", weight=0.5),
        )
        source = GradeSource(manual_grades={"A": 8.0})
        assert PeriodAverager().average(period, source) == 8.0

    def test_all_missing_is_none(self):
        period = self._period(
            ManualInstrument(key="A", name="A", weight=0.5),
            ServiceAverageInstrument(weight=0.5),
        )
        assert PeriodAverager().average(period, GradeSource()) is None

    def test_single_present_instrument(self):
        period = self._period(
            ManualInstrument(key="A", name="A", weight=0.2),
            ExamInstrument(key="ex", name="Ex", weight=0.3, exam_period=ExamPeriod.T1),
        )
        source = GradeSource(exam_scores={ExamPeriod.T1: 6.25})
        assert PeriodAverager().average(period, source) == 6.25

    def test_weighted_and_rounded(self):
        period = self._period(
            ServiceAverageInstrument(weight=0.4),
            ExamInstrument(key="ex", name="Ex", weight=0.3, exam_period=ExamPeriod.T1),
        )
        source = GradeSource(service_averages={"t1": 7.0}, exam_scores={ExamPeriod.T1: 8.0})
        # (2.8 + 2.4) / 0.7 = 7.428...
        assert PeriodAverager().average(period, source) == 7.43

    def test_weights_need_not_sum_to_one(self):
        period = self._period(
            ManualInstrument(key="A", name="A", weight=2),
            ManualInstrument(key="B", name="B", weight=1),
        )
        source = GradeSource(manual_grades={"A": 9, "B": 6})
        assert PeriodAverager().average(period, source) == 8.0

    def test_service_average_explicit_period(self):
        instrument = ServiceAverageInstrument(weight=1, period="t2")
        source = GradeSource(service_averages={"t1": 5.0, "t2": 9.0})
        assert PeriodAverager().resolve(instrument, "t1", source) == 9.0

    def test_service_average_defaults_to_enclosing_period(self):
        instrument = ServiceAverageInstrument(weight=1)
        source = GradeSource(service_averages={"t1": 5.0, "t2": 9.0})
        assert PeriodAverager().resolve(instrument, "t1", source) == 5.0

    def test_non_numeric_manual_grade_is_absent(self):
        period = self._period(
            ManualInstrument(key="A", name="A", weight=0.5),
            ManualInstrument(key="B", name="B", weight=0.5),
        )
        source = GradeSource(manual_grades={"A": "NP", "B": "6,5"})
        assert PeriodAverager().average(period, source) == 6.5

    def test_zero_weight_only_is_none(self):
        period = self._period(ManualInstrument(key="A", name="A", weight=0))
        assert PeriodAverager().average(period, GradeSource(manual_grades={"A": 7})) is None

    def test_unknown_instrument_type_raises(self):
        with pytest.raises(TypeError):
            PeriodAverager().resolve(object(), "t1", GradeSource())


class TestParseGrade:
    @pytest.mark.parametrize("raw,expected", [
        (7, 7.0),
        (7.25, 7.25),
        ("7,5", 7.5),
        (" 8.0 ", 8.0),
        ("0", 0.0),
    ])
    def test_numeric_values(self, raw, expected):
        assert parse_grade(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "NP", True, math.nan, math.inf, [7]])
    def test_absent_values(self, raw):
        assert parse_grade(raw) is None


# ─── ABGELEITETE NOTEN ────────────────────────────────────────────────────────

def _snapshot() -> PracticeData:
    return PracticeData(
        students=[
            Student(id="a", nombre="Lucía", apellido1="García"),
            Student(id="b", nombre="Hugo", apellido1="Ruiz"),
        ],
        practice_groups=GROUPS,
        services=[
            Service(id="s1", name="S1", date="2025-10-15"),
            Service(id="s2", name="S2", date="2026-02-11"),
        ],
        service_evaluations=[
            _evaluation("s1", {"a": (True, [2, 3, 2.5]), "b": (True, [4])}, {"g1": [6]}),
            _evaluation("s2", {"a": (False, [])}, {"g1": [8]}),
        ],
        practical_exams=[
            PracticalExamEvaluation(id="x1", student_id="a", exam_period=ExamPeriod.T1,
                                    final_score=8.0),
            PracticalExamEvaluation(id="x2", student_id="a", exam_period=ExamPeriod.REC,
                                    final_score=None),
        ],
        academic_grades={"a": {"t1": {"teorico1": "7,0", "teorico2": None}}},
        course_grades={"a": {"Bebidas": {"t1": 6, "t2": "8,0", "t3": None, "rec": ""}}},
    )


class TestCalculatedGrades:
    def test_student_grades(self):
        config = default_grading_config()
        calc = calculate_student_grades(_snapshot(), config, "a")
        assert calc.service_averages["t1"] == pytest.approx(6.9)
        assert calc.service_averages["t2"] is None
        assert calc.practical_exams[ExamPeriod.T1] == 8.0
        assert calc.practical_exams[ExamPeriod.T2] is None
        assert calc.practical_exams[ExamPeriod.REC] is None

    def test_all_grades_keyed_by_student(self):
        grades = calculate_all_grades(_snapshot(), default_grading_config())
        assert set(grades) == {"a", "b"}
        assert grades["b"].service_averages["t1"] == pytest.approx(4 * 0.6 + 6 * 0.4)

    def test_calculation_is_pure(self):
        data = _snapshot()
        before = data.model_dump()
        config = default_grading_config()
        first = calculate_all_grades(data, config)
        second = calculate_all_grades(data, config)
        assert first == second
        assert data.model_dump() == before

    def test_period_breakdowns(self):
        """t1: Service 6.9 (0.4), Prüfung 8.0 (0.3), Theorie 7.0 (0.15), Theorie 2 fehlt."""
        data = _snapshot()
        config = default_grading_config()
        calc = calculate_student_grades(data, config, "a")
        breakdowns = student_period_breakdowns(data, config, "a", calc)
        assert [b.key for b in breakdowns] == ["t1", "t2", "t3", "rec"]

        t1 = breakdowns[0]
        grades = {i.key: i.grade for i in t1.instruments}
        assert grades["servicios"] == pytest.approx(6.9)
        assert grades["exPracticoT1"] == 8.0
        assert grades["teorico1"] == 7.0
        assert grades["teorico2"] is None
        expected = (6.9 * 0.4 + 8.0 * 0.3 + 7.0 * 0.15) / 0.85
        assert t1.average == round(expected, 2)

        assert breakdowns[1].average is None
        assert breakdowns[3].average is None

    def test_course_module_average(self):
        grades = _snapshot().course_grades["a"]["Bebidas"]
        assert course_module_average(grades) == pytest.approx(7.0)
        assert course_module_average({}) is None
        assert course_module_average({"t1": "NP"}) is None
