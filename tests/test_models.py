"""Tests für Datenmodelle, Schnappschuss-Prüfung und Testdaten-Generator."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from config.defaults import default_grading_config
from config.schema import ExamPeriod
from data.fake_data import FakeDataGenerator
from models import (
    AreaGroups,
    EntryExitRecord,
    EntryExitType,
    PracticalExamEvaluation,
    PracticeData,
    PracticeGroup,
    PreServiceDayEvaluation,
    Service,
    ServiceDayEvaluation,
    ServiceDayGroupScores,
    ServiceDayIndividualScores,
    ServiceEvaluation,
    Student,
    StudentRoleAssignment,
    find_practice_group,
)


def _student(sid: str, nombre: str = "Lucía", ap1: str = "García", ap2: str = "López") -> Student:
    return Student(id=sid, nombre=nombre, apellido1=ap1, apellido2=ap2)


# ─── EINZELMODELLE ────────────────────────────────────────────────────────────

class TestModels:
    def test_student_names(self):
        s = _student("s1")
        assert s.full_name == "García López, Lucía"
        assert s.display_name == "Lucía García López"
        assert s.short_name == "García L."

    def test_student_without_second_surname(self):
        s = Student(id="s1", nombre="Hugo", apellido1="Ruiz")
        assert s.full_name == "Ruiz, Hugo"
        assert s.display_name == "Hugo Ruiz"

    def test_student_requires_name(self):
        with pytest.raises(ValidationError):
            Student(id="s1", apellido1="Ruiz")

    def test_find_practice_group_first_match(self):
        """Bei Mehrfachmitgliedschaft gilt die erste Gruppe."""
        groups = [
            PracticeGroup(id="g1", name="Grupo 1", student_ids=["a", "b"]),
            PracticeGroup(id="g2", name="Grupo 2", student_ids=["b", "c"]),
        ]
        assert find_practice_group("b", groups).id == "g1"
        assert find_practice_group("c", groups).id == "g2"
        assert find_practice_group("x", groups) is None

    def test_area_groups_all_ids_deduplicated(self):
        ag = AreaGroups(comedor=["g1", "g2"], takeaway=["g2", "g3"])
        assert ag.all_ids == ["g1", "g2", "g3"]

    def test_service_role_lookup(self):
        service = Service(
            id="srv", name="S", date="2025-10-15",
            student_roles=[StudentRoleAssignment(student_id="a", role_id="r1")],
        )
        assert service.role_id_for("a") == "r1"
        assert service.role_id_for("b") is None

    def test_individual_scores_count_rules(self):
        """Nur anwesend + mindestens ein Wert zählt."""
        assert ServiceDayIndividualScores(attendance=True, scores=[None, 2]).counts
        assert not ServiceDayIndividualScores(attendance=True, scores=[None, None]).counts
        assert not ServiceDayIndividualScores(attendance=False, scores=[3, 2]).counts
        assert ServiceDayIndividualScores(attendance=True, scores=[1.5, None, 2]).total == 3.5

    def test_group_scores_has_scores(self):
        assert not ServiceDayGroupScores(scores=[None]).has_scores
        assert ServiceDayGroupScores(scores=[0, None]).has_scores

    def test_latest_pre_service_date(self):
        ev = ServiceEvaluation(id="e", service_id="s", pre_service={
            "2025-10-13": PreServiceDayEvaluation(),
            "2025-10-14": PreServiceDayEvaluation(),
        })
        assert ev.latest_pre_service_date() == "2025-10-14"
        assert ServiceEvaluation(id="e", service_id="s").latest_pre_service_date() is None

    def test_entry_exit_type_values(self):
        r = EntryExitRecord(id="i", student_id="a", date="15/10/2025",
                            type="Llegada Tarde")
        assert r.type == EntryExitType.LLEGADA_TARDE


# ─── SCHNAPPSCHUSS-PRÜFUNG ────────────────────────────────────────────────────

def _snapshot(**overrides) -> PracticeData:
    base = dict(
        students=[_student("a"), _student("b", "Hugo", "Ruiz")],
        practice_groups=[PracticeGroup(id="g1", name="Grupo 1", student_ids=["a", "b"])],
        services=[Service(id="srv", name="Servicio", date="2025-10-15")],
        service_evaluations=[ServiceEvaluation(
            id="ev", service_id="srv",
            service_day=ServiceDayEvaluation(
                group_scores={"g1": ServiceDayGroupScores(scores=[2, 2, 3, 2, 1])},
                individual_scores={
                    "a": ServiceDayIndividualScores(attendance=True, scores=[2, 3, 2, 2, 1]),
                },
            ),
        )],
    )
    base.update(overrides)
    return PracticeData(**base)


class TestValidateSnapshot:
    def test_valid_snapshot(self):
        report = _snapshot().validate_snapshot(default_grading_config())
        assert report.is_valid
        assert report.errors == []
        assert report.warnings == []

    def test_multi_group_membership_is_error(self):
        groups = [
            PracticeGroup(id="g1", name="Grupo 1", student_ids=["a"]),
            PracticeGroup(id="g2", name="Grupo 2", student_ids=["a", "b"]),
        ]
        report = _snapshot(practice_groups=groups).validate_snapshot(default_grading_config())
        assert not report.is_valid
        assert any("mehreren Praxisgruppen" in e for e in report.errors)

    def test_score_out_of_range_is_error(self):
        ev = ServiceEvaluation(id="ev", service_id="srv", service_day=ServiceDayEvaluation(
            individual_scores={"a": ServiceDayIndividualScores(attendance=True, scores=[5])},
        ))
        report = _snapshot(service_evaluations=[ev]).validate_snapshot(default_grading_config())
        assert not report.is_valid
        assert any("außerhalb" in e for e in report.errors)

    def test_negative_score_is_error(self):
        ev = ServiceEvaluation(id="ev", service_id="srv", service_day=ServiceDayEvaluation(
            group_scores={"g1": ServiceDayGroupScores(scores=[-1])},
        ))
        report = _snapshot(service_evaluations=[ev]).validate_snapshot(default_grading_config())
        assert not report.is_valid

    def test_long_vector_is_warning(self):
        ev = ServiceEvaluation(id="ev", service_id="srv", service_day=ServiceDayEvaluation(
            group_scores={"g1": ServiceDayGroupScores(scores=[1, 1, 1, 1, 1, 1])},
        ))
        report = _snapshot(service_evaluations=[ev]).validate_snapshot(default_grading_config())
        assert report.is_valid
        assert len(report.warnings) == 1

    def test_unknown_service_is_warning(self):
        ev = ServiceEvaluation(id="ev", service_id="missing")
        report = _snapshot(service_evaluations=[ev]).validate_snapshot(default_grading_config())
        assert report.is_valid
        assert any("unbekannten" in w for w in report.warnings)

    def test_duplicate_exam_is_warning(self):
        exams = [
            PracticalExamEvaluation(id="x1", student_id="a", exam_period=ExamPeriod.T1,
                                    final_score=7),
            PracticalExamEvaluation(id="x2", student_id="a", exam_period=ExamPeriod.T1,
                                    final_score=8),
        ]
        report = _snapshot(practical_exams=exams).validate_snapshot(default_grading_config())
        assert any("Prüfungen" in w for w in report.warnings)

    def test_lookups(self):
        data = _snapshot()
        assert data.get_student("b").nombre == "Hugo"
        assert data.get_service("srv").name == "Servicio"
        assert data.get_evaluation_for("srv").id == "ev"
        assert data.get_exam("a", ExamPeriod.T2) is None


# ─── JSON-PERSISTENZ ──────────────────────────────────────────────────────────

class TestPersistence:
    def test_json_roundtrip(self, tmp_path: Path):
        data = _snapshot(academic_grades={"a": {"t1": {"teorico1": "7,5", "teorico2": 6}}})
        target = tmp_path / "sub" / "data.json"
        data.save_json(target)
        assert target.exists()

        loaded = PracticeData.load_json(target)
        assert loaded.created_at is not None
        assert loaded.students == data.students
        assert loaded.academic_grades["a"]["t1"]["teorico1"] == "7,5"
        assert loaded.service_evaluations == data.service_evaluations

    def test_load_missing_raises(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            PracticeData.load_json(tmp_path / "nope.json")


# ─── TESTDATEN-GENERATOR ──────────────────────────────────────────────────────

class TestFakeData:
    @pytest.fixture(scope="class")
    def data(self) -> PracticeData:
        return FakeDataGenerator(default_grading_config(), seed=42).generate()

    def test_generate_counts(self, data: PracticeData):
        assert len(data.students) == 16
        assert len(data.practice_groups) == 4
        assert len(data.services) == 9

    def test_every_student_in_exactly_one_group(self, data: PracticeData):
        for s in data.students:
            assert sum(g.has_member(s.id) for g in data.practice_groups) == 1

    def test_last_service_unevaluated(self, data: PracticeData):
        assert data.get_evaluation_for(data.services[-1].id) is None
        assert len(data.service_evaluations) == len(data.services) - 1

    def test_generated_snapshot_is_valid(self, data: PracticeData):
        report = data.validate_snapshot(default_grading_config())
        assert report.is_valid, report.errors

    def test_seed_is_reproducible(self):
        config = default_grading_config()
        a = FakeDataGenerator(config, seed=7).generate()
        b = FakeDataGenerator(config, seed=7).generate()
        assert a == b

    def test_services_inside_trimesters(self, data: PracticeData):
        from grading.periods import PeriodClassifier
        classifier = PeriodClassifier(default_grading_config().trimesters)
        assert all(classifier.classify(s.date) is not None for s in data.services)
