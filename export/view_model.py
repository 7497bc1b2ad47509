"""Denormalisierte, schreibgeschützte Sicht auf einen Schnappschuss.

Die Composer greifen nie direkt auf ``PracticeData`` zu, sondern auf die
hier gebauten View-Models. Logos und Fotos sind bereits zu Bytes dekodiert.
"""

import logging
from dataclasses import dataclass, field
from typing import Optional

from config.schema import GradingConfig
from grading.calculated import (
    CalculatedGrades, PeriodBreakdown, calculate_student_grades,
    course_module_average, student_period_breakdowns,
)
from grading.periods import parse_calendar_day
from models.evaluation import ServiceEvaluation
from models.practice_data import GradeValue, PracticeData
from models.practice_group import PracticeGroup, find_practice_group
from models.records import EntryExitRecord, InstituteData, TeacherData
from models.service import RoleType, Service, ServiceArea, ServiceRole
from models.student import Student
from export.composer import CompositionError
from export.helpers import decode_data_url, in_week_of

logger = logging.getLogger(__name__)


def _incident_sort_key(record: EntryExitRecord):
    parsed = parse_calendar_day(record.date)
    # Unlesbare Daten ans Ende
    return (parsed is None, parsed or 0, record.id)


@dataclass(frozen=True)
class GroupRoster:
    """Eine am Service beteiligte Gruppe mit sortierter Schülerliste."""

    group: PracticeGroup
    students: tuple[Student, ...]
    areas: tuple[ServiceArea, ...]


@dataclass(frozen=True)
class Letterhead:
    """Kopfzeilen-Daten aller Dokumente."""

    teacher: TeacherData
    institute: InstituteData
    teacher_logo: Optional[bytes] = None
    institute_logo: Optional[bytes] = None


@dataclass(frozen=True)
class ReportViewModel:
    """Alles, was die Service-Dokumente (Planning, Seguimiento, Evaluación, Dossier) brauchen."""

    service: Service
    evaluation: Optional[ServiceEvaluation]
    groups: tuple[GroupRoster, ...]
    participants: tuple[Student, ...]
    roles: dict[str, ServiceRole]
    letterhead: Letterhead
    config: GradingConfig
    entry_exit_records: tuple[EntryExitRecord, ...] = ()
    all_groups: tuple[PracticeGroup, ...] = ()

    # ─── Nachschlagen ───

    def group_for(self, student_id: str) -> Optional[PracticeGroup]:
        return find_practice_group(student_id, self.all_groups)

    def group_name(self, group_id: Optional[str]) -> str:
        for g in self.all_groups:
            if g.id == group_id:
                return g.name
        return "N/A"

    def role_for(self, student_id: str) -> Optional[ServiceRole]:
        role_id = self.service.role_id_for(student_id)
        if role_id is None:
            return None
        return self.roles.get(role_id)

    def leaders(self) -> list[tuple[Student, ServiceRole]]:
        """Schüler mit Leitungsposten, in Teilnehmerreihenfolge."""
        result = []
        for student in self.participants:
            role = self.role_for(student.id)
            if role is not None and role.type == RoleType.LEADER:
                result.append((student, role))
        return result

    def incidents_in_service_week(self, student_id: str) -> list[EntryExitRecord]:
        """Vorfälle des Schülers in der Woche (Mo-So) des Servicetags."""
        return sorted(
            (
                r for r in self.entry_exit_records
                if r.student_id == student_id and in_week_of(r.date, self.service.date)
            ),
            key=_incident_sort_key,
        )

    def require_evaluation(self) -> ServiceEvaluation:
        if self.evaluation is None:
            raise CompositionError(
                f"El servicio '{self.service.name}' todavía no tiene evaluación."
            )
        return self.evaluation

    def require_participant(self, student_id: str) -> Student:
        for s in self.participants:
            if s.id == student_id:
                return s
        raise CompositionError(
            f"El alumno '{student_id}' no participa en el servicio '{self.service.name}'."
        )


@dataclass(frozen=True)
class AttendedService:
    """Zeile "Servicios realizados" der Ficha académica."""

    date: str
    name: str
    individual_total: float
    group_total: Optional[float]


@dataclass(frozen=True)
class StudentRecordViewModel:
    """Daten der Ficha académica individual eines Schülers."""

    student: Student
    group: Optional[PracticeGroup]
    calculated: CalculatedGrades
    breakdowns: tuple[PeriodBreakdown, ...]
    attended_services: tuple[AttendedService, ...]
    course_grades: dict[str, dict[str, GradeValue]]
    course_averages: dict[str, Optional[float]]
    incidents: tuple[EntryExitRecord, ...]
    letterhead: Letterhead
    config: GradingConfig
    photo: Optional[bytes] = None
    trimester_names: dict[str, str] = field(default_factory=dict)


class ReportViewModelBuilder:
    """Baut View-Models aus einem Schnappschuss (liest nur, verändert nichts)."""

    def __init__(self, data: PracticeData, config: GradingConfig):
        self.data = data
        self.config = config
        self._letterhead: Optional[Letterhead] = None

    @property
    def letterhead(self) -> Letterhead:
        if self._letterhead is None:
            self._letterhead = Letterhead(
                teacher=self.data.teacher,
                institute=self.data.institute,
                teacher_logo=decode_data_url(self.data.teacher.logo),
                institute_logo=decode_data_url(self.data.institute.logo),
            )
        return self._letterhead

    # ─── Service-Dokumente ───

    def participating_groups(self, service: Service) -> list[GroupRoster]:
        """Beteiligte Gruppen in Stammdaten-Reihenfolge, Schüler nach Apellido1, Nombre."""
        assigned = set(service.assigned_groups.all_ids)
        students_by_id = {s.id: s for s in self.data.students}
        rosters = []
        for group in self.data.practice_groups:
            if group.id not in assigned:
                continue
            members = [students_by_id[sid] for sid in group.student_ids if sid in students_by_id]
            missing = [sid for sid in group.student_ids if sid not in students_by_id]
            if missing:
                logger.warning(
                    f"Gruppe '{group.name}': unbekannte Schüler-IDs {missing} ignoriert"
                )
            members.sort(key=lambda s: (s.apellido1.lower(), s.nombre.lower()))
            areas = tuple(
                a for a in ServiceArea if group.id in service.assigned_groups.for_area(a)
            )
            rosters.append(GroupRoster(group=group, students=tuple(members), areas=areas))
        return rosters

    def for_service(self, service_id: str) -> ReportViewModel:
        service = self.data.get_service(service_id)
        if service is None:
            raise CompositionError(f"Servicio '{service_id}' no encontrado.")

        rosters = self.participating_groups(service)
        seen: dict[str, Student] = {}
        for roster in rosters:
            for s in roster.students:
                seen.setdefault(s.id, s)
        participants = sorted(seen.values(), key=lambda s: (s.apellido1.lower(), s.nombre.lower()))
        participant_ids = set(seen)

        return ReportViewModel(
            service=service,
            evaluation=self.data.get_evaluation_for(service.id),
            groups=tuple(rosters),
            participants=tuple(participants),
            roles={r.id: r for r in self.data.service_roles},
            letterhead=self.letterhead,
            config=self.config,
            entry_exit_records=tuple(
                r for r in self.data.entry_exit_records if r.student_id in participant_ids
            ),
            all_groups=tuple(self.data.practice_groups),
        )

    # ─── Ficha académica ───

    def _attended_services(
        self, student_id: str, group: Optional[PracticeGroup]
    ) -> list[AttendedService]:
        rows = []
        for service in sorted(self.data.services, key=lambda s: s.date):
            evaluation = self.data.get_evaluation_for(service.id)
            if evaluation is None:
                continue
            individual = evaluation.service_day.individual_scores.get(student_id)
            if individual is None or not individual.attendance:
                continue
            group_total = None
            if group is not None:
                group_eval = evaluation.service_day.group_scores.get(group.id)
                if group_eval is not None:
                    group_total = group_eval.total
            rows.append(AttendedService(
                date=service.date,
                name=service.name,
                individual_total=individual.total,
                group_total=group_total,
            ))
        return rows

    def for_student(self, student_id: str) -> StudentRecordViewModel:
        student = self.data.get_student(student_id)
        if student is None:
            raise CompositionError(f"Alumno '{student_id}' no encontrado.")

        group = find_practice_group(student_id, self.data.practice_groups)
        calculated = calculate_student_grades(self.data, self.config, student_id)
        breakdowns = student_period_breakdowns(self.data, self.config, student_id, calculated)

        modules = self.data.course_grades.get(student_id, {})
        course_grades = {m: dict(modules.get(m, {})) for m in self.config.course_modules}
        for m, grades in modules.items():
            course_grades.setdefault(m, dict(grades))

        return StudentRecordViewModel(
            student=student,
            group=group,
            calculated=calculated,
            breakdowns=tuple(breakdowns),
            attended_services=tuple(self._attended_services(student_id, group)),
            course_grades=course_grades,
            course_averages={m: course_module_average(g) for m, g in course_grades.items()},
            incidents=tuple(sorted(self.data.records_for(student_id), key=_incident_sort_key)),
            letterhead=self.letterhead,
            config=self.config,
            photo=decode_data_url(student.foto_url),
            trimester_names={t.key: t.name for t in self.config.trimesters},
        )
