"""Testdaten-Generator für die Praxisservices.

Erzeugt einen vollständigen, reproduzierbaren Schnappschuss (Seed) mit
absichtlichen Lücken, damit Notenberechnung und Dokumente alle Fälle sehen:

  1. Fehlende Noten: einzelne Kriterien bleiben ``None``
  2. Abwesenheit: ~10 % der Schüler fehlen am Servicetag
  3. Unbewerteter Service: der letzte Service hat keine Bewertung
  4. Manuelle Noten teils als Text mit Dezimalkomma ("7,5")
  5. Recuperación nur für Schüler mit T1-Prüfung unter 5
"""

import random
from datetime import date, timedelta
from typing import Optional

from config.schema import ExamPeriod, GradingConfig
from config.defaults import COURSE_MODULES
from models.evaluation import (
    PreServiceDayEvaluation, PreServiceIndividualEvaluation, ServiceDayEvaluation,
    ServiceDayGroupScores, ServiceDayIndividualScores, ServiceEvaluation,
)
from models.exam import ExamScore, PracticalExamEvaluation
from models.practice_data import PracticeData
from models.practice_group import PracticeGroup
from models.records import EntryExitRecord, EntryExitType, InstituteData, TeacherData
from models.service import (
    AreaElaborations, AreaGroups, Elaboration, RoleType, Service, ServiceRole,
    StudentRoleAssignment,
)
from models.student import Student

# ─── Namens-Listen ────────────────────────────────────────────────────────────

_NOMBRES = [
    "Lucía", "Hugo", "Martina", "Daniel", "Sofía", "Pablo", "Valeria", "Álvaro",
    "Paula", "Adrián", "Carmen", "Javier", "Elena", "Sergio", "Irene", "Marcos",
    "Claudia", "Diego", "Noelia", "Raúl", "Alba", "Iván", "Sara", "Rubén",
]

_APELLIDOS = [
    "García", "Martínez", "López", "Sánchez", "Pérez", "Gómez", "Fernández",
    "Ruiz", "Díaz", "Moreno", "Muñoz", "Álvarez", "Romero", "Navarro",
    "Torres", "Domínguez", "Gil", "Vázquez", "Serrano", "Ramos", "Molina",
    "Ortega", "Delgado", "Castro", "Rubio", "Marín", "Sanz", "Iglesias",
]

_GROUP_COLORS = ["F9E79F", "AED6F1", "A9DFBF", "F5B7B1", "D7BDE2", "FAD7A0"]

_ROLES: list[tuple[str, str, RoleType]] = [
    ("Jefe de Cocina", "8E44AD", RoleType.LEADER),
    ("Jefe de Sala", "2471A3", RoleType.LEADER),
    ("Cocinero", "F0B27A", RoleType.SECONDARY),
    ("Camarero", "85C1E9", RoleType.SECONDARY),
    ("Barra", "82E0AA", RoleType.SECONDARY),
    ("Office", "D5DBDB", RoleType.SECONDARY),
]

_DISHES = [
    "Crema de calabaza", "Ensalada templada", "Croquetas caseras", "Merluza en salsa verde",
    "Arroz meloso de setas", "Pollo al chilindrón", "Tarta de queso", "Flan de huevo",
    "Gazpacho", "Tortilla de patatas", "Albóndigas en salsa", "Arroz con leche",
]

_MENU_NAMES = ["Menú de otoño", "Menú tradicional", "Menú mediterráneo", "Menú de temporada"]

_REASONS = ["Cita médica", "Transporte", "Asunto familiar", "", "Sin justificar"]


def _first_weekday(start: date, weekday: int) -> date:
    return start + timedelta(days=(weekday - start.weekday()) % 7)


class FakeDataGenerator:
    """Generiert vollständige Testdaten auf Basis der GradingConfig."""

    def __init__(
        self,
        config: GradingConfig,
        seed: Optional[int] = None,
        num_students: int = 16,
        num_groups: int = 4,
        services_per_trimester: int = 3,
    ) -> None:
        self.config = config
        self.rng = random.Random(seed)
        self.num_students = num_students
        self.num_groups = max(2, num_groups)
        self.services_per_trimester = services_per_trimester

    # ─── Stammdaten ───────────────────────────────────────────────────────────

    def _generate_students(self) -> list[Student]:
        students = []
        used: set[tuple[str, str]] = set()
        for n in range(1, self.num_students + 1):
            while True:
                key = (
                    self.rng.choice(_NOMBRES),
                    self.rng.choice(_APELLIDOS),
                    self.rng.choice(_APELLIDOS),
                )
                # Dateinamen bestehen aus Apellido1 + Nombre
                if key[:2] not in used:
                    used.add(key[:2])
                    break
            nombre, ap1, ap2 = key
            students.append(Student(
                id=f"st-{n:02d}",
                nre=str(self.rng.randint(1000000, 9999999)),
                expediente=f"{2025}{n:03d}",
                nombre=nombre,
                apellido1=ap1,
                apellido2=ap2,
                grupo="1º SR",
                subgrupo="A" if n % 2 else "B",
                fecha_nacimiento=f"{self.rng.randint(1, 28):02d}/"
                                 f"{self.rng.randint(1, 12):02d}/{self.rng.randint(2005, 2008)}",
                telefono=f"6{self.rng.randint(10000000, 99999999)}",
                email_oficial=f"{nombre[0].lower()}{n:02d}@alu.edu.example",
            ))
        return students

    def _generate_groups(self, students: list[Student]) -> list[PracticeGroup]:
        groups = [
            PracticeGroup(
                id=f"grp-{n}",
                name=f"Grupo {n}",
                color=_GROUP_COLORS[(n - 1) % len(_GROUP_COLORS)],
            )
            for n in range(1, self.num_groups + 1)
        ]
        shuffled = list(students)
        self.rng.shuffle(shuffled)
        for idx, student in enumerate(shuffled):
            groups[idx % len(groups)].student_ids.append(student.id)
        return groups

    def _generate_roles(self) -> list[ServiceRole]:
        return [
            ServiceRole(id=f"role-{n}", name=name, color=color, type=kind)
            for n, (name, color, kind) in enumerate(_ROLES, 1)
        ]

    # ─── Services ─────────────────────────────────────────────────────────────

    def _service_dates(self) -> list[str]:
        """Mittwochs alle drei Wochen innerhalb jedes Trimesters."""
        dates = []
        for trimester in self.config.trimesters:
            start = date.fromisoformat(trimester.start)
            end = date.fromisoformat(trimester.end)
            day = _first_weekday(start + timedelta(days=7), 2)
            for _ in range(self.services_per_trimester):
                if day > end:
                    break
                dates.append(day.isoformat())
                day += timedelta(days=21)
        return dates

    def _generate_services(
        self, groups: list[PracticeGroup], roles: list[ServiceRole]
    ) -> list[Service]:
        services = []
        half = len(groups) // 2
        leaders = [r for r in roles if r.type == RoleType.LEADER]
        others = [r for r in roles if r.type == RoleType.SECONDARY]

        for n, day in enumerate(self._service_dates(), 1):
            # Gruppen rotieren zwischen Comedor und Takeaway
            rotated = groups[n % len(groups):] + groups[:n % len(groups)]
            comedor, takeaway = rotated[:half], rotated[half:]

            def dishes(area_groups: list[PracticeGroup], count: int) -> list[Elaboration]:
                names = self.rng.sample(_DISHES, count)
                return [
                    Elaboration(
                        id=f"el-{n}-{area_groups[0].id}-{i}",
                        name=name,
                        responsible_group_id=area_groups[i % len(area_groups)].id,
                    )
                    for i, name in enumerate(names)
                ]

            assignments = []
            for group in rotated:
                for idx, sid in enumerate(group.student_ids):
                    if idx == 0 and group in rotated[:len(leaders)]:
                        role = leaders[rotated.index(group)]
                    else:
                        role = self.rng.choice(others)
                    assignments.append(StudentRoleAssignment(student_id=sid, role_id=role.id))

            services.append(Service(
                id=f"srv-{n:02d}",
                name=f"Servicio {n} - {self.rng.choice(_MENU_NAMES)}",
                date=day,
                is_locked=False,
                assigned_groups=AreaGroups(
                    comedor=[g.id for g in comedor],
                    takeaway=[g.id for g in takeaway],
                ),
                elaborations=AreaElaborations(
                    comedor=dishes(comedor, 3),
                    takeaway=dishes(takeaway, 2),
                ),
                student_roles=assignments,
            ))
        return services

    # ─── Bewertungen ──────────────────────────────────────────────────────────

    def _score(self, max_score: float) -> Optional[float]:
        if self.rng.random() < 0.08:
            return None
        steps = int(max_score * 2)
        low = steps // 3
        return self.rng.randint(low, steps) / 2

    def _evaluate(self, service: Service, groups: list[PracticeGroup]) -> ServiceEvaluation:
        criteria = self.config.criteria
        participating = [g for g in groups if g.id in service.assigned_groups.all_ids]
        pre_day = (date.fromisoformat(service.date) - timedelta(days=1)).isoformat()

        individual_pre = {}
        individual_day = {}
        for group in participating:
            for sid in group.student_ids:
                individual_pre[sid] = PreServiceIndividualEvaluation(
                    attendance=self.rng.random() > 0.05,
                    has_fichas=self.rng.random() > 0.15,
                    has_uniforme=self.rng.random() > 0.1,
                    has_material=self.rng.random() > 0.1,
                    behavior_scores={
                        item.id: (None if self.rng.random() < 0.05 else self.rng.choice([0, 1, 2, 2]))
                        for item in criteria.pre_service_behavior
                    },
                    observations=self.rng.choice(["", "", "", "Trae la ficha incompleta."]),
                )
                attended = self.rng.random() > 0.1
                individual_day[sid] = ServiceDayIndividualScores(
                    attendance=attended,
                    scores=[self._score(c.max_score) for c in criteria.service_day_individual]
                    if attended else [],
                    observations="" if attended else "No asiste.",
                )

        return ServiceEvaluation(
            id=f"ev-{service.id}",
            service_id=service.id,
            pre_service={
                pre_day: PreServiceDayEvaluation(
                    name="Pre-servicio",
                    group_observations={
                        g.id: self.rng.choice(["", "Buena organización.", "Falta coordinación."])
                        for g in participating
                    },
                    individual_evaluations=individual_pre,
                ),
            },
            service_day=ServiceDayEvaluation(
                group_scores={
                    g.id: ServiceDayGroupScores(
                        scores=[self._score(c.max_score) for c in criteria.service_day_group],
                        observations=self.rng.choice(["", "Servicio fluido.", "Retraso en pases."]),
                    )
                    for g in participating
                },
                individual_scores=individual_day,
            ),
        )

    def _generate_exams(self, students: list[Student]) -> list[PracticalExamEvaluation]:
        exams = []
        for s in students:
            t1 = round(self.rng.uniform(3.5, 9.5), 2)
            finals = {ExamPeriod.T1: t1, ExamPeriod.T2: round(self.rng.uniform(4.0, 9.5), 2)}
            if self.rng.random() < 0.5:
                finals[ExamPeriod.T3] = round(self.rng.uniform(4.0, 9.5), 2)
            if t1 < 5:
                finals[ExamPeriod.REC] = round(self.rng.uniform(5.0, 8.0), 2)
            for period, final in finals.items():
                exams.append(PracticalExamEvaluation(
                    id=f"ex-{s.id}-{period.value}",
                    student_id=s.id,
                    exam_period=period,
                    scores={"elaboracion": {"tecnica": ExamScore(score=final)}},
                    final_score=final,
                ))
        return exams

    def _grade_value(self):
        value = round(self.rng.uniform(3.0, 10.0) * 2) / 2
        # Eingabemaske liefert teils Text mit Dezimalkomma
        return f"{value:g}".replace(".", ",") if self.rng.random() < 0.3 else value

    def _generate_manual_grades(self, students: list[Student]) -> dict:
        grades = {}
        for s in students:
            grades[s.id] = {
                key: {"teorico1": self._grade_value(), "teorico2": self._grade_value()}
                for key in ("t1", "t2")
            }
        return grades

    def _generate_course_grades(self, students: list[Student]) -> dict:
        return {
            s.id: {
                module: {"t1": self._grade_value(), "t2": self._grade_value(),
                         "t3": None, "rec": None}
                for module in (self.config.course_modules or COURSE_MODULES)
            }
            for s in students
        }

    def _generate_incidents(
        self, students: list[Student], services: list[Service]
    ) -> list[EntryExitRecord]:
        records = []
        for n in range(len(students) // 2):
            service = self.rng.choice(services)
            day = date.fromisoformat(service.date) + timedelta(days=self.rng.randint(-3, 3))
            records.append(EntryExitRecord(
                id=f"inc-{n + 1:02d}",
                student_id=self.rng.choice(students).id,
                date=day.strftime("%d/%m/%Y"),
                type=self.rng.choice(list(EntryExitType)),
                reason=self.rng.choice(_REASONS),
            ))
        return records

    # ─── Vollständiger Datensatz ──────────────────────────────────────────────

    def generate(self) -> PracticeData:
        """Erzeugt den vollständigen Datensatz als PracticeData-Objekt."""
        students = self._generate_students()
        groups = self._generate_groups(students)
        roles = self._generate_roles()
        services = self._generate_services(groups, roles)
        # Letzter Service bleibt unbewertet
        evaluations = [self._evaluate(s, groups) for s in services[:-1]]
        for service, evaluation in zip(services, evaluations):
            service.evaluation_id = evaluation.id

        return PracticeData(
            students=students,
            practice_groups=groups,
            services=services,
            service_evaluations=evaluations,
            service_roles=roles,
            entry_exit_records=self._generate_incidents(students, services),
            practical_exams=self._generate_exams(students),
            teacher=TeacherData(name="Profesor de Prácticas", email="profesor@centro.example"),
            institute=InstituteData(
                name="IES Escuela de Hostelería",
                address="Calle Mayor 1, 30001 Murcia",
                cif="Q3000000A",
            ),
            academic_grades=self._generate_manual_grades(students),
            course_grades=self._generate_course_grades(students),
        )

    # ─── Ausgabe ──────────────────────────────────────────────────────────────

    def print_summary(self, data: PracticeData) -> None:
        """Gibt eine Rich-Tabelle mit Übersicht der erzeugten Daten aus."""
        from rich.console import Console
        from rich.table import Table
        from rich import box

        console = Console()
        table = Table(title="Erzeugte Testdaten", box=box.ROUNDED)
        table.add_column("Kategorie", style="bold cyan")
        table.add_column("Anzahl", justify="right")
        table.add_column("Details")

        evaluated = {e.service_id for e in data.service_evaluations}
        table.add_row("Alumnos", str(len(data.students)), "")
        table.add_row("Grupos de prácticas", str(len(data.practice_groups)),
                      ", ".join(g.name for g in data.practice_groups))
        table.add_row("Servicios", str(len(data.services)),
                      f"{len(evaluated)} evaluados")
        table.add_row("Exámenes prácticos", str(len(data.practical_exams)), "")
        table.add_row("Incidencias", str(len(data.entry_exit_records)), "")

        console.print(table)
