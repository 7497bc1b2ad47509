"""Informe de evaluación eines Service.

Erst eine gruppenübergreifende Tabelle mit Gruppenpunkten und
Beobachtungen, danach je Gruppe eine eigene Seite mit einer
Kriterien × Schüler-Tabelle. Zu viele Schüler werden auf mehrere
Tabellen mit je ``MAX_STUDENT_COLUMNS`` Spalten verteilt.
"""

from datetime import date
from typing import Optional

from grading.aggregator import PeriodScores
from grading.calculated import build_aggregator
from models.evaluation import PreServiceDayEvaluation, ServiceEvaluation
from models.student import Student
from export.composer import BaseComposer, Cell, Column, DocumentKind
from export.helpers import (
    COLORS, behavior_symbol, check_mark, format_grade, format_score, safe_file_name,
)
from export.measure import TextMeasurer
from export.view_model import GroupRoster, ReportViewModel

MAX_STUDENT_COLUMNS = 9
_LABEL_W = 60


def _chunks(items: list, size: int) -> list[list]:
    return [items[i:i + size] for i in range(0, len(items), size)]


class EvaluationReportComposer(BaseComposer):
    kind = DocumentKind.EVALUATION
    orientation = "L"

    def __init__(self, vm: ReportViewModel, generated_on: date,
                 measurer: Optional[TextMeasurer] = None):
        super().__init__(vm.letterhead, generated_on, measurer)
        self.vm = vm
        self.aggregator = build_aggregator(vm.config)
        self.evaluation: Optional[ServiceEvaluation] = None
        self.pre_service: Optional[PreServiceDayEvaluation] = None

    def prepare(self) -> None:
        self.evaluation = self.vm.require_evaluation()
        pre_key = self.evaluation.latest_pre_service_date()
        self.pre_service = self.evaluation.pre_service.get(pre_key) if pre_key else None

    def title(self) -> str:
        return f"Informe de Evaluación: {self.vm.service.name}"

    def file_name(self) -> str:
        return safe_file_name("Informe_Evaluacion", self.vm.service.name)

    def build_content(self) -> None:
        self._group_overview()
        for roster in self.vm.groups:
            self.start_new_page()
            self._group_page(roster)

    # ─── Gruppenübersicht ───

    def _group_overview(self) -> None:
        criteria = self.vm.config.criteria.service_day_group
        max_total = self.vm.config.criteria.group_max_total
        fixed = 35 + 25 + 22
        crit_w = min(20.0, (self.content_width - fixed - 60) / max(len(criteria), 1))
        obs_w = self.content_width - fixed - crit_w * len(criteria)

        columns = [Column("Grupo", 35, "L"), Column("Área", 25)]
        columns += [Column(c.label, crit_w) for c in criteria]
        columns += [Column(f"Total (/{format_score(max_total)})", 22), Column("Observaciones", obs_w, "L")]

        rows = []
        day = self.evaluation.service_day
        for roster in self.vm.groups:
            gs = day.group_scores.get(roster.group.id)
            scores = list(gs.scores) if gs else []
            cells = [
                Cell(roster.group.name, bold=True),
                ", ".join(a.label for a in roster.areas),
            ]
            cells += [format_score(scores[i]) if i < len(scores) else "" for i in range(len(criteria))]
            cells.append(format_score(gs.total) if gs and gs.has_scores else "-")
            cells.append(gs.observations if gs else "")
            rows.append(cells)
        if not rows:
            rows.append(["-"] * len(columns))

        self.heading("Evaluación grupal del día de servicio", gap_before=0)
        self.table(columns, rows, zebra=True)

    # ─── Gruppenseite ───

    def _group_page(self, roster: GroupRoster) -> None:
        self.band(f"Grupo: {roster.group.name}")
        if self.pre_service is not None:
            note = self.pre_service.group_observations.get(roster.group.id)
            if note:
                self.spacer(1)
                self.paragraph(f"Observaciones pre-servicio: {note}", style="I")

        if not roster.students:
            self.paragraph("Grupo sin alumnos.", style="I")
            return

        for chunk in _chunks(list(roster.students), MAX_STUDENT_COLUMNS):
            self.spacer(3)
            self._student_table(roster, chunk)

    def _student_table(self, roster: GroupRoster, students: list[Student]) -> None:
        criteria = self.vm.config.criteria
        col_w = (self.content_width - _LABEL_W) / MAX_STUDENT_COLUMNS
        columns = [Column("Criterio", _LABEL_W, "L")]
        columns += [Column(s.short_name, col_w) for s in students]

        day = self.evaluation.service_day
        pre = self.pre_service.individual_evaluations if self.pre_service else {}
        group_eval = day.group_scores.get(roster.group.id)

        def section(label: str) -> list:
            return [Cell(label, fill=COLORS["group_band"], bold=True)] + \
                   [Cell("", fill=COLORS["group_band"]) for _ in students]

        def row(label: str, values: list[str]) -> list:
            return [label] + values

        rows = [section("PRE-SERVICIO")]
        for label, attr in (("Asistencia", "attendance"), ("Fichas", "has_fichas"),
                            ("Uniforme", "has_uniforme"), ("Material", "has_material")):
            rows.append(row(label, [
                check_mark(getattr(pre[s.id], attr)) if s.id in pre else "" for s in students
            ]))
        for item in criteria.pre_service_behavior:
            rows.append(row(item.label, [
                behavior_symbol(pre[s.id].behavior_scores.get(item.id)) if s.id in pre else ""
                for s in students
            ]))

        rows.append(section("DÍA DE SERVICIO"))
        individual = {s.id: day.individual_scores.get(s.id) for s in students}
        rows.append(row("Asistencia", [
            check_mark(individual[s.id].attendance) if individual[s.id] else "" for s in students
        ]))
        for idx, crit in enumerate(criteria.service_day_individual):
            values = []
            for s in students:
                ind = individual[s.id]
                score = ind.scores[idx] if ind and idx < len(ind.scores) else None
                values.append(format_score(score))
            rows.append(row(f"{crit.label} (/{format_score(crit.max_score)})", values))

        ind_totals = []
        service_grades = []
        group_total = group_eval.total if group_eval and group_eval.has_scores else None
        for s in students:
            ind = individual[s.id]
            counts = ind is not None and ind.counts
            ind_totals.append(format_score(ind.total) if counts else "-")
            if ind is None or not ind.attendance:
                service_grades.append("-")
                continue
            scores = PeriodScores(
                individual=[ind.total] if counts else [],
                group=[group_total] if group_total is not None else [],
            )
            service_grades.append(format_grade(self.aggregator.combine(scores)))

        rows.append(row(
            f"Total individual (/{format_score(criteria.individual_max_total)})",
            [Cell(v, bold=True) for v in ind_totals],
        ))
        rows.append(row(
            f"Nota grupal (/{format_score(criteria.group_max_total)})",
            [format_score(group_total) if group_total is not None else "-" for _ in students],
        ))
        rows.append([Cell("Nota del servicio", fill=COLORS["total"], bold=True)] + [
            Cell(v, fill=COLORS["total"], bold=True) for v in service_grades
        ])
        rows.append(row("Observaciones", [
            individual[s.id].observations if individual[s.id] else "" for s in students
        ]))

        self.table(columns, rows, size=7)
