"""Dossier eines Schülers für einen Service."""

from datetime import date
from typing import Optional

from grading.aggregator import PeriodScores
from grading.calculated import build_aggregator
from export.composer import BaseComposer, Column, DocumentKind
from export.helpers import (
    COLORS, behavior_symbol, format_date_es, format_grade, format_score,
    safe_file_name, week_window,
)
from export.measure import TextMeasurer
from export.view_model import ReportViewModel


def _yes_no(flag: bool) -> str:
    return "Sí" if flag else "No"


class DossierComposer(BaseComposer):
    kind = DocumentKind.DOSSIER
    orientation = "P"

    def __init__(self, vm: ReportViewModel, student_id: str, generated_on: date,
                 measurer: Optional[TextMeasurer] = None):
        super().__init__(vm.letterhead, generated_on, measurer)
        self.vm = vm
        self.student_id = student_id

    def prepare(self) -> None:
        self.student = self.vm.require_participant(self.student_id)
        self.evaluation = self.vm.require_evaluation()
        self.group = self.vm.group_for(self.student_id)

    def title(self) -> str:
        return f"Dossier: {self.student.display_name}"

    def file_name(self) -> str:
        return safe_file_name(
            "Dossier", self.student.apellido1, self.student.nombre, self.vm.service.name,
        )

    def build_content(self) -> None:
        self._summary()
        self._pre_service()
        self._service_day()
        self._group()
        self._incidents()

    # ─── Resumen ───

    def _summary(self) -> None:
        criteria = self.vm.config.criteria
        day = self.evaluation.service_day
        ind = day.individual_scores.get(self.student.id)
        gs = day.group_scores.get(self.group.id) if self.group else None
        group_total = gs.total if gs and gs.has_scores else None

        service_grade = None
        if ind is not None and ind.attendance:
            service_grade = build_aggregator(self.vm.config).combine(PeriodScores(
                individual=[ind.total] if ind.counts else [],
                group=[group_total] if group_total is not None else [],
            ))
        role = self.vm.role_for(self.student.id)

        self.key_value_table(
            [
                ("Alumno", self.student.full_name),
                ("NRE", self.student.nre or "-"),
                ("Grupo de prácticas", self.group.name if self.group else "N/A"),
                ("Puesto", role.name if role else "Sin asignar"),
                ("Servicio", self.vm.service.name),
                ("Fecha", format_date_es(self.vm.service.date)),
                (f"Total individual (/{format_score(criteria.individual_max_total)})",
                 format_score(ind.total) if ind is not None and ind.counts else "-"),
                (f"Nota grupal (/{format_score(criteria.group_max_total)})",
                 format_score(group_total) if group_total is not None else "-"),
                ("Nota del servicio", format_grade(service_grade)),
            ],
            label_width=70, value_width=110, title="Resumen",
        )

    # ─── Pre-servicio ───

    def _pre_service(self) -> None:
        self.heading("Pre-servicio")
        days = sorted(self.evaluation.pre_service.items())
        entries = [
            (key, day, day.individual_evaluations.get(self.student.id))
            for key, day in days
        ]
        entries = [(k, d, e) for k, d, e in entries if e is not None]
        if not entries:
            self.paragraph("Sin registros de pre-servicio.", style="I")
            return

        behavior = self.vm.config.criteria.pre_service_behavior
        for key, day, ev in entries:
            caption = format_date_es(key) + (f" - {day.name}" if day.name else "")
            rows = [
                ["Asistencia", _yes_no(ev.attendance)],
                ["Fichas", _yes_no(ev.has_fichas)],
                ["Uniforme", _yes_no(ev.has_uniforme)],
                ["Material", _yes_no(ev.has_material)],
            ]
            rows += [
                [item.label, behavior_symbol(ev.behavior_scores.get(item.id)) or "-"]
                for item in behavior
            ]
            self.spacer(2)
            self.table([Column(caption, 100, "L"), Column("Valor", 40)], rows,
                       zebra=True, keep_together=True)
            if ev.observations:
                self.paragraph(f"Observaciones: {ev.observations}", style="I")

    # ─── Día de servicio ───

    def _service_day(self) -> None:
        self.heading("Día de servicio (individual)")
        ind = self.evaluation.service_day.individual_scores.get(self.student.id)
        if ind is None:
            self.paragraph("Sin evaluación individual del día de servicio.", style="I")
            return

        rows = [["Asistencia", _yes_no(ind.attendance), ""]]
        for idx, crit in enumerate(self.vm.config.criteria.service_day_individual):
            score = ind.scores[idx] if idx < len(ind.scores) else None
            rows.append([crit.label, format_score(score) or "-", format_score(crit.max_score)])
        rows.append([
            "Total",
            format_score(ind.total) if ind.counts else "-",
            format_score(self.vm.config.criteria.individual_max_total),
        ])
        self.table(
            [Column("Criterio", 110, "L"), Column("Puntuación", 35), Column("Máximo", 35)],
            rows, header_fill=COLORS["roles"], zebra=True, keep_together=True,
        )
        if ind.observations:
            self.paragraph(f"Observaciones: {ind.observations}", style="I")

    # ─── Grupo ───

    def _group(self) -> None:
        if self.group is None:
            return
        self.heading(f"Evaluación del grupo: {self.group.name}")
        gs = self.evaluation.service_day.group_scores.get(self.group.id)
        if gs is None:
            self.paragraph("Sin evaluación grupal.", style="I")
        else:
            rows = []
            for idx, crit in enumerate(self.vm.config.criteria.service_day_group):
                score = gs.scores[idx] if idx < len(gs.scores) else None
                rows.append([crit.label, format_score(score) or "-", format_score(crit.max_score)])
            rows.append([
                "Total",
                format_score(gs.total) if gs.has_scores else "-",
                format_score(self.vm.config.criteria.group_max_total),
            ])
            self.table(
                [Column("Criterio", 110, "L"), Column("Puntuación", 35), Column("Máximo", 35)],
                rows, zebra=True, keep_together=True,
            )
            if gs.observations:
                self.paragraph(f"Observaciones: {gs.observations}", style="I")

        notes = [
            (key, day.group_observations.get(self.group.id))
            for key, day in sorted(self.evaluation.pre_service.items())
        ]
        for key, note in notes:
            if note:
                self.paragraph(f"Pre-servicio {format_date_es(key)}: {note}", style="I")

    # ─── Incidencias ───

    def _incidents(self) -> None:
        window = week_window(self.vm.service.date)
        caption = "Incidencias de la semana"
        if window is not None:
            caption += f" ({format_date_es(window[0])} - {format_date_es(window[1])})"
        self.heading(caption)

        records = self.vm.incidents_in_service_week(self.student.id)
        if not records:
            self.paragraph("Sin incidencias en la semana del servicio.", style="I")
            return
        self.table(
            [Column("Fecha", 30), Column("Tipo", 45, "L"), Column("Motivo", 105, "L")],
            [[format_date_es(r.date), r.type.value, r.reason or "-"] for r in records],
            header_fill=COLORS["incidents"], zebra=True,
        )
