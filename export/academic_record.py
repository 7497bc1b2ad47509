"""Ficha académica individual (Hochformat)."""

from datetime import date
from typing import Optional

from config.schema import ExamPeriod
from grading.averager import parse_grade
from grading.calculated import COURSE_GRADE_KEYS
from export.composer import MARGIN_X, BaseComposer, Cell, Column, DocumentKind
from export.helpers import COLORS, format_date_es, format_grade, safe_file_name
from export.measure import TextMeasurer
from export.view_model import StudentRecordViewModel

_IDENTITY_H = 36
_PHOTO = 30


class AcademicRecordComposer(BaseComposer):
    kind = DocumentKind.RECORD
    orientation = "P"

    def __init__(self, vm: StudentRecordViewModel, generated_on: date,
                 measurer: Optional[TextMeasurer] = None):
        super().__init__(vm.letterhead, generated_on, measurer)
        self.vm = vm

    def title(self) -> str:
        return "FICHA ACADÉMICA INDIVIDUAL"

    def file_name(self) -> str:
        return safe_file_name("Informe", self.vm.student.apellido1, self.vm.student.nombre)

    def build_content(self) -> None:
        self.fixed_block(_IDENTITY_H, self._identity)
        self._grade_summary()
        self._period_breakdowns()
        self._services()
        self._course_modules()
        self._incidents()

    # ─── Identität ───

    def _identity(self, y: float) -> float:
        b = self.builder
        s = self.vm.student
        text_x = MARGIN_X
        if self.vm.photo:
            b.image(MARGIN_X, y, _PHOTO, _PHOTO, self.vm.photo)
            text_x = MARGIN_X + _PHOTO + 5
        width = self.content_width - (text_x - MARGIN_X)
        b.text(text_x, y + 2, width, 7, s.display_name, size=14, style="B")
        muted = (100, 100, 100)
        details = [
            f"NRE: {s.nre or '-'}    Expediente: {s.expediente or '-'}",
            f"Grupo: {s.grupo or '-'}" + (f" ({s.subgrupo})" if s.subgrupo else ""),
            f"Grupo de prácticas: {self.vm.group.name if self.vm.group else 'N/A'}",
            s.email_oficial or s.email_personal,
        ]
        ty = y + 11
        for line in details:
            if line:
                b.text(text_x, ty, width, 5, line, size=10, color=muted)
                ty += 5.5
        return y + _IDENTITY_H

    # ─── Notenübersicht ───

    def _grade_summary(self) -> None:
        calc = self.vm.calculated
        rows = []
        for key, value in calc.service_averages.items():
            name = self.vm.trimester_names.get(key, key)
            rows.append([f"Media de Servicios Prácticos - {name}", format_grade(value)])
        for period in ExamPeriod:
            rows.append([f"Examen Práctico {period.value.upper()}",
                         format_grade(calc.practical_exams.get(period))])
        self.heading("Resumen de Calificaciones", gap_before=2)
        self.table([Column("Concepto", 130, "L"), Column("Nota", 50)], rows,
                   zebra=True, keep_together=True)

    def _period_breakdowns(self) -> None:
        for breakdown in self.vm.breakdowns:
            self.heading(breakdown.name, size=10)
            rows = [
                [i.name, f"{i.weight * 100:g} %", format_grade(i.grade)]
                for i in breakdown.instruments
            ]
            rows.append([
                Cell("Media ponderada", fill=COLORS["total"], bold=True),
                Cell("", fill=COLORS["total"]),
                Cell(format_grade(breakdown.average), fill=COLORS["total"], bold=True),
            ])
            self.table(
                [Column("Instrumento", 110, "L"), Column("Peso", 30), Column("Nota", 40)],
                rows, keep_together=True,
            )

    # ─── Servicios ───

    def _services(self) -> None:
        if not self.vm.attended_services:
            return
        self.heading("Servicios realizados")
        self.table(
            [Column("Fecha", 25), Column("Servicio", 95, "L"),
             Column("Nota Individual", 30), Column("Nota Grupal", 30)],
            [
                [format_date_es(s.date), s.name, f"{s.individual_total:.2f}",
                 format_grade(s.group_total)]
                for s in self.vm.attended_services
            ],
            header_fill=COLORS["roles"], zebra=True,
        )

    # ─── Weitere Module ───

    def _course_modules(self) -> None:
        if not self.vm.course_grades:
            return
        self.heading("Otros módulos")
        columns = [Column("Módulo", 80, "L")]
        columns += [Column(k.upper(), 20) for k in COURSE_GRADE_KEYS]
        columns.append(Column("Media", 20))
        rows = []
        for module, grades in self.vm.course_grades.items():
            row = [module]
            row += [format_grade(parse_grade(grades.get(k))) for k in COURSE_GRADE_KEYS]
            row.append(Cell(format_grade(self.vm.course_averages.get(module)), bold=True))
            rows.append(row)
        self.table(columns, rows, zebra=True, keep_together=True)

    # ─── Incidencias ───

    def _incidents(self) -> None:
        if not self.vm.incidents:
            return
        self.heading("Incidencias de asistencia")
        self.table(
            [Column("Fecha", 30), Column("Tipo", 45, "L"), Column("Motivo", 105, "L")],
            [[format_date_es(r.date), r.type.value, r.reason or "-"] for r in self.vm.incidents],
            header_fill=COLORS["incidents"], zebra=True,
        )
