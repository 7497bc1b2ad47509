"""Excel-Notenübersicht der Klasse (openpyxl)."""

import logging
import re
from pathlib import Path
from typing import Optional

from config.schema import ExamPeriod, GradingConfig
from grading.calculated import (
    CalculatedGrades, PeriodBreakdown, calculate_all_grades, student_period_breakdowns,
)
from models.practice_data import PracticeData
from models.practice_group import find_practice_group

from export.helpers import COLORS

logger = logging.getLogger(__name__)


class GradebookExcelExporter:
    """Schreibt ein Blatt "Resumen" und je Bewertungszeitraum ein Detailblatt."""

    # Spaltenbreiten (Excel-Einheiten)
    COL_NAME_W  = 34
    COL_GROUP_W = 14
    COL_GRADE_W = 13

    # Zeilenhöhen (Punkte)
    ROW_HEADER_H = 32

    def __init__(self, data: PracticeData, config: GradingConfig):
        self.data = data
        self.config = config
        self.students = sorted(data.students, key=lambda s: s.sort_key)
        self.calculated: dict[str, CalculatedGrades] = calculate_all_grades(data, config)
        self.breakdowns: dict[str, list[PeriodBreakdown]] = {
            s.id: student_period_breakdowns(data, config, s.id, self.calculated[s.id])
            for s in self.students
        }

    # ─── Öffentliche API ──────────────────────────────────────────────────────

    def export(self, output_path: Path) -> Path:
        from openpyxl import Workbook
        wb = Workbook()
        wb.remove(wb.active)   # Leeres Standard-Sheet entfernen

        self._sheet_resumen(wb)
        for idx in range(len(self.config.evaluation)):
            self._sheet_period(wb, idx)

        output_path = Path(output_path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        wb.save(output_path)
        logger.info(f"Notenübersicht gespeichert: {output_path}")
        return output_path

    # ─── Style-Helpers ────────────────────────────────────────────────────────

    def _fill(self, hex_color: str):
        from openpyxl.styles import PatternFill
        return PatternFill(start_color=hex_color, end_color=hex_color, fill_type="solid")

    def _center_align(self, wrap: bool = True):
        from openpyxl.styles import Alignment
        return Alignment(wrap_text=wrap, horizontal="center", vertical="center")

    def _thin_border(self):
        from openpyxl.styles import Border, Side
        s = Side(border_style="thin", color="BBBBBB")
        return Border(left=s, right=s, top=s, bottom=s)

    @staticmethod
    def _sheet_title(name: str) -> str:
        """Excel erlaubt max. 31 Zeichen und keine []:*?/\\ im Blattnamen."""
        return re.sub(r"[\[\]:*?/\\]", "", name)[:31] or "Periodo"

    def _write_header_row(self, ws, headers: list[str]) -> None:
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter

        fill = self._fill(COLORS["header"])
        border = self._thin_border()
        for col, text in enumerate(headers, 1):
            cell = ws.cell(row=1, column=col, value=text)
            cell.fill = fill
            cell.font = Font(bold=True, color="FFFFFF", size=10)
            cell.alignment = self._center_align()
            cell.border = border
            if col > 2:
                ws.column_dimensions[get_column_letter(col)].width = self.COL_GRADE_W
        ws.column_dimensions["A"].width = self.COL_NAME_W
        ws.column_dimensions["B"].width = self.COL_GROUP_W
        ws.row_dimensions[1].height = self.ROW_HEADER_H
        ws.freeze_panes = "C2"

    def _write_grade(self, ws, row: int, col: int, value: Optional[float],
                     bold: bool = False) -> None:
        from openpyxl.styles import Font
        cell = ws.cell(row=row, column=col, value=value)
        cell.number_format = "0.00"
        cell.alignment = self._center_align(wrap=False)
        cell.border = self._thin_border()
        cell.font = Font(bold=bold, size=9)
        if value is not None:
            color = COLORS["pass"] if value >= 5 else COLORS["fail"]
            cell.font = Font(bold=bold, size=9, color=color)

    def _write_student(self, ws, row: int, student_id: str) -> None:
        from openpyxl.styles import Font
        student = self.data.get_student(student_id)
        group = find_practice_group(student_id, self.data.practice_groups)
        border = self._thin_border()
        c = ws.cell(row=row, column=1, value=student.full_name)
        c.border = border
        c.font = Font(size=9)
        c = ws.cell(row=row, column=2, value=group.name if group else "")
        c.border = border
        c.font = Font(size=9)

    # ─── Blätter ──────────────────────────────────────────────────────────────

    def _sheet_resumen(self, wb) -> None:
        ws = wb.create_sheet("Resumen")
        trimesters = self.config.trimesters
        headers = ["Alumno", "Grupo"]
        headers += [f"Servicios {t.key.upper()}" for t in trimesters]
        headers += [f"Ex. práctico {p.value.upper()}" for p in ExamPeriod]
        headers += [f"Media {p.name}" for p in self.config.evaluation]
        self._write_header_row(ws, headers)

        for row, student in enumerate(self.students, 2):
            self._write_student(ws, row, student.id)
            calc = self.calculated[student.id]
            col = 3
            for t in trimesters:
                self._write_grade(ws, row, col, calc.service_averages.get(t.key))
                col += 1
            for p in ExamPeriod:
                self._write_grade(ws, row, col, calc.practical_exams.get(p))
                col += 1
            for breakdown in self.breakdowns[student.id]:
                self._write_grade(ws, row, col, breakdown.average, bold=True)
                col += 1

    def _sheet_period(self, wb, index: int) -> None:
        period = self.config.evaluation[index]
        ws = wb.create_sheet(self._sheet_title(period.name))
        headers = ["Alumno", "Grupo"]
        headers += [f"{i.name} ({i.weight * 100:g} %)" for i in period.instruments]
        headers.append("Media ponderada")
        self._write_header_row(ws, headers)

        for row, student in enumerate(self.students, 2):
            self._write_student(ws, row, student.id)
            breakdown = self.breakdowns[student.id][index]
            col = 3
            for instrument in breakdown.instruments:
                self._write_grade(ws, row, col, instrument.grade)
                col += 1
            self._write_grade(ws, row, col, breakdown.average, bold=True)
            if row % 2 == 1:
                for c in range(1, col + 1):
                    ws.cell(row=row, column=c).fill = self._fill(COLORS["zebra"])
