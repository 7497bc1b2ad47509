"""Ficha de seguimiento: Erfassungsbogen je Gruppe und Schüler.

Je Schüler ein Block mit Kästchen für Vorbereitungstag und
Servicetag. Vorhandene Einträge des Vorbereitungstags werden vorbelegt;
lange Beobachtungen vergrößern das Beobachtungsfeld.
Jede Gruppe beginnt auf einer neuen Seite.
"""

import logging
from datetime import date
from typing import Optional

from models.evaluation import PreServiceDayEvaluation, PreServiceIndividualEvaluation
from models.student import Student
from export.composer import MARGIN_X, BaseComposer, DocumentKind
from export.helpers import (
    COLORS, behavior_symbol, check_mark, format_date_es, format_score, safe_file_name,
)
from export.measure import TextMeasurer
from export.view_model import GroupRoster, ReportViewModel

logger = logging.getLogger(__name__)

# ─── Blockmaße (mm) ───────────────────────────────────────────────────────────
_NAME_H = 6
_SLOT_ROW_H = 8
_OBS_H = 12
_OBS_LINE_H = 4
_GAP = 2
BLOCK_HEIGHT = _NAME_H + 2 * _SLOT_ROW_H + _OBS_H + _GAP
_CAPTION_W = 26
_BOX = 5


class TrackingSheetComposer(BaseComposer):
    kind = DocumentKind.TRACKING
    orientation = "L"

    def __init__(self, vm: ReportViewModel, generated_on: date,
                 measurer: Optional[TextMeasurer] = None):
        super().__init__(vm.letterhead, generated_on, measurer)
        self.vm = vm
        self._pre_key = vm.evaluation.latest_pre_service_date() if vm.evaluation else None

    @property
    def pre_service(self) -> Optional[PreServiceDayEvaluation]:
        if self._pre_key is None:
            return None
        return self.vm.evaluation.pre_service.get(self._pre_key)

    def title(self) -> str:
        week_of = self._pre_key or self.vm.service.date
        return f"Ficha de Seguimiento - Semana del {format_date_es(week_of)}"

    def file_name(self) -> str:
        return safe_file_name("Ficha_Seguimiento", self.vm.service.name)

    # ─── Inhalt ───

    def build_content(self) -> None:
        rosters = [r for r in self.vm.groups if r.students]
        if not rosters:
            self.paragraph("No hay alumnos asignados a este servicio.", style="I")
            return
        for roster in rosters:
            self.start_new_page()
            self._group_section(roster)

    def _group_section(self, roster: GroupRoster) -> None:
        self.band(f"Grupo: {roster.group.name}  |  {self.vm.service.name}  |  "
                  f"{format_date_es(self.vm.service.date)}")
        self.spacer(2)
        for idx, student in enumerate(roster.students):
            obs_lines = self._observation_lines(student)
            obs_h = max(_OBS_H, len(obs_lines) * _OBS_LINE_H + 2)
            self.fixed_block(
                BLOCK_HEIGHT - _OBS_H + obs_h,
                lambda y, s=student, i=idx, lines=obs_lines, h=obs_h:
                    self._student_block(y, s, i, lines, h),
            )

    # ─── Schülerblock ───

    def _individual(self, student_id: str) -> Optional[PreServiceIndividualEvaluation]:
        day = self.pre_service
        if day is None:
            return None
        return day.individual_evaluations.get(student_id)

    def _observation_lines(self, student: Student) -> list[str]:
        """Umbrochene Beobachtungen; gekürzt nur, wenn der Block sonst die Seite sprengt."""
        ind = self._individual(student.id)
        if ind is None or not ind.observations:
            return []
        lines = self.lines_for(ind.observations, self.content_width - _CAPTION_W - 4, 7)
        fixed = BLOCK_HEIGHT - _OBS_H + 2
        max_lines = max(1, int((self.engine.geometry.usable_height - fixed) // _OBS_LINE_H))
        if len(lines) > max_lines:
            logger.debug(
                f"Beobachtungen von {student.full_name} auf {max_lines} Zeilen gekürzt"
            )
            lines = lines[:max_lines]
            lines[-1] = lines[-1].rstrip() + " ..."
        return lines

    def _student_block(self, y: float, student: Student, index: int,
                       obs_lines: list[str], obs_h: float) -> float:
        b = self.builder
        w = self.content_width
        fill = COLORS["zebra"] if index % 2 else None

        # Namenszeile
        b.rect(MARGIN_X, y, w, _NAME_H, fill=fill or "FFFFFF", border=COLORS["border"])
        b.text(MARGIN_X + 2, y, w * 0.6, _NAME_H, student.full_name, size=9, style="B")
        role = self.vm.role_for(student.id)
        b.text(MARGIN_X + w * 0.6, y, w * 0.4 - 2, _NAME_H,
               f"Puesto: {role.name if role else 'Sin asignar'}", size=8, align="R")
        y += _NAME_H

        ind = self._individual(student.id)
        criteria = self.vm.config.criteria
        pre_items = [
            ("Asistencia", check_mark(ind.attendance) if ind else ""),
            ("Fichas", check_mark(ind.has_fichas) if ind else ""),
            ("Uniforme", check_mark(ind.has_uniforme) if ind else ""),
            ("Material", check_mark(ind.has_material) if ind else ""),
        ]
        pre_items += [
            (item.label, behavior_symbol(ind.behavior_scores.get(item.id)) if ind else "")
            for item in criteria.pre_service_behavior
        ]
        y = self._slot_row(y, "Pre-servicio", pre_items)

        day_items = [
            (f"{c.label} (/{format_score(c.max_score)})", "")
            for c in criteria.service_day_individual
        ]
        y = self._slot_row(y, "Día de servicio", day_items)

        # Beobachtungen
        b.rect(MARGIN_X, y, w, obs_h, border=COLORS["border"])
        b.text(MARGIN_X + 2, y + 1, _CAPTION_W, _OBS_LINE_H, "Observaciones", size=7, style="B")
        for n, line in enumerate(obs_lines):
            b.text(MARGIN_X + _CAPTION_W + 2, y + 1 + n * _OBS_LINE_H, w - _CAPTION_W - 4,
                   _OBS_LINE_H, line, size=7)
        return y + obs_h + _GAP

    def _slot_row(self, y: float, caption: str, items: list[tuple[str, str]]) -> float:
        """Beschriftung + gleich breite Felder mit Kästchen."""
        b = self.builder
        w = self.content_width
        b.rect(MARGIN_X, y, w, _SLOT_ROW_H, border=COLORS["border"])
        b.text(MARGIN_X + 2, y, _CAPTION_W - 2, _SLOT_ROW_H, caption, size=7, style="B")
        if not items:
            return y + _SLOT_ROW_H

        slot_w = (w - _CAPTION_W) / len(items)
        box_y = y + (_SLOT_ROW_H - _BOX) / 2
        for n, (label, value) in enumerate(items):
            sx = MARGIN_X + _CAPTION_W + n * slot_w
            b.line(sx, y, sx, y + _SLOT_ROW_H, color=COLORS["border"])
            b.text(sx + 1, y, slot_w - _BOX - 3, _SLOT_ROW_H,
                   self._fit(label, slot_w - _BOX - 3, 6), size=6)
            bx = sx + slot_w - _BOX - 1.5
            b.rect(bx, box_y, _BOX, _BOX, border="646464")
            b.text(bx, box_y, _BOX, _BOX, value, size=7, style="B", align="C")
        return y + _SLOT_ROW_H

    def _fit(self, label: str, width: float, size: float) -> str:
        """Erste Zeile, damit lange Kriteriennamen im Feld bleiben."""
        lines = self.lines_for(label, width, size)
        return lines[0] if lines else ""
