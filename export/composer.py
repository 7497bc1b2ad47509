"""Gemeinsame Bausteine aller Dokument-Composer.

Ein Composer ist eine reine Transformation: View-Model rein, umbrochenes
``ComposedDocument`` raus. Jede Erzeugung besitzt ihren eigenen
``DocumentBuilder`` und ihre eigene ``PageLayoutEngine``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import date
from enum import Enum
from typing import TYPE_CHECKING, Callable, Optional, Sequence, Union

from export.document import PAGE_COUNT_ALIAS, ComposedDocument, DocumentBuilder, PageFormat
from export.helpers import COLORS, format_date_es
from export.layout import PageGeometry, PageLayoutEngine, Placement
from export.measure import TextMeasurer, line_height

if TYPE_CHECKING:
    from export.view_model import Letterhead

logger = logging.getLogger(__name__)


class CompositionError(Exception):
    """Ein einzelnes Dokument kann nicht erzeugt werden (Meldung für den Nutzer)."""


class DocumentKind(str, Enum):
    PLANNING = "planning"
    TRACKING = "tracking"
    EVALUATION = "evaluation"
    DOSSIER = "dossier"
    RECORD = "record"

    @property
    def label(self) -> str:
        return {
            "planning":   "Planning del servicio",
            "tracking":   "Ficha de seguimiento",
            "evaluation": "Informe de evaluación",
            "dossier":    "Dossier del alumno",
            "record":     "Ficha académica individual",
        }[self.value]

    @property
    def per_student(self) -> bool:
        return self in (DocumentKind.DOSSIER, DocumentKind.RECORD)


# ─── Seitenmaße (mm) ──────────────────────────────────────────────────────────

MARGIN_X = 15
HEADER_RULE_Y = 30
CONTENT_TOP = 35
BOTTOM_MARGIN = 20
CELL_PAD = 1.5

_FONT_HEADER_META = 9
_FONT_TITLE = 14
_FONT_FOOTER = 7
_FONT_TABLE = 8


@dataclass(frozen=True)
class Column:
    label: str
    width: float
    align: str = "C"


@dataclass(frozen=True)
class Cell:
    """Tabellenzelle mit optionaler Hintergrundfarbe."""

    text: str
    fill: Optional[str] = None
    bold: bool = False
    align: Optional[str] = None


CellLike = Union[str, Cell]


def _as_cell(value: CellLike) -> Cell:
    return value if isinstance(value, Cell) else Cell(str(value))


class BaseComposer:
    """Basisklasse: Kopf-/Fußzeile, Tabellen, Absätze, feste Blöcke.

    Unterklassen setzen ``kind`` und ``orientation`` und implementieren
    ``title``, ``file_name`` und ``build_content``.
    """

    kind: DocumentKind
    orientation: str = "L"

    def __init__(
        self,
        letterhead: "Letterhead",
        generated_on: date,
        measurer: Optional[TextMeasurer] = None,
    ):
        if measurer is None:
            from export.measure import FpdfMeasurer
            measurer = FpdfMeasurer()
        self.letterhead = letterhead
        self.generated_on = generated_on
        self.measurer = measurer
        self.page_format = PageFormat.a4(self.orientation)
        self.builder: Optional[DocumentBuilder] = None
        self.engine: Optional[PageLayoutEngine] = None

    # ─── Schnittstelle für Unterklassen ───────────────────────────────────────

    def title(self) -> str:
        raise NotImplementedError

    def file_name(self) -> str:
        raise NotImplementedError

    def prepare(self) -> None:
        """Löst benötigte Daten vor dem ersten Seitenkopf auf."""

    def build_content(self) -> None:
        raise NotImplementedError

    # ─── Ablauf ───────────────────────────────────────────────────────────────

    def compose(self) -> ComposedDocument:
        """Erzeugt das Dokument mit frischem Builder und frischer Engine."""
        self.prepare()
        self.builder = DocumentBuilder(
            self.page_format, header=self._draw_header, footer=self._draw_footer,
        )
        self.engine = PageLayoutEngine(
            PageGeometry(
                page_height=self.page_format.height,
                top_margin=CONTENT_TOP,
                bottom_margin=BOTTOM_MARGIN,
            ),
            hooks=self.builder,
        )
        self.engine.start_document()
        self.build_content()
        pages = self.engine.finish_document()
        document = self.builder.build(self.kind.value, self.title(), self.file_name())
        logger.info(f"{self.kind.label}: {document.file_name} ({pages} Seite(n))")
        return document

    @property
    def page_width(self) -> float:
        return self.page_format.width

    @property
    def content_width(self) -> float:
        return self.page_format.width - 2 * MARGIN_X

    # ─── Kopf- und Fußzeile ───────────────────────────────────────────────────

    def _draw_header(self, b: DocumentBuilder, page_number: int) -> float:
        lh = self.letterhead
        right = self.page_width - MARGIN_X
        muted = (100, 100, 100)

        b.image(MARGIN_X, 10, 15, 15, lh.institute_logo)
        b.text(MARGIN_X + 17, 10, 110, 5, lh.institute.name or "Nombre del Centro",
               size=_FONT_HEADER_META, color=muted)
        if self.orientation == "P":
            b.text(MARGIN_X + 17, 15, 110, 5, lh.institute.address or "Dirección del Centro",
                   size=_FONT_HEADER_META, color=muted)

        b.image(right - 15, 10, 15, 15, lh.teacher_logo)
        b.text(right - 17 - 110, 10, 110, 5, lh.teacher.name or "Nombre del Profesor",
               size=_FONT_HEADER_META, align="R", color=muted)

        b.text(MARGIN_X, 20, self.content_width, 8, self.title(),
               size=_FONT_TITLE, style="B", align="C", color=(40, 40, 40))
        b.line(MARGIN_X, HEADER_RULE_Y, right, HEADER_RULE_Y)
        return CONTENT_TOP

    def _draw_footer(self, b: DocumentBuilder, page_number: int) -> None:
        y = self.page_format.height - 15
        muted = (120, 120, 120)
        b.line(MARGIN_X, y, self.page_width - MARGIN_X, y)
        b.text(MARGIN_X, y + 2, self.content_width, 5,
               f"Página {page_number} de {PAGE_COUNT_ALIAS}",
               size=_FONT_FOOTER, align="C", color=muted)
        b.text(MARGIN_X, y + 2, self.content_width, 5,
               f"Generado el {format_date_es(self.generated_on)}",
               size=_FONT_FOOTER, align="R", color=muted)

    # ─── Text ─────────────────────────────────────────────────────────────────

    def lines_for(self, text: str, width: float, size: float = _FONT_TABLE,
                  style: str = "") -> list[str]:
        """Umbrochene Zeilen; harte Zeilenumbrüche bleiben erhalten."""
        lines: list[str] = []
        for chunk in text.split("\n"):
            lines.extend(self.measurer.split_lines(chunk, width, size, style) or [""])
        return lines

    def heading(self, text: str, size: float = 11, gap_before: float = 3,
                color: tuple[int, int, int] = (40, 40, 40)) -> Placement:
        """Zwischenüberschrift; bleibt mit mindestens einer Folgezeile zusammen."""
        self.engine.skip(gap_before)
        h = line_height(size) + 2
        follow = line_height(_FONT_TABLE) + 2 * CELL_PAD
        if not self.engine.fits(h + follow) and not self.engine.at_page_top:
            self.engine.page_break()

        def draw(y: float) -> float:
            self.builder.text(MARGIN_X, y, self.content_width, h, text,
                              size=size, style="B", color=color)
            return y + h

        return self.engine.measure_and_place(h, draw)

    def band(self, text: str, fill: str = COLORS["group_band"],
             text_color: tuple[int, int, int] = (0, 0, 0), height: float = 7,
             keep_with_next: float = 0) -> Placement:
        """Farbiger Balken über die volle Breite (z.B. Gruppenname)."""
        if keep_with_next and not self.engine.fits(height + keep_with_next) \
                and not self.engine.at_page_top:
            self.engine.page_break()

        def draw(y: float) -> float:
            self.builder.rect(MARGIN_X, y, self.content_width, height, fill=fill)
            self.builder.text(MARGIN_X, y, self.content_width, height, text,
                              size=9, style="B", align="C", color=text_color)
            return y + height

        return self.engine.measure_and_place(height, draw)

    def paragraph(self, text: str, size: float = _FONT_TABLE, style: str = "",
                  indent: float = 0) -> None:
        """Fließtext zeilenweise platzieren; lange Absätze laufen über Seiten."""
        width = self.content_width - indent
        lh = line_height(size)
        for line in self.lines_for(text, width, size, style):
            def draw(y: float, line: str = line) -> float:
                self.builder.text(MARGIN_X + indent, y, width, lh, line, size=size, style=style)
                return y + lh
            self.engine.measure_and_place(lh, draw)

    def spacer(self, gap: float = 4) -> None:
        self.engine.skip(gap)

    def fixed_block(self, height: float, draw: Callable[[float], Optional[float]]) -> Placement:
        return self.engine.measure_and_place(height, draw)

    def start_new_page(self) -> None:
        """Neue Seite, außer die aktuelle ist noch leer."""
        if not self.engine.at_page_top:
            self.engine.page_break()

    # ─── Tabellen ─────────────────────────────────────────────────────────────

    def row_height(self, cells: Sequence[CellLike], columns: Sequence[Column],
                   size: float = _FONT_TABLE, bold: bool = False) -> float:
        max_lines = 1
        for value, col in zip(cells, columns):
            cell = _as_cell(value)
            style = "B" if (bold or cell.bold) else ""
            n = len(self.lines_for(cell.text, col.width - 2 * CELL_PAD, size, style))
            max_lines = max(max_lines, n)
        return max_lines * line_height(size) + 2 * CELL_PAD

    def draw_row(
        self,
        y: float,
        cells: Sequence[CellLike],
        columns: Sequence[Column],
        height: float,
        fill: Optional[str] = None,
        bold: bool = False,
        size: float = _FONT_TABLE,
        text_color: tuple[int, int, int] = (0, 0, 0),
        x: float = MARGIN_X,
    ) -> float:
        """Zeichnet eine Tabellenzeile und gibt die Y-Position danach zurück."""
        lh = line_height(size)
        cx = x
        for value, col in zip(cells, columns):
            cell = _as_cell(value)
            style = "B" if (bold or cell.bold) else ""
            self.builder.rect(cx, y, col.width, height, fill=cell.fill or fill,
                              border=COLORS["border"])
            ty = y + CELL_PAD
            for line in self.lines_for(cell.text, col.width - 2 * CELL_PAD, size, style):
                self.builder.text(cx + CELL_PAD, ty, col.width - 2 * CELL_PAD, lh, line,
                                  size=size, style=style, align=cell.align or col.align,
                                  color=text_color)
                ty += lh
            cx += col.width
        return y + height

    def split_row(self, cells: Sequence[CellLike], columns: Sequence[Column],
                  max_height: float, size: float = _FONT_TABLE) -> list[list[Cell]]:
        """Teilt eine zu hohe Zeile in Abschnitte von höchstens ``max_height``."""
        lh = line_height(size)
        per_part = max(1, int((max_height - 2 * CELL_PAD + 1e-6) // lh))
        wrapped = []
        for value, col in zip(cells, columns):
            cell = _as_cell(value)
            style = "B" if cell.bold else ""
            lines = self.lines_for(cell.text, col.width - 2 * CELL_PAD, size, style)
            wrapped.append((cell, lines))

        n_parts = max(-(-len(lines) // per_part) for _, lines in wrapped)
        parts = []
        for k in range(n_parts):
            chunk = slice(k * per_part, (k + 1) * per_part)
            parts.append([replace(cell, text="\n".join(lines[chunk])) for cell, lines in wrapped])
        logger.debug(f"Tabellenzeile auf {n_parts} Abschnitte verteilt")
        return parts

    def table(
        self,
        columns: Sequence[Column],
        rows: Sequence[Sequence[CellLike]],
        header_fill: str = COLORS["header"],
        show_header: bool = True,
        zebra: bool = False,
        keep_together: bool = False,
        size: float = _FONT_TABLE,
    ) -> None:
        """Tabelle mit Kopfzeile, die nach jedem Seitenumbruch wiederholt wird.

        Eine Zeile wird nur geteilt, wenn sie samt Kopfzeile höher als eine
        ganze Seite ist; die Abschnitte laufen dann über die Folgeseiten. Die
        Kopfzeile steht nie allein am Seitenende. ``keep_together`` beginnt
        die Tabelle auf einer neuen Seite, wenn sie dort vollständig Platz
        hätte, hier aber nicht.
        """
        labels = [c.label for c in columns]
        header_h = self.row_height(labels, columns, size, bold=True) if show_header else 0.0
        row_hs = [self.row_height(r, columns, size) for r in rows]

        if keep_together:
            total = header_h + sum(row_hs)
            if total <= self.engine.geometry.usable_height and not self.engine.fits(total) \
                    and not self.engine.at_page_top:
                self.engine.page_break()

        def draw_header(y: float) -> float:
            if not show_header:
                return y
            return self.draw_row(y, labels, columns, header_h, fill=header_fill,
                                 bold=True, size=size, text_color=(255, 255, 255))

        if not rows:
            self.engine.measure_and_place(header_h, draw_header)
            return

        limit = self.engine.geometry.usable_height - header_h
        segments = []
        for idx, (row, h) in enumerate(zip(rows, row_hs)):
            if h > limit + 1e-6:
                for part in self.split_row(row, columns, limit, size):
                    segments.append((idx, part, self.row_height(part, columns, size)))
            else:
                segments.append((idx, row, h))

        need_header = True
        for idx, row, h in segments:
            fill = COLORS["zebra"] if zebra and idx % 2 == 1 else None
            if not need_header and not self.engine.fits(h):
                self.engine.page_break()
                need_header = True

            def draw(y: float, row=row, h=h, fill=fill, with_header=need_header) -> float:
                if with_header:
                    y = draw_header(y)
                return self.draw_row(y, row, columns, h, fill=fill, size=size)

            self.engine.measure_and_place(h + (header_h if need_header else 0.0), draw)
            need_header = False

    def key_value_table(self, pairs: Sequence[tuple[str, str]], label_width: float = 70,
                        value_width: float = 40, title: Optional[str] = None,
                        header_fill: str = COLORS["header"]) -> None:
        """Zweispaltige Tabelle "Bezeichnung | Wert"."""
        columns = [Column(title or "", label_width, "L"), Column("", value_width)]
        self.table(columns, [[k, v] for k, v in pairs], header_fill=header_fill,
                   show_header=title is not None, keep_together=True)


# ─── Dispatch ─────────────────────────────────────────────────────────────────

def composer_for(
    kind: DocumentKind,
    view_model,
    generated_on: date,
    measurer: Optional[TextMeasurer] = None,
    student_id: Optional[str] = None,
) -> BaseComposer:
    """Passender Composer für ``kind``; Dossier und Ficha brauchen ``student_id``."""
    from export.academic_record import AcademicRecordComposer
    from export.dossier import DossierComposer
    from export.evaluation_report import EvaluationReportComposer
    from export.planning import PlanningComposer
    from export.tracking import TrackingSheetComposer

    if kind == DocumentKind.PLANNING:
        return PlanningComposer(view_model, generated_on, measurer)
    if kind == DocumentKind.TRACKING:
        return TrackingSheetComposer(view_model, generated_on, measurer)
    if kind == DocumentKind.EVALUATION:
        return EvaluationReportComposer(view_model, generated_on, measurer)
    if kind == DocumentKind.DOSSIER:
        if student_id is None:
            raise CompositionError("Para el dossier hace falta un alumno.")
        return DossierComposer(view_model, student_id, generated_on, measurer)
    if kind == DocumentKind.RECORD:
        return AcademicRecordComposer(view_model, generated_on, measurer)
    raise ValueError(f"Unbekannte Dokumentart: {kind}")


def compose_document(
    kind: DocumentKind,
    view_model,
    generated_on: date,
    measurer: Optional[TextMeasurer] = None,
    student_id: Optional[str] = None,
) -> ComposedDocument:
    """(View-Model, Dokumentart) → umbrochenes Dokument."""
    return composer_for(kind, view_model, generated_on, measurer, student_id).compose()
