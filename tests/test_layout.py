"""Tests für Seitenumbruch-Engine, Dokument-Builder und Composer-Bausteine."""

import math
import textwrap
from datetime import date

import pytest

from export.composer import BaseComposer, Cell, Column, DocumentKind
from export.document import DocumentBuilder, PageFormat, TextOp
from export.layout import PageGeometry, PageLayoutEngine
from export.measure import line_height
from export.view_model import Letterhead
from models import InstituteData, TeacherData


class RecordingHooks:
    """PageHooks-Attrappe: merkt sich alle Aufrufe."""

    def __init__(self, content_top: float = 35):
        self.content_top = content_top
        self.calls: list[tuple[str, int]] = []

    def start_page(self, page_number: int) -> float:
        self.calls.append(("start", page_number))
        return self.content_top

    def finish_page(self, page_number: int) -> None:
        self.calls.append(("finish", page_number))


class FixedWidthMeasurer:
    """Ein Zeichen pro 2 mm, unabhängig von Schrift und Größe."""

    def split_lines(self, text, width, font_size, style=""):
        if not text:
            return []
        return textwrap.wrap(text, max(1, int(width / 2))) or [""]


def _engine(hooks=None) -> PageLayoutEngine:
    # A4 hoch: Inhalt 35..277 mm = 242 mm
    return PageLayoutEngine(PageGeometry(297, 35, 20), hooks)


# ─── ENGINE ───────────────────────────────────────────────────────────────────

class TestPageLayoutEngine:
    def test_geometry(self):
        g = PageGeometry(297, 35, 20)
        assert g.content_bottom == 277
        assert g.usable_height == 242

    def test_minimal_page_count(self):
        """10 Blöcke à 50 mm, 4 pro Seite → 3 Seiten."""
        engine = _engine()
        for _ in range(10):
            engine.measure_and_place(50)
        assert engine.finish_document() == 3
        assert [p.page_number for p in engine.placements] == [1] * 4 + [2] * 4 + [3] * 2

    def test_blocks_inside_content_area(self):
        engine = _engine()
        heights = [12, 80, 33, 150, 7, 242, 19, 60]
        for h in heights:
            engine.measure_and_place(h)
        for p in engine.placements:
            assert p.y >= 35
            assert p.bottom <= 277 + 1e-9

    def test_page_count_is_minimal_for_greedy_fill(self):
        engine = _engine()
        for _ in range(12):
            engine.measure_and_place(60)
        # 4 Blöcke à 60 mm passen auf 242 mm
        assert engine.finish_document() == math.ceil(12 / 4)

    def test_block_exactly_filling_page(self):
        engine = _engine()
        engine.measure_and_place(242)
        assert engine.remaining == pytest.approx(0)
        p = engine.measure_and_place(1)
        assert p.page_break
        assert p.page_number == 2

    def test_oversized_block_starts_at_top_and_overflows(self):
        """Ein Block höher als die Seite beginnt oben und läuft über."""
        engine = _engine()
        engine.measure_and_place(20)
        big = engine.measure_and_place(300)
        assert big.page_break
        assert big.page_number == 2
        assert big.y == 35
        assert big.bottom == 335

        after = engine.measure_and_place(10)
        assert after.page_break
        assert after.page_number == 3
        assert after.y == 35

    def test_oversized_block_on_empty_page_no_break(self):
        engine = _engine()
        big = engine.measure_and_place(500)
        assert not big.page_break
        assert big.page_number == 1

    def test_draw_callback_reports_real_bottom(self):
        engine = _engine()
        seen = []

        def draw(y):
            seen.append(y)
            return y + 5

        p = engine.measure_and_place(40, draw)
        assert seen == [35]
        assert p.bottom == 40
        assert engine.cursor_y == 40

    def test_draw_returning_none_uses_estimate(self):
        engine = _engine()
        p = engine.measure_and_place(40, lambda y: None)
        assert p.bottom == 75

    def test_skip_at_page_top_is_ignored(self):
        engine = _engine()
        engine.skip(10)
        assert engine.cursor_y == 35
        engine.measure_and_place(10)
        engine.skip(10)
        assert engine.cursor_y == 55

    def test_hooks_called_per_page(self):
        hooks = RecordingHooks()
        engine = _engine(hooks)
        for _ in range(5):
            engine.measure_and_place(100)
        engine.finish_document()
        assert hooks.calls == [
            ("start", 1), ("finish", 1),
            ("start", 2), ("finish", 2),
            ("start", 3), ("finish", 3),
        ]

    def test_header_height_moves_content_top(self):
        hooks = RecordingHooks(content_top=50)
        engine = _engine(hooks)
        p = engine.measure_and_place(10)
        assert p.y == 50
        assert engine.at_page_top is False

    def test_empty_document_has_one_page(self):
        hooks = RecordingHooks()
        engine = _engine(hooks)
        assert engine.finish_document() == 1
        assert hooks.calls == [("start", 1), ("finish", 1)]

    def test_finish_twice_is_idempotent(self):
        hooks = RecordingHooks()
        engine = _engine(hooks)
        engine.measure_and_place(10)
        engine.finish_document()
        engine.finish_document()
        assert hooks.calls.count(("finish", 1)) == 1

    def test_page_break_after_finish_raises(self):
        engine = _engine()
        engine.finish_document()
        with pytest.raises(RuntimeError):
            engine.page_break()


# ─── DOKUMENT-BUILDER ─────────────────────────────────────────────────────────

class TestDocumentBuilder:
    def test_page_count_alias_replaced(self):
        b = DocumentBuilder(PageFormat.a4("P"))
        for n in (1, 2, 3):
            b.start_page(n)
            b.text(10, 280, 100, 5, f"Página {n} de {{nb}}")
        doc = b.build("dossier", "Dossier", "d.pdf")
        assert doc.page_count == 3
        assert doc.texts(2) == ["Página 2 de 3"]
        assert all("{nb}" not in t for t in doc.texts())

    def test_empty_text_is_skipped(self):
        b = DocumentBuilder(PageFormat.a4())
        b.start_page(1)
        b.text(0, 0, 10, 5, "")
        b.image(0, 0, 10, 10, None)
        assert b.current.ops == []

    def test_add_after_build_raises(self):
        b = DocumentBuilder(PageFormat.a4())
        b.start_page(1)
        b.build("planning", "P", "p.pdf")
        with pytest.raises(RuntimeError):
            b.text(0, 0, 10, 5, "zu spät")

    def test_no_page_raises(self):
        with pytest.raises(RuntimeError):
            DocumentBuilder(PageFormat.a4()).current

    def test_page_formats(self):
        assert PageFormat.a4("L").width == 297
        assert PageFormat.a4("P").height == 297

    def test_line_height(self):
        assert line_height(10) == 4.41
        assert line_height(8) == 3.53


# ─── COMPOSER-BAUSTEINE ───────────────────────────────────────────────────────

class _SampleComposer(BaseComposer):
    """Minimaler Composer, der eine übergebene Funktion als Inhalt zeichnet."""

    kind = DocumentKind.PLANNING

    def __init__(self, content, orientation: str = "L"):
        self.orientation = orientation
        super().__init__(
            Letterhead(TeacherData(name="Ana Pérez"), InstituteData(name="IES Test")),
            date(2025, 10, 20),
            FixedWidthMeasurer(),
        )
        self._content = content

    def title(self) -> str:
        return "Documento de prueba"

    def file_name(self) -> str:
        return "prueba.pdf"

    def build_content(self) -> None:
        self._content(self)


COLUMNS = [Column("Nombre", 100, "L"), Column("Nota", 30)]


def _rows(n: int) -> list[list]:
    return [[f"Alumno {i:02d}", f"{i % 10}"] for i in range(n)]


def _content_ops(doc, page_number):
    """Textanweisungen zwischen Kopf- und Fußzeile."""
    return [
        op for page in doc.pages if page.number == page_number
        for op in page.ops
        if isinstance(op, TextOp) and 35 <= op.y < doc.page_format.height - 20
    ]


class TestComposerPrimitives:
    def test_header_and_footer_on_every_page(self):
        doc = _SampleComposer(lambda c: c.table(COLUMNS, _rows(60))).compose()
        assert doc.page_count > 1
        for n in range(1, doc.page_count + 1):
            texts = doc.texts(n)
            assert "Documento de prueba" in texts
            assert "IES Test" in texts
            assert "Ana Pérez" in texts
            assert f"Página {n} de {doc.page_count}" in texts
            assert "Generado el 20/10/2025" in texts

    def test_table_header_repeated_after_break(self):
        doc = _SampleComposer(lambda c: c.table(COLUMNS, _rows(60))).compose()
        for n in range(1, doc.page_count + 1):
            texts = doc.texts(n)
            assert texts.count("Nombre") == 1
            # Kopfzeile nie allein: mindestens eine Datenzeile darunter
            assert any(t.startswith("Alumno") for t in texts)

    def test_table_rows_never_split_and_all_present(self):
        doc = _SampleComposer(lambda c: c.table(COLUMNS, _rows(60))).compose()
        names = [t for t in doc.texts() if t.startswith("Alumno")]
        assert names == [f"Alumno {i:02d}" for i in range(60)]
        for n in range(1, doc.page_count + 1):
            for op in _content_ops(doc, n):
                assert op.y + op.h <= doc.page_format.height - 20 + 1e-6

    def test_table_page_count_minimal(self):
        """Landscape: 155 mm nutzbar, Zeilen 6.53 mm → 22 Zeilen + Kopf pro Seite."""
        row_h = line_height(8) + 3
        per_page = int((155 - row_h) // row_h)
        doc = _SampleComposer(lambda c: c.table(COLUMNS, _rows(60))).compose()
        assert doc.page_count == math.ceil(60 / per_page)

    def test_wrapped_cell_increases_row_height(self):
        def content(c):
            c.table(COLUMNS, [["x" * 120, "1"]])
            c.paragraph("fin")

        doc = _SampleComposer(content).compose()
        wrapped = [t for t in doc.texts(1) if t.startswith("x")]
        # 100 mm Spalte - 3 mm Polster → 48 Zeichen pro Zeile
        assert len(wrapped) == 3

    def test_row_taller_than_page_is_split(self):
        """Eine Zeile höher als die Seite läuft abschnittsweise über die Folgeseiten."""
        text = " ".join(["palabra"] * 1500)
        rows = [["antes", "1"], [text, "2"], ["después", "3"]]
        doc = _SampleComposer(lambda c: c.table(COLUMNS, rows)).compose()
        limit = doc.page_format.height - 20

        words = 0
        for page in doc.pages:
            for op in page.ops:
                if isinstance(op, TextOp) and op.text.startswith("palabra"):
                    assert op.y + op.h <= limit + 1e-6
                    words += len(op.text.split())
        assert words == 1500
        assert doc.page_count > 2
        for n in range(1, doc.page_count + 1):
            assert doc.texts(n).count("Nombre") == 1
        assert "después" in doc.texts(doc.page_count)

    def test_split_row_keeps_cell_format(self):
        composer = _SampleComposer(lambda c: None)
        parts = composer.split_row([Cell("a " * 100, fill="8E44AD", bold=True), "1"],
                                   COLUMNS, max_height=20)
        # 20 mm → 4 Zeilen à 3.53 mm pro Abschnitt
        assert len(parts) > 1
        assert all(p[0].fill == "8E44AD" and p[0].bold for p in parts)
        assert parts[0][1].text == "1"
        assert parts[1][1].text == ""

    def test_empty_table_draws_header_only(self):
        doc = _SampleComposer(lambda c: c.table(COLUMNS, [])).compose()
        assert "Nombre" in doc.texts(1)
        assert doc.page_count == 1

    def test_keep_together_moves_table_to_next_page(self):
        def content(c):
            c.fixed_block(140, lambda y: y + 140)
            c.key_value_table([("Grupo", "1"), ("Fecha", "15/10/2025"),
                               ("Alumnos", "4")], title="Resumen")

        doc = _SampleComposer(content).compose()
        assert doc.page_count == 2
        assert "Resumen" in doc.texts(2)
        assert "Grupo" in doc.texts(2)

    def test_heading_kept_with_following_row(self):
        def content(c):
            c.fixed_block(150, lambda y: y + 150)
            c.heading("Grupo: Azul")
            c.table(COLUMNS, _rows(2))

        doc = _SampleComposer(content).compose()
        assert "Grupo: Azul" in doc.texts(2)

    def test_long_paragraph_flows_across_pages(self):
        text = " ".join(["palabra"] * 3000)
        doc = _SampleComposer(lambda c: c.paragraph(text), orientation="P").compose()
        assert doc.page_count > 1
        for n in range(1, doc.page_count + 1):
            for op in _content_ops(doc, n):
                assert op.y + op.h <= 277 + 1e-6

    def test_start_new_page_skips_empty_page(self):
        def content(c):
            c.start_new_page()
            c.paragraph("uno")
            c.start_new_page()
            c.paragraph("dos")

        doc = _SampleComposer(content).compose()
        assert doc.page_count == 2
        assert "uno" in doc.texts(1)
        assert "dos" in doc.texts(2)

    def test_cell_fill_used(self):
        from export.document import RectOp

        doc = _SampleComposer(
            lambda c: c.table(COLUMNS, [[Cell("Jefe", fill="8E44AD", bold=True), "1"]])
        ).compose()
        fills = [op.fill for op in doc.pages[0].ops if isinstance(op, RectOp)]
        assert "8E44AD" in fills

    def test_compose_twice_gives_same_document(self):
        composer = _SampleComposer(lambda c: c.table(COLUMNS, _rows(40)))
        assert composer.compose() == composer.compose()
