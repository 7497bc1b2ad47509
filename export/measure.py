"""Textmessung für den Umbruch.

Composer messen Zeilenumbrüche vor dem Zeichnen, damit Blockhöhen schon
vor der Platzierung bekannt sind. ``FpdfMeasurer`` nutzt dieselben
Font-Metriken wie der Renderer.
"""

from typing import Protocol

from export.helpers import pdf_safe

FONT_FAMILY = "Helvetica"

# mm pro pt (1 pt = 0.3528 mm) × Zeilenabstand 1.25
_MM_PER_PT_LINE = 0.441


def line_height(font_size: float) -> float:
    """Zeilenhöhe in mm für eine Schriftgröße in pt."""
    return round(font_size * _MM_PER_PT_LINE, 2)


class TextMeasurer(Protocol):
    def split_lines(
        self, text: str, width: float, font_size: float, style: str = ""
    ) -> list[str]:
        """Bricht ``text`` auf die Breite ``width`` (mm) um."""


class FpdfMeasurer:
    """Misst mit einer unsichtbaren fpdf2-Seite."""

    def __init__(self):
        from fpdf import FPDF

        self._pdf = FPDF(orientation="P", unit="mm", format="A4")
        self._pdf.set_auto_page_break(False)
        self._pdf.add_page()

    def split_lines(
        self, text: str, width: float, font_size: float, style: str = ""
    ) -> list[str]:
        from fpdf.enums import MethodReturnValue

        if not text:
            return []
        self._pdf.set_font(FONT_FAMILY, style, font_size)
        lines = self._pdf.multi_cell(
            width, line_height(font_size), pdf_safe(text),
            dry_run=True, output=MethodReturnValue.LINES,
        )
        return [str(line) for line in lines] or [""]

