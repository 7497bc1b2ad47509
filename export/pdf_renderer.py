"""Rendert ein ``ComposedDocument`` mit fpdf2 zu PDF-Bytes."""

import io
import logging
from pathlib import Path

from export.document import ComposedDocument, ImageOp, LineOp, RectOp, TextOp
from export.helpers import hex_to_rgb, pdf_safe
from export.measure import FONT_FAMILY

logger = logging.getLogger(__name__)


class _PdfCanvas:
    """Interner Wrapper um fpdf.FPDF; Seiten werden 1:1 übernommen."""

    def __init__(self, document: ComposedDocument):
        from fpdf import FPDF

        fmt = document.page_format
        self._pdf = FPDF(orientation=fmt.orientation, unit="mm", format="A4")
        # Umbrüche hat die Layout-Engine bereits entschieden
        self._pdf.set_auto_page_break(False)
        self._pdf.set_margins(left=0, top=0, right=0)
        self._pdf.set_title(pdf_safe(document.title))
        self._pdf.set_creator("servicios-practicos")

    # ─── Zeichenanweisungen ───────────────────────────────────────────────────

    def draw_text(self, op: TextOp) -> None:
        pdf = self._pdf
        pdf.set_font(FONT_FAMILY, op.style, op.size)
        pdf.set_text_color(*op.color)
        pdf.set_xy(op.x, op.y)
        pdf.cell(op.w, op.h, pdf_safe(op.text), border=0, align=op.align)
        pdf.set_text_color(0, 0, 0)   # Reset

    def draw_rect(self, op: RectOp) -> None:
        pdf = self._pdf
        if op.fill:
            pdf.set_fill_color(*hex_to_rgb(op.fill))
            pdf.rect(op.x, op.y, op.w, op.h, style="F")
        if op.border:
            pdf.set_draw_color(*hex_to_rgb(op.border))
            pdf.rect(op.x, op.y, op.w, op.h, style="D")

    def draw_line(self, op: LineOp) -> None:
        self._pdf.set_draw_color(*hex_to_rgb(op.color))
        self._pdf.line(op.x1, op.y1, op.x2, op.y2)

    def draw_image(self, op: ImageOp) -> None:
        try:
            self._pdf.image(io.BytesIO(op.data), x=op.x, y=op.y, w=op.w, h=op.h,
                            keep_aspect_ratio=True)
        except Exception as e:
            logger.warning(f"Bild konnte nicht eingebettet werden: {e}")

    # ─── Seiten ───────────────────────────────────────────────────────────────

    def render(self, document: ComposedDocument) -> bytes:
        for page in document.pages:
            self._pdf.add_page()
            for op in page.ops:
                if isinstance(op, TextOp):
                    self.draw_text(op)
                elif isinstance(op, RectOp):
                    self.draw_rect(op)
                elif isinstance(op, LineOp):
                    self.draw_line(op)
                elif isinstance(op, ImageOp):
                    self.draw_image(op)
        return bytes(self._pdf.output())


def render_pdf(document: ComposedDocument) -> bytes:
    """Erzeugt die PDF-Bytes eines fertig umbrochenen Dokuments."""
    data = _PdfCanvas(document).render(document)
    logger.debug(f"{document.file_name}: {document.page_count} Seite(n), {len(data)} Bytes")
    return data


def save_pdf(document: ComposedDocument, output_dir: Path) -> Path:
    """Rendert und speichert unter ``output_dir/<file_name>``."""
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    target = output_dir / document.file_name
    target.write_bytes(render_pdf(document))
    logger.info(f"PDF gespeichert: {target}")
    return target
