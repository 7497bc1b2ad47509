"""Zeichenanweisungen und der Dokument-Builder.

Ein Composer erzeugt keine PDF-Objekte, sondern Seiten mit einfachen
Zeichenanweisungen. Erst ``export.pdf_renderer`` übersetzt sie nach fpdf2.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Union

# Platzhalter für die Gesamtseitenzahl (wie fpdf2 alias_nb_pages)
PAGE_COUNT_ALIAS = "{nb}"

RGB = tuple[int, int, int]


@dataclass(frozen=True)
class TextOp:
    """Einzeilige Textzelle ohne Rahmen."""

    x: float
    y: float
    w: float
    h: float
    text: str
    size: float = 8
    style: str = ""           # "", "B", "I", "BI"
    align: str = "L"
    color: RGB = (0, 0, 0)


@dataclass(frozen=True)
class RectOp:
    x: float
    y: float
    w: float
    h: float
    fill: Optional[str] = None      # RRGGBB
    border: Optional[str] = None    # RRGGBB


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    color: str = "B4B4B4"


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    w: float
    h: float
    data: bytes


DrawOp = Union[TextOp, RectOp, LineOp, ImageOp]


@dataclass
class Page:
    number: int
    ops: list[DrawOp] = field(default_factory=list)


@dataclass(frozen=True)
class PageFormat:
    """Papierformat in mm (A4 hoch oder quer)."""

    orientation: str      # "P" oder "L"
    width: float
    height: float

    @classmethod
    def a4(cls, orientation: str = "L") -> "PageFormat":
        if orientation == "L":
            return cls("L", 297.0, 210.0)
        return cls("P", 210.0, 297.0)


@dataclass(frozen=True)
class ComposedDocument:
    """Fertig umbrochenes Dokument, bereit zum Rendern."""

    kind: str
    title: str
    file_name: str
    page_format: PageFormat
    pages: tuple[Page, ...]

    @property
    def page_count(self) -> int:
        return len(self.pages)

    def texts(self, page_number: Optional[int] = None) -> list[str]:
        """Alle Texte (optional einer Seite), z.B. für Tests und Vorschau."""
        return [
            op.text
            for page in self.pages
            if page_number is None or page.number == page_number
            for op in page.ops
            if isinstance(op, TextOp)
        ]


PageCallback = Callable[["DocumentBuilder", int], Optional[float]]


class DocumentBuilder:
    """Sammelt Seiten und Zeichenanweisungen eines einzigen Dokuments.

    Implementiert ``PageHooks`` für die Layout-Engine: ``header`` zeichnet den
    laufenden Kopf und gibt die erste freie Y-Position zurück, ``footer`` die
    Fußzeile.
    """

    def __init__(
        self,
        page_format: PageFormat,
        header: Optional[PageCallback] = None,
        footer: Optional[PageCallback] = None,
    ):
        self.page_format = page_format
        self._header = header
        self._footer = footer
        self._pages: list[Page] = []
        self._built = False

    @property
    def current(self) -> Page:
        if not self._pages:
            raise RuntimeError("Noch keine Seite angelegt.")
        return self._pages[-1]

    # ─── PageHooks ────────────────────────────────────────────────────────────

    def start_page(self, page_number: int) -> float:
        self._pages.append(Page(number=page_number))
        if self._header is None:
            return 0.0
        return self._header(self, page_number) or 0.0

    def finish_page(self, page_number: int) -> None:
        if self._footer is not None:
            self._footer(self, page_number)

    # ─── Zeichnen ─────────────────────────────────────────────────────────────

    def add(self, op: DrawOp) -> None:
        if self._built:
            raise RuntimeError("Dokument ist bereits gebaut.")
        self.current.ops.append(op)

    def text(self, x: float, y: float, w: float, h: float, text: str, **kwargs) -> None:
        if text:
            self.add(TextOp(x, y, w, h, text, **kwargs))

    def rect(self, x: float, y: float, w: float, h: float,
             fill: Optional[str] = None, border: Optional[str] = "B4B4B4") -> None:
        self.add(RectOp(x, y, w, h, fill=fill, border=border))

    def line(self, x1: float, y1: float, x2: float, y2: float,
             color: str = "B4B4B4") -> None:
        self.add(LineOp(x1, y1, x2, y2, color=color))

    def image(self, x: float, y: float, w: float, h: float,
              data: Optional[bytes]) -> None:
        if data:
            self.add(ImageOp(x, y, w, h, data))

    # ─── Abschluss ────────────────────────────────────────────────────────────

    def build(self, kind: str, title: str, file_name: str) -> ComposedDocument:
        """Ersetzt den Seitenzahl-Platzhalter und friert das Dokument ein."""
        total = str(len(self._pages))
        pages = []
        for page in self._pages:
            ops = [
                replace(op, text=op.text.replace(PAGE_COUNT_ALIAS, total))
                if isinstance(op, TextOp) and PAGE_COUNT_ALIAS in op.text
                else op
                for op in page.ops
            ]
            pages.append(Page(number=page.number, ops=ops))
        self._built = True
        return ComposedDocument(
            kind=kind,
            title=title,
            file_name=file_name,
            page_format=self.page_format,
            pages=tuple(pages),
        )
