"""Seitenumbruch-Logik für mehrseitige Dokumente.

Die Engine kennt nur Höhen (mm) und einen vertikalen Cursor. Gezeichnet wird
über Callbacks: ``PageHooks`` für Kopf-/Fußzeile, ein ``draw``-Callback pro
Block, der die tatsächlich belegte Unterkante zurückgibt.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

logger = logging.getLogger(__name__)

# Rundungstoleranz für Vergleiche in mm
_EPS = 1e-6


class PageHooks(Protocol):
    """Zeichnet Kopf- und Fußzeile; wird von der Engine aufgerufen."""

    def start_page(self, page_number: int) -> float:
        """Legt eine neue Seite an und gibt die Y-Position unter dem Kopf zurück."""

    def finish_page(self, page_number: int) -> None:
        """Schließt die Seite ab (Fußzeile)."""


@dataclass(frozen=True)
class PageGeometry:
    """Physische Seitenhöhe und Satzspiegel (alle Werte in mm)."""

    page_height: float
    top_margin: float
    bottom_margin: float

    @property
    def content_bottom(self) -> float:
        return self.page_height - self.bottom_margin

    @property
    def usable_height(self) -> float:
        return self.content_bottom - self.top_margin


@dataclass(frozen=True)
class LayoutState:
    cursor_y: float
    page_number: int


@dataclass(frozen=True)
class Placement:
    """Wo ein Block gelandet ist."""

    page_number: int
    y: float
    bottom: float
    page_break: bool

    @property
    def height(self) -> float:
        return self.bottom - self.y


class PageLayoutEngine:
    """Vertikaler Cursor über diskrete Seiten.

    Jede Dokumenterzeugung besitzt ihre eigene Instanz.
    """

    def __init__(self, geometry: PageGeometry, hooks: Optional[PageHooks] = None):
        self.geometry = geometry
        self.hooks = hooks
        self.state = LayoutState(cursor_y=geometry.top_margin, page_number=0)
        self.placements: list[Placement] = []
        self._page_top = geometry.top_margin
        self._finished = False

    # ─── Zustand ──────────────────────────────────────────────────────────────

    @property
    def page_count(self) -> int:
        return self.state.page_number

    @property
    def cursor_y(self) -> float:
        return self.state.cursor_y

    @property
    def remaining(self) -> float:
        return self.geometry.content_bottom - self.state.cursor_y

    @property
    def at_page_top(self) -> bool:
        return self.state.cursor_y <= self._page_top + _EPS

    def fits(self, height: float) -> bool:
        """True wenn ein Block dieser Höhe noch auf die aktuelle Seite passt."""
        return self.state.cursor_y + height <= self.geometry.content_bottom + _EPS

    # ─── Seiten ───────────────────────────────────────────────────────────────

    def start_document(self) -> LayoutState:
        """Öffnet die erste Seite (idempotent)."""
        if self._finished:
            raise RuntimeError("Dokument ist bereits abgeschlossen.")
        if self.state.page_number == 0:
            self._open_page(1)
        return self.state

    def _open_page(self, number: int) -> None:
        content_top = self.geometry.top_margin
        if self.hooks is not None:
            content_top = max(content_top, self.hooks.start_page(number))
        self._page_top = content_top
        self.state = LayoutState(cursor_y=content_top, page_number=number)

    def page_break(self) -> LayoutState:
        """Fußzeile der aktuellen Seite, neue Seite, Kopfzeile, Cursor oben."""
        if self.state.page_number == 0:
            return self.start_document()
        if self._finished:
            raise RuntimeError("Dokument ist bereits abgeschlossen.")
        if self.hooks is not None:
            self.hooks.finish_page(self.state.page_number)
        logger.debug(f"Seitenumbruch nach Seite {self.state.page_number}")
        self._open_page(self.state.page_number + 1)
        return self.state

    # ─── Platzierung ──────────────────────────────────────────────────────────

    def measure_and_place(
        self,
        height: float,
        draw: Optional[Callable[[float], Optional[float]]] = None,
    ) -> Placement:
        """Platziert einen Block der geschätzten Höhe ``height``.

        Passt er nicht mehr, wird vorher umbrochen. ``draw(y)`` zeichnet den
        Block und gibt die tatsächliche Unterkante zurück (``None`` = Schätzung
        übernehmen); der Cursor rückt auf diese Unterkante vor. Ein Block, der
        höher als eine ganze Seite ist, beginnt oben auf einer Seite und läuft
        über; der nächste Block landet dann auf einer neuen Seite.
        """
        self.start_document()
        broke = False
        if not self.fits(height) and not self.at_page_top:
            self.page_break()
            broke = True

        y = self.state.cursor_y
        bottom = y + height
        if draw is not None:
            rendered = draw(y)
            if rendered is not None:
                bottom = rendered
        if bottom > self.geometry.content_bottom + _EPS:
            logger.debug(
                f"Block auf Seite {self.state.page_number} überragt den Satzspiegel "
                f"({bottom:.1f} > {self.geometry.content_bottom:.1f} mm)"
            )

        placement = Placement(
            page_number=self.state.page_number, y=y, bottom=bottom, page_break=broke,
        )
        self.placements.append(placement)
        self.state = LayoutState(cursor_y=bottom, page_number=self.state.page_number)
        return placement

    def skip(self, gap: float) -> LayoutState:
        """Abstand einfügen; am Seitenanfang wirkungslos."""
        self.start_document()
        if not self.at_page_top:
            self.state = LayoutState(
                cursor_y=self.state.cursor_y + gap, page_number=self.state.page_number,
            )
        return self.state

    def finish_document(self) -> int:
        """Schließt die letzte Seite ab und gibt die Seitenzahl zurück."""
        if self._finished:
            return self.state.page_number
        self.start_document()
        if self.hooks is not None:
            self.hooks.finish_page(self.state.page_number)
        self._finished = True
        return self.state.page_number
