"""Dokumenterzeugung für einzelne Anfragen und Stapel.

Scheitert ein Dokument an fehlenden Daten (``CompositionError``), wird das
im ``BatchReport`` vermerkt und der Stapel läuft weiter.
"""

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Iterable, Optional

from pydantic import BaseModel

from config.schema import GradingConfig
from models.practice_data import PracticeData
from export.composer import CompositionError, DocumentKind, compose_document
from export.document import ComposedDocument
from export.measure import TextMeasurer
from export.pdf_renderer import save_pdf
from export.view_model import ReportViewModelBuilder

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DocumentRequest:
    kind: DocumentKind
    service_id: Optional[str] = None
    student_id: Optional[str] = None

    def describe(self) -> str:
        parts = [self.kind.label]
        if self.service_id:
            parts.append(f"servicio {self.service_id}")
        if self.student_id:
            parts.append(f"alumno {self.student_id}")
        return ", ".join(parts)


class BatchReport(BaseModel):
    """Ergebnis eines Stapellaufs."""

    generated: list[str] = []    # Pfade der erzeugten Dateien
    notices: list[str] = []      # Meldungen abgebrochener Dokumente

    @property
    def ok(self) -> bool:
        return not self.notices

    def print_rich(self) -> None:
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        lines = [f"[bold green]✓ {len(self.generated)} Dokument(e) erzeugt[/bold green]"]
        for path in self.generated:
            lines.append(f"  [dim]{path}[/dim]")
        if self.notices:
            lines.append(f"\n[yellow bold]{len(self.notices)} Dokument(e) übersprungen:[/yellow bold]")
            for n in self.notices:
                lines.append(f"  [yellow]• {n}[/yellow]")
        console.print(Panel("\n".join(lines), title="Informes", border_style="cyan"))


class ReportService:
    """Verbindet View-Model-Aufbau, Komposition und PDF-Ausgabe."""

    def __init__(
        self,
        data: PracticeData,
        config: GradingConfig,
        generated_on: Optional[date] = None,
        measurer: Optional[TextMeasurer] = None,
    ):
        self.data = data
        self.config = config
        self.builder = ReportViewModelBuilder(data, config)
        self.generated_on = generated_on or date.today()
        self.measurer = measurer

    # ─── Einzeldokument ───

    def compose(self, request: DocumentRequest) -> ComposedDocument:
        """Baut das Dokument; wirft ``CompositionError`` bei fehlenden Daten."""
        if request.kind == DocumentKind.RECORD:
            if not request.student_id:
                raise CompositionError("Para la ficha académica hace falta un alumno.")
            view_model = self.builder.for_student(request.student_id)
        else:
            if not request.service_id:
                raise CompositionError(f"{request.kind.label}: falta el servicio.")
            view_model = self.builder.for_service(request.service_id)
        return compose_document(
            request.kind, view_model, self.generated_on, self.measurer, request.student_id,
        )

    def generate(self, request: DocumentRequest, output_dir: Path) -> Path:
        return save_pdf(self.compose(request), output_dir)

    # ─── Stapel ───

    def expand(
        self,
        kind: DocumentKind,
        service_id: Optional[str] = None,
        student_id: Optional[str] = None,
    ) -> list[DocumentRequest]:
        """Ohne Schüler: Dossier für alle Teilnehmer, Ficha für alle Schüler."""
        if student_id or not kind.per_student:
            return [DocumentRequest(kind, service_id, student_id)]
        if kind == DocumentKind.RECORD:
            students = sorted(self.data.students, key=lambda s: s.sort_key)
            return [DocumentRequest(kind, None, s.id) for s in students]
        try:
            view_model = self.builder.for_service(service_id or "")
        except CompositionError as e:
            logger.warning(str(e))
            return [DocumentRequest(kind, service_id, None)]
        return [DocumentRequest(kind, service_id, s.id) for s in view_model.participants]

    def generate_batch(
        self, requests: Iterable[DocumentRequest], output_dir: Path
    ) -> BatchReport:
        report = BatchReport()
        for request in requests:
            try:
                path = self.generate(request, output_dir)
            except CompositionError as e:
                logger.warning(f"{request.describe()}: {e}")
                report.notices.append(f"{request.describe()}: {e}")
                continue
            report.generated.append(str(path))
        logger.info(
            f"Stapel abgeschlossen: {len(report.generated)} erzeugt, "
            f"{len(report.notices)} übersprungen"
        )
        return report
