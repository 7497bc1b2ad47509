"""PracticeData: unveränderlicher Datensatz-Schnappschuss + Plausibilitätsprüfung (Pydantic v2)."""

from collections import Counter
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional, Union

from pydantic import BaseModel

from config.schema import ExamPeriod, GradingConfig
from models.student import Student
from models.practice_group import PracticeGroup
from models.service import Service, ServiceRole
from models.evaluation import ServiceEvaluation
from models.exam import PracticalExamEvaluation
from models.records import EntryExitRecord, InstituteData, TeacherData

# Manuell eingetragene Note: Zahl, Text aus der Eingabemaske ("7,5") oder leer
GradeValue = Optional[Union[float, str]]


class ValidationReport(BaseModel):
    """Ergebnis der Plausibilitätsprüfung eines Schnappschusses."""

    is_valid: bool
    errors: list[str]      # Verletzen Invarianten der Notenberechnung
    warnings: list[str]    # Auffällig, aber berechenbar

    def print_rich(self) -> None:
        """Gibt den Report formatiert über Rich aus."""
        from rich.console import Console
        from rich.panel import Panel

        console = Console()
        if self.is_valid:
            status = "[bold green]✓ GÜLTIG[/bold green]"
        else:
            status = "[bold red]✗ UNGÜLTIG[/bold red]"

        lines = [status]
        if self.errors:
            lines.append("\n[red bold]Fehler:[/red bold]")
            for e in self.errors:
                lines.append(f"  [red]• {e}[/red]")
        if self.warnings:
            lines.append("\n[yellow bold]Warnungen:[/yellow bold]")
            for w in self.warnings:
                lines.append(f"  [yellow]• {w}[/yellow]")
        if not self.errors and not self.warnings:
            lines.append("[dim]Keine Probleme gefunden.[/dim]")

        console.print(Panel("\n".join(lines), title="Datenprüfung", border_style="cyan"))


class PracticeData(BaseModel):
    """Vollständiger Datensatz, wie ihn die Datenhaltung liefert."""

    students: list[Student] = []
    practice_groups: list[PracticeGroup] = []
    services: list[Service] = []
    service_evaluations: list[ServiceEvaluation] = []
    service_roles: list[ServiceRole] = []
    entry_exit_records: list[EntryExitRecord] = []
    practical_exams: list[PracticalExamEvaluation] = []
    teacher: TeacherData = TeacherData()
    institute: InstituteData = InstituteData()
    # student_id → period_key → instrument_key → Note
    academic_grades: dict[str, dict[str, dict[str, GradeValue]]] = {}
    # student_id → Modul → {"t1", "t2", "t3", "rec"} → Note
    course_grades: dict[str, dict[str, dict[str, GradeValue]]] = {}
    created_at: Optional[datetime] = None
    modified_at: Optional[datetime] = None
    data_version: str = "1.0"

    # ─── Nachschlagen ───

    def get_student(self, student_id: str) -> Optional[Student]:
        return next((s for s in self.students if s.id == student_id), None)

    def get_service(self, service_id: str) -> Optional[Service]:
        return next((s for s in self.services if s.id == service_id), None)

    def get_evaluation_for(self, service_id: str) -> Optional[ServiceEvaluation]:
        return next(
            (e for e in self.service_evaluations if e.service_id == service_id), None
        )

    def get_exam(
        self, student_id: str, period: ExamPeriod
    ) -> Optional[PracticalExamEvaluation]:
        return next(
            (e for e in self.practical_exams
             if e.student_id == student_id and e.exam_period == period),
            None,
        )

    def records_for(self, student_id: str) -> list[EntryExitRecord]:
        return [r for r in self.entry_exit_records if r.student_id == student_id]

    # ─── Übersicht ───

    def summary(self) -> str:
        """Kurze Übersicht über den Datensatz."""
        evaluated = {e.service_id for e in self.service_evaluations}
        lines = [
            f"Centro: {self.institute.name}" if self.institute.name else "",
            f"Schüler: {len(self.students)}",
            f"Praxisgruppen: {len(self.practice_groups)}",
            f"Services: {len(self.services)} ({len(evaluated)} bewertet)",
            f"Praktische Prüfungen: {len(self.practical_exams)}",
            f"Vorfälle (Entradas/Salidas): {len(self.entry_exit_records)}",
        ]
        return "\n".join(l for l in lines if l)

    # ─── Plausibilitätsprüfung ───

    def validate_snapshot(self, config: GradingConfig) -> ValidationReport:
        """Prüft die Invarianten, auf die sich die Notenberechnung verlässt.

        Prüfungen:
        1. Jeder Schüler gehört höchstens einer Praxisgruppe an
        2. Jeder Punktwert liegt in [0, max_score] seines Kriteriums
        3. Punktevektoren sind nicht länger als die Kriterienliste
        4. Jede Bewertung gehört zu einem bekannten Service
        5. Höchstens eine praktische Prüfung je (Schüler, Zeitraum)
        """
        errors: list[str] = []
        warnings: list[str] = []
        criteria = config.criteria

        # ── 1. Gruppenmitgliedschaft ──────────────────────────────────────
        memberships: dict[str, list[str]] = {}
        for group in self.practice_groups:
            for sid in group.student_ids:
                memberships.setdefault(sid, []).append(group.name)
        for sid, names in memberships.items():
            if len(names) > 1:
                errors.append(
                    f"Schüler '{sid}' ist in mehreren Praxisgruppen: {', '.join(names)}. "
                    f"Für die Gruppennote zählt nur '{names[0]}'."
                )

        # ── 2./3. Punktwerte ──────────────────────────────────────────────
        service_ids = {s.id for s in self.services}
        for evaluation in self.service_evaluations:
            if evaluation.service_id not in service_ids:
                warnings.append(
                    f"Bewertung '{evaluation.id}' verweist auf unbekannten "
                    f"Service '{evaluation.service_id}' und wird ignoriert."
                )
            day = evaluation.service_day
            for gid, gs in day.group_scores.items():
                self._check_vector(
                    gs.scores, criteria.service_day_group,
                    f"Service '{evaluation.service_id}', Gruppe '{gid}'",
                    errors, warnings,
                )
            for sid, ind in day.individual_scores.items():
                self._check_vector(
                    ind.scores, criteria.service_day_individual,
                    f"Service '{evaluation.service_id}', Schüler '{sid}'",
                    errors, warnings,
                )

        # ── 5. Prüfungen ──────────────────────────────────────────────────
        exam_keys = Counter((e.student_id, e.exam_period) for e in self.practical_exams)
        for (sid, period), n in exam_keys.items():
            if n > 1:
                warnings.append(
                    f"Schüler '{sid}' hat {n} Prüfungen im Zeitraum "
                    f"'{period.value}'; es zählt die erste."
                )

        return ValidationReport(
            is_valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
        )

    @staticmethod
    def _check_vector(
        scores: list,
        items: list,
        where: str,
        errors: list[str],
        warnings: list[str],
    ) -> None:
        if len(scores) > len(items):
            warnings.append(
                f"{where}: {len(scores)} Punktwerte, aber nur {len(items)} Kriterien."
            )
        for idx, score in enumerate(scores):
            if score is None or idx >= len(items):
                continue
            max_score = items[idx].max_score
            if score < 0 or score > max_score:
                errors.append(
                    f"{where}: '{items[idx].label}' = {score} liegt außerhalb "
                    f"[0, {max_score:g}]."
                )

    # ─── Persistenz ────────────────────────────────────────────────────────

    def save_json(self, path: Path) -> None:
        """Speichert den kompletten Datensatz als JSON-Datei."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        now = datetime.now(timezone.utc)
        updated = self.model_copy(update={
            "modified_at": now,
            "created_at": self.created_at or now,
        })
        with open(path, "w", encoding="utf-8") as f:
            f.write(updated.model_dump_json(indent=2))

    @classmethod
    def load_json(cls, path: Path) -> "PracticeData":
        """Lädt einen Datensatz aus einer JSON-Datei."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"JSON-Datei nicht gefunden: {path}")
        with open(path, "r", encoding="utf-8") as f:
            return cls.model_validate_json(f.read())
