"""Servicios prácticos: Haupt-CLI.

Verwendung:
  python main.py setup                          Standardkonfiguration anlegen
  python main.py config show                    Konfiguration anzeigen
  python main.py generate                       Demo-Datensatz erzeugen (JSON)
  python main.py validate                       Datensatz prüfen
  python main.py grades                         Berechnete Noten anzeigen
  python main.py report planning -s <id>        Planning del servicio
  python main.py report tracking -s <id>        Ficha de seguimiento
  python main.py report evaluation -s <id>      Informe de evaluación
  python main.py report dossier -s <id> [-a]    Dossier (ohne -a: alle Teilnehmer)
  python main.py report record [-a <id>]        Ficha académica (ohne -a: alle)
  python main.py gradebook                      Notenübersicht als Excel
"""

import logging
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich import box

console = Console()

# Standard-Pfade
DEFAULT_DATA_JSON = Path("output/practice_data.json")
DEFAULT_OUTPUT_DIR = Path("output")


def _setup_logging(verbose: bool) -> None:
    from rich.logging import RichHandler

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def _load_config_or_abort(config_path: Optional[str] = None):
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager(Path(config_path) if config_path else None)
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        return mgr, mgr.load()
    except ValueError as e:
        console.print(f"[red bold]Konfiguration fehlerhaft:[/red bold]\n{e}")
        sys.exit(1)


def _load_data_or_abort(json_path: str):
    """Lädt den Datensatz oder bricht mit Hinweis ab."""
    from models.practice_data import PracticeData

    p = Path(json_path)
    if not p.exists():
        console.print(
            f"[red]Keine Datendatei gefunden: {p}[/red]\n"
            "Verwenden Sie [bold]python main.py generate[/bold]."
        )
        sys.exit(1)
    return PracticeData.load_json(p)


def _fmt(value: Optional[float]) -> str:
    return "-" if value is None else f"{value:.2f}"


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
@click.option("--force", is_flag=True, default=False,
              help="Vorhandene Konfiguration überschreiben.")
@click.pass_context
def cmd_setup(ctx: click.Context, force: bool):
    """Ersteinrichtung: Standard-Notenkonfiguration anlegen."""
    from config.defaults import default_grading_config
    from config.manager import ConfigManager

    mgr = ConfigManager(ctx.obj.get("config_path"))
    if not mgr.first_run_check() and not force:
        console.print(
            "[yellow]Eine Konfiguration existiert bereits.[/yellow]\n"
            "Mit [bold]--force[/bold] wird sie überschrieben."
        )
        return

    path = mgr.save(default_grading_config())
    console.print(f"[bold green]Einrichtung abgeschlossen![/bold green] {path}")
    console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Zeigt die aktuelle Konfiguration an."""
    mgr, config = _load_config_or_abort(ctx.obj.get("config_path"))

    sw = config.service_weights
    console.print(Panel(
        f"[bold]{config.program_name}[/bold]  |  {config.academic_year}  |  "
        f"Servicenote: {sw.individual:.0%} individual / {sw.group:.0%} grupal",
        title="Notenkonfiguration",
        border_style="cyan",
    ))

    table = Table(title="Trimester", box=box.ROUNDED)
    table.add_column("Schlüssel")
    table.add_column("Name")
    table.add_column("Beginn")
    table.add_column("Ende")
    for t in config.trimesters:
        table.add_row(t.key, t.name, t.start, t.end)
    console.print(table)

    table2 = Table(title="Instrumente", box=box.ROUNDED)
    table2.add_column("Zeitraum")
    table2.add_column("Instrument")
    table2.add_column("Art")
    table2.add_column("Gewicht", justify="right")
    for period in config.evaluation:
        for i in period.instruments:
            table2.add_row(period.name, i.name, i.kind, f"{i.weight:g}")
    console.print(table2)

    cr = config.criteria
    console.print(
        f"\n[bold]Kriterien:[/bold] {len(cr.pre_service_behavior)} Verhalten | "
        f"{len(cr.service_day_group)} Gruppe (max {cr.group_max_total:g}) | "
        f"{len(cr.service_day_individual)} Einzel (max {cr.individual_max_total:g})"
    )


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--students", "num_students", default=16, help="Anzahl Schüler.")
@click.option("--groups", "num_groups", default=4, help="Anzahl Praxisgruppen.")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad für JSON-Export.")
@click.pass_context
def cmd_generate(ctx: click.Context, seed: int, num_students: int, num_groups: int,
                 json_path: str):
    """Erzeugt einen Demo-Datensatz und speichert ihn als JSON."""
    mgr, config = _load_config_or_abort(ctx.obj.get("config_path"))
    from data.fake_data import FakeDataGenerator

    console.print("[bold]Testdaten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed, num_students=num_students,
                            num_groups=num_groups)
    data = gen.generate()
    gen.print_summary(data)

    out_path = Path(json_path)
    data.save_json(out_path)
    console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── VALIDATE ─────────────────────────────────────────────────────────────────

@click.command("validate")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.pass_context
def cmd_validate(ctx: click.Context, json_path: str):
    """Prüft den Datensatz auf Widersprüche."""
    mgr, config = _load_config_or_abort(ctx.obj.get("config_path"))
    data = _load_data_or_abort(json_path)

    console.print(f"\n{data.summary()}\n")
    report = data.validate_snapshot(config)
    report.print_rich()

    sys.exit(0 if report.is_valid else 1)


# ─── GRADES ───────────────────────────────────────────────────────────────────

@click.command("grades")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.pass_context
def cmd_grades(ctx: click.Context, json_path: str):
    """Zeigt Servicenoten, Prüfungen und Zeitraum-Durchschnitte."""
    mgr, config = _load_config_or_abort(ctx.obj.get("config_path"))
    data = _load_data_or_abort(json_path)
    from config.schema import ExamPeriod
    from grading.calculated import calculate_all_grades, student_period_breakdowns

    calculated = calculate_all_grades(data, config)

    table = Table(title="Notas calculadas", box=box.ROUNDED)
    table.add_column("Alumno", style="bold")
    for t in config.trimesters:
        table.add_column(f"Serv. {t.key.upper()}", justify="right")
    for p in ExamPeriod:
        table.add_column(f"Ex. {p.value.upper()}", justify="right")
    for period in config.evaluation:
        table.add_column(f"Media {period.key.upper()}", justify="right", style="cyan")

    for student in sorted(data.students, key=lambda s: s.sort_key):
        calc = calculated[student.id]
        breakdowns = student_period_breakdowns(data, config, student.id, calc)
        row = [student.full_name]
        row += [_fmt(calc.service_averages.get(t.key)) for t in config.trimesters]
        row += [_fmt(calc.practical_exams.get(p)) for p in ExamPeriod]
        row += [_fmt(b.average) for b in breakdowns]
        table.add_row(*row)
    console.print(table)


# ─── REPORT ───────────────────────────────────────────────────────────────────

@click.command("report")
@click.argument("kind", type=click.Choice(["planning", "tracking", "evaluation",
                                           "dossier", "record"]))
@click.option("--service", "-s", "service_id", default=None, help="Service-ID.")
@click.option("--student", "-a", "student_id", default=None,
              help="Schüler-ID (Dossier/Ficha; ohne Angabe: alle).")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--output", "-o", default=str(DEFAULT_OUTPUT_DIR),
              help="Ausgabeverzeichnis für PDFs.")
@click.pass_context
def cmd_report(ctx: click.Context, kind: str, service_id: Optional[str],
               student_id: Optional[str], json_path: str, output: str):
    """Erzeugt PDF-Dokumente zu einem Service oder Schüler."""
    mgr, config = _load_config_or_abort(ctx.obj.get("config_path"))
    data = _load_data_or_abort(json_path)
    from export.batch import ReportService
    from export.composer import DocumentKind

    doc_kind = DocumentKind(kind)
    if doc_kind != DocumentKind.RECORD and service_id is None:
        console.print(f"[red]Für '{kind}' wird --service benötigt.[/red]")
        sys.exit(2)

    service = ReportService(data, config)
    requests = service.expand(doc_kind, service_id, student_id)
    console.print(f"[bold]{doc_kind.label}:[/bold] {len(requests)} Dokument(e)")
    report = service.generate_batch(requests, Path(output))
    report.print_rich()

    sys.exit(0 if report.generated else 1)


# ─── GRADEBOOK ────────────────────────────────────────────────────────────────

@click.command("gradebook")
@click.option("--json-path", default=str(DEFAULT_DATA_JSON),
              help="Pfad zur gespeicherten JSON-Datei.")
@click.option("--output", "-o", default=str(DEFAULT_OUTPUT_DIR / "notas.xlsx"),
              help="Ausgabepfad der Excel-Datei.")
@click.pass_context
def cmd_gradebook(ctx: click.Context, json_path: str, output: str):
    """Exportiert die Notenübersicht der Klasse als Excel-Datei."""
    mgr, config = _load_config_or_abort(ctx.obj.get("config_path"))
    data = _load_data_or_abort(json_path)
    from export.excel_export import GradebookExcelExporter

    path = GradebookExcelExporter(data, config).export(Path(output))
    console.print(f"[green]✓[/green] Notenübersicht gespeichert: {path}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--config", "config_path", default=None,
              help="Pfad zur Konfigurationsdatei (Standard: config/grading_config.yaml).")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgaben.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[str], verbose: bool):
    """Notenberechnung und Dokumente für Praxisservices.

    Starten Sie mit: python main.py setup
    """
    _setup_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf die Standardkonfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Bienvenido a Servicios prácticos![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Die Standardkonfiguration wird jetzt angelegt...",
            border_style="cyan",
        ))
        sys.argv.append("setup")

    cli(obj={})


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_validate)
cli.add_command(cmd_grades)
cli.add_command(cmd_report)
cli.add_command(cmd_gradebook)


if __name__ == "__main__":
    main()
