"""Vertretungsplaner: Haupt-CLI.

Verwendung:
  python main.py setup                          Standard-Konfiguration anlegen
  python main.py setup --wizard                 Ersteinrichtung mit Wizard
  python main.py config show                    Konfiguration anzeigen
  python main.py generate --date 2024-03-04     Demo-Daten erzeugen
  python main.py vacant 2024-03-04              Offene Stunden + Kandidaten
  python main.py free 2024-03-04 3              Freie Lehrkräfte in Std. 3
  python main.py assign 2024-03-04 3 6A carol@schule.example
  python main.py list 2024-03-04                Vertretungen des Tages
  python main.py check 2024-03-04               Konsistenzprüfung
  python main.py export 2024-03-04 --format pdf Vertretungsplan exportieren
"""

import functools
import logging
import sys
from datetime import date
from pathlib import Path
from typing import Optional

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich import box

from engine.errors import SubstitutionError

console = Console()

DATE_FORMATS = ["%Y-%m-%d", "%d.%m.%Y"]


# ─── Hilfsfunktionen ──────────────────────────────────────────────────────────

def _setup_logging(level: str) -> None:
    """Log-Ausgabe über rich auf stderr."""
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config_or_abort(ctx: click.Context):
    """Lädt die Konfiguration oder bricht mit Fehlermeldung ab."""
    from config.manager import ConfigManager
    mgr = ConfigManager(ctx.obj.get("config_path"))
    if mgr.first_run_check():
        console.print(
            "[red]Keine Konfiguration gefunden.[/red]\n"
            "Führen Sie zunächst [bold]python main.py setup[/bold] aus."
        )
        sys.exit(1)
    try:
        config = mgr.load()
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        sys.exit(1)
    _setup_logging("DEBUG" if ctx.obj.get("verbose") else config.logging.level)
    return mgr, config


def _planner(ctx: click.Context):
    from engine.planner import SubstitutionPlanner
    _, config = _load_config_or_abort(ctx)
    return SubstitutionPlanner.from_config(config), config


def _day(value) -> date:
    return value.date() if hasattr(value, "date") else value


def handle_engine_errors(func):
    """Engine-Fehler rot ausgeben und mit Exit-Code 1 beenden."""
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except SubstitutionError as e:
            console.print(f"[red]✗ {e.message}[/red] [dim]({e.kind})[/dim]")
            sys.exit(1)
    return wrapper


# ─── SETUP ────────────────────────────────────────────────────────────────────

@click.command("setup")
@click.option("--wizard", is_flag=True, default=False,
              help="Konfiguration interaktiv abfragen.")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Konfiguration ohne Rückfrage überschreiben.")
@click.pass_context
def cmd_setup(ctx: click.Context, wizard: bool, force: bool):
    """Ersteinrichtung: Konfiguration anlegen."""
    from config.defaults import default_school_config
    from config.manager import ConfigManager
    from config.wizard import run_wizard

    mgr = ConfigManager(ctx.obj.get("config_path"))
    if not mgr.first_run_check() and not force:
        console.print("[yellow]Eine Konfiguration existiert bereits.[/yellow]")
        if not click.confirm("Trotzdem neu einrichten?", default=False):
            return

    config = run_wizard() if wizard else default_school_config()
    if config is not None:
        mgr.save(config)
        console.print("[bold green]Einrichtung abgeschlossen![/bold green]")
        console.print("Führen Sie jetzt [bold]python main.py generate[/bold] aus.")


# ─── CONFIG ───────────────────────────────────────────────────────────────────

@click.group("config")
def cmd_config():
    """Konfiguration anzeigen."""


@cmd_config.command("show")
@click.pass_context
def config_show(ctx: click.Context):
    """Zeigt die aktuelle Konfiguration an."""
    from config.wizard import show_config_table
    _, config = _load_config_or_abort(ctx)
    console.print(Panel(
        f"[bold]{config.school_name}[/bold]",
        title="Vertretungsplaner",
        border_style="cyan",
    ))
    show_config_table(config)


# ─── GENERATE ─────────────────────────────────────────────────────────────────

@click.command("generate")
@click.option("--seed", default=42, help="Zufalls-Seed für reproduzierbare Daten.")
@click.option("--date", "absence_date", type=click.DateTime(formats=DATE_FORMATS),
              default=None, help="Datum, für das Abwesenheiten erzeugt werden.")
@click.option("--absent-count", default=2, show_default=True,
              help="Anzahl abwesender Lehrkräfte.")
@click.option("--force", is_flag=True, default=False,
              help="Bestehende Datei ohne Rückfrage überschreiben.")
@click.pass_context
def cmd_generate(ctx: click.Context, seed: int, absence_date, absent_count: int, force: bool):
    """Erzeugt Demo-Daten (Lehrkräfte, Klassen, Wochenplan, Abwesenheiten)."""
    from config.schema import StoreBackend
    from data.fake_data import FakeDataGenerator

    _, config = _load_config_or_abort(ctx)
    if config.store.backend != StoreBackend.JSON:
        console.print("[red]Demo-Daten können nur in den JSON-Speicher geschrieben werden.[/red]")
        sys.exit(1)

    out_path = Path(config.store.json_path)
    if out_path.exists() and not force:
        if not click.confirm(f"{out_path} existiert bereits. Überschreiben?", default=False):
            return

    console.print("[bold]Demo-Daten werden generiert...[/bold]")
    gen = FakeDataGenerator(config, seed=seed)
    data = gen.generate(
        absence_date=_day(absence_date) if absence_date else None,
        num_absent=absent_count,
    )
    gen.print_summary(data)
    data.save_json(out_path)
    console.print(f"[green]✓[/green] JSON gespeichert: {out_path}")


# ─── VACANT ───────────────────────────────────────────────────────────────────

@click.command("vacant")
@click.argument("day", type=click.DateTime(formats=DATE_FORMATS))
@click.option("--absent", "-a", multiple=True,
              help="Zusätzlich abwesende Lehrkraft (Name oder E-Mail), mehrfach möglich.")
@click.option("--max-candidates", default=3, show_default=True,
              help="Wie viele freie Lehrkräfte pro Stunde angezeigt werden.")
@click.pass_context
@handle_engine_errors
def cmd_vacant(ctx: click.Context, day, absent: tuple[str, ...], max_candidates: int):
    """Zeigt die offenen Stunden eines Tages mit Vertretungsstand."""
    from export.helpers import format_day, teacher_cell

    planner, config = _planner(ctx)
    day = _day(day)
    candidates = planner.candidates_for_vacancies(day, extra_absent=absent)
    index = planner.index_for(day)

    absences = planner.absences(day, extra_absent=absent)
    console.print(Panel(
        ", ".join(a.teacher.label for a in absences) or "[dim]keine[/dim]",
        title=f"Abwesend {format_day(day, config)}",
        border_style="cyan",
    ))
    if not candidates:
        console.print("[dim]Keine offenen Stunden.[/dim]")
        return

    table = Table(title="Offene Stunden", box=box.ROUNDED)
    table.add_column("Std.", style="bold", justify="right")
    table.add_column("Klasse")
    table.add_column("Fach")
    table.add_column("Abwesend")
    table.add_column("Status")
    table.add_column("Freie Lehrkräfte")

    open_count = 0
    for vacancy, free in candidates.items():
        record = index.substitution_at(vacancy.period, vacancy.class_name)
        if record is not None:
            status = f"[green]✓ {teacher_cell(record.substitute_teacher)}[/green]"
        else:
            status = "[red]offen[/red]"
            open_count += 1
        names = ", ".join(t.label for t in free[:max_candidates])
        if len(free) > max_candidates:
            names += f" (+{len(free) - max_candidates})"
        table.add_row(
            str(vacancy.period), vacancy.class_name, vacancy.subject,
            teacher_cell(vacancy.absent_teacher), status, names or "[red]—[/red]",
        )
    console.print(table)
    console.print(f"{len(candidates)} Stunden betroffen, davon {open_count} offen.")


# ─── FREE ─────────────────────────────────────────────────────────────────────

@click.command("free")
@click.argument("day", type=click.DateTime(formats=DATE_FORMATS))
@click.argument("period", type=click.IntRange(min=1))
@click.option("--absent", "-a", multiple=True,
              help="Zusätzlich abwesende Lehrkraft (Name oder E-Mail), mehrfach möglich.")
@click.pass_context
@handle_engine_errors
def cmd_free(ctx: click.Context, day, period: int, absent: tuple[str, ...]):
    """Listet die Lehrkräfte, die in einer Stunde frei sind."""
    planner, _ = _planner(ctx)
    day = _day(day)
    free = planner.free_teachers(day, period, extra_absent=absent)
    if not free:
        console.print(f"[yellow]In Stunde {period} ist niemand frei.[/yellow]")
        return

    table = Table(title=f"Frei in Stunde {period}", box=box.SIMPLE)
    table.add_column("#", justify="right")
    table.add_column("Name")
    table.add_column("E-Mail")
    for i, teacher in enumerate(free, 1):
        table.add_row(str(i), teacher.name or "", teacher.email or "")
    console.print(table)


# ─── ASSIGN ───────────────────────────────────────────────────────────────────

@click.command("assign")
@click.argument("day", type=click.DateTime(formats=DATE_FORMATS))
@click.argument("period", type=int)
@click.argument("class_name")
@click.argument("substitute")
@click.option("--absent-teacher", default=None, help="Vertretene Lehrkraft (sonst aus dem Stundenplan).")
@click.option("--subject", default=None, help="Fach der Vertretungsstunde.")
@click.option("--note", default="", help="Bemerkung für den Aushang.")
@click.option("--update", "allow_update", is_flag=True, default=False,
              help="Bestehende Vertretung dieser Stunde ersetzen.")
@click.option("--absent", "-a", multiple=True,
              help="Zusätzlich abwesende Lehrkraft (Name oder E-Mail), mehrfach möglich.")
@click.pass_context
@handle_engine_errors
def cmd_assign(
    ctx: click.Context, day, period: int, class_name: str, substitute: str,
    absent_teacher: Optional[str], subject: Optional[str], note: str,
    allow_update: bool, absent: tuple[str, ...],
):
    """Trägt eine Vertretung ein (Datum, Stunde, Klasse, Vertretung)."""
    planner, _ = _planner(ctx)
    record = planner.assign(
        {
            "date": _day(day),
            "period": period,
            "class_name": class_name,
            "absent_teacher": absent_teacher,
            "substitute_teacher": substitute,
            "substitute_subject": subject,
            "note": note,
        },
        allow_update=allow_update,
        extra_absent=absent,
    )
    console.print(
        f"[green]✓[/green] Std. {record.period} {record.class_name}: "
        f"{record.substitute_teacher.label}"
        + (f" ({record.substitute_subject})" if record.substitute_subject else "")
    )


# ─── LIST ─────────────────────────────────────────────────────────────────────

@click.command("list")
@click.argument("day", type=click.DateTime(formats=DATE_FORMATS))
@click.pass_context
@handle_engine_errors
def cmd_list(ctx: click.Context, day):
    """Zeigt die Vertretungen eines Tages."""
    from export.helpers import SUBSTITUTION_COLUMNS, format_day, substitution_rows

    planner, config = _planner(ctx)
    day = _day(day)
    result = planner.fetch_substitutions(day)
    if result.source == "empty":
        console.print(f"[dim]Keine Vertretungen am {format_day(day, config)}.[/dim]")
        return
    if result.source == "fallback":
        console.print("[yellow]⚠ Aus dem Tagesplan abgeleitet (keine gespeicherten Vertretungen).[/yellow]")

    table = Table(title=f"Vertretungen {format_day(day, config)}", box=box.ROUNDED)
    for col in SUBSTITUTION_COLUMNS:
        table.add_column(col)
    for row in substitution_rows(result.records):
        table.add_row(*row)
    console.print(table)


# ─── CHECK ────────────────────────────────────────────────────────────────────

@click.command("check")
@click.argument("day", type=click.DateTime(formats=DATE_FORMATS))
@click.pass_context
@handle_engine_errors
def cmd_check(ctx: click.Context, day):
    """Prüft die gespeicherten Vertretungen eines Tages auf Konflikte."""
    from analysis.substitution_validator import SubstitutionValidator

    planner, _ = _planner(ctx)
    report = SubstitutionValidator(planner.store).validate(_day(day))
    report.print_rich()
    if not report.is_valid:
        sys.exit(1)


# ─── EXPORT ───────────────────────────────────────────────────────────────────

@click.command("export")
@click.argument("day", type=click.DateTime(formats=DATE_FORMATS))
@click.option("--format", "fmt", type=click.Choice(["xlsx", "pdf", "both"]),
              default="xlsx", show_default=True, help="Ausgabeformat.")
@click.option("--output", "-o", default=None, type=click.Path(path_type=Path),
              help="Zieldatei (ohne Endung bei --format both).")
@click.pass_context
@handle_engine_errors
def cmd_export(ctx: click.Context, day, fmt: str, output: Optional[Path]):
    """Exportiert den Vertretungsplan eines Tages als Excel und/oder PDF."""
    from export.excel_export import SubstitutionExcelExporter
    from export.helpers import build_sheet
    from export.pdf_export import SubstitutionPdfExporter

    planner, config = _planner(ctx)
    day = _day(day)
    sheet = build_sheet(planner, day, config)
    base = output or Path("output") / f"vertretungen_{day.isoformat()}"

    written = []
    if fmt in ("xlsx", "both"):
        target = base if base.suffix == ".xlsx" else base.with_suffix(".xlsx")
        written.append(SubstitutionExcelExporter(sheet).export(target))
    if fmt in ("pdf", "both"):
        target = base if base.suffix == ".pdf" else base.with_suffix(".pdf")
        written.append(SubstitutionPdfExporter(sheet).export(target))

    for path in written:
        console.print(f"[green]✓[/green] Exportiert: {path}")


# ─── HAUPT-CLI ────────────────────────────────────────────────────────────────

@click.group()
@click.option("--config", "config_path", default=None, type=click.Path(path_type=Path),
              help="Pfad der Konfigurationsdatei.")
@click.option("--verbose", "-v", is_flag=True, default=False, help="Debug-Ausgabe.")
@click.pass_context
def cli(ctx: click.Context, config_path: Optional[Path], verbose: bool):
    """Vertretungsplaner: offene Stunden, freie Lehrkräfte, Vertretungen.

    Starten Sie mit: python main.py setup
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_path
    ctx.obj["verbose"] = verbose


def main():
    """Einstiegspunkt. Legt beim ersten Aufruf ohne Argumente die Konfiguration an."""
    from config.manager import ConfigManager
    mgr = ConfigManager()

    if len(sys.argv) == 1 and mgr.first_run_check():
        console.print(Panel(
            "[bold]Willkommen beim Vertretungsplaner![/bold]\n\n"
            "Keine Konfiguration gefunden.\n"
            "Der Setup-Wizard wird jetzt gestartet...",
            border_style="cyan",
        ))
        sys.argv.extend(["setup", "--wizard"])

    cli(obj={})


# Befehle registrieren
cli.add_command(cmd_setup)
cli.add_command(cmd_config)
cli.add_command(cmd_generate)
cli.add_command(cmd_vacant)
cli.add_command(cmd_free)
cli.add_command(cmd_assign)
cli.add_command(cmd_list)
cli.add_command(cmd_check)
cli.add_command(cmd_export)


if __name__ == "__main__":
    main()
