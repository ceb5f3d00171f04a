"""Interaktiver Setup-Wizard für die Ersteinrichtung des Vertretungsplaners.

Fragt Schule, Datenspeicher und Engine-Einstellungen ab.
Nutzt rich für die Konsolenausgabe.
"""

from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, FloatPrompt, IntPrompt, Prompt
from rich.table import Table
from rich import box

from config.schema import (
    EngineConfig,
    LoggingConfig,
    SchoolConfig,
    StoreBackend,
    StoreConfig,
)
from config.defaults import default_school_config

console = Console()


def _header(title: str) -> None:
    console.print()
    console.print(Panel(f"[bold cyan]{title}[/bold cyan]", expand=False))


def _success(text: str) -> None:
    console.print(f"[green]✓[/green] {text}")


def _warn(text: str) -> None:
    console.print(f"[yellow]⚠[/yellow]  {text}")


def show_config_table(config: SchoolConfig) -> None:
    """Zeigt die Konfiguration als rich-Tabelle an."""
    table = Table(title="Konfiguration", box=box.ROUNDED)
    table.add_column("Bereich", style="bold")
    table.add_column("Wert")

    table.add_row("Schule", config.school_name)
    table.add_row("Wochentage", ", ".join(config.day_names))
    table.add_row("Datenspeicher", config.store.backend.value)
    if config.store.backend == StoreBackend.HTTP:
        table.add_row("Web-App", config.store.base_url or "")
        table.add_row("Zeitlimit", f"{config.store.timeout_seconds:g}s")
    else:
        table.add_row("JSON-Datei", str(config.store.json_path))
    table.add_row("Index-Cache", f"{config.engine.index_ttl_seconds}s")
    table.add_row("Letzte Stunde", str(config.engine.max_period))
    table.add_row("Log-Level", config.logging.level)
    console.print(table)


# ─── SCHRITTE ───

def _wizard_store(default: StoreConfig) -> StoreConfig:
    _header("Schritt 2 — Datenspeicher")
    console.print("Speicher: [1] lokale JSON-Datei  [2] Schul-Web-App (HTTP)")
    choice = Prompt.ask("Speicher wählen", default="1")
    if choice == "2":
        url = Prompt.ask("Basis-URL der Web-App")
        timeout = FloatPrompt.ask("Zeitlimit pro Anfrage (Sekunden)",
                                  default=default.timeout_seconds)
        return StoreConfig(backend=StoreBackend.HTTP, base_url=url,
                           timeout_seconds=timeout)
    path = Prompt.ask("Pfad der JSON-Datei", default=str(default.json_path))
    return StoreConfig(backend=StoreBackend.JSON, json_path=Path(path))


def _wizard_engine(default: EngineConfig) -> EngineConfig:
    _header("Schritt 3 — Engine")
    ttl = IntPrompt.ask("Tages-Index wiederverwenden (Sekunden, 0 = nie)",
                        default=default.index_ttl_seconds)
    max_period = IntPrompt.ask("Letzte Unterrichtsstunde", default=default.max_period)
    return EngineConfig(index_ttl_seconds=ttl, max_period=max_period)


# ─── HAUPT-WIZARD ───

def run_wizard() -> Optional[SchoolConfig]:
    """Führt den interaktiven Setup-Wizard aus.

    Returns:
        Fertige SchoolConfig oder None, wenn der Nutzer abbricht.
    """
    defaults = default_school_config()
    console.print()
    console.print(Panel(
        "[bold]Willkommen beim Vertretungsplaner![/bold]\n\n"
        "Der Wizard fragt Schule, Datenspeicher und Engine-Einstellungen ab.\n"
        "[dim]Standard-Werte können mit Enter übernommen werden.[/dim]",
        title="[bold cyan]Vertretungsplaner[/bold cyan]",
        border_style="cyan",
    ))

    try:
        _header("Schritt 1 — Schule")
        name = Prompt.ask("Name der Schule", default=defaults.school_name)
        store = _wizard_store(defaults.store)
        engine = _wizard_engine(defaults.engine)
        config = SchoolConfig(
            school_name=name,
            day_names=defaults.day_names,
            store=store,
            engine=engine,
            logging=LoggingConfig(),
        )
    except KeyboardInterrupt:
        console.print("\n[yellow]Wizard abgebrochen.[/yellow]")
        return None
    except PydanticValidationError as e:
        _warn(f"Validierungsfehler: {e}")
        return None

    show_config_table(config)
    if not Confirm.ask("\nKonfiguration speichern?", default=True):
        console.print("[yellow]Konfiguration wird nicht gespeichert.[/yellow]")
        return None
    _success("Konfiguration wird gespeichert...")
    return config
