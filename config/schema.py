from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class StoreBackend(str, Enum):
    JSON = "json"
    HTTP = "http"


# ─── DATENSPEICHER ───

class StoreConfig(BaseModel):
    """Wo Stundenplan, Abwesenheiten und Vertretungen liegen."""
    # json = lokale Datei, http = Schul-Web-App (?action=...)
    backend: StoreBackend = Field(StoreBackend.JSON,
        description="Datenspeicher: json (lokale Datei) oder http (Web-App)")
    # Pfad der JSON-Datei (nur backend=json)
    json_path: Path = Field(Path("output/vertretungen.json"),
        description="Pfad der JSON-Datei")
    # Basis-URL der Web-App (nur backend=http)
    base_url: Optional[str] = Field(None,
        description="Basis-URL der Web-App")
    # Zeitlimit pro HTTP-Anfrage
    timeout_seconds: float = Field(20.0, gt=0, le=300,
        description="Zeitlimit pro Anfrage (Sekunden)")

    @model_validator(mode='after')
    def validate_backend(self):
        """Für backend=http muss eine URL gesetzt sein."""
        if self.backend == StoreBackend.HTTP and not (self.base_url or "").strip():
            raise ValueError("backend=http erfordert base_url")
        return self


# ─── ENGINE ───

class EngineConfig(BaseModel):
    """Verhalten der Vertretungs-Engine."""
    # Wie lange ein Tages-Index wiederverwendet wird (0 = immer neu bauen)
    index_ttl_seconds: int = Field(0, ge=0, le=3600,
        description="Gültigkeit des Tages-Index in Sekunden (0=kein Cache)")
    # Höchste Stundennummer, die CLI und Exporte anbieten
    max_period: int = Field(10, ge=1, le=16,
        description="Letzte Unterrichtsstunde des Tages")


# ─── LOGGING ───

class LoggingConfig(BaseModel):
    """Log-Ausgabe der CLI."""
    level: str = Field("WARNING",
        description="Log-Level (DEBUG, INFO, WARNING, ERROR)")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unbekanntes Log-Level: {v}")
        return level


# ─── GESAMT-CONFIG ───

class SchoolConfig(BaseModel):
    """Gesamtkonfiguration des Vertretungsplaners."""
    # Name der Schule (erscheint in Exporten)
    school_name: str = Field("Muster-Gymnasium",
        description="Name der Schule")
    # Namen der Wochentage (Index 0 = Montag)
    day_names: list[str] = Field(
        default=["Mo", "Di", "Mi", "Do", "Fr"],
        description="Namen der Wochentage")
    store: StoreConfig = Field(default_factory=StoreConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    def day_name(self, weekday: int) -> str:
        """Name des Wochentags, Fallback auf Mo–So."""
        if 0 <= weekday < len(self.day_names):
            return self.day_names[weekday]
        return ["Mo", "Di", "Mi", "Do", "Fr", "Sa", "So"][weekday]
