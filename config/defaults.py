from pathlib import Path

from config.schema import (
    EngineConfig,
    LoggingConfig,
    SchoolConfig,
    StoreBackend,
    StoreConfig,
)


def default_store() -> StoreConfig:
    """Lokale JSON-Datei unter output/."""
    return StoreConfig(
        backend=StoreBackend.JSON,
        json_path=Path("output/vertretungen.json"),
        timeout_seconds=20.0,
    )


def default_school_config() -> SchoolConfig:
    """Komplette Default-Konfiguration (lokaler JSON-Speicher, Mo–Fr)."""
    return SchoolConfig(
        school_name="Muster-Gymnasium",
        day_names=["Mo", "Di", "Mi", "Do", "Fr"],
        store=default_store(),
        engine=EngineConfig(index_ttl_seconds=0, max_period=8),
        logging=LoggingConfig(level="WARNING"),
    )


# ─── DEMO-DATEN ───
# Grundlage für data/fake_data.py. Kürzel → Anzeigename.

DEMO_SUBJECTS: dict[str, str] = {
    "De": "Deutsch",
    "Ma": "Mathematik",
    "En": "Englisch",
    "Bi": "Biologie",
    "Ek": "Erdkunde",
    "Ge": "Geschichte",
    "Ph": "Physik",
    "Ch": "Chemie",
    "Ku": "Kunst",
    "Mu": "Musik",
    "Sp": "Sport",
    "Re": "Religion",
}

# Jahrgang → Parallelklassen
DEMO_GRADES: dict[int, list[str]] = {
    5: ["a", "b", "c"],
    6: ["a", "b", "c"],
    7: ["a", "b"],
    8: ["a", "b"],
    9: ["a", "b"],
    10: ["a", "b"],
}

DEMO_EMAIL_DOMAIN = "schule.example"

# Stunden pro Schultag im Demo-Plan
DEMO_PERIODS_PER_DAY = 6
