"""Identitäts-Normalisierung für Lehrkräfte, Klassen und Fächer.

Alle Gleichheitsprüfungen im Engine-Paket laufen über normalize():
"H M", "HM" und "h.m." sind derselbe Schlüssel, ebenso "6 A" und "6A".
"""

import re
from typing import Any, Optional

_NON_KEY_CHARS = re.compile(r"[^a-z0-9]")


def normalize(raw: Any) -> str:
    """Kanonischer Vergleichsschlüssel. Total: None/leer → ""."""
    if raw is None:
        return ""
    return _NON_KEY_CHARS.sub("", str(raw).strip().lower())


def class_key(class_name: Optional[str]) -> str:
    return normalize(class_name)


def teacher_key(ref) -> str:
    """Schlüssel einer Lehrkraft: normalisierte E-Mail, sonst normalisierter Name."""
    if ref is None:
        return ""
    email = normalize(getattr(ref, "email", None))
    if email:
        return email
    return normalize(getattr(ref, "name", None))


def same_teacher(a, b) -> bool:
    """True wenn a und b dieselbe Lehrkraft bezeichnen.

    Haben beide eine E-Mail, entscheidet die E-Mail. Fehlt sie auf einer
    Seite, wird über den Namen verglichen.
    """
    if a is None or b is None:
        return False
    email_a = normalize(getattr(a, "email", None))
    email_b = normalize(getattr(b, "email", None))
    if email_a and email_b:
        return email_a == email_b
    name_a = normalize(getattr(a, "name", None))
    name_b = normalize(getattr(b, "name", None))
    return bool(name_a) and name_a == name_b
