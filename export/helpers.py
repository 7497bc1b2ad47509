"""Gemeinsame Hilfsfunktionen für PDF- und Excel-Export."""

import base64
import binascii
import logging
import re
from datetime import date, datetime, timedelta
from typing import Optional, Union

from config.defaults import BEHAVIOR_SYMBOLS
from grading.periods import parse_calendar_day

logger = logging.getLogger(__name__)

# ─── Farbpalette (RRGGBB, ohne #) ─────────────────────────────────────────────

COLORS: dict[str, str] = {
    "header":     "2980B9",
    "roles":      "228B22",
    "incidents":  "FFA500",
    "leaders":    "8E44AD",
    "group_band": "DCDCDC",
    "zebra":      "F5F5F5",
    "total":      "E8E8E8",
    "border":     "B4B4B4",
    "muted":      "646464",
    "pass":       "1E8449",
    "fail":       "C0392B",
}


def hex_to_rgb(hex_color: str) -> tuple[int, int, int]:
    """Wandelt RRGGBB-String in (r, g, b)-Tupel um."""
    h = hex_color.lstrip("#")
    return int(h[0:2], 16), int(h[2:4], 16), int(h[4:6], 16)


def pdf_safe(text: str) -> str:
    """Ersetzt nicht-latin-1-fähige Zeichen für fpdf2-Built-in-Fonts."""
    cleaned = (
        text
        .replace("—", " - ")   # em dash
        .replace("–", "-")      # en dash
        .replace("‘", "'")
        .replace("’", "'")
        .replace("“", '"')
        .replace("”", '"')
        .replace("…", "...")
    )
    return cleaned.encode("latin-1", "replace").decode("latin-1")


# ─── Datum (es-ES) ────────────────────────────────────────────────────────────

def format_date_es(value: Union[str, date, datetime, None]) -> str:
    """DD/MM/YYYY; unlesbare Werte werden unverändert ausgegeben."""
    parsed = parse_calendar_day(value)
    if parsed is None:
        return "" if value is None else str(value)
    return parsed.strftime("%d/%m/%Y")


def week_window(day: Union[str, date, datetime]) -> Optional[tuple[date, date]]:
    """Montag und Sonntag der Woche, die ``day`` enthält."""
    parsed = parse_calendar_day(day)
    if parsed is None:
        return None
    monday = parsed.date() - timedelta(days=parsed.weekday())
    return monday, monday + timedelta(days=6)


def in_week_of(record_day: Union[str, date, datetime],
               reference: Union[str, date, datetime]) -> bool:
    window = week_window(reference)
    parsed = parse_calendar_day(record_day)
    if window is None or parsed is None:
        return False
    return window[0] <= parsed.date() <= window[1]


# ─── Dateinamen ───────────────────────────────────────────────────────────────

def safe_file_name(*parts: str, suffix: str = ".pdf") -> str:
    """Leerzeichen → Unterstrich, pfadkritische Zeichen entfernen."""
    cleaned = []
    for part in parts:
        p = re.sub(r'[\\/:*?"<>|]', "", part.strip())
        p = re.sub(r"\s+", "_", p)
        if p:
            cleaned.append(p)
    return "_".join(cleaned) + suffix


# ─── Bilder ───────────────────────────────────────────────────────────────────

def decode_data_url(value: Optional[str]) -> Optional[bytes]:
    """Dekodiert ``data:image/...;base64,...`` zu Bytes; sonst ``None``."""
    if not value or not value.startswith("data:image"):
        return None
    _, _, payload = value.partition(",")
    try:
        return base64.b64decode(payload, validate=False)
    except (binascii.Error, ValueError) as e:
        logger.warning(f"Logo konnte nicht dekodiert werden: {e}")
        return None


# ─── Zelleninhalt-Formatierung ────────────────────────────────────────────────

def format_grade(value: Optional[float]) -> str:
    """Note mit zwei Nachkommastellen oder "-"."""
    if value is None:
        return "-"
    return f"{value:.2f}"


def format_score(value: Optional[float]) -> str:
    """Punktwert ohne überflüssige Nullen ("1.5", "2"), leer wenn unbewertet."""
    if value is None:
        return ""
    return f"{value:g}"


def behavior_symbol(score: Optional[int]) -> str:
    if score is None:
        return ""
    return BEHAVIOR_SYMBOLS.get(score, str(score))


def check_mark(flag: Optional[bool]) -> str:
    return "X" if flag else ""
