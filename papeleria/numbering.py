"""Order numbers, PINs and query-parameter helpers."""

from __future__ import annotations

import re
import secrets
from collections.abc import Mapping
from datetime import datetime, timezone

from .models import _parse_rfc3339

_NUMERO_PATTERN = r"^LTS\d{4}$"
_DATE_ONLY = re.compile(r"\d{4}-\d{2}-\d{2}")


def next_numero_lista(collection) -> str:
    """Return the number after the highest stored "LTSdddd" order number."""
    last = collection.find_one(
        {"numeroLista": {"$regex": _NUMERO_PATTERN}},
        sort=[("numeroLista", -1)],
    )
    next_number = 1
    if last and last.get("numeroLista"):
        digits = last["numeroLista"][3:7]
        if not last["numeroLista"].startswith("LTS") or not digits.isdigit():
            raise ValueError(f"error parsing numeroLista: {last['numeroLista']!r}")
        next_number = int(digits) + 1
    return f"LTS{next_number:04d}"


def generate_pin() -> str:
    """Return a random four-digit PIN between 1000 and 9999."""
    return str(1000 + secrets.randbelow(9000))


def parse_time_param(value: str) -> datetime | None:
    """Parse a YYYY-MM-DD or RFC 3339 date; an empty string gives None."""
    if not value:
        return None
    if _DATE_ONLY.fullmatch(value):
        try:
            return datetime.strptime(value, "%Y-%m-%d").replace(tzinfo=timezone.utc)
        except ValueError:
            pass
    try:
        return _parse_rfc3339(value)
    except ValueError as exc:
        raise ValueError("fecha debe estar en formato YYYY-MM-DD o RFC3339") from exc


def print_query_params(params: Mapping) -> None:
    """Print every query parameter and each of its values."""
    items = list(params.lists()) if hasattr(params, "lists") else list(params.items())
    if not items:
        print("No se recibieron parámetros en la query.")
        return
    print("Parámetros recibidos:")
    for key, values in items:
        if isinstance(values, str):
            values = [values]
        for value in values:
            print(f"  {key}: {value}")