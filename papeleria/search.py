"""Atlas Search pipelines for looking up orders."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from typing import Any

from .numbering import parse_time_param

SEARCH_INDEX = "pedidos"
_AUTOCOMPLETE_KEYS = frozenset({"nombreTutor", "nombreAlumno"})
_TEXT_KEYS = frozenset({"numeroLista", "statusLista", "statusForrado"})
_PHRASE_KEYS = frozenset({"grado"})
_DATE_RANGES = (
    ("fechaCreacionInicial", "fechaCreacionFinal", "fechaCreacion"),
    ("fechaEntregaInicial", "fechaEntregaFinal", "fechaEntregaEsperada"),
)


def build_string_filter(key: str, value: str) -> dict[str, Any]:
    """Full-text match of value on the field key."""
    return {"text": {"query": value, "path": key}}


def build_autocomplete_filter(key: str, value: str) -> dict[str, Any]:
    """Prefix (autocomplete) match of value on the field key."""
    return {"autocomplete": {"query": value, "path": key}}


def build_phrase_filter(key: str, value: str) -> dict[str, Any]:
    """Exact phrase match of value on the field key."""
    return {"phrase": {"query": value, "path": key}}


def _parse_or_none(value: str):
    try:
        return parse_time_param(value)
    except ValueError:
        return None


def build_date_range_filter(start: str, end: str, field: str) -> dict[str, Any] | None:
    """Range filter on field between two dates; unparsable or empty bounds are ignored."""
    lower = _parse_or_none(start)
    upper = _parse_or_none(end)
    query: dict[str, Any] = {"path": field}
    if lower is not None and upper is not None:
        if lower > upper:
            lower, upper = upper, lower
        query["gte"] = lower
        query["lte"] = upper
    elif lower is not None:
        query["gte"] = lower
    elif upper is not None:
        query["lte"] = upper
    else:
        return None
    return {"range": query}


def _first_values(params: Mapping) -> Iterator[tuple[str, str]]:
    if hasattr(params, "lists"):
        for key, values in params.lists():
            yield key, values[0] if values else ""
        return
    for key, value in params.items():
        if isinstance(value, (list, tuple)):
            value = value[0] if value else ""
        yield key, value


def build_search_pipeline(params: Mapping) -> list[dict[str, Any]]:
    """Build the aggregation pipeline for the given query parameters."""
    first = dict(_first_values(params))
    if not first:
        return []

    must = []
    for key, value in first.items():
        if not value:
            continue
        if key in _AUTOCOMPLETE_KEYS:
            must.append(build_autocomplete_filter(key, value))
        elif key in _TEXT_KEYS:
            must.append(build_string_filter(key, value))
        elif key in _PHRASE_KEYS:
            must.append(build_phrase_filter(key, value))

    ranges = []
    for start_key, end_key, field in _DATE_RANGES:
        found = build_date_range_filter(first.get(start_key, ""), first.get(end_key, ""), field)
        if found is not None:
            ranges.append(found)

    compound: dict[str, Any] = {}
    if must:
        compound["must"] = must
    if ranges or not must:
        compound["filter"] = ranges

    return [
        {"$search": {"index": SEARCH_INDEX, "compound": compound}},
        {"$sort": {"fechaCreacion": 1}},
    ]