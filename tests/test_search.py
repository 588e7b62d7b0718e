from datetime import datetime, timezone

from papeleria.search import (
    build_autocomplete_filter,
    build_date_range_filter,
    build_phrase_filter,
    build_search_pipeline,
    build_string_filter,
)


def test_string_filter_shape():
    assert build_string_filter("numeroLista", "LTS0001") == {
        "text": {"query": "LTS0001", "path": "numeroLista"}
    }


def test_autocomplete_filter_shape():
    assert build_autocomplete_filter("nombreTutor", "Ma") == {
        "autocomplete": {"query": "Ma", "path": "nombreTutor"}
    }


def test_phrase_filter_shape():
    assert build_phrase_filter("grado", "3A") == {"phrase": {"query": "3A", "path": "grado"}}


def test_date_range_swaps_reversed_bounds():
    result = build_date_range_filter("2024-06-10", "2024-06-01", "fechaCreacion")
    query = result["range"]
    assert query["path"] == "fechaCreacion"
    assert query["gte"] == datetime(2024, 6, 1, tzinfo=timezone.utc)
    assert query["lte"] == datetime(2024, 6, 10, tzinfo=timezone.utc)
    assert query["gte"] <= query["lte"]


def test_date_range_single_bounds():
    only_start = build_date_range_filter("2024-06-01", "", "fechaCreacion")
    assert set(only_start["range"]) == {"path", "gte"}
    only_end = build_date_range_filter("", "2024-06-01", "fechaEntregaEsperada")
    assert set(only_end["range"]) == {"path", "lte"}


def test_date_range_empty_or_invalid_gives_none():
    assert build_date_range_filter("", "", "fechaCreacion") is None
    assert build_date_range_filter("mañana", "ayer", "fechaCreacion") is None


def test_no_parameters_gives_empty_pipeline():
    assert build_search_pipeline({}) == []


def test_pipeline_with_filters_and_ranges():
    pipeline = build_search_pipeline(
        {
            "nombreTutor": ["Mar"],
            "grado": ["2B"],
            "fechaCreacionInicial": ["2024-06-01"],
        }
    )
    assert len(pipeline) == 2
    search = pipeline[0]["$search"]
    assert search["index"] == "pedidos"
    compound = search["compound"]
    assert build_autocomplete_filter("nombreTutor", "Mar") in compound["must"]
    assert build_phrase_filter("grado", "2B") in compound["must"]
    assert compound["filter"] == [
        build_date_range_filter("2024-06-01", "", "fechaCreacion")
    ]
    assert pipeline[1] == {"$sort": {"fechaCreacion": 1}}


def test_pipeline_with_only_text_filters_has_no_filter_clause():
    pipeline = build_search_pipeline({"numeroLista": "LTS0007", "statusLista": ""})
    compound = pipeline[0]["$search"]["compound"]
    assert compound == {"must": [build_string_filter("numeroLista", "LTS0007")]}


def test_pipeline_with_only_dates_uses_filter_clause():
    pipeline = build_search_pipeline({"fechaEntregaFinal": "2024-07-01"})
    compound = pipeline[0]["$search"]["compound"]
    assert "must" not in compound
    assert compound["filter"] == [
        build_date_range_filter("", "2024-07-01", "fechaEntregaEsperada")
    ]


def test_pipeline_uses_first_value_and_ignores_unknown_keys():
    pipeline = build_search_pipeline({"statusForrado": ["Por forrar", "No aplica"], "otro": ["x"]})
    compound = pipeline[0]["$search"]["compound"]
    assert compound == {"must": [build_string_filter("statusForrado", "Por forrar")]}


def test_pipeline_with_unknown_key_only_has_empty_filter():
    pipeline = build_search_pipeline({"otro": "x"})
    assert pipeline[0]["$search"]["compound"] == {"filter": []}