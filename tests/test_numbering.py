import re
from datetime import datetime, timedelta, timezone

import pytest

from papeleria.numbering import (
    generate_pin,
    next_numero_lista,
    parse_time_param,
    print_query_params,
)


class FakeCollection:
    def __init__(self, docs):
        self.docs = docs

    def find_one(self, filter, sort=None):
        pattern = re.compile(filter["numeroLista"]["$regex"])
        matches = [
            doc
            for doc in self.docs
            if isinstance(doc.get("numeroLista"), str) and pattern.search(doc["numeroLista"])
        ]
        key, direction = sort[0]
        matches.sort(key=lambda doc: doc[key], reverse=direction < 0)
        return matches[0] if matches else None


def test_first_number_when_empty():
    assert next_numero_lista(FakeCollection([])) == "LTS0001"


def test_next_number_follows_highest():
    docs = [{"numeroLista": "LTS0001"}, {"numeroLista": "LTS0007"}, {"numeroLista": "OTRO9999"}]
    assert next_numero_lista(FakeCollection(docs)) == "LTS0008"


def test_malformed_numbers_are_ignored():
    docs = [{"numeroLista": "LTS12345"}, {"numeroLista": "LTS0002"}]
    assert next_numero_lista(FakeCollection(docs)) == "LTS0003"


def test_database_errors_propagate():
    class Broken:
        def find_one(self, filter, sort=None):
            raise RuntimeError("down")

    with pytest.raises(RuntimeError):
        next_numero_lista(Broken())


def test_pin_is_four_digits_in_range():
    for _ in range(200):
        pin = generate_pin()
        assert len(pin) == 4
        assert 1000 <= int(pin) <= 9999


def test_empty_date_is_none():
    assert parse_time_param("") is None


def test_plain_date_is_utc_midnight():
    assert parse_time_param("2024-03-15") == datetime(2024, 3, 15, tzinfo=timezone.utc)


def test_rfc3339_with_offset():
    parsed = parse_time_param("2024-03-15T10:30:00-06:00")
    assert parsed == datetime(2024, 3, 15, 10, 30, tzinfo=timezone(timedelta(hours=-6)))


def test_rfc3339_with_fraction_and_zulu():
    parsed = parse_time_param("2024-03-15T10:30:00.123Z")
    assert parsed.microsecond == 123000
    assert parsed.utcoffset() == timedelta(0)


@pytest.mark.parametrize("text", ["15/03/2024", "2024-3-15", "2024-02-30", "mañana"])
def test_bad_dates_raise(text):
    with pytest.raises(ValueError, match="YYYY-MM-DD o RFC3339"):
        parse_time_param(text)


def test_print_params_empty(capsys):
    print_query_params({})
    assert capsys.readouterr().out == "No se recibieron parámetros en la query.\n"


def test_print_params_lists_each_value(capsys):
    print_query_params({"grado": ["1A", "2B"], "pin": ["1234"]})
    out = capsys.readouterr().out.splitlines()
    assert out == ["Parámetros recibidos:", "  grado: 1A", "  grado: 2B", "  pin: 1234"]