import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.domain.normalize import (
    normalize_date_iso,
    normalize_time,
    parse_number,
    reformat_date,
    standardize_currency,
    standardize_unit,
)


@pytest.mark.parametrize("raw", ["kg", "KG", "kgr", "κιλό", "ΚΙΛΑ", "kilos"])
def test_kilogram_spellings_map_to_kg(raw):
    assert standardize_unit(raw) == "kg"


def test_other_units_and_fallbacks():
    assert standardize_unit("GR") == "g"
    assert standardize_unit("λίτρα") == "l"
    assert standardize_unit("ML") == "ml"
    assert standardize_unit("τεμ") == "pieces"
    # unknown input comes back lowercased, not replaced
    assert standardize_unit("Bunch") == "bunch"
    assert standardize_unit("") == "pieces"
    assert standardize_unit(None) == "pieces"


def test_currency_synonyms():
    assert standardize_currency("€") == "EUR"
    assert standardize_currency("eur") == "EUR"
    assert standardize_currency("ευρώ") == "EUR"
    assert standardize_currency("$") == "USD"
    assert standardize_currency("") == "EUR"
    assert standardize_currency("chf") == "CHF"


def test_parse_number_accepts_comma_or_period():
    assert parse_number("1,5") == 1.5
    assert parse_number("2.50") == 2.5
    assert parse_number(" 3,08 ") == 3.08
    assert parse_number("abc") is None
    assert parse_number("") is None
    assert parse_number(None) is None


def test_date_disambiguation():
    assert normalize_date_iso("15", "03", "2024") == "2024-03-15"
    # month-first is only assumed when the second part cannot be a month
    assert normalize_date_iso("03", "15", "24") == "2024-03-15"
    assert normalize_date_iso("05", "06", "2024") == "2024-06-05"
    assert normalize_date_iso("x", "06", "2024") is None


def test_reformat_date():
    assert reformat_date("2024-3-5") == "2024-03-05"
    assert reformat_date("15/03/2024") == "2024-03-15"
    assert reformat_date("15.03.24") == "2024-03-15"
    assert reformat_date("March 5") == "March 5"
    assert reformat_date(None) is None


def test_normalize_time_pads():
    assert normalize_time("9", "05") == "09:05:00"
    assert normalize_time("14", "30", "7") == "14:30:07"
