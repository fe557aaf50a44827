import os
import sys

import pytest

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.parsing.weight import (
    WeightPricing,
    extract_weight_based_items,
    is_potential_item_name_line,
    is_weight_based_line,
    parse_weight_based_item,
    parse_weight_based_line,
)


def test_comma_and_period_decimals_parse_identically():
    comma = parse_weight_based_line("1,5 kg x 2,00 €/kg = 3,00 €")
    period = parse_weight_based_line("1.5 kg x 2.00 €/kg = 3.00 €")
    assert comma == period
    assert comma == WeightPricing(quantity=1.5, unit="kg", price_per_unit=2.0, total_price=3.0, currency="EUR")


def test_at_price_derives_total():
    pricing = parse_weight_based_line("0,500 kg @ 3,00 €/kg")
    assert pricing.quantity == 0.5
    assert pricing.price_per_unit == 3.0
    assert pricing.total_price == 1.5


def test_quantity_then_price_per_unit_rounds_total():
    pricing = parse_weight_based_line("1,250 kg 2,40 €/kg")
    assert pricing.total_price == 3.0
    assert pricing.unit == "kg"


def test_greek_units_and_multiplication_sign():
    pricing = parse_weight_based_line("0,750 κιλά Χ 4,00 €/κιλό = 3,00 €")
    assert pricing.unit == "kg"
    assert pricing.quantity == 0.75
    assert pricing.total_price == 3.0


def test_bare_price_per_unit_is_detected_but_not_parsed():
    line = "2,40 €/kg"
    assert is_weight_based_line(line)
    assert parse_weight_based_line(line) is None


@pytest.mark.parametrize("line", ["MILK 1,20", "", "TOTAL 3,08 €", "2 x 1,50"])
def test_regular_lines_are_not_weight_based(line):
    assert not is_weight_based_line(line)
    assert parse_weight_based_line(line) is None


def test_name_line_heuristic():
    assert is_potential_item_name_line("BANANAS")
    assert is_potential_item_name_line("12345 TOMATOES")
    assert not is_potential_item_name_line("TOTAL 4,68")
    assert not is_potential_item_name_line("ab")
    assert not is_potential_item_name_line("2,40 €/kg")
    assert not is_potential_item_name_line("A" * 51)


def test_item_takes_name_from_previous_line():
    item = parse_weight_based_item(["BANANAS", "1,230 kg X 2,50 €/kg = 3,08 €"])
    assert item.name == "BANANAS"
    assert item.quantity == 1.23
    assert item.price_per_unit == 2.5
    assert item.total_price == 3.08
    assert item.line_numbers == (0, 1)


def test_item_name_from_same_line_or_next_line():
    same = parse_weight_based_item(["Bananas 1,230 kg X 2,50 €/kg = 3,08 €"])
    assert same.name == "Bananas"
    assert same.line_numbers == (0,)

    after = parse_weight_based_item(["1,230 kg X 2,50 €/kg = 3,08 €", "BANANAS"])
    assert after.name == "BANANAS"
    assert after.line_numbers == (0, 1)


def test_item_without_any_name_gets_placeholder():
    item = parse_weight_based_item(["1,230 kg X 2,50 €/kg = 3,08 €"])
    assert item.name == "Weighted Item"
    assert parse_weight_based_item([]) is None
    assert parse_weight_based_item(["MILK 1,20"]) is None


def test_extract_items_in_order_with_global_line_numbers():
    lines = [
        "BANANAS",
        "1,230 kg X 2,50 €/kg = 3,08 €",
        "APPLES",
        "0,800 kg X 2,00 €/kg = 1,60 €",
        "TOTAL 4,68",
    ]
    consumed = set()
    items = extract_weight_based_items(lines, consumed)
    assert [i.name for i in items] == ["BANANAS", "APPLES"]
    assert [i.line_numbers for i in items] == [(0, 1), (2, 3)]
    assert [i.total_price for i in items] == [3.08, 1.6]
    assert consumed == {0, 1, 2, 3}


def test_adjacent_pricing_lines_never_share_a_line():
    lines = [
        "BANANAS",
        "1,230 kg X 2,50 €/kg = 3,08 €",
        "0,800 kg X 2,00 €/kg = 1,60 €",
    ]
    items = extract_weight_based_items(lines)
    assert len(items) == 2
    claimed = [n for item in items for n in item.line_numbers]
    assert len(claimed) == len(set(claimed))
    assert items[1].name == "Weighted Item"


def test_extract_skips_lines_already_consumed():
    lines = ["BANANAS", "1,230 kg X 2,50 €/kg = 3,08 €"]
    consumed = {1}
    assert extract_weight_based_items(lines, consumed) == []
    assert extract_weight_based_items([]) == []
