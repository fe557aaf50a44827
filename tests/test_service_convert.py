import os
import sys
from datetime import date

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.domain.models import ExtractedItem
from pantry_receipts.orchestrator.convert import convert_to_food_items
from pantry_receipts.orchestrator.service import guess_store_name, parse_receipt_text
from pantry_receipts.parsing.factory import ReceiptParserFactory
from pantry_receipts.parsing.strategies import LidlParser

TODAY = date(2024, 3, 15)


def test_guess_store_name_from_header_lines():
    assert guess_store_name("LIDL Cyprus\nDate: 15/03/2024") == "LIDL"
    assert guess_store_name("ΑΛΦΑΜΕΓΑ ΛΕΥΚΩΣΙΑ\nΣΥΝΟΛΟ 2,70") == "ALPHAMEGA"
    assert guess_store_name("Corner shop\nTOTAL 1,00") is None
    assert guess_store_name("") is None


def test_parse_receipt_text_picks_strategy_from_text():
    text = "LIDL NICOSIA\nDate: 15/03/2024\n1,230 kg X 2,50 €/kg = 3,08 €\nTOTAL: 3.08"
    receipt = parse_receipt_text(text)
    assert receipt.header.store == "LIDL NICOSIA"
    assert receipt.items[0].is_weight_based
    assert receipt.footer.total_amount == 3.08


def test_store_hint_overrides_guess():
    factory = ReceiptParserFactory()
    lidl = LidlParser()
    factory.register_parser("LIDL", lidl)
    receipt = parse_receipt_text("MILK\n1 x 1,00", store_hint="lidl", factory=factory)
    assert receipt.items[0].original_name == "MILK"
    assert receipt.items[0].price == 1.0


def test_convert_parsed_items_skips_discounts():
    text = "LIDL\nBREAD\n1 x 0,90\nDiscount -0,20"
    receipt = parse_receipt_text(text)
    records = convert_to_food_items(receipt.items, location_id=3, user_id=7, today=TODAY)

    assert len(records) == 1
    bread = records[0]
    assert bread["name"] == "BREAD"
    assert bread["quantity"] == 1
    assert bread["unit"] == "pieces"
    assert bread["price"] == 0.9
    assert bread["locationId"] == 3
    assert bread["userId"] == 7
    assert bread["purchased"] == "2024-03-15"
    assert bread["expiryDate"] == "2024-03-20"
    assert bread["category"] == "Bakery"
    assert bread["isWeightBased"] is False
    assert "pricePerUnit" not in bread


def test_convert_extracted_items_keeps_model_expiry():
    items = [
        ExtractedItem(name="Bananas", quantity=1.2, unit="kg", price=2.4, expiry_date="2024-03-22",
                      price_per_unit=2.0, is_weight_based=True),
        ExtractedItem(name="Mystery", quantity=1, unit="pieces", price=None, expiry_date="2024-03-22"),
    ]
    bananas, mystery = convert_to_food_items(items, 1, 2, today=TODAY)
    assert bananas["expiryDate"] == "2024-03-22"
    assert bananas["pricePerUnit"] == 2.0
    assert bananas["category"] == "fruit"
    assert "price" not in mystery
    assert mystery["category"] == "default"
