import os
import sys

sys.path.insert(0, os.path.abspath("src"))

from pantry_receipts.parsing.strategies import AlphamegaParser, GenericReceiptParser, LidlParser

LIDL_RECEIPT = "\n".join(
    [
        "LIDL NICOSIA",
        "Date: 15/03/2024",
        "1,230 kg X 2,50 €/kg = 3,08 €",
        "TOTAL: 3.08",
    ]
)


class TestLidlParser:
    def test_weighted_receipt_end_to_end(self):
        receipt = LidlParser().parse(LIDL_RECEIPT)

        assert "LIDL" in receipt.header.store
        assert receipt.header.date == "2024-03-15"
        assert len(receipt.items) == 1
        item = receipt.items[0]
        assert item.is_weight_based is True
        assert abs(item.quantity - 1.23) < 1e-9
        assert item.price_per_unit == 2.5
        assert abs(item.price - 3.08) < 1e-9
        assert item.unit == "kg"
        assert item.line_numbers == (2,)
        assert receipt.footer.total_amount == 3.08
        assert receipt.language == "English"

    def test_parsing_is_idempotent(self):
        parser = LidlParser()
        assert parser.parse(LIDL_RECEIPT) == parser.parse(LIDL_RECEIPT)

    def test_name_and_price_line_pairs_and_discounts(self):
        text = "\n".join(
            [
                "LIDL",
                "MILK 1L",
                "2 x 1,20 EUR",
                "έκπτωση Lidl Plus",
                "-0,50",
                "TOTAL 1,90",
            ]
        )
        receipt = LidlParser().parse(text)

        assert receipt.header.store == "LIDL"
        milk, discount = receipt.items
        assert milk.original_name == "MILK 1L"
        assert milk.quantity == 2
        assert milk.price == 1.2
        assert milk.category == "Dairy"
        assert milk.line_numbers == (1, 2)
        assert discount.is_discount is True
        assert discount.price == -0.5
        assert discount.line_numbers == (3, 4)

    def test_weighted_lines_are_not_reused_as_pairs(self):
        text = "\n".join(["LIDL", "BANANAS", "1,000 kg x 1,50 €/kg = 1,50 €", "BREAD", "1 x 0,90"])
        receipt = LidlParser().parse(text)
        names = [i.original_name for i in receipt.items]
        assert names == ["BANANAS", "BREAD"]
        lines = [n for i in receipt.items for n in i.line_numbers]
        assert len(lines) == len(set(lines))


class TestAlphamegaParser:
    TEXT = "\n".join(
        [
            "ALPHAMEGA HYPERMARKET",
            "Nicosia, Cyprus",
            "BANANAS  1,20",
            "YOGURT  2 x 0,90",
            "OFFER DISCOUNT  -0,30",
            "ΣΥΝΟΛΟ  2,70",
        ]
    )

    def test_single_line_items_with_discount_annotation(self):
        receipt = AlphamegaParser().parse(self.TEXT)

        assert receipt.header.store == "ALPHAMEGA HYPERMARKET"
        assert receipt.header.address == "Nicosia, Cyprus"
        bananas, yogurt, offer = receipt.items
        assert bananas.normalized_name == "Bananas"
        assert bananas.price == 1.2
        assert bananas.quantity == 1
        assert yogurt.quantity == 2
        assert yogurt.price == 0.9
        assert offer.is_discount is True
        assert offer.price == -0.3
        assert receipt.footer.total_amount == 2.7
        assert receipt.language == "Greek"

    def test_price_digits_are_not_split_into_quantity(self):
        receipt = AlphamegaParser().parse("CHEESE  12,50")
        assert receipt.items[0].quantity == 1
        assert receipt.items[0].price == 12.5


class TestGenericParser:
    def test_empty_text_degrades_gracefully(self):
        receipt = GenericReceiptParser().parse("")
        assert receipt.items == ()
        assert receipt.footer.total_amount == 0
        assert receipt.header.store == "Unknown Store"
        assert receipt.footer.vat_breakdown == ()
        assert receipt.footer.loyalty_info is None

    def test_quantity_times_price_then_trailing_price(self):
        text = "\n".join(
            [
                "12/05/2024",
                "CORNER SHOP",
                "RECEIPT #4411",
                "Bread  2 x 1,10",
                "Water  0,60",
                "TOTAL  2,80",
            ]
        )
        receipt = GenericReceiptParser().parse(text)

        assert receipt.header.store == "CORNER SHOP"
        assert receipt.header.receipt_number == "4411"
        bread, water = receipt.items
        assert bread.quantity == 2
        assert bread.price == 2.2
        assert bread.category == "Bakery"
        assert water.price == 0.6
        assert water.line_numbers == (4,)
        assert receipt.footer.total_amount == 2.8

    def test_mixed_case_total_line_is_not_an_item(self):
        text = "\n".join(["SHOP", "Milk  1,50", "Subtotal  1,50", "Total  1,50"])
        receipt = GenericReceiptParser().parse(text)

        assert [item.name for item in receipt.items] == ["Milk"]
        assert receipt.footer.total_amount == 1.5

    def test_weight_lines_are_consumed_before_item_patterns(self):
        text = "\n".join(["SHOP", "TOMATOES", "1,000 kg x 2,00 €/kg = 2,00 €"])
        receipt = GenericReceiptParser().parse(text)
        assert len(receipt.items) == 1
        item = receipt.items[0]
        assert item.is_weight_based
        assert item.normalized_name == "Tomatoes"
        assert item.line_numbers == (1, 2)

    def test_as_dict_uses_wire_keys(self):
        data = LidlParser().parse(LIDL_RECEIPT).as_dict()
        assert data["header"]["date"] == "2024-03-15"
        assert data["footer"]["totalAmount"] == 3.08
        item = data["items"][0]
        assert item["isWeightBased"] is True
        assert item["lineNumbers"] == [2]
        assert item["pricePerUnit"] == 2.5
