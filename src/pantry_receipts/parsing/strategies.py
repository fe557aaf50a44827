from __future__ import annotations

import re
from abc import ABC, abstractmethod
from typing import List, Optional, Pattern, Sequence, Set, Tuple

from ..domain.models import ParsedItem, ParsedReceipt, ReceiptFooter, ReceiptHeader
from ..domain.names import normalize_item_name
from ..domain.normalize import DEFAULT_UNIT, parse_number
from ..logging import get_logger
from . import extractors as ex
from .weight import extract_weight_based_items, is_weight_based_line

LOG = get_logger("strategies")

_I = re.IGNORECASE

HEADER_SCAN_LINES = 10
ADDRESS_RE = re.compile(r"(?:[A-Za-z0-9\s]+),\s*(?:[A-Za-z\s]+)", _I)
TOTAL_LINE_RE = re.compile(r"ΣΥΝΟΛΟ|TOTAL", _I)
GENERIC_DISCOUNT_RE = re.compile(r"(?:ΕΚΠΤΩΣΗ|DISCOUNT|OFFER)", _I)


class ReceiptParserStrategy(ABC):
    """Turns raw receipt text into a ParsedReceipt.

    Header, items and footer are extracted independently from the same line
    list. Subclasses supply the item grammar and the store-name recognition;
    everything else comes from :mod:`.extractors`.
    """

    store_name: str = ""

    def parse(self, raw_text: str) -> ParsedReceipt:
        lines = [ln.rstrip("\r") for ln in (raw_text or "").split("\n")]
        header = self.parse_header(lines)
        items = self.parse_items(lines)
        footer = self.parse_footer(lines)
        language = self.detect_language(raw_text)
        LOG.info(
            f"{self.store_name} parser: store={header.store!r} items={len(items)} "
            f"total={footer.total_amount:.2f} language={language}"
        )
        return ParsedReceipt(
            header=header,
            items=tuple(items),
            footer=footer,
            raw_text=raw_text,
            language=language,
        )

    @abstractmethod
    def parse_items(self, lines: Sequence[str]) -> List[ParsedItem]:
        ...

    @abstractmethod
    def identify_store(self, lines: Sequence[str]) -> Tuple[str, Optional[str]]:
        """Return (store name, address) from the top of the receipt."""
        ...

    def parse_header(self, lines: Sequence[str]) -> ReceiptHeader:
        store, address = self.identify_store(lines)
        return ReceiptHeader(
            store=store,
            address=address or None,
            date=ex.extract_date(lines),
            time=ex.extract_time(lines),
            receipt_number=ex.extract_receipt_number(lines),
            cashier=ex.extract_cashier(lines),
        )

    def parse_footer(self, lines: Sequence[str]) -> ReceiptFooter:
        return ReceiptFooter(
            total_amount=ex.extract_total(lines),
            payment_method=ex.extract_payment_method(lines),
            card_last_digits=ex.extract_card_last_digits(lines),
            vat_breakdown=tuple(ex.extract_vat(lines)),
            discounts=tuple(ex.extract_discounts(lines)),
            loyalty_info=ex.extract_loyalty_info(lines),
        )

    def detect_language(self, text: str) -> str:
        return ex.detect_language(text)

    # ---- helpers for subclasses -------------------------------------------

    @property
    def _rules_key(self) -> Optional[str]:
        return self.store_name

    def _item(
        self,
        name: str,
        *,
        quantity: float,
        price: Optional[float],
        line_numbers: Tuple[int, ...],
        unit: str = DEFAULT_UNIT,
        price_per_unit: Optional[float] = None,
        is_weight_based: bool = False,
        is_discount: bool = False,
    ) -> ParsedItem:
        norm = normalize_item_name(name, self._rules_key)
        return ParsedItem(
            name=name,
            normalized_name=norm.normalized_name,
            original_name=name,
            quantity=quantity,
            unit=unit,
            price=price,
            price_per_unit=price_per_unit,
            is_weight_based=is_weight_based,
            is_discount=is_discount,
            category=norm.category,
            description=norm.description,
            line_numbers=line_numbers,
        )

    def _weight_based(self, lines: Sequence[str]) -> Tuple[List[ParsedItem], Set[int]]:
        consumed: Set[int] = set()
        items = [
            self._item(
                wb.name,
                quantity=wb.quantity,
                price=wb.total_price,
                line_numbers=wb.line_numbers,
                unit=wb.unit,
                price_per_unit=wb.price_per_unit,
                is_weight_based=True,
            )
            for wb in extract_weight_based_items(lines, consumed)
        ]
        return items, consumed

    @staticmethod
    def _address(lines: Sequence[str], *, first: bool) -> Optional[str]:
        address = None
        for line in lines[:HEADER_SCAN_LINES]:
            if is_weight_based_line(line):
                continue
            m = ADDRESS_RE.search(line.strip())
            if m:
                address = m.group(0).strip()
                if first:
                    break
        return address


class LidlParser(ReceiptParserStrategy):
    """Lidl prints the product name on one line and ``[qty] x price`` below it."""

    store_name = "LIDL"

    DISCOUNT_PATTERNS: Tuple[Pattern[str], ...] = (
        re.compile(r"έκπτωση\s*Lidl\s*Plus", _I),
        re.compile(r"Lidl\s*Plus\s*έκπτωση", _I),
        re.compile(r"έκπτωση", _I),
        re.compile(r"discount", _I),
    )
    AMOUNT_RE = re.compile(r"-?(\d+[.,]\d+)")
    PRICE_LINE_RE = re.compile(r"(\d+)?\s*[xX]\s*(\d+[.,]\d+)\s*(?:EUR|€)?$")
    STORE_RE = re.compile(r"LIDL\s+([A-Za-z\s]+)", _I)

    def parse_items(self, lines: Sequence[str]) -> List[ParsedItem]:
        items, consumed = self._weight_based(lines)

        i = 0
        while i < len(lines):
            line = lines[i].strip()
            if not line or i in consumed:
                i += 1
                continue

            if any(p.search(line) for p in self.DISCOUNT_PATTERNS):
                amount = 0.0
                used: Tuple[int, ...] = (i,)
                m = self.AMOUNT_RE.search(line)
                if m:
                    amount = parse_number(m.group(1)) or 0.0
                elif i + 1 < len(lines) and i + 1 not in consumed:
                    m = self.AMOUNT_RE.search(lines[i + 1])
                    if m:
                        amount = parse_number(m.group(1)) or 0.0
                        used = (i, i + 1)
                items.append(
                    ParsedItem(
                        name="Discount",
                        normalized_name="Discount",
                        original_name=line,
                        quantity=1,
                        unit=DEFAULT_UNIT,
                        price=-abs(amount),
                        is_discount=True,
                        line_numbers=used,
                    )
                )
                i = used[-1] + 1
                continue

            nxt = i + 1
            if (
                not re.match(r"^\s*\d+", line)
                and not TOTAL_LINE_RE.search(line)
                and nxt < len(lines)
                and nxt not in consumed
            ):
                m = self.PRICE_LINE_RE.search(lines[nxt].strip())
                price = parse_number(m.group(2)) if m else None
                if m and price is not None:
                    quantity = int(m.group(1)) if m.group(1) else 1
                    items.append(self._item(line, quantity=quantity, price=price, line_numbers=(i, nxt)))
                    i = nxt + 1
                    continue
            i += 1
        return items

    def identify_store(self, lines: Sequence[str]) -> Tuple[str, Optional[str]]:
        store = self.store_name
        for line in lines[:HEADER_SCAN_LINES]:
            if ex.LIDL_PLUS_RE.search(line):
                continue
            m = self.STORE_RE.search(line.strip())
            if m:
                store = f"LIDL {m.group(1).strip()}".strip()
                break
        return store, self._address(lines, first=False)


class AlphamegaParser(ReceiptParserStrategy):
    """Alphamega prints name, optional ``qty x`` and price on a single line.

    Offer/discount lines go through the same grammar and are flagged.
    """

    store_name = "ALPHAMEGA"

    ITEM_RE = re.compile(r"(.+?)(?:\s{2,}|\t)(?:(\d+)\s*[xX]\s*)?(-?\d+[.,]\d+)$")
    STORE_RE = re.compile(r"ALPHAMEGA|ΑΛΦΑΜΕΓΑ", _I)

    def parse_items(self, lines: Sequence[str]) -> List[ParsedItem]:
        items, consumed = self._weight_based(lines)
        for i, raw in enumerate(lines):
            line = raw.strip()
            if not line or i in consumed or TOTAL_LINE_RE.search(line):
                continue
            m = self.ITEM_RE.search(line)
            if not m:
                continue
            price = parse_number(m.group(3))
            if price is None:
                continue
            is_discount = bool(GENERIC_DISCOUNT_RE.search(line))
            if is_discount:
                price = -abs(price)
            quantity = int(m.group(2)) if m.group(2) else 1
            items.append(
                self._item(
                    m.group(1).strip(), quantity=quantity, price=price, line_numbers=(i,), is_discount=is_discount
                )
            )
        return items

    def identify_store(self, lines: Sequence[str]) -> Tuple[str, Optional[str]]:
        store = self.store_name
        for line in lines[:HEADER_SCAN_LINES]:
            if self.STORE_RE.search(line):
                store = line.strip()
        return store, self._address(lines, first=False)


class GenericReceiptParser(ReceiptParserStrategy):
    """Fallback for stores without a dedicated grammar."""

    store_name = "GENERIC"

    QTY_PRICE_RE = re.compile(r"(.+?)(?:\s{2,}|\t)(\d+)\s*[xX]\s*(\d+[.,]\d+)$")
    ITEM_RE = re.compile(r"(.+?)(?:\s{2,}|\t)(-?\d+[.,]\d+)$")
    STORE_SKIP_RE = re.compile(r"^[0-9/:\-]")
    STORE_NAME_LINES = 5

    @property
    def _rules_key(self) -> Optional[str]:
        return None

    def parse_items(self, lines: Sequence[str]) -> List[ParsedItem]:
        items, consumed = self._weight_based(lines)
        for i, raw in enumerate(lines):
            line = raw.strip()
            if not line or i in consumed or TOTAL_LINE_RE.search(line):
                continue
            is_discount = bool(GENERIC_DISCOUNT_RE.search(line))

            m = self.QTY_PRICE_RE.search(line)
            if m:
                unit_price = parse_number(m.group(3))
                if unit_price is not None:
                    quantity = int(m.group(2))
                    price = round(unit_price * quantity, 2)
                    items.append(
                        self._item(
                            m.group(1).strip(),
                            quantity=quantity,
                            price=-abs(price) if is_discount else price,
                            line_numbers=(i,),
                            is_discount=is_discount,
                        )
                    )
                    continue

            m = self.ITEM_RE.search(line)
            if m:
                price = parse_number(m.group(2))
                if price is None:
                    continue
                items.append(
                    self._item(
                        m.group(1).strip(),
                        quantity=1,
                        price=-abs(price) if is_discount else price,
                        line_numbers=(i,),
                        is_discount=is_discount,
                    )
                )
        return items

    def identify_store(self, lines: Sequence[str]) -> Tuple[str, Optional[str]]:
        store = "Unknown Store"
        for line in lines[: self.STORE_NAME_LINES]:
            candidate = line.strip()
            if (
                candidate
                and not self.STORE_SKIP_RE.match(candidate)
                and "RECEIPT" not in candidate
                and "ΑΠΟΔΕΙΞΗ" not in candidate
            ):
                store = candidate
                break
        return store, self._address(lines, first=True)
