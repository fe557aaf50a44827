"""Header/footer extraction helpers shared by every receipt strategy.

All helpers are best effort: they scan the lines in order, try their
patterns in order, and return None / 0 / an empty list when nothing matches.
None of them raise on malformed text.
"""

from __future__ import annotations

import re
from typing import List, Optional, Pattern, Sequence, Tuple

from ..domain.models import Discount, LoyaltyInfo, VatEntry
from ..domain.names import contains_greek_characters
from ..domain.normalize import normalize_date_iso, normalize_time, parse_number
from ..logging import get_logger

LOG = get_logger("extractors")

_I = re.IGNORECASE

# ---------------------------------------------------------------------------
# Language
# ---------------------------------------------------------------------------

def detect_language(text: str) -> str:
    """Greek when any Greek-block character is present, English otherwise."""
    return "Greek" if contains_greek_characters(text) else "English"


# ---------------------------------------------------------------------------
# Header fields
# ---------------------------------------------------------------------------

_ISO_DATE_RE = re.compile(r"(\d{4})-(\d{1,2})-(\d{1,2})")
DATE_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?<!\d)(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2,4})"),
    _ISO_DATE_RE,
    re.compile(r"Ημερομηνία:?\s*(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2,4})", _I),
    re.compile(r"Date:?\s*(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2,4})", _I),
)

TIME_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(\d{1,2}):(\d{2})(?::(\d{2}))?"),
    re.compile(r"Ώρα:?\s*(\d{1,2}):(\d{2})(?::(\d{2}))?", _I),
    re.compile(r"Time:?\s*(\d{1,2}):(\d{2})(?::(\d{2}))?", _I),
)

RECEIPT_NUMBER_PATTERNS: Tuple[Pattern[str], ...] = (
    # The number itself must contain a digit, so "Receipt No: 12" never yields "No".
    re.compile(
        r"(?:Receipt|Transaction|Number|Απόδειξη|Αριθμός|Αρ|No)\.?\s*(?:No\.?|#|/)?\s*:?\s*"
        r"([A-Z0-9/\-]*\d[A-Z0-9/\-]*)",
        _I,
    ),
    re.compile(r"#\s*([A-Z0-9/\-]+)", _I),
)

CASHIER_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?:Cashier|Operator|Ταμίας|Πωλητής)[:.]?\s*([A-Za-zΆ-ώ\s]+)", _I),
)


def _first_match(lines: Sequence[str], patterns: Sequence[Pattern[str]]):
    for line in lines:
        for pattern in patterns:
            m = pattern.search(line)
            if m:
                return pattern, m
    return None, None


def extract_date(lines: Sequence[str]) -> Optional[str]:
    """First recognizable date, as YYYY-MM-DD."""
    pattern, m = _first_match(lines, DATE_PATTERNS)
    if m is None:
        return None
    if pattern is _ISO_DATE_RE:
        y, mo, d = m.groups()
        return f"{y}-{int(mo):02d}-{int(d):02d}"
    return normalize_date_iso(*m.groups()) or m.group(0)


def extract_time(lines: Sequence[str]) -> Optional[str]:
    _, m = _first_match(lines, TIME_PATTERNS)
    if m is None:
        return None
    return normalize_time(m.group(1), m.group(2), m.group(3))


def extract_receipt_number(lines: Sequence[str]) -> Optional[str]:
    _, m = _first_match(lines, RECEIPT_NUMBER_PATTERNS)
    return m.group(1).strip() if m else None


def extract_cashier(lines: Sequence[str]) -> Optional[str]:
    _, m = _first_match(lines, CASHIER_PATTERNS)
    if m is None:
        return None
    return m.group(1).strip() or None


# ---------------------------------------------------------------------------
# Footer fields
# ---------------------------------------------------------------------------

TOTAL_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?:TOTAL|ΣΥΝΟΛΟ|ΤΕΛΙΚΟ ΠΟΣΟ)[:.]?\s*(\d+[.,]\d+)", _I),
    re.compile(r"[€$£]\s*(\d+[.,]\d+)"),
    re.compile(r"EUR\s*(\d+[.,]\d+)", _I),
)

PAYMENT_METHOD_RE = re.compile(
    r"(?:VISA|MASTERCARD|MAESTRO|PAYPAL|AMERICAN EXPRESS|AMEX|ΜΕΤΡΗΤΑ|CASH|CARD|ΚΑΡΤΑ)", _I
)
PAYMENT_SYNONYMS = {
    "ΚΑΡΤΑ": "CARD",
    "CARD": "CARD",
    "ΜΕΤΡΗΤΑ": "CASH",
    "CASH": "CASH",
}

CARD_DIGIT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?:XXXX|\*{4})\s*(?:XXXX|\*{4})\s*(?:XXXX|\*{4})\s*(\d{4})", _I),
    re.compile(r"ending (?:with|in)\s*(\d{4})", _I),
    re.compile(r"\.{3}(\d{4})"),
)

# Cyprus VAT categories: 0%, 5%, 9%, 19%. A bare "9%" must not be the tail of "19%".
VAT_RATE_PATTERNS: Tuple[Tuple[float, Pattern[str]], ...] = (
    (0, re.compile(r"(?:(?<![\d.,])0%|Α\s*0%|A\s*0%|Απαλ|ΦΠΑ\s*0%)", _I)),
    (5, re.compile(r"(?:(?<![\d.,])5%|Β\s*5%|B\s*5%|ΦΠΑ\s*5%)", _I)),
    (9, re.compile(r"(?:(?<![\d.,])9%|Γ\s*9%|C\s*9%|ΦΠΑ\s*9%)", _I)),
    (19, re.compile(r"(?:(?<![\d.,])19%|Δ\s*19%|D\s*19%|ΦΠΑ\s*19%)", _I)),
)
_DECIMAL_RE = re.compile(r"\d+[.,]\d+")

LIDL_PLUS_RE = re.compile(r"LIDL\s*PLUS", _I)
MY_ALPHAMEGA_RE = re.compile(r"(?:My\s*Alphamega|ΑΛΦΑΜΕΓΑ)", _I)
STICKER_RE = re.compile(r"(?:entitled to|δικαιούστε)\s*(\d+)\s*(?:stickers|αυτοκόλλητα)", _I)
POINTS_RE = re.compile(r"(?:points|πόντοι|πόντους)[:.]?\s*(\d+)", _I)
SAVINGS_RE = re.compile(r"(?:saved|εξοικονομήθηκαν)[:.]?\s*(\d+[.,]\d+)", _I)

DISCOUNT_PATTERNS: Tuple[Pattern[str], ...] = (
    re.compile(r"(?:DISCOUNT|ΕΚΠΤΩΣΗ|LOYALTY|ΠΙΣΤΟΤΗΤΑ)[:.]?\s*(\d+[.,]\d+)", _I),
    re.compile(r"(?:DISCOUNT|ΕΚΠΤΩΣΗ|LOYALTY|ΠΙΣΤΟΤΗΤΑ)[^-]*(-\d+[.,]\d+)", _I),
)


def extract_total(lines: Sequence[str]) -> float:
    """Labelled total, else a currency-prefixed amount; 0 when nothing parses."""
    for line in lines:
        for pattern in TOTAL_PATTERNS:
            m = pattern.search(line)
            if not m:
                continue
            value = parse_number(m.group(1))
            if value is not None:
                return value
    return 0.0


def extract_payment_method(lines: Sequence[str]) -> Optional[str]:
    for line in lines:
        m = PAYMENT_METHOD_RE.search(line)
        if m:
            method = m.group(0).upper()
            return PAYMENT_SYNONYMS.get(method, method)
    return None


def extract_card_last_digits(lines: Sequence[str]) -> Optional[str]:
    _, m = _first_match(lines, CARD_DIGIT_PATTERNS)
    return m.group(1) if m else None


def extract_vat(lines: Sequence[str]) -> List[VatEntry]:
    """VAT rows by rate, reading the decimals on each matching line by position.

    1 number: VAT amount. 2 numbers: net, VAT (gross = sum).
    3+ numbers: net, VAT, gross.
    """
    breakdown: List[VatEntry] = []
    for line in lines:
        for rate, pattern in VAT_RATE_PATTERNS:
            if not pattern.search(line):
                continue
            amounts = [parse_number(tok) for tok in _DECIMAL_RE.findall(line)]
            amounts = [a for a in amounts if a is not None]
            if not amounts:
                continue
            if len(amounts) >= 3:
                entry = VatEntry(rate, amounts[1], net_amount=amounts[0], gross_amount=amounts[2])
            elif len(amounts) == 2:
                entry = VatEntry(
                    rate, amounts[1], net_amount=amounts[0], gross_amount=round(amounts[0] + amounts[1], 2)
                )
            else:
                entry = VatEntry(rate, amounts[0])
            breakdown.append(entry)
    return breakdown


def extract_loyalty_info(lines: Sequence[str]) -> Optional[LoyaltyInfo]:
    program_name: Optional[str] = None
    points: Optional[int] = None
    sticker_count: Optional[int] = None
    message: Optional[str] = None
    found = False

    for line in lines:
        if LIDL_PLUS_RE.search(line):
            program_name, found = "Lidl Plus", True
        elif MY_ALPHAMEGA_RE.search(line):
            program_name, found = "My Alphamega", True

        m = STICKER_RE.search(line)
        if m:
            sticker_count, message, found = int(m.group(1)), line.strip(), True

        m = POINTS_RE.search(line)
        if m:
            points, found = int(m.group(1)), True

        if SAVINGS_RE.search(line):
            found = True
            if not message:
                message = line.strip()

    if not found:
        return None
    return LoyaltyInfo(program_name=program_name, points=points, sticker_count=sticker_count, message=message)


def extract_discounts(lines: Sequence[str]) -> List[Discount]:
    discounts: List[Discount] = []
    for line in lines:
        for pattern in DISCOUNT_PATTERNS:
            m = pattern.search(line)
            if not m:
                continue
            amount = parse_number(m.group(1))
            if amount is None:
                continue
            discounts.append(Discount(description=line.strip(), amount=abs(amount)))
    return discounts
