"""Weight-based pricing lines.

Goods sold by weight print a pricing line such as
``1,230 kg X 2,50 €/kg = 3,08 €``, usually below (sometimes beside or after)
the product name. This module recognizes those lines, extracts the numbers,
and pairs each pricing line with its name line so that every source line is
claimed by at most one weighed item.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable, List, Match, Optional, Pattern, Sequence, Set, Tuple

from ..domain.models import WeightBasedItem
from ..domain.normalize import parse_number, standardize_currency, standardize_unit
from ..logging import get_logger

LOG = get_logger("weight-parser")

_I = re.IGNORECASE

UNIT = r"(?:kgr|kg|gr|g|ml|lt|l|κιλό|κιλά|κιλο|κιλα|γρ|λίτρα|λίτρο|λτ|μλ)(?![A-Za-zΆ-ώ])"
CURRENCY = r"(?:€|EUR|ευρώ)"
NUM = r"(\d+[.,]\d+)"

_UNIT_RE = re.compile(UNIT, _I)
_CURRENCY_RE = re.compile(CURRENCY, _I)

# Precedence is fixed: the first pattern that matches decides the reading.
MULTIPLY_EQUALS_RE = re.compile(
    rf"{NUM}\s*{UNIT}\s*[xXχΧ]\s*{NUM}\s*{CURRENCY}(?:/{UNIT})?\s*=\s*{NUM}", _I
)
AT_PRICE_RE = re.compile(rf"{NUM}\s*{UNIT}\s*(?:@|at)\s*{NUM}\s*{CURRENCY}/{UNIT}", _I)
PRICE_PER_UNIT_RE = re.compile(rf"{NUM}\s*{CURRENCY}/{UNIT}", _I)
QTY_THEN_PRICE_PER_UNIT_RE = re.compile(rf"{NUM}\s*{UNIT}.*?{NUM}\s*{CURRENCY}/{UNIT}", _I)
ONE_LINE_TOTAL_RE = re.compile(
    rf"{NUM}\s*{UNIT}.*?{NUM}\s*{CURRENCY}/{UNIT}.*?{NUM}\s*{CURRENCY}", _I
)

DETECTION_PATTERNS: Tuple[Pattern[str], ...] = (
    MULTIPLY_EQUALS_RE,
    AT_PRICE_RE,
    PRICE_PER_UNIT_RE,
    ONE_LINE_TOTAL_RE,
)

_AMOUNT_WITH_CURRENCY_RE = re.compile(rf"{NUM}\s*{CURRENCY}", _I)
_LOOSE_CURRENCY_RE = re.compile(rf"(?<![A-Za-zΆ-ώ]){CURRENCY}(?:/{UNIT})?", _I)

_NAME_CODE_PREFIX_RE = re.compile(r"^(?:\d{3,}|[A-Za-z0-9_]{2,}\d{2,})\s+[A-Za-zΆ-ώ]")
_NAME_ALPHA_ONLY_RE = re.compile(r"^[A-Za-zΆ-ώ\s.,'-]+$")
_NAME_PRICE_PER_UNIT_RE = re.compile(rf"{CURRENCY}/{UNIT}", _I)
_LETTER_RE = re.compile(r"[A-Za-zΆ-ώ]")

MAX_NAME_LENGTH = 50


@dataclass(frozen=True)
class WeightPricing:
    """Numbers pulled from a single pricing line (no name yet)."""

    quantity: float
    unit: str
    price_per_unit: float
    total_price: float
    currency: str = "EUR"


def is_weight_based_line(line: str) -> bool:
    if not line:
        return False
    return any(p.search(line) for p in DETECTION_PATTERNS)


def is_potential_item_name_line(line: str) -> bool:
    """Heuristic for a product-name line adjacent to a pricing line."""
    if not line or not line.strip():
        return False
    if _NAME_PRICE_PER_UNIT_RE.search(line):
        return False
    if len(line) > MAX_NAME_LENGTH:
        return False
    if _NAME_CODE_PREFIX_RE.search(line):
        return True
    return bool(_NAME_ALPHA_ONLY_RE.match(line)) and len(line) > 2


def _unit_of(m: Match[str]) -> str:
    found = _UNIT_RE.search(m.group(0))
    return standardize_unit(found.group(0) if found else "kg")


def _currency_of(m: Match[str]) -> str:
    found = _CURRENCY_RE.search(m.group(0))
    return standardize_currency(found.group(0) if found else "€")


def _numbers(m: Match[str], *groups: int) -> Optional[List[float]]:
    values = [parse_number(m.group(g)) for g in groups]
    if any(v is None for v in values):
        return None
    return values  # type: ignore[return-value]


def _explicit_total(m: Match[str]) -> Optional[WeightPricing]:
    nums = _numbers(m, 1, 2, 3)
    if nums is None:
        return None
    quantity, per_unit, total = nums
    return WeightPricing(quantity, _unit_of(m), per_unit, total, _currency_of(m))


def _derived_total(m: Match[str]) -> Optional[WeightPricing]:
    nums = _numbers(m, 1, 2)
    if nums is None:
        return None
    quantity, per_unit = nums
    return WeightPricing(quantity, _unit_of(m), per_unit, round(quantity * per_unit, 2), _currency_of(m))


PARSE_PATTERNS: Tuple[Tuple[str, Pattern[str], Callable[[Match[str]], Optional[WeightPricing]]], ...] = (
    ("multiply-equals", MULTIPLY_EQUALS_RE, _explicit_total),
    ("at-price", AT_PRICE_RE, _derived_total),
    ("price-per-unit", QTY_THEN_PRICE_PER_UNIT_RE, _derived_total),
    ("one-line-total", ONE_LINE_TOTAL_RE, _explicit_total),
)


def parse_weight_based_line(line: str) -> Optional[WeightPricing]:
    """Return the structured reading of a pricing line, or None."""
    if not line or not is_weight_based_line(line):
        return None
    for label, regex, extract in PARSE_PATTERNS:
        m = regex.search(line)
        if not m:
            continue
        pricing = extract(m)
        if pricing is not None:
            LOG.debug(f"pricing line matched {label}: {line!r}")
            return pricing
        LOG.warning(f"Pattern {label} matched but numbers were unreadable: {line!r}")
    return None


def _residual_name(pricing_line: str) -> str:
    candidate = MULTIPLY_EQUALS_RE.sub("", pricing_line)
    candidate = AT_PRICE_RE.sub("", candidate)
    candidate = PRICE_PER_UNIT_RE.sub("", candidate)
    candidate = _AMOUNT_WITH_CURRENCY_RE.sub("", candidate)
    candidate = _LOOSE_CURRENCY_RE.sub("", candidate)
    return re.sub(r"\s+", " ", candidate).strip()


def parse_weight_based_item(lines: Sequence[str]) -> Optional[WeightBasedItem]:
    """Build one weighed item from a small contiguous block of lines.

    ``line_numbers`` in the result are indices into ``lines``.
    """
    if not lines:
        return None

    pricing_index = next((i for i, ln in enumerate(lines) if is_weight_based_line(ln)), -1)
    if pricing_index == -1:
        return None

    pricing_line = lines[pricing_index]
    pricing = parse_weight_based_line(pricing_line)
    if pricing is None:
        return None

    line_numbers = [pricing_index]
    if pricing_index > 0 and is_potential_item_name_line(lines[pricing_index - 1]):
        name = lines[pricing_index - 1].strip()
        line_numbers.insert(0, pricing_index - 1)
    else:
        residual = _residual_name(pricing_line)
        if residual and _LETTER_RE.search(residual):
            name = residual
        elif pricing_index < len(lines) - 1 and is_potential_item_name_line(lines[pricing_index + 1]):
            name = lines[pricing_index + 1].strip()
            line_numbers.append(pricing_index + 1)
        else:
            name = "Weighted Item" if pricing.unit == "kg" else "Item"

    return WeightBasedItem(
        name=name,
        quantity=pricing.quantity or 0.0,
        unit=pricing.unit or "kg",
        price_per_unit=pricing.price_per_unit or 0.0,
        total_price=pricing.total_price or 0.0,
        currency=pricing.currency or "EUR",
        line_numbers=tuple(line_numbers),
    )


def _window(lines: Sequence[str], pricing_index: int, consumed: Set[int]) -> Tuple[int, int]:
    start = end = pricing_index
    prev = pricing_index - 1
    if prev >= 0 and prev not in consumed and is_potential_item_name_line(lines[prev]):
        start = prev
    nxt = pricing_index + 1
    if nxt < len(lines) and (
        is_potential_item_name_line(lines[nxt]) or is_weight_based_line(lines[nxt])
    ):
        end = nxt
    return start, end


def extract_weight_based_items(
    lines: Sequence[str], consumed: Optional[Set[int]] = None
) -> List[WeightBasedItem]:
    """Scan a whole receipt for weighed items, in order of appearance.

    ``consumed`` collects the global indices of every line claimed; lines
    already in it are never claimed again. Pass a set to inspect it afterwards.
    """
    if not lines:
        return []
    claimed: Set[int] = consumed if consumed is not None else set()

    pricing_indices = [i for i, ln in enumerate(lines) if is_weight_based_line(ln)]
    items: List[WeightBasedItem] = []
    for pricing_index in pricing_indices:
        if pricing_index in claimed:
            continue
        start, end = _window(lines, pricing_index, claimed)
        item = parse_weight_based_item(lines[start : end + 1])
        if item is None:
            continue
        global_numbers = tuple(i + start for i in item.line_numbers)
        if any(i in claimed for i in global_numbers):
            LOG.debug(f"Skipping weighed block at line {pricing_index}; lines already claimed")
            continue
        claimed.update(global_numbers)
        items.append(
            WeightBasedItem(
                name=item.name,
                quantity=item.quantity,
                unit=item.unit,
                price_per_unit=item.price_per_unit,
                total_price=item.total_price,
                currency=item.currency,
                line_numbers=global_numbers,
            )
        )
    LOG.debug(f"Found {len(items)} weight-based item(s) in {len(lines)} line(s)")
    return items
