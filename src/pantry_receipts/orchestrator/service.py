"""Text pipeline entry point: guess the store, pick a strategy, parse."""

from __future__ import annotations

from typing import Optional, Sequence, Tuple

from ..domain.models import ParsedReceipt
from ..logging import get_logger
from ..parsing.factory import ReceiptParserFactory, receipt_parser_factory

LOG = get_logger("receipt-service")

STORE_SCAN_LINES = 10

# Spellings printed on receipts that differ from the registry key.
STORE_ALIASES: Tuple[Tuple[str, str], ...] = (
    ("ΑΛΦΑΜΕΓΑ", "ALPHAMEGA"),
    ("ALPHA MEGA", "ALPHAMEGA"),
)


def guess_store_name(raw_text: str, *, known: Optional[Sequence[str]] = None) -> Optional[str]:
    """Registry key of the store named near the top of the receipt, or None."""
    keys = [k for k in (known if known is not None else receipt_parser_factory.registered()) if k != "GENERIC"]
    for line in (raw_text or "").split("\n")[:STORE_SCAN_LINES]:
        upper = line.upper()
        for key in keys:
            if key in upper:
                return key
        for alias, key in STORE_ALIASES:
            if alias in upper:
                return key
    return None


def parse_receipt_text(
    raw_text: str,
    store_hint: Optional[str] = None,
    *,
    factory: Optional[ReceiptParserFactory] = None,
) -> ParsedReceipt:
    """Parse OCR text with the strategy for ``store_hint`` (or the guessed store)."""
    fac = factory or receipt_parser_factory
    store = store_hint or guess_store_name(raw_text, known=fac.registered())
    parser = fac.get_parser(store)
    LOG.info(f"Parsing receipt with {type(parser).__name__} (store hint: {store or 'none'})")
    return parser.parse(raw_text)
