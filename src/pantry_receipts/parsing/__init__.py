"""Text-receipt parsing: weight-line detection, shared extractors, per-store strategies."""

from .factory import ReceiptParserFactory, receipt_parser_factory
from .strategies import AlphamegaParser, GenericReceiptParser, LidlParser, ReceiptParserStrategy

__all__ = [
    "AlphamegaParser",
    "GenericReceiptParser",
    "LidlParser",
    "ReceiptParserFactory",
    "ReceiptParserStrategy",
    "receipt_parser_factory",
]
