"""Store-name -> parsing strategy lookup."""

from __future__ import annotations

from typing import Dict, List, Optional, Tuple

from ..logging import get_logger
from .strategies import AlphamegaParser, GenericReceiptParser, LidlParser, ReceiptParserStrategy

LOG = get_logger("parser-factory")


class ReceiptParserFactory:
    """Registry of strategies keyed by upper-cased store name.

    Lookup order: exact key, then the first registered key contained in the
    store name, then the generic parser. Registration order only matters for
    the containment step.
    """

    def __init__(self, fallback: Optional[ReceiptParserStrategy] = None) -> None:
        self._parsers: Dict[str, ReceiptParserStrategy] = {}
        self._order: List[str] = []
        self._fallback = fallback or GenericReceiptParser()

    def register_parser(self, store_name: str, parser: ReceiptParserStrategy) -> None:
        key = store_name.upper().strip()
        if key not in self._parsers:
            self._order.append(key)
        self._parsers[key] = parser
        LOG.debug(f"Registered parser {key} -> {type(parser).__name__}")

    def registered(self) -> Tuple[str, ...]:
        return tuple(self._order)

    def get_parser(self, store_name: Optional[str]) -> ReceiptParserStrategy:
        key = (store_name or "").upper().strip()
        if not key:
            return self._fallback

        parser = self._parsers.get(key)
        if parser is not None:
            return parser

        for registered in self._order:
            if registered in key:
                LOG.debug(f"Store {store_name!r} matched registered key {registered}")
                return self._parsers[registered]

        LOG.debug(f"No parser for {store_name!r}; using generic")
        return self._fallback


def default_factory() -> ReceiptParserFactory:
    factory = ReceiptParserFactory()
    factory.register_parser("LIDL", LidlParser())
    factory.register_parser("ALPHAMEGA", AlphamegaParser())
    factory.register_parser("GENERIC", factory.get_parser(None))
    return factory


receipt_parser_factory = default_factory()
