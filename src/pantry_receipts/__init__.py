"""
Pantry receipts – turn grocery receipts into structured line items.

Two paths produce the same kind of data:

- ``parsing``: OCR'd receipt text -> store-specific strategy -> ParsedReceipt
- ``orchestrator.vision``: receipt image -> vision model -> extracted items

Shared utilities (config, logging, paths, domain models) live at the top level.
"""

__all__ = [
    "cli",
    "config",
    "domain",
    "logging",
    "orchestrator",
    "parsing",
    "paths",
]
