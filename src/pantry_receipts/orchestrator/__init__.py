"""Receipt processing entry points: the text pipeline and the vision extractor."""

from .convert import convert_to_food_items
from .service import guess_store_name, parse_receipt_text
from .vision import (
    MissingApiKeyError,
    extract_receipt_details,
    extract_store_from_receipt,
    process_receipt_image,
)

__all__ = [
    "MissingApiKeyError",
    "convert_to_food_items",
    "extract_receipt_details",
    "extract_store_from_receipt",
    "guess_store_name",
    "parse_receipt_text",
    "process_receipt_image",
]
