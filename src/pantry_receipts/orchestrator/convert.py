from __future__ import annotations

from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Union

from ..domain.models import ExtractedItem, ParsedItem
from .vision import classify_shelf_life, infer_expiry_date

Item = Union[ExtractedItem, ParsedItem]


def _food_item(item: Item, location_id: int, user_id: int, today: date) -> Dict[str, Any]:
    if isinstance(item, ExtractedItem):
        expiry = item.expiry_date
        category: Optional[str] = classify_shelf_life(item.name)[0]
    else:
        expiry = infer_expiry_date(item.normalized_name or item.name, today)
        category = item.category
    out = {
        "name": item.name,
        "quantity": item.quantity,
        "unit": item.unit,
        "price": item.price,
        "expiryDate": expiry,
        "locationId": location_id,
        "userId": user_id,
        "purchased": today.isoformat(),
        "isWeightBased": item.is_weight_based,
        "pricePerUnit": item.price_per_unit,
        "category": category,
    }
    # The persistence layer treats an absent key as "unknown".
    return {k: v for k, v in out.items() if v is not None}


def convert_to_food_items(
    items: Iterable[Item],
    location_id: int,
    user_id: int,
    *,
    today: Optional[date] = None,
) -> List[Dict[str, Any]]:
    """Map extracted or parsed receipt items to food-item records.

    Discount lines are not food and are skipped. ``purchased`` is today's date.
    """
    day = today or date.today()
    return [
        _food_item(item, location_id, user_id, day)
        for item in items
        if not (isinstance(item, ParsedItem) and item.is_discount)
    ]
