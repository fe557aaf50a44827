from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple


def _drop_none(d: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


@dataclass(frozen=True)
class WeightBasedItem:
    """Pricing block for goods sold by weight or volume.

    Only lives inside a single parse pass; strategies fold it into a ParsedItem.
    """

    name: str
    quantity: float
    unit: str
    price_per_unit: float
    total_price: float
    currency: str = "EUR"
    line_numbers: Tuple[int, ...] = ()


@dataclass(frozen=True)
class ParsedItem:
    name: str
    normalized_name: str
    original_name: str
    quantity: float
    unit: str
    price: Optional[float]
    price_per_unit: Optional[float] = None
    is_weight_based: bool = False
    is_discount: bool = False
    category: Optional[str] = None
    description: Optional[str] = None
    line_numbers: Tuple[int, ...] = ()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "normalizedName": self.normalized_name,
            "originalName": self.original_name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": self.price,
            "pricePerUnit": self.price_per_unit,
            "isWeightBased": self.is_weight_based,
            "isDiscount": self.is_discount,
            "category": self.category,
            "description": self.description,
            "lineNumbers": list(self.line_numbers),
        }


@dataclass(frozen=True)
class ReceiptHeader:
    store: str
    address: Optional[str] = None
    date: Optional[str] = None           # YYYY-MM-DD when recognizable
    time: Optional[str] = None           # HH:MM:SS
    receipt_number: Optional[str] = None
    cashier: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "store": self.store,
            "address": self.address,
            "date": self.date,
            "time": self.time,
            "receiptNumber": self.receipt_number,
            "cashier": self.cashier,
        }


@dataclass(frozen=True)
class VatEntry:
    rate: float
    amount: float
    net_amount: Optional[float] = None
    gross_amount: Optional[float] = None

    def as_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "rate": self.rate,
                "amount": self.amount,
                "netAmount": self.net_amount,
                "grossAmount": self.gross_amount,
            }
        )


@dataclass(frozen=True)
class Discount:
    description: str
    amount: float  # always >= 0

    def as_dict(self) -> Dict[str, Any]:
        return {"description": self.description, "amount": self.amount}


@dataclass(frozen=True)
class LoyaltyInfo:
    program_name: Optional[str] = None
    points: Optional[int] = None
    sticker_count: Optional[int] = None
    message: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "programName": self.program_name,
                "points": self.points,
                "stickerCount": self.sticker_count,
                "message": self.message,
            }
        )


@dataclass(frozen=True)
class ReceiptFooter:
    total_amount: float = 0.0
    payment_method: Optional[str] = None
    card_last_digits: Optional[str] = None
    vat_breakdown: Tuple[VatEntry, ...] = ()
    discounts: Tuple[Discount, ...] = ()
    loyalty_info: Optional[LoyaltyInfo] = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "totalAmount": self.total_amount,
            "paymentMethod": self.payment_method,
            "cardLastDigits": self.card_last_digits,
            "vatBreakdown": [v.as_dict() for v in self.vat_breakdown],
            "discounts": [d.as_dict() for d in self.discounts],
            "loyaltyInfo": self.loyalty_info.as_dict() if self.loyalty_info else None,
        }


@dataclass(frozen=True)
class ParsedReceipt:
    header: ReceiptHeader
    items: Tuple[ParsedItem, ...]
    footer: ReceiptFooter
    raw_text: str
    language: str = "English"

    def as_dict(self) -> Dict[str, Any]:
        return {
            "header": self.header.as_dict(),
            "items": [it.as_dict() for it in self.items],
            "footer": self.footer.as_dict(),
            "language": self.language,
            "rawText": self.raw_text,
        }


# ---- vision extraction results ----------------------------------------------


@dataclass
class ExtractedItem:
    name: str
    quantity: float
    unit: str
    price: Optional[float]
    expiry_date: str
    price_per_unit: Optional[float] = None
    is_weight_based: bool = False

    def as_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "quantity": self.quantity,
            "unit": self.unit,
            "price": self.price,
            "pricePerUnit": self.price_per_unit,
            "isWeightBased": self.is_weight_based,
            "expiryDate": self.expiry_date,
        }


@dataclass
class StoreInfo:
    name: str = "Unknown Store"
    location: str = "Unknown Location"
    phone: Optional[str] = None
    fax: Optional[str] = None
    vat_number: Optional[str] = None
    tax_id: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        return _drop_none(
            {
                "name": self.name,
                "location": self.location,
                "phone": self.phone,
                "fax": self.fax,
                "vatNumber": self.vat_number,
                "taxId": self.tax_id,
            }
        )


@dataclass
class ReceiptDetails:
    receipt_number: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None
    cashier: Optional[str] = None
    payment_method: Optional[str] = None
    total_amount: Optional[float] = None
    vat_breakdown: List[VatEntry] = field(default_factory=list)
    language: Optional[str] = None

    def as_dict(self) -> Dict[str, Any]:
        out = _drop_none(
            {
                "receiptNumber": self.receipt_number,
                "date": self.date,
                "time": self.time,
                "cashier": self.cashier,
                "paymentMethod": self.payment_method,
                "totalAmount": self.total_amount,
                "language": self.language,
            }
        )
        if self.vat_breakdown:
            out["vatBreakdown"] = [v.as_dict() for v in self.vat_breakdown]
        return out
