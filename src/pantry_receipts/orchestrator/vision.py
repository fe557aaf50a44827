"""Vision extraction: send a receipt image to a vision-capable chat model.

Three independent calls share one transport:

- ``process_receipt_image``   -> list of ExtractedItem
- ``extract_store_from_receipt`` -> StoreInfo
- ``extract_receipt_details``  -> ReceiptDetails

Each call converts transport, HTTP and JSON failures into a safe default and
logs them. Only a missing API key raises (``MissingApiKeyError``).
"""

from __future__ import annotations

import asyncio
import base64
import json
import mimetypes
import os
import re
import time
from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Tuple

import httpx
import requests
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from ..config import VisionConfig, load_vision_config
from ..domain.models import ExtractedItem, ReceiptDetails, StoreInfo, VatEntry
from ..domain.normalize import WEIGHT_UNITS, parse_number, reformat_date, standardize_unit
from ..logging import get_logger

LOG = get_logger("vision")

OPENROUTER_ENDPOINT = "https://openrouter.ai/api/v1/chat/completions"

UNKNOWN_STORE = "Unknown Store"
UNKNOWN_LOCATION = "Unknown Location"
UNKNOWN_ITEM = "Unknown Item"
DEFAULT_LANGUAGE = "English"

# Failures converted to safe defaults. TypeError/KeyError cover JSON of the wrong shape.
RECOVERABLE_ERRORS: Tuple[type, ...] = (
    APIConnectionError,
    APITimeoutError,
    APIStatusError,
    requests.RequestException,
    httpx.HTTPError,
    ValueError,
    TypeError,
    KeyError,
    OSError,
)


class MissingApiKeyError(RuntimeError):
    """No API key is configured for the selected vision backend."""


ITEMS_PROMPT = (
    "You are a specialized receipt analyzer. Extract all food items from the receipt image. "
    "For each item return: name, quantity (number), unit (pieces, kg, g, l, ml), "
    "price (total line price as a decimal number in the receipt currency), "
    "pricePerUnit (number, only for goods sold by weight or volume), "
    "isWeightBased (boolean) and expiryDate (YYYY-MM-DD, estimated from typical shelf life). "
    "Use 'pieces' as the default unit. "
    "Respond with a JSON array only, no explanations or text."
)

STORE_PROMPT = (
    "You are a specialized receipt analyzer. Identify the store that issued this receipt. "
    "Return a JSON object with keys: name, location (address or city), phone, fax, "
    "vatNumber, taxId. Use null for anything not printed on the receipt. "
    "Respond with the JSON object only."
)

DETAILS_PROMPT = (
    "You are a specialized receipt analyzer. Extract the transaction details of this receipt. "
    "Return a JSON object with keys: receiptNumber, date (YYYY-MM-DD), time (HH:MM:SS), "
    "cashier, paymentMethod, totalAmount (number), "
    "vatBreakdown (array of {rate, amount, netAmount, grossAmount}), "
    "language (the language the receipt is printed in). "
    "Use null for anything not printed on the receipt. Respond with the JSON object only."
)


# ---- shelf life ---------------------------------------------------------------

# (category, shelf life in days, name keywords). First match wins, so frozen
# goods are checked before the fresh categories they would otherwise hit.
SHELF_LIFE_RULES: Tuple[Tuple[str, int, Tuple[str, ...]], ...] = (
    ("frozen", 90, ("frozen", "ice cream", "κατεψυγμ", "παγωτ")),
    ("dairy", 7, ("milk", "yogurt", "yoghurt", "cheese", "butter", "cream", "halloumi", "γάλα", "γιαούρτι", "τυρί", "βούτυρο", "χαλλούμι")),
    ("meat", 3, ("chicken", "beef", "pork", "lamb", "mince", "steak", "meat", "fish", "salmon", "κοτόπουλο", "κρέας", "χοιρινό", "μοσχάρι", "ψάρι")),
    ("bread", 5, ("bread", "baguette", "roll", "bun", "pita", "croissant", "ψωμί", "πίτα")),
    ("leafy-vegetable", 5, ("lettuce", "spinach", "salad", "rocket", "arugula", "kale", "μαρούλι", "σπανάκι", "σαλάτα", "ρόκα")),
    ("fruit", 7, ("apple", "banana", "orange", "grape", "berry", "berries", "pear", "peach", "lemon", "melon", "μήλα", "μήλο", "μπανάνα", "πορτοκάλι", "σταφύλι", "λεμόνι")),
    ("dry-goods", 180, ("rice", "pasta", "flour", "sugar", "cereal", "beans", "lentils", "oats", "coffee", "tea", "ρύζι", "μακαρόνια", "αλεύρι", "ζάχαρη", "φακές", "καφές")),
)
DEFAULT_SHELF_LIFE = ("default", 7)


def classify_shelf_life(name: str) -> Tuple[str, int]:
    lowered = (name or "").lower()
    for category, days, keywords in SHELF_LIFE_RULES:
        if any(k in lowered for k in keywords):
            return category, days
    return DEFAULT_SHELF_LIFE


def infer_expiry_date(name: str, today: Optional[date] = None) -> str:
    """Estimated expiry (YYYY-MM-DD) from the item's food category."""
    _, days = classify_shelf_life(name)
    return ((today or date.today()) + timedelta(days=days)).isoformat()


# ---- reply parsing -------------------------------------------------------------

_FENCE_RE = re.compile(r"```(?:json|JSON)?\s*(.*?)```", re.DOTALL)


def strip_code_fences(text: str) -> str:
    """Return the inner content of a Markdown code fence, or the text itself."""
    if not isinstance(text, str):
        return ""
    m = _FENCE_RE.search(text)
    if m and m.group(1):
        return m.group(1).strip()
    return text.strip()


def parse_json_reply(text: Optional[str], expected: type) -> Any:
    """Decode a model reply into ``expected`` (list or dict).

    Raises ValueError when nothing of the expected shape can be recovered.
    """
    if not text:
        raise ValueError("empty model reply")
    body = strip_code_fences(text)
    open_ch, close_ch = ("[", "]") if expected is list else ("{", "}")

    candidates = [body]
    start, end = body.find(open_ch), body.rfind(close_ch)
    if start != -1 and end > start:
        candidates.append(body[start : end + 1])

    for candidate in candidates:
        try:
            value = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(value, expected):
            return value
    raise ValueError(f"model reply is not a JSON {expected.__name__}: {text[:200]!r}")


# ---- transport -----------------------------------------------------------------


def image_data_url(image_path: str) -> str:
    mime, _ = mimetypes.guess_type(image_path)
    if not mime or not mime.startswith("image/"):
        mime = "image/jpeg"
    with open(image_path, "rb") as f:
        b64 = base64.b64encode(f.read()).decode("ascii")
    return f"data:{mime};base64,{b64}"


def build_messages(system_prompt: str, user_text: str, data_url: str) -> List[Dict[str, Any]]:
    return [
        {"role": "system", "content": system_prompt},
        {
            "role": "user",
            "content": [
                {"type": "text", "text": user_text},
                {"type": "image_url", "image_url": {"url": data_url}},
            ],
        },
    ]


async def _call_openai(config: VisionConfig, messages: List[Dict[str, Any]]) -> Optional[str]:
    timeout = httpx.Timeout(connect=10.0, read=config.timeout_seconds, write=30.0, pool=10.0)
    async with httpx.AsyncClient(timeout=timeout) as http_client:
        client = AsyncOpenAI(
            api_key=config.api_key,
            base_url=os.environ.get("OPENAI_BASE_URL"),
            http_client=http_client,
            max_retries=0,
        )
        completion = await client.chat.completions.create(
            model=config.model,
            messages=messages,
            max_tokens=config.max_tokens,
            temperature=config.temperature,
        )
    choice = completion.choices[0] if getattr(completion, "choices", None) else None
    return choice.message.content if choice and getattr(choice, "message", None) else None


def _post_openrouter(config: VisionConfig, messages: List[Dict[str, Any]]) -> Optional[str]:
    payload = {
        "model": config.model,
        "messages": messages,
        "temperature": config.temperature,
        "max_tokens": config.max_tokens,
    }
    headers = {
        "Authorization": f"Bearer {config.api_key}",
        "Content-Type": "application/json",
    }
    resp = requests.post(OPENROUTER_ENDPOINT, headers=headers, json=payload, timeout=config.timeout_seconds)
    if resp.status_code >= 400:
        LOG.error(f"OpenRouter HTTP {resp.status_code}: {resp.text[:500]}")
        resp.raise_for_status()
    body = resp.json()
    choices = body.get("choices") if isinstance(body, dict) else None
    if not isinstance(choices, list) or not choices:
        LOG.error(f"OpenRouter returned no choices: {str(body)[:500]}")
        return None
    message = choices[0].get("message") if isinstance(choices[0], dict) else None
    if not isinstance(message, dict):
        LOG.error(f"OpenRouter choice has no message: {str(choices[0])[:500]}")
        return None
    content = message.get("content")
    return content if isinstance(content, str) else None


async def request_completion(config: VisionConfig, system_prompt: str, user_text: str, data_url: str) -> Optional[str]:
    """One chat completion with the image attached; returns the reply text."""
    messages = build_messages(system_prompt, user_text, data_url)
    t0 = time.perf_counter()
    if config.backend == "openrouter":
        text = await asyncio.to_thread(_post_openrouter, config, messages)
    else:
        text = await _call_openai(config, messages)
    elapsed = time.perf_counter() - t0
    LOG.info(
        f"{config.backend} completion finished in {elapsed:.2f}s model={config.model} "
        f"(reply={'ok' if text else 'none'})"
    )
    return text


def _resolve_config(config: Optional[VisionConfig]) -> VisionConfig:
    cfg = config or load_vision_config()
    if not cfg.api_key:
        raise MissingApiKeyError(f"No API key configured for vision backend '{cfg.backend}'")
    return cfg


async def _ask(image_path: str, config: VisionConfig, system_prompt: str, user_text: str, expected: type) -> Any:
    data_url = image_data_url(image_path)
    reply = await request_completion(config, system_prompt, user_text, data_url)
    return parse_json_reply(reply, expected)


# ---- field coercion ------------------------------------------------------------


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return parse_number(str(value))


def _to_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    s = str(value).strip()
    return s or None


def _to_item(raw: Dict[str, Any], today: date) -> ExtractedItem:
    name = _to_str(raw.get("name")) or UNKNOWN_ITEM
    unit = standardize_unit(_to_str(raw.get("unit")))
    flag = raw.get("isWeightBased")
    is_weight_based = flag if isinstance(flag, bool) else unit in WEIGHT_UNITS
    expiry = _to_str(raw.get("expiryDate"))
    quantity = _to_float(raw.get("quantity"))
    return ExtractedItem(
        name=name,
        quantity=1.0 if quantity is None else quantity,
        unit=unit,
        price=_to_float(raw.get("price")),
        expiry_date=reformat_date(expiry) if expiry else infer_expiry_date(name, today),
        price_per_unit=_to_float(raw.get("pricePerUnit")),
        is_weight_based=is_weight_based,
    )


def _to_vat(raw: Dict[str, Any]) -> Optional[VatEntry]:
    rate = _to_float(raw.get("rate"))
    amount = _to_float(raw.get("amount"))
    if rate is None or amount is None:
        return None
    return VatEntry(
        rate=rate,
        amount=amount,
        net_amount=_to_float(raw.get("netAmount")),
        gross_amount=_to_float(raw.get("grossAmount")),
    )


# ---- public API ----------------------------------------------------------------


async def process_receipt_image(image_path: str, *, config: Optional[VisionConfig] = None) -> List[ExtractedItem]:
    """Extract purchased food items from a receipt image. Empty list on failure."""
    cfg = _resolve_config(config)
    try:
        rows = await _ask(image_path, cfg, ITEMS_PROMPT, "Extract all food items from this receipt.", list)
        today = date.today()
        items = [_to_item(row, today) for row in rows if isinstance(row, dict)]
    except RECOVERABLE_ERRORS as exc:
        LOG.error(f"Item extraction failed for {image_path}: {exc}")
        return []
    LOG.info(f"Extracted {len(items)} item(s) from {image_path}")
    return items


async def extract_store_from_receipt(image_path: str, *, config: Optional[VisionConfig] = None) -> StoreInfo:
    """Store identity printed on the receipt; name/location are never empty."""
    cfg = _resolve_config(config)
    try:
        data = await _ask(image_path, cfg, STORE_PROMPT, "Identify the store on this receipt.", dict)
    except RECOVERABLE_ERRORS as exc:
        LOG.error(f"Store extraction failed for {image_path}: {exc}")
        return StoreInfo()
    return StoreInfo(
        name=_to_str(data.get("name")) or UNKNOWN_STORE,
        location=_to_str(data.get("location")) or UNKNOWN_LOCATION,
        phone=_to_str(data.get("phone")),
        fax=_to_str(data.get("fax")),
        vat_number=_to_str(data.get("vatNumber")),
        tax_id=_to_str(data.get("taxId")),
    )


async def extract_receipt_details(image_path: str, *, config: Optional[VisionConfig] = None) -> ReceiptDetails:
    cfg = _resolve_config(config)
    try:
        data = await _ask(image_path, cfg, DETAILS_PROMPT, "Extract the transaction details of this receipt.", dict)
        vat_rows = data.get("vatBreakdown") or []
        vat = [v for v in (_to_vat(r) for r in vat_rows if isinstance(r, dict)) if v is not None]
    except RECOVERABLE_ERRORS as exc:
        LOG.error(f"Detail extraction failed for {image_path}: {exc}")
        return ReceiptDetails()
    return ReceiptDetails(
        receipt_number=_to_str(data.get("receiptNumber")),
        date=reformat_date(_to_str(data.get("date"))),
        time=_to_str(data.get("time")),
        cashier=_to_str(data.get("cashier")),
        payment_method=_to_str(data.get("paymentMethod")),
        total_amount=_to_float(data.get("totalAmount")),
        vat_breakdown=vat,
        language=_to_str(data.get("language")) or DEFAULT_LANGUAGE,
    )
