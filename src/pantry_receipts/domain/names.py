"""Product name normalization.

Receipts spell the same product many ways (abbreviated, upper-case Greek,
with pack sizes glued on). This module maps a raw description to a canonical
English name plus an optional category so purchases can be tracked across
stores and languages.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, List, Optional, Pattern, Tuple

from ..logging import get_logger

LOG = get_logger("names")

_I = re.IGNORECASE


@dataclass(frozen=True)
class NameRule:
    pattern: Pattern[str]
    replacement: str
    category: Optional[str] = None


def _rule(pattern: str, replacement: str, category: Optional[str] = None) -> NameRule:
    return NameRule(re.compile(pattern, _I), replacement, category)


STORE_SPECIFIC_RULES: Dict[str, Tuple[NameRule, ...]] = {
    "LIDL": (
        _rule(r"μπαν[άα]ν[εαι]ς", "Bananas", "Fruits"),
        _rule(r"μπαν\.", "Bananas", "Fruits"),
        _rule(r"μ[ήη]λα", "Apples", "Fruits"),
        _rule(r"πατ[άα]τ[εαι]ς", "Potatoes", "Vegetables"),
        _rule(r"ντομ[άα]τ[εαι]ς", "Tomatoes", "Vegetables"),
        _rule(r"καρ[όο]τα", "Carrots", "Vegetables"),
        _rule(r"κρεμμ[ύυ]δια", "Onions", "Vegetables"),
        _rule(r"αγγο[ύυ]ρια", "Cucumbers", "Vegetables"),
        _rule(r"σκ[όο]ρδο", "Garlic", "Vegetables"),
        _rule(r"πιπερι[έε]ς", "Bell Peppers", "Vegetables"),
        _rule(r"μανιτ[άα]ρια", "Mushrooms", "Vegetables"),
        _rule(r"λεμ[όο]νια", "Lemons", "Fruits"),
        _rule(r"πορτοκ[άα]λια", "Oranges", "Fruits"),
        _rule(r"ψωμ[ίι]", "Bread", "Bakery"),
        _rule(r"γ[άα]λα", "Milk", "Dairy"),
        _rule(r"τυρ[ίι]", "Cheese", "Dairy"),
        _rule(r"γιαο[ύυ]ρτι", "Yogurt", "Dairy"),
        _rule(r"αυγ[άα]", "Eggs", "Dairy"),
        _rule(r"κοτ[όο]πουλο", "Chicken", "Meat"),
        _rule(r"μοσχ[άα]ρι", "Beef", "Meat"),
        _rule(r"χοιριν[όο]", "Pork", "Meat"),
        _rule(r"ψ[άα]ρι", "Fish", "Meat"),
        _rule(r"ρ[ύυ]ζι", "Rice", "Grains"),
        _rule(r"μακαρ[όο]νια", "Pasta", "Grains"),
        _rule(r"δημητριακ[άα]", "Cereal", "Breakfast"),
        _rule(r"καφ[έε]ς", "Coffee", "Beverages"),
        _rule(r"τσ[άα]ι", "Tea", "Beverages"),
        _rule(r"μπ[ύυ]ρα", "Beer", "Beverages"),
        _rule(r"κρασ[ίι]", "Wine", "Beverages"),
        _rule(r"νερ[όο]", "Water", "Beverages"),
        _rule(r"χυμ[όο]ς", "Juice", "Beverages"),
        _rule(r"σοκολ[άα]τα", "Chocolate", "Snacks"),
        _rule(r"μπισκ[όο]τα", "Cookies", "Snacks"),
        _rule(r"παγωτ[όο]", "Ice Cream", "Frozen Food"),
        _rule(r"σαπο[ύυ]νι", "Soap", "Personal Care"),
        _rule(r"σαμπου[άα]ν", "Shampoo", "Personal Care"),
        _rule(r"χαρτ[ίι] τουαλ[έε]τας", "Toilet Paper", "Cleaning"),
        _rule(r"απορρυπαντικ[όο]", "Detergent", "Cleaning"),
    ),
    "ALPHAMEGA": (
        _rule(r"μπαν[άα]νες", "Bananas", "Fruits"),
        _rule(r"φρ[έε]σκο γ[άα]λα", "Fresh Milk", "Dairy"),
        _rule(r"ποτ[ήη]ρι νερ[όο]", "Bottled Water", "Beverages"),
        _rule(r"φρ[έε]σκο ψωμ[ίι]", "Fresh Bread", "Bakery"),
    ),
}

DEFAULT_RULES: Tuple[NameRule, ...] = (
    # organic / bio
    _rule(r"^(?:organic|bio|οργανικ[οό][ςσ]?|βιο)\s+(.+)$", r"\1", "Organic"),
    _rule(r"^(.+)\s+(?:organic|bio|οργανικ[οό][ςσ]?|βιο)$", r"\1", "Organic"),
    # fresh
    _rule(r"^(?:fresh|φρέσκ[οα]?[ςσ]?)\s+(.+)$", r"\1"),
    _rule(r"^(.+)\s+(?:fresh|φρέσκ[οα]?[ςσ]?)$", r"\1"),
    # package sizes
    _rule(r"(\d+)\s*(?:g|gr|grams|γρ)\s+(.+)$", r"\2"),
    _rule(r"(\d+)\s*(?:kg|kgr|kilos|κιλ[οό]|κιλ[αά])\s+(.+)$", r"\2"),
    _rule(r"(\d+)\s*(?:ml|milliliters|μλ)\s+(.+)$", r"\2"),
    _rule(r"(\d+)\s*(?:l|lt|liter|λίτρ[αο]|λτ)\s+(.+)$", r"\2"),
    # packaging
    _rule(r"(.+)\s+(?:pack|package|συσκευασία|πακέτο)", r"\1"),
    _rule(r"(?:pack|package|συσκευασία|πακέτο)\s+(.+)", r"\1"),
    # common products
    _rule(r"(?:μήλα|apples|apple|μήλο)", "Apples", "Fruits"),
    _rule(r"(?:bananas|banana|μπανάνες|μπανάνα)", "Bananas", "Fruits"),
    _rule(r"(?:orange|oranges|πορτοκάλια|πορτοκάλι)", "Oranges", "Fruits"),
    _rule(r"(?:potatoes|potato|πατάτες|πατάτα)", "Potatoes", "Vegetables"),
    _rule(r"(?:tomatoes|tomato|ντομάτες|ντομάτα)", "Tomatoes", "Vegetables"),
    _rule(r"(?:carrots|carrot|καρότα|καρότο)", "Carrots", "Vegetables"),
    _rule(r"(?:milk|γάλα)", "Milk", "Dairy"),
    _rule(r"(?:yogurt|yoghurt|γιαούρτι)", "Yogurt", "Dairy"),
    _rule(r"(?:cheese|τυρί)", "Cheese", "Dairy"),
    _rule(r"(?:beef|μοσχάρι)", "Beef", "Meat"),
    _rule(r"(?:chicken|κοτόπουλο)", "Chicken", "Meat"),
    _rule(r"(?:pork|χοιρινό)", "Pork", "Meat"),
    _rule(r"(?:bread|ψωμί)", "Bread", "Bakery"),
    _rule(r"(?:water|νερό)", "Water", "Beverages"),
    _rule(r"(?:juice|χυμός)", "Juice", "Beverages"),
    _rule(r"(?:cola|κόλα)", "Cola", "Beverages"),
    _rule(r"(?:cereal|δημητριακά)", "Cereal", "Breakfast"),
    _rule(r"(?:toilet|paper|χαρτί)", "Toilet Paper", "Cleaning"),
    _rule(r"(?:soap|σαπούνι)", "Soap", "Personal Care"),
)

# Qualifiers that describe a product without changing what it is.
MODIFIER_PATTERNS: Tuple[Pattern[str], ...] = tuple(
    re.compile(p, _I)
    for p in (
        r"(?:organic|bio|οργανικ[οό][ςσ]?|βιο)",
        r"(?:fresh|φρέσκ[οα]?[ςσ]?)",
        r"(?:premium|gourmet|πολυτελείας|γκουρμέ)",
        r"(?:whole grain|ολικής|ολικήs άλεσης)",
        r"(?:low fat|light|χαμηλά λιπαρά|λάιτ)",
        r"(?:gluten free|χωρίς γλουτένη)",
        r"(?:sugar free|χωρίς ζάχαρη)",
        r"(?:lactose free|χωρίς λακτόζη)",
        r"(?:vegan|βίγκαν)",
        r"(?:vegetarian|χορτοφαγικό)",
    )
)

_GREEK_TO_LATIN = {
    "α": "a", "β": "b", "γ": "g", "δ": "d", "ε": "e", "ζ": "z", "η": "i", "θ": "th",
    "ι": "i", "κ": "k", "λ": "l", "μ": "m", "ν": "n", "ξ": "x", "ο": "o", "π": "p",
    "ρ": "r", "σ": "s", "ς": "s", "τ": "t", "υ": "y", "φ": "f", "χ": "ch", "ψ": "ps", "ω": "o",
    "Α": "A", "Β": "B", "Γ": "G", "Δ": "D", "Ε": "E", "Ζ": "Z", "Η": "I", "Θ": "TH",
    "Ι": "I", "Κ": "K", "Λ": "L", "Μ": "M", "Ν": "N", "Ξ": "X", "Ο": "O", "Π": "P",
    "Ρ": "R", "Σ": "S", "Τ": "T", "Υ": "Y", "Φ": "F", "Χ": "CH", "Ψ": "PS", "Ω": "O",
    "ά": "a", "έ": "e", "ί": "i", "ή": "i", "ό": "o", "ύ": "y", "ώ": "o", "Ά": "A",
    "Έ": "E", "Ί": "I", "Ή": "I", "Ό": "O", "Ύ": "Y", "Ώ": "O", "ϊ": "i", "ϋ": "y",
    "ΐ": "i", "ΰ": "y", "Ϊ": "I", "Ϋ": "Y",
}
_TRANSLIT_TABLE = {ord(k): v for k, v in _GREEK_TO_LATIN.items()}

_GREEK_RE = re.compile(r"[\u0370-\u03FF]")


@dataclass(frozen=True)
class NormalizedName:
    normalized_name: str
    original_name: str
    category: Optional[str] = None
    description: Optional[str] = None
    modifiers: Tuple[str, ...] = ()
    confidence: float = 0.0


def preprocess_item_name(raw_name: str) -> str:
    """Strip receipt noise (piece counts, inline prices, parentheses) from a name."""
    if not raw_name:
        return ""
    processed = raw_name.strip()
    processed = re.sub(r"\bORG\b", "ORGANIC", processed, flags=_I)
    processed = re.sub(r"\bBIO\b", "ORGANIC", processed, flags=_I)
    processed = re.sub(r"\d+\s*[xX]\s*\d+\s*(?:pcs|pieces|τεμ)", "", processed, flags=_I)
    processed = re.sub(r"\d+\s*(?:pcs|pieces|τεμ)", "", processed, flags=_I)
    processed = re.sub(r"(?:pack of|συσκευασία)\s*\d+", "", processed, flags=_I)
    processed = re.sub(r"\d+[.,]\d+\s*(?:€|EUR)", "", processed, flags=_I)
    processed = re.sub(r"\([^)]*\)", "", processed)
    return re.sub(r"\s+", " ", processed).strip()


def contains_greek_characters(text: str) -> bool:
    return bool(_GREEK_RE.search(text or ""))


def transliterate_greek_to_latin(text: str) -> str:
    if not text:
        return ""
    return text.translate(_TRANSLIT_TABLE)


def extract_modifiers(item_name: str) -> Tuple[List[str], str]:
    """Return (modifiers, name without them)."""
    modifiers: List[str] = []
    clean = item_name
    for pattern in MODIFIER_PATTERNS:
        m = pattern.search(clean)
        if m:
            modifiers.append(m.group(0))
            clean = pattern.sub("", clean, count=1).strip()
    return modifiers, re.sub(r"\s+", " ", clean).strip()


def _apply_rules(item_name: str, rules: Tuple[NameRule, ...]) -> Tuple[str, Optional[str]]:
    for rule in rules:
        if rule.pattern.search(item_name):
            return rule.pattern.sub(rule.replacement, item_name, count=1), rule.category
    return item_name, None


def create_item_description(normalized_name: str, original_name: str, modifiers: List[str]) -> str:
    """Modifiers + normalized name, with the original appended when it differs."""
    prefix = ", ".join(modifiers) + " " if modifiers else ""
    description = prefix + normalized_name
    lowered_norm = normalized_name.lower()
    lowered_orig = original_name.lower()
    if (
        normalized_name != original_name
        and lowered_norm != lowered_orig
        and lowered_norm not in lowered_orig
    ):
        return f"{description} ({original_name})"
    return description


def _confidence(original_name: str, normalized_name: str, has_category: bool) -> float:
    confidence = 0.5
    if has_category:
        confidence += 0.3
    original_words = original_name.lower().split()
    normalized_words = normalized_name.lower().split()
    common = [w for w in original_words if any(n in w or w in n for n in normalized_words)]
    confidence += (len(common) / max(len(original_words), 1)) * 0.2
    return min(confidence, 0.99)


def normalize_item_name(original_name: str, store_name: Optional[str] = None) -> NormalizedName:
    """Map a raw receipt description to a canonical name and category.

    Store-specific rules (keyed by the strategy's store name, e.g. "LIDL") win
    over the default table. Greek output is transliterated to Latin script.
    """
    if not original_name:
        return NormalizedName(normalized_name="", original_name="")

    preprocessed = preprocess_item_name(original_name)
    modifiers, clean_name = extract_modifiers(preprocessed)

    store_rules = STORE_SPECIFIC_RULES.get(store_name or "", ())
    store_name_out, store_category = _apply_rules(clean_name, store_rules)
    if store_name_out != clean_name:
        normalized, category = store_name_out, store_category
    else:
        normalized, category = _apply_rules(clean_name, DEFAULT_RULES)

    if contains_greek_characters(normalized):
        normalized = transliterate_greek_to_latin(normalized)

    description = create_item_description(normalized, original_name, modifiers)
    confidence = _confidence(original_name, normalized, category is not None)
    LOG.debug(f"normalized {original_name!r} -> {normalized!r} (category={category})")
    return NormalizedName(
        normalized_name=normalized,
        original_name=original_name,
        category=category,
        description=description,
        modifiers=tuple(modifiers),
        confidence=confidence,
    )
