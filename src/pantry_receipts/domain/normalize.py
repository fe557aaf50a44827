import re
from typing import Optional, Tuple

from ..logging import get_logger

_LOG = get_logger("normalize")

# Canonical unit -> recognized spellings (compared after lower()).
UNIT_SYNONYMS: Tuple[Tuple[str, frozenset], ...] = (
    ("kg", frozenset({"kg", "kgr", "kilo", "kilos", "κιλό", "κιλά", "κιλο", "κιλα"})),
    ("g", frozenset({"g", "gr", "gram", "grams", "γρ", "γραμ", "γραμμάρια", "γραμμαρια"})),
    ("l", frozenset({"l", "lt", "ltr", "liter", "liters", "λίτρο", "λίτρα", "λιτρο", "λιτρα"})),
    ("ml", frozenset({"ml", "milliliter", "milliliters", "μλ", "μιλιλίτρ"})),
    (
        "pieces",
        frozenset({"pcs", "pieces", "piece", "τεμ", "τεμάχια", "τεμαχια", "τεμάχιο", "τεμαχιο"}),
    ),
)

# Canonical currency -> recognized spellings (compared after upper()).
CURRENCY_SYNONYMS: Tuple[Tuple[str, frozenset], ...] = (
    ("EUR", frozenset({"€", "EUR", "EURO", "ΕΥΡΩ", "ΕΥΡΏ"})),
    ("USD", frozenset({"$", "USD"})),
    ("GBP", frozenset({"£", "GBP"})),
)

WEIGHT_UNITS = frozenset({"kg", "g", "l", "ml"})

DEFAULT_UNIT = "pieces"
DEFAULT_CURRENCY = "EUR"


def standardize_unit(raw_unit: Optional[str]) -> str:
    """Map a unit spelling (any case, Latin or Greek) to its canonical token.

    Unknown non-empty input comes back lowercased; empty input yields "pieces".
    """
    unit = (raw_unit or "").lower()
    key = unit.strip()
    for canonical, spellings in UNIT_SYNONYMS:
        if key in spellings:
            return canonical
    return unit or DEFAULT_UNIT


def standardize_currency(raw_currency: Optional[str]) -> str:
    """Map a currency symbol or word to an ISO-like code, default EUR."""
    currency = (raw_currency or "").upper().strip()
    for canonical, spellings in CURRENCY_SYNONYMS:
        if currency in spellings:
            return canonical
    return currency or DEFAULT_CURRENCY


def is_weight_unit(unit: Optional[str]) -> bool:
    return standardize_unit(unit) in WEIGHT_UNITS


def parse_number(token: Optional[str]) -> Optional[float]:
    """Parse a receipt number accepting ',' or '.' as decimal separator.

    Returns None instead of raising so pattern helpers can treat a bad
    conversion as a non-match.
    """
    if token is None:
        return None
    s = str(token).strip().replace(",", ".", 1)
    if not s:
        return None
    try:
        return float(s)
    except ValueError:
        _LOG.warning(f"Could not convert {token!r} to a number")
        return None


def normalize_date_iso(day_or_month: str, month_or_day: str, year: str) -> Optional[str]:
    """Reorder a D/M/Y (or M/D/Y) triple to YYYY-MM-DD.

    - Two-digit years are prefixed with "20".
    - A first component > 12 can only be a day; a second component > 12 means
      the date was written month-first. Otherwise day-first is assumed.
    """
    try:
        a, b = int(day_or_month), int(month_or_day)
    except (TypeError, ValueError):
        return None
    y = year.strip()
    if len(y) == 2:
        y = f"20{y}"
    if a > 12:
        day, month = a, b
    elif b > 12:
        day, month = b, a
    else:
        day, month = a, b
    return f"{y}-{month:02d}-{day:02d}"


_DMY_RE = re.compile(r"^(\d{1,2})[/.\-](\d{1,2})[/.\-](\d{2,4})$")
_ISO_RE = re.compile(r"^(\d{4})-(\d{1,2})-(\d{1,2})")


def reformat_date(value: Optional[str]) -> Optional[str]:
    """Best-effort conversion of a free-form date string to YYYY-MM-DD.

    ISO input passes through (zero-padded); unrecognized input is returned as-is.
    """
    if not value:
        return value
    v = str(value).strip()
    m = _ISO_RE.match(v)
    if m:
        y, mo, d = m.groups()
        return f"{y}-{int(mo):02d}-{int(d):02d}"
    m = _DMY_RE.match(v)
    if m:
        return normalize_date_iso(*m.groups()) or v
    return v


def normalize_time(hour: str, minute: str, second: Optional[str] = None) -> str:
    return f"{hour.zfill(2)}:{minute.zfill(2)}:{(second or '00').zfill(2)}"
