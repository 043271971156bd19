import re
from decimal import Decimal, InvalidOperation
from typing import Optional

UNICODE_FRACTIONS = {
    "¼": "1/4",
    "½": "1/2",
    "¾": "3/4",
    "⅓": "1/3",
    "⅔": "2/3",
    "⅕": "1/5",
    "⅛": "1/8",
    "⅜": "3/8",
    "⅝": "5/8",
    "⅞": "7/8",
}
_RANGE_RE = re.compile(r"^(.+?)\s*(?:-|–|to)\s*(.+)$")


def _normalize(raw: str) -> str:
    value = raw.strip().replace(",", ".")
    for char, replacement in UNICODE_FRACTIONS.items():
        value = re.sub(rf"(\d){char}", rf"\1 {replacement}", value)
        value = value.replace(char, replacement)
    return re.sub(r"\s+", " ", value)


def _parse_single(value: str) -> Optional[Decimal]:
    # Whole or decimal numbers
    try:
        if "/" not in value and " " not in value:
            return Decimal(value)
    except InvalidOperation:
        return None

    # Fractions like "1/2" or "1 1/2"
    try:
        if " " in value:
            whole_part, frac_part = value.split(" ", 1)
            whole = Decimal(whole_part)
            num_str, denom_str = frac_part.split("/", 1)
            denom = Decimal(denom_str)
            if denom == 0:
                return None
            return whole + (Decimal(num_str) / denom)
        num_str, denom_str = value.split("/", 1)
        denom = Decimal(denom_str)
        if denom == 0:
            return None
        return Decimal(num_str) / denom
    except (InvalidOperation, ValueError):
        return None


def parse_quantity_display(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a display quantity such as "2", "0,5", "1 1/2", "1½" or "2-3".

    Ranges resolve to their lower bound. Returns None for anything that is
    not a number ("a pinch", "to taste").
    """
    if raw is None:
        return None
    value = _normalize(raw)
    if not value:
        return None

    parsed = _parse_single(value)
    if parsed is not None:
        return parsed
    match = _RANGE_RE.match(value)
    if match:
        return _parse_single(match.group(1).strip())
    return None


def parse_quantity(raw: Optional[str]) -> Optional[float]:
    parsed = parse_quantity_display(raw)
    return float(parsed) if parsed is not None else None
