"""Display strings appended to compiled Thermomix steps."""

from typing import List, Optional

from dishflow_ai.app.services.thermomix.locale import is_rtl, mode_label, speed_label

NOTATION_SEPARATOR = " / "
# Left-to-right embedding and pop directional formatting.
LRE = "\u202a"
PDF = "\u202c"


def char_index(text: str, sub: str) -> Optional[int]:
    """Character offset of ``sub`` in ``text``, or None when absent.

    Offsets count characters, not encoded bytes, so "purée" in
    "Mélangez la purée" is at 12.
    """
    if not sub:
        return None
    index = text.find(sub)
    return index if index >= 0 else None


def format_duration(seconds: int) -> str:
    minutes, secs = divmod(seconds, 60)
    if minutes and secs:
        return f"{minutes} min {secs} sec"
    if minutes:
        return f"{minutes} min"
    return f"{seconds} sec"


def _wrap_direction(notation: str, lang: Optional[str]) -> str:
    if notation and is_rtl(lang):
        return f"{LRE}{notation}{PDF}"
    return notation


def build_parameter_notation(
    speed: str, time_seconds: int, temp_celsius: str, lang: Optional[str]
) -> str:
    """Time, temperature and speed, e.g. ``"3 min / 120°C / vitesse 1"``."""
    parts: List[str] = []
    if time_seconds > 0:
        parts.append(format_duration(time_seconds))
    if temp_celsius:
        parts.append(f"{temp_celsius}°C")
    if speed:
        parts.append(f"{speed_label(lang)} {speed}")
    return _wrap_direction(NOTATION_SEPARATOR.join(parts), lang)


def build_mode_notation(
    mode: str, time_seconds: int, temp_celsius: str, lang: Optional[str]
) -> str:
    """Automode label plus its parameters, e.g. ``"Pétrin / 2 min"``.

    Unknown modes produce an empty string.
    """
    label = mode_label(mode, lang)
    if not label:
        return ""
    params: List[str] = []
    if time_seconds > 0:
        params.append(format_duration(time_seconds))
    if temp_celsius:
        params.append(f"{temp_celsius}°C")
    notation = NOTATION_SEPARATOR.join([label, *params])
    return _wrap_direction(notation, lang)
