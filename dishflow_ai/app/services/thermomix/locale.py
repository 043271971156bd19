"""Localized labels for Thermomix step notation."""

from typing import Optional

DEFAULT_LANGUAGE_NAME = "French"

LANGUAGE_NAMES = {
    "en": "English",
    "fr": "French",
    "de": "German",
    "es": "Spanish",
    "it": "Italian",
    "pt": "Portuguese",
    "pt-br": "Brazilian Portuguese",
    "nl": "Dutch",
    "ar": "Arabic",
    "zh": "Chinese",
    "zh-tw": "Traditional Chinese",
    "ja": "Japanese",
    "pl": "Polish",
    "cs": "Czech",
    "tr": "Turkish",
    "he": "Hebrew",
}

SPEED_LABELS = {
    "fr": "vitesse",
    "de": "Stufe",
    "es": "vel.",
    "it": "vel.",
    "pt": "vel.",
    "nl": "stand",
    "ar": "سرعة",
    "zh": "速度",
    "ja": "速度",
}
DEFAULT_SPEED_LABEL = "speed"

MODE_LABELS = {
    "dough": {
        "fr": "Pétrin",
        "de": "Teigkneten",
        "es": "Amasar",
        "it": "Impasto",
        "pt": "Amassar",
        "nl": "Kneden",
        "ar": "عجن",
        "en": "Knead",
    },
    "turbo": {"en": "Turbo"},
    "blend": {
        "fr": "Mixage",
        "de": "Mixen",
        "es": "Mezclar",
        "it": "Frullare",
        "pt": "Misturar",
        "nl": "Mixen",
        "ar": "مزج",
        "en": "Blend",
    },
    "warm_up": {
        "fr": "Réchauffer",
        "de": "Aufwärmen",
        "es": "Calentar",
        "it": "Riscaldare",
        "pt": "Aquecer",
        "nl": "Opwarmen",
        "ar": "تسخين",
        "en": "Warm up",
    },
    "rice_cooker": {
        "fr": "Cuiseur à riz",
        "de": "Reiskocher",
        "es": "Arrocera",
        "it": "Cuociriso",
        "pt": "Panela de arroz",
        "nl": "Rijstkoker",
        "ar": "طنجرة الأرز",
        "en": "Rice cooker",
    },
}

RTL_LANGUAGES = {"ar", "he", "fa", "ur"}


def normalize_code(code: Optional[str]) -> str:
    return (code or "").strip().lower().replace("_", "-")


def base_language(code: Optional[str]) -> str:
    """``"pt-BR"`` -> ``"pt"``."""
    return normalize_code(code).split("-", 1)[0]


def resolve_language_name(code: Optional[str], default: str = DEFAULT_LANGUAGE_NAME) -> str:
    """Map a content language code to the language name used in prompts.

    Regional variants fall back to their base language; empty, ``"auto"`` and
    unknown codes resolve to ``default``. Full names pass through.
    """
    normalized = normalize_code(code)
    if not normalized or normalized == "auto":
        return default
    if normalized in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[normalized]
    base = base_language(normalized)
    if base in LANGUAGE_NAMES:
        return LANGUAGE_NAMES[base]
    for name in LANGUAGE_NAMES.values():
        if name.lower() == normalized:
            return name
    return default


def speed_label(lang: Optional[str]) -> str:
    return SPEED_LABELS.get(base_language(lang), DEFAULT_SPEED_LABEL)


def mode_label(mode: str, lang: Optional[str]) -> str:
    """Return the display label for an automode, or "" for unknown modes."""
    labels = MODE_LABELS.get(mode)
    if labels is None:
        return ""
    return labels.get(base_language(lang), labels["en"])


def is_rtl(lang: Optional[str]) -> bool:
    return base_language(lang) in RTL_LANGUAGES
