import pytest

from dishflow_ai.app.services.thermomix.locale import mode_label, resolve_language_name, speed_label
from dishflow_ai.app.services.thermomix.notation import (
    LRE,
    PDF,
    build_mode_notation,
    build_parameter_notation,
    char_index,
    format_duration,
)


@pytest.mark.parametrize(
    "text, sub, expected",
    [
        ("Hello world", "world", 6),
        ("Hello world", "foo", None),
        ("أضف 2 ملعقة كبيرة", "2 ملعقة", 4),
        ("Mélangez la purée", "purée", 12),
        ("anything", "", None),
    ],
)
def test_char_index_counts_characters(text, sub, expected):
    assert char_index(text, sub) == expected


def test_format_duration():
    assert format_duration(5) == "5 sec"
    assert format_duration(180) == "3 min"
    assert format_duration(90) == "1 min 30 sec"


@pytest.mark.parametrize(
    "speed, seconds, temp, lang, expected",
    [
        ("5", 0, "", "en", "speed 5"),
        ("1", 180, "120", "fr", "3 min / 120°C / vitesse 1"),
        ("2", 45, "100", "de", "45 sec / 100°C / Stufe 2"),
        ("3", 90, "", "en", "1 min 30 sec / speed 3"),
        ("", 600, "90", "fr-FR", "10 min / 90°C"),
    ],
)
def test_parameter_notation(speed, seconds, temp, lang, expected):
    assert build_parameter_notation(speed, seconds, temp, lang) == expected


def test_parameter_notation_rtl_keeps_order_inside_ltr_embedding():
    notation = build_parameter_notation("1", 180, "120", "ar")
    assert notation == f"{LRE}3 min / 120°C / سرعة 1{PDF}"
    assert build_parameter_notation("5", 0, "", "ar") == f"{LRE}سرعة 5{PDF}"


@pytest.mark.parametrize(
    "mode, seconds, temp, lang, expected",
    [
        ("dough", 120, "", "fr", "Pétrin / 2 min"),
        ("warm_up", 0, "65", "en", "Warm up / 65°C"),
        ("blend", 60, "", "de", "Mixen / 1 min"),
        ("invalid_mode", 60, "", "en", ""),
    ],
)
def test_mode_notation(mode, seconds, temp, lang, expected):
    assert build_mode_notation(mode, seconds, temp, lang) == expected


def test_mode_notation_rtl():
    assert build_mode_notation("turbo", 2, "", "ar") == f"{LRE}Turbo / 2 sec{PDF}"
    assert build_mode_notation("invalid_mode", 2, "", "ar") == ""


def test_labels_fall_back_to_base_language_then_english():
    assert speed_label("de-AT") == "Stufe"
    assert speed_label("pt_BR") == "vel."
    assert speed_label("sv") == "speed"
    assert mode_label("dough", "es-MX") == "Amasar"
    assert mode_label("dough", "sv") == "Knead"
    assert mode_label("sous_vide", "en") == ""


@pytest.mark.parametrize(
    "code, expected",
    [
        ("fr", "French"),
        ("pt-BR", "Brazilian Portuguese"),
        ("pt-PT", "Portuguese"),
        ("de_CH", "German"),
        ("Italian", "Italian"),
        ("auto", "French"),
        ("", "French"),
        (None, "French"),
        ("xx", "French"),
    ],
)
def test_resolve_language_name(code, expected):
    assert resolve_language_name(code) == expected


def test_resolve_language_name_custom_default():
    assert resolve_language_name("auto", default="English") == "English"
