"""Deterministic cleanup of model-generated Thermomix steps.

Runs after every conversion pass so that whatever the model emits, the
compiled program satisfies the device rules:

* an automode fixes its own speed, so speed is cleared when one is set;
* temperature survives only without an automode or with ``warm_up``;
* ``"0"``-style speed and temperature values are extraction artifacts;
* a step with no machine setting carries no timer;
* every ingredient reference is a verbatim substring of the step text.
"""

import logging
import re
from typing import List

from dishflow_ai.app.schemas.thermomix import (
    AUTOMODES,
    DEFAULT_REQUIRED_MODELS,
    ThermomixConversionResult,
    ThermomixStep,
)
from dishflow_ai.app.services.thermomix.locale import MODE_LABELS, SPEED_LABELS

logger = logging.getLogger(__name__)

WARM_UP_DEFAULT_TEMP = "65"
TM6_MIN_EXCLUSIVE_TEMP = 120.0
TM6_ONLY_MODES = {"blend", "warm_up", "rice_cooker"}

_ZERO_SENTINEL_RE = re.compile(r"^0+(?:\.0+)?$")

_SPEED_WORDS = sorted(
    {label.lower() for label in SPEED_LABELS.values()}
    | {"speed", "vitesse", "stufe", "vel", "vel.", "velocidad", "velocità", "velocidade", "stand"},
    key=len,
    reverse=True,
)
_SPEED_WORD_PATTERN = "|".join(re.escape(word) for word in _SPEED_WORDS)
_NUMBER = r"\d+(?:[.,]\d+)?"
_TIME_UNIT = r"(?:s|sec|secs|second|seconds|seg|sek|min|mins|minute|minutes|minuten|minuti|minutos|h|hr|hrs|hour|hours)"

_PARAMETER_TOKEN_PATTERNS = [
    # "5 sec", "3 min", "1 min 30 sec"
    re.compile(rf"^{_NUMBER}\s*{_TIME_UNIT}\.?(?:\s+{_NUMBER}\s*{_TIME_UNIT}\.?)*$", re.IGNORECASE),
    # "120°C", "100 °C", "37°"
    re.compile(rf"^{_NUMBER}\s*°\s*[cf]?$", re.IGNORECASE),
    # "vitesse 1", "Stufe 5", "vel. 5", "speed 10"
    re.compile(rf"^(?:{_SPEED_WORD_PATTERN})\s*{_NUMBER}$", re.IGNORECASE),
    # "1 vitesse"
    re.compile(rf"^{_NUMBER}\s*(?:{_SPEED_WORD_PATTERN})$", re.IGNORECASE),
]
_MODE_WORDS = {label.lower() for labels in MODE_LABELS.values() for label in labels.values()}


def is_zero_sentinel(value: str) -> bool:
    return bool(_ZERO_SENTINEL_RE.match(value.strip()))


def _is_parameter_segment(segment: str) -> bool:
    if segment.lower() in _MODE_WORDS:
        return True
    return any(pattern.match(segment) for pattern in _PARAMETER_TOKEN_PATTERNS)


def is_parameter_token(ref: str) -> bool:
    """True when ``ref`` is machine notation rather than an ingredient.

    Every ``/``-separated segment must match a whole time, temperature,
    speed or automode token, so "cumin" or "haricots secs" never qualify.
    """
    segments = [segment.strip() for segment in ref.split("/")]
    if not segments or any(not segment for segment in segments):
        return False
    return all(_is_parameter_segment(segment) for segment in segments)


def clean_ingredient_refs(text: str, refs: List[str]) -> List[str]:
    """Drop parameter tokens, refs missing from ``text`` and duplicates.

    Duplicates collapse to their first occurrence; order is preserved.
    """
    cleaned: List[str] = []
    seen = set()
    for raw in refs:
        ref = (raw or "").strip()
        if not ref:
            continue
        if is_parameter_token(ref):
            logger.debug("Dropping parameter token %r from ingredient refs", ref)
            continue
        if ref not in text:
            logger.debug("Dropping ingredient ref %r not found verbatim in step text", ref)
            continue
        if ref in seen:
            continue
        seen.add(ref)
        cleaned.append(ref)
    return cleaned


def sanitize_step(step: ThermomixStep) -> ThermomixStep:
    mode = step.mode
    if mode and mode not in AUTOMODES:
        logger.warning("Clearing unknown automode %r", mode)
        mode = ""

    speed = "" if is_zero_sentinel(step.speed) else step.speed
    temp = "" if is_zero_sentinel(step.temp_celsius) else step.temp_celsius

    if mode:
        speed = ""
        if mode == "warm_up":
            temp = temp or WARM_UP_DEFAULT_TEMP
        else:
            temp = ""

    time_seconds = max(step.time_seconds, 0)
    if not mode and not speed and not temp:
        time_seconds = 0

    return step.model_copy(
        update={
            "mode": mode,
            "speed": speed,
            "temp_celsius": temp,
            "time_seconds": time_seconds,
            "ingredient_refs": clean_ingredient_refs(step.text, step.ingredient_refs),
        }
    )


def sanitize_steps(steps: List[ThermomixStep]) -> List[ThermomixStep]:
    return [sanitize_step(step) for step in steps]


def _temperature_value(temp: str) -> float:
    match = re.match(r"\d+(?:\.\d+)?", temp.strip())
    return float(match.group()) if match else 0.0


def determine_required_models(steps: List[ThermomixStep]) -> List[str]:
    """Default to every supported model; narrow to TM6 only for TM6-exclusive features."""
    for step in steps:
        if step.mode in TM6_ONLY_MODES:
            return ["TM6"]
        if step.temp_celsius and _temperature_value(step.temp_celsius) > TM6_MIN_EXCLUSIVE_TEMP:
            return ["TM6"]
    return list(DEFAULT_REQUIRED_MODELS)


def sanitize_conversion(result: ThermomixConversionResult) -> ThermomixConversionResult:
    steps = sanitize_steps(result.steps)
    return result.model_copy(
        update={"steps": steps, "required_models": determine_required_models(steps)}
    )
