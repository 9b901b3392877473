"""
Field merge primitives.

Each provider payload is projected into a narrow `*Fields` dataclass. A precedence
table then names, per output field, which projections to consult and in which order;
the first non-empty value wins. The request's own projection is always consulted last.
"""

from __future__ import annotations

import logging
import math
import re
from typing import Any, Mapping, Sequence

logger = logging.getLogger(__name__)

REQUEST_SOURCE = "request"

# Providers use these strings to mean "no value".
_EMPTY_MARKERS = frozenset({"n/a", "none", "null", "undefined"})

_INT_RE = re.compile(r"-?\d[\d,]*")
_FLOAT_RE = re.compile(r"-?\d+(?:\.\d+)?")
_SLUG_RE = re.compile(r"[^a-z0-9]+")
_YEAR_RE = re.compile(r"\b(\d{4})\b")

PITCH_CLASSES = ("C", "C#", "D", "D#", "E", "F", "F#", "G", "G#", "A", "A#", "B")


def is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        stripped = value.strip()
        return not stripped or stripped.casefold() in _EMPTY_MARKERS
    if isinstance(value, (list, tuple, dict, set, frozenset)):
        return len(value) == 0
    return False


def split_list(value: Any, *, sep: str = ",") -> list[str]:
    """`"Action, Sci-Fi"` -> `["Action", "Sci-Fi"]`; empty markers give `[]`."""

    if is_empty(value) or not isinstance(value, str):
        return []
    return [part.strip() for part in value.split(sep) if not is_empty(part)]


def parse_int(value: Any) -> int | None:
    """
    Locale-agnostic integer parsing.

    `parse_int("1,234,567") == 1234567`, `parse_int("136 min") == 136`. Returns None when
    no number can be read.
    """

    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) else None
    if not isinstance(value, str) or is_empty(value):
        return None
    match = _INT_RE.search(value)
    if not match:
        return None
    digits = match.group(0).replace(",", "")
    try:
        return int(digits)
    except ValueError:
        return None


def parse_float(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return float(value)
    if isinstance(value, float):
        return value if math.isfinite(value) else None
    if not isinstance(value, str) or is_empty(value):
        return None
    match = _FLOAT_RE.search(value.replace(",", ""))
    if not match:
        return None
    try:
        return float(match.group(0))
    except ValueError:
        return None


def parse_year(value: Any) -> int | None:
    """Year from an int or a date-ish string (`"1999-03-31"`, `"31 Mar 1999"`)."""

    if isinstance(value, int) and not isinstance(value, bool):
        return value if value > 0 else None
    if not isinstance(value, str) or is_empty(value):
        return None
    match = _YEAR_RE.search(value)
    return int(match.group(1)) if match else None


def slugify(*parts: str) -> str:
    """`slugify("The Matrix") == "the-matrix"`; several parts are joined with `-`."""

    text = "-".join(p for p in parts if p)
    return _SLUG_RE.sub("-", text.lower()).strip("-")


def musical_key(pitch_class: Any) -> str | None:
    if isinstance(pitch_class, bool) or not isinstance(pitch_class, int):
        return None
    if 0 <= pitch_class < len(PITCH_CLASSES):
        return PITCH_CLASSES[pitch_class]
    return None


def format_duration(duration_ms: Any) -> str | None:
    ms = parse_int(duration_ms)
    if ms is None or ms <= 0:
        return None
    return f"{ms // 60000} min {(ms % 60000) // 1000} sec"


def format_usd(amount: Any) -> str | None:
    value = parse_int(amount)
    if value is None or value <= 0:
        return None
    return f"${value:,}"


def resolve_field(
    name: str,
    order: Sequence[str],
    projections: Mapping[str, Any],
) -> Any:
    """
    First non-empty `name` across the projections listed in `order`.

    Missing projections (a failed provider) are skipped. The request projection is
    appended as the final fallback when it is not already listed.
    """

    chain = list(order)
    if REQUEST_SOURCE in projections and REQUEST_SOURCE not in chain:
        chain.append(REQUEST_SOURCE)

    for source in chain:
        projection = projections.get(source)
        if projection is None:
            continue
        value = getattr(projection, name, None)
        if not is_empty(value):
            return value
    return None


def merge_fields(
    precedence: Mapping[str, Sequence[str]],
    projections: Mapping[str, Any],
) -> dict[str, Any]:
    merged = {name: resolve_field(name, order, projections) for name, order in precedence.items()}
    logger.debug(
        "Merged fields: "
        + ", ".join(f"{name}={'set' if value is not None else 'absent'}" for name, value in merged.items())
    )
    return merged
