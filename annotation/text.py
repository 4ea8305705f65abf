from __future__ import annotations

import re
from typing import Any, Mapping

_FLAG_RE = re.compile(r"\{(\w+)\}")


def get_flags(text_expr: str | None) -> list[str]:
    """Names of the {name} placeholders of a text expression, in order."""
    if not text_expr:
        return []
    return _FLAG_RE.findall(text_expr)


def _format_value(entry: Mapping[str, Any]) -> str:
    value = entry["value"]
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        text = f"{float(value):.2f}"
    else:
        text = str(value)
    unit = entry.get("unit")
    if unit:
        text += f" {unit}"
    return text


def replace_flags(text_expr: str | None, values: Mapping[str, Mapping[str, Any]] | None = None) -> str:
    """
    Replace {name} by values[name]["value"] (2 decimals) and its unit.

    Flags without a matching entry, or whose entry has no value, are kept as is.
    """
    if not text_expr:
        return ""
    if not values:
        return text_expr

    def _sub(match: re.Match[str]) -> str:
        entry = values.get(match.group(1))
        if not isinstance(entry, Mapping) or entry.get("value") is None:
            return match.group(0)
        return _format_value(entry)

    return _FLAG_RE.sub(_sub, text_expr)


def select_text_expr(label_text: Mapping[str, str] | None, modality: str | None) -> str:
    """Expression for the modality, falling back to the '*' entry."""
    if not label_text:
        return ""
    if modality is not None and modality in label_text:
        return label_text[modality]
    return label_text.get("*", "")
