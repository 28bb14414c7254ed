# tools/requirement_tools.py
# Requirement merging and formatting helpers
#
# Pure functions: no I/O, no state. Inputs are never mutated.

import re
from typing import Dict, Any, List, Optional

from ..api.models import RequirementSchema

PRODUCT_TYPE_KEY = "productType"
_REQUIREMENT_GROUPS = ("mandatoryRequirements", "optionalRequirements")


def _is_empty(value: Any) -> bool:
    return value is None or value == ""


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _format_nested(value: Dict[str, Any]) -> str:
    entries = []
    for key, item in value.items():
        if isinstance(item, (list, tuple)):
            entries.append(f"{key}: {', '.join(_format_scalar(v) for v in item)}")
        else:
            entries.append(f"{key}: {_format_scalar(item)}")
    return ". ".join(entries)


def compose_user_data_string(data: Dict[str, Any]) -> str:
    """
    Build a flattened natural-language summary of the collected data.

    Product type goes first, then every non-empty field as "key: value".
    Dict values are flattened to "k: v" (or "k: v1, v2" for list items).

    Example:
        {"productType": "Pressure Transmitter", "outputSignal": "4-20mA"}
        -> "Product Type: Pressure Transmitter. outputSignal: 4-20mA"
    """
    parts: List[str] = []
    if data.get(PRODUCT_TYPE_KEY):
        parts.append(f"Product Type: {data[PRODUCT_TYPE_KEY]}")

    for key, value in data.items():
        if key == PRODUCT_TYPE_KEY or _is_empty(value):
            continue
        if isinstance(value, dict):
            nested = _format_nested(value)
            if nested:
                parts.append(nested)
        elif isinstance(value, (list, tuple)):
            parts.append(f"{key}: {', '.join(_format_scalar(v) for v in value)}")
        else:
            parts.append(f"{key}: {_format_scalar(value)}")

    return ". ".join(parts)


def flatten_requirements(provided: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Merge mandatory and optional requirement groups into one flat map.

    Other top-level keys are kept unless a group already supplied them.
    None and empty-string values are dropped.
    """
    flat: Dict[str, Any] = {}
    if not provided:
        return flat

    for group in _REQUIREMENT_GROUPS:
        requirements = provided.get(group)
        if not isinstance(requirements, dict):
            continue
        for key, value in requirements.items():
            if not _is_empty(value):
                flat[key] = value

    for key, value in provided.items():
        if key in _REQUIREMENT_GROUPS or key in flat:
            continue
        if not _is_empty(value):
            flat[key] = value

    return flat


def merge_requirements_with_schema(
    provided: Dict[str, Any],
    schema: Optional[RequirementSchema]
) -> Dict[str, Any]:
    """
    Return a copy of the provided data with every schema key present.

    Missing schema keys default to "". Keys outside the schema are kept.
    """
    merged = dict(provided)
    if schema is None:
        return merged
    for key in schema.all_keys():
        if key not in merged:
            merged[key] = ""
    return merged


def requirements_only(data: Dict[str, Any]) -> Dict[str, Any]:
    """Collected data without the product type entry."""
    return {key: value for key, value in data.items() if key != PRODUCT_TYPE_KEY}


def format_missing_fields(fields: List[str]) -> str:
    """Format camelCase field names for display ("outputSignal" -> "Output Signal")."""
    formatted = []
    for field in fields:
        spaced = re.sub(r"([A-Z])", r" \1", field)
        spaced = spaced[:1].upper() + spaced[1:]
        formatted.append(spaced.strip())
    return ", ".join(formatted)

