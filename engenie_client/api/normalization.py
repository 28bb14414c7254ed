# api/normalization.py
# Wire-format helpers shared by every backend call

import re
from typing import Any

_SEPARATOR_RE = re.compile(r"[-_]([a-z])")
_INPUT_STRIP_RE = re.compile(r"[\\_-]")


def to_camel_case(key: str) -> str:
    """Convert a snake_case or kebab-case key to camelCase ("product_type" -> "productType")."""
    return _SEPARATOR_RE.sub(lambda match: match.group(1).upper(), key)


def convert_keys_to_camel_case(obj: Any) -> Any:
    """
    Recursively convert dictionary keys to camelCase.

    Lists are walked element by element and nested dicts are converted at
    every depth. Scalars are returned untouched.
    """
    if isinstance(obj, list):
        return [convert_keys_to_camel_case(item) for item in obj]
    if isinstance(obj, dict):
        return {
            (to_camel_case(key) if isinstance(key, str) else key): convert_keys_to_camel_case(value)
            for key, value in obj.items()
        }
    return obj


def normalize_user_input(text: str) -> str:
    """Strip backslashes, underscores and hyphens and lower-case the text."""
    return _INPUT_STRIP_RE.sub("", text).lower()
