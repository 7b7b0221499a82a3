"""
Canonical parser for playing field labels.

Handles both string ("Field 1,Field 2") and list (["Field 1", "Field 2"]) inputs
so labels are never split character by character.
"""
from typing import List, Optional, Union


def field_label_for_index(field_names: Optional[Union[str, List[str]]], field_index: int) -> str:
    """
    Return the field label for a 0-based index, cycling through the pool.
    Falls back to "Field <n>" when no labels are configured.
    """
    labels = parse_field_names(field_names)
    if not labels:
        return f"Field {field_index + 1}"
    return labels[field_index % len(labels)]


def parse_field_names(field_names: Optional[Union[str, List[str]]]) -> List[str]:
    """
    Normalize field_names to a list of non-empty strings.

    - None or "" -> []
    - String (e.g. "North, South") -> split on commas, strip whitespace, drop empties
    - List -> coerce each to str(x).strip(), drop empties
    """
    if field_names is None:
        return []
    if isinstance(field_names, str):
        s = field_names.strip()
        if not s:
            return []
        return [x.strip() for x in s.split(",") if x.strip()]
    if isinstance(field_names, list):
        return [str(x).strip() for x in field_names if str(x).strip()]
    return []
